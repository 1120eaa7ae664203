from __future__ import annotations

import logging
from pathlib import Path

from .assembler import convert_text
from .config import ExportSettings
from .errors import ContentUnavailable, PersistenceFailure
from .image_resolver import FileSystemAssetStore, ImageResolver
from .line_classifier import LineClassifier
from .model import Document
from .renderer_docx import render_document

logger = logging.getLogger(__name__)

EXPORT_EXTENSION = ".docx"


def export_path_for(
    source: Path,
    exports_dir_name: str = "exports",
    extension: str = EXPORT_EXTENSION,
    output_dir: Path | None = None,
) -> Path:
    """``<dir>/exports/<stem>.docx``, or ``<stem>-N.docx`` when taken."""
    target_dir = Path(output_dir) if output_dir is not None else source.parent / exports_dir_name
    candidate = target_dir / f"{source.stem}{extension}"
    counter = 1
    while candidate.exists():
        candidate = target_dir / f"{source.stem}-{counter}{extension}"
        counter += 1
    return candidate


def build_document(text: str, base_dir: Path, settings: ExportSettings) -> Document:
    roots = [settings.asset_root] if settings.asset_root else []
    resolver = ImageResolver(FileSystemAssetStore(base_dir, roots), settings)
    return convert_text(text, LineClassifier(resolver))


def export_markdown(
    source: str | Path,
    settings: ExportSettings | None = None,
    output_dir: str | Path | None = None,
) -> Path:
    """Convert a Markdown file and save it next to the source; returns the saved path."""
    source = Path(source).expanduser()
    settings = settings or ExportSettings()

    try:
        text = source.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ContentUnavailable(f"{source}: {exc}") from exc
    if not text:
        raise ContentUnavailable(f"{source} is empty")
    logger.debug("Markdown length: %d chars", len(text))

    logger.info("Converting %s", source)
    document = build_document(text, source.parent, settings)
    data = render_document(document)

    target = export_path_for(
        source,
        exports_dir_name=settings.exports_dir,
        output_dir=Path(output_dir).expanduser() if output_dir is not None else None,
    )
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
    except OSError as exc:
        raise PersistenceFailure(f"{target}: {exc}") from exc

    logger.debug("Wrote %d blocks to %s", len(document.blocks), target)
    return target
