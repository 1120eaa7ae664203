from __future__ import annotations

import glob
import logging
import re
import struct
from pathlib import Path, PurePosixPath
from typing import Iterable, Mapping, Optional, Protocol, Tuple
from urllib.parse import unquote

from .config import ExportSettings
from .model import (
    FailureReason,
    ImageFormat,
    ImageReference,
    ResolutionFailure,
    ResolvedImage,
    scale_dimensions,
)

logger = logging.getLogger(__name__)

WIKI_IMAGE = re.compile(r"!\[\[(.*?)\]\]")
MARKDOWN_IMAGE = re.compile(r"!\[(.*?)\]\((.*?)\)")

PNG_MAGIC = b"\x89PNG"
JPEG_MAGIC = b"\xff\xd8"
JPEG_SOF0 = b"\xff\xc0"

SUFFIX_FORMATS = {
    ".png": ImageFormat.PNG,
    ".jpg": ImageFormat.JPG,
    ".jpeg": ImageFormat.JPG,
    ".gif": ImageFormat.GIF,
    ".bmp": ImageFormat.BMP,
}
UNSUPPORTED_SUFFIXES = {".svg"}

Dimensions = Tuple[ImageFormat, int, int]


class UnsupportedFormat(ValueError):
    pass


class CorruptHeader(ValueError):
    pass


class AssetStore(Protocol):
    def lookup(self, path: str) -> Optional[bytes]:
        """Return the asset bytes, ``None`` when missing.

        Raises ``IsADirectoryError`` when the path names something other
        than a plain file.
        """


class MemoryAssetStore:
    def __init__(self, assets: Mapping[str, bytes] | None = None) -> None:
        self.assets = dict(assets or {})

    def lookup(self, path: str) -> Optional[bytes]:
        return self.assets.get(path)


class FileSystemAssetStore:
    """Look assets up relative to the document folder, then the asset roots."""

    def __init__(self, base_dir: Path, search_roots: Iterable[Path] = ()) -> None:
        self.base_dir = Path(base_dir)
        self.search_roots = [Path(root) for root in search_roots]

    def lookup(self, path: str) -> Optional[bytes]:
        candidate = self._locate(path)
        if candidate is None:
            return None
        if not candidate.is_file():
            raise IsADirectoryError(f"{candidate} is not a file")
        return candidate.read_bytes()

    def _locate(self, path: str) -> Path | None:
        relative = Path(path)
        if relative.is_absolute():
            return relative if relative.exists() else None
        for root in [self.base_dir, *self.search_roots]:
            candidate = root / relative
            if candidate.exists():
                return candidate
        # wiki links may name an attachment by file name only
        if len(relative.parts) == 1:
            for root in self.search_roots:
                for match in sorted(root.rglob(glob.escape(relative.name))):
                    if match.is_file():
                        return match
        return None


def parse_reference(line: str) -> ImageReference | None:
    """Extract an image reference, preferring ``![[path]]`` over ``![alt](path)``."""
    wiki = WIKI_IMAGE.search(line)
    if wiki:
        path = wiki.group(1).split("|", 1)[0].strip()
        if path:
            return ImageReference(url=path, alt=path)
    standard = MARKDOWN_IMAGE.search(line)
    if standard:
        alt, target = standard.group(1), standard.group(2).strip()
        target = re.sub(r"\s+\"[^\"]*\"$", "", target)
        if target.startswith("<") and target.endswith(">"):
            target = target[1:-1]
        if target:
            return ImageReference(url=unquote(target), alt=alt)
    return None


def detect_format(path: str) -> ImageFormat:
    suffix = PurePosixPath(path).suffix.lower()
    if suffix in UNSUPPORTED_SUFFIXES:
        raise UnsupportedFormat(f"{suffix} images are not supported")
    return SUFFIX_FORMATS.get(suffix, ImageFormat.JPG)


def sniff_png(data: bytes) -> Optional[Dimensions]:
    """Read width/height from the IHDR chunk, which always comes first."""
    if data[:4] != PNG_MAGIC:
        return None
    if len(data) < 24:
        raise CorruptHeader("PNG header truncated before IHDR dimensions")
    width, height = struct.unpack(">II", data[16:24])
    return _checked(ImageFormat.PNG, width, height)


def sniff_jpeg(data: bytes) -> Optional[Dimensions]:
    """Scan for the baseline SOF0 marker and read its frame size."""
    if data[:2] != JPEG_MAGIC:
        return None
    index = 2
    while index < len(data) - 10:
        if data[index : index + 2] == JPEG_SOF0:
            height, width = struct.unpack(">HH", data[index + 5 : index + 9])
            return _checked(ImageFormat.JPG, width, height)
        index += 1
    return None


def sniff_dimensions(data: bytes, image_format: ImageFormat) -> Optional[Dimensions]:
    if image_format is ImageFormat.PNG:
        return sniff_png(data)
    if image_format is ImageFormat.JPG:
        return sniff_jpeg(data)
    return None


def _checked(image_format: ImageFormat, width: int, height: int) -> Dimensions:
    if width <= 0 or height <= 0:
        raise CorruptHeader(f"{image_format.value} header declares {width}x{height}")
    return image_format, width, height


class ImageResolver:
    def __init__(self, store: AssetStore, settings: ExportSettings | None = None) -> None:
        self.store = store
        self.settings = settings or ExportSettings()

    def resolve_line(self, line: str) -> ResolvedImage | ResolutionFailure:
        reference = parse_reference(line)
        if reference is None:
            return self._fail(None, FailureReason.MALFORMED_REFERENCE, line.strip())
        return self.resolve(reference)

    def resolve(self, reference: ImageReference) -> ResolvedImage | ResolutionFailure:
        try:
            image_format = detect_format(reference.url)
        except UnsupportedFormat as exc:
            return self._fail(reference, FailureReason.UNSUPPORTED_FORMAT, str(exc))

        try:
            data = self.store.lookup(reference.url)
        except IsADirectoryError as exc:
            return self._fail(reference, FailureReason.NOT_A_FILE, str(exc))
        except (OSError, ValueError) as exc:
            return self._fail(reference, FailureReason.READ_ERROR, str(exc))
        except Exception as exc:
            return self._fail(reference, FailureReason.READ_ERROR, f"{type(exc).__name__}: {exc}")
        if data is None:
            return self._fail(reference, FailureReason.NOT_FOUND, reference.url)

        try:
            dimensions = sniff_dimensions(data, image_format)
            if dimensions is None:
                logger.debug("No dimensions inferred for %s, using defaults", reference.url)
                width = self.settings.image_default_width
                height = self.settings.image_default_height
            else:
                _, original_width, original_height = dimensions
                width, height = scale_dimensions(
                    original_width,
                    original_height,
                    self.settings.image_max_width,
                    self.settings.image_max_height,
                )
        except (CorruptHeader, struct.error, ZeroDivisionError) as exc:
            return self._fail(reference, FailureReason.CORRUPT_HEADER, str(exc))
        except Exception as exc:
            return self._fail(reference, FailureReason.CORRUPT_HEADER, f"{type(exc).__name__}: {exc}")

        return ResolvedImage(data=data, format=image_format, width=width, height=height)

    def _fail(
        self, reference: ImageReference | None, reason: FailureReason, detail: str
    ) -> ResolutionFailure:
        logger.warning("Image %s: %s (%s)", reason.value, reference.url if reference else detail, detail)
        return ResolutionFailure(reference=reference, reason=reason, detail=detail)
