from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import load_settings
from .errors import MarkWordError
from .exporter import export_markdown
from .utils import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="markword",
        description="Convert a Markdown note into a DOCX file in a sibling exports/ folder.",
    )
    parser.add_argument("input", type=str, help="Path to Markdown file")
    parser.add_argument("-o", "--output-dir", type=str, help="Directory for the DOCX (default: <input dir>/exports)")
    parser.add_argument("-c", "--config", type=str, help="YAML settings file")
    parser.add_argument("--max-width", type=int, help="Maximum image width in pixels")
    parser.add_argument("--max-height", type=int, help="Maximum image height in pixels")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose)
    try:
        settings = load_settings(args.config).with_overrides(
            image_max_width=args.max_width,
            image_max_height=args.max_height,
        )
        output_path = export_markdown(Path(args.input), settings, output_dir=args.output_dir)
    except MarkWordError as exc:
        logging.error(exc.user_message)
        return 1

    logging.info("Done. Saved to %s", output_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
