from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Sequence, Tuple


@dataclass(frozen=True)
class StyledSpan:
    text: str
    bold: bool = False
    italic: bool = False


@dataclass(frozen=True)
class NumberingDefinition:
    """Decimal ordered-list style shared by every ordered list item."""

    reference: str = "1"
    format: str = "decimal"
    text: str = "%1."
    level: int = 0
    indent_left: int = 720
    hanging: int = 360


@dataclass(frozen=True)
class Block:
    """Base class for block-level nodes."""

    def __post_init__(self) -> None:
        spans = getattr(self, "spans", None)
        if spans is not None and not isinstance(spans, tuple):
            object.__setattr__(self, "spans", tuple(spans))


@dataclass(frozen=True)
class Heading(Block):
    level: int
    spans: Tuple[StyledSpan, ...]


@dataclass(frozen=True)
class Paragraph(Block):
    spans: Tuple[StyledSpan, ...]


@dataclass(frozen=True)
class BlockQuote(Block):
    spans: Tuple[StyledSpan, ...]


@dataclass(frozen=True)
class ListItem(Block):
    ordered: bool
    spans: Tuple[StyledSpan, ...]
    numbering: NumberingDefinition | None = None


@dataclass(frozen=True)
class CodeLine(Block):
    text: str


@dataclass(frozen=True)
class InlineCode(Block):
    text: str


@dataclass(frozen=True)
class ThematicBreak(Block):
    """Horizontal rule / thematic break."""


@dataclass(frozen=True)
class Hyperlink(Block):
    text: str
    url: str


class ImageFormat(str, Enum):
    PNG = "png"
    JPG = "jpg"
    GIF = "gif"
    BMP = "bmp"


@dataclass(frozen=True)
class Image(Block):
    data: bytes = field(repr=False)
    format: ImageFormat
    width: int
    height: int
    alt: str = ""


@dataclass(frozen=True)
class Empty(Block):
    """Blank source line."""


@dataclass(frozen=True)
class ImageReference:
    url: str
    alt: str


@dataclass(frozen=True)
class ResolvedImage:
    data: bytes = field(repr=False)
    format: ImageFormat
    width: int
    height: int


class FailureReason(str, Enum):
    MALFORMED_REFERENCE = "malformed reference"
    NOT_FOUND = "not found"
    NOT_A_FILE = "not a file"
    UNSUPPORTED_FORMAT = "unsupported format"
    CORRUPT_HEADER = "corrupt header"
    READ_ERROR = "read error"


@dataclass(frozen=True)
class ResolutionFailure:
    reference: ImageReference | None
    reason: FailureReason
    detail: str = ""

    @property
    def label(self) -> str:
        if self.reference is None:
            return self.detail
        return self.reference.alt or self.reference.url


@dataclass
class Document:
    blocks: List[Block]
    numbering: NumberingDefinition = field(default_factory=NumberingDefinition)


def plain_text(spans: Sequence[StyledSpan]) -> str:
    return "".join(span.text for span in spans)


def scale_dimensions(width: int, height: int, max_width: int, max_height: int) -> tuple[int, int]:
    """Fit ``width`` x ``height`` inside the bounds, keeping aspect and never enlarging."""
    scale = min(max_width / width, max_height / height, 1.0)
    return _round_half_up(width * scale), _round_half_up(height * scale)


def _round_half_up(value: float) -> int:
    return max(1, int(math.floor(value + 0.5)))
