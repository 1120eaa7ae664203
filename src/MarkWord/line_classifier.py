from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional

from .image_resolver import ImageResolver, MemoryAssetStore, parse_reference
from .inline_formatter import format_spans
from .model import (
    Block,
    BlockQuote,
    CodeLine,
    Empty,
    FailureReason,
    Heading,
    Hyperlink,
    Image,
    InlineCode,
    ListItem,
    NumberingDefinition,
    Paragraph,
    ResolutionFailure,
    StyledSpan,
    ThematicBreak,
)

ORDERED_ITEM = re.compile(r"^\d+\. ")
LINK = re.compile(r"\[(.*?)\]\((.*?)\)")
ITALIC_MARKERS = re.compile(r"^[*_]|[*_]$")
BOLD_ITALIC_MARKERS = re.compile(r"^(\*\*\*|___)|(\*\*\*|___)$")


@dataclass(frozen=True)
class Rule:
    name: str
    matches: Callable[[str], bool]
    # returning None lets the line fall through to the next rule
    build: Callable[["LineClassifier", str], Optional[Block]]


def _heading(level: int) -> Rule:
    prefix = "#" * level + " "
    return Rule(
        name=f"h{level}",
        matches=lambda line: line.startswith(prefix),
        build=lambda _, line: Heading(level=level, spans=format_spans(line[len(prefix) :])),
    )


def _quote(_: "LineClassifier", line: str) -> Block:
    return BlockQuote(spans=format_spans(re.sub(r"^> ?", "", line)))


def _bullet(_: "LineClassifier", line: str) -> Block:
    return ListItem(ordered=False, spans=[StyledSpan(line[2:])])


def _ordered(classifier: "LineClassifier", line: str) -> Block:
    return ListItem(
        ordered=True,
        spans=[StyledSpan(ORDERED_ITEM.sub("", line, count=1))],
        numbering=classifier.numbering,
    )


def _inline_code(_: "LineClassifier", line: str) -> Block:
    text = line[1:]
    if text.endswith("`"):
        text = text[:-1]
    return InlineCode(text=text)


def _hyperlink(_: "LineClassifier", line: str) -> Optional[Block]:
    match = LINK.search(line)
    if match is None:
        return None
    return Hyperlink(text=match.group(1), url=match.group(2))


def _image(classifier: "LineClassifier", line: str) -> Block:
    reference = parse_reference(line)
    if reference is None:
        result = classifier.resolver.resolve_line(line)
    else:
        result = classifier.resolver.resolve(reference)
    if isinstance(result, ResolutionFailure):
        return Paragraph(spans=[StyledSpan(placeholder_text(result))])
    return Image(
        data=result.data,
        format=result.format,
        width=result.width,
        height=result.height,
        alt=reference.alt if reference else "",
    )


def _italic(_: "LineClassifier", line: str) -> Block:
    return Paragraph(spans=[StyledSpan(ITALIC_MARKERS.sub("", line), italic=True)])


def _bold_italic(_: "LineClassifier", line: str) -> Block:
    return Paragraph(spans=[StyledSpan(BOLD_ITALIC_MARKERS.sub("", line), bold=True, italic=True)])


def _formatted_paragraph(_: "LineClassifier", line: str) -> Block:
    return Paragraph(spans=format_spans(line))


# Priority order; the first rule whose predicate matches wins. Several rules
# can match the same line: ``***`` lines are taken by thematic_break and
# ``___`` lines by bold, so bold_italic never fires.
RULES: tuple[Rule, ...] = (
    _heading(1),
    _heading(2),
    _heading(3),
    Rule("empty", lambda line: line.strip() == "", lambda _, line: Empty()),
    Rule("quote", lambda line: line.startswith(">"), _quote),
    Rule("bullet", lambda line: line.startswith(("- ", "* ")), _bullet),
    Rule("ordered", lambda line: ORDERED_ITEM.match(line) is not None, _ordered),
    Rule("code_fence", lambda line: line.startswith("```"), lambda _, line: CodeLine(text=line[3:])),
    Rule("inline_code", lambda line: line.startswith("`"), _inline_code),
    Rule("thematic_break", lambda line: line.startswith(("---", "***")), lambda _, line: ThematicBreak()),
    Rule("hyperlink", lambda line: line.startswith("[") and "](" in line, _hyperlink),
    Rule("image", lambda line: line.startswith("!["), _image),
    Rule("bold", lambda line: line.startswith(("**", "__")), _formatted_paragraph),
    Rule("italic", lambda line: line.startswith(("*", "_")), _italic),
    Rule("bold_italic", lambda line: line.startswith(("***", "___")), _bold_italic),
    Rule("paragraph", lambda line: True, _formatted_paragraph),
)


def placeholder_text(failure: ResolutionFailure) -> str:
    if failure.reason is FailureReason.NOT_FOUND:
        return f"[Image not found: {failure.label}]"
    return f"[Image {failure.reason.value}: {failure.label}]"


class LineClassifier:
    """Maps one Markdown line to one block, independently of its neighbours."""

    def __init__(
        self,
        resolver: ImageResolver | None = None,
        numbering: NumberingDefinition | None = None,
        rules: tuple[Rule, ...] = RULES,
    ) -> None:
        self.resolver = resolver or ImageResolver(MemoryAssetStore())
        self.numbering = numbering or NumberingDefinition()
        self.rules = rules

    def classify(self, line: str) -> Block:
        return self._apply(line)[1]

    def rule_for(self, line: str) -> str:
        return self._apply(line)[0]

    def _apply(self, line: str) -> tuple[str, Block]:
        for rule in self.rules:
            if not rule.matches(line):
                continue
            block = rule.build(self, line)
            if block is not None:
                return rule.name, block
        raise ValueError(f"no rule matched line {line!r}")
