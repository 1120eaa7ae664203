from __future__ import annotations

import re
from typing import List

from .model import StyledSpan

BOLD_PATTERN = re.compile(r"\*\*(.*?)\*\*|__(.*?)__")


def format_spans(text: str) -> List[StyledSpan]:
    """Split ``text`` into plain and bold spans.

    Bold pairs (``**...**`` or ``__...__``) are matched left to right without
    nesting; the contents of the first pair found are taken verbatim. Italics
    are not handled here.
    """
    spans: List[StyledSpan] = []
    position = 0
    for match in BOLD_PATTERN.finditer(text):
        if match.start() > position:
            spans.append(StyledSpan(text[position : match.start()]))
        bold_text = match.group(1) if match.group(1) is not None else match.group(2)
        spans.append(StyledSpan(bold_text, bold=True))
        position = match.end()

    if position < len(text):
        spans.append(StyledSpan(text[position:]))

    if not spans:
        spans.append(StyledSpan(text))
    return spans
