from __future__ import annotations

import logging
import re
from typing import Iterable, List

from .line_classifier import LineClassifier
from .model import Block, Document, NumberingDefinition

logger = logging.getLogger(__name__)

LINE_BREAK = re.compile(r"\r?\n")


def split_lines(text: str) -> List[str]:
    return LINE_BREAK.split(text)


def assemble(blocks: Iterable[Block], numbering: NumberingDefinition | None = None) -> Document:
    """Wrap classified blocks, in order, with the shared numbering definition."""
    collected: List[Block] = []
    for index, block in enumerate(blocks):
        if not isinstance(block, Block):
            raise TypeError(f"item {index} is {type(block).__name__}, not a Block")
        collected.append(block)
    return Document(blocks=collected, numbering=numbering or NumberingDefinition())


def convert_text(text: str, classifier: LineClassifier | None = None) -> Document:
    classifier = classifier or LineClassifier()
    lines = split_lines(text)
    logger.debug("Classifying %d lines", len(lines))
    blocks = [classifier.classify(line) for line in lines]
    return assemble(blocks, numbering=classifier.numbering)
