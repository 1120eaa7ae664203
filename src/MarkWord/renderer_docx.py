from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from docx import Document as DocxDocument
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.image.exceptions import InvalidImageStreamError, UnexpectedEndOfFileError, UnrecognizedImageError
from docx.opc.constants import RELATIONSHIP_TYPE
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Emu

from . import styles
from .errors import SerializationFailure
from .model import (
    Block,
    BlockQuote,
    CodeLine,
    Document,
    Empty,
    Heading,
    Hyperlink,
    Image,
    InlineCode,
    ListItem,
    Paragraph,
    StyledSpan,
    ThematicBreak,
)

logger = logging.getLogger(__name__)

EMU_PER_PIXEL = 9525


@dataclass
class RenderState:
    ordered_num_id: int | None = None


def render_document(doc: Document, output_path: str | Path | None = None) -> bytes:
    """Serialize ``doc`` to DOCX bytes, optionally writing them to ``output_path``."""
    try:
        docx = build_docx(doc)
        buffer = io.BytesIO()
        docx.save(buffer)
    except SerializationFailure:
        raise
    except Exception as exc:
        raise SerializationFailure(str(exc) or type(exc).__name__) from exc
    data = buffer.getvalue()

    if output_path is not None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(data)
    return data


def build_docx(doc: Document):
    docx = DocxDocument()
    state = RenderState()
    if any(isinstance(block, ListItem) and block.ordered for block in doc.blocks):
        state.ordered_num_id = styles.add_numbering_definition(docx, doc.numbering)

    for block in doc.blocks:
        _dispatch_block(docx, block, state)
    logger.debug("Rendered %d blocks", len(doc.blocks))
    return docx


def _dispatch_block(docx: DocxDocument, block: Block, state: RenderState) -> None:
    if isinstance(block, Heading):
        _render_heading(docx, block)
    elif isinstance(block, Paragraph):
        _add_spans(docx.add_paragraph(), block.spans)
    elif isinstance(block, BlockQuote):
        _render_quote(docx, block)
    elif isinstance(block, ListItem):
        _render_list_item(docx, block, state)
    elif isinstance(block, CodeLine):
        _render_code(docx, block.text)
    elif isinstance(block, InlineCode):
        _render_code(docx, block.text)
    elif isinstance(block, ThematicBreak):
        styles.apply_bottom_border(docx.add_paragraph())
    elif isinstance(block, Hyperlink):
        _render_hyperlink(docx, block)
    elif isinstance(block, Image):
        _render_image(docx, block)
    elif isinstance(block, Empty):
        docx.add_paragraph("")
    else:
        raise SerializationFailure(f"unsupported block type {type(block).__name__}")


def _render_heading(docx: DocxDocument, heading: Heading) -> None:
    paragraph = docx.add_paragraph(style=f"Heading {heading.level}")
    for span in heading.spans:
        run = paragraph.add_run(span.text)
        styles.set_run_font(run, bold=span.bold or None, italic=span.italic or None, sized=False)


def _add_spans(paragraph, spans: Iterable[StyledSpan]) -> None:
    for span in spans:
        run = paragraph.add_run(span.text)
        styles.set_run_font(run, bold=span.bold, italic=span.italic)


def _render_quote(docx: DocxDocument, block: BlockQuote) -> None:
    paragraph = docx.add_paragraph()
    styles.apply_quote_format(paragraph)
    _add_spans(paragraph, block.spans)


def _render_list_item(docx: DocxDocument, item: ListItem, state: RenderState) -> None:
    if item.ordered:
        paragraph = docx.add_paragraph(style="List Number")
        if state.ordered_num_id is not None:
            level = item.numbering.level if item.numbering else 0
            styles.apply_numbering(paragraph, state.ordered_num_id, level)
    else:
        paragraph = docx.add_paragraph(style="List Bullet")
    _add_spans(paragraph, item.spans)


def _render_code(docx: DocxDocument, text: str) -> None:
    paragraph = docx.add_paragraph()
    run = paragraph.add_run(text)
    styles.set_run_font(run, code=True)
    paragraph.alignment = WD_ALIGN_PARAGRAPH.LEFT


def _render_hyperlink(docx: DocxDocument, block: Hyperlink) -> None:
    paragraph = docx.add_paragraph()
    if not block.url:
        _add_spans(paragraph, [StyledSpan(block.text)])
        return
    rel_id = paragraph.part.relate_to(block.url, RELATIONSHIP_TYPE.HYPERLINK, is_external=True)
    hyperlink = OxmlElement("w:hyperlink")
    hyperlink.set(qn("r:id"), rel_id)

    run = OxmlElement("w:r")
    r_pr = OxmlElement("w:rPr")
    color = OxmlElement("w:color")
    color.set(qn("w:val"), str(styles.LINK_COLOR))
    underline = OxmlElement("w:u")
    underline.set(qn("w:val"), "single")
    r_pr.append(color)
    r_pr.append(underline)
    run.append(r_pr)
    text_el = OxmlElement("w:t")
    text_el.set(qn("xml:space"), "preserve")
    text_el.text = block.text or block.url
    run.append(text_el)
    hyperlink.append(run)
    paragraph._p.append(hyperlink)


def _render_image(docx: DocxDocument, block: Image) -> None:
    paragraph = docx.add_paragraph()
    paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
    run = paragraph.add_run()
    try:
        run.add_picture(
            io.BytesIO(block.data),
            width=Emu(block.width * EMU_PER_PIXEL),
            height=Emu(block.height * EMU_PER_PIXEL),
        )
    except (UnrecognizedImageError, UnexpectedEndOfFileError, InvalidImageStreamError) as exc:
        logger.warning("Cannot embed image %s: %s", block.alt or block.format.value, exc)
        run.add_text(f"[Unreadable image: {block.alt or block.format.value}]")
        styles.set_run_font(run)
