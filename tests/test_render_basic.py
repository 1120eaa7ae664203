import io
from pathlib import Path

import pytest
from docx import Document as DocxReader
from docx.oxml.ns import qn

from MarkWord.assembler import convert_text
from MarkWord.config import ExportSettings
from MarkWord.errors import SerializationFailure
from MarkWord.image_resolver import ImageResolver, MemoryAssetStore
from MarkWord.line_classifier import LineClassifier
from MarkWord.model import Document, Heading, Image, ImageFormat, Paragraph, StyledSpan
from MarkWord.renderer_docx import EMU_PER_PIXEL, render_document

SAMPLE = """# Report
Intro with **bold** text
> a quote
- bullet
1. first
2. second
```code
`inline`
---
[Example](https://example.com)
*soft*"""


def _read(data: bytes):
    return DocxReader(io.BytesIO(data))


def test_render_creates_docx(tmp_path: Path):
    doc = Document(
        blocks=[
            Heading(level=1, spans=[StyledSpan("Introduction")]),
            Paragraph(spans=[StyledSpan("Example paragraph for the test.")]),
        ]
    )
    output_file = tmp_path / "out" / "report.docx"
    data = render_document(doc, output_file)
    assert output_file.exists()
    assert output_file.read_bytes() == data


def test_round_trip_preserves_block_count_and_order():
    document = convert_text(SAMPLE)
    reader = _read(render_document(document))
    paragraphs = reader.paragraphs
    assert len(paragraphs) == len(document.blocks)
    texts = [p.text for p in paragraphs]
    assert texts[0] == "Report"
    assert texts[1] == "Intro with bold text"
    assert texts[2:7] == ["a quote", "bullet", "first", "second", "code"]
    assert texts[7] == "inline"
    assert texts[10] == "soft"


def test_styles_and_runs():
    reader = _read(render_document(convert_text(SAMPLE)))
    paragraphs = reader.paragraphs
    assert paragraphs[0].style.name == "Heading 1"
    bold_runs = [run.text for run in paragraphs[1].runs if run.bold]
    assert bold_runs == ["bold"]
    assert paragraphs[3].style.name == "List Bullet"
    assert paragraphs[10].runs[0].italic is True
    assert paragraphs[6].runs[0].font.name == "Courier New"


def test_quote_is_indented_and_shaded():
    reader = _read(render_document(convert_text("> quoted")))
    paragraph = reader.paragraphs[0]
    assert paragraph.paragraph_format.left_indent.twips == 720
    shading = paragraph._p.pPr.find(qn("w:shd"))
    assert shading is not None and shading.get(qn("w:fill")) == "E8E8E8"


def test_ordered_items_share_one_decimal_numbering():
    reader = _read(render_document(convert_text("1. one\n2. two\n- other")))
    first, second = reader.paragraphs[0], reader.paragraphs[1]
    assert first.style.name == "List Number"
    num_id = first._p.pPr.numPr.numId.val
    assert second._p.pPr.numPr.numId.val == num_id

    numbering = reader.part.numbering_part.element
    num = [el for el in numbering.findall(qn("w:num")) if el.get(qn("w:numId")) == str(num_id)][0]
    abstract_id = num.find(qn("w:abstractNumId")).get(qn("w:val"))
    abstract = [
        el for el in numbering.findall(qn("w:abstractNum")) if el.get(qn("w:abstractNumId")) == abstract_id
    ][0]
    level = abstract.find(qn("w:lvl"))
    assert level.find(qn("w:numFmt")).get(qn("w:val")) == "decimal"
    indent = level.find(qn("w:pPr")).find(qn("w:ind"))
    assert (indent.get(qn("w:left")), indent.get(qn("w:hanging"))) == ("720", "360")


def test_hyperlink_is_clickable():
    reader = _read(render_document(convert_text("[Example](https://example.com)")))
    paragraph = reader.paragraphs[0]
    assert paragraph._p.find(qn("w:hyperlink")) is not None
    targets = [rel.target_ref for rel in reader.part.rels.values() if rel.is_external]
    assert "https://example.com" in targets
    assert "Example" in paragraph._p.xml


def test_thematic_break_has_bottom_border():
    reader = _read(render_document(convert_text("---")))
    borders = reader.paragraphs[0]._p.pPr.find(qn("w:pBdr"))
    assert borders is not None and borders.find(qn("w:bottom")) is not None


def test_image_is_embedded_with_scaled_size(png_bytes):
    store = MemoryAssetStore({"a.png": png_bytes(800, 600)})
    classifier = LineClassifier(ImageResolver(store, ExportSettings(image_max_width=400, image_max_height=300)))
    reader = _read(render_document(convert_text("![A](a.png)", classifier)))
    shape = reader.inline_shapes[0]
    assert shape.width == 400 * EMU_PER_PIXEL
    assert shape.height == 300 * EMU_PER_PIXEL


def test_unreadable_image_degrades_to_placeholder():
    block = Image(data=b"not an image", format=ImageFormat.JPG, width=10, height=10, alt="junk")
    reader = _read(render_document(Document(blocks=[block])))
    assert "junk" in reader.paragraphs[0].text
    assert len(reader.inline_shapes) == 0


def test_unknown_block_is_a_serialization_failure():
    with pytest.raises(SerializationFailure, match="object"):
        render_document(Document(blocks=[object()]))
