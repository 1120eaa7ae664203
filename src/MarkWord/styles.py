from __future__ import annotations

from docx.oxml import parse_xml
from docx.oxml.ns import nsdecls, qn
from docx.shared import Pt, RGBColor, Twips

from .model import NumberingDefinition

FONT_NAME = "Calibri"
CODE_FONT_NAME = "Courier New"
FONT_SIZE_PT = 11
CODE_FONT_SIZE_PT = 10

QUOTE_INDENT_TWIPS = 720
QUOTE_SPACING_TWIPS = 240
QUOTE_SHADING = "E8E8E8"
LINK_COLOR = RGBColor(0x05, 0x63, 0xC1)

# children of w:pPr that must come after w:pBdr / w:shd
_SHADING_SUCCESSORS = (
    "w:tabs",
    "w:suppressAutoHyphens",
    "w:kinsoku",
    "w:wordWrap",
    "w:overflowPunct",
    "w:topLinePunct",
    "w:autoSpaceDE",
    "w:autoSpaceDN",
    "w:bidi",
    "w:adjustRightInd",
    "w:snapToGrid",
    "w:spacing",
    "w:ind",
    "w:contextualSpacing",
    "w:mirrorIndents",
    "w:suppressOverlap",
    "w:jc",
    "w:textDirection",
    "w:textAlignment",
    "w:textboxTightWrap",
    "w:outlineLvl",
    "w:divId",
    "w:cnfStyle",
    "w:rPr",
    "w:sectPr",
    "w:pPrChange",
)


def set_run_font(run, bold: bool = False, italic: bool = False, code: bool = False, sized: bool = True) -> None:
    """Apply the body font; ``sized=False`` keeps the paragraph style's size (headings)."""
    if code:
        run.font.name = CODE_FONT_NAME
        run.font.size = Pt(CODE_FONT_SIZE_PT)
    elif sized:
        run.font.name = FONT_NAME
        run.font.size = Pt(FONT_SIZE_PT)
    run.bold = bold
    run.italic = italic


def apply_quote_format(paragraph) -> None:
    """Indented, shaded paragraph for block quotes."""
    p_pr = paragraph._p.get_or_add_pPr()
    shading = parse_xml(f'<w:shd {nsdecls("w")} w:val="clear" w:color="auto" w:fill="{QUOTE_SHADING}"/>')
    p_pr.insert_element_before(shading, *_SHADING_SUCCESSORS)
    paragraph.paragraph_format.left_indent = Twips(QUOTE_INDENT_TWIPS)
    paragraph.paragraph_format.space_before = Twips(QUOTE_SPACING_TWIPS)
    paragraph.paragraph_format.space_after = Twips(QUOTE_SPACING_TWIPS)


def apply_bottom_border(paragraph) -> None:
    """Turn an empty paragraph into a horizontal rule."""
    p_pr = paragraph._p.get_or_add_pPr()
    border = parse_xml(
        f'<w:pBdr {nsdecls("w")}>'
        f'<w:bottom w:val="single" w:sz="6" w:space="1" w:color="auto"/>'
        f"</w:pBdr>"
    )
    p_pr.insert_element_before(border, "w:shd", *_SHADING_SUCCESSORS)


def add_numbering_definition(docx, numbering: NumberingDefinition) -> int:
    """Register a single-level numbering style and return its ``numId``."""
    numbering_el = docx.part.numbering_part.element
    abstract_ids = [int(el.get(qn("w:abstractNumId"))) for el in numbering_el.findall(qn("w:abstractNum"))]
    num_ids = [int(el.get(qn("w:numId"))) for el in numbering_el.findall(qn("w:num"))]
    abstract_id = max(abstract_ids, default=-1) + 1
    num_id = max(num_ids, default=0) + 1

    abstract = parse_xml(
        f'<w:abstractNum {nsdecls("w")} w:abstractNumId="{abstract_id}">'
        f'<w:multiLevelType w:val="singleLevel"/>'
        f'<w:lvl w:ilvl="{numbering.level}">'
        f'<w:start w:val="1"/>'
        f'<w:numFmt w:val="{numbering.format}"/>'
        f'<w:lvlText w:val="{numbering.text}"/>'
        f'<w:lvlJc w:val="left"/>'
        f'<w:pPr><w:ind w:left="{numbering.indent_left}" w:hanging="{numbering.hanging}"/></w:pPr>'
        f"</w:lvl>"
        f"</w:abstractNum>"
    )
    existing_nums = numbering_el.findall(qn("w:num"))
    if existing_nums:
        existing_nums[0].addprevious(abstract)
    else:
        numbering_el.append(abstract)

    num = parse_xml(
        f'<w:num {nsdecls("w")} w:numId="{num_id}"><w:abstractNumId w:val="{abstract_id}"/></w:num>'
    )
    numbering_el.append(num)
    return num_id


def apply_numbering(paragraph, num_id: int, level: int = 0) -> None:
    num_pr = paragraph._p.get_or_add_pPr().get_or_add_numPr()
    num_pr.get_or_add_ilvl().val = level
    num_pr.get_or_add_numId().val = num_id
