"""
Paginator: flows section blocks onto A4 pages.

Each block is expanded into rows (one baseline each) measured with reportlab's
font metrics, rows are grouped into chunks that must stay on one page, and
chunks are placed top to bottom. Rules:

- Section and block order is never changed.
- A new page starts when the next chunk would overflow the usable height.
- A heading is never the last thing on a page: it moves down with the block
  that follows it.
- Signature blocks and key/value rows are kept together. Paragraph lines may
  split across pages.
- Spacers at the top of a page are dropped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence, Tuple

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit

from .sections import (
    AmountRow,
    Block,
    Heading,
    KeyValue,
    Paragraph,
    Rule,
    Section,
    SignaturePair,
    Spacer,
    TextLine,
)

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 20 * mm
FOOTER_HEIGHT = 12 * mm
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN
CONTENT_HEIGHT = PAGE_HEIGHT - 2 * MARGIN - FOOTER_HEIGHT

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
BODY_SIZE = 10.0
LEADING = 1.35

HEADING_SIZES = {1: 16.0, 2: 12.0}
KEY_COLUMN = 55 * mm
SIGNATURE_GAP = 10 * mm
SIGNATURE_SPACE = 22 * mm


@dataclass(frozen=True, slots=True)
class Fragment:
    """
    One drawable item on a row.

    kind "text": `text` drawn at `x` (offset from the left margin) with `align`
    relative to x. kind "rule": a horizontal line from x to x + width.
    """
    kind: str
    text: str = ""
    font: str = FONT
    size: float = BODY_SIZE
    x: float = 0.0
    align: str = "left"
    width: float = 0.0


@dataclass(frozen=True, slots=True)
class Row:
    height: float
    fragments: Tuple[Fragment, ...] = ()


@dataclass(frozen=True, slots=True)
class Chunk:
    rows: Tuple[Row, ...]
    is_heading: bool = False
    is_spacer: bool = False

    @property
    def height(self) -> float:
        return sum(row.height for row in self.rows)


@dataclass
class Page:
    rows: List[Row] = field(default_factory=list)
    used: float = 0.0

    def add(self, row: Row) -> None:
        self.rows.append(row)
        self.used += row.height


def _line_height(size: float) -> float:
    return size * LEADING


def wrap(text: str, font: str, size: float, width: float) -> List[str]:
    """Split text into lines no wider than `width`. Explicit newlines are kept; blank input yields one empty line."""

    lines: List[str] = []
    for raw in (text or "").split("\n"):
        if not raw.strip():
            lines.append("")
            continue
        lines.extend(simpleSplit(raw, font, size, width) or [""])
    return lines or [""]


def _text_row(text: str, *, font: str = FONT, size: float = BODY_SIZE, x: float = 0.0, align: str = "left") -> Row:
    return Row(height=_line_height(size), fragments=(Fragment(kind="text", text=text, font=font, size=size, x=x, align=align),))


def _align_x(align: str) -> float:
    if align == "right":
        return CONTENT_WIDTH
    if align == "center":
        return CONTENT_WIDTH / 2
    return 0.0


def _heading_chunks(block: Heading) -> List[Chunk]:
    size = HEADING_SIZES.get(block.level, HEADING_SIZES[2])
    rows = [_text_row(line, font=FONT_BOLD, size=size) for line in wrap(block.text, FONT_BOLD, size, CONTENT_WIDTH)]
    return [Chunk(rows=tuple(rows), is_heading=True)]


def _text_line_chunks(block: TextLine) -> List[Chunk]:
    font = FONT_BOLD if block.bold else FONT
    rows = [
        _text_row(line, font=font, x=_align_x(block.align), align=block.align)
        for line in wrap(block.text, font, BODY_SIZE, CONTENT_WIDTH)
    ]
    return [Chunk(rows=tuple(rows))]


def _key_value_chunks(block: KeyValue) -> List[Chunk]:
    key_lines = wrap(block.key, FONT_BOLD, BODY_SIZE, KEY_COLUMN - 2 * mm)
    value_lines = wrap(block.value, FONT, BODY_SIZE, CONTENT_WIDTH - KEY_COLUMN)
    rows = []
    for index in range(max(len(key_lines), len(value_lines))):
        fragments = []
        if index < len(key_lines) and key_lines[index]:
            fragments.append(Fragment(kind="text", text=key_lines[index], font=FONT_BOLD))
        if index < len(value_lines) and value_lines[index]:
            fragments.append(Fragment(kind="text", text=value_lines[index], x=KEY_COLUMN))
        rows.append(Row(height=_line_height(BODY_SIZE), fragments=tuple(fragments)))
    return [Chunk(rows=tuple(rows))]


def _paragraph_chunks(block: Paragraph) -> List[Chunk]:
    return [Chunk(rows=(_text_row(line),)) for line in wrap(block.text, FONT, BODY_SIZE, CONTENT_WIDTH)]


def _amount_chunks(block: AmountRow) -> List[Chunk]:
    font = FONT_BOLD if block.emphasis else FONT
    amount_width = 40 * mm
    label_lines = wrap(block.label, font, BODY_SIZE, CONTENT_WIDTH - amount_width)
    rows = []
    for index, line in enumerate(label_lines):
        fragments = [Fragment(kind="text", text=line, font=font)]
        if index == 0:
            fragments.append(Fragment(kind="text", text=block.amount, font=font, x=CONTENT_WIDTH, align="right"))
        rows.append(Row(height=_line_height(BODY_SIZE), fragments=tuple(fragments)))
    return [Chunk(rows=tuple(rows))]


def _rule_chunks(block: Rule) -> List[Chunk]:
    return [Chunk(rows=(Row(height=8.0, fragments=(Fragment(kind="rule", width=CONTENT_WIDTH),)),))]


def _spacer_chunks(block: Spacer) -> List[Chunk]:
    return [Chunk(rows=(Row(height=block.height),), is_spacer=True)]


def _signature_chunks(block: SignaturePair) -> List[Chunk]:
    box = (CONTENT_WIDTH - SIGNATURE_GAP) / 2
    right_x = box + SIGNATURE_GAP
    rows = [
        Row(height=SIGNATURE_SPACE),
        Row(
            height=6.0,
            fragments=(
                Fragment(kind="rule", width=box),
                Fragment(kind="rule", x=right_x, width=box),
            ),
        ),
        Row(
            height=_line_height(BODY_SIZE),
            fragments=(
                Fragment(kind="text", text=block.left_label, font=FONT_BOLD),
                Fragment(kind="text", text=block.right_label, font=FONT_BOLD, x=right_x),
            ),
        ),
        Row(
            height=_line_height(BODY_SIZE),
            fragments=(
                Fragment(kind="text", text=block.left_name),
                Fragment(kind="text", text=block.right_name, x=right_x),
            ),
        ),
    ]
    return [Chunk(rows=tuple(rows))]


_EXPANDERS = {
    Heading: _heading_chunks,
    TextLine: _text_line_chunks,
    KeyValue: _key_value_chunks,
    Paragraph: _paragraph_chunks,
    AmountRow: _amount_chunks,
    Rule: _rule_chunks,
    Spacer: _spacer_chunks,
    SignaturePair: _signature_chunks,
}


def expand(block: Block) -> List[Chunk]:
    return _EXPANDERS[type(block)](block)


def _chunks(sections: Iterable[Section]) -> List[Chunk]:
    chunks: List[Chunk] = []
    for sec in sections:
        for block in sec.blocks:
            chunks.extend(expand(block))
    return chunks


def _lead_height(chunks: Sequence[Chunk], start: int) -> float:
    """
    Height a heading at `start - 1` needs below it: up to and including the
    next content chunk, or its first row when that chunk is split anyway.
    """

    height = 0.0
    for chunk in chunks[start:]:
        if chunk.is_spacer or chunk.is_heading:
            height += chunk.height
            continue
        if chunk.height <= CONTENT_HEIGHT:
            return height + chunk.height
        return height + chunk.rows[0].height
    return height


def paginate(sections: Sequence[Section]) -> List[Page]:
    """Lay the sections out on pages. Always returns at least one page."""

    chunks = _chunks(sections)
    pages: List[Page] = [Page()]

    for index, chunk in enumerate(chunks):
        page = pages[-1]
        if chunk.is_spacer and not page.rows:
            continue

        needed = chunk.height
        if chunk.is_heading:
            needed += _lead_height(chunks, index + 1)

        if page.rows and page.used + needed > CONTENT_HEIGHT:
            if chunk.is_spacer:
                continue
            page = Page()
            pages.append(page)

        if chunk.height <= CONTENT_HEIGHT - page.used:
            for row in chunk.rows:
                page.add(row)
            continue

        # Taller than a page: place row by row.
        for row in chunk.rows:
            if page.rows and page.used + row.height > CONTENT_HEIGHT:
                page = Page()
                pages.append(page)
            page.add(row)

    return pages


__all__ = [
    "PAGE_WIDTH",
    "PAGE_HEIGHT",
    "MARGIN",
    "FOOTER_HEIGHT",
    "CONTENT_WIDTH",
    "CONTENT_HEIGHT",
    "FONT",
    "FONT_BOLD",
    "Fragment",
    "Row",
    "Chunk",
    "Page",
    "wrap",
    "expand",
    "paginate",
]
