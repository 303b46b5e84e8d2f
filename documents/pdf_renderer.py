"""
PDF renderer.

Draws paginated rows with reportlab's canvas. The canvas runs in invariant
mode (fixed creation date and document id), so rendering the same record
twice produces the same bytes.
"""

from __future__ import annotations

from io import BytesIO
from typing import Sequence

from reportlab.pdfgen import canvas

from .paginator import FONT, MARGIN, PAGE_HEIGHT, PAGE_WIDTH, Fragment, Page, Row

FOOTER_SIZE = 8.0
RULE_WIDTH = 0.5


def _draw_fragment(c: canvas.Canvas, fragment: Fragment, top: float, row: Row) -> None:
    x = MARGIN + fragment.x
    if fragment.kind == "rule":
        y = top - row.height / 2
        c.setLineWidth(RULE_WIDTH)
        c.line(x, y, x + fragment.width, y)
        return

    baseline = top - fragment.size
    c.setFont(fragment.font, fragment.size)
    if fragment.align == "right":
        c.drawRightString(x, baseline, fragment.text)
    elif fragment.align == "center":
        c.drawCentredString(x, baseline, fragment.text)
    else:
        c.drawString(x, baseline, fragment.text)


def _draw_footer(c: canvas.Canvas, page_number: int, page_count: int, footer_text: str) -> None:
    c.setFont(FONT, FOOTER_SIZE)
    y = MARGIN / 2
    if footer_text:
        c.drawString(MARGIN, y, footer_text)
    c.drawRightString(PAGE_WIDTH - MARGIN, y, f"Page {page_number} of {page_count}")


def render_pdf(pages: Sequence[Page], *, title: str = "", footer_text: str = "") -> bytes:
    """
    Draw pages onto an A4 PDF and return its bytes.

    Args:
        pages: Output of paginator.paginate (at least one page)
        title: PDF metadata title
        footer_text: Small print on the left of every footer
    """

    buffer = BytesIO()
    c = canvas.Canvas(buffer, pagesize=(PAGE_WIDTH, PAGE_HEIGHT), invariant=1)
    c.setTitle(title)
    c.setCreator("dealership-sales-core")

    page_count = len(pages)
    for page_number, page in enumerate(pages, start=1):
        top = PAGE_HEIGHT - MARGIN
        for row in page.rows:
            for fragment in row.fragments:
                _draw_fragment(c, fragment, top, row)
            top -= row.height
        _draw_footer(c, page_number, page_count, footer_text)
        c.showPage()

    c.save()
    return buffer.getvalue()


__all__ = ["render_pdf"]
