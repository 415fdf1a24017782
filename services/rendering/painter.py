"""Paints laid-out pages onto an A4 PDF with reportlab.

The canvas runs in invariant mode, so the same pages always produce the
same bytes (no creation timestamp or random document id is embedded).
"""

import io

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from services.rendering.layout import (
    CircleElement,
    Element,
    ImageElement,
    LineElement,
    Page,
    PolygonElement,
    RectElement,
    TextElement,
)


def _draw_text(c: canvas.Canvas, e: TextElement) -> None:
    c.setFont(e.font, e.size)
    c.setFillColor(HexColor(e.color))
    if e.align == "center":
        c.drawCentredString(e.x, e.y, e.text)
    elif e.align == "right":
        c.drawRightString(e.x, e.y, e.text)
    else:
        c.drawString(e.x, e.y, e.text)


def _draw_rect(c: canvas.Canvas, e: RectElement) -> None:
    if e.fill:
        c.setFillColor(HexColor(e.fill))
    if e.stroke:
        c.setStrokeColor(HexColor(e.stroke))
        c.setLineWidth(e.stroke_width)
    fill = 1 if e.fill else 0
    stroke = 1 if e.stroke else 0
    if e.radius > 0:
        c.roundRect(e.x, e.y, e.width, e.height, e.radius, fill=fill, stroke=stroke)
    else:
        c.rect(e.x, e.y, e.width, e.height, fill=fill, stroke=stroke)


def _draw_polygon(c: canvas.Canvas, e: PolygonElement) -> None:
    c.setFillColor(HexColor(e.fill))
    path = c.beginPath()
    first, *rest = e.points
    path.moveTo(*first)
    for point in rest:
        path.lineTo(*point)
    path.close()
    c.drawPath(path, fill=1, stroke=0)


def _draw(c: canvas.Canvas, element: Element) -> None:
    c.saveState()
    if isinstance(element, TextElement):
        _draw_text(c, element)
    elif isinstance(element, RectElement):
        _draw_rect(c, element)
    elif isinstance(element, LineElement):
        c.setStrokeColor(HexColor(element.color))
        c.setLineWidth(element.width)
        c.line(element.x1, element.y1, element.x2, element.y2)
    elif isinstance(element, CircleElement):
        c.setFillColor(HexColor(element.fill))
        c.circle(element.x, element.y, element.radius, fill=1, stroke=0)
    elif isinstance(element, PolygonElement):
        _draw_polygon(c, element)
    elif isinstance(element, ImageElement):
        reader = ImageReader(io.BytesIO(element.data))
        c.drawImage(
            reader, element.x, element.y, element.width, element.height, mask="auto"
        )
    c.restoreState()


def paint(pages: list[Page], title: str, author: str) -> bytes:
    """Paint pages into a PDF document.

    Args:
        pages: Laid-out pages, in order
        title: PDF metadata title
        author: PDF metadata author

    Returns:
        PDF file content
    """
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4, invariant=1)
    c.setTitle(title)
    c.setAuthor(author)

    for page in pages:
        for element in page.elements:
            _draw(c, element)
        c.showPage()

    c.save()
    return buffer.getvalue()
