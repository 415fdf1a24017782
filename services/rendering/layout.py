"""Page layout primitives.

A rendered document is first laid out as a sequence of Page objects made
of simple positioned elements, then painted onto a PDF canvas. Keeping
the layout as data makes it inspectable and keeps painting trivial.

Coordinates are PDF points with the origin at the bottom-left corner.
"""

from dataclasses import dataclass, field

from reportlab.lib.pagesizes import A4
from reportlab.pdfbase.pdfmetrics import stringWidth

PAGE_WIDTH, PAGE_HEIGHT = A4

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"


@dataclass(frozen=True)
class TextElement:
    x: float
    y: float
    text: str
    font: str = FONT
    size: float = 10
    color: str = "#282C34"
    align: str = "left"  # left, center, right


@dataclass(frozen=True)
class LineElement:
    x1: float
    y1: float
    x2: float
    y2: float
    color: str = "#94A3B8"
    width: float = 0.5


@dataclass(frozen=True)
class RectElement:
    x: float
    y: float
    width: float
    height: float
    fill: str | None = None
    stroke: str | None = None
    stroke_width: float = 0.5
    radius: float = 0


@dataclass(frozen=True)
class CircleElement:
    x: float
    y: float
    radius: float
    fill: str


@dataclass(frozen=True)
class PolygonElement:
    points: tuple[tuple[float, float], ...]
    fill: str


@dataclass(frozen=True)
class ImageElement:
    x: float
    y: float
    width: float
    height: float
    data: bytes


Element = TextElement | LineElement | RectElement | CircleElement | PolygonElement | ImageElement


@dataclass
class Page:
    """One A4 page worth of elements, in paint order."""

    number: int
    elements: list[Element] = field(default_factory=list)

    def text(self, x: float, y: float, text: str, **style: object) -> None:
        self.elements.append(TextElement(x, y, text, **style))  # type: ignore[arg-type]

    def line(self, x1: float, y1: float, x2: float, y2: float, **style: object) -> None:
        self.elements.append(LineElement(x1, y1, x2, y2, **style))  # type: ignore[arg-type]

    def rect(self, x: float, y: float, width: float, height: float, **style: object) -> None:
        self.elements.append(RectElement(x, y, width, height, **style))  # type: ignore[arg-type]

    def circle(self, x: float, y: float, radius: float, fill: str) -> None:
        self.elements.append(CircleElement(x, y, radius, fill))

    def polygon(self, points: list[tuple[float, float]], fill: str) -> None:
        self.elements.append(PolygonElement(tuple(points), fill))

    def image(self, x: float, y: float, width: float, height: float, data: bytes) -> None:
        self.elements.append(ImageElement(x, y, width, height, data))

    def texts(self) -> list[str]:
        """All text strings on the page, in paint order."""
        return [e.text for e in self.elements if isinstance(e, TextElement)]


def text_width(text: str, font: str = FONT, size: float = 10) -> float:
    return stringWidth(text, font, size)


def wrap_text(text: str, max_width: float, font: str = FONT, size: float = 10) -> list[str]:
    """Greedy word wrap. Always returns at least one (possibly empty) line.

    Words wider than max_width are placed on their own line unbroken.
    """
    lines: list[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if text_width(candidate, font, size) <= max_width or not current:
            current = candidate
        else:
            lines.append(current)
            current = word
    lines.append(current)
    return lines


def fit_box(width: int, height: int, max_width: float, max_height: float) -> tuple[float, float]:
    """Scale (width, height) down to fit the box, keeping aspect ratio."""
    scale = min(max_width / width, max_height / height, 1.0)
    return width * scale, height * scale
