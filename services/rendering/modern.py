"""Modern template: corner graphics, logo top-right, bordered grid table
and totals inside a filled box."""

from reportlab.lib.units import mm

from services.rendering import labels
from services.rendering.base import DocumentTemplate, RenderContext
from services.rendering.layout import FONT, FONT_BOLD, PAGE_HEIGHT, PAGE_WIDTH, Page, fit_box

TEAL = "#0D7377"
TEAL_PALE = "#E6F4F1"
TEAL_LIGHT = "#14B8A6"
NAVY = "#1B2A4A"
GRID = "#CBD5E1"
INK = "#2D3748"
WARNING = "#BE185D"

LOGO_MAX_WIDTH = 45 * mm
LOGO_MAX_HEIGHT = 22 * mm
HEADER_HEIGHT = 9 * mm
BLOCK_LEADING = 5 * mm
TOTALS_LINE_HEIGHT = 8 * mm


class ModernTemplate(DocumentTemplate):
    """Decorated layout with party blocks above a grid table."""

    left = 18 * mm
    right = PAGE_WIDTH - 18 * mm
    content_bottom = 42 * mm
    page_counter_x = 18 * mm
    page_counter_align = "left"
    customer_x = 110 * mm
    totals_box_x = 112 * mm

    @property
    def name(self) -> str:
        return "modern"

    def decorate_page(self, page: Page, ctx: RenderContext) -> None:
        page.polygon([(0, PAGE_HEIGHT), (62 * mm, PAGE_HEIGHT), (0, PAGE_HEIGHT - 40 * mm)], fill=TEAL)
        page.circle(34 * mm, PAGE_HEIGHT - 6 * mm, 9 * mm, fill=TEAL_LIGHT)
        page.polygon([(PAGE_WIDTH, 0), (PAGE_WIDTH - 55 * mm, 0), (PAGE_WIDTH, 34 * mm)], fill=TEAL_PALE)
        page.circle(PAGE_WIDTH - 14 * mm, 12 * mm, 5 * mm, fill=TEAL)

    def _draw_block(self, page: Page, x: float, y: float, label: str, lines: list[str]) -> None:
        page.text(x, y, label.upper(), font=FONT_BOLD, size=9, color=TEAL)
        page.line(x, y - 1.8 * mm, x + 70 * mm, y - 1.8 * mm, color=TEAL_LIGHT, width=0.6)
        for offset, line in enumerate(lines, start=1):
            page.text(x, y - offset * BLOCK_LEADING - 1.5 * mm, line, size=9.5, color=INK)

    def draw_first_page_header(self, page: Page, ctx: RenderContext) -> float:
        if ctx.logo is not None:
            width, height = fit_box(ctx.logo.width, ctx.logo.height, LOGO_MAX_WIDTH, LOGO_MAX_HEIGHT)
            page.image(self.right - width, PAGE_HEIGHT - 12 * mm - height, width, height, ctx.logo.data)

        page.text(self.left, PAGE_HEIGHT - 52 * mm, ctx.title.upper(), font=FONT_BOLD, size=26, color=NAVY)
        page.text(
            self.left, PAGE_HEIGHT - 60 * mm,
            f"Nº {ctx.document_number}  |  Fecha: {ctx.formatted_date}",
            size=10, color=TEAL,
        )

        top = PAGE_HEIGHT - 74 * mm
        issuer_lines = ctx.issuer_lines()
        if issuer_lines is None:
            self._draw_block(page, self.left, top, labels.ISSUER_LABEL, [])
            page.text(self.left, top - BLOCK_LEADING - 1.5 * mm, labels.ISSUER_PLACEHOLDER, size=9.5, color=WARNING)
        else:
            self._draw_block(page, self.left, top, labels.ISSUER_LABEL, issuer_lines)
        customer_lines = ctx.customer_lines()
        self._draw_block(page, self.customer_x, top, ctx.customer_label, customer_lines)

        block_lines = max(len(issuer_lines or []), len(customer_lines), 1)
        return top - (block_lines + 2) * BLOCK_LEADING - 2 * mm

    def draw_continuation_header(self, page: Page, ctx: RenderContext) -> float:
        page.text(
            self.right, PAGE_HEIGHT - 20 * mm,
            f"{ctx.title.upper()} {ctx.document_number} (continuación)",
            font=FONT_BOLD, size=10, color=NAVY, align="right",
        )
        return PAGE_HEIGHT - 48 * mm

    @property
    def amount_column_x(self) -> float:
        return self.right - self.amount_column_width

    def draw_table_header(self, page: Page, y: float) -> float:
        page.rect(
            self.left, y - HEADER_HEIGHT, self.right - self.left, HEADER_HEIGHT,
            fill=NAVY, stroke=NAVY,
        )
        baseline = y - HEADER_HEIGHT + 3 * mm
        page.text(self.left + 3 * mm, baseline, labels.DESCRIPTION_HEADER.upper(), font=FONT_BOLD, size=9, color="#FFFFFF")
        page.text(
            self.right - 3 * mm, baseline, labels.AMOUNT_HEADER.upper(),
            font=FONT_BOLD, size=9, color="#FFFFFF", align="right",
        )
        return y - HEADER_HEIGHT

    def draw_row(self, page: Page, y: float, height: float, lines: list[str], amount: str, index: int) -> None:
        page.rect(self.left, y - height, self.right - self.left, height, stroke=GRID, stroke_width=0.6)
        page.line(self.amount_column_x, y, self.amount_column_x, y - height, color=GRID, width=0.6)
        baseline = y - self.row_leading
        for offset, line in enumerate(lines):
            page.text(self.left + 3 * mm, baseline - offset * self.row_leading, line, size=self.row_font_size, color=INK)
        if amount:
            page.text(self.right - 3 * mm, baseline, amount, size=self.row_font_size, color=INK, align="right")

    def totals_height(self, ctx: RenderContext) -> float:
        return 8 * mm + TOTALS_LINE_HEIGHT * len(ctx.total_lines()) + 6 * mm

    def draw_totals(self, page: Page, y: float, ctx: RenderContext) -> None:
        lines = ctx.total_lines()
        box_height = TOTALS_LINE_HEIGHT * len(lines) + 6 * mm
        box_top = y - 8 * mm
        box_x = min(
            self.totals_box_x,
            min(self.totals_label_x(self.totals_box_x + 4 * mm, self.right - 4 * mm, line, FONT_BOLD, 13) for line in lines)
            - 4 * mm,
        )
        page.rect(box_x, box_top - box_height, self.right - box_x, box_height, fill=TEAL_PALE, radius=3 * mm)

        baseline = box_top - 3 * mm - TOTALS_LINE_HEIGHT + 2.5 * mm
        for line in lines:
            if line.emphasized:
                font, size, color = FONT_BOLD, 13, TEAL
            else:
                font, size, color = FONT, 10, INK
            page.text(box_x + 4 * mm, baseline, line.label, font=font, size=size, color=color)
            page.text(self.right - 4 * mm, baseline, line.value, font=font, size=size, color=color, align="right")
            baseline -= TOTALS_LINE_HEIGHT
