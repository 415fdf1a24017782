"""Classic template: centered title, side-by-side parties, striped table."""

from reportlab.lib.units import mm

from services.rendering import labels
from services.rendering.base import DocumentTemplate, RenderContext
from services.rendering.layout import FONT, FONT_BOLD, PAGE_HEIGHT, PAGE_WIDTH, Page, fit_box

INDIGO = "#4F46E5"
INK = "#282C34"
MUTED = "#646464"
STRIPE = "#F1F5F9"
WARNING = "#C80000"

LOGO_MAX_WIDTH = 40 * mm
LOGO_MAX_HEIGHT = 20 * mm
HEADER_HEIGHT = 8 * mm
BLOCK_LEADING = 5 * mm


class ClassicTemplate(DocumentTemplate):
    """Single-column header with the logo top-left."""

    customer_x = 110 * mm
    totals_x = 130 * mm

    @property
    def name(self) -> str:
        return "classic"

    def decorate_page(self, page: Page, ctx: RenderContext) -> None:
        # Plain background
        pass

    def _draw_block(self, page: Page, x: float, y: float, label: str, lines: list[str]) -> None:
        page.text(x, y, f"{label.upper()}:", font=FONT_BOLD, size=10, color=INK)
        for offset, line in enumerate(lines, start=1):
            page.text(x, y - offset * BLOCK_LEADING - 1 * mm, line, size=10, color=INK)

    def draw_first_page_header(self, page: Page, ctx: RenderContext) -> float:
        if ctx.logo is not None:
            width, height = fit_box(ctx.logo.width, ctx.logo.height, LOGO_MAX_WIDTH, LOGO_MAX_HEIGHT)
            page.image(self.left, PAGE_HEIGHT - 8 * mm - height, width, height, ctx.logo.data)

        page.text(
            PAGE_WIDTH / 2, PAGE_HEIGHT - 20 * mm, ctx.title.upper(),
            font=FONT_BOLD, size=24, color=INDIGO, align="center",
        )
        page.text(
            self.right, PAGE_HEIGHT - 15 * mm, f"Nº {ctx.title}: {ctx.document_number}",
            size=9, color=MUTED, align="right",
        )
        page.text(
            self.right, PAGE_HEIGHT - 20 * mm, f"Fecha: {ctx.formatted_date}",
            size=9, color=MUTED, align="right",
        )

        top = PAGE_HEIGHT - 40 * mm
        issuer_lines = ctx.issuer_lines()
        if issuer_lines is None:
            page.text(self.left, top, f"{labels.ISSUER_LABEL.upper()}:", font=FONT_BOLD, size=10, color=INK)
            page.text(self.left, top - 6 * mm, labels.ISSUER_PLACEHOLDER, size=10, color=WARNING)
        else:
            self._draw_block(page, self.left, top, labels.ISSUER_LABEL, issuer_lines)
        customer_lines = ctx.customer_lines()
        self._draw_block(page, self.customer_x, top, ctx.customer_label, customer_lines)

        block_lines = max(len(issuer_lines or []), len(customer_lines), 1)
        return top - (block_lines + 2) * BLOCK_LEADING - 4 * mm

    def draw_continuation_header(self, page: Page, ctx: RenderContext) -> float:
        page.text(
            self.left, PAGE_HEIGHT - 15 * mm,
            f"{ctx.title} {ctx.document_number} (continuación)",
            font=FONT_BOLD, size=10, color=INDIGO,
        )
        return PAGE_HEIGHT - 22 * mm

    def draw_table_header(self, page: Page, y: float) -> float:
        page.rect(self.left, y - HEADER_HEIGHT, self.right - self.left, HEADER_HEIGHT, fill=INDIGO)
        baseline = y - HEADER_HEIGHT + 2.7 * mm
        page.text(self.left + 3 * mm, baseline, labels.DESCRIPTION_HEADER, font=FONT_BOLD, size=10, color="#FFFFFF")
        page.text(
            self.right - 3 * mm, baseline, labels.AMOUNT_HEADER,
            font=FONT_BOLD, size=10, color="#FFFFFF", align="right",
        )
        return y - HEADER_HEIGHT

    def draw_row(self, page: Page, y: float, height: float, lines: list[str], amount: str, index: int) -> None:
        if index % 2 == 1:
            page.rect(self.left, y - height, self.right - self.left, height, fill=STRIPE)
        baseline = y - self.row_leading
        for offset, line in enumerate(lines):
            page.text(self.left + 3 * mm, baseline - offset * self.row_leading, line, size=self.row_font_size, color=INK)
        if amount:
            page.text(self.right - 3 * mm, baseline, amount, size=self.row_font_size, color=INK, align="right")

    def totals_height(self, ctx: RenderContext) -> float:
        return 10 * mm + 7 * mm * len(ctx.total_lines()) + 4 * mm

    def draw_totals(self, page: Page, y: float, ctx: RenderContext) -> None:
        y -= 10 * mm
        for line in ctx.total_lines():
            if line.emphasized:
                y -= 4 * mm
                font, size, color = FONT_BOLD, 14, INDIGO
            else:
                font, size, color = FONT, 10, INK
            x = self.totals_label_x(self.totals_x, self.right, line, font, size)
            page.text(x, y, line.label, font=font, size=size, color=color)
            page.text(self.right, y, line.value, font=font, size=size, color=color, align="right")
            y -= 7 * mm
