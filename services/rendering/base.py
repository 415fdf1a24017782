"""Abstract base class for document templates.

Templates differ in how headers, tables and totals look, but share the
same pagination: item rows flow down the page, continue on a new page
(with the table header repeated) when they run out of room. A row too
tall for an empty table is split across pages. The totals block follows
the last row, moving to a fresh page if needed.

Based on Template Method Pattern:
https://refactoring.guru/design-patterns/template-method/python
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from reportlab.lib.units import mm

from services.documents.money import format_amount
from services.documents.schema import Document, DocumentType, IssuerProfile
from services.rendering import labels
from services.rendering.layout import FONT, PAGE_WIDTH, Page, text_width, wrap_text
from services.rendering.logo import LogoImage
from services.totals.calculator import Totals


@dataclass(frozen=True)
class TotalLine:
    label: str
    value: str
    emphasized: bool = False


@dataclass(frozen=True)
class RenderContext:
    """Everything a template needs to lay out one document."""

    document: Document
    issuer: IssuerProfile | None
    document_number: str
    issue_date: date
    totals: Totals
    logo: LogoImage | None
    currency_symbol: str = "€"

    @property
    def title(self) -> str:
        return labels.TITLES[self.document.document_type]

    @property
    def customer_label(self) -> str:
        return labels.CUSTOMER_LABELS[self.document.document_type]

    @property
    def formatted_date(self) -> str:
        return self.issue_date.strftime("%d/%m/%Y")

    def money(self, value: Decimal) -> str:
        return format_amount(value, self.currency_symbol)

    def issuer_lines(self) -> list[str] | None:
        """Issuer block lines, or None when no issuer is configured."""
        if self.issuer is None:
            return None
        issuer = self.issuer
        return [
            issuer.legal_name,
            f"CIF/DNI: {issuer.tax_id}",
            issuer.address,
            f"{issuer.postal_code} {issuer.city}".strip(),
            f"Tel: {issuer.phone}",
        ]

    def customer_lines(self) -> list[str]:
        document = self.document
        lines = [document.customer_name]
        if document.customer_tax_id.strip():
            lines.append(f"CIF/DNI: {document.customer_tax_id}")
        if document.customer_address.strip():
            lines.append(document.customer_address)
        if document.customer_postal_code.strip():
            lines.append(f"C.P.: {document.customer_postal_code}")
        return lines

    def total_lines(self) -> list[TotalLine]:
        """Totals block content. Only invoices show subtotal and tax lines."""
        totals = self.totals
        if self.document.document_type is DocumentType.INVOICE:
            rate = labels.format_rate(self.document.tax_rate_percent)
            return [
                TotalLine("Subtotal:", self.money(totals.subtotal)),
                TotalLine(f"IVA ({rate}%):", self.money(totals.tax_amount)),
                TotalLine("TOTAL:", self.money(totals.total), emphasized=True),
            ]
        return [
            TotalLine(labels.total_label(self.document), self.money(totals.total), emphasized=True)
        ]


class DocumentTemplate(ABC):
    """Base class for the fixed document layouts."""

    left = 15 * mm
    right = PAGE_WIDTH - 15 * mm
    content_bottom = 25 * mm
    row_font_size = 9.5
    row_leading = 4.5 * mm
    row_padding = 3 * mm
    amount_column_width = 40 * mm
    footer_color = "#969696"
    page_counter_x = PAGE_WIDTH - 15 * mm
    page_counter_align = "right"

    @property
    @abstractmethod
    def name(self) -> str:
        """Template identifier."""

    @abstractmethod
    def decorate_page(self, page: Page, ctx: RenderContext) -> None:
        """Draw background decoration common to every page."""

    @abstractmethod
    def draw_first_page_header(self, page: Page, ctx: RenderContext) -> float:
        """Draw title, logo, meta and party blocks. Returns the table top y."""

    @abstractmethod
    def draw_continuation_header(self, page: Page, ctx: RenderContext) -> float:
        """Draw the header of pages 2+. Returns the table top y."""

    @abstractmethod
    def draw_table_header(self, page: Page, y: float) -> float:
        """Draw the item table header at y. Returns the first row top y."""

    @abstractmethod
    def draw_row(self, page: Page, y: float, height: float, lines: list[str], amount: str, index: int) -> None:
        """Draw one item row whose top edge is at y."""

    @abstractmethod
    def totals_height(self, ctx: RenderContext) -> float:
        """Vertical space the totals block needs."""

    @abstractmethod
    def draw_totals(self, page: Page, y: float, ctx: RenderContext) -> None:
        """Draw the totals block below y."""

    @property
    def description_width(self) -> float:
        return self.right - self.left - self.amount_column_width - 6 * mm

    def totals_label_x(self, preferred_x: float, value_right: float, line: TotalLine, font: str, size: float) -> float:
        """Left edge for a totals label, moved left when label and value would collide."""
        needed = text_width(line.label, font, size) + text_width(line.value, font, size) + 4 * mm
        return min(preferred_x, value_right - needed)

    def row_height(self, lines: list[str]) -> float:
        return self.row_leading * len(lines) + self.row_padding

    def lines_that_fit(self, y: float) -> int:
        """Number of description lines a row starting at y can hold on this page."""
        return max(int((y - self.content_bottom - self.row_padding) // self.row_leading), 0)

    def _new_page(self, pages: list[Page], ctx: RenderContext) -> Page:
        page = Page(number=len(pages) + 1)
        self.decorate_page(page, ctx)
        pages.append(page)
        return page

    def draw_footer(self, page: Page, page_count: int) -> None:
        for offset, line in zip((17 * mm, 12 * mm), labels.FOOTER_LINES, strict=True):
            page.text(PAGE_WIDTH / 2, offset, line, size=8, color=self.footer_color, align="center")
        page.text(
            self.page_counter_x,
            7 * mm,
            f"Página {page.number} de {page_count}",
            size=7,
            color=self.footer_color,
            align=self.page_counter_align,
        )

    def layout(self, ctx: RenderContext) -> list[Page]:
        """Lay out the whole document.

        Args:
            ctx: Render context

        Returns:
            Pages in order, each ending with the footer
        """
        pages: list[Page] = []
        page = self._new_page(pages, ctx)
        y = self.draw_table_header(page, self.draw_first_page_header(page, ctx))
        table_is_empty = True

        for index, item in enumerate(ctx.document.items):
            lines = wrap_text(item.description, self.description_width, FONT, self.row_font_size)
            amount = ctx.money(item.amount)
            while lines:
                room = self.lines_that_fit(y)
                if room >= len(lines):
                    take = len(lines)
                elif table_is_empty:
                    # Row taller than an empty table: split it, amount on the first part only
                    take = max(room, 1)
                else:
                    page = self._new_page(pages, ctx)
                    y = self.draw_table_header(page, self.draw_continuation_header(page, ctx))
                    table_is_empty = True
                    continue
                part, lines = lines[:take], lines[take:]
                height = self.row_height(part)
                self.draw_row(page, y, height, part, amount, index)
                amount = ""
                y -= height
                table_is_empty = False

        if y - self.totals_height(ctx) < self.content_bottom:
            page = self._new_page(pages, ctx)
            y = self.draw_continuation_header(page, ctx)
        self.draw_totals(page, y, ctx)

        for finished in pages:
            self.draw_footer(finished, len(pages))
        return pages
