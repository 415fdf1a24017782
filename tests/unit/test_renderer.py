"""Unit tests for document layout and PDF rendering.

Tests cover:
- Totals block content per document type
- Byte-deterministic output
- Pagination of long item lists
- Logo handling and issuer placeholder
- Template registry
"""

from datetime import date
from decimal import Decimal

import pytest

from services.documents.schema import (
    Document,
    DocumentItem,
    DocumentType,
    IssuerProfile,
    TemplateChoice,
)
from services.rendering.labels import ISSUER_PLACEHOLDER
from services.rendering.layout import ImageElement, TextElement, wrap_text
from services.rendering.service import DocumentRenderer, TemplateRegistry
from services.shared.config import Settings

ISSUE_DATE = date(2024, 3, 15)


@pytest.fixture
def renderer(settings: Settings) -> DocumentRenderer:
    """Create renderer."""
    return DocumentRenderer(settings)


def with_template(document: Document, template: TemplateChoice) -> Document:
    return document.model_copy(update={"template": template})


@pytest.mark.parametrize("template", list(TemplateChoice))
class TestRenderContent:
    """Test what each template prints."""

    def test_invoice_shows_subtotal_tax_and_total(
        self,
        renderer: DocumentRenderer,
        invoice_document: Document,
        issuer: IssuerProfile,
        template: TemplateChoice,
    ) -> None:
        """Invoices print subtotal, IVA with its rate and the total."""
        result = renderer.render(with_template(invoice_document, template), issuer, "F-0009", ISSUE_DATE)
        texts = result.texts()

        assert "Subtotal:" in texts
        assert "IVA (21%):" in texts
        assert "TOTAL:" in texts
        assert "150.00 €" in texts
        assert "31.50 €" in texts
        assert "181.50 €" in texts
        assert "FACTURA" in texts
        assert result.content.startswith(b"%PDF")

    def test_quote_with_tax_note(
        self,
        renderer: DocumentRenderer,
        quote_document: Document,
        issuer: IssuerProfile,
        template: TemplateChoice,
    ) -> None:
        """Quotes with the note show the qualifier and no tax line."""
        result = renderer.render(with_template(quote_document, template), issuer, "C-0003", ISSUE_DATE)
        texts = result.texts()

        assert "TOTAL (Precio más IVA):" in texts
        assert "120.00 €" in texts
        assert not any(text.startswith("IVA") for text in texts)
        assert "Subtotal:" not in texts
        assert "SOLICITANTE" in " ".join(texts).upper()

    def test_receipt_single_total_line(
        self,
        renderer: DocumentRenderer,
        invoice_document: Document,
        issuer: IssuerProfile,
        template: TemplateChoice,
    ) -> None:
        """Receipts show only the total, even with a tax rate set."""
        receipt = invoice_document.model_copy(
            update={"document_type": DocumentType.RECEIPT, "template": template}
        )
        texts = renderer.render(receipt, issuer, "R-0001", ISSUE_DATE).texts()

        assert "TOTAL:" in texts
        assert "150.00 €" in texts
        assert "31.50 €" not in texts

    def test_output_is_deterministic(
        self,
        renderer: DocumentRenderer,
        invoice_document: Document,
        issuer: IssuerProfile,
        png_logo: str,
        template: TemplateChoice,
    ) -> None:
        """Same inputs produce byte-identical PDFs."""
        issuer.logo = png_logo
        document = with_template(invoice_document, template)

        first = renderer.render(document, issuer, "F-0001", ISSUE_DATE)
        second = renderer.render(document, issuer, "F-0001", ISSUE_DATE)

        assert first.content == second.content

    def test_date_and_number_are_printed(
        self,
        renderer: DocumentRenderer,
        invoice_document: Document,
        issuer: IssuerProfile,
        template: TemplateChoice,
    ) -> None:
        """The issue date prints as dd/mm/yyyy next to the number."""
        texts = renderer.render(
            with_template(invoice_document, template), issuer, "F-0042", ISSUE_DATE
        ).texts()
        joined = " ".join(texts)

        assert "15/03/2024" in joined
        assert "F-0042" in joined

    def test_missing_issuer_prints_placeholder(
        self,
        renderer: DocumentRenderer,
        invoice_document: Document,
        template: TemplateChoice,
    ) -> None:
        """Without an issuer profile a placeholder is printed."""
        result = renderer.render(with_template(invoice_document, template), None, "F-0001", ISSUE_DATE)

        assert ISSUER_PLACEHOLDER in result.texts()

    def test_long_item_list_paginates(
        self,
        renderer: DocumentRenderer,
        invoice_document: Document,
        issuer: IssuerProfile,
        template: TemplateChoice,
    ) -> None:
        """Rows flow onto further pages and every row and total is printed once."""
        items = [
            DocumentItem(description=f"Partida número {i}", amount=Decimal(i))
            for i in range(1, 81)
        ]
        document = invoice_document.model_copy(update={"items": items, "template": template})

        result = renderer.render(document, issuer, "F-0100", ISSUE_DATE)

        assert result.page_count > 1
        all_texts = result.texts()
        for i in range(1, 81):
            assert all_texts.count(f"Partida número {i}") == 1
        assert all_texts.count("TOTAL:") == 1
        assert "TOTAL:" in result.pages[-1].texts()
        for page in result.pages:
            assert f"Página {page.number} de {result.page_count}" in page.texts()
        assert any("(continuación)" in text for text in result.pages[1].texts())

    def test_row_taller_than_a_page_is_split(
        self,
        renderer: DocumentRenderer,
        invoice_document: Document,
        issuer: IssuerProfile,
        template: TemplateChoice,
    ) -> None:
        """A huge description continues on later pages without leaving the page."""
        description = " ".join(["palabra"] * 3000)
        items = [DocumentItem(description=description, amount=Decimal("75"))]
        document = invoice_document.model_copy(update={"items": items, "template": template})

        result = renderer.render(document, issuer, "F-0200", ISSUE_DATE)

        assert result.page_count > 1
        for page in result.pages:
            ys = [e.y for e in page.elements if isinstance(e, TextElement)]
            assert min(ys) >= 0
        all_texts = result.texts()
        assert sum(text.split().count("palabra") for text in all_texts) == 3000
        assert all_texts.count("75.00 €") == 2  # row amount once, plus the subtotal
        assert "TOTAL:" in result.pages[-1].texts()

    def test_logo_is_drawn(
        self,
        renderer: DocumentRenderer,
        invoice_document: Document,
        issuer: IssuerProfile,
        png_logo: str,
        template: TemplateChoice,
    ) -> None:
        """A valid logo is placed on the first page."""
        issuer.logo = png_logo
        result = renderer.render(with_template(invoice_document, template), issuer, "F-0001", ISSUE_DATE)

        assert result.logo_omitted is False
        assert any(isinstance(e, ImageElement) for e in result.pages[0].elements)

    def test_malformed_logo_is_omitted(
        self,
        renderer: DocumentRenderer,
        invoice_document: Document,
        issuer: IssuerProfile,
        template: TemplateChoice,
    ) -> None:
        """An undecodable logo is dropped and the render still succeeds."""
        issuer.logo = "data:image/png;base64,%%%broken%%%"
        result = renderer.render(with_template(invoice_document, template), issuer, "F-0001", ISSUE_DATE)

        assert result.logo_omitted is True
        assert result.content.startswith(b"%PDF")
        assert not any(isinstance(e, ImageElement) for e in result.pages[0].elements)


class TestRendererDetails:
    """Test naming, registry and text wrapping."""

    def test_file_name(
        self, renderer: DocumentRenderer, quote_document: Document, issuer: IssuerProfile
    ) -> None:
        """The suggested file name combines type, number and customer."""
        result = renderer.render(quote_document, issuer, "C-0003", ISSUE_DATE)

        assert result.file_name == "Cotizacion_C-0003_acme_sl.pdf"

    def test_every_template_choice_is_registered(self) -> None:
        """Every template choice maps to a layout."""
        assert set(TemplateRegistry.list_templates()) == set(TemplateChoice)
        for choice in TemplateChoice:
            assert TemplateRegistry.get_template(choice).name == choice.value

    def test_templates_produce_different_output(
        self, renderer: DocumentRenderer, invoice_document: Document, issuer: IssuerProfile
    ) -> None:
        """Classic and modern layouts are visually distinct."""
        classic = renderer.render(with_template(invoice_document, TemplateChoice.CLASSIC), issuer, "F-1", ISSUE_DATE)
        modern = renderer.render(with_template(invoice_document, TemplateChoice.MODERN), issuer, "F-1", ISSUE_DATE)

        assert classic.content != modern.content

    def test_long_description_wraps(self) -> None:
        """Descriptions wider than the column wrap onto several lines."""
        text = " ".join(["palabra"] * 60)
        lines = wrap_text(text, 200)

        assert len(lines) > 1
        assert " ".join(lines) == text

    def test_empty_description_keeps_one_line(self) -> None:
        """An empty description still occupies one row line."""
        assert wrap_text("", 200) == [""]

    def test_currency_symbol_from_settings(self, invoice_document: Document, issuer: IssuerProfile) -> None:
        """Amounts use the configured currency symbol."""
        renderer = DocumentRenderer(Settings(_env_file=None, currency_symbol="$"))
        texts = renderer.render(invoice_document, issuer, "F-0001", ISSUE_DATE).texts()

        assert "181.50 $" in texts
