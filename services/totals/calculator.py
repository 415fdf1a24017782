"""Subtotal, tax and total calculation for document drafts."""

from collections.abc import Iterable
from decimal import Decimal

from pydantic import BaseModel

from services.documents.money import parse_amount
from services.documents.schema import DocumentItem, DocumentType


class Totals(BaseModel):
    """Computed amounts of a document. Values are not rounded."""

    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal


def compute_totals(
    items: Iterable[DocumentItem],
    document_type: DocumentType,
    tax_rate_percent: Decimal,
) -> Totals:
    """Compute subtotal, tax amount and total.

    Negative line amounts count as zero. Only invoices carry tax; for
    quotes and receipts the rate is ignored even when present.

    Args:
        items: Document lines
        document_type: Type of the document
        tax_rate_percent: VAT rate, e.g. 21 for 21%

    Returns:
        Totals for the document
    """
    subtotal = sum(
        (max(Decimal(0), parse_amount(item.amount)) for item in items),
        start=Decimal(0),
    )

    if document_type is DocumentType.INVOICE:
        tax_amount = subtotal * parse_amount(tax_rate_percent) / Decimal(100)
    else:
        tax_amount = Decimal(0)

    return Totals(subtotal=subtotal, tax_amount=tax_amount, total=subtotal + tax_amount)
