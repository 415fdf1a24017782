"""Localized labels and file naming for rendered documents.

Download names follow "<Title>_<number>_<customer>.pdf". When the
customer name has no usable characters left after sanitizing, the
customer segment is left out rather than ending the name in "_".
"""

import re
import unicodedata
from decimal import Decimal

from services.documents.schema import Document, DocumentType

TITLES: dict[DocumentType, str] = {
    DocumentType.INVOICE: "Factura",
    DocumentType.QUOTE: "Cotización",
    DocumentType.RECEIPT: "Recibo",
}

CUSTOMER_LABELS: dict[DocumentType, str] = {
    DocumentType.INVOICE: "Cliente",
    DocumentType.QUOTE: "Solicitante",
    DocumentType.RECEIPT: "Pagador",
}

ISSUER_LABEL = "Emisor"
ISSUER_PLACEHOLDER = "(Datos del emisor no configurados)"
TAX_NOTE = "(Precio más IVA)"
DESCRIPTION_HEADER = "Descripción"
AMOUNT_HEADER = "Importe"
FOOTER_LINES = (
    "Este documento ha sido generado digitalmente.",
    "Gracias por su confianza.",
)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_]")


def strip_diacritics(text: str) -> str:
    """Remove accents: "Cotización" -> "Cotizacion"."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def sanitize_customer_name(name: str) -> str:
    """Reduce a customer name to lowercase [a-z0-9_] for use in file names."""
    underscored = re.sub(r"\s+", "_", strip_diacritics(name).strip())
    return _UNSAFE_FILENAME_CHARS.sub("", underscored).lower()


def build_file_name(document_type: DocumentType, document_number: str, customer_name: str) -> str:
    """Suggested download name, e.g. "Cotizacion_C-0003_acme_sl.pdf".

    The customer segment is dropped when nothing survives sanitization.
    """
    parts = [strip_diacritics(TITLES[document_type]), document_number]
    customer = sanitize_customer_name(customer_name)
    if customer:
        parts.append(customer)
    return "_".join(parts) + ".pdf"


def format_rate(rate: Decimal) -> str:
    """Render a tax rate without trailing zeros: 21 -> "21", 10.50 -> "10.5"."""
    normalized = rate.normalize()
    return f"{normalized:f}"


def total_label(document: Document) -> str:
    """Label of the total line; quotes may carry the tax qualifier."""
    if document.document_type is DocumentType.QUOTE and document.quote_includes_tax_note:
        return f"TOTAL {TAX_NOTE}:"
    return "TOTAL:"
