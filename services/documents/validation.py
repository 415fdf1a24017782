"""Pre-issuance checks for documents, issuer profiles and logo uploads.

All checks run before any state is touched; a failed check raises
DocumentValidationError listing every problem found at that stage.
"""

from collections.abc import Iterable

from services.documents.money import parse_amount
from services.documents.schema import Document, DocumentItem, DocumentType, IssuerProfile
from services.shared.errors import DocumentValidationError

NO_VALID_ITEM = "Debe registrar al menos una línea con descripción y precio mayor a 0"
ISSUER_NOT_CONFIGURED = "Primero debe configurar los datos de su empresa"


def _blank(value: str | None) -> bool:
    return not (value or "").strip()


def missing_customer_fields(document: Document) -> list[str]:
    """List the required customer fields left blank.

    Quotes only need a name and an address; invoices and receipts also
    need the customer's tax id and postal code.
    """
    missing = []
    if _blank(document.customer_name):
        missing.append("Nombre del Cliente")

    if document.document_type is DocumentType.QUOTE:
        if _blank(document.customer_address):
            missing.append("Dirección")
    else:
        if _blank(document.customer_tax_id):
            missing.append("CIF/DNI del Cliente")
        if _blank(document.customer_address):
            missing.append("Dirección del Cliente")
        if _blank(document.customer_postal_code):
            missing.append("Código Postal del Cliente")

    return missing


def has_valid_item(items: Iterable[DocumentItem]) -> bool:
    """Check that at least one line has a description and a positive amount."""
    return any(
        not _blank(item.description) and parse_amount(item.amount) > 0 for item in items
    )


def missing_issuer_fields(issuer: IssuerProfile) -> list[str]:
    """List the mandatory issuer fields left blank."""
    missing = []
    if _blank(issuer.legal_name):
        missing.append("Razón Social")
    if _blank(issuer.tax_id):
        missing.append("CIF/DNI")
    if _blank(issuer.email):
        missing.append("Email")
    return missing


def validate_issuer(issuer: IssuerProfile) -> None:
    """Raise if the issuer profile cannot be saved as-is.

    Raises:
        DocumentValidationError: If a mandatory field is blank
    """
    missing = missing_issuer_fields(issuer)
    if missing:
        raise DocumentValidationError([f"Campo obligatorio de la empresa: {m}" for m in missing])


def validate_document_for_issuance(document: Document, issuer: IssuerProfile | None) -> None:
    """Run every issuance check, stopping at the first failing stage.

    Stages: customer fields, line items, issuer profile.

    Raises:
        DocumentValidationError: If the document cannot be issued
    """
    missing = missing_customer_fields(document)
    if missing:
        raise DocumentValidationError([f"Campo obligatorio: {m}" for m in missing])

    if not has_valid_item(document.items):
        raise DocumentValidationError([NO_VALID_ITEM])

    if issuer is None or missing_issuer_fields(issuer):
        raise DocumentValidationError([ISSUER_NOT_CONFIGURED])


def validate_logo(data: bytes, max_bytes: int) -> None:
    """Reject empty or oversized logo uploads.

    Raises:
        DocumentValidationError: If the image is empty or too large
    """
    if not data:
        raise DocumentValidationError(["El logo está vacío"])
    if len(data) > max_bytes:
        raise DocumentValidationError(
            [f"El logo es demasiado grande. Usa una imagen menor a {max_bytes // 1024}KB"]
        )
