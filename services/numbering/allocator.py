"""Per-tenant, per-type document number allocation.

The allocator is pure: it reads the next sequence value from an issuer
profile and hands back the assigned number together with an updated copy
of the profile. Persisting that copy is the caller's job, and it must
happen only after the document itself has been saved, so a failed
document save never advances numbering. Numbers lost to a failed issuer
save after a successful document save are not reclaimed.

Known limitation: there is no concurrency guard. Two allocations for the
same tenant and type that read the same profile produce the same number.
Callers needing safety under concurrent issuance must perform the
read-allocate-write cycle atomically in the record store.
"""

from pydantic import BaseModel

from services.documents.schema import DocumentType, IssuerProfile

SEQUENCE_WIDTH = 4
DEFAULT_SEQUENCE = "0001"

PREFIXES: dict[DocumentType, str] = {
    DocumentType.INVOICE: "F",
    DocumentType.QUOTE: "C",
    DocumentType.RECEIPT: "R",
}

SEQUENCE_FIELDS: dict[DocumentType, str] = {
    DocumentType.INVOICE: "next_invoice_seq",
    DocumentType.QUOTE: "next_quote_seq",
    DocumentType.RECEIPT: "next_receipt_seq",
}


class Allocation(BaseModel):
    """Result of a number allocation.

    Attributes:
        document_number: Assigned number, e.g. "F-0009"
        issuer: Copy of the issuer profile with the sequence advanced
    """

    document_number: str
    issuer: IssuerProfile


def parse_sequence(raw: str | None) -> int:
    """Parse a stored sequence value, falling back to 1.

    Args:
        raw: Stored value such as "0009"; may be empty or garbage

    Returns:
        Positive sequence number
    """
    try:
        value = int((raw or "").strip())
    except ValueError:
        return int(DEFAULT_SEQUENCE)
    return value if value > 0 else int(DEFAULT_SEQUENCE)


def format_sequence(value: int) -> str:
    """Zero-pad to 4 digits. Wider values are kept whole, never truncated."""
    return str(value).zfill(SEQUENCE_WIDTH)


def allocate(issuer: IssuerProfile, document_type: DocumentType) -> Allocation:
    """Assign the next number for a document type.

    Args:
        issuer: Current issuer profile of the tenant (not modified)
        document_type: Type of the document being issued

    Returns:
        Allocation with the number and the advanced issuer profile
    """
    field = SEQUENCE_FIELDS[document_type]
    current = parse_sequence(getattr(issuer, field))

    number = f"{PREFIXES[document_type]}-{format_sequence(current)}"
    updated = issuer.model_copy(update={field: format_sequence(current + 1)})

    return Allocation(document_number=number, issuer=updated)
