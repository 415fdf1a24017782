"""Invoicing data models: documents, line items, issuer profiles and users.

Money fields are Decimal; document type and template are closed enums so
that numbering and rendering can branch exhaustively on them.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from services.documents.money import parse_amount


def new_id() -> str:
    """Generate an opaque record identifier."""
    return uuid.uuid4().hex


class DocumentType(str, Enum):
    """Kind of document being issued."""

    INVOICE = "invoice"
    QUOTE = "quote"
    RECEIPT = "receipt"


class TemplateChoice(str, Enum):
    """Visual layout used when rendering a document."""

    CLASSIC = "classic"
    MODERN = "modern"


class UserRole(str, Enum):
    """Account role. Admins manage the other tenants."""

    ADMIN = "admin"
    USER = "user"


class DocumentItem(BaseModel):
    """Single line of a document. List order is display order."""

    id: str = Field(default_factory=new_id, description="Opaque line identifier")
    description: str = Field("", description="Concept shown in the item table")
    amount: Decimal = Field(Decimal(0), description="Line amount before tax")

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, value: Any) -> Decimal:
        return parse_amount(value)


class Document(BaseModel):
    """Document draft as filled in by the user.

    Attributes:
        tax_rate_percent: Only meaningful for invoices
        quote_includes_tax_note: Only meaningful for quotes
    """

    document_type: DocumentType = DocumentType.INVOICE
    template: TemplateChoice = TemplateChoice.CLASSIC

    # Customer information
    customer_name: str = ""
    customer_tax_id: str = ""
    customer_address: str = ""
    customer_postal_code: str = ""

    items: list[DocumentItem] = Field(default_factory=list)
    tax_rate_percent: Decimal = Field(Decimal(21), description="VAT rate for invoices")
    quote_includes_tax_note: bool = Field(
        False, description="Append the 'Precio más IVA' qualifier to a quote total"
    )

    @field_validator("tax_rate_percent", mode="before")
    @classmethod
    def coerce_tax_rate(cls, value: Any) -> Decimal:
        return parse_amount(value)


class IssuerProfile(BaseModel):
    """Company details of a tenant, plus its numbering sequences.

    Sequence fields hold the next number to assign, as 4-digit
    zero-padded strings ("0001"). They grow past 4 digits after 9999.
    """

    legal_name: str = ""
    tax_id: str = ""
    address: str = ""
    postal_code: str = ""
    city: str = ""
    phone: str = ""
    email: str = ""

    next_invoice_seq: str = "0001"
    next_quote_seq: str = "0001"
    next_receipt_seq: str = "0001"

    logo: str | None = Field(None, description="Base64 image or data: URL")


class IssuedDocument(Document):
    """Persisted document with its number and a frozen copy of the issuer.

    The issuer snapshot is a copy taken at issuance time, so later
    profile edits never alter historical documents.
    """

    id: str = Field(default_factory=new_id, description="Storage identity")
    document_number: str = Field(..., description="e.g. F-0001")
    owner_id: str = Field(..., description="Tenant (user) identifier")
    issued_at: datetime
    total: Decimal
    issuer_snapshot: IssuerProfile | None = None


class User(BaseModel):
    """Stored account. Each user is one tenant."""

    id: str = Field(default_factory=new_id)
    email: str
    password_hash: str
    role: UserRole = UserRole.USER
    created_at: datetime


class UserPublic(BaseModel):
    """Credential-free view of a user."""

    id: str
    email: str
    role: UserRole
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserPublic":
        return cls(id=user.id, email=user.email, role=user.role, created_at=user.created_at)
