"""Shared fixtures for invoicing unit tests."""

import base64
import io
from collections.abc import Generator
from decimal import Decimal
from unittest.mock import patch

import pytest
from PIL import Image

from services.documents.schema import Document, DocumentItem, DocumentType, IssuerProfile
from services.shared.config import Settings


@pytest.fixture
def settings() -> Settings:
    """Create test settings with an in-memory store and cheap hashing."""
    return Settings(
        _env_file=None,
        record_store="memory",
        password_hash_rounds=4,
        admin_email="admin@example.com",
        admin_password="admin",
    )


@pytest.fixture
def png_logo() -> str:
    """Create a small PNG logo encoded as a data URL."""
    img = Image.new("RGB", (120, 60), color="teal")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")


@pytest.fixture
def issuer() -> IssuerProfile:
    """Create a complete issuer profile."""
    return IssuerProfile(
        legal_name="Reformas Acme S.L.",
        tax_id="B12345678",
        address="Calle Mayor 1",
        postal_code="28001",
        city="Madrid",
        phone="600000000",
        email="info@acme.es",
    )


@pytest.fixture
def invoice_document() -> Document:
    """Create a complete invoice draft worth 150 before tax."""
    return Document(
        document_type=DocumentType.INVOICE,
        customer_name="Juan Pérez",
        customer_tax_id="12345678Z",
        customer_address="Calle Luna 5",
        customer_postal_code="28002",
        items=[DocumentItem(description="Reparación de fontanería", amount=Decimal("150"))],
        tax_rate_percent=Decimal(21),
    )


@pytest.fixture
def quote_document() -> Document:
    """Create a complete quote draft with the tax note enabled."""
    return Document(
        document_type=DocumentType.QUOTE,
        customer_name="Acme S.L.",
        customer_address="Polígono Sur 3",
        items=[
            DocumentItem(description="Pintura", amount=Decimal("100")),
            DocumentItem(description="Material", amount=Decimal("20")),
        ],
        quote_includes_tax_note=True,
    )


@pytest.fixture
def no_retry_wait() -> Generator[None, None, None]:
    """Skip the backoff sleeps between storage retries."""
    with patch("time.sleep"):
        yield
