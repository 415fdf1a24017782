"""Unit tests for the invoicing API.

Tests cover:
- Health check and metrics endpoints
- Login and X-User-Id authentication
- Admin-only user management
- Issuer profile and logo upload
- Document issuance, history, PDF download and deletion
"""

import io
from collections.abc import Generator
from unittest.mock import patch

import pytest
from fastapi import status
from fastapi.testclient import TestClient
from PIL import Image

from services.api import main
from services.api.main import app
from services.records.memory_store import InMemoryRecordStore
from services.shared.errors import RecordStoreError

ISSUER = {
    "legal_name": "Reformas Acme S.L.",
    "tax_id": "B12345678",
    "address": "Calle Mayor 1",
    "postal_code": "28001",
    "city": "Madrid",
    "email": "info@acme.es",
}

INVOICE = {
    "document_type": "invoice",
    "template": "classic",
    "customer_name": "Juan Pérez",
    "customer_tax_id": "12345678Z",
    "customer_address": "Calle Luna 5",
    "customer_postal_code": "28002",
    "items": [{"description": "Reparación", "amount": "150"}],
    "tax_rate_percent": "21",
}


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Create test client over an empty in-memory store with a seeded admin."""
    assert isinstance(main.record_store, InMemoryRecordStore)
    main.record_store.clear()
    fast_settings = main.settings.model_copy(update={"password_hash_rounds": 4})
    with patch.object(main.auth_service, "settings", fast_settings), TestClient(app) as test_client:
        yield test_client
    main.record_store.clear()


@pytest.fixture
def admin_headers(client: TestClient) -> dict[str, str]:
    """Log in as the seeded admin."""
    response = client.post(
        "/api/v1/auth/login",
        json={"email": main.settings.admin_email, "password": main.settings.admin_password},
    )
    assert response.status_code == status.HTTP_200_OK
    return {"X-User-Id": response.json()["id"]}


@pytest.fixture
def user_headers(client: TestClient, admin_headers: dict[str, str]) -> dict[str, str]:
    """Create a tenant through the admin API and return its auth header."""
    response = client.post(
        "/api/v1/users",
        json={"email": "ana@example.com", "password": "pw1"},
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_201_CREATED
    return {"X-User-Id": response.json()["id"]}


@pytest.fixture
def configured_headers(client: TestClient, user_headers: dict[str, str]) -> dict[str, str]:
    """Tenant with a complete issuer profile."""
    response = client.put("/api/v1/issuer", json=ISSUER, headers=user_headers)
    assert response.status_code == status.HTTP_200_OK
    return user_headers


@pytest.fixture
def sample_image_bytes() -> bytes:
    """Create a simple test image as bytes."""
    img = Image.new("RGB", (200, 100), color="white")
    img_bytes = io.BytesIO()
    img.save(img_bytes, format="PNG")
    return img_bytes.getvalue()


def test_health_check(client: TestClient) -> None:
    """Test health check endpoint."""
    response = client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == main.settings.service_name


def test_readiness_check(client: TestClient) -> None:
    """Test readiness check endpoint."""
    response = client.get("/ready")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["ready"] is True


def test_metrics_endpoint(client: TestClient) -> None:
    """Test Prometheus metrics endpoint."""
    client.get("/health")
    response = client.get("/metrics")

    assert response.status_code == status.HTTP_200_OK
    assert "http_requests_total" in response.text


def test_login_wrong_password(client: TestClient) -> None:
    """Test that bad credentials get a generic 401."""
    response = client.post(
        "/api/v1/auth/login", json={"email": main.settings.admin_email, "password": "nope"}
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"] == "Invalid credentials"


def test_missing_user_header(client: TestClient) -> None:
    """Test that protected endpoints require X-User-Id."""
    response = client.get("/api/v1/documents")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_unknown_user_header(client: TestClient) -> None:
    """Test that an unknown user id is rejected."""
    response = client.get("/api/v1/documents", headers={"X-User-Id": "nobody"})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_user_management_requires_admin(
    client: TestClient, user_headers: dict[str, str]
) -> None:
    """Test that regular users cannot manage accounts."""
    response = client.get("/api/v1/users", headers=user_headers)

    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_admin_user_lifecycle(client: TestClient, admin_headers: dict[str, str]) -> None:
    """Test creating, listing, updating and deleting a user."""
    created = client.post(
        "/api/v1/users",
        json={"email": "bob@example.com", "password": "pw1"},
        headers=admin_headers,
    )
    assert created.status_code == status.HTTP_201_CREATED
    user_id = created.json()["id"]
    assert "password_hash" not in created.json()

    duplicate = client.post(
        "/api/v1/users",
        json={"email": "bob@example.com", "password": "pw2"},
        headers=admin_headers,
    )
    assert duplicate.status_code == status.HTTP_409_CONFLICT

    listed = client.get("/api/v1/users", headers=admin_headers)
    assert [u["email"] for u in listed.json()][0] == "bob@example.com"

    updated = client.put(
        f"/api/v1/users/{user_id}",
        json={"email": "bob2@example.com", "password": ""},
        headers=admin_headers,
    )
    assert updated.status_code == status.HTTP_200_OK
    login = client.post("/api/v1/auth/login", json={"email": "bob2@example.com", "password": "pw1"})
    assert login.status_code == status.HTTP_200_OK

    deleted = client.delete(f"/api/v1/users/{user_id}", headers=admin_headers)
    assert deleted.status_code == status.HTTP_200_OK
    missing = client.delete(f"/api/v1/users/{user_id}", headers=admin_headers)
    assert missing.status_code == status.HTTP_404_NOT_FOUND


def test_update_own_profile(client: TestClient, user_headers: dict[str, str]) -> None:
    """Test that users can change their own password."""
    response = client.put(
        "/api/v1/profile",
        json={"email": "ana@example.com", "password": "new-pw"},
        headers=user_headers,
    )

    assert response.status_code == status.HTTP_200_OK
    login = client.post("/api/v1/auth/login", json={"email": "ana@example.com", "password": "new-pw"})
    assert login.status_code == status.HTTP_200_OK


def test_new_tenant_has_blank_issuer(client: TestClient, user_headers: dict[str, str]) -> None:
    """Test that a new tenant starts with its email and fresh sequences."""
    response = client.get("/api/v1/issuer", headers=user_headers)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["email"] == "ana@example.com"
    assert data["next_invoice_seq"] == "0001"


def test_save_incomplete_issuer(client: TestClient, user_headers: dict[str, str]) -> None:
    """Test that incomplete issuer profiles are rejected with the problem list."""
    response = client.put("/api/v1/issuer", json={"legal_name": "Acme"}, headers=user_headers)

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert isinstance(response.json()["detail"], list)


def test_upload_logo(
    client: TestClient, configured_headers: dict[str, str], sample_image_bytes: bytes
) -> None:
    """Test uploading a valid logo."""
    files = {"file": ("logo.png", sample_image_bytes, "image/png")}

    response = client.post("/api/v1/issuer/logo", files=files, headers=configured_headers)

    assert response.status_code == status.HTTP_200_OK
    issuer = client.get("/api/v1/issuer", headers=configured_headers).json()
    assert issuer["logo"].startswith("data:image/png;base64,")


def test_upload_logo_invalid_type(client: TestClient, configured_headers: dict[str, str]) -> None:
    """Test that non-image uploads are rejected."""
    files = {"file": ("notes.txt", b"hello", "text/plain")}

    response = client.post("/api/v1/issuer/logo", files=files, headers=configured_headers)

    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_upload_logo_too_large(client: TestClient, configured_headers: dict[str, str]) -> None:
    """Test that logos over the size limit are rejected."""
    files = {"file": ("big.png", b"x" * (main.settings.logo_max_bytes + 1), "image/png")}

    response = client.post("/api/v1/issuer/logo", files=files, headers=configured_headers)

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_preview_totals(client: TestClient, user_headers: dict[str, str]) -> None:
    """Test the totals preview."""
    response = client.post(
        "/api/v1/documents/totals",
        json={"document_type": "invoice", "items": INVOICE["items"], "tax_rate_percent": "21"},
        headers=user_headers,
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["display_total"] == "181.50"


def test_issue_download_and_delete(client: TestClient, configured_headers: dict[str, str]) -> None:
    """Test the document lifecycle from issuance to deletion."""
    issued = client.post("/api/v1/documents", json=INVOICE, headers=configured_headers)

    assert issued.status_code == status.HTTP_201_CREATED
    data = issued.json()
    assert data["document"]["document_number"] == "F-0001"
    assert data["file_name"] == "Factura_F-0001_juan_perez.pdf"
    document_id = data["document"]["id"]

    history = client.get("/api/v1/documents", headers=configured_headers).json()
    assert [d["id"] for d in history] == [document_id]

    pdf = client.get(data["pdf_url"], headers=configured_headers)
    assert pdf.status_code == status.HTTP_200_OK
    assert pdf.headers["content-type"] == "application/pdf"
    assert "Factura_F-0001_juan_perez.pdf" in pdf.headers["content-disposition"]
    assert pdf.content.startswith(b"%PDF")

    issuer = client.get("/api/v1/issuer", headers=configured_headers).json()
    assert issuer["next_invoice_seq"] == "0002"

    deleted = client.delete(f"/api/v1/documents/{document_id}", headers=configured_headers)
    assert deleted.status_code == status.HTTP_200_OK
    assert client.get(data["pdf_url"], headers=configured_headers).status_code == 404


def test_issue_incomplete_document(client: TestClient, configured_headers: dict[str, str]) -> None:
    """Test that missing customer fields return 422 with every problem."""
    draft = {**INVOICE, "customer_tax_id": "", "customer_postal_code": ""}

    response = client.post("/api/v1/documents", json=draft, headers=configured_headers)

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert len(response.json()["detail"]) == 2


def test_issue_without_issuer_profile(client: TestClient, user_headers: dict[str, str]) -> None:
    """Test that tenants must configure their company first."""
    response = client.post("/api/v1/documents", json=INVOICE, headers=user_headers)

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_documents_are_tenant_scoped(
    client: TestClient, configured_headers: dict[str, str], admin_headers: dict[str, str]
) -> None:
    """Test that other tenants cannot read a document."""
    document_id = client.post("/api/v1/documents", json=INVOICE, headers=configured_headers).json()[
        "document"
    ]["id"]

    response = client.get(f"/api/v1/documents/{document_id}/pdf", headers=admin_headers)

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert client.get("/api/v1/documents", headers=admin_headers).json() == []


def test_unreadable_store_returns_reason(client: TestClient, configured_headers: dict[str, str]) -> None:
    """Test that record store read failures become 500 with the reason."""
    failure = RecordStoreError("Error reading tenants/x/documents/y.json: connection refused")

    with patch.object(main.record_store, "list_issued_documents", side_effect=failure):
        response = client.get("/api/v1/documents", headers=configured_headers)

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert "connection refused" in response.json()["detail"]
