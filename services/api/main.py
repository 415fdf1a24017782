"""FastAPI application for the invoicing platform.

Production-ready API with:
- Health and readiness checks for Kubernetes
- Login and admin-only tenant management
- Issuer profile and logo upload
- Document issuance, history, PDF download and deletion
- Prometheus metrics for monitoring

Callers identify themselves with the X-User-Id header returned by login.

Based on FastAPI best practices:
https://fastapi.tiangolo.com/
"""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from decimal import Decimal

from fastapi import (
    Depends,
    FastAPI,
    File,
    Header,
    HTTPException,
    Request,
    Response,
    UploadFile,
    status,
)
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from services.api import metrics
from services.auth.service import AuthService
from services.documents.schema import (
    Document,
    DocumentItem,
    DocumentType,
    IssuedDocument,
    IssuerProfile,
    TemplateChoice,
    UserPublic,
    UserRole,
)
from services.issuance.service import IssuanceService, TotalsPreview
from services.records.factory import create_record_store
from services.rendering.service import DocumentRenderer
from services.shared.config import get_settings
from services.shared.errors import AuthError, DocumentValidationError, RecordStoreError

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

record_store = create_record_store(settings)
auth_service = AuthService(settings, record_store)
renderer = DocumentRenderer(settings)
issuance_service = IssuanceService(settings, record_store, renderer)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Seed the administrator account before serving requests."""
    auth_service.ensure_admin_user()
    logger.info(f"{settings.service_name} ready (record store: {record_store.backend_name})")
    yield


app = FastAPI(
    title="Invoicing Platform",
    description="Multi-tenant invoices, quotes and receipts with PDF rendering",
    version=settings.service_version,
    lifespan=lifespan,
)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Middleware to collect request metrics.

    Tracks:
    - Request count by method, endpoint, and status
    - Request duration by method and endpoint
    """
    # Skip metrics for /metrics endpoint itself
    if request.url.path == "/metrics":
        return await call_next(request)

    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time

    # Label by route template so ids don't explode cardinality
    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)

    metrics.http_requests_total.labels(
        method=request.method,
        endpoint=endpoint,
        status=response.status_code,
    ).inc()

    metrics.http_request_duration_seconds.labels(
        method=request.method,
        endpoint=endpoint,
    ).observe(duration)

    return response


@app.exception_handler(DocumentValidationError)
async def validation_error_handler(request: Request, exc: DocumentValidationError) -> JSONResponse:
    """Return user-correctable problems as 422 with the full list."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.problems},
    )


@app.exception_handler(RecordStoreError)
async def record_store_error_handler(request: Request, exc: RecordStoreError) -> JSONResponse:
    """Report unreadable storage as 500 with the reason."""
    logger.error(f"Record store read failed on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc)},
    )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    service: str


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool


class LoginRequest(BaseModel):
    """Login credentials."""

    email: str
    password: str


class UserCreateRequest(BaseModel):
    """New tenant account."""

    email: str
    password: str
    role: UserRole = UserRole.USER
    logo: str | None = Field(None, description="Optional initial logo (base64 or data: URL)")


class UserUpdateRequest(BaseModel):
    """Account changes. An empty password keeps the current one."""

    email: str
    password: str | None = None
    role: UserRole | None = None


class ProfileUpdateRequest(BaseModel):
    """Changes to the caller's own account."""

    email: str
    password: str | None = None


class TotalsRequest(BaseModel):
    """Draft amounts to preview."""

    document_type: DocumentType = DocumentType.INVOICE
    items: list[DocumentItem] = Field(default_factory=list)
    tax_rate_percent: Decimal = Decimal(21)


class IssueResponse(BaseModel):
    """Issued document and where to download its PDF."""

    document: IssuedDocument
    file_name: str
    pdf_url: str
    logo_omitted: bool = False


class DocumentSummary(BaseModel):
    """History list entry."""

    id: str
    document_number: str
    document_type: DocumentType
    template: TemplateChoice
    customer_name: str
    total: Decimal
    issued_at: datetime

    @classmethod
    def from_document(cls, document: IssuedDocument) -> "DocumentSummary":
        return cls(
            id=document.id,
            document_number=document.document_number,
            document_type=document.document_type,
            template=document.template,
            customer_name=document.customer_name,
            total=document.total,
            issued_at=document.issued_at,
        )


class OperationResponse(BaseModel):
    """Generic success response."""

    success: bool


def get_current_user(x_user_id: str | None = Header(default=None)) -> UserPublic:
    """Resolve the calling user from the X-User-Id header.

    Raises:
        HTTPException: 401 if the header is missing or the user is unknown
    """
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-User-Id header")
    user = auth_service.get_user(x_user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")
    return user


def get_admin_user(user: UserPublic = Depends(get_current_user)) -> UserPublic:  # noqa: B008
    """Require the calling user to be an administrator.

    Raises:
        HTTPException: 403 for non-admin users
    """
    try:
        auth_service.require_admin(user)
    except AuthError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e
    return user


@app.get("/health", response_model=HealthResponse, tags=["Health"])
def health_check() -> HealthResponse:
    """Health check endpoint for liveness probe.

    Returns:
        Health status information
    """
    return HealthResponse(
        status="healthy", version=settings.service_version, service=settings.service_name
    )


@app.get("/ready", response_model=ReadinessResponse, tags=["Health"])
def readiness_check() -> ReadinessResponse:
    """Readiness check endpoint for Kubernetes readiness probe.

    Returns:
        Readiness status (false while the record store is unreachable)
    """
    return ReadinessResponse(ready=record_store.health_check())


@app.get("/metrics", tags=["Monitoring"])
def get_metrics() -> Response:
    """Prometheus metrics endpoint.

    Returns:
        Prometheus metrics in text format
    """
    metrics_data, content_type = metrics.get_metrics()
    return Response(content=metrics_data, media_type=content_type)


@app.post("/api/v1/auth/login", response_model=UserPublic, tags=["Auth"])
def login(payload: LoginRequest) -> UserPublic:
    """Log in with email and password.

    The same 401 is returned for an unknown email and a wrong password.
    """
    result = auth_service.login(payload.email, payload.password)
    if not result.success or result.user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=result.error)
    return result.user


@app.put("/api/v1/profile", response_model=UserPublic, tags=["Auth"])
def update_profile(
    payload: ProfileUpdateRequest,
    user: UserPublic = Depends(get_current_user),  # noqa: B008
) -> UserPublic:
    """Change the caller's email and, optionally, password."""
    result = auth_service.update_user(user.id, payload.email, payload.password)
    if not result.success or result.user is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=result.error)
    return result.user


@app.get("/api/v1/users", response_model=list[UserPublic], tags=["Users"])
def list_users(admin: UserPublic = Depends(get_admin_user)) -> list[UserPublic]:  # noqa: B008
    """List all tenant accounts, newest first (admin only)."""
    return auth_service.list_users()


@app.post(
    "/api/v1/users",
    response_model=UserPublic,
    status_code=status.HTTP_201_CREATED,
    tags=["Users"],
)
def create_user(
    payload: UserCreateRequest,
    admin: UserPublic = Depends(get_admin_user),  # noqa: B008
) -> UserPublic:
    """Create a tenant account with its empty issuer profile (admin only)."""
    result = auth_service.create_user(payload.email, payload.password, payload.role, payload.logo)
    if not result.success or result.user is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=result.error)
    return result.user


@app.put("/api/v1/users/{user_id}", response_model=UserPublic, tags=["Users"])
def update_user(
    user_id: str,
    payload: UserUpdateRequest,
    admin: UserPublic = Depends(get_admin_user),  # noqa: B008
) -> UserPublic:
    """Update a tenant account (admin only)."""
    if auth_service.get_user(user_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    result = auth_service.update_user(user_id, payload.email, payload.password, payload.role)
    if not result.success or result.user is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=result.error)
    return result.user


@app.delete("/api/v1/users/{user_id}", response_model=OperationResponse, tags=["Users"])
def delete_user(
    user_id: str,
    admin: UserPublic = Depends(get_admin_user),  # noqa: B008
) -> OperationResponse:
    """Delete a tenant account with all its records (admin only)."""
    result = auth_service.delete_user(user_id)
    if not result.success:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.error)
    return OperationResponse(success=True)


@app.get("/api/v1/issuer", response_model=IssuerProfile, tags=["Issuer"])
def get_issuer(user: UserPublic = Depends(get_current_user)) -> IssuerProfile:  # noqa: B008
    """Get the caller's issuer profile."""
    return issuance_service.get_issuer_profile(user.id)


@app.put("/api/v1/issuer", response_model=IssuerProfile, tags=["Issuer"])
def save_issuer(
    payload: IssuerProfile,
    user: UserPublic = Depends(get_current_user),  # noqa: B008
) -> IssuerProfile:
    """Save the caller's issuer profile.

    Legal name, tax id and email are mandatory (422 otherwise).
    """
    result = issuance_service.save_issuer_profile(user.id, payload)
    if not result.success:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=result.error)
    return payload


@app.post("/api/v1/issuer/logo", response_model=OperationResponse, tags=["Issuer"])
async def upload_logo(
    file: UploadFile = File(..., description="Logo image (PNG, JPEG), max 500KB"),  # noqa: B008
    user: UserPublic = Depends(get_current_user),  # noqa: B008
) -> OperationResponse:
    """Upload the issuer logo.

    - Returns 400 if the file has no image content type
    - Returns 422 if the file is empty, too large or not a readable image
    """
    if not file.content_type or not file.content_type.startswith("image/"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid file type: {file.content_type}. Only images are supported.",
        )

    content = await file.read()
    metrics.logo_upload_size_bytes.observe(len(content))

    result = issuance_service.set_logo(user.id, content, file.content_type)
    if not result.success:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=result.error)
    return OperationResponse(success=True)


@app.post("/api/v1/documents/totals", response_model=TotalsPreview, tags=["Documents"])
def preview_totals(
    payload: TotalsRequest,
    user: UserPublic = Depends(get_current_user),  # noqa: B008
) -> TotalsPreview:
    """Compute subtotal, tax and total for a draft."""
    return issuance_service.preview_totals(
        payload.items, payload.document_type, payload.tax_rate_percent
    )


@app.post(
    "/api/v1/documents",
    response_model=IssueResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Documents"],
)
def issue_document(
    payload: Document,
    user: UserPublic = Depends(get_current_user),  # noqa: B008
) -> IssueResponse:
    """Issue an invoice, quote or receipt.

    ## Error Handling

    - Returns 422 with the list of problems if the draft or issuer profile is incomplete
    - Returns 500 if the document or the advanced numbering could not be saved
    """
    result = issuance_service.issue(user.id, payload)
    if not result.success or result.document is None or result.file_name is None:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=result.error)

    return IssueResponse(
        document=result.document,
        file_name=result.file_name,
        pdf_url=f"/api/v1/documents/{result.document.id}/pdf",
        logo_omitted=result.logo_omitted,
    )


@app.get("/api/v1/documents", response_model=list[DocumentSummary], tags=["Documents"])
def list_documents(user: UserPublic = Depends(get_current_user)) -> list[DocumentSummary]:  # noqa: B008
    """List the caller's documents, newest first."""
    return [DocumentSummary.from_document(d) for d in issuance_service.list_documents(user.id)]


@app.get("/api/v1/documents/{document_id}/pdf", tags=["Documents"])
def download_document(
    document_id: str,
    user: UserPublic = Depends(get_current_user),  # noqa: B008
) -> Response:
    """Download the PDF of an issued document, rendered as it was issued."""
    rendered = issuance_service.render_issued(user.id, document_id)
    if rendered is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
    return Response(
        content=rendered.content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{rendered.file_name}"'},
    )


@app.delete("/api/v1/documents/{document_id}", response_model=OperationResponse, tags=["Documents"])
def delete_document(
    document_id: str,
    user: UserPublic = Depends(get_current_user),  # noqa: B008
) -> OperationResponse:
    """Delete one of the caller's documents."""
    result = issuance_service.delete_document(user.id, document_id)
    if not result.success:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.error)
    return OperationResponse(success=True)


def main() -> None:
    """Serve the API with uvicorn."""
    import uvicorn

    logger.info(f"Starting {settings.service_name} {settings.service_version} ({settings.environment})")
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
