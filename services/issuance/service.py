"""Document issuance: validation, totals, numbering, rendering and persistence.

Issuing follows a fixed order. Checks run first and mutate nothing.
Then totals are computed, a number is allocated and the PDF is rendered.
Finally the document is saved, and only after that the advanced issuer
profile. A failed document save therefore never consumes a number.

The read-allocate-write cycle is not atomic: two concurrent issuances
for the same tenant and type can receive the same number (see
services.numbering.allocator).
"""

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from decimal import Decimal

from prometheus_client import Counter
from pydantic import BaseModel

from services.documents.money import format_summary_amount
from services.documents.schema import (
    Document,
    DocumentItem,
    DocumentType,
    IssuedDocument,
    IssuerProfile,
)
from services.documents.validation import (
    ISSUER_NOT_CONFIGURED,
    validate_document_for_issuance,
    validate_issuer,
    validate_logo,
)
from services.numbering.allocator import allocate
from services.records.base import RecordStore, StoreResult
from services.rendering.logo import LogoDecodeError, decode_logo, encode_logo, logo_payload
from services.rendering.service import DocumentRenderer, RenderResult
from services.shared.config import Settings
from services.shared.errors import DocumentValidationError, RecordStoreError
from services.totals.calculator import compute_totals

logger = logging.getLogger(__name__)

documents_issued_total = Counter(
    "documents_issued_total",
    "Total document issuance attempts",
    ["document_type", "status"],  # success, invalid, failed
)


class TotalsPreview(BaseModel):
    """Totals of a draft plus the summary-screen display string."""

    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal
    display_total: str


class IssuanceResult(BaseModel):
    """Result of issuing a document.

    Attributes:
        success: Whether the document and the advanced sequence were saved
        document: Issued document (set whenever the document was saved)
        pdf: Rendered PDF bytes
        file_name: Suggested PDF file name
        logo_omitted: True when the issuer logo could not be rendered
        error: Failure reason
    """

    success: bool
    document: IssuedDocument | None = None
    pdf: bytes | None = None
    file_name: str | None = None
    logo_omitted: bool = False
    error: str | None = None


class IssuanceService:
    """Issues, lists, re-renders and deletes a tenant's documents."""

    def __init__(self, settings: Settings, store: RecordStore, renderer: DocumentRenderer) -> None:
        """Initialize issuance service.

        Args:
            settings: Application settings
            store: Record store for issuer profiles and documents
            renderer: Document renderer
        """
        self.settings = settings
        self.store = store
        self.renderer = renderer

    @staticmethod
    def preview_totals(
        items: Iterable[DocumentItem], document_type: DocumentType, tax_rate_percent: Decimal
    ) -> TotalsPreview:
        totals = compute_totals(items, document_type, tax_rate_percent)
        return TotalsPreview(
            subtotal=totals.subtotal,
            tax_amount=totals.tax_amount,
            total=totals.total,
            display_total=format_summary_amount(totals.total),
        )

    def issue(self, tenant_id: str, document: Document) -> IssuanceResult:
        """Issue a document for a tenant.

        Args:
            tenant_id: Owner of the document
            document: Draft to issue

        Returns:
            IssuanceResult; on storage failure success is False with the reason

        Raises:
            DocumentValidationError: If the draft or the issuer profile is incomplete
        """
        doc_type = document.document_type.value
        try:
            issuer = self.store.get_issuer_profile(tenant_id)
        except RecordStoreError as e:
            documents_issued_total.labels(document_type=doc_type, status="failed").inc()
            return IssuanceResult(success=False, error=f"Error loading issuer profile: {e}")

        try:
            validate_document_for_issuance(document, issuer)
            if issuer is None:
                raise DocumentValidationError([ISSUER_NOT_CONFIGURED])
        except DocumentValidationError:
            documents_issued_total.labels(document_type=doc_type, status="invalid").inc()
            raise

        totals = compute_totals(document.items, document.document_type, document.tax_rate_percent)
        allocation = allocate(issuer, document.document_type)
        issued_at = datetime.now(UTC)

        issued = IssuedDocument.model_validate(
            {
                **document.model_dump(),
                "document_number": allocation.document_number,
                "owner_id": tenant_id,
                "issued_at": issued_at,
                "total": totals.total,
                "issuer_snapshot": issuer.model_copy(deep=True),
            }
        )
        rendered = self.renderer.render(
            issued, issued.issuer_snapshot, issued.document_number, issued_at.date()
        )

        saved = self.store.save_issued_document(issued)
        if not saved.success:
            documents_issued_total.labels(document_type=doc_type, status="failed").inc()
            logger.error(f"Could not save {issued.document_number} for {tenant_id}: {saved.error}")
            return IssuanceResult(success=False, error=f"Error saving document: {saved.error}")

        advanced = self.store.save_issuer_profile(tenant_id, allocation.issuer)
        if not advanced.success:
            documents_issued_total.labels(document_type=doc_type, status="failed").inc()
            logger.error(
                f"Saved {issued.document_number} for {tenant_id} but could not advance "
                f"the {doc_type} sequence: {advanced.error}"
            )
            return IssuanceResult(
                success=False,
                document=issued,
                pdf=rendered.content,
                file_name=rendered.file_name,
                logo_omitted=rendered.logo_omitted,
                error=(
                    f"Document {issued.document_number} saved but the {doc_type} "
                    f"sequence was not advanced: {advanced.error}"
                ),
            )

        documents_issued_total.labels(document_type=doc_type, status="success").inc()
        logger.info(f"Issued {issued.document_number} ({doc_type}) for {tenant_id}")

        return IssuanceResult(
            success=True,
            document=issued,
            pdf=rendered.content,
            file_name=rendered.file_name,
            logo_omitted=rendered.logo_omitted,
        )

    def list_documents(self, tenant_id: str) -> list[IssuedDocument]:
        return self.store.list_issued_documents(tenant_id)

    def render_issued(self, tenant_id: str, document_id: str) -> RenderResult | None:
        """Re-render a document from history.

        Uses the stored issuer snapshot, number and issue date, so the
        output matches what was produced at issuance.

        Returns:
            RenderResult, or None if the tenant has no such document

        Raises:
            RecordStoreError: If the record store cannot be read
        """
        issued = self.store.get_issued_document(tenant_id, document_id)
        if issued is None:
            return None
        return self.renderer.render(
            issued, issued.issuer_snapshot, issued.document_number, issued.issued_at.date()
        )

    def delete_document(self, tenant_id: str, document_id: str) -> StoreResult:
        result = self.store.delete_issued_document(tenant_id, document_id)
        if result.success:
            logger.info(f"Deleted document {document_id} of {tenant_id}")
        return result

    def get_issuer_profile(self, tenant_id: str) -> IssuerProfile:
        """Get the tenant's issuer profile, or an empty one if never saved."""
        return self.store.get_issuer_profile(tenant_id) or IssuerProfile()

    def save_issuer_profile(self, tenant_id: str, profile: IssuerProfile) -> StoreResult:
        """Validate and save the tenant's issuer profile.

        Raises:
            DocumentValidationError: If a mandatory field is blank
        """
        validate_issuer(profile)
        if profile.logo:
            self._check_logo(profile.logo)
        result = self.store.save_issuer_profile(tenant_id, profile)
        if result.success:
            logger.info(f"Saved issuer profile of {tenant_id}")
        else:
            logger.error(f"Could not save issuer profile of {tenant_id}: {result.error}")
        return result

    def _check_logo(self, logo: str) -> None:
        try:
            validate_logo(logo_payload(logo), self.settings.logo_max_bytes)
            decode_logo(logo)
        except LogoDecodeError as e:
            raise DocumentValidationError(["El logo no es una imagen válida"]) from e

    def set_logo(self, tenant_id: str, data: bytes, content_type: str) -> StoreResult:
        """Validate an uploaded logo and store it on the issuer profile.

        Raises:
            DocumentValidationError: If the image is empty, too large or undecodable
        """
        validate_logo(data, self.settings.logo_max_bytes)
        logo = encode_logo(data, content_type)
        self._check_logo(logo)

        profile = self.get_issuer_profile(tenant_id)
        profile.logo = logo
        result = self.store.save_issuer_profile(tenant_id, profile)
        if result.success:
            logger.info(f"Updated logo of {tenant_id} ({len(data)} bytes)")
        return result
