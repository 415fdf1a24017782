"""Abstract base class for tenant record stores.

A record store persists users, issuer profiles and issued documents and
hands them back unchanged. Every tenant-owned record is addressed with
an explicit tenant id; there is no ambient "current user".

Reads return None or an empty list when a record is missing, and raise
RecordStoreError when the backend cannot be read. Writes return a
StoreResult instead of raising, so callers can surface the failure
reason without partial state.

Based on Strategy Pattern:
https://refactoring.guru/design-patterns/strategy/python
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel

from services.documents.schema import IssuedDocument, IssuerProfile, User


class StoreResult(BaseModel):
    """Result of a record store write.

    Attributes:
        success: Whether operation succeeded
        error: Human-readable reason if operation failed
    """

    success: bool
    error: str | None = None


class RecordStore(ABC):
    """Persistence interface for users, issuer profiles and documents."""

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Backend identifier for logging (e.g., 'memory', 'minio')."""

    @abstractmethod
    def health_check(self) -> bool:
        """Check if the backend is reachable."""

    # Users

    @abstractmethod
    def get_user(self, user_id: str) -> User | None:
        """Get a user by id."""

    @abstractmethod
    def get_user_by_email(self, email: str) -> User | None:
        """Get a user by email (exact match)."""

    @abstractmethod
    def list_users(self) -> list[User]:
        """List all users, newest first."""

    @abstractmethod
    def save_user(self, user: User) -> StoreResult:
        """Insert or replace a user."""

    @abstractmethod
    def delete_user(self, user_id: str) -> StoreResult:
        """Delete a user together with its issuer profile and documents."""

    # Issuer profiles

    @abstractmethod
    def get_issuer_profile(self, tenant_id: str) -> IssuerProfile | None:
        """Get the issuer profile of a tenant."""

    @abstractmethod
    def save_issuer_profile(self, tenant_id: str, profile: IssuerProfile) -> StoreResult:
        """Insert or replace the issuer profile of a tenant."""

    # Issued documents

    @abstractmethod
    def save_issued_document(self, document: IssuedDocument) -> StoreResult:
        """Persist an issued document under its owner."""

    @abstractmethod
    def list_issued_documents(self, tenant_id: str) -> list[IssuedDocument]:
        """List a tenant's documents, newest first."""

    @abstractmethod
    def get_issued_document(self, tenant_id: str, document_id: str) -> IssuedDocument | None:
        """Get one of a tenant's documents."""

    @abstractmethod
    def delete_issued_document(self, tenant_id: str, document_id: str) -> StoreResult:
        """Delete one of a tenant's documents."""
