"""Process-local record store.

Default backend for development and tests. Records are deep-copied on
the way in and out so callers never share state with the store.
"""

import logging

from services.documents.schema import IssuedDocument, IssuerProfile, User
from services.records.base import RecordStore, StoreResult

logger = logging.getLogger(__name__)


class InMemoryRecordStore(RecordStore):
    """Dictionary-backed record store."""

    def __init__(self) -> None:
        self._users: dict[str, User] = {}
        self._issuers: dict[str, IssuerProfile] = {}
        self._documents: dict[str, dict[str, IssuedDocument]] = {}

    @property
    def backend_name(self) -> str:
        return "memory"

    def health_check(self) -> bool:
        return True

    def clear(self) -> None:
        """Drop every record."""
        self._users.clear()
        self._issuers.clear()
        self._documents.clear()

    def get_user(self, user_id: str) -> User | None:
        user = self._users.get(user_id)
        return user.model_copy(deep=True) if user else None

    def get_user_by_email(self, email: str) -> User | None:
        for user in self._users.values():
            if user.email == email:
                return user.model_copy(deep=True)
        return None

    def list_users(self) -> list[User]:
        users = sorted(self._users.values(), key=lambda u: u.created_at, reverse=True)
        return [u.model_copy(deep=True) for u in users]

    def save_user(self, user: User) -> StoreResult:
        self._users[user.id] = user.model_copy(deep=True)
        return StoreResult(success=True)

    def delete_user(self, user_id: str) -> StoreResult:
        if self._users.pop(user_id, None) is None:
            return StoreResult(success=False, error=f"User not found: {user_id}")
        self._issuers.pop(user_id, None)
        self._documents.pop(user_id, None)
        logger.info(f"Deleted user {user_id} and its records")
        return StoreResult(success=True)

    def get_issuer_profile(self, tenant_id: str) -> IssuerProfile | None:
        profile = self._issuers.get(tenant_id)
        return profile.model_copy(deep=True) if profile else None

    def save_issuer_profile(self, tenant_id: str, profile: IssuerProfile) -> StoreResult:
        self._issuers[tenant_id] = profile.model_copy(deep=True)
        return StoreResult(success=True)

    def save_issued_document(self, document: IssuedDocument) -> StoreResult:
        self._documents.setdefault(document.owner_id, {})[document.id] = document.model_copy(deep=True)
        return StoreResult(success=True)

    def list_issued_documents(self, tenant_id: str) -> list[IssuedDocument]:
        documents = sorted(
            self._documents.get(tenant_id, {}).values(), key=lambda d: d.issued_at, reverse=True
        )
        return [d.model_copy(deep=True) for d in documents]

    def get_issued_document(self, tenant_id: str, document_id: str) -> IssuedDocument | None:
        document = self._documents.get(tenant_id, {}).get(document_id)
        return document.model_copy(deep=True) if document else None

    def delete_issued_document(self, tenant_id: str, document_id: str) -> StoreResult:
        if self._documents.get(tenant_id, {}).pop(document_id, None) is None:
            return StoreResult(success=False, error=f"Document not found: {document_id}")
        return StoreResult(success=True)
