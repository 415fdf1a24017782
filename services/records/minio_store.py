"""Record store backed by S3-compatible object storage.

Each record is one JSON object in the configured bucket:

    users/<user_id>.json
    tenants/<tenant_id>/issuer.json
    tenants/<tenant_id>/documents/<document_id>.json

Issued documents embed their issuer snapshot, so history stays accurate
after the tenant's profile changes.
"""

import logging

from pydantic import BaseModel

from services.documents.schema import IssuedDocument, IssuerProfile, User
from services.records.base import RecordStore, StoreResult
from services.shared.errors import RecordStoreError
from services.storage.service import StorageService

logger = logging.getLogger(__name__)


def _user_key(user_id: str) -> str:
    return f"users/{user_id}.json"


def _issuer_key(tenant_id: str) -> str:
    return f"tenants/{tenant_id}/issuer.json"


def _documents_prefix(tenant_id: str) -> str:
    return f"tenants/{tenant_id}/documents/"


def _document_key(tenant_id: str, document_id: str) -> str:
    return f"{_documents_prefix(tenant_id)}{document_id}.json"


class ObjectRecordStore(RecordStore):
    """Record store persisting JSON objects through StorageService."""

    def __init__(self, storage: StorageService) -> None:
        """Initialize record store.

        Args:
            storage: Configured object storage service
        """
        self.storage = storage

    @property
    def backend_name(self) -> str:
        return "minio"

    def health_check(self) -> bool:
        return self.storage.health_check()

    def _get(self, key: str) -> bytes | None:
        try:
            return self.storage.download_bytes(key)
        except Exception as e:
            logger.error(f"Could not read {key}: {e}")
            raise RecordStoreError(f"Error reading {key}: {e}") from e

    def _list(self, prefix: str) -> list[str]:
        try:
            return self.storage.list_object_names(prefix)
        except Exception as e:
            logger.error(f"Could not list {prefix}: {e}")
            raise RecordStoreError(f"Error listing {prefix}: {e}") from e

    def _put(self, key: str, record: BaseModel) -> StoreResult:
        # Content type is detected from the .json key
        result = self.storage.upload_bytes(data=record.model_dump_json().encode("utf-8"), object_name=key)
        return StoreResult(success=result.success, error=result.error)

    def _delete(self, key: str) -> StoreResult:
        result = self.storage.delete_object(key)
        return StoreResult(success=result.success, error=result.error)

    def get_user(self, user_id: str) -> User | None:
        data = self._get(_user_key(user_id))
        return User.model_validate_json(data) if data is not None else None

    def get_user_by_email(self, email: str) -> User | None:
        return next((u for u in self.list_users() if u.email == email), None)

    def list_users(self) -> list[User]:
        users = []
        for key in self._list("users/"):
            data = self._get(key)
            if data is not None:
                users.append(User.model_validate_json(data))
        return sorted(users, key=lambda u: u.created_at, reverse=True)

    def save_user(self, user: User) -> StoreResult:
        return self._put(_user_key(user.id), user)

    def delete_user(self, user_id: str) -> StoreResult:
        if self.get_user(user_id) is None:
            return StoreResult(success=False, error=f"User not found: {user_id}")

        for key in self._list(f"tenants/{user_id}/"):
            result = self._delete(key)
            if not result.success:
                return result

        result = self._delete(_user_key(user_id))
        if result.success:
            logger.info(f"Deleted user {user_id} and its records")
        return result

    def get_issuer_profile(self, tenant_id: str) -> IssuerProfile | None:
        data = self._get(_issuer_key(tenant_id))
        return IssuerProfile.model_validate_json(data) if data is not None else None

    def save_issuer_profile(self, tenant_id: str, profile: IssuerProfile) -> StoreResult:
        return self._put(_issuer_key(tenant_id), profile)

    def save_issued_document(self, document: IssuedDocument) -> StoreResult:
        return self._put(_document_key(document.owner_id, document.id), document)

    def list_issued_documents(self, tenant_id: str) -> list[IssuedDocument]:
        documents = []
        for key in self._list(_documents_prefix(tenant_id)):
            data = self._get(key)
            if data is not None:
                documents.append(IssuedDocument.model_validate_json(data))
        return sorted(documents, key=lambda d: d.issued_at, reverse=True)

    def get_issued_document(self, tenant_id: str, document_id: str) -> IssuedDocument | None:
        data = self._get(_document_key(tenant_id, document_id))
        return IssuedDocument.model_validate_json(data) if data is not None else None

    def delete_issued_document(self, tenant_id: str, document_id: str) -> StoreResult:
        if self.get_issued_document(tenant_id, document_id) is None:
            return StoreResult(success=False, error=f"Document not found: {document_id}")
        return self._delete(_document_key(tenant_id, document_id))
