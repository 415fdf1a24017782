"""Factory for creating the record store based on configuration."""

import logging

from services.records.base import RecordStore
from services.records.memory_store import InMemoryRecordStore
from services.records.minio_store import ObjectRecordStore
from services.shared.config import Settings
from services.storage.service import StorageService

logger = logging.getLogger(__name__)


def create_record_store(settings: Settings) -> RecordStore:
    """Factory function to create the record store.

    Args:
        settings: Application settings with record_store field

    Returns:
        Configured record store instance

    Raises:
        ValueError: If configured backend is unknown
    """
    backend = settings.record_store

    if backend == "memory":
        logger.info("Created record store: memory")
        return InMemoryRecordStore()

    elif backend == "minio":
        storage = StorageService(settings)
        if not storage.is_available():
            logger.warning(
                "MinIO record store has no credentials. "
                "Set APP_STORAGE_ACCESS_KEY and APP_STORAGE_SECRET_KEY."
            )
        logger.info(f"Created record store: minio (bucket {settings.storage_bucket})")
        return ObjectRecordStore(storage)

    else:
        available = ["memory", "minio"]
        raise ValueError(f"Unknown record store: '{backend}'. Available: {', '.join(available)}")
