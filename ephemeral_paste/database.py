"""
Storage contract for pastes and the process-wide store handle.

Two backends implement the contract: SqlPasteStore (SQLite through
SQLAlchemy) and RedisPasteStore (Redis hash plus a Lua script). The backend
is chosen once from settings and reused for the life of the process.
"""
import logging
import threading
from abc import ABC, abstractmethod
from typing import Optional

from ephemeral_paste.config import Settings, settings
from ephemeral_paste.errors import StorageError
from ephemeral_paste.models import PasteRecord

logger = logging.getLogger(__name__)


class PasteStore(ABC):
    """Persisted pastes with an atomic consume-on-read operation."""

    @abstractmethod
    def create(self, record: PasteRecord) -> None:
        """
        Persist a new paste.

        The caller guarantees the id is unique.

        Raises:
            StorageError: If the backend cannot be reached
        """

    @abstractmethod
    def consume_by_id(self, paste_id: str, now_ms: int) -> Optional[PasteRecord]:
        """
        Fetch a paste and apply its expiry policy in one atomic step.

        Expired pastes and pastes with no views left are deleted and reported
        as missing. View-limited pastes are decremented by one and returned
        with the post-decrement count. Unlimited pastes are returned as is.

        Args:
            paste_id: Unique paste identifier
            now_ms: Current time in epoch milliseconds

        Returns:
            The paste after consumption, or None if unavailable

        Raises:
            StorageError: If the backend cannot be reached
        """

    @abstractmethod
    def health_check(self) -> bool:
        """Round-trip to the backend. Never raises."""

    def close(self) -> None:
        """Release backend resources."""


def build_store(config: Settings) -> PasteStore:
    """
    Create the store selected by configuration.

    Raises:
        StorageError: If the driver is unknown or not configured
    """
    driver = config.resolved_driver()

    if driver == "redis":
        from ephemeral_paste.redis_store import RedisPasteStore

        if not config.REDIS_URL:
            raise StorageError(
                "Redis configuration missing. Set REDIS_URL when DB_DRIVER=redis."
            )
        logger.info("Using Redis paste store")
        return RedisPasteStore.from_url(config.REDIS_URL)

    if driver == "sqlite":
        from ephemeral_paste.sqlite_store import SqlPasteStore

        logger.info("Using SQLite paste store")
        return SqlPasteStore.from_path(config.sqlite_path(), echo=config.DEBUG)

    raise StorageError(f"Unknown DB_DRIVER {driver!r} (expected 'sqlite' or 'redis')")


_store: Optional[PasteStore] = None
_store_lock = threading.Lock()


def get_store() -> PasteStore:
    """Return the process-wide store, creating it on first use."""
    global _store
    if _store is None:
        with _store_lock:
            if _store is None:
                _store = build_store(settings)
    return _store


def reset_store() -> None:
    """Close and forget the process-wide store."""
    global _store
    with _store_lock:
        if _store is not None:
            _store.close()
        _store = None
