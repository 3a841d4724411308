"""
SQLite paste store.

Uses SQLAlchemy Core. Every transaction opens with BEGIN IMMEDIATE, so two
consumers of the same paste serialize on SQLite's write lock and the
read-check-mutate sequence in consume_by_id never interleaves.
"""
import logging
from pathlib import Path
from typing import Any, Mapping, Optional

from sqlalchemy import (
    BigInteger,
    Column,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    delete,
    event,
    select,
    text,
    update,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from ephemeral_paste.database import PasteStore
from ephemeral_paste.errors import StorageError
from ephemeral_paste.models import PasteRecord

logger = logging.getLogger(__name__)

metadata = MetaData()

pastes_table = Table(
    "pastes",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("content", Text, nullable=False),
    Column("created_at_ms", BigInteger, nullable=False),
    Column("expires_at_ms", BigInteger),  # NULL = no TTL
    Column("remaining_views", Integer),  # NULL = unlimited
)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class SqlPasteStore(PasteStore):
    """Paste store backed by a SQLite database file."""

    def __init__(self, engine: Engine):
        self.engine = engine
        if engine.dialect.name == "sqlite":
            self._configure_sqlite(engine)
        try:
            metadata.create_all(engine)
        except SQLAlchemyError as e:
            logger.error(f"Could not initialize paste table: {type(e).__name__}: {e}")
            raise StorageError("Failed to initialize SQLite store") from e

    @classmethod
    def from_path(cls, path: str, echo: bool = False) -> "SqlPasteStore":
        """Open (or create) the database file at ``path``."""
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Opening SQLite database at {path}")
        return cls(create_engine(f"sqlite:///{path}", echo=echo))

    @staticmethod
    def _configure_sqlite(engine: Engine) -> None:
        """
        Register connection hooks.

        Each new DBAPI connection gets WAL journaling and a busy timeout,
        and pysqlite's implicit transaction handling is switched off so the
        "begin" hook can issue BEGIN IMMEDIATE itself.
        """

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection: Any, connection_record: Any) -> None:
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            # Wait for the write lock instead of failing with SQLITE_BUSY
            cursor.execute("PRAGMA busy_timeout=5000")
            cursor.close()

        @event.listens_for(engine, "begin")
        def begin_immediate(conn: Connection) -> None:
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    def create(self, record: PasteRecord) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    pastes_table.insert().values(
                        id=record.id,
                        content=record.content,
                        created_at_ms=record.created_at_ms,
                        expires_at_ms=record.expires_at_ms,
                        remaining_views=record.remaining_views,
                    )
                )
        except (SQLAlchemyError, OverflowError) as e:
            logger.error(f"Error saving paste {record.id}: {type(e).__name__}: {e}")
            raise StorageError("Failed to save paste") from e

        logger.info(f"Paste {record.id} saved successfully")

    def consume_by_id(self, paste_id: str, now_ms: int) -> Optional[PasteRecord]:
        try:
            with self.engine.begin() as conn:
                row = (
                    conn.execute(select(pastes_table).where(pastes_table.c.id == paste_id))
                    .mappings()
                    .first()
                )
                if row is None:
                    return None
                return self._apply_policy(conn, row, now_ms)
        except (SQLAlchemyError, OverflowError) as e:
            logger.error(f"Error consuming paste {paste_id}: {type(e).__name__}: {e}")
            raise StorageError("Failed to read paste") from e

    def _apply_policy(
        self, conn: Connection, row: Mapping[str, Any], now_ms: int
    ) -> Optional[PasteRecord]:
        paste_id = row["id"]
        created_at_ms = row["created_at_ms"]
        expires_at_ms = row["expires_at_ms"]
        remaining_views = row["remaining_views"]

        if (
            not _is_int(created_at_ms)
            or (expires_at_ms is not None and not _is_int(expires_at_ms))
            or (remaining_views is not None and not _is_int(remaining_views))
        ):
            logger.warning(f"Paste {paste_id} has malformed numeric fields, ignoring it")
            return None

        if expires_at_ms is not None and now_ms >= expires_at_ms:
            logger.info(f"Paste {paste_id} has expired (TTL)")
            self._delete(conn, paste_id)
            return None

        if remaining_views is not None:
            if remaining_views <= 0:
                logger.info(f"Paste {paste_id} view limit exceeded")
                self._delete(conn, paste_id)
                return None
            remaining_views = max(remaining_views - 1, 0)
            conn.execute(
                update(pastes_table)
                .where(pastes_table.c.id == paste_id)
                .values(remaining_views=remaining_views)
            )

        return PasteRecord(
            id=paste_id,
            content=row["content"],
            created_at_ms=created_at_ms,
            expires_at_ms=expires_at_ms,
            remaining_views=remaining_views,
        )

    @staticmethod
    def _delete(conn: Connection, paste_id: str) -> None:
        conn.execute(delete(pastes_table).where(pastes_table.c.id == paste_id))
        logger.info(f"Paste {paste_id} deleted")

    def health_check(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Health check failed: {e}")
        return False

    def close(self) -> None:
        self.engine.dispose()
