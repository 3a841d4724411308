"""Tests for the SQLite paste store specifics."""

from pathlib import Path

import pytest
from conftest import NOW_MS, make_record
from sqlalchemy import create_engine, select, text

from ephemeral_paste.errors import StorageError
from ephemeral_paste.sqlite_store import SqlPasteStore, pastes_table


def _row(store: SqlPasteStore, paste_id: str = "abcdefghij"):
    with store.engine.connect() as conn:
        return (
            conn.execute(select(pastes_table).where(pastes_table.c.id == paste_id))
            .mappings()
            .first()
        )


class TestPersistence:
    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        db_path = tmp_path / "nested" / "dir" / "pastes.sqlite"

        store = SqlPasteStore.from_path(str(db_path))
        store.close()

        assert db_path.exists()

    def test_survives_reopen(self, tmp_path: Path) -> None:
        db_path = str(tmp_path / "pastes.sqlite")
        first = SqlPasteStore.from_path(db_path)
        first.create(make_record(remaining_views=2))
        first.close()

        second = SqlPasteStore.from_path(db_path)
        record = second.consume_by_id("abcdefghij", NOW_MS)
        second.close()

        assert record is not None
        assert record.remaining_views == 1

    def test_null_columns_for_unlimited_paste(self, sqlite_store: SqlPasteStore) -> None:
        sqlite_store.create(make_record())

        row = _row(sqlite_store)

        assert row["expires_at_ms"] is None
        assert row["remaining_views"] is None

    def test_decrement_is_persisted(self, sqlite_store: SqlPasteStore) -> None:
        sqlite_store.create(make_record(remaining_views=3))

        sqlite_store.consume_by_id("abcdefghij", NOW_MS)

        assert _row(sqlite_store)["remaining_views"] == 2

    def test_dead_row_is_deleted(self, sqlite_store: SqlPasteStore) -> None:
        sqlite_store.create(make_record(remaining_views=1))

        sqlite_store.consume_by_id("abcdefghij", NOW_MS)
        assert _row(sqlite_store) is not None

        sqlite_store.consume_by_id("abcdefghij", NOW_MS)
        assert _row(sqlite_store) is None

    def test_uses_wal_journal(self, sqlite_store: SqlPasteStore) -> None:
        with sqlite_store.engine.connect() as conn:
            mode = conn.execute(text("PRAGMA journal_mode")).scalar()

        assert mode == "wal"


class TestMalformedRows:
    def test_unparseable_views_are_not_found_and_untouched(self, sqlite_store: SqlPasteStore) -> None:
        with sqlite_store.engine.begin() as conn:
            conn.execute(
                text(
                    "INSERT INTO pastes (id, content, created_at_ms, expires_at_ms, remaining_views) "
                    "VALUES ('abcdefghij', 'x', :now, NULL, 'lots')"
                ),
                {"now": NOW_MS},
            )

        assert sqlite_store.consume_by_id("abcdefghij", NOW_MS) is None
        assert _row(sqlite_store)["remaining_views"] == "lots"


class TestFailures:
    def test_duplicate_id_raises_storage_error(self, sqlite_store: SqlPasteStore) -> None:
        sqlite_store.create(make_record())

        with pytest.raises(StorageError):
            sqlite_store.create(make_record())

    def test_out_of_range_integer_raises_storage_error(self, sqlite_store: SqlPasteStore) -> None:
        with pytest.raises(StorageError):
            sqlite_store.create(make_record(remaining_views=2**63))

        assert _row(sqlite_store) is None

    def test_unopenable_database_raises_storage_error(self, tmp_path: Path) -> None:
        # A directory cannot be opened as a database file
        engine = create_engine(f"sqlite:///{tmp_path}")

        with pytest.raises(StorageError):
            SqlPasteStore(engine)

    def test_health_check_reports_failure(self, sqlite_store: SqlPasteStore, tmp_path: Path) -> None:
        sqlite_store.engine = create_engine(f"sqlite:///{tmp_path}")

        assert sqlite_store.health_check() is False
