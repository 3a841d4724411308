"""Tests for driver selection and the process-wide store handle."""

from pathlib import Path

import pytest

from ephemeral_paste import database
from ephemeral_paste.config import Settings
from ephemeral_paste.database import build_store, get_store, reset_store
from ephemeral_paste.errors import StorageError
from ephemeral_paste.redis_store import RedisPasteStore
from ephemeral_paste.sqlite_store import SqlPasteStore


def _settings(**overrides: object) -> Settings:
    config = Settings()
    config.DB_DRIVER = ""
    config.REDIS_URL = None
    for name, value in overrides.items():
        setattr(config, name, value)
    return config


class TestResolvedDriver:
    def test_defaults_to_sqlite(self) -> None:
        assert _settings().resolved_driver() == "sqlite"

    def test_redis_url_selects_redis(self) -> None:
        assert _settings(REDIS_URL="redis://localhost:6379").resolved_driver() == "redis"

    def test_explicit_driver_wins(self) -> None:
        config = _settings(DB_DRIVER="sqlite", REDIS_URL="redis://localhost:6379")

        assert config.resolved_driver() == "sqlite"

    def test_relative_sqlite_path_is_made_absolute(self) -> None:
        assert Path(_settings(SQLITE_DB_PATH="data/x.sqlite").sqlite_path()).is_absolute()


class TestBuildStore:
    def test_sqlite(self, tmp_path: Path) -> None:
        store = build_store(_settings(SQLITE_DB_PATH=str(tmp_path / "p.sqlite")))

        assert isinstance(store, SqlPasteStore)
        store.close()

    def test_redis(self) -> None:
        store = build_store(_settings(REDIS_URL="redis://127.0.0.1:1/0"))

        assert isinstance(store, RedisPasteStore)

    def test_redis_without_url_is_storage_error(self) -> None:
        with pytest.raises(StorageError, match="REDIS_URL"):
            build_store(_settings(DB_DRIVER="redis"))

    def test_unknown_driver_is_storage_error(self) -> None:
        with pytest.raises(StorageError, match="Unknown DB_DRIVER"):
            build_store(_settings(DB_DRIVER="postgres"))


class TestGetStore:
    def test_created_once_and_reused(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(database, "settings", _settings(SQLITE_DB_PATH=str(tmp_path / "p.sqlite")))
        monkeypatch.setattr(database, "_store", None)

        first = get_store()
        second = get_store()

        assert first is second
        reset_store()
        assert database._store is None
