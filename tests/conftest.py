"""Shared fixtures: one store per backend, and an HTTP client wired to it."""

from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

import fakeredis
import pytest
from fastapi.testclient import TestClient

from ephemeral_paste import database
from ephemeral_paste.config import settings
from ephemeral_paste.database import PasteStore
from ephemeral_paste.main import app
from ephemeral_paste.models import PasteRecord
from ephemeral_paste.redis_store import RedisPasteStore
from ephemeral_paste.sqlite_store import SqlPasteStore

NOW_MS = 1_700_000_000_000


class RecordingStore(PasteStore):
    """In-memory store that records calls. Not atomic; for service tests only."""

    def __init__(self) -> None:
        self.records: Dict[str, PasteRecord] = {}
        self.consumed: List[Tuple[str, int]] = []

    def create(self, record: PasteRecord) -> None:
        self.records[record.id] = record

    def consume_by_id(self, paste_id: str, now_ms: int) -> Optional[PasteRecord]:
        self.consumed.append((paste_id, now_ms))
        return self.records.get(paste_id)

    def health_check(self) -> bool:
        return True


@pytest.fixture
def sqlite_store(tmp_path: Path) -> Iterator[SqlPasteStore]:
    store = SqlPasteStore.from_path(str(tmp_path / "pastes.sqlite"))
    yield store
    store.close()


@pytest.fixture
def redis_client() -> fakeredis.FakeRedis:
    """Fresh server per test so keys never leak between tests."""
    return fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def redis_store(redis_client: fakeredis.FakeRedis) -> RedisPasteStore:
    return RedisPasteStore(redis_client)


@pytest.fixture(params=["sqlite", "redis"])
def store(request: pytest.FixtureRequest) -> PasteStore:
    """Each contract test runs against both backends."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def recording_store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def test_mode(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "TEST_MODE", True)


@pytest.fixture
def client(store: PasteStore, monkeypatch: pytest.MonkeyPatch, test_mode: None) -> TestClient:
    monkeypatch.setattr(database, "_store", store)
    monkeypatch.setattr(settings, "APP_DOMAIN", None)
    return TestClient(app)


def make_record(
    paste_id: str = "abcdefghij",
    content: str = "hello",
    created_at_ms: int = NOW_MS,
    expires_at_ms: Optional[int] = None,
    remaining_views: Optional[int] = None,
) -> PasteRecord:
    return PasteRecord(
        id=paste_id,
        content=content,
        created_at_ms=created_at_ms,
        expires_at_ms=expires_at_ms,
        remaining_views=remaining_views,
    )
