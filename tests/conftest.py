from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from services.ooohh import OoohhService
from storage.kv_store import KVStore

NOW = datetime(2020, 2, 15, 0, 0, 0, tzinfo=timezone.utc)


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = NOW) -> None:
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **delta: float) -> datetime:
        self.current = self.current + timedelta(**delta)
        return self.current


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def store(tmp_path) -> KVStore:
    return KVStore(path=tmp_path / "ooohh.db")


@pytest.fixture
def service(store: KVStore, clock: FixedClock) -> OoohhService:
    return OoohhService(store=store, clock=clock)
