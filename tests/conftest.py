"""Shared fixtures: every aggregate backed by a fresh in-memory store."""

import random

import pytest

from waterway.common.models import Participant
from waterway.common.store import MemoryStore, StoreError
from waterway.events.roster import EventRoster
from waterway.hotspots.registry import HotspotRegistry
from waterway.ledger.participants import ParticipantLedger
from waterway.ledger.rewards import RewardCatalog
from waterway.trends.trend_log import TrendLog


@pytest.fixture()
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def registry(store) -> HotspotRegistry:
    return HotspotRegistry(store)


@pytest.fixture()
def ledger(store) -> ParticipantLedger:
    """Ledger seeded with sv01 (40 points) and sv02 (15 points)."""
    return ParticipantLedger(
        store,
        [
            Participant(id="sv01", name="Nguyen Minh Anh", points=40),
            Participant(id="sv02", name="Tran Bao", points=15),
        ],
    )


@pytest.fixture()
def roster(store) -> EventRoster:
    return EventRoster(store)


@pytest.fixture()
def catalog(store) -> RewardCatalog:
    return RewardCatalog(store)


@pytest.fixture()
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture()
def trend_log(store, rng) -> TrendLog:
    """Trend log pre-filled with a full 15-day seeded window."""
    log = TrendLog(store, rng=rng)
    log.seed_history()
    return log


class RawTextStore(MemoryStore):
    """MemoryStore that can also hold text that was never valid JSON."""

    def put_raw(self, key: str, raw: str) -> None:
        self._data[self._key_prefix + key] = raw


class FailingStore(MemoryStore):
    """Reads like an empty MemoryStore; every write fails."""

    def __init__(self) -> None:
        super().__init__()
        self.attempts = 0

    def save(self, key, value) -> None:
        self.attempts += 1
        raise StoreError(f"disk full while writing {key}")


@pytest.fixture()
def raw_store() -> RawTextStore:
    return RawTextStore()


@pytest.fixture()
def failing_store() -> FailingStore:
    return FailingStore()
