"""
test_db_retry.py – Unit tests for the PostgreSQL retry policy and pool teardown.

Runs offline: the decorated functions never touch a real connection.
"""

import pytest
from psycopg.errors import OperationalError

from waterway.common import db
from waterway.common.config import settings
from waterway.common.store import StoreError


@pytest.fixture()
def sleeps(monkeypatch):
    """Record back-off sleeps instead of waiting."""
    recorded: list[float] = []
    monkeypatch.setattr(db.time, "sleep", recorded.append)
    monkeypatch.setattr(settings, "db_max_attempts", 3)
    monkeypatch.setattr(settings, "db_retry_backoff_s", 0.5)
    return recorded


def _flaky(failures: int):
    calls = {"n": 0}

    @db._with_retry
    def statement():
        calls["n"] += 1
        if calls["n"] <= failures:
            raise OperationalError("server closed the connection")
        return "ok"

    return statement, calls


# ── Back-off schedule ──────────────────────────────────────────────────────────

class TestBackoffDelays:

    def test_doubles_between_attempts(self):
        assert list(db.backoff_delays(4, 0.5)) == [0.5, 1.0, 2.0]

    def test_single_attempt_never_sleeps(self):
        assert list(db.backoff_delays(1, 0.5)) == []


# ── _with_retry ────────────────────────────────────────────────────────────────

class TestWithRetry:

    def test_transient_failures_are_retried(self, sleeps):
        statement, calls = _flaky(failures=2)
        assert statement() == "ok"
        assert calls["n"] == 3
        assert sleeps == [0.5, 1.0]

    def test_persistent_failure_becomes_store_error(self, sleeps):
        statement, calls = _flaky(failures=10)
        with pytest.raises(StoreError, match="server closed"):
            statement()
        assert calls["n"] == 3
        assert sleeps == [0.5, 1.0]

    def test_other_errors_propagate_immediately(self, sleeps):
        @db._with_retry
        def statement():
            raise KeyError("boom")

        with pytest.raises(KeyError):
            statement()
        assert sleeps == []


# ── close_pool ─────────────────────────────────────────────────────────────────

class TestClosePool:

    def test_closes_and_forgets_singleton(self, monkeypatch):
        closed = []

        class _Pool:
            def close(self):
                closed.append(True)

        monkeypatch.setattr(db, "_pool", _Pool())
        db.close_pool()
        assert closed == [True]
        assert db._pool is None

    def test_noop_without_pool(self, monkeypatch):
        monkeypatch.setattr(db, "_pool", None)
        db.close_pool()
        assert db._pool is None
