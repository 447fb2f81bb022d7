"""
db.py – PostgreSQL key-value backend with connection pooling and retry logic.

Architecture
------------
Rather than holding a single connection per process, this module exposes a
``get_pool()`` singleton that manages a psycopg ``ConnectionPool``.  Each
``PostgresStore.load``/``save`` borrows a connection for one statement and
returns it when the ``with pool.connection()`` block exits.

Every aggregate snapshot lives in one row of ``kv_store``::

    key        TEXT PRIMARY KEY
    value      JSONB NOT NULL
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()

Retry logic
-----------
Transient ``OperationalError`` conditions (e.g. PostgreSQL momentarily
unreachable under container restart) get ``settings.db_max_attempts`` tries
in total, sleeping ``db_retry_backoff_s * 2**n`` between them, before being
re-raised as ``StoreError``.

Usage
-----
>>> from waterway.common.db import PostgresStore
>>> store = PostgresStore(key_prefix="krvt_")
>>> store.save("hotspots", [])
"""

import logging
import time
from functools import wraps
from typing import Any, Callable, Iterator, TypeVar

from psycopg.errors import OperationalError
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool

from waterway.common.config import settings
from waterway.common.store import StoreError

logger = logging.getLogger(__name__)

# Lazily initialised on first call to get_pool()
_pool: ConnectionPool | None = None

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS kv_store (
    key        TEXT PRIMARY KEY,
    value      JSONB NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""


def _build_conninfo() -> str:
    """Construct a libpq connection-info string from settings."""
    return (
        f"host={settings.postgres_host} "
        f"port={settings.postgres_port} "
        f"dbname={settings.postgres_db} "
        f"user={settings.postgres_user} "
        f"password={settings.postgres_password}"
    )


def get_pool() -> ConnectionPool:
    """
    Return the module-level connection-pool singleton, creating it on first call.

    Pool sizing is driven by ``settings.db_pool_min`` / ``settings.db_pool_max``.
    """
    global _pool
    if _pool is None:
        logger.info(
            "Initialising PostgreSQL connection pool",
            extra={
                "min_size": settings.db_pool_min,
                "max_size": settings.db_pool_max,
                "host": settings.postgres_host,
                "port": settings.postgres_port,
                "db": settings.postgres_db,
            },
        )
        _pool = ConnectionPool(
            conninfo=_build_conninfo(),
            min_size=settings.db_pool_min,
            max_size=settings.db_pool_max,
            timeout=30,
            reconnect_failed=lambda pool: logger.error("Pool reconnect failed!"),
        )
    return _pool


def close_pool() -> None:
    """Close and forget the pool singleton."""
    global _pool
    if _pool is not None:
        _pool.close()
        _pool = None


# Retry decorator
# =======================================================================

_F = TypeVar("_F", bound=Callable)


def backoff_delays(attempts: int, base_s: float) -> Iterator[float]:
    """Sleep durations between ``attempts`` tries: base, 2*base, 4*base, …"""
    for n in range(attempts - 1):
        yield base_s * 2**n


def _with_retry(fn: _F) -> _F:
    """
    Run a store statement, retrying ``OperationalError`` with exponential back-off.

    Attempt count and base delay are read from ``settings`` on every call.  The
    last failure surfaces as ``StoreError``: ``load_or_default`` then degrades
    to the default collection and ``save_snapshot`` logs it.
    """

    @wraps(fn)
    def _wrapper(*args, **kwargs):
        attempts = settings.db_max_attempts
        delays = backoff_delays(attempts, settings.db_retry_backoff_s)
        last_exc: OperationalError | None = None
        for attempt in range(1, attempts + 1):
            try:
                return fn(*args, **kwargs)
            except OperationalError as exc:
                last_exc = exc
                delay = next(delays, None)
                if delay is None:
                    break
                logger.warning(
                    "%s failed on attempt %d of %d, sleeping %.2fs",
                    fn.__qualname__,
                    attempt,
                    attempts,
                    delay,
                    extra={"error": str(exc)},
                )
                time.sleep(delay)

        logger.error(
            "%s gave up after %d attempts",
            fn.__qualname__,
            attempts,
            extra={"error": str(last_exc)},
        )
        raise StoreError(str(last_exc)) from last_exc

    return _wrapper  # type: ignore[return-value]


# Store
# =======================================================================

class PostgresStore:
    """
    ``KeyValueStore`` backed by the ``kv_store`` table.

    The table is created on first use.  ``save`` is an upsert, so the row for a
    key always holds the most recent snapshot of that aggregate.
    """

    def __init__(self, key_prefix: str = "", pool: ConnectionPool | None = None) -> None:
        self._key_prefix = key_prefix
        self._pool = pool
        self._schema_ready = False

    def _get_pool(self) -> ConnectionPool:
        if self._pool is None:
            self._pool = get_pool()
        return self._pool

    def ensure_schema(self) -> None:
        """Create ``kv_store`` if it does not exist yet. Runs inside the callers' retry."""
        if self._schema_ready:
            return
        with self._get_pool().connection() as conn:
            conn.execute(_CREATE_TABLE_SQL)
        self._schema_ready = True

    @_with_retry
    def load(self, key: str) -> Any | None:
        self.ensure_schema()
        with self._get_pool().connection() as conn:
            row = conn.execute(
                "SELECT value FROM kv_store WHERE key = %s;",
                (self._key_prefix + key,),
            ).fetchone()
        return None if row is None else row[0]

    @_with_retry
    def save(self, key: str, value: Any) -> None:
        self.ensure_schema()
        with self._get_pool().connection() as conn:
            conn.execute(
                """
                INSERT INTO kv_store (key, value)
                VALUES (%s, %s)
                ON CONFLICT (key)
                DO UPDATE SET
                    value      = EXCLUDED.value,
                    updated_at = NOW();
                """,
                (self._key_prefix + key, Jsonb(value)),
            )
        logger.debug("Saved snapshot", extra={"key": self._key_prefix + key})
