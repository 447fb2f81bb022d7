"""
store.py – Key-value persistence contract for the aggregates.

Every aggregate serialises its *whole* collection to a JSON-compatible value
and saves it under one key after each successful mutation via
``save_snapshot``.  A failed write is logged, never raised; the in-memory
collection stays authoritative.  On start-up the collection is loaded back;
corrupt or absent data degrades to a built-in default instead of propagating
an error.

Backends
--------
* ``MemoryStore``   – process-local dict of JSON text (tests, embedding).
* ``JsonFileStore`` – one ``<prefix><key>.json`` file per key.
* ``PostgresStore`` – ``kv_store`` table, see ``waterway.common.db``.

Usage
-----
>>> store = MemoryStore()
>>> store.save("hotspots", [{"id": "Cau1", "name": "Bridge 1", "pollution_level": 42}])
>>> store.load("hotspots")[0]["id"]
'Cau1'
"""

import json
import logging
import pathlib
from typing import Any, Callable, Protocol, TypeVar

from pydantic import TypeAdapter, ValidationError

from waterway.common.config import Settings, settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class KeyValueStore(Protocol):
    """Anything that can load and save a JSON-compatible value by key."""

    def load(self, key: str) -> Any | None:
        ...

    def save(self, key: str, value: Any) -> None:
        ...


class StoreError(RuntimeError):
    """Raised when a backend cannot read or write a key."""


class MemoryStore:
    """
    In-process store that keeps each value as serialised JSON text.

    Values are round-tripped through ``json`` on every save/load so callers
    observe the same snapshot semantics as a real backend: mutating a loaded
    value never changes what is stored.
    """

    def __init__(self, key_prefix: str = "") -> None:
        self._key_prefix = key_prefix
        self._data: dict[str, str] = {}

    def load(self, key: str) -> Any | None:
        raw = self._data.get(self._key_prefix + key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StoreError(f"Corrupt value stored under {key!r}") from exc

    def save(self, key: str, value: Any) -> None:
        self._data[self._key_prefix + key] = json.dumps(value)


class JsonFileStore:
    """Store that writes one pretty-printed JSON file per key under ``directory``."""

    def __init__(self, directory: str | pathlib.Path, key_prefix: str = "") -> None:
        self._directory = pathlib.Path(directory)
        self._key_prefix = key_prefix

    def _path(self, key: str) -> pathlib.Path:
        return self._directory / f"{self._key_prefix}{key}.json"

    def load(self, key: str) -> Any | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as handle:
                return json.load(handle)
        # ValueError covers both JSONDecodeError and UnicodeDecodeError
        except (OSError, ValueError) as exc:
            raise StoreError(f"Could not read {path}: {exc}") from exc

    def save(self, key: str, value: Any) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            with tmp_path.open("w", encoding="utf-8") as handle:
                json.dump(value, handle, ensure_ascii=False, indent=2)
            tmp_path.replace(path)
        except OSError as exc:
            raise StoreError(f"Could not write {path}: {exc}") from exc


def load_or_default(
    store: KeyValueStore,
    key: str,
    adapter: TypeAdapter[T],
    default: Callable[[], T],
) -> T:
    """
    Load ``key`` from ``store`` and validate it with ``adapter``.

    Absent keys, unreadable values and payloads that fail validation all fall
    back to ``default()``.  Failures are logged, never raised.

    Parameters
    ----------
    store:   Backend to read from.
    key:     Aggregate key (``hotspots``, ``events``, ``people``, …).
    adapter: pydantic ``TypeAdapter`` describing the persisted shape.
    default: Zero-argument factory for the fallback value.
    """
    try:
        raw = store.load(key)
    except StoreError as exc:
        logger.warning("Falling back to default for %s: %s", key, exc)
        return default()

    if raw is None:
        logger.debug("No stored value for %s, using default", key)
        return default()

    try:
        return adapter.validate_python(raw)
    except ValidationError as exc:
        logger.warning(
            "Stored value for %s failed validation, using default",
            key,
            extra={"key": key, "errors": exc.error_count()},
        )
        return default()


def save_snapshot(store: KeyValueStore, key: str, value: Any) -> bool:
    """
    Write an aggregate snapshot after a mutation has already been applied.

    The write is fire-and-forget: a ``StoreError`` is logged and swallowed so
    the in-memory state and the caller's result stay consistent.  The next
    successful save of the same key carries the change.  Returns whether the
    write succeeded.
    """
    try:
        store.save(key, value)
    except StoreError as exc:
        logger.error(
            "Could not persist %s, keeping in-memory state: %s",
            key,
            exc,
            extra={"key": key},
        )
        return False
    return True


def build_store(config: Settings = settings) -> KeyValueStore:
    """Instantiate the backend selected by ``config.store_backend``."""
    if config.store_backend == "json":
        return JsonFileStore(config.store_json_dir, key_prefix=config.store_key_prefix)
    if config.store_backend == "postgres":
        from waterway.common.db import PostgresStore

        return PostgresStore(key_prefix=config.store_key_prefix)
    return MemoryStore(key_prefix=config.store_key_prefix)
