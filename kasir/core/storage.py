"""
Persistent key/value storage for the POS ledgers.

Every value is a JSON document stored under a namespaced key. Backends
translate their own failures into StorageReadError / StorageWriteError so
that ledger code never sees a driver exception.
"""
import json
import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Type, TypeVar

import redis
from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from kasir.core.config import Settings
from kasir.core.database import (
    KeyValueEntry,
    check_db_connection,
    get_db_context,
    init_db,
    make_engine,
    make_session_factory,
)
from kasir.core.exceptions import StorageReadError, StorageWriteError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class KeyNames:
    """Namespaced keys for every persisted collection."""

    def __init__(self, namespace: str = "baby-store"):
        self.namespace = namespace
        self.transactions = f"{namespace}-transactions"
        self.daily_sales = f"{namespace}-daily-sales"
        self.cart = f"{namespace}-cart"
        self.stock_movements = f"{namespace}-stock-movements"
        self.product_stocks = f"{namespace}-product-stocks"
        self.products = f"{namespace}-products"

    def __repr__(self):
        return f"<KeyNames(namespace='{self.namespace}')>"


class KeyValueStore(ABC):
    """Contract shared by all storage backends."""

    def get(self, key: str, default: Any = None) -> Any:
        """Get a JSON value, falling back to ``default`` when missing or malformed."""
        raw = self._read(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Malformed JSON stored under {key}, using default: {e}")
            return default

    def set(self, key: str, value: Any) -> None:
        self.set_many({key: value})

    def set_many(self, mapping: Dict[str, Any]) -> None:
        """Write several keys; either all of them land or none do."""
        try:
            encoded = {key: json.dumps(value) for key, value in mapping.items()}
        except (TypeError, ValueError) as e:
            raise StorageWriteError(f"Value is not JSON serializable: {e}")
        self._write(encoded)

    def remove(self, key: str) -> None:
        self._delete(key)

    @abstractmethod
    def lock(self, name: str):
        """Context manager serialising read-modify-write sequences on ``name``."""

    @abstractmethod
    def ping(self) -> bool:
        """Check that the backend is reachable."""

    @abstractmethod
    def _read(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def _write(self, encoded: Dict[str, str]) -> None:
        ...

    @abstractmethod
    def _delete(self, key: str) -> None:
        ...


class _NamedLocks:
    """Process-local re-entrant lock per name."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.RLock] = {}

    def get(self, name: str) -> threading.RLock:
        with self._guard:
            if name not in self._locks:
                self._locks[name] = threading.RLock()
            return self._locks[name]


class InMemoryStore(KeyValueStore):
    """Dictionary-backed store, used by tests and the ``memory`` backend."""

    def __init__(self):
        self._data: Dict[str, str] = {}
        self._mutex = threading.RLock()
        self._locks = _NamedLocks()

    @contextmanager
    def lock(self, name: str) -> Iterator[None]:
        with self._locks.get(name):
            yield

    def ping(self) -> bool:
        return True

    def _read(self, key: str) -> Optional[str]:
        with self._mutex:
            return self._data.get(key)

    def _write(self, encoded: Dict[str, str]) -> None:
        with self._mutex:
            self._data.update(encoded)

    def _delete(self, key: str) -> None:
        with self._mutex:
            self._data.pop(key, None)

    def raw(self, key: str) -> Optional[str]:
        """Stored JSON text for ``key``."""
        return self._read(key)

    def put_raw(self, key: str, text: str) -> None:
        """Store ``text`` verbatim, bypassing serialisation."""
        self._write({key: text})


class SQLStore(KeyValueStore):
    """Key/value table in a relational database; multi-key writes share one transaction."""

    def __init__(self, session_factory: sessionmaker, engine=None):
        self.session_factory = session_factory
        self.engine = engine or session_factory.kw.get("bind")
        self._locks = _NamedLocks()

    @contextmanager
    def lock(self, name: str) -> Iterator[None]:
        with self._locks.get(name):
            yield

    def ping(self) -> bool:
        return check_db_connection(self.engine)

    def _read(self, key: str) -> Optional[str]:
        try:
            with get_db_context(self.session_factory) as db:
                entry = db.get(KeyValueEntry, key)
                return entry.value if entry is not None else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to read key {key}: {e}")
            raise StorageReadError(f"Failed to read {key}: {e}", key=key)

    def _write(self, encoded: Dict[str, str]) -> None:
        try:
            with get_db_context(self.session_factory) as db:
                for key, value in encoded.items():
                    db.merge(KeyValueEntry(key=key, value=value))
        except SQLAlchemyError as e:
            logger.error(f"Failed to write keys {sorted(encoded)}: {e}")
            raise StorageWriteError(f"Failed to write {sorted(encoded)}: {e}")

    def _delete(self, key: str) -> None:
        try:
            with get_db_context(self.session_factory) as db:
                entry = db.get(KeyValueEntry, key)
                if entry is not None:
                    db.delete(entry)
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete key {key}: {e}")
            raise StorageWriteError(f"Failed to delete {key}: {e}", key=key)


class RedisStore(KeyValueStore):
    """Redis-backed store; locks are Redis locks so several processes serialise."""

    def __init__(self, client: redis.Redis, lock_timeout: int = 10):
        self.client = client
        self.lock_timeout = lock_timeout

    @contextmanager
    def lock(self, name: str) -> Iterator[None]:
        lock = self.client.lock(f"{name}:lock", timeout=self.lock_timeout, blocking_timeout=self.lock_timeout)
        try:
            acquired = lock.acquire()
        except redis.RedisError as e:
            logger.error(f"Failed to acquire lock {name}: {e}")
            raise StorageWriteError(f"Failed to acquire lock {name}: {e}", key=name)
        if not acquired:
            raise StorageWriteError(f"Timed out waiting for lock {name}", key=name)
        try:
            yield
        finally:
            try:
                lock.release()
            except redis.exceptions.LockError as e:
                # lock expired while held
                logger.warning(f"Lock {name} was no longer owned on release: {e}")

    def ping(self) -> bool:
        try:
            self.client.ping()
            return True
        except redis.RedisError as e:
            logger.error(f"Redis connection check failed: {e}")
            return False

    def _read(self, key: str) -> Optional[str]:
        try:
            value = self.client.get(key)
        except redis.RedisError as e:
            logger.error(f"Failed to get key {key}: {e}")
            raise StorageReadError(f"Failed to read {key}: {e}", key=key)
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    def _write(self, encoded: Dict[str, str]) -> None:
        try:
            pipe = self.client.pipeline(transaction=True)
            for key, value in encoded.items():
                pipe.set(key, value)
            pipe.execute()
        except redis.RedisError as e:
            logger.error(f"Failed to write keys {sorted(encoded)}: {e}")
            raise StorageWriteError(f"Failed to write {sorted(encoded)}: {e}")

    def _delete(self, key: str) -> None:
        try:
            self.client.delete(key)
        except redis.RedisError as e:
            logger.error(f"Failed to delete key {key}: {e}")
            raise StorageWriteError(f"Failed to delete {key}: {e}", key=key)


def build_store(settings: Settings) -> KeyValueStore:
    """Create the storage backend named by ``settings.storage_backend``."""
    if settings.storage_backend == "memory":
        return InMemoryStore()

    if settings.storage_backend == "redis":
        client = redis.Redis.from_url(
            settings.redis_url,
            db=settings.redis_db,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
        )
        return RedisStore(client, lock_timeout=settings.storage_lock_timeout)

    engine = make_engine(settings.database_url)
    init_db(engine)
    return SQLStore(make_session_factory(engine), engine)


def check_store_connection(store: KeyValueStore) -> bool:
    """Check if the storage backend is reachable."""
    try:
        return store.ping()
    except Exception as e:
        logger.error(f"Storage connection check failed: {e}")
        return False


def load_records(store: KeyValueStore, key: str, model: Type[M]) -> List[M]:
    """Read a stored list of records, skipping rows that fail validation."""
    rows = store.get(key, [])
    if not isinstance(rows, list):
        logger.warning(f"Expected a list under {key}, got {type(rows).__name__}; treating as empty")
        return []

    records = []
    for row in rows:
        try:
            records.append(model.model_validate(row))
        except ValidationError as e:
            logger.warning(f"Skipping malformed {model.__name__} row under {key}: {e.error_count()} error(s)")
    return records
