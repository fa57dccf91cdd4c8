"""Thread-safe in-memory key-value store.

One ``Store`` is created at startup and shared by every request.
Whole-map locking through a readers-writer lock: any number of
concurrent readers, or exactly one writer.

Thread safety:
    Store operations are blocking. Request handlers call them on
    anyio's worker threads, never directly on the event loop.

Poisoning:
    If an exception escapes while the exclusive lock is held, the
    mapping may be half-updated. The store then flips into a terminal
    corrupted state and every later operation raises ``StoreCorrupted``.
"""

import logging
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager

from stash.errors import KeyNotFound, StoreCorrupted

logger = logging.getLogger("stash.store")


class _ReadWriteLock:
    """Writer-preferring readers-writer lock.

    A waiting writer blocks new readers so a steady stream of reads
    cannot starve mutations.
    """

    __slots__ = ("_cond", "_readers", "_writer", "_writers_waiting")

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def shared(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class Store:
    """Shared mapping from string keys to byte values.

    Usage::

        store = Store()
        store.put("greeting", b"Hello World")
        store.get("greeting")   # b"Hello World"
        store.delete("greeting")
        store.get("greeting")   # raises KeyNotFound
    """

    __slots__ = ("_corrupted", "_data", "_lock")

    def __init__(self, initial: Mapping[str, bytes] | None = None) -> None:
        self._data: dict[str, bytes] = {k: bytes(v) for k, v in (initial or {}).items()}
        self._lock = _ReadWriteLock()
        self._corrupted = False

    # -- Locking --

    @contextmanager
    def _read(self) -> Iterator[None]:
        with self._lock.shared():
            self._check()
            yield

    @contextmanager
    def _write(self) -> Iterator[None]:
        with self._lock.exclusive():
            self._check()
            try:
                yield
            except BaseException:
                self._corrupted = True
                logger.error("Store corrupted: exception raised during a write")
                raise

    def _check(self) -> None:
        if self._corrupted:
            raise StoreCorrupted()

    @property
    def corrupted(self) -> bool:
        """True once the store entered its terminal state."""
        return self._corrupted

    # -- Operations --

    def get(self, key: str) -> bytes:
        """Return the value stored at *key*.

        Raises ``KeyNotFound`` if the key is absent.
        """
        with self._read():
            try:
                return self._data[key]
            except KeyError:
                raise KeyNotFound(key) from None

    def put(self, key: str, value: bytes | bytearray | memoryview) -> None:
        """Insert or replace the value at *key*."""
        # Copy outside the lock; mutable buffers must not leak into the map.
        payload = bytes(value)
        with self._write():
            self._data[key] = payload

    def delete(self, key: str) -> None:
        """Remove *key* if present. Absent keys are not an error."""
        with self._write():
            self._data.pop(key, None)

    def clear(self) -> None:
        """Remove every key."""
        with self._write():
            self._data.clear()

    # -- Introspection --

    def keys(self) -> list[str]:
        """Snapshot of the current keys."""
        with self._read():
            return list(self._data)

    def __len__(self) -> int:
        with self._read():
            return len(self._data)

    def __contains__(self, key: object) -> bool:
        with self._read():
            return key in self._data

    def __repr__(self) -> str:
        state = "corrupted" if self._corrupted else f"{len(self._data)} keys"
        return f"Store({state})"
