"""Embedded transactional key-value store on top of SQLite.

Values live in named buckets. Read-write transactions are serialized (an
in-process lock plus ``BEGIN IMMEDIATE``) and commit only when the managed
block exits cleanly. Read-only transactions observe a consistent snapshot of
the database, courtesy of SQLite's WAL mode, and always roll back.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Iterator, Optional

from settings import get_settings


class StoreError(Exception):
    """Base class for key-value engine failures."""


class BucketNotFoundError(StoreError):
    pass


class ReadOnlyTransactionError(StoreError):
    pass


class StoreClosedError(StoreError):
    pass


_SCHEMA = """
CREATE TABLE IF NOT EXISTS buckets (
    name TEXT PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS entries (
    bucket TEXT NOT NULL,
    key TEXT NOT NULL,
    value BLOB NOT NULL,
    PRIMARY KEY (bucket, key)
);
"""


class Bucket:
    """A key space inside a single transaction."""

    def __init__(self, txn: Transaction, name: str) -> None:
        self._txn = txn
        self.name = name

    def get(self, key: str) -> Optional[bytes]:
        row = self._txn._execute(
            "SELECT value FROM entries WHERE bucket = ? AND key = ?",
            (self.name, key),
        ).fetchone()
        if row is None:
            return None
        return bytes(row[0])

    def put(self, key: str, value: bytes) -> None:
        if not self._txn.writable:
            raise ReadOnlyTransactionError(
                f"Cannot write key {key!r} to bucket {self.name!r} in a read-only transaction."
            )
        self._txn._execute(
            "INSERT INTO entries (bucket, key, value) VALUES (?, ?, ?) "
            "ON CONFLICT (bucket, key) DO UPDATE SET value = excluded.value",
            (self.name, key, sqlite3.Binary(value)),
        )


class Transaction:
    """An open transaction; obtain one through ``KVStore.update``/``view``."""

    def __init__(self, conn: sqlite3.Connection, writable: bool) -> None:
        self._conn = conn
        self.writable = writable

    def bucket(self, name: str) -> Bucket:
        row = self._execute("SELECT 1 FROM buckets WHERE name = ?", (name,)).fetchone()
        if row is None:
            raise BucketNotFoundError(f"Bucket {name!r} does not exist.")
        return Bucket(self, name)

    def create_bucket_if_not_exists(self, name: str) -> Bucket:
        if not self.writable:
            raise ReadOnlyTransactionError(
                f"Cannot create bucket {name!r} in a read-only transaction."
            )
        self._execute("INSERT OR IGNORE INTO buckets (name) VALUES (?)", (name,))
        return Bucket(self, name)

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        try:
            return self._conn.execute(sql, params)
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc


class KVStore:
    """SQLite-backed store exposing buckets and scoped transactions."""

    def __init__(self, path: Path, busy_timeout_ms: int = 5000) -> None:
        self.path = path
        self.busy_timeout_ms = busy_timeout_ms
        self._write_lock = Lock()
        self._closed = False
        path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._open()
        try:
            conn.execute("PRAGMA journal_mode = WAL")
            conn.executescript(_SCHEMA)
        except sqlite3.Error as exc:
            raise StoreError(f"Could not initialize store at {path}: {exc}") from exc
        finally:
            conn.close()

    @contextmanager
    def update(self) -> Iterator[Transaction]:
        """Yield a read-write transaction, committed when the block succeeds."""

        with self._write_lock:
            conn = self._open()
            try:
                self._begin(conn, "BEGIN IMMEDIATE")
                txn = Transaction(conn, writable=True)
                try:
                    yield txn
                except BaseException:
                    conn.rollback()
                    raise
                try:
                    conn.commit()
                except sqlite3.Error as exc:
                    conn.rollback()
                    raise StoreError(f"Could not commit transaction: {exc}") from exc
            finally:
                conn.close()

    @contextmanager
    def view(self) -> Iterator[Transaction]:
        """Yield a read-only transaction over a consistent snapshot."""

        conn = self._open()
        try:
            try:
                conn.execute("PRAGMA query_only = ON")
            except sqlite3.Error as exc:
                raise StoreError(f"Could not open read-only transaction: {exc}") from exc
            self._begin(conn, "BEGIN")
            try:
                yield Transaction(conn, writable=False)
            finally:
                conn.rollback()
        finally:
            conn.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True

    def _open(self) -> sqlite3.Connection:
        if self._closed:
            raise StoreClosedError(f"Store at {self.path} is closed.")
        try:
            return self._connect()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not open {self.path}: {exc}") from exc

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            str(self.path),
            timeout=self.busy_timeout_ms / 1000.0,
            isolation_level=None,
        )
        conn.execute(f"PRAGMA busy_timeout = {self.busy_timeout_ms}")
        conn.execute("PRAGMA synchronous = NORMAL")
        return conn

    @staticmethod
    def _begin(conn: sqlite3.Connection, statement: str) -> None:
        try:
            conn.execute(statement)
        except sqlite3.Error as exc:
            raise StoreError(f"Could not begin transaction: {exc}") from exc


@lru_cache
def build_default_store(path: Optional[str] = None) -> KVStore:
    settings = get_settings()
    db_path = settings.db_path if path is None else path
    return KVStore(path=Path(db_path), busy_timeout_ms=settings.busy_timeout_ms)
