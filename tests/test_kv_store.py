"""Unit tests for the SQLite-backed key-value store."""

from __future__ import annotations

from pathlib import Path

import pytest

from storage.kv_store import (
    BucketNotFoundError,
    KVStore,
    ReadOnlyTransactionError,
    StoreClosedError,
)


def _store_with_bucket(path: Path) -> KVStore:
    store = KVStore(path=path)
    with store.update() as txn:
        txn.create_bucket_if_not_exists("things")
    return store


def test_put_and_get_within_committed_transaction(tmp_path: Path) -> None:
    store = _store_with_bucket(tmp_path / "kv.db")

    with store.update() as txn:
        txn.bucket("things").put("a", b"hello")

    with store.view() as txn:
        assert txn.bucket("things").get("a") == b"hello"
        assert txn.bucket("things").get("missing") is None


def test_put_overwrites_existing_value(tmp_path: Path) -> None:
    store = _store_with_bucket(tmp_path / "kv.db")

    with store.update() as txn:
        txn.bucket("things").put("a", b"one")
    with store.update() as txn:
        txn.bucket("things").put("a", b"two")

    with store.view() as txn:
        assert txn.bucket("things").get("a") == b"two"


def test_buckets_are_independent_key_spaces(tmp_path: Path) -> None:
    store = _store_with_bucket(tmp_path / "kv.db")

    with store.update() as txn:
        other = txn.create_bucket_if_not_exists("others")
        other.put("a", b"other")
        txn.bucket("things").put("a", b"thing")

    with store.view() as txn:
        assert txn.bucket("things").get("a") == b"thing"
        assert txn.bucket("others").get("a") == b"other"


def test_create_bucket_if_not_exists_keeps_existing_data(tmp_path: Path) -> None:
    store = _store_with_bucket(tmp_path / "kv.db")
    with store.update() as txn:
        txn.bucket("things").put("a", b"kept")

    with store.update() as txn:
        txn.create_bucket_if_not_exists("things")

    with store.view() as txn:
        assert txn.bucket("things").get("a") == b"kept"


def test_exception_rolls_back_write(tmp_path: Path) -> None:
    store = _store_with_bucket(tmp_path / "kv.db")

    with pytest.raises(RuntimeError):
        with store.update() as txn:
            txn.bucket("things").put("a", b"never")
            raise RuntimeError("abort")

    with store.view() as txn:
        assert txn.bucket("things").get("a") is None


def test_read_only_transaction_rejects_writes(tmp_path: Path) -> None:
    store = _store_with_bucket(tmp_path / "kv.db")

    with store.view() as txn:
        with pytest.raises(ReadOnlyTransactionError):
            txn.bucket("things").put("a", b"nope")
        with pytest.raises(ReadOnlyTransactionError):
            txn.create_bucket_if_not_exists("more")


def test_missing_bucket_raises(tmp_path: Path) -> None:
    store = KVStore(path=tmp_path / "kv.db")

    with store.view() as txn:
        with pytest.raises(BucketNotFoundError):
            txn.bucket("nothing")


def test_reader_keeps_its_snapshot_while_writer_commits(tmp_path: Path) -> None:
    store = _store_with_bucket(tmp_path / "kv.db")
    with store.update() as txn:
        txn.bucket("things").put("a", b"before")

    with store.view() as reader:
        assert reader.bucket("things").get("a") == b"before"

        with store.update() as writer:
            writer.bucket("things").put("a", b"after")

        assert reader.bucket("things").get("a") == b"before"

    with store.view() as txn:
        assert txn.bucket("things").get("a") == b"after"


def test_data_survives_reopening(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "kv.db"
    store = _store_with_bucket(path)
    with store.update() as txn:
        txn.bucket("things").put("a", b"durable")

    reopened = KVStore(path=path)

    assert path.exists()
    with reopened.view() as txn:
        assert txn.bucket("things").get("a") == b"durable"


def test_closed_store_refuses_transactions(tmp_path: Path) -> None:
    store = _store_with_bucket(tmp_path / "kv.db")
    store.close()

    with pytest.raises(StoreClosedError):
        with store.view():
            pass
    with pytest.raises(StoreClosedError):
        with store.update():
            pass
