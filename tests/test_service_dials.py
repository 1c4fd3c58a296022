"""Dial operations of the persistence service."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from datastore.codec import CodecError
from models.errors import DialNotFound, ErrorKind, OperationCancelled, StorageError, Unauthorized
from services.context import CallContext
from services.ooohh import DIALS_BUCKET, OoohhService
from storage.kv_store import KVStore, StoreError

from tests.conftest import NOW, FixedClock


def test_create_dial_defaults(service: OoohhService) -> None:
    dial = service.create_dial("TEST-DIAL-1", "MYTOKEN")

    assert dial.id
    assert dial.name == "TEST-DIAL-1"
    assert dial.token == "MYTOKEN"
    assert dial.value == 0.0
    assert dial.updated_at == NOW


def test_created_dial_reads_back_identically(service: OoohhService) -> None:
    created = service.create_dial("TEST-DIAL-1", "MYTOKEN")

    fetched = service.get_dial(created.id)

    assert fetched == created


def test_each_dial_gets_a_distinct_id(service: OoohhService) -> None:
    ids = {service.create_dial(f"dial-{index}", "token").id for index in range(5)}

    assert len(ids) == 5


def test_injected_id_factory_is_used(store: KVStore, clock: FixedClock) -> None:
    ids = iter(["first", "second"])
    service = OoohhService(store=store, clock=clock, id_factory=lambda: next(ids))

    assert service.create_dial("a", "t").id == "first"
    assert service.create_board("b", "t").id == "second"


def test_set_dial_updates_value_and_timestamp(service: OoohhService, clock: FixedClock) -> None:
    dial = service.create_dial("TEST-DIAL-1", "MYTOKEN")
    later = clock.advance(minutes=5)

    service.set_dial(dial.id, "MYTOKEN", 67.0)
    fetched = service.get_dial(dial.id)

    assert fetched.value == 67.0
    assert fetched.updated_at == later
    assert fetched.name == "TEST-DIAL-1"
    assert fetched.token == "MYTOKEN"


def test_set_dial_accepts_values_outside_any_range(service: OoohhService) -> None:
    dial = service.create_dial("TEST-DIAL-1", "MYTOKEN")

    service.set_dial(dial.id, "MYTOKEN", -250.5)

    assert service.get_dial(dial.id).value == -250.5


def test_set_dial_with_wrong_token_is_unauthorized(service: OoohhService, clock: FixedClock) -> None:
    dial = service.create_dial("TEST-DIAL-1", "MYTOKEN")
    service.set_dial(dial.id, "MYTOKEN", 10.0)
    clock.advance(minutes=1)

    with pytest.raises(Unauthorized) as excinfo:
        service.set_dial(dial.id, "WRONG", 99.0)

    assert excinfo.value.kind is ErrorKind.unauthorized
    fetched = service.get_dial(dial.id)
    assert fetched.value == 10.0
    assert fetched.updated_at == NOW


def test_get_missing_dial_raises_not_found(service: OoohhService) -> None:
    with pytest.raises(DialNotFound) as excinfo:
        service.get_dial("missing")

    assert excinfo.value.dial_id == "missing"
    assert excinfo.value.kind is ErrorKind.dial_not_found


def test_set_missing_dial_reports_not_found_before_token(service: OoohhService) -> None:
    with pytest.raises(DialNotFound):
        service.set_dial("missing", "ANY-TOKEN", 1.0)


def test_timestamps_are_utc_whatever_the_clock_zone(store: KVStore) -> None:
    plus_five = timezone(timedelta(hours=5))
    clock = FixedClock(datetime(2020, 2, 15, 5, 0, tzinfo=plus_five))
    service = OoohhService(store=store, clock=clock)

    dial = service.create_dial("zoned", "token")
    fetched = service.get_dial(dial.id)

    expected = datetime(2020, 2, 15, 0, 0, tzinfo=timezone.utc)
    for value in (dial.updated_at, fetched.updated_at):
        assert value == expected
        assert value.tzinfo == timezone.utc


def test_naive_clock_values_are_treated_as_utc(store: KVStore) -> None:
    service = OoohhService(store=store, clock=FixedClock(datetime(2020, 2, 15, 9, 0)))

    dial = service.create_dial("naive", "token")

    assert dial.updated_at == datetime(2020, 2, 15, 9, 0, tzinfo=timezone.utc)


def test_corrupt_record_surfaces_as_storage_error(service: OoohhService, store: KVStore) -> None:
    with store.update() as txn:
        txn.bucket(DIALS_BUCKET).put("broken", b"\x00not-a-record")

    with pytest.raises(StorageError) as excinfo:
        service.get_dial("broken")

    assert excinfo.value.kind is ErrorKind.storage
    assert excinfo.value.operation == "reading dial"
    assert excinfo.value.entity_id == "broken"
    assert isinstance(excinfo.value.__cause__, CodecError)


def test_store_failure_surfaces_as_storage_error(service: OoohhService, store: KVStore) -> None:
    store.close()

    with pytest.raises(StorageError) as excinfo:
        service.create_dial("late", "token")

    assert isinstance(excinfo.value.__cause__, StoreError)
    assert not isinstance(excinfo.value, (DialNotFound, Unauthorized))


def test_initialization_failure_is_wrapped(store: KVStore, clock: FixedClock) -> None:
    store.close()

    with pytest.raises(StorageError) as excinfo:
        OoohhService(store=store, clock=clock)

    assert excinfo.value.operation == "initializing buckets"


def test_initialization_is_idempotent(store: KVStore, clock: FixedClock) -> None:
    first = OoohhService(store=store, clock=clock)
    dial = first.create_dial("kept", "token")

    second = OoohhService(store=store, clock=clock)

    assert second.get_dial(dial.id) == dial


def test_cancelled_context_stops_before_any_write(service: OoohhService) -> None:
    service.id_factory = lambda: "cancelled-dial"
    ctx = CallContext()
    ctx.cancel()

    with pytest.raises(OperationCancelled):
        service.create_dial("never", "token", ctx=ctx)

    with pytest.raises(DialNotFound):
        service.get_dial("cancelled-dial")


def test_cancellation_during_update_rolls_back(store: KVStore) -> None:
    ctx = CallContext()

    class CancellingClock(FixedClock):
        cancel_on_next_read = False

        def now(self) -> datetime:
            if self.cancel_on_next_read:
                ctx.cancel()
            return super().now()

    clock = CancellingClock()
    service = OoohhService(store=store, clock=clock)
    dial = service.create_dial("dial", "token")

    clock.cancel_on_next_read = True
    with pytest.raises(OperationCancelled):
        service.set_dial(dial.id, "token", 50.0, ctx=ctx)

    assert service.get_dial(dial.id).value == 0.0


def test_expired_deadline_cancels_reads(service: OoohhService) -> None:
    ticks = iter([0.0, 10.0])
    ctx = CallContext(timeout=5.0, monotonic=lambda: next(ticks))
    dial = service.create_dial("dial", "token")

    with pytest.raises(OperationCancelled) as excinfo:
        service.get_dial(dial.id, ctx=ctx)

    assert "operation cancelled" in str(excinfo.value)


def test_out_of_range_timestamp_surfaces_as_storage_error(service: OoohhService, store: KVStore) -> None:
    record = (
        b'{"id": "old", "token": "t", "name": "old", "value": 1.0, '
        b'"updated_at": "0001-01-01T00:00:00+05:00"}'
    )
    with store.update() as txn:
        txn.bucket(DIALS_BUCKET).put("old", record)

    with pytest.raises(StorageError) as excinfo:
        service.get_dial("old")

    assert isinstance(excinfo.value.__cause__, CodecError)
