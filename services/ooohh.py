"""Persistence and aggregation of dials and boards."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from functools import lru_cache
from typing import Callable, Iterator, Optional, Sequence
from uuid import uuid4

from datastore.codec import CodecError, decode_board, decode_dial, encode_board, encode_dial
from models.errors import BoardNotFound, DialNotFound, StorageError, Unauthorized
from models.records import Board, Dial, to_utc
from services.aggregator import BoardAggregator
from services.clock import Clock, SystemClock
from services.context import CallContext
from storage.kv_store import KVStore, StoreError, build_default_store

DIALS_BUCKET = "dials"
BOARDS_BUCKET = "boards"

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid4().hex


@contextmanager
def _wrap_storage_errors(operation: str, entity_id: Optional[str] = None) -> Iterator[None]:
    try:
        yield
    except (StoreError, CodecError) as exc:
        raise StorageError(operation, entity_id) from exc


class OoohhService:
    """Owns every read and write of dial and board records.

    Each operation runs in its own transaction against ``store``; reading a
    board additionally resolves each referenced dial in its own read-only
    transaction.
    """

    def __init__(
        self,
        store: KVStore,
        clock: Optional[Clock] = None,
        id_factory: Callable[[], str] = _new_id,
        aggregator: Optional[BoardAggregator] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.store = store
        self.clock = clock or SystemClock()
        self.id_factory = id_factory
        self.aggregator = aggregator or BoardAggregator()
        self.logger = log or logger

        with _wrap_storage_errors("initializing buckets"):
            with self.store.update() as txn:
                txn.create_bucket_if_not_exists(DIALS_BUCKET)
                txn.create_bucket_if_not_exists(BOARDS_BUCKET)

    def create_dial(self, name: str, token: str, ctx: Optional[CallContext] = None) -> Dial:
        """Create a dial at value 0.0 owned by ``token``."""
        dial = Dial(id=self.id_factory(), token=token, name=name, value=0.0, updated_at=self._now())

        with _wrap_storage_errors("storing dial", dial.id):
            self._check(ctx, "storing dial", dial.id)
            with self.store.update() as txn:
                txn.bucket(DIALS_BUCKET).put(dial.id, encode_dial(dial))
                self._check(ctx, "storing dial", dial.id)

        return dial

    def get_dial(self, dial_id: str, ctx: Optional[CallContext] = None) -> Dial:
        """Return the dial, raising ``DialNotFound`` if it does not exist."""
        with _wrap_storage_errors("reading dial", dial_id):
            self._check(ctx, "reading dial", dial_id)
            with self.store.view() as txn:
                payload = txn.bucket(DIALS_BUCKET).get(dial_id)
                if payload is None:
                    raise DialNotFound(dial_id)
                return decode_dial(payload)

    def set_dial(
        self,
        dial_id: str,
        token: str,
        value: float,
        ctx: Optional[CallContext] = None,
    ) -> None:
        """Overwrite the dial's value; only the creator's token may do so."""
        with _wrap_storage_errors("updating dial", dial_id):
            self._check(ctx, "updating dial", dial_id)
            with self.store.update() as txn:
                bucket = txn.bucket(DIALS_BUCKET)
                payload = bucket.get(dial_id)
                if payload is None:
                    raise DialNotFound(dial_id)
                dial = decode_dial(payload)

                if token != dial.token:
                    raise Unauthorized()

                updated = dial.model_copy(update={"value": value, "updated_at": self._now()})
                bucket.put(dial_id, encode_dial(updated))
                self._check(ctx, "updating dial", dial_id)

    def create_board(self, name: str, token: str, ctx: Optional[CallContext] = None) -> Board:
        """Create an empty board owned by ``token``."""
        board = Board(
            id=self.id_factory(),
            token=token,
            name=name,
            dial_refs=[],
            dials=[],
            updated_at=self._now(),
        )

        with _wrap_storage_errors("storing board", board.id):
            self._check(ctx, "storing board", board.id)
            with self.store.update() as txn:
                txn.bucket(BOARDS_BUCKET).put(board.id, encode_board(board))
                self._check(ctx, "storing board", board.id)

        return board

    def get_board(self, board_id: str, ctx: Optional[CallContext] = None) -> Board:
        """Return the board with each referenced dial resolved as of now.

        References that fail to resolve are left out of ``dials`` and logged;
        they stay in ``dial_refs``. The board and each dial are read in
        separate transactions, so the result is not a single snapshot.
        """
        with _wrap_storage_errors("reading board", board_id):
            self._check(ctx, "reading board", board_id)
            with self.store.view() as txn:
                payload = txn.bucket(BOARDS_BUCKET).get(board_id)
                if payload is None:
                    raise BoardNotFound(board_id)
                board = decode_board(payload)

        materialization = self.aggregator.materialize(
            board.dial_refs,
            lambda dial_id: self.get_dial(dial_id, ctx=ctx),
        )
        for skipped in materialization.skipped:
            self.logger.error(
                "Could not resolve dial for board.",
                extra={
                    "operation": "get_board",
                    "dial_id": skipped.dial_id,
                    "board_id": board_id,
                    "reason": str(skipped.reason),
                },
            )

        return board.model_copy(update={"dials": materialization.resolved})

    def set_board(
        self,
        board_id: str,
        token: str,
        dial_ids: Sequence[str],
        ctx: Optional[CallContext] = None,
    ) -> None:
        """Replace the board's dial references wholesale.

        Referenced dials are not checked for existence here; missing ones are
        skipped when the board is read.
        """
        with _wrap_storage_errors("updating board", board_id):
            self._check(ctx, "updating board", board_id)
            with self.store.update() as txn:
                bucket = txn.bucket(BOARDS_BUCKET)
                payload = bucket.get(board_id)
                if payload is None:
                    raise BoardNotFound(board_id)
                board = decode_board(payload)

                if token != board.token:
                    raise Unauthorized()

                updated = board.model_copy(
                    update={"dial_refs": list(dial_ids), "updated_at": self._now()}
                )
                bucket.put(board_id, encode_board(updated))
                self._check(ctx, "updating board", board_id)

    def _now(self) -> datetime:
        return to_utc(self.clock.now())

    @staticmethod
    def _check(ctx: Optional[CallContext], operation: str, entity_id: str) -> None:
        if ctx is not None:
            ctx.raise_if_cancelled(operation, entity_id)


@lru_cache
def build_default_service() -> OoohhService:
    """Factory that wires the service with the default store and system clock."""
    return OoohhService(store=build_default_store())
