"""Byte encoding of dial and board records for the key-value store."""

from __future__ import annotations

from pydantic import ValidationError

from models.records import Board, Dial


class CodecError(Exception):
    """Stored bytes could not be turned back into a record."""


# Timestamps that cannot be shifted to UTC surface as OverflowError or
# ValueError from the validator rather than as a ValidationError.
_DECODE_ERRORS = (ValidationError, OverflowError, ValueError)


def encode_dial(dial: Dial) -> bytes:
    return dial.model_dump_json().encode("utf-8")


def decode_dial(payload: bytes) -> Dial:
    try:
        return Dial.model_validate_json(payload)
    except _DECODE_ERRORS as exc:
        raise CodecError(f"Invalid dial record: {exc}") from exc


def encode_board(board: Board) -> bytes:
    # Resolved dials are a read-time view and never stored.
    return board.model_dump_json(exclude={"dials"}).encode("utf-8")


def decode_board(payload: bytes) -> Board:
    try:
        return Board.model_validate_json(payload)
    except _DECODE_ERRORS as exc:
        raise CodecError(f"Invalid board record: {exc}") from exc
