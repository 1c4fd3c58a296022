"""Error taxonomy surfaced by the dial and board service."""

from __future__ import annotations

from enum import Enum
from typing import ClassVar, Optional


class ErrorKind(str, Enum):
    """The closed set of failure kinds callers can match on."""

    dial_not_found = "dial_not_found"
    board_not_found = "board_not_found"
    unauthorized = "unauthorized"
    storage = "storage"


class OoohhError(Exception):
    """Base class for every error raised by the service."""

    kind: ClassVar[ErrorKind]


class DialNotFound(OoohhError):
    kind = ErrorKind.dial_not_found

    def __init__(self, dial_id: str) -> None:
        super().__init__("dial not found")
        self.dial_id = dial_id


class BoardNotFound(OoohhError):
    kind = ErrorKind.board_not_found

    def __init__(self, board_id: str) -> None:
        super().__init__("board not found")
        self.board_id = board_id


class Unauthorized(OoohhError):
    """The supplied token does not match the entity's token."""

    kind = ErrorKind.unauthorized

    def __init__(self) -> None:
        super().__init__("unauthorized")


class StorageError(OoohhError):
    """A transaction, codec or I/O failure, wrapped with operation context.

    The low-level exception is available as ``__cause__``.
    """

    kind = ErrorKind.storage

    def __init__(self, operation: str, entity_id: Optional[str] = None) -> None:
        message = operation if entity_id is None else f"{operation} {entity_id}"
        super().__init__(message)
        self.operation = operation
        self.entity_id = entity_id

    def __str__(self) -> str:
        message = super().__str__()
        if self.__cause__ is not None:
            return f"{message}: {self.__cause__}"
        return message


class OperationCancelled(StorageError):
    """The caller's context was cancelled or timed out before completion."""

    def __str__(self) -> str:
        return f"{super().__str__()}: operation cancelled"
