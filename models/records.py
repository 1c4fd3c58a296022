"""Domain records for dials and boards."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator


def to_utc(value: datetime) -> datetime:
    """Return ``value`` expressed in UTC, treating naive datetimes as UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Dial(BaseModel):
    """A named scalar owned by whoever holds its token."""

    model_config = ConfigDict(ser_json_inf_nan="constants")

    id: str
    token: str = Field(repr=False)
    name: str
    value: float = 0.0
    updated_at: datetime

    @field_validator("updated_at")
    @classmethod
    def _normalize_updated_at(cls, value: datetime) -> datetime:
        return to_utc(value)


class Board(BaseModel):
    """An ordered set of dial references.

    Only ``dial_refs`` is persisted; ``dials`` holds the dials resolved when
    the board was last read.
    """

    id: str
    token: str = Field(repr=False)
    name: str
    dial_refs: List[str] = Field(default_factory=list)
    dials: List[Dial] = Field(default_factory=list)
    updated_at: datetime

    @field_validator("updated_at")
    @classmethod
    def _normalize_updated_at(cls, value: datetime) -> datetime:
        return to_utc(value)
