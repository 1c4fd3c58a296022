"""Pydantic schemas for the HTTP API layer.

Response models never carry a token.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from models.records import Board, Dial


class CreateRequest(BaseModel):
    """Body for creating a dial or a board."""

    name: Optional[str] = None
    token: Optional[str] = None


class SetDialRequest(BaseModel):
    token: Optional[str] = None
    value: Optional[float] = None


class SetBoardRequest(BaseModel):
    token: Optional[str] = None
    dials: Optional[List[str]] = None


class DialResponse(BaseModel):
    id: str
    name: str
    value: float
    updated_at: datetime

    @classmethod
    def from_dial(cls, dial: Dial) -> "DialResponse":
        return cls(id=dial.id, name=dial.name, value=dial.value, updated_at=dial.updated_at)


class BoardResponse(BaseModel):
    id: str
    name: str
    dial_refs: List[str] = Field(default_factory=list)
    dials: List[DialResponse] = Field(default_factory=list)
    updated_at: datetime

    @classmethod
    def from_board(cls, board: Board) -> "BoardResponse":
        return cls(
            id=board.id,
            name=board.name,
            dial_refs=list(board.dial_refs),
            dials=[DialResponse.from_dial(dial) for dial in board.dials],
            updated_at=board.updated_at,
        )


class SlackCommandResponse(BaseModel):
    response_type: str = "ephemeral"
    text: str
