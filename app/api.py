"""HTTP route definitions for the service."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Form, HTTPException, status

from app.schemas import (
    BoardResponse,
    CreateRequest,
    DialResponse,
    SetBoardRequest,
    SetDialRequest,
    SlackCommandResponse,
)
from models.errors import ErrorKind, OoohhError
from services.context import CallContext
from services.ooohh import OoohhService, build_default_service
from services.slack import SlackService, build_default_slack_service
from settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter()


def get_service() -> OoohhService:
    return build_default_service()


def get_slack_service() -> SlackService:
    return build_default_slack_service()


def get_call_context() -> CallContext:
    """Give each request its own deadline."""
    return CallContext(timeout=get_settings().request_timeout)


def _to_http_error(exc: OoohhError, failure_detail: str, operation: str) -> HTTPException:
    if exc.kind in (ErrorKind.dial_not_found, ErrorKind.board_not_found):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if exc.kind is ErrorKind.unauthorized:
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token")

    logger.error(failure_detail, extra={"reason": str(exc), "operation": operation})
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=failure_detail,
    )


def _require(condition: bool, detail: str) -> None:
    if not condition:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


@router.post(
    "/api/dials",
    status_code=status.HTTP_201_CREATED,
    response_model=DialResponse,
    summary="Create a dial owned by the supplied token.",
)
def create_dial(
    body: CreateRequest,
    service: OoohhService = Depends(get_service),
    ctx: CallContext = Depends(get_call_context),
) -> DialResponse:
    _require(bool(body.name) and bool(body.token), "Both `name` and `token` must be provided.")
    try:
        dial = service.create_dial(body.name, body.token, ctx=ctx)
    except OoohhError as exc:
        raise _to_http_error(exc, "Could not create dial", "create_dial") from exc
    return DialResponse.from_dial(dial)


@router.get(
    "/api/dials/{dial_id}",
    response_model=DialResponse,
    summary="Fetch a dial.",
)
def get_dial(
    dial_id: str,
    service: OoohhService = Depends(get_service),
    ctx: CallContext = Depends(get_call_context),
) -> DialResponse:
    try:
        dial = service.get_dial(dial_id, ctx=ctx)
    except OoohhError as exc:
        raise _to_http_error(exc, "Could not retrieve dial", "get_dial") from exc
    return DialResponse.from_dial(dial)


@router.patch(
    "/api/dials/{dial_id}",
    response_model=DialResponse,
    summary="Set a dial's value using its token.",
)
def set_dial(
    dial_id: str,
    body: SetDialRequest,
    service: OoohhService = Depends(get_service),
    ctx: CallContext = Depends(get_call_context),
) -> DialResponse:
    _require(bool(body.token) and body.value is not None, "Both `token` and `value` must be provided.")
    try:
        service.set_dial(dial_id, body.token, body.value, ctx=ctx)
        dial = service.get_dial(dial_id, ctx=ctx)
    except OoohhError as exc:
        raise _to_http_error(exc, "Could not update dial", "set_dial") from exc
    return DialResponse.from_dial(dial)


@router.post(
    "/api/boards",
    status_code=status.HTTP_201_CREATED,
    response_model=BoardResponse,
    summary="Create an empty board owned by the supplied token.",
)
def create_board(
    body: CreateRequest,
    service: OoohhService = Depends(get_service),
    ctx: CallContext = Depends(get_call_context),
) -> BoardResponse:
    _require(bool(body.name) and bool(body.token), "Both `name` and `token` must be provided.")
    try:
        board = service.create_board(body.name, body.token, ctx=ctx)
    except OoohhError as exc:
        raise _to_http_error(exc, "Could not create board", "create_board") from exc
    return BoardResponse.from_board(board)


@router.get(
    "/api/boards/{board_id}",
    response_model=BoardResponse,
    summary="Fetch a board with the current value of each of its dials.",
)
def get_board(
    board_id: str,
    service: OoohhService = Depends(get_service),
    ctx: CallContext = Depends(get_call_context),
) -> BoardResponse:
    try:
        board = service.get_board(board_id, ctx=ctx)
    except OoohhError as exc:
        raise _to_http_error(exc, "Could not retrieve board", "get_board") from exc
    return BoardResponse.from_board(board)


@router.patch(
    "/api/boards/{board_id}",
    response_model=BoardResponse,
    summary="Replace the dials on a board using its token.",
)
def set_board(
    board_id: str,
    body: SetBoardRequest,
    service: OoohhService = Depends(get_service),
    ctx: CallContext = Depends(get_call_context),
) -> BoardResponse:
    _require(bool(body.token) and body.dials is not None, "Both `token` and `dials` must be provided.")
    try:
        service.set_board(board_id, body.token, body.dials, ctx=ctx)
        board = service.get_board(board_id, ctx=ctx)
    except OoohhError as exc:
        raise _to_http_error(exc, "Could not update board", "set_board") from exc
    return BoardResponse.from_board(board)


@router.post(
    "/api/slack/command",
    response_model=SlackCommandResponse,
    summary="Slack slash command webhook.",
)
def slack_command(
    command: str = Form(""),
    text: str = Form(""),
    user_id: str = Form(""),
    team_id: str = Form(""),
    slack: SlackService = Depends(get_slack_service),
    ctx: CallContext = Depends(get_call_context),
) -> SlackCommandResponse:
    if not command or not user_id or not team_id:
        # A 5xx tells Slack the command could not be processed.
        logger.error("Could not parse Slack command.", extra={"team_id": team_id, "user_id": user_id})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not parse form values",
        )

    reply = slack.respond_to_command(command, text, team_id, user_id, ctx=ctx)
    return SlackCommandResponse(response_type=reply.response_type, text=reply.text)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
