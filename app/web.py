from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from app.api import get_call_context, get_service
from models.errors import ErrorKind, OoohhError
from models.records import Board
from services.context import CallContext
from services.ooohh import OoohhService


templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))


def _validate(fields: Dict[str, tuple[str, str]]) -> Dict[str, str]:
    """Map each blank field to its error message."""
    return {name: message for name, (value, message) in fields.items() if not value.strip()}


def _render_board(
    request: Request,
    board: Board,
    errors: Optional[Dict[str, str]] = None,
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "ui/board.html",
        {"board": board, "errors": errors or {}},
    )


router = APIRouter(include_in_schema=False)


@router.get("/", name="ui_index", response_class=HTMLResponse)
async def ui_index(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(request, "ui/index.html", {})


@router.get("/boards/new", name="ui_new_board", response_class=HTMLResponse)
async def ui_new_board(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(request, "ui/newboard.html", {"form": {}, "errors": {}})


@router.post("/boards/new", name="ui_create_board")
def ui_create_board(
    request: Request,
    name: str = Form(""),
    token: str = Form(""),
    service: OoohhService = Depends(get_service),
    ctx: CallContext = Depends(get_call_context),
) -> Response:
    form = {"name": name, "token": token}
    errors = _validate(
        {
            "name": (name, "Please enter a name."),
            "token": (token, "Please enter a token."),
        }
    )
    if not errors:
        try:
            board = service.create_board(name, token, ctx=ctx)
        except OoohhError:
            errors["create_board"] = "Error creating board, please try again."
        else:
            return RedirectResponse(f"/boards/{board.id}", status_code=status.HTTP_303_SEE_OTHER)

    return templates.TemplateResponse(
        request,
        "ui/newboard.html",
        {"form": form, "errors": errors},
    )


@router.get("/boards/{board_id}", name="ui_board", response_class=HTMLResponse)
def ui_board(
    request: Request,
    board_id: str,
    service: OoohhService = Depends(get_service),
    ctx: CallContext = Depends(get_call_context),
) -> Response:
    try:
        board = service.get_board(board_id, ctx=ctx)
    except OoohhError:
        return RedirectResponse("/", status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    return _render_board(request, board)


@router.post("/boards/{board_id}", name="ui_add_dial")
def ui_add_dial(
    request: Request,
    board_id: str,
    dial_id: str = Form("", alias="dialID"),
    token: str = Form(""),
    service: OoohhService = Depends(get_service),
    ctx: CallContext = Depends(get_call_context),
) -> Response:
    """Append a dial to the board, keeping the references it already has."""
    try:
        board = service.get_board(board_id, ctx=ctx)
    except OoohhError:
        return RedirectResponse(f"/boards/{board_id}", status_code=status.HTTP_303_SEE_OTHER)

    errors = _validate(
        {
            "dial_id": (dial_id, "Please enter a dial ID."),
            "token": (token, "Please enter a board token."),
        }
    )
    if errors:
        return _render_board(request, board, errors)

    try:
        service.set_board(board_id, token, [*board.dial_refs, dial_id.strip()], ctx=ctx)
        board = service.get_board(board_id, ctx=ctx)
    except OoohhError as exc:
        if exc.kind is ErrorKind.unauthorized:
            errors["token"] = "Invalid board token."
        else:
            errors["set_board"] = "Error adding dial, please try again."

    return _render_board(request, board, errors)
