from __future__ import annotations

from typing import Any, Dict, List

import httpx
import typer

from cli.config import CLIConfig

USER_AGENT = "ooohh cli"


class ApiClient:
    """Minimal HTTP client for the ooohh API."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(
            base_url=config.base_url,
            timeout=config.timeout,
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
        )

    def close(self) -> None:
        self._client.close()

    def create_dial(self, name: str, token: str) -> Dict[str, Any]:
        return self._request("POST", "/api/dials", json={"name": name, "token": token})

    def get_dial(self, dial_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/dials/{dial_id}", not_found=f"Dial {dial_id} was not found.")

    def set_dial(self, dial_id: str, token: str, value: float) -> Dict[str, Any]:
        return self._request(
            "PATCH",
            f"/api/dials/{dial_id}",
            json={"token": token, "value": value},
            not_found=f"Dial {dial_id} was not found.",
        )

    def create_board(self, name: str, token: str) -> Dict[str, Any]:
        return self._request("POST", "/api/boards", json={"name": name, "token": token})

    def get_board(self, board_id: str) -> Dict[str, Any]:
        return self._request(
            "GET", f"/api/boards/{board_id}", not_found=f"Board {board_id} was not found."
        )

    def set_board(self, board_id: str, token: str, dial_ids: List[str]) -> Dict[str, Any]:
        return self._request(
            "PATCH",
            f"/api/boards/{board_id}",
            json={"token": token, "dials": dial_ids},
            not_found=f"Board {board_id} was not found.",
        )

    def _request(
        self,
        method: str,
        path: str,
        json: Dict[str, Any] | None = None,
        not_found: str | None = None,
    ) -> Dict[str, Any]:
        try:
            response = self._client.request(method, path, json=json)
            if response.status_code == 404 and not_found is not None:
                raise typer.BadParameter(not_found)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.RequestError as exc:
            typer.secho(f"Could not reach {self._config.base_url}: {exc}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1) from exc
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
