"""Slack ``/wtf`` command support: one dial per Slack user."""

from __future__ import annotations

import base64
import logging
import math
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from models.errors import OoohhError, StorageError
from services.context import CallContext
from services.ooohh import OoohhService, build_default_service
from settings import get_settings
from storage.kv_store import KVStore, StoreError, build_default_store

SLACK_USERS_BUCKET = "slack_users"
WTF_COMMAND = "/wtf"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlackReply:
    text: str
    response_type: str = "ephemeral"


def generate_token(key: str, salt: str) -> str:
    """Derive a user's dial token from their Slack key and the server salt."""
    salted = f"{key}:{salt}"
    return base64.b64encode(salted.encode("utf-8")).decode("ascii").lower()


def _reply_for_value(value: float) -> str:
    if value > 75:
        return "Ooohh, make sure you check in with someone, maybe they can help."
    if value > 50:
        return "Ooohh, make sure you take a break!"
    return "Ooohh, I wish I felt like that."


class SlackService:
    """Maps Slack users to dials and applies ``/wtf`` commands to them."""

    def __init__(
        self,
        store: KVStore,
        service: OoohhService,
        salt: str,
    ) -> None:
        self.store = store
        self.service = service
        self.salt = salt

        try:
            with self.store.update() as txn:
                txn.create_bucket_if_not_exists(SLACK_USERS_BUCKET)
        except StoreError as exc:
            raise StorageError("initializing slack users bucket") from exc

    def set_dial_value(
        self,
        team_id: str,
        user_id: str,
        value: float,
        ctx: Optional[CallContext] = None,
    ) -> None:
        """Set the user's dial, creating it and the user mapping on first use."""
        key = f"{team_id}:{user_id}"
        token = generate_token(key, self.salt)

        dial_id = self._find_dial_id(key)
        if dial_id is None:
            dial = self.service.create_dial(key, token, ctx=ctx)
            self._store_dial_id(key, dial.id)
            logger.info(
                "Created dial for Slack user.",
                extra={"dial_id": dial.id, "team_id": team_id, "user_id": user_id},
            )
            dial_id = dial.id

        self.service.set_dial(dial_id, token, value, ctx=ctx)

    def respond_to_command(
        self,
        command: str,
        text: str,
        team_id: str,
        user_id: str,
        ctx: Optional[CallContext] = None,
    ) -> SlackReply:
        """Turn a slash command into the ephemeral reply shown to the user."""
        if command != WTF_COMMAND:
            return SlackReply("Not sure what you mean there, friend.")

        candidate = text.strip()
        if candidate == "help":
            return SlackReply("Use the following format to set a value: `/wtf value`")

        try:
            value = float(candidate)
        except ValueError:
            return SlackReply("Please supply a single number as your WTF level.")

        if math.isnan(value):
            return SlackReply("Sneaky. Please supply a _number_ as your WTF level.")
        if math.isinf(value):
            return SlackReply("Definitely seek out help! Unfortunately, I only go up to 100.")

        try:
            self.set_dial_value(team_id, user_id, value, ctx=ctx)
        except OoohhError as exc:
            logger.error(
                "Could not set dial from Slack command.",
                extra={"team_id": team_id, "user_id": user_id, "reason": str(exc)},
            )
            return SlackReply("Oops, something didn't quite work out. Please, try again.")

        return SlackReply(_reply_for_value(value))

    def _find_dial_id(self, key: str) -> Optional[str]:
        try:
            with self.store.view() as txn:
                payload = txn.bucket(SLACK_USERS_BUCKET).get(key)
        except StoreError as exc:
            raise StorageError("finding existing dial", key) from exc
        if payload is None:
            return None
        return payload.decode("utf-8")

    def _store_dial_id(self, key: str, dial_id: str) -> None:
        try:
            with self.store.update() as txn:
                txn.bucket(SLACK_USERS_BUCKET).put(key, dial_id.encode("utf-8"))
        except StoreError as exc:
            raise StorageError("storing user to dial mapping", key) from exc


@lru_cache
def build_default_slack_service() -> SlackService:
    settings = get_settings()
    return SlackService(
        store=build_default_store(),
        service=build_default_service(),
        salt=settings.slack_salt,
    )
