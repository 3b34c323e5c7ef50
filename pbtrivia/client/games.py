"""Authorized, validated CRUD against the ``games`` collection.

Every operation checks for a session before anything else, and validates its
inputs before any request is sent. Which games a host may see or change is
decided by the backend's collection rules (``auth.id == host``).
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

import pydantic

from .errors import UnauthenticatedError, ValidationError
from .models import GameRecord, GameUpdate, narrow
from .pocketbase import PocketBaseClient
from .state import build_initial_game
from .validation import validate_game_code, validate_game_name

logger = logging.getLogger(__name__)

GAMES_COLLECTION = "games"
# ids carry a time component, so descending id order is newest first
LIST_SORT = "-id"


def require_auth(client: PocketBaseClient) -> str:
    """Return the session's user id, or raise when no one is signed in."""
    record = client.auth_store.record
    if record is None or not record.id:
        raise UnauthenticatedError("User must be authenticated")
    return record.id


def validate_name(name: str) -> None:
    validate_game_name(name)


def validate_code(code: str) -> None:
    validate_game_code(code)


def _coerce_update(updates: GameUpdate | Mapping[str, Any]) -> GameUpdate:
    if isinstance(updates, GameUpdate):
        return updates
    try:
        return GameUpdate.model_validate(dict(updates))
    except pydantic.ValidationError as exc:
        fields = sorted({str(error["loc"][0]) for error in exc.errors() if error["loc"]})
        raise ValidationError(f"Invalid game update field(s): {', '.join(fields)}") from exc


def list_games(client: PocketBaseClient) -> list[GameRecord]:
    require_auth(client)
    items = client.collection(GAMES_COLLECTION).get_full_list(sort=LIST_SORT)
    return [narrow(GameRecord, item) for item in items]


def get_game(client: PocketBaseClient, game_id: str) -> GameRecord:
    require_auth(client)
    return narrow(GameRecord, client.collection(GAMES_COLLECTION).get_one(game_id))


def create_game(client: PocketBaseClient, name: str, code: str) -> GameRecord:
    host_id = require_auth(client)
    validate_name(name)
    validate_code(code)

    payload = client.collection(GAMES_COLLECTION).create(build_initial_game(host_id=host_id, name=name, code=code))
    game = narrow(GameRecord, payload)
    logger.info("Created game %s (%s) for host %s", game.id, game.code, host_id)
    return game


def update_game(client: PocketBaseClient, game_id: str, updates: GameUpdate | Mapping[str, Any]) -> GameRecord:
    """Apply a partial update; only the fields present are validated and sent."""
    require_auth(client)
    payload = _coerce_update(updates).to_payload()
    if "name" in payload:
        validate_name(payload["name"])
    if "code" in payload:
        validate_code(payload["code"])

    game = narrow(GameRecord, client.collection(GAMES_COLLECTION).update(game_id, payload))
    logger.info("Updated game %s (fields: %s)", game_id, ", ".join(sorted(payload)) or "none")
    return game


def delete_game(client: PocketBaseClient, game_id: str) -> None:
    require_auth(client)
    client.collection(GAMES_COLLECTION).delete(game_id)
    logger.info("Deleted game %s", game_id)
