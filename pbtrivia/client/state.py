"""Builders for new game payloads and backend timestamps."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

DEFAULT_GAME_STATUS = "not_started"


def utc_now_stamp() -> str:
    """Return the current time in the backend's ``YYYY-MM-DD HH:MM:SS.mmmZ`` form."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%d %H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def build_initial_game(host_id: str, name: str, code: str) -> dict[str, Any]:
    """Return the create payload for a game that has not started yet."""
    return {
        "host": host_id,
        "name": name,
        "code": code,
        "status": DEFAULT_GAME_STATUS,
        "currentRound": 0,
    }
