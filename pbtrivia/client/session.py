"""Session holder with change notifications and optional file persistence."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional

import pydantic

from .models import UserRecord

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[str, Optional[UserRecord]], None]


class AuthStore:
    """Process-wide token and user record.

    ``is_valid`` is derived on every access. When ``path`` is given the session
    is written to it on each change and read back on construction.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path) if path is not None else None
        self._token = ""
        self._record: UserRecord | None = None
        self._callbacks: list[ChangeCallback] = []
        if self._path is not None:
            self._load(self._path)

    @property
    def token(self) -> str:
        return self._token

    @property
    def record(self) -> UserRecord | None:
        return self._record

    @property
    def is_valid(self) -> bool:
        return self._token != "" and self._record is not None

    def save(self, token: str, record: UserRecord | dict[str, Any] | None) -> None:
        if isinstance(record, dict):
            record = UserRecord.model_validate(record)
        self._token = token or ""
        self._record = record
        self._persist()
        self._trigger_change()

    def clear(self) -> None:
        self._token = ""
        self._record = None
        self._persist()
        self._trigger_change()

    def on_change(self, callback: ChangeCallback, fire_immediately: bool = False) -> Callable[[], None]:
        """Register ``callback(token, record)``; returns the function that removes it."""
        self._callbacks.append(callback)
        if fire_immediately:
            callback(self._token, self._record)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def _trigger_change(self) -> None:
        for callback in list(self._callbacks):
            callback(self._token, self._record)

    def _persist(self) -> None:
        if self._path is None:
            return
        try:
            if self._token == "" or self._record is None:
                self._path.unlink(missing_ok=True)
                return
            payload = {"token": self._token, "record": self._record.model_dump(by_alias=True)}
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload), encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not write session file %s: %s", self._path, type(exc).__name__)

    def _load(self, path: Path) -> None:
        if not path.exists():
            return
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
            token = str(payload.get("token") or "")
            record = UserRecord.model_validate(payload["record"])
        except (OSError, ValueError, KeyError, AttributeError, pydantic.ValidationError) as exc:
            logger.warning("Ignoring unreadable session file %s: %s", path, type(exc).__name__)
            return
        self._token = token
        self._record = record
        logger.debug("Restored session for user %s from %s", record.id, path)
