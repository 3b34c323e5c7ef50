"""Exception types raised by the pbtrivia client."""

from __future__ import annotations

from typing import Any


class TriviaClientError(Exception):
    """Base class for every error the client raises."""


class ValidationError(TriviaClientError, ValueError):
    """Input rejected locally, before any request was sent."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class UnauthenticatedError(TriviaClientError):
    """Operation needs a session and none is present."""

    def __init__(self, message: str = "User must be authenticated") -> None:
        super().__init__(message)
        self.message = message


class BackendError(TriviaClientError):
    """Non-success response from the backend, or a transport failure.

    Transport failures carry ``status == 0`` and chain the original exception.
    """

    def __init__(
        self,
        message: str,
        status: int = 0,
        data: dict[str, Any] | None = None,
        url: str = "",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.data = data or {}
        self.url = url

    @classmethod
    def from_payload(cls, status: int, payload: Any, url: str = "") -> "BackendError":
        if isinstance(payload, dict):
            message = str(payload.get("message") or f"Request failed with status {status}")
            data = payload.get("data")
            return cls(message, status=status, data=data if isinstance(data, dict) else {}, url=url)
        return cls(f"Request failed with status {status}", status=status, url=url)

    @property
    def is_not_found(self) -> bool:
        return self.status == 404

    def field_error(self, field: str) -> dict[str, Any] | None:
        entry = self.data.get(field)
        return entry if isinstance(entry, dict) else None

    def is_unique_violation(self, field: str) -> bool:
        entry = self.field_error(field)
        return entry is not None and entry.get("code") == "validation_not_unique"

    def __repr__(self) -> str:
        return f"BackendError(status={self.status}, message={self.message!r}, url={self.url!r})"
