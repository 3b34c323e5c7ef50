"""HTTP transport contract and the httpx implementation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from .errors import BackendError

logger = logging.getLogger(__name__)


class Transport(Protocol):
    def send(
        self,
        method: str,
        path: str,
        *,
        token: str = "",
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send one request and return the decoded JSON body (``None`` for 204)."""

    def close(self) -> None:
        """Release any held connections."""


@dataclass
class HttpTransport:
    base_url: str = ""
    timeout_seconds: float = 5.0
    client: httpx.Client | None = None
    _owns_client: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.client is None:
            self.client = httpx.Client(base_url=self.base_url, timeout=self.timeout_seconds)
            self._owns_client = True

    def send(
        self,
        method: str,
        path: str,
        *,
        token: str = "",
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        if self.client is None:
            raise RuntimeError("HttpTransport has no httpx client")
        headers = {"Authorization": token} if token else {}
        logger.debug("%s %s", method, path)
        try:
            response = self.client.request(method, path, json=json, params=params, headers=headers)
        except httpx.HTTPError as exc:
            raise BackendError(f"Request failed: {exc}", status=0, url=path) from exc

        if response.status_code == 204 or not response.content:
            if response.is_success:
                return None
            raise BackendError.from_payload(response.status_code, None, url=path)

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not response.is_success:
            logger.debug("%s %s -> %s", method, path, response.status_code)
            raise BackendError.from_payload(response.status_code, payload, url=path)
        if payload is None:
            raise BackendError("Response body is not valid JSON", status=response.status_code, url=path)
        return payload

    def close(self) -> None:
        if self._owns_client and self.client is not None:
            self.client.close()


def create_transport(base_url: str, timeout_seconds: float = 5.0) -> Transport:
    return HttpTransport(base_url=base_url.rstrip("/"), timeout_seconds=timeout_seconds)
