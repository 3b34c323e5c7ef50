"""Configuration helpers for the PocketBase client runtime."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_POCKETBASE_URL = "http://127.0.0.1:8090"


@dataclass(frozen=True)
class ClientSettings:
    pocketbase_url: str
    timeout_seconds: float
    auth_store_path: str | None
    log_level: str


def _resolve_base_url() -> str:
    env_url = os.getenv("PBTRIVIA_POCKETBASE_URL")
    if env_url is not None and env_url.strip():
        return env_url.strip()
    return DEFAULT_POCKETBASE_URL


def load_settings() -> ClientSettings:
    timeout_raw = os.getenv("PBTRIVIA_HTTP_TIMEOUT", "5.0")
    return ClientSettings(
        pocketbase_url=_resolve_base_url(),
        timeout_seconds=float(timeout_raw),
        auth_store_path=os.getenv("PBTRIVIA_AUTH_STORE_PATH") or None,
        log_level=os.getenv("PBTRIVIA_LOG_LEVEL", "INFO").upper(),
    )
