"""Authentication state manager.

``AuthManager`` exposes the current session and the login, registration,
logout and password reset operations. It mirrors every change of the
underlying ``AuthStore`` and forwards the resulting ``AuthState`` to its own
subscribers.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator

from .errors import BackendError, UnauthenticatedError
from .models import UserRecord, narrow
from .pocketbase import PocketBaseClient

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
PASSWORD_RESET_MESSAGE = "If that email exists, you will receive reset instructions in your inbox shortly."

AuthListener = Callable[["AuthState"], None]


@dataclass(frozen=True)
class AuthState:
    user: UserRecord | None
    is_authenticated: bool
    is_loading: bool


class AuthManager:
    def __init__(self, client: PocketBaseClient) -> None:
        self._client = client
        self._token = ""
        self._user: UserRecord | None = None
        self._is_loading = False
        self._listeners: list[AuthListener] = []
        self._unsubscribe: Callable[[], None] | None = client.auth_store.on_change(
            self._on_store_change, fire_immediately=True
        )

    @property
    def state(self) -> AuthState:
        return AuthState(user=self._user, is_authenticated=self.is_authenticated, is_loading=self._is_loading)

    @property
    def user(self) -> UserRecord | None:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._token != "" and self._user is not None

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def login(self, email: str, password: str) -> UserRecord:
        with self._loading():
            user = self._authenticate(email, password)
        logger.info("Signed in as user %s", user.id)
        return user

    def register(self, email: str, display_name: str, password: str, password_confirm: str) -> UserRecord:
        """Create the account, then sign in with the same credentials.

        A failed sign-in after a successful create leaves the account in place.
        """
        with self._loading():
            self._users().create(
                {
                    "email": email,
                    "password": password,
                    "passwordConfirm": password_confirm,
                    "displayName": display_name,
                }
            )
            logger.info("Registered new user account")
            user = self._authenticate(email, password)
        logger.info("Signed in as user %s", user.id)
        return user

    def logout(self) -> None:
        self._client.auth_store.clear()

    def request_password_reset(self, email: str) -> str:
        with self._loading():
            try:
                self._users().request_password_reset(email)
            except Exception as exc:
                # the caller must not learn whether the address is registered
                logger.warning(
                    "Password reset request failed (%s, status %s)",
                    type(exc).__name__,
                    getattr(exc, "status", "n/a"),
                )
        return PASSWORD_RESET_MESSAGE

    def refresh(self) -> UserRecord:
        if not self._client.auth_store.is_valid:
            raise UnauthenticatedError()
        with self._loading():
            payload = self._users().auth_refresh()
            user = self._save_auth_payload(payload)
        logger.debug("Refreshed session for user %s", user.id)
        return user

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._listeners.clear()

    def __enter__(self) -> "AuthManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _users(self):
        return self._client.collection(USERS_COLLECTION)

    def _authenticate(self, email: str, password: str) -> UserRecord:
        payload = self._users().auth_with_password(email, password)
        return self._save_auth_payload(payload)

    def _save_auth_payload(self, payload: Any) -> UserRecord:
        if not isinstance(payload, dict) or not payload.get("token"):
            raise BackendError("Authentication response is missing a token")
        user = narrow(UserRecord, payload.get("record"))
        self._client.auth_store.save(str(payload["token"]), user)
        return user

    @contextmanager
    def _loading(self) -> Iterator[None]:
        self._set_loading(True)
        try:
            yield
        finally:
            self._set_loading(False)

    def _set_loading(self, value: bool) -> None:
        self._is_loading = value
        self._notify()

    def _on_store_change(self, token: str, record: UserRecord | None) -> None:
        self._token = token
        self._user = record
        self._notify()

    def _notify(self) -> None:
        state = self.state
        for listener in list(self._listeners):
            listener(state)
