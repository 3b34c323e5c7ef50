"""Loading/error state wrappers around the game service.

``GameList`` holds a local copy of the host's games and refreshes it
wholesale. ``GameMutation`` runs one create/update/delete at a time and
records the last failure.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Mapping

from . import games as game_service
from .errors import TriviaClientError
from .models import GameRecord, GameUpdate
from .pocketbase import PocketBaseClient

logger = logging.getLogger(__name__)


class GameList:
    def __init__(self, client: PocketBaseClient, fetch_on_init: bool = True) -> None:
        self._client = client
        self.games: list[GameRecord] = []
        self.is_loading = True
        self.error: TriviaClientError | None = None
        if fetch_on_init:
            self.refresh()

    def refresh(self) -> list[GameRecord]:
        """Refetch the list; a failure is kept in ``error`` instead of raised."""
        self.is_loading = True
        self.error = None
        try:
            self.games = game_service.list_games(self._client)
        except TriviaClientError as exc:
            logger.debug("Fetching games failed: %s", exc)
            self.error = exc
        finally:
            self.is_loading = False
        return self.games


class GameMutation:
    def __init__(self, client: PocketBaseClient, on_success: Callable[[], Any] | None = None) -> None:
        self._client = client
        self._on_success = on_success
        self.is_loading = False
        self.error: Exception | None = None

    def create_game(self, name: str, code: str) -> GameRecord:
        with self._tracked():
            game = game_service.create_game(self._client, name, code)
        self._after_success()
        return game

    def update_game(self, game_id: str, updates: GameUpdate | Mapping[str, Any]) -> GameRecord:
        with self._tracked():
            game = game_service.update_game(self._client, game_id, updates)
        self._after_success()
        return game

    def delete_game(self, game_id: str) -> None:
        with self._tracked():
            game_service.delete_game(self._client, game_id)
        self._after_success()

    @contextmanager
    def _tracked(self) -> Iterator[None]:
        self.is_loading = True
        self.error = None
        try:
            yield
        except Exception as exc:
            self.error = exc
            raise
        finally:
            self.is_loading = False

    def _after_success(self) -> None:
        if self._on_success is not None:
            self._on_success()
