"""Client core for the trivia-night PocketBase backend."""

from .auth import PASSWORD_RESET_MESSAGE, AuthManager, AuthState
from .config import ClientSettings, load_settings
from .errors import BackendError, TriviaClientError, UnauthenticatedError, ValidationError
from .games import create_game, delete_game, get_game, list_games, require_auth, update_game
from .hooks import GameList, GameMutation
from .logger import setup_logging
from .models import GameRecord, GameUpdate, ListResult, QuestionRecord, UserRecord
from .pocketbase import PocketBaseClient, RecordService, create_client
from .session import AuthStore
from .transport import HttpTransport, Transport, create_transport

__all__ = [
    "AuthManager",
    "AuthState",
    "AuthStore",
    "BackendError",
    "ClientSettings",
    "create_client",
    "create_game",
    "create_transport",
    "delete_game",
    "GameList",
    "GameMutation",
    "GameRecord",
    "GameUpdate",
    "get_game",
    "HttpTransport",
    "list_games",
    "ListResult",
    "load_settings",
    "PASSWORD_RESET_MESSAGE",
    "PocketBaseClient",
    "QuestionRecord",
    "RecordService",
    "require_auth",
    "setup_logging",
    "Transport",
    "TriviaClientError",
    "UnauthenticatedError",
    "update_game",
    "UserRecord",
    "ValidationError",
]
