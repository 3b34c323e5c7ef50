import pytest

from pbtrivia.client import games
from pbtrivia.client.errors import BackendError, UnauthenticatedError, ValidationError
from pbtrivia.client.models import GameUpdate
from pbtrivia.client.pocketbase import PocketBaseClient
from pbtrivia.client.validation import GAME_CODE_FORMAT, GAME_NAME_REQUIRED


class _RecordingTransport:
    def __init__(self, responses=None) -> None:
        self.responses = list(responses or [])
        self.calls: list[dict] = []

    def send(self, method, path, *, token="", json=None, params=None):
        self.calls.append({"method": method, "path": path, "token": token, "json": json, "params": params})
        response = self.responses.pop(0) if self.responses else None
        if isinstance(response, Exception):
            raise response
        return response

    def close(self) -> None:
        return None


def _game(**overrides) -> dict:
    payload = {
        "id": "g1",
        "collectionId": "pbc_4009211000",
        "collectionName": "games",
        "host": "user1",
        "name": "Test Game",
        "code": "ABC123",
        "status": "not_started",
        "currentRound": 0,
    }
    payload.update(overrides)
    return payload


def _client(responses=None, authenticated: bool = True):
    transport = _RecordingTransport(responses)
    client = PocketBaseClient(transport=transport)
    if authenticated:
        client.auth_store.save("token-1", {"id": "user1", "email": "host@example.com"})
    return client, transport


def test_require_auth_returns_user_id() -> None:
    client, _ = _client()

    assert games.require_auth(client) == "user1"


def test_require_auth_raises_without_session() -> None:
    client, _ = _client(authenticated=False)

    with pytest.raises(UnauthenticatedError, match="User must be authenticated"):
        games.require_auth(client)


def test_list_games_sorts_newest_first_and_narrows() -> None:
    page = {"page": 1, "perPage": 500, "totalItems": 2, "totalPages": 1, "items": [_game(id="g2"), _game()]}
    client, transport = _client([page])

    result = games.list_games(client)

    assert [game.id for game in result] == ["g2", "g1"]
    assert transport.calls[0]["method"] == "GET"
    assert transport.calls[0]["path"] == "/api/collections/games/records"
    assert transport.calls[0]["params"]["sort"] == "-id"
    assert "filter" not in transport.calls[0]["params"]
    assert transport.calls[0]["token"] == "token-1"


def test_list_games_returns_empty_list() -> None:
    client, _ = _client([{"page": 1, "perPage": 500, "totalItems": 0, "totalPages": 0, "items": []}])

    assert games.list_games(client) == []


def test_list_games_without_session_makes_no_request() -> None:
    client, transport = _client(authenticated=False)

    with pytest.raises(UnauthenticatedError):
        games.list_games(client)

    assert transport.calls == []


def test_create_game_submits_defaults_for_current_host() -> None:
    created = _game(id="new1", created="2025-01-01 10:00:00.000Z", updated="2025-01-01 10:00:00.000Z")
    client, transport = _client([created])

    game = games.create_game(client, "Test Game", "ABC123")

    assert game.id == "new1"
    assert game.created == "2025-01-01 10:00:00.000Z"
    assert transport.calls[0]["method"] == "POST"
    assert transport.calls[0]["json"] == {
        "host": "user1",
        "name": "Test Game",
        "code": "ABC123",
        "status": "not_started",
        "currentRound": 0,
    }


@pytest.mark.parametrize("code", ["abc123", "ABC", "ABC-123", "ABCDEFGHIJKLM"])
def test_create_game_rejects_bad_code_before_request(code: str) -> None:
    client, transport = _client()

    with pytest.raises(ValidationError) as excinfo:
        games.create_game(client, "Test Game", code)

    assert str(excinfo.value) == GAME_CODE_FORMAT
    assert transport.calls == []


@pytest.mark.parametrize("name", ["", "   ", "\t\n"])
def test_create_game_rejects_blank_name(name: str) -> None:
    client, transport = _client()

    with pytest.raises(ValidationError) as excinfo:
        games.create_game(client, name, "ABC123")

    assert str(excinfo.value) == GAME_NAME_REQUIRED
    assert transport.calls == []


def test_create_game_checks_name_before_code() -> None:
    client, _ = _client()

    with pytest.raises(ValidationError) as excinfo:
        games.create_game(client, "", "bad")

    assert excinfo.value.field == "name"


def test_create_game_checks_auth_before_validation() -> None:
    client, transport = _client(authenticated=False)

    with pytest.raises(UnauthenticatedError):
        games.create_game(client, "", "bad")

    assert transport.calls == []


def test_create_game_propagates_duplicate_code_error() -> None:
    error = BackendError(
        "Failed to create record.",
        status=400,
        data={"code": {"code": "validation_not_unique", "message": "Value must be unique."}},
    )
    client, _ = _client([error])

    with pytest.raises(BackendError) as excinfo:
        games.create_game(client, "Test Game", "ABC123")

    assert excinfo.value is error
    assert excinfo.value.is_unique_violation("code")


def test_update_game_sends_only_present_fields() -> None:
    client, transport = _client([_game(name="Updated Game")])

    game = games.update_game(client, "g1", {"name": "Updated Game"})

    assert game.name == "Updated Game"
    assert transport.calls[0]["method"] == "PATCH"
    assert transport.calls[0]["path"] == "/api/collections/games/records/g1"
    assert transport.calls[0]["json"] == {"name": "Updated Game"}


def test_update_game_with_empty_payload_skips_validation() -> None:
    client, transport = _client([_game()])

    games.update_game(client, "g1", {})

    assert transport.calls[0]["json"] == {}


def test_update_game_accepts_model() -> None:
    client, transport = _client([_game(code="NEW1")])

    games.update_game(client, "g1", GameUpdate(code="NEW1"))

    assert transport.calls[0]["json"] == {"code": "NEW1"}


def test_update_game_validates_all_fields_before_writing() -> None:
    client, transport = _client()

    with pytest.raises(ValidationError) as excinfo:
        games.update_game(client, "g1", {"name": "Fine", "code": "bad"})

    assert excinfo.value.field == "code"
    assert transport.calls == []


def test_update_game_rejects_blank_name() -> None:
    client, transport = _client()

    with pytest.raises(ValidationError):
        games.update_game(client, "g1", {"name": ""})

    assert transport.calls == []


def test_update_game_rejects_unknown_fields() -> None:
    client, transport = _client()

    with pytest.raises(ValidationError, match="host"):
        games.update_game(client, "g1", {"host": "someone-else"})

    assert transport.calls == []


def test_delete_game_issues_delete() -> None:
    client, transport = _client([None])

    assert games.delete_game(client, "g1") is None
    assert transport.calls[0]["method"] == "DELETE"
    assert transport.calls[0]["path"] == "/api/collections/games/records/g1"


def test_delete_missing_game_surfaces_backend_error() -> None:
    error = BackendError("The requested resource wasn't found.", status=404)
    client, _ = _client([error])

    with pytest.raises(BackendError) as excinfo:
        games.delete_game(client, "missing")

    assert excinfo.value.is_not_found


def test_get_game_narrows_record() -> None:
    client, transport = _client([_game(startedAt="2025-01-01 11:00:00.000Z")])

    game = games.get_game(client, "g1")

    assert game.started_at == "2025-01-01 11:00:00.000Z"
    assert transport.calls[0]["path"] == "/api/collections/games/records/g1"
