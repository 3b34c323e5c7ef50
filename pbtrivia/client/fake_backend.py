"""In-process stand-in for the parts of the PocketBase REST API the client uses.

``create_app`` serves users auth, the ``games`` collection (scoped by the
``auth.id == host`` rule) and the read-only ``questions`` collection from
memory. Pair it with ``fastapi.testclient.TestClient`` and ``HttpTransport``
to run the client end to end without a real backend.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable

from fastapi import FastAPI, Header, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from .security import RecordIdGenerator, generate_token, hash_password, verify_password
from .state import DEFAULT_GAME_STATUS, utc_now_stamp
from .validation import EMAIL_PATTERN, GAME_CODE_PATTERN, PASSWORD_MIN_LENGTH

USERS_COLLECTION_ID = "_pb_users_auth_"
GAMES_COLLECTION_ID = "pbc_4009211000"
QUESTIONS_COLLECTION_ID = "pbc_1937500000"

MAX_PER_PAGE = 1000
GAME_NAME_MAX = 255
GAME_STATUS_MAX = 32
GAME_MUTABLE_FIELDS = ("name", "code", "status", "currentRound", "startedAt", "completedAt")

_FILTER_TERM = re.compile(r'^\s*(\w+)\s*=\s*"((?:[^"\\]|\\.)*)"\s*$')


class PocketBaseHTTPError(Exception):
    def __init__(self, status: int, message: str, data: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.message = message
        self.data = data or {}


def _field_error(code: str, message: str) -> dict[str, str]:
    return {"code": code, "message": message}


def _bad_request(message: str, data: dict[str, Any] | None = None) -> PocketBaseHTTPError:
    return PocketBaseHTTPError(400, message, data)


def _not_found() -> PocketBaseHTTPError:
    return PocketBaseHTTPError(404, "The requested resource wasn't found.")


def _parse_filter(raw: str | None) -> list[tuple[str, str]]:
    if not raw:
        return []
    terms = []
    for part in raw.split("&&"):
        match = _FILTER_TERM.match(part)
        if match is None:
            raise _bad_request("Invalid filter parameters.")
        value = re.sub(r"\\(.)", r"\1", match.group(2))
        terms.append((match.group(1), value))
    return terms


def _sorted_records(records: Iterable[dict[str, Any]], sort: str | None) -> list[dict[str, Any]]:
    ordered = sorted(records, key=lambda record: record["id"])
    if not sort:
        return ordered
    for key in reversed([part.strip() for part in sort.split(",") if part.strip()]):
        descending = key.startswith("-")
        field_name = key.lstrip("-+")
        ordered = sorted(ordered, key=lambda record: str(record.get(field_name, "")), reverse=descending)
    return ordered


def _page(records: list[dict[str, Any]], page: int, per_page: int) -> dict[str, Any]:
    page = max(page, 1)
    per_page = min(max(per_page, 1), MAX_PER_PAGE)
    total_items = len(records)
    total_pages = (total_items + per_page - 1) // per_page
    start = (page - 1) * per_page
    return {
        "page": page,
        "perPage": per_page,
        "totalItems": total_items,
        "totalPages": total_pages,
        "items": records[start : start + per_page],
    }


@dataclass
class InMemoryPocketBase:
    def __post_init__(self) -> None:
        self._next_id = RecordIdGenerator()
        self._users: dict[str, dict[str, Any]] = {}
        self._password_hashes: dict[str, str] = {}
        self._tokens: dict[str, str] = {}
        self._games: dict[str, dict[str, Any]] = {}
        self._questions: dict[str, dict[str, Any]] = {}
        self.password_reset_requests: list[str] = []

    # users

    def create_user(self, payload: dict[str, Any]) -> dict[str, Any]:
        email = str(payload.get("email") or "").strip()
        password = str(payload.get("password") or "")
        errors: dict[str, Any] = {}
        if not email or not EMAIL_PATTERN.fullmatch(email):
            errors["email"] = _field_error("validation_is_email", "Must be a valid email address.")
        elif any(user["email"].lower() == email.lower() for user in self._users.values()):
            errors["email"] = _field_error("validation_not_unique", "Value must be unique.")
        if len(password) < PASSWORD_MIN_LENGTH:
            errors["password"] = _field_error(
                "validation_length_out_of_range", f"The length must be at least {PASSWORD_MIN_LENGTH}."
            )
        if payload.get("passwordConfirm") != password:
            errors["passwordConfirm"] = _field_error("validation_values_mismatch", "Values don't match.")
        if errors:
            raise _bad_request("Failed to create record.", errors)

        now = utc_now_stamp()
        user_id = self._next_id()
        self._users[user_id] = {
            "id": user_id,
            "collectionId": USERS_COLLECTION_ID,
            "collectionName": "users",
            "email": email,
            "displayName": str(payload.get("displayName") or ""),
            "verified": False,
            "created": now,
            "updated": now,
        }
        self._password_hashes[user_id] = hash_password(password)
        return dict(self._users[user_id])

    def authenticate(self, identity: str, password: str) -> dict[str, Any]:
        for user_id, user in self._users.items():
            if user["email"].lower() == identity.strip().lower():
                if verify_password(password, self._password_hashes[user_id]):
                    return self._issue_token(user_id)
                break
        raise _bad_request("Failed to authenticate.")

    def refresh(self, token: str | None) -> dict[str, Any]:
        user_id = self.user_id_for_token(token)
        if user_id is None:
            raise PocketBaseHTTPError(401, "The request requires valid record authorization token.")
        return self._issue_token(user_id)

    def request_password_reset(self, email: str) -> None:
        if not EMAIL_PATTERN.fullmatch(email.strip()):
            raise _bad_request(
                "An error occurred while validating the submitted data.",
                {"email": _field_error("validation_is_email", "Must be a valid email address.")},
            )
        self.password_reset_requests.append(email.strip())

    def user_id_for_token(self, token: str | None) -> str | None:
        if not token:
            return None
        return self._tokens.get(token)

    def _issue_token(self, user_id: str) -> dict[str, Any]:
        token = generate_token()
        self._tokens[token] = user_id
        return {"token": token, "record": dict(self._users[user_id])}

    # games

    def list_games(self, auth_id: str | None, page: int, per_page: int, sort: str | None) -> dict[str, Any]:
        visible = [dict(game) for game in self._games.values() if auth_id is not None and game["host"] == auth_id]
        return _page(_sorted_records(visible, sort), page, per_page)

    def view_game(self, auth_id: str | None, game_id: str) -> dict[str, Any]:
        return dict(self._owned_game(auth_id, game_id))

    def create_game(self, auth_id: str | None, payload: dict[str, Any]) -> dict[str, Any]:
        if auth_id is None or payload.get("host") != auth_id:
            raise _bad_request("Failed to create record.")
        now = utc_now_stamp()
        game = {
            "id": self._next_id(),
            "collectionId": GAMES_COLLECTION_ID,
            "collectionName": "games",
            "host": auth_id,
            "name": "",
            "code": "",
            "status": DEFAULT_GAME_STATUS,
            "currentRound": 0,
            "startedAt": "",
            "completedAt": "",
            "created": now,
            "updated": now,
        }
        game.update({key: payload[key] for key in GAME_MUTABLE_FIELDS if key in payload})
        self._check_game(game)
        self._games[game["id"]] = game
        return dict(game)

    def update_game(self, auth_id: str | None, game_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        current = self._owned_game(auth_id, game_id)
        if "host" in payload and payload["host"] != current["host"]:
            raise _bad_request(
                "Failed to update record.",
                {"host": _field_error("validation_immutable", "The host cannot be changed.")},
            )
        candidate = dict(current)
        candidate.update({key: payload[key] for key in GAME_MUTABLE_FIELDS if key in payload})
        self._check_game(candidate)
        candidate["updated"] = utc_now_stamp()
        self._games[game_id] = candidate
        return dict(candidate)

    def delete_game(self, auth_id: str | None, game_id: str) -> None:
        self._owned_game(auth_id, game_id)
        del self._games[game_id]

    def _owned_game(self, auth_id: str | None, game_id: str) -> dict[str, Any]:
        game = self._games.get(game_id)
        if game is None or auth_id is None or game["host"] != auth_id:
            raise _not_found()
        return game

    def _check_game(self, game: dict[str, Any]) -> None:
        errors: dict[str, Any] = {}
        name = game.get("name")
        if not isinstance(name, str) or not name:
            errors["name"] = _field_error("validation_required", "Cannot be blank.")
        elif len(name) > GAME_NAME_MAX:
            errors["name"] = _field_error(
                "validation_max_text_constraint", f"Must be less than {GAME_NAME_MAX} character(s)."
            )
        code = game.get("code")
        if not isinstance(code, str) or not GAME_CODE_PATTERN.fullmatch(code):
            errors["code"] = _field_error("validation_invalid_format", "Invalid value format.")
        elif any(other["code"] == code and other["id"] != game["id"] for other in self._games.values()):
            errors["code"] = _field_error("validation_not_unique", "Value must be unique.")
        status = game.get("status")
        if not isinstance(status, str) or not status or len(status) > GAME_STATUS_MAX:
            errors["status"] = _field_error("validation_required", "Cannot be blank.")
        current_round = game.get("currentRound")
        if isinstance(current_round, bool) or not isinstance(current_round, int) or current_round < 0:
            errors["currentRound"] = _field_error("validation_min_number_constraint", "Must be 0 or larger.")
        if errors:
            raise _bad_request("Failed to save record.", errors)

    # questions

    def add_question(self, payload: dict[str, Any]) -> dict[str, Any]:
        now = utc_now_stamp()
        question = {
            "id": self._next_id(),
            "collectionId": QUESTIONS_COLLECTION_ID,
            "collectionName": "questions",
            "subcategory": "",
            "level": "",
            "metadata": None,
            "created": now,
            "updated": now,
        }
        question.update(payload)
        self._questions[question["id"]] = question
        return dict(question)

    def list_questions(
        self,
        auth_id: str | None,
        page: int,
        per_page: int,
        sort: str | None,
        filter: str | None,
    ) -> dict[str, Any]:
        terms = _parse_filter(filter)
        if auth_id is None:
            return _page([], page, per_page)
        matching = [
            dict(question)
            for question in self._questions.values()
            if all(str(question.get(field_name, "")) == value for field_name, value in terms)
        ]
        return _page(_sorted_records(matching, sort), page, per_page)


class AuthWithPasswordRequest(BaseModel):
    identity: str
    password: str


class PasswordResetRequest(BaseModel):
    email: str


def create_app(backend: InMemoryPocketBase | None = None, questions: Iterable[dict[str, Any]] = ()) -> FastAPI:
    app = FastAPI(title="pbtrivia in-process backend", version="0.1.0")
    pocketbase = backend if backend is not None else InMemoryPocketBase()
    for question in questions:
        pocketbase.add_question(question)
    app.state.pocketbase = pocketbase

    @app.exception_handler(PocketBaseHTTPError)
    async def handle_pocketbase_error(request: Request, exc: PocketBaseHTTPError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status,
            content={"code": exc.status, "message": exc.message, "data": exc.data},
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        data = {
            str(error["loc"][-1]): _field_error("validation_required", str(error["msg"]))
            for error in exc.errors()
            if error.get("loc")
        }
        return JSONResponse(
            status_code=400,
            content={"code": 400, "message": "An error occurred while validating the submitted data.", "data": data},
        )

    def auth_id(authorization: str | None) -> str | None:
        return pocketbase.user_id_for_token(authorization)

    @app.post("/api/collections/users/auth-with-password")
    def auth_with_password(payload: AuthWithPasswordRequest) -> dict[str, Any]:
        return pocketbase.authenticate(payload.identity, payload.password)

    @app.post("/api/collections/users/auth-refresh")
    def auth_refresh(authorization: str | None = Header(default=None)) -> dict[str, Any]:
        return pocketbase.refresh(authorization)

    @app.post("/api/collections/users/request-password-reset", status_code=204)
    def request_password_reset(payload: PasswordResetRequest) -> Response:
        pocketbase.request_password_reset(payload.email)
        return Response(status_code=204)

    @app.post("/api/collections/users/records")
    def create_user(payload: dict[str, Any]) -> dict[str, Any]:
        return pocketbase.create_user(payload)

    @app.get("/api/collections/games/records")
    def list_games(
        page: int = Query(default=1),
        per_page: int = Query(default=30, alias="perPage"),
        sort: str | None = Query(default=None),
        authorization: str | None = Header(default=None),
    ) -> dict[str, Any]:
        return pocketbase.list_games(auth_id(authorization), page, per_page, sort)

    @app.get("/api/collections/games/records/{game_id}")
    def view_game(game_id: str, authorization: str | None = Header(default=None)) -> dict[str, Any]:
        return pocketbase.view_game(auth_id(authorization), game_id)

    @app.post("/api/collections/games/records")
    def create_game(payload: dict[str, Any], authorization: str | None = Header(default=None)) -> dict[str, Any]:
        return pocketbase.create_game(auth_id(authorization), payload)

    @app.patch("/api/collections/games/records/{game_id}")
    def update_game(
        game_id: str,
        payload: dict[str, Any],
        authorization: str | None = Header(default=None),
    ) -> dict[str, Any]:
        return pocketbase.update_game(auth_id(authorization), game_id, payload)

    @app.delete("/api/collections/games/records/{game_id}", status_code=204)
    def delete_game(game_id: str, authorization: str | None = Header(default=None)) -> Response:
        pocketbase.delete_game(auth_id(authorization), game_id)
        return Response(status_code=204)

    @app.get("/api/collections/questions/records")
    def list_questions(
        page: int = Query(default=1),
        per_page: int = Query(default=30, alias="perPage"),
        sort: str | None = Query(default=None),
        filter: str | None = Query(default=None),
        authorization: str | None = Header(default=None),
    ) -> dict[str, Any]:
        return pocketbase.list_questions(auth_id(authorization), page, per_page, sort, filter)

    return app
