"""Collection-scoped REST access carrying the current session token."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from .config import ClientSettings, load_settings
from .session import AuthStore
from .transport import Transport, create_transport

FULL_LIST_BATCH_SIZE = 500


class RecordService:
    """Requests against one collection: record CRUD plus the auth endpoints of auth collections."""

    def __init__(self, client: "PocketBaseClient", collection: str) -> None:
        self._client = client
        self.collection = collection

    @property
    def base_path(self) -> str:
        return f"/api/collections/{quote(self.collection, safe='')}"

    @property
    def records_path(self) -> str:
        return f"{self.base_path}/records"

    def _record_path(self, record_id: str) -> str:
        return f"{self.records_path}/{quote(record_id, safe='')}"

    def get_list(
        self,
        page: int = 1,
        per_page: int = 30,
        sort: str | None = None,
        filter: str | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"page": page, "perPage": per_page}
        if sort:
            params["sort"] = sort
        if filter:
            params["filter"] = filter
        return self._client.send("GET", self.records_path, params=params)

    def get_full_list(
        self,
        sort: str | None = None,
        filter: str | None = None,
        batch: int = FULL_LIST_BATCH_SIZE,
    ) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        page = 1
        while True:
            result = self.get_list(page=page, per_page=batch, sort=sort, filter=filter)
            page_items = list(result.get("items") or [])
            items.extend(page_items)
            if len(page_items) < batch or page >= int(result.get("totalPages") or 0):
                return items
            page += 1

    def get_one(self, record_id: str) -> dict[str, Any]:
        return self._client.send("GET", self._record_path(record_id))

    def create(self, body: dict[str, Any]) -> dict[str, Any]:
        return self._client.send("POST", self.records_path, json=body)

    def update(self, record_id: str, body: dict[str, Any]) -> dict[str, Any]:
        return self._client.send("PATCH", self._record_path(record_id), json=body)

    def delete(self, record_id: str) -> None:
        self._client.send("DELETE", self._record_path(record_id))

    def auth_with_password(self, identity: str, password: str) -> dict[str, Any]:
        return self._client.send(
            "POST",
            f"{self.base_path}/auth-with-password",
            json={"identity": identity, "password": password},
        )

    def auth_refresh(self) -> dict[str, Any]:
        return self._client.send("POST", f"{self.base_path}/auth-refresh")

    def request_password_reset(self, email: str) -> None:
        self._client.send("POST", f"{self.base_path}/request-password-reset", json={"email": email})


class PocketBaseClient:
    def __init__(self, transport: Transport, auth_store: AuthStore | None = None, base_url: str = "") -> None:
        self.transport = transport
        self.auth_store = auth_store if auth_store is not None else AuthStore()
        self.base_url = base_url

    def collection(self, name: str) -> RecordService:
        return RecordService(self, name)

    def send(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        return self.transport.send(method, path, token=self.auth_store.token, json=json, params=params)

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> "PocketBaseClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def create_client(settings: ClientSettings | None = None) -> PocketBaseClient:
    active = settings if settings is not None else load_settings()
    return PocketBaseClient(
        transport=create_transport(active.pocketbase_url, timeout_seconds=active.timeout_seconds),
        auth_store=AuthStore(path=active.auth_store_path),
        base_url=active.pocketbase_url,
    )
