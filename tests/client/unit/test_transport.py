import httpx
import pytest

from pbtrivia.client.errors import BackendError
from pbtrivia.client.transport import HttpTransport, create_transport


def _transport(handler) -> HttpTransport:
    client = httpx.Client(base_url="http://pb.test", transport=httpx.MockTransport(handler))
    return HttpTransport(client=client)


def test_send_passes_token_as_raw_authorization_header() -> None:
    seen: dict[str, str] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["authorization"] = request.headers.get("Authorization", "")
        seen["path"] = request.url.path
        return httpx.Response(200, json={"ok": True})

    payload = _transport(handler).send("GET", "/api/collections/games/records", token="tok-1")

    assert payload == {"ok": True}
    assert seen == {"authorization": "tok-1", "path": "/api/collections/games/records"}


def test_send_omits_authorization_without_token() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert "Authorization" not in request.headers
        return httpx.Response(200, json={})

    assert _transport(handler).send("GET", "/api/health") == {}


def test_send_returns_none_for_no_content() -> None:
    transport = _transport(lambda request: httpx.Response(204))

    assert transport.send("DELETE", "/api/collections/games/records/g1") is None


def test_send_raises_backend_error_with_payload_fields() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400,
            json={
                "code": 400,
                "message": "Failed to create record.",
                "data": {"code": {"code": "validation_not_unique", "message": "Value must be unique."}},
            },
        )

    with pytest.raises(BackendError) as excinfo:
        _transport(handler).send("POST", "/api/collections/games/records", json={"code": "ABC123"})

    error = excinfo.value
    assert error.status == 400
    assert error.message == "Failed to create record."
    assert error.is_unique_violation("code") is True
    assert error.is_unique_violation("name") is False


def test_send_wraps_transport_failures_as_status_zero() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(BackendError) as excinfo:
        _transport(handler).send("GET", "/api/collections/games/records")

    assert excinfo.value.status == 0
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


def test_send_reports_not_found() -> None:
    transport = _transport(lambda request: httpx.Response(404, json={"message": "Missing."}))

    with pytest.raises(BackendError) as excinfo:
        transport.send("GET", "/api/collections/games/records/nope")

    assert excinfo.value.is_not_found is True


def test_create_transport_owns_and_closes_its_client() -> None:
    transport = create_transport("http://127.0.0.1:8090/", timeout_seconds=1.0)

    assert isinstance(transport, HttpTransport)
    assert transport.base_url == "http://127.0.0.1:8090"
    transport.close()
    assert transport.client is not None and transport.client.is_closed


def test_send_after_client_removed_raises_runtime_error() -> None:
    transport = _transport(lambda request: httpx.Response(200, json={}))
    transport.client = None

    with pytest.raises(RuntimeError, match="no httpx client"):
        transport.send("GET", "/api/health")
