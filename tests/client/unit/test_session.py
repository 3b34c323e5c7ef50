import json

from pbtrivia.client.models import UserRecord
from pbtrivia.client.session import AuthStore


def _user(**overrides) -> UserRecord:
    payload = {"id": "u1", "email": "a@b.com", "displayName": "Host"}
    payload.update(overrides)
    return UserRecord.model_validate(payload)


def test_validity_requires_token_and_record() -> None:
    store = AuthStore()

    assert store.is_valid is False

    store.save("", _user())
    assert store.is_valid is False

    store.save("token-1", None)
    assert store.is_valid is False

    store.save("token-1", _user())
    assert store.is_valid is True


def test_save_accepts_raw_record_dict() -> None:
    store = AuthStore()

    store.save("token-1", {"id": "u9", "email": "x@y.com"})

    assert store.record is not None
    assert store.record.id == "u9"


def test_on_change_notifies_and_unsubscribes() -> None:
    store = AuthStore()
    seen: list[tuple[str, str | None]] = []

    unsubscribe = store.on_change(lambda token, record: seen.append((token, record.id if record else None)))
    store.save("token-1", _user())
    store.clear()
    unsubscribe()
    store.save("token-2", _user(id="u2"))

    assert seen == [("token-1", "u1"), ("", None)]


def test_on_change_can_fire_immediately() -> None:
    store = AuthStore()
    store.save("token-1", _user())
    seen: list[str] = []

    store.on_change(lambda token, record: seen.append(token), fire_immediately=True)

    assert seen == ["token-1"]


def test_clear_is_idempotent() -> None:
    store = AuthStore()
    store.save("token-1", _user())

    store.clear()
    store.clear()

    assert store.token == ""
    assert store.record is None
    assert store.is_valid is False


def test_file_store_persists_across_instances(tmp_path) -> None:
    path = tmp_path / "session.json"
    first = AuthStore(path=path)
    first.save("token-1", _user())

    second = AuthStore(path=path)

    assert second.is_valid is True
    assert second.token == "token-1"
    assert second.record == _user()
    assert json.loads(path.read_text(encoding="utf-8"))["record"]["displayName"] == "Host"


def test_file_store_removes_file_on_clear(tmp_path) -> None:
    path = tmp_path / "session.json"
    store = AuthStore(path=path)
    store.save("token-1", _user())

    store.clear()

    assert not path.exists()
    assert AuthStore(path=path).is_valid is False


def test_file_store_ignores_corrupt_file(tmp_path, caplog) -> None:
    path = tmp_path / "session.json"
    path.write_text("{not json", encoding="utf-8")

    with caplog.at_level("WARNING", logger="pbtrivia.client.session"):
        store = AuthStore(path=path)

    assert store.is_valid is False
    assert "unreadable session file" in caplog.text


def test_unwritable_session_file_still_notifies_subscribers(tmp_path, caplog) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    store = AuthStore(path=blocker / "session.json")
    seen: list[str] = []
    store.on_change(lambda token, record: seen.append(token))

    with caplog.at_level("WARNING", logger="pbtrivia.client.session"):
        store.save("token-1", _user())
        store.clear()

    assert seen == ["token-1", ""]
    assert store.is_valid is False
    assert "Could not write session file" in caplog.text
