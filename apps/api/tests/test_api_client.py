"""
Tests for the Python API client, driven against the app through TestClient
"""
import json
from datetime import timedelta

import pytest

from api_client.client import ApiClient, ApiError, SessionExpiredError
from api_client.state import AppState
from api_client.storage import TOKENS_KEY, FileTokenStorage, MemoryTokenStorage, TokenStorage, Tokens
from core.security import create_access_token
from conftest import DEFAULT_PASSWORD

BASE_URL = "http://testserver/api/v1"


class RecordingSession:
    """Pass-through to TestClient that remembers every call."""

    def __init__(self, inner):
        self.inner = inner
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url.replace(BASE_URL, "")))
        return self.inner.request(method, url, **kwargs)


class CannedResponse:
    def __init__(self, status_code, body=None):
        self.status_code = status_code
        self._body = body

    def json(self):
        if self._body is None:
            raise ValueError("no body")
        return self._body


class CannedSession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url.replace(BASE_URL, "")))
        return self.responses.pop(0)


@pytest.fixture
def session(client):
    return RecordingSession(client)


@pytest.fixture
def api(session):
    return ApiClient(BASE_URL, MemoryTokenStorage(), session=session)


class TestApiClient:
    def test_register_and_login_persist_tokens(self, api):
        api.register("Ana Souza", "a@x.com", DEFAULT_PASSWORD)
        first = api.storage.get()
        assert first.access_token and first.refresh_token

        api.login("a@x.com", DEFAULT_PASSWORD)
        assert api.storage.get().refresh_token != first.refresh_token
        assert api.me()["email"] == "a@x.com"

    def test_expired_access_token_refreshes_and_retries_once(self, api, session):
        body = api.register("Ana Souza", "a@x.com", DEFAULT_PASSWORD)
        expired = create_access_token(body["user"]["id"], expires_delta=timedelta(seconds=-1))
        api.storage.set(Tokens(access_token=expired, refresh_token=body["refreshToken"]))
        session.calls.clear()

        assert api.me()["email"] == "a@x.com"
        assert session.calls == [("GET", "/auth/me"), ("POST", "/auth/refresh"), ("GET", "/auth/me")]

        stored = api.storage.get()
        assert stored.access_token != expired
        assert stored.refresh_token != body["refreshToken"]

    def test_failed_refresh_clears_session(self, api, session):
        body = api.register("Ana Souza", "a@x.com", DEFAULT_PASSWORD)
        expired = create_access_token(body["user"]["id"], expires_delta=timedelta(seconds=-1))
        api.storage.set(Tokens(access_token=expired, refresh_token="revoked-or-unknown"))
        session.calls.clear()

        with pytest.raises(SessionExpiredError):
            api.list_workouts()
        assert api.storage.get() is None
        assert session.calls == [("GET", "/workouts"), ("POST", "/auth/refresh")]

    def test_second_401_after_refresh_clears_session(self):
        storage = MemoryTokenStorage(Tokens(access_token="old", refresh_token="r1"))
        fake = CannedSession([
            CannedResponse(401, {"message": "Invalid or expired token"}),
            CannedResponse(200, {"user": {}, "accessToken": "new", "refreshToken": "r2"}),
            CannedResponse(401, {"message": "Invalid or expired token"}),
        ])
        api = ApiClient(BASE_URL, storage, session=fake)

        with pytest.raises(SessionExpiredError):
            api.me()
        assert storage.get() is None
        assert len(fake.calls) == 3

    def test_unauthenticated_401_is_not_retried(self):
        fake = CannedSession([CannedResponse(401, {"message": "Invalid email or password"})])
        api = ApiClient(BASE_URL, MemoryTokenStorage(), session=fake)

        with pytest.raises(ApiError) as exc:
            api.login("a@x.com", "wrong-password")
        assert not isinstance(exc.value, SessionExpiredError)
        assert exc.value.status == 401
        assert exc.value.message == "Invalid email or password"
        assert len(fake.calls) == 1

    def test_server_message_is_surfaced(self, api):
        api.register("Ana Souza", "a@x.com", DEFAULT_PASSWORD)
        with pytest.raises(ApiError) as exc:
            api.get_workout("00000000-0000-0000-0000-000000000000")
        assert exc.value.status == 404
        assert str(exc.value) == "Workout not found"

        with pytest.raises(ApiError) as exc:
            api.create_workout(day_of_week=9, time="07:30", name="Legs")
        assert exc.value.status == 400
        assert exc.value.message == "Invalid request data"

    def test_non_json_error_body(self):
        fake = CannedSession([CannedResponse(502)])
        api = ApiClient(BASE_URL, MemoryTokenStorage(), session=fake)
        with pytest.raises(ApiError) as exc:
            api.list_shopping()
        assert exc.value.status == 502
        assert exc.value.message == "Error communicating with the API"

    def test_no_content_returns_none(self, api):
        api.register("Ana Souza", "a@x.com", DEFAULT_PASSWORD)
        item = api.create_shopping_item("Whey", "1kg")
        assert api.delete_shopping_item(item["id"]) is None
        assert api.list_shopping() == []

    def test_logout_revokes_and_clears(self, api):
        body = api.register("Ana Souza", "a@x.com", DEFAULT_PASSWORD)
        api.logout()
        assert api.storage.get() is None

        other = ApiClient(BASE_URL, MemoryTokenStorage(), session=api.session)
        with pytest.raises(ApiError) as exc:
            other.request("POST", "/auth/refresh", json={"refreshToken": body["refreshToken"]}, auth=False)
        assert exc.value.status == 401

    def test_logout_clears_even_when_server_fails(self):
        storage = MemoryTokenStorage(Tokens(access_token="a", refresh_token="r"))
        api = ApiClient(BASE_URL, storage, session=CannedSession([CannedResponse(500)]))
        api.logout()
        assert storage.get() is None


class TestTokenStoragePort:
    def test_port_is_abstract(self):
        with pytest.raises(TypeError):
            TokenStorage()

        class GetOnly(TokenStorage):
            def get(self):
                return None

        with pytest.raises(TypeError):
            GetOnly()


class TestFileTokenStorage:
    def test_tokens_live_under_fixed_key(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text(json.dumps({"theme": "dark"}))
        storage = FileTokenStorage(path)

        assert storage.get() is None
        storage.set(Tokens(access_token="a1", refresh_token="r1"))

        data = json.loads(path.read_text())
        assert data[TOKENS_KEY] == {"accessToken": "a1", "refreshToken": "r1"}
        assert data["theme"] == "dark"
        assert FileTokenStorage(path).get() == Tokens(access_token="a1", refresh_token="r1")

        storage.clear()
        assert storage.get() is None
        assert json.loads(path.read_text()) == {"theme": "dark"}

    def test_missing_or_corrupt_file(self, tmp_path):
        assert FileTokenStorage(tmp_path / "absent.json").get() is None
        corrupt = tmp_path / "corrupt.json"
        corrupt.write_text("{not json")
        assert FileTokenStorage(corrupt).get() is None


class TestAppState:
    def test_load_and_exercise_toggle_invalidates_one_workout(self, api, session):
        state = AppState(api)
        state.register("Ana Souza", "a@x.com", DEFAULT_PASSWORD)
        assert state.signed_in
        assert state.preferences == {"goals": [], "trainingTypes": []}

        workout = state.create_workout(1, "07:30", "Legs", exercises=[{"name": "Squat"}, {"name": "Lunge"}])
        squat, lunge = workout["exercises"]

        state.toggle_exercise(workout["id"], squat["id"])
        session.calls.clear()
        state.toggle_exercise(workout["id"], lunge["id"])

        assert state.workouts[0]["completed"] is True
        assert len(state.history) == 1
        # Only the touched workout and the history are re-fetched
        assert [c for c in session.calls if c[0] == "GET"] == [
            ("GET", f"/workouts/{workout['id']}"),
            ("GET", "/workouts/history"),
        ]

    def test_shopping_state_keeps_server_order(self, api):
        state = AppState(api)
        state.register("Ana Souza", "a@x.com", DEFAULT_PASSWORD)
        first = state.add_shopping_item("Arroz")
        state.add_shopping_item("Feijao")
        state.toggle_shopping_item(first["id"])

        assert [i["name"] for i in state.shopping_items] == ["Feijao", "Arroz"]
        assert [i["name"] for i in state.shopping_items] == [i["name"] for i in api.list_shopping()]

    def test_session_expiry_resets_state(self, api):
        state = AppState(api)
        state.register("Ana Souza", "a@x.com", DEFAULT_PASSWORD)
        state.add_shopping_item("Arroz")
        api.storage.set(Tokens(access_token="garbage", refresh_token="garbage"))

        with pytest.raises(SessionExpiredError):
            state.add_shopping_item("Feijao")
        assert not state.signed_in
        assert state.shopping_items == []

    def test_updates_apply_server_objects(self, api, session):
        state = AppState(api)
        state.register("Ana Souza", "a@x.com", DEFAULT_PASSWORD)
        workout = state.create_workout(1, "07:30", "Legs")
        state.complete_workout(workout["id"])
        item = state.add_shopping_item("Arroz")
        session.calls.clear()

        state.update_avatar("https://cdn.example.com/ana.png")
        state.update_workout(workout["id"], name="Pernas", time="06:45")
        state.update_shopping_item(item["id"], quantity="5kg")

        assert state.user["avatarUrl"] == "https://cdn.example.com/ana.png"
        assert state.workouts[0]["name"] == "Pernas"
        assert state.workouts[0]["completed"] is True
        assert state.history[0]["workout"]["name"] == "Pernas"
        assert state.history[0]["workout"]["time"] == "06:45"
        assert state.shopping_items[0]["quantity"] == "5kg"
        # No re-fetching after these updates
        assert not [c for c in session.calls if c[0] == "GET"]
