"""
HTTP client for the Treino API.

Authenticated calls carry the stored access token. When one comes back
401 and a refresh token is stored, the client refreshes once, saves the
new pair and retries the call once. If that does not work the session
is over: storage is cleared and SessionExpiredError is raised.
"""
import logging
from typing import Any, Dict, List, Optional

import requests

from api_client.storage import TokenStorage, Tokens

logger = logging.getLogger(__name__)

DEFAULT_ERROR = "Error communicating with the API"


class ApiError(RuntimeError):
    """Non-2xx response; `message` is the server's message text."""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


class SessionExpiredError(ApiError):
    """Refresh failed or the retried request was still unauthorized."""

    def __init__(self, message: str = "Session expired, please sign in again"):
        super().__init__(401, message)


def _is_success(response) -> bool:
    return 200 <= response.status_code < 300


def _error_message(response) -> str:
    try:
        body = response.json()
    except ValueError:
        return DEFAULT_ERROR
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return DEFAULT_ERROR


class ApiClient:
    def __init__(self, base_url: str, storage: TokenStorage, session=None, timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.storage = storage
        # Anything with requests.Session.request()'s signature will do
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout

    # --- transport ---

    def _send(self, method: str, path: str, json: Any = None, params: Optional[Dict] = None,
              access_token: Optional[str] = None):
        headers = {"Accept": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return self.session.request(
            method,
            f"{self.base_url}{path}",
            json=json,
            params=params,
            headers=headers,
            timeout=self.timeout,
        )

    def _refresh(self, refresh_token: str) -> Optional[Tokens]:
        response = self._send("POST", "/auth/refresh", json={"refreshToken": refresh_token})
        if not _is_success(response):
            logger.info(f"Token refresh rejected with {response.status_code}")
            return None
        body = response.json()
        tokens = Tokens(access_token=body["accessToken"], refresh_token=body["refreshToken"])
        self.storage.set(tokens)
        return tokens

    def _end_session(self) -> None:
        self.storage.clear()
        raise SessionExpiredError()

    def request(self, method: str, path: str, json: Any = None, params: Optional[Dict] = None,
                auth: bool = True) -> Optional[Dict]:
        tokens = self.storage.get() if auth else None
        response = self._send(method, path, json, params, tokens.access_token if tokens else None)

        if response.status_code == 401 and tokens and tokens.refresh_token:
            refreshed = self._refresh(tokens.refresh_token)
            if refreshed is None:
                self._end_session()
            response = self._send(method, path, json, params, refreshed.access_token)
            if response.status_code == 401:
                self._end_session()

        if not _is_success(response):
            raise ApiError(response.status_code, _error_message(response))
        if response.status_code == 204:
            return None
        return response.json()

    def _store_auth(self, body: Dict) -> Dict:
        self.storage.set(Tokens(access_token=body["accessToken"], refresh_token=body["refreshToken"]))
        return body

    # --- auth ---

    def register(self, name: str, email: str, password: str) -> Dict:
        body = self.request("POST", "/auth/register",
                            json={"name": name, "email": email, "password": password}, auth=False)
        return self._store_auth(body)

    def login(self, email: str, password: str) -> Dict:
        body = self.request("POST", "/auth/login", json={"email": email, "password": password}, auth=False)
        return self._store_auth(body)

    def logout(self) -> None:
        """Revoke the refresh token server-side (best effort) and forget the pair."""
        tokens = self.storage.get()
        try:
            if tokens:
                self.request("POST", "/auth/logout", json={"refreshToken": tokens.refresh_token}, auth=False)
        except (ApiError, requests.RequestException) as e:
            logger.info(f"Logout request failed, clearing local session anyway: {e}")
        finally:
            self.storage.clear()

    def me(self) -> Dict:
        return self.request("GET", "/auth/me")["user"]

    def update_avatar(self, avatar_url: Optional[str]) -> Dict:
        return self.request("PATCH", "/auth/me/avatar", json={"avatarUrl": avatar_url})["user"]

    # --- preferences ---

    def get_preferences(self) -> Dict:
        return self.request("GET", "/preferences")["preferences"]

    def update_preferences(self, goals: List[str], training_types: List[str]) -> Dict:
        body = {"goals": list(goals), "trainingTypes": list(training_types)}
        return self.request("PUT", "/preferences", json=body)["preferences"]

    # --- workouts ---

    def list_workouts(self, day: Optional[int] = None) -> List[Dict]:
        params = {"day": day} if day is not None else None
        return self.request("GET", "/workouts", params=params)["workouts"]

    def get_workout(self, workout_id: str) -> Dict:
        return self.request("GET", f"/workouts/{workout_id}")["workout"]

    def history(self) -> List[Dict]:
        return self.request("GET", "/workouts/history")["history"]

    def create_workout(self, day_of_week: int, time: str, name: str, description: Optional[str] = None,
                       exercises: Optional[List[Dict]] = None) -> Dict:
        body: Dict[str, Any] = {"dayOfWeek": day_of_week, "time": time, "name": name}
        if description is not None:
            body["description"] = description
        if exercises is not None:
            body["exercises"] = exercises
        return self.request("POST", "/workouts", json=body)["workout"]

    def update_workout(self, workout_id: str, **changes) -> Dict:
        """Keyword arguments use the API's camelCase names (dayOfWeek, time, ...)."""
        return self.request("PUT", f"/workouts/{workout_id}", json=changes)["workout"]

    def delete_workout(self, workout_id: str) -> None:
        self.request("DELETE", f"/workouts/{workout_id}")

    def complete_workout(self, workout_id: str) -> Dict:
        return self.request("PATCH", f"/workouts/{workout_id}/complete")["workout"]

    def add_exercise(self, workout_id: str, name: str, description: Optional[str] = None,
                     order: Optional[int] = None) -> Dict:
        body: Dict[str, Any] = {"name": name}
        if description is not None:
            body["description"] = description
        if order is not None:
            body["order"] = order
        return self.request("POST", f"/workouts/{workout_id}/exercises", json=body)["exercise"]

    def update_exercise(self, workout_id: str, exercise_id: str, **changes) -> Dict:
        return self.request("PATCH", f"/workouts/{workout_id}/exercises/{exercise_id}", json=changes)["exercise"]

    def toggle_exercise(self, workout_id: str, exercise_id: str, completed: Optional[bool] = None) -> Dict:
        body = {"completed": completed} if completed is not None else {}
        return self.request("PATCH", f"/workouts/{workout_id}/exercises/{exercise_id}/toggle", json=body)["exercise"]

    # --- shopping ---

    def list_shopping(self) -> List[Dict]:
        return self.request("GET", "/shopping-items")["items"]

    def create_shopping_item(self, name: str, quantity: Optional[str] = None) -> Dict:
        body = {"name": name}
        if quantity is not None:
            body["quantity"] = quantity
        return self.request("POST", "/shopping-items", json=body)["item"]

    def update_shopping_item(self, item_id: str, **changes) -> Dict:
        return self.request("PUT", f"/shopping-items/{item_id}", json=changes)["item"]

    def toggle_shopping_item(self, item_id: str, purchased: Optional[bool] = None) -> Dict:
        body = {"purchased": purchased} if purchased is not None else {}
        return self.request("PATCH", f"/shopping-items/{item_id}/toggle", json=body)["item"]

    def delete_shopping_item(self, item_id: str) -> None:
        self.request("DELETE", f"/shopping-items/{item_id}")
