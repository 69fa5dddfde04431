"""
In-memory application state on top of ApiClient.

Mutations apply the object the server returns. Exercise changes can flip
the parent workout's completion and append history, so those call
invalidate_workout() for that one workout instead of reloading everything.
"""
from functools import wraps
from typing import Dict, List, Optional

from api_client.client import ApiClient, SessionExpiredError


def _resets_on_expiry(method):
    @wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except SessionExpiredError:
            self.reset()
            raise
    return wrapper


def _sort_shopping(items: List[Dict]) -> List[Dict]:
    # Unpurchased first, newest update first within each group
    by_recency = sorted(items, key=lambda i: i["updatedAt"], reverse=True)
    return sorted(by_recency, key=lambda i: i["purchased"])


def _sort_workouts(workouts: List[Dict]) -> List[Dict]:
    return sorted(workouts, key=lambda w: (w["dayOfWeek"], w["time"]))


class AppState:
    def __init__(self, client: ApiClient):
        self.client = client
        self.reset()

    def reset(self) -> None:
        self.user: Optional[Dict] = None
        self.workouts: List[Dict] = []
        self.history: List[Dict] = []
        self.shopping_items: List[Dict] = []
        self.preferences: Optional[Dict] = None

    @property
    def signed_in(self) -> bool:
        return self.user is not None

    def _replace_workout(self, workout: Dict) -> None:
        others = [w for w in self.workouts if w["id"] != workout["id"]]
        self.workouts = _sort_workouts(others + [workout])

    def _replace_item(self, item: Dict) -> None:
        others = [i for i in self.shopping_items if i["id"] != item["id"]]
        self.shopping_items = _sort_shopping(others + [item])

    # --- session ---

    @_resets_on_expiry
    def load(self) -> None:
        """Fetch everything once, e.g. after sign-in or on start-up."""
        self.user = self.client.me()
        self.workouts = self.client.list_workouts()
        self.history = self.client.history()
        self.shopping_items = self.client.list_shopping()
        self.preferences = self.client.get_preferences()

    def login(self, email: str, password: str) -> None:
        self.client.login(email, password)
        self.load()

    def register(self, name: str, email: str, password: str) -> None:
        self.client.register(name, email, password)
        self.load()

    def logout(self) -> None:
        self.client.logout()
        self.reset()

    @_resets_on_expiry
    def update_avatar(self, avatar_url: Optional[str]) -> Dict:
        self.user = self.client.update_avatar(avatar_url)
        return self.user

    # --- workouts ---

    @_resets_on_expiry
    def invalidate_workout(self, workout_id: str) -> None:
        """Re-fetch one workout and the history after its exercises changed."""
        self._replace_workout(self.client.get_workout(workout_id))
        self.history = self.client.history()

    @_resets_on_expiry
    def create_workout(self, day_of_week: int, time: str, name: str, description: Optional[str] = None,
                       exercises: Optional[List[Dict]] = None) -> Dict:
        workout = self.client.create_workout(day_of_week, time, name, description, exercises)
        self._replace_workout(workout)
        if workout["completed"]:
            self.history = self.client.history()
        return workout

    @_resets_on_expiry
    def update_workout(self, workout_id: str, **changes) -> Dict:
        workout = self.client.update_workout(workout_id, **changes)
        self._replace_workout(workout)
        # History rows embed a summary of their workout
        summary = {k: workout[k] for k in ("id", "name", "dayOfWeek", "time")}
        self.history = [
            {**h, "workout": summary} if h["workoutId"] == workout_id else h
            for h in self.history
        ]
        return workout

    @_resets_on_expiry
    def delete_workout(self, workout_id: str) -> None:
        self.client.delete_workout(workout_id)
        self.workouts = [w for w in self.workouts if w["id"] != workout_id]
        self.history = [h for h in self.history if h["workoutId"] != workout_id]

    @_resets_on_expiry
    def complete_workout(self, workout_id: str) -> Dict:
        workout = self.client.complete_workout(workout_id)
        self._replace_workout(workout)
        self.history = self.client.history()
        return workout

    @_resets_on_expiry
    def toggle_exercise(self, workout_id: str, exercise_id: str, completed: Optional[bool] = None) -> Dict:
        exercise = self.client.toggle_exercise(workout_id, exercise_id, completed)
        self.invalidate_workout(workout_id)
        return exercise

    @_resets_on_expiry
    def update_exercise(self, workout_id: str, exercise_id: str, **changes) -> Dict:
        exercise = self.client.update_exercise(workout_id, exercise_id, **changes)
        self.invalidate_workout(workout_id)
        return exercise

    @_resets_on_expiry
    def add_exercise(self, workout_id: str, name: str, description: Optional[str] = None,
                     order: Optional[int] = None) -> Dict:
        exercise = self.client.add_exercise(workout_id, name, description, order)
        self.invalidate_workout(workout_id)
        return exercise

    # --- shopping ---

    @_resets_on_expiry
    def add_shopping_item(self, name: str, quantity: Optional[str] = None) -> Dict:
        item = self.client.create_shopping_item(name, quantity)
        self._replace_item(item)
        return item

    @_resets_on_expiry
    def toggle_shopping_item(self, item_id: str, purchased: Optional[bool] = None) -> Dict:
        item = self.client.toggle_shopping_item(item_id, purchased)
        self._replace_item(item)
        return item

    @_resets_on_expiry
    def update_shopping_item(self, item_id: str, **changes) -> Dict:
        item = self.client.update_shopping_item(item_id, **changes)
        self._replace_item(item)
        return item

    @_resets_on_expiry
    def delete_shopping_item(self, item_id: str) -> None:
        self.client.delete_shopping_item(item_id)
        self.shopping_items = [i for i in self.shopping_items if i["id"] != item_id]

    # --- preferences ---

    @_resets_on_expiry
    def save_preferences(self, goals: List[str], training_types: List[str]) -> Dict:
        self.preferences = self.client.update_preferences(goals, training_types)
        if self.user is not None:
            self.user = {**self.user, "preferences": self.preferences}
        return self.preferences
