"""
Preferences store: one row per user holding goal and training-type tags.
"""
from typing import Iterable, List
from sqlalchemy.orm import Session
from models import User, UserPreferences


def _unique(tags: Iterable[str]) -> List[str]:
    # Tags behave as sets; keep first occurrence order
    return list(dict.fromkeys(tags))


def get_preferences(db: Session, user: User) -> UserPreferences:
    """Stored preferences, or an unsaved empty row if none exist yet."""
    prefs = db.query(UserPreferences).filter(UserPreferences.user_id == user.id).first()
    if prefs is None:
        return UserPreferences(user_id=user.id, goals=[], training_types=[])
    return prefs


def replace_preferences(db: Session, user: User, goals: Iterable[str], training_types: Iterable[str]) -> UserPreferences:
    """Full replace of both tag lists (upsert, never a merge)."""
    prefs = db.query(UserPreferences).filter(UserPreferences.user_id == user.id).first()
    if prefs is None:
        prefs = UserPreferences(user_id=user.id)
        db.add(prefs)

    prefs.goals = _unique(goals)
    prefs.training_types = _unique(training_types)
    db.commit()
    db.refresh(prefs)
    return prefs
