"""
User Preferences API Router

Goal and training-type tags. PUT replaces both lists wholesale.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.database import get_db
from models import User
from schemas import PreferencesEnvelope, PreferencesResponse, PreferencesUpdate
from services import preferences_service

router = APIRouter(prefix="/preferences", tags=["Preferences"])


@router.get("", response_model=PreferencesEnvelope)
def get_preferences(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Current preferences; empty lists if never saved."""
    prefs = preferences_service.get_preferences(db, current_user)
    return PreferencesEnvelope(preferences=PreferencesResponse.model_validate(prefs))


@router.put("", response_model=PreferencesEnvelope)
def replace_preferences(
    payload: PreferencesUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    prefs = preferences_service.replace_preferences(
        db, current_user, payload.goals, payload.training_types
    )
    return PreferencesEnvelope(preferences=PreferencesResponse.model_validate(prefs))
