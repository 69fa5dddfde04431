"""
Workouts API Router

Weekly workouts, their exercises, explicit completion and the
completion history. Every route is scoped to the authenticated user.
"""
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.database import get_db
from models import User
from schemas import (
    ExerciseCreate,
    ExerciseEnvelope,
    ExerciseResponse,
    ExerciseToggle,
    ExerciseUpdate,
    HistoryEnvelope,
    HistoryItem,
    WorkoutCreate,
    WorkoutDetail,
    WorkoutDetailEnvelope,
    WorkoutEnvelope,
    WorkoutListEnvelope,
    WorkoutResponse,
    WorkoutUpdate,
)
from services import workout_service

router = APIRouter(prefix="/workouts", tags=["Workouts"])


@router.get("", response_model=WorkoutListEnvelope)
def list_workouts(
    day: Optional[int] = Query(default=None, ge=0, le=6, description="Day of week, 0 = Sunday"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Workouts ordered by day of week then time, exercises by order."""
    workouts = workout_service.list_workouts(db, current_user.id, day)
    return WorkoutListEnvelope(workouts=[WorkoutResponse.model_validate(w) for w in workouts])


# Declared before /{workout_id} so "history" is not parsed as an id
@router.get("/history", response_model=HistoryEnvelope)
def list_history(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Most recent completions, newest first."""
    entries = workout_service.list_history(db, current_user.id)
    return HistoryEnvelope(history=[HistoryItem.model_validate(h) for h in entries])


@router.get("/{workout_id}", response_model=WorkoutDetailEnvelope)
def get_workout(
    workout_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    workout = workout_service.get_workout(db, current_user.id, workout_id)
    return WorkoutDetailEnvelope(workout=WorkoutDetail.model_validate(workout))


@router.post("", response_model=WorkoutEnvelope, status_code=status.HTTP_201_CREATED)
def create_workout(
    payload: WorkoutCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    workout = workout_service.create_workout(
        db,
        current_user.id,
        day_of_week=payload.day_of_week,
        time=payload.time,
        name=payload.name,
        description=payload.description,
        exercises=[e.model_dump() for e in payload.exercises or []],
    )
    return WorkoutEnvelope(workout=WorkoutResponse.model_validate(workout))


@router.put("/{workout_id}", response_model=WorkoutEnvelope)
def update_workout(
    workout_id: UUID,
    payload: WorkoutUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    workout = workout_service.update_workout(
        db, current_user.id, workout_id, payload.model_dump(exclude_unset=True)
    )
    return WorkoutEnvelope(workout=WorkoutResponse.model_validate(workout))


@router.delete("/{workout_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_workout(
    workout_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Deletes the workout with its exercises and history."""
    workout_service.delete_workout(db, current_user.id, workout_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{workout_id}/complete", response_model=WorkoutEnvelope)
def complete_workout(
    workout_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Mark completed and log history; no-op if already completed."""
    workout = workout_service.complete_workout(db, current_user.id, workout_id)
    return WorkoutEnvelope(workout=WorkoutResponse.model_validate(workout))


@router.post("/{workout_id}/exercises", response_model=ExerciseEnvelope, status_code=status.HTTP_201_CREATED)
def add_exercise(
    workout_id: UUID,
    payload: ExerciseCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    exercise = workout_service.add_exercise(
        db,
        current_user.id,
        workout_id,
        name=payload.name,
        description=payload.description,
        order=payload.order,
        completed=payload.completed,
    )
    return ExerciseEnvelope(exercise=ExerciseResponse.model_validate(exercise))


@router.patch("/{workout_id}/exercises/{exercise_id}", response_model=ExerciseEnvelope)
def update_exercise(
    workout_id: UUID,
    exercise_id: UUID,
    payload: ExerciseUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    exercise = workout_service.update_exercise(
        db, current_user.id, workout_id, exercise_id, payload.model_dump(exclude_unset=True)
    )
    return ExerciseEnvelope(exercise=ExerciseResponse.model_validate(exercise))


@router.patch("/{workout_id}/exercises/{exercise_id}/toggle", response_model=ExerciseEnvelope)
def toggle_exercise(
    workout_id: UUID,
    exercise_id: UUID,
    payload: Optional[ExerciseToggle] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Set `completed`, or flip it when the body omits the value."""
    exercise = workout_service.toggle_exercise(
        db, current_user.id, workout_id, exercise_id, payload.completed if payload else None
    )
    return ExerciseEnvelope(exercise=ExerciseResponse.model_validate(exercise))
