"""
Workout & Exercise Store

Weekly workouts, their exercise checklists, and the completion log.

Completion rule: a workout is "done" when it has at least one exercise
and every exercise is completed. Whenever exercises change, the stored
`completed` flag is reconciled with that rule:
- becomes done while not completed -> mark completed and append one
  WorkoutHistory row, in the same commit
- no longer done while completed -> clear the flag (history is kept)

The explicit complete action marks the workout completed regardless of
its exercises and is a no-op when it already is.
"""
from typing import List, Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session, joinedload

from core.exceptions import ForbiddenError, NotFoundError
from models import Exercise, Workout, WorkoutHistory

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 20

WORKOUT_FIELDS = ("day_of_week", "time", "name", "description")
EXERCISE_FIELDS = ("name", "description", "order", "completed")


# --- ownership ---

def _get_owned_workout(db: Session, user_id: UUID, workout_id: UUID) -> Workout:
    workout = db.query(Workout).filter(Workout.id == workout_id).first()
    if not workout:
        raise NotFoundError("Workout")
    if workout.user_id != user_id:
        raise ForbiddenError("You cannot access this workout")
    return workout


def _get_owned_exercise(db: Session, user_id: UUID, workout_id: UUID, exercise_id: UUID) -> Exercise:
    exercise = (
        db.query(Exercise)
        .options(joinedload(Exercise.workout))
        .filter(Exercise.id == exercise_id)
        .first()
    )
    if not exercise:
        raise NotFoundError("Exercise")
    if exercise.workout.user_id != user_id:
        raise ForbiddenError("You cannot access this workout")
    if exercise.workout_id != workout_id:
        raise ForbiddenError("Exercise does not belong to this workout")
    return exercise


# --- completion ---

def _mark_completed(db: Session, workout: Workout, source: str) -> None:
    workout.completed = True
    db.add(WorkoutHistory(workout_id=workout.id))
    logger.info(
        f"Workout {workout.id} completed ({source})",
        extra={"extra_fields": {"event": "workout_completed", "workout_id": str(workout.id), "source": source}},
    )


def sync_completion(db: Session, workout: Workout) -> None:
    """
    Reconcile workout.completed with its exercises.

    Does not commit; runs inside the caller's unit of work so the flag
    and the history row are written together.
    """
    db.flush()
    states = [
        completed for (completed,) in
        db.query(Exercise.completed).filter(Exercise.workout_id == workout.id).all()
    ]
    all_done = len(states) > 0 and all(states)

    if all_done and not workout.completed:
        _mark_completed(db, workout, source="auto")
    elif not all_done and workout.completed:
        workout.completed = False
        logger.info(
            f"Workout {workout.id} reopened",
            extra={"extra_fields": {"event": "workout_reopened", "workout_id": str(workout.id)}},
        )


def _commit(db: Session, *instances) -> None:
    db.commit()
    # Reload so relationship collections come back in their declared order
    for instance in instances:
        db.expire(instance)


# --- workouts ---

def list_workouts(db: Session, user_id: UUID, day: Optional[int] = None) -> List[Workout]:
    query = (
        db.query(Workout)
        .options(joinedload(Workout.exercises))
        .filter(Workout.user_id == user_id)
    )
    if day is not None:
        query = query.filter(Workout.day_of_week == day)
    return query.order_by(Workout.day_of_week.asc(), Workout.time.asc()).all()


def get_workout(db: Session, user_id: UUID, workout_id: UUID) -> Workout:
    return _get_owned_workout(db, user_id, workout_id)


def create_workout(
    db: Session,
    user_id: UUID,
    day_of_week: int,
    time: str,
    name: str,
    description: Optional[str] = None,
    exercises: Optional[List[dict]] = None,
) -> Workout:
    workout = Workout(
        user_id=user_id,
        day_of_week=day_of_week,
        time=time,
        name=name,
        description=description,
        completed=False,
    )
    for index, item in enumerate(exercises or []):
        order = item.get("order")
        workout.exercises.append(Exercise(
            name=item["name"],
            description=item.get("description"),
            order=index if order is None else order,
            completed=bool(item.get("completed")),
        ))
    db.add(workout)

    sync_completion(db, workout)
    _commit(db, workout)
    logger.info(f"Workout created: {workout.id}")
    return workout


def update_workout(db: Session, user_id: UUID, workout_id: UUID, changes: dict) -> Workout:
    """Partial metadata update; completion state is left alone."""
    workout = _get_owned_workout(db, user_id, workout_id)
    for field, value in changes.items():
        if field not in WORKOUT_FIELDS:
            continue
        if value is None and field != "description":
            continue
        setattr(workout, field, value)
    _commit(db, workout)
    return workout


def delete_workout(db: Session, user_id: UUID, workout_id: UUID) -> None:
    workout = _get_owned_workout(db, user_id, workout_id)
    db.delete(workout)
    db.commit()
    logger.info(f"Workout deleted: {workout_id}")


def complete_workout(db: Session, user_id: UUID, workout_id: UUID) -> Workout:
    workout = _get_owned_workout(db, user_id, workout_id)
    if not workout.completed:
        _mark_completed(db, workout, source="manual")
        _commit(db, workout)
    return workout


def list_history(db: Session, user_id: UUID, limit: int = HISTORY_LIMIT) -> List[WorkoutHistory]:
    return (
        db.query(WorkoutHistory)
        .join(Workout, WorkoutHistory.workout_id == Workout.id)
        .options(joinedload(WorkoutHistory.workout))
        .filter(Workout.user_id == user_id)
        .order_by(WorkoutHistory.completed_at.desc())
        .limit(limit)
        .all()
    )


# --- exercises ---

def add_exercise(
    db: Session,
    user_id: UUID,
    workout_id: UUID,
    name: str,
    description: Optional[str] = None,
    order: Optional[int] = None,
    completed: Optional[bool] = None,
) -> Exercise:
    workout = _get_owned_workout(db, user_id, workout_id)
    exercise = Exercise(
        workout_id=workout.id,
        name=name,
        description=description,
        order=order or 0,
        completed=bool(completed),
    )
    db.add(exercise)

    sync_completion(db, workout)
    _commit(db, exercise, workout)
    return exercise


def update_exercise(db: Session, user_id: UUID, workout_id: UUID, exercise_id: UUID, changes: dict) -> Exercise:
    exercise = _get_owned_exercise(db, user_id, workout_id, exercise_id)
    for field, value in changes.items():
        if field not in EXERCISE_FIELDS:
            continue
        # Only description is nullable
        if value is None and field != "description":
            continue
        setattr(exercise, field, value)

    sync_completion(db, exercise.workout)
    _commit(db, exercise, exercise.workout)
    return exercise


def toggle_exercise(
    db: Session,
    user_id: UUID,
    workout_id: UUID,
    exercise_id: UUID,
    completed: Optional[bool] = None,
) -> Exercise:
    """Set the exercise's flag, or flip it when no value is given."""
    exercise = _get_owned_exercise(db, user_id, workout_id, exercise_id)
    exercise.completed = (not exercise.completed) if completed is None else completed

    sync_completion(db, exercise.workout)
    _commit(db, exercise, exercise.workout)
    return exercise
