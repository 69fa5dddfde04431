"""
Seed a demo account with preferences, two workouts, one history entry
and a short shopping list.

Examples:
  python scripts/seed_demo.py
  python scripts/seed_demo.py --email demo@treino.app --password changeme123

Does nothing if the account already exists.
"""

import os
import sys
from typing import Optional

_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _ROOT not in sys.path:
    sys.path.insert(0, _ROOT)

DEMO_EMAIL = "demo@treino.app"
DEMO_PASSWORD = "changeme123"

DEMO_WORKOUTS = [
    {
        "day_of_week": 1,
        "time": "07:30",
        "name": "Puxar + Core",
        "description": "Treino rápido de dorsais e abdômen",
        "exercises": [
            ("Barra fixa assistida", "3x8"),
            ("Remada curvada", "3x10"),
            ("Prancha", "3x45s"),
        ],
    },
    {
        "day_of_week": 3,
        "time": "18:45",
        "name": "Inferiores",
        "description": "Agachamento e posteriores",
        "exercises": [
            ("Agachamento livre", "4x8"),
            ("Avanço", "3x10"),
            ("Mesa flexora", "3x12"),
        ],
    },
]

DEMO_SHOPPING = [
    ("Creatina 300g", "1", False),
    ("Frango congelado", "2kg", True),
]


def seed(db, email: str = DEMO_EMAIL, password: str = DEMO_PASSWORD) -> Optional[object]:
    """Create the demo data. Returns the new user, or None if it already existed."""
    from core.security import get_password_hash
    from models import Exercise, ShoppingItem, User, UserPreferences, Workout, WorkoutHistory
    from services.auth_service import normalize_email

    email = normalize_email(email)
    if db.query(User).filter(User.email == email).first():
        return None

    user = User(name="Demo Athlete", email=email, password_hash=get_password_hash(password))
    user.preferences = UserPreferences(
        goals=["hipertrofia", "energia"],
        training_types=["força", "cardio intervalado"],
    )
    db.add(user)
    db.flush()

    workouts = []
    for plan in DEMO_WORKOUTS:
        workout = Workout(
            user_id=user.id,
            day_of_week=plan["day_of_week"],
            time=plan["time"],
            name=plan["name"],
            description=plan["description"],
        )
        for order, (name, description) in enumerate(plan["exercises"], start=1):
            workout.exercises.append(Exercise(name=name, description=description, order=order))
        db.add(workout)
        workouts.append(workout)
    db.flush()

    # One past session of the first workout
    db.add(WorkoutHistory(workout_id=workouts[0].id))

    for name, quantity, purchased in DEMO_SHOPPING:
        db.add(ShoppingItem(user_id=user.id, name=name, quantity=quantity, purchased=purchased))

    db.commit()
    return user


def main() -> int:
    import argparse

    parser = argparse.ArgumentParser(description="Seed the demo account")
    parser.add_argument("--email", default=DEMO_EMAIL)
    parser.add_argument("--password", default=DEMO_PASSWORD)
    args = parser.parse_args()

    from core.database import get_db_sync

    db = get_db_sync()
    try:
        user = seed(db, args.email, args.password)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    if user is None:
        print(f"Demo account {args.email} already exists, nothing to do.")
    else:
        print(f"Seeded demo account {args.email} with workouts and shopping list.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
