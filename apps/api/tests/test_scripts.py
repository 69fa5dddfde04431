"""
Ops scripts: demo seed and refresh-token purge
"""
from datetime import datetime, timedelta, timezone

from conftest import API
from core.security import hash_token
from models import RefreshToken, ShoppingItem, User, Workout, WorkoutHistory
from scripts.purge_refresh_tokens import purge
from scripts.seed_demo import DEMO_EMAIL, DEMO_PASSWORD, seed
from services.auth_service import issue_tokens


class TestSeedDemo:
    def test_creates_demo_account(self, db_session):
        user = seed(db_session)
        assert user is not None

        assert db_session.query(Workout).filter(Workout.user_id == user.id).count() == 2
        assert db_session.query(WorkoutHistory).count() == 1
        assert db_session.query(ShoppingItem).filter(ShoppingItem.user_id == user.id).count() == 2
        assert user.preferences.goals == ["hipertrofia", "energia"]

    def test_second_run_is_a_noop(self, db_session):
        seed(db_session)
        assert seed(db_session) is None
        assert db_session.query(User).filter(User.email == DEMO_EMAIL).count() == 1
        assert db_session.query(Workout).count() == 2

    def test_demo_account_can_log_in(self, client, db_session):
        seed(db_session)
        response = client.post(
            f"{API}/auth/login", json={"email": DEMO_EMAIL, "password": DEMO_PASSWORD}
        )
        assert response.status_code == 200

        headers = {"Authorization": f"Bearer {response.json()['accessToken']}"}
        workouts = client.get(f"{API}/workouts", headers=headers).json()["workouts"]
        assert [w["dayOfWeek"] for w in workouts] == [1, 3]
        assert [e["order"] for e in workouts[0]["exercises"]] == [1, 2, 3]


class TestPurgeRefreshTokens:
    def _tokens(self, db, user, count):
        raw = [issue_tokens(db, user)[1] for _ in range(count)]
        db.commit()
        return [
            db.query(RefreshToken).filter(RefreshToken.token_hash == hash_token(t)).one()
            for t in raw
        ]

    def test_purges_only_long_dead_rows(self, db_session, register_user):
        register_user()
        user = db_session.query(User).one()
        live, revoked_old, expired_old, revoked_recent = self._tokens(db_session, user, 4)

        now = datetime.now(timezone.utc)
        revoked_old.revoked_at = now - timedelta(days=40)
        expired_old.expires_at = now - timedelta(days=40)
        revoked_recent.revoked_at = now - timedelta(days=1)
        db_session.commit()
        keep = {live.id, revoked_recent.id}
        dead = {revoked_old.id, expired_old.id}

        assert purge(db_session, days=30, dry_run=True) == 2
        assert db_session.query(RefreshToken).count() == 5

        assert purge(db_session, days=30) == 2
        remaining = {t.id for t in db_session.query(RefreshToken).all()}
        assert keep <= remaining
        assert not dead & remaining
