"""
Tests for the authentication endpoints
"""
from datetime import datetime, timedelta, timezone

import pytest

from core.database import SessionLocal
from core.exceptions import ConflictError, UnauthorizedError
from core.security import hash_token
from services import auth_service
from models import RefreshToken, User
from conftest import API, DEFAULT_PASSWORD


class TestRegister:
    def test_register_returns_user_and_token_pair(self, client):
        response = client.post(
            f"{API}/auth/register",
            json={"name": "Ana Souza", "email": "a@x.com", "password": DEFAULT_PASSWORD},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["accessToken"]
        assert data["refreshToken"]
        user = data["user"]
        assert user["email"] == "a@x.com"
        assert user["name"] == "Ana Souza"
        assert user["avatarUrl"] is None
        assert user["preferences"] == {"goals": [], "trainingTypes": []}
        assert "passwordHash" not in user and "password_hash" not in user

    def test_duplicate_email_conflicts(self, client, register_user):
        register_user()
        response = client.post(
            f"{API}/auth/register",
            json={"name": "Outra Pessoa", "email": "a@x.com", "password": DEFAULT_PASSWORD},
        )
        assert response.status_code == 409
        assert response.json()["error_code"] == "CONFLICT"

    def test_email_taken_between_check_and_insert_conflicts(self, monkeypatch):
        real_hash = auth_service.get_password_hash
        racer = SessionLocal()
        raced = []

        def hash_then_race(password):
            if not raced:
                raced.append(True)
                auth_service.register(racer, "Outra Pessoa", "a@x.com", DEFAULT_PASSWORD)
            return real_hash(password)

        monkeypatch.setattr(auth_service, "get_password_hash", hash_then_race)
        session = SessionLocal()
        try:
            with pytest.raises(ConflictError):
                auth_service.register(session, "Ana Souza", "a@x.com", DEFAULT_PASSWORD)
            assert session.query(User).filter(User.email == "a@x.com").count() == 1
        finally:
            session.close()
            racer.close()

    def test_email_is_normalized(self, client, register_user):
        register_user(email="Ana@X.com")
        response = client.post(
            f"{API}/auth/register",
            json={"name": "Ana Again", "email": "ana@x.com", "password": DEFAULT_PASSWORD},
        )
        assert response.status_code == 409

        login = client.post(f"{API}/auth/login", json={"email": "ANA@x.com", "password": DEFAULT_PASSWORD})
        assert login.status_code == 200
        assert login.json()["user"]["email"] == "ana@x.com"

    def test_password_and_name_rules(self, client):
        short_password = client.post(
            f"{API}/auth/register",
            json={"name": "Ana Souza", "email": "a@x.com", "password": "12345"},
        )
        assert short_password.status_code == 400
        assert any(issue["field"] == "password" for issue in short_password.json()["issues"])

        short_name = client.post(
            f"{API}/auth/register",
            json={"name": "A", "email": "a@x.com", "password": DEFAULT_PASSWORD},
        )
        assert short_name.status_code == 400

        bad_email = client.post(
            f"{API}/auth/register",
            json={"name": "Ana Souza", "email": "not-an-email", "password": DEFAULT_PASSWORD},
        )
        assert bad_email.status_code == 400

    def test_password_is_stored_hashed(self, register_user, db_session):
        register_user()
        user = db_session.query(User).filter(User.email == "a@x.com").one()
        assert user.password_hash != DEFAULT_PASSWORD
        assert user.password_hash.startswith("$2")


class TestLogin:
    def test_login_success(self, client, register_user):
        register_user()
        response = client.post(f"{API}/auth/login", json={"email": "a@x.com", "password": DEFAULT_PASSWORD})
        assert response.status_code == 200
        data = response.json()
        assert data["user"]["email"] == "a@x.com"
        assert data["accessToken"] and data["refreshToken"]

    def test_wrong_password_and_unknown_email_look_identical(self, client, register_user):
        register_user()
        wrong_password = client.post(f"{API}/auth/login", json={"email": "a@x.com", "password": "nope-nope"})
        unknown_email = client.post(f"{API}/auth/login", json={"email": "nobody@x.com", "password": DEFAULT_PASSWORD})

        assert wrong_password.status_code == 401
        assert unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json()
        assert wrong_password.headers.get("www-authenticate") == "Bearer"


class TestRefresh:
    def test_refresh_rotates_and_old_token_is_single_use(self, client, register_user):
        original = register_user()["refreshToken"]

        first = client.post(f"{API}/auth/refresh", json={"refreshToken": original})
        assert first.status_code == 200
        rotated = first.json()["refreshToken"]
        assert rotated != original
        assert first.json()["user"]["email"] == "a@x.com"

        replay = client.post(f"{API}/auth/refresh", json={"refreshToken": original})
        assert replay.status_code == 401

        second = client.post(f"{API}/auth/refresh", json={"refreshToken": rotated})
        assert second.status_code == 200

    def test_same_token_refreshed_twice_in_flight(self, register_user, monkeypatch):
        token = register_user()["refreshToken"]
        real_issue = auth_service.issue_tokens
        racer = SessionLocal()
        raced, won = [], []

        def issue_then_race(db, user):
            pair = real_issue(db, user)
            if not raced:
                raced.append(True)
                # A second request with the same token lands before this one commits
                won.append(auth_service.refresh(racer, token))
            return pair

        monkeypatch.setattr(auth_service, "issue_tokens", issue_then_race)
        session = SessionLocal()
        try:
            with pytest.raises(UnauthorizedError):
                auth_service.refresh(session, token)
            assert len(won) == 1

            live = session.query(RefreshToken).filter(RefreshToken.revoked_at.is_(None)).all()
            assert len(live) == 1
            assert live[0].token_hash == hash_token(won[0][2])
        finally:
            session.close()
            racer.close()

    def test_unknown_refresh_token(self, client):
        response = client.post(f"{API}/auth/refresh", json={"refreshToken": "does-not-exist"})
        assert response.status_code == 401

    def test_expired_refresh_token(self, client, register_user, db_session):
        token = register_user()["refreshToken"]
        db_session.query(RefreshToken).filter(RefreshToken.token_hash == hash_token(token)).update(
            {RefreshToken.expires_at: datetime.now(timezone.utc) - timedelta(minutes=1)},
            synchronize_session=False,
        )
        db_session.commit()

        response = client.post(f"{API}/auth/refresh", json={"refreshToken": token})
        assert response.status_code == 401

    def test_only_digest_is_persisted(self, register_user, db_session):
        token = register_user()["refreshToken"]
        rows = db_session.query(RefreshToken).all()
        assert len(rows) == 1
        assert rows[0].token_hash == hash_token(token)
        assert rows[0].token_hash != token
        assert rows[0].revoked_at is None


class TestLogout:
    def test_logout_revokes_and_is_idempotent(self, client, register_user):
        token = register_user()["refreshToken"]

        assert client.post(f"{API}/auth/logout", json={"refreshToken": token}).status_code == 204
        assert client.post(f"{API}/auth/logout", json={"refreshToken": token}).status_code == 204

        response = client.post(f"{API}/auth/refresh", json={"refreshToken": token})
        assert response.status_code == 401

    def test_logout_without_token(self, client):
        assert client.post(f"{API}/auth/logout").status_code == 204
        assert client.post(f"{API}/auth/logout", json={"refreshToken": "unknown"}).status_code == 204


class TestProfile:
    def test_me(self, client, auth_headers):
        response = client.get(f"{API}/auth/me", headers=auth_headers)
        assert response.status_code == 200
        user = response.json()["user"]
        assert user["email"] == "a@x.com"
        assert set(user) == {"id", "name", "email", "avatarUrl", "preferences", "createdAt", "updatedAt"}

    def test_set_and_clear_avatar(self, client, auth_headers):
        url = "https://cdn.treino.app/a.png"
        response = client.patch(f"{API}/auth/me/avatar", json={"avatarUrl": url}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["user"]["avatarUrl"] == url

        response = client.patch(f"{API}/auth/me/avatar", json={"avatarUrl": None}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["user"]["avatarUrl"] is None

    def test_avatar_wrong_type(self, client, auth_headers):
        for body in ({"avatarUrl": 42}, {"avatarUrl": ["x"]}, {}):
            response = client.patch(f"{API}/auth/me/avatar", json=body, headers=auth_headers)
            assert response.status_code == 400, body
            assert response.json()["message"] == "avatarUrl must be a string or null"
