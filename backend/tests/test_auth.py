"""
Authentication and authorization tests.

Verifies:
- Credentials login issues a bearer token (case-insensitive email)
- Inactive users and wrong passwords are rejected
- Logout, idle timeout and deactivation invalidate tokens
- Admin-only endpoints return 403 for sellers
"""

from datetime import timedelta

import pytest

from conftest import ADMIN_PASSWORD, auth_headers, get_auth_token
from moncoeur.extensions import db
from moncoeur.models import SessionToken
from moncoeur.services.session_service import (
    cleanup_expired_sessions,
    create_session,
    hash_token,
    validate_session,
)
from moncoeur.time_utils import utcnow


# =============================================================================
# LOGIN / LOGOUT
# =============================================================================


class TestLogin:

    def test_login_returns_token_and_user(self, client, admin_user):
        resp = client.post("/api/auth/login", json={
            "email": "nadia@moncoeur.app",
            "password": ADMIN_PASSWORD,
        })
        assert resp.status_code == 200
        body = resp.json
        assert len(body["token"]) == 64
        assert body["expiresAt"].endswith("Z")
        assert body["user"]["email"] == "nadia@moncoeur.app"
        assert body["user"]["role"] == "admin"
        assert "passwordHash" not in body["user"]

    def test_email_is_case_insensitive(self, client, admin_user):
        token = get_auth_token(client, "  Nadia@MonCoeur.app ", ADMIN_PASSWORD)
        assert token is not None

    def test_wrong_password(self, client, admin_user):
        resp = client.post("/api/auth/login", json={
            "email": "nadia@moncoeur.app",
            "password": "wrong-password",
        })
        assert resp.status_code == 401
        assert resp.json["error"] == "Email ou mot de passe incorrect"

    def test_missing_fields(self, client, db_session):
        resp = client.post("/api/auth/login", json={"email": "nadia@moncoeur.app"})
        assert resp.status_code == 400
        assert resp.json["error"] == "Email et mot de passe requis"

    def test_inactive_user_cannot_login(self, client, admin_user, db_session):
        admin_user.is_active = False
        db_session.commit()

        token = get_auth_token(client, "nadia@moncoeur.app", ADMIN_PASSWORD)
        assert token is None

    def test_login_records_last_login(self, client, admin_user):
        token = get_auth_token(client, "nadia@moncoeur.app", ADMIN_PASSWORD)
        resp = client.get("/api/auth/me", headers=auth_headers(token))
        assert resp.json["user"]["lastLoginAt"] is not None

    def test_logout_revokes_token(self, client, admin_headers):
        assert client.get("/api/auth/me", headers=admin_headers).status_code == 200

        resp = client.post("/api/auth/logout", headers=admin_headers)
        assert resp.status_code == 200

        assert client.get("/api/auth/me", headers=admin_headers).status_code == 401
        assert client.post("/api/auth/logout", headers=admin_headers).status_code == 401


# =============================================================================
# SESSION LIFECYCLE
# =============================================================================


class TestSessions:

    def test_token_is_stored_hashed(self, admin_user, db_session):
        _, token = create_session(admin_user.id)
        stored = db_session.query(SessionToken).filter_by(user_id=admin_user.id).one()
        assert stored.token_hash == hash_token(token)
        assert stored.token_hash != token

    def test_idle_session_is_revoked(self, admin_user, db_session):
        session, token = create_session(admin_user.id)
        session.last_used_at = utcnow() - timedelta(hours=3)
        db_session.commit()

        assert validate_session(token) is None
        db_session.refresh(session)
        assert session.is_revoked is True
        assert session.revoked_reason == "Idle timeout"

    def test_expired_session_is_rejected(self, admin_user, db_session):
        session, token = create_session(admin_user.id)
        session.expires_at = utcnow() - timedelta(minutes=1)
        db_session.commit()

        assert validate_session(token) is None

    def test_deactivated_user_token_is_rejected(self, client, seller_user, seller_headers, db_session):
        assert client.get("/api/auth/me", headers=seller_headers).status_code == 200

        seller_user.is_active = False
        db_session.commit()

        assert client.get("/api/auth/me", headers=seller_headers).status_code == 401

    def test_create_session_for_inactive_user_fails(self, admin_user, db_session):
        admin_user.is_active = False
        db_session.commit()
        with pytest.raises(ValueError):
            create_session(admin_user.id)

    def test_cleanup_removes_old_expired_sessions(self, admin_user, db_session):
        old, _ = create_session(admin_user.id)
        old.created_at = utcnow() - timedelta(days=40)
        old.expires_at = utcnow() - timedelta(days=39)
        create_session(admin_user.id)
        db_session.commit()

        assert cleanup_expired_sessions(retention_days=30) == 1
        assert db.session.query(SessionToken).count() == 1


# =============================================================================
# AUTHORIZATION
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("GET", "/api/bags"),
            ("POST", "/api/bags"),
            ("GET", "/api/bags/1"),
            ("GET", "/api/bags/scan?code=MC-2025-00001"),
            ("GET", "/api/sales"),
            ("POST", "/api/sales"),
            ("GET", "/api/bank-accounts"),
            ("GET", "/api/users"),
            ("POST", "/api/import"),
            ("GET", "/api/export"),
            ("POST", "/api/upload"),
            ("GET", "/api/dashboard"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.json["error"] == "Non autorise"

    def test_garbage_token(self, client, db_session):
        resp = client.get("/api/bags", headers=auth_headers("not-a-token"))
        assert resp.status_code == 401


class TestSellerDeniedAdminOperations:
    """Seller role cannot reach administrator endpoints."""

    def test_cannot_list_users(self, client, seller_headers):
        resp = client.get("/api/users", headers=seller_headers)
        assert resp.status_code == 403
        assert resp.json["error"] == "Acces reserve aux administrateurs"

    def test_cannot_create_bank_account(self, client, seller_headers):
        resp = client.post("/api/bank-accounts", json={"label": "Evil"}, headers=seller_headers)
        assert resp.status_code == 403

    def test_cannot_import(self, client, seller_headers):
        resp = client.post("/api/import", headers=seller_headers)
        assert resp.status_code == 403

    def test_can_list_bank_accounts(self, client, seller_headers, bank_account):
        resp = client.get("/api/bank-accounts", headers=seller_headers)
        assert resp.status_code == 200
        assert [a["label"] for a in resp.json] == ["Beatrice"]
