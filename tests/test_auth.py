# =============================================================================
# tests/test_auth.py - Authentication and Account Tests
# =============================================================================
# Registration, login, e-mail verification, password reset and the
# account endpoints, exercised through the API.
# =============================================================================

from datetime import timedelta

import pytest
from sqlalchemy import text

from campusjobs.api.routes import auth_routes
from campusjobs.core.exceptions import EmailAlreadyRegisteredError
from campusjobs.db.database import get_db_session, utc_now
from campusjobs.services.profile_service import create_account
from tests.conftest import PASSWORD, login


def _user_column(user_id: int, column: str):
    with get_db_session() as db:
        return db.execute(text(f"SELECT {column} FROM users WHERE id = :uid"), {"uid": user_id}).scalar()


def _block(user_id: int) -> None:
    with get_db_session() as db:
        db.execute(text("UPDATE users SET status = 'blocked' WHERE id = :uid"), {"uid": user_id})


# =============================================================================
# Registration
# =============================================================================

class TestRegister:
    """Tests for POST /api/auth/register."""

    def test_register_student_creates_profile(self, client):
        # Act
        response = client.post("/api/auth/register", json={
            "email": "Nia.Okafor@Campus.edu", "password": PASSWORD, "role": "student",
            "first_name": "Nia", "last_name": "Okafor",
        })

        # Assert
        assert response.status_code == 201
        body = response.json()
        assert body["role"] == "student"
        assert body["verification_required"] is True

        headers = login(client, "nia.okafor@campus.edu")
        me = client.get("/api/auth/me", headers=headers).json()
        assert me["email"] == "nia.okafor@campus.edu"
        assert me["first_name"] == "Nia"
        assert me["is_verified"] is False
        assert me["status"] == "active"

    def test_register_publisher(self, client):
        response = client.post("/api/auth/register", json={
            "email": "hr@acme.io", "password": PASSWORD, "role": "publisher", "company_name": "Acme",
        })

        assert response.status_code == 201
        me = client.get("/api/auth/me", headers=login(client, "hr@acme.io")).json()
        assert me["role"] == "publisher"
        assert me["company_name"] == "Acme"

    def test_admin_role_can_not_be_registered(self, client):
        response = client.post("/api/auth/register", json={
            "email": "boss@acme.io", "password": PASSWORD, "role": "admin",
        })

        assert response.status_code == 422

    def test_duplicate_email_is_rejected(self, client, student):
        response = client.post("/api/auth/register", json={
            "email": student["email"].upper(), "password": PASSWORD, "role": "student",
        })

        assert response.status_code == 400
        assert response.json()["detail"] == "This email is already registered."

    def test_email_taken_between_check_and_insert(self, student):
        with pytest.raises(EmailAlreadyRegisteredError) as excinfo:
            with get_db_session() as db:
                create_account(db, student["email"], "hash", "student", "token", first_name="Late")

        assert excinfo.value.status_code == 400
        with get_db_session() as db:
            count = db.execute(
                text("SELECT COUNT(*) FROM users WHERE email = :email"), {"email": student["email"]}
            ).scalar()
        assert count == 1

    def test_weak_password_lists_errors(self, client):
        response = client.post("/api/auth/register", json={
            "email": "weak@campus.edu", "password": "password", "role": "student",
        })

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["message"] == "Password does not meet security requirements"
        assert detail["password_errors"]
        assert len(detail["requirements"]) == 6
        assert detail["strength_level"] == "weak"

    def test_student_domain_is_enforced(self, client, monkeypatch):
        monkeypatch.setattr(auth_routes.settings, "student_email_domain", "campus.edu")

        rejected = client.post("/api/auth/register", json={
            "email": "nia@gmail.com", "password": PASSWORD, "role": "student",
        })
        accepted = client.post("/api/auth/register", json={
            "email": "nia@campus.edu", "password": PASSWORD, "role": "student",
        })
        publisher = client.post("/api/auth/register", json={
            "email": "jobs@gmail.com", "password": PASSWORD, "role": "publisher", "company_name": "Gee",
        })

        assert rejected.status_code == 400
        assert "@campus.edu" in rejected.json()["detail"]
        assert accepted.status_code == 201
        assert publisher.status_code == 201

    def test_admins_are_notified(self, client, admin, notifications_of):
        client.post("/api/auth/register", json={
            "email": "new@campus.edu", "password": PASSWORD, "role": "student",
            "first_name": "Lee", "last_name": "Park",
        })

        assert notifications_of(admin) == ["new_user_registered"]


# =============================================================================
# Login and current user
# =============================================================================

class TestLogin:
    """Tests for POST /api/auth/login and the auth dependencies."""

    def test_login_returns_token(self, client, student):
        response = client.post("/api/auth/login", json={"email": student["email"], "password": PASSWORD})

        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["user_id"] == student["id"]
        assert body["role"] == "student"

    def test_wrong_password(self, client, student):
        response = client.post("/api/auth/login", json={"email": student["email"], "password": "Wr0ng!Pass"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password."

    def test_unknown_email(self, client):
        response = client.post("/api/auth/login", json={"email": "ghost@campus.edu", "password": PASSWORD})

        assert response.status_code == 401

    def test_blocked_user_can_not_log_in(self, client, student):
        _block(student["id"])

        response = client.post("/api/auth/login", json={"email": student["email"], "password": PASSWORD})

        assert response.status_code == 403
        assert response.json()["detail"] == "Your account has been blocked by the administrator."

    def test_blocked_user_token_stops_working(self, client, student):
        _block(student["id"])

        response = client.get("/api/auth/me", headers=student["headers"])

        assert response.status_code == 403

    def test_missing_token(self, client):
        response = client.get("/api/auth/me")

        assert response.status_code in (401, 403)

    def test_garbage_token(self, client):
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    def test_role_guard(self, client, student):
        response = client.get("/api/publishers/profile", headers=student["headers"])

        assert response.status_code == 403
        assert response.json()["detail"] == "Publishers only"


# =============================================================================
# E-mail verification and password reset
# =============================================================================

class TestVerifyEmail:
    """Tests for GET /api/auth/verify-email."""

    def test_verification_logs_the_user_in(self, client, student):
        token = _user_column(student["id"], "email_verification_token")

        response = client.get("/api/auth/verify-email", params={"token": token})

        assert response.status_code == 200
        assert response.json()["user_id"] == student["id"]
        assert _user_column(student["id"], "email_verified_at") is not None
        assert _user_column(student["id"], "email_verification_token") is None

    def test_token_is_single_use(self, client, student):
        token = _user_column(student["id"], "email_verification_token")
        client.get("/api/auth/verify-email", params={"token": token})

        response = client.get("/api/auth/verify-email", params={"token": token})

        assert response.status_code == 400


class TestPasswordReset:
    """Tests for forgot-password and reset-password."""

    NEW_PASSWORD = "Secur3#Key"

    def test_unknown_email_gets_the_same_answer(self, client, student):
        known = client.post("/api/auth/forgot-password", json={"email": student["email"]})
        unknown = client.post("/api/auth/forgot-password", json={"email": "ghost@campus.edu"})

        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json()

    def test_reset_with_token(self, client, student):
        client.post("/api/auth/forgot-password", json={"email": student["email"]})
        token = _user_column(student["id"], "reset_token")

        response = client.post("/api/auth/reset-password", json={"token": token, "new_password": self.NEW_PASSWORD})

        assert response.status_code == 200
        assert _user_column(student["id"], "reset_token") is None
        login(client, student["email"], self.NEW_PASSWORD)

    def test_expired_token_is_rejected_and_cleared(self, client, student):
        client.post("/api/auth/forgot-password", json={"email": student["email"]})
        token = _user_column(student["id"], "reset_token")
        with get_db_session() as db:
            db.execute(
                text("UPDATE users SET reset_token_expiry = :expiry WHERE id = :uid"),
                {"expiry": utc_now() - timedelta(minutes=1), "uid": student["id"]}
            )

        response = client.post("/api/auth/reset-password", json={"token": token, "new_password": self.NEW_PASSWORD})

        assert response.status_code == 400
        assert _user_column(student["id"], "reset_token") is None

    def test_weak_new_password(self, client, student):
        client.post("/api/auth/forgot-password", json={"email": student["email"]})
        token = _user_column(student["id"], "reset_token")

        response = client.post("/api/auth/reset-password", json={"token": token, "new_password": "short"})

        assert response.status_code == 400
        assert "password_errors" in response.json()["detail"]

    def test_blocked_user_gets_no_token(self, client, student):
        _block(student["id"])

        client.post("/api/auth/forgot-password", json={"email": student["email"]})

        assert _user_column(student["id"], "reset_token") is None


# =============================================================================
# Account
# =============================================================================

class TestAccount:
    """Tests for /api/account."""

    def test_change_password(self, client, student):
        response = client.put("/api/account/password", headers=student["headers"], json={
            "current_password": PASSWORD, "new_password": "Secur3#Key",
        })

        assert response.status_code == 200
        login(client, student["email"], "Secur3#Key")

    def test_change_password_needs_current_password(self, client, student):
        response = client.put("/api/account/password", headers=student["headers"], json={
            "current_password": "Wr0ng!Pass", "new_password": "Secur3#Key",
        })

        assert response.status_code == 401
        assert response.json()["detail"] == "Incorrect current password."

    def test_delete_account(self, client, publisher, make_job):
        make_job(publisher)

        response = client.request("DELETE", "/api/account", headers=publisher["headers"],
                                  json={"password": PASSWORD})

        assert response.status_code == 200
        assert client.get("/api/jobs").json()["total"] == 0
        assert client.post("/api/auth/login", json={
            "email": publisher["email"], "password": PASSWORD,
        }).status_code == 401

    def test_delete_account_with_wrong_password(self, client, student):
        response = client.request("DELETE", "/api/account", headers=student["headers"],
                                  json={"password": "Wr0ng!Pass"})

        assert response.status_code == 401
