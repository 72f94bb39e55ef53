# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Points the app at an in-memory SQLite database before any imports
# - Recreates the schema for every test
# - Factories for users, jobs and applications that go through the API
# =============================================================================

import itertools
import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing campusjobs.core.config which caches settings

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("STUDENT_EMAIL_DOMAIN", "")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text

from campusjobs.core.auth import hash_password
from campusjobs.db.database import engine, get_db_session, utc_now
from campusjobs.db.schema import drop_db, init_db
from campusjobs.main import app

PASSWORD = "Str0ng!Pass"


# =============================================================================
# Database and client
# =============================================================================

@pytest.fixture(autouse=True)
def reset_database():
    """Fresh schema (and default site settings) for every test."""
    drop_db(engine)
    init_db(engine)
    yield


@pytest.fixture
def client():
    return TestClient(app)


def login(client, email: str, password: str = PASSWORD) -> dict:
    """Log in and return the Authorization header."""
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


# =============================================================================
# Factories
# =============================================================================

@pytest.fixture
def make_user(client):
    """Register a student or publisher through the API and log them in."""
    counter = itertools.count(1)

    def _make(role: str = "student", **fields) -> dict:
        n = next(counter)
        email = fields.pop("email", f"{role}{n}@campus.edu")
        payload = {"email": email, "password": PASSWORD, "role": role}
        if role == "publisher":
            payload["company_name"] = fields.pop("company_name", f"Acme Labs {n}")
        else:
            payload["first_name"] = fields.pop("first_name", "Sam")
            payload["last_name"] = fields.pop("last_name", f"Rivera{n}")

        response = client.post("/api/auth/register", json=payload)
        assert response.status_code == 201, response.text
        return {"id": response.json()["user_id"], "email": email, "headers": login(client, email)}

    return _make


@pytest.fixture
def student(make_user):
    return make_user("student", first_name="Nia", last_name="Okafor")


@pytest.fixture
def publisher(make_user):
    return make_user("publisher", company_name="Acme Robotics")


@pytest.fixture
def admin(client):
    """Admins can not sign up, so the row is inserted directly."""
    email = "ops@campus.edu"
    with get_db_session() as db:
        admin_id = db.execute(
            text("""
                INSERT INTO users (email, password_hash, first_name, last_name, role, is_verified, status, created_at)
                VALUES (:email, :hash, 'Site', 'Operator', 'admin', :verified, 'active', :now)
                RETURNING id
            """),
            {"email": email, "hash": hash_password(PASSWORD), "verified": True, "now": utc_now()}
        ).scalar()
    return {"id": admin_id, "email": email, "headers": login(client, email)}


@pytest.fixture
def make_job(client):
    """Create a job through the API. Active by default."""

    def _make(owner: dict, **fields) -> int:
        payload = {
            "title": "Library Assistant",
            "job_type": "part-time",
            "payment_range": "1000-2000",
            "status": "active",
            "vacancies": 1,
        }
        payload.update(fields)
        response = client.post("/api/jobs", json=payload, headers=owner["headers"])
        assert response.status_code == 201, response.text
        return response.json()["job_id"]

    return _make


@pytest.fixture
def apply(client):
    """Apply for a job as the given student and return the application id."""

    def _apply(applicant: dict, job_id: int, proposal: str = "I am available on weekdays.") -> int:
        response = client.post(
            "/api/applications", json={"job_id": job_id, "proposal": proposal}, headers=applicant["headers"]
        )
        assert response.status_code == 201, response.text
        return response.json()["application_id"]

    return _apply


@pytest.fixture
def notifications_of(client):
    """Notification types the user has received, newest first."""

    def _types(user: dict) -> list:
        response = client.get("/api/notifications", headers=user["headers"])
        assert response.status_code == 200, response.text
        return [n["type"] for n in response.json()]

    return _types
