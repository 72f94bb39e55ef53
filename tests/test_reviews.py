# =============================================================================
# tests/test_reviews.py - Review Tests
# =============================================================================
# Students review companies that accepted them; publishers review students.
# Both kinds are create-or-update and feed the public profile pages.
# =============================================================================

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from campusjobs.core.exceptions import DuplicateReviewError
from campusjobs.db.database import get_db_session, utc_now
from campusjobs.services.review_service import insert_company_review, insert_student_review


@pytest.fixture
def hired(client, publisher, student, make_job, apply):
    """The student holds an accepted application for one of the publisher's jobs."""
    job_id = make_job(publisher, title="Barista")
    application_id = apply(student, job_id)
    client.put(f"/api/applications/{application_id}/status", headers=publisher["headers"],
               json={"status": "accepted"})
    return job_id


def _review_company(client, student, publisher, rating=5, text="Friendly team and fair pay."):
    return client.post("/api/reviews/companies", headers=student["headers"], json={
        "publisher_id": publisher["id"], "rating": rating, "review_text": text,
    })


def _review_student(client, publisher, student, rating=4, text="Reliable and punctual.", job_id=None):
    return client.post("/api/reviews/students", headers=publisher["headers"], json={
        "student_id": student["id"], "job_id": job_id, "rating": rating, "review_text": text,
    })


# =============================================================================
# Company reviews
# =============================================================================

class TestCompanyReviews:
    """Tests for /api/reviews/companies."""

    def test_requires_accepted_application(self, client, publisher, student, make_job, apply):
        apply(student, make_job(publisher))

        response = _review_company(client, student, publisher)
        can_review = client.get("/api/reviews/companies/can-review", headers=student["headers"],
                                params={"publisher_id": publisher["id"]}).json()

        assert response.status_code == 403
        assert can_review == {"can_review": False, "accepted_applications": 0}

    def test_create_then_update(self, client, publisher, student, hired, notifications_of):
        created = _review_company(client, student, publisher, rating=5)
        updated = _review_company(client, student, publisher, rating=3, text="Hours got long.")

        assert created.status_code == 201
        assert created.json()["created"] is True
        assert updated.status_code == 200
        assert updated.json()["created"] is False
        assert updated.json()["review_id"] == created.json()["review_id"]

        reviews = client.get(f"/api/reviews/companies/{publisher['id']}").json()
        assert reviews["review_count"] == 1
        assert reviews["average_rating"] == 3.0
        assert reviews["reviews"][0]["review_text"] == "Hours got long."
        assert reviews["reviews"][0]["first_name"] == "Nia"
        # Only the first submission notifies
        assert notifications_of(publisher).count("new_review") == 1

    def test_can_review_after_acceptance(self, client, publisher, student, hired):
        response = client.get("/api/reviews/companies/can-review", headers=student["headers"],
                              params={"publisher_id": publisher["id"]})

        assert response.json() == {"can_review": True, "accepted_applications": 1}

    @pytest.mark.parametrize("rating, text", [(0, "Fine"), (6, "Fine"), (4, "   ")])
    def test_invalid_input(self, client, publisher, student, hired, rating, text):
        response = _review_company(client, student, publisher, rating=rating, text=text)

        assert response.status_code == 422

    def test_unknown_company(self, client, student):
        response = client.post("/api/reviews/companies", headers=student["headers"], json={
            "publisher_id": 999, "rating": 5, "review_text": "Great",
        })

        assert response.status_code == 404

    def test_company_page_shows_rating(self, client, publisher, student, hired):
        _review_company(client, student, publisher, rating=4)

        page = client.get(f"/api/publishers/{publisher['id']}").json()

        assert page["details"]["company_name"] == "Acme Robotics"
        assert page["details"]["average_rating"] == 4.0
        assert page["details"]["review_count"] == 1
        assert [j["title"] for j in page["jobs"]] == ["Barista"]
        assert len(page["reviews"]) == 1

    def test_company_page_for_non_publisher(self, client, student):
        assert client.get(f"/api/publishers/{student['id']}").status_code == 404


# =============================================================================
# Student reviews
# =============================================================================

class TestStudentReviews:
    """Tests for /api/reviews/students."""

    def test_create_then_update_per_job(self, client, publisher, student, hired, notifications_of):
        created = _review_student(client, publisher, student, rating=5, job_id=hired)
        updated = _review_student(client, publisher, student, rating=4, job_id=hired)
        general = _review_student(client, publisher, student, rating=2)

        assert created.status_code == 201
        assert updated.status_code == 200
        assert general.status_code == 201
        assert notifications_of(student).count("review_received") == 2

        summary = client.get(f"/api/reviews/students/{student['id']}").json()
        assert summary["total_reviews"] == 2
        assert summary["average_rating"] == 3.0
        assert summary["rating_distribution"] == {"1": 0, "2": 1, "3": 0, "4": 1, "5": 0}

    def test_general_review_is_updated_in_place(self, client, publisher, student):
        first = _review_student(client, publisher, student, rating=2)
        second = _review_student(client, publisher, student, rating=5)

        assert second.status_code == 200
        assert second.json()["review_id"] == first.json()["review_id"]

    def test_unknown_student(self, client, publisher, make_user):
        other_publisher = make_user("publisher")

        response = _review_student(client, publisher, other_publisher)

        assert response.status_code == 400

    def test_job_must_belong_to_publisher(self, client, publisher, student, make_user, make_job):
        rival = make_user("publisher")
        rival_job = make_job(rival)

        response = _review_student(client, publisher, student, job_id=rival_job)

        assert response.status_code == 400

    def test_reviewable_students(self, client, publisher, student, hired):
        before = client.get("/api/publishers/reviewable-students", headers=publisher["headers"]).json()
        _review_student(client, publisher, student, job_id=hired)
        after = client.get("/api/publishers/reviewable-students", headers=publisher["headers"]).json()

        assert before["pending_reviews"] == 1
        assert before["not_reviewed"][0]["job_title"] == "Barista"
        assert after["reviewed_count"] == 1
        assert after["pending_reviews"] == 0
        assert after["reviewed"][0]["existing_rating"] == 4

    def test_public_student_profile(self, client, publisher, student):
        _review_student(client, publisher, student, rating=5)

        anonymous = client.get(f"/api/students/{student['id']}")
        profile = client.get(f"/api/students/{student['id']}", headers=publisher["headers"]).json()

        assert anonymous.status_code in (401, 403)
        assert profile["first_name"] == "Nia"
        assert profile["review_summary"] == {"average_rating": 5.0, "total_reviews": 1}
        assert "password_hash" not in profile

    def test_dashboard_counts_reviews_given(self, client, publisher, student, hired):
        awaiting = client.get("/api/publishers/stats", headers=publisher["headers"]).json()
        _review_student(client, publisher, student, rating=3, job_id=hired)
        done = client.get("/api/publishers/stats", headers=publisher["headers"]).json()

        assert awaiting["students_awaiting_review"] == 1
        assert done["students_awaiting_review"] == 0
        assert done["student_reviews_given"] == 1
        assert done["avg_student_rating_given"] == 3.0


# =============================================================================
# Uniqueness
# =============================================================================

def _insert_student_review(db, publisher, student, job_id):
    db.execute(
        text("""
            INSERT INTO student_reviews (publisher_id, student_id, job_id, rating, review_text,
                                         status, created_at, updated_at)
            VALUES (:pid, :sid, :jid, 4, 'Solid work.', 'active', :now, :now)
        """),
        {"pid": publisher["id"], "sid": student["id"], "jid": job_id, "now": utc_now()}
    )


class TestReviewUniqueness:
    """The database keeps one review per pair (and per job for student reviews)."""

    def test_duplicate_job_review_is_rejected(self, publisher, student, make_job):
        job_id = make_job(publisher)

        with pytest.raises(IntegrityError):
            with get_db_session() as db:
                _insert_student_review(db, publisher, student, job_id)
                _insert_student_review(db, publisher, student, job_id)

    def test_duplicate_general_review_is_rejected(self, publisher, student):
        with pytest.raises(IntegrityError):
            with get_db_session() as db:
                _insert_student_review(db, publisher, student, None)
                _insert_student_review(db, publisher, student, None)

    def test_rejected_duplicate_leaves_one_review(self, client, publisher, student, make_job):
        job_id = make_job(publisher)
        _review_student(client, publisher, student, job_id=job_id)

        with pytest.raises(IntegrityError):
            with get_db_session() as db:
                _insert_student_review(db, publisher, student, job_id)

        summary = client.get(f"/api/reviews/students/{student['id']}").json()
        assert summary["total_reviews"] == 1

    def test_lost_student_review_race_is_a_conflict(self, publisher, student):
        with get_db_session() as db:
            _insert_student_review(db, publisher, student, None)

        # Stored after this request checked for an existing review
        with pytest.raises(DuplicateReviewError) as excinfo:
            with get_db_session() as db:
                insert_student_review(db, publisher["id"], student["id"], None, 5, "Great")

        assert excinfo.value.status_code == 409

    def test_lost_company_review_race_is_a_conflict(self, client, publisher, student, hired):
        _review_company(client, student, publisher)

        with pytest.raises(DuplicateReviewError):
            with get_db_session() as db:
                insert_company_review(db, publisher["id"], student["id"], 2, "Second try")

        reviews = client.get(f"/api/reviews/companies/{publisher['id']}").json()
        assert reviews["review_count"] == 1

    def test_deleting_reviewed_job_keeps_general_review(self, client, publisher, student, make_job):
        job_id = make_job(publisher)
        _review_student(client, publisher, student, rating=5, job_id=job_id)
        _review_student(client, publisher, student, rating=2)

        response = client.delete(f"/api/jobs/{job_id}", headers=publisher["headers"])

        assert response.status_code == 200
        summary = client.get(f"/api/reviews/students/{student['id']}").json()
        assert summary["total_reviews"] == 1
        assert summary["average_rating"] == 2.0

    def test_deleting_reviewed_job_keeps_its_review(self, client, publisher, student, make_job):
        job_id = make_job(publisher)
        _review_student(client, publisher, student, rating=5, job_id=job_id)

        client.delete(f"/api/jobs/{job_id}", headers=publisher["headers"])

        summary = client.get(f"/api/reviews/students/{student['id']}").json()
        assert summary["total_reviews"] == 1
