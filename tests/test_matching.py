# =============================================================================
# tests/test_matching.py - Recommendation Tests
# =============================================================================
# Scoring rules of the recommendation service, then recommendations
# served to a student through the API.
# =============================================================================

from datetime import timedelta

import pytest
from sqlalchemy import text

from campusjobs.db.database import get_db_session, utc_today
from campusjobs.services.matching_service import (
    RecommendationService,
    matching_skills,
    score_job,
    split_csv,
)


# =============================================================================
# Scoring
# =============================================================================

class TestScoring:
    """Tests for the pure scoring helpers."""

    @pytest.mark.parametrize("value, expected", [
        ("Python, SQL ,", ["Python", "SQL"]),
        ("", []),
        (None, []),
        (" , ", []),
    ])
    def test_split_csv(self, value, expected):
        assert split_csv(value) == expected

    def test_matching_skills_ignores_case(self):
        assert matching_skills(["python", "Excel"], ["Python", "SQL", "EXCEL"]) == ["Python", "EXCEL"]

    def test_category_and_skills_add_up(self):
        job = {"category_name": "Tutoring", "skills_required": "Math, Physics, Chemistry"}

        score = score_job(job, ["math", "physics"], ["tutoring"])

        assert score == 5 + 2 * 2

    def test_repeated_required_skill_counts_once(self):
        job = {"category_name": None, "skills_required": "SQL, sql"}

        assert score_job(job, ["SQL"], []) == 2

    def test_no_overlap_scores_zero(self):
        job = {"category_name": "Retail", "skills_required": "Cashier"}

        assert score_job(job, ["Python"], ["Tutoring"]) == 0


class TestRankJobs:
    """Tests for RecommendationService.rank_jobs."""

    def test_drops_zero_scores_and_keeps_top_three(self):
        # Arrange: jobs listed newest first
        jobs = [
            {"id": 1, "category_name": None, "skills_required": "Python"},
            {"id": 2, "category_name": "Tutoring", "skills_required": ""},
            {"id": 3, "category_name": None, "skills_required": "Cooking"},
            {"id": 4, "category_name": "Tutoring", "skills_required": "Python"},
            {"id": 5, "category_name": None, "skills_required": "Python, SQL"},
        ]

        # Act
        ranked = RecommendationService().rank_jobs(jobs, ["python", "sql"], ["Tutoring"])

        # Assert: 4 (7 points), 2 (5), 5 (4); 1 (2) is cut, 3 never scores
        assert [j["id"] for j in ranked] == [4, 2, 5]
        assert [j["recommendation_score"] for j in ranked] == [7, 5, 4]

    def test_ties_keep_newest_first(self):
        jobs = [
            {"id": 9, "category_name": None, "skills_required": "Python"},
            {"id": 8, "category_name": None, "skills_required": "Python"},
        ]

        ranked = RecommendationService(limit=5).rank_jobs(jobs, ["Python"], [])

        assert [j["id"] for j in ranked] == [9, 8]

    def test_input_is_not_modified(self):
        jobs = [{"id": 1, "category_name": None, "skills_required": "Python"}]

        RecommendationService().rank_jobs(jobs, ["Python"], [])

        assert "recommendation_score" not in jobs[0]


# =============================================================================
# Recommendations endpoint
# =============================================================================

class TestRecommendationsEndpoint:
    """Tests for GET /api/students/recommendations."""

    def test_recommends_matching_open_jobs(self, client, publisher, student, make_job):
        with get_db_session() as db:
            tutoring = db.execute(
                text("INSERT INTO job_categories (name) VALUES ('Tutoring') RETURNING id")
            ).scalar()
        client.put("/api/students/profile", headers=student["headers"], json={
            "skills": "Python, Statistics", "preferred_categories": "Tutoring",
        })
        make_job(publisher, title="Stats Tutor", category_id=tutoring, skills_required="Statistics")
        make_job(publisher, title="Data Helper", skills_required="Python")
        make_job(publisher, title="Cashier", skills_required="Retail")
        make_job(publisher, title="Draft Tutor", status="draft", category_id=tutoring)
        expired = make_job(publisher, title="Old Tutor", category_id=tutoring,
                           application_deadline=(utc_today() + timedelta(days=3)).isoformat())
        client.put(f"/api/jobs/{expired}", headers=publisher["headers"],
                   json={"application_deadline": (utc_today() - timedelta(days=1)).isoformat()})

        recommendations = client.get("/api/students/recommendations", headers=student["headers"]).json()

        assert [(j["title"], j["recommendation_score"]) for j in recommendations] == [
            ("Stats Tutor", 7), ("Data Helper", 2),
        ]

    def test_empty_profile_gets_nothing(self, client, publisher, student, make_job):
        make_job(publisher, skills_required="Python")

        assert client.get("/api/students/recommendations", headers=student["headers"]).json() == []

    def test_students_only(self, client, publisher):
        response = client.get("/api/students/recommendations", headers=publisher["headers"])

        assert response.status_code == 403
