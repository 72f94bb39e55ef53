"""
Matching Service

PURPOSE:
Recommend active jobs to a student from their profile.

HOW IT WORKS:
1. Read the student's skills and preferred categories (comma separated)
2. Load every job that is still open for applications
3. Score each job:
   - +5 when the job's category is one of the preferred categories
   - +2 for every required skill the student has (case-insensitive)
4. Drop zero scores, sort by score (newest job first on ties), keep the top 3
"""

from typing import List, Optional

from sqlalchemy import text

from campusjobs.db.database import get_db_session, rows_to_dicts, utc_today
from campusjobs.services.job_service import JOB_SELECT_FOR_STUDENT, OPEN_JOB_FILTER

CATEGORY_MATCH_SCORE = 5
SKILL_MATCH_SCORE = 2
MAX_RECOMMENDATIONS = 3


# ============================================================
# SCORING
# ============================================================

def split_csv(value: Optional[str]) -> List[str]:
    """'Python, SQL ,' -> ['Python', 'SQL']"""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def matching_skills(student_skills: List[str], required_skills: List[str]) -> List[str]:
    """Required skills the student has, compared case-insensitively."""
    student_skills_lower = {s.lower() for s in student_skills}
    return [s for s in required_skills if s.lower() in student_skills_lower]


def score_job(job: dict, student_skills: List[str], preferred_categories: List[str]) -> int:
    score = 0
    preferred_lower = {c.lower() for c in preferred_categories}
    if job.get("category_name") and job["category_name"].lower() in preferred_lower:
        score += CATEGORY_MATCH_SCORE

    required = {s.lower(): s for s in split_csv(job.get("skills_required"))}
    score += len(matching_skills(student_skills, list(required.values()))) * SKILL_MATCH_SCORE
    return score


# ============================================================
# RECOMMENDATION SERVICE
# ============================================================

class RecommendationService:
    """Scores open jobs against a student's profile."""

    def __init__(self, limit: int = MAX_RECOMMENDATIONS):
        self.limit = limit

    def rank_jobs(self, jobs: List[dict], student_skills: List[str],
                  preferred_categories: List[str]) -> List[dict]:
        """Score, filter and order jobs. Jobs are expected newest first."""
        scored = []
        for job in jobs:
            score = score_job(job, student_skills, preferred_categories)
            if score > 0:
                scored.append({**job, "recommendation_score": score})
        # sorted() is stable, so equal scores keep the newest-first order
        scored = sorted(scored, key=lambda j: j["recommendation_score"], reverse=True)
        return scored[:self.limit]

    def get_student_recommendations(self, student_id: int) -> List[dict]:
        with get_db_session() as db:
            profile = db.execute(
                text("SELECT skills, preferred_categories FROM student_profiles WHERE user_id = :sid"),
                {"sid": student_id}
            ).mappings().fetchone()
            if not profile:
                return []

            result = db.execute(
                text(f"{JOB_SELECT_FOR_STUDENT} WHERE {OPEN_JOB_FILTER} ORDER BY j.created_at DESC, j.id DESC"),
                {"sid": student_id, "today": utc_today()}
            )
            jobs = rows_to_dicts(result)

        return self.rank_jobs(jobs, split_csv(profile["skills"]), split_csv(profile["preferred_categories"]))


# ============================================================
# FACTORY
# ============================================================

def get_recommendation_service() -> RecommendationService:
    return RecommendationService()
