"""
Student Routes

GET /students/profile - Get own profile
PUT /students/profile - Update own profile
GET /students/applications - Own applications with job details
GET /students/stats - Dashboard counters and profile completion
GET /students/recommendations - Top matching open jobs
GET /students/{student_id} - Public student profile with reviews
"""

import logging
from typing import List

from fastapi import APIRouter, HTTPException, Depends

from campusjobs.core.auth import get_current_student, get_current_user
from campusjobs.db.database import get_db_session, execute_raw_sql
from campusjobs.schemas.schemas import (
    StudentProfileUpdate, UserProfileResponse, ApplicationResponse, JobResponse,
)
from campusjobs.services.application_service import APPLICATION_SELECT
from campusjobs.services.matching_service import get_recommendation_service
from campusjobs.services.profile_service import (
    STUDENT_PROFILE_COLUMNS, fetch_full_profile, profile_completion, update_profile,
)
from campusjobs.services.review_service import student_review_summary

router = APIRouter(prefix="/students", tags=["Students"])
logger = logging.getLogger(__name__)

STUDENT_USER_FIELDS = ("first_name", "last_name", "profile_image_url")


@router.get("/profile", response_model=UserProfileResponse)
async def get_my_profile(student: dict = Depends(get_current_student)):
    with get_db_session() as db:
        profile = fetch_full_profile(db, student["user_id"])
    return UserProfileResponse(**profile)


@router.put("/profile", response_model=UserProfileResponse)
async def update_my_profile(update: StudentProfileUpdate, student: dict = Depends(get_current_student)):
    """Partial update. Only fields present in the request are written."""
    data = update.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(status_code=400, detail="No fields to update")

    user_fields = {k: v for k, v in data.items() if k in STUDENT_USER_FIELDS}
    profile_fields = {k: v for k, v in data.items() if k in STUDENT_PROFILE_COLUMNS}

    with get_db_session() as db:
        update_profile(db, student["user_id"], "student", user_fields, profile_fields)
        profile = fetch_full_profile(db, student["user_id"])

    logger.info("Student %s updated profile fields %s", student["user_id"], sorted(data))
    return UserProfileResponse(**profile)


@router.get("/applications", response_model=List[ApplicationResponse])
async def get_my_applications(student: dict = Depends(get_current_student)):
    """All applications the student has sent, newest first."""
    results = execute_raw_sql(
        APPLICATION_SELECT + " WHERE ja.student_id = :sid ORDER BY ja.applied_at DESC, ja.id DESC",
        {"sid": student["user_id"]}
    )
    return [ApplicationResponse(**r) for r in results]


@router.get("/stats")
async def get_my_stats(student: dict = Depends(get_current_student)):
    """
    Dashboard counters.

    profile_views counts applications a publisher has opened.
    """
    counts = execute_raw_sql("""
        SELECT COUNT(*) AS applications_sent,
               SUM(CASE WHEN status = 'accepted' THEN 1 ELSE 0 END) AS applications_accepted,
               SUM(CASE WHEN status = 'viewed' THEN 1 ELSE 0 END) AS profile_views
        FROM job_applications WHERE student_id = :sid
    """, {"sid": student["user_id"]})[0]

    with get_db_session() as db:
        profile = fetch_full_profile(db, student["user_id"])

    return {
        "applications_sent": counts["applications_sent"] or 0,
        "applications_accepted": counts["applications_accepted"] or 0,
        "profile_views": counts["profile_views"] or 0,
        "profile_completion_percentage": profile_completion(profile),
    }


@router.get("/recommendations", response_model=List[JobResponse])
async def get_recommendations(student: dict = Depends(get_current_student)):
    service = get_recommendation_service()
    return [JobResponse(**job) for job in service.get_student_recommendations(student["user_id"])]


@router.get("/{student_id}")
async def get_student_public_profile(student_id: int, user: dict = Depends(get_current_user)):
    """Student profile as publishers see it, with received reviews."""
    with get_db_session() as db:
        profile = fetch_full_profile(db, student_id)
        if not profile or profile["role"] != "student":
            raise HTTPException(status_code=404, detail="Student not found.")
        reviews = student_review_summary(db, student_id)

    public = UserProfileResponse(**profile).model_dump(
        include={"id", "email", "first_name", "last_name", "profile_image_url", "created_at",
                 *STUDENT_PROFILE_COLUMNS}
    )
    public["review_summary"] = {
        "average_rating": reviews["average_rating"],
        "total_reviews": reviews["total_reviews"],
    }
    return public
