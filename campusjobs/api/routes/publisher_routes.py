"""
Publisher Routes

GET /publishers/profile - Get own company profile
PUT /publishers/profile - Update own company profile
GET /publishers/jobs - Own jobs with application counts
GET /publishers/applications - Applications to own jobs, with filters
GET /publishers/stats - Dashboard data
GET /publishers/reviewable-students - Accepted students, reviewed or not
GET /publishers/{publisher_id} - Public company page
"""

import logging
from datetime import timedelta
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy import text

from campusjobs.core.auth import get_current_publisher
from campusjobs.db.database import get_db_session, execute_raw_sql, rows_to_dicts, utc_today
from campusjobs.schemas.schemas import (
    PublisherProfileUpdate, UserProfileResponse, ApplicationResponse, JobResponse,
)
from campusjobs.services.application_service import APPLICATION_SELECT
from campusjobs.services.job_service import JOB_COUNT_COLUMNS, JOB_SELECT, JOB_SELECT_WITH_COUNTS
from campusjobs.services.profile_service import (
    PUBLISHER_PROFILE_COLUMNS, fetch_full_profile, update_profile,
)
from campusjobs.services.review_service import company_rating, company_reviews

router = APIRouter(prefix="/publishers", tags=["Publishers"])
logger = logging.getLogger(__name__)

PUBLISHER_USER_FIELDS = ("company_name", "profile_image_url")

REVIEWABLE_STUDENTS_SQL = """
    SELECT DISTINCT s.id AS student_id, s.first_name, s.last_name, s.email, s.profile_image_url,
           j.id AS job_id, j.title AS job_title,
           sr.id AS existing_review_id, sr.rating AS existing_rating,
           sr.review_text AS existing_review_text, sr.created_at AS review_created_at
    FROM job_applications ja
    JOIN users s ON ja.student_id = s.id
    JOIN jobs j ON ja.job_id = j.id
    LEFT JOIN student_reviews sr
           ON sr.publisher_id = :pid AND sr.student_id = s.id AND sr.job_id = j.id
    WHERE j.publisher_id = :pid AND ja.status = 'accepted' AND s.role = 'student'
"""


@router.get("/profile", response_model=UserProfileResponse)
async def get_my_profile(publisher: dict = Depends(get_current_publisher)):
    with get_db_session() as db:
        profile = fetch_full_profile(db, publisher["user_id"])
    return UserProfileResponse(**profile)


@router.put("/profile", response_model=UserProfileResponse)
async def update_my_profile(update: PublisherProfileUpdate, publisher: dict = Depends(get_current_publisher)):
    """Partial update. Only fields present in the request are written."""
    data = update.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(status_code=400, detail="No fields to update")

    user_fields = {k: v for k, v in data.items() if k in PUBLISHER_USER_FIELDS}
    profile_fields = {k: v for k, v in data.items() if k in PUBLISHER_PROFILE_COLUMNS}

    with get_db_session() as db:
        update_profile(db, publisher["user_id"], "publisher", user_fields, profile_fields)
        profile = fetch_full_profile(db, publisher["user_id"])

    logger.info("Publisher %s updated profile fields %s", publisher["user_id"], sorted(data))
    return UserProfileResponse(**profile)


@router.get("/jobs", response_model=List[JobResponse])
async def get_my_jobs(
    search: Optional[str] = Query(None, description="Search in title"),
    publisher: dict = Depends(get_current_publisher)
):
    """Every job of the publisher, drafts and closed ones included."""
    sql = JOB_SELECT_WITH_COUNTS + " WHERE j.publisher_id = :pid"
    params = {"pid": publisher["user_id"], "today": utc_today()}
    if search:
        sql += " AND LOWER(j.title) LIKE LOWER(:search)"
        params["search"] = f"%{search.strip()}%"
    sql += " ORDER BY j.created_at DESC, j.id DESC"
    return [JobResponse(**r) for r in execute_raw_sql(sql, params)]


@router.get("/applications", response_model=List[ApplicationResponse])
async def get_my_applications(
    job_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None, description="Application status, or 'today' for today's applicants"),
    search: Optional[str] = Query(None, description="Student name, job title or skills"),
    publisher: dict = Depends(get_current_publisher)
):
    sql = APPLICATION_SELECT + " WHERE j.publisher_id = :pid"
    params = {"pid": publisher["user_id"]}

    if job_id is not None:
        sql += " AND ja.job_id = :jid"
        params["jid"] = job_id

    if status == "today":
        today = utc_today()
        sql += " AND ja.applied_at >= :day_start AND ja.applied_at < :day_end"
        params["day_start"] = today
        params["day_end"] = today + timedelta(days=1)
    elif status and status.lower() != "all":
        sql += " AND ja.status = :status"
        params["status"] = status

    if search and search.strip():
        sql += """ AND (LOWER(s.first_name) LIKE LOWER(:search) OR LOWER(s.last_name) LIKE LOWER(:search)
                   OR LOWER(j.title) LIKE LOWER(:search) OR LOWER(sp.skills) LIKE LOWER(:search))"""
        params["search"] = f"%{search.strip()}%"

    sql += " ORDER BY ja.applied_at DESC, ja.id DESC"
    return [ApplicationResponse(**r) for r in execute_raw_sql(sql, params)]


@router.get("/stats")
async def get_my_stats(publisher: dict = Depends(get_current_publisher)):
    """Everything the publisher dashboard shows, in one call."""
    pid = publisher["user_id"]
    today = utc_today()

    with get_db_session() as db:
        counts = db.execute(
            text("""
                SELECT
                    (SELECT COUNT(*) FROM jobs WHERE publisher_id = :pid AND status = 'active') AS active_jobs,
                    COUNT(ja.id) AS total_applicants,
                    SUM(CASE WHEN ja.applied_at >= :day_start AND ja.applied_at < :day_end
                             THEN 1 ELSE 0 END) AS new_applicants_today,
                    SUM(CASE WHEN ja.status = 'pending' THEN 1 ELSE 0 END) AS pending_applicants
                FROM job_applications ja
                JOIN jobs j ON ja.job_id = j.id
                WHERE j.publisher_id = :pid
            """),
            {"pid": pid, "day_start": today, "day_end": today + timedelta(days=1)}
        ).mappings().fetchone()

        recent_applicants = rows_to_dicts(db.execute(
            text("""
                SELECT ja.id AS application_id, u.id AS student_id, u.first_name, u.last_name,
                       u.profile_image_url, j.title AS job_title, ja.applied_at
                FROM job_applications ja
                JOIN users u ON ja.student_id = u.id
                JOIN jobs j ON ja.job_id = j.id
                WHERE j.publisher_id = :pid
                ORDER BY ja.applied_at DESC, ja.id DESC
                LIMIT 5
            """),
            {"pid": pid}
        ))

        job_overview = rows_to_dicts(db.execute(
            text(f"""
                SELECT j.id, j.title, j.status, j.vacancies, {JOB_COUNT_COLUMNS}
                FROM jobs j
                WHERE j.publisher_id = :pid
                ORDER BY j.created_at DESC, j.id DESC
                LIMIT 5
            """),
            {"pid": pid}
        ))

        rating = company_rating(db, pid)
        latest_reviews = company_reviews(db, pid, limit=3)

        given = db.execute(
            text("""
                SELECT COUNT(*), AVG(rating) FROM student_reviews
                WHERE publisher_id = :pid AND status = 'active'
            """),
            {"pid": pid}
        ).fetchone()

        awaiting = db.execute(
            text("""
                SELECT COUNT(DISTINCT ja.student_id)
                FROM job_applications ja
                JOIN jobs j ON ja.job_id = j.id
                LEFT JOIN student_reviews sr
                       ON sr.publisher_id = :pid AND sr.student_id = ja.student_id AND sr.job_id = j.id
                WHERE j.publisher_id = :pid AND ja.status = 'accepted' AND sr.id IS NULL
            """),
            {"pid": pid}
        ).scalar()

    return {
        "active_jobs": counts["active_jobs"] or 0,
        "total_applicants": counts["total_applicants"] or 0,
        "new_applicants_today": counts["new_applicants_today"] or 0,
        "pending_applicants": counts["pending_applicants"] or 0,
        "recent_applicants": recent_applicants,
        "job_overview": job_overview,
        "latest_reviews": latest_reviews,
        "average_rating": rating["average_rating"],
        "total_review_count": rating["review_count"],
        "student_reviews_given": given[0] or 0,
        "avg_student_rating_given": round(float(given[1]), 1) if given[1] is not None else 0,
        "students_awaiting_review": awaiting or 0,
    }


@router.get("/reviewable-students")
async def get_reviewable_students(publisher: dict = Depends(get_current_publisher)):
    """Students accepted for the publisher's jobs, split by whether they have been reviewed."""
    students = execute_raw_sql(
        REVIEWABLE_STUDENTS_SQL + " ORDER BY s.first_name ASC, s.id ASC, j.id ASC",
        {"pid": publisher["user_id"]}
    )
    reviewed = [s for s in students if s["existing_review_id"]]
    not_reviewed = [s for s in students if not s["existing_review_id"]]

    return {
        "not_reviewed": not_reviewed,
        "reviewed": reviewed,
        "total_students": len(students),
        "reviewed_count": len(reviewed),
        "pending_reviews": len(not_reviewed),
    }


@router.get("/{publisher_id}")
async def get_company_page(publisher_id: int):
    """Public company page: details, rating, open jobs and reviews."""
    with get_db_session() as db:
        profile = fetch_full_profile(db, publisher_id)
        if not profile or profile["role"] != "publisher":
            raise HTTPException(status_code=404, detail="Company not found.")

        details = UserProfileResponse(**profile).model_dump(
            include={"id", "email", "company_name", "profile_image_url", "is_verified",
                     *PUBLISHER_PROFILE_COLUMNS}
        )
        details.update(company_rating(db, publisher_id))

        jobs = rows_to_dicts(db.execute(
            text(JOB_SELECT + " WHERE j.publisher_id = :pid AND j.status = 'active' ORDER BY j.created_at DESC, j.id DESC"),
            {"pid": publisher_id, "today": utc_today()}
        ))
        reviews = company_reviews(db, publisher_id)

    return {
        "details": details,
        "jobs": [JobResponse(**j).model_dump() for j in jobs],
        "reviews": reviews,
    }
