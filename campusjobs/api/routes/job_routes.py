"""
Job Routes

POST /jobs - Create job posting (publisher only)
GET /jobs - List open jobs with filters
GET /jobs/latest - Six newest open jobs
GET /jobs/categories - All job categories
GET /jobs/suggestions - Skill and category names for search boxes
GET /jobs/{job_id} - Get job details
PUT /jobs/{job_id} - Update job (owner only)
DELETE /jobs/{job_id} - Delete job (owner only)
POST /jobs/{job_id}/close - Stop accepting applications (owner only)
POST /jobs/{job_id}/extend-deadline - Move deadline and reopen (owner only)
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy import text

from campusjobs.core.auth import get_current_publisher, get_optional_user, display_name
from campusjobs.db.database import get_db_session, execute_raw_sql, utc_now, utc_today
from campusjobs.schemas.schemas import (
    JobCreate, JobUpdate, JobResponse, JobListResponse, JobCreatedResponse, ExtendDeadlineRequest,
    CategoryResponse, SuggestionsResponse, MessageResponse, JobType,
)
from campusjobs.services.job_service import (
    JOB_SELECT, JOB_SELECT_FOR_STUDENT, JOB_SELECT_WITH_COUNTS, OPEN_JOB_FILTER,
    calculate_payment_amount, count_accepted, get_owned_job, normalize_new_job_status,
)
from campusjobs.services.notification_service import notify_admins
from campusjobs.services.review_service import release_job_reviews

router = APIRouter(prefix="/jobs", tags=["Jobs"])
logger = logging.getLogger(__name__)

LATEST_JOBS_LIMIT = 6

# Columns that can not be cleared with an explicit null
REQUIRED_JOB_FIELDS = {"title", "job_type", "work_mode", "vacancies", "experience_level", "status"}


def _check_category(db, category_id: Optional[int]) -> None:
    if category_id is None:
        return
    found = db.execute(text("SELECT id FROM job_categories WHERE id = :cid"), {"cid": category_id}).fetchone()
    if not found:
        raise HTTPException(status_code=400, detail="Unknown job category")


@router.post("", response_model=JobCreatedResponse, status_code=201)
async def create_job(job: JobCreate, publisher: dict = Depends(get_current_publisher)):
    """
    Create a job posting.

    Anything but status "active" is saved as a draft, and admins are asked
    to approve drafts.
    """
    status = normalize_new_job_status(job.status)
    payment_amount = calculate_payment_amount(job.job_type.value, job.payment_range)

    with get_db_session() as db:
        _check_category(db, job.category_id)

        result = db.execute(
            text("""
                INSERT INTO jobs (publisher_id, category_id, title, description, skills_required, job_type,
                    payment_range, start_date, end_date, status, work_mode, location, application_deadline,
                    vacancies, working_hours, experience_level, payment_status, payment_amount, created_at)
                VALUES (:publisher_id, :category_id, :title, :description, :skills_required, :job_type,
                    :payment_range, :start_date, :end_date, :status, :work_mode, :location, :deadline,
                    :vacancies, :working_hours, :experience_level, 'pending', :payment_amount, :now)
                RETURNING id
            """),
            {
                "publisher_id": publisher["user_id"], "category_id": job.category_id,
                "title": job.title.strip(), "description": job.description,
                "skills_required": job.skills_required, "job_type": job.job_type.value,
                "payment_range": job.payment_range, "start_date": job.start_date, "end_date": job.end_date,
                "status": status, "work_mode": job.work_mode.value, "location": job.location,
                "deadline": job.application_deadline, "vacancies": job.vacancies,
                "working_hours": job.working_hours, "experience_level": job.experience_level,
                "payment_amount": payment_amount, "now": utc_now(),
            }
        )
        job_id = result.fetchone()[0]

        if status == "draft":
            notify_admins(
                db, "new_job_pending_approval",
                f'New job "{job.title.strip()}" from {display_name(publisher)} is waiting for approval.',
                "/job-management"
            )

    logger.info("Publisher %s created job %s as %s", publisher["user_id"], job_id, status)
    return JobCreatedResponse(
        message="Job created successfully.", job_id=job_id, status=status, payment_amount=payment_amount
    )


@router.get("", response_model=JobListResponse)
async def list_jobs(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, description="Search in title or company name"),
    category_id: Optional[int] = Query(None),
    job_type: Optional[JobType] = Query(None),
    user: Optional[dict] = Depends(get_optional_user)
):
    """
    List jobs open for applications, newest first.

    With a student token each job carries that student's application status.
    """
    params = {"today": utc_today()}
    if user and user["role"] == "student":
        select = JOB_SELECT_FOR_STUDENT
        params["sid"] = user["user_id"]
    else:
        select = JOB_SELECT

    where = f" WHERE {OPEN_JOB_FILTER}"
    if search and search.strip():
        where += " AND (LOWER(j.title) LIKE LOWER(:search) OR LOWER(u.company_name) LIKE LOWER(:search))"
        params["search"] = f"%{search.strip()}%"
    if category_id is not None:
        where += " AND j.category_id = :category_id"
        params["category_id"] = category_id
    if job_type:
        where += " AND j.job_type = :job_type"
        params["job_type"] = job_type.value

    total = execute_raw_sql(
        "SELECT COUNT(*) AS total FROM jobs j JOIN users u ON j.publisher_id = u.id" + where, params
    )[0]["total"]

    offset = (page - 1) * page_size
    results = execute_raw_sql(
        select + where + " ORDER BY j.created_at DESC, j.id DESC LIMIT :limit OFFSET :offset",
        {**params, "limit": page_size, "offset": offset}
    )
    return JobListResponse(jobs=[JobResponse(**r) for r in results], total=total)


@router.get("/latest", response_model=List[JobResponse])
async def latest_jobs():
    """Newest open jobs for the landing page."""
    results = execute_raw_sql(
        JOB_SELECT + f" WHERE {OPEN_JOB_FILTER} ORDER BY j.created_at DESC, j.id DESC LIMIT {LATEST_JOBS_LIMIT}",
        {"today": utc_today()}
    )
    return [JobResponse(**r) for r in results]


@router.get("/categories", response_model=List[CategoryResponse])
async def list_categories():
    return [CategoryResponse(**r) for r in execute_raw_sql("SELECT id, name FROM job_categories ORDER BY name ASC")]


@router.get("/suggestions", response_model=SuggestionsResponse)
async def search_suggestions():
    skills = execute_raw_sql("SELECT name FROM skills ORDER BY name ASC")
    categories = execute_raw_sql("SELECT name FROM job_categories ORDER BY name ASC")
    return SuggestionsResponse(
        skills=[r["name"] for r in skills],
        categories=[r["name"] for r in categories],
    )


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(job_id: int, user: Optional[dict] = Depends(get_optional_user)):
    """
    Job details with application counts.

    Drafts are only shown to their publisher and to admins.
    """
    results = execute_raw_sql(JOB_SELECT_WITH_COUNTS + " WHERE j.id = :jid", {"jid": job_id, "today": utc_today()})
    if not results:
        raise HTTPException(status_code=404, detail="Job not found")

    job = results[0]
    if job["status"] == "draft":
        is_owner = user is not None and user["user_id"] == job["publisher_id"]
        is_admin = user is not None and user["role"] == "admin"
        if not (is_owner or is_admin):
            raise HTTPException(status_code=404, detail="Job not found")

    if user and user["role"] == "student":
        mine = execute_raw_sql(
            "SELECT status FROM job_applications WHERE job_id = :jid AND student_id = :sid",
            {"jid": job_id, "sid": user["user_id"]}
        )
        job["application_status"] = mine[0]["status"] if mine else None

    return JobResponse(**job)


@router.put("/{job_id}", response_model=MessageResponse)
async def update_job(job_id: int, update: JobUpdate, publisher: dict = Depends(get_current_publisher)):
    """Partial update of a job. Only the owning publisher can update."""
    data = {
        field: value for field, value in update.model_dump(exclude_unset=True).items()
        if value is not None or field not in REQUIRED_JOB_FIELDS
    }
    if not data:
        raise HTTPException(status_code=400, detail="No fields to update")

    with get_db_session() as db:
        current = get_owned_job(db, job_id, publisher["user_id"], lock="vacancies" in data)

        if "category_id" in data:
            _check_category(db, data["category_id"])

        if data.get("vacancies") is not None:
            accepted = count_accepted(db, job_id)
            if data["vacancies"] < accepted:
                raise HTTPException(
                    status_code=409,
                    detail=f"Vacancies can not be lower than the {accepted} applicants already accepted."
                )

        params = {"jid": job_id}
        for field, value in data.items():
            if hasattr(value, "value"):
                value = value.value
            params[field] = value

        if "job_type" in data or "payment_range" in data:
            job_type = params.get("job_type") or db.execute(
                text("SELECT job_type FROM jobs WHERE id = :jid"), {"jid": job_id}
            ).scalar()
            payment_range = params["payment_range"] if "payment_range" in params else db.execute(
                text("SELECT payment_range FROM jobs WHERE id = :jid"), {"jid": job_id}
            ).scalar()
            params["payment_amount"] = calculate_payment_amount(job_type, payment_range)

        assignments = ", ".join(f"{field} = :{field}" for field in params if field != "jid")
        db.execute(text(f"UPDATE jobs SET {assignments} WHERE id = :jid"), params)

    logger.info("Publisher %s updated job %s (%s)", publisher["user_id"], job_id, ", ".join(sorted(data)))
    return MessageResponse(message=f'Job "{current["title"]}" updated successfully.')


@router.delete("/{job_id}", response_model=MessageResponse)
async def delete_job(job_id: int, publisher: dict = Depends(get_current_publisher)):
    """Delete a job posting. Cascades to applications."""
    with get_db_session() as db:
        get_owned_job(db, job_id, publisher["user_id"])
        release_job_reviews(db, job_id)
        db.execute(text("DELETE FROM jobs WHERE id = :jid"), {"jid": job_id})

    logger.info("Publisher %s deleted job %s", publisher["user_id"], job_id)
    return MessageResponse(message="Job has been successfully deleted.")


@router.post("/{job_id}/close", response_model=MessageResponse)
async def close_job(job_id: int, publisher: dict = Depends(get_current_publisher)):
    with get_db_session() as db:
        job = get_owned_job(db, job_id, publisher["user_id"])
        if job["status"] == "closed":
            raise HTTPException(status_code=400, detail="Job is already closed")
        db.execute(text("UPDATE jobs SET status = 'closed' WHERE id = :jid"), {"jid": job_id})

    logger.info("Publisher %s closed job %s", publisher["user_id"], job_id)
    return MessageResponse(message="Job has been successfully closed.")


@router.post("/{job_id}/extend-deadline", response_model=MessageResponse)
async def extend_deadline(job_id: int, request: ExtendDeadlineRequest,
                          publisher: dict = Depends(get_current_publisher)):
    """Set a new application deadline and make the job active again."""
    if request.application_deadline <= utc_today():
        raise HTTPException(status_code=400, detail="The new deadline must be in the future")

    with get_db_session() as db:
        get_owned_job(db, job_id, publisher["user_id"])
        db.execute(
            text("UPDATE jobs SET application_deadline = :deadline, status = 'active' WHERE id = :jid"),
            {"deadline": request.application_deadline, "jid": job_id}
        )

    logger.info("Publisher %s extended job %s to %s", publisher["user_id"], job_id, request.application_deadline)
    return MessageResponse(message="Job deadline extended successfully.")
