"""
Application Routes

POST /applications - Apply for a job (student only)
GET /applications/{application_id} - Application details (applicant or job owner)
PUT /applications/{application_id}/status - Change status (job owner only)
"""

import logging

from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy import text

from campusjobs.core.auth import get_current_publisher, get_current_student, get_current_user
from campusjobs.db.database import get_db_session, rows_to_dicts
from campusjobs.schemas.schemas import (
    ApplicationCreate, ApplicationCreatedResponse, ApplicationResponse, ApplicationStatusUpdate, MessageResponse,
)
from campusjobs.services.application_service import (
    APPLICATION_SELECT, apply_for_job, mark_viewed_by_publisher, update_application_status,
)

router = APIRouter(prefix="/applications", tags=["Applications"])
logger = logging.getLogger(__name__)


@router.post("", response_model=ApplicationCreatedResponse, status_code=201)
async def create_application(application: ApplicationCreate, student: dict = Depends(get_current_student)):
    """Apply for an open job. A student can apply to each job once."""
    with get_db_session() as db:
        application_id = apply_for_job(db, student, application.job_id, application.proposal)

    return ApplicationCreatedResponse(message="Application submitted successfully.", application_id=application_id)


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application(application_id: int, user: dict = Depends(get_current_user)):
    """
    Application with the student's profile details.

    When the job's publisher opens a pending application it becomes viewed.
    """
    with get_db_session() as db:
        rows = rows_to_dicts(db.execute(text(APPLICATION_SELECT + " WHERE ja.id = :aid"), {"aid": application_id}))
        if not rows:
            raise HTTPException(status_code=404, detail="Application not found")

        application = rows[0]
        is_applicant = user["user_id"] == application["student_id"]
        is_publisher = user["user_id"] == application["publisher_id"]
        if not (is_applicant or is_publisher):
            raise HTTPException(status_code=404, detail="Application not found")

        if is_publisher and mark_viewed_by_publisher(db, application_id):
            application["status"] = "viewed"

    return ApplicationResponse(**application)


@router.put("/{application_id}/status", response_model=MessageResponse)
async def change_application_status(application_id: int, update: ApplicationStatusUpdate,
                                    publisher: dict = Depends(get_current_publisher)):
    """
    Move an application to pending, viewed, accepted or rejected.

    Accepting fails with 409 once the job's vacancies are filled.
    """
    with get_db_session() as db:
        update_application_status(db, publisher["user_id"], application_id, update.status.value)

    return MessageResponse(message="Application status updated successfully.")
