"""
Application Service

Applying for a job and moving an application through its statuses.

The vacancy rule lives here: an application can only become "accepted"
while fewer than `vacancies` other applications of the same job are
accepted. The job row is locked and the count taken inside the caller's
transaction, so two publishers' tabs accepting at the same time can not
both get through.
"""

import logging

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campusjobs.core.exceptions import (
    AlreadyAppliedError, CampusJobsError, NotFoundError, VacancyLimitReachedError,
)
from campusjobs.db.database import as_date, supports_row_locks, utc_now, utc_today
from campusjobs.services.job_service import count_accepted
from campusjobs.services.notification_service import create_notification

logger = logging.getLogger(__name__)

STUDENT_NOTIFIED_STATUSES = ("accepted", "rejected")

APPLICATION_SELECT = """
    SELECT ja.id, ja.job_id, j.title AS job_title, ja.student_id,
           s.first_name AS student_first_name, s.last_name AS student_last_name,
           s.email AS student_email, s.profile_image_url AS student_image_url,
           j.publisher_id, p.company_name, ja.proposal, ja.status, ja.applied_at, j.vacancies,
           (SELECT COUNT(*) FROM job_applications acc
            WHERE acc.job_id = j.id AND acc.status = 'accepted') AS accepted_count,
           sp.university_name, sp.field_of_study, sp.year_of_study, sp.skills, sp.cv_url
    FROM job_applications ja
    JOIN jobs j ON ja.job_id = j.id
    JOIN users s ON ja.student_id = s.id
    JOIN users p ON j.publisher_id = p.id
    LEFT JOIN student_profiles sp ON sp.user_id = ja.student_id
"""


def apply_for_job(db: Session, student: dict, job_id: int, proposal: str = None) -> int:
    """
    Create a pending application and notify the job's publisher.

    Returns the new application id.
    """
    job = db.execute(
        text("SELECT id, publisher_id, title, status, application_deadline FROM jobs WHERE id = :jid"),
        {"jid": job_id}
    ).mappings().fetchone()
    if not job:
        raise NotFoundError("Job not found")
    if job["status"] != "active":
        raise CampusJobsError("This job is not accepting applications")
    deadline = job["application_deadline"]
    if deadline is not None and as_date(deadline) < utc_today():
        raise CampusJobsError("The application deadline for this job has passed")

    existing = db.execute(
        text("SELECT id FROM job_applications WHERE student_id = :sid AND job_id = :jid"),
        {"sid": student["user_id"], "jid": job_id}
    ).fetchone()
    if existing:
        raise AlreadyAppliedError()

    try:
        result = db.execute(
            text("""
                INSERT INTO job_applications (student_id, job_id, proposal, status, applied_at)
                VALUES (:sid, :jid, :proposal, 'pending', :now)
                RETURNING id
            """),
            {"sid": student["user_id"], "jid": job_id, "proposal": proposal, "now": utc_now()}
        )
    except IntegrityError:
        # Lost a race with a concurrent submission of the same application
        raise AlreadyAppliedError()
    application_id = result.fetchone()[0]

    student_name = f"{student.get('first_name') or ''} {student.get('last_name') or ''}".strip() or "A student"
    create_notification(
        db, job["publisher_id"], "new_applicant",
        f'{student_name} has applied for your job "{job["title"]}".',
        f"/applicants/view/{application_id}"
    )

    logger.info("Student %s applied for job %s (application %s)", student["user_id"], job_id, application_id)
    return application_id


def update_application_status(db: Session, publisher_id: int, application_id: int, new_status: str) -> dict:
    """
    Set an application's status on behalf of the job's publisher.

    Raises NotFoundError when the application does not exist or belongs to
    another publisher, CampusJobsError when the status is unchanged and
    VacancyLimitReachedError when accepting would exceed the job's vacancies.
    """
    application = db.execute(
        text("""
            SELECT ja.id, ja.status, ja.student_id, ja.job_id, j.title, j.publisher_id
            FROM job_applications ja
            JOIN jobs j ON ja.job_id = j.id
            WHERE ja.id = :aid
        """),
        {"aid": application_id}
    ).mappings().fetchone()
    if not application or application["publisher_id"] != publisher_id:
        raise NotFoundError("Application not found or access denied")
    if application["status"] == new_status:
        raise CampusJobsError(f"Application is already {new_status}")

    if new_status == "accepted":
        lock_sql = "SELECT vacancies FROM jobs WHERE id = :jid"
        if supports_row_locks(db):
            lock_sql += " FOR UPDATE"
        vacancies = db.execute(text(lock_sql), {"jid": application["job_id"]}).scalar()

        accepted = count_accepted(db, application["job_id"], exclude_application_id=application_id)
        if accepted >= vacancies:
            logger.warning(
                "Rejected acceptance of application %s: job %s has %s/%s accepted",
                application_id, application["job_id"], accepted, vacancies
            )
            raise VacancyLimitReachedError(application["job_id"], vacancies)

    db.execute(
        text("UPDATE job_applications SET status = :status WHERE id = :aid"),
        {"status": new_status, "aid": application_id}
    )

    if new_status in STUDENT_NOTIFIED_STATUSES:
        if new_status == "accepted":
            message = f'Congratulations! Your application for the job "{application["title"]}" has been accepted.'
        else:
            message = f'Your application for the job "{application["title"]}" has been updated to \'rejected\'.'
        create_notification(db, application["student_id"], f"application_{new_status}", message, "/applied-jobs")

    logger.info(
        "Application %s moved from %s to %s by publisher %s",
        application_id, application["status"], new_status, publisher_id
    )
    return {"application_id": application_id, "previous_status": application["status"], "status": new_status}


def mark_viewed_by_publisher(db: Session, application_id: int) -> bool:
    """Flip a pending application to viewed. Returns True when it changed."""
    result = db.execute(
        text("UPDATE job_applications SET status = 'viewed' WHERE id = :aid AND status = 'pending'"),
        {"aid": application_id}
    )
    return result.rowcount > 0
