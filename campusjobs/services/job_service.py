"""
Job Service

Shared pieces of job handling used by the job, publisher, student and admin
routes:
- listing fee calculation
- the derived "expired" display status
- one SELECT used for every job listing so responses look the same everywhere
"""

import logging
import re
from typing import Dict, Optional

from fastapi import HTTPException
from sqlalchemy import text
from sqlalchemy.orm import Session

from campusjobs.db.database import supports_row_locks

logger = logging.getLogger(__name__)

# Listing fee as a share of the lowest amount in the payment range
LISTING_FEE_RATES: Dict[str, float] = {
    "freelance": 0.05,
    "part-time": 0.03,
    "internship": 0.02,
    "task-based": 0.04,
    "full-time": 0.08,
}
DEFAULT_LISTING_FEE_RATE = 0.05

# An active job whose deadline is behind today is shown as expired.
# Needs a :today parameter.
DISPLAY_STATUS_SQL = """
    CASE WHEN j.status = 'active' AND j.application_deadline IS NOT NULL
              AND j.application_deadline < :today
         THEN 'expired' ELSE j.status END
"""

# Active jobs still open for applications. Needs a :today parameter.
OPEN_JOB_FILTER = "j.status = 'active' AND (j.application_deadline IS NULL OR j.application_deadline >= :today)"

JOB_COLUMNS = f"""
    j.id, j.publisher_id, u.company_name, u.profile_image_url,
    j.category_id, jc.name AS category_name,
    j.title, j.description, j.skills_required, j.job_type, j.payment_range,
    j.start_date, j.end_date, j.work_mode, j.location, j.application_deadline,
    j.vacancies, j.working_hours, j.experience_level, j.status,
    {DISPLAY_STATUS_SQL} AS display_status,
    j.payment_amount, j.created_at
"""

JOB_COUNT_COLUMNS = """
    (SELECT COUNT(*) FROM job_applications ja WHERE ja.job_id = j.id) AS application_count,
    (SELECT COUNT(*) FROM job_applications ja WHERE ja.job_id = j.id AND ja.status = 'accepted') AS accepted_count
"""

JOB_FROM = """
    FROM jobs j
    JOIN users u ON j.publisher_id = u.id
    LEFT JOIN job_categories jc ON j.category_id = jc.id
"""

JOB_SELECT = f"SELECT {JOB_COLUMNS} {JOB_FROM}"
JOB_SELECT_WITH_COUNTS = f"SELECT {JOB_COLUMNS}, {JOB_COUNT_COLUMNS} {JOB_FROM}"

# Adds the status of the :sid student's own application, if any
JOB_SELECT_FOR_STUDENT = f"""
    SELECT {JOB_COLUMNS}, mine.status AS application_status {JOB_FROM}
    LEFT JOIN job_applications mine ON mine.job_id = j.id AND mine.student_id = :sid
"""

ACCEPTED_COUNT_SQL = "SELECT COUNT(*) FROM job_applications WHERE job_id = :jid AND status = 'accepted'"


def calculate_payment_amount(job_type: str, payment_range: Optional[str]) -> float:
    """
    Listing fee for a job.

    The first number in the payment range (e.g. "5000-10000" -> 5000) times
    the rate for the job type.
    """
    min_amount = 0
    if payment_range:
        match = re.search(r"(\d+)", payment_range)
        if match:
            min_amount = int(match.group(1))
    rate = LISTING_FEE_RATES.get(job_type, DEFAULT_LISTING_FEE_RATE)
    return round(min_amount * rate, 2)


def normalize_new_job_status(status: Optional[str]) -> str:
    """A new job is either published straight away or saved as a draft."""
    return "active" if status == "active" else "draft"


def get_owned_job(db: Session, job_id: int, publisher_id: int, lock: bool = False) -> dict:
    """
    Load a job owned by the publisher or raise 404.

    With lock=True the row is locked for the rest of the transaction
    (PostgreSQL only).
    """
    sql = "SELECT id, publisher_id, title, status, vacancies, application_deadline FROM jobs WHERE id = :jid"
    if lock and supports_row_locks(db):
        sql += " FOR UPDATE"
    row = db.execute(text(sql), {"jid": job_id}).mappings().fetchone()
    if not row or row["publisher_id"] != publisher_id:
        raise HTTPException(status_code=404, detail="Job not found or access denied")
    return dict(row)


def count_accepted(db: Session, job_id: int, exclude_application_id: Optional[int] = None) -> int:
    """Number of accepted applications for a job."""
    sql = ACCEPTED_COUNT_SQL
    params = {"jid": job_id}
    if exclude_application_id is not None:
        sql += " AND id != :aid"
        params["aid"] = exclude_application_id
    return db.execute(text(sql), params).scalar() or 0
