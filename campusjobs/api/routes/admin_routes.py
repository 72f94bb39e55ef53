"""
Admin Routes

GET /admin/stats - Platform counters
GET /admin/users - All users with filters
PUT /admin/users/{user_id}/status - Block/unblock, verify/unverify
DELETE /admin/users/{user_id} - Remove a user and everything they own
GET /admin/jobs - All jobs with filters
PUT /admin/jobs/{job_id}/status - Approve (active) or reject (closed) a job
DELETE /admin/jobs/{job_id} - Remove a job
GET /admin/reports - User and app problem reports
GET /admin/reports/pending-count - Reports still waiting for an admin
PUT /admin/reports/{report_id}/status - Move a report through its workflow
GET /admin/conversations - Every conversation on the platform
GET /admin/conversations/{conversation_id}/messages - Read a thread
GET/POST /admin/categories, PUT/DELETE /admin/categories/{category_id}
GET/POST /admin/skills, DELETE /admin/skills/{skill_id}
PUT /admin/site-settings/footer-links - Replace the footer links
"""

import json
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy import text

from campusjobs.api.routes.site_routes import FOOTER_LINKS_KEY
from campusjobs.core.auth import get_current_admin
from campusjobs.db.database import get_db_session, execute_raw_sql, rows_to_dicts, utc_now, utc_today
from campusjobs.schemas.schemas import (
    AdminStatsResponse, UserStatusUpdate, AdminJobStatusUpdate, ReportStatusUpdate,
    CategoryCreate, CategoryResponse, SkillCreate, MessageResponse, SortOrder, UserRole,
)
from campusjobs.services.job_service import DISPLAY_STATUS_SQL
from campusjobs.services.notification_service import create_notification
from campusjobs.services.review_service import drop_reviews_by_publisher, release_job_reviews

router = APIRouter(prefix="/admin", tags=["Admin"])
logger = logging.getLogger(__name__)

# (type, message, link) sent to a user when an admin changes their account
ACCOUNT_NOTIFICATIONS = {
    "blocked": ("account_blocked", "Your account has been blocked by the administrator.", "/login"),
    "active": ("account_unblocked", "Your account has been unblocked. Welcome back!", "/settings"),
    True: ("account_verified", "Your account has been verified by the administrator!", "/profile"),
    False: ("account_unverified", "Your account verification has been revoked by the administrator.", "/profile"),
}

PARTICIPANT_NAME_SQL = """
    CASE WHEN {u}.role = 'publisher' AND {u}.company_name IS NOT NULL THEN {u}.company_name
         ELSE COALESCE({u}.first_name, '') || ' ' || COALESCE({u}.last_name, '') END
"""


def _direction(sort_order: SortOrder) -> str:
    return "ASC" if sort_order == SortOrder.oldest else "DESC"


# =============================================================================
# DASHBOARD
# =============================================================================

@router.get("/stats", response_model=AdminStatsResponse)
async def admin_stats(admin: dict = Depends(get_current_admin)):
    result = execute_raw_sql(
        """
            SELECT
                (SELECT COUNT(*) FROM users) AS total_users,
                (SELECT COUNT(*) FROM users WHERE role = 'student') AS total_students,
                (SELECT COUNT(*) FROM users WHERE role = 'publisher') AS total_publishers,
                (SELECT COUNT(*) FROM jobs) AS total_jobs,
                (SELECT COUNT(*) FROM jobs WHERE status = 'draft') AS pending_jobs,
                (SELECT COUNT(*) FROM users WHERE is_verified = :unverified AND role != 'admin') AS unverified_users
        """,
        {"unverified": False}
    )
    return AdminStatsResponse(**result[0])


# =============================================================================
# USERS
# =============================================================================

@router.get("/users")
async def list_users(
    role: Optional[UserRole] = None,
    is_verified: Optional[bool] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    sort_order: SortOrder = SortOrder.newest,
    admin: dict = Depends(get_current_admin)
):
    """All users with their student or publisher profile columns."""
    sql = """
        SELECT u.id, u.email, u.first_name, u.last_name, u.company_name, u.role,
               u.is_verified, u.status, u.created_at, u.profile_image_url, u.email_verified_at,
               sp.university_name, sp.field_of_study, sp.year_of_study, sp.skills, sp.cv_url,
               pp.industry, pp.website_url, pp.phone_number
        FROM users u
        LEFT JOIN student_profiles sp ON u.id = sp.user_id
        LEFT JOIN publisher_profiles pp ON u.id = pp.user_id
        WHERE 1=1
    """
    params = {}

    if role:
        sql += " AND u.role = :role"
        params["role"] = role.value
    if is_verified is not None:
        sql += " AND u.is_verified = :verified"
        params["verified"] = is_verified
    if status:
        sql += " AND u.status = :status"
        params["status"] = status
    if search:
        sql += """ AND (LOWER(u.first_name) LIKE LOWER(:search) OR LOWER(u.last_name) LIKE LOWER(:search)
                   OR LOWER(u.email) LIKE LOWER(:search) OR LOWER(u.company_name) LIKE LOWER(:search))"""
        params["search"] = f"%{search}%"

    direction = _direction(sort_order)
    sql += f" ORDER BY u.created_at {direction}, u.id {direction}"
    return execute_raw_sql(sql, params)


@router.put("/users/{user_id}/status", response_model=MessageResponse)
async def update_user_status(user_id: int, update: UserStatusUpdate, admin: dict = Depends(get_current_admin)):
    """
    Change a user's account status and/or verification flag.

    Only values that differ from the stored ones are written, and each of
    those changes is reported to the user as a notification.
    """
    if update.status is None and update.is_verified is None:
        raise HTTPException(status_code=400, detail="Nothing to update. Provide status or is_verified.")

    with get_db_session() as db:
        user = db.execute(
            text("SELECT status, is_verified FROM users WHERE id = :uid"), {"uid": user_id}
        ).fetchone()
        if not user:
            raise HTTPException(status_code=404, detail="User not found.")
        current_status, currently_verified = user[0], bool(user[1])

        changes = []
        if update.status is not None and update.status.value != current_status:
            db.execute(text("UPDATE users SET status = :status WHERE id = :uid"),
                       {"status": update.status.value, "uid": user_id})
            changes.append(ACCOUNT_NOTIFICATIONS[update.status.value])
        if update.is_verified is not None and update.is_verified != currently_verified:
            db.execute(text("UPDATE users SET is_verified = :verified WHERE id = :uid"),
                       {"verified": update.is_verified, "uid": user_id})
            changes.append(ACCOUNT_NOTIFICATIONS[update.is_verified])

        for notification_type, message, link in changes:
            create_notification(db, user_id, notification_type, message, link)

    logger.info("Admin %s updated user %s: status=%s is_verified=%s",
                admin["user_id"], user_id, update.status, update.is_verified)
    return MessageResponse(message="User status updated successfully.")


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(user_id: int, admin: dict = Depends(get_current_admin)):
    if user_id == admin["user_id"]:
        raise HTTPException(status_code=403, detail="You can not delete your own admin account.")

    with get_db_session() as db:
        drop_reviews_by_publisher(db, user_id)
        result = db.execute(text("DELETE FROM users WHERE id = :uid"), {"uid": user_id})
        if result.rowcount == 0:
            raise HTTPException(status_code=404, detail="User not found.")

    logger.info("Admin %s deleted user %s", admin["user_id"], user_id)
    return MessageResponse(message="User deleted successfully.")


# =============================================================================
# JOBS
# =============================================================================

@router.get("/jobs")
async def list_jobs(
    status: Optional[str] = None,
    search: Optional[str] = None,
    sort_order: SortOrder = SortOrder.newest,
    admin: dict = Depends(get_current_admin)
):
    """All jobs. The status filter also accepts 'expired'."""
    sql = f"""
        SELECT j.id, j.title, j.status, {DISPLAY_STATUS_SQL} AS display_status,
               j.created_at, j.application_deadline, j.publisher_id,
               u.company_name, u.first_name, u.last_name, jc.name AS category_name
        FROM jobs j
        JOIN users u ON j.publisher_id = u.id
        LEFT JOIN job_categories jc ON j.category_id = jc.id
        WHERE 1=1
    """
    params = {"today": utc_today()}

    if status and status != "all":
        if status == "expired":
            sql += " AND j.status = 'active' AND j.application_deadline IS NOT NULL AND j.application_deadline < :today"
        else:
            sql += " AND j.status = :status"
            params["status"] = status
    if search:
        sql += """ AND (LOWER(j.title) LIKE LOWER(:search) OR LOWER(u.company_name) LIKE LOWER(:search)
                   OR LOWER(u.first_name) LIKE LOWER(:search) OR LOWER(u.last_name) LIKE LOWER(:search))"""
        params["search"] = f"%{search}%"

    direction = _direction(sort_order)
    sql += f" ORDER BY j.created_at {direction}, j.id {direction}"
    return execute_raw_sql(sql, params)


@router.put("/jobs/{job_id}/status", response_model=MessageResponse)
async def update_job_status(job_id: int, update: AdminJobStatusUpdate, admin: dict = Depends(get_current_admin)):
    """
    Approve or reject a job.

    Approving makes the job active, rejecting closes it. The publisher is
    notified either way.
    """
    new_status = update.status.value
    if new_status not in ("active", "closed"):
        raise HTTPException(status_code=400, detail="Status must be 'active' or 'closed'.")

    with get_db_session() as db:
        job = db.execute(
            text("SELECT id, title, status, publisher_id FROM jobs WHERE id = :jid"), {"jid": job_id}
        ).mappings().fetchone()
        if not job:
            raise HTTPException(status_code=404, detail="Job not found.")
        if job["status"] == new_status:
            raise HTTPException(status_code=400, detail=f"Job is already {new_status}.")

        db.execute(text("UPDATE jobs SET status = :status WHERE id = :jid"), {"status": new_status, "jid": job_id})

        if new_status == "active":
            create_notification(db, job["publisher_id"], "job_approved",
                                f"Your job posting '{job['title']}' has been approved and is now live.",
                                "/manage-jobs")
        else:
            create_notification(db, job["publisher_id"], "job_rejected",
                                f"Your job posting '{job['title']}' has been closed by the administrator.",
                                "/manage-jobs")

    logger.info("Admin %s set job %s to %s", admin["user_id"], job_id, new_status)
    return MessageResponse(message="Job status updated successfully.")


@router.delete("/jobs/{job_id}", response_model=MessageResponse)
async def delete_job(job_id: int, admin: dict = Depends(get_current_admin)):
    with get_db_session() as db:
        release_job_reviews(db, job_id)
        result = db.execute(text("DELETE FROM jobs WHERE id = :jid"), {"jid": job_id})
        if result.rowcount == 0:
            raise HTTPException(status_code=404, detail="Job not found.")

    logger.info("Admin %s deleted job %s", admin["user_id"], job_id)
    return MessageResponse(message="Job deleted successfully.")


# =============================================================================
# REPORTS
# =============================================================================

@router.get("/reports")
async def list_reports(admin: dict = Depends(get_current_admin)):
    """Reports split into user/conversation reports and app problem reports."""
    reporter_name = PARTICIPANT_NAME_SQL.format(u="reporter")
    reported_name = PARTICIPANT_NAME_SQL.format(u="reported")
    reports = execute_raw_sql(
        f"""
            SELECT r.id, r.type, r.reason, r.status, r.created_at, r.conversation_id,
                   r.reporter_id, {reporter_name} AS reporter_name, reporter.email AS reporter_email,
                   r.reported_user_id, {reported_name} AS reported_user_name, reported.email AS reported_user_email
            FROM reports r
            JOIN users reporter ON r.reporter_id = reporter.id
            LEFT JOIN users reported ON r.reported_user_id = reported.id
            ORDER BY r.created_at DESC, r.id DESC
        """
    )
    for report in reports:
        report["reporter_name"] = report["reporter_name"].strip()
        if report["reported_user_id"] is None:
            report["reported_user_name"] = None
        else:
            report["reported_user_name"] = report["reported_user_name"].strip()

    return {
        "user_reports": [r for r in reports if r["type"] != "app_problem"],
        "app_problem_reports": [r for r in reports if r["type"] == "app_problem"],
    }


@router.get("/reports/pending-count")
async def pending_report_count(admin: dict = Depends(get_current_admin)):
    result = execute_raw_sql("SELECT COUNT(*) AS count FROM reports WHERE status = 'pending'")
    return {"count": result[0]["count"]}


@router.put("/reports/{report_id}/status", response_model=MessageResponse)
async def update_report_status(report_id: int, update: ReportStatusUpdate,
                               admin: dict = Depends(get_current_admin)):
    with get_db_session() as db:
        result = db.execute(
            text("UPDATE reports SET status = :status WHERE id = :rid"),
            {"status": update.status.value, "rid": report_id}
        )
        if result.rowcount == 0:
            raise HTTPException(status_code=404, detail="Report not found.")

    logger.info("Admin %s set report %s to %s", admin["user_id"], report_id, update.status.value)
    return MessageResponse(message="Report status updated successfully.")


# =============================================================================
# CONVERSATIONS (read only)
# =============================================================================

@router.get("/conversations")
async def list_conversations(admin: dict = Depends(get_current_admin)):
    user_one_name = PARTICIPANT_NAME_SQL.format(u="u1")
    user_two_name = PARTICIPANT_NAME_SQL.format(u="u2")
    conversations = execute_raw_sql(
        f"""
            SELECT c.id AS conversation_id, c.job_id, c.created_at,
                   c.user_one_id, {user_one_name} AS user_one_name, u1.role AS user_one_role,
                   c.user_two_id, {user_two_name} AS user_two_name, u2.role AS user_two_role,
                   (SELECT m.message_text FROM messages m WHERE m.conversation_id = c.id
                    ORDER BY m.created_at DESC, m.id DESC LIMIT 1) AS last_message,
                   (SELECT m.created_at FROM messages m WHERE m.conversation_id = c.id
                    ORDER BY m.created_at DESC, m.id DESC LIMIT 1) AS last_message_time
            FROM conversations c
            JOIN users u1 ON c.user_one_id = u1.id
            JOIN users u2 ON c.user_two_id = u2.id
            ORDER BY last_message_time DESC, c.id DESC
        """
    )
    for conversation in conversations:
        conversation["user_one_name"] = conversation["user_one_name"].strip()
        conversation["user_two_name"] = conversation["user_two_name"].strip()
    return conversations


@router.get("/conversations/{conversation_id}/messages")
async def conversation_messages(conversation_id: int, admin: dict = Depends(get_current_admin)):
    """Messages of any conversation, oldest first. Read flags are left untouched."""
    with get_db_session() as db:
        conversation = db.execute(
            text("SELECT id FROM conversations WHERE id = :cid"), {"cid": conversation_id}
        ).fetchone()
        if not conversation:
            raise HTTPException(status_code=404, detail="Conversation not found.")

        return rows_to_dicts(db.execute(
            text("""
                SELECT id, conversation_id, sender_id, receiver_id, message_text, is_read, created_at
                FROM messages WHERE conversation_id = :cid
                ORDER BY created_at ASC, id ASC
            """),
            {"cid": conversation_id}
        ))


# =============================================================================
# CATEGORIES AND SKILLS
# =============================================================================

def _name_taken(db, table: str, name: str, exclude_id: int = None) -> bool:
    row = db.execute(
        text(f"SELECT id FROM {table} WHERE LOWER(name) = LOWER(:name) AND id != :exclude"),
        {"name": name, "exclude": exclude_id if exclude_id is not None else -1}
    ).fetchone()
    return row is not None


@router.get("/categories", response_model=List[CategoryResponse])
async def list_categories(admin: dict = Depends(get_current_admin)):
    results = execute_raw_sql("SELECT id, name FROM job_categories ORDER BY name ASC")
    return [CategoryResponse(**r) for r in results]


@router.post("/categories", response_model=CategoryResponse, status_code=201)
async def create_category(category: CategoryCreate, admin: dict = Depends(get_current_admin)):
    name = category.name.strip()
    with get_db_session() as db:
        if _name_taken(db, "job_categories", name):
            raise HTTPException(status_code=409, detail="A category with this name already exists.")
        result = db.execute(
            text("INSERT INTO job_categories (name) VALUES (:name) RETURNING id"), {"name": name}
        )
        category_id = result.fetchone()[0]

    logger.info("Admin %s created category %s", admin["user_id"], name)
    return CategoryResponse(id=category_id, name=name)


@router.put("/categories/{category_id}", response_model=CategoryResponse)
async def rename_category(category_id: int, category: CategoryCreate, admin: dict = Depends(get_current_admin)):
    name = category.name.strip()
    with get_db_session() as db:
        if _name_taken(db, "job_categories", name, exclude_id=category_id):
            raise HTTPException(status_code=409, detail="A category with this name already exists.")
        result = db.execute(
            text("UPDATE job_categories SET name = :name WHERE id = :cid"), {"name": name, "cid": category_id}
        )
        if result.rowcount == 0:
            raise HTTPException(status_code=404, detail="Category not found.")

    return CategoryResponse(id=category_id, name=name)


@router.delete("/categories/{category_id}", response_model=MessageResponse)
async def delete_category(category_id: int, admin: dict = Depends(get_current_admin)):
    with get_db_session() as db:
        in_use = db.execute(
            text("SELECT COUNT(*) FROM jobs WHERE category_id = :cid"), {"cid": category_id}
        ).scalar()
        if in_use:
            raise HTTPException(status_code=409, detail=f"Category is used by {in_use} job(s) and can not be deleted.")

        result = db.execute(text("DELETE FROM job_categories WHERE id = :cid"), {"cid": category_id})
        if result.rowcount == 0:
            raise HTTPException(status_code=404, detail="Category not found.")

    return MessageResponse(message="Category deleted successfully.")


@router.get("/skills")
async def list_skills(admin: dict = Depends(get_current_admin)):
    return execute_raw_sql("SELECT id, name FROM skills ORDER BY name ASC")


@router.post("/skills", status_code=201)
async def create_skill(skill: SkillCreate, admin: dict = Depends(get_current_admin)):
    name = skill.name.strip()
    with get_db_session() as db:
        if _name_taken(db, "skills", name):
            raise HTTPException(status_code=409, detail="This skill already exists.")
        result = db.execute(text("INSERT INTO skills (name) VALUES (:name) RETURNING id"), {"name": name})
        skill_id = result.fetchone()[0]

    return {"id": skill_id, "name": name}


@router.delete("/skills/{skill_id}", response_model=MessageResponse)
async def delete_skill(skill_id: int, admin: dict = Depends(get_current_admin)):
    with get_db_session() as db:
        result = db.execute(text("DELETE FROM skills WHERE id = :sid"), {"sid": skill_id})
        if result.rowcount == 0:
            raise HTTPException(status_code=404, detail="Skill not found.")

    return MessageResponse(message="Skill deleted successfully.")


# =============================================================================
# SITE SETTINGS
# =============================================================================

@router.put("/site-settings/footer-links", response_model=MessageResponse)
async def update_footer_links(links: Dict[str, str], admin: dict = Depends(get_current_admin)):
    if not links:
        raise HTTPException(status_code=400, detail="At least one footer link is required.")

    value = json.dumps(links)
    with get_db_session() as db:
        result = db.execute(
            text("UPDATE site_settings SET setting_value = :value, updated_at = :now WHERE setting_key = :key"),
            {"value": value, "now": utc_now(), "key": FOOTER_LINKS_KEY}
        )
        if result.rowcount == 0:
            db.execute(
                text("""
                    INSERT INTO site_settings (setting_key, setting_value, updated_at)
                    VALUES (:key, :value, :now)
                """),
                {"key": FOOTER_LINKS_KEY, "value": value, "now": utc_now()}
            )

    logger.info("Admin %s updated footer links", admin["user_id"])
    return MessageResponse(message="Footer links updated successfully.")
