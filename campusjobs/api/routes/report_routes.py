"""
Report Routes

POST /reports - Report a user, a conversation or a problem with the app
"""

import logging

from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy import text

from campusjobs.core.auth import get_current_user, display_name
from campusjobs.db.database import get_db_session, utc_now
from campusjobs.schemas.schemas import ReportCreate, MessageResponse
from campusjobs.services.notification_service import notify_admins

router = APIRouter(prefix="/reports", tags=["Reports"])
logger = logging.getLogger(__name__)


@router.post("", response_model=MessageResponse, status_code=201)
async def create_report(report: ReportCreate, user: dict = Depends(get_current_user)):
    """
    File a report for the admins.

    User and conversation reports name the reported user; app problem
    reports never do.
    """
    is_app_problem = report.type.value == "app_problem"
    reported_user_id = None if is_app_problem else report.reported_user_id
    conversation_id = None if is_app_problem else report.conversation_id

    if not is_app_problem and reported_user_id is None:
        raise HTTPException(status_code=400, detail="A reported user is required for this kind of report.")
    if reported_user_id == user["user_id"]:
        raise HTTPException(status_code=400, detail="You can not report yourself.")

    with get_db_session() as db:
        if reported_user_id is not None:
            found = db.execute(text("SELECT id FROM users WHERE id = :uid"), {"uid": reported_user_id}).fetchone()
            if not found:
                raise HTTPException(status_code=404, detail="Reported user not found.")

        if conversation_id is not None:
            conversation = db.execute(
                text("SELECT user_one_id, user_two_id FROM conversations WHERE id = :cid"), {"cid": conversation_id}
            ).fetchone()
            if not conversation or user["user_id"] not in conversation:
                raise HTTPException(status_code=404, detail="Conversation not found.")

        result = db.execute(
            text("""
                INSERT INTO reports (type, reporter_id, reported_user_id, conversation_id, reason, status, created_at)
                VALUES (:type, :reporter, :reported, :cid, :reason, 'pending', :now)
                RETURNING id
            """),
            {"type": report.type.value, "reporter": user["user_id"], "reported": reported_user_id,
             "cid": conversation_id, "reason": report.reason, "now": utc_now()}
        )
        report_id = result.fetchone()[0]

        if is_app_problem:
            message = f"{display_name(user)} has reported an app problem."
        else:
            message = f"{display_name(user)} has submitted a new user report."
        notify_admins(db, "new_report", message, "/report-management")

    logger.info("User %s filed %s report %s", user["user_id"], report.type.value, report_id)
    return MessageResponse(message="Report submitted successfully. An administrator will review it shortly.")
