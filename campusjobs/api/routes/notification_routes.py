"""
Notification Routes

GET /notifications - Latest notifications of the caller
GET /notifications/unread-count - Unread notifications of the caller
PUT /notifications/read-all - Mark all as read
PUT /notifications/{notification_id}/read - Mark one as read
"""

from typing import List

from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy import text

from campusjobs.core.auth import get_current_user
from campusjobs.db.database import get_db_session, execute_raw_sql
from campusjobs.schemas.schemas import NotificationResponse, CountResponse, MessageResponse

router = APIRouter(prefix="/notifications", tags=["Notifications"])

NOTIFICATION_PAGE_SIZE = 20


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(user: dict = Depends(get_current_user)):
    results = execute_raw_sql(
        f"""
            SELECT id, type, message, link, is_read, created_at FROM notifications
            WHERE user_id = :uid
            ORDER BY created_at DESC, id DESC
            LIMIT {NOTIFICATION_PAGE_SIZE}
        """,
        {"uid": user["user_id"]}
    )
    return [NotificationResponse(**r) for r in results]


@router.get("/unread-count", response_model=CountResponse)
async def unread_count(user: dict = Depends(get_current_user)):
    result = execute_raw_sql(
        "SELECT COUNT(*) AS count FROM notifications WHERE user_id = :uid AND is_read = :unread",
        {"uid": user["user_id"], "unread": False}
    )
    return CountResponse(count=result[0]["count"])


@router.put("/read-all", response_model=MessageResponse)
async def mark_all_read(user: dict = Depends(get_current_user)):
    with get_db_session() as db:
        result = db.execute(
            text("UPDATE notifications SET is_read = :read WHERE user_id = :uid AND is_read = :unread"),
            {"read": True, "unread": False, "uid": user["user_id"]}
        )
    return MessageResponse(message=f"{result.rowcount} notification(s) marked as read.")


@router.put("/{notification_id}/read", response_model=MessageResponse)
async def mark_read(notification_id: int, user: dict = Depends(get_current_user)):
    with get_db_session() as db:
        result = db.execute(
            text("""
                UPDATE notifications SET is_read = :read
                WHERE id = :nid AND user_id = :uid AND is_read = :unread
            """),
            {"read": True, "unread": False, "nid": notification_id, "uid": user["user_id"]}
        )
        if result.rowcount == 0:
            raise HTTPException(status_code=404, detail="Notification not found or already read.")

    return MessageResponse(message="Notification marked as read.")
