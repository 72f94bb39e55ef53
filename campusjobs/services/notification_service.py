"""
Notification Service

In-app notifications are rows in the notifications table. The helpers take
the caller's open session so a notification is committed (or rolled back)
together with the change that caused it.
"""

import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from campusjobs.db.database import utc_now

logger = logging.getLogger(__name__)


def create_notification(db: Session, user_id: int, notification_type: str, message: str,
                        link: Optional[str] = None) -> int:
    """Insert one notification and return its id."""
    result = db.execute(
        text("""
            INSERT INTO notifications (user_id, type, message, link, is_read, created_at)
            VALUES (:uid, :type, :message, :link, :is_read, :now)
            RETURNING id
        """),
        {"uid": user_id, "type": notification_type, "message": message, "link": link,
         "is_read": False, "now": utc_now()}
    )
    return result.fetchone()[0]


def notify_admins(db: Session, notification_type: str, message: str, link: Optional[str] = None) -> int:
    """Notify every admin account. Returns the number of notifications created."""
    admins = db.execute(text("SELECT id FROM users WHERE role = 'admin'")).fetchall()
    for (admin_id,) in admins:
        create_notification(db, admin_id, notification_type, message, link)
    if not admins:
        logger.warning("No admin accounts to notify about %s", notification_type)
    return len(admins)
