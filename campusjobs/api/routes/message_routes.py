"""
Message Routes

POST /messages - Send a message (opens the conversation on first contact)
GET /messages/conversations - Caller's conversations, latest activity first
GET /messages/conversations/{conversation_id} - Thread, marks it read
GET /messages/unread-count - Unread messages for the caller
"""

import logging
from typing import List

from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy import text

from campusjobs.core.auth import get_current_user
from campusjobs.db.database import get_db_session, execute_raw_sql, rows_to_dicts, utc_now
from campusjobs.schemas.schemas import (
    MessageCreate, MessageSentResponse, ConversationSummary, ConversationThread, ChatMessage, CountResponse,
)

router = APIRouter(prefix="/messages", tags=["Messages"])
logger = logging.getLogger(__name__)

CONVERSATIONS_SQL = """
    SELECT c.id AS conversation_id, c.job_id, j.title AS job_title,
           u.id AS other_user_id, u.first_name, u.last_name, u.company_name, u.role AS other_user_role,
           u.profile_image_url AS other_user_image_url,
           (SELECT m.message_text FROM messages m WHERE m.conversation_id = c.id
            ORDER BY m.created_at DESC, m.id DESC LIMIT 1) AS last_message,
           (SELECT m.created_at FROM messages m WHERE m.conversation_id = c.id
            ORDER BY m.created_at DESC, m.id DESC LIMIT 1) AS last_message_time,
           (SELECT COUNT(*) FROM messages m WHERE m.conversation_id = c.id
            AND m.receiver_id = :uid AND m.is_read = :unread) AS unread_count
    FROM conversations c
    JOIN users u ON u.id = CASE WHEN c.user_one_id = :uid THEN c.user_two_id ELSE c.user_one_id END
    LEFT JOIN jobs j ON c.job_id = j.id
    WHERE c.user_one_id = :uid OR c.user_two_id = :uid
    ORDER BY last_message_time DESC, c.id DESC
"""


def participant_name(row: dict) -> str:
    if row.get("other_user_role") == "publisher" and row.get("company_name"):
        return row["company_name"]
    name = f"{row.get('first_name') or ''} {row.get('last_name') or ''}".strip()
    return name or row.get("company_name") or "Unknown user"


@router.post("", response_model=MessageSentResponse, status_code=201)
async def send_message(message: MessageCreate, user: dict = Depends(get_current_user)):
    """
    Send a message to another user.

    Two users share a single conversation whatever job they talk about.
    The job id is only recorded when the conversation is first opened.
    """
    if message.receiver_id == user["user_id"]:
        raise HTTPException(status_code=400, detail="You can not send a message to yourself.")

    with get_db_session() as db:
        receiver = db.execute(text("SELECT id FROM users WHERE id = :rid"), {"rid": message.receiver_id}).fetchone()
        if not receiver:
            raise HTTPException(status_code=404, detail="Recipient not found.")

        if message.job_id is not None:
            job = db.execute(text("SELECT id FROM jobs WHERE id = :jid"), {"jid": message.job_id}).fetchone()
            if not job:
                raise HTTPException(status_code=404, detail="Job not found.")

        conversation = db.execute(
            text("""
                SELECT id FROM conversations
                WHERE (user_one_id = :u1 AND user_two_id = :u2) OR (user_one_id = :u2 AND user_two_id = :u1)
                ORDER BY id ASC
            """),
            {"u1": user["user_id"], "u2": message.receiver_id}
        ).fetchone()

        if conversation:
            conversation_id = conversation[0]
        else:
            result = db.execute(
                text("""
                    INSERT INTO conversations (user_one_id, user_two_id, job_id, created_at)
                    VALUES (:u1, :u2, :jid, :now)
                    RETURNING id
                """),
                {"u1": user["user_id"], "u2": message.receiver_id, "jid": message.job_id, "now": utc_now()}
            )
            conversation_id = result.fetchone()[0]
            logger.info("Conversation %s opened between %s and %s",
                        conversation_id, user["user_id"], message.receiver_id)

        result = db.execute(
            text("""
                INSERT INTO messages (conversation_id, sender_id, receiver_id, message_text, is_read, created_at)
                VALUES (:cid, :sender, :receiver, :text, :is_read, :now)
                RETURNING id
            """),
            {"cid": conversation_id, "sender": user["user_id"], "receiver": message.receiver_id,
             "text": message.message_text.strip(), "is_read": False, "now": utc_now()}
        )
        message_id = result.fetchone()[0]

    return MessageSentResponse(message="Message sent successfully.", conversation_id=conversation_id,
                               message_id=message_id)


@router.get("/conversations", response_model=List[ConversationSummary])
async def list_conversations(user: dict = Depends(get_current_user)):
    results = execute_raw_sql(CONVERSATIONS_SQL, {"uid": user["user_id"], "unread": False})
    return [ConversationSummary(other_user_name=participant_name(r), **r) for r in results]


@router.get("/conversations/{conversation_id}", response_model=ConversationThread)
async def get_conversation(conversation_id: int, user: dict = Depends(get_current_user)):
    """Messages of a conversation, oldest first. Messages to the caller are marked read."""
    with get_db_session() as db:
        conversation = db.execute(
            text("SELECT id, user_one_id, user_two_id, job_id FROM conversations WHERE id = :cid"),
            {"cid": conversation_id}
        ).mappings().fetchone()
        if not conversation or user["user_id"] not in (conversation["user_one_id"], conversation["user_two_id"]):
            raise HTTPException(status_code=404, detail="Conversation not found.")

        db.execute(
            text("""
                UPDATE messages SET is_read = :read
                WHERE conversation_id = :cid AND receiver_id = :uid AND is_read = :unread
            """),
            {"read": True, "unread": False, "cid": conversation_id, "uid": user["user_id"]}
        )

        messages = rows_to_dicts(db.execute(
            text("""
                SELECT id, conversation_id, sender_id, receiver_id, message_text, is_read, created_at
                FROM messages WHERE conversation_id = :cid
                ORDER BY created_at ASC, id ASC
            """),
            {"cid": conversation_id}
        ))

    return ConversationThread(
        conversation_id=conversation_id,
        job_id=conversation["job_id"],
        messages=[ChatMessage(**m) for m in messages],
    )


@router.get("/unread-count", response_model=CountResponse)
async def unread_count(user: dict = Depends(get_current_user)):
    result = execute_raw_sql(
        "SELECT COUNT(*) AS count FROM messages WHERE receiver_id = :uid AND is_read = :unread",
        {"uid": user["user_id"], "unread": False}
    )
    return CountResponse(count=result[0]["count"])
