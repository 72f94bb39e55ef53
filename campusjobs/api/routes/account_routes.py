"""
Account Routes

PUT /account/password - Change password
DELETE /account - Delete own account
"""

import logging

from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy import text

from campusjobs.api.routes.auth_routes import ensure_strong_password
from campusjobs.core.auth import get_current_user, hash_password, verify_password
from campusjobs.db.database import get_db_session
from campusjobs.schemas.schemas import ChangePasswordRequest, DeleteAccountRequest, MessageResponse
from campusjobs.services.review_service import drop_reviews_by_publisher

router = APIRouter(prefix="/account", tags=["Account"])
logger = logging.getLogger(__name__)


def _check_password(db, user_id: int, password: str) -> None:
    row = db.execute(text("SELECT password_hash FROM users WHERE id = :uid"), {"uid": user_id}).fetchone()
    if not row or not verify_password(password, row[0]):
        raise HTTPException(status_code=401, detail="Incorrect current password.")


@router.put("/password", response_model=MessageResponse)
async def change_password(request: ChangePasswordRequest, user: dict = Depends(get_current_user)):
    ensure_strong_password(request.new_password)

    with get_db_session() as db:
        _check_password(db, user["user_id"], request.current_password)
        db.execute(
            text("UPDATE users SET password_hash = :hash WHERE id = :uid"),
            {"hash": hash_password(request.new_password), "uid": user["user_id"]}
        )

    logger.info("User %s changed their password", user["user_id"])
    return MessageResponse(message="Password updated successfully.")


@router.delete("", response_model=MessageResponse)
async def delete_account(request: DeleteAccountRequest, user: dict = Depends(get_current_user)):
    """Delete the caller's account. Jobs, applications and messages go with it."""
    with get_db_session() as db:
        _check_password(db, user["user_id"], request.password)
        drop_reviews_by_publisher(db, user["user_id"])
        db.execute(text("DELETE FROM users WHERE id = :uid"), {"uid": user["user_id"]})

    logger.info("User %s deleted their account", user["user_id"])
    return MessageResponse(message="Account deleted successfully.")
