"""
Authentication Routes

POST /auth/register - Register new student or publisher
POST /auth/login - Login and get JWT token
GET /auth/me - Get current user with profile
GET /auth/verify-email - Confirm e-mail address, returns a token
POST /auth/forgot-password - Issue password reset token
POST /auth/reset-password - Set new password with reset token
"""

import logging
from datetime import timedelta

from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy import text

from campusjobs.core.auth import (
    hash_password, verify_password, create_access_token, generate_token, get_current_user,
)
from campusjobs.core.config import get_settings
from campusjobs.core.exceptions import EmailAlreadyRegisteredError
from campusjobs.core.validators import (
    password_requirements, validate_password_strength, validate_student_email,
)
from campusjobs.db.database import as_datetime, get_db_session, utc_now
from campusjobs.schemas.schemas import (
    RegisterRequest, RegisterResponse, LoginRequest, TokenResponse, UserProfileResponse,
    ForgotPasswordRequest, ResetPasswordRequest, MessageResponse,
)
from campusjobs.services.notification_service import notify_admins
from campusjobs.services.profile_service import create_account, fetch_full_profile

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = logging.getLogger(__name__)
settings = get_settings()


def ensure_strong_password(password: str) -> None:
    """Raise 400 listing what the password is missing."""
    check = validate_password_strength(password)
    if not check.valid:
        raise HTTPException(status_code=400, detail={
            "message": "Password does not meet security requirements",
            "password_errors": check.errors,
            "strength_level": check.strength_level,
            "requirements": password_requirements(),
        })


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(request: RegisterRequest):
    """
    Register a new account.

    Creates the user, an empty profile for the role and an e-mail
    verification token. Admins are told about the new account.
    """
    email = request.email.strip().lower()

    if request.role.value == "student":
        email_error = validate_student_email(email, settings.student_email_domain)
        if email_error:
            raise HTTPException(status_code=400, detail=email_error)

    ensure_strong_password(request.password)

    with get_db_session() as db:
        result = db.execute(text("SELECT id FROM users WHERE email = :email"), {"email": email})
        if result.fetchone():
            raise EmailAlreadyRegisteredError()

        verification_token = generate_token()
        user_id = create_account(
            db, email, hash_password(request.password), request.role.value, verification_token,
            first_name=request.first_name, last_name=request.last_name, company_name=request.company_name,
        )

        if request.role.value == "student":
            display = f"{request.first_name or ''} {request.last_name or ''}".strip() or email
        else:
            display = request.company_name or email
        notify_admins(
            db, "new_user_registered",
            f"A new user has registered: {display} ({request.role.value})",
            "/user-management"
        )

    logger.info("Registered %s %s", request.role.value, user_id)
    # E-mail delivery is not wired up; the token is logged for the operator
    logger.info("Verification token for user %s: %s", user_id, verification_token)

    return RegisterResponse(
        message="Registration successful! Please check your email to verify your account.",
        user_id=user_id,
        role=request.role.value,
    )


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest):
    """
    Login and receive JWT access token.

    Include token in requests: Authorization: Bearer <token>
    """
    with get_db_session() as db:
        result = db.execute(
            text("SELECT id, password_hash, role, status FROM users WHERE email = :email"),
            {"email": request.email.strip().lower()}
        )
        user = result.fetchone()

    if not user or not verify_password(request.password, user[1]):
        logger.warning("Failed login for %s", request.email)
        raise HTTPException(status_code=401, detail="Invalid email or password.")

    user_id, _, role, account_status = user

    if account_status == "blocked":
        raise HTTPException(status_code=403, detail="Your account has been blocked by the administrator.")

    token = create_access_token(data={"sub": str(user_id), "role": role})
    return TokenResponse(access_token=token, user_id=user_id, role=role)


@router.get("/me", response_model=UserProfileResponse)
async def get_me(user: dict = Depends(get_current_user)):
    """Current user with their role's profile fields."""
    with get_db_session() as db:
        profile = fetch_full_profile(db, user["user_id"])
    if not profile:
        raise HTTPException(status_code=404, detail="User not found")
    return UserProfileResponse(**profile)


@router.get("/verify-email", response_model=TokenResponse)
async def verify_email(token: str = Query(..., min_length=1)):
    """Confirm the e-mail address and log the user straight in."""
    with get_db_session() as db:
        result = db.execute(
            text("SELECT id, role, status FROM users WHERE email_verification_token = :token"),
            {"token": token}
        )
        user = result.fetchone()
        if not user:
            raise HTTPException(status_code=400, detail="Invalid or already used verification link.")

        user_id, role, account_status = user
        if account_status == "blocked":
            raise HTTPException(status_code=403, detail="Your account has been blocked by the administrator.")

        db.execute(
            text("""
                UPDATE users SET email_verified_at = :now, email_verification_token = NULL
                WHERE id = :uid
            """),
            {"now": utc_now(), "uid": user_id}
        )

    logger.info("User %s verified their e-mail address", user_id)
    access_token = create_access_token(data={"sub": str(user_id), "role": role})
    return TokenResponse(access_token=access_token, user_id=user_id, role=role)


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(request: ForgotPasswordRequest):
    """
    Start a password reset.

    The response is the same whether or not the address is registered.
    """
    with get_db_session() as db:
        result = db.execute(
            text("SELECT id FROM users WHERE email = :email AND status = 'active'"),
            {"email": request.email.strip().lower()}
        )
        user = result.fetchone()
        if user:
            reset_token = generate_token()
            db.execute(
                text("UPDATE users SET reset_token = :token, reset_token_expiry = :expiry WHERE id = :uid"),
                {
                    "token": reset_token,
                    "expiry": utc_now() + timedelta(minutes=settings.reset_token_expire_minutes),
                    "uid": user[0],
                }
            )
            logger.info("Password reset token for user %s: %s", user[0], reset_token)

    return MessageResponse(message="If an account exists for this email, a password reset link has been sent.")


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(request: ResetPasswordRequest):
    """Set a new password using a reset token."""
    ensure_strong_password(request.new_password)

    expired = False
    with get_db_session() as db:
        result = db.execute(
            text("SELECT id, reset_token_expiry FROM users WHERE reset_token = :token"),
            {"token": request.token}
        )
        user = result.fetchone()
        if not user:
            raise HTTPException(status_code=400, detail="Invalid or expired reset token.")

        user_id, expiry = user
        if expiry is None or as_datetime(expiry) < utc_now():
            db.execute(
                text("UPDATE users SET reset_token = NULL, reset_token_expiry = NULL WHERE id = :uid"),
                {"uid": user_id}
            )
            expired = True
        else:
            db.execute(
                text("""
                    UPDATE users SET password_hash = :hash, reset_token = NULL, reset_token_expiry = NULL
                    WHERE id = :uid
                """),
                {"hash": hash_password(request.new_password), "uid": user_id}
            )

    if expired:
        raise HTTPException(status_code=400, detail="Invalid or expired reset token.")

    logger.info("User %s reset their password", user_id)
    return MessageResponse(message="Password has been reset successfully.")
