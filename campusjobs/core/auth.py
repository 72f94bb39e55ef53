"""
Authentication Utility - JWT and Password handling.

Provides:
- Password hashing with bcrypt
- JWT token creation/verification
- FastAPI dependencies for protected routes, one per role
"""

import secrets
from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import text

from campusjobs.core.config import get_settings
from campusjobs.db.database import get_db_session

settings = get_settings()

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.bcrypt_rounds)

# Bearer token extractor
bearer_scheme = HTTPBearer()
optional_bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    return pwd_context.verify(plain_password, hashed_password)


def generate_token(nbytes: int = 32) -> str:
    """Random URL-safe token for e-mail verification and password resets."""
    return secrets.token_urlsafe(nbytes)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token."""
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify JWT token."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def _load_user(token: str) -> dict:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_token(token)
    if not payload:
        raise credentials_exception

    user_id = payload.get("sub")
    if not user_id:
        raise credentials_exception

    with get_db_session() as db:
        result = db.execute(
            text("SELECT id, email, role, status, first_name, last_name, company_name FROM users WHERE id = :id"),
            {"id": int(user_id)}
        )
        user = result.fetchone()

    if not user:
        raise credentials_exception

    if user[3] == "blocked":
        raise HTTPException(status_code=403, detail="Your account has been blocked by the administrator.")

    return {
        "user_id": user[0], "email": user[1], "role": user[2],
        "first_name": user[4], "last_name": user[5], "company_name": user[6],
    }


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)) -> dict:
    """
    FastAPI dependency - Get current authenticated user.

    Usage:
        @app.get("/protected")
        async def route(user: dict = Depends(get_current_user)):
            return user
    """
    return _load_user(credentials.credentials)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_bearer_scheme)
) -> Optional[dict]:
    """Dependency - Current user when a bearer token is sent, otherwise None."""
    if credentials is None:
        return None
    return _load_user(credentials.credentials)


async def get_current_student(user: dict = Depends(get_current_user)) -> dict:
    """Dependency - Require student role."""
    if user["role"] != "student":
        raise HTTPException(status_code=403, detail="Students only")
    return user


async def get_current_publisher(user: dict = Depends(get_current_user)) -> dict:
    """Dependency - Require publisher role."""
    if user["role"] != "publisher":
        raise HTTPException(status_code=403, detail="Publishers only")
    return user


async def get_current_admin(user: dict = Depends(get_current_user)) -> dict:
    """Dependency - Require admin role."""
    if user["role"] != "admin":
        raise HTTPException(status_code=403, detail="You do not have permission to perform this action.")
    return user


def display_name(user: dict) -> str:
    """Company name for publishers, otherwise first and last name."""
    if user.get("role") == "publisher" and user.get("company_name"):
        return user["company_name"]
    name = f"{user.get('first_name') or ''} {user.get('last_name') or ''}".strip()
    return name or user.get("company_name") or "A user"
