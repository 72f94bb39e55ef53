"""
Profile Service

Creates accounts with their empty role profile, reads a user together with
that profile row, and applies partial profile updates split over the users
table and the role's table.
"""

from typing import Dict, Optional

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campusjobs.core.exceptions import EmailAlreadyRegisteredError
from campusjobs.db.database import utc_now

USER_COLUMNS = (
    "id", "email", "role", "first_name", "last_name", "company_name",
    "profile_image_url", "is_verified", "status", "created_at",
)

STUDENT_PROFILE_COLUMNS = (
    "university_name", "field_of_study", "year_of_study", "languages_spoken",
    "preferred_categories", "skills", "cv_url",
)

PUBLISHER_PROFILE_COLUMNS = (
    "about", "industry", "website_url", "address", "phone_number",
    "facebook_url", "linkedin_url", "instagram_url",
)

PROFILE_TABLES = {
    "student": ("student_profiles", STUDENT_PROFILE_COLUMNS),
    "publisher": ("publisher_profiles", PUBLISHER_PROFILE_COLUMNS),
}

# Fields counted towards a student's profile completion
COMPLETION_FIELDS = (
    "profile_image_url", "university_name", "field_of_study", "year_of_study", "skills", "cv_url",
)


def create_account(db: Session, email: str, password_hash: str, role: str, verification_token: str,
                   first_name: str = None, last_name: str = None, company_name: str = None) -> int:
    """Insert a user and the empty profile row for their role. Returns the user id."""
    try:
        result = db.execute(
            text("""
                INSERT INTO users (email, password_hash, first_name, last_name, company_name, role,
                                   email_verification_token, created_at)
                VALUES (:email, :password_hash, :first_name, :last_name, :company_name, :role,
                        :token, :now)
                RETURNING id
            """),
            {
                "email": email,
                "password_hash": password_hash,
                "first_name": first_name,
                "last_name": last_name,
                "company_name": company_name,
                "role": role,
                "token": verification_token,
                "now": utc_now(),
            }
        )
    except IntegrityError:
        # The e-mail was registered by a concurrent request
        raise EmailAlreadyRegisteredError()
    user_id = result.fetchone()[0]

    profile_table, _ = PROFILE_TABLES[role]
    db.execute(text(f"INSERT INTO {profile_table} (user_id) VALUES (:uid)"), {"uid": user_id})
    return user_id


def fetch_full_profile(db: Session, user_id: int) -> Optional[dict]:
    """User columns merged with the role's profile columns, or None."""
    user = db.execute(
        text(f"SELECT {', '.join(USER_COLUMNS)} FROM users WHERE id = :uid"),
        {"uid": user_id}
    ).mappings().fetchone()
    if not user:
        return None

    profile = dict(user)
    table_info = PROFILE_TABLES.get(profile["role"])
    if table_info:
        table, columns = table_info
        row = db.execute(
            text(f"SELECT {', '.join(columns)} FROM {table} WHERE user_id = :uid"),
            {"uid": user_id}
        ).mappings().fetchone()
        if row:
            profile.update(dict(row))
    return profile


def update_profile(db: Session, user_id: int, role: str, user_fields: Dict[str, object],
                   profile_fields: Dict[str, object]) -> None:
    """
    Write the given fields. Keys must come from the profile schemas,
    never from raw user input.
    """
    if user_fields:
        assignments = ", ".join(f"{name} = :{name}" for name in user_fields)
        db.execute(text(f"UPDATE users SET {assignments} WHERE id = :uid"), {**user_fields, "uid": user_id})

    if profile_fields:
        table, _ = PROFILE_TABLES[role]
        exists = db.execute(text(f"SELECT user_id FROM {table} WHERE user_id = :uid"), {"uid": user_id}).fetchone()
        if exists:
            assignments = ", ".join(f"{name} = :{name}" for name in profile_fields)
            db.execute(text(f"UPDATE {table} SET {assignments} WHERE user_id = :uid"),
                       {**profile_fields, "uid": user_id})
        else:
            names = list(profile_fields)
            db.execute(
                text(f"INSERT INTO {table} (user_id, {', '.join(names)}) "
                     f"VALUES (:uid, {', '.join(':' + n for n in names)})"),
                {**profile_fields, "uid": user_id}
            )


def profile_completion(profile: dict) -> int:
    """Percentage of COMPLETION_FIELDS that are filled in."""
    filled = sum(1 for name in COMPLETION_FIELDS if profile.get(name))
    return round(filled * 100 / len(COMPLETION_FIELDS))
