"""
Relational schema.

Tables are declared with SQLAlchemy Core so the same definition creates the
PostgreSQL database in production and the SQLite database used by tests.
Request handlers never go through these objects: they run raw SQL
against the table and column names declared here.
"""

import json
import logging

from sqlalchemy import (
    Boolean, Column, Date, DateTime, Float, ForeignKey, Index, Integer, MetaData,
    String, Table, Text, UniqueConstraint, func, text,
)
from sqlalchemy.sql.expression import false

logger = logging.getLogger(__name__)

metadata = MetaData()

DEFAULT_FOOTER_LINKS = {
    "about": "About Us",
    "contact": "Contact",
    "privacy": "Privacy Policy",
    "terms": "Terms of Service",
    "careers": "Careers",
}


def _user_fk() -> ForeignKey:
    return ForeignKey("users.id", ondelete="CASCADE")


users = Table(
    "users", metadata,
    Column("id", Integer, primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", String(255), nullable=False),
    Column("first_name", String(100)),
    Column("last_name", String(100)),
    Column("company_name", String(200)),
    Column("role", String(20), nullable=False),
    Column("profile_image_url", String(500)),
    Column("is_verified", Boolean, nullable=False, server_default=false()),
    Column("status", String(20), nullable=False, server_default="active"),
    Column("email_verification_token", String(128)),
    Column("email_verified_at", DateTime),
    Column("reset_token", String(128)),
    Column("reset_token_expiry", DateTime),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
)

student_profiles = Table(
    "student_profiles", metadata,
    Column("user_id", Integer, _user_fk(), primary_key=True),
    Column("university_name", String(200)),
    Column("field_of_study", String(200)),
    Column("year_of_study", String(50)),
    Column("languages_spoken", Text),
    Column("preferred_categories", Text),
    Column("skills", Text),
    Column("cv_url", String(500)),
)

publisher_profiles = Table(
    "publisher_profiles", metadata,
    Column("user_id", Integer, _user_fk(), primary_key=True),
    Column("about", Text),
    Column("industry", String(200)),
    Column("website_url", String(500)),
    Column("address", String(500)),
    Column("phone_number", String(50)),
    Column("facebook_url", String(500)),
    Column("linkedin_url", String(500)),
    Column("instagram_url", String(500)),
)

job_categories = Table(
    "job_categories", metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(100), nullable=False, unique=True),
)

skills = Table(
    "skills", metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(100), nullable=False, unique=True),
)

jobs = Table(
    "jobs", metadata,
    Column("id", Integer, primary_key=True),
    Column("publisher_id", Integer, _user_fk(), nullable=False),
    Column("category_id", Integer, ForeignKey("job_categories.id", ondelete="SET NULL")),
    Column("title", String(200), nullable=False),
    Column("description", Text),
    Column("skills_required", Text),
    Column("job_type", String(30), nullable=False),
    Column("payment_range", String(100)),
    Column("start_date", Date),
    Column("end_date", Date),
    Column("status", String(20), nullable=False, server_default="draft"),
    Column("work_mode", String(20), nullable=False, server_default="on-site"),
    Column("location", String(200)),
    Column("application_deadline", Date),
    Column("vacancies", Integer, nullable=False, server_default="1"),
    Column("working_hours", String(100)),
    Column("experience_level", String(30), nullable=False, server_default="any"),
    Column("payment_status", String(20), nullable=False, server_default="pending"),
    Column("payment_amount", Float, nullable=False, server_default="0"),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
)

job_applications = Table(
    "job_applications", metadata,
    Column("id", Integer, primary_key=True),
    Column("student_id", Integer, _user_fk(), nullable=False),
    Column("job_id", Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False),
    Column("proposal", Text),
    Column("status", String(20), nullable=False, server_default="pending"),
    Column("applied_at", DateTime, nullable=False, server_default=func.now()),
    UniqueConstraint("student_id", "job_id", name="uq_application_student_job"),
)

notifications = Table(
    "notifications", metadata,
    Column("id", Integer, primary_key=True),
    Column("user_id", Integer, _user_fk(), nullable=False),
    Column("type", String(50), nullable=False),
    Column("message", Text, nullable=False),
    Column("link", String(255)),
    Column("is_read", Boolean, nullable=False, server_default=false()),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
)

conversations = Table(
    "conversations", metadata,
    Column("id", Integer, primary_key=True),
    Column("user_one_id", Integer, _user_fk(), nullable=False),
    Column("user_two_id", Integer, _user_fk(), nullable=False),
    Column("job_id", Integer, ForeignKey("jobs.id", ondelete="SET NULL")),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
)

messages = Table(
    "messages", metadata,
    Column("id", Integer, primary_key=True),
    Column("conversation_id", Integer, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False),
    Column("sender_id", Integer, _user_fk(), nullable=False),
    Column("receiver_id", Integer, _user_fk(), nullable=False),
    Column("message_text", Text, nullable=False),
    Column("is_read", Boolean, nullable=False, server_default=false()),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
)

company_reviews = Table(
    "company_reviews", metadata,
    Column("id", Integer, primary_key=True),
    Column("publisher_id", Integer, _user_fk(), nullable=False),
    Column("student_id", Integer, _user_fk(), nullable=False),
    Column("rating", Integer, nullable=False),
    Column("review_text", Text, nullable=False),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
    UniqueConstraint("publisher_id", "student_id", name="uq_company_review_pair"),
)

student_reviews = Table(
    "student_reviews", metadata,
    Column("id", Integer, primary_key=True),
    Column("publisher_id", Integer, _user_fk(), nullable=False),
    Column("student_id", Integer, _user_fk(), nullable=False),
    Column("job_id", Integer, ForeignKey("jobs.id", ondelete="SET NULL")),
    Column("rating", Integer, nullable=False),
    Column("review_text", Text, nullable=False),
    Column("status", String(20), nullable=False, server_default="active"),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
    Column("updated_at", DateTime, nullable=False, server_default=func.now()),
    UniqueConstraint("publisher_id", "student_id", "job_id", name="uq_student_review_job"),
)

# NULL job_id values never collide in the constraint above
Index(
    "uq_student_review_no_job", student_reviews.c.publisher_id, student_reviews.c.student_id,
    unique=True,
    postgresql_where=student_reviews.c.job_id.is_(None),
    sqlite_where=student_reviews.c.job_id.is_(None),
)

reports = Table(
    "reports", metadata,
    Column("id", Integer, primary_key=True),
    Column("type", String(20), nullable=False, server_default="user"),
    Column("reporter_id", Integer, _user_fk(), nullable=False),
    Column("reported_user_id", Integer, _user_fk()),
    Column("conversation_id", Integer, ForeignKey("conversations.id", ondelete="SET NULL")),
    Column("reason", Text, nullable=False),
    Column("status", String(20), nullable=False, server_default="pending"),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
)

site_settings = Table(
    "site_settings", metadata,
    Column("id", Integer, primary_key=True),
    Column("setting_key", String(255), nullable=False, unique=True),
    Column("setting_value", Text, nullable=False),
    Column("updated_at", DateTime, nullable=False, server_default=func.now()),
)


def init_db(engine) -> None:
    """Create all tables (if missing) and seed default site settings."""
    metadata.create_all(engine)
    with engine.begin() as conn:
        existing = conn.execute(
            text("SELECT id FROM site_settings WHERE setting_key = 'footer_links'")
        ).fetchone()
        if not existing:
            conn.execute(
                text("INSERT INTO site_settings (setting_key, setting_value) VALUES ('footer_links', :value)"),
                {"value": json.dumps(DEFAULT_FOOTER_LINKS)}
            )
            logger.info("Seeded default footer links")


def drop_db(engine) -> None:
    metadata.drop_all(engine)
