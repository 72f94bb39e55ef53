#!/usr/bin/env python3
"""
Database Setup Script

Creates missing tables, seeds the default site settings and optionally
creates an admin account (admins can not sign up through the API).

Usage:
    python scripts/init_db.py
    python scripts/init_db.py --admin-email ops@campus.edu --admin-password 'S3cure!Ops'
"""
import argparse
import sys
sys.path.insert(0, '.')

from sqlalchemy import text

from campusjobs.core.auth import hash_password
from campusjobs.core.config import get_settings
from campusjobs.core.validators import validate_password_strength
from campusjobs.db.database import check_database_connection, engine, get_db_session, utc_now
from campusjobs.db.schema import init_db


def create_admin(email: str, password: str) -> bool:
    """Insert an admin account. Returns False when the e-mail is taken."""
    email = email.strip().lower()
    with get_db_session() as db:
        existing = db.execute(text("SELECT id FROM users WHERE email = :email"), {"email": email}).fetchone()
        if existing:
            return False
        db.execute(
            text("""
                INSERT INTO users (email, password_hash, first_name, last_name, role, is_verified,
                                   status, email_verified_at, created_at)
                VALUES (:email, :hash, 'Site', 'Admin', 'admin', :verified, 'active', :now, :now)
            """),
            {"email": email, "hash": hash_password(password), "verified": True, "now": utc_now()}
        )
    return True


def main():
    parser = argparse.ArgumentParser(description="Create the Campus Jobs schema and an admin account.")
    parser.add_argument("--admin-email", help="E-mail of the admin account to create")
    parser.add_argument("--admin-password", help="Password of the admin account")
    args = parser.parse_args()

    settings = get_settings()
    print("=" * 50)
    print("CAMPUS JOBS - DATABASE SETUP")
    print("=" * 50)

    print("\n[1] Checking database...")
    print(f"    Host: {settings.postgres_host}:{settings.postgres_port}/{settings.postgres_db}"
          if not settings.database_url else "    Using DATABASE_URL")
    if not check_database_connection():
        print("    Database: UNREACHABLE")
        sys.exit(1)
    print("    Database: CONNECTED")

    print("\n[2] Creating tables...")
    init_db(engine)
    print("    Tables: READY")

    if args.admin_email:
        print("\n[3] Creating admin account...")
        if not args.admin_password:
            print("    --admin-password is required with --admin-email")
            sys.exit(1)
        check = validate_password_strength(args.admin_password)
        if not check.valid:
            for error in check.errors:
                print(f"    - {error}")
            sys.exit(1)
        if create_admin(args.admin_email, args.admin_password):
            print(f"    Admin {args.admin_email}: CREATED")
        else:
            print(f"    Admin {args.admin_email}: ALREADY EXISTS")

    print("\n" + "=" * 50)
    print("Setup complete!")
    print("=" * 50)


if __name__ == "__main__":
    main()
