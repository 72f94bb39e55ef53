"""
Review Service

Review writes plus the rating aggregates shared by the public profile pages,
the review routes and the publisher dashboard.
"""

from typing import Dict

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campusjobs.core.exceptions import DuplicateReviewError
from campusjobs.db.database import rows_to_dicts, utc_now


def _round_rating(value) -> float:
    return round(float(value), 1) if value is not None else 0.0


def count_accepted_with_publisher(db: Session, student_id: int, publisher_id: int) -> int:
    """Accepted applications the student holds for any of the publisher's jobs."""
    return db.execute(
        text("""
            SELECT COUNT(*) FROM job_applications ja
            JOIN jobs j ON ja.job_id = j.id
            WHERE ja.student_id = :sid AND j.publisher_id = :pid AND ja.status = 'accepted'
        """),
        {"sid": student_id, "pid": publisher_id}
    ).scalar() or 0


def company_rating(db: Session, publisher_id: int) -> Dict[str, float]:
    row = db.execute(
        text("SELECT AVG(rating), COUNT(*) FROM company_reviews WHERE publisher_id = :pid"),
        {"pid": publisher_id}
    ).fetchone()
    return {"average_rating": _round_rating(row[0]), "review_count": row[1] or 0}


def company_reviews(db: Session, publisher_id: int, limit: int = None) -> list:
    """Reviews of a company, newest first, with the reviewing student's name."""
    sql = """
        SELECT cr.id, cr.rating, cr.review_text, cr.created_at, cr.student_id,
               u.first_name, u.last_name, u.profile_image_url
        FROM company_reviews cr
        JOIN users u ON cr.student_id = u.id
        WHERE cr.publisher_id = :pid
        ORDER BY cr.created_at DESC, cr.id DESC
    """
    params = {"pid": publisher_id}
    if limit:
        sql += " LIMIT :limit"
        params["limit"] = limit
    return rows_to_dicts(db.execute(text(sql), params))


def student_review_summary(db: Session, student_id: int) -> dict:
    """Active reviews of a student with average, total and 1-5 distribution."""
    reviews = rows_to_dicts(db.execute(
        text("""
            SELECT sr.id, sr.publisher_id, u.company_name, sr.job_id, j.title AS job_title,
                   sr.rating, sr.review_text, sr.created_at, sr.updated_at
            FROM student_reviews sr
            JOIN users u ON sr.publisher_id = u.id
            LEFT JOIN jobs j ON sr.job_id = j.id
            WHERE sr.student_id = :sid AND sr.status = 'active'
            ORDER BY sr.created_at DESC, sr.id DESC
        """),
        {"sid": student_id}
    ))

    distribution = {stars: 0 for stars in range(1, 6)}
    for review in reviews:
        distribution[review["rating"]] += 1
    total = len(reviews)
    average = round(sum(r["rating"] for r in reviews) / total, 1) if total else 0.0

    return {
        "reviews": reviews,
        "average_rating": average,
        "total_reviews": total,
        "rating_distribution": distribution,
    }


def insert_company_review(db: Session, publisher_id: int, student_id: int, rating: int, review_text: str) -> int:
    """Store a new company review. The pair is unique, so a lost race raises DuplicateReviewError."""
    try:
        result = db.execute(
            text("""
                INSERT INTO company_reviews (publisher_id, student_id, rating, review_text, created_at)
                VALUES (:pid, :sid, :rating, :text, :now)
                RETURNING id
            """),
            {"pid": publisher_id, "sid": student_id, "rating": rating, "text": review_text, "now": utc_now()}
        )
    except IntegrityError:
        raise DuplicateReviewError()
    return result.fetchone()[0]


def insert_student_review(db: Session, publisher_id: int, student_id: int, job_id, rating: int,
                          review_text: str) -> int:
    """Store a new student review, unique per publisher, student and job (or no job)."""
    now = utc_now()
    try:
        result = db.execute(
            text("""
                INSERT INTO student_reviews (publisher_id, student_id, job_id, rating, review_text,
                                             status, created_at, updated_at)
                VALUES (:pid, :sid, :jid, :rating, :text, 'active', :now, :now)
                RETURNING id
            """),
            {"pid": publisher_id, "sid": student_id, "jid": job_id, "rating": rating,
             "text": review_text, "now": now}
        )
    except IntegrityError:
        raise DuplicateReviewError()
    return result.fetchone()[0]


def release_job_reviews(db: Session, job_id: int) -> None:
    """
    Prepare a job's student reviews for the job being deleted.

    Deleting a job nulls out ``student_reviews.job_id``. A review whose pair
    already has a jobless review would then break the one-review-per-job
    rule, so it is dropped in favour of the jobless one.
    """
    db.execute(
        text("""
            DELETE FROM student_reviews
            WHERE job_id = :jid AND EXISTS (
                SELECT 1 FROM student_reviews other
                WHERE other.publisher_id = student_reviews.publisher_id
                  AND other.student_id = student_reviews.student_id
                  AND other.job_id IS NULL
            )
        """),
        {"jid": job_id}
    )


def drop_reviews_by_publisher(db: Session, publisher_id: int) -> None:
    """Remove the publisher's student reviews ahead of deleting the account and its jobs."""
    db.execute(text("DELETE FROM student_reviews WHERE publisher_id = :pid"), {"pid": publisher_id})
