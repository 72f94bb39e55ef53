"""
Review Routes

POST /reviews/companies - Student reviews a company (create or update)
GET /reviews/companies/can-review - Whether the student may review a company
GET /reviews/companies/{publisher_id} - Reviews of a company
POST /reviews/students - Publisher reviews a student (create or update)
GET /reviews/students/{student_id} - Reviews of a student with summary
"""

import logging

from fastapi import APIRouter, HTTPException, Depends, Query, Response
from sqlalchemy import text

from campusjobs.core.auth import get_current_publisher, get_current_student, display_name
from campusjobs.db.database import get_db_session, utc_now
from campusjobs.schemas.schemas import (
    CompanyReviewCreate, StudentReviewCreate, ReviewSavedResponse, CanReviewResponse, StudentReviewSummary,
)
from campusjobs.services.notification_service import create_notification
from campusjobs.services.review_service import (
    company_rating, company_reviews, count_accepted_with_publisher, insert_company_review, insert_student_review,
    student_review_summary,
)

router = APIRouter(prefix="/reviews", tags=["Reviews"])
logger = logging.getLogger(__name__)


@router.post("/companies", response_model=ReviewSavedResponse, status_code=201)
async def review_company(review: CompanyReviewCreate, response: Response,
                         student: dict = Depends(get_current_student)):
    """
    Review a company the student has worked for.

    Requires an accepted application with the company. A student has one
    review per company; submitting again replaces it.
    """
    with get_db_session() as db:
        publisher = db.execute(
            text("SELECT id FROM users WHERE id = :pid AND role = 'publisher'"), {"pid": review.publisher_id}
        ).fetchone()
        if not publisher:
            raise HTTPException(status_code=404, detail="Company not found.")

        if count_accepted_with_publisher(db, student["user_id"], review.publisher_id) == 0:
            raise HTTPException(
                status_code=403,
                detail="You can only review publishers who have accepted your job applications."
            )

        existing = db.execute(
            text("SELECT id FROM company_reviews WHERE publisher_id = :pid AND student_id = :sid"),
            {"pid": review.publisher_id, "sid": student["user_id"]}
        ).fetchone()

        if existing:
            review_id = existing[0]
            db.execute(
                text("""
                    UPDATE company_reviews SET rating = :rating, review_text = :text, created_at = :now
                    WHERE id = :rid
                """),
                {"rating": review.rating, "text": review.review_text, "now": utc_now(), "rid": review_id}
            )
        else:
            review_id = insert_company_review(db, review.publisher_id, student["user_id"], review.rating,
                                              review.review_text)
            create_notification(
                db, review.publisher_id, "new_review",
                f"{display_name(student)} has left a {review.rating}-star review for your company.",
                "/applicants"
            )

    if existing:
        response.status_code = 200
        logger.info("Student %s updated review %s", student["user_id"], review_id)
        return ReviewSavedResponse(message="Your review has been updated successfully.",
                                   review_id=review_id, created=False)

    logger.info("Student %s reviewed publisher %s", student["user_id"], review.publisher_id)
    return ReviewSavedResponse(message="Review submitted successfully.", review_id=review_id, created=True)


@router.get("/companies/can-review", response_model=CanReviewResponse)
async def can_review_company(publisher_id: int = Query(...), student: dict = Depends(get_current_student)):
    with get_db_session() as db:
        accepted = count_accepted_with_publisher(db, student["user_id"], publisher_id)
    return CanReviewResponse(can_review=accepted > 0, accepted_applications=accepted)


@router.get("/companies/{publisher_id}")
async def get_company_reviews(publisher_id: int):
    with get_db_session() as db:
        reviews = company_reviews(db, publisher_id)
        rating = company_rating(db, publisher_id)
    return {"reviews": reviews, **rating}


@router.post("/students", response_model=ReviewSavedResponse, status_code=201)
async def review_student(review: StudentReviewCreate, response: Response,
                         publisher: dict = Depends(get_current_publisher)):
    """
    Review a student, optionally for one of the publisher's jobs.

    One review per student and job; submitting again replaces it.
    """
    with get_db_session() as db:
        student = db.execute(
            text("SELECT id FROM users WHERE id = :sid AND role = 'student'"), {"sid": review.student_id}
        ).fetchone()
        if not student:
            raise HTTPException(status_code=400, detail="Invalid publisher or student ID.")

        if review.job_id is not None:
            job = db.execute(
                text("SELECT id FROM jobs WHERE id = :jid AND publisher_id = :pid"),
                {"jid": review.job_id, "pid": publisher["user_id"]}
            ).fetchone()
            if not job:
                raise HTTPException(status_code=400, detail="Invalid job ID or job doesn't belong to this publisher.")
            job_clause = "job_id = :jid"
        else:
            job_clause = "job_id IS NULL"

        existing = db.execute(
            text(f"""
                SELECT id FROM student_reviews
                WHERE publisher_id = :pid AND student_id = :sid AND {job_clause}
            """),
            {"pid": publisher["user_id"], "sid": review.student_id, "jid": review.job_id}
        ).fetchone()

        if existing:
            review_id = existing[0]
            db.execute(
                text("""
                    UPDATE student_reviews SET rating = :rating, review_text = :text, updated_at = :now
                    WHERE id = :rid
                """),
                {"rating": review.rating, "text": review.review_text, "now": utc_now(), "rid": review_id}
            )
        else:
            review_id = insert_student_review(db, publisher["user_id"], review.student_id, review.job_id,
                                              review.rating, review.review_text)
            create_notification(
                db, review.student_id, "review_received",
                f"{display_name(publisher)} has left a {review.rating}-star review for your work.",
                "/profile"
            )

    if existing:
        response.status_code = 200
        logger.info("Publisher %s updated student review %s", publisher["user_id"], review_id)
        return ReviewSavedResponse(message="Student review updated successfully.",
                                   review_id=review_id, created=False)

    logger.info("Publisher %s reviewed student %s", publisher["user_id"], review.student_id)
    return ReviewSavedResponse(message="Student review created successfully.", review_id=review_id, created=True)


@router.get("/students/{student_id}", response_model=StudentReviewSummary)
async def get_student_reviews(student_id: int):
    with get_db_session() as db:
        summary = student_review_summary(db, student_id)
    return StudentReviewSummary(**summary)
