"""
Domain exceptions raised by the service layer.

Route handlers raise HTTPException directly; services raise these so the
same rule (e.g. the vacancy check) can be reused without knowing about HTTP.
A single handler registered in main.py turns them into JSON responses.
"""

from fastapi import Request
from fastapi.responses import JSONResponse


class CampusJobsError(Exception):
    """Base exception carrying an HTTP status code and a client message."""

    status_code = 400

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"detail": self.message}


class NotFoundError(CampusJobsError):
    status_code = 404


class ConflictError(CampusJobsError):
    status_code = 409


class VacancyLimitReachedError(ConflictError):
    """Raised when accepting an applicant would exceed the job's vacancies."""

    def __init__(self, job_id: int, vacancies: int):
        super().__init__("Vacancy limit reached. Cannot accept more applicants for this job.")
        self.job_id = job_id
        self.vacancies = vacancies


class AlreadyAppliedError(ConflictError):
    def __init__(self):
        super().__init__("You have already applied for this job.")


class EmailAlreadyRegisteredError(CampusJobsError):
    def __init__(self):
        super().__init__("This email is already registered.")


class DuplicateReviewError(ConflictError):
    """Raised when a concurrent request already stored the same review."""

    def __init__(self):
        super().__init__("This review was just submitted by another request. Submit again to update it.")


async def campusjobs_exception_handler(request: Request, exc: CampusJobsError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
