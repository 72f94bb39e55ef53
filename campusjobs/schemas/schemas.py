"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List, Dict
from datetime import date, datetime
from enum import Enum


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    student = "student"
    publisher = "publisher"
    admin = "admin"


class RegistrationRole(str, Enum):
    """Roles a visitor may sign up with. Admins are created by scripts/init_db.py."""
    student = "student"
    publisher = "publisher"


class UserStatus(str, Enum):
    active = "active"
    blocked = "blocked"


class JobType(str, Enum):
    part_time = "part-time"
    freelance = "freelance"
    internship = "internship"
    task_based = "task-based"
    full_time = "full-time"


class JobStatus(str, Enum):
    draft = "draft"
    active = "active"
    closed = "closed"


class WorkMode(str, Enum):
    on_site = "on-site"
    remote = "remote"
    hybrid = "hybrid"


class ApplicationStatus(str, Enum):
    pending = "pending"
    viewed = "viewed"
    accepted = "accepted"
    rejected = "rejected"


class ReportType(str, Enum):
    user = "user"
    conversation = "conversation"
    app_problem = "app_problem"


class ReportStatus(str, Enum):
    pending = "pending"
    resolved = "resolved"
    dismissed = "dismissed"


class SortOrder(str, Enum):
    newest = "newest"
    oldest = "oldest"


# ============================================================
# AUTH SCHEMAS
# ============================================================

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    role: RegistrationRole
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    company_name: Optional[str] = Field(None, max_length=200)

class RegisterResponse(BaseModel):
    message: str
    user_id: int
    role: str
    verification_required: bool = True

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: int
    role: str

class ForgotPasswordRequest(BaseModel):
    email: EmailStr

class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str

class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str

class DeleteAccountRequest(BaseModel):
    password: str


# ============================================================
# PROFILE SCHEMAS
# ============================================================

class StudentProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    profile_image_url: Optional[str] = None
    university_name: Optional[str] = None
    field_of_study: Optional[str] = None
    year_of_study: Optional[str] = None
    languages_spoken: Optional[str] = None
    preferred_categories: Optional[str] = None
    skills: Optional[str] = None
    cv_url: Optional[str] = None

class PublisherProfileUpdate(BaseModel):
    company_name: Optional[str] = Field(None, min_length=1, max_length=200)
    profile_image_url: Optional[str] = None
    about: Optional[str] = None
    industry: Optional[str] = None
    website_url: Optional[str] = None
    address: Optional[str] = None
    phone_number: Optional[str] = None
    facebook_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    instagram_url: Optional[str] = None

class UserProfileResponse(BaseModel):
    """User row merged with the role's profile columns."""
    id: int
    email: str
    role: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    is_verified: bool = False
    status: str
    created_at: datetime
    # student
    university_name: Optional[str] = None
    field_of_study: Optional[str] = None
    year_of_study: Optional[str] = None
    languages_spoken: Optional[str] = None
    preferred_categories: Optional[str] = None
    skills: Optional[str] = None
    cv_url: Optional[str] = None
    # publisher
    about: Optional[str] = None
    industry: Optional[str] = None
    website_url: Optional[str] = None
    address: Optional[str] = None
    phone_number: Optional[str] = None
    facebook_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    instagram_url: Optional[str] = None


# ============================================================
# JOB SCHEMAS
# ============================================================

class JobCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = None
    category_id: Optional[int] = None
    skills_required: Optional[str] = None
    job_type: JobType
    payment_range: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    work_mode: WorkMode = WorkMode.on_site
    location: Optional[str] = None
    application_deadline: Optional[date] = None
    vacancies: int = Field(1, ge=1)
    working_hours: Optional[str] = None
    experience_level: str = "any"
    status: str = "draft"

class JobUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = None
    category_id: Optional[int] = None
    skills_required: Optional[str] = None
    job_type: Optional[JobType] = None
    payment_range: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    work_mode: Optional[WorkMode] = None
    location: Optional[str] = None
    application_deadline: Optional[date] = None
    vacancies: Optional[int] = Field(None, ge=1)
    working_hours: Optional[str] = None
    experience_level: Optional[str] = None
    status: Optional[JobStatus] = None

class JobCreatedResponse(BaseModel):
    message: str
    job_id: int
    status: str
    payment_amount: float

class ExtendDeadlineRequest(BaseModel):
    application_deadline: date

class JobResponse(BaseModel):
    id: int
    publisher_id: int
    company_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    title: str
    description: Optional[str] = None
    skills_required: Optional[str] = None
    job_type: str
    payment_range: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    work_mode: str
    location: Optional[str] = None
    application_deadline: Optional[date] = None
    vacancies: int
    working_hours: Optional[str] = None
    experience_level: Optional[str] = None
    status: str
    display_status: str
    payment_amount: float = 0
    created_at: datetime
    application_count: Optional[int] = None
    accepted_count: Optional[int] = None
    application_status: Optional[str] = None
    recommendation_score: Optional[int] = None

class JobListResponse(BaseModel):
    jobs: List[JobResponse]
    total: int

class CategoryResponse(BaseModel):
    id: int
    name: str

class SuggestionsResponse(BaseModel):
    skills: List[str]
    categories: List[str]


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class ApplicationCreate(BaseModel):
    job_id: int
    proposal: Optional[str] = None

class ApplicationCreatedResponse(BaseModel):
    message: str
    application_id: int

class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus

class ApplicationResponse(BaseModel):
    id: int
    job_id: int
    job_title: str
    student_id: int
    student_first_name: Optional[str] = None
    student_last_name: Optional[str] = None
    student_email: Optional[str] = None
    student_image_url: Optional[str] = None
    publisher_id: int
    company_name: Optional[str] = None
    proposal: Optional[str] = None
    status: str
    applied_at: datetime
    vacancies: Optional[int] = None
    accepted_count: Optional[int] = None
    # student details, filled when a publisher opens the application
    university_name: Optional[str] = None
    field_of_study: Optional[str] = None
    year_of_study: Optional[str] = None
    skills: Optional[str] = None
    cv_url: Optional[str] = None


# ============================================================
# REVIEW SCHEMAS
# ============================================================

class CompanyReviewCreate(BaseModel):
    publisher_id: int
    rating: int = Field(..., ge=1, le=5)
    review_text: str

    @field_validator("review_text")
    @classmethod
    def review_text_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Review text cannot be empty")
        return v.strip()

class StudentReviewCreate(BaseModel):
    student_id: int
    job_id: Optional[int] = None
    rating: int = Field(..., ge=1, le=5)
    review_text: str

    @field_validator("review_text")
    @classmethod
    def review_text_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Review text cannot be empty")
        return v.strip()

class ReviewSavedResponse(BaseModel):
    message: str
    review_id: int
    created: bool

class CanReviewResponse(BaseModel):
    can_review: bool
    accepted_applications: int

class StudentReviewResponse(BaseModel):
    id: int
    publisher_id: int
    company_name: Optional[str] = None
    job_id: Optional[int] = None
    job_title: Optional[str] = None
    rating: int
    review_text: str
    created_at: datetime
    updated_at: Optional[datetime] = None

class StudentReviewSummary(BaseModel):
    reviews: List[StudentReviewResponse]
    average_rating: float
    total_reviews: int
    rating_distribution: Dict[int, int]


# ============================================================
# MESSAGING SCHEMAS
# ============================================================

class MessageCreate(BaseModel):
    receiver_id: int
    message_text: str
    job_id: Optional[int] = None

    @field_validator("message_text")
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Message cannot be empty")
        return v

class MessageSentResponse(BaseModel):
    message: str
    conversation_id: int
    message_id: int

class ChatMessage(BaseModel):
    id: int
    conversation_id: int
    sender_id: int
    receiver_id: int
    message_text: str
    is_read: bool
    created_at: datetime

class ConversationSummary(BaseModel):
    conversation_id: int
    other_user_id: int
    other_user_name: str
    other_user_role: str
    other_user_image_url: Optional[str] = None
    job_id: Optional[int] = None
    job_title: Optional[str] = None
    last_message: Optional[str] = None
    last_message_time: Optional[datetime] = None
    unread_count: int = 0

class ConversationThread(BaseModel):
    conversation_id: int
    job_id: Optional[int] = None
    messages: List[ChatMessage]


# ============================================================
# NOTIFICATION SCHEMAS
# ============================================================

class NotificationResponse(BaseModel):
    id: int
    type: str
    message: str
    link: Optional[str] = None
    is_read: bool
    created_at: datetime

class CountResponse(BaseModel):
    count: int


# ============================================================
# REPORT / ADMIN SCHEMAS
# ============================================================

class ReportCreate(BaseModel):
    type: ReportType = ReportType.user
    reported_user_id: Optional[int] = None
    conversation_id: Optional[int] = None
    reason: str

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("A reason is required")
        return v.strip()

class ReportStatusUpdate(BaseModel):
    status: ReportStatus

class UserStatusUpdate(BaseModel):
    status: Optional[UserStatus] = None
    is_verified: Optional[bool] = None

class AdminJobStatusUpdate(BaseModel):
    status: JobStatus

class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)

class SkillCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)

class AdminStatsResponse(BaseModel):
    total_users: int
    total_students: int
    total_publishers: int
    total_jobs: int
    pending_jobs: int
    unverified_users: int


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True
