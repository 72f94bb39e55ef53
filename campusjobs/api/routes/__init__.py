"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from campusjobs.api.routes.auth_routes import router as auth_router
from campusjobs.api.routes.account_routes import router as account_router
from campusjobs.api.routes.student_routes import router as student_router
from campusjobs.api.routes.publisher_routes import router as publisher_router
from campusjobs.api.routes.job_routes import router as job_router
from campusjobs.api.routes.application_routes import router as application_router
from campusjobs.api.routes.review_routes import router as review_router
from campusjobs.api.routes.message_routes import router as message_router
from campusjobs.api.routes.notification_routes import router as notification_router
from campusjobs.api.routes.report_routes import router as report_router
from campusjobs.api.routes.admin_routes import router as admin_router
from campusjobs.api.routes.site_routes import router as site_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(account_router)
api_router.include_router(student_router)
api_router.include_router(publisher_router)
api_router.include_router(job_router)
api_router.include_router(application_router)
api_router.include_router(review_router)
api_router.include_router(message_router)
api_router.include_router(notification_router)
api_router.include_router(report_router)
api_router.include_router(admin_router)
api_router.include_router(site_router)
