"""
Campus Jobs - Main Application

FastAPI backend with:
- PostgreSQL for all platform data
- JWT authentication for students, publishers and admins
- In-app notifications, messaging, reviews and reports

Run: uvicorn campusjobs.main:app --reload
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from campusjobs.api.routes import api_router
from campusjobs.core.config import get_settings
from campusjobs.core.exceptions import CampusJobsError, campusjobs_exception_handler
from campusjobs.db.database import engine, check_database_connection
from campusjobs.db.schema import init_db

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Campus Jobs",
    description="""
    A job marketplace for university students and the companies that hire them.

    ## Features
    - **Authentication**: JWT-based auth, e-mail verification, password reset
    - **Students**: Profiles, applications, job recommendations
    - **Publishers**: Job postings, applicant management, dashboards
    - **Reviews**: Students review companies, publishers review students
    - **Messaging**: One conversation per pair of users
    - **Admin**: User and job moderation, reports, categories, site settings
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

app.add_exception_handler(CampusJobsError, campusjobs_exception_handler)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception("Unexpected error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "An unexpected error occurred"})


# Include API routes
app.include_router(api_router, prefix="/api")


# Startup event
@app.on_event("startup")
async def startup_event():
    """Create missing tables and seed default settings."""
    try:
        init_db(engine)
        logger.info("Database schema ready")
    except Exception as e:
        logger.error("Database initialization failed: %s", e)


@app.get("/", tags=["Health"])
async def root():
    return {"status": "healthy", "app": "Campus Jobs", "docs": "/docs"}


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    database_ok = check_database_connection()
    return {
        "status": "healthy" if database_ok else "degraded",
        "database": "connected" if database_ok else "disconnected",
    }
