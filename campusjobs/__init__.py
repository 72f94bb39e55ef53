"""
Campus Jobs
A job marketplace connecting university students with employers.

Architecture:
- PostgreSQL: users, profiles, jobs, applications, messages, reviews, reports
- FastAPI: JSON API under /api, JWT authentication
"""

__version__ = "1.0.0"
