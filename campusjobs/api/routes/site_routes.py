"""
Site Settings Routes

GET /site-settings/footer-links - Links shown in the site footer
"""

import json
import logging
from typing import Dict

from fastapi import APIRouter
from sqlalchemy import text

from campusjobs.db.database import get_db_session
from campusjobs.db.schema import DEFAULT_FOOTER_LINKS

router = APIRouter(prefix="/site-settings", tags=["Site Settings"])
logger = logging.getLogger(__name__)

FOOTER_LINKS_KEY = "footer_links"


def load_footer_links(db) -> Dict[str, str]:
    """Stored footer links, or the defaults when missing or unreadable."""
    row = db.execute(
        text("SELECT setting_value FROM site_settings WHERE setting_key = :key"), {"key": FOOTER_LINKS_KEY}
    ).fetchone()
    if not row:
        return dict(DEFAULT_FOOTER_LINKS)
    try:
        links = json.loads(row[0])
    except ValueError:
        logger.warning("Stored footer links are not valid JSON, using defaults")
        return dict(DEFAULT_FOOTER_LINKS)
    if not isinstance(links, dict):
        return dict(DEFAULT_FOOTER_LINKS)
    return links


@router.get("/footer-links")
async def get_footer_links():
    with get_db_session() as db:
        return load_footer_links(db)
