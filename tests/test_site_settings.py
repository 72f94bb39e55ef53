# =============================================================================
# tests/test_site_settings.py - Site Settings and Health Tests
# =============================================================================

from sqlalchemy import text

from campusjobs.db.database import get_db_session
from campusjobs.db.schema import DEFAULT_FOOTER_LINKS


class TestFooterLinks:
    """Tests for the footer links setting."""

    def test_defaults_are_seeded(self, client):
        response = client.get("/api/site-settings/footer-links")

        assert response.status_code == 200
        assert response.json() == DEFAULT_FOOTER_LINKS

    def test_admin_replaces_links(self, client, admin):
        links = {"about": "Who we are", "help": "Help Centre"}

        response = client.put("/api/admin/site-settings/footer-links", headers=admin["headers"], json=links)

        assert response.status_code == 200
        assert client.get("/api/site-settings/footer-links").json() == links

    def test_missing_setting_is_recreated(self, client, admin):
        with get_db_session() as db:
            db.execute(text("DELETE FROM site_settings"))

        assert client.get("/api/site-settings/footer-links").json() == DEFAULT_FOOTER_LINKS

        client.put("/api/admin/site-settings/footer-links", headers=admin["headers"], json={"faq": "FAQ"})

        assert client.get("/api/site-settings/footer-links").json() == {"faq": "FAQ"}

    def test_corrupt_value_falls_back_to_defaults(self, client):
        with get_db_session() as db:
            db.execute(text("UPDATE site_settings SET setting_value = 'not json' WHERE setting_key = 'footer_links'"))

        assert client.get("/api/site-settings/footer-links").json() == DEFAULT_FOOTER_LINKS

    def test_empty_links_are_rejected(self, client, admin):
        response = client.put("/api/admin/site-settings/footer-links", headers=admin["headers"], json={})

        assert response.status_code == 400

    def test_only_admins_can_change(self, client, publisher):
        response = client.put("/api/admin/site-settings/footer-links", headers=publisher["headers"],
                              json={"about": "Us"})

        assert response.status_code == 403


class TestHealth:
    """Tests for the root and health endpoints."""

    def test_root(self, client):
        assert client.get("/").json()["status"] == "healthy"

    def test_health_reports_database(self, client):
        response = client.get("/health")

        assert response.json() == {"status": "healthy", "database": "connected"}
