"""Smoke tests for the Signalist project structure and imports."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch


class TestImports:
    """Verify all modules can be imported without errors."""

    def test_config(self) -> None:
        from signalist.config import settings
        assert settings.LLM_PROVIDER in ("gemini", "ollama", "lmstudio")
        assert settings.DB_PATH is not None
        assert settings.PROMPTS_DIR.exists()
        assert settings.TEMPLATES_DIR.exists()

    def test_database(self) -> None:
        from signalist.database import get_db
        db = get_db()
        # Verify tables exist
        tables = db.execute("SHOW TABLES").fetchall()
        table_names = [t[0] for t in tables]
        assert "users" in table_names
        assert "sessions" in table_names
        assert "watchlist" in table_names
        assert "scheduler_runs" in table_names

    def test_prompts_load(self) -> None:
        from signalist.services.prompts import load_prompt
        assert "{{newsData}}" in load_prompt("news_summary_email.md")
        assert "{{userProfile}}" in load_prompt("welcome_email.md")

    def test_app_routes(self) -> None:
        from signalist.main import app
        paths = {r.path for r in app.routes}
        assert {"/api/watchlist", "/api/test-db", "/api/events"} <= paths


class TestDiagnostics:

    def test_test_db_endpoint(self, client) -> None:
        resp = client.get("/api/test-db")
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["message"] == "Database connection successful!"
        assert body["connectionState"] == 1
        assert body["connectionStateText"] == "Connected"
        assert "watchlist" in body["collections"]
        assert body["collectionCount"] == len(body["collections"])

    def test_test_db_failure_is_500(self, client) -> None:
        with patch("signalist.main.connection_info", side_effect=RuntimeError("no disk")):
            resp = client.get("/api/test-db")
        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "no disk"

    def test_health(self, client) -> None:
        with patch(
            "signalist.main.LLMService.health_check",
            new=AsyncMock(return_value={"status": "ok"}),
        ):
            resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["api"] == "ok"
        assert resp.json()["llm"] == {"status": "ok"}
