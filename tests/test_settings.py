import json

from task_api.generate_openapi import build_openapi_schema, generate_openapi
from task_api.settings import load_settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in ["PERSISTENCE_BACKEND", "DATABASE_URL", "CORS_ALLOW_ORIGINS", "ENABLE_AUTH", "AUTH_TOKEN", "LOG_LEVEL", "PORT"]:
            monkeypatch.delenv(name, raising=False)
        s = load_settings()
        assert s.persistence_backend == "sqlalchemy"
        assert s.database_url == "sqlite:///./data/tasks.db"
        assert s.cors_allow_origins == ["*"]
        assert s.enable_auth is False
        assert s.auth_token is None
        assert s.log_level == "INFO"
        assert s.port == 8000

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("PERSISTENCE_BACKEND", " Memory ")
        monkeypatch.setenv("CORS_ALLOW_ORIGINS", "http://a.test, http://b.test,")
        monkeypatch.setenv("ENABLE_AUTH", "yes")
        monkeypatch.setenv("AUTH_TOKEN", "tok")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("PORT", "9001")
        s = load_settings()
        assert s.persistence_backend == "memory"
        assert s.cors_allow_origins == ["http://a.test", "http://b.test"]
        assert s.enable_auth is True
        assert s.auth_token == "tok"
        assert s.log_level == "DEBUG"
        assert s.port == 9001

    def test_unknown_backend_and_bad_port_fall_back(self, monkeypatch):
        monkeypatch.setenv("PERSISTENCE_BACKEND", "mongo")
        monkeypatch.setenv("PORT", "eighty")
        s = load_settings()
        assert s.persistence_backend == "sqlalchemy"
        assert s.port == 8000

    def test_token_ignored_when_auth_disabled(self, monkeypatch):
        monkeypatch.setenv("ENABLE_AUTH", "false")
        monkeypatch.setenv("AUTH_TOKEN", "tok")
        assert load_settings().auth_token is None


class TestOpenAPI:
    def test_schema_documents_task_routes(self):
        schema = build_openapi_schema()
        assert "/api/tasks" in schema["paths"]
        assert "/api/tasks/{task_id}" in schema["paths"]
        assert {"tasks", "health"} <= {t["name"] for t in schema["tags"]}

    def test_generate_writes_file(self, tmp_path):
        out = generate_openapi(tmp_path / "interfaces" / "openapi.json")
        assert out.exists()
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["info"]["title"] == "Task Manager API"
