"""
Smoke tests to verify project setup
Tests configuration, logging setup and database lifecycle
"""

import pytest

from vidshare.app.config import (
    Config,
    DatabaseConfig,
    PaginationConfig,
    get_config,
    reload_config,
    reset_config,
    validate_config,
)
from vidshare.app.database import DatabaseManager
from vidshare.infrastructure.repositories import UserRepository


@pytest.fixture(autouse=True)
def fresh_config():
    reset_config()
    yield
    reset_config()


class TestConfiguration:
    """Test configuration system"""

    def test_config_loads_defaults(self, monkeypatch):
        for name in ("PAGINATION_DEFAULT_LIMIT", "PAGINATION_MAX_LIMIT", "QUERY_MAX_EXECUTION_SECONDS"):
            monkeypatch.delenv(name, raising=False)

        config = Config(config_path="does-not-exist.yaml")

        assert config.pagination.default_limit == 10
        assert config.pagination.max_limit == 100
        assert config.query.max_execution_seconds == 10.0
        assert config.query.search_index == "search-videos"
        assert config.cascade.sweep_after_delete is True
        assert config.yaml_config == {}

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("PAGINATION_MAX_LIMIT", "50")
        monkeypatch.setenv("CASCADE_SWEEP_AFTER_DELETE", "false")

        config = Config(config_path="does-not-exist.yaml")

        assert config.pagination.max_limit == 50
        assert config.cascade.sweep_after_delete is False

    def test_yaml_values_available(self, tmp_path):
        path = tmp_path / "app.yaml"
        path.write_text("app:\n  name: vidshare\n  nested:\n    flag: true\n")

        config = Config(config_path=str(path))

        assert config.get("app.name") == "vidshare"
        assert config.get("app.nested.flag") is True
        assert config.get("app.missing", "fallback") == "fallback"
        assert config.get_summary()["app"]["name"] == "vidshare"

    def test_yaml_sections_configure_settings(self, tmp_path, monkeypatch):
        monkeypatch.delenv("PAGINATION_DEFAULT_LIMIT", raising=False)
        monkeypatch.setenv("PAGINATION_MAX_LIMIT", "40")
        path = tmp_path / "app.yaml"
        path.write_text(
            "pagination:\n  default_limit: 25\n  max_limit: 60\n"
            "cascade:\n  sweep_after_delete: false\n"
        )

        config = Config(config_path=str(path))

        assert config.pagination.default_limit == 25
        assert config.pagination.max_limit == 40
        assert config.cascade.sweep_after_delete is False

    def test_non_positive_limit_rejected(self, monkeypatch):
        monkeypatch.setenv("PAGINATION_MAX_LIMIT", "0")
        with pytest.raises(ValueError):
            PaginationConfig()

    def test_singleton_and_reload(self):
        first = get_config()
        assert get_config() is first

        reloaded = reload_config()
        assert reloaded is not first
        assert get_config() is reloaded

    def test_config_validation_structure(self):
        result = validate_config()

        assert isinstance(result, dict)
        assert "valid" in result
        assert "errors" in result
        assert "warnings" in result

    def test_validation_flags_bad_settings(self, tmp_path):
        config = Config(config_path=str(tmp_path / "app.yaml"))
        config.database = DatabaseConfig(url="sqlite:///./sync.db")
        config.pagination = PaginationConfig(default_limit=200, max_limit=100)
        config.logging.file_path = None

        result = validate_config(config)

        assert result["valid"] is False
        assert any("aiosqlite" in e for e in result["errors"])
        assert any("default_limit" in e for e in result["errors"])

    def test_summary_sections(self, app_config):
        summary = app_config.get_summary()

        for section in ("database", "pagination", "query", "cascade"):
            assert section in summary
        assert summary["database"]["sqlite"] is True


class TestDatabaseManager:
    """Test database lifecycle"""

    @pytest.mark.asyncio
    async def test_create_ping_and_close(self, app_config):
        db = DatabaseManager(app_config)
        try:
            await db.create_tables()
            assert await db.ping() is True

            async with db.session() as session:
                assert session.bind is not None
        finally:
            await db.close()

    @pytest.mark.asyncio
    async def test_sessions_share_in_memory_database(self, app_config):
        db = DatabaseManager(app_config)
        try:
            await db.create_tables()
            async with db.session() as session:
                user = await UserRepository(session).create(
                    username="alice", email="alice@example.com", password="x"
                )
            async with db.session() as session:
                assert await UserRepository(session).exists(user.id)
        finally:
            await db.close()
