"""Unit tests for server configuration settings model.

Tests verify that the Settings model binds environment variables and that the
grouped configuration views expose the same values.
"""

import pytest

from schooladmin.server.core.config import (
    AuthConfig,
    CORSConfig,
    LogfireConfig,
    Settings,
    UploadConfig,
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove variables the test session sets so defaults are visible."""
    for name in ["DATABASE_URL", "SESSION_SECRET", "SCHOOLADMIN_LOG_LEVEL", "LOGFIRE_ENABLED"]:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettingsDefaults:
    def test_defaults(self, clean_env):
        settings = Settings(_env_file=None)

        assert settings.server_host == "0.0.0.0"
        assert settings.server_port == 8000
        assert settings.log_level == "INFO"
        assert settings.database_url == "sqlite+aiosqlite:///./schooladmin.db"
        assert settings.database_auto_create is True
        assert settings.session_max_age == 86400
        assert (settings.upload_max_size_mb, settings.upload_admin_max_size_mb) == (10, 500)
        assert settings.logfire_enabled is False


class TestSettingsBinding:
    """Test Settings model environment variable binding."""

    def test_server_binding(self, clean_env):
        clean_env.setenv("SCHOOLADMIN_SERVER_HOST", "127.0.0.1")
        clean_env.setenv("SCHOOLADMIN_SERVER_PORT", "9000")

        settings = Settings(_env_file=None)

        assert settings.server_host == "127.0.0.1"
        assert settings.server_port == 9000

    def test_log_level_binding(self, clean_env):
        clean_env.setenv("SCHOOLADMIN_LOG_LEVEL", "DEBUG")
        assert Settings(_env_file=None).log_level == "DEBUG"

    def test_database_binding(self, clean_env):
        clean_env.setenv("DATABASE_URL", "postgresql://school:secret@db:5432/school")
        clean_env.setenv("DATABASE_AUTO_CREATE", "false")

        settings = Settings(_env_file=None)

        assert settings.database_url == "postgresql://school:secret@db:5432/school"
        assert settings.database_auto_create is False

    def test_cors_origins_binding(self, clean_env):
        clean_env.setenv("CORS_ORIGINS", '["https://school.example"]')
        assert Settings(_env_file=None).cors.origins == ["https://school.example"]

    def test_invalid_port(self, clean_env):
        clean_env.setenv("SCHOOLADMIN_SERVER_PORT", "not-a-port")
        with pytest.raises(ValueError):
            Settings(_env_file=None)


class TestGroupedConfigs:
    def test_auth(self, clean_env):
        clean_env.setenv("SESSION_SECRET", "s3cret")
        clean_env.setenv("SESSION_MAX_AGE", "60")

        auth = Settings(_env_file=None).auth

        assert isinstance(auth, AuthConfig)
        assert (auth.session_secret, auth.session_max_age) == ("s3cret", 60)

    def test_upload(self, clean_env):
        clean_env.setenv("UPLOAD_MAX_SIZE_MB", "5")

        upload = Settings(_env_file=None).upload

        assert isinstance(upload, UploadConfig)
        assert (upload.max_size_mb, upload.admin_max_size_mb) == (5, 500)

    def test_cors(self, clean_env):
        cors = Settings(_env_file=None).cors
        assert isinstance(cors, CORSConfig)
        assert cors.allow_methods == ["*"]
        assert cors.allow_credentials is True

    def test_logfire(self, clean_env):
        clean_env.setenv("LOGFIRE_ENABLED", "true")
        clean_env.setenv("LOGFIRE_TOKEN", "token")

        logfire = Settings(_env_file=None).logfire

        assert isinstance(logfire, LogfireConfig)
        assert logfire.enabled is True
        assert logfire.token == "token"
        assert logfire.service_name == "schooladmin-server"

    def test_grouped_models_accept_field_names(self):
        assert UploadConfig(max_size_mb=1).max_size_mb == 1
        assert AuthConfig(session_secret="x").session_secret == "x"
