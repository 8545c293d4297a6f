"""
Configuration Settings.

This module defines the application configuration using Pydantic's BaseSettings.
It automatically loads all configuration from environment variables and .env file
without explicit dotenv loading.
"""

from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# =====================================================================
# Grouped Configuration Models
# =====================================================================


class AuthConfig(BaseModel):
    """Session token configuration."""

    session_secret: str = Field(
        default="change-me", alias="SESSION_SECRET", description="Secret key used to sign session tokens"
    )
    session_max_age: int = Field(
        default=86400, alias="SESSION_MAX_AGE", description="Session token lifetime in seconds"
    )
    admin_email: Optional[str] = Field(default=None, alias="ADMIN_EMAIL", description="Initial administrator email")
    admin_password: Optional[str] = Field(
        default=None, alias="ADMIN_PASSWORD", description="Initial administrator password"
    )

    model_config = {"populate_by_name": True}


class UploadConfig(BaseModel):
    """Excel upload limits."""

    max_size_mb: int = Field(
        default=10, alias="UPLOAD_MAX_SIZE_MB", description="Maximum upload size for regular users, in MB"
    )
    admin_max_size_mb: int = Field(
        default=500, alias="UPLOAD_ADMIN_MAX_SIZE_MB", description="Maximum upload size for administrators, in MB"
    )

    model_config = {"populate_by_name": True}


class CORSConfig(BaseModel):
    """CORS configuration."""

    origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS", description="Allowed CORS origins (use * for all)")
    allow_credentials: bool = Field(
        default=True, alias="CORS_ALLOW_CREDENTIALS", description="Allow credentials in CORS requests"
    )
    allow_methods: list[str] = Field(
        default=["*"], alias="CORS_ALLOW_METHODS", description="Allowed HTTP methods (use * for all)"
    )
    allow_headers: list[str] = Field(
        default=["*"], alias="CORS_ALLOW_HEADERS", description="Allowed HTTP headers (use * for all)"
    )

    model_config = {"populate_by_name": True}


class LogfireConfig(BaseModel):
    """Logfire monitoring configuration."""

    enabled: bool = Field(default=False, alias="LOGFIRE_ENABLED", description="Enable Logfire monitoring")
    token: Optional[str] = Field(default=None, alias="LOGFIRE_TOKEN", description="Logfire write token")
    service_name: str = Field(
        default="schooladmin-server", alias="LOGFIRE_SERVICE_NAME", description="Service name reported to Logfire"
    )
    environment: str = Field(
        default="development", alias="LOGFIRE_ENVIRONMENT", description="Deployment environment reported to Logfire"
    )
    trace_sqlalchemy: bool = Field(
        default=True, alias="LOGFIRE_TRACE_SQLALCHEMY", description="Instrument SQLAlchemy queries"
    )
    trace_fastapi: bool = Field(default=True, alias="LOGFIRE_TRACE_FASTAPI", description="Instrument FastAPI endpoints")

    model_config = {"populate_by_name": True}


# =====================================================================
# Main Settings Class
# =====================================================================


class Settings(BaseSettings):
    """
    Application settings model.

    All properties are automatically bound from environment variables and .env file.
    Pydantic's BaseSettings handles dotenv loading automatically via model_config.
    """

    # =====================================================================
    # Pydantic Configuration
    # =====================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        populate_by_name=True,
    )

    # =====================================================================
    # SchoolAdmin Server Configuration
    # =====================================================================
    server_host: str = Field(
        default="0.0.0.0",
        description="SchoolAdmin server host address to bind to",
        alias="SCHOOLADMIN_SERVER_HOST",
    )
    server_port: int = Field(
        default=8000,
        description="SchoolAdmin server port number",
        alias="SCHOOLADMIN_SERVER_PORT",
    )

    # =====================================================================
    # Logging Configuration
    # =====================================================================
    log_level: str = Field(
        default="INFO",
        description="SchoolAdmin server logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        alias="SCHOOLADMIN_LOG_LEVEL",
    )
    log_format: str = Field(
        default="detailed",
        description="Log line format (simple, detailed, json)",
        alias="LOG_FORMAT",
    )
    log_file_dir: str = Field(
        default="logs",
        description="Directory for the log file when file logging is enabled",
        alias="LOG_FILE_DIR",
    )
    enable_file_logging: bool = Field(
        default=False,
        description="Write logs to <LOG_FILE_DIR>/schooladmin.log",
        alias="ENABLE_FILE_LOGGING",
    )

    # =====================================================================
    # Database Configuration
    # =====================================================================
    database_url: str = Field(
        default="sqlite+aiosqlite:///./schooladmin.db",
        description="Async database connection URL (postgres URLs are rewritten to asyncpg)",
        alias="DATABASE_URL",
    )
    database_auto_create: bool = Field(
        default=True,
        description="Create missing tables on startup; disable when Alembic manages the schema",
        alias="DATABASE_AUTO_CREATE",
    )

    # =====================================================================
    # Authentication Configuration
    # =====================================================================
    session_secret: str = Field(
        default="change-me",
        description="Secret key used to sign session tokens",
        alias="SESSION_SECRET",
    )
    session_max_age: int = Field(
        default=86400,
        description="Session token lifetime in seconds",
        alias="SESSION_MAX_AGE",
    )
    admin_email: Optional[str] = Field(
        default=None,
        description="Email of the administrator created on startup when the database has no accounts",
        alias="ADMIN_EMAIL",
    )
    admin_password: Optional[str] = Field(
        default=None,
        description="Initial password of that administrator",
        alias="ADMIN_PASSWORD",
    )

    # =====================================================================
    # Upload Configuration
    # =====================================================================
    upload_max_size_mb: int = Field(
        default=10,
        description="Maximum upload size for regular users, in MB",
        alias="UPLOAD_MAX_SIZE_MB",
    )
    upload_admin_max_size_mb: int = Field(
        default=500,
        description="Maximum upload size for administrators, in MB",
        alias="UPLOAD_ADMIN_MAX_SIZE_MB",
    )

    # =====================================================================
    # CORS Configuration
    # =====================================================================
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(default=["*"], alias="CORS_ALLOW_METHODS")
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    # =====================================================================
    # Logfire Configuration
    # =====================================================================
    logfire_enabled: bool = Field(default=False, alias="LOGFIRE_ENABLED")
    logfire_token: Optional[str] = Field(default=None, alias="LOGFIRE_TOKEN")
    logfire_service_name: str = Field(default="schooladmin-server", alias="LOGFIRE_SERVICE_NAME")
    logfire_environment: str = Field(default="development", alias="LOGFIRE_ENVIRONMENT")
    logfire_trace_sqlalchemy: bool = Field(default=True, alias="LOGFIRE_TRACE_SQLALCHEMY")
    logfire_trace_fastapi: bool = Field(default=True, alias="LOGFIRE_TRACE_FASTAPI")

    # =====================================================================
    # Computed Properties (Grouped Configurations)
    # =====================================================================

    @property
    def auth(self) -> AuthConfig:
        """Get session token configuration from environment variables."""
        return AuthConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def upload(self) -> UploadConfig:
        """Get upload limits from environment variables."""
        return UploadConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def cors(self) -> CORSConfig:
        """Get CORS configuration from environment variables."""
        return CORSConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def logfire(self) -> LogfireConfig:
        """Get Logfire configuration from environment variables."""
        return LogfireConfig.model_validate(self.model_dump(by_alias=True))


settings = Settings()
