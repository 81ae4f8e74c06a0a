"""
Configuration management using Pydantic Settings.
"""
from typing import Literal
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )

    # Application Configuration
    app_name: str = Field(default="usage-analytics", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_port: int = Field(default=8000, alias="APP_PORT")
    app_env: Literal["development", "production", "testing"] = Field(
        default="development", alias="APP_ENV"
    )
    app_debug: bool = Field(default=False, alias="APP_DEBUG")

    # Database Configuration
    database_type: Literal["sqlite", "postgresql"] = Field(default="sqlite", alias="DATABASE_TYPE")
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/usage_analytics.db",
        alias="DATABASE_URL"
    )
    database_create_tables: bool = Field(default=False, alias="DATABASE_CREATE_TABLES")

    # Logging Configuration
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file: str = Field(default="./logs/app.log", alias="LOG_FILE")
    log_format: Literal["json", "text"] = Field(default="json", alias="LOG_FORMAT")

    # Analytics Configuration
    chat_endpoint: str = Field(default="POST /v1/chat/completions", alias="CHAT_ENDPOINT")
    default_page_size: int = Field(default=30, alias="DEFAULT_PAGE_SIZE")
    max_page_size: int = Field(default=100, alias="MAX_PAGE_SIZE")

    # CORS Configuration
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env == "development"

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # Convenience properties matching main.py usage
    @property
    def host(self) -> str:
        """Get host address."""
        return self.app_host

    @property
    def port(self) -> int:
        """Get port number."""
        return self.app_port

    @property
    def debug(self) -> bool:
        """Get debug mode."""
        return self.app_debug

    @property
    def environment(self) -> str:
        """Get environment."""
        return self.app_env


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """
    Get settings instance.

    Returns:
        Settings instance
    """
    return settings
