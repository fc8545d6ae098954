"""Configuration management for toolbridge."""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from toolbridge import __version__


class Settings(BaseSettings):
    """Application settings."""

    # MCP Settings
    mcp_config_path: str | None = Field(default=None, alias="MCP_CONFIG_PATH")
    mcp_request_timeout: float = Field(
        default=120.0, gt=0, alias="MCP_REQUEST_TIMEOUT"
    )  # seconds, applied to every request including initialize
    mcp_max_read_attempts: int = Field(default=50, ge=1, alias="MCP_MAX_READ_ATTEMPTS")
    mcp_client_name: str = Field(default="toolbridge", alias="MCP_CLIENT_NAME")
    mcp_client_version: str = Field(default=__version__, alias="MCP_CLIENT_VERSION")

    # Logging Settings
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: str | None) -> str:
        """Normalize log level value from environment."""
        if value is None:
            return "INFO"
        normalized = str(value).strip().upper()
        if normalized in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            return normalized
        raise ValueError("LOG_LEVEL must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
