"""Configuration via pydantic-settings with .env support."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class HelpScoutExporterSettings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_prefix="HELPSCOUT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API credentials
    api_key: str = ""
    base_url: str = "https://api.helpscout.net/v1/"

    # Output paths
    output_dir: Path = Path("output")

    # Timeouts
    connect_timeout_seconds: float = 10.0
    response_timeout_seconds: float = 60.0

    # Rate limiting & retry
    max_connect_retries: int = 3
    connect_retry_delay_seconds: float = 5.0
    rate_limit_fallback_seconds: float = 10.0

    # Logging
    log_level: str = "INFO"

    def ensure_directories(self) -> None:
        """Create the output directory if it doesn't exist."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
