"""
Central configuration for the Game Day live scores service.
Uses pydantic-settings for env-based config with validation.
"""
from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ESPN_BASE = "https://site.api.espn.com/apis/site/v2/sports"


class Environment(str, Enum):
    DEV = "dev"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Root settings shared by the API and the headless poller."""

    model_config = SettingsConfigDict(
        env_prefix="GD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── General ──────────────────────────────────────────────
    environment: Environment = Environment.DEV
    debug: bool = False
    log_level: str = "INFO"

    # ── Feeds ────────────────────────────────────────────────
    college_scoreboard_url: str = f"{ESPN_BASE}/football/college-football/scoreboard"
    nfl_scoreboard_url: str = f"{ESPN_BASE}/football/nfl/scoreboard"
    rankings_url: str = f"{ESPN_BASE}/football/college-football/rankings"
    rankings_poll: str = Field(default="AP Top 25", description="Preferred poll; first poll listed is the fallback")
    ranking_cutoff: int = Field(default=25, ge=1, le=25)
    request_timeout_s: float = Field(default=10.0, gt=0)
    user_agent: str = "Mozilla/5.0 (compatible; FootballScoresApp/1.0)"

    # ── Refresh ──────────────────────────────────────────────
    refresh_interval_s: float = Field(default=60.0, description="Seconds between refresh cycles")
    logo_placeholder: str = "\U0001F3C8"

    # ── API ──────────────────────────────────────────────────
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: list[str] = ["*"]

    # ── Observability ────────────────────────────────────────
    metrics_enabled: bool = True
    metrics_port: int = 9090

    @field_validator("refresh_interval_s")
    @classmethod
    def check_refresh_interval(cls, v: float) -> float:
        if not 30.0 <= v <= 300.0:
            raise ValueError("refresh_interval_s must be between 30 and 300 seconds")
        return v

    @property
    def scoreboard_urls(self) -> dict[str, str]:
        return {"college": self.college_scoreboard_url, "nfl": self.nfl_scoreboard_url}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Singleton access to validated settings."""
    return Settings()
