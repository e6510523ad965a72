# cinetrack/core/config.py
from __future__ import annotations

"""
# CineTrack — Centralized Configuration (Pydantic v2)

Single `settings` object with strongly-typed, environment-driven config.

## Goals
- Safe defaults for local/dev; explicit where prod needs secrets.
- URL normalization so callers can compose paths without double slashes.
- Optional external systems (Google OAuth, TMDB) so imports never crash in dev.

## Usage
    from cinetrack.core.config import settings

The application factory also accepts an explicit `Settings` instance, which is
how tests point the store at a temporary directory.
"""

import logging
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

log = logging.getLogger(__name__)
load_dotenv()  # harmless in prod; convenient in dev

DEFAULT_SESSION_SECRET = "replace-me-in-env"


# ─────────────────────────────────────────────────────────────
# Small helpers
# ─────────────────────────────────────────────────────────────
def _normalize_url_like(v: str | None, *, require_scheme: bool = True) -> str:
    """Normalize to a string URL without trailing slash."""
    s = (v or "").strip()
    if not s:
        return ""
    if require_scheme and not (s.startswith("http://") or s.startswith("https://")):
        s = "https://" + s
    return s.rstrip("/")


# ─────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────
class Settings(BaseSettings):
    """
    Global application settings sourced from environment.

    Security:
        - `SESSION_SECRET` signs the session cookie; the default is only
          acceptable in development.
        - Google OAuth is enabled only when both client id and secret are set.

    Catalog:
        - TMDB access prefers `TMDB_API_KEY` (query param) and falls back to
          `TMDB_READ_ACCESS_TOKEN` (bearer). With neither, the app serves
          bundled sample data.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # don't crash on unknown keys
    )

    # ── App meta ──────────────────────────────────────────────
    PROJECT_NAME: str = "CineTrack API"
    VERSION: str = "1.0.0"
    ENV: Literal["development", "staging", "production", "test"] = "development"
    ENABLE_DOCS: bool = True
    PORT: int = Field(4000, ge=1, le=65535)

    # ── Origins ───────────────────────────────────────────────
    FRONTEND_URL: str = "http://localhost:5173"
    PUBLIC_BASE_URL: str = "http://localhost:4000"

    # ── Session cookie ────────────────────────────────────────
    SESSION_SECRET: SecretStr = SecretStr(DEFAULT_SESSION_SECRET)
    SESSION_COOKIE_NAME: str = "cinetrack.sid"
    SESSION_MAX_AGE_SECONDS: int = Field(60 * 60 * 24 * 7, ge=60)
    SESSION_COOKIE_SECURE: bool = False

    # ── Google OAuth ──────────────────────────────────────────
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: SecretStr = SecretStr("")
    GOOGLE_CALLBACK_URL: Optional[str] = None

    # ── Persistence ───────────────────────────────────────────
    DATA_DIR: Path = Path("data")
    STORE_FILENAME: str = "store.json"

    # ── Catalog (TMDB) ────────────────────────────────────────
    TMDB_API_KEY: str = ""
    TMDB_READ_ACCESS_TOKEN: SecretStr = SecretStr("")
    TMDB_BASE_URL: str = "https://api.themoviedb.org/3"
    TMDB_IMAGE_URL: str = "https://image.tmdb.org/t/p/w500"
    CATALOG_TIMEOUT_SECONDS: float = Field(10.0, gt=0, le=120)
    CATALOG_CACHE_TTL_SECONDS: int = Field(120, ge=0, le=24 * 60 * 60)

    # ── Rate limiting (off unless explicitly enabled) ─────────
    RATE_LIMIT_ENABLED: bool = False
    DEFAULT_RATE_LIMIT: str = "100/minute"
    RATELIMIT_STORAGE_URI: str = "memory://"

    # ── Logging ───────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False
    LOG_TO_FILE: bool = False
    LOG_DIR: Path = Path("logs")
    LOG_FILE: str = "cinetrack.log"
    LOG_ROTATION: str = "10 MB"

    # ── Validators / normalizers ──────────────────────────────
    @field_validator("FRONTEND_URL", "PUBLIC_BASE_URL", "TMDB_BASE_URL", mode="before")
    @classmethod
    def _normalize_base_urls(cls, v) -> str:
        return _normalize_url_like(str(v or ""), require_scheme=False)

    @field_validator("GOOGLE_CALLBACK_URL", mode="before")
    @classmethod
    def _blank_callback_is_none(cls, v):
        s = (v or "").strip() if isinstance(v, str) else v
        return s or None

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _upper_level(cls, v) -> str:
        return str(v or "INFO").strip().upper()

    # ── Derived / convenience properties ─────────────────────
    @property
    def is_development(self) -> bool:
        return self.ENV in ("development", "test")

    @property
    def store_path(self) -> Path:
        """Absolute-or-relative path of the JSON store document."""
        return Path(self.DATA_DIR) / self.STORE_FILENAME

    @property
    def google_oauth_configured(self) -> bool:
        return bool(self.GOOGLE_CLIENT_ID and self.GOOGLE_CLIENT_SECRET.get_secret_value())

    @property
    def google_callback_url(self) -> str:
        """Configured callback or `<PUBLIC_BASE_URL>/auth/google/callback`."""
        return self.GOOGLE_CALLBACK_URL or f"{self.PUBLIC_BASE_URL}/auth/google/callback"

    @property
    def catalog_configured(self) -> bool:
        return bool(self.TMDB_API_KEY or self.TMDB_READ_ACCESS_TOKEN.get_secret_value())

    @property
    def uses_default_session_secret(self) -> bool:
        return self.SESSION_SECRET.get_secret_value() == DEFAULT_SESSION_SECRET


# Singleton instance
settings = Settings()
