"""
BloodDrive - Configuration Management
=====================================
Centralized configuration with environment variable support.

Usage:
    from blooddrive.config import settings

    url = settings.supabase_url
    cooldown = settings.donation_cooldown_days
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Application settings with environment variable overrides."""

    # Hosted backend
    supabase_url: str = "http://localhost:54321"
    points_function_name: str = "points-validator"

    # Donation rules
    donation_cooldown_days: int = 56
    validation_code_length: int = 4
    points_per_donation: int = 10

    # Listing
    history_page_size: int = 10
    recent_donations_limit: int = 5

    # Session cookies
    access_cookie_name: str = "bd-access-token"
    refresh_cookie_name: str = "bd-refresh-token"
    cookie_secure: bool = True
    cookie_max_age: int = 60 * 60 * 24 * 7  # 7 days

    # Public site (email redirect target)
    site_base_url: str = "http://localhost:3000"

    # CORS configuration
    # Example: CORS_ALLOW_ORIGINS="https://donar.example.org,https://admin.example.org"
    cors_allow_origins: set[str] = field(
        default_factory=lambda: {
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        }
    )
    cors_max_age: int = 600  # 10 minutes

    debug_mode: bool = False

    def __post_init__(self):
        """Load overrides from environment variables."""
        self._load_env_overrides()

    def _load_env_overrides(self):
        """Load configuration from environment variables."""
        if url := os.environ.get("SUPABASE_URL") or os.environ.get("NEXT_PUBLIC_SUPABASE_URL"):
            self.supabase_url = url.rstrip("/")
        if fn := os.environ.get("POINTS_FUNCTION_NAME"):
            self.points_function_name = fn

        if cooldown := os.environ.get("DONATION_COOLDOWN_DAYS"):
            self.donation_cooldown_days = int(cooldown)
        if code_length := os.environ.get("VALIDATION_CODE_LENGTH"):
            # Codes are typed by hand at the venue; keep them between 4 and 8 characters.
            self.validation_code_length = max(4, min(int(code_length), 8))
        if points := os.environ.get("POINTS_PER_DONATION"):
            self.points_per_donation = int(points)

        if page_size := os.environ.get("HISTORY_PAGE_SIZE"):
            self.history_page_size = max(1, int(page_size))

        if os.environ.get("COOKIE_SECURE", "").lower() in ("0", "false", "no"):
            self.cookie_secure = False

        if base_url := os.environ.get("SITE_BASE_URL"):
            self.site_base_url = base_url.rstrip("/")

        if cors_origins := os.environ.get("CORS_ALLOW_ORIGINS", "").strip():
            if cors_origins == "*":
                logger.warning(
                    "CORS_ALLOW_ORIGINS set to '*' - allowing all origins. " "This should only be used in development."
                )
                self.cors_allow_origins = {"*"}
            else:
                self.cors_allow_origins = {origin.strip() for origin in cors_origins.split(",") if origin.strip()}
        if cors_max_age := os.environ.get("CORS_MAX_AGE"):
            self.cors_max_age = int(cors_max_age)

        if os.environ.get("DEBUG", "").lower() in ("1", "true"):
            self.debug_mode = True

    @property
    def supabase_anon_key(self) -> str | None:
        """Get the Supabase anon key from environment (never stored in config)."""
        return os.environ.get("SUPABASE_ANON_KEY") or os.environ.get("NEXT_PUBLIC_SUPABASE_ANON_KEY")

    @property
    def mapbox_key(self) -> str | None:
        """Get the map-tile provider key from environment (never stored in config)."""
        return os.environ.get("MAPBOX_KEY") or os.environ.get("NEXT_PUBLIC_MAPBOX_KEY")

    @property
    def email_redirect_url(self) -> str:
        return f"{self.site_base_url}/auth/callback"


# Singleton instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
        if _settings.debug_mode:
            logger.info("Settings loaded with debug mode enabled")
    return _settings


# Convenience alias
settings = get_settings()


CAMPAIGN_TYPES = frozenset(
    {
        "Jornada",
        "Emergencia",
        "Regular",
    }
)

BLOOD_TYPES = ("O+", "O-", "A+", "A-", "B+", "B-", "AB+", "AB-")

DONATION_COMPONENTS = frozenset(
    {
        "Sangre total",
        "Plaquetas",
        "Plasma",
        "Glóbulos rojos",
        *BLOOD_TYPES,
    }
)

CAMPAIGN_STATUSES = frozenset({"active", "cancelled", "completed"})

LOCATION_STATUSES = frozenset({"active", "inactive"})

ROLE_ADMIN = "admin"
ROLE_USER = "user"
