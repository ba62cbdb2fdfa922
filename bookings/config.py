"""Booking back-office configuration via pydantic-settings."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings


class BookingsSettings(BaseSettings):
    environment: str = "development"
    database_url: str = "sqlite+aiosqlite:///bookings.db"
    echo_sql: bool = False
    app_title: str = "Booking Administration"
    log_level: str = "INFO"

    # Upper bound for each read against the store (seconds)
    store_timeout_seconds: float = 10.0
    default_service_slug: str = "wakala"

    admin_auth_required: bool = False
    admin_access_tokens: str = ""
    admin_token_header: str = "X-Admin-Token"

    tracker_result_limit: int = 20

    model_config = {"env_prefix": "BOOKINGS_", "env_file": ".env", "extra": "ignore"}

    @property
    def base_dir(self) -> Path:
        return Path(__file__).resolve().parent

    @property
    def templates_dir(self) -> Path:
        return self.base_dir / "templates"

    @property
    def admin_access_tokens_map(self) -> dict[str, str]:
        """Parse comma-separated email:token pairs into token -> email."""
        mapping: dict[str, str] = {}
        if not self.admin_access_tokens.strip():
            return mapping

        for item in self.admin_access_tokens.split(","):
            pair = item.strip()
            if not pair or ":" not in pair:
                continue
            email, token = pair.split(":", 1)
            email = email.strip().lower()
            token = token.strip()
            if email and token:
                mapping[token] = email
        return mapping

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in {"prod", "production"}

    def validate_runtime(self) -> None:
        """Refuse to start with settings that only make sense locally."""
        if self.is_production and self.database_url.startswith("sqlite"):
            raise RuntimeError(
                "BOOKINGS_DATABASE_URL must point at the production database, not SQLite"
            )
        if self.admin_auth_required and not self.admin_access_tokens_map:
            raise RuntimeError(
                "BOOKINGS_ADMIN_AUTH_REQUIRED is set but BOOKINGS_ADMIN_ACCESS_TOKENS is empty"
            )


settings = BookingsSettings()
