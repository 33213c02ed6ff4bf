import sys
from typing import List, Optional

from pydantic import AnyHttpUrl, ValidationError, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str
    SECRET_KEY: str
    ENVIRONMENT: str = "development"

    # --- Auth ---
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # --- LLM ---
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_OUTLINE_MODEL: str = "gpt-4.1-mini"
    OPENAI_LESSON_MODEL: str = "gpt-4.1-nano"

    # --- Billing ---
    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_PRICE_ID: Optional[str] = None
    STRIPE_WEBHOOK_SECRET: Optional[str] = None
    TRIAL_DURATION_DAYS: int = 7

    FRONTEND_BASE_URL: AnyHttpUrl = "http://localhost:3000"
    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Performance instrumentation
    SQLALCHEMY_SLOW_QUERY_THRESHOLD_MS: int = 300

    class Config:
        env_file = ".env"

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def _normalize_database_url(cls, value: str) -> str:
        """Upgrade legacy Postgres schemes to the asyncpg driver.

        Managed Postgres providers (Supabase included) still hand out
        ``postgres://`` URLs, which SQLAlchemy no longer understands. SQLite and
        URLs that already name a driver are returned untouched.
        """

        if not isinstance(value, str):
            return value

        if "+asyncpg" in value:
            return value

        replacements = {
            "postgres://": "postgresql+asyncpg://",
            "postgresql://": "postgresql+asyncpg://",
            "postgresql+psycopg2://": "postgresql+asyncpg://",
            "postgresql+psycopg://": "postgresql+asyncpg://",
        }

        for prefix, target in replacements.items():
            if value.startswith(prefix):
                return target + value[len(prefix) :]

        return value


def _log_settings_validation_error(exc: ValidationError) -> None:
    """Print each missing or invalid environment variable before re-raising."""

    print("Configuration error while loading environment variables:", file=sys.stderr)
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "Unknown validation error")
        type_name = error.get("type")
        hint = f"{message} (type={type_name})" if type_name else message
        print(f"  - {location}: {hint}", file=sys.stderr)


try:
    settings = Settings()
except ValidationError as exc:  # pragma: no cover - exercised at runtime
    _log_settings_validation_error(exc)
    raise
