"""
Centralized configuration for the Library Circulation Service.

- Pure Python (dataclasses + stdlib), no Pydantic.
- Loads from OS env; a repo-root .env file is parsed with python-dotenv when present.
- Strong typing & validation in __post_init__.
- Immutable singleton via functools.lru_cache.
- Secrets never logged (masked).
"""

from __future__ import annotations

import functools
import logging
import os
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Literal, Optional, cast
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


# ------------------------------------------------------------------------------
# Optional .env loader
# ------------------------------------------------------------------------------
def _maybe_load_dotenv(env_path: Path) -> None:
    if env_path.exists():
        from dotenv import load_dotenv

        load_dotenv(dotenv_path=str(env_path), override=False)


# ------------------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------------------
def _mask_secret(value: Optional[str]) -> str:
    if not value:
        return "<unset>"
    if len(value) <= 8:
        return "***"
    return value[:2] + "…" + value[-2:]


def _get_env_str(key: str, default: Optional[str] = None, required: bool = False) -> Optional[str]:
    v = os.getenv(key, default)
    if required and (v is None or str(v).strip() == ""):
        raise ValueError(f"Missing required env var: {key}")
    return v


def _get_env_bool(key: str, default: bool = False) -> bool:
    v = os.getenv(key)
    if v is None:
        return default
    v = v.strip().lower()
    return v in {"1", "true", "t", "yes", "y", "on"}


def _get_env_int(key: str, default: int) -> int:
    v = os.getenv(key)
    if v is None or v.strip() == "":
        return default
    try:
        return int(v)
    except ValueError:
        raise ValueError(f"Env var {key} must be an integer")


def _get_env_decimal(key: str, default: str) -> Decimal:
    v = os.getenv(key)
    if v is None or v.strip() == "":
        v = default
    try:
        return Decimal(v.strip())
    except InvalidOperation:
        raise ValueError(f"Env var {key} must be a decimal number")


def _validate_choice(value: str, *, choices: tuple[str, ...], key: str) -> str:
    if value not in choices:
        raise ValueError(f"{key} must be one of {choices}, got {value!r}")
    return value


def _validate_database_url(value: str, *, key: str) -> str:
    allowed = ("postgresql+asyncpg://", "sqlite+aiosqlite://")
    if not value.startswith(allowed):
        raise ValueError(f"{key} must start with one of {allowed}")
    return value


# ------------------------------------------------------------------------------
# Settings dataclass (immutable)
# ------------------------------------------------------------------------------
EnvName = Literal["local", "dev", "staging", "prod"]
JwtAlg = Literal["HS256", "HS384", "HS512"]
EmailBackend = Literal["smtp", "console"]


@dataclass(frozen=True)
class Settings:
    # Environment
    environment: EnvName = "local"
    debug: bool = False
    is_testing: bool = False

    # Database pooling
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Core services
    database_url: str = field(default="")
    secret_key: str = field(default="")
    jwt_algorithm: JwtAlg = "HS256"
    access_token_exp_minutes: int = 60 * 12

    # Circulation policy
    library_timezone: str = "Asia/Manila"
    loan_period_days: int = 7
    fine_per_day: Decimal = Decimal("10")
    fine_currency: str = "₱"

    # Overdue sweep schedule
    overdue_sweep_enabled: bool = True
    overdue_sweep_hour: int = 9
    overdue_sweep_minute: int = 0
    overdue_sweep_hourly: bool = False

    # Email / notifications
    email_backend: EmailBackend = "console"
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True
    email_from_name: str = "Library System"

    # Observability
    log_level: str = "INFO"
    log_format: Optional[str] = None

    # Paths
    base_dir: Path = field(default_factory=lambda: Path(__file__).resolve().parent.parent.parent)

    # Derived/computed flags (filled in __post_init__)
    is_prod: bool = field(init=False)
    is_staging: bool = field(init=False)
    is_dev: bool = field(init=False)
    is_local: bool = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "environment",
            _validate_choice(self.environment, choices=("local", "dev", "staging", "prod"), key="ENVIRONMENT"),
        )
        object.__setattr__(
            self, "jwt_algorithm",
            _validate_choice(self.jwt_algorithm, choices=("HS256", "HS384", "HS512"), key="JWT_ALGORITHM"),
        )
        object.__setattr__(
            self, "email_backend",
            _validate_choice(self.email_backend, choices=("smtp", "console"), key="EMAIL_BACKEND"),
        )
        object.__setattr__(self, "database_url", _validate_database_url(self.database_url, key="DATABASE_URL"))

        if not self.secret_key or not self.secret_key.strip():
            raise ValueError("SECRET_KEY must be set and non-empty")
        if self.access_token_exp_minutes <= 0:
            raise ValueError("ACCESS_TOKEN_EXP_MINUTES must be > 0")

        try:
            ZoneInfo(self.library_timezone)
        except ZoneInfoNotFoundError:
            raise ValueError(f"LIBRARY_TIMEZONE is not a known timezone: {self.library_timezone!r}")

        if self.loan_period_days <= 0:
            raise ValueError("LOAN_PERIOD_DAYS must be > 0")
        if self.fine_per_day < 0:
            raise ValueError("FINE_PER_DAY must be >= 0")
        if not 0 <= self.overdue_sweep_hour <= 23:
            raise ValueError("OVERDUE_SWEEP_HOUR must be within 0..23")
        if not 0 <= self.overdue_sweep_minute <= 59:
            raise ValueError("OVERDUE_SWEEP_MINUTE must be within 0..59")

        # SMTP backend needs a host and a sender account
        if self.email_backend == "smtp" and not (self.smtp_host and self.smtp_user):
            raise ValueError("EMAIL_BACKEND=smtp requires SMTP_HOST and SMTP_USER")

        if not re.fullmatch(r"(?i)DEBUG|INFO|WARNING|ERROR|CRITICAL", self.log_level.strip()):
            raise ValueError("LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")
        if self.log_format is not None and self.log_format not in ("json", "console"):
            raise ValueError("LOG_FORMAT must be 'json' or 'console'")

        env = self.environment
        object.__setattr__(self, "is_prod", env == "prod")
        object.__setattr__(self, "is_staging", env == "staging")
        object.__setattr__(self, "is_dev", env == "dev")
        object.__setattr__(self, "is_local", env == "local")

    @property
    def is_production(self) -> bool:
        return self.is_prod

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.library_timezone)

    # Safe dict (for debug prints without secrets)
    def safe_dict(self) -> dict:
        return {
            "environment": self.environment,
            "debug": self.debug,
            "is_testing": self.is_testing,
            "database_url": "<masked>" if self.database_url else "<unset>",
            "secret_key": _mask_secret(self.secret_key),
            "jwt_algorithm": self.jwt_algorithm,
            "access_token_exp_minutes": self.access_token_exp_minutes,
            "library_timezone": self.library_timezone,
            "loan_period_days": self.loan_period_days,
            "fine_per_day": str(self.fine_per_day),
            "overdue_sweep_enabled": self.overdue_sweep_enabled,
            "overdue_sweep_time": f"{self.overdue_sweep_hour:02d}:{self.overdue_sweep_minute:02d}",
            "overdue_sweep_hourly": self.overdue_sweep_hourly,
            "email_backend": self.email_backend,
            "smtp_host": self.smtp_host or "<unset>",
            "smtp_user": self.smtp_user or "<unset>",
            "smtp_password": _mask_secret(self.smtp_password),
            "log_level": self.log_level,
            "database_pool_size": self.database_pool_size,
            "database_max_overflow": self.database_max_overflow,
            "base_dir": str(self.base_dir),
        }


# ------------------------------------------------------------------------------
# Loader (singleton)
# ------------------------------------------------------------------------------
_logger = logging.getLogger(__name__)


def load_settings() -> Settings:
    """Build Settings from the current process environment."""
    environment = cast(EnvName, _get_env_str("ENVIRONMENT", "local") or "local")
    # Hourly sweeps are a pre-production convenience
    hourly_default = environment in ("local", "dev")

    return Settings(
        environment=environment,
        debug=_get_env_bool("DEBUG", False),
        is_testing=_get_env_bool("IS_TESTING", False),
        database_url=_get_env_str("DATABASE_URL", required=True) or "",
        secret_key=_get_env_str("SECRET_KEY", required=True) or "",
        jwt_algorithm=cast(JwtAlg, _get_env_str("JWT_ALGORITHM", "HS256") or "HS256"),
        access_token_exp_minutes=_get_env_int("ACCESS_TOKEN_EXP_MINUTES", 60 * 12),
        library_timezone=_get_env_str("LIBRARY_TIMEZONE", "Asia/Manila") or "Asia/Manila",
        loan_period_days=_get_env_int("LOAN_PERIOD_DAYS", 7),
        fine_per_day=_get_env_decimal("FINE_PER_DAY", "10"),
        fine_currency=_get_env_str("FINE_CURRENCY", "₱") or "₱",
        overdue_sweep_enabled=_get_env_bool("OVERDUE_SWEEP_ENABLED", True),
        overdue_sweep_hour=_get_env_int("OVERDUE_SWEEP_HOUR", 9),
        overdue_sweep_minute=_get_env_int("OVERDUE_SWEEP_MINUTE", 0),
        overdue_sweep_hourly=_get_env_bool("OVERDUE_SWEEP_HOURLY", hourly_default),
        email_backend=cast(EmailBackend, _get_env_str("EMAIL_BACKEND", "console") or "console"),
        smtp_host=_get_env_str("SMTP_HOST", None),
        smtp_port=_get_env_int("SMTP_PORT", 587),
        smtp_user=_get_env_str("SMTP_USER", None),
        smtp_password=_get_env_str("SMTP_PASSWORD", None),
        smtp_use_tls=_get_env_bool("SMTP_USE_TLS", True),
        email_from_name=_get_env_str("EMAIL_FROM_NAME", "Library System") or "Library System",
        log_level=_get_env_str("LOG_LEVEL", "INFO") or "INFO",
        log_format=_get_env_str("LOG_FORMAT", None),
        database_pool_size=_get_env_int("DATABASE_POOL_SIZE", 5),
        database_max_overflow=_get_env_int("DATABASE_MAX_OVERFLOW", 10),
    )


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Attempt to load .env from repo root
    env_file = Path(__file__).resolve().parent.parent.parent / ".env"
    _maybe_load_dotenv(env_file)

    settings = load_settings()
    _logger.info("Settings loaded", extra={"settings": settings.safe_dict()})
    return settings
