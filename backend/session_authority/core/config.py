# session_authority/core/config.py
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from urllib.parse import quote_plus

from dotenv import load_dotenv


def str_to_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def parse_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]


def merge_unique(items: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for v in items:
        if v in seen:
            continue
        seen.add(v)
        out.append(v)
    return out


_DURATION_RE = re.compile(r"^(\d+)\s*([smhd]?)$")
_DURATION_UNITS = {
    "": "seconds",
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
}


def parse_duration(value: str | int) -> timedelta:
    """
    Parse a TTL such as "15m", "7d", "12h", "30s" or a bare number of seconds.
    """
    if isinstance(value, int):
        raw = str(value)
    else:
        raw = (value or "").strip().lower()

    match = _DURATION_RE.match(raw)
    if not match:
        raise ValueError(f"Invalid duration {value!r}. Expected e.g. '15m', '7d', '3600'.")

    amount = int(match.group(1))
    if amount <= 0:
        raise ValueError(f"Duration must be positive, got {value!r}")
    return timedelta(**{_DURATION_UNITS[match.group(2)]: amount})


@dataclass(frozen=True)
class AuthConfig:
    """
    Immutable token settings handed to the signer and the session authority
    at construction time.
    """

    signing_secret: str
    access_token_ttl: timedelta
    refresh_token_ttl: timedelta
    algorithm: str = "HS256"

    def __post_init__(self) -> None:
        if not self.signing_secret or not self.signing_secret.strip():
            raise ValueError("signing_secret must be set (auth is required).")
        if self.access_token_ttl <= timedelta(0):
            raise ValueError("access_token_ttl must be positive")
        if self.refresh_token_ttl <= timedelta(0):
            raise ValueError("refresh_token_ttl must be positive")


class Settings:
    def __init__(self) -> None:
        self.ENV = os.getenv("ENV", "dev").strip().lower()  # dev | prod
        if self.ENV != "prod":
            # Load .env only for non-prod so prod can't be accidentally influenced by local files.
            load_dotenv()

        # ----------------------------
        # Database
        # ----------------------------
        self.DATABASE_URL = os.getenv("DATABASE_URL", "").strip()
        self.DB_HOST = os.getenv("DB_HOST", "")
        self.DB_PORT = os.getenv("DB_PORT", "5432")
        self.DB_NAME = os.getenv("DB_NAME", "")
        self.DB_USER = os.getenv("DB_USER", "")
        self.DB_PASSWORD = os.getenv("DB_PASSWORD", "")
        self.DB_SSLMODE = os.getenv("DB_SSLMODE", "require").strip().lower()

        # ----------------------------
        # CORS
        # ----------------------------
        dev_defaults = [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]

        cors_from_env = parse_csv(os.getenv("CORS_ORIGINS"))
        if self.ENV == "prod":
            self.CORS_ORIGINS = merge_unique(cors_from_env)
        else:
            self.CORS_ORIGINS = merge_unique(cors_from_env + dev_defaults)

        # ----------------------------
        # Auth / JWT
        # ----------------------------
        self.JWT_SECRET = os.getenv("JWT_SECRET", "")
        self.JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
        self.ACCESS_TOKEN_TTL = os.getenv("ACCESS_TOKEN_TTL", "15m")
        self.REFRESH_TOKEN_TTL = os.getenv("REFRESH_TOKEN_TTL", "7d")

        self.REFRESH_COOKIE_NAME = os.getenv("REFRESH_COOKIE_NAME", "refresh_token")
        self.REFRESH_COOKIE_SAMESITE = os.getenv("REFRESH_COOKIE_SAMESITE", "lax")
        self.REFRESH_COOKIE_PATH = os.getenv("REFRESH_COOKIE_PATH", "/auth")

        # ----------------------------
        # Background cleanup
        # ----------------------------
        self.CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "").strip()
        self.REFRESH_TOKEN_CLEANUP_INTERVAL_SECONDS = int(
            os.getenv("REFRESH_TOKEN_CLEANUP_INTERVAL_SECONDS", "3600")
        )

        # Fail fast on malformed TTLs rather than at first login.
        parse_duration(self.ACCESS_TOKEN_TTL)
        parse_duration(self.REFRESH_TOKEN_TTL)

        self._validate_prod()

    def _validate_prod(self) -> None:
        if self.ENV != "prod":
            return

        missing: list[str] = []

        if not self.JWT_SECRET:
            missing.append("JWT_SECRET")
        if not self.DATABASE_URL:
            if not self.DB_HOST:
                missing.append("DB_HOST")
            if not self.DB_NAME:
                missing.append("DB_NAME")
            if not self.DB_USER:
                missing.append("DB_USER")
            if not self.DB_PASSWORD:
                missing.append("DB_PASSWORD")
        if not self.CORS_ORIGINS:
            missing.append("CORS_ORIGINS")

        if missing:
            raise RuntimeError(f"Missing required prod env vars: {', '.join(missing)}")

        cors_joined = ",".join(self.CORS_ORIGINS)
        if "localhost" in cors_joined or "127.0.0.1" in cors_joined:
            raise RuntimeError("CORS_ORIGINS contains localhost/dev origins in prod")

    @property
    def is_prod(self) -> bool:
        return self.ENV == "prod"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        if not self.DB_HOST:
            # Local dev without Postgres.
            return "sqlite:///./session_authority.db"
        encoded_password = quote_plus(self.DB_PASSWORD)
        return (
            f"postgresql+psycopg2://{self.DB_USER}:{encoded_password}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
            f"?sslmode={self.DB_SSLMODE}"
        )

    def auth_config(self) -> AuthConfig:
        return AuthConfig(
            signing_secret=self.JWT_SECRET,
            algorithm=self.JWT_ALGORITHM,
            access_token_ttl=parse_duration(self.ACCESS_TOKEN_TTL),
            refresh_token_ttl=parse_duration(self.REFRESH_TOKEN_TTL),
        )


settings = Settings()


def require_jwt_secret() -> None:
    if not settings.JWT_SECRET:
        raise RuntimeError("JWT_SECRET must be set")


@lru_cache(maxsize=1)
def get_auth_config() -> AuthConfig:
    """
    Signing config for the running process, built from settings once on first
    use. Later edits to ``settings`` are not picked up.
    """
    require_jwt_secret()
    return settings.auth_config()
