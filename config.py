"""Configuration management with environment variable support."""

import os
import secrets
from dataclasses import dataclass, field
from typing import Literal

from dotenv import load_dotenv

load_dotenv()


def _parse_cors_origins() -> list[str]:
    """Parse CORS_ORIGINS environment variable."""
    origins = os.getenv("CORS_ORIGINS", "http://localhost:8000")
    return [o.strip() for o in origins.split(",") if o.strip()]


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass(frozen=True)
class CORSConfig:
    """CORS configuration."""

    allowed_origins: list[str] = field(default_factory=_parse_cors_origins)
    allow_credentials: bool = True
    allow_methods: list[str] = field(default_factory=lambda: ["*"])
    allow_headers: list[str] = field(default_factory=lambda: ["*"])


@dataclass(frozen=True)
class RateLimitConfig:
    """Rate limiting configuration."""

    enabled: bool = field(default_factory=lambda: _env_flag("RATE_LIMIT_ENABLED", "true"))
    requests_per_minute: int = field(
        default_factory=lambda: int(os.getenv("RATE_LIMIT_RPM", "60"))
    )


@dataclass(frozen=True)
class SecurityConfig:
    """Security configuration."""

    secret_key: str = field(
        default_factory=lambda: os.getenv("SECRET_KEY", secrets.token_urlsafe(32))
    )
    # Mixed into every password hash, never stored in the database
    password_pepper: str = field(default_factory=lambda: os.getenv("PASSWORD_PEPPER", ""))


@dataclass(frozen=True)
class RedisConfig:
    """Redis connection configuration."""

    host: str = field(default_factory=lambda: os.getenv("REDIS_HOST", "localhost"))
    port: int = field(default_factory=lambda: int(os.getenv("REDIS_PORT", "6379")))
    db: int = field(default_factory=lambda: int(os.getenv("REDIS_DB", "0")))
    password: str | None = field(default_factory=lambda: os.getenv("REDIS_PASSWORD"))

    @property
    def url(self) -> str:
        """Build Redis connection URL."""
        auth = f":{self.password}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"


@dataclass(frozen=True)
class DatabaseConfig:
    """Relational database configuration."""

    url: str = field(
        default_factory=lambda: os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./aces.sqlite3")
    )
    echo: bool = field(default_factory=lambda: _env_flag("DATABASE_ECHO", "false"))


@dataclass(frozen=True)
class SessionConfig:
    """Login session configuration."""

    backend: Literal["auto", "redis", "memory"] = field(
        default_factory=lambda: os.getenv("SESSION_BACKEND", "auto")  # type: ignore[arg-type]
    )
    cookie_name: str = field(
        default_factory=lambda: os.getenv("SESSION_COOKIE_NAME", "aces_sid")
    )
    ttl: int = field(
        default_factory=lambda: int(os.getenv("SESSION_TTL", str(60 * 60 * 24 * 7)))
    )
    cookie_secure: bool = field(default_factory=lambda: _env_flag("SESSION_COOKIE_SECURE", "false"))


@dataclass(frozen=True)
class GameConfig:
    """Default game configuration."""

    hand_size: int = 5


@dataclass(frozen=True)
class AppConfig:
    """Application configuration."""

    debug: bool = field(default_factory=lambda: _env_flag("DEBUG", "false"))
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    redis: RedisConfig = field(default_factory=RedisConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    game: GameConfig = field(default_factory=GameConfig)
    cors: CORSConfig = field(default_factory=CORSConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)


# Global configuration instance
config = AppConfig()
