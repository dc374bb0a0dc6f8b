"""Application settings.

Settings are read from the environment exactly once, at process start, and
handed to the services that need them. Nothing else in the package reads
environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

DEV_SECRET_KEY = "dev-secret-change-in-production"  # pragma: allowlist secret


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: list[str]) -> list[str]:
    value = os.getenv(name)
    if not value:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    """Application settings.

    Attributes:
        environment: "development", "test" or "production".
        database_url: PostgreSQL DSN for the application store.
        store_backend: "postgres" or "memory".
        jwt_secret_key: HMAC secret for session tokens.
        jwt_algorithm: JWT signing algorithm.
        token_ttl_seconds: Session token lifetime.
        bcrypt_rounds: bcrypt cost factor, never below 10.
        cors_origins: Allowed CORS origins.
        log_level: Root log level name.
        log_json: Render logs as JSON instead of console output.
        demo_mode: Seed a super admin and a demo tenant on startup.
        host: Interface the HTTP server binds to.
        port: Port the HTTP server listens on.
    """

    environment: str = "development"
    database_url: str = "postgresql://localhost:5432/taskhive"
    store_backend: str = "postgres"
    jwt_secret_key: str = DEV_SECRET_KEY
    jwt_algorithm: str = "HS256"
    token_ttl_seconds: int = 86400
    bcrypt_rounds: int = 12
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])
    log_level: str = "INFO"
    log_json: bool = False
    demo_mode: bool = False
    host: str = "127.0.0.1"
    port: int = 8000

    def __post_init__(self) -> None:
        """Validate cross-field constraints."""
        if self.bcrypt_rounds < 10:
            raise ValueError("BCRYPT_ROUNDS must be at least 10")
        if self.token_ttl_seconds <= 0:
            raise ValueError("TASKHIVE_TOKEN_TTL_SECONDS must be positive")
        if self.store_backend not in {"postgres", "memory"}:
            raise ValueError(f"Unknown TASKHIVE_STORE: {self.store_backend}")
        if self.environment == "production" and self.jwt_secret_key == DEV_SECRET_KEY:
            raise ValueError("JWT_SECRET_KEY must be set in production")

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        return cls(
            environment=os.getenv("TASKHIVE_ENV", "development"),
            database_url=os.getenv("DATABASE_URL", "postgresql://localhost:5432/taskhive"),
            store_backend=os.getenv("TASKHIVE_STORE", "postgres"),
            jwt_secret_key=os.getenv("JWT_SECRET_KEY", DEV_SECRET_KEY),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            token_ttl_seconds=int(os.getenv("TASKHIVE_TOKEN_TTL_SECONDS", "86400")),
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", "12")),
            cors_origins=_env_list("CORS_ORIGINS", ["http://localhost:3000"]),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_json=_env_bool("LOG_JSON"),
            demo_mode=_env_bool("TASKHIVE_DEMO_MODE"),
            host=os.getenv("HOST", "127.0.0.1"),
            port=int(os.getenv("PORT", "8000")),
        )
