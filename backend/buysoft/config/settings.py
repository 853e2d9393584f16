"""BuySoft settings, read from the environment and an optional .env file."""

from functools import lru_cache
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BACKEND_DIR = Path(__file__).resolve().parents[2]

# Shipped as the fallback secret by earlier deployments; never accept it.
KNOWN_INSECURE_SECRETS = frozenset({"default-secret-key", "changeme", "secret"})

Environment = Literal["development", "staging", "production"]
SameSite = Literal["lax", "strict", "none"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _default_database_url() -> str:
    return f"sqlite:///{BACKEND_DIR / 'data' / 'buysoft.db'}"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server
    environment: Environment = "development"
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    log_level: LogLevel = "INFO"
    log_file: Optional[str] = None

    # Security
    # Required: signs captcha cookies. There is no default.
    secret_key: str = Field(..., min_length=16)
    cors_origins: str = "http://localhost:3000"
    max_request_bytes: int = Field(default=1024 * 1024, ge=1)
    upload_max_request_bytes: int = Field(default=6 * 1024 * 1024, ge=1)

    # Admin sessions
    session_cookie_name: str = "buysoft_session"
    session_ttl_seconds: int = Field(default=30 * 24 * 3600, ge=60)
    cookie_secure: bool = True
    cookie_samesite: SameSite = "lax"
    cookie_domain: str = ""
    csrf_header_name: str = "X-CSRF-Token"
    csrf_cookie_name: str = "buysoft_csrf"

    # Captcha
    captcha_cookie_name: str = "auth-captcha"
    captcha_ttl_seconds: int = Field(default=300, ge=1)
    captcha_length: int = Field(default=4, ge=1, le=12)

    # Login lockout
    login_max_attempts: int = Field(default=5, ge=1)
    login_attempt_window_seconds: int = Field(default=300, ge=1)
    login_lockout_seconds: int = Field(default=3600, ge=1)

    # Database
    database_url: str = Field(default_factory=_default_database_url)

    # Image host (SM.MS)
    smms_token: str = ""
    smms_api_url: str = "https://sm.ms/api/v2"
    smms_timeout_seconds: int = Field(default=30, ge=1)
    upload_max_file_bytes: int = Field(default=5 * 1024 * 1024, ge=1)

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @field_validator("environment", "cookie_samesite", mode="before")
    @classmethod
    def lower_choice(cls, v: object) -> object:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: object) -> object:
        return v.strip().upper() if isinstance(v, str) else v

    @field_validator("secret_key")
    @classmethod
    def reject_known_secrets(cls, v: str) -> str:
        if v.strip().lower() in KNOWN_INSECURE_SECRETS:
            raise ValueError("SECRET_KEY must not be a known default value")
        return v

    @model_validator(mode="after")
    def check_deployment(self) -> "Settings":
        if self.is_production:
            plain = [o for o in self.cors_origins_list if o.startswith("http://")]
            if plain:
                raise ValueError(f"In production, CORS_ORIGINS must be https-only; got: {plain}")
        if self.cookie_samesite == "none" and not self.cookie_secure:
            raise ValueError("COOKIE_SECURE must be true when COOKIE_SAMESITE=none")
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
