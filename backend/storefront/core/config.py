"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from storefront.core.exceptions import InvalidConfigurationError

BASE_DIR = Path(__file__).resolve().parents[2]
DEFAULT_JWT_SECRET = "change-me"


class Settings(BaseSettings):
    APP_NAME: str = "MOA Clover Storefront"
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "postgresql+psycopg://postgres@localhost:5432/moaclover"
    SQL_ECHO: bool = False

    JWT_SECRET: str = DEFAULT_JWT_SECRET
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    COOKIE_NAME: str = "moa_access"

    PASSWORD_MIN_LENGTH: int = 6
    PASSWORD_RESET_TOKEN_EXPIRE_MINUTES: int = 30

    # catalog
    PRODUCT_PAGE_SIZE: int = 20
    PRODUCT_THUMB_LIMIT: int = 8
    CATEGORY_PICKER_DEPTH: int = 4
    CATEGORY_MENU_CACHE_SECONDS: int = 300
    QNA_PAGE_SIZE: int = 10
    ADMIN_QNA_PAGE_SIZE: int = 20

    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = ""
    SMTP_FROM_NAME: str = "MOA Clover"
    SMTP_TLS: bool = True

    FRONTEND_BASE_URL: str = "http://localhost:3000"
    CORS_ORIGINS: str = "http://localhost:3000"
    ALLOWED_HOSTS: str = "*"

    UPLOAD_DIR: str = str(BASE_DIR / "uploads")
    UPLOAD_URL_PREFIX: str = "/uploads"
    UPLOAD_MAX_BYTES: int = 50 * 1024 * 1024

    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_WINDOW_SECONDS: int = 60
    RATE_LIMIT_MAX_REQUESTS: int = 120
    RATE_LIMIT_AUTH_MAX_REQUESTS: int = 20
    RATE_LIMIT_QNA_MAX_REQUESTS: int = 30

    model_config = SettingsConfigDict(env_file=str(BASE_DIR / ".env"), env_file_encoding="utf-8")

    @property
    def is_production(self) -> bool:
        return self.ENV.strip().lower() == "production"

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def allowed_hosts(self) -> list[str]:
        hosts = [host.strip() for host in self.ALLOWED_HOSTS.split(",") if host.strip()]
        return hosts or ["*"]

    @property
    def smtp_ready(self) -> bool:
        return bool(self.SMTP_HOST.strip() and self.SMTP_FROM.strip())

    def validate_runtime_security(self) -> None:
        if not self.is_production:
            return
        if self.JWT_SECRET == DEFAULT_JWT_SECRET or len(self.JWT_SECRET) < 32:
            raise InvalidConfigurationError("weak_jwt_secret", setting="JWT_SECRET")
        if "*" in self.allowed_hosts:
            raise InvalidConfigurationError("wildcard_allowed_hosts", setting="ALLOWED_HOSTS")


settings = Settings()
