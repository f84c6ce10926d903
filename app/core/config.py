"""
Application Configuration
All settings loaded from environment variables
"""
from pydantic import BaseModel
from typing import Optional
import os


class Settings(BaseModel):
    # ==================== Application ====================
    APP_NAME: str = os.getenv("APP_NAME", "Seminar Live")
    SECRET_KEY: str = os.getenv("SECRET_KEY", "change-this-secret")

    # ==================== Development ====================
    DEV_MODE: bool = os.getenv("DEV_MODE", "false").lower() in ("true", "1", "yes")

    # ==================== Database ====================
    DATABASE_URL: Optional[str] = os.getenv("DATABASE_URL")
    POSTGRES_USER: str = os.getenv("POSTGRES_USER", "seminar")
    POSTGRES_PASSWORD: str = os.getenv("POSTGRES_PASSWORD", "password")
    POSTGRES_DB: str = os.getenv("POSTGRES_DB", "seminar")
    POSTGRES_HOST: str = os.getenv("POSTGRES_HOST", "db")
    POSTGRES_PORT: int = int(os.getenv("POSTGRES_PORT", "5432"))

    # ==================== Celery ====================
    CELERY_BROKER_URL: str = os.getenv("CELERY_BROKER_URL", "redis://redis:6379/0")
    CELERY_RESULT_BACKEND: str = os.getenv("CELERY_RESULT_BACKEND", "redis://redis:6379/0")
    CELERY_TIMEZONE: str = os.getenv("CELERY_TIMEZONE", "Asia/Tokyo")
    OVERDUE_CHECK_INTERVAL: float = float(os.getenv("OVERDUE_CHECK_INTERVAL", "60"))

    # ==================== Timezone ====================
    TIMEZONE: str = os.getenv("TIMEZONE", "Asia/Tokyo")

    # ==================== Logging ====================
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "info")
    LOG_FILE: str = os.getenv("LOG_FILE", "logs/app.log")
    LOG_MAX_SIZE: int = int(os.getenv("LOG_MAX_SIZE", "10485760"))  # 10MB
    LOG_BACKUP_COUNT: int = int(os.getenv("LOG_BACKUP_COUNT", "5"))

    # ==================== CORS ====================
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "http://localhost:3000")
    CORS_ALLOW_CREDENTIALS: bool = os.getenv("CORS_ALLOW_CREDENTIALS", "true").lower() == "true"

    # ==================== Session Cookie ====================
    SESSION_COOKIE_NAME: str = os.getenv("SESSION_COOKIE_NAME", "seminar_session")
    COOKIE_EXPIRY: int = int(os.getenv("COOKIE_EXPIRY", "2592000"))  # 30 days
    COOKIE_SECURE: bool = os.getenv("COOKIE_SECURE", "false").lower() in ("true", "1", "yes")
    COOKIE_SAME_SITE: str = os.getenv("COOKIE_SAME_SITE", "lax")

    # ==================== Admin ====================
    ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "change-this")

    # ==================== Meeting SDK ====================
    MEETING_SDK_KEY: str = os.getenv("MEETING_SDK_KEY", "")
    MEETING_SDK_SECRET: str = os.getenv("MEETING_SDK_SECRET", "")
    MEETING_SIGNATURE_TTL: int = int(os.getenv("MEETING_SIGNATURE_TTL", "7200"))  # 2 hours

    # ==================== Chat ====================
    CHAT_MAX_LENGTH: int = int(os.getenv("CHAT_MAX_LENGTH", "500"))
    CHAT_DISPLAY_NAME_MAX: int = int(os.getenv("CHAT_DISPLAY_NAME_MAX", "30"))
    CHAT_ANONYMOUS_NAME: str = os.getenv("CHAT_ANONYMOUS_NAME", "匿名")
    CHAT_HISTORY_LIMIT: int = int(os.getenv("CHAT_HISTORY_LIMIT", "100"))
    MODERATION_QUEUE_LIMIT: int = int(os.getenv("MODERATION_QUEUE_LIMIT", "200"))
    CHAT_REQUIRE_SUBSCRIPTION: bool = os.getenv("CHAT_REQUIRE_SUBSCRIPTION", "true").lower() in ("true", "1", "yes")

    # ==================== Schedules ====================
    AUTO_END_HOURS_DEFAULT: int = int(os.getenv("AUTO_END_HOURS_DEFAULT", "3"))
    AUTO_END_HOURS_MAX: int = int(os.getenv("AUTO_END_HOURS_MAX", "24"))

    # ==================== Viewer Client ====================
    BEACON_TIMEOUT: float = float(os.getenv("BEACON_TIMEOUT", "2.0"))

    # ==================== Realtime ====================
    BROADCAST_SEND_TIMEOUT: float = float(os.getenv("BROADCAST_SEND_TIMEOUT", "5.0"))


settings = Settings()
