"""
Tests for configuration
"""
from app.core.config import settings


def test_settings_loaded():
    """Test that settings are loaded"""
    assert settings.APP_NAME is not None


def test_database_config():
    """Test database configuration exists"""
    assert settings.DATABASE_URL == "sqlite://"
    assert hasattr(settings, 'POSTGRES_HOST')
    assert hasattr(settings, 'POSTGRES_PORT')


def test_celery_config():
    """Test Celery configuration exists"""
    assert hasattr(settings, 'CELERY_BROKER_URL')
    assert settings.OVERDUE_CHECK_INTERVAL > 0


def test_chat_defaults():
    assert settings.CHAT_MAX_LENGTH == 500
    assert settings.CHAT_DISPLAY_NAME_MAX == 30
    assert settings.CHAT_HISTORY_LIMIT == 100
    assert settings.MODERATION_QUEUE_LIMIT == 200
    assert settings.CHAT_REQUIRE_SUBSCRIPTION is True


def test_schedule_defaults():
    assert settings.AUTO_END_HOURS_DEFAULT == 3
    assert settings.AUTO_END_HOURS_MAX == 24
    assert settings.MEETING_SIGNATURE_TTL == 7200
