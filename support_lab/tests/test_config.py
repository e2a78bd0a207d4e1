"""
Test configuration management
"""
import pytest
from pydantic import ValidationError

from support_lab.config import Settings, get_settings


def test_settings_singleton(monkeypatch):
    """Test settings returns same instance"""
    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@localhost/db")
    get_settings.cache_clear()
    try:
        settings1 = get_settings()
        settings2 = get_settings()
        assert settings1 is settings2
    finally:
        get_settings.cache_clear()


def test_settings_defaults():
    """Test default values"""
    settings = Settings(_env_file=None, database_url="postgresql://u:p@localhost/db")
    assert settings.port == 3000
    assert settings.external_api_url == "https://httpbin.org"
    assert settings.api_timeout_ms == 5000
    assert settings.health_probe_timeout_ms == 3000
    assert settings.db_pool_max_size == 20
    assert settings.drain_timeout_seconds == 10.0
    assert settings.enable_debug_endpoints is True
    assert settings.log_level == "INFO"


def test_database_url_is_required(monkeypatch):
    """The service cannot be configured without a store"""
    monkeypatch.delenv("DATABASE_URL", raising=False)
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_env_vars_override_defaults(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db/support")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("ENABLE_DEBUG_ENDPOINTS", "false")
    monkeypatch.setenv("FASTAPI_ENV", "production")

    settings = Settings(_env_file=None)

    assert settings.port == 8080
    assert settings.enable_debug_endpoints is False
    assert settings.is_production
    assert not settings.is_development


def test_storage_configured_needs_all_credentials(settings_factory):
    assert not settings_factory().storage_configured
    assert not settings_factory(aws_access_key_id="key", aws_secret_access_key="secret").storage_configured
    assert settings_factory(
        aws_access_key_id="key",
        aws_secret_access_key="secret",
        aws_s3_bucket_name="bucket"
    ).storage_configured


def test_summary_masks_secrets(settings_factory):
    settings = settings_factory(aws_secret_access_key="very-secret")
    summary = settings.summary()

    assert summary["database"] == "configured"
    assert "very-secret" not in str(summary)
    assert "test_pass" not in str(summary)
