"""
Tests for environment-driven settings.
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from budget_vault.config import AppSettings, Settings, get_settings, validate_all_settings


@pytest.fixture
def fresh_settings(settings):
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    def test_defaults(self, settings):
        assert settings.app.default_currency == "INR"
        assert settings.app.default_monthly_budget == Decimal("30000")
        assert settings.security.encrypt_at_rest is True
        assert settings.storage.store_path.name == "store.json"

    def test_env_overrides(self, settings, monkeypatch, tmp_path):
        monkeypatch.setenv("BUDGET_VAULT_STORAGE_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("BUDGET_VAULT_SECURITY_AUDIT_BUFFER_SIZE", "25")
        monkeypatch.setenv("DEFAULT_CURRENCY", "usd")

        settings = Settings()
        assert settings.storage.store_path == tmp_path / "store.json"
        assert settings.security.audit_buffer_size == 25
        assert settings.app.default_currency == "USD"

    def test_dotenv_file(self, settings, tmp_path):
        (tmp_path / ".env").write_text("LOG_LEVEL=debug\nSEED_DEMO_DATA=false\n")
        app = AppSettings()
        assert app.log_level == "DEBUG"
        assert app.seed_demo_data is False

    def test_rejects_unknown_currency(self, settings, monkeypatch):
        monkeypatch.setenv("DEFAULT_CURRENCY", "XYZ")
        with pytest.raises(ValidationError):
            AppSettings()

    def test_rejects_unknown_log_level(self, settings, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        with pytest.raises(ValidationError):
            AppSettings()


class TestValidateAllSettings:
    def test_all_valid(self, fresh_settings):
        assert validate_all_settings() == {"storage": True, "security": True, "app": True}

    def test_reports_failures(self, fresh_settings, monkeypatch):
        monkeypatch.setenv("BUDGET_VAULT_SECURITY_AUDIT_BUFFER_SIZE", "5")
        results = validate_all_settings()
        assert results["security"] is False
        assert "security_error" in results
        assert results["storage"] is True
