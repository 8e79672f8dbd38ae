"""
Test environment-specific configurations
"""

import pytest
from config.app_config import AppConfig
from config.environments import get_environment_config
from config.environments.development import DevelopmentConfig, get_development_config
from config.environments.production import ProductionConfig, get_production_config


class TestEnvironmentConfigs:
    """Test environment-specific configuration loading"""

    def test_development_config(self, monkeypatch):
        """Test development configuration"""
        monkeypatch.delenv("APP_ID", raising=False)
        config = get_development_config()

        assert config.environment == "development"
        assert config.debug == True
        assert config.logging.level == "DEBUG"
        assert "DEV" in config.ui.app_title
        assert config.store.app_id == "dev-app-id"
        assert config.store.db_path == "data/dev_chat_store.db"

    def test_production_config(self, monkeypatch):
        """Test production configuration"""
        monkeypatch.delenv("GENERATION_TIMEOUT_SECONDS", raising=False)
        config = get_production_config()

        assert config.environment == "production"
        assert config.debug == False
        assert config.logging.level == "INFO"
        assert "DEV" not in config.ui.app_title
        assert config.generation.timeout_seconds == 20.0
        assert config.auth.allow_anonymous == False

    def test_production_keeps_timeout_override(self, monkeypatch):
        monkeypatch.setenv("GENERATION_TIMEOUT_SECONDS", "45")

        config = get_production_config()

        assert config.generation.timeout_seconds == 45.0

    def test_development_keeps_app_id_override(self, monkeypatch):
        monkeypatch.setenv("APP_ID", "shared-app")

        config = get_development_config()

        assert config.store.app_id == "shared-app"

    def test_development_inherits_api_settings(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "dev-gemini-key")

        config = get_development_config()

        assert config.api.gemini_api_key == "dev-gemini-key"

    def test_environment_selection_development(self, monkeypatch):
        monkeypatch.setenv("APP_ENV", "development")

        config = get_environment_config()

        assert isinstance(config, DevelopmentConfig)
        assert config.debug == True

    def test_environment_selection_production(self, monkeypatch):
        monkeypatch.setenv("APP_ENV", "production")

        config = get_environment_config()

        assert isinstance(config, ProductionConfig)
        assert config.debug == False

    def test_unknown_environment_uses_base_config(self, monkeypatch):
        monkeypatch.setenv("APP_ENV", "staging")

        config = get_environment_config()

        assert type(config) is AppConfig
        assert config.environment == "staging"

    def test_default_environment(self, monkeypatch):
        """Test default environment when APP_ENV is not set"""
        monkeypatch.delenv("APP_ENV", raising=False)

        config = get_environment_config()

        assert config.environment == "development"

    def test_config_validation(self):
        """Test that all environment configs pass validation"""
        configs = [
            get_development_config(),
            get_production_config()
        ]

        for config in configs:
            config.store.db_path = ":memory:"
            config.logging.enable_file_logging = False
            errors = config.validate()
            # Missing API keys and tokens are expected in tests
            assert all("API key" in e or "auth token" in e for e in errors)
