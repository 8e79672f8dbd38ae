"""
Unified Configuration System for Chat Studio

This module provides a centralized configuration system that consolidates all application settings,
supports environment-based overrides, and provides type-safe configuration access.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List
import streamlit as st
import os
from pathlib import Path


def _read_secret(name: str, default: str = "") -> str:
    """Read a secret from Streamlit secrets, falling back to the environment"""
    # In test environment, prefer environment variables
    if os.getenv("PYTEST_CURRENT_TEST") is not None:
        return os.getenv(name, default)

    try:
        return st.secrets.get(name, os.getenv(name, default))
    except Exception:
        # No secrets.toml available
        return os.getenv(name, default)


@dataclass
class APIConfig:
    """API configuration settings"""
    gemini_api_key: str = ""
    openai_api_key: str = ""
    langfuse_secret_key: str = ""
    langfuse_public_key: str = ""
    langfuse_host: str = "https://cloud.langfuse.com"

    @classmethod
    def from_secrets(cls) -> 'APIConfig':
        """Load API config from Streamlit secrets"""
        return cls(
            gemini_api_key=_read_secret("GEMINI_API_KEY"),
            openai_api_key=_read_secret("OPENAI_API_KEY"),
            langfuse_secret_key=_read_secret("LANGFUSE_SECRET_KEY"),
            langfuse_public_key=_read_secret("LANGFUSE_PUBLIC_KEY"),
            langfuse_host=_read_secret("LANGFUSE_HOST", "https://cloud.langfuse.com")
        )


@dataclass
class GenerationConfig:
    """Text generation endpoint configuration"""
    default_model: str = "gemini-2.0-flash"
    allowed_models: Dict[str, str] = field(default_factory=lambda: {
        "gemini-2.0-flash": "Gemini 2.0 Flash",
        "gpt-3.5-turbo": "GPT-3.5",
        "gpt-4": "GPT-4",
    })
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout_seconds: float = 30.0

    def is_allowed(self, model: str) -> bool:
        return model in self.allowed_models

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging"""
        return {
            "default_model": self.default_model,
            "allowed_models": list(self.allowed_models),
            "base_url": self.base_url,
            "timeout_seconds": self.timeout_seconds
        }


@dataclass
class StoreConfig:
    """Document store configuration"""
    app_id: str = field(default_factory=lambda: os.getenv("APP_ID", "default-app-id"))
    db_path: str = "data/chat_store.db"


@dataclass
class ChatDefaultsConfig:
    """Defaults applied to newly created chats"""
    new_chat_title: str = "New Chat"
    title_length: int = 30
    personalities: List[str] = field(default_factory=lambda: [
        "Professional", "Funny", "Mentor", "Sarcastic"
    ])
    default_personality: str = "Professional"
    context_memory_enabled: bool = True


@dataclass
class UIConfig:
    """User interface configuration"""
    app_title: str = "AI Chatbot"
    empty_chat_message: str = "Start a conversation!"
    empty_chat_hint: str = "Type your message below or select a prompt template."
    thinking_message: str = "AI is thinking..."
    font_sizes: Dict[str, str] = field(default_factory=lambda: {
        "sm": "Small",
        "base": "Medium",
        "lg": "Large",
        "xl": "Extra Large",
    })


@dataclass
class AuthConfig:
    """Authentication configuration"""
    initial_auth_token: str = ""
    token_secret: str = ""
    allow_anonymous: bool = True

    @classmethod
    def from_secrets(cls) -> 'AuthConfig':
        return cls(
            initial_auth_token=_read_secret("INITIAL_AUTH_TOKEN"),
            token_secret=_read_secret("AUTH_TOKEN_SECRET"),
        )


@dataclass
class LoggingConfig:
    """Logging and monitoring configuration"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    enable_file_logging: bool = True
    log_file: str = "logs/app.log"
    enable_langfuse_tracing: bool = True


@dataclass
class AppConfig:
    """Main application configuration"""
    api: APIConfig = field(default_factory=APIConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    chat: ChatDefaultsConfig = field(default_factory=ChatDefaultsConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Environment settings
    environment: str = field(default_factory=lambda: os.getenv("APP_ENV", "development"))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")

    @classmethod
    def load(cls) -> 'AppConfig':
        """Load configuration with environment overrides"""
        config = cls()

        # Load secrets from Streamlit secrets/environment
        config.api = APIConfig.from_secrets()
        config.auth = AuthConfig.from_secrets()

        timeout = os.getenv("GENERATION_TIMEOUT_SECONDS")
        if timeout:
            config.generation.timeout_seconds = float(timeout)

        # Apply environment-specific overrides
        if config.environment == "production":
            config.debug = False
            config.logging.level = "WARNING"
        elif config.environment == "development":
            config.debug = True
            config.logging.level = "DEBUG"

        return config

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors"""
        errors = []

        if not self.api.gemini_api_key and not self.api.openai_api_key:
            errors.append("No generation API key configured (GEMINI_API_KEY or OPENAI_API_KEY)")

        if not self.generation.is_allowed(self.generation.default_model):
            errors.append(f"Default model '{self.generation.default_model}' is not in the allow-list")

        if self.generation.timeout_seconds <= 0:
            errors.append("Generation timeout must be positive")

        if self.chat.default_personality not in self.chat.personalities:
            errors.append(f"Default personality '{self.chat.default_personality}' is not a known personality")

        if not self.auth.allow_anonymous and not self.auth.initial_auth_token:
            errors.append("Anonymous sign-in is disabled but no initial auth token is configured")

        # Make sure file locations exist
        if self.store.db_path != ":memory:":
            Path(self.store.db_path).parent.mkdir(parents=True, exist_ok=True)

        if self.logging.enable_file_logging:
            log_dir = Path(self.logging.log_file).parent
            if not log_dir.exists():
                log_dir.mkdir(parents=True, exist_ok=True)

        return errors

    def get_langfuse_config(self) -> Dict[str, str]:
        """Get Langfuse configuration"""
        return {
            "secret_key": self.api.langfuse_secret_key,
            "public_key": self.api.langfuse_public_key,
            "host": self.api.langfuse_host
        }


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance"""
    global _config
    if _config is None:
        from config.environments import get_environment_config
        _config = get_environment_config()

        # Validate configuration
        errors = _config.validate()
        if errors:
            import warnings
            for error in errors:
                warnings.warn(f"Configuration error: {error}")

    return _config


def reload_config() -> AppConfig:
    """Reload configuration (useful for testing)"""
    global _config
    _config = None
    return get_config()


def get_langfuse_config() -> Dict[str, str]:
    """Get Langfuse configuration"""
    return get_config().get_langfuse_config()
