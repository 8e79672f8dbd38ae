"""
Development environment configuration overrides
"""

import os
from dataclasses import dataclass
from config.app_config import AppConfig


@dataclass
class DevelopmentConfig(AppConfig):
    """Development environment configuration"""
    
    def __post_init__(self):
        # First load the base configuration (including API keys)
        base_config = AppConfig.load()
        self.api = base_config.api
        self.auth = base_config.auth
        self.generation = base_config.generation
        
        # Development-specific overrides
        self.environment = "development"
        self.debug = True
        
        # More verbose logging in development
        self.logging.level = "DEBUG"
        self.logging.enable_file_logging = True
        self.logging.log_file = "logs/dev-app.log"
        
        # Development UI changes
        self.ui.app_title = "🧪 AI Chatbot (DEV)"
        
        # Separate local store so experiments never touch real chats
        if not os.getenv("APP_ID"):
            self.store.app_id = "dev-app-id"
        self.store.db_path = "data/dev_chat_store.db"


def get_development_config() -> DevelopmentConfig:
    """Get development-specific configuration"""
    return DevelopmentConfig()
