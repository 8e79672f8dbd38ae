"""
Production environment configuration overrides
"""

import os
from dataclasses import dataclass
from config.app_config import AppConfig


@dataclass
class ProductionConfig(AppConfig):
    """Production environment configuration"""
    
    def __post_init__(self):
        base_config = AppConfig.load()
        self.api = base_config.api
        self.auth = base_config.auth
        self.generation = base_config.generation
        
        # Production-specific overrides
        self.environment = "production"
        self.debug = False
        
        # Production logging - less verbose, focus on errors
        self.logging.level = "INFO"
        self.logging.enable_file_logging = True
        self.logging.log_file = "logs/prod-app.log"
        
        # Production UI - clean and professional
        self.ui.app_title = "AI Chatbot"
        
        # Tighter bound on hung generation calls unless set explicitly
        if not os.getenv("GENERATION_TIMEOUT_SECONDS"):
            self.generation.timeout_seconds = 20.0
        
        # Production sign-in requires a provisioned token
        self.auth.allow_anonymous = False


def get_production_config() -> ProductionConfig:
    """Get production-specific configuration"""
    return ProductionConfig()
