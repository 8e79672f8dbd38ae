"""
Shared fixtures for the test suite
"""

from typing import List, Optional, Sequence

import pytest
from unittest.mock import Mock

from config.app_config import AppConfig
from infrastructure.store import SQLiteDocumentStore
from services.ai_service.models import HistoryEntry
from services.auth_service.identity_provider import IdentityProvider
from services.chat_service.conversation_controller import ConversationController
from services.chat_service.store_gateway import ChatStoreGateway


class FakeGenerationClient:
    """Generation client double that records every call"""

    def __init__(self, reply: str = "Hello from the AI", error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.calls: List[dict] = []

    def generate(self, history: Sequence[HistoryEntry], model: str) -> str:
        self.calls.append({"history": list(history), "model": model})
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def app_config():
    config = AppConfig()
    config.store.app_id = "test-app"
    config.store.db_path = ":memory:"
    config.logging.enable_file_logging = False
    config.logging.enable_langfuse_tracing = False
    return config


@pytest.fixture
def store():
    document_store = SQLiteDocumentStore(":memory:")
    yield document_store
    document_store.close()


@pytest.fixture
def gateway(store):
    return ChatStoreGateway(store, "test-app", "user-1")


@pytest.fixture
def generation_client():
    return FakeGenerationClient()


@pytest.fixture
def error_tracker():
    return Mock()


@pytest.fixture
def controller(store, generation_client, app_config, error_tracker):
    scroll = Mock()
    conversation_controller = ConversationController(
        store=store,
        identity_provider=IdentityProvider(),
        generation_client=generation_client,
        config=app_config,
        error_tracker=error_tracker,
        on_scroll=scroll
    )
    conversation_controller.start()
    yield conversation_controller
    conversation_controller.dispose()
