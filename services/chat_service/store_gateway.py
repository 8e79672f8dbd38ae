"""
Store gateway - user-scoped access to the chats, settings and prompt template collections.
"""

from typing import Any, Callable, Dict, List, Optional, Sequence

from infrastructure.store.document_store import (
    CollectionSnapshot,
    DocumentSnapshot,
    DocumentStore,
    ErrorCallback,
    Subscription,
)
from services.chat_service.models import (
    Chat,
    Message,
    PromptTemplate,
    UserSettings,
    now_millis,
)
from utils.logging_config import get_logger


SETTINGS_DOCUMENT_ID = "userSettings"


class ChatStoreGateway:
    """
    Gateway for one user's namespace in the document store.

    Layout:
        artifacts/{app_id}/users/{uid}/chats/{chatId}
        artifacts/{app_id}/users/{uid}/settings/userSettings
        artifacts/{app_id}/users/{uid}/promptTemplates/{templateId}

    Subscription callbacks receive decoded models. A document that fails to
    decode is reported through the error callback of that subscription.
    """

    def __init__(self, store: DocumentStore, app_id: str, user_id: str):
        if not user_id:
            raise ValueError("A user id is required to scope store access")
        self.logger = get_logger(__name__)
        self.store = store
        self.app_id = app_id
        self.user_id = user_id
        self.base_path = f"artifacts/{app_id}/users/{user_id}"

    # Paths

    @property
    def chats_path(self) -> str:
        return f"{self.base_path}/chats"

    def chat_path(self, chat_id: str) -> str:
        return f"{self.chats_path}/{chat_id}"

    @property
    def settings_path(self) -> str:
        return f"{self.base_path}/settings/{SETTINGS_DOCUMENT_ID}"

    @property
    def templates_path(self) -> str:
        return f"{self.base_path}/promptTemplates"

    def template_path(self, template_id: str) -> str:
        return f"{self.templates_path}/{template_id}"

    # Subscriptions

    def subscribe_chats(self, on_chats: Callable[[List[Chat]], None],
                        on_error: Optional[ErrorCallback] = None) -> Subscription:
        """Chat list in store order; callers sort"""
        def handle(snapshot: CollectionSnapshot):
            on_chats([Chat.from_document(doc.id, doc.data) for doc in snapshot.docs])

        return self.store.subscribe(self.chats_path, handle, on_error)

    def subscribe_chat(self, chat_id: str, on_chat: Callable[[Optional[Chat]], None],
                       on_error: Optional[ErrorCallback] = None) -> Subscription:
        """Single chat document; None when it does not exist"""
        def handle(snapshot: DocumentSnapshot):
            on_chat(Chat.from_document(snapshot.id, snapshot.data) if snapshot.exists else None)

        return self.store.subscribe(self.chat_path(chat_id), handle, on_error)

    def subscribe_settings(self, on_settings: Callable[[Optional[UserSettings]], None],
                           on_error: Optional[ErrorCallback] = None) -> Subscription:
        def handle(snapshot: DocumentSnapshot):
            on_settings(UserSettings.from_document(snapshot.data) if snapshot.exists else None)

        return self.store.subscribe(self.settings_path, handle, on_error)

    def subscribe_templates(self, on_templates: Callable[[List[PromptTemplate]], None],
                            on_error: Optional[ErrorCallback] = None) -> Subscription:
        def handle(snapshot: CollectionSnapshot):
            on_templates([PromptTemplate.from_document(doc.id, doc.data) for doc in snapshot.docs])

        return self.store.subscribe(self.templates_path, handle, on_error)

    # Chats

    def create_chat(self, title: str, personality: str, context_memory_enabled: bool) -> str:
        chat_id = self.store.create(self.chats_path, {
            "title": title,
            "messages": [],
            "createdAt": now_millis(),
            "personality": personality,
            "contextMemoryEnabled": context_memory_enabled,
        })
        self.logger.debug(f"Created chat {chat_id} for user {self.user_id}")
        return chat_id

    def save_messages(self, chat_id: str, messages: Sequence[Message], title: Optional[str] = None):
        """Write the whole message list; the chat document is the unit of mutation"""
        update: Dict[str, Any] = {"messages": [message.to_document() for message in messages]}
        if title is not None:
            update["title"] = title
        self.store.update(self.chat_path(chat_id), update)

    def update_chat(self, chat_id: str, fields: Dict[str, Any]):
        self.store.update(self.chat_path(chat_id), fields)

    def delete_chat(self, chat_id: str):
        self.store.delete(self.chat_path(chat_id))

    # Settings

    def write_default_settings(self):
        self.store.set(self.settings_path, UserSettings().to_document(), merge=True)

    def update_settings(self, fields: Dict[str, Any]):
        self.store.set(self.settings_path, fields, merge=True)

    # Prompt templates

    def create_template(self, name: str, template: str) -> str:
        return self.store.create(self.templates_path, {
            "name": name,
            "template": template,
            "createdAt": now_millis(),
        })

    def update_template(self, template_id: str, name: str, template: str):
        self.store.update(self.template_path(template_id), {
            "name": name,
            "template": template,
            "updatedAt": now_millis(),
        })

    def delete_template(self, template_id: str):
        self.store.delete(self.template_path(template_id))
