"""
Conversation controller - owns conversation state and reconciles it with live store subscriptions.

Threading rules:
    - every state slice is read and replaced under self._lock
    - store, identity and generation calls are never made while holding self._lock
    - subscription callbacks carry the scope token they were opened with and
      are ignored once the scope (user or active chat) has moved on
"""

from dataclasses import replace
from typing import Any, Callable, List, Optional
import threading

from config.app_config import AppConfig, get_config
from infrastructure.store.document_store import DocumentStore, Subscription
from services.ai_service.fallback_service import FallbackService, get_fallback_service
from services.auth_service.identity_provider import AuthFailure, IdentityProvider
from services.auth_service.models import UserIdentity
from services.chat_service.conversation_state import (
    ConversationState,
    SendState,
    activate_new_chat,
    apply_chat_document,
    apply_chats_snapshot,
    apply_settings,
    apply_templates,
    clear_user_scope,
    remove_chat,
    select_chat,
)
from services.chat_service.models import (
    DEFAULT_CHAT_TITLE,
    SETTINGS_KEYS,
    Chat,
    Feedback,
    FontSize,
    PromptTemplate,
    UserSettings,
)
from services.chat_service.send_flow import SendMessageFlow
from services.chat_service.store_gateway import ChatStoreGateway
from utils.logging_config import (
    ErrorTracker,
    get_error_tracker,
    get_logger,
    log_conversation_event,
    log_user_interaction,
)


ConfirmCallback = Callable[[], bool]


class ConversationController:
    """
    Conversation state owner used by the presentation layer.

    The presentation reads snapshot() and calls the action methods; it never
    touches the store directly.
    """

    def __init__(self, store: DocumentStore, identity_provider: IdentityProvider,
                 generation_client, config: Optional[AppConfig] = None,
                 fallback_service: Optional[FallbackService] = None,
                 error_tracker: Optional[ErrorTracker] = None,
                 on_scroll: Optional[Callable[[], None]] = None):
        self.logger = get_logger(__name__)
        self.store = store
        self.identity_provider = identity_provider
        self.generation_client = generation_client
        self.config = config or get_config()
        self.fallback_service = fallback_service or get_fallback_service()
        self.error_tracker = error_tracker or get_error_tracker()
        self.on_scroll = on_scroll

        self._lock = threading.RLock()
        self._state = ConversationState(
            personality=self.config.chat.default_personality,
            context_memory_enabled=self.config.chat.context_memory_enabled,
            selected_model=self.config.generation.default_model,
        )
        self._gateway: Optional[ChatStoreGateway] = None
        self._user_scope = 0
        self._user_subscriptions: List[Subscription] = []
        self._chat_scope = 0
        self._chat_subscription: Optional[Subscription] = None
        self._subscribed_chat_id: Optional[str] = None
        self._auth_unsubscribe: Optional[Callable[[], None]] = None
        self._send_flow = SendMessageFlow(self)
        self._disposed = False

    # Lifecycle

    def start(self):
        """Attach to the identity provider; signs in when nobody is signed in"""
        if self._auth_unsubscribe is not None:
            return
        self._disposed = False
        self._auth_unsubscribe = self.identity_provider.on_auth_state_changed(self._on_auth_state)

    def dispose(self):
        """Tear down every subscription; later callbacks are ignored"""
        self._disposed = True
        unsubscribe, self._auth_unsubscribe = self._auth_unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()
        self._close_user_scope()
        self.logger.info("Conversation controller disposed")

    def snapshot(self) -> ConversationState:
        with self._lock:
            return self._state

    @property
    def state(self) -> ConversationState:
        return self.snapshot()

    # Auth

    def _on_auth_state(self, user: Optional[UserIdentity]):
        if self._disposed:
            return

        current = self.snapshot().user
        if user is not None and current is not None and user.uid == current.uid:
            return

        self._close_user_scope()

        if user is None:
            self._sign_in()
            return

        self._open_user_scope(user)

    def _sign_in(self):
        token = self.config.auth.initial_auth_token
        try:
            if token:
                self.identity_provider.sign_in_with_custom_token(token)
            elif self.config.auth.allow_anonymous:
                self.identity_provider.sign_in_anonymously()
            else:
                raise AuthFailure("Anonymous sign-in is disabled and no auth token is configured")
        except AuthFailure as e:
            self._report_error(e, "sign_in")

    def _open_user_scope(self, user: UserIdentity):
        gateway = ChatStoreGateway(self.store, self.config.store.app_id, user.uid)

        with self._lock:
            self._user_scope += 1
            scope = self._user_scope
            self._gateway = gateway
            self._state = replace(clear_user_scope(self._state), user=user)

        self.logger.info(f"Opening conversation scope for user {user.uid}")

        subscriptions = []
        try:
            subscriptions.append(gateway.subscribe_settings(
                self._scoped(scope, self._on_settings), self._subscription_error("settings")))
            subscriptions.append(gateway.subscribe_templates(
                self._scoped(scope, self._on_templates), self._subscription_error("prompt_templates")))
            subscriptions.append(gateway.subscribe_chats(
                self._scoped(scope, self._on_chats), self._subscription_error("chats")))
        except Exception as e:
            self._report_error(e, "open_subscriptions", user_id=user.uid)

        with self._lock:
            current = scope == self._user_scope
            if current:
                self._user_subscriptions.extend(subscriptions)

        if not current:
            for subscription in subscriptions:
                subscription.unsubscribe()

    def _close_user_scope(self):
        with self._lock:
            self._user_scope += 1
            subscriptions, self._user_subscriptions = self._user_subscriptions, []
            had_gateway = self._gateway is not None
            self._gateway = None
            self._state = clear_user_scope(self._state)

        for subscription in subscriptions:
            subscription.unsubscribe()
        self._sync_chat_subscription()

        if had_gateway:
            self.logger.info("Closed conversation scope")

    # Subscription callbacks

    def _scoped(self, scope: int, handler: Callable[[Any], None]) -> Callable[[Any], None]:
        def callback(value):
            with self._lock:
                if self._disposed or scope != self._user_scope:
                    return
            handler(value)
        return callback

    def _subscription_error(self, name: str) -> Callable[[Exception], None]:
        def on_error(error: Exception):
            # Last known state stays in place
            self._report_error(error, f"subscription:{name}")
        return on_error

    def _on_settings(self, settings: Optional[UserSettings]):
        with self._lock:
            self._state = apply_settings(self._state, settings)
            gateway = self._gateway

        if settings is None and gateway is not None:
            try:
                gateway.write_default_settings()
                self.logger.info("Created default user settings")
            except Exception as e:
                self._report_error(e, "write_default_settings")

    def _on_templates(self, templates: List[PromptTemplate]):
        with self._lock:
            self._state = apply_templates(self._state, templates)

    def _on_chats(self, chats: List[Chat]):
        with self._lock:
            self._state = apply_chats_snapshot(self._state, chats)
        self._sync_chat_subscription()

    def _sync_chat_subscription(self):
        """Keep exactly one chat document subscription, on the active chat"""
        with self._lock:
            chat_id = self._state.active_chat_id
            if chat_id == self._subscribed_chat_id:
                return
            self._chat_scope += 1
            scope = self._chat_scope
            previous, self._chat_subscription = self._chat_subscription, None
            self._subscribed_chat_id = chat_id
            gateway = self._gateway

        if previous is not None:
            previous.unsubscribe()

        if chat_id is None or gateway is None:
            return

        def on_chat(chat: Optional[Chat]):
            with self._lock:
                if self._disposed or scope != self._chat_scope:
                    return
                self._state = apply_chat_document(self._state, chat_id, chat)

        try:
            subscription = gateway.subscribe_chat(chat_id, on_chat, self._subscription_error("chat"))
        except Exception as e:
            self._report_error(e, "subscribe_chat", chat_id=chat_id)
            return

        with self._lock:
            current = scope == self._chat_scope
            if current:
                self._chat_subscription = subscription
        if not current:
            subscription.unsubscribe()

    # Chats

    def select_chat(self, chat_id: Optional[str]):
        with self._lock:
            self._state = select_chat(self._state, chat_id)
            selected = self._state.active_chat_id
        self._sync_chat_subscription()
        log_user_interaction(self.logger, "select_chat", requested=chat_id, selected=selected)

    def create_chat(self) -> Optional[str]:
        """Create an empty chat and make it active; returns its id"""
        state = self.snapshot()
        return self._create_chat(DEFAULT_CHAT_TITLE, state.personality, state.context_memory_enabled)

    def _create_chat(self, title: str, personality: str, context_memory_enabled: bool) -> Optional[str]:
        gateway = self._gateway
        if gateway is None:
            self.logger.warning("Cannot create chat: no signed-in user")
            return None

        try:
            chat_id = gateway.create_chat(title, personality, context_memory_enabled)
        except Exception as e:
            self._report_error(e, "create_chat")
            return None

        with self._lock:
            self._state = activate_new_chat(self._state, chat_id)
        self._sync_chat_subscription()

        log_conversation_event(self.logger, "chat_created", chat_id, title=title)
        return chat_id

    def delete_chat(self, chat_id: str, confirm: ConfirmCallback) -> bool:
        """Delete a chat after confirmation; returns True when it was deleted"""
        gateway = self._gateway
        if gateway is None or not chat_id:
            return False
        if not confirm():
            return False

        try:
            gateway.delete_chat(chat_id)
        except Exception as e:
            self._report_error(e, "delete_chat", chat_id=chat_id)
            return False

        with self._lock:
            self._state = remove_chat(self._state, chat_id)
        self._sync_chat_subscription()

        log_conversation_event(self.logger, "chat_deleted", chat_id)
        return True

    def active_chat_title(self) -> str:
        state = self.snapshot()
        if state.active_chat_id is None:
            return DEFAULT_CHAT_TITLE
        chat = state.active_chat
        return chat.display_title if chat is not None else DEFAULT_CHAT_TITLE

    def set_personality(self, personality: str):
        if personality not in self.config.chat.personalities:
            self.logger.warning(f"Unknown personality rejected: {personality}")
            return
        self._set_chat_option("personality", personality=personality)

    def set_context_memory(self, enabled: bool):
        self._set_chat_option("contextMemoryEnabled", context_memory_enabled=bool(enabled))

    def _set_chat_option(self, document_key: str, **fields):
        with self._lock:
            self._state = replace(self._state, **fields)
            chat_id = self._state.active_chat_id
            gateway = self._gateway

        if chat_id is None or gateway is None:
            return

        try:
            gateway.update_chat(chat_id, {document_key: next(iter(fields.values()))})
        except Exception as e:
            self._report_error(e, f"update_chat:{document_key}", chat_id=chat_id)

    def set_model(self, model: str):
        if not self.config.generation.is_allowed(model):
            self.logger.warning(f"Model not in allow-list rejected: {model}")
            return
        with self._lock:
            self._state = replace(self._state, selected_model=model)

    # Messages

    def send_message(self, text: str) -> bool:
        """
        Send a user message and append the assistant reply

        Returns:
            False when the send was rejected (empty text, no user, send in flight)
        """
        return self._send_flow.run(text)

    def set_feedback(self, message_index: int, feedback: Feedback):
        feedback = Feedback(feedback)
        with self._lock:
            state = self._state
            chat_id = state.active_chat_id
            if chat_id is None or not 0 <= message_index < len(state.messages):
                self.logger.warning(f"Feedback ignored: no message at index {message_index}")
                return
            messages = list(state.messages)
            messages[message_index] = messages[message_index].with_feedback(feedback)
            messages = tuple(messages)
            self._state = replace(state, messages=messages)
            gateway = self._gateway

        if gateway is None:
            return

        try:
            gateway.save_messages(chat_id, messages)
        except Exception as e:
            self._report_error(e, "set_feedback", chat_id=chat_id, message_index=message_index)
            return

        log_user_interaction(self.logger, "feedback", chat_id=chat_id,
                             message_index=message_index, feedback=feedback.value)

    # Settings

    def update_setting(self, key: str, value: Any):
        if key not in SETTINGS_KEYS:
            self.logger.warning(f"Unknown setting ignored: {key}")
            return

        if key == "fontSize":
            value = FontSize.parse(value.value if isinstance(value, FontSize) else value)
            stored = value.value
        else:
            value = bool(value)
            stored = value

        with self._lock:
            settings = replace(self._state.settings, **{SETTINGS_KEYS[key]: value})
            self._state = replace(self._state, settings=settings)
            gateway = self._gateway

        if gateway is None:
            return

        try:
            gateway.update_settings({key: stored})
        except Exception as e:
            self._report_error(e, "update_setting", key=key)

    # Prompt templates

    def save_prompt_template(self, name: str, content: str, editing_id: Optional[str] = None) -> Optional[str]:
        """Create or update a template; returns its id, or None when nothing was saved"""
        name = (name or "").strip()
        content = (content or "").strip()
        gateway = self._gateway
        if not name or not content or gateway is None:
            return None

        try:
            if editing_id:
                gateway.update_template(editing_id, name, content)
                template_id = editing_id
            else:
                template_id = gateway.create_template(name, content)
        except Exception as e:
            self._report_error(e, "save_prompt_template", template_id=editing_id)
            return None

        log_user_interaction(self.logger, "save_prompt_template", template_id=template_id,
                             updated=bool(editing_id))
        return template_id

    def delete_prompt_template(self, template_id: str, confirm: ConfirmCallback) -> bool:
        gateway = self._gateway
        if gateway is None or not template_id:
            return False
        if not confirm():
            return False

        try:
            gateway.delete_template(template_id)
        except Exception as e:
            self._report_error(e, "delete_prompt_template", template_id=template_id)
            return False
        return True

    def apply_prompt_template(self, template_id: str, draft: str = "") -> str:
        """Draft input with the template content appended"""
        for template in self.snapshot().prompt_templates:
            if template.id == template_id:
                return (draft or "") + template.template
        return draft or ""

    # Internals shared with the send flow

    def _set_send_state(self, send_state: SendState):
        with self._lock:
            self._state = replace(self._state, send_state=send_state)

    def _scroll_to_latest(self):
        if self.on_scroll is None:
            return
        try:
            self.on_scroll()
        except Exception as e:
            self.logger.warning(f"Scroll hook failed: {e}")

    def _report_error(self, error: Exception, context: str, **extra):
        self.error_tracker.track_error(error, context, **extra)
        with self._lock:
            self._state = replace(self._state, last_error=f"{context}: {error}")
