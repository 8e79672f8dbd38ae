"""
Conversation state container and the pure functions that reduce store snapshots into it.

ConversationState is immutable: every reducer returns a new state, so a
snapshot is applied to its own slice in one assignment and readers never see
a half-applied update.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Optional, Sequence, Tuple

from services.auth_service.models import UserIdentity
from services.chat_service.models import (
    DEFAULT_PERSONALITY,
    Chat,
    Message,
    PromptTemplate,
    UserSettings,
)


class SendState(str, Enum):
    """Stages of the send-message sequence"""
    IDLE = "idle"
    SENDING = "sending"
    AWAITING_GENERATION = "awaiting_generation"
    SETTLING = "settling"


@dataclass(frozen=True)
class ConversationState:
    """Everything the UI displays, owned by the conversation controller"""
    user: Optional[UserIdentity] = None
    chats: Tuple[Chat, ...] = ()
    active_chat_id: Optional[str] = None
    # Chat created locally whose first chat-list snapshot has not arrived yet
    pending_chat_id: Optional[str] = None
    messages: Tuple[Message, ...] = ()
    personality: str = DEFAULT_PERSONALITY
    context_memory_enabled: bool = True
    settings: UserSettings = UserSettings()
    prompt_templates: Tuple[PromptTemplate, ...] = ()
    selected_model: str = "gemini-2.0-flash"
    send_state: SendState = SendState.IDLE
    last_error: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def is_thinking(self) -> bool:
        return self.send_state != SendState.IDLE

    @property
    def can_send(self) -> bool:
        return self.is_authenticated and not self.is_thinking

    def find_chat(self, chat_id: Optional[str]) -> Optional[Chat]:
        if chat_id is None:
            return None
        for chat in self.chats:
            if chat.id == chat_id:
                return chat
        return None

    @property
    def active_chat(self) -> Optional[Chat]:
        return self.find_chat(self.active_chat_id)


def sort_chats(chats: Iterable[Chat]) -> Tuple[Chat, ...]:
    """Newest first; the store gives no ordering guarantee"""
    return tuple(sorted(chats, key=lambda chat: chat.created_at or 0, reverse=True))


def resolve_active_chat_id(chats: Sequence[Chat], requested_id: Optional[str]) -> Optional[str]:
    """Requested chat if it exists, else the first chat of the sorted list, else None"""
    if requested_id is not None and any(chat.id == requested_id for chat in chats):
        return requested_id
    return chats[0].id if chats else None


def _activate(state: ConversationState, chat_id: Optional[str]) -> ConversationState:
    if chat_id == state.active_chat_id:
        return state
    # Messages of the previous chat must not leak into the new one
    return replace(state, active_chat_id=chat_id, messages=())


def apply_chats_snapshot(state: ConversationState, chats: Iterable[Chat]) -> ConversationState:
    ordered = sort_chats(chats)
    pending_chat_id = state.pending_chat_id
    if pending_chat_id is not None and any(chat.id == pending_chat_id for chat in ordered):
        pending_chat_id = None

    if pending_chat_id is not None and state.active_chat_id == pending_chat_id:
        active_chat_id = pending_chat_id
    else:
        active_chat_id = resolve_active_chat_id(ordered, state.active_chat_id)

    state = replace(state, chats=ordered, pending_chat_id=pending_chat_id)
    return _activate(state, active_chat_id)


def apply_chat_document(state: ConversationState, chat_id: str, chat: Optional[Chat]) -> ConversationState:
    """Apply a snapshot of one chat document; snapshots of other chats are ignored"""
    if chat_id != state.active_chat_id:
        return state
    if chat is None:
        return replace(state, messages=())
    return replace(
        state,
        messages=chat.messages,
        personality=chat.personality,
        context_memory_enabled=chat.context_memory_enabled,
    )


def apply_settings(state: ConversationState, settings: Optional[UserSettings]) -> ConversationState:
    return replace(state, settings=settings or UserSettings())


def apply_templates(state: ConversationState, templates: Iterable[PromptTemplate]) -> ConversationState:
    ordered = tuple(sorted(templates, key=lambda template: template.created_at or 0))
    return replace(state, prompt_templates=ordered)


def select_chat(state: ConversationState, chat_id: Optional[str]) -> ConversationState:
    if chat_id is not None and chat_id == state.pending_chat_id:
        return _activate(state, chat_id)
    return _activate(state, resolve_active_chat_id(state.chats, chat_id))


def activate_new_chat(state: ConversationState, chat_id: str) -> ConversationState:
    """Make a just-created chat active even before the chat list reports it"""
    if state.find_chat(chat_id) is not None:
        return _activate(state, chat_id)
    return replace(_activate(state, chat_id), pending_chat_id=chat_id)


def remove_chat(state: ConversationState, chat_id: str) -> ConversationState:
    """Drop a deleted chat locally and reselect when it was active"""
    remaining = tuple(chat for chat in state.chats if chat.id != chat_id)
    pending_chat_id = None if state.pending_chat_id == chat_id else state.pending_chat_id
    state = replace(state, chats=remaining, pending_chat_id=pending_chat_id)
    if state.active_chat_id == chat_id:
        return _activate(state, remaining[0].id if remaining else None)
    return state


def clear_user_scope(state: ConversationState) -> ConversationState:
    """State after sign-out; user-independent choices survive"""
    return ConversationState(
        selected_model=state.selected_model,
        personality=state.personality,
        context_memory_enabled=state.context_memory_enabled,
    )
