"""
Send-message flow: user turn -> persisted message -> generation -> persisted reply.

The flow runs on the caller's thread and walks SendState in order:

    IDLE -> SENDING -> AWAITING_GENERATION -> SETTLING -> IDLE

Any failure returns to IDLE. The IDLE guard at the start rejects a second
send while one is in flight.
"""

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

from services.ai_service.models import HistoryEntry
from services.chat_service.conversation_state import SendState
from services.chat_service.models import (
    DEFAULT_CHAT_TITLE,
    Message,
    Role,
    make_chat_title,
)
from utils.logging_config import get_logger, log_conversation_event

if TYPE_CHECKING:
    from services.chat_service.conversation_controller import ConversationController


PERSONALITY_PROMPT = "You are an AI with a '{personality}' personality. Respond in that style."


def personality_instruction(personality: str) -> HistoryEntry:
    return HistoryEntry(role=Role.SYSTEM.value, text=PERSONALITY_PROMPT.format(personality=personality))


def build_generation_history(messages: Sequence[Message], personality: str,
                             context_memory_enabled: bool) -> List[HistoryEntry]:
    """
    Conversation history sent to the generation endpoint

    With context memory the whole chat is sent; without it only the newest
    user message. The personality instruction always comes first.
    """
    if context_memory_enabled:
        turns = [HistoryEntry(role=m.role.value, text=m.text) for m in messages if m.role != Role.SYSTEM]
    else:
        latest_user = next((m for m in reversed(messages) if m.role == Role.USER), None)
        turns = [HistoryEntry(role=Role.USER.value, text=latest_user.text)] if latest_user else []

    return [personality_instruction(personality)] + turns


@dataclass(frozen=True)
class SendContext:
    """Values captured when a send leaves IDLE"""
    text: str
    user_message: Message
    messages: Tuple[Message, ...]
    chat_id: Optional[str]
    chat_title: Optional[str]
    personality: str
    context_memory_enabled: bool
    model: str


class SendMessageFlow:
    """
    One pass of the send sequence on behalf of a ConversationController.

    State reads and writes go through the controller's lock; store and
    generation calls are made with the lock released.
    """

    def __init__(self, controller: "ConversationController"):
        self.logger = get_logger(__name__)
        self.controller = controller

    def run(self, text: str) -> bool:
        """
        Send a user message and settle the assistant reply

        Returns:
            True when the sequence left IDLE, False when the guard rejected it
        """
        context = self._begin(text)
        if context is None:
            return False

        try:
            context = self._persist_user_turn(context)
            if context is None:
                return True

            self.controller._set_send_state(SendState.AWAITING_GENERATION)
            reply = self._generate(context)

            self.controller._set_send_state(SendState.SETTLING)
            self._settle(context, reply)
            return True
        finally:
            self.controller._set_send_state(SendState.IDLE)
            self.controller._scroll_to_latest()

    def _begin(self, text: str) -> Optional[SendContext]:
        """IDLE guard; on success the user message is already appended locally"""
        text = (text or "").strip()
        if not text:
            return None

        controller = self.controller
        with controller._lock:
            state = controller._state
            if state.user is None:
                self.logger.warning("Send ignored: no signed-in user")
                return None
            if state.send_state != SendState.IDLE:
                self.logger.warning(f"Send ignored: previous message still {state.send_state.value}")
                return None

            user_message = Message(role=Role.USER, text=text)
            messages = state.messages + (user_message,)
            active = state.active_chat
            controller._state = replace(state, messages=messages, send_state=SendState.SENDING)

        return SendContext(
            text=text,
            user_message=user_message,
            messages=messages,
            chat_id=state.active_chat_id,
            chat_title=active.title if active is not None else None,
            personality=state.personality,
            context_memory_enabled=state.context_memory_enabled,
            model=state.selected_model,
        )

    def _persist_user_turn(self, context: SendContext) -> Optional[SendContext]:
        """Create the chat when needed and write the message list; None aborts the send"""
        controller = self.controller
        title = None

        if context.chat_id is None:
            chat_id = controller._create_chat(
                make_chat_title(context.text, controller.config.chat.title_length),
                context.personality,
                context.context_memory_enabled,
            )
            if chat_id is None:
                return None
            context = replace(context, chat_id=chat_id)
        elif context.chat_title == DEFAULT_CHAT_TITLE:
            title = make_chat_title(context.text, controller.config.chat.title_length)

        gateway = controller._gateway
        if gateway is None:
            return None

        try:
            gateway.save_messages(context.chat_id, context.messages, title=title)
        except Exception as e:
            controller._report_error(e, "persist_user_message", chat_id=context.chat_id)
            return None

        log_conversation_event(self.logger, "user_message_saved", context.chat_id,
                               message_count=len(context.messages))
        return context

    def _generate(self, context: SendContext) -> Message:
        controller = self.controller
        history = build_generation_history(
            context.messages, context.personality, context.context_memory_enabled
        )

        try:
            text = controller.generation_client.generate(history, context.model)
        except Exception as e:
            controller._report_error(e, "generate_reply", chat_id=context.chat_id, model=context.model)
            text = controller.fallback_service.fallback_for(e)

        return Message(role=Role.AI, text=text)

    def _settle(self, context: SendContext, reply: Message):
        controller = self.controller

        with controller._lock:
            state = controller._state
            still_active = state.active_chat_id == context.chat_id
            # Build on the latest local list so feedback set meanwhile is kept
            if still_active and context.user_message in state.messages:
                base = state.messages
            else:
                base = context.messages
            messages = base + (reply,)
            if still_active:
                controller._state = replace(state, messages=messages)

        gateway = controller._gateway
        if gateway is None:
            return

        try:
            gateway.save_messages(context.chat_id, messages)
        except Exception as e:
            controller._report_error(e, "persist_ai_message", chat_id=context.chat_id)
            return

        log_conversation_event(self.logger, "ai_message_saved", context.chat_id,
                               message_count=len(messages), model=context.model)
