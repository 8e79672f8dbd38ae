"""
Chat panel - header, per-chat options, message list with feedback, and the message input.
"""

from typing import Optional
import html

import streamlit as st
import streamlit.components.v1 as components

from config.app_config import AppConfig, get_config
from services.ai_service.fallback_service import FallbackService
from services.chat_service.conversation_controller import ConversationController
from services.chat_service.conversation_state import ConversationState
from services.chat_service.models import Feedback, Role
from utils.logging_config import get_logger, log_user_interaction


SCROLL_TO_LATEST_SCRIPT = """
<script>
const main = window.parent.document.querySelector('section.main, [data-testid="stMain"]');
if (main) { main.scrollTo({top: main.scrollHeight, behavior: 'smooth'}); }
</script>
"""


class ChatPanel:
    """
    Main conversation area.

    Sending is two-phase across reruns: the Send button stores the draft as
    the pending message, the next run shows it and calls the controller
    inside the thinking indicator.
    """

    def __init__(self, controller: ConversationController, config: Optional[AppConfig] = None):
        self.logger = get_logger(__name__)
        self.controller = controller
        self.config = config or get_config()

    def render(self):
        state = self.controller.snapshot()

        st.markdown(
            f'<div class="main-header"><h1>{html.escape(self.controller.active_chat_title())}</h1></div>',
            unsafe_allow_html=True
        )

        if not state.is_authenticated:
            st.info("Signing in...")
            if state.last_error:
                st.error("Authentication failed. Please refresh the page.")
            return

        self._render_chat_options(state)
        self._render_messages(state)
        self._process_pending_message()
        self._render_templates(state)
        self._render_input(state)

        if st.session_state.pop("scroll_to_latest", False):
            components.html(SCROLL_TO_LATEST_SCRIPT, height=0)

    def _render_chat_options(self, state: ConversationState):
        personalities = list(self.config.chat.personalities)
        models = list(self.config.generation.allowed_models.keys())
        chat_key = state.active_chat_id or "draft"

        col_personality, col_model, col_memory = st.columns([2, 2, 1])

        with col_personality:
            personality = st.selectbox(
                "AI Personality",
                personalities,
                index=personalities.index(state.personality) if state.personality in personalities else 0,
                key=f"personality_{chat_key}"
            )
            if personality != state.personality:
                self.controller.set_personality(personality)
                st.rerun()

        with col_model:
            model = st.selectbox(
                "Model",
                models,
                index=models.index(state.selected_model) if state.selected_model in models else 0,
                format_func=lambda value: self.config.generation.allowed_models.get(value, value),
                key="model_select"
            )
            if model != state.selected_model:
                self.controller.set_model(model)
                st.rerun()

        with col_memory:
            context_memory = st.toggle(
                "Context memory",
                value=state.context_memory_enabled,
                key=f"context_memory_{chat_key}",
                help="Send the whole conversation to the AI instead of only your latest message"
            )
            if context_memory != state.context_memory_enabled:
                self.controller.set_context_memory(context_memory)
                st.rerun()

    def _render_messages(self, state: ConversationState):
        if not state.messages and not st.session_state.get("pending_message"):
            st.markdown(f"### {self.config.ui.empty_chat_message}")
            st.caption(self.config.ui.empty_chat_hint)
            return

        for index, message in enumerate(state.messages):
            is_user = message.role == Role.USER
            with st.chat_message("user" if is_user else "assistant"):
                if message.role == Role.AI and FallbackService.is_fallback(message.text):
                    st.warning(message.text, icon="⚠️")
                else:
                    st.markdown(message.text)

                if message.role == Role.AI:
                    self._render_feedback(index, message.feedback)

    def _render_feedback(self, index: int, current: Optional[Feedback]):
        cols = st.columns([1, 1, 10])
        for col, feedback in zip(cols, (Feedback.THUMBS_UP, Feedback.THUMBS_DOWN)):
            with col:
                if st.button(feedback.value, key=f"feedback_{index}_{feedback.name}",
                             type="primary" if current == feedback else "secondary"):
                    self.controller.set_feedback(index, feedback)
                    st.rerun()

    def _process_pending_message(self):
        pending = st.session_state.pop("pending_message", None)
        if not pending:
            return

        log_user_interaction(self.logger, "message_submitted", message_length=len(pending))

        with st.chat_message("user"):
            st.markdown(pending)
        with st.chat_message("assistant"):
            with st.spinner(self.config.ui.thinking_message):
                self.controller.send_message(pending)

        st.rerun()

    def _render_templates(self, state: ConversationState):
        if not state.prompt_templates:
            return

        st.caption("📝 Prompt templates")
        cols = st.columns(min(len(state.prompt_templates), 4))
        for i, template in enumerate(state.prompt_templates):
            with cols[i % len(cols)]:
                st.button(
                    template.name,
                    key=f"apply_template_{template.id}",
                    help=template.template,
                    on_click=self._apply_template,
                    args=(template.id,),
                    use_container_width=True
                )

    def _apply_template(self, template_id: str):
        draft = st.session_state.get("draft_message", "")
        st.session_state.draft_message = self.controller.apply_prompt_template(template_id, draft)

    def _queue_draft(self):
        draft = st.session_state.get("draft_message", "")
        if draft.strip():
            st.session_state.pending_message = draft
            st.session_state.draft_message = ""

    def _render_input(self, state: ConversationState):
        st.text_area(
            "Message",
            key="draft_message",
            placeholder="Type your message...",
            label_visibility="collapsed",
            disabled=not state.can_send
        )
        st.button("Send", type="primary", on_click=self._queue_draft, disabled=not state.can_send)
