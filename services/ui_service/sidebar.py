"""
Sidebar - chat list with new and delete actions.
"""

import streamlit as st

from services.chat_service.conversation_controller import ConversationController
from services.ui_service.dialogs import confirm_delete_chat
from utils.logging_config import get_logger


class Sidebar:
    """
    Renders the chat list. Every action goes through the controller.
    """

    def __init__(self, controller: ConversationController):
        self.logger = get_logger(__name__)
        self.controller = controller

    def render(self):
        state = self.controller.snapshot()

        with st.sidebar:
            st.markdown("## 💬 Chats")

            if st.button("➕ New Chat", use_container_width=True, type="secondary",
                         disabled=not state.is_authenticated):
                self.controller.create_chat()
                st.rerun()

            st.caption(f"📊 {len(state.chats)} chat{'s' if len(state.chats) != 1 else ''}")

            for chat in state.chats:
                is_active = chat.id == state.active_chat_id
                label = chat.display_title

                col_select, col_delete = st.columns([5, 1])
                with col_select:
                    if st.button(f"{'✅' if is_active else '💬'} {label}", key=f"select_{chat.id}",
                                 use_container_width=True, type="primary" if is_active else "secondary"):
                        if not is_active:
                            self.controller.select_chat(chat.id)
                            st.rerun()
                with col_delete:
                    if st.button("🗑️", key=f"delete_{chat.id}", help="Delete chat"):
                        confirm_delete_chat(self.controller, chat.id, label)

            st.divider()
            if state.user is not None:
                kind = "anonymous" if state.user.is_anonymous else "signed in"
                st.caption(f"User ID: `{state.user.uid}` ({kind})")
            else:
                st.caption("Signing in...")
