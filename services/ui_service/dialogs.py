"""
Confirmation dialogs for destructive actions.
"""

import streamlit as st

from services.chat_service.conversation_controller import ConversationController


def _confirm() -> bool:
    # The dialog's "Yes" button is the confirmation
    return True


@st.dialog("Delete chat?")
def confirm_delete_chat(controller: ConversationController, chat_id: str, title: str):
    st.write(f"Are you sure you want to delete **{title or 'this chat'}**? This cannot be undone.")

    col_yes, col_no = st.columns(2)
    with col_yes:
        if st.button("Yes, delete", key="confirm_delete_chat_yes", type="primary", use_container_width=True):
            controller.delete_chat(chat_id, _confirm)
            st.rerun()
    with col_no:
        if st.button("Cancel", key="confirm_delete_chat_no", use_container_width=True):
            st.rerun()


@st.dialog("Delete prompt template?")
def confirm_delete_template(controller: ConversationController, template_id: str, name: str):
    st.write(f"Are you sure you want to delete the template **{name}**?")

    col_yes, col_no = st.columns(2)
    with col_yes:
        if st.button("Yes, delete", key="confirm_delete_template_yes", type="primary", use_container_width=True):
            if controller.delete_prompt_template(template_id, _confirm):
                if st.session_state.get("editing_template_id") == template_id:
                    st.session_state.editing_template_id = None
            st.rerun()
    with col_no:
        if st.button("Cancel", key="confirm_delete_template_no", use_container_width=True):
            st.rerun()
