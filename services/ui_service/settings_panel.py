"""
Settings panel - display settings and prompt template management.
"""

from typing import Optional

import streamlit as st

from config.app_config import AppConfig, get_config
from services.chat_service.conversation_controller import ConversationController
from services.chat_service.conversation_state import ConversationState
from services.chat_service.models import FontSize, PromptTemplate
from services.ui_service.dialogs import confirm_delete_template
from utils.logging_config import ErrorTracker, get_error_tracker, get_logger


class SettingsPanel:
    """
    Renders user settings and the prompt template editor in the sidebar.
    """

    def __init__(self, controller: ConversationController, config: Optional[AppConfig] = None,
                 error_tracker: Optional[ErrorTracker] = None):
        self.logger = get_logger(__name__)
        self.controller = controller
        self.config = config or get_config()
        self.error_tracker = error_tracker or get_error_tracker()

    def render(self):
        state = self.controller.snapshot()
        if not state.is_authenticated:
            return

        with st.sidebar:
            with st.expander("⚙️ Settings", expanded=False):
                self._render_display_settings(state)
                st.divider()
                self._render_templates(state)

            if self.config.debug:
                with st.expander("🩺 Diagnostics", expanded=False):
                    self._render_diagnostics()

    def _render_display_settings(self, state: ConversationState):
        st.markdown("### 🎨 Display")

        high_contrast = st.toggle("High contrast mode", value=state.settings.high_contrast_mode,
                                  key="setting_high_contrast")
        if high_contrast != state.settings.high_contrast_mode:
            self.controller.update_setting("highContrastMode", high_contrast)
            st.rerun()

        sizes = [size.value for size in FontSize]
        font_size = st.selectbox(
            "Font size",
            sizes,
            index=sizes.index(state.settings.font_size.value),
            format_func=lambda value: self.config.ui.font_sizes.get(value, value),
            key="setting_font_size"
        )
        if font_size != state.settings.font_size.value:
            self.controller.update_setting("fontSize", font_size)
            st.rerun()

    def _render_templates(self, state: ConversationState):
        st.markdown("### 📝 Prompt Templates")

        editing_id = st.session_state.get("editing_template_id")
        editing: Optional[PromptTemplate] = next(
            (template for template in state.prompt_templates if template.id == editing_id), None
        )
        if editing_id and editing is None:
            # Template was deleted elsewhere
            st.session_state.editing_template_id = None
            editing_id = None

        with st.form(f"template_form_{editing_id or 'new'}", clear_on_submit=True):
            name = st.text_input("Template name", value=editing.name if editing else "")
            content = st.text_area("Template content", value=editing.template if editing else "")
            submitted = st.form_submit_button("Update Template" if editing else "Save Template")

        if submitted:
            if self.controller.save_prompt_template(name, content, editing_id):
                st.session_state.editing_template_id = None
                st.rerun()
            else:
                st.warning("Template name and content are both required.")

        if editing is not None and st.button("Cancel editing", key="cancel_template_edit"):
            st.session_state.editing_template_id = None
            st.rerun()

        if not state.prompt_templates:
            st.caption("No templates saved yet.")
            return

        for template in state.prompt_templates:
            col_name, col_edit, col_delete = st.columns([4, 1, 1])
            with col_name:
                st.markdown(f"**{template.name}**")
                st.caption(template.template)
            with col_edit:
                if st.button("✏️", key=f"edit_template_{template.id}", help="Edit template"):
                    st.session_state.editing_template_id = template.id
                    st.rerun()
            with col_delete:
                if st.button("🗑️", key=f"delete_template_{template.id}", help="Delete template"):
                    confirm_delete_template(self.controller, template.id, template.name)

    def _render_diagnostics(self):
        summary = self.error_tracker.get_error_summary()
        st.metric("Errors since startup", summary["total_errors"])

        if not summary["error_breakdown"]:
            st.caption("No errors recorded.")
            return

        for error_key, count in sorted(summary["error_breakdown"].items(), key=lambda item: -item[1]):
            st.caption(f"{error_key} × {count}")

        latest = summary["recent_errors"][0]
        st.code(f"{latest['timestamp']} {latest['context']}: {latest['error_type']}: {latest['error_message']}")
