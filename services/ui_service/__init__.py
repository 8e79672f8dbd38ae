"""
UI service - Streamlit rendering of the conversation controller state.
"""

from .chat_panel import ChatPanel
from .settings_panel import SettingsPanel
from .sidebar import Sidebar

__all__ = [
    'ChatPanel',
    'SettingsPanel',
    'Sidebar'
]
