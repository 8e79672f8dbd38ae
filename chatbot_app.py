import streamlit as st

from config.app_config import get_config
from infrastructure.store import SQLiteDocumentStore
from services.ai_service import get_generation_client
from services.auth_service.identity_provider import IdentityProvider
from services.chat_service.conversation_controller import ConversationController
from services.ui_service import ChatPanel, SettingsPanel, Sidebar
from utils.logging_config import initialize_logging, get_logger
from utils.theme import build_theme_css

# Initialize logging and error tracking
error_tracker = initialize_logging()
logger = get_logger(__name__)

# Get configuration
config = get_config()

st.set_page_config(page_title=config.ui.app_title, page_icon="💬", layout="wide")


@st.cache_resource
def get_document_store() -> SQLiteDocumentStore:
    """Document store shared by every browser session of this server"""
    return SQLiteDocumentStore(config.store.db_path)


def request_scroll():
    st.session_state.scroll_to_latest = True


def get_controller() -> ConversationController:
    """Conversation controller of the current browser session"""
    if "controller" not in st.session_state:
        controller = ConversationController(
            store=get_document_store(),
            identity_provider=IdentityProvider(token_secret=config.auth.token_secret),
            generation_client=get_generation_client(),
            config=config,
            error_tracker=error_tracker,
            on_scroll=request_scroll
        )
        controller.start()
        st.session_state.controller = controller
        logger.info("Conversation controller started for new session")
    return st.session_state.controller


def main_app():
    """Main application content"""
    for error in config.validate():
        logger.warning(f"Configuration issue: {error}")

    try:
        controller = get_controller()
    except Exception as e:
        error_tracker.track_error(e, "controller_initialization")
        st.error("Failed to initialize the chat. Please refresh the page.")
        return

    settings = controller.snapshot().settings
    st.markdown(build_theme_css(settings.high_contrast_mode, settings.font_size.value), unsafe_allow_html=True)
    st.markdown("""
    <style>
    .main-header {
        text-align: center;
        padding: 1rem 0;
        border-bottom: 2px solid #e3f2fd;
        margin-bottom: 1rem;
    }
    </style>
    """, unsafe_allow_html=True)

    Sidebar(controller).render()
    SettingsPanel(controller, config, error_tracker).render()
    ChatPanel(controller, config).render()


main_app()
