"""
Theme resolution for the chat UI.
"""

from typing import Dict


def get_theme_colors(high_contrast: bool) -> Dict[str, str]:
    """Map the high-contrast flag to the colour palette used by the UI"""
    if high_contrast:
        return {
            "bg": "#111827",
            "text": "#f3f4f6",
            "card_bg": "#1f2937",
            "card_border": "#374151",
            "primary_btn_bg": "#2563eb",
            "secondary_btn_bg": "#374151",
            "input_bg": "#374151",
            "ai_bubble_bg": "#3730a3",
            "user_bubble_bg": "#166534",
            "sidebar_bg": "#1f2937",
            "sidebar_text": "#e5e7eb",
        }
    return {
        "bg": "#f3f4f6",
        "text": "#1f2937",
        "card_bg": "#ffffff",
        "card_border": "#e5e7eb",
        "primary_btn_bg": "#3b82f6",
        "secondary_btn_bg": "#e5e7eb",
        "input_bg": "#ffffff",
        "ai_bubble_bg": "#e0e7ff",
        "user_bubble_bg": "#dcfce7",
        "sidebar_bg": "#f9fafb",
        "sidebar_text": "#374151",
    }


FONT_SIZES = {
    "sm": "0.875rem",
    "base": "1rem",
    "lg": "1.125rem",
    "xl": "1.25rem",
}


def get_font_size(size: str) -> str:
    """CSS font size for a settings value; unknown values fall back to base"""
    return FONT_SIZES.get(size, FONT_SIZES["base"])


def build_theme_css(high_contrast: bool, font_size: str) -> str:
    """Style block injected at the top of every page"""
    colors = get_theme_colors(high_contrast)
    return f"""
    <style>
    .stApp {{
        background-color: {colors["bg"]};
        color: {colors["text"]};
        font-size: {get_font_size(font_size)};
    }}
    section[data-testid="stSidebar"] {{
        background-color: {colors["sidebar_bg"]};
        color: {colors["sidebar_text"]};
    }}
    div[data-testid="stChatMessage"]:has([data-testid="stChatMessageAvatarUser"]) {{
        background-color: {colors["user_bubble_bg"]};
        border-radius: 0.5rem;
        padding: 0.75rem;
    }}
    div[data-testid="stChatMessage"]:has([data-testid="stChatMessageAvatarAssistant"]) {{
        background-color: {colors["ai_bubble_bg"]};
        border-radius: 0.5rem;
        padding: 0.75rem;
    }}
    </style>
    """
