"""
Tests for generation history construction
"""

import pytest
from services.chat_service.models import Message, Role
from services.chat_service.send_flow import (
    PERSONALITY_PROMPT,
    build_generation_history,
    personality_instruction,
)


class TestGenerationHistory:
    """Test the history sent to the generation endpoint"""

    def setup_method(self):
        self.messages = [
            Message(role=Role.USER, text="first question", timestamp=1),
            Message(role=Role.AI, text="first answer", timestamp=2),
            Message(role=Role.USER, text="second question", timestamp=3),
        ]

    def test_personality_instruction(self):
        entry = personality_instruction("Mentor")

        assert entry.role == "system"
        assert entry.text == "You are an AI with a 'Mentor' personality. Respond in that style."
        assert entry.text == PERSONALITY_PROMPT.format(personality="Mentor")

    def test_context_memory_on_sends_everything(self):
        history = build_generation_history(self.messages, "Funny", True)

        assert len(history) == len(self.messages) + 1
        assert history[0].role == "system"
        assert [(entry.role, entry.text) for entry in history[1:]] == [
            ("user", "first question"),
            ("ai", "first answer"),
            ("user", "second question"),
        ]

    def test_context_memory_off_sends_latest_user_message(self):
        history = build_generation_history(self.messages, "Funny", False)

        assert len(history) == 2
        assert history[0].text.startswith("You are an AI with a 'Funny' personality")
        assert (history[1].role, history[1].text) == ("user", "second question")

    def test_context_memory_off_skips_trailing_ai_message(self):
        messages = self.messages + [Message(role=Role.AI, text="second answer", timestamp=4)]

        history = build_generation_history(messages, "Professional", False)

        assert history[1].text == "second question"

    def test_empty_conversation(self):
        history = build_generation_history([], "Professional", False)

        assert len(history) == 1
