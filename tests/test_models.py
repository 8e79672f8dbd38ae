"""
Tests for chat data models
"""

import pytest
from services.chat_service.models import (
    Chat,
    Feedback,
    FontSize,
    Message,
    PromptTemplate,
    Role,
    UserSettings,
    make_chat_title,
)


class TestChatTitle:
    """Test derived chat titles"""

    def test_long_text_truncated(self):
        text = "This is a long first message that goes beyond thirty characters"

        assert make_chat_title(text) == text[:30] + "..."

    def test_short_text_still_gets_ellipsis(self):
        assert make_chat_title("Hi") == "Hi..."


class TestMessage:
    """Test message documents"""

    def test_from_document_defaults(self):
        message = Message.from_document({"text": "hello"})

        assert message.role == Role.USER
        assert message.timestamp == 0
        assert message.feedback is None

    def test_assistant_role_aliases(self):
        assert Message.from_document({"role": "assistant", "text": "x"}).role == Role.AI
        assert Message.from_document({"role": "model", "text": "x"}).role == Role.AI

    def test_unknown_feedback_decodes_to_none(self):
        message = Message.from_document({"role": "ai", "text": "x", "feedback": "thumbs-up"})

        assert message.feedback is None
        assert message.role == Role.AI

    def test_unknown_role_decodes_to_user(self):
        assert Message.from_document({"role": "narrator", "text": "x"}).role == Role.USER

    def test_unreadable_timestamp_decodes_to_zero(self):
        assert Message.from_document({"text": "x", "timestamp": "yesterday"}).timestamp == 0

    def test_stored_feedback_decoded(self):
        assert Message.from_document({"text": "x", "feedback": "👍"}).feedback == Feedback.THUMBS_UP

    def test_feedback_is_the_only_mutation(self):
        message = Message(role=Role.AI, text="answer", timestamp=5)

        rated = message.with_feedback(Feedback.THUMBS_DOWN)

        assert rated.feedback == Feedback.THUMBS_DOWN
        assert rated.text == "answer"
        assert message.feedback is None

    def test_to_document_omits_missing_feedback(self):
        document = Message(role=Role.USER, text="hi", timestamp=1).to_document()

        assert document == {"role": "user", "text": "hi", "timestamp": 1}


class TestChat:
    """Test chat documents"""

    def test_display_title(self):
        assert Chat(id="abcdef123", title="").display_title == "Chat abcd"
        assert Chat(id="abcdef123", title="Recipes...").display_title == "Recipes..."

    def test_missing_fields_default(self):
        chat = Chat.from_document("c1", {})

        assert chat.title == ""
        assert chat.messages == ()
        assert chat.created_at == 0
        assert chat.personality == "Professional"
        assert chat.context_memory_enabled is True

    def test_document_keys_are_camel_case(self):
        chat = Chat(id="c1", title="T", created_at=100, context_memory_enabled=False)

        document = chat.to_document()

        assert document["createdAt"] == 100
        assert document["contextMemoryEnabled"] is False
        assert Chat.from_document("c1", document) == chat


class TestSettings:
    """Test settings decoding"""

    def test_unknown_font_size_falls_back(self):
        settings = UserSettings.from_document({"fontSize": "huge"})

        assert settings.font_size == FontSize.BASE
        assert settings.high_contrast_mode is False

    def test_font_size_parse(self):
        assert FontSize.parse("xl") == FontSize.EXTRA_LARGE
        assert FontSize.parse(None) == FontSize.BASE


class TestPromptTemplate:
    """Test template decoding"""

    def test_from_document(self):
        template = PromptTemplate.from_document("t1", {"name": "N", "template": "T", "createdAt": 7})

        assert template.id == "t1"
        assert template.created_at == 7
        assert template.updated_at is None
