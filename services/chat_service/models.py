"""
Chat service data models for chats, messages, settings and prompt templates.

Stored documents keep camelCase keys; the dataclasses here are the decoded,
defaulted view the rest of the application works with.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple
import time

from utils.logging_config import get_logger


logger = get_logger(__name__)

DEFAULT_CHAT_TITLE = "New Chat"
DEFAULT_PERSONALITY = "Professional"
TITLE_LENGTH = 30


def now_millis() -> int:
    """Current time as epoch milliseconds"""
    return int(time.time() * 1000)


def _millis(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        logger.warning(f"Unreadable timestamp {value!r}, decoding as 0")
        return 0


def make_chat_title(text: str, length: int = TITLE_LENGTH) -> str:
    """Title derived from the first message of a chat"""
    return text[:length] + "..."


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    AI = "ai"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Role":
        # Older documents and other clients write the assistant role differently
        if value in ("assistant", "model"):
            return cls.AI
        try:
            return cls(value)
        except ValueError:
            logger.warning(f"Unknown message role {value!r}, decoding as user")
            return cls.USER


class Feedback(str, Enum):
    THUMBS_UP = "👍"
    THUMBS_DOWN = "👎"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Feedback"]:
        if not value:
            return None
        try:
            return cls(value)
        except ValueError:
            logger.warning(f"Unknown message feedback {value!r}, ignoring it")
            return None


class FontSize(str, Enum):
    SMALL = "sm"
    BASE = "base"
    LARGE = "lg"
    EXTRA_LARGE = "xl"

    @classmethod
    def parse(cls, value: Optional[str]) -> "FontSize":
        try:
            return cls(value)
        except ValueError:
            return cls.BASE


@dataclass(frozen=True)
class Message:
    """Single chat message; only feedback may change after creation"""
    role: Role
    text: str
    timestamp: int = field(default_factory=now_millis)
    feedback: Optional[Feedback] = None

    def with_feedback(self, feedback: Optional[Feedback]) -> "Message":
        return replace(self, feedback=feedback)

    def to_document(self) -> Dict[str, Any]:
        document = {
            "role": self.role.value,
            "text": self.text,
            "timestamp": self.timestamp,
        }
        if self.feedback is not None:
            document["feedback"] = self.feedback.value
        return document

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "Message":
        return cls(
            role=Role.parse(data.get("role", Role.USER.value)),
            text=data.get("text") or "",
            timestamp=_millis(data.get("timestamp")),
            feedback=Feedback.parse(data.get("feedback")),
        )


@dataclass(frozen=True)
class Chat:
    """Chat thread as stored in the user's chats collection"""
    id: str
    title: str = DEFAULT_CHAT_TITLE
    messages: Tuple[Message, ...] = ()
    created_at: int = 0
    personality: str = DEFAULT_PERSONALITY
    context_memory_enabled: bool = True

    @property
    def display_title(self) -> str:
        """Title for lists and headers; untitled chats are told apart by id"""
        return self.title or f"Chat {self.id[:4]}"

    def to_document(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "messages": [message.to_document() for message in self.messages],
            "createdAt": self.created_at,
            "personality": self.personality,
            "contextMemoryEnabled": self.context_memory_enabled,
        }

    @classmethod
    def from_document(cls, chat_id: str, data: Dict[str, Any]) -> "Chat":
        context_memory = data.get("contextMemoryEnabled")
        return cls(
            id=chat_id,
            title=data.get("title") or "",
            messages=tuple(Message.from_document(m) for m in data.get("messages") or []),
            created_at=_millis(data.get("createdAt")),
            personality=data.get("personality") or DEFAULT_PERSONALITY,
            context_memory_enabled=True if context_memory is None else bool(context_memory),
        )


@dataclass(frozen=True)
class UserSettings:
    """Per-user settings singleton"""
    high_contrast_mode: bool = False
    font_size: FontSize = FontSize.BASE

    def to_document(self) -> Dict[str, Any]:
        return {
            "highContrastMode": self.high_contrast_mode,
            "fontSize": self.font_size.value,
        }

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "UserSettings":
        return cls(
            high_contrast_mode=bool(data.get("highContrastMode", False)),
            font_size=FontSize.parse(data.get("fontSize")),
        )


SETTINGS_KEYS = {
    "highContrastMode": "high_contrast_mode",
    "fontSize": "font_size",
}


@dataclass(frozen=True)
class PromptTemplate:
    """Reusable prompt snippet saved under settings"""
    id: str
    name: str
    template: str
    created_at: Optional[int] = None
    updated_at: Optional[int] = None

    @classmethod
    def from_document(cls, template_id: str, data: Dict[str, Any]) -> "PromptTemplate":
        return cls(
            id=template_id,
            name=data.get("name", ""),
            template=data.get("template", ""),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )
