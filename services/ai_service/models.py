"""
AI service data models for generation requests and responses.
"""

from dataclasses import dataclass
from typing import List, Optional
from pydantic import BaseModel, Field


class GenerationError(Exception):
    """Base class for failed generation calls"""
    pass


class GenerationTransportError(GenerationError):
    """Endpoint unreachable, timed out, or answered with something that is not a reply"""
    pass


class GenerationStructuralError(GenerationError):
    """Endpoint answered, but the reply carries no usable text"""
    pass


@dataclass(frozen=True)
class HistoryEntry:
    """One turn of the conversation sent to the model"""
    role: str
    text: str


class Part(BaseModel):
    text: Optional[str] = None


class Content(BaseModel):
    role: Optional[str] = None
    parts: List[Part] = Field(default_factory=list)


class GenerateContentRequest(BaseModel):
    """Body of a generateContent call"""
    contents: List[Content]

    @classmethod
    def from_history(cls, history: List[HistoryEntry]) -> "GenerateContentRequest":
        return cls(contents=[
            Content(role=entry.role, parts=[Part(text=entry.text)]) for entry in history
        ])


class Candidate(BaseModel):
    content: Optional[Content] = None
    finish_reason: Optional[str] = Field(default=None, alias="finishReason")


class GenerateContentResponse(BaseModel):
    """Reply of a generateContent call; unknown fields are ignored"""
    candidates: List[Candidate] = Field(default_factory=list)

    def first_text(self) -> Optional[str]:
        """candidates[0].content.parts[0].text, or None when any step is missing"""
        if not self.candidates:
            return None
        content = self.candidates[0].content
        if content is None or not content.parts:
            return None
        return content.parts[0].text
