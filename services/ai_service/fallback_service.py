"""
AI service fallback messages for graceful degradation.

When generation fails the chat still gets an assistant turn, so the
conversation never ends on an unanswered user message.
"""

from typing import Optional

from services.ai_service.models import GenerationStructuralError, GenerationTransportError
from utils.logging_config import get_logger


STRUCTURAL_FALLBACK_MESSAGE = "Sorry, I couldn't generate a response. Please try again."
NETWORK_FALLBACK_MESSAGE = "An error occurred while connecting to the AI. Please check your network."


class FallbackService:
    """
    Maps generation failures to the fixed assistant message shown in their place.
    """

    def __init__(self):
        self.logger = get_logger(__name__)

    def fallback_for(self, error: Exception) -> str:
        """
        Fallback text for a failed generation call

        Args:
            error: Exception raised by the generation client

        Returns:
            Assistant message text to store in place of a reply
        """
        if isinstance(error, GenerationStructuralError):
            self.logger.info("Using structural fallback message")
            return STRUCTURAL_FALLBACK_MESSAGE

        if not isinstance(error, GenerationTransportError):
            # Anything unexpected from the transport layer counts as a connection problem
            self.logger.warning(f"Unclassified generation failure treated as network error: {type(error).__name__}")
        return NETWORK_FALLBACK_MESSAGE

    @staticmethod
    def is_fallback(text: str) -> bool:
        return text in (STRUCTURAL_FALLBACK_MESSAGE, NETWORK_FALLBACK_MESSAGE)


# Global fallback service instance
_fallback_service: Optional[FallbackService] = None


def get_fallback_service() -> FallbackService:
    """Get the global fallback service instance"""
    global _fallback_service
    if _fallback_service is None:
        _fallback_service = FallbackService()
    return _fallback_service
