"""
Tests for generation fallback messages
"""

import pytest
from services.ai_service.fallback_service import (
    NETWORK_FALLBACK_MESSAGE,
    STRUCTURAL_FALLBACK_MESSAGE,
    FallbackService,
    get_fallback_service,
)
from services.ai_service.models import GenerationStructuralError, GenerationTransportError


class TestFallbackService:
    """Test failure to message mapping"""

    def setup_method(self):
        self.service = FallbackService()

    def test_structural_failure(self):
        message = self.service.fallback_for(GenerationStructuralError("no candidates"))

        assert message == "Sorry, I couldn't generate a response. Please try again."

    def test_transport_failure(self):
        message = self.service.fallback_for(GenerationTransportError("timeout"))

        assert message == "An error occurred while connecting to the AI. Please check your network."

    def test_unclassified_failure_is_network(self):
        assert self.service.fallback_for(OSError("reset")) == NETWORK_FALLBACK_MESSAGE

    def test_is_fallback(self):
        assert FallbackService.is_fallback(STRUCTURAL_FALLBACK_MESSAGE)
        assert FallbackService.is_fallback(NETWORK_FALLBACK_MESSAGE)
        assert not FallbackService.is_fallback("Here is your answer")

    def test_global_instance(self):
        assert get_fallback_service() is get_fallback_service()
