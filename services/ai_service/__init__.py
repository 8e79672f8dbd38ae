"""
AI service - handles text generation calls and their fallback messages.
"""

from .fallback_service import (
    FallbackService,
    NETWORK_FALLBACK_MESSAGE,
    STRUCTURAL_FALLBACK_MESSAGE,
    get_fallback_service
)
from .generation_client import GenerationClient, get_generation_client
from .models import (
    GenerationError,
    GenerationStructuralError,
    GenerationTransportError,
    HistoryEntry
)

__all__ = [
    'FallbackService',
    'NETWORK_FALLBACK_MESSAGE',
    'STRUCTURAL_FALLBACK_MESSAGE',
    'get_fallback_service',
    'GenerationClient',
    'get_generation_client',
    'GenerationError',
    'GenerationStructuralError',
    'GenerationTransportError',
    'HistoryEntry'
]
