"""
Generation client - one outbound call to a hosted text-generation endpoint per user turn.

Gemini models are called over REST (generateContent); gpt-* models go through
the OpenAI SDK. Neither path retries: a failed call is reported once and the
caller decides what to show.
"""

from typing import Dict, List, Optional, Sequence

import openai
import requests
from openai import OpenAI
from pydantic import ValidationError

from config.app_config import AppConfig, get_config
from infrastructure.external.langfuse_client import LangfuseClient, get_langfuse_client
from services.ai_service.models import (
    GenerateContentRequest,
    GenerateContentResponse,
    GenerationStructuralError,
    GenerationTransportError,
    HistoryEntry,
)
from utils.logging_config import get_logger, log_execution_time


# Conversation roles as the REST endpoint names them
GEMINI_ROLES = {"user": "user", "ai": "model"}
OPENAI_ROLES = {"system": "system", "user": "user", "ai": "assistant"}


class GenerationClient:
    """
    Client for the text-generation endpoint.
    """

    def __init__(self, config: Optional[AppConfig] = None,
                 http: Optional[requests.Session] = None,
                 openai_client: Optional[OpenAI] = None,
                 tracer: Optional[LangfuseClient] = None):
        self.logger = get_logger(__name__)
        self.config = config or get_config()
        self.http = http or requests.Session()
        self._openai_client = openai_client
        self.tracer = tracer or get_langfuse_client()

    def generate(self, history: Sequence[HistoryEntry], model: str) -> str:
        """
        Generate the assistant reply for a conversation

        Args:
            history: Ordered conversation turns (system, user and ai roles)
            model: Model identifier from the allow-list

        Returns:
            Reply text, never empty

        Raises:
            GenerationTransportError: endpoint unreachable or timed out
            GenerationStructuralError: reply without usable text
        """
        if not self.config.generation.is_allowed(model):
            raise GenerationStructuralError(f"Model '{model}' is not in the allow-list")

        history = list(history)
        generation = self.tracer.start_generation(model, [entry.__dict__ for entry in history])

        try:
            with log_execution_time(self.logger, "generate_content", model=model, history_length=len(history)):
                if model.startswith("gpt-"):
                    text = self._generate_openai(history, model)
                else:
                    text = self._generate_gemini(history, model)
        except Exception as e:
            self.tracer.end_generation(generation, error=e)
            raise

        self.tracer.end_generation(generation, output=text)
        return text

    # Gemini REST

    def _gemini_body(self, history: List[HistoryEntry]) -> Dict:
        system_entries = [entry for entry in history if entry.role == "system"]
        turns = [
            HistoryEntry(role=GEMINI_ROLES.get(entry.role, entry.role), text=entry.text)
            for entry in history if entry.role != "system"
        ]

        body = GenerateContentRequest.from_history(turns).model_dump(exclude_none=True)
        if system_entries:
            body["systemInstruction"] = {
                "parts": [{"text": entry.text} for entry in system_entries]
            }
        return body

    def _generate_gemini(self, history: List[HistoryEntry], model: str) -> str:
        url = f"{self.config.generation.base_url}/models/{model}:generateContent"

        try:
            response = self.http.post(
                url,
                params={"key": self.config.api.gemini_api_key},
                json=self._gemini_body(history),
                timeout=self.config.generation.timeout_seconds
            )
        except requests.Timeout as e:
            raise GenerationTransportError(
                f"Generation timed out after {self.config.generation.timeout_seconds}s"
            ) from e
        except requests.RequestException as e:
            raise GenerationTransportError(f"Could not reach generation endpoint: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise GenerationTransportError(
                f"Generation endpoint returned a non-JSON body (HTTP {response.status_code})"
            ) from e

        if not response.ok:
            self.logger.warning(f"Generation endpoint answered HTTP {response.status_code}: {payload}")

        try:
            parsed = GenerateContentResponse.model_validate(payload)
        except ValidationError as e:
            raise GenerationStructuralError(f"Unexpected response structure: {e}") from e

        text = parsed.first_text()
        if not text:
            raise GenerationStructuralError(f"Response carries no candidate text: {payload}")
        return text

    # OpenAI

    def _get_openai_client(self) -> OpenAI:
        if self._openai_client is None:
            api_key = self.config.api.openai_api_key
            if not api_key:
                raise GenerationTransportError("OpenAI API key not configured")

            self._openai_client = OpenAI(
                api_key=api_key,
                timeout=self.config.generation.timeout_seconds,
                max_retries=0
            )
            self.logger.info("OpenAI client initialized")

        return self._openai_client

    def _generate_openai(self, history: List[HistoryEntry], model: str) -> str:
        client = self._get_openai_client()
        messages = [
            {"role": OPENAI_ROLES.get(entry.role, "user"), "content": entry.text}
            for entry in history
        ]

        try:
            completion = client.chat.completions.create(model=model, messages=messages)
        except openai.APIConnectionError as e:
            # Includes APITimeoutError
            raise GenerationTransportError(f"Could not reach OpenAI: {e}") from e
        except openai.APIStatusError as e:
            raise GenerationStructuralError(f"OpenAI answered HTTP {e.status_code}: {e.message}") from e

        if not completion.choices:
            raise GenerationStructuralError("OpenAI response has no choices")

        text = completion.choices[0].message.content
        if not text:
            raise GenerationStructuralError("OpenAI response has no message content")
        return text


# Global client instance
_generation_client: Optional[GenerationClient] = None


def get_generation_client() -> GenerationClient:
    """Get the global generation client instance"""
    global _generation_client
    if _generation_client is None:
        _generation_client = GenerationClient()
    return _generation_client
