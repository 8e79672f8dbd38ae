"""
Langfuse client adapter for the application.
Traces generation calls when Langfuse keys are configured.
"""

from langfuse import Langfuse
from typing import Any, Optional

from config.app_config import get_config, get_langfuse_config
from utils.logging_config import get_logger


class LangfuseClient:
    """
    Adapter for Langfuse observability.
    Tracing is best-effort: every failure is logged and swallowed so a
    tracing outage never changes the outcome of a generation call.
    """

    def __init__(self):
        self.logger = get_logger(__name__)
        self.config = get_config()
        self._client = None

    def get_client(self) -> Optional[Langfuse]:
        """
        Get configured Langfuse client

        Returns:
            Optional[Langfuse]: Configured client or None if not available
        """
        if not self.config.logging.enable_langfuse_tracing:
            return None

        if self._client is None:
            try:
                langfuse_config = get_langfuse_config()

                if not langfuse_config["secret_key"] or not langfuse_config["public_key"]:
                    self.logger.debug("Langfuse keys not configured, skipping initialization")
                    return None

                self._client = Langfuse(
                    secret_key=langfuse_config["secret_key"],
                    public_key=langfuse_config["public_key"],
                    host=langfuse_config["host"]
                )

                self.logger.info("Langfuse client initialized successfully")

            except Exception as e:
                self.logger.warning(f"Failed to initialize Langfuse client: {e}")
                return None

        return self._client

    def start_generation(self, model: str, contents: Any) -> Optional[Any]:
        """
        Open a generation observation

        Returns:
            The observation handle, or None when tracing is unavailable
        """
        client = self.get_client()
        if client is None:
            return None

        try:
            return client.start_generation(name="generate_content", model=model, input=contents)
        except Exception as e:
            self.logger.warning(f"Failed to start Langfuse generation: {e}")
            return None

    def end_generation(self, generation: Optional[Any], output: Optional[str] = None,
                       error: Optional[Exception] = None):
        """Close an observation opened by start_generation"""
        if generation is None:
            return

        try:
            if error is not None:
                generation.update(level="ERROR", status_message=f"{type(error).__name__}: {error}")
            else:
                generation.update(output=output)
            generation.end()
        except Exception as e:
            self.logger.warning(f"Failed to end Langfuse generation: {e}")


# Global client instance
_langfuse_client: Optional[LangfuseClient] = None


def get_langfuse_client() -> LangfuseClient:
    """Get the global Langfuse client instance"""
    global _langfuse_client
    if _langfuse_client is None:
        _langfuse_client = LangfuseClient()
    return _langfuse_client
