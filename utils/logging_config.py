"""
Structured logging configuration and utilities
"""

import logging
import logging.handlers
import json
import threading
import time
import traceback
from collections import deque
from datetime import datetime
from pathlib import Path
from typing import Deque, Dict, Any, Optional
from contextlib import contextmanager
import streamlit as st

from config.app_config import get_config


class StructuredFormatter(logging.Formatter):
    """
    Custom formatter that outputs structured JSON logs
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON"""

        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info)
            }

        # Add extra fields from record
        extra_fields = {
            key: value for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_ATTRS
        }

        if extra_fields:
            log_data["extra"] = extra_fields

        return json.dumps(log_data, ensure_ascii=False, default=str)


_RESERVED_RECORD_ATTRS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'getMessage', 'exc_info',
    'exc_text', 'stack_info', 'taskName'
}


class StreamlitLogHandler(logging.Handler):
    """
    Shows warnings and errors as Streamlit toasts during development
    """

    def emit(self, record: logging.LogRecord):
        try:
            if record.levelno >= logging.ERROR:
                st.toast(f"🚨 {record.getMessage()}")
            elif record.levelno >= logging.WARNING:
                st.toast(f"⚠️ {record.getMessage()}")
        except Exception:
            self.handleError(record)


def setup_logging() -> logging.Logger:
    """
    Set up structured logging for the application

    Returns:
        logging.Logger: Configured root logger
    """
    config = get_config()

    if config.logging.enable_file_logging:
        log_file_path = Path(config.logging.log_file)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.logging.level))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(getattr(logging, config.logging.level))

    if config.debug:
        # Human-readable format for development
        console_formatter = logging.Formatter(
            config.logging.format + ' [%(filename)s:%(lineno)d]'
        )
    else:
        # Structured JSON format for production
        console_formatter = StructuredFormatter()

    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    if config.logging.enable_file_logging:
        file_handler = logging.handlers.RotatingFileHandler(
            config.logging.log_file,
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5,
            encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)  # Always debug level for files
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)

    if config.debug and config.environment == "development":
        streamlit_handler = StreamlitLogHandler()
        streamlit_handler.setLevel(logging.WARNING)
        root_logger.addHandler(streamlit_handler)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the specified name

    Args:
        name: Logger name (typically __name__)

    Returns:
        logging.Logger: Configured logger
    """
    return logging.getLogger(name)


@contextmanager
def log_execution_time(logger: logging.Logger, operation: str, **extra_fields):
    """
    Log how long an operation took and whether it raised

    Args:
        logger: Logger instance
        operation: Operation name, e.g. "generate_content"
        **extra_fields: Additional fields to include in both records
    """
    started = time.monotonic()
    logger.debug(f"Starting {operation}", extra={"operation": operation, **extra_fields})

    try:
        yield
    except Exception as e:
        logger.warning(f"Failed {operation}: {e}", extra={
            "operation": operation,
            "duration_ms": round((time.monotonic() - started) * 1000),
            "status": "error",
            "error_type": type(e).__name__,
            **extra_fields
        })
        raise

    logger.info(f"Completed {operation}", extra={
        "operation": operation,
        "duration_ms": round((time.monotonic() - started) * 1000),
        "status": "success",
        **extra_fields
    })


def log_user_interaction(logger: logging.Logger, interaction_type: str, **details):
    """Log a user action such as "select_chat" or "feedback" """
    logger.info("User interaction", extra={
        "event_type": "user_interaction",
        "interaction_type": interaction_type,
        **details
    })


def log_conversation_event(logger: logging.Logger, event_type: str, chat_id: Optional[str], **details):
    """
    Log a change to a chat

    Args:
        logger: Logger instance
        event_type: "chat_created", "chat_deleted", "user_message_saved" or "ai_message_saved"
        chat_id: Chat the event belongs to
        **details: Additional event details
    """
    logger.info("Conversation event", extra={
        "event_type": "conversation_event",
        "conversation_event_type": event_type,
        "chat_id": chat_id,
        **details
    })


class ErrorTracker:
    """
    Counts errors per type and context and keeps the most recent ones.

    Store and auth callbacks report from their own threads, so counters are
    guarded by a lock.
    """

    def __init__(self, logger: logging.Logger, recent_limit: int = 20):
        self.logger = logger
        self.error_counts: Dict[str, int] = {}
        self.recent_errors: Deque[Dict[str, Any]] = deque(maxlen=recent_limit)
        self._lock = threading.Lock()

    def track_error(self, error: Exception, context: str = "", **extra_info):
        """
        Count and log an error

        Args:
            error: Exception that occurred
            context: Operation that failed (e.g. "persist_user_message")
            **extra_info: Identifiers such as chat_id or template_id
        """
        error_type = type(error).__name__
        error_key = f"{error_type}:{context}"

        with self._lock:
            count = self.error_counts.get(error_key, 0) + 1
            self.error_counts[error_key] = count
            self.recent_errors.append({
                "context": context,
                "error_type": error_type,
                "error_message": str(error),
                "timestamp": datetime.now().isoformat(),
            })

        self.logger.error(f"Error in {context}: {error}", extra={
            "event_type": "error",
            "error_type": error_type,
            "error_message": str(error),
            "context": context,
            "error_count": count,
            **extra_info
        }, exc_info=error)

    def get_error_summary(self) -> Dict[str, Any]:
        """
        Error statistics for the diagnostics view

        Returns:
            Dict with totals, per type:context counts and the recent errors, newest first
        """
        with self._lock:
            return {
                "total_errors": sum(self.error_counts.values()),
                "unique_errors": len(self.error_counts),
                "error_breakdown": dict(self.error_counts),
                "recent_errors": list(reversed(self.recent_errors)),
            }


# Global instances
_logger_setup = False
_error_tracker: Optional[ErrorTracker] = None


def initialize_logging() -> ErrorTracker:
    """
    Initialize logging system and return error tracker

    Returns:
        ErrorTracker: Global error tracker instance
    """
    global _logger_setup, _error_tracker

    if not _logger_setup:
        setup_logging()
        _logger_setup = True

    if _error_tracker is None:
        _error_tracker = ErrorTracker(logging.getLogger("chat_studio.errors"))

    return _error_tracker


def get_error_tracker() -> ErrorTracker:
    """
    Get the global error tracker instance without touching handler setup

    Returns:
        ErrorTracker: Global error tracker
    """
    global _error_tracker
    if _error_tracker is None:
        _error_tracker = ErrorTracker(logging.getLogger("chat_studio.errors"))
    return _error_tracker
