"""
Tests for structured logging and error tracking
"""

import json
import logging
import threading
import pytest
from unittest.mock import Mock

from utils.logging_config import (
    ErrorTracker,
    StructuredFormatter,
    get_error_tracker,
    log_conversation_event,
    log_execution_time,
)


class TestStructuredFormatter:
    """Test JSON log output"""

    def test_extra_fields_included(self):
        record = logging.LogRecord("chat", logging.INFO, __file__, 10, "Conversation event", None, None)
        record.chat_id = "c1"

        data = json.loads(StructuredFormatter().format(record))

        assert data["level"] == "INFO"
        assert data["message"] == "Conversation event"
        assert data["extra"] == {"chat_id": "c1"}

    def test_exception_included(self):
        try:
            raise ValueError("bad value")
        except ValueError:
            import sys
            record = logging.LogRecord("chat", logging.ERROR, __file__, 10, "failed", None, sys.exc_info())

        data = json.loads(StructuredFormatter().format(record))

        assert data["exception"]["type"] == "ValueError"
        assert data["exception"]["message"] == "bad value"


class TestLogHelpers:
    """Test logging helpers"""

    def test_execution_time_success(self):
        logger = Mock()

        with log_execution_time(logger, "generate_content", model="gpt-4"):
            pass

        extra = logger.info.call_args[1]["extra"]
        assert extra["status"] == "success"
        assert extra["model"] == "gpt-4"

    def test_execution_time_failure_reraises(self):
        logger = Mock()

        with pytest.raises(RuntimeError):
            with log_execution_time(logger, "generate_content"):
                raise RuntimeError("boom")

        assert logger.warning.call_args[1]["extra"]["status"] == "error"

    def test_conversation_event(self):
        logger = Mock()

        log_conversation_event(logger, "chat_created", "c1", title="Hello...")

        extra = logger.info.call_args[1]["extra"]
        assert extra["conversation_event_type"] == "chat_created"
        assert extra["chat_id"] == "c1"
        assert extra["title"] == "Hello..."


class TestErrorTracker:
    """Test error counting"""

    def test_counts_per_type_and_context(self):
        tracker = ErrorTracker(Mock())

        tracker.track_error(ValueError("a"), "send")
        tracker.track_error(ValueError("b"), "send")
        tracker.track_error(KeyError("c"), "delete_chat", chat_id="c1")

        summary = tracker.get_error_summary()
        assert summary["total_errors"] == 3
        assert summary["unique_errors"] == 2
        assert summary["error_breakdown"]["ValueError:send"] == 2

    def test_error_logged_with_exception(self):
        logger = Mock()
        error = RuntimeError("store down")

        ErrorTracker(logger).track_error(error, "persist_user_message", chat_id="c1")

        kwargs = logger.error.call_args[1]
        assert kwargs["exc_info"] is error
        assert kwargs["extra"]["chat_id"] == "c1"

    def test_recent_errors_newest_first(self):
        tracker = ErrorTracker(Mock(), recent_limit=2)

        tracker.track_error(ValueError("first"), "set_feedback")
        tracker.track_error(ValueError("second"), "update_setting")
        tracker.track_error(KeyError("third"), "delete_chat")

        recent = tracker.get_error_summary()["recent_errors"]
        assert [error["context"] for error in recent] == ["delete_chat", "update_setting"]

    def test_counts_from_many_threads(self):
        tracker = ErrorTracker(Mock())

        def report():
            for _ in range(50):
                tracker.track_error(RuntimeError("store down"), "subscription:chats")

        threads = [threading.Thread(target=report) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert tracker.get_error_summary()["error_breakdown"]["RuntimeError:subscription:chats"] == 200

    def test_global_tracker(self):
        assert get_error_tracker() is get_error_tracker()
