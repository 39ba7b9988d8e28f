import logging
from unittest.mock import Mock

import pytest

from app.fetch_proxy.errors import UpstreamFetchFailure
from app.utils.exception_logging import (
    _cause_chain,
    format_exception_message,
    log_exception_with_details,
)


class BrokenStrException(Exception):
    """An exception that breaks when __str__ is called."""

    def __str__(self):
        raise RuntimeError("Cannot convert to string!")

    def __repr__(self):
        return "BrokenStrException(cannot convert to string)"


def _raise_chained():
    try:
        try:
            raise ConnectionResetError("peer reset")
        except ConnectionResetError as e:
            raise OSError("socket closed") from e
    except OSError:
        raise UpstreamFetchFailure("Failed to fetch https://example.com/")


@pytest.fixture
def mock_logger():
    return Mock(spec=logging.Logger)


class TestLogExceptionWithDetails:
    def test_normal_exception_logging(self, mock_logger):
        exception = ValueError("Test error message")

        log_exception_with_details(mock_logger, "[Fetch]", exception)

        mock_logger.log.assert_called_once_with(
            logging.ERROR,
            "[Fetch] Exception: Test error message",
            exc_info=exception,
        )

    def test_exception_with_custom_level(self, mock_logger):
        exception = RuntimeError("Warning level error")

        log_exception_with_details(mock_logger, "[Rewrite]", exception, logging.WARNING)

        assert mock_logger.log.call_args[0][0] == logging.WARNING

    def test_cause_chain_logged(self, mock_logger):
        with pytest.raises(UpstreamFetchFailure) as exc_info:
            _raise_chained()

        log_exception_with_details(mock_logger, "[Fetch]", exc_info.value)

        messages = [c[0][1] for c in mock_logger.log.call_args_list]
        assert messages[0] == "[Fetch] Exception: Failed to fetch https://example.com/"
        assert messages[1] == "[Fetch] Caused by (1): OSError: socket closed"
        assert messages[2] == "[Fetch] Caused by (2): ConnectionResetError: peer reset"

    def test_broken_str_exception(self, mock_logger):
        log_exception_with_details(mock_logger, "[Fetch]", BrokenStrException())

        message = mock_logger.log.call_args[0][1]
        assert "BrokenStrException(cannot convert to string)" in message

    def test_none_exception(self, mock_logger):
        log_exception_with_details(mock_logger, "[Fetch]", None)

        mock_logger.log.assert_called_once_with(
            logging.ERROR, "[Fetch] Exception: None", exc_info=False
        )

    def test_none_prefix(self, mock_logger):
        log_exception_with_details(mock_logger, None, ValueError("x"))

        assert mock_logger.log.call_args[0][1] == " Exception: x"

    def test_logger_failure_resilience(self):
        failing_logger = Mock(spec=logging.Logger)
        failing_logger.log.side_effect = Exception("Logger failed!")

        # Must not raise
        log_exception_with_details(failing_logger, "[Fetch]", ValueError("x"))

        assert failing_logger.log.call_count == 2

    def test_real_logger_output(self, caplog):
        logger = logging.getLogger("test_exception_logging")

        with caplog.at_level(logging.ERROR, logger="test_exception_logging"):
            log_exception_with_details(logger, "[Fetch]", KeyError("missing"))

        assert "[Fetch] Exception: 'missing'" in caplog.text


class TestFormatExceptionMessage:
    def test_normal_exception(self):
        assert format_exception_message(ValueError("bad value")) == "bad value"

    def test_empty_message_uses_type_name(self):
        assert format_exception_message(TimeoutError()) == "TimeoutError"

    def test_broken_str_exception(self):
        assert (
            format_exception_message(BrokenStrException())
            == "BrokenStrException(cannot convert to string)"
        )

    def test_none(self):
        assert format_exception_message(None) == "None"


class TestCauseChain:
    def test_no_cause(self):
        assert _cause_chain(ValueError("x")) == []

    def test_cycle_is_cut(self):
        first = ValueError("a")
        second = ValueError("b")
        first.__cause__ = second
        second.__cause__ = first

        assert _cause_chain(first) == [second]

    def test_limit(self):
        head = current = ValueError("0")
        for i in range(1, 20):
            nxt = ValueError(str(i))
            current.__cause__ = nxt
            current = nxt

        assert len(_cause_chain(head, limit=5)) == 5
