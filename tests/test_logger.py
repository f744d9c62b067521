"""Tests for logging setup."""

import logging

import pytest

from feedglot.core.logger import LOGGER_NAME, SensitiveDataFilter, get_logger, setup_logger


@pytest.fixture
def clean_logger():
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    yield logger
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)


def make_record(msg: str) -> logging.LogRecord:
    return logging.LogRecord(LOGGER_NAME, logging.INFO, __file__, 1, msg, None, None)


class TestSensitiveDataFilter:
    def test_masks_urls(self):
        record = make_record("Cannot connect to translation API at http://10.0.0.5:8080/api")
        SensitiveDataFilter().filter(record)
        assert record.msg == "Cannot connect to translation API at [URL_MASKED]"

    def test_masks_bearer_tokens(self):
        record = make_record("Authorization: Bearer abc.DEF-123")
        SensitiveDataFilter().filter(record)
        assert "abc.DEF-123" not in record.msg
        assert "[TOKEN_MASKED]" in record.msg

    def test_leaves_plain_messages(self):
        record = make_record("Batch translation started: 3 articles -> fr")
        assert SensitiveDataFilter().filter(record) is True
        assert record.msg == "Batch translation started: 3 articles -> fr"


class TestSetupLogger:
    def test_adds_console_and_file_handlers(self, clean_logger, tmp_dir):
        logger = setup_logger("DEBUG", mask_logs=True, log_dir=tmp_dir)

        assert logger is get_logger()
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2
        assert (tmp_dir / "feedglot.log").exists()
        assert all(
            any(isinstance(f, SensitiveDataFilter) for f in h.filters)
            for h in logger.handlers
        )

    def test_second_call_reuses_handlers(self, clean_logger, tmp_dir):
        setup_logger(log_dir=tmp_dir)
        setup_logger(log_dir=tmp_dir)
        assert len(clean_logger.handlers) == 2

    def test_masking_can_be_disabled(self, clean_logger, tmp_dir):
        logger = setup_logger(mask_logs=False, log_dir=tmp_dir)
        assert all(not h.filters for h in logger.handlers)
