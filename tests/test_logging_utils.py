import logging

from desklic.common.logging_utils import LOG_FORMAT, setup_logger


def test_setup_logger_attaches_single_handler() -> None:
    """Test repeated setup keeps one handler."""
    logger = logging.getLogger("desklic.tests.setup")
    logger.handlers.clear()

    setup_logger(logger, logging.INFO)
    setup_logger(logger, logging.DEBUG)

    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG
    assert logger.handlers[0].level == logging.DEBUG
    assert logger.handlers[0].formatter._fmt == LOG_FORMAT  # noqa: SLF001
    logger.handlers.clear()
