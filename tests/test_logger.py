import io
import logging

from appraiser.utils.logger import setup_logger


def test_setup_logger_writes_console_and_file(tmp_path):
    stream = io.StringIO()
    log_file = tmp_path / "logs" / "appraiser.log"

    logger = setup_logger("appraiser.test", log_file=str(log_file), log_level="DEBUG", stream=stream)
    logging.getLogger("appraiser.test.child").info("consensus reached")
    for handler in logger.handlers:
        handler.flush()

    assert len(logger.handlers) == 2
    assert "consensus reached" in stream.getvalue()
    assert "consensus reached" in log_file.read_text()
    assert logging.getLogger("httpx").level == logging.WARNING
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()


def test_setup_logger_replaces_handlers():
    stream = io.StringIO()

    setup_logger("appraiser.test", log_file="", stream=stream)
    logger = setup_logger("appraiser.test", log_file="", log_level="WARNING", stream=stream)
    logger.info("hidden")

    assert len(logger.handlers) == 1
    assert stream.getvalue() == ""
    logger.handlers.clear()
