import logging

from tdcr_sim.logging_config import setup_logging


def test_console_only_uses_requested_level(package_logger):
    logger = setup_logging(logging.WARNING)

    assert logger is package_logger
    assert logger.level == logging.WARNING
    assert len(logger.handlers) == 1


def test_log_file_keeps_debug_records(tmp_path, package_logger):
    log_file = tmp_path / "logs" / "tdcr.log"
    setup_logging(logging.INFO, str(log_file))
    logger = setup_logging(logging.INFO, str(log_file))

    # Calling twice replaces the handlers instead of stacking them
    assert len(logger.handlers) == 2
    console, file_handler = logger.handlers
    assert console.level == logging.INFO
    assert file_handler.level == logging.DEBUG

    logging.getLogger("tdcr_sim.messaging.chatter").debug("chatter: hello world 0")
    file_handler.flush()

    text = log_file.read_text(encoding="utf-8")
    assert "chatter: hello world 0" in text
    assert "[MainThread] DEBUG   tdcr_sim.messaging.chatter" in text
