"""
Logging Configuration
Sets up the 'tdcr_sim' logger for the simulator threads.

The event loop, the console thread, the viewer key callback and the chatter
publisher all log through this logger, so every record carries its thread
name. The console shows records at the requested level; the optional log
file (--log-file) always keeps DEBUG records such as chatter messages and
end-effector traces.
"""
import logging
import os
import sys
from typing import Optional

LOGGER_NAME = "tdcr_sim"
LOG_FORMAT = "%(asctime)s.%(msecs)03d [%(threadName)s] %(levelname)-7s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configures the package logger; safe to call more than once.

    Args:
        level: Console level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path of a log file; missing parent directories are created

    Returns:
        The configured 'tdcr_sim' logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        directory = os.path.dirname(os.path.abspath(log_file))
        os.makedirs(directory, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(level)

    logger.debug("Logging initialized (console %s, file %s)",
                 logging.getLevelName(level), log_file or "-")
    return logger
