import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

# Main application logger; modules use logger.getChild("<area>")
logger = logging.getLogger("presence")

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"
LOG_FILE_NAME = "attendance.log"


def configure_logging(log_dir: Optional[Union[str, Path]] = None, level: str = "INFO") -> logging.Logger:
    """
    Attach the console and rotating file handlers to the "presence" logger.

    Safe to call more than once: handlers are only added on the first call,
    later calls just update the level. Passing log_dir=None keeps logging on
    the console only (used by the test suite).
    """
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    formatter = logging.Formatter(LOG_FORMAT)

    # Console Handler
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_dir is not None:
        log_path = Path(log_dir)
        try:
            log_path.mkdir(exist_ok=True, parents=True)
        except OSError as e:
            logger.error(f"Could not create log directory at {log_path}: {e}")
        else:
            # File Handler (rotates when 5MB)
            file_handler = RotatingFileHandler(
                log_path / LOG_FILE_NAME,
                maxBytes=5 * 1024 * 1024,
                backupCount=3,
                encoding="utf-8",
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    logger.info("Logging configuration loaded successfully.")
    return logger
