import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from focuscore.workspace import log_dir

LOGGER_NAME = "focuscore"
LOG_FILE_NAME = "focus.log"


def setup_logger(root: Path | None = None, level: str = "INFO") -> logging.Logger:
    directory = log_dir(root)
    directory.mkdir(parents=True, exist_ok=True)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not logger.handlers:
        handler = RotatingFileHandler(
            directory / LOG_FILE_NAME,
            maxBytes=1_000_000,
            backupCount=3,
            encoding="utf-8",
        )
        fmt = logging.Formatter("%(asctime)s | %(levelname)s | %(message)s")
        handler.setFormatter(fmt)
        logger.addHandler(handler)

    return logger
