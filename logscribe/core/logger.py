"""Logging setup for LogScribe.

API keys travel in request headers and query strings, so both the console
and the rotating file handler mask URLs and key material when enabled.
"""

import logging
import logging.handlers
import re
from pathlib import Path
from typing import Optional

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
LOG_DIR = PROJECT_ROOT / "logs"
LOG_FILE_NAME = "logscribe.log"
LOGGER_NAME = "logscribe"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"


class SensitiveDataFilter(logging.Filter):
    """Masks URLs, bearer tokens and key=value credentials."""

    URL_PATTERN = re.compile(r'https?://[^\s]+')
    BEARER_PATTERN = re.compile(r'Bearer\s+[A-Za-z0-9._\-]+')
    KEY_PARAM_PATTERN = re.compile(r'(api[_-]?key|key)=([^\s&]+)', re.IGNORECASE)

    def mask(self, text: str) -> str:
        text = self.URL_PATTERN.sub('[URL_MASKED]', text)
        text = self.BEARER_PATTERN.sub('Bearer [KEY_MASKED]', text)
        return self.KEY_PARAM_PATTERN.sub(r'\1=[KEY_MASKED]', text)

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.mask(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(
                self.mask(a) if isinstance(a, str) else a for a in record.args
            )
        return True


def setup_logger(
    log_level: str = "INFO",
    mask_logs: bool = True,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """Configure the "logscribe" logger once at startup.

    Returns the existing logger untouched if handlers are already attached.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger

    log_dir = log_dir or LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    logger.setLevel(log_level)

    formatter = logging.Formatter(LOG_FORMAT)
    handlers = [
        logging.StreamHandler(),
        logging.handlers.RotatingFileHandler(
            log_dir / LOG_FILE_NAME,
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        ),
    ]
    sensitive_filter = SensitiveDataFilter() if mask_logs else None

    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        if sensitive_filter:
            handler.addFilter(sensitive_filter)
        logger.addHandler(handler)

    return logger


def get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)
