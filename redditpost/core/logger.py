"""Logging setup for redditpost with sensitive data masking."""

import logging
import logging.handlers
import re
from pathlib import Path
from typing import Optional

from redditpost.core.config_manager import app_home


class SensitiveDataFilter(logging.Filter):
    """Filter to mask URLs and modhash tokens in log messages."""

    URL_PATTERN = re.compile(r'https?://[^\s]+')
    MODHASH_PATTERN = re.compile(r'''(\buh=|['"]?(?:uh|modhash)['"]?\s*:\s*['"]?)[\w-]+''')

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            msg = self.URL_PATTERN.sub('[URL_MASKED]', record.msg)
            record.msg = self.MODHASH_PATTERN.sub(r'\1[MODHASH_MASKED]', msg)
        return True


def setup_logger(log_level: str = "INFO", mask_logs: bool = True,
                 log_dir: Optional[Path] = None) -> logging.Logger:
    """Set up the package logger. Call once at startup.

    Creates log_dir (default: app_home()/logs) if needed. Adds console +
    rotating file handlers. If already set up (has handlers), returns
    existing logger.
    """
    logger = logging.getLogger("redditpost")

    if logger.handlers:
        return logger

    if log_dir is None:
        log_dir = app_home() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    logger.setLevel(log_level)

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    file_handler = logging.handlers.RotatingFileHandler(
        log_dir / "redditpost.log",
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if mask_logs:
        sensitive_filter = SensitiveDataFilter()
        console_handler.addFilter(sensitive_filter)
        file_handler.addFilter(sensitive_filter)

    return logger


def get_logger() -> logging.Logger:
    """Get the package logger."""
    return logging.getLogger("redditpost")
