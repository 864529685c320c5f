"""
Logging setup for provisioning runs.

Everything goes to stderr so that stdout belongs to the build step that
invoked the provisioner. A rotating log file can be added for CI hosts that
keep bootstrap logs around.
"""

import json
import logging
import logging.handlers
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

# Attributes the provisioner attaches via ``extra=`` on its log calls
CHECKOUT_FIELDS = ("path", "repository_url", "reference", "action", "commit_sha")


@dataclass
class LoggerConfig:
    level: str = "WARNING"
    file_path: Optional[str] = None
    format_string: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_file_size: int = 10  # MB
    backup_count: int = 5
    structured: bool = False


class CheckoutJsonFormatter(logging.Formatter):
    """One JSON object per line, carrying the checkout fields of the record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in CHECKOUT_FIELDS:
            if hasattr(record, name):
                entry[name] = getattr(record, name)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


_installed: List[logging.Handler] = []


def setup_logging(config: Optional[LoggerConfig] = None) -> List[logging.Handler]:
    """
    Attach stderr (and optionally file) handlers to the root logger.

    Handlers from an earlier call are removed first, so repeated runs in one
    process do not duplicate output. Returns the handlers now installed.
    """
    config = config or LoggerConfig()
    close_logging()

    level = getattr(logging, config.level.upper(), logging.WARNING)
    if config.structured:
        formatter: logging.Formatter = CheckoutJsonFormatter()
    else:
        formatter = logging.Formatter(config.format_string)

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.file_path:
        log_path = Path(config.file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            filename=str(log_path),
            maxBytes=config.max_file_size * 1024 * 1024,
            backupCount=config.backup_count,
            encoding='utf-8'
        ))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
    _installed.extend(handlers)

    # GitPython logs every git invocation; only useful when debugging
    logging.getLogger('git').setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)

    return handlers


def close_logging() -> None:
    """Detach and close the handlers installed by ``setup_logging``."""
    root_logger = logging.getLogger()
    while _installed:
        handler = _installed.pop()
        root_logger.removeHandler(handler)
        handler.close()
