"""
Logging setup for the pinned checkout provisioner.
"""

from .logger_config import setup_logging, close_logging, LoggerConfig, CheckoutJsonFormatter

__all__ = [
    "setup_logging",
    "close_logging",
    "LoggerConfig",
    "CheckoutJsonFormatter"
]
