"""Logging utilities."""

from .utils import RedactingFilter, configure_logging, redact, setup_file_logger

__all__ = [
    "RedactingFilter",
    "configure_logging",
    "redact",
    "setup_file_logger",
]
