# Copyright (c) Meta Platforms, Inc. and affiliates.
# Modifications copyright (c) 2025 Logan Martel.
# Adapted from https://github.com/meta-pytorch/KernelAgent (Apache-2.0).

"""Logging helpers (key redaction, rotating session logs)."""

from __future__ import annotations

import logging
import os
import re

from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, Optional

PACKAGE_LOGGER = "promptsmith"
REDACTED = "<REDACTED_KEY>"

_KNOWN_KEY_VARS = ("OPENAI_API_KEY", "GROQ_API_KEY", "ANTHROPIC_API_KEY")
_KEY_SHAPED = re.compile(r"\b(?:sk|gsk)-[A-Za-z0-9_\-]{8,}")

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_MAX_LOG_BYTES = 2_000_000
_LOG_BACKUPS = 3


def redact(text: str, extra_vars: Iterable[str] = ()) -> str:
    """Scrub API-key variable names, their values and key-shaped tokens."""

    if not text:
        return ""
    cleaned = text
    for var in (*_KNOWN_KEY_VARS, *extra_vars):
        value = os.environ.get(var)
        if value:
            cleaned = cleaned.replace(value, REDACTED)
        cleaned = cleaned.replace(var, REDACTED)
    return _KEY_SHAPED.sub(REDACTED, cleaned)


class RedactingFilter(logging.Filter):
    """Rewrites each record's message through ``redact`` before output."""

    def __init__(self, extra_vars: Iterable[str] = ()) -> None:
        super().__init__()
        self.extra_vars = tuple(extra_vars)

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = redact(record.getMessage(), self.extra_vars)
        record.args = None
        return True


def _level_value(level: int | str) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, str(level).upper(), logging.INFO)


def setup_file_logger(
    log_file: Path,
    name: str = PACKAGE_LOGGER,
    *,
    level: int | str = logging.INFO,
    extra_vars: Iterable[str] = (),
) -> logging.Logger:
    """Attach a rotating file handler to ``name`` (once per file).

    ``level`` applies to both the logger and the handler, so a DEBUG session
    keeps its reply previews on every output.
    """

    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    numeric_level = _level_value(level)
    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)
    target = str(log_file.resolve())
    for handler in logger.handlers:
        if (
            isinstance(handler, RotatingFileHandler)
            and handler.baseFilename == target
        ):
            handler.setLevel(numeric_level)
            return logger
    handler = RotatingFileHandler(
        target, maxBytes=_MAX_LOG_BYTES, backupCount=_LOG_BACKUPS
    )
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    handler.addFilter(RedactingFilter(extra_vars))
    logger.addHandler(handler)
    return logger


def configure_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    *,
    extra_key_vars: Iterable[str] = (),
) -> None:
    """Install redacting console logging once, plus an optional file log."""

    numeric_level = _level_value(level)
    extra_key_vars = tuple(extra_key_vars)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=numeric_level,
            format="%(levelname)s %(name)s: %(message)s",
        )
        for handler in root.handlers:
            handler.addFilter(RedactingFilter(extra_key_vars))
    logging.getLogger(PACKAGE_LOGGER).setLevel(numeric_level)
    if log_file is not None:
        setup_file_logger(
            log_file, level=numeric_level, extra_vars=extra_key_vars
        )
