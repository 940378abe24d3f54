# Copyright (c) Meta Platforms, Inc. and affiliates.
# Modifications copyright (c) 2025 Logan Martel.
# Adapted from https://github.com/meta-pytorch/KernelAgent (Apache-2.0).

"""Utility helpers for LLM providers."""

from __future__ import annotations

import os

from typing import Any, Mapping, Optional

PROXY_OVERRIDE_ENV = "PROMPTSMITH_PROXY_OVERRIDE"


PROXY_ENV_VARS = ("HTTP_PROXY", "HTTPS_PROXY", "http_proxy", "https_proxy")


def configure_proxy_environment() -> None:
    """Apply PROMPTSMITH_PROXY_OVERRIDE (if set) to the common proxy env vars."""
    proxy = os.environ.get(PROXY_OVERRIDE_ENV)
    if not proxy:
        return
    for key in PROXY_ENV_VARS:
        os.environ[key] = proxy


def total_tokens(usage: Optional[Mapping[str, Any]]) -> Optional[int]:
    """Return the total token count from a provider usage mapping."""

    if not usage:
        return None
    total = usage.get("total_tokens")
    if isinstance(total, int) and not isinstance(total, bool):
        return total
    parts = [
        usage.get(key)
        for key in ("prompt_tokens", "completion_tokens", "input_tokens", "output_tokens")
    ]
    counted = [value for value in parts if isinstance(value, int)]
    return sum(counted) if counted else None
