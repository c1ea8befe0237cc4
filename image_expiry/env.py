# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Environment-based configuration layer.

Each IMAGE_EXPIRY_* variable overrides the matching config file field and
is itself overridden by explicit command-line flags. Unset or empty
variables leave lower layers untouched.
"""

from __future__ import annotations

import os
from typing import Any, Dict, Mapping

from image_expiry.errors import explain_invalid_bool_env, explain_invalid_integer_env
from image_expiry.exceptions import ConfigurationError

ENV_PREFIX = "IMAGE_EXPIRY_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_int(name: str, value: str | None) -> int | None:
    if not value:
        return None
    try:
        parsed = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(explain_invalid_integer_env(name, value)) from exc
    if parsed < 0:
        raise ConfigurationError(explain_invalid_integer_env(name, value))
    return parsed


def _parse_bool(name: str, value: str | None) -> bool | None:
    if not value:
        return None
    lower = value.strip().lower()
    if lower in _TRUE:
        return True
    if lower in _FALSE:
        return False
    raise ConfigurationError(explain_invalid_bool_env(name, value))


def read_env_overrides(environ: Mapping[str, str] | None = None) -> Dict[str, Any]:
    """
    Read configuration overrides from the environment.

    Recognised variables:
        - IMAGE_EXPIRY_ENDPOINT: S3 endpoint, host[:port] or URL
        - IMAGE_EXPIRY_ACCESS_KEY / IMAGE_EXPIRY_SECRET_KEY: credentials
        - IMAGE_EXPIRY_HTTPS: true/false
        - IMAGE_EXPIRY_EXPIRY_HOURS: non-negative integer
        - IMAGE_EXPIRY_BUCKET: default bucket
        - IMAGE_EXPIRY_TIMEOUT_MS: non-negative integer

    Returns:
        Dict of ManagerConfig keyword arguments; unset variables map to None
    """
    env = os.environ if environ is None else environ

    def get(suffix: str) -> str | None:
        return env.get(ENV_PREFIX + suffix) or None

    return {
        "endpoint": get("ENDPOINT"),
        "access_key": get("ACCESS_KEY"),
        "secret_key": get("SECRET_KEY"),
        "https": _parse_bool(ENV_PREFIX + "HTTPS", get("HTTPS")),
        "default_expiry_time": _parse_int(
            ENV_PREFIX + "EXPIRY_HOURS", get("EXPIRY_HOURS")
        ),
        "default_bucket": get("BUCKET"),
        "default_timeout_ms": _parse_int(ENV_PREFIX + "TIMEOUT_MS", get("TIMEOUT_MS")),
    }
