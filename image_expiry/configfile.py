# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
JSON config file support.

The file format is a flat JSON object:

    {
        "Endpoint": "localhost:9000",
        "AccessKey": "...",
        "SecretKey": "...",
        "HTTPS": false,
        "DefaultExpiryTime": 48,
        "DefaultBucket": "my-vm-images",
        "DefaultTimeoutMS": 1000
    }

Keys are matched case-insensitively and unknown keys are ignored.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict

from image_expiry.errors import (
    explain_example_config_exists,
    explain_invalid_config_json,
    explain_invalid_config_value,
    explain_unreadable_config,
)
from image_expiry.exceptions import ConfigurationError

# file key -> (ManagerConfig field, expected type)
FILE_FIELDS: Dict[str, tuple[str, type]] = {
    "Endpoint": ("endpoint", str),
    "AccessKey": ("access_key", str),
    "SecretKey": ("secret_key", str),
    "HTTPS": ("https", bool),
    "DefaultExpiryTime": ("default_expiry_time", int),
    "DefaultBucket": ("default_bucket", str),
    "DefaultTimeoutMS": ("default_timeout_ms", int),
}

EXAMPLE_CONFIG: Dict[str, Any] = {
    "Endpoint": "localhost:9000",
    "AccessKey": "xxxxxxxxxxxxxxxxxxxx",
    "SecretKey": "xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx",
    "HTTPS": False,
    "DefaultExpiryTime": 48,
    "DefaultBucket": "my-vm-images",
    "DefaultTimeoutMS": 1000,
}


def _coerce(key: str, value: Any, expected: type) -> Any:
    if expected is bool:
        if not isinstance(value, bool):
            raise ConfigurationError(explain_invalid_config_value(key, value, "true or false"))
        return value
    if expected is int:
        # bool is a subclass of int
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ConfigurationError(
                explain_invalid_config_value(key, value, "a non-negative integer")
            )
        return value
    if not isinstance(value, str):
        raise ConfigurationError(explain_invalid_config_value(key, value, "a string"))
    return value


def parse_config_values(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Map a decoded config file object onto ManagerConfig field names.

    Args:
        raw: Decoded JSON object

    Returns:
        Dict of ManagerConfig keyword arguments for the keys present

    Raises:
        ConfigurationError: If a known key carries a value of the wrong type
    """
    by_lower = {name.lower(): name for name in FILE_FIELDS}
    values: Dict[str, Any] = {}
    for key, value in raw.items():
        canonical = by_lower.get(key.lower())
        if canonical is None:
            continue
        field_name, expected = FILE_FIELDS[canonical]
        values[field_name] = _coerce(canonical, value, expected)
    return values


def load_config_file(path: Path | str) -> Dict[str, Any]:
    """
    Read a JSON config file.

    Args:
        path: Path to the config file

    Returns:
        Dict of ManagerConfig keyword arguments found in the file

    Raises:
        ConfigurationError: If the file is unreadable, not JSON, or malformed
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(
            explain_unreadable_config(path, e.strerror or str(e)),
            details={"path": str(path)},
        ) from e
    except UnicodeDecodeError as e:
        raise ConfigurationError(
            explain_invalid_config_json(path, f"not UTF-8 ({e.reason})"),
            details={"path": str(path)},
        ) from e

    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            explain_invalid_config_json(path, str(e)),
            details={"path": str(path)},
        ) from e

    if not isinstance(raw, dict):
        raise ConfigurationError(
            explain_invalid_config_json(path, "top-level value must be an object"),
            details={"path": str(path)},
        )

    return parse_config_values(raw)


def write_example_config(path: Path | str) -> Path:
    """
    Write an example config file readable only by the owner.

    Args:
        path: Destination path, which must not exist yet

    Returns:
        The path written

    Raises:
        ConfigurationError: If the path exists or cannot be written
    """
    path = Path(path)
    payload = json.dumps(EXAMPLE_CONFIG, indent="\t")

    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    except FileExistsError as e:
        raise ConfigurationError(
            explain_example_config_exists(path),
            details={"path": str(path)},
        ) from e
    except OSError as e:
        raise ConfigurationError(
            f"Cannot write example config to {str(path)!r}: {e.strerror or e}",
            details={"path": str(path)},
        ) from e

    with os.fdopen(fd, "w", encoding="utf-8") as fh:
        fh.write(payload)

    return path
