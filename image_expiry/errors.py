# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Human-friendly error message helpers for image_expiry.

These helpers centralize wording for common configuration errors so that
the config loader, the environment layer and the CLI present consistent,
actionable messages.
"""

from pathlib import Path


def explain_unreadable_config(path: Path, reason: str) -> str:
    """
    Explain that the config file could not be read.
    """

    return (
        f"Cannot read config file {str(path)!r}: {reason}. "
        "Pass --config-path or create one with 'image-expiry write-example-config'."
    )


def explain_invalid_config_json(path: Path, reason: str) -> str:
    """
    Explain that the config file is not valid JSON.
    """

    return f"Config file {str(path)!r} is not valid JSON: {reason}."


def explain_invalid_config_value(key: str, value: object, expected: str) -> str:
    """
    Explain that a config file field has the wrong type.
    """

    return f"Invalid value for {key}: {value!r}. Expected {expected}."


def explain_example_config_exists(path: Path) -> str:
    """
    Explain that writing the example config would overwrite a file.
    """

    return f"Path {str(path)!r} exists, refusing to overwrite it with the example config."


def explain_invalid_integer_env(name: str, value: str | None) -> str:
    """
    Explain that an integer environment variable is invalid.
    """

    return (
        f"Invalid {name} value: {value!r}. "
        "It must be a non-negative integer."
    )


def explain_invalid_bool_env(name: str, value: str | None) -> str:
    """
    Explain that a boolean environment variable is invalid.
    """

    return (
        f"Invalid {name} value: {value!r}. "
        "Expected one of: 'true', 'false', '1', '0', 'yes', 'no'."
    )


def explain_missing_bucket() -> str:
    """
    Explain that no bucket was given on the command line or in the config.
    """

    return (
        "Bucket is not configured. "
        "Pass --bucket or set DefaultBucket in the config file."
    )


def explain_missing_config_path() -> str:
    """
    Explain that writing the example config needs an explicit path.
    """

    return "Cannot write example config without --config-path."


def explain_invalid_bucket(bucket: str) -> str:
    """
    Explain that a bucket name breaks the S3 naming rules.
    """

    return (
        f"Invalid bucket name: {bucket!r}. "
        "Use 3-63 lowercase letters, digits, hyphens or periods, "
        "starting and ending with a letter or digit."
    )
