# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Image Expiry Builder - Functional builder pattern for configuration.

This module provides pure functions for building ManagerConfig objects.
Each function takes a config dict and returns a new dict with the
modification applied (immutable updates). Layers are merged in the order
defaults < config file < environment < explicit command-line flags.
"""

from typing import Any, Dict, Mapping

from image_expiry.config import (
    DEFAULT_ENDPOINT,
    DEFAULT_EXPIRY_HOURS,
    DEFAULT_TIMEOUT_MS,
    ManagerConfig,
)


ConfigDict = Dict[str, Any]


def create_empty_config() -> ConfigDict:
    """
    Create an initial configuration dictionary holding the defaults.

    Returns:
        Dict with default values for all configuration fields
    """
    return {
        "endpoint": DEFAULT_ENDPOINT,
        "access_key": "",
        "secret_key": "",
        "https": False,
        "default_expiry_time": DEFAULT_EXPIRY_HOURS,
        "default_bucket": "",
        "default_timeout_ms": DEFAULT_TIMEOUT_MS,
    }


def with_endpoint(config: ConfigDict, endpoint: str) -> ConfigDict:
    """
    Set the S3 endpoint (host[:port] or full URL).
    """
    return {**config, "endpoint": endpoint}


def with_credentials(config: ConfigDict, access_key: str, secret_key: str) -> ConfigDict:
    """
    Set the static access key pair.
    """
    return {**config, "access_key": access_key, "secret_key": secret_key}


def use_https(config: ConfigDict, enabled: bool = True) -> ConfigDict:
    """
    Select https:// for endpoints given without a scheme.
    """
    return {**config, "https": enabled}


def with_bucket(config: ConfigDict, bucket_name: str) -> ConfigDict:
    """
    Set the bucket used when none is given per invocation.
    """
    return {**config, "default_bucket": bucket_name}


def expire_after_hours(config: ConfigDict, hours: int) -> ConfigDict:
    """
    Set the expiry threshold.

    Args:
        config: Current configuration dictionary
        hours: Age in hours beyond which an object is expired

    Returns:
        New configuration dictionary with the threshold set
    """
    if hours < 0:
        raise ValueError(f"expiry hours must be >= 0, got {hours}")
    return {**config, "default_expiry_time": hours}


def with_timeout_ms(config: ConfigDict, timeout_ms: int) -> ConfigDict:
    """
    Set the per-call network timeout.
    """
    if timeout_ms < 1:
        raise ValueError(f"timeout must be >= 1 ms, got {timeout_ms}")
    return {**config, "default_timeout_ms": timeout_ms}


def merge_layer(config: ConfigDict, layer: Mapping[str, Any] | None) -> ConfigDict:
    """
    Overlay one configuration layer.

    Keys unknown to the config are ignored and None values mean "not set",
    so they never replace a lower layer's value.

    Args:
        config: Current configuration dictionary
        layer: Values from a higher-precedence source

    Returns:
        New configuration dictionary with the layer applied
    """
    if not layer:
        return dict(config)
    updates = {
        key: value
        for key, value in layer.items()
        if key in config and value is not None
    }
    return {**config, **updates}


def build_config(config_dict: ConfigDict) -> ManagerConfig:
    """
    Validate and build an immutable ManagerConfig from a configuration dictionary.

    Raises:
        ConfigurationError: If validation fails
    """
    return ManagerConfig(**config_dict)


def resolve_config(
    file_values: Mapping[str, Any] | None = None,
    env_values: Mapping[str, Any] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> ManagerConfig:
    """
    Merge every configuration source into one immutable settings value.

    Example:
        config = resolve_config(
            load_config_file("config.json"),
            read_env_overrides(),
            {"default_bucket": "vm-images", "default_expiry_time": None},
        )

    Args:
        file_values: Values loaded from the JSON config file
        env_values: Values read from IMAGE_EXPIRY_* environment variables
        overrides: Explicitly passed command-line values (None = not passed)

    Returns:
        Validated, immutable ManagerConfig instance
    """
    config = create_empty_config()
    for layer in (file_values, env_values, overrides):
        config = merge_layer(config, layer)
    return build_config(config)
