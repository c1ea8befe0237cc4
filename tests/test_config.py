# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Configuration Tests.

Covers the frozen config values, the JSON config file, the environment
layer and the layered merge (defaults < file < environment < flags).
"""

import dataclasses
import json
import stat
from pathlib import Path

import pytest

from conftest import write_config_file

from image_expiry.builder import (
    build_config,
    create_empty_config,
    expire_after_hours,
    merge_layer,
    resolve_config,
    use_https,
    with_bucket,
    with_credentials,
    with_endpoint,
    with_timeout_ms,
)
from image_expiry.config import ExpiryPolicy, ManagerConfig, ObjectReference
from image_expiry.configfile import (
    EXAMPLE_CONFIG,
    load_config_file,
    parse_config_values,
    write_example_config,
)
from image_expiry.env import read_env_overrides
from image_expiry.exceptions import ConfigurationError


# ============================================================================
# Config values
# ============================================================================

def test_config_defaults():
    config = ManagerConfig()

    assert config.endpoint == "localhost:9000"
    assert config.https is False
    assert config.default_expiry_time == 48
    assert config.default_timeout_ms == 1000
    assert config.default_bucket == ""


def test_config_is_frozen():
    config = ManagerConfig(default_bucket="vm-images")

    with pytest.raises(dataclasses.FrozenInstanceError):
        config.default_bucket = "other"  # type: ignore[misc]


def test_config_collects_all_validation_errors():
    with pytest.raises(ConfigurationError) as exc_info:
        ManagerConfig(
            endpoint="",
            default_expiry_time=-1,
            default_timeout_ms=0,
            default_bucket="Not_A_Bucket",
        )

    errors = exc_info.value.details["errors"]
    assert len(errors) == 4
    assert "Invalid bucket name: Not_A_Bucket" in errors


def test_with_updates_revalidates():
    config = ManagerConfig(default_bucket="vm-images")

    updated = config.with_updates(default_expiry_time=72)
    assert updated.default_expiry_time == 72
    assert config.default_expiry_time == 48

    with pytest.raises(ConfigurationError):
        config.with_updates(default_timeout_ms=0)


def test_redacted_masks_credentials():
    config = ManagerConfig(access_key="AKIAEXAMPLEKEY", secret_key="supersecret")

    redacted = config.redacted()

    assert redacted["secret_key"] == "***"
    assert redacted["access_key"] == "AKIA***"
    assert "supersecret" not in json.dumps(redacted)


def test_policy_from_config():
    config = ManagerConfig(default_expiry_time=24, default_timeout_ms=2500)

    policy = config.policy(remove_if_expired=True)

    assert policy == ExpiryPolicy(threshold_hours=24, timeout_ms=2500, remove_if_expired=True)
    assert policy.timeout_seconds == 2.5
    assert config.policy().remove_if_expired is False


def test_policy_rejects_invalid_values():
    with pytest.raises(ValueError):
        ExpiryPolicy(threshold_hours=-1, timeout_ms=1000)
    with pytest.raises(ValueError):
        ExpiryPolicy(threshold_hours=1, timeout_ms=0)


def test_object_reference_str():
    assert str(ObjectReference(bucket="vm-images", key="a/b.raw")) == "vm-images/a/b.raw"


# ============================================================================
# Config file
# ============================================================================

def test_load_config_file(temp_dir: Path):
    path = write_config_file(temp_dir / "config.json", DefaultBucket="templates")

    values = load_config_file(path)

    assert values == {
        "endpoint": "localhost:9000",
        "access_key": "minioadmin",
        "secret_key": "minioadmin",
        "https": False,
        "default_expiry_time": 48,
        "default_bucket": "templates",
        "default_timeout_ms": 1000,
    }


def test_config_keys_are_case_insensitive_and_unknown_keys_ignored():
    values = parse_config_values(
        {"endpoint": "s3.local:9000", "defaulttimeoutms": 250, "Comment": "ignored"}
    )

    assert values == {"endpoint": "s3.local:9000", "default_timeout_ms": 250}


@pytest.mark.parametrize(
    "raw",
    [
        {"DefaultExpiryTime": "48"},
        {"DefaultExpiryTime": -1},
        {"DefaultTimeoutMS": True},
        {"HTTPS": "yes"},
        {"Endpoint": 9000},
    ],
)
def test_config_file_rejects_wrong_types(raw):
    with pytest.raises(ConfigurationError):
        parse_config_values(raw)


def test_missing_config_file(temp_dir: Path):
    with pytest.raises(ConfigurationError) as exc_info:
        load_config_file(temp_dir / "missing.json")

    assert "Cannot read config file" in exc_info.value.message


def test_invalid_json_config_file(temp_dir: Path):
    path = temp_dir / "config.json"
    path.write_text("{not json")

    with pytest.raises(ConfigurationError) as exc_info:
        load_config_file(path)

    assert "not valid JSON" in exc_info.value.message


def test_non_utf8_config_file(temp_dir: Path):
    path = temp_dir / "config.json"
    path.write_bytes(b'{"Endpoint": "\xff\xfe"}')

    with pytest.raises(ConfigurationError) as exc_info:
        load_config_file(path)

    assert "not UTF-8" in exc_info.value.message


def test_non_object_config_file(temp_dir: Path):
    path = temp_dir / "config.json"
    path.write_text("[1, 2, 3]")

    with pytest.raises(ConfigurationError):
        load_config_file(path)


def test_write_example_config(temp_dir: Path):
    path = temp_dir / "example.json"

    written = write_example_config(path)

    assert written == path
    assert json.loads(path.read_text()) == EXAMPLE_CONFIG
    assert "\t" in path.read_text()
    assert stat.S_IMODE(path.stat().st_mode) == 0o600
    # the example loads back cleanly
    config = resolve_config(load_config_file(path))
    assert config.default_bucket == "my-vm-images"


def test_write_example_config_refuses_to_overwrite(temp_dir: Path):
    path = temp_dir / "config.json"
    path.write_text("keep me")

    with pytest.raises(ConfigurationError):
        write_example_config(path)

    assert path.read_text() == "keep me"


# ============================================================================
# Environment layer
# ============================================================================

def test_env_overrides():
    values = read_env_overrides(
        {
            "IMAGE_EXPIRY_ENDPOINT": "s3.example.com",
            "IMAGE_EXPIRY_HTTPS": "true",
            "IMAGE_EXPIRY_EXPIRY_HOURS": "12",
            "IMAGE_EXPIRY_BUCKET": "env-bucket",
            "IMAGE_EXPIRY_TIMEOUT_MS": "",
        }
    )

    assert values["endpoint"] == "s3.example.com"
    assert values["https"] is True
    assert values["default_expiry_time"] == 12
    assert values["default_bucket"] == "env-bucket"
    assert values["default_timeout_ms"] is None
    assert values["access_key"] is None


def test_env_reads_process_environment(monkeypatch):
    monkeypatch.setenv("IMAGE_EXPIRY_TIMEOUT_MS", "750")

    assert read_env_overrides()["default_timeout_ms"] == 750


@pytest.mark.parametrize(
    "name, value",
    [
        ("IMAGE_EXPIRY_EXPIRY_HOURS", "two days"),
        ("IMAGE_EXPIRY_EXPIRY_HOURS", "-5"),
        ("IMAGE_EXPIRY_HTTPS", "maybe"),
    ],
)
def test_invalid_env_values(name, value):
    with pytest.raises(ConfigurationError) as exc_info:
        read_env_overrides({name: value})

    assert name in exc_info.value.message


# ============================================================================
# Builder and layered merge
# ============================================================================

def test_builder_functions_do_not_mutate():
    base = create_empty_config()

    config = with_endpoint(base, "minio:9000")
    config = with_credentials(config, "key", "secret")
    config = use_https(config)
    config = with_bucket(config, "vm-images")
    config = expire_after_hours(config, 24)
    config = with_timeout_ms(config, 500)

    assert base == create_empty_config()
    built = build_config(config)
    assert built == ManagerConfig(
        endpoint="minio:9000",
        access_key="key",
        secret_key="secret",
        https=True,
        default_expiry_time=24,
        default_bucket="vm-images",
        default_timeout_ms=500,
    )


def test_builder_is_public_api():
    import image_expiry

    config = image_expiry.build_config(
        image_expiry.expire_after_hours(
            image_expiry.with_bucket(image_expiry.create_empty_config(), "vm-images"),
            12,
        )
    )

    assert isinstance(config, image_expiry.ManagerConfig)
    assert config.policy(remove_if_expired=True) == image_expiry.ExpiryPolicy(
        threshold_hours=12, timeout_ms=1000, remove_if_expired=True
    )


def test_builder_rejects_invalid_values():
    with pytest.raises(ValueError):
        expire_after_hours(create_empty_config(), -1)
    with pytest.raises(ValueError):
        with_timeout_ms(create_empty_config(), 0)


def test_merge_layer_skips_unset_and_unknown_keys():
    config = merge_layer(
        create_empty_config(),
        {"default_bucket": None, "endpoint": "minio:9000", "region": "eu-west-1"},
    )

    assert config["default_bucket"] == ""
    assert config["endpoint"] == "minio:9000"
    assert "region" not in config


def test_resolve_config_precedence():
    file_values = {
        "endpoint": "file-host:9000",
        "default_bucket": "file-bucket",
        "default_expiry_time": 48,
        "default_timeout_ms": 1000,
    }
    env_values = {"default_bucket": "env-bucket", "default_timeout_ms": 2000}
    flags = {"default_bucket": "flag-bucket", "default_expiry_time": None}

    config = resolve_config(file_values, env_values, flags)

    assert config.endpoint == "file-host:9000"
    assert config.default_bucket == "flag-bucket"
    assert config.default_timeout_ms == 2000
    assert config.default_expiry_time == 48


def test_explicit_zero_override_is_applied():
    config = resolve_config({"default_expiry_time": 48}, None, {"default_expiry_time": 0})

    assert config.default_expiry_time == 0
