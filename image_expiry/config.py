# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Image Expiry Configuration - Immutable configuration data structures.

All configuration is frozen (immutable) after creation. The resolved
ManagerConfig is built once per run, and the ExpiryPolicy and
ObjectReference values derived from it are read-only for the lifetime of
an evaluation.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, List
import re


DEFAULT_ENDPOINT = "localhost:9000"
DEFAULT_EXPIRY_HOURS = 48
DEFAULT_TIMEOUT_MS = 1000


def is_valid_bucket_name(bucket: str) -> bool:
    """
    Validate S3 bucket name according to AWS rules.

    Rules:
    - 3-63 characters
    - Lowercase letters, numbers, hyphens
    - Must start and end with letter or number
    - No consecutive periods
    - Not formatted as IP address
    """
    if not bucket or len(bucket) < 3 or len(bucket) > 63:
        return False

    if not re.match(r"^[a-z0-9][a-z0-9.-]*[a-z0-9]$", bucket):
        return False

    if ".." in bucket:
        return False

    if re.match(r"^\d+\.\d+\.\d+\.\d+$", bucket):
        return False

    return True


@dataclass(frozen=True)
class ObjectReference:
    """Identifies one stored object."""

    bucket: str
    key: str

    def __str__(self) -> str:
        return f"{self.bucket}/{self.key}"


@dataclass(frozen=True)
class ExpiryPolicy:
    """
    How an object's age is judged and what happens when it is stale.

    threshold_hours: age beyond which an object is expired
    timeout_ms: budget for each individual network call
    remove_if_expired: delete the object once it is judged expired
    """

    threshold_hours: int
    timeout_ms: int
    remove_if_expired: bool = False

    def __post_init__(self) -> None:
        if self.threshold_hours < 0:
            raise ValueError(f"threshold_hours must be >= 0, got {self.threshold_hours}")
        if self.timeout_ms < 1:
            raise ValueError(f"timeout_ms must be >= 1, got {self.timeout_ms}")

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


@dataclass(frozen=True)
class ManagerConfig:
    """
    Immutable settings for talking to the image store.

    Field names mirror the JSON config file (Endpoint, AccessKey, ...)
    in snake_case.
    """

    # S3 endpoint, host[:port] or a full URL
    endpoint: str = DEFAULT_ENDPOINT

    # Static credentials
    access_key: str = ""
    secret_key: str = ""

    # Use https:// when the endpoint carries no scheme
    https: bool = False

    # Age in hours after which an image is expired
    default_expiry_time: int = DEFAULT_EXPIRY_HOURS

    # Bucket used when --bucket is not given
    default_bucket: str = ""

    # Per-call network timeout in milliseconds
    default_timeout_ms: int = DEFAULT_TIMEOUT_MS

    def __post_init__(self) -> None:
        """Validate configuration after creation."""
        errors: List[str] = []

        if not self.endpoint:
            errors.append("endpoint must not be empty")

        if self.default_expiry_time < 0:
            errors.append(
                f"default_expiry_time must be >= 0, got {self.default_expiry_time}"
            )

        if self.default_timeout_ms < 1:
            errors.append(
                f"default_timeout_ms must be >= 1, got {self.default_timeout_ms}"
            )

        if self.default_bucket and not is_valid_bucket_name(self.default_bucket):
            errors.append(f"Invalid bucket name: {self.default_bucket}")

        if errors:
            from image_expiry.exceptions import ConfigurationError

            raise ConfigurationError(
                "Configuration validation failed",
                details={"errors": errors},
            )

    def with_updates(self, **kwargs) -> "ManagerConfig":
        """
        Create a new config with updated values.

        Since the config is frozen, this creates a new instance.
        """
        current = asdict(self)
        current.update(kwargs)
        return ManagerConfig(**current)

    def redacted(self) -> Dict[str, Any]:
        """Config as a dict with credentials masked, safe for logging."""
        values = asdict(self)
        if values["secret_key"]:
            values["secret_key"] = "***"
        if values["access_key"]:
            values["access_key"] = values["access_key"][:4] + "***"
        return values

    def policy(self, remove_if_expired: bool = False) -> ExpiryPolicy:
        """Derive the expiry policy for this run."""
        return ExpiryPolicy(
            threshold_hours=self.default_expiry_time,
            timeout_ms=self.default_timeout_ms,
            remove_if_expired=remove_if_expired,
        )
