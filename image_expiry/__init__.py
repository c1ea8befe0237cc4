# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Image Expiry - Garbage collection for VM image templates in S3 storage.

Checks a single object in S3-compatible storage against an age threshold
and, when asked, deletes it once it is stale. Package name: image_expiry.
"""

__version__ = "0.1.0"

# Configuration creation (user-facing API)
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

# Core
from image_expiry.core import EvaluationResult, Outcome, evaluate

# Storage
from image_expiry.storage import ObjectMetadata, StorageClient, open_storage_client

__all__ = [
    # Version
    "__version__",
    # Configuration creation
    "resolve_config",
    "create_empty_config",
    "with_endpoint",
    "with_credentials",
    "use_https",
    "with_bucket",
    "expire_after_hours",
    "with_timeout_ms",
    "merge_layer",
    "build_config",
    # Configuration values
    "ExpiryPolicy",
    "ManagerConfig",
    "ObjectReference",
    # Core
    "evaluate",
    "EvaluationResult",
    "Outcome",
    # Storage
    "ObjectMetadata",
    "StorageClient",
    "open_storage_client",
]
