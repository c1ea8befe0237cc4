# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Test fixtures for image_expiry tests.

Provides an in-memory storage client, a moto S3 server, and config
helpers.
"""

import asyncio
import json
import tempfile
from datetime import datetime, timedelta, UTC
from pathlib import Path
from typing import Dict, Generator, List, Tuple

import pytest
import structlog

from image_expiry.config import ExpiryPolicy, ObjectReference
from image_expiry.exceptions import StatError
from image_expiry.storage import ObjectMetadata

NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=UTC)

MOTO_PORT = 5077


class FakeStorageClient:
    """In-memory StorageClient that records every call."""

    def __init__(
        self,
        objects: Dict[Tuple[str, str], datetime] | None = None,
        *,
        stat_delay: float = 0.0,
        delete_delay: float = 0.0,
        stat_error: Exception | None = None,
        delete_error: Exception | None = None,
    ):
        self.objects = dict(objects or {})
        self.stat_delay = stat_delay
        self.delete_delay = delete_delay
        self.stat_error = stat_error
        self.delete_error = delete_error
        self.stat_calls: List[Tuple[str, str]] = []
        self.delete_calls: List[Tuple[str, str]] = []

    async def stat(self, bucket: str, key: str) -> ObjectMetadata:
        self.stat_calls.append((bucket, key))
        if self.stat_delay:
            await asyncio.sleep(self.stat_delay)
        if self.stat_error is not None:
            raise self.stat_error
        if (bucket, key) not in self.objects:
            raise StatError(
                f"Object {bucket}/{key} not found",
                details={"reason": "not_found"},
            )
        return ObjectMetadata(last_modified=self.objects[(bucket, key)], size=1024)

    async def delete(self, bucket: str, key: str) -> None:
        self.delete_calls.append((bucket, key))
        if self.delete_delay:
            await asyncio.sleep(self.delete_delay)
        if self.delete_error is not None:
            raise self.delete_error
        self.objects.pop((bucket, key), None)


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """CLI tests bind structlog to CliRunner streams; undo that after each test."""
    yield
    structlog.reset_defaults()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep IMAGE_EXPIRY_* variables from the host out of the tests."""
    for name in (
        "IMAGE_EXPIRY_CONFIG",
        "IMAGE_EXPIRY_ENDPOINT",
        "IMAGE_EXPIRY_ACCESS_KEY",
        "IMAGE_EXPIRY_SECRET_KEY",
        "IMAGE_EXPIRY_HTTPS",
        "IMAGE_EXPIRY_EXPIRY_HOURS",
        "IMAGE_EXPIRY_BUCKET",
        "IMAGE_EXPIRY_TIMEOUT_MS",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_client_class():
    """The in-memory client class, for tests that build their own."""
    return FakeStorageClient


@pytest.fixture
def ref() -> ObjectReference:
    return ObjectReference(bucket="vm-images", key="templates/debian-12.raw")


@pytest.fixture
def keep_policy() -> ExpiryPolicy:
    return ExpiryPolicy(threshold_hours=48, timeout_ms=1000, remove_if_expired=False)


@pytest.fixture
def remove_policy() -> ExpiryPolicy:
    return ExpiryPolicy(threshold_hours=48, timeout_ms=1000, remove_if_expired=True)


def aged(hours: float, now: datetime = NOW) -> datetime:
    """A last-modified timestamp the given number of hours before now."""
    return now - timedelta(hours=hours)


def write_config_file(path: Path, **values) -> Path:
    """Write a JSON config file in the on-disk format."""
    data = {
        "Endpoint": "localhost:9000",
        "AccessKey": "minioadmin",
        "SecretKey": "minioadmin",
        "HTTPS": False,
        "DefaultExpiryTime": 48,
        "DefaultBucket": "vm-images",
        "DefaultTimeoutMS": 1000,
    }
    data.update(values)
    path.write_text(json.dumps(data))
    return path


@pytest.fixture(scope="session")
def moto_endpoint() -> Generator[str, None, None]:
    """Run moto's S3 server in a background thread."""
    from moto.server import ThreadedMotoServer

    server = ThreadedMotoServer(ip_address="127.0.0.1", port=MOTO_PORT, verbose=False)
    server.start()
    try:
        yield f"127.0.0.1:{MOTO_PORT}"
    finally:
        server.stop()
