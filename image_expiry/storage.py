# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Storage Client - The two S3 primitives the expiry check depends on.

The evaluator only needs to stat and delete a single object, so it talks
to a small StorageClient protocol. S3StorageClient implements it on top of
an aiobotocore S3 client; tests substitute in-memory fakes.
"""

from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, UTC
from typing import Any, AsyncIterator, Dict, Protocol

import structlog
from aiobotocore.config import AioConfig
from aiobotocore.session import get_session
from botocore.exceptions import BotoCoreError, ClientError

from image_expiry.config import ManagerConfig
from image_expiry.exceptions import DeleteError, StatError, StorageConnectionError

logger = structlog.get_logger()

# MinIO and most S3-compatible stores accept any region
DEFAULT_REGION = "us-east-1"

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound", "NoSuchBucket"}


@dataclass(frozen=True)
class ObjectMetadata:
    """Storage-layer attributes of an object, fetched fresh per evaluation."""

    last_modified: datetime
    size: int | None = None
    etag: str | None = None
    content_type: str | None = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "last_modified": self.last_modified.isoformat(),
            "size": self.size,
            "etag": self.etag,
            "content_type": self.content_type,
        }


class StorageClient(Protocol):
    """Protocol for the storage operations used by the evaluator."""

    async def stat(self, bucket: str, key: str) -> ObjectMetadata:
        """
        Fetch metadata for one object.

        Raises:
            StatError: If the object is missing or the request fails
        """
        ...

    async def delete(self, bucket: str, key: str) -> None:
        """
        Remove one object.

        Raises:
            DeleteError: If the request fails
        """
        ...


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


class S3StorageClient:
    """StorageClient backed by an aiobotocore S3 client."""

    def __init__(self, s3_client: Any):
        self._client = s3_client

    async def stat(self, bucket: str, key: str) -> ObjectMetadata:
        details = {"bucket": bucket, "key": key}
        try:
            response = await self._client.head_object(Bucket=bucket, Key=key)
        except ClientError as e:
            code = _error_code(e)
            if code in _NOT_FOUND_CODES:
                raise StatError(
                    f"Object {bucket}/{key} not found",
                    details={**details, "reason": "not_found"},
                ) from e
            raise StatError(
                f"Cannot stat {bucket}/{key}: {e}",
                details={**details, "reason": code or "client_error"},
            ) from e
        except BotoCoreError as e:
            raise StatError(
                f"Cannot stat {bucket}/{key}: {e}",
                details={**details, "reason": "network"},
            ) from e

        last_modified = response["LastModified"]
        if last_modified.tzinfo is None:
            last_modified = last_modified.replace(tzinfo=UTC)

        etag = response.get("ETag")
        return ObjectMetadata(
            last_modified=last_modified,
            size=response.get("ContentLength"),
            etag=etag.strip('"') if etag else None,
            content_type=response.get("ContentType"),
        )

    async def delete(self, bucket: str, key: str) -> None:
        details = {"bucket": bucket, "key": key}
        try:
            await self._client.delete_object(Bucket=bucket, Key=key)
        except ClientError as e:
            raise DeleteError(
                f"Cannot delete {bucket}/{key}: {e}",
                details={**details, "reason": _error_code(e) or "client_error"},
            ) from e
        except BotoCoreError as e:
            raise DeleteError(
                f"Cannot delete {bucket}/{key}: {e}",
                details={**details, "reason": "network"},
            ) from e


def endpoint_url_for(config: ManagerConfig) -> str:
    """
    Build the endpoint URL, adding a scheme when the config has none.
    """
    if "://" in config.endpoint:
        return config.endpoint
    scheme = "https" if config.https else "http"
    return f"{scheme}://{config.endpoint}"


def client_config_for(config: ManagerConfig) -> AioConfig:
    """
    Transport settings: per-call timeouts and no automatic retries.
    """
    timeout_seconds = config.default_timeout_ms / 1000
    return AioConfig(
        connect_timeout=timeout_seconds,
        read_timeout=timeout_seconds,
        retries={"total_max_attempts": 1},
        s3={"addressing_style": "path"},
    )


@asynccontextmanager
async def open_storage_client(
    config: ManagerConfig,
    session: Any = None,
) -> AsyncIterator[S3StorageClient]:
    """
    Connect to the configured S3 endpoint.

    Args:
        config: Resolved manager configuration
        session: aiobotocore session (default: a new one)

    Yields:
        S3StorageClient bound to an open aiobotocore client

    Raises:
        StorageConnectionError: If the client cannot be constructed
    """
    session = session or get_session()
    endpoint_url = endpoint_url_for(config)

    async with AsyncExitStack() as stack:
        try:
            s3_client = await stack.enter_async_context(
                session.create_client(
                    "s3",
                    region_name=DEFAULT_REGION,
                    endpoint_url=endpoint_url,
                    aws_access_key_id=config.access_key or None,
                    aws_secret_access_key=config.secret_key or None,
                    config=client_config_for(config),
                )
            )
        except (BotoCoreError, ValueError) as e:
            raise StorageConnectionError(
                f"Cannot create S3 client for {endpoint_url}: {e}",
                details={"endpoint": endpoint_url},
            ) from e

        logger.debug("storage_client_ready", endpoint=endpoint_url)
        yield S3StorageClient(s3_client)
