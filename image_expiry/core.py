# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Image Expiry Core - Decide and act on a single object's expiry state.

evaluate() performs exactly one stat and at most one delete per call.
Each network call runs in its own timeout window, so a slow stat never
eats into the delete's budget. A failed stat aborts the evaluation with
StatError; a failed delete is reported in the result instead.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta, UTC
from enum import Enum
from typing import Callable

import structlog

from image_expiry.config import ExpiryPolicy, ObjectReference
from image_expiry.exceptions import DeleteError, StatError
from image_expiry.storage import StorageClient

logger = structlog.get_logger()

Clock = Callable[[], datetime]

FAR_FUTURE = datetime.max.replace(tzinfo=UTC)


class Outcome(str, Enum):
    """What was determined and done for one object."""

    NOT_EXPIRED = "not_expired"
    EXPIRED_KEPT = "expired_kept"
    EXPIRED_DELETED = "expired_deleted"
    EXPIRED_DELETE_FAILED = "expired_delete_failed"


@dataclass(frozen=True)
class EvaluationResult:
    """Result of evaluating one object."""

    outcome: Outcome
    ref: ObjectReference
    last_modified: datetime
    expires_at: datetime
    evaluated_at: datetime
    error: str | None = None  # set only for EXPIRED_DELETE_FAILED

    @property
    def expired(self) -> bool:
        return self.outcome is not Outcome.NOT_EXPIRED


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def expiry_instant(last_modified: datetime, threshold_hours: int) -> datetime:
    """
    The instant after which an object modified at last_modified is expired.

    Thresholds reaching past the end of the calendar clamp to datetime.max,
    so such objects never expire.
    """
    try:
        return _as_aware(last_modified) + timedelta(hours=threshold_hours)
    except OverflowError:
        return FAR_FUTURE


def is_expired(last_modified: datetime, threshold_hours: int, now: datetime) -> bool:
    """
    Strict comparison: an object exactly threshold_hours old is not expired.
    """
    return _as_aware(now) > expiry_instant(last_modified, threshold_hours)


async def _stat(client: StorageClient, ref: ObjectReference, policy: ExpiryPolicy):
    details = {"bucket": ref.bucket, "key": ref.key}
    try:
        return await asyncio.wait_for(
            client.stat(ref.bucket, ref.key), timeout=policy.timeout_seconds
        )
    except TimeoutError as e:
        raise StatError(
            f"Timed out after {policy.timeout_ms} ms fetching metadata for {ref}",
            details={**details, "reason": "timeout"},
        ) from e
    except StatError:
        raise
    except Exception as e:
        raise StatError(
            f"Cannot stat {ref}: {e}",
            details={**details, "reason": type(e).__name__},
        ) from e


async def _delete(client: StorageClient, ref: ObjectReference, policy: ExpiryPolicy) -> None:
    details = {"bucket": ref.bucket, "key": ref.key}
    try:
        await asyncio.wait_for(
            client.delete(ref.bucket, ref.key), timeout=policy.timeout_seconds
        )
    except TimeoutError as e:
        raise DeleteError(
            f"Timed out after {policy.timeout_ms} ms deleting {ref}",
            details={**details, "reason": "timeout"},
        ) from e
    except DeleteError:
        raise
    except Exception as e:
        raise DeleteError(
            f"Cannot delete {ref}: {e}",
            details={**details, "reason": type(e).__name__},
        ) from e


async def evaluate(
    client: StorageClient,
    ref: ObjectReference,
    policy: ExpiryPolicy,
    *,
    clock: Clock | None = None,
) -> EvaluationResult:
    """
    Check one object against the expiry policy and optionally remove it.

    Steps:
    1. Stat the object within policy.timeout_ms
    2. Compare now against last_modified + threshold_hours (strictly after)
    3. If expired and removal is requested, delete within a fresh
       policy.timeout_ms window; failures are captured, never retried

    Args:
        client: Connected storage client
        ref: Object to check
        policy: Threshold, timeout and removal flag
        clock: Returns the current aware datetime (default: UTC now)

    Returns:
        EvaluationResult describing the outcome

    Raises:
        StatError: If metadata cannot be fetched; nothing is deleted
    """
    clock = clock or _utcnow

    try:
        metadata = await _stat(client, ref, policy)
    except StatError as e:
        logger.error("object_stat_failed", object=str(ref), error=str(e))
        raise

    logger.debug("object_stat", object=str(ref), **metadata.as_dict())

    last_modified = _as_aware(metadata.last_modified)
    expires_at = expiry_instant(last_modified, policy.threshold_hours)
    now = _as_aware(clock())

    def result(outcome: Outcome, error: str | None = None) -> EvaluationResult:
        return EvaluationResult(
            outcome=outcome,
            ref=ref,
            last_modified=last_modified,
            expires_at=expires_at,
            evaluated_at=now,
            error=error,
        )

    if not is_expired(last_modified, policy.threshold_hours, now):
        logger.info("object_not_expired", object=str(ref), expires_at=expires_at.isoformat())
        return result(Outcome.NOT_EXPIRED)

    logger.info(
        "object_expired",
        object=str(ref),
        expires_at=expires_at.isoformat(),
        threshold_hours=policy.threshold_hours,
    )

    if not policy.remove_if_expired:
        return result(Outcome.EXPIRED_KEPT)

    logger.info("object_removing", object=str(ref))
    try:
        await _delete(client, ref, policy)
    except DeleteError as e:
        logger.error("object_delete_failed", object=str(ref), error=str(e))
        return result(Outcome.EXPIRED_DELETE_FAILED, error=str(e))

    logger.info("object_deleted", object=str(ref))
    return result(Outcome.EXPIRED_DELETED)
