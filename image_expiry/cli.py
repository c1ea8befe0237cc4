# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Command line entry point.

Resolves configuration (defaults < config file < environment < flags),
connects to the store, evaluates one object and maps the outcome to an
exit code.
"""

import asyncio
from pathlib import Path
from typing import Optional

import structlog
import typer

from image_expiry.builder import resolve_config
from image_expiry.config import (
    ExpiryPolicy,
    ManagerConfig,
    ObjectReference,
    is_valid_bucket_name,
)
from image_expiry.configfile import load_config_file, write_example_config
from image_expiry.core import EvaluationResult, Outcome, evaluate
from image_expiry.env import read_env_overrides
from image_expiry.errors import (
    explain_invalid_bucket,
    explain_missing_bucket,
    explain_missing_config_path,
)
from image_expiry.exceptions import ConfigurationError, StatError, StorageConnectionError
from image_expiry.logs import configure_logging
from image_expiry.storage import open_storage_client

logger = structlog.get_logger()

EXIT_NOT_EXPIRED = 0
EXIT_ERROR = 1
EXIT_USAGE = 2
EXIT_EXPIRED_KEPT = 3
EXIT_EXPIRED_DELETED = 4
EXIT_DELETE_FAILED = 5
EXIT_CONFIG = 10

OUTCOME_EXIT_CODES = {
    Outcome.NOT_EXPIRED: EXIT_NOT_EXPIRED,
    Outcome.EXPIRED_KEPT: EXIT_EXPIRED_KEPT,
    Outcome.EXPIRED_DELETED: EXIT_EXPIRED_DELETED,
    Outcome.EXPIRED_DELETE_FAILED: EXIT_DELETE_FAILED,
}

DEFAULT_CONFIG_PATH = Path("./config.json")

app_cli = typer.Typer(
    help="Check VM image templates in S3-compatible storage for expiry and remove stale ones.",
    add_completion=False,
    no_args_is_help=True,
)


async def run_check(
    config: ManagerConfig,
    ref: ObjectReference,
    policy: ExpiryPolicy,
) -> EvaluationResult:
    """Open a storage client and evaluate a single object."""
    async with open_storage_client(config) as client:
        return await evaluate(client, ref, policy)


def _report(result: EvaluationResult) -> None:
    ref = result.ref
    if result.outcome is Outcome.NOT_EXPIRED:
        typer.echo(f"{ref} not-expired")
        return
    typer.echo(f"{ref} expired")
    if result.outcome is Outcome.EXPIRED_DELETED:
        typer.echo(f"Removed {ref}")


@app_cli.command()
def check(
    object_key: str = typer.Option(..., "--object", help="Key of the image object to check"),
    bucket: Optional[str] = typer.Option(
        None, "--bucket", help="Bucket name, overrides DefaultBucket from the config"
    ),
    expiry_hours: Optional[int] = typer.Option(
        None, "--expiry-hours", min=0, help="Expiry threshold in hours, overrides the config"
    ),
    remove_expired: bool = typer.Option(
        False, "--remove-expired", help="Delete the object if it is over the threshold"
    ),
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config-path",
        envvar="IMAGE_EXPIRY_CONFIG",
        help="Path to the JSON config file",
    ),
    debug: bool = typer.Option(False, "--debug", help="Show debug information"),
    quiet: bool = typer.Option(False, "--quiet", help="Only report errors"),
):
    """
    Check whether an image object is over the expiry threshold.

    Exit codes: 0 not expired, 1 operational error, 2 invalid usage,
    3 expired and kept, 4 expired and deleted, 5 expired but delete failed,
    10 config load failure.
    """
    if debug:
        quiet = False
    configure_logging(debug=debug, quiet=quiet)

    if not object_key.strip():
        raise typer.BadParameter("object key must not be empty", param_hint="--object")

    if bucket is not None and not is_valid_bucket_name(bucket):
        raise typer.BadParameter(explain_invalid_bucket(bucket), param_hint="--bucket")

    try:
        config = resolve_config(
            load_config_file(config_path),
            read_env_overrides(),
            {"default_bucket": bucket, "default_expiry_time": expiry_hours},
        )
    except ConfigurationError as e:
        logger.error("config_load_failed", path=str(config_path), error=str(e))
        raise typer.Exit(EXIT_CONFIG)

    logger.debug("config_resolved", **config.redacted())

    if not config.default_bucket:
        logger.error("bucket_missing", error=explain_missing_bucket())
        raise typer.Exit(EXIT_USAGE)

    ref = ObjectReference(bucket=config.default_bucket, key=object_key)
    policy = config.policy(remove_if_expired=remove_expired)

    try:
        result = asyncio.run(run_check(config, ref, policy))
    except StorageConnectionError as e:
        logger.error("storage_connection_failed", error=str(e))
        raise typer.Exit(EXIT_ERROR)
    except StatError:
        # already logged by evaluate()
        raise typer.Exit(EXIT_ERROR)

    if not quiet:
        _report(result)
    raise typer.Exit(OUTCOME_EXIT_CODES[result.outcome])


@app_cli.command("write-example-config")
def write_example_config_cmd(
    config_path: Optional[Path] = typer.Option(
        None, "--config-path", help="Where to write the example config"
    ),
):
    """Write an example config file (never overwrites an existing file)."""
    configure_logging()

    if config_path is None:
        logger.error("config_path_missing", error=explain_missing_config_path())
        raise typer.Exit(EXIT_USAGE)

    try:
        written = write_example_config(config_path)
    except ConfigurationError as e:
        logger.error("example_config_failed", path=str(config_path), error=str(e))
        raise typer.Exit(EXIT_ERROR)

    logger.info("example_config_written", path=str(written))


def main() -> None:
    app_cli()


if __name__ == "__main__":
    main()
