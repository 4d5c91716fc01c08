"""
Lock commands for lease locks.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

import logging
import subprocess
import sys
import threading
from collections.abc import Callable
from typing import Any

import click

from ..constants import (
    DEFAULT_LEASE_DURATION,
    DEFAULT_PARTITION_KEY,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_POLL_VARIANCE,
    DEFAULT_TABLE_NAME,
    RUN_RENEWALS_PER_LEASE,
)
from ..core.client import DynamoDBClient
from ..core.lock_handle import Lock
from ..core.lock_manager import LockManager
from ..core.table_operations import key_shape_for
from ..exceptions import (
    ConditionFailedError,
    LockStoreError,
    LockTimeoutError,
    LockUpdateError,
)
from ..utils import error_json, error_text, output_json, output_text


def store_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by every command that talks to the lock table."""
    options = [
        click.option(
            "--table",
            envvar="LOCK_TABLE",
            default=DEFAULT_TABLE_NAME,
            help="DynamoDB table name",
        ),
        click.option(
            "--partition-key",
            default=DEFAULT_PARTITION_KEY,
            help=f"Partition key attribute (default: {DEFAULT_PARTITION_KEY})",
        ),
        click.option("--sort-key", help="Sort key attribute, for hash+range tables"),
        click.option("--sort-key-value", help="Sort key value of the lock slot (default: ##LOCK##)"),
        click.option(
            "--lease",
            type=float,
            default=DEFAULT_LEASE_DURATION,
            help=f"Lease duration in seconds (default: {DEFAULT_LEASE_DURATION})",
        ),
        click.option("--region", envvar="AWS_REGION", help="AWS region"),
        click.option("--profile", envvar="AWS_PROFILE", help="AWS profile"),
        click.option("--text", is_flag=True, help="Output as human-readable text"),
        click.option("--verbose", "-V", is_flag=True, help="Verbose output"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_manager(
    table: str,
    partition_key: str,
    sort_key: str | None,
    sort_key_value: str | None,
    lease: float,
    region: str | None,
    profile: str | None,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    poll_variance: float = DEFAULT_POLL_VARIANCE,
) -> LockManager:
    """Build a lock manager from CLI options."""
    client = DynamoDBClient(table, region, profile)
    return LockManager(
        client,
        key_shape=key_shape_for(partition_key, sort_key, sort_key_value),
        lease_duration=lease,
        poll_interval=poll_interval,
        poll_variance=poll_variance,
    )


def configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )


def report_error(ctx: click.Context, error: Exception, solution: str, exit_code: int, text: bool) -> None:
    if text:
        click.echo(error_text(str(error), solution), err=True)
    else:
        click.echo(error_json(str(error), solution, exit_code), err=True)
    ctx.exit(exit_code)


def acquire_with_options(manager: LockManager, partition: str, wait: float) -> Lock | None:
    if wait > 0:
        return manager.acquire(partition, timeout=wait)
    return manager.try_acquire(partition)


@click.command("acquire")
@click.argument("partition")
@click.option(
    "--wait",
    type=float,
    default=0,
    help="Seconds to keep polling, stealing expired leases (default: 0, try once)",
)
@click.option(
    "--poll-interval",
    type=float,
    default=DEFAULT_POLL_INTERVAL,
    help=f"Seconds between polls while waiting (default: {DEFAULT_POLL_INTERVAL})",
)
@click.option(
    "--poll-variance",
    type=float,
    default=DEFAULT_POLL_VARIANCE,
    help=f"Random jitter added to each poll (default: {DEFAULT_POLL_VARIANCE})",
)
@store_options
@click.pass_context
def lock_acquire_command(
    ctx: click.Context,
    partition: str,
    wait: float,
    poll_interval: float,
    poll_variance: float,
    table: str,
    partition_key: str,
    sort_key: str | None,
    sort_key_value: str | None,
    lease: float,
    region: str | None,
    profile: str | None,
    text: bool,
    verbose: bool,
) -> None:
    """Acquire a lease lock on a partition.

    Prints the owner token; pass it to renew and release.

    Examples:

    \b
        # Try once with a 30 second lease
        aws-lease-lock-tool lock acquire deploy-prod --lease 30

    \b
        # Wait up to a minute, taking over expired leases
        aws-lease-lock-tool lock acquire deploy-prod --lease 30 --wait 60

    \b
    Output Format:
        Returns JSON:
        {"partition": "deploy-prod", "owner_token": "9f0c...", "lease": 30.0}
    """
    configure_logging(verbose)
    try:
        if verbose:
            click.echo(f"Acquiring lock on '{partition}'...", err=True)

        manager = build_manager(
            table,
            partition_key,
            sort_key,
            sort_key_value,
            lease,
            region,
            profile,
            poll_interval,
            poll_variance,
        )
        lock = acquire_with_options(manager, partition, wait)

        if lock is None:
            report_error(
                ctx,
                LockStoreError(f"Lock on '{partition}' is held by another owner"),
                "Retry with --wait to poll until the lease expires",
                4,
                text,
            )
            return

        if text:
            output_text(f"✅ Lock on '{partition}' acquired")
            output_text(f"Owner token: {lock.owner_token}")
        else:
            output_json({"partition": partition, "owner_token": lock.owner_token, "lease": lease})

    except LockTimeoutError as e:
        report_error(ctx, e, "Increase --wait or check the current holder with 'lock check'", 4, text)
    except LockStoreError as e:
        report_error(ctx, e, "Check table exists and AWS credentials", 3, text)
    except ValueError as e:
        report_error(ctx, e, "Use positive values for --lease and --poll-interval", 2, text)


@click.command("renew")
@click.argument("partition")
@click.option("--token", required=True, help="Owner token from acquire or a previous renew")
@store_options
@click.pass_context
def lock_renew_command(
    ctx: click.Context,
    partition: str,
    token: str,
    table: str,
    partition_key: str,
    sort_key: str | None,
    sort_key_value: str | None,
    lease: float,
    region: str | None,
    profile: str | None,
    text: bool,
    verbose: bool,
) -> None:
    """Renew a held lease lock.

    Renewal rotates the owner token; use the printed token from now on.

    Examples:

    \b
        aws-lease-lock-tool lock renew deploy-prod --token 9f0c... --lease 30

    \b
    Output Format:
        Returns JSON:
        {"partition": "deploy-prod", "owner_token": "b71e...", "lease": 30.0}
    """
    configure_logging(verbose)
    try:
        manager = build_manager(
            table, partition_key, sort_key, sort_key_value, lease, region, profile
        )
        lock = manager.resume(partition, token)
        lock.renew()

        if text:
            output_text(f"✅ Lock on '{partition}' renewed")
            output_text(f"Owner token: {lock.owner_token}")
        else:
            output_json({"partition": partition, "owner_token": lock.owner_token, "lease": lease})

    except LockUpdateError as e:
        report_error(ctx, e, "The lease was lost; acquire the lock again", 4, text)
    except LockStoreError as e:
        report_error(ctx, e, "Check table exists and AWS credentials", 3, text)
    except ValueError as e:
        report_error(ctx, e, "Use a positive value for --lease", 2, text)


@click.command("release")
@click.argument("partition")
@click.option("--token", required=True, help="Owner token from acquire or the last renew")
@store_options
@click.pass_context
def lock_release_command(
    ctx: click.Context,
    partition: str,
    token: str,
    table: str,
    partition_key: str,
    sort_key: str | None,
    sort_key_value: str | None,
    lease: float,
    region: str | None,
    profile: str | None,
    text: bool,
    verbose: bool,
) -> None:
    """Release a held lease lock.

    Only the current owner token can release the lock.

    Examples:

    \b
        aws-lease-lock-tool lock release deploy-prod --token b71e...

    \b
    Output Format:
        Returns JSON:
        {"partition": "deploy-prod", "released": true}
    """
    configure_logging(verbose)
    try:
        manager = build_manager(
            table, partition_key, sort_key, sort_key_value, lease, region, profile
        )
        manager.resume(partition, token).release()

        if text:
            output_text(f"✅ Lock on '{partition}' released")
        else:
            output_json({"partition": partition, "released": True})

    except ConditionFailedError as e:
        report_error(
            ctx,
            e,
            "Lock is not held with this token; it was released or taken over",
            4,
            text,
        )
    except LockStoreError as e:
        report_error(ctx, e, "Check table exists and AWS credentials", 3, text)
    except ValueError as e:
        report_error(ctx, e, "Use a positive value for --lease", 2, text)


@click.command("check")
@click.argument("partition")
@store_options
@click.pass_context
def lock_check_command(
    ctx: click.Context,
    partition: str,
    table: str,
    partition_key: str,
    sort_key: str | None,
    sort_key_value: str | None,
    lease: float,
    region: str | None,
    profile: str | None,
    text: bool,
    verbose: bool,
) -> None:
    """Show the current holder of a lock.

    \b
    Output Format:
        Returns JSON (null when free):
        {"partition": "deploy-prod", "owner_token": "b71e...", "lease": 30.0}
    """
    configure_logging(verbose)
    try:
        manager = build_manager(
            table, partition_key, sort_key, sort_key_value, lease, region, profile
        )
        record = manager.lookup(partition)

        if text:
            if record is None:
                output_text(f"🔓 Lock on '{partition}' is free")
            else:
                output_text(f"🔒 Lock on '{partition}' held by {record.owner_token}")
                output_text(f"Lease: {record.lease_duration} seconds")
        elif record is None:
            output_json(None)
        else:
            output_json(
                {
                    "partition": partition,
                    "owner_token": record.owner_token,
                    "lease": record.lease_duration,
                }
            )

    except LockStoreError as e:
        report_error(ctx, e, "Check table exists and AWS credentials", 3, text)
    except ValueError as e:
        report_error(ctx, e, "Use a positive value for --lease", 2, text)


def renew_until(lock: Lock, interval: float, stop: threading.Event, errors: list[Exception]) -> None:
    """Renew the lock every interval seconds until stopped or renewal fails."""
    while not stop.wait(interval):
        try:
            lock.renew()
        except LockStoreError as e:
            errors.append(e)
            return


@click.command("run", context_settings={"ignore_unknown_options": True})
@click.argument("partition")
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.option(
    "--wait",
    type=float,
    default=0,
    help="Seconds to wait for the lock (default: 0, try once)",
)
@store_options
@click.pass_context
def lock_run_command(
    ctx: click.Context,
    partition: str,
    command: tuple[str, ...],
    wait: float,
    table: str,
    partition_key: str,
    sort_key: str | None,
    sort_key_value: str | None,
    lease: float,
    region: str | None,
    profile: str | None,
    text: bool,
    verbose: bool,
) -> None:
    """Run a command while holding a lease lock.

    The lease is renewed in the background and released when the command
    exits. Exits with the command's exit code, or 4 if the lock was lost.

    Examples:

    \b
        aws-lease-lock-tool lock run deploy-prod --lease 30 --wait 300 -- ./deploy.sh
    """
    configure_logging(verbose)
    try:
        manager = build_manager(
            table, partition_key, sort_key, sort_key_value, lease, region, profile
        )
        lock = acquire_with_options(manager, partition, wait)
        if lock is None:
            report_error(
                ctx,
                LockStoreError(f"Lock on '{partition}' is held by another owner"),
                "Retry with --wait to poll until the lease expires",
                4,
                text,
            )
            return

        if verbose:
            click.echo(f"Lock on '{partition}' acquired, running {' '.join(command)}", err=True)

        stop = threading.Event()
        errors: list[Exception] = []
        renewer = threading.Thread(
            target=renew_until,
            args=(lock, lease / RUN_RENEWALS_PER_LEASE, stop, errors),
            daemon=True,
        )
        renewer.start()
        try:
            result = subprocess.run(list(command))
        except OSError as e:
            report_error(ctx, e, "Check the command exists and is executable", 127, text)
            return
        finally:
            stop.set()
            renewer.join()
            if not errors:
                lock.release()

        if errors:
            report_error(ctx, errors[0], "The lease was lost while the command ran", 4, text)
            return

        ctx.exit(result.returncode)

    except LockTimeoutError as e:
        report_error(ctx, e, "Increase --wait or check the current holder with 'lock check'", 4, text)
    except LockStoreError as e:
        report_error(ctx, e, "Check table exists and AWS credentials", 3, text)
    except ValueError as e:
        report_error(ctx, e, "Use a positive value for --lease", 2, text)
