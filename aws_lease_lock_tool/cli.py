"""CLI entry point for aws-lease-lock-tool.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

import click

from aws_lease_lock_tool.leaselock.commands.lock_commands import (
    lock_acquire_command,
    lock_check_command,
    lock_release_command,
    lock_renew_command,
    lock_run_command,
)
from aws_lease_lock_tool.leaselock.commands.table_commands import (
    create_table_command,
    drop_table_command,
)


@click.group()
@click.version_option(version="0.1.0")
def main() -> None:
    """Lease-based distributed locks on DynamoDB conditional writes"""
    pass


@main.group("lock")
def lock() -> None:
    """Acquire, renew and release lease locks"""
    pass


# Register table commands
lock.add_command(create_table_command)
lock.add_command(drop_table_command)

# Register lock commands
lock.add_command(lock_acquire_command)
lock.add_command(lock_renew_command)
lock.add_command(lock_release_command)
lock.add_command(lock_check_command)
lock.add_command(lock_run_command)

if __name__ == "__main__":
    main()
