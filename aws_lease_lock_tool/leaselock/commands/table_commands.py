"""
Table management commands for lease locks.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

import click
from botocore.exceptions import ClientError

from ..constants import DEFAULT_PARTITION_KEY, DEFAULT_TABLE_NAME
from ..core.table_operations import create_table, drop_table, key_shape_for
from ..exceptions import TableAlreadyExistsError, TableNotFoundError
from ..utils import error_json, error_text, output_json, output_text, validate_table_name


@click.command("create-table")
@click.argument("table_name", default=DEFAULT_TABLE_NAME, envvar="LOCK_TABLE")
@click.option(
    "--partition-key",
    default=DEFAULT_PARTITION_KEY,
    help=f"Partition key attribute (default: {DEFAULT_PARTITION_KEY})",
)
@click.option("--sort-key", help="Add a string sort key with this name (hash+range table)")
@click.option("--region", envvar="AWS_REGION", help="AWS region")
@click.option("--profile", envvar="AWS_PROFILE", help="AWS profile")
@click.option("--text", is_flag=True, help="Output as human-readable text")
@click.option("--verbose", "-V", is_flag=True, help="Verbose output")
@click.pass_context
def create_table_command(
    ctx: click.Context,
    table_name: str,
    partition_key: str,
    sort_key: str | None,
    region: str | None,
    profile: str | None,
    text: bool,
    verbose: bool,
) -> None:
    """Create a DynamoDB table for lock records.

    Examples:

    \b
        # Hash-only table
        aws-lease-lock-tool lock create-table my-locks

    \b
        # Share a hash+range table with application data
        aws-lease-lock-tool lock create-table my-data --partition-key PK --sort-key SK
    """
    try:
        validate_table_name(table_name)
        if verbose:
            click.echo(f"Creating table '{table_name}'...", err=True)

        description = create_table(
            table_name, key_shape_for(partition_key, sort_key), region, profile
        )

        if text:
            output_text(f"✅ Table '{table_name}' created")
        else:
            output_json({"table": table_name, "status": description.get("TableStatus")})

    except ValueError as e:
        click.echo(error_json(str(e), "Use a valid DynamoDB table name", 2), err=True)
        ctx.exit(2)
    except TableAlreadyExistsError as e:
        if text:
            click.echo(error_text(str(e), "Use the existing table or pick another name"), err=True)
        else:
            click.echo(error_json(str(e), "Use the existing table", 1), err=True)
        ctx.exit(1)
    except ClientError as e:
        click.echo(error_json(str(e), "Check AWS credentials and permissions", 3), err=True)
        ctx.exit(3)


@click.command("drop-table")
@click.argument("table_name")
@click.option("--region", envvar="AWS_REGION", help="AWS region")
@click.option("--profile", envvar="AWS_PROFILE", help="AWS profile")
@click.option("--text", is_flag=True, help="Output as human-readable text")
@click.pass_context
def drop_table_command(
    ctx: click.Context,
    table_name: str,
    region: str | None,
    profile: str | None,
    text: bool,
) -> None:
    """Drop a lock table."""
    try:
        drop_table(table_name, region, profile)
        if text:
            output_text(f"✅ Table '{table_name}' dropped")
        else:
            output_json({"table": table_name, "dropped": True})

    except TableNotFoundError as e:
        click.echo(error_json(str(e), "Check the table name and region", 1), err=True)
        ctx.exit(1)
    except ClientError as e:
        click.echo(error_json(str(e), "Check AWS credentials and permissions", 3), err=True)
        ctx.exit(3)
