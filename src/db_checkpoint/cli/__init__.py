"""CLI module for inspecting and running database checkpoints.

Usage:
    db-checkpoint profiles
    db-checkpoint dialects
    DB_PROFILE=local db-checkpoint plan --sql
    db-checkpoint reset --profile local --confirm

Commands:
    profiles  - List available profiles
    dialects  - List supported SQL dialects
    plan      - Show the deletion order without deleting anything
    reset     - Delete all rows from all tracked tables
"""

import argparse
import asyncio
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table
from sqlalchemy.exc import ArgumentError

from db_checkpoint.adapters import DIALECTS
from db_checkpoint.checkpoint import Checkpoint
from db_checkpoint.config.loader import load_db_config
from db_checkpoint.connection import connect
from db_checkpoint.errors import CheckpointError
from db_checkpoint.factory import ProfileNotFoundError, create_checkpoint, get_engine
from db_checkpoint.schema.models import DeletionPlan

console = Console()


def _config_path(args: argparse.Namespace) -> Path | None:
    config = getattr(args, "config", None)
    return Path(config) if config else None


# ============================================================================
# Output helpers
# ============================================================================


def _print_plan(checkpoint: Checkpoint, plan: DeletionPlan, show_sql: bool) -> None:
    """Render a deletion plan as a table, optionally followed by its SQL."""
    if plan.is_empty:
        console.print("[yellow]No tables matched the configured filters.[/yellow]")
        return

    disabled = set(plan.constraints_to_disable)

    table = Table(title="Deletion Plan", show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Table")
    table.add_column("Constraints")

    for i, ref in enumerate(plan.tables_to_delete, start=1):
        table.add_row(
            str(i),
            checkpoint.adapter.quote(ref),
            "[yellow]disabled[/yellow]" if ref in disabled else "-",
        )

    console.print(table)

    if disabled:
        console.print(
            f"[dim]Foreign-key cycle: constraints on {len(disabled)} "
            f"table(s) are suspended during reset.[/dim]"
        )

    sql = checkpoint.compiled_sql
    if show_sql and sql is not None:
        for header, text in (
            ("Disable constraints", sql.disable_sql),
            ("Delete", sql.delete_sql),
            ("Enable constraints", sql.enable_sql),
        ):
            if text:
                console.print()
                console.print(f"-- {header}", style="dim", markup=False, highlight=False)
                console.print(text, markup=False, highlight=False)


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_plan(args: argparse.Namespace) -> int:
    """Async implementation for plan command.

    Args:
        args: Parsed arguments with profile, sql, config, env_prefix.

    Returns:
        0 on success, 1 on failure.
    """
    try:
        checkpoint, profile = create_checkpoint(
            args.profile, env_prefix=args.env_prefix, config_path=_config_path(args)
        )
    except (FileNotFoundError, ProfileNotFoundError, ValueError) as e:
        console.print(f"[bold red]x[/bold red] {e}")
        return 1

    console.print("Reading schema...", style="dim")

    try:
        engine = get_engine(profile)
    except (ArgumentError, ImportError) as e:
        # Unparseable URL or missing async driver
        console.print(f"[bold red]x[/bold red] {e}")
        return 1

    try:
        async with connect(engine) as connection:
            plan = await checkpoint.build(connection)
    except CheckpointError as e:
        console.print(f"[bold red]x[/bold red] {e}")
        return 1
    finally:
        await engine.dispose()

    _print_plan(checkpoint, plan, show_sql=args.sql)
    return 0


async def _async_reset(args: argparse.Namespace) -> int:
    """Async implementation for reset command.

    Args:
        args: Parsed arguments with profile, confirm, config, env_prefix.

    Returns:
        0 on success (or when --confirm is missing), 1 on failure.
    """
    if not args.confirm:
        console.print(
            "[dim]This deletes every row in every tracked table. "
            "To actually reset, add[/dim] [cyan]--confirm[/cyan] [dim]flag.[/dim]"
        )
        return 0

    try:
        checkpoint, profile = create_checkpoint(
            args.profile, env_prefix=args.env_prefix, config_path=_config_path(args)
        )
    except (FileNotFoundError, ProfileNotFoundError, ValueError) as e:
        console.print(f"[bold red]x[/bold red] {e}")
        return 1

    console.print("Resetting database...", style="dim")

    try:
        engine = get_engine(profile)
    except (ArgumentError, ImportError) as e:
        # Unparseable URL or missing async driver
        console.print(f"[bold red]x[/bold red] {e}")
        return 1

    try:
        await checkpoint.reset_engine(engine)
    except CheckpointError as e:
        console.print(f"[bold red]x[/bold red] {e}")
        return 1
    finally:
        await engine.dispose()

    plan = checkpoint.plan
    count = len(plan.tables_to_delete) if plan else 0
    console.print(f"[bold green]v[/bold green] Reset complete: {count} table(s) emptied.")
    return 0


# ============================================================================
# Sync command wrappers (cmd_profiles, cmd_dialects read local state only)
# ============================================================================


def cmd_profiles(args: argparse.Namespace) -> int:
    """List available profiles from db.toml.

    Reads only local TOML config -- no database calls.

    Returns:
        0 on success, 1 if db.toml not found or invalid.
    """
    try:
        config = load_db_config(_config_path(args))
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    table = Table(title="Database Profiles", show_header=True, header_style="bold")
    table.add_column("Profile")
    table.add_column("Provider")
    table.add_column("Description")

    for name, profile in config.profiles.items():
        table.add_row(name, profile.provider, profile.description or "")

    console.print(table)
    return 0


def cmd_dialects(args: argparse.Namespace) -> int:
    """List supported dialects and their aliases.

    Returns:
        0 always (informational command).
    """
    table = Table(title="Dialects", show_header=True, header_style="bold")
    table.add_column("Dialect")
    table.add_column("Aliases")
    table.add_column("Quote")

    for name, dialect in DIALECTS.items():
        table.add_row(name, ", ".join(dialect.aliases), dialect.quote_char)

    console.print(table)
    return 0


def cmd_plan(args: argparse.Namespace) -> int:
    """Show the deletion plan.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_plan(args))


def cmd_reset(args: argparse.Namespace) -> int:
    """Reset the database.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_reset(args))


# ============================================================================
# Main entry point
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="db-checkpoint",
        description="Reset test databases to empty tables without touching the schema",
    )

    parser.add_argument(
        "--config",
        default=None,
        help="Path to db.toml (default: ./db.toml)",
    )
    parser.add_argument(
        "--env-prefix",
        default="",
        help=(
            "Prefix for environment variable lookup "
            "(e.g., --env-prefix APP_ reads APP_DB_PROFILE)"
        ),
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # profiles command
    p_profiles = subparsers.add_parser("profiles", help="List available profiles")
    p_profiles.set_defaults(func=cmd_profiles)

    # dialects command
    p_dialects = subparsers.add_parser("dialects", help="List supported SQL dialects")
    p_dialects.set_defaults(func=cmd_dialects)

    # plan command
    p_plan = subparsers.add_parser(
        "plan",
        help="Show the deletion order without deleting anything",
    )
    p_plan.add_argument("--profile", "-p", default=None, help="Profile from db.toml")
    p_plan.add_argument(
        "--sql",
        action="store_true",
        help="Also print the generated SQL statements",
    )
    p_plan.set_defaults(func=cmd_plan)

    # reset command
    p_reset = subparsers.add_parser(
        "reset",
        help="Delete all rows from all tracked tables",
    )
    p_reset.add_argument("--profile", "-p", default=None, help="Profile from db.toml")
    p_reset.add_argument(
        "--confirm",
        action="store_true",
        help="Actually delete the data",
    )
    p_reset.set_defaults(func=cmd_reset)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
