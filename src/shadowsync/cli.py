"""
Command-line interface for shadowsync.
"""

import logging
import logging.handlers
import sys
from functools import wraps
from pathlib import Path
from typing import Optional

import click
from click.core import ParameterSource
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config import LOG_LEVELS, DatabaseConnection, LoggingConfig, ShadowSyncConfig
from .database.connection import MySQLConnection
from .database.introspection import SchemaIntrospector
from .exceptions import DatabaseError, ShadowSyncError
from .schema.reconciler import (
    ReconciliationContext,
    ReconciliationStatus,
    RunSummary,
    ShadowReconciler,
)


console = Console()
logger = logging.getLogger("shadowsync")

ACTION_LABELS = {
    ReconciliationStatus.CREATED: "create",
    ReconciliationStatus.UPDATED: "update",
    ReconciliationStatus.UNCHANGED: "unchanged",
    ReconciliationStatus.SKIPPED: "skip",
    ReconciliationStatus.FAILED: "failed",
}


def _debug_enabled() -> bool:
    """True when the group was invoked with ``--debug``."""
    ctx = click.get_current_context(silent=True)
    if ctx is None:
        return False
    obj = ctx.find_root().obj or {}
    return bool(obj.get("debug"))


def handle_errors(func):
    """Decorator to handle errors gracefully in CLI commands."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ShadowSyncError as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
            if _debug_enabled():
                console.print_exception()
            sys.exit(1)
        except KeyboardInterrupt:
            console.print("\n[yellow]Interrupted by user[/yellow]")
            sys.exit(1)
    return wrapper


def connection_options(func):
    """Options shared by every command that talks to the database."""
    options = [
        click.option(
            "--config", "-c",
            type=click.Path(exists=True),
            help="Configuration file path",
        ),
        click.option("--host", "-H", help="The server connection (default=localhost)"),
        click.option("--port", "-P", type=int, help="The server port (default=3306)"),
        click.option("--user", "-u", help="The user account (default=root)"),
        click.option("--password", "-p", help="The account password (REQUIRED)"),
        click.option("--database", "-d", help="The database schema to shadow (REQUIRED)"),
        click.option(
            "--shadow-suffix", "-s",
            help="The table name suffix that denotes a shadow table (default=_shadow)",
        ),
        click.option("--log-file", "-f", help="The log file name (default=mysql-shadow.log)"),
        click.option(
            "--verbosity", "-v",
            type=click.Choice(list(LOG_LEVELS)),
            help="The log verbosity level (default=info)",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_config(
    config: Optional[str],
    host: Optional[str] = None,
    port: Optional[int] = None,
    user: Optional[str] = None,
    password: Optional[str] = None,
    database: Optional[str] = None,
    shadow_suffix: Optional[str] = None,
    log_file: Optional[str] = None,
    verbosity: Optional[str] = None,
    dry_run: Optional[bool] = None,
) -> ShadowSyncConfig:
    """Load file/env settings, apply command-line values and validate."""
    if verbosity is None and _debug_enabled():
        verbosity = "debug"

    base = ShadowSyncConfig.from_yaml(config) if config else ShadowSyncConfig()
    resolved = base.with_overrides(
        connection__host=host,
        connection__port=port,
        connection__user=user,
        connection__password=password,
        connection__database=database,
        shadow__suffix=shadow_suffix,
        shadow__dry_run=dry_run,
        logging__file=log_file,
        logging__level=verbosity,
    )
    resolved.validate_config()
    return resolved


def _configure_logging(config: LoggingConfig) -> None:
    """Send package logs to the configured file (appending) or to stderr."""
    if config.file:
        handler: logging.Handler = logging.handlers.RotatingFileHandler(
            config.file,
            maxBytes=config.max_size,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(config.format))

    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()
    logger.addHandler(handler)
    logger.setLevel(config.python_level)


@click.group()
@click.version_option(__version__)
@click.option(
    "--debug", is_flag=True,
    help="Log at debug level unless --verbosity is given, and show tracebacks",
)
@click.pass_context
def main(ctx, debug):
    """shadowsync: keep MySQL shadow tables and audit triggers in sync."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@main.command()
@connection_options
@click.option(
    "--test/--no-test", "-t",
    "dry_run",
    default=False,
    help="Test mode, just show what we would do (default=no-test)",
)
@handle_errors
def sync(config, host, port, user, password, database, shadow_suffix, log_file, verbosity, dry_run):
    """Create and update shadow tables and their triggers."""
    source = click.get_current_context().get_parameter_source("dry_run")
    if source == ParameterSource.DEFAULT:
        # keep the configured value unless --test/--no-test was given
        dry_run = None

    settings = _build_config(
        config, host, port, user, password, database,
        shadow_suffix, log_file, verbosity, dry_run,
    )
    _configure_logging(settings.logging)
    logger.debug(
        f"options: connection={settings.connection.masked()} "
        f"shadow={settings.shadow.model_dump()} logging={settings.logging.model_dump()}"
    )

    if settings.shadow.dry_run:
        console.print("[yellow]Test mode - no changes will be made[/yellow]")

    try:
        with MySQLConnection(settings.connection) as conn:
            logger.debug(f"Server version: {conn.get_server_info()}")
            context = ReconciliationContext.from_config(
                settings, SchemaIntrospector(conn), conn, log=logger
            )
            summary = ShadowReconciler(context).run()
    except DatabaseError as e:
        logger.critical(f"run aborted: {e}")
        raise

    _display_summary(summary)
    sys.exit(summary.exit_code)


@main.command()
@connection_options
@handle_errors
def status(config, host, port, user, password, database, shadow_suffix, log_file, verbosity):
    """Show each table and what a sync would do to it."""
    settings = _build_config(
        config, host, port, user, password, database,
        shadow_suffix, log_file, verbosity, dry_run=True,
    )
    _configure_logging(settings.logging)

    with MySQLConnection(settings.connection) as conn:
        context = ReconciliationContext.from_config(
            settings, SchemaIntrospector(conn), conn, log=logger
        )
        reconciler = ShadowReconciler(context)
        registry = reconciler.load_registry()

        table = Table(title=f"Shadow status for {settings.schema_name}")
        table.add_column("Table", style="cyan")
        table.add_column("Kind", style="magenta")
        table.add_column("Columns", justify="right")
        table.add_column("Shadow", style="green")
        table.add_column("Action", style="yellow")

        for descriptor in registry:
            action = ACTION_LABELS[reconciler.plan_table(descriptor, registry)]
            table.add_row(
                descriptor.table_name,
                "shadow" if descriptor.is_shadow else "base",
                str(descriptor.column_count),
                descriptor.shadow_name or "-",
                action,
            )

    console.print(table)


@main.command()
@connection_options
@handle_errors
def test_connection(config, host, port, user, password, database, shadow_suffix, log_file, verbosity):
    """Connect to the server and show its version."""
    settings = _build_config(
        config, host, port, user, password, database,
        shadow_suffix, log_file, verbosity,
    )
    console.print(f"[blue]Testing connection...[/blue]")

    with MySQLConnection(settings.connection) as conn:
        version = conn.get_server_info()

    console.print(f"[green]✓[/green] Connected to {settings.connection.host}")
    console.print(f"Server version: {version}")


@main.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default="shadowsync.yaml",
    help="Output configuration file path",
)
@handle_errors
def init(output: str):
    """Initialize a new shadowsync configuration file."""
    if Path(output).exists():
        if not click.confirm(f"Configuration file {output} already exists. Overwrite?"):
            return

    _create_default_config().to_yaml(output)
    console.print(f"[green]✓[/green] Configuration file created: {output}")
    console.print("\n[yellow]Next steps:[/yellow]")
    console.print("1. Edit the configuration file with your database details")
    console.print(f"2. Run: shadowsync validate-config -c {output}")
    console.print(f"3. Run: shadowsync sync -c {output} --test")


@main.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    required=True,
    help="Configuration file path",
)
@handle_errors
def validate_config(config: str):
    """Validate configuration file."""
    console.print(f"Validating configuration: {config}")

    settings = ShadowSyncConfig.from_yaml(config)
    settings.validate_config()

    console.print("[green]✓[/green] Configuration is valid")
    _display_config_summary(settings)


def _create_default_config() -> ShadowSyncConfig:
    """Create a default configuration with placeholders."""
    return ShadowSyncConfig(
        connection=DatabaseConnection(
            host="${MYSQL_HOST}",
            user="${MYSQL_USER}",
            password="${MYSQL_PASSWORD}",
            database="${MYSQL_DATABASE}",
        ),
    )


def _display_config_summary(config: ShadowSyncConfig) -> None:
    table = Table(title="Configuration Summary")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Host", f"{config.connection.host}:{config.connection.port}")
    table.add_row("User", config.connection.user)
    table.add_row("Schema", config.schema_name)
    table.add_row("Shadow suffix", config.shadow.suffix)
    table.add_row("Test mode", str(config.shadow.dry_run))
    table.add_row("Log file", config.logging.file or "(stderr)")
    table.add_row("Log level", config.logging.level)

    console.print(table)


def _display_summary(summary: RunSummary) -> None:
    title = f"Shadow sync of {summary.schema}"
    if summary.dry_run:
        title += " (test mode)"

    table = Table(title=title)
    table.add_column("Result", style="cyan")
    table.add_column("Count", justify="right", style="green")

    counts = summary.to_dict()
    for key in (
        "created", "updated", "unchanged", "skipped", "shadow_tables", "failed",
        "columns_added", "columns_dropped", "columns_modified", "statements",
        "statements_executed", "statements_failed", "execution_time_ms",
    ):
        table.add_row(key.replace("_", " "), str(counts[key]))

    console.print(table)

    changed = [r for r in summary.results if r.changes]
    if changed:
        tables = Table(title="Changed tables")
        tables.add_column("Table", style="cyan")
        tables.add_column("Result", style="yellow")
        tables.add_column("Statements", justify="right")
        tables.add_column("Time (ms)", justify="right", style="green")
        for result in changed:
            tables.add_row(
                result.table,
                result.status.value,
                str(len(result.changes)),
                f"{result.execution_time_ms:.1f}",
            )
        console.print(tables)

    if summary.dry_run and summary.changes:
        console.print("\n[yellow]Statements that would run:[/yellow]")
        for change in summary.changes:
            console.print(f"-- {escape(change.full_table_name)}: {escape(change.description)}", style="dim")
            console.print(f"{escape(change.sql)};", soft_wrap=True, highlight=False)

    if summary.errors:
        console.print("\n[red]Errors:[/red]")
        for error in summary.errors:
            console.print(f"  • {escape(error)}")


if __name__ == "__main__":
    main()
