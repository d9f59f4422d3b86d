"""Inspect and manage Passenger virtual hosts from the command line."""

import logging
import sys
from pathlib import Path

import structlog
import typer

from vhostpane.backends import build_backends
from vhostpane.collection import EntityCollection
from vhostpane.config import SettingsError, load_settings
from vhostpane.domain.vhost_block import serialize_block
from vhostpane.entity import VHostEntity
from vhostpane.helpers.client import HelperError
from vhostpane.models import Environment

app = typer.Typer(
    help="Inspect and manage Passenger virtual hosts",
    no_args_is_help=True,
)

_HOST_HELP = "Server name of the application"
_PATH_HELP = "Directory the application lives in"


def _stderr_logger(*args: object) -> structlog.PrintLogger:
    # Resolved per logger so a replaced sys.stderr is picked up.
    return structlog.PrintLogger(sys.stderr)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every change to stderr"),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Record changes in memory instead of writing, restarting or registering"
    ),
) -> None:
    """Inspect and manage Passenger virtual hosts."""
    ctx.obj = {"dry_run": dry_run}
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO if verbose else logging.WARNING),
        logger_factory=_stderr_logger,
    )


def build_collection(ctx: typer.Context) -> EntityCollection:
    """Load settings and wire the configured backends into a collection."""
    try:
        settings = load_settings()
    except SettingsError as e:
        typer.echo(f"Error loading settings: {e}", err=True)
        sys.exit(1)
    writer, signal, registrar = build_backends(settings, dry_run=_dry_run(ctx))
    return EntityCollection(settings, writer, signal, registrar)


def _dry_run(ctx: typer.Context) -> bool:
    return bool(ctx.obj and ctx.obj.get("dry_run"))


def _prefix(ctx: typer.Context) -> str:
    return "[dry run] " if _dry_run(ctx) else ""


def _require(collection: EntityCollection, host: str) -> VHostEntity:
    entity = collection.find(host)
    if entity is None:
        typer.echo(f"No application configured for {host}", err=True)
        sys.exit(1)
    return entity


@app.command("list")
def list_apps(ctx: typer.Context) -> None:
    """List every configured application."""
    collection = build_collection(ctx)
    entities = collection.load_all()
    for entity in entities:
        typer.echo(
            f"{entity.host}\t{entity.path}\t{entity.effective_environment or '-'}\t"
            f"{entity.application_type.value}"
        )
    for failure in collection.load_failures:
        typer.echo(f"Could not read {failure.file}: {failure.error}", err=True)


@app.command()
def show(ctx: typer.Context, host: str = typer.Argument(..., help=_HOST_HELP)) -> None:
    """Print the vhost block for an application."""
    entity = _require(build_collection(ctx), host)
    record = entity.to_record()
    typer.echo(serialize_block(record.to_fields(), record.app_type), nl=False)


@app.command()
def hosts(ctx: typer.Context) -> None:
    """Print every server name and alias, one per line."""
    for host in build_collection(ctx).all_hosts():
        typer.echo(host)


@app.command("check-hosts")
def check_hosts(ctx: typer.Context) -> None:
    """Exit non-zero if some configured host is not registered."""
    try:
        registered = build_collection(ctx).all_hosts_registered()
    except HelperError as e:
        typer.echo(str(e), err=True)
        sys.exit(1)
    if not registered:
        typer.echo("Some hosts are not registered; run `vhostpane register-hosts`.")
        sys.exit(1)
    typer.echo("All hosts registered.")


@app.command("register-hosts")
def register_hosts(ctx: typer.Context) -> None:
    """Register every configured host with the system resolver."""
    try:
        build_collection(ctx).register_all_hosts()
    except HelperError as e:
        typer.echo(str(e), err=True)
        sys.exit(1)


@app.command()
def add(
    ctx: typer.Context,
    path: Path = typer.Argument(  # noqa: B008
        ...,
        help=_PATH_HELP,
    ),
    host: str = typer.Option("", "--host", help="Server name (defaults to <dirname>.local)"),
    aliases: str = typer.Option("", "--aliases", help="Space separated alias names"),
    production: bool = typer.Option(False, "--production", help="Run in the production environment"),
) -> None:
    """Configure and start a new application."""
    collection = build_collection(ctx)
    entity = collection.entity_for_directory(str(path.resolve()))
    if host:
        entity.host = host
    if aliases:
        entity.aliases = aliases
    if production:
        entity.environment = Environment.PRODUCTION
    if _dry_run(ctx) and entity.valid:
        record = entity.to_record()
        typer.echo(serialize_block(record.to_fields(), record.app_type), nl=False)
    try:
        applied = entity.apply()
    except (HelperError, OSError) as e:
        typer.echo(str(e), err=True)
        sys.exit(1)
    if not applied:
        typer.echo(f"Invalid application at {path}", err=True)
        sys.exit(1)
    typer.echo(f"{_prefix(ctx)}Started {entity.host}")


@app.command()
def restart(ctx: typer.Context, host: str = typer.Argument(..., help=_HOST_HELP)) -> None:
    """Signal a running application to restart."""
    entity = _require(build_collection(ctx), host)
    try:
        entity.restart()
    except (HelperError, OSError) as e:
        typer.echo(str(e), err=True)
        sys.exit(1)
    typer.echo(f"{_prefix(ctx)}Restarted {host}")


@app.command()
def remove(ctx: typer.Context, host: str = typer.Argument(..., help=_HOST_HELP)) -> None:
    """Delete an application's vhost file."""
    collection = build_collection(ctx)
    entity = _require(collection, host)
    try:
        collection.remove_all([entity])
    except (HelperError, OSError) as e:
        typer.echo(str(e), err=True)
        sys.exit(1)
    typer.echo(f"{_prefix(ctx)}Removed {host}")
