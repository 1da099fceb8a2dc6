"""Command-line interface for running and inspecting Local Storage migrations.

Commands:
- migrate: Run the migration from a Local Storage database to a preference store
- inspect: List the decoded records of a Local Storage database without changing it
- status: Report whether a preference store has already been migrated
"""

import json
import logging
import sys

import click
from rich.console import Console
from rich.table import Table

from . import __version__
from .codec import RecordKind, get_codec
from .exceptions import MigratorError, StoreUnavailableError
from .settings import (
    build_engine,
    build_registry,
    build_source,
    build_target,
    load_settings,
)
from .stores import SOURCE_STORES, TARGET_STORES

console = Console()

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
PACKAGE_LOGGER = "localstorage_migrator"


def _load(config_path, overrides):
    """Load settings from an optional file and apply command-line overrides."""
    try:
        settings = load_settings(config_path)
        data = settings.to_dict()
        for section in ("source", "target"):
            if overrides.get(f"{section}_type"):
                data[section]["type"] = overrides[f"{section}_type"]
            if overrides.get(f"{section}_path"):
                data[section]["path"] = overrides[f"{section}_path"]
        if overrides.get("guard_key"):
            data["guard_key"] = overrides["guard_key"]
        if overrides.get("keep_source"):
            data["delete_source"] = False
        settings = load_settings(data, use_env=False)
    except MigratorError as e:
        console.print(f"[red]Error loading configuration: {e}[/red]")
        sys.exit(1)

    ctx = click.get_current_context(silent=True)
    if not (ctx and ctx.find_root().obj and ctx.find_root().obj.get("verbose")):
        logging.getLogger(PACKAGE_LOGGER).setLevel(settings.log_level.upper())
    return settings


config_option = click.option('--config', '-c', 'config_path', type=click.Path(dir_okay=False),
                             help='YAML or JSON settings file')


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, verbose: bool):
    """Migrate legacy WebView Local Storage into a preference store"""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    logging.basicConfig(level=logging.WARNING, format=LOG_FORMAT)
    if verbose:
        logging.getLogger(PACKAGE_LOGGER).setLevel(logging.DEBUG)


@cli.command()
@config_option
@click.option('--source', '-s', 'source_path', help='Local Storage location')
@click.option('--source-type', type=click.Choice(sorted(SOURCE_STORES)), help='Source store type')
@click.option('--target', '-t', 'target_path', help='Preference store location')
@click.option('--target-type', type=click.Choice(sorted(TARGET_STORES)), help='Target store type')
@click.option('--guard-key', help='Key marking the target as migrated')
@click.option('--keep-source', is_flag=True, help='Do not delete migrated records from the source')
@click.option('--json', 'as_json', is_flag=True, help='Print the result as JSON')
def migrate(config_path, source_path, source_type, target_path, target_type,
            guard_key, keep_source, as_json):
    """Run the migration once"""
    settings = _load(config_path, {
        "source_path": source_path,
        "source_type": source_type,
        "target_path": target_path,
        "target_type": target_type,
        "guard_key": guard_key,
        "keep_source": keep_source,
    })

    try:
        engine = build_engine(settings)
        source = build_source(settings)
        target = build_target(settings)
    except MigratorError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    progress = engine.run(source, target)

    if as_json:
        click.echo(json.dumps(progress.to_dict(), indent=2))
    else:
        style = "green" if progress.ok else "red"
        console.print(f"[{style}]{progress.get_summary()}[/{style}]")
        for warning in progress.warnings:
            console.print(f"  [yellow]{warning}[/yellow]")

    if not progress.ok:
        sys.exit(1)


@cli.command()
@config_option
@click.option('--source', '-s', 'source_path', help='Local Storage location')
@click.option('--source-type', type=click.Choice(sorted(SOURCE_STORES)), help='Source store type')
@click.option('--width', default=56, show_default=True, help='Maximum value width')
def inspect(config_path, source_path, source_type, width):
    """Show the decoded contents of a Local Storage database"""
    settings = _load(config_path, {"source_path": source_path, "source_type": source_type})

    try:
        source = build_source(settings)
        registry = build_registry(settings)
        codec = get_codec(source.codec_name)
        handle = source.open()
    except StoreUnavailableError as e:
        console.print(f"[yellow]{e}[/yellow]")
        return
    except MigratorError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    table = Table(title=f"Local Storage - {source.location}")
    table.add_column("Record", style="blue")
    table.add_column("Key", style="cyan")
    table.add_column("Kind", style="green")
    table.add_column("Value")

    with handle:
        for record in handle.iterate():
            kind = codec.classify(record.key)
            if kind is not RecordKind.DATA:
                table.add_row(kind.value, repr(record.key), "", repr(record.value[:width]))
                continue
            try:
                entry = codec.decode(record.key, record.value)
            except MigratorError as e:
                table.add_row("malformed", repr(record.key[:width]), "", f"[red]{e}[/red]")
                continue
            value_kind = registry.lookup(entry.key)
            kind_label = value_kind.value if value_kind else "string (default)"
            table.add_row(kind.value, entry.key, kind_label, entry.value[:width])

    console.print(table)


@cli.command()
@config_option
@click.option('--target', '-t', 'target_path', help='Preference store location')
@click.option('--target-type', type=click.Choice(sorted(TARGET_STORES)), help='Target store type')
@click.option('--guard-key', help='Key marking the target as migrated')
def status(config_path, target_path, target_type, guard_key):
    """Report whether the target has already been migrated"""
    settings = _load(config_path, {
        "target_path": target_path,
        "target_type": target_type,
        "guard_key": guard_key,
    })

    try:
        migrated = build_engine(settings).has_migrated(build_target(settings))
    except MigratorError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if migrated:
        console.print(f"[green]Migrated[/green] ('{settings.guard_key}' present)")
    else:
        console.print(f"[yellow]Not migrated[/yellow] ('{settings.guard_key}' absent)")


def main():
    """Main entry point for CLI"""
    cli()


if __name__ == '__main__':
    main()
