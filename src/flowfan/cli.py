# src/flowfan/cli.py
"""flowfan Command Line Interface.

Entry point for the flowfan CLI tool.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

import typer
from dynaconf.vendor.ruamel.yaml.parser import ParserError as YamlParserError
from dynaconf.vendor.ruamel.yaml.scanner import ScannerError as YamlScannerError
from pydantic import ValidationError

from flowfan import __version__
from flowfan.core.config import FlowfanSettings, load_settings

if TYPE_CHECKING:
    from flowfan.plugins.base import BaseProcessor
    from flowfan.plugins.manager import PluginManager

__all__ = [
    "app",
]

# Module-level singleton for plugin manager
_plugin_manager_cache: PluginManager | None = None


def _get_plugin_manager() -> PluginManager:
    """Get initialized plugin manager (singleton)."""
    global _plugin_manager_cache

    from flowfan.plugins.manager import PluginManager

    if _plugin_manager_cache is None:
        manager = PluginManager()
        manager.register_builtin_plugins()
        _plugin_manager_cache = manager
    return _plugin_manager_cache


app = typer.Typer(
    name="flowfan",
    help="flowfan: fan out flow units by a delimited attribute.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"flowfan version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """flowfan: fan out flow units by a delimited attribute."""
    from flowfan.core.logging import configure_logging

    # Configure early so settings errors are logged consistently; run
    # reconfigures once the settings file is known.
    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "INFO")
    ctx.obj = {"verbose": verbose, "json_logs": json_logs}


def _load_settings_or_exit(settings: Path) -> FlowfanSettings:
    settings_path = settings.expanduser()
    try:
        return load_settings(settings_path)
    except (YamlParserError, YamlScannerError) as e:
        typer.echo(f"YAML syntax error in {settings}: {e.problem}", err=True)
        raise typer.Exit(1) from None
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {settings}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None


def _create_processor_or_exit(config: FlowfanSettings) -> BaseProcessor:
    from flowfan.plugins.config_base import PluginConfigError

    try:
        return _get_plugin_manager().create_processor(config.processor.plugin, config.processor.options)
    except (ValueError, PluginConfigError) as e:
        typer.echo(f"Error instantiating processor: {e}", err=True)
        raise typer.Exit(1) from None


@app.command()
def run(
    ctx: typer.Context,
    settings: Path = typer.Argument(..., help="Path to settings YAML file."),
    input_path: Path = typer.Option(
        ...,
        "--input",
        "-i",
        help="JSONL file of units to process.",
    ),
    output_dir: Path = typer.Option(
        ...,
        "--output-dir",
        "-o",
        help="Directory receiving one <relationship>.jsonl per relationship.",
    ),
    output_format: str = typer.Option(
        "console",
        "--format",
        "-f",
        help="Summary format: 'console' (human-readable) or 'json' (structured JSON).",
    ),
) -> None:
    """Run the configured processor over every unit in the input file."""
    from flowfan.core.logging import configure_logging
    from flowfan.core.unit_io import UnitFormatError, read_units, write_units
    from flowfan.engine import ProcessorRunner, UnitQueue

    if output_format not in ("console", "json"):
        typer.echo(f"Error: Invalid format '{output_format}'. Valid formats: console, json", err=True)
        raise typer.Exit(1)

    config = _load_settings_or_exit(settings)

    flags: dict[str, Any] = ctx.obj or {}
    configure_logging(
        json_output=flags.get("json_logs", False) or config.logging.json_output,
        level="DEBUG" if flags.get("verbose", False) else config.logging.level,
    )

    processor = _create_processor_or_exit(config)

    queue = UnitQueue()
    try:
        for unit in read_units(input_path):
            queue.put(unit)
    except FileNotFoundError:
        typer.echo(f"Error: Input file not found: {input_path}", err=True)
        raise typer.Exit(1) from None
    except UnitFormatError as e:
        typer.echo(f"Error reading units: {e}", err=True)
        raise typer.Exit(1) from None

    runner = ProcessorRunner(processor, queue)
    try:
        summary = runner.run(max_workers=config.runner.max_workers)
    except Exception as e:
        typer.echo(f"Error during processing: {e}", err=True)
        raise typer.Exit(1) from None

    output_dir.mkdir(parents=True, exist_ok=True)
    written: dict[str, int] = {}
    for relationship in sorted(processor.relationships):
        connection = runner.connection(relationship)
        units = connection.drain() if connection is not None else []
        written[str(relationship)] = write_units(output_dir / f"{relationship}.jsonl", units)

    if output_format == "json":
        typer.echo(
            json.dumps(
                {
                    "run_id": summary.run_id,
                    "processor": processor.name,
                    "invocations": summary.invocations,
                    "errors_reported": summary.errors_reported,
                    "relationships": written,
                }
            )
        )
    else:
        typer.echo(f"Run {summary.run_id} completed: {summary.invocations} units processed by {processor.name}")
        for name, count in written.items():
            typer.echo(f"  {name:10} {count:6}  -> {output_dir / f'{name}.jsonl'}")
        if summary.errors_reported:
            typer.echo(f"  {summary.errors_reported} unit(s) routed to failure, see log for details")


@app.command()
def validate(
    settings: Path = typer.Argument(..., help="Path to settings YAML file."),
) -> None:
    """Validate settings and processor configuration without processing."""
    config = _load_settings_or_exit(settings)
    processor = _create_processor_or_exit(config)

    typer.echo("Configuration valid.")
    typer.echo(f"  Processor: {processor.name} ({processor.plugin_version})")
    typer.echo(f"  Relationships: {', '.join(sorted(str(r) for r in processor.relationships))}")
    typer.echo(f"  Workers: {config.runner.max_workers}")


# ============================================================================
# Plugins subcommand group
# ============================================================================

plugins_app = typer.Typer(help="Plugin management commands.")
app.add_typer(plugins_app, name="plugins")


@plugins_app.command("list")
def plugins_list() -> None:
    """List available processors."""
    from flowfan.plugins.discovery import get_plugin_description

    processors = _get_plugin_manager().get_processors()
    typer.echo("\nPROCESSORS:")
    if not processors:
        typer.echo("  (none available)")
    for cls in processors:
        relationships = ", ".join(sorted(str(r) for r in cls.relationships))
        typer.echo(f"  {cls.name:24} - {get_plugin_description(cls)}")
        typer.echo(f"  {'':24}   relationships: {relationships}")
    typer.echo()


@plugins_app.command("describe")
def plugins_describe(
    name: str = typer.Argument(..., help="Processor name."),
) -> None:
    """Print a processor's relationships and configuration schema as JSON."""
    cls = _get_plugin_manager().get_processor_by_name(name)
    if cls is None:
        typer.echo(f"Error: Unknown processor '{name}'.", err=True)
        raise typer.Exit(1)
    typer.echo(json.dumps(cls.describe(), indent=2, sort_keys=True))
