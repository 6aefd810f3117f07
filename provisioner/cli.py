"""
CLI interface for provisioner.

Provides commands to list, inspect, and run definitions.

Definitions are YAML or JSON files under the configured definitions
directory. `run` drives a definition through the sequential executor with
the built-in resource types.
"""

import json
import sys
from pathlib import Path
from typing import Any

import click

from provisioner import __version__
from provisioner.errors import ConfigError, DefinitionError
from provisioner.utils import console


def _parse_field(value: str) -> tuple[str, Any]:
    """Parse key=value, decoding the value as JSON when possible."""
    if "=" not in value:
        raise click.BadParameter(f"expected key=value, got {value!r}")
    key, raw = value.split("=", 1)
    try:
        return key, json.loads(raw)
    except json.JSONDecodeError:
        return key, raw


@click.group()
@click.version_option(version=__version__, prog_name="provisioner")
@click.option("--config", "config_path", type=click.Path(path_type=Path), default=None,
              help="Path to provisioner.yaml")
@click.option("--definitions-dir", type=click.Path(path_type=Path), default=None,
              help="Override the definitions directory")
@click.option("-v", "--verbose", is_flag=True, help="Log at DEBUG level")
@click.pass_context
def main(ctx, config_path, definitions_dir, verbose):
    """
    provisioner - Compile and run declarative infrastructure definitions.
    """
    from provisioner.config import load_config
    from provisioner.library import DefinitionLibrary
    from provisioner.utils import setup_logging

    ctx.ensure_object(dict)
    try:
        config = load_config(config_path)
    except ConfigError as e:
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1)

    setup_logging(
        log_file=config.get_log_file_path(),
        log_level="DEBUG" if verbose else config.get_log_level(),
        log_format=config.get_log_format(),
        console_output=config.should_log_to_console(),
    )

    ctx.obj["config"] = config
    ctx.obj["library"] = DefinitionLibrary(definitions_dir or config.get_definitions_dir())


@main.command("definitions")
@click.pass_context
def list_definitions(ctx):
    """List available definitions."""
    library = ctx.obj["library"]
    names = library.list_definitions()
    if not names:
        click.echo(f"No definitions found in {library.definitions_dir}")
        return
    for name in names:
        click.echo(name)


@main.command("show")
@click.argument("name")
@click.pass_context
def show(ctx, name: str):
    """Compile a definition and print it as JSON."""
    library = ctx.obj["library"]
    try:
        definition = library.load(name)
    except DefinitionError as e:
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1)
    click.echo(json.dumps(definition.to_dict(), indent=2))


@main.command("run")
@click.argument("name")
@click.option("--field", "field_values", multiple=True, metavar="KEY=VALUE",
              help="Initial field (value parsed as JSON when possible)")
@click.option("--fields-file", type=click.Path(exists=True, path_type=Path), default=None,
              help="JSON file with initial fields")
@click.option("--job-name", default=None, help="Job name (defaults to the definition name)")
@click.pass_context
def run(ctx, name: str, field_values: tuple[str, ...], fields_file, job_name):
    """
    Run a definition.

    NAME is the definition name (filename without extension).

    Examples:

        provisioner run launch_web --field host=db1 --field 'tags=["a","b"]'
    """
    from provisioner.executor import JobExecutor
    from provisioner.registry import get_default_registry
    from provisioner.schemas import Job

    fields: dict[str, Any] = {}
    if fields_file is not None:
        with open(fields_file) as f:
            loaded = json.load(f)
        if not isinstance(loaded, dict):
            raise click.BadParameter("fields file must contain a JSON object", param_hint="--fields-file")
        fields.update(loaded)
    for value in field_values:
        key, parsed = _parse_field(value)
        fields[key] = parsed

    job = Job(name=job_name or name, definition_name=name, fields=fields)
    executor = JobExecutor(get_default_registry(), library=ctx.obj["library"])

    try:
        result = executor.execute(job)
    except DefinitionError as e:
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1)

    if not result.success:
        failed = result.failed_task
        click.echo(f"✗ {name} failed at {failed.ref}: {result.error}", err=True)
        if failed.resource is not None:
            for error in failed.resource.errors:
                click.echo(f"  {error.field}: {error.message}", err=True)
        raise SystemExit(1)

    console.print_json(data=result.fields)
    click.echo(f"✓ {name} completed ({len(result.outcomes)} tasks)")


if __name__ == "__main__":
    sys.exit(main())
