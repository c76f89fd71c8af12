"""
CLI interface for the elimination engine.

Developer tooling around the core: list protocol catalogues, derive the
partition for a run input file, and print the Outcome JSON Schema.
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click

from dialectics.config import config
from dialectics.core.errors import DialecticsError
from dialectics.logging import initialize_logging
from dialectics.protocols import PROTOCOLS, get_protocol
from dialectics.serialization import (
    load_run_input,
    outcome_json_schema,
    run_from_input,
    run_input_json_schema,
)


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    default="WARNING",
    help="Console log level",
)
def cli(log_level: str):
    """Dialectical elimination engine CLI."""
    initialize_logging(
        log_dir=Path(config.logging.log_dir),
        level=log_level,
        enable_file_logging=config.logging.enable_file_logging,
    )


@cli.command()
@click.argument("protocol_id", required=False)
def protocols(protocol_id: Optional[str]):
    """List protocol catalogues, or describe one."""
    if protocol_id is None:
        for catalogue in PROTOCOLS.values():
            click.echo(f"{catalogue.protocol_id:<6} {catalogue.name}")
        return

    try:
        catalogue = get_protocol(protocol_id)
    except DialecticsError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(json.dumps(catalogue.describe(), indent=2))


@cli.command()
@click.argument("run_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print the derivation as JSON")
def derive(run_file: str, as_json: bool):
    """Derive the eliminated/survivor partition for a run input file."""
    try:
        run = run_from_input(load_run_input(run_file))
    except DialecticsError as e:
        click.echo(f"Error: {e}", err=True)
        for problem in getattr(e, "problems", []):
            click.echo(f"  - {problem}", err=True)
        sys.exit(1)

    derivation = run.derivation
    assert derivation is not None

    if as_json:
        click.echo(derivation.model_dump_json(indent=2))
        return

    click.echo(f"Run {run.run_id} ({run.catalogue.protocol_id}) on '{run.subject}'")
    click.echo(f"\nEliminated ({len(derivation.eliminated)}):")
    for record in derivation.eliminated:
        click.echo(f"  {record.candidate_id}: {record.reason} (by {record.challenge_id})")

    click.echo(f"\nSurvivors ({len(derivation.survivors)}):")
    for record in derivation.survivors:
        click.echo(f"  {record.candidate_id}")
        for limitation in record.limitations:
            click.echo(f"    - {limitation}")

    click.echo(f"\nNext stage: {run.stage.value}")


@cli.command()
@click.option(
    "--input", "for_input", is_flag=True, help="Print the run input schema instead"
)
def schema(for_input: bool):
    """Print the Outcome JSON Schema."""
    document = run_input_json_schema() if for_input else outcome_json_schema()
    click.echo(json.dumps(document, indent=2))


if __name__ == "__main__":
    cli()
