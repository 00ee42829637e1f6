"""CLI entry point: vulnmatch.

Subcommands:
    vulnmatch match records.json          # Look up vulnerabilities for index records
    vulnmatch identify /path/to/layer     # Detect the distribution of an unpacked layer
"""

from __future__ import annotations

import asyncio
import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any

import click
from sqlalchemy.exc import SQLAlchemyError

from vulnmatch.core.config import ConfigError, StoreSettings
from vulnmatch.core.database import create_engine
from vulnmatch.core.entities import (
    Distribution,
    IndexRecord,
    Package,
    Repository,
    Vulnerability,
)
from vulnmatch.core.logging import setup_logging
from vulnmatch.indexer.distribution import identify_distribution
from vulnmatch.indexer.models import Layer
from vulnmatch.services.match_service import MatchService
from vulnmatch.vulnstore import VulnStoreError
from vulnmatch.vulnstore.store import VulnStore


def _package(data: dict[str, Any]) -> Package:
    if not isinstance(data, dict):
        raise ValueError(f"package must be a JSON object, got {type(data).__name__}")
    source = data.get("source")
    return Package(
        id=int(data.get("id", 0)),
        name=data["name"],
        version=data.get("version", ""),
        kind=data.get("kind", ""),
        source=_package(source) if source else None,
    )


def load_records(data: Any) -> list[IndexRecord]:
    """Parse a JSON array of ``{"package", "distribution", "repository"}`` objects."""
    if not isinstance(data, list):
        raise ValueError("records file must hold a JSON array")
    records = []
    for item in data:
        if not isinstance(item, dict):
            raise ValueError(f"record must be a JSON object, got {type(item).__name__}")
        dist = item.get("distribution")
        repo = item.get("repository")
        records.append(
            IndexRecord(
                package=_package(item["package"]),
                distribution=Distribution(**dist) if dist else None,
                repository=Repository(**repo) if repo else None,
            )
        )
    return records


def dump_results(results: dict[int, list[Vulnerability]]) -> dict[str, list[dict[str, Any]]]:
    return {str(pkg_id): [asdict(v) for v in vulns] for pkg_id, vulns in results.items()}


async def _match(
    records: list[IndexRecord],
    matchers: tuple[str, ...],
    database_url: str,
    batch_timeout: float,
) -> dict[int, list[Vulnerability]]:
    engine = create_engine(database_url)
    try:
        service = MatchService(VulnStore(engine, batch_timeout), matchers)
        return await service.match(records)
    finally:
        await engine.dispose()


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
def main(verbose: bool) -> None:
    """vulnmatch: match layer inventory against the vulnerability database."""
    setup_logging("DEBUG" if verbose else None)


@main.command("match")
@click.argument("records_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "-m",
    "--matcher",
    "matchers",
    multiple=True,
    help="Distribution matcher (repeatable); defaults to VULNMATCH_MATCHERS",
)
@click.option("--database-url", default=None, help="Database URL; defaults to VULNMATCH_DATABASE_URL")
def match(records_file: str, matchers: tuple[str, ...], database_url: str | None) -> None:
    """Print matched vulnerabilities per package id as JSON."""
    try:
        settings = StoreSettings.from_env()
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    try:
        records = load_records(json.loads(Path(records_file).read_text()))
    except json.JSONDecodeError as e:
        click.echo(f"Error: Invalid JSON in {records_file}: {e}", err=True)
        sys.exit(1)
    except (KeyError, TypeError, ValueError) as e:
        click.echo(f"Error: Malformed record in {records_file}: {e}", err=True)
        sys.exit(1)

    try:
        results = asyncio.run(
            _match(
                records,
                matchers or settings.matchers,
                database_url or settings.database_url,
                settings.batch_timeout,
            )
        )
    except VulnStoreError as e:
        click.echo(f"Error: {e.stage}: {e}", err=True)
        sys.exit(1)
    except (OSError, SQLAlchemyError) as e:
        click.echo(f"Error: connect: {e}", err=True)
        sys.exit(1)

    click.echo(json.dumps(dump_results(results), indent=2))


@main.command("identify")
@click.argument("layer_dir", type=click.Path(exists=True, file_okay=False))
def identify(layer_dir: str) -> None:
    """Print the distribution detected in an unpacked layer as JSON."""
    dist = identify_distribution(Layer.from_directory(Path(layer_dir)))
    if dist is None:
        click.echo("No known distribution found.", err=True)
        sys.exit(1)
    click.echo(json.dumps(asdict(dist), indent=2))


if __name__ == "__main__":
    main()
