"""
Command-line interface for the DP Store backend.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

import click
from dotenv import load_dotenv
from pydantic import ValidationError

from dpstore.common.config import Config
from dpstore.common.exceptions import DPStoreError
from dpstore.common.models import LicenseView, QuoteRequest
from dpstore.server import start_server
from dpstore.server.catalog import load_catalog
from dpstore.server.license_store import LicenseStore
from dpstore.server.pricing import PricingEngine


@click.group()
@click.option(
    "--env-file",
    default=".env",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Settings file loaded into the environment when present (default: .env)",
)
def cli(env_file: Path) -> None:
    """DP Store pricing and license CLI"""
    # Variables already set in the environment win over the file
    load_dotenv(env_file)


@cli.command()
@click.option(
    "--host",
    default=None,
    help="Host to bind server to (default: from DPSTORE_SERVER_HOST env or 127.0.0.1)",
)
@click.option(
    "--port",
    default=None,
    type=int,
    help="Port to bind server to (default: from DPSTORE_SERVER_PORT env or 4242)",
)
@click.option(
    "--data-dir",
    default=None,
    help="Directory holding licenses.csv (default: from DPSTORE_DATA_DIR env)",
)
def serve(host: str | None, port: int | None, data_dir: str | None) -> None:
    """Start the store server"""
    # Set environment variables before building the config
    if host:
        os.environ["DPSTORE_SERVER_HOST"] = host
    if port:
        os.environ["DPSTORE_SERVER_PORT"] = str(port)
    if data_dir:
        os.environ["DPSTORE_DATA_DIR"] = data_dir

    config = Config()
    if not config.STRIPE_SECRET_KEY:
        msg = "ERROR: STRIPE_SECRET_KEY must be set in the environment or the .env file."
        raise click.ClickException(msg)

    start_server(config)


@cli.command()
@click.argument("cart_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--catalog",
    "catalog_file",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Catalog JSON file (default: built-in price list)",
)
def quote(cart_file: Path, catalog_file: Path | None) -> None:
    """Price a cart JSON file ({"items": [...]})"""
    config = Config()
    pricing = PricingEngine(
        load_catalog(catalog_file or config.CATALOG_FILE_PATH), config.CURRENCY
    )
    try:
        req = QuoteRequest.model_validate_json(cart_file.read_text(encoding="utf-8"))
        result = pricing.quote(req.items)
    except ValidationError as e:
        raise click.ClickException(f"Invalid cart: {e}") from e
    except DPStoreError as e:
        raise click.ClickException(str(e)) from e

    for line in result.lines:
        click.echo(f"{line.id:<24} {line.amount:>10}")
    click.echo(f"{'total':<24} {result.total:>10} {result.currency}")


@cli.command()
@click.argument("serial")
@click.option(
    "--license-file",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="License CSV (default: from DPSTORE_LICENSE_FILE env)",
)
def lookup(serial: str, license_file: Path | None) -> None:
    """Show the license record for a serial number"""
    config = Config()
    try:
        store = LicenseStore.load(license_file or config.LICENSE_FILE_PATH)
    except DPStoreError as e:
        raise click.ClickException(str(e)) from e
    record = store.get(serial)
    if record is None:
        raise click.ClickException(f"License not found: {serial.strip().upper()}")
    click.echo(json.dumps(LicenseView.from_record(record).model_dump(mode="json"), indent=2))


if __name__ == "__main__":
    cli()
