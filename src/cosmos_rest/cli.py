"""CLI interface for cosmos-rest.

Command-line tool for inspecting a Cosmos DB account over its REST API.
"""

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, NoReturn, TypeVar

import click

from cosmos_rest.auth import format_http_date, sign
from cosmos_rest.client import CosmosClient
from cosmos_rest.config import AccountConfig, Config
from cosmos_rest.errors import CosmosError
from cosmos_rest.headers import RequestOptions
from cosmos_rest.pagination import Query, RequestTemplate
from cosmos_rest.resources import ResourceKind

T = TypeVar("T")


@click.group()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: auto-discover cosmos.toml)",
)
@click.option("--endpoint", default=None, help="Account endpoint (overrides config)")
@click.option("--master-key", default=None, help="Account master key (overrides config)")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path | None,
    endpoint: str | None,
    master_key: str | None,
    verbose: bool,
) -> None:
    """Cosmos DB REST API client."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        config = Config.load(config_path).with_overrides(
            endpoint=endpoint, master_key=master_key
        )
    except (FileNotFoundError, ValueError) as e:
        _fail(str(e))
    ctx.obj = config


def _fail(message: str) -> NoReturn:
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(1)


def _require_account(config: Config) -> AccountConfig:
    """Check that account configuration is present and return it.

    Raises:
        SystemExit: If account config is missing
    """
    if config.account is None:
        click.echo(
            click.style("Error: account configuration required in cosmos.toml", fg="red"),
            err=True,
        )
        click.echo("\nAdd the following to your cosmos.toml:")
        click.echo("\n[account]")
        click.echo('endpoint = "https://myaccount.documents.azure.com:443/"')
        click.echo('master_key = "your-master-key"')
        sys.exit(1)
    return config.account


def _run(config: Config, operation: Callable[[CosmosClient], Awaitable[T]]) -> T:
    account = _require_account(config)

    async def _main() -> T:
        async with CosmosClient.from_config(account, timeout=config.http.timeout) as client:
            return await operation(client)

    try:
        return asyncio.run(_main())
    except CosmosError as e:
        status = f" (HTTP {e.status_code})" if e.status_code is not None else ""
        _fail(f"{e.message}{status}")


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


@cli.command("sign")
@click.argument("verb")
@click.argument("path")
@click.option("--date", "timestamp", default=None, help="x-ms-date value (default: now)")
@click.pass_obj
def sign_command(config: Config, verb: str, path: str, timestamp: str | None) -> None:
    """Print the x-ms-date and Authorization headers for a request."""
    account = _require_account(config)
    date = timestamp or format_http_date()
    try:
        authorization = sign(verb, path, account.master_key, account.token_version, date)
    except CosmosError as e:
        _fail(e.message)
    click.echo(f"x-ms-date: {date}")
    click.echo(f"Authorization: {authorization}")


@cli.command()
@click.pass_obj
def databases(config: Config) -> None:
    """List all databases in the account."""
    page = _run(config, lambda client: client.list_databases())
    for db in page.items:
        click.echo(db["id"])


@cli.command("list")
@click.argument("kind", type=click.Choice([kind.value for kind in ResourceKind]))
@click.argument("path")
@click.option(
    "--max-items",
    type=int,
    default=None,
    help="Fetch a single page of at most this many items",
)
@click.option("--continuation", default=None, help="Continuation token from a previous page")
@click.pass_obj
def list_command(
    config: Config,
    kind: str,
    path: str,
    max_items: int | None,
    continuation: str | None,
) -> None:
    """List resources of KIND under PATH (e.g. docs /dbs/db1/colls/c1/docs)."""
    if not path.startswith("/"):
        path = f"/{path}"
    page = _run(
        config,
        lambda client: client.pages.fetch_page(
            kind, RequestTemplate.listing(path), max_items, continuation
        ),
    )
    _echo_json(page.items)
    if page.continuation:
        click.echo(f"continuation: {page.continuation}", err=True)


@cli.command()
@click.argument("db")
@click.argument("coll")
@click.argument("sql")
@click.option(
    "--param",
    "-p",
    "params",
    multiple=True,
    help="Query parameter as name=value (value parsed as JSON when possible)",
)
@click.option("--cross-partition", is_flag=True, help="Enable cross-partition queries")
@click.pass_obj
def query(
    config: Config,
    db: str,
    coll: str,
    sql: str,
    params: tuple[str, ...],
    cross_partition: bool,
) -> None:
    """Run a SQL query against DB/COLL and print matching documents."""
    parameters: dict[str, Any] = {}
    for param in params:
        name, sep, raw = param.partition("=")
        if not sep:
            _fail(f"Invalid parameter {param!r}, expected name=value")
        try:
            parameters[name] = json.loads(raw)
        except json.JSONDecodeError:
            parameters[name] = raw

    options = RequestOptions(enable_cross_partition=True) if cross_partition else None
    page = _run(
        config,
        lambda client: client.query_documents(
            db, coll, Query(sql, parameters), options=options
        ),
    )
    _echo_json(page.items)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
