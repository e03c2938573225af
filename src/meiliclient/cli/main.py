"""
meiliclient CLI

Command-line interface over the Meilisearch HTTP API.

Usage::

    meili version                          # Server version
    meili indexes                          # List indexes
    meili create-index movies --wait       # Create an index
    meili add-documents movies movies.json # Upload a JSON array of documents
    meili search movies "carol"            # Search
    meili task 42 --wait                   # Wait for a task
"""

import json
import logging
import time
from pathlib import Path

import click

from meiliclient.client import Client
from meiliclient.core.config import ClientConfig
from meiliclient.core.formatter import ResultFormatter
from meiliclient.core.models import SearchQuery
from meiliclient.exceptions import MeiliClientError


# ---------------------------------------------------------------------------
# Logging helpers
# ---------------------------------------------------------------------------

def _configure_logging(config: ClientConfig, verbose: bool) -> None:
    """Set up logging for the CLI session."""
    level = logging.DEBUG if verbose else getattr(logging, config.log_level, logging.INFO)
    logging.basicConfig(level=level, format=config.log_format)
    # Suppress noisy HTTP loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# ---------------------------------------------------------------------------
# Top-level group
# ---------------------------------------------------------------------------

@click.group()
@click.version_option(package_name="meiliclient")
@click.option("--url", default=None, envvar="MEILI_URL",
              help="Meilisearch URL (default: $MEILI_URL or http://localhost:7700).")
@click.option("--api-key", default=None, envvar="MEILI_API_KEY",
              help="API key (default: $MEILI_API_KEY).")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, url: str | None, api_key: str | None, verbose: bool):
    """meili — talk to a Meilisearch server from the shell."""
    try:
        config = ClientConfig.from_env()
        if url:
            config.url = url
        if api_key:
            config.api_key = api_key
        config.validate()
    except MeiliClientError as exc:
        _fail(exc)
    _configure_logging(config, verbose)
    ctx.obj = Client(config=config)
    ctx.call_on_close(ctx.obj.close)


def _fail(exc: Exception) -> None:
    click.echo(f"Error: {exc}", err=True)
    raise SystemExit(1)


def _wait(client: Client, task_uid: int, timeout_ms: int | None) -> None:
    task = client.wait_for_task(task_uid, timeout_ms=timeout_ms)
    click.echo(ResultFormatter.format_task(task))
    if task.is_failed:
        raise SystemExit(1)


# ---------------------------------------------------------------------------
# Instance
# ---------------------------------------------------------------------------

@cli.command()
@click.pass_obj
def version(client: Client):
    """Show the server version."""
    try:
        v = client.get_version()
    except MeiliClientError as exc:
        _fail(exc)
    click.echo(f"  Meilisearch {v.pkg_version}  (commit {v.commit_sha[:8] or '-'})")


@cli.command()
@click.pass_obj
def health(client: Client):
    """Check that the server is available."""
    if client.is_healthy():
        click.echo(f"  {client.config.base_url} is available")
    else:
        click.echo(f"  {client.config.base_url} is NOT available", err=True)
        raise SystemExit(1)


@cli.command()
@click.pass_obj
def stats(client: Client):
    """Show instance statistics."""
    try:
        s = client.get_stats()
    except MeiliClientError as exc:
        _fail(exc)
    click.echo("─" * 50)
    click.echo("  MEILI — Instance Statistics")
    click.echo("─" * 50)
    click.echo(f"  Server         : {client.config.base_url}")
    click.echo(f"  Database size  : {s.database_size:>12,} bytes")
    click.echo()
    for uid, index_stats in s.indexes.items():
        flag = "  (indexing)" if index_stats.is_indexing else ""
        click.echo(f"  {uid:<24} {index_stats.number_of_documents:>10,} docs{flag}")
    click.echo("─" * 50)


# ---------------------------------------------------------------------------
# Indexes
# ---------------------------------------------------------------------------

@cli.command()
@click.option("--limit", type=int, default=None, help="Maximum number of indexes.")
@click.option("--offset", type=int, default=None, help="Number of indexes to skip.")
@click.pass_obj
def indexes(client: Client, limit: int | None, offset: int | None):
    """List indexes."""
    try:
        found = client.get_indexes(offset=offset, limit=limit)
    except MeiliClientError as exc:
        _fail(exc)
    click.echo(ResultFormatter.format_indexes(found))


@cli.command("create-index")
@click.argument("uid")
@click.option("--primary-key", default=None, help="Primary key of the documents.")
@click.option("--wait", is_flag=True, help="Wait for the task to finish.")
@click.pass_obj
def create_index(client: Client, uid: str, primary_key: str | None, wait: bool):
    """Create index UID."""
    try:
        info = client.create_index(uid, primary_key)
        click.echo(f"  Enqueued task {info.task_uid} ({info.type})")
        if wait:
            _wait(client, info.task_uid, None)
    except MeiliClientError as exc:
        _fail(exc)


@cli.command("delete-index")
@click.argument("uid")
@click.option("--wait", is_flag=True, help="Wait for the task to finish.")
@click.pass_obj
def delete_index(client: Client, uid: str, wait: bool):
    """Delete index UID and all its documents."""
    try:
        info = client.delete_index(uid)
        click.echo(f"  Enqueued task {info.task_uid} ({info.type})")
        if wait:
            _wait(client, info.task_uid, None)
    except MeiliClientError as exc:
        _fail(exc)


@cli.command()
@click.argument("uid")
@click.pass_obj
def settings(client: Client, uid: str):
    """Dump the settings of index UID as JSON."""
    try:
        click.echo(ResultFormatter.format_json(client.index(uid).get_settings()))
    except MeiliClientError as exc:
        _fail(exc)


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

@cli.command("add-documents")
@click.argument("uid")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--primary-key", default=None, help="Primary key, if the index has none yet.")
@click.option("--batch-size", type=click.IntRange(min=1), default=None,
              help="Documents per request (default: $MEILI_BATCH_SIZE or 1000).")
@click.option("--wait", is_flag=True, help="Wait for every batch task to finish.")
@click.pass_obj
def add_documents(client: Client, uid: str, file: str, primary_key: str | None,
                  batch_size: int | None, wait: bool):
    """Add the documents of FILE (a JSON array) to index UID."""
    try:
        documents = json.loads(Path(file).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        _fail(exc)
    if not isinstance(documents, list):
        _fail(ValueError(f"{file} must contain a JSON array of documents"))

    try:
        infos = client.index(uid).add_documents_in_batches(
            documents, batch_size, primary_key, show_progress=True,
        )
        click.echo(f"  Enqueued {len(infos)} task(s): {', '.join(str(i.task_uid) for i in infos)}")
        if wait:
            for info in infos:
                _wait(client, info.task_uid, None)
    except MeiliClientError as exc:
        _fail(exc)


# ---------------------------------------------------------------------------
# meili search
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("uid")
@click.argument("query", default="")
@click.option("-n", "--limit", type=int, default=None, help="Maximum number of hits.")
@click.option("--offset", type=int, default=None, help="Number of hits to skip.")
@click.option("--filter", "filter_", default=None, help="Filter expression, e.g. 'genre = drama'.")
@click.option("--sort", multiple=True, help="Sort rule, e.g. 'year:desc' (repeatable).")
@click.option("--facet", multiple=True, help="Facet to count (repeatable).")
@click.option("-f", "--format", "fmt", type=click.Choice(["console", "json"]),
              default="console", help="Output format.")
@click.pass_obj
def search(client: Client, uid: str, query: str, limit: int | None, offset: int | None,
           filter_: str | None, sort: tuple, facet: tuple, fmt: str):
    """Search index UID for QUERY (empty QUERY returns all documents)."""
    params = SearchQuery(
        limit=limit,
        offset=offset,
        filter=filter_,
        sort=list(sort) or None,
        facets=list(facet) or None,
    )
    t0 = time.perf_counter()
    try:
        result = client.index(uid).search(query, params)
    except MeiliClientError as exc:
        _fail(exc)
    elapsed = time.perf_counter() - t0

    if fmt == "json":
        click.echo(ResultFormatter.format_json(result))
    else:
        click.echo(ResultFormatter.format_console(result, elapsed_time=elapsed))


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("task_uid", type=int)
@click.option("--wait", is_flag=True, help="Poll until the task is processed.")
@click.option("--timeout-ms", type=int, default=None,
              help="Polling deadline in ms (default: $MEILI_TASK_TIMEOUT_MS or 5000).")
@click.pass_obj
def task(client: Client, task_uid: int, wait: bool, timeout_ms: int | None):
    """Show task TASK_UID, optionally waiting for it."""
    try:
        if wait:
            _wait(client, task_uid, timeout_ms)
        else:
            click.echo(ResultFormatter.format_task(client.get_task(task_uid)))
    except MeiliClientError as exc:
        _fail(exc)


@cli.command()
@click.option("--index", "index_uid", multiple=True, help="Only tasks of this index (repeatable).")
@click.option("--status", multiple=True,
              type=click.Choice(["enqueued", "processing", "succeeded", "failed", "canceled"]),
              help="Only tasks with this status (repeatable).")
@click.option("--limit", type=int, default=20, show_default=True)
@click.pass_obj
def tasks(client: Client, index_uid: tuple, status: tuple, limit: int):
    """List recent tasks."""
    try:
        page = client.get_tasks(
            index_uids=list(index_uid) or None,
            statuses=list(status) or None,
            limit=limit,
        )
    except MeiliClientError as exc:
        _fail(exc)
    click.echo(ResultFormatter.format_tasks(page.results))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    cli()
