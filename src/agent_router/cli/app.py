"""
Agent Router CLI Entry Point

Responsibilities:
1. Bootstrap Environment: Parse --conf and set PRJ_CONFIG_HOME.
2. Initialize Infrastructure: Logging, Settings.
3. Dispatch Commands.

Usage:
    agent-router fingerprint agents.json      # Show fingerprint and build id
    agent-router build                        # Initialize (fills the cache)
    agent-router route "find a dictionary"    # Route one query
    agent-router route "find a dictionary" --json
    agent-router serve-store --port 3001      # Run the reference cache store
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import os
from collections.abc import AsyncIterator, Coroutine
from pathlib import Path
from typing import Any, NoReturn, Optional, TypeVar

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from agent_router.cache import (
    CacheStoreServer,
    EmbeddingCacheClient,
    FileCacheStore,
    create_cache_store,
)
from agent_router.catalog import FileCatalogSource, create_catalog_source
from agent_router.config.dirs import PRJ_CACHE, PRJ_DIRS
from agent_router.config.logging import configure_logging
from agent_router.config.settings import get_setting, get_settings
from agent_router.embedding import EmbeddingEngine, HttpEmbeddingProvider
from agent_router.errors import CatalogLoadError, RouterError
from agent_router.fingerprint import catalog_build_id
from agent_router.router import AgentRouter, RouterConfig, RouterStatus, load_router_config

T = TypeVar("T")

app = typer.Typer(
    name="agent-router",
    help="Semantic agent router with a content-addressed embedding cache",
    no_args_is_help=True,
    add_completion=False,
)

console = Console()
# stderr: progress and errors; stdout: results only
err_console = Console(stderr=True)


@app.callback()
def main_callback(
    conf: Optional[str] = typer.Option(
        None, "--conf", help="Configuration directory (sets PRJ_CONFIG_HOME)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Bootstrap configuration and logging before any command runs."""
    if conf:
        path_obj = Path(conf).resolve()
        if not path_obj.exists():
            err_console.print(f"[yellow]Warning: Config directory not found: {path_obj}[/yellow]")
        os.environ["PRJ_CONFIG_HOME"] = str(path_obj)
        PRJ_DIRS.clear_cache()
        get_settings().reload()

    log_level = "DEBUG" if verbose else str(get_setting("logging.level", "INFO"))
    configure_logging(level=log_level, force=True)


def _load_config(prefix_scheme: Optional[str]) -> RouterConfig:
    try:
        return load_router_config(prefix_scheme=prefix_scheme)
    except ValidationError as e:
        raise typer.BadParameter(str(e)) from e


def _print_status(status: RouterStatus) -> None:
    err_console.print(f"[dim][{status.progress:>3}%] {status.message}[/dim]")


@contextlib.asynccontextmanager
async def _router_session(
    catalog: Optional[str],
    catalog_url: Optional[str],
    config: RouterConfig,
    quiet: bool = False,
) -> AsyncIterator[AgentRouter]:
    """Wire an AgentRouter from settings and close its clients afterwards."""
    provider = HttpEmbeddingProvider()
    engine = EmbeddingEngine(
        provider,
        dims=config.dims,
        prefix_scheme=config.prefix_scheme,
        concurrency=int(get_setting("embedding.concurrency", 4)),
    )
    store = create_cache_store(expected_dims=config.dims)
    cache_client = EmbeddingCacheClient(store, config.dims, expected_model_id=config.model_id)
    source = create_catalog_source(path=catalog, url=catalog_url)

    router = AgentRouter(
        source,
        engine,
        cache_client,
        config=config,
        on_status=None if quiet else _print_status,
    )
    try:
        yield router
    finally:
        await provider.close()
        close = getattr(store, "close", None)
        if close is not None:
            await close()


def _fail(error: RouterError) -> NoReturn:
    err_console.print(f"[red]Error:[/red] {error}")
    raise typer.Exit(code=1)


def _run_command(coro: Coroutine[Any, Any, T]) -> T:
    """Run a command coroutine on a fresh event loop; a RouterError exits with status 1."""
    try:
        return asyncio.run(coro)
    except RouterError as e:
        _fail(e)


@app.command()
def fingerprint(
    catalog: Path = typer.Argument(..., help="Catalog file (.json / .yaml)"),
    prefix_scheme: Optional[str] = typer.Option(None, "--prefix-scheme", help="none | e5 | bge"),
    json_output: bool = typer.Option(False, "--json", help="Print JSON"),
) -> None:
    """Show the content fingerprint and build id of a catalog file."""
    config = _load_config(prefix_scheme)
    loaded = _run_command(FileCatalogSource(catalog).load())

    try:
        content_fingerprint, key = catalog_build_id(
            loaded.document, config.model_id, config.effective_chunking_id
        )
    except (TypeError, ValueError) as e:
        _fail(CatalogLoadError(f"Catalog is not canonicalizable: {e}"))
    result = {
        "catalog": str(catalog),
        "agents": len(loaded),
        "model_id": config.model_id,
        "chunking_id": config.effective_chunking_id,
        "fingerprint": content_fingerprint,
        "build_id": key,
    }
    if json_output:
        console.print_json(json.dumps(result))
        return

    table = Table(title="Catalog Fingerprint", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for field, value in result.items():
        table.add_row(field, str(value))
    console.print(table)


@app.command()
def build(
    catalog: Optional[str] = typer.Option(None, "--catalog", "-c", help="Catalog file"),
    catalog_url: Optional[str] = typer.Option(None, "--catalog-url", help="Catalog server URL"),
    prefix_scheme: Optional[str] = typer.Option(None, "--prefix-scheme", help="none | e5 | bge"),
) -> None:
    """Initialize the router once, computing and caching embeddings if needed."""
    config = _load_config(prefix_scheme)

    async def _run():
        async with _router_session(catalog, catalog_url, config) as router:
            report = await router.initialize()
            return report, router.stats()

    report, stats = _run_command(_run())

    table = Table(title="Router Build", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for field, value in report.model_dump().items():
        table.add_row(field, str(value))
    table.add_row("cache", json.dumps(stats["cache"]))
    console.print(table)


@app.command()
def route(
    query: str = typer.Argument(..., help="Request to route"),
    catalog: Optional[str] = typer.Option(None, "--catalog", "-c", help="Catalog file"),
    catalog_url: Optional[str] = typer.Option(None, "--catalog-url", help="Catalog server URL"),
    prefix_scheme: Optional[str] = typer.Option(None, "--prefix-scheme", help="none | e5 | bge"),
    json_output: bool = typer.Option(False, "--json", help="Print the decision as JSON"),
) -> None:
    """Route a query to the best matching agent."""
    config = _load_config(prefix_scheme)

    async def _run():
        session = _router_session(catalog, catalog_url, config, quiet=json_output)
        async with session as router:
            await router.initialize()
            return await router.route(query)

    decision = _run_command(_run())

    if json_output:
        console.print_json(decision.model_dump_json())
        return

    console.print(
        f"[bold green]{decision.agent_name}[/bold green] "
        f"(confidence {decision.confidence:.2f}, {decision.confidence_label})"
    )
    if decision.description:
        console.print(f"[dim]{decision.description}[/dim]")

    table = Table(title="Ranked Matches")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Agent", style="cyan")
    table.add_column("Score", justify="right")
    for position, match in enumerate(decision.ranked_matches, start=1):
        table.add_row(str(position), match.agent_name, f"{match.score:.4f}")
    console.print(table)


@app.command("serve-store")
def serve_store(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port"),
    directory: Optional[Path] = typer.Option(None, "--directory", "-d", help="Bundle directory"),
    catalog: Optional[Path] = typer.Option(
        None, "--catalog", "-c", help="Catalog served at /api/agents"
    ),
) -> None:
    """Run the reference cache store server (file-backed)."""
    host = host or str(get_setting("store_server.host", "127.0.0.1"))
    if port is None:
        port = int(get_setting("store_server.port", 3001))
    directory = directory or Path(
        get_setting("cache.directory") or PRJ_CACHE("agent-router", "embeddings")
    )
    if catalog is None:
        configured = get_setting("catalog.path")
        catalog = Path(configured) if configured else None

    store = FileCacheStore(directory, expected_dims=int(get_setting("router.dims", 384)))
    server = CacheStoreServer(store, host=host, port=port, catalog_path=catalog)

    async def _serve() -> None:
        await server.start()
        try:
            await asyncio.Event().wait()
        finally:
            await server.stop()

    err_console.print(f"Serving bundles from [cyan]{directory}[/cyan] on http://{host}:{port}")
    try:
        asyncio.run(_serve())
    except KeyboardInterrupt:
        err_console.print("Stopped")


def main() -> None:
    """Console script entry point."""
    app()


__all__ = ["app", "main"]
