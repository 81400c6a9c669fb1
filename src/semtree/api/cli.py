"""semtree command line interface (Click)."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, TypeVar

import click

from semtree import __version__
from semtree.config.logging import configure_logging
from semtree.config.settings import Settings
from semtree.container import Container, create_container
from semtree.domain.enums import SearchMode
from semtree.domain.exceptions import SemtreeError

T = TypeVar("T")


def _settings(ctx: click.Context) -> Settings:
    return ctx.obj["settings"]


def _run(ctx: click.Context, action: Callable[[Container], Awaitable[T]]) -> T:
    """Build a container, run *action* in an event loop, always dispose."""
    try:
        container = create_container(_settings(ctx))
    except SemtreeError as e:
        raise click.ClickException(e.message) from e

    async def runner() -> T:
        try:
            return await action(container)
        finally:
            await container.aclose()

    try:
        return asyncio.run(runner())
    except SemtreeError as e:
        raise click.ClickException(e.message) from e


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2))


@click.group()
@click.version_option(__version__, prog_name="semtree")
@click.option("--store-path", type=click.Path(path_type=Path), default=None, help="Index directory.")
@click.option("--provider", default=None, help="ollama, openai, custom, local or sentence-transformers.")
@click.option("--model", "embedder_model", default=None, help="Embedding model name.")
@click.option("--log-level", default=None, help="Logging level (DEBUG, INFO, ...).")
@click.pass_context
def cli(
    ctx: click.Context,
    store_path: Path | None,
    provider: str | None,
    embedder_model: str | None,
    log_level: str | None,
) -> None:
    """Hierarchical semantic index over a file tree."""
    overrides = {
        "store_path": store_path,
        "provider": provider,
        "embedder_model": embedder_model,
        "log_level": log_level,
    }
    settings = Settings(**{k: v for k, v in overrides.items() if v is not None})
    configure_logging(settings.log_level, settings.log_json)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@cli.command()
@click.argument("root", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--workers", type=click.IntRange(1, 64), default=None, help="Concurrent tasks.")
@click.pass_context
def index(ctx: click.Context, root: Path, workers: int | None) -> None:
    """Vectorize every file and directory under ROOT."""
    if workers is not None:
        ctx.obj["settings"] = _settings(ctx).model_copy(update={"max_workers": workers})

    async def action(container: Container):
        return await container.coordinator.vectorize_all(root.resolve())

    stats = _run(ctx, action)
    click.echo(f"Processed: {stats.processed}")
    click.echo(f"Errors:    {stats.errors}")
    click.echo(f"Skipped:   {stats.skipped}")
    click.echo(f"Excluded:  {stats.excluded}")
    click.echo(f"Time:      {stats.duration_ms:.0f}ms")
    for failure in stats.failures:
        click.echo(f"  ! {failure.path}: {failure.message}", err=True)


@cli.command()
@click.argument("query")
@click.option("--limit", "-l", type=click.IntRange(1, 1000), default=None, help="Max results.")
@click.option(
    "--mode",
    "-m",
    type=click.Choice([m.value for m in SearchMode]),
    default=SearchMode.ALL.value,
    help="Which record kinds to return.",
)
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON.")
@click.pass_context
def search(ctx: click.Context, query: str, limit: int | None, mode: str, as_json: bool) -> None:
    """Find the paths most similar to QUERY."""
    limit = limit or _settings(ctx).search_default_limit

    async def action(container: Container):
        return await container.coordinator.search_similar(
            query, limit=limit, kinds=SearchMode(mode).kinds
        )

    hits = _run(ctx, action)
    if as_json:
        _echo_json(
            [
                {"path": h.item.path, "kind": h.item.kind.value, "similarity": h.similarity}
                for h in hits
            ]
        )
        return
    if not hits:
        click.echo("No results.")
        return
    for hit in hits:
        click.echo(f"{hit.similarity:.4f}  {hit.item.kind.value:<12}  {hit.item.path}")


@cli.command()
@click.pass_context
def count(ctx: click.Context) -> None:
    """Print the number of stored records."""

    async def action(container: Container):
        return await container.coordinator.get_storage_count()

    click.echo(str(_run(ctx, action)))


@cli.command()
@click.confirmation_option(prompt="Delete every stored embedding?")
@click.pass_context
def clear(ctx: click.Context) -> None:
    """Delete every stored record."""

    async def action(container: Container):
        await container.coordinator.clear_storage()

    _run(ctx, action)
    click.echo("Storage cleared.")


@cli.command()
@click.argument("path", type=click.Path(path_type=Path))
@click.pass_context
def status(ctx: click.Context, path: Path) -> None:
    """Show the indexing status of PATH."""

    async def action(container: Container):
        return await container.coordinator.get_status(path.resolve())

    click.echo(f"{path}: {_run(ctx, action).value}")


@cli.command()
@click.argument("path", type=click.Path(path_type=Path))
@click.pass_context
def exclude(ctx: click.Context, path: Path) -> None:
    """Exclude PATH (and everything below it) from vectorization."""

    async def action(container: Container):
        return await container.coordinator.exclude_path(path.resolve())

    click.echo(f"{path}: {_run(ctx, action).value}")


@cli.command()
@click.argument("path", type=click.Path(path_type=Path))
@click.pass_context
def include(ctx: click.Context, path: Path) -> None:
    """Lift a manual exclusion of PATH."""

    async def action(container: Container):
        return await container.coordinator.include_path(path.resolve())

    click.echo(f"{path}: {_run(ctx, action).value}")


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print the list as JSON.")
@click.pass_context
def exclusions(ctx: click.Context, as_json: bool) -> None:
    """List manually excluded paths."""

    async def action(container: Container):
        return await container.coordinator.excluded_paths()

    paths = _run(ctx, action)
    if as_json:
        _echo_json(paths)
        return
    if not paths:
        click.echo("No exclusions.")
        return
    for excluded in paths:
        click.echo(excluded)


@cli.command()
@click.option("--host", default=None, help="Bind address.")
@click.option("--port", type=int, default=None, help="Bind port.")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None) -> None:
    """Start the HTTP API server."""
    import uvicorn

    from semtree.api.server import create_app

    settings = _settings(ctx)
    try:
        app = create_app(settings)
    except SemtreeError as e:
        raise click.ClickException(e.message) from e
    uvicorn.run(app, host=host or settings.api_host, port=port or settings.api_port)


if __name__ == "__main__":
    cli()
