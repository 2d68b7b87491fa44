"""Main entry point for the fscache command line.

Sets up the Typer CLI application, builds the cache pool (Composition Root)
and runs the pool operation behind each command.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Coroutine, List, Optional

import typer
from typing_extensions import Annotated

from fscache.domain.errors import CacheError, FilesystemError
from fscache.infrastructure.cache.filesystem_pool import FilesystemCachePool
from fscache.infrastructure.cli.display import ConsoleDisplay
from fscache.infrastructure.config.settings import (
    get_cache_folder,
    get_cache_root,
    get_log_level,
    load_configuration,
)
from fscache.infrastructure.filesystem.local_fs import LocalFileSystem
from fscache.infrastructure.monitoring.logger_setup import setup_logging

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="fscache",
    help="Inspect and manage a filesystem-backed cache pool.",
    add_completion=False,
)


def create_pool(root: Path, folder: str) -> FilesystemCachePool:
    """Builds a pool on a local filesystem rooted at ``root``."""
    return FilesystemCachePool(LocalFileSystem(root), folder)


def run_async(ctx: typer.Context, coro: Coroutine[Any, Any, Any]) -> Any:
    """Runs a pool coroutine, reporting cache and storage errors as exit code 1."""
    try:
        return asyncio.run(coro)
    except (CacheError, FilesystemError) as e:
        logger.debug("Command failed", exc_info=True)
        ctx.obj["ui"].display_error(str(e))
        raise typer.Exit(code=1)


def _pool(ctx: typer.Context) -> FilesystemCachePool:
    return create_pool(ctx.obj["root"], ctx.obj["folder"])


# --- CLI Commands ---

@app.command("get")
def get_command(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Cache key to read.")],
    details: Annotated[bool, typer.Option("--details", "-d", help="Show tags and expiry as well.")] = False,
):
    """Print the value stored under KEY. Exits with 1 on a miss."""
    ui: ConsoleDisplay = ctx.obj["ui"]

    async def _get():
        async with _pool(ctx) as pool:
            return await pool.get_item(key)

    item = run_async(ctx, _get())
    if not item.is_hit():
        ui.display_warning(f"No cached value for key '{key}'.")
        raise typer.Exit(code=1)
    if details:
        ui.display_item(item)
    else:
        ui.display_output(item.get())


@app.command("set")
def set_command(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Cache key to write.")],
    value: Annotated[str, typer.Argument(help="Value to store (as a string).")],
    ttl: Annotated[Optional[int], typer.Option("--ttl", help="Lifetime in seconds. Never expires if omitted.")] = None,
    tags: Annotated[Optional[List[str]], typer.Option("--tag", "-t", help="Tag to attach; may be repeated.")] = None,
):
    """Store VALUE under KEY."""
    async def _set():
        async with _pool(ctx) as pool:
            item = await pool.get_item(key)
            item.set(value).expires_after(ttl).set_tags(tags or [])
            return await pool.save(item)

    if not run_async(ctx, _set()):
        ctx.obj["ui"].display_error(f"Could not store key '{key}'.")
        raise typer.Exit(code=1)
    logger.info(f"Stored key '{key}'")


@app.command("has")
def has_command(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Cache key to check.")],
):
    """Print whether KEY holds a live value. Exits with 1 when it does not."""
    async def _has():
        async with _pool(ctx) as pool:
            return await pool.has_item(key)

    found = run_async(ctx, _has())
    ctx.obj["ui"].display_output("true" if found else "false")
    if not found:
        raise typer.Exit(code=1)


@app.command("delete")
def delete_command(
    ctx: typer.Context,
    keys: Annotated[List[str], typer.Argument(help="Cache keys to remove.")],
):
    """Remove one or more keys."""
    async def _delete():
        async with _pool(ctx) as pool:
            return await pool.delete_items(keys)

    if not run_async(ctx, _delete()):
        ctx.obj["ui"].display_error("Some keys could not be deleted.")
        raise typer.Exit(code=1)
    ctx.obj["ui"].display_info(f"Deleted {len(keys)} key(s).")


@app.command("invalidate")
def invalidate_command(
    ctx: typer.Context,
    tags: Annotated[List[str], typer.Argument(help="Tags whose items should be removed.")],
):
    """Remove every item stored with any of TAGS."""
    async def _invalidate():
        async with _pool(ctx) as pool:
            return await pool.invalidate_tags(tags)

    if not run_async(ctx, _invalidate()):
        ctx.obj["ui"].display_error("Tag invalidation did not complete.")
        raise typer.Exit(code=1)
    ctx.obj["ui"].display_info(f"Invalidated tag(s): {', '.join(tags)}")


@app.command("clear")
def clear_command(
    ctx: typer.Context,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation.")] = False,
):
    """Remove every item in the cache folder."""
    if not yes:
        typer.confirm(f"Clear everything in '{ctx.obj['folder']}'?", abort=True)

    async def _clear():
        async with _pool(ctx) as pool:
            return await pool.clear()

    run_async(ctx, _clear())
    ctx.obj["ui"].display_info(f"Cleared cache folder '{ctx.obj['folder']}'.")


@app.callback()
def main_callback(
    ctx: typer.Context,
    root: Annotated[
        Optional[Path],
        typer.Option("--root", "-r", help="Directory the cache lives under. Defaults to config 'cache.root'."),
    ] = None,
    folder: Annotated[
        Optional[str],
        typer.Option("--folder", "-f", help="Cache folder inside the root. Defaults to config 'cache.folder'."),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
):
    """Global options shared by every command."""
    load_configuration()
    setup_logging(log_level=logging.DEBUG if verbose else get_log_level())

    ctx.obj = {
        "root": root or get_cache_root(),
        "folder": folder or get_cache_folder(),
        "ui": ConsoleDisplay(),
    }
    logger.debug(f"Using cache root={ctx.obj['root']} folder={ctx.obj['folder']}")


def cli_entry_point():
    """Entry point used by the console script and ``python -m fscache``."""
    app()


if __name__ == "__main__":
    cli_entry_point()
