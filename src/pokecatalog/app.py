"""Typer application and CLI entry point for pokecatalog.

This module wires the command line onto the data layer. Each invocation
resolves the configuration, then constructs exactly one
:class:`~pokecatalog.client.Transport`, one
:class:`~pokecatalog.cache.PageStore` (rehydrated once from its file) and
one :class:`~pokecatalog.repository.CatalogRepository`, and passes them
down explicitly. Pending cache writes are flushed before the command
returns.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. Unhandled exceptions are written to a crash log under
the data directory.

See Also:
    :mod:`pokecatalog.config`: Configuration resolution.
    :mod:`pokecatalog.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import asyncio
import signal
import sys
import traceback
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, TypeVar

import typer

from pokecatalog import __version__
from pokecatalog.cache import PageStore
from pokecatalog.client import Transport
from pokecatalog.config import resolve_cache_path, resolve_config
from pokecatalog.exceptions import CatalogError
from pokecatalog.exit_codes import EXIT_GENERIC_FAILURE
from pokecatalog.models import CatalogConfig
from pokecatalog.output import (
    error,
    format_response,
    info,
    print_records,
    success,
    warning,
)
from pokecatalog.repository import CatalogRepository

T = TypeVar("T")

app = typer.Typer(
    name="pokecatalog",
    help="Browse and search the PokeAPI catalog with a local page cache.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)
cache_app = typer.Typer(no_args_is_help=True)
config_app = typer.Typer(no_args_is_help=True)

app.add_typer(cache_app, name="cache", help="Inspect or clear the local page cache.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"pokecatalog {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Catalog API base URL."
    ),
    cache_file: Optional[str] = typer.Option(
        None, "--cache-file", help="Page cache file path."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~pokecatalog.output.OutputManager` and
    stores the configuration overrides in ``ctx.obj`` for sub-commands.
    """
    from pokecatalog.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["base_url"] = base_url
    ctx.obj["cache_file"] = cache_file


# ------------------------------------------------------------------ #
# Wiring
# ------------------------------------------------------------------ #


@asynccontextmanager
async def open_catalog(config: CatalogConfig) -> AsyncIterator[CatalogRepository]:
    """Build the transport, page store and repository for one invocation.

    The store is loaded from disk once on entry and flushed on exit so
    that no background cache write is lost when the event loop stops.
    """
    store = PageStore(resolve_cache_path(config), persist=config.cache_enabled)
    await store.load_from_disk()
    async with Transport(config.base_url) as transport:
        try:
            yield CatalogRepository(
                transport,
                store,
                collection=config.collection,
                seed_page_size=config.search_seed_page_size,
            )
        finally:
            await store.flush()


def _config_from_context(ctx: typer.Context) -> CatalogConfig:
    obj = ctx.obj or {}
    try:
        return resolve_config(
            cli_base_url=obj.get("base_url"),
            cli_cache_file=obj.get("cache_file"),
        )
    except CatalogError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def _run(
    ctx: typer.Context,
    action: Callable[[CatalogRepository], Awaitable[T]],
) -> T:
    """Run *action* against a freshly wired repository.

    :class:`~pokecatalog.exceptions.CatalogError` is reported on stderr
    and turned into the matching exit code.
    """
    config = _config_from_context(ctx)

    async def _main() -> T:
        async with open_catalog(config) as repository:
            return await action(repository)

    try:
        return asyncio.run(_main())
    except CatalogError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


# ------------------------------------------------------------------ #
# Catalog commands
# ------------------------------------------------------------------ #


@app.command("list")
def list_command(
    ctx: typer.Context,
    limit: Optional[int] = typer.Option(
        None, "--limit", "-l", min=1, help="Page size (defaults to the configured page_size)."
    ),
    offset: int = typer.Option(0, "--offset", "-o", min=0, help="Offset of the first entry."),
) -> None:
    """List one page of the catalog.

    A page already in the cache is replayed without a network call,
    whatever limit it was fetched with.

    Example::

        pokecatalog list --limit 20 --offset 40
    """
    page_size = limit if limit is not None else _config_from_context(ctx).page_size
    records = _run(ctx, lambda repo: repo.fetch_page(page_size, offset))
    print_records(records, title=f"Offset {offset}")


@app.command("search")
def search_command(
    ctx: typer.Context,
    query: str = typer.Argument(help="Name, name fragment, or catalog number."),
) -> None:
    """Search by exact name or number, falling back to the cached pages.

    Example::

        pokecatalog search 25
        pokecatalog search char
    """
    records = _run(ctx, lambda repo: repo.search(query))
    if not records:
        info(f"No matches for '{query}'.")
        return
    print_records(records, title=f"Results for '{query}'")


@app.command("show")
def show_command(
    ctx: typer.Context,
    id_or_name: str = typer.Argument(help="Catalog number or name."),
    raw: bool = typer.Option(False, "--raw", help="Print the full detail record as received."),
) -> None:
    """Show one entry: types, size in m/kg, abilities and base stats.

    Detail records are never cached.

    Example::

        pokecatalog show pikachu --json
        pokecatalog show 25 --raw
    """
    detail = _run(ctx, lambda repo: repo.fetch_detail(id_or_name))
    format_response(detail.model_dump(mode="json") if raw else detail.summary())


# ------------------------------------------------------------------ #
# Cache commands
# ------------------------------------------------------------------ #


@cache_app.command("info")
def cache_info(ctx: typer.Context) -> None:
    """Show the cache file location and what it holds."""
    stats = _run(ctx, lambda repo: repo.store.stats())
    format_response(stats)


@cache_app.command("clear")
def cache_clear(ctx: typer.Context) -> None:
    """Delete the page cache file."""
    config = _config_from_context(ctx)
    if not config.cache_enabled:
        warning("Page caching is disabled; removing any leftover cache file.")
    asyncio.run(PageStore(resolve_cache_path(config)).clear())
    success("Page cache cleared.")


# ------------------------------------------------------------------ #
# Config commands
# ------------------------------------------------------------------ #


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the effective configuration after env and flag overrides."""
    from pokecatalog.config import config_path

    config = _config_from_context(ctx)
    info(f"Config file: {config_path()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key, e.g. 'page_size'."),
    value: str = typer.Argument(help="Value to set ('none' clears optional keys)."),
) -> None:
    """Set a configuration value in the config file."""
    from pokecatalog.config import set_config_value

    try:
        set_config_value(key, value)
    except CatalogError as exc:
        error(str(exc))
        raise typer.Exit(code=2) from None
    success(f"Set {key} = {value}")


# ------------------------------------------------------------------ #
# Entry point
# ------------------------------------------------------------------ #


def _exit_on_sigint() -> None:
    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nInterrupted.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log() -> Path:
    """Save the traceback being handled under the data directory."""
    from pokecatalog.config import get_data_dir

    crash_dir = get_data_dir() / "crashes"
    crash_dir.mkdir(parents=True, exist_ok=True)
    log_path = crash_dir / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    log_path.write_text(traceback.format_exc(), encoding="utf-8")
    return log_path


def main() -> None:
    """Console-script entry point.

    A :class:`~pokecatalog.exceptions.CatalogError` escaping a command is
    printed and becomes the process exit code. Any other exception is
    written to a crash log and exits with a generic failure.
    """
    _exit_on_sigint()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.exit(130)
    except CatalogError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception:
        error(f"Unexpected error, traceback saved to {_write_crash_log()}")
        sys.exit(EXIT_GENERIC_FAILURE)
