"""Terminal output for the pokecatalog CLI.

Catalog data (record pages, detail JSON, cache stats, configuration) goes
to stdout and nothing else does, so ``pokecatalog --json list | jq`` always
sees clean JSON. Status lines, warnings, errors and ``--verbose`` traces
from the transport and repository go to stderr.

The format is picked once per invocation: ``--json`` and ``--plain`` force
one, otherwise Rich tables and highlighting are used on an interactive
terminal and tab-separated text everywhere else. ``NO_COLOR``,
``TERM=dumb`` and ``--no-color`` all disable colour (see clig.dev).

:func:`~pokecatalog.app.main_callback` builds one :class:`OutputManager`
and installs it with :func:`set_output`; library code reaches it through
:func:`get_output` and the thin module-level wrappers.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

if TYPE_CHECKING:
    from pokecatalog.models import Pokemon

RECORD_HEADERS = ["#", "Name", "Id", "Categories", "Image"]


class OutputFormat(str, Enum):
    """Rendering mode. ``AUTO`` becomes ``RICH`` on a colour TTY, else ``PLAIN``."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Routes catalog data to stdout and diagnostics to stderr.

    Args:
        format: Requested rendering mode; ``AUTO`` is resolved here.
        no_color: Plain uncoloured text on both streams.
        quiet: Hide :meth:`info` and :meth:`success` lines.
        verbose: Show :meth:`debug` traces.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose

        if format == OutputFormat.AUTO:
            self._format = (
                OutputFormat.RICH if _is_tty() and not self._no_color else OutputFormat.PLAIN
            )
        else:
            self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(self._format == OutputFormat.RICH),
        )
        self._stderr = Console(
            file=sys.stderr,
            no_color=self._no_color,
            stderr=True,
        )

    @property
    def format(self) -> OutputFormat:
        """The resolved output format."""
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    # ------------------------------------------------------------------ #
    # Data output (stdout)
    # ------------------------------------------------------------------ #

    def format_response(self, data: Any) -> None:
        """Render a JSON-compatible payload (detail record, stats, config).

        JSON mode prints it indented, plain mode prints ``key<TAB>value``
        lines and rich mode prints highlighted JSON.
        """
        text = json.dumps(data, indent=2, ensure_ascii=False, default=str)
        if self._format == OutputFormat.JSON:
            self.print_data(text)
        elif self._format == OutputFormat.PLAIN:
            self._print_plain(data)
        else:
            self._stdout.print(Syntax(text, "json", theme="monokai", word_wrap=True))

    def print_data(self, text: str) -> None:
        """Print raw text to stdout."""
        print(text, file=sys.stdout, flush=True)

    def print_records(self, records: Sequence[Pokemon], title: Optional[str] = None) -> None:
        """Print catalog records.

        JSON mode emits the records in their camelCase cache form. Plain
        mode prints a tab-separated header line and one line per record;
        rich mode draws a table titled *title*.
        """
        if self._format == OutputFormat.JSON:
            payload = [record.model_dump(mode="json", by_alias=True) for record in records]
            self.print_data(json.dumps(payload, indent=2, ensure_ascii=False))
            return

        rows = [_record_row(record) for record in records]
        if self._format == OutputFormat.PLAIN:
            for row in [RECORD_HEADERS, *rows]:
                self.print_data("\t".join(row))
            return

        table = Table(title=title, show_header=True, header_style="bold cyan")
        for header in RECORD_HEADERS:
            table.add_column(header, no_wrap=header == "Image")
        for row in rows:
            table.add_row(*(escape(cell) for cell in row))
        self._stdout.print(table)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        """Status line. Suppressed by ``--quiet``."""
        if not self._quiet:
            self._emit(message)

    def success(self, message: str) -> None:
        """Green status line. Suppressed by ``--quiet``."""
        if not self._quiet:
            self._emit(message, style="green")

    def warning(self, message: str) -> None:
        """Yellow warning. Shown even with ``--quiet``."""
        self._emit(message, prefix="Warning:", style="yellow")

    def error(self, message: str) -> None:
        """Bold red error. Never suppressed."""
        self._emit(message, prefix="Error:", style="bold red")

    def debug(self, message: str) -> None:
        """Transport and cache trace, only with ``--verbose``."""
        if self._verbose:
            self._emit(message, prefix="[debug]", style="dim")

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _emit(self, message: str, prefix: str = "", style: str = "") -> None:
        text = f"{prefix} {message}" if prefix else message
        if self._no_color:
            print(text, file=sys.stderr, flush=True)
        elif style:
            self._stderr.print(f"[{style}]{escape(text)}[/{style}]", highlight=False)
        else:
            self._stderr.print(escape(text), highlight=False)

    def _print_plain(self, data: Any) -> None:
        if not isinstance(data, dict):
            self.print_data(str(data))
            return
        for key, value in data.items():
            if isinstance(value, (dict, list)):
                value = json.dumps(value, ensure_ascii=False, default=str)
            self.print_data(f"{key}\t{value}")


def _record_row(record: Pokemon) -> list[str]:
    return [
        str(record.number) if record.number is not None else "",
        record.display_name,
        record.id,
        ", ".join(record.categories),
        record.image_url or "",
    ]


# ------------------------------------------------------------------ #
# Environment detection
# ------------------------------------------------------------------ #


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """``NO_COLOR`` (any value, even empty) or ``TERM=dumb`` turns colour off."""
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Process-wide manager
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating an ``AUTO`` one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Drop the installed manager; the next :func:`get_output` builds a fresh one."""
    global _output
    _output = None


def format_response(data: Any) -> None:
    get_output().format_response(data)


def print_records(records: Sequence[Pokemon], title: Optional[str] = None) -> None:
    get_output().print_records(records, title)


def info(message: str) -> None:
    get_output().info(message)


def error(message: str) -> None:
    get_output().error(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)
