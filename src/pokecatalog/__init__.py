"""pokecatalog -- browse and search the PokeAPI catalog with a local page cache.

This package lists pages of a paginated REST catalog, resolves searches
with an exact server lookup backed by a scan of everything fetched so far,
and keeps fetched pages in a small JSON file so a later run starts warm.

Typical workflow::

    pokecatalog list --limit 50 --offset 0   # fetch (or replay) a page
    pokecatalog search char                  # exact lookup, then local scan
    pokecatalog show pikachu                 # full detail record

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic wire, domain and configuration models.
    repository: List, search and detail orchestration.
    config: XDG-aware configuration with atomic writes.
    exceptions: Error taxonomy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
