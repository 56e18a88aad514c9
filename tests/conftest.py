"""Shared test fixtures for pokecatalog.

Provides a fake catalog API served through :class:`httpx.MockTransport`,
isolated XDG directories, and output-state management. These fixtures are
automatically discovered by pytest and available to all test modules
without explicit imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest

from pokecatalog.output import OutputFormat, OutputManager, reset_output, set_output

BASE_URL = "https://pokeapi.test/api/v2"
"""Base URL served by :class:`FakeCatalogAPI`."""

NAMES = [
    "bulbasaur", "ivysaur", "venusaur", "charmander", "charmeleon",
    "charizard", "squirtle", "wartortle", "blastoise", "caterpie",
]


def list_payload(names: list[str], start: int, count: int = 1302) -> dict[str, Any]:
    """Build a list-endpoint body whose entries are numbered from *start* + 1."""
    return {
        "count": count,
        "next": None,
        "previous": None,
        "results": [
            {"name": name, "url": f"{BASE_URL}/pokemon/{start + i + 1}/"}
            for i, name in enumerate(names)
        ],
    }


def detail_payload(number: int, name: str, types: Optional[list[str]] = None) -> dict[str, Any]:
    """Build a detail-endpoint body with the fields the wire model requires."""
    return {
        "id": number,
        "name": name,
        "sprites": {"front_default": f"https://sprites.test/{number}.png", "back_default": None},
        "types": [
            {"slot": slot, "type": {"name": t, "url": f"{BASE_URL}/type/{slot}/"}}
            for slot, t in enumerate(types or ["normal"], start=1)
        ],
        "height": 4,
        "weight": 60,
        "base_experience": 112,
        "abilities": [
            {"is_hidden": False, "slot": 1, "ability": {"name": "static", "url": None}}
        ],
        "stats": [{"base_stat": 35, "effort": 0, "stat": {"name": "hp"}}],
        "cries": {"latest": None, "legacy": None},
        "unexpected_upstream_field": {"ignored": True},
    }


class FakeCatalogAPI:
    """In-memory stand-in for the catalog API.

    ``names`` is the full catalog; the list endpoint slices it by
    ``limit``/``offset`` and the detail endpoint resolves by number or
    name. ``status_overrides`` maps a request path to a forced status code.
    Every request is recorded in ``requests``.
    """

    def __init__(self, names: Optional[list[str]] = None) -> None:
        self.names = list(names if names is not None else NAMES)
        self.types: dict[str, list[str]] = {}
        self.status_overrides: dict[str, int] = {}
        self.requests: list[httpx.Request] = []

    @property
    def list_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.rstrip("/").endswith("/pokemon")]

    @property
    def detail_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r not in self.list_requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path in self.status_overrides:
            return httpx.Response(self.status_overrides[path], json={"detail": "forced"})

        segments = path.rstrip("/").split("/")
        if segments[-1] == "pokemon":
            limit = int(request.url.params.get("limit", "20"))
            offset = int(request.url.params.get("offset", "0"))
            page = self.names[offset:offset + limit]
            return httpx.Response(200, json=list_payload(page, offset, count=len(self.names)))

        key = segments[-1]
        if key.isdigit() and 1 <= int(key) <= len(self.names):
            number = int(key)
        elif key in self.names:
            number = self.names.index(key) + 1
        else:
            return httpx.Response(404, text="Not Found")
        name = self.names[number - 1]
        return httpx.Response(200, json=detail_payload(number, name, self.types.get(name)))

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time; CliRunner swaps those streams per invocation.
    """
    yield
    reset_output()


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet, plain-format output manager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True, no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Fake API
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_api() -> FakeCatalogAPI:
    return FakeCatalogAPI()


@pytest.fixture
def make_transport() -> Callable[[Callable[[httpx.Request], httpx.Response]], Any]:
    """Factory building a :class:`~pokecatalog.client.Transport` around a handler."""
    from pokecatalog.client import Transport

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> Transport:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return Transport(BASE_URL, client=client)

    return _make


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration and cache to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path, forces the XDG layout, and clears all
    POKECATALOG_* environment variables.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("pokecatalog.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in ["POKECATALOG_BASE_URL", "POKECATALOG_CACHE_FILE"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path
