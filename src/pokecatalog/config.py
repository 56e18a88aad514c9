"""Configuration, directory layout and atomic file writes for pokecatalog.

* **Directories** -- :func:`get_config_dir`, :func:`get_cache_dir` and
  :func:`get_data_dir` follow the XDG Base Directory layout on Linux and
  BSD and live under ``~/.pokecatalog/`` everywhere else.
* **Config file** -- one :class:`~pokecatalog.models.CatalogConfig` JSON
  document holding the API base URL, page sizes and cache settings.
* **Precedence** -- :func:`resolve_config` layers CLI flags over
  ``POKECATALOG_*`` environment variables over the config file.
* **Cache location** -- :func:`resolve_cache_path` names the single file
  behind the page store.

Files are replaced with :func:`atomic_write`, never edited in place, so a
crash mid-write leaves the previous config or cache file intact.
"""

from __future__ import annotations

import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from pokecatalog.exceptions import ConfigError
from pokecatalog.models import CatalogConfig

_APP_NAME = "pokecatalog"
_CONFIG_FILENAME = "config.json"
CACHE_FILENAME = "pokecache.json"

ENV_BASE_URL = "POKECATALOG_BASE_URL"
ENV_CACHE_FILE = "POKECATALOG_CACHE_FILE"


# --- Directory layout ---


def _is_xdg_platform() -> bool:
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(xdg_var: str, xdg_default: tuple[str, ...], fallback: tuple[str, ...]) -> Path:
    """Resolve and create one of the application directories.

    On XDG platforms this is ``$<xdg_var>/pokecatalog`` with *xdg_default*
    (relative to the home directory) standing in for an unset or empty
    variable. Elsewhere it is ``~/.pokecatalog/<fallback...>``.
    """
    if _is_xdg_platform():
        root = os.environ.get(xdg_var) or str(Path.home().joinpath(*xdg_default))
        path = Path(root) / _APP_NAME
    else:
        path = Path.home().joinpath(f".{_APP_NAME}", *fallback)
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """``$XDG_CONFIG_HOME/pokecatalog`` (``~/.config/pokecatalog``), or ``~/.pokecatalog``."""
    return _app_dir("XDG_CONFIG_HOME", (".config",), ())


def get_cache_dir() -> Path:
    """``$XDG_CACHE_HOME/pokecatalog`` (``~/.cache/pokecatalog``), or ``~/.pokecatalog/cache``.

    Holds the page store file, which can be deleted at any time; the next
    run simply starts cold.
    """
    return _app_dir("XDG_CACHE_HOME", (".cache",), ("cache",))


def get_data_dir() -> Path:
    """``$XDG_DATA_HOME/pokecatalog`` (``~/.local/share/pokecatalog``), or ``~/.pokecatalog/logs``.

    Crash logs are written below it.
    """
    return _app_dir("XDG_DATA_HOME", (".local", "share"), ("logs",))


# --- Atomic writes ---


def atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* in one rename.

    The data is written and fsynced to a hidden sibling temp file, which is
    then moved over *path* with :func:`os.replace`. Missing parent
    directories are created. On failure the temp file is removed and the
    exception propagates, leaving any previous *path* untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


# --- Config file ---


def config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_config() -> CatalogConfig:
    """Read the config file, or return defaults when there is none.

    Raises:
        ConfigError: The file exists but is not valid JSON or does not
            validate as a :class:`~pokecatalog.models.CatalogConfig`.
    """
    path = config_path()
    if not path.is_file():
        return CatalogConfig()
    try:
        return CatalogConfig.model_validate_json(path.read_text(encoding="utf-8"))
    except (ValidationError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_config(config: CatalogConfig) -> None:
    atomic_write(config_path(), config.model_dump_json(indent=2) + "\n")


def set_config_value(key: str, value: str) -> CatalogConfig:
    """Set one config key from its command-line string form and save.

    Pydantic coerces the string to the field type (``"false"`` to a bool,
    ``"20"`` to an int). ``none``, ``null`` or an empty string clear an
    optional key.

    Raises:
        ConfigError: *key* is not a config field, or *value* fails validation.
    """
    if key not in CatalogConfig.model_fields:
        known = ", ".join(sorted(CatalogConfig.model_fields))
        raise ConfigError(f"Unknown config key '{key}'. Known keys: {known}")

    data = load_config().model_dump(mode="json")
    data[key] = None if value.lower() in ("", "none", "null") else value
    try:
        config = CatalogConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid value for '{key}': {exc}") from exc
    save_config(config)
    return config


# --- Precedence ---


def _override(cli_value: Optional[str], env_var: str) -> Optional[str]:
    if cli_value is not None:
        return cli_value
    return os.environ.get(env_var) or None


def resolve_config(
    cli_base_url: Optional[str] = None,
    cli_cache_file: Optional[str] = None,
) -> CatalogConfig:
    """Return the effective configuration for this invocation.

    ``base_url`` and ``cache_file`` come from the first source that sets
    them: the CLI flag, then ``POKECATALOG_BASE_URL`` /
    ``POKECATALOG_CACHE_FILE`` (empty values are ignored), then the config
    file, then the defaults. Every other key comes from the config file.
    """
    config = load_config()

    base_url = _override(cli_base_url, ENV_BASE_URL)
    if base_url is not None:
        config.base_url = base_url

    cache_file = _override(cli_cache_file, ENV_CACHE_FILE)
    if cache_file is not None:
        config.cache_file = cache_file

    return config


def resolve_cache_path(config: CatalogConfig) -> Path:
    """Return the file backing the page store for *config*.

    An explicit ``cache_file`` wins; otherwise ``pokecache.json`` in
    :func:`get_cache_dir`.
    """
    if config.cache_file:
        return Path(config.cache_file).expanduser()
    return get_cache_dir() / CACHE_FILENAME
