"""Configuration loading and storing for entry.

The config is a flat record persisted as TOML (or JSON, chosen by the file
suffix) in the user's config directory:

1. ``$ENTRY_CONFIG`` if set
2. ``$XDG_CONFIG_HOME/entry/entry.toml``
3. ``~/.config/entry/entry.toml``

Keys are accessed through :data:`CONFIG_FIELDS`, a closed table mapping each
field name to its parser, so unknown keys are rejected at the boundary.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

import portalocker
import tomli_w

from .errors import ConfigInvalidKey, ConfigInvalidValue, ConfigLoadError
from .locking import write_text

# Python 3.11+ has tomllib in stdlib; fall back to tomli for older versions
try:
    import tomllib  # Python 3.11+
except ImportError:  # pragma: no cover
    import tomli as tomllib  # Python <3.11

logger = logging.getLogger(__name__)

APP_NAME = "entry"
CONFIG_FILE_NAME = "entry.toml"
FALLBACK_DATA_DIR = "~/entry_data"
MIN_BUCKET_SIZE = 1
MAX_BUCKET_SIZE = 60


def get_config_dir() -> Path:
    """Platform config directory for entry (XDG layout)."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg).expanduser() if xdg else Path.home() / ".config"
    return base / APP_NAME


def default_data_directory() -> str:
    """Default to the config directory for all data, falling back to ``~/entry_data``."""
    try:
        return str(get_config_dir())
    except RuntimeError:
        # Path.home() fails when no home directory can be determined
        return FALLBACK_DATA_DIR


@dataclass
class EntryConfig:
    """Settings for notes and structured entries."""

    create_file: bool = False
    default_note_name: str = "default"
    minute_bucket_size: int = 15
    note_directory: str = "~/entries"
    data_directory: str = field(default_factory=default_data_directory)

    # Many-valued fields: empty input gives [] when True, a parse failure when False
    allow_empty_arrays: bool = True

    def get_note_path(self) -> Path:
        return Path(self.note_directory).expanduser()

    def get_data_path(self) -> Path:
        return Path(self.data_directory).expanduser()

    def get_schema_path(self) -> Path:
        return self.get_data_path() / "schema"

    def get_cache_file(self) -> Path:
        return self.get_data_path() / "cached.json"

    def to_dict(self) -> dict[str, Any]:
        """Convert config to a plain dict for serialization."""
        return dataclasses.asdict(self)


# ========== Field table ==========

def parse_bool(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in {"true", "yes", "y", "1", "on"}:
        return True
    if lowered in {"false", "no", "n", "0", "off"}:
        return False
    raise ValueError(f"expected true or false, got {raw!r}")


def parse_bucket_size(raw: str) -> int:
    value = int(raw.strip())
    if not MIN_BUCKET_SIZE <= value <= MAX_BUCKET_SIZE:
        raise ValueError(
            f"must be between {MIN_BUCKET_SIZE} and {MAX_BUCKET_SIZE}, got {value}"
        )
    return value


def parse_name(raw: str) -> str:
    value = raw.strip()
    if not value:
        raise ValueError("must not be empty")
    if "/" in value or "\\" in value:
        raise ValueError("must not contain path separators")
    return value


def parse_directory(raw: str) -> str:
    value = raw.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


@dataclass(frozen=True)
class ConfigField:
    """A settable config key."""
    name: str
    parse: Callable[[str], Any]
    description: str

    def format(self, value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)


CONFIG_FIELDS: dict[str, ConfigField] = {
    "create_file": ConfigField(
        "create_file", parse_bool,
        "Create the note file before opening the editor",
    ),
    "default_note_name": ConfigField(
        "default_note_name", parse_name,
        "Entry name used when `new` is given none",
    ),
    "minute_bucket_size": ConfigField(
        "minute_bucket_size", parse_bucket_size,
        "Minute granularity note times are floored to (1-60)",
    ),
    "note_directory": ConfigField(
        "note_directory", parse_directory,
        "Directory holding journal notes",
    ),
    "data_directory": ConfigField(
        "data_directory", parse_directory,
        "Directory holding schemas and the cached entry",
    ),
    "allow_empty_arrays": ConfigField(
        "allow_empty_arrays", parse_bool,
        "Accept empty input for array fields as an empty array",
    ),
}


def get_field(key: str) -> ConfigField:
    """Look up a config field, rejecting unknown keys."""
    try:
        return CONFIG_FIELDS[key]
    except KeyError:
        raise ConfigInvalidKey(
            f"invalid key `{key}`, expected one of: {', '.join(CONFIG_FIELDS)}"
        ) from None


def get_value(config: EntryConfig, key: str) -> str:
    """Return the display form of a config value."""
    cfg_field = get_field(key)
    return cfg_field.format(getattr(config, cfg_field.name))


def set_value(config: EntryConfig, key: str, raw: str) -> EntryConfig:
    """Return a copy of ``config`` with ``key`` set from its text form.

    Raises:
        ConfigInvalidKey: If ``key`` is not a config field
        ConfigInvalidValue: If ``raw`` does not parse for that field
    """
    cfg_field = get_field(key)
    try:
        value = cfg_field.parse(raw)
    except ValueError as e:
        raise ConfigInvalidValue(f"invalid value for `{key}`: {e}") from None
    return dataclasses.replace(config, **{cfg_field.name: value})


def list_values(config: EntryConfig) -> list[tuple[str, str]]:
    """All ``(key, value)`` pairs in table order."""
    return [(key, get_value(config, key)) for key in CONFIG_FIELDS]


# ========== Load / store ==========

def load_toml_config(path: Path) -> dict[str, Any]:
    """Load configuration from TOML file."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def load_json_config(path: Path) -> dict[str, Any]:
    """Load configuration from JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def dict_to_config(data: dict[str, Any]) -> EntryConfig:
    """Convert a dictionary to EntryConfig.

    Values go through the same parsers as ``config set`` so a hand-edited file
    cannot smuggle in an out-of-range bucket size. Unknown keys are ignored.
    """
    config = EntryConfig()

    for key, value in data.items():
        if key not in CONFIG_FIELDS:
            logger.warning("Ignoring unknown config key: %s", key)
            continue
        raw = CONFIG_FIELDS[key].format(value)
        config = set_value(config, key, raw)

    return config


def find_config_file() -> Path:
    """Path of the user config file (which may not exist yet)."""
    custom = os.environ.get("ENTRY_CONFIG")
    if custom:
        return Path(custom).expanduser()
    return get_config_dir() / CONFIG_FILE_NAME


def load_config(config_path: Optional[Path] = None) -> EntryConfig:
    """Load the user configuration.

    Args:
        config_path: Optional explicit path to config file

    Returns:
        EntryConfig instance (defaults when the file does not exist)

    Raises:
        ConfigLoadError: If the file cannot be read or parsed
        ConfigInvalidValue: If a stored value is out of range
    """
    if config_path is None:
        config_path = find_config_file()

    if not config_path.exists():
        logger.debug("No config at %s, using defaults", config_path)
        return EntryConfig()

    suffix = config_path.suffix.lower()

    try:
        if suffix == ".json":
            config_dict = load_json_config(config_path)
        else:
            # Any other suffix is TOML, the format store_config writes for it
            config_dict = load_toml_config(config_path)
    except (OSError, ValueError) as e:
        # JSONDecodeError and TOMLDecodeError are both ValueErrors
        raise ConfigLoadError(f"failed to load config {config_path}: {e}") from e

    if not isinstance(config_dict, dict):
        raise ConfigLoadError(f"config {config_path} must contain a table of settings")

    logger.debug("Loaded config from %s", config_path)
    return dict_to_config(config_dict)


def store_config(config: EntryConfig, config_path: Optional[Path] = None) -> Path:
    """Persist the configuration, replacing the whole file.

    Returns:
        The path written
    """
    if config_path is None:
        config_path = find_config_file()

    data = config.to_dict()
    if config_path.suffix.lower() == ".json":
        text = json.dumps(data, indent=2) + "\n"
    else:
        text = tomli_w.dumps(data)

    try:
        write_text(config_path, text)
    except (OSError, portalocker.LockException) as e:
        raise ConfigLoadError(f"failed to save config {config_path}: {e}") from e

    return config_path
