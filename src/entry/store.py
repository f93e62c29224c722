"""On-disk storage for schemas and the last generated structured entry."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import portalocker

from .config import EntryConfig
from .errors import (
    CachedEntryMissing,
    SchemaLoadError,
    SchemaParseError,
    SchemaRemoveError,
    SchemaSaveError,
)
from .locking import remove_lock_file, write_text
from .models import Schema

logger = logging.getLogger(__name__)

SCHEMA_SUFFIX = ".json"


def validate_schema_name(name: str) -> str:
    """Reject names that would escape the schema directory.

    Raises:
        ValueError: If the name is empty, hidden, or contains a path separator
    """
    if not name or not name.strip():
        raise ValueError("schema name must not be empty")
    if "/" in name or "\\" in name:
        raise ValueError(f"schema name must not contain path separators: {name!r}")
    if name.startswith("."):
        raise ValueError(f"schema name must not start with a dot: {name!r}")
    return name


class SchemaStore:
    """Schemas as ``<directory>/<name>.json`` plus the cached entry file."""

    def __init__(self, directory: Path, cache_file: Path):
        self.directory = Path(directory)
        self.cache_file = Path(cache_file)
        self.directory.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_config(cls, config: EntryConfig) -> SchemaStore:
        return cls(config.get_schema_path(), config.get_cache_file())

    def path_for(self, name: str) -> Path:
        return self.directory / f"{name}{SCHEMA_SUFFIX}"

    def exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    def save(self, schema: Schema, name: str) -> Path:
        """Write ``schema`` as pretty JSON, replacing any schema of the same name.

        Raises:
            SchemaSaveError: If the name is invalid or the file cannot be written
        """
        try:
            validate_schema_name(name)
        except ValueError as e:
            raise SchemaSaveError(str(e)) from None

        path = self.path_for(name)
        text = json.dumps(schema.to_dict(), indent=2) + "\n"
        try:
            write_text(path, text)
        except (OSError, portalocker.LockException) as e:
            raise SchemaSaveError(f"failed to save schema `{name}`: {e}") from e

        logger.debug("Saved schema %s to %s", name, path)
        return path

    def load(self, name: str) -> Schema:
        """Read a schema back.

        Raises:
            SchemaLoadError: If there is no schema with that name
            SchemaParseError: If the file is not a valid schema
        """
        try:
            validate_schema_name(name)
        except ValueError as e:
            raise SchemaLoadError(str(e)) from None

        path = self.path_for(name)
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise SchemaLoadError(f"schema `{name}` does not exist") from None
        except OSError as e:
            raise SchemaLoadError(f"failed to read schema `{name}`: {e}") from e

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise SchemaParseError(f"schema `{name}` is not valid JSON: {e}") from None

        try:
            return Schema.from_dict(data)
        except SchemaParseError as e:
            raise SchemaParseError(f"schema `{name}` is malformed: {e}") from None

    def list(self) -> list[str]:
        """Names of all stored schemas, sorted."""
        return sorted(p.stem for p in self.directory.glob(f"*{SCHEMA_SUFFIX}") if p.is_file())

    def remove(self, name: str) -> None:
        """Delete a schema.

        Raises:
            SchemaRemoveError: If the schema does not exist or cannot be deleted
        """
        try:
            validate_schema_name(name)
        except ValueError as e:
            raise SchemaRemoveError(str(e)) from None

        path = self.path_for(name)
        try:
            path.unlink()
        except FileNotFoundError:
            raise SchemaRemoveError(f"schema `{name}` does not exist") from None
        except OSError as e:
            raise SchemaRemoveError(f"failed to remove schema `{name}`: {e}") from e

        remove_lock_file(path)
        logger.debug("Removed schema %s", name)

    # ========== Cached entry ==========

    def save_cached(self, record: dict[str, Any]) -> str:
        """Store ``record`` as the most recent entry and return its JSON text."""
        text = json.dumps(record)
        write_text(self.cache_file, text)
        return text

    def load_cached(self) -> str:
        """JSON text of the most recent entry.

        Raises:
            CachedEntryMissing: If no entry has been generated yet
        """
        try:
            return self.cache_file.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise CachedEntryMissing("no entry has been generated yet") from None
