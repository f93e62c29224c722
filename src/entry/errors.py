"""Exceptions raised by entry operations."""

from __future__ import annotations


class EntryError(Exception):
    """Base exception for entry operations."""
    pass


# ========== Config ==========

class ConfigError(EntryError):
    """Base exception for configuration problems."""
    pass


class ConfigInvalidKey(ConfigError):
    """Raised when a config key is not one of the known fields."""
    pass


class ConfigInvalidValue(ConfigError):
    """Raised when a config value cannot be parsed for its field."""
    pass


class ConfigLoadError(ConfigError):
    """Raised when the config file exists but cannot be read or parsed."""
    pass


# ========== Schema ==========

class SchemaError(EntryError):
    """Base exception for schema persistence."""
    pass


class SchemaLoadError(SchemaError):
    """Raised when a schema file does not exist."""
    pass


class SchemaParseError(SchemaError):
    """Raised when a schema file exists but is malformed."""
    pass


class SchemaSaveError(SchemaError):
    """Raised when a schema cannot be written."""
    pass


class SchemaRemoveError(SchemaError):
    """Raised when a schema cannot be removed."""
    pass


# ========== Everything else ==========

class TimeParseError(EntryError, ValueError):
    """Raised when a time string cannot be resolved to a timestamp."""
    pass


class EditorError(EntryError):
    """Raised when no editor is available or the editor fails."""
    pass


class CachedEntryMissing(EntryError):
    """Raised when there is no cached structured entry yet."""
    pass
