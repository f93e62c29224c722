"""Schema data models and the typed value parsers behind structured entries."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import Any, Iterator, Optional, Union

from .errors import SchemaParseError

JsonValue = Union[str, int, float, list]


class SchemaCount(Enum):
    """Whether a field holds one value or a comma-separated list."""
    ONE = "One"
    MANY = "Many"


class SchemaDataType(Enum):
    """Type of a single field value."""
    STRING = "String"
    NUMBER = "Number"
    DATE = "Date"
    DATETIME = "DateTime"

    @classmethod
    def from_str(cls, raw: str) -> SchemaDataType:
        """Parse a user-typed type name (``string``, ``number``, ``date``, ``datetime``)."""
        lowered = raw.strip().lower()
        for data_type in cls:
            if data_type.value.lower() == lowered:
                return data_type
        raise ValueError(f"unknown data type: {raw!r}")

    @property
    def label(self) -> str:
        return self.value.lower()


# ========== Value grammars ==========

NUMBER_PATTERN = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
INTEGER_PATTERN = re.compile(r"[+-]?\d+")

# (shape, strptime format); the shape keeps strptime from accepting "2021-4-5"
DATE_FORMATS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"\d{4}-\d{2}-\d{2}"), "%Y-%m-%d"),
    (re.compile(r"\d{4}/\d{2}/\d{2}"), "%Y/%m/%d"),
]

DATETIME_FORMATS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}"), "%Y-%m-%d %H:%M"),
    (re.compile(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}"), "%Y-%m-%d %H:%M:%S"),
    (re.compile(r"\d{4}/\d{2}/\d{2} \d{2}:\d{2}"), "%Y/%m/%d %H:%M"),
    (re.compile(r"\d{4}/\d{2}/\d{2} \d{2}:\d{2}:\d{2}"), "%Y/%m/%d %H:%M:%S"),
]

RFC3339_PATTERN = re.compile(
    r"\d{4}-\d{2}-\d{2}[Tt ]\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:[Zz]|[+-]\d{2}:\d{2})"
)


def _matches_format(value: str, formats: list[tuple[re.Pattern, str]]) -> bool:
    for shape, fmt in formats:
        if not shape.fullmatch(value):
            continue
        try:
            datetime.strptime(value, fmt)
        except ValueError:
            continue
        return True
    return False


def is_rfc2822(value: str) -> bool:
    try:
        return parsedate_to_datetime(value) is not None
    except (TypeError, ValueError, IndexError, OverflowError):
        return False


def is_rfc3339(value: str) -> bool:
    if not RFC3339_PATTERN.fullmatch(value):
        return False
    normalized = value[:10] + "T" + value[11:]
    if normalized[-1] in "Zz":
        normalized = normalized[:-1] + "+00:00"
    # fromisoformat only takes 3 or 6 fractional digits before 3.11
    normalized = re.sub(
        r"\.(\d+)",
        lambda m: "." + (m.group(1) + "000000")[:6],
        normalized,
    )
    try:
        datetime.fromisoformat(normalized)
    except ValueError:
        return False
    return True


def parse_number(value: str) -> Optional[Union[int, float]]:
    if INTEGER_PATTERN.fullmatch(value):
        try:
            return int(value)
        except ValueError:
            # past the interpreter's int string length limit
            return None
    if not NUMBER_PATTERN.fullmatch(value):
        return None
    number = float(value)
    if not math.isfinite(number):
        return None
    return number


def parse_date(value: str) -> Optional[str]:
    return value if _matches_format(value, DATE_FORMATS) else None


def parse_datetime(value: str) -> Optional[str]:
    """Accept a date, an RFC 2822 or RFC 3339 timestamp, or ``YYYY-MM-DD HH:MM[:SS]``."""
    if (
        _matches_format(value, DATE_FORMATS)
        or is_rfc2822(value)
        or is_rfc3339(value)
        or _matches_format(value, DATETIME_FORMATS)
    ):
        return value
    return None


def parse_single(data_type: SchemaDataType, value: str) -> Optional[Union[str, int, float]]:
    """Parse one trimmed token; ``None`` means the token is invalid."""
    if not value:
        return None
    if data_type is SchemaDataType.STRING:
        return value
    if data_type is SchemaDataType.NUMBER:
        return parse_number(value)
    if data_type is SchemaDataType.DATE:
        return parse_date(value)
    return parse_datetime(value)


# ========== Schema ==========

@dataclass(frozen=True)
class SchemaType:
    """Count and data type of one schema field."""
    count: SchemaCount
    data_type: SchemaDataType

    def __str__(self) -> str:
        if self.count is SchemaCount.MANY:
            return f"array of {self.data_type.label}s"
        return self.data_type.label

    def parse(self, raw: str, allow_empty_arrays: bool = True) -> Optional[JsonValue]:
        """Parse raw user input into a JSON-compatible value.

        Args:
            raw: Text as typed by the user
            allow_empty_arrays: Whether empty input for a ``Many`` field is ``[]``

        Returns:
            The parsed value, or None when the input is invalid
        """
        text = raw.strip()

        if self.count is SchemaCount.ONE:
            return parse_single(self.data_type, text)

        if not text:
            return [] if allow_empty_arrays else None

        values = []
        for token in text.split(","):
            value = parse_single(self.data_type, token.strip())
            if value is None:
                return None
            values.append(value)
        return values

    def to_dict(self) -> dict[str, str]:
        return {"count": self.count.value, "data_type": self.data_type.value}

    @classmethod
    def from_dict(cls, data: Any) -> SchemaType:
        if not isinstance(data, dict):
            raise SchemaParseError(f"field type must be an object, got {type(data).__name__}")
        try:
            return cls(
                count=SchemaCount(data["count"]),
                data_type=SchemaDataType(data["data_type"]),
            )
        except KeyError as e:
            raise SchemaParseError(f"field type is missing {e}") from None
        except ValueError as e:
            raise SchemaParseError(str(e)) from None


@dataclass
class Schema:
    """Named collection of typed fields.

    Field order is kept for prompting; equality only compares the mapping.
    """
    fields: dict[str, SchemaType] = field(default_factory=dict)

    def __iter__(self) -> Iterator[tuple[str, SchemaType]]:
        return iter(self.fields.items())

    def __len__(self) -> int:
        return len(self.fields)

    def __contains__(self, name: object) -> bool:
        return name in self.fields

    def add_field(self, name: str, schema_type: SchemaType) -> None:
        """Add a field, rejecting duplicate names."""
        if name in self.fields:
            raise ValueError(f"field `{name}` already exists")
        self.fields[name] = schema_type

    def describe(self) -> str:
        return "\n".join(f"{name}: {schema_type}" for name, schema_type in self)

    def to_dict(self) -> dict[str, dict[str, str]]:
        return {name: schema_type.to_dict() for name, schema_type in self}

    @classmethod
    def from_dict(cls, data: Any) -> Schema:
        """Build a schema from its JSON form.

        Raises:
            SchemaParseError: If the data is not an object of valid field types
        """
        if not isinstance(data, dict):
            raise SchemaParseError(f"schema must be an object, got {type(data).__name__}")
        return cls(fields={
            str(name): SchemaType.from_dict(value) for name, value in data.items()
        })
