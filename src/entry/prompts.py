"""Interactive prompts for authoring schemas, filling entries and setup."""

from __future__ import annotations

from typing import Any, Callable

from .config import CONFIG_FIELDS, EntryConfig, get_value, set_value
from .errors import ConfigInvalidValue
from .models import Schema, SchemaCount, SchemaDataType, SchemaType

ReadLine = Callable[[], str]
Write = Callable[[str], None]

TYPE_CHOICES = ", ".join(t.label for t in SchemaDataType)


def read_line() -> str:
    return input().strip()


def ask(question: str, read: ReadLine, write: Write) -> str:
    write(question)
    return read().strip()


def ask_data_type(read: ReadLine, write: Write) -> SchemaDataType:
    write(f"Enter a type for the new field ({TYPE_CHOICES}):")
    while True:
        try:
            return SchemaDataType.from_str(read())
        except ValueError:
            write("Invalid data type received, try again.")


def build_schema(read: ReadLine = read_line, write: Write = print) -> tuple[str, Schema]:
    """Ask for a schema name and its fields until an empty field name is given.

    Returns:
        ``(name, schema)``; the schema may be empty
    """
    name = ""
    while not name:
        name = ask("Enter a name for the schema", read, write)

    schema = Schema()
    while True:
        field_name = ask("Enter a name for the new field (or nothing to finish up):", read, write)
        if not field_name:
            break
        if field_name in schema:
            write(f"Field `{field_name}` already exists, pick another name.")
            continue

        data_type = ask_data_type(read, write)
        is_array = ask("Is this an array? (y/n)", read, write).lower() == "y"
        count = SchemaCount.MANY if is_array else SchemaCount.ONE
        schema.add_field(field_name, SchemaType(count=count, data_type=data_type))

    return name, schema


def fill_entry(
    schema: Schema,
    allow_empty_arrays: bool = True,
    read: ReadLine = read_line,
    write: Write = print,
) -> dict[str, Any]:
    """Prompt for every field, re-asking until each value parses."""
    record: dict[str, Any] = {}
    for field_name, field_type in schema:
        write(f"Please provide the {field_name} ({field_type}):")
        while True:
            value = field_type.parse(read(), allow_empty_arrays=allow_empty_arrays)
            if value is not None:
                record[field_name] = value
                break
            write(f"Invalid value received, make sure it is a valid {field_type}.")
    return record


def run_setup(config: EntryConfig, read: ReadLine = read_line, write: Write = print) -> EntryConfig:
    """Walk through every setting; an empty answer keeps the current value."""
    for key, cfg_field in CONFIG_FIELDS.items():
        while True:
            answer = ask(f"{cfg_field.description} [{get_value(config, key)}]:", read, write)
            if not answer:
                break
            try:
                config = set_value(config, key, answer)
            except ConfigInvalidValue as e:
                write(str(e))
                continue
            break
    return config
