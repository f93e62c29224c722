"""entry - a quick note-taking and structured data entry tool."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import portalocker

from .config import EntryConfig, find_config_file, get_value, list_values, load_config, set_value, store_config
from .errors import EntryError
from .notes import NoteBook
from .prompts import build_schema, fill_entry, run_setup
from .store import SchemaStore

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="entry",
        description="a quick note-taking tool",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        help="Path to config file (default: $ENTRY_CONFIG or the user config directory)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log debug output to stderr",
    )

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")
    commands.required = True

    new = commands.add_parser("new", help="Create a new entry")
    new.add_argument("-t", "--time", default="now", help="now, tomorrow, or a time like 9:30pm")
    new.add_argument("entry_name", nargs="?", help="Entry bucket (default: default_note_name)")

    find = commands.add_parser("find", help="Find entries with the given text")
    find.add_argument("text", nargs="?", help="Text to search for")
    find.add_argument("entry_name", nargs="?", help="Only search this entry bucket")

    commands.add_parser("setup", help="Configure your default entry rules")

    config = commands.add_parser("config", help="Get or set configuration values")
    config_commands = config.add_subparsers(dest="config_command", metavar="ACTION")
    config_commands.required = True
    config_get = config_commands.add_parser("get", help="Print a config value")
    config_get.add_argument("key")
    config_set = config_commands.add_parser("set", help="Set a config value")
    config_set.add_argument("key")
    config_set.add_argument("value")
    config_commands.add_parser("list", help="Print all config values")

    schema = commands.add_parser("schema", help="Manage schemas")
    schema_commands = schema.add_subparsers(dest="schema_command", metavar="ACTION")
    schema_commands.required = True
    schema_commands.add_parser("new", help="Define a new schema interactively")
    schema_commands.add_parser("list", help="List schemas")
    schema_show = schema_commands.add_parser("show", help="Show a schema's fields")
    schema_show.add_argument("schema_name")
    schema_remove = schema_commands.add_parser("remove", help="Remove a schema")
    schema_remove.add_argument("schema_name")

    for_schema = commands.add_parser("for", help="Fill in an entry for a schema")
    for_schema.add_argument("schema_name")

    commands.add_parser("last", help="Print the last generated entry")

    return parser


# ========== Commands ==========

def cmd_new(args: argparse.Namespace, config: EntryConfig, config_path: Path) -> None:
    path = NoteBook(config).new_entry(time=args.time, entry_name=args.entry_name)
    logger.debug("Edited %s", path)


def cmd_find(args: argparse.Namespace, config: EntryConfig, config_path: Path) -> None:
    for path in NoteBook(config).find(text=args.text, entry_name=args.entry_name):
        print(path)


def cmd_setup(args: argparse.Namespace, config: EntryConfig, config_path: Path) -> None:
    config = run_setup(config)
    store_config(config, config_path)
    print(f"Saved config to {config_path}")


def cmd_config(args: argparse.Namespace, config: EntryConfig, config_path: Path) -> None:
    if args.config_command == "get":
        print(get_value(config, args.key))
    elif args.config_command == "set":
        config = set_value(config, args.key, args.value)
        store_config(config, config_path)
    else:
        for key, value in list_values(config):
            print(f"{key}={value}")


def cmd_schema(args: argparse.Namespace, config: EntryConfig, config_path: Path) -> None:
    store = SchemaStore.from_config(config)

    if args.schema_command == "new":
        name, schema = build_schema()
        if len(schema) == 0:
            print("Schema is empty, not saving.")
            return
        print("Saving schema...")
        store.save(schema, name)
    elif args.schema_command == "list":
        for name in store.list():
            print(name)
    elif args.schema_command == "show":
        print(store.load(args.schema_name).describe())
    else:
        store.remove(args.schema_name)
        print(f"Successfully removed schema `{args.schema_name}`")


def cmd_for(args: argparse.Namespace, config: EntryConfig, config_path: Path) -> None:
    store = SchemaStore.from_config(config)
    schema = store.load(args.schema_name)
    record = fill_entry(schema, allow_empty_arrays=config.allow_empty_arrays)
    print(json.dumps(record))
    store.save_cached(record)


def cmd_last(args: argparse.Namespace, config: EntryConfig, config_path: Path) -> None:
    print(SchemaStore.from_config(config).load_cached())


COMMANDS = {
    "new": cmd_new,
    "find": cmd_find,
    "setup": cmd_setup,
    "config": cmd_config,
    "schema": cmd_schema,
    "for": cmd_for,
    "last": cmd_last,
}


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point.

    Returns:
        Process exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    config_path = args.config.expanduser() if args.config else find_config_file()

    try:
        config = load_config(config_path)
        config.get_schema_path().mkdir(parents=True, exist_ok=True)
        COMMANDS[args.command](args, config, config_path)
    except (EntryError, OSError, portalocker.LockException) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except (EOFError, KeyboardInterrupt):
        print("error: input aborted", file=sys.stderr)
        return 1

    return 0


def run() -> None:
    """Console script wrapper."""
    sys.exit(main())


if __name__ == "__main__":  # pragma: no cover
    run()
