"""Shared pytest fixtures for entry tests."""

import tempfile
from pathlib import Path

import pytest

from entry.config import EntryConfig
from entry.models import Schema, SchemaCount, SchemaDataType, SchemaType
from entry.store import SchemaStore


@pytest.fixture
def temp_home():
    """Create a temporary directory standing in for the user's files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config(temp_home):
    """Create a test configuration rooted in the temp directory."""
    return EntryConfig(
        note_directory=str(temp_home / "notes"),
        data_directory=str(temp_home / "data"),
    )


@pytest.fixture
def config_path(temp_home):
    """Location of a (not yet written) TOML config file."""
    return temp_home / "config" / "entry.toml"


@pytest.fixture
def store(config):
    """Create a schema store for the test configuration."""
    return SchemaStore.from_config(config)


@pytest.fixture
def workout_schema():
    """A schema covering every data type and both counts."""
    schema = Schema()
    schema.add_field("exercise", SchemaType(SchemaCount.ONE, SchemaDataType.STRING))
    schema.add_field("reps", SchemaType(SchemaCount.MANY, SchemaDataType.NUMBER))
    schema.add_field("day", SchemaType(SchemaCount.ONE, SchemaDataType.DATE))
    schema.add_field("started", SchemaType(SchemaCount.ONE, SchemaDataType.DATETIME))
    return schema


class Answers:
    """Scripted ``read_line`` that also records everything written."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.output = []

    def read(self):
        if not self.answers:
            raise EOFError
        return self.answers.pop(0)

    def write(self, text):
        self.output.append(text)


@pytest.fixture
def answers():
    """Factory for scripted prompt answers."""
    return Answers
