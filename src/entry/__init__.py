"""entry - a quick note-taking and structured data entry tool."""

__version__ = "0.3.0"
