"""CodeMap CLI: keep a JSON codebase map in sync with the source tree."""

__version__ = "0.3.0"
