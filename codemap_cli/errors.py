"""Exceptions raised by the codebase map tooling."""

from __future__ import annotations


class CodemapError(RuntimeError):
    """Base class for failures that abort a run."""


class ManifestNotFoundError(CodemapError):
    def __init__(self, path) -> None:
        super().__init__(f"Codebase map not found: {path}")
        self.path = path


class SourceDirectoryNotFoundError(CodemapError):
    def __init__(self, path) -> None:
        super().__init__(f"Source directory not found: {path}")
        self.path = path


class AnalysisError(CodemapError):
    """The dependency-cruiser JSON report could not be produced."""


class BackupNotFoundError(CodemapError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Backup not found: {name}")
        self.name = name


class AmbiguousSyncPathError(CodemapError):
    def __init__(self, pattern: str, matches) -> None:
        super().__init__(f"Sync path '{pattern}' is ambiguous: {', '.join(matches)}")
        self.pattern = pattern
        self.matches = list(matches)
