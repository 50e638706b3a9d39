"""Data models for codebase map entries and reconciliation results."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

NPM = "npm"
LOCAL = "local"
CORE = "core"

UNKNOWN_SIZE = "TBD"


@dataclass
class Dependency:
    name: str
    type: str
    path: str
    dynamic: bool = False
    circular: bool = False
    valid: bool = True
    followable: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "path": self.path,
            "dynamic": self.dynamic,
            "circular": self.circular,
            "valid": self.valid,
            "followable": self.followable,
        }


@dataclass
class FileDetails:
    size: str = UNKNOWN_SIZE
    lines: int = 0
    language: str = "unknown"
    entry_point: bool = False
    bundled: bool = True
    tree_shakeable: bool = False
    side_effects: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "size": self.size,
            "lines": self.lines,
            "language": self.language,
            "entryPoint": self.entry_point,
            "bundled": self.bundled,
            "treeShakeable": self.tree_shakeable,
            "sideEffects": self.side_effects,
        }


@dataclass
class DependencyDetails:
    total: int = 0
    npm: int = 0
    local: int = 0
    core: int = 0
    dynamic: int = 0
    circular: int = 0
    unresolved: int = 0

    @classmethod
    def from_dependencies(cls, dependencies: List[Dependency]) -> "DependencyDetails":
        return cls(
            total=len(dependencies),
            npm=sum(1 for d in dependencies if d.type == NPM),
            local=sum(1 for d in dependencies if d.type == LOCAL),
            core=sum(1 for d in dependencies if d.type == CORE),
            dynamic=sum(1 for d in dependencies if d.dynamic),
            circular=sum(1 for d in dependencies if d.circular),
            unresolved=sum(1 for d in dependencies if not d.valid),
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "npm": self.npm,
            "local": self.local,
            "core": self.core,
            "dynamic": self.dynamic,
            "circular": self.circular,
            "unresolved": self.unresolved,
        }


@dataclass
class TestCoverage:
    test_files: List[str] = field(default_factory=list)

    __test__ = False  # not a pytest test class

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hasTests": bool(self.test_files),
            "testFiles": list(self.test_files),
            "testCount": len(self.test_files),
        }


@dataclass
class SyncStats:
    before: int = 0
    after: int = 0
    added: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)

    @property
    def delta(self) -> int:
        return self.after - self.before


@dataclass
class ReconcileResult:
    manifest: Dict[str, Any]
    sync: List[SyncStats]
    annotated: int


@dataclass
class RunSummary:
    backup_path: Path
    result: ReconcileResult
    total_files: int
    report_modules: int

    @property
    def added(self) -> List[str]:
        return [rel for stats in self.result.sync for rel in stats.added]

    @property
    def removed(self) -> List[str]:
        return [rel for stats in self.result.sync for rel in stats.removed]
