"""Default paths and the resolved scanner configuration."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "codemap.toml"
MANIFEST_FILENAME = "codebase-map.json"
SOURCE_DIRNAME = "src"
STATE_DIRNAME = os.environ.get("CODEMAP_STATE_DIR", ".codemap")

REPORT_FILENAME = "dependency-report.json"
HTML_REPORT_FILENAME = "dependency-report.html"
SVG_GRAPH_FILENAME = "dependency-graph.svg"
BACKUP_PREFIX = "codebase-map-backup-"

# A project folder containing a "src" folder, below the manifest's root node.
DEFAULT_SYNC_PATH = "*/src"
DEFAULT_ANALYZER_COMMAND = ["npx", "dependency-cruiser", "--no-config"]


@dataclass
class ScannerConfig:
    project_root: Path
    manifest_path: Path
    source_dir: Path
    backup_dir: Path
    report_dir: Path
    sync_path: str = DEFAULT_SYNC_PATH
    discover_tests: bool = True
    compute_dependents: bool = False
    source_prefixes: List[str] = field(default_factory=list)
    analyzer_command: List[str] = field(default_factory=lambda: list(DEFAULT_ANALYZER_COMMAND))

    @property
    def report_path(self) -> Path:
        return self.report_dir / REPORT_FILENAME

    @property
    def html_report_path(self) -> Path:
        return self.report_dir / HTML_REPORT_FILENAME

    @property
    def svg_graph_path(self) -> Path:
        return self.report_dir / SVG_GRAPH_FILENAME

    @property
    def src_prefix(self) -> str:
        """Source directory as spelled by dependency-cruiser (relative to the root)."""
        try:
            return self.source_dir.relative_to(self.project_root).as_posix()
        except ValueError:
            return self.source_dir.as_posix()

    @property
    def sync_segments(self) -> List[str]:
        return [part for part in self.sync_path.split("/") if part]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "project_root": str(self.project_root),
            "manifest": str(self.manifest_path),
            "source_dir": str(self.source_dir),
            "backup_dir": str(self.backup_dir),
            "report_dir": str(self.report_dir),
            "sync_path": self.sync_path,
            "discover_tests": self.discover_tests,
            "compute_dependents": self.compute_dependents,
            "source_prefixes": list(self.source_prefixes),
            "analyzer_command": list(self.analyzer_command),
        }


def _resolve(root: Path, value: Optional[Any], default: str) -> Path:
    path = Path(value if value is not None else default).expanduser()
    if not path.is_absolute():
        path = root / path
    return path


def _flag(merged: Dict[str, Any], key: str, default: bool) -> bool:
    value = merged.get(key, default)
    if isinstance(value, bool):
        return value
    logger.warning("Ignoring non-boolean %s = %r; using %s", key, value, default)
    return default


def build_config(
    project_root: Optional[Path] = None,
    settings: Optional[Dict[str, Any]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> ScannerConfig:
    """Merge defaults, file settings and explicit overrides into a ScannerConfig.

    ``settings`` is the ``[scanner]`` table of the TOML file (plus an
    optional ``analyzer_command``); ``overrides`` holds values given on the
    command line. ``None`` values in ``overrides`` are ignored.
    """
    merged: Dict[str, Any] = dict(settings or {})
    merged.update({k: v for k, v in (overrides or {}).items() if v is not None})

    root = Path(project_root or Path.cwd()).expanduser().resolve()
    state_dir = Path(STATE_DIRNAME)

    return ScannerConfig(
        project_root=root,
        manifest_path=_resolve(root, merged.get("manifest"), MANIFEST_FILENAME),
        source_dir=_resolve(root, merged.get("source_dir"), SOURCE_DIRNAME),
        backup_dir=_resolve(root, merged.get("backup_dir"), str(state_dir / "backups")),
        report_dir=_resolve(root, merged.get("report_dir"), str(state_dir / "depcruise")),
        sync_path=str(merged.get("sync_path", DEFAULT_SYNC_PATH)),
        discover_tests=_flag(merged, "discover_tests", True),
        compute_dependents=_flag(merged, "compute_dependents", False),
        source_prefixes=[str(p) for p in merged.get("source_prefixes", [])],
        analyzer_command=[str(c) for c in merged.get("analyzer_command", DEFAULT_ANALYZER_COMMAND)],
    )
