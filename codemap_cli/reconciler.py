"""Bring a codebase map in line with the filesystem and dependency report.

Reconciliation runs in two phases over the manifest tree:

- **sync**: inside the directory node(s) selected by the sync-path
  predicate, drop entries whose file no longer exists and append entries for
  files that are not listed yet;
- **annotate**: every file entry in the whole tree gets fresh file details,
  dependencies, aggregate counts and test coverage.
"""

from __future__ import annotations

import copy
import logging
from datetime import date, datetime, timezone
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from .config import ScannerConfig
from .dependency_report import DependencyReport
from .errors import AmbiguousSyncPathError, SourceDirectoryNotFoundError
from .filesystem import file_details, find_test_files, list_files
from .models import DependencyDetails, ReconcileResult, SyncStats, TestCoverage

logger = logging.getLogger(__name__)

SyncPredicate = Callable[[Sequence[str]], bool]
Node = Dict[str, Any]

MODULE_SYSTEM = "es6"


def path_matcher(segments: Sequence[str]) -> SyncPredicate:
    """Predicate matching a directory chain segment by segment with fnmatch.

    The chain holds the ``directory`` names below the manifest's root node,
    so ``["*", "src"]`` selects a ``src`` folder inside any project folder.
    """
    patterns = list(segments)

    def matches(chain: Sequence[str]) -> bool:
        return len(chain) == len(patterns) and all(
            fnmatchcase(name, pattern) for name, pattern in zip(chain, patterns)
        )

    return matches


def placeholder_description(name: str) -> str:
    return f"Auto-generated entry for {name}"


def iter_entries(node: Node) -> Iterator[Node]:
    """Yield every file entry in the tree, depth first."""
    yield from node.get("files") or []
    for child in node.get("subdirectories") or []:
        yield from iter_entries(child)


class Reconciler:
    """Sync and annotate a manifest against one project on disk."""

    def __init__(
        self,
        config: ScannerConfig,
        report: Optional[DependencyReport] = None,
        sync_predicate: Optional[SyncPredicate] = None,
        today: Optional[date] = None,
    ) -> None:
        self.config = config
        self.report = report if report is not None else DependencyReport.empty()
        self.is_sync_target = sync_predicate or path_matcher(config.sync_segments)
        self.today = today or datetime.now(timezone.utc).date()

    def reconcile(self, manifest: Node) -> ReconcileResult:
        """Return a reconciled copy of ``manifest``; the input is left untouched."""
        if not self.config.source_dir.is_dir():
            raise SourceDirectoryNotFoundError(self.config.source_dir)

        updated = copy.deepcopy(manifest)
        stats = self.sync(updated)
        annotated = self.annotate(updated)
        return ReconcileResult(manifest=updated, sync=stats, annotated=annotated)

    # ------------------------------------------------------------------
    # Tree walking
    # ------------------------------------------------------------------

    def _walk(self, node: Node) -> Iterator[Tuple[Node, List[str], Optional[str]]]:
        """Yield ``(directory node, directory chain, source prefix)`` for the whole tree.

        The prefix is the node's path relative to the source directory
        (``""`` for a sync target, ``"components/"`` below it) or ``None``
        outside every synced subtree.
        """
        stack: List[Tuple[Node, List[str], Optional[str]]] = [(node, [], None)]
        while stack:
            current, chain, prefix = stack.pop()
            if prefix is None and self.is_sync_target(chain):
                prefix = ""
            yield current, chain, prefix
            children = current.get("subdirectories") or []
            for child in reversed(children):
                name = str(child.get("directory", ""))
                child_prefix = None if prefix is None else f"{prefix}{name}/"
                stack.append((child, chain + [name], child_prefix))

    def sync_target(self, manifest: Node) -> Optional[Node]:
        """The single directory node selected by the sync path, if any."""
        matches = [(node, chain) for node, chain, prefix in self._walk(manifest) if prefix == ""]
        if len(matches) > 1:
            raise AmbiguousSyncPathError(self.config.sync_path, ["/".join(chain) for _, chain in matches])
        return matches[0][0] if matches else None

    # ------------------------------------------------------------------
    # Sync phase
    # ------------------------------------------------------------------

    def sync(self, manifest: Node) -> List[SyncStats]:
        target = self.sync_target(manifest)
        if target is None:
            logger.warning(
                "No directory in the codebase map matches sync path '%s'", self.config.sync_path
            )
            return []

        actual = list_files(self.config.source_dir)
        logger.info("Found %d files in %s", len(actual), self.config.source_dir)
        return [self._sync_node(target, actual)]

    def _sync_node(self, target: Node, actual: List[str]) -> SyncStats:
        existing = set(actual)
        stats = SyncStats(before=sum(1 for _ in iter_entries(target)))
        seen: set = set()
        folders: Dict[str, Node] = {}

        def prune(node: Node, prefix: str) -> None:
            folders.setdefault(prefix, node)
            if node.get("files") is not None:
                kept = []
                for entry in node["files"]:
                    rel = prefix + str(entry.get("name", ""))
                    if rel in seen:
                        stats.removed.append(rel)
                        logger.info("Removed duplicate entry: %s", rel)
                    elif rel in existing:
                        seen.add(rel)
                        kept.append(entry)
                    else:
                        stats.removed.append(rel)
                        logger.info("Removed deleted file: %s", rel)
                node["files"] = kept
            for child in node.get("subdirectories") or []:
                prune(child, f"{prefix}{child.get('directory', '')}/")

        prune(target, "")

        for rel in actual:
            if rel in seen:
                continue
            parent, _, base = rel.rpartition("/")
            folder = folders.get(f"{parent}/" if parent else "")
            if folder is None:
                folder, name = target, rel
            else:
                name = base
            folder.setdefault("files", []).append(self._new_entry(name, rel))
            seen.add(rel)
            stats.added.append(rel)
            logger.info("Added new file: %s", rel)

        stats.after = sum(1 for _ in iter_entries(target))
        return stats

    def _new_entry(self, name: str, rel: str) -> Node:
        return {
            "name": name,
            "description": placeholder_description(name),
            "lastUpdated": self.today.isoformat(),
            "dependencies": [],
            "testCoverage": self._test_coverage(rel, {}),
            "dependents": [],
            "orphan": False,
            "valid": True,
            "moduleSystem": MODULE_SYSTEM,
            "fileDetails": file_details(self.config.source_dir / rel, name).to_dict(),
            "dependencyDetails": DependencyDetails().to_dict(),
        }

    # ------------------------------------------------------------------
    # Annotate phase
    # ------------------------------------------------------------------

    def annotate(self, manifest: Node) -> int:
        count = 0
        for node, _, prefix in self._walk(manifest):
            for entry in node.get("files") or []:
                self.annotate_entry(entry, prefix)
                count += 1
        return count

    def annotate_entry(self, entry: Node, prefix: Optional[str] = None) -> Node:
        """Recompute the derived fields of one entry in place."""
        name = str(entry.get("name", ""))
        rel = f"{prefix or ''}{name}"
        candidates = self.report_candidates(rel)

        dependencies = self.report.dependencies_for(candidates, rel)
        if self.config.compute_dependents:
            dependents = self.report.dependents_for(candidates, rel)
            orphan = not dependents
        else:
            dependents, orphan = [], False

        entry.update(
            {
                "dependencies": [d.to_dict() for d in dependencies],
                "testCoverage": self._test_coverage(rel, entry),
                "dependents": dependents,
                "orphan": orphan,
                "valid": True,
                "moduleSystem": MODULE_SYSTEM,
                "fileDetails": file_details(self.locate(name, prefix), name).to_dict(),
                "dependencyDetails": DependencyDetails.from_dependencies(dependencies).to_dict(),
            }
        )
        return entry

    def locate(self, name: str, prefix: Optional[str] = None) -> Optional[Path]:
        source_dir, root = self.config.source_dir, self.config.project_root
        candidates = [source_dir / name, root / name]
        if prefix:
            candidates.insert(0, source_dir / f"{prefix}{name}")
        for candidate in candidates:
            if candidate.is_file():
                return candidate
        logger.warning("File not found on disk: %s", name)
        return None

    def report_candidates(self, rel: str) -> List[str]:
        """Spellings under which dependency-cruiser may have recorded a file."""
        src_prefix = self.config.src_prefix
        root = self.config.project_root.as_posix()
        candidates = [f"{src_prefix}/{rel}", f"{root}/{src_prefix}/{rel}"]
        candidates += [f"{p.rstrip('/')}/{rel}" for p in self.config.source_prefixes]
        candidates.append(rel)
        return candidates

    def _test_coverage(self, rel: str, entry: Node) -> Dict[str, Any]:
        if not self.config.discover_tests:
            return entry.get("testCoverage") or TestCoverage().to_dict()
        test_files = find_test_files(rel, self.config.project_root, self.config.source_dir)
        return TestCoverage(test_files).to_dict()
