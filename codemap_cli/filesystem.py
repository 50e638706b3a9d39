"""Filesystem inspection: listing, file metadata, languages and test discovery."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import List, Optional, Tuple

from .models import UNKNOWN_SIZE, FileDetails

logger = logging.getLogger(__name__)

LANGUAGES = {
    ".jsx": "jsx",
    ".js": "js",
    ".mjs": "js",
    ".cjs": "js",
    ".tsx": "tsx",
    ".ts": "ts",
    ".css": "css",
    ".html": "html",
    ".json": "json",
    ".md": "md",
    ".txt": "txt",
    ".svg": "svg",
    ".png": "png",
    ".jpg": "jpg",
    ".jpeg": "jpg",
    ".gif": "gif",
}

TREE_SHAKEABLE_LANGUAGES = {"js", "jsx", "ts", "tsx"}

SCRIPT_EXTENSION_RE = re.compile(r"\.(js|jsx|ts|tsx)$")
TEST_EXTENSIONS = ("js", "jsx", "ts", "tsx")
TEST_DIRS = ("test", "tests", "__tests__")


def list_files(root: Path) -> List[str]:
    """Return every file below ``root`` as a sorted POSIX path relative to it.

    Directories that cannot be read are logged and contribute nothing.
    """
    found: List[str] = []
    _walk(root, "", found)
    return sorted(found)


def _walk(directory: Path, prefix: str, found: List[str]) -> None:
    try:
        entries = sorted(os.scandir(directory), key=lambda e: e.name)
    except OSError as exc:
        logger.warning("Could not read directory %s: %s", directory, exc)
        return

    for entry in entries:
        rel = f"{prefix}{entry.name}"
        try:
            is_dir = entry.is_dir()
        except OSError as exc:
            logger.warning("Could not stat %s: %s", entry.path, exc)
            continue
        if is_dir:
            _walk(Path(entry.path), f"{rel}/", found)
        else:
            found.append(rel)


def detect_language(file_name: str) -> str:
    suffix = Path(file_name).suffix.lower()
    return LANGUAGES.get(suffix, "unknown")


def file_info(path: Path) -> Tuple[str, int]:
    """Size formatted as kilobytes with one decimal, and newline-delimited line count."""
    try:
        size = path.stat().st_size
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        logger.warning("Could not read file info for %s: %s", path, exc)
        return UNKNOWN_SIZE, 0
    return f"{size / 1024:.1f}K", text.count("\n") + 1


def file_details(path: Optional[Path], file_name: str) -> FileDetails:
    language = detect_language(file_name)
    if path is None:
        size, lines = UNKNOWN_SIZE, 0
    else:
        size, lines = file_info(path)
    return FileDetails(
        size=size,
        lines=lines,
        language=language,
        tree_shakeable=language in TREE_SHAKEABLE_LANGUAGES,
    )


def find_test_files(rel_path: str, project_root: Path, source_dir: Path) -> List[str]:
    """Find test files for a source file using common naming conventions.

    ``rel_path`` is the file's path relative to ``source_dir``. Returned paths
    are relative to ``project_root``, deduplicated, in discovery order.
    """
    base = SCRIPT_EXTENSION_RE.sub("", rel_path)

    patterns = [f"{base}.{kind}.{ext}" for kind in ("test", "spec") for ext in TEST_EXTENSIONS]
    patterns += [f"{folder}/{base}.{ext}" for folder in TEST_DIRS for ext in TEST_EXTENSIONS]

    search_roots = [source_dir, project_root] + [project_root / folder for folder in TEST_DIRS]

    found: List[str] = []
    for pattern in patterns:
        for search_root in search_roots:
            candidate = search_root / pattern
            if candidate.is_file():
                _add_relative(found, candidate, project_root)

    # Siblings in the source file's own directory, e.g. Button.test.jsx
    source_file = source_dir / rel_path
    sibling_dir = source_file.parent
    stem = Path(base).name
    if sibling_dir.is_dir():
        for item in sorted(os.listdir(sibling_dir)):
            if item.startswith(f"{stem}.") and (".test." in item or ".spec." in item):
                _add_relative(found, sibling_dir / item, project_root)

    return found


def _add_relative(found: List[str], path: Path, project_root: Path) -> None:
    rel = Path(os.path.relpath(path, project_root)).as_posix()
    if rel not in found:
        found.append(rel)
