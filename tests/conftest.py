"""Pytest configuration and fixtures for CodeMap CLI tests."""

import json
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Dict, Generator, List, Optional

import pytest

from codemap_cli.config import ScannerConfig, build_config


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def project(temp_dir: Path) -> Path:
    """An empty project root with a src/ folder."""
    root = temp_dir / "webapp"
    (root / "src").mkdir(parents=True)
    return root


@pytest.fixture
def write_files(project: Path) -> Callable[[Dict[str, str]], None]:
    """Write files relative to the project root."""

    def _write(files: Dict[str, str]) -> None:
        for rel, content in files.items():
            path = project / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")

    return _write


@pytest.fixture
def make_manifest() -> Callable[..., dict]:
    """Build a codebase map with a webapp/src node listing the given files."""

    def _make(names: List[str], subdirectories: Optional[List[dict]] = None) -> dict:
        src = {
            "directory": "src",
            "files": [{"name": n, "description": f"Handwritten notes for {n}"} for n in names],
        }
        if subdirectories is not None:
            src["subdirectories"] = subdirectories
        return {
            "directory": "repo",
            "subdirectories": [{"directory": "webapp", "subdirectories": [src]}],
        }

    return _make


@pytest.fixture
def src_node() -> Callable[[dict], dict]:
    """Return the webapp/src node of a manifest built by make_manifest."""

    def _find(manifest: dict) -> dict:
        return manifest["subdirectories"][0]["subdirectories"][0]

    return _find


@pytest.fixture
def scanner_config(project: Path) -> ScannerConfig:
    """Config for the temp project with test discovery on."""
    return build_config(project)


@pytest.fixture
def sample_report() -> dict:
    """dependency-cruiser output: a.js imports react and ./b.js."""
    return {
        "modules": [
            {
                "source": "src/a.js",
                "dependencies": [
                    {
                        "module": "react",
                        "dependencyTypes": ["npm"],
                        "resolved": "node_modules/react/index.js",
                        "dynamic": False,
                        "circular": False,
                        "valid": True,
                        "followable": True,
                    },
                    {
                        "module": "./b.js",
                        "dependencyTypes": ["local"],
                        "resolved": "src/b.js",
                        "dynamic": False,
                        "circular": False,
                        "valid": True,
                        "followable": True,
                    },
                ],
            },
            {"source": "src/b.js", "dependencies": []},
        ]
    }


@pytest.fixture
def manifest_file(project: Path) -> Callable[[dict], Path]:
    """Persist a manifest as codebase-map.json in the project root."""

    def _write(manifest: dict) -> Path:
        path = project / "codebase-map.json"
        path.write_text(json.dumps(manifest, indent=2), encoding="utf-8")
        return path

    return _write
