"""Project-level TOML configuration for CodeMap CLI."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import toml

from .config import CONFIG_FILENAME

logger = logging.getLogger(__name__)


def config_file_for(project_root: Path, explicit: Optional[Path] = None) -> Path:
    if explicit is not None:
        return explicit
    return project_root / CONFIG_FILENAME


def load_full_config(config_file: Path) -> Dict[str, Any]:
    """Load the entire TOML config (all sections).

    A missing file yields an empty dict; an unreadable or malformed one is
    reported and also treated as empty.
    """
    if not config_file.exists():
        return {}
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", config_file, exc)
        return {}


def load_scanner_settings(config_file: Path) -> Dict[str, Any]:
    """Flatten ``[scanner]`` and ``[analyzer]`` into the keys build_config expects.

    Example file::

        [scanner]
        manifest = "codebase-map.json"
        source_dir = "src"
        sync_path = "*/src"
        discover_tests = true

        [analyzer]
        command = ["npx", "dependency-cruiser", "--no-config"]
    """
    full = load_full_config(config_file)
    settings: Dict[str, Any] = dict(full.get("scanner", {}))
    command = full.get("analyzer", {}).get("command")
    if command:
        settings["analyzer_command"] = list(command)
    return settings


def save_scanner_settings(config_file: Path, settings: Dict[str, Any]) -> None:
    """Write the ``[scanner]`` section, preserving other sections in the file."""
    config = load_full_config(config_file)
    scanner = dict(settings)
    command = scanner.pop("analyzer_command", None)
    config["scanner"] = scanner
    if command:
        config.setdefault("analyzer", {})["command"] = list(command)
    config_file.parent.mkdir(parents=True, exist_ok=True)
    with open(config_file, "w", encoding="utf-8") as f:
        toml.dump(config, f)
