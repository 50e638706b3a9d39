"""Persistence for the codebase map: load, timestamped backups, atomic writes."""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import BACKUP_PREFIX
from .errors import BackupNotFoundError, ManifestNotFoundError

logger = logging.getLogger(__name__)


def backup_timestamp(now: Optional[datetime] = None) -> str:
    """UTC ISO-8601 timestamp with ':' and '.' replaced, safe for file names."""
    now = now or datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H-%M-%S-") + f"{now.microsecond // 1000:03d}Z"


def count_files(node: Dict[str, Any]) -> int:
    count = len(node.get("files") or [])
    for child in node.get("subdirectories") or []:
        count += count_files(child)
    return count


class ManifestStore:
    """Read and write one codebase map file and its backups."""

    def __init__(self, manifest_path: Path, backup_dir: Path) -> None:
        self.manifest_path = manifest_path
        self.backup_dir = backup_dir

    def exists(self) -> bool:
        return self.manifest_path.is_file()

    def require(self) -> None:
        if not self.exists():
            raise ManifestNotFoundError(self.manifest_path)

    def load(self) -> Dict[str, Any]:
        self.require()
        return json.loads(self.manifest_path.read_text(encoding="utf-8"))

    def save(self, manifest: Dict[str, Any]) -> None:
        """Write the manifest through a temporary file and an atomic rename."""
        payload = json.dumps(manifest, indent=2, ensure_ascii=False)
        directory = self.manifest_path.parent
        directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.manifest_path.name}.", suffix=".tmp", dir=str(directory)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, self.manifest_path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    # ------------------------------------------------------------------
    # Backups
    # ------------------------------------------------------------------

    def backup(self, now: Optional[datetime] = None) -> Path:
        """Copy the current manifest into the backup directory."""
        self.require()
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        target = self.backup_dir / f"{BACKUP_PREFIX}{backup_timestamp(now)}.json"
        shutil.copy2(self.manifest_path, target)
        logger.info("Backup created: %s", target)
        return target

    def list_backups(self) -> List[Path]:
        """Backups newest first (the timestamped names sort chronologically)."""
        if not self.backup_dir.is_dir():
            return []
        backups = [
            p for p in self.backup_dir.iterdir()
            if p.is_file() and p.name.startswith(BACKUP_PREFIX) and p.suffix == ".json"
        ]
        return sorted(backups, key=lambda p: p.name, reverse=True)

    def restore(self, name: str) -> Path:
        """Replace the manifest with a backup, backing up the current file first."""
        source = self.backup_dir / name
        if not source.is_file():
            raise BackupNotFoundError(name)
        restored = json.loads(source.read_text(encoding="utf-8"))
        if self.exists():
            self.backup()
        self.save(restored)
        return source
