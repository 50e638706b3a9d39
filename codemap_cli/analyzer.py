"""Run dependency-cruiser to produce the dependency report and visualizations."""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .config import ScannerConfig
from .errors import AnalysisError

logger = logging.getLogger(__name__)

# Anything that yields a report document (or None when there is none).
ReportProvider = Callable[[], Optional[Dict[str, Any]]]


class DependencyCruiser:
    """Thin wrapper around the ``dependency-cruiser`` command line."""

    def __init__(self, config: ScannerConfig) -> None:
        self.config = config

    def _command(self, output_type: str) -> List[str]:
        return [*self.config.analyzer_command, "--output-type", output_type, self.config.src_prefix]

    def _run(self, output_type: str) -> str:
        result = subprocess.run(
            self._command(output_type),
            cwd=str(self.config.project_root),
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout

    def generate_json(self) -> Path:
        """Write the JSON report; any failure aborts the scan."""
        target = self.config.report_path
        target.parent.mkdir(parents=True, exist_ok=True)
        if target.exists():
            logger.info("Regenerating existing dependency report %s", target)

        try:
            output = self._run("json")
        except subprocess.CalledProcessError as exc:
            raise AnalysisError(
                f"dependency-cruiser exited with status {exc.returncode}: {(exc.stderr or '').strip()}"
            ) from exc
        except OSError as exc:
            raise AnalysisError(f"Could not run dependency-cruiser: {exc}") from exc

        try:
            json.loads(output)
        except json.JSONDecodeError as exc:
            raise AnalysisError(f"dependency-cruiser produced invalid JSON: {exc}") from exc

        target.write_text(output, encoding="utf-8")
        return target

    def generate_html(self) -> Optional[Path]:
        target = self.config.html_report_path
        if target.exists():
            logger.info("HTML report already exists: %s", target)
            return target
        try:
            target.write_text(self._run("html"), encoding="utf-8")
        except (subprocess.CalledProcessError, OSError) as exc:
            logger.warning("HTML report generation failed (optional): %s", exc)
            return None
        return target

    def generate_svg(self) -> Optional[Path]:
        target = self.config.svg_graph_path
        if target.exists():
            logger.info("SVG graph already exists: %s", target)
            return target
        try:
            dot_source = self._run("dot")
            rendered = subprocess.run(
                ["dot", "-T", "svg"],
                input=dot_source,
                capture_output=True,
                text=True,
                check=True,
            )
            target.write_text(rendered.stdout, encoding="utf-8")
        except (subprocess.CalledProcessError, OSError) as exc:
            logger.warning("SVG graph generation failed (optional): %s", exc)
            return None
        return target

    def analyze(self) -> Dict[str, Any]:
        """Produce all artifacts and return the parsed JSON report."""
        report_path = self.generate_json()
        self.generate_html()
        self.generate_svg()
        return json.loads(report_path.read_text(encoding="utf-8"))


def report_file_provider(path: Path) -> ReportProvider:
    """Provider reading a previously generated report from disk."""

    def provide() -> Optional[Dict[str, Any]]:
        if not path.exists():
            logger.warning("Dependency report not found at %s", path)
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    return provide
