"""Reader for dependency-cruiser JSON reports."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional

from .models import CORE, LOCAL, NPM, Dependency

logger = logging.getLogger(__name__)


def classify(dependency_types: Iterable[str]) -> str:
    tags = list(dependency_types or [])
    if any(tag == NPM or tag.startswith(f"{NPM}-") for tag in tags):
        return NPM
    if CORE in tags:
        return CORE
    return LOCAL


def to_dependency(raw: Dict[str, Any]) -> Dependency:
    module = str(raw.get("module", ""))
    return Dependency(
        name=module,
        type=classify(raw.get("dependencyTypes", [])),
        path=raw.get("resolved") or module,
        dynamic=bool(raw.get("dynamic", False)),
        circular=bool(raw.get("circular", False)),
        valid=bool(raw.get("valid", True)),
        followable=bool(raw.get("followable", False)),
    )


class DependencyReport:
    """Module-level import relationships, loaded once per run.

    The document looks like::

        {"modules": [{"source": "src/App.jsx",
                      "dependencies": [{"module": "react",
                                        "dependencyTypes": ["npm"],
                                        "resolved": "node_modules/react/index.js",
                                        "dynamic": false, "circular": false,
                                        "valid": true, "followable": true}]}]}
    """

    def __init__(self, document: Optional[Dict[str, Any]] = None) -> None:
        self.modules: List[Dict[str, Any]] = list((document or {}).get("modules", []))
        self._by_source: Dict[str, Dict[str, Any]] = {}
        for module in self.modules:
            self._by_source.setdefault(str(module.get("source", "")), module)
        self._dependents: Optional[Dict[str, List[str]]] = None

    @classmethod
    def empty(cls) -> "DependencyReport":
        return cls(None)

    def __bool__(self) -> bool:
        return bool(self.modules)

    def find_module(self, candidates: List[str], rel_path: str) -> Optional[Dict[str, Any]]:
        """Exact match on any candidate spelling, else the first suffix match."""
        for candidate in candidates:
            module = self._by_source.get(candidate)
            if module is not None:
                return module
        suffix = f"/{rel_path}"
        for module in self.modules:
            if str(module.get("source", "")).endswith(suffix):
                return module
        return None

    def dependencies_for(self, candidates: List[str], rel_path: str) -> List[Dependency]:
        module = self.find_module(candidates, rel_path)
        if module is None:
            if self.modules:
                logger.warning("No dependency info found for %s", rel_path)
            return []
        return [to_dependency(raw) for raw in module.get("dependencies", [])]

    def dependents_for(self, candidates: List[str], rel_path: str) -> List[str]:
        """Sources of the report modules that import the given file."""
        module = self.find_module(candidates, rel_path)
        if module is None:
            return []
        return list(self._reverse_edges().get(str(module.get("source", "")), []))

    def _reverse_edges(self) -> Dict[str, List[str]]:
        if self._dependents is None:
            reverse: Dict[str, set] = defaultdict(set)
            for module in self.modules:
                importer = str(module.get("source", ""))
                for raw in module.get("dependencies", []):
                    target = raw.get("resolved")
                    if target and target != importer:
                        reverse[target].add(importer)
            self._dependents = {k: sorted(v) for k, v in reverse.items()}
        return self._dependents
