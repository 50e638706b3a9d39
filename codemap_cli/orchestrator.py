"""Coordinates the store, the dependency analysis and the reconciler."""

from __future__ import annotations

import logging
from typing import Optional

from .analyzer import DependencyCruiser, ReportProvider, report_file_provider
from .config import ScannerConfig
from .dependency_report import DependencyReport
from .errors import SourceDirectoryNotFoundError
from .models import RunSummary
from .reconciler import Reconciler, SyncPredicate
from .storage import ManifestStore, count_files

logger = logging.getLogger(__name__)


class ScanOrchestrator:
    """Runs ``update`` and ``freshscan`` for one configured project."""

    def __init__(
        self,
        config: ScannerConfig,
        store: Optional[ManifestStore] = None,
        sync_predicate: Optional[SyncPredicate] = None,
    ) -> None:
        self.config = config
        self.store = store or ManifestStore(config.manifest_path, config.backup_dir)
        self.sync_predicate = sync_predicate

    def check_inputs(self) -> None:
        self.store.require()
        if not self.config.source_dir.is_dir():
            raise SourceDirectoryNotFoundError(self.config.source_dir)

    def update(self, report_provider: Optional[ReportProvider] = None) -> RunSummary:
        """Reconcile the manifest using a report produced by ``report_provider``.

        Defaults to the report previously written to the report directory.
        Nothing is written when inputs are missing or the sync path is
        ambiguous; after the backup is made the manifest is only replaced
        once reconciliation has completed.
        """
        self.check_inputs()
        provider = report_provider or report_file_provider(self.config.report_path)
        report = DependencyReport(provider())

        manifest = self.store.load()
        reconciler = Reconciler(self.config, report, sync_predicate=self.sync_predicate)
        reconciler.sync_target(manifest)

        backup_path = self.store.backup()
        result = reconciler.reconcile(manifest)
        self.store.save(result.manifest)

        return RunSummary(
            backup_path=backup_path,
            result=result,
            total_files=count_files(result.manifest),
            report_modules=len(report.modules),
        )

    def fresh_scan(self, analyzer: Optional[DependencyCruiser] = None) -> RunSummary:
        """Regenerate the dependency report, then reconcile."""
        self.check_inputs()
        analyzer = analyzer or DependencyCruiser(self.config)
        document = analyzer.analyze()
        logger.info("Dependency analysis produced %d modules", len(document.get("modules", [])))
        return self.update(lambda: document)
