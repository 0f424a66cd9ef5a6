"""Scan workflow tying the API client, reconciler, database and exports together."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from variant_scanner.api.rainforest import RainforestClient
from variant_scanner.utils.export import Exporter

from .config import Settings
from .models import FamilyResult
from .projection import attribute_crosstab, combined_flat_table, flat_table
from .reconciler import FamilyReconciler

if TYPE_CHECKING:
    from variant_scanner.db.repository import Repository

logger = logging.getLogger(__name__)


@dataclass
class ScanOutcome:
    """Families from one scan and the files written for them."""

    key: str
    results: list[FamilyResult] = field(default_factory=list)
    files: list[Path] = field(default_factory=list)
    run_ids: list[int] = field(default_factory=list)
    # Raw product response of the first seed
    raw: dict[str, Any] | None = None


class FamilyScanner:
    """Runs family scans for ASINs and stores and exports the results."""

    def __init__(
        self,
        settings: Settings,
        repo: Repository | None = None,
        client: RainforestClient | None = None,
    ) -> None:
        self.settings = settings
        self.repo = repo
        self.client = client or RainforestClient(settings, repo=repo)
        self.reconciler = FamilyReconciler(self.client.fetch_product)

    def _save(self, results: list[FamilyResult]) -> list[int]:
        if self.repo is None:
            return []
        return [self.repo.save_family_result(r) for r in results]

    def _outcome(self, key: str, results: list[FamilyResult]) -> ScanOutcome:
        raw = None
        if results:
            raw = self.client.raw_responses.get(results[0].seed_asin)
        return ScanOutcome(key=key, results=results, run_ids=self._save(results), raw=raw)

    def scan_asin(self, asin: str) -> ScanOutcome:
        """Reconcile and store the family of one ASIN."""
        self.client.raw_responses.clear()
        result = self.reconciler.reconcile(asin.strip().upper())
        return self._outcome(result.seed_asin, [result])

    def scan_asins(self, asins: list[str], key: str = "batch") -> ScanOutcome:
        """Reconcile several ASINs, one family per parent."""
        self.client.raw_responses.clear()
        results = self.reconciler.reconcile_many(a.strip().upper() for a in asins)
        return self._outcome(key, results)

    def scan_store(self, store_id: str) -> ScanOutcome:
        """Reconcile every family found in a store's catalog."""
        asins = self.client.fetch_store_catalog(store_id)
        if not asins:
            logger.warning(f"Store {store_id} returned no products")
        return self.scan_asins(asins, key=store_id)

    def export(self, outcome: ScanOutcome, fmt: str | None = None) -> list[Path]:
        """Write the outcome's tables to the export directory.

        A single family gets its flat table and attribute cross-tab (one
        workbook with two sheets for xlsx). Several families share one flat
        table.
        """
        fmt = (fmt or self.settings.export.default_format).lower()
        export_dir = self.settings.get_export_dir()
        files: list[Path] = []

        if len(outcome.results) == 1:
            result = outcome.results[0]
            if fmt == "xlsx":
                files.append(Exporter.write_family_workbook(
                    result,
                    export_dir / Exporter.generate_filename("variants", outcome.key, "xlsx"),
                    include_crosstab=self.settings.export.include_crosstab,
                ))
            else:
                files.append(Exporter.write_table(
                    flat_table(result),
                    export_dir / Exporter.generate_filename("variants", outcome.key, fmt),
                    fmt,
                ))
                crosstab = attribute_crosstab(result)
                if crosstab and self.settings.export.include_crosstab:
                    files.append(Exporter.write_table(
                        crosstab,
                        export_dir / Exporter.generate_filename("attributes", outcome.key, fmt),
                        fmt,
                    ))
        else:
            files.append(Exporter.write_table(
                combined_flat_table(outcome.results),
                export_dir / Exporter.generate_filename("variants", outcome.key, fmt),
                fmt,
            ))

        outcome.files.extend(files)
        for path in files:
            logger.info(f"Exported {path}")
        return files

    def write_last_raw(self, outcome: ScanOutcome | None) -> Path | None:
        """Write the raw product response of an outcome's seed to JSON."""
        if outcome is None or outcome.raw is None:
            return None
        path = self.settings.get_export_dir() / Exporter.generate_filename("amazon", outcome.key, "json")
        return Exporter.write_json(outcome.raw, path)
