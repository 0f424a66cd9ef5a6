"""Pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from variant_scanner.core.config import Settings
from variant_scanner.core.models import DimensionsList, FetchStatus, ProductRecord, VariantRef
from variant_scanner.core.reconciler import FetchFailure


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Create default settings for testing."""
    s = Settings()
    s.api.mock_mode = True
    s.export.output_dir = str(tmp_path / "exports")
    return s


@pytest.fixture
def temp_db(tmp_path: Path, monkeypatch):
    """Point the database layer at a fresh SQLite file."""
    from variant_scanner.db import session as db_session

    db_file = tmp_path / "scanner.db"
    db_session.close_database()
    monkeypatch.setattr(db_session, "get_db_path", lambda: db_file)
    db_session.init_database(use_migrations=False)
    yield db_file
    db_session.close_database()


def _make_fetcher(
    records: dict[str, ProductRecord],
    failures: dict[str, FetchStatus] | None = None,
) -> Callable[[str], ProductRecord]:
    """Fetcher backed by dictionaries; unlisted ASINs fail with api-error."""
    failures = failures or {}
    calls: list[str] = []

    def fetch(asin: str) -> ProductRecord:
        calls.append(asin)
        if asin in failures:
            raise FetchFailure(failures[asin])
        if asin not in records:
            raise FetchFailure(FetchStatus.API_ERROR)
        return records[asin]

    fetch.calls = calls  # type: ignore[attr-defined]
    return fetch


@pytest.fixture
def make_fetcher():
    """Factory for dictionary-backed fetchers."""
    return _make_fetcher


@pytest.fixture
def widget_family() -> dict[str, ProductRecord]:
    """A parent with three children; one child shares the parent's title."""
    variants = (
        VariantRef("B00WIDGET1", (("Color", "Red"),), title="Widget Red"),
        VariantRef("B00WIDGET2", (("Color", "Blue"),), title="Widget Blue"),
        VariantRef("B00WIDGET3", (("Color", "Green"), ("Size", "Large")), title="Widget Green"),
    )
    return {
        "B00WIDGET0": ProductRecord(
            asin="B00WIDGET0",
            parent_asin="B00WIDGET0",
            title="Acme  Widget",
            title_excluding_variant="Acme Widget",
            category="Tools",
            variants=variants,
        ),
        "B00WIDGET1": ProductRecord(
            asin="B00WIDGET1",
            parent_asin="B00WIDGET0",
            title="acme widget",
            title_excluding_variant="Acme Widget",
            category="Tools",
            variants=variants,
            dimensions=DimensionsList((("Color", "Red"),)),
        ),
        "B00WIDGET2": ProductRecord(
            asin="B00WIDGET2",
            parent_asin="B00WIDGET0",
            title="Acme Widget, Blue",
            title_excluding_variant="Acme Widget Blue",
            category="Tools",
            variants=variants,
        ),
        "B00WIDGET3": ProductRecord(
            asin="B00WIDGET3",
            parent_asin="B00WIDGET0",
            title="Acme Widget, Green, Large",
            title_excluding_variant="Acme Widget Green",
            category="Tools",
            variants=variants,
        ),
    }


@pytest.fixture
def sample_asin_csv(tmp_path: Path) -> Path:
    """Create a sample ASIN list CSV."""
    csv_file = tmp_path / "asins.csv"
    csv_file.write_text(
        "ASIN,Note\n"
        "B00WIDGET1,first\n"
        "b00widget2,lower case\n"
        ",blank\n"
        "NOTANASIN,bad\n"
        "B00WIDGET1,duplicate\n",
        encoding="utf-8",
    )
    return csv_file


@pytest.fixture
def invalid_asin_csv(tmp_path: Path) -> Path:
    """Create a CSV file without an ASIN column."""
    csv_file = tmp_path / "invalid.csv"
    csv_file.write_text("Name,Price\nWidget,10.00\n", encoding="utf-8")
    return csv_file
