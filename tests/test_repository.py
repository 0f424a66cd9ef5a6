"""Tests for database repository."""

from __future__ import annotations

from variant_scanner.core.models import ProductRecord, Relationship
from variant_scanner.core.reconciler import FamilyReconciler
from variant_scanner.db.repository import Repository


class TestFamilyRuns:
    """Tests for storing reconciled families."""

    def test_save_and_load(self, temp_db, make_fetcher, widget_family):
        fetch = make_fetcher(
            {k: v for k, v in widget_family.items() if k != "B00WIDGET3"},
        )
        result = FamilyReconciler(fetch).reconcile("B00WIDGET1")
        repo = Repository()

        run_id = repo.save_family_result(result)
        run = repo.get_family_run(run_id)

        assert run is not None
        assert run.seed_asin == "B00WIDGET1"
        assert run.parent_asin == "B00WIDGET0"
        assert run.attribute_names == ["Color", "Size"]
        assert [m.asin for m in run.members] == ["B00WIDGET0", "B00WIDGET1", "B00WIDGET2"]
        assert run.members[1].relationship == Relationship.DEFAULT_CHILD
        assert run.members[1].attribute_values == {"Color": "Red", "Size": ""}
        assert [u.asin for u in run.unavailable] == ["B00WIDGET3"]
        assert run.unavailable[0].status == "api-error"

    def test_missing_run(self, temp_db):
        assert Repository().get_family_run(999) is None

    def test_recent_runs_newest_first(self, temp_db, make_fetcher, widget_family):
        reconciler = FamilyReconciler(make_fetcher(widget_family))
        repo = Repository()
        first = repo.save_family_result(reconciler.reconcile("B00WIDGET1"))
        second = repo.save_family_result(reconciler.reconcile("B00WIDGET2"))

        runs = repo.get_recent_runs(limit=5)
        assert [r.id for r in runs] == [second, first]
        assert len(repo.get_recent_runs(limit=1)) == 1


class TestProductSnapshots:
    """Tests for raw product snapshots."""

    def test_latest_snapshot(self, temp_db):
        repo = Repository()
        record = ProductRecord(asin="B001", parent_asin="B000", title="Widget")
        repo.save_product_snapshot(record, '{"product": {"title": "Old"}}')
        repo.save_product_snapshot(record, '{"product": {"title": "New"}}')

        assert repo.get_latest_snapshot("B001") == {"product": {"title": "New"}}
        assert repo.get_latest_snapshot("B999") is None


class TestApiStats:
    """Tests for API call statistics."""

    def test_empty(self, temp_db):
        stats = Repository().get_api_stats(24)
        assert stats == {"total_calls": 0, "success_count": 0, "error_count": 0, "avg_duration_ms": 0.0}

    def test_counts(self, temp_db):
        repo = Repository()
        repo.log_api_call("product", "B001", 200, True, "", 100)
        repo.log_api_call("product", "B002", 429, False, "Rate limited", 300)

        stats = repo.get_api_stats(24)
        assert stats["total_calls"] == 2
        assert stats["success_count"] == 1
        assert stats["error_count"] == 1
        assert stats["avg_duration_ms"] == 200.0
