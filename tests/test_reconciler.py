"""Tests for family reconciliation."""

from __future__ import annotations

import pytest

from variant_scanner.core.models import (
    DimensionsList,
    DimensionsMap,
    FamilyResult,
    FetchStatus,
    ProductRecord,
    Relationship,
    VariantRef,
)
from variant_scanner.core.reconciler import FamilyReconciler, FetchFailure


def assert_family_invariants(result: FamilyResult) -> None:
    """Checks every FamilyResult must satisfy."""
    member_asins = [m.asin for m in result.members]
    unavailable_asins = [u.asin for u in result.unavailable]
    assert len(set(member_asins)) == len(member_asins)
    assert len(set(unavailable_asins)) == len(unavailable_asins)
    assert not set(member_asins) & set(unavailable_asins)

    for m in result.members:
        assert list(m.attribute_values) == list(result.attribute_names)
        assert (m.relationship == Relationship.PARENT) == (m.asin == result.parent_asin)


class TestReconcileScenarios:
    """Reconciliation of small hand-built families."""

    def test_self_parented_seed(self, make_fetcher):
        fetch = make_fetcher({"B001": ProductRecord(asin="B001", parent_asin="B001", title="Widget")})
        result = FamilyReconciler(fetch).reconcile("B001")

        assert len(result.members) == 1
        assert result.members[0].asin == "B001"
        assert result.members[0].relationship == Relationship.PARENT
        assert result.unavailable == ()
        assert result.attribute_names == ()
        assert_family_invariants(result)

    def test_variant_fetch_failure_recorded_unavailable(self, make_fetcher):
        fetch = make_fetcher(
            {
                "B000": ProductRecord(asin="B000", parent_asin="B000", title="Widget"),
                "B001": ProductRecord(
                    asin="B001",
                    parent_asin="B000",
                    title="Widget",
                    variants=(VariantRef("B002"),),
                ),
            },
            failures={"B002": FetchStatus.NO_BUYBOX},
        )
        result = FamilyReconciler(fetch).reconcile("B001")

        assert [m.asin for m in result.members] == ["B000", "B001"]
        assert result.member("B000").relationship == Relationship.PARENT
        assert result.member("B001").relationship == Relationship.DEFAULT_CHILD
        assert len(result.unavailable) == 1
        entry = result.unavailable[0]
        assert entry.asin == "B002"
        assert entry.status == "no-buybox"
        assert entry.parent_asin == "B000"
        assert entry.title == "Unknown"
        assert_family_invariants(result)

    def test_sibling_dimensions_overwrite_own(self, make_fetcher):
        fetch = make_fetcher({
            "B001": ProductRecord(
                asin="B001",
                parent_asin="B001",
                title="Widget",
                variants=(VariantRef("B002", (("Color", "Blue"),)),),
            ),
            "B002": ProductRecord(
                asin="B002",
                parent_asin="B001",
                title="Widget, Red",
                dimensions=DimensionsList((("Color", "Red"),)),
            ),
        })
        result = FamilyReconciler(fetch).reconcile("B001")

        assert result.member("B002").attribute_values == {"Color": "Blue"}

    def test_late_attribute_backfilled(self, make_fetcher):
        fetch = make_fetcher({
            "B001": ProductRecord(
                asin="B001",
                parent_asin="B001",
                title="Widget",
                variants=(VariantRef("B002", (("Color", "Red"),)), VariantRef("B003")),
            ),
            "B002": ProductRecord(asin="B002", parent_asin="B001", title="Widget Red"),
            "B003": ProductRecord(
                asin="B003",
                parent_asin="B001",
                title="Widget Large",
                dimensions=DimensionsMap((("Size", "Large"),)),
            ),
        })
        result = FamilyReconciler(fetch).reconcile("B001")

        assert result.attribute_names == ("Color", "Size")
        assert result.member("B002").attribute_values == {"Color": "Red", "Size": ""}
        assert result.member("B003").attribute_values == {"Color": "", "Size": "Large"}
        assert result.member("B001").attribute_values == {"Color": "", "Size": ""}
        assert_family_invariants(result)

    def test_seed_failure_is_single_unavailable(self, make_fetcher):
        fetch = make_fetcher({}, failures={"B001": FetchStatus.OUT_OF_STOCK})
        result = FamilyReconciler(fetch).reconcile("B001")

        assert result.members == ()
        assert len(result.unavailable) == 1
        assert result.unavailable[0].asin == "B001"
        assert result.unavailable[0].status == "out-of-stock"
        assert result.is_total_failure
        assert fetch.calls == ["B001"]


class TestReconcileFamily:
    """Reconciliation of the shared widget family."""

    def test_members_in_order(self, make_fetcher, widget_family):
        result = FamilyReconciler(make_fetcher(widget_family)).reconcile("B00WIDGET1")

        assert [m.asin for m in result.members] == [
            "B00WIDGET0",
            "B00WIDGET1",
            "B00WIDGET2",
            "B00WIDGET3",
        ]
        assert result.parent_asin == "B00WIDGET0"
        assert result.parent_title_normalized == "acme widget"

    def test_relationships(self, make_fetcher, widget_family):
        result = FamilyReconciler(make_fetcher(widget_family)).reconcile("B00WIDGET1")

        assert result.member("B00WIDGET0").relationship == Relationship.PARENT
        assert result.member("B00WIDGET1").relationship == Relationship.DEFAULT_CHILD
        assert result.member("B00WIDGET2").relationship == Relationship.CHILD
        assert result.member("B00WIDGET3").relationship == Relationship.CHILD

    def test_attributes(self, make_fetcher, widget_family):
        result = FamilyReconciler(make_fetcher(widget_family)).reconcile("B00WIDGET1")

        assert result.attribute_names == ("Color", "Size")
        assert result.member("B00WIDGET0").attribute_values == {"Color": "", "Size": ""}
        assert result.member("B00WIDGET3").attribute_values == {"Color": "Green", "Size": "Large"}
        assert_family_invariants(result)

    def test_each_asin_fetched_once(self, make_fetcher, widget_family):
        fetch = make_fetcher(widget_family)
        FamilyReconciler(fetch).reconcile("B00WIDGET2")

        assert sorted(fetch.calls) == sorted(set(fetch.calls))
        assert fetch.calls[:2] == ["B00WIDGET2", "B00WIDGET0"]

    def test_result_is_frozen(self, make_fetcher, widget_family):
        result = FamilyReconciler(make_fetcher(widget_family)).reconcile("B00WIDGET1")
        with pytest.raises(AttributeError):
            result.members = ()  # type: ignore[misc]

    def test_members_are_read_only(self, make_fetcher, widget_family):
        result = FamilyReconciler(make_fetcher(widget_family)).reconcile("B00WIDGET1")
        member = result.member("B00WIDGET1")

        with pytest.raises(TypeError):
            member.attribute_values["Color"] = "Purple"  # type: ignore[index]
        with pytest.raises(AttributeError):
            member.relationship = Relationship.CHILD  # type: ignore[misc]
        assert member.attribute_values["Color"] == "Red"

    def test_seed_as_parent(self, make_fetcher, widget_family):
        result = FamilyReconciler(make_fetcher(widget_family)).reconcile("B00WIDGET0")

        assert result.members[0].asin == "B00WIDGET0"
        assert result.members[0].relationship == Relationship.PARENT
        assert len(result.members) == 4
        assert_family_invariants(result)


class TestPartialFailures:
    """Parent and variant failures during a pass."""

    def test_failed_parent_is_dropped(self, make_fetcher):
        fetch = make_fetcher(
            {
                "B001": ProductRecord(
                    asin="B001",
                    parent_asin="B000",
                    title="Widget",
                    variants=(VariantRef("B000"), VariantRef("B002")),
                ),
                "B002": ProductRecord(asin="B002", parent_asin="B000", title="Widget Blue"),
            },
            failures={"B000": FetchStatus.API_ERROR},
        )
        result = FamilyReconciler(fetch).reconcile("B001")

        assert "B000" not in result.asins
        assert [m.asin for m in result.members] == ["B001", "B002"]
        assert result.unavailable == ()
        assert fetch.calls.count("B000") == 1
        assert all(m.relationship == Relationship.CHILD for m in result.members)

    def test_redirected_variant_keeps_requested_asin(self, make_fetcher):
        fetch = make_fetcher({
            "B001": ProductRecord(
                asin="B001",
                parent_asin="B001",
                title="Widget",
                variants=(VariantRef("B002", (("Color", "Red"),)),),
            ),
            "B002": ProductRecord(asin="B009", parent_asin="B001", title="Widget Red"),
        })
        result = FamilyReconciler(fetch).reconcile("B001")

        assert result.asins == ["B001", "B002"]
        assert_family_invariants(result)

    def test_redirected_seed_keeps_requested_asin(self, make_fetcher):
        fetch = make_fetcher({
            "S001": ProductRecord(
                asin="X001",
                parent_asin="B000",
                title="Widget",
                variants=(VariantRef("B002"),),
            ),
            "B000": ProductRecord(asin="B000", parent_asin="B000", title="Widget"),
            "B002": ProductRecord(asin="B002", parent_asin="B000", title="Widget Blue"),
        })
        result = FamilyReconciler(fetch).reconcile("S001")

        assert result.seed_asin == "S001"
        assert result.asins == ["B000", "S001", "B002"]
        assert "X001" not in result.asins
        assert_family_invariants(result)

    def test_redirected_self_parented_seed(self, make_fetcher):
        fetch = make_fetcher({"S001": ProductRecord(asin="X001", parent_asin="X001", title="Widget")})
        result = FamilyReconciler(fetch).reconcile("S001")

        assert result.parent_asin == "S001"
        assert result.members[0].relationship == Relationship.PARENT
        assert fetch.calls == ["S001"]

    def test_unexpected_error_is_unknown(self):
        def fetch(asin: str) -> ProductRecord:
            if asin == "B001":
                return ProductRecord(
                    asin="B001",
                    parent_asin="B001",
                    variants=(VariantRef("B002", title="Widget Red"),),
                )
            raise KeyError(asin)

        result = FamilyReconciler(fetch).reconcile("B001")

        assert result.unavailable[0].asin == "B002"
        assert result.unavailable[0].status == "unknown"
        assert result.unavailable[0].title == "Widget Red"

    def test_fetch_failure_accepts_string_status(self):
        error = FetchFailure("no-buybox")
        assert error.status == FetchStatus.NO_BUYBOX
        assert FetchFailure("something-else").status == FetchStatus.UNKNOWN


class TestReconcileMany:
    """Tests for reconciling several seeds."""

    def test_redirected_seed_not_fetched_again(self, make_fetcher):
        fetch = make_fetcher({"S001": ProductRecord(asin="X001", parent_asin="X001", title="Widget")})
        results = FamilyReconciler(fetch).reconcile_many(["S001", "S001"])

        assert len(results) == 1
        assert fetch.calls == ["S001"]

    def test_skips_asins_already_covered(self, make_fetcher, widget_family):
        fetch = make_fetcher(widget_family)
        results = FamilyReconciler(fetch).reconcile_many(["B00WIDGET1", "B00WIDGET3", "B00WIDGET0"])

        assert len(results) == 1
        assert results[0].seed_asin == "B00WIDGET1"

    def test_separate_families(self, make_fetcher, widget_family):
        records = dict(widget_family)
        records["B00OTHER01"] = ProductRecord(asin="B00OTHER01", parent_asin="B00OTHER01", title="Other")
        results = FamilyReconciler(make_fetcher(records)).reconcile_many(["B00WIDGET2", "B00OTHER01", "B00MISSING"])

        assert [r.seed_asin for r in results] == ["B00WIDGET2", "B00OTHER01", "B00MISSING"]
        assert results[2].is_total_failure
        for result in results:
            assert_family_invariants(result)
