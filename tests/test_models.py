"""Tests for core data models."""

from __future__ import annotations

from variant_scanner.core.models import (
    FamilyMember,
    FamilyResult,
    FetchStatus,
    ProductRecord,
    Relationship,
    UnavailableMember,
    VariantRef,
)


class TestEnums:
    """Tests for enum helpers."""

    def test_relationship_values(self):
        assert Relationship.values() == ["PARENT", "DEFAULT_CHILD", "CHILD", "UNAVAILABLE"]

    def test_fetch_status_from_string(self):
        assert FetchStatus.from_string("api-error") == FetchStatus.API_ERROR
        assert FetchStatus.from_string("out-of-stock") == FetchStatus.OUT_OF_STOCK
        assert FetchStatus.from_string("garbage") == FetchStatus.UNKNOWN


class TestProductRecord:
    """Tests for ProductRecord."""

    def test_variant_for(self):
        record = ProductRecord(asin="B001", variants=(VariantRef("B002"), VariantRef("B003")))
        assert record.variant_for("B003").asin == "B003"
        assert record.variant_for("B999") is None


class TestFamilyResult:
    """Tests for FamilyResult helpers."""

    def test_asins_and_counts(self):
        result = FamilyResult(
            seed_asin="B001",
            parent_asin="B001",
            members=(FamilyMember("B001", "B001", relationship=Relationship.PARENT),),
            unavailable=(UnavailableMember("B002"),),
        )
        assert result.asins == ["B001", "B002"]
        assert result.relationship_counts()["UNAVAILABLE"] == 1
        assert not result.is_total_failure

    def test_unavailable_defaults(self):
        entry = UnavailableMember("B002")
        assert entry.status == "unknown"
        assert entry.title == "Unknown"
        assert entry.parent_asin == ""
