"""Core data models for Variant Family Scanner."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum


class Relationship(str, Enum):
    """Position of an ASIN within its product family."""

    PARENT = "PARENT"
    DEFAULT_CHILD = "DEFAULT_CHILD"
    CHILD = "CHILD"
    UNAVAILABLE = "UNAVAILABLE"

    @classmethod
    def values(cls) -> list[str]:
        """Get list of relationship values."""
        return [r.value for r in cls]


class FetchStatus(str, Enum):
    """Reason code recorded when a product could not be fetched."""

    API_ERROR = "api-error"
    NO_BUYBOX = "no-buybox"
    OUT_OF_STOCK = "out-of-stock"
    UNKNOWN = "unknown"

    @classmethod
    def from_string(cls, value: str) -> "FetchStatus":
        """Convert string to FetchStatus, falling back to UNKNOWN."""
        for status in cls:
            if status.value == value:
                return status
        return cls.UNKNOWN


# Status shown for members that were fetched successfully
ACTIVE_STATUS = "Active"

# Title shown for unavailable variants with no listing title
UNKNOWN_TITLE = "Unknown"


@dataclass(frozen=True)
class DimensionsList:
    """Dimensions delivered as an ordered list of name/value pairs."""

    pairs: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class DimensionsMap:
    """Dimensions delivered as a name -> value mapping (string values only)."""

    values: tuple[tuple[str, str], ...] = ()


Dimensions = DimensionsList | DimensionsMap


@dataclass(frozen=True)
class VariantRef:
    """Entry in a product's variant listing."""

    asin: str
    dimensions: tuple[tuple[str, str], ...] = ()
    is_current_product: bool = False
    title: str = ""


@dataclass(frozen=True)
class ProductRecord:
    """Product as returned by the product-data API, read-only."""

    asin: str
    parent_asin: str = ""
    title: str = ""
    title_excluding_variant: str = ""
    category: str = ""
    variants: tuple[VariantRef, ...] = ()
    dimensions: Dimensions = field(default_factory=DimensionsList)

    def variant_for(self, asin: str) -> VariantRef | None:
        """Get the variant listing entry for an ASIN, if listed."""
        for variant in self.variants:
            if variant.asin == asin:
                return variant
        return None


@dataclass(frozen=True)
class FamilyMember:
    """Fetched ASIN placed in a product family.

    Attribute values are a read-only mapping once the family is built.
    """

    asin: str
    parent_asin: str
    title: str = ""
    title_excluding_variant: str = ""
    category: str = ""
    relationship: Relationship = Relationship.CHILD
    attribute_values: Mapping[str, str] = field(default_factory=dict)
    status: str = ACTIVE_STATUS


@dataclass(frozen=True)
class UnavailableMember:
    """ASIN listed in a family that could not be fetched."""

    asin: str
    parent_asin: str = ""
    status: str = FetchStatus.UNKNOWN.value
    title: str = UNKNOWN_TITLE


@dataclass(frozen=True)
class FamilyResult:
    """Outcome of one reconciliation pass for a seed ASIN."""

    seed_asin: str
    members: tuple[FamilyMember, ...] = ()
    unavailable: tuple[UnavailableMember, ...] = ()
    attribute_names: tuple[str, ...] = ()
    parent_asin: str = ""
    parent_title_normalized: str = ""
    parent_title_excluding_variant_normalized: str = ""

    @property
    def asins(self) -> list[str]:
        """All ASINs covered by this family, members first."""
        return [m.asin for m in self.members] + [u.asin for u in self.unavailable]

    @property
    def is_total_failure(self) -> bool:
        """True when the seed itself could not be fetched."""
        return not self.members and len(self.unavailable) == 1 and (
            self.unavailable[0].asin == self.seed_asin
        )

    def member(self, asin: str) -> FamilyMember | None:
        """Get a member by ASIN."""
        for m in self.members:
            if m.asin == asin:
                return m
        return None

    def relationship_counts(self) -> dict[str, int]:
        """Count ASINs per relationship, unavailable included."""
        counts = {value: 0 for value in Relationship.values()}
        for m in self.members:
            counts[m.relationship.value] += 1
        counts[Relationship.UNAVAILABLE.value] += len(self.unavailable)
        return counts
