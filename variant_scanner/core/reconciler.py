"""Product family reconciliation.

Drives fetches for a seed ASIN, its declared parent and every listed variant,
then turns the heterogeneous responses into a uniform FamilyResult:

1. Fetch the seed. If that fails the family is a single unavailable entry.
2. Pre-collect attribute names from the seed's variant listing.
3. Fetch the parent (when it differs from the seed) and add it first.
4. Add the seed unless it is the parent.
5. Fetch each remaining variant in listing order; failures are recorded as
   unavailable and never retried within the pass.
6. Finalize the attribute names and backfill every member.

Fetches run strictly one at a time. The seen-ASIN set and attribute-name set
belong to the pass being built and nothing else.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import replace
from types import MappingProxyType

from .classifier import classify
from .dimensions import AttributeNames, DimensionCollector
from .models import (
    UNKNOWN_TITLE,
    FamilyMember,
    FamilyResult,
    FetchStatus,
    ProductRecord,
    Relationship,
    UnavailableMember,
    VariantRef,
)
from .titles import normalize_title

logger = logging.getLogger(__name__)


class FetchFailure(Exception):
    """Raised by a fetcher when a product cannot be retrieved."""

    def __init__(self, status: FetchStatus | str, message: str = "") -> None:
        if not isinstance(status, FetchStatus):
            status = FetchStatus.from_string(status)
        super().__init__(message or status.value)
        self.status = status


Fetcher = Callable[[str], ProductRecord]


class _FamilyBuilder:
    """Mutable state of one reconciliation pass."""

    def __init__(self, seed: ProductRecord) -> None:
        self.seed = seed
        self.parent_asin = seed.parent_asin or seed.asin
        self.members: list[FamilyMember] = []
        self.unavailable: list[UnavailableMember] = []
        self.processed: set[str] = set()
        self.collector = DimensionCollector(AttributeNames())
        self.parent_title_normalized = ""
        self.parent_title_excluding_variant_normalized = ""

    def use_parent_titles(self, record: ProductRecord) -> None:
        self.parent_title_normalized = normalize_title(record.title)
        self.parent_title_excluding_variant_normalized = normalize_title(
            record.title_excluding_variant
        )

    def classify(self, record: ProductRecord) -> Relationship:
        return classify(
            record.asin,
            record.title,
            record.title_excluding_variant,
            self.parent_asin,
            self.parent_title_normalized,
            self.parent_title_excluding_variant_normalized,
        )

    def add_member(self, record: ProductRecord, values: dict[str, str]) -> FamilyMember:
        if record.asin in self.processed:
            raise ValueError(f"Duplicate ASIN in family: {record.asin}")
        member = FamilyMember(
            asin=record.asin,
            parent_asin=record.parent_asin or self.parent_asin,
            title=record.title,
            title_excluding_variant=record.title_excluding_variant,
            category=record.category,
            relationship=self.classify(record),
            attribute_values=values,
        )
        self.members.append(member)
        self.processed.add(record.asin)
        return member

    def add_unavailable(self, variant: VariantRef, status: FetchStatus) -> UnavailableMember:
        if variant.asin in self.processed:
            raise ValueError(f"Duplicate ASIN in family: {variant.asin}")
        entry = UnavailableMember(
            asin=variant.asin,
            parent_asin=self.parent_asin,
            status=status.value,
            title=variant.title or UNKNOWN_TITLE,
        )
        self.unavailable.append(entry)
        self.processed.add(variant.asin)
        return entry

    def build(self) -> FamilyResult:
        names = self.collector.names.finalize()
        members = tuple(
            replace(m, attribute_values=MappingProxyType(self.collector.backfill(m.attribute_values)))
            for m in self.members
        )
        return FamilyResult(
            seed_asin=self.seed.asin,
            members=members,
            unavailable=tuple(self.unavailable),
            attribute_names=names,
            parent_asin=self.parent_asin,
            parent_title_normalized=self.parent_title_normalized,
            parent_title_excluding_variant_normalized=self.parent_title_excluding_variant_normalized,
        )


class FamilyReconciler:
    """Builds product families from a fetch capability."""

    def __init__(self, fetch: Fetcher) -> None:
        """Initialize with a callable returning a ProductRecord or raising FetchFailure."""
        self.fetch = fetch

    def _try_fetch(self, asin: str) -> ProductRecord | FetchStatus:
        """Fetch once, turning any failure into a status."""
        try:
            return self.fetch(asin)
        except FetchFailure as e:
            logger.info(f"Fetch failed for {asin}: {e.status.value}")
            return e.status
        except Exception:
            logger.exception(f"Unexpected error fetching {asin}")
            return FetchStatus.UNKNOWN

    def reconcile(self, seed_asin: str) -> FamilyResult:
        """Reconcile the family of a seed ASIN."""
        logger.info(f"Reconciling family for {seed_asin}")

        seed = self._try_fetch(seed_asin)
        if isinstance(seed, FetchStatus):
            logger.warning(f"Seed {seed_asin} unavailable ({seed.value})")
            return FamilyResult(
                seed_asin=seed_asin,
                unavailable=(UnavailableMember(asin=seed_asin, status=seed.value),),
            )

        if seed.asin != seed_asin:
            logger.debug(f"Seed {seed_asin} resolved to {seed.asin}")
            parent_asin = seed_asin if seed.parent_asin == seed.asin else seed.parent_asin
            seed = replace(seed, asin=seed_asin, parent_asin=parent_asin)

        family = _FamilyBuilder(seed)
        family.collector.observe_variants(seed.variants)

        if family.parent_asin == seed.asin:
            family.use_parent_titles(seed)
        else:
            self._add_parent(family)

        if seed.asin not in family.processed:
            values = family.collector.collect(seed, seed.variant_for(seed.asin))
            family.add_member(seed, values)

        for variant in seed.variants:
            if variant.asin in family.processed:
                continue
            self._add_variant(family, variant)

        result = family.build()
        logger.info(
            f"Family {result.parent_asin}: {len(result.members)} members, "
            f"{len(result.unavailable)} unavailable, "
            f"{len(result.attribute_names)} attributes"
        )
        return result

    def _add_parent(self, family: _FamilyBuilder) -> None:
        """Fetch and add the declared parent.

        A parent that cannot be fetched is left out entirely rather than
        recorded as unavailable.
        """
        parent_asin = family.parent_asin
        parent = self._try_fetch(parent_asin)
        if isinstance(parent, FetchStatus):
            logger.warning(f"Parent {parent_asin} of {family.seed.asin} dropped ({parent.value})")
            # Not retried from the variant listing either
            family.processed.add(parent_asin)
            return

        if parent.asin != parent_asin:
            parent = replace(parent, asin=parent_asin)

        family.use_parent_titles(parent)

        values = family.collector.defaults()
        seed_entry = family.seed.variant_for(parent_asin)
        if seed_entry is not None:
            family.collector.apply(values, seed_entry.dimensions)
        own_entry = parent.variant_for(parent_asin)
        if own_entry is not None:
            family.collector.apply(values, own_entry.dimensions)

        family.add_member(parent, values)

    def _add_variant(self, family: _FamilyBuilder, variant: VariantRef) -> None:
        """Fetch one listed variant and add it as member or unavailable."""
        record = self._try_fetch(variant.asin)
        if isinstance(record, FetchStatus):
            family.add_unavailable(variant, record)
            return

        if record.asin != variant.asin:
            logger.debug(f"Variant {variant.asin} resolved to {record.asin}")
            record = replace(record, asin=variant.asin)

        values = family.collector.collect(record, variant)
        family.add_member(record, values)

    def reconcile_many(self, asins: Iterable[str]) -> list[FamilyResult]:
        """Reconcile several seeds, one family per parent.

        Seeds already covered by an earlier family are skipped.
        """
        results: list[FamilyResult] = []
        covered: set[str] = set()

        for asin in asins:
            if asin in covered:
                logger.debug(f"Skipping {asin}, already in a reconciled family")
                continue
            result = self.reconcile(asin)
            results.append(result)
            covered.update(result.asins)
            if result.parent_asin:
                covered.add(result.parent_asin)

        logger.info(f"Reconciled {len(results)} families")
        return results

