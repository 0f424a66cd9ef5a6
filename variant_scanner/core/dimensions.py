"""Attribute dimension collection for product families."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from .models import Dimensions, DimensionsList, DimensionsMap, ProductRecord, VariantRef

logger = logging.getLogger(__name__)


def _pair_from_entry(entry: Any) -> tuple[str, str] | None:
    """Read a {name, value} entry, skipping malformed ones."""
    if not isinstance(entry, Mapping):
        return None
    name = entry.get("name")
    value = entry.get("value")
    if not isinstance(name, str) or not name.strip():
        return None
    if value is None:
        value = ""
    return name.strip(), str(value).strip()


def dimension_pairs(raw: Any) -> tuple[tuple[str, str], ...]:
    """Convert a list of {name, value} entries to name/value pairs."""
    if not isinstance(raw, list):
        return ()
    pairs = []
    for entry in raw:
        pair = _pair_from_entry(entry)
        if pair is not None:
            pairs.append(pair)
    return tuple(pairs)


def resolve_dimensions(raw: Any) -> Dimensions:
    """Resolve an API dimensions payload into its tagged form.

    The API delivers either a list of {name, value} objects or a plain
    name -> value object. Non-string map values are dropped here so nothing
    downstream branches on the shape again.
    """
    if isinstance(raw, Mapping):
        values = []
        for name, value in raw.items():
            if not isinstance(value, str) or not str(name).strip():
                logger.debug(f"Skipping dimension {name!r}: non-string value")
                continue
            values.append((str(name).strip(), value.strip()))
        return DimensionsMap(values=tuple(values))
    return DimensionsList(pairs=dimension_pairs(raw))


def iter_dimensions(dimensions: Dimensions) -> Iterator[tuple[str, str]]:
    """Iterate name/value pairs of either dimensions shape."""
    if isinstance(dimensions, DimensionsMap):
        yield from dimensions.values
    else:
        yield from dimensions.pairs


class AttributeNames:
    """Insertion-ordered, deduplicated set of attribute names for one family."""

    def __init__(self, names: Iterable[str] = ()) -> None:
        self._names: dict[str, None] = {}
        self._finalized = False
        for name in names:
            self.add(name)

    def add(self, name: str) -> None:
        """Record an attribute name on first sighting."""
        if self._finalized:
            raise RuntimeError("Attribute names are finalized")
        if name not in self._names:
            self._names[name] = None

    def finalize(self) -> tuple[str, ...]:
        """Freeze the set and return the names in first-sighting order."""
        self._finalized = True
        return tuple(self._names)

    @property
    def is_finalized(self) -> bool:
        return self._finalized

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._names))

    def __len__(self) -> int:
        return len(self._names)


class DimensionCollector:
    """Merges per-ASIN dimensions and tracks the family-wide name set.

    Later sources overwrite earlier ones: the record's own dimensions first
    (list or map shape), then the sibling variant entry from the seed's
    listing.
    """

    def __init__(self, names: AttributeNames | None = None) -> None:
        self.names = names if names is not None else AttributeNames()

    def observe(self, pairs: Iterable[tuple[str, str]]) -> None:
        """Add attribute names without collecting values."""
        for name, _ in pairs:
            self.names.add(name)

    def observe_variants(self, variants: Iterable[VariantRef]) -> None:
        """Add every attribute name appearing in a variant listing."""
        for variant in variants:
            self.observe(variant.dimensions)

    def apply(self, values: dict[str, str], pairs: Iterable[tuple[str, str]]) -> dict[str, str]:
        """Overwrite values with pairs, recording names."""
        for name, value in pairs:
            self.names.add(name)
            values[name] = value
        return values

    def collect(
        self,
        record: ProductRecord,
        sibling: VariantRef | None = None,
    ) -> dict[str, str]:
        """Build the flat attribute mapping for one fetched record."""
        values: dict[str, str] = {}
        self.apply(values, iter_dimensions(record.dimensions))
        if sibling is not None and sibling.dimensions:
            self.apply(values, sibling.dimensions)
        return values

    def defaults(self) -> dict[str, str]:
        """Empty value for every name known so far."""
        return {name: "" for name in self.names}

    def backfill(self, values: Mapping[str, str]) -> dict[str, str]:
        """Give a member every finalized name, in family order.

        Must only run once the family-wide set is finalized, since names
        discovered late still have to appear on earlier members.
        """
        if not self.names.is_finalized:
            raise RuntimeError("Backfill before attribute names are finalized")
        return {name: values.get(name, "") for name in self.names}
