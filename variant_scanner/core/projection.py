"""Tabular views of reconciled product families."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .models import ACTIVE_STATUS, FamilyResult, Relationship

BASE_COLUMNS = [
    "ASIN",
    "Parent ASIN",
    "Category",
    "Title",
    "Title Excluding Variant",
    "Relationship",
    "Status",
]


def _family_rows(result: FamilyResult, attribute_names: Sequence[str]) -> list[list[str]]:
    """Member rows then unavailable rows for one family."""
    rows: list[list[str]] = []

    for m in result.members:
        row = [
            m.asin,
            m.parent_asin,
            m.category,
            m.title,
            m.title_excluding_variant,
            m.relationship.value,
            m.status or ACTIVE_STATUS,
        ]
        row.extend(m.attribute_values.get(name, "") for name in attribute_names)
        rows.append(row)

    for u in result.unavailable:
        row = [
            u.asin,
            u.parent_asin,
            "",
            u.title,
            "",
            Relationship.UNAVAILABLE.value,
            u.status,
        ]
        row.extend("" for _ in attribute_names)
        rows.append(row)

    return rows


def flat_table(result: FamilyResult) -> list[list[str]]:
    """One row per ASIN, header first, members before unavailable entries."""
    header = BASE_COLUMNS + list(result.attribute_names)
    return [header] + _family_rows(result, result.attribute_names)


def combined_flat_table(results: Iterable[FamilyResult]) -> list[list[str]]:
    """Flat table spanning several families under a single header.

    Attribute columns are the union of every family's names in
    first-sighting order.
    """
    results = list(results)
    names: dict[str, None] = {}
    for result in results:
        for name in result.attribute_names:
            names.setdefault(name, None)

    attribute_names = list(names)
    rows: list[list[str]] = [BASE_COLUMNS + attribute_names]
    for result in results:
        rows.extend(_family_rows(result, attribute_names))
    return rows


def attribute_crosstab(result: FamilyResult) -> list[list[str]]:
    """Cross-tabulate attribute values to the ASINs carrying them.

    Each column is headed "<name>: <value>" and lists ASINs in the order they
    were observed. Columns follow first sighting of their pair and shorter
    ones are padded with empty cells.
    """
    columns: dict[tuple[str, str], list[str]] = {}
    for m in result.members:
        for name in result.attribute_names:
            value = m.attribute_values.get(name, "")
            if not value:
                continue
            asins = columns.setdefault((name, value), [])
            if m.asin not in asins:
                asins.append(m.asin)

    if not columns:
        return []

    pairs = list(columns)
    height = max(len(asins) for asins in columns.values())
    rows = [[f"{name}: {value}" for name, value in pairs]]
    for i in range(height):
        rows.append([
            columns[p][i] if i < len(columns[p]) else ""
            for p in pairs
        ])
    return rows


def count_relationships_in_table(rows: Sequence[Sequence[str]]) -> dict[str, int]:
    """Count relationships by scanning the Relationship column of a flat table."""
    counts = {value: 0 for value in Relationship.values()}
    if not rows:
        return counts
    column = list(rows[0]).index("Relationship")
    for row in rows[1:]:
        value = row[column]
        if value in counts:
            counts[value] += 1
    return counts
