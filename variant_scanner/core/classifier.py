"""Relationship classification within a product family."""

from __future__ import annotations

from .models import Relationship
from .titles import normalize_title


def classify(
    candidate_asin: str,
    candidate_title: str | None,
    candidate_title_excluding_variant: str | None,
    parent_asin: str,
    parent_title_normalized: str,
    parent_title_excluding_variant_normalized: str,
) -> Relationship:
    """Assign a fetched ASIN its place in the family.

    The parent is matched by ASIN. A child whose title equals the parent's
    (in full, or with the variant suffix stripped) is the listing's default
    selection; everything else is a plain child.
    """
    if candidate_asin == parent_asin:
        return Relationship.PARENT

    if normalize_title(candidate_title) == parent_title_normalized:
        return Relationship.DEFAULT_CHILD

    stripped = normalize_title(candidate_title_excluding_variant)
    if stripped and parent_title_excluding_variant_normalized:
        if stripped == parent_title_excluding_variant_normalized:
            return Relationship.DEFAULT_CHILD

    return Relationship.CHILD
