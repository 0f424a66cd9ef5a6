"""Title normalization for family comparisons."""

from __future__ import annotations

import re

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_title(title: str | None) -> str:
    """Canonicalize a product title for equality checks.

    Trims, collapses whitespace runs to a single space and lower-cases.
    Never used for display.
    """
    if not title:
        return ""
    return _WHITESPACE_RE.sub(" ", title).strip().lower()
