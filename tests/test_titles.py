"""Tests for title normalization."""

from __future__ import annotations

import pytest

from variant_scanner.core.titles import normalize_title


class TestNormalizeTitle:
    """Tests for normalize_title."""

    def test_none_is_empty(self):
        assert normalize_title(None) == ""

    def test_empty_is_empty(self):
        assert normalize_title("") == ""

    def test_trims_collapses_and_lowercases(self):
        assert normalize_title("  Acme \t Widget\n  PRO ") == "acme widget pro"

    @pytest.mark.parametrize(
        "title",
        ["Widget", "  Two  Spaces ", "\tTabbed\tTitle\t", "MiXeD CaSe   Text", "   ", "Émile  Zola"],
    )
    def test_idempotent(self, title):
        """Normalizing twice gives the same result as once."""
        once = normalize_title(title)
        assert normalize_title(once) == once

    def test_whitespace_only(self):
        assert normalize_title("   \n\t ") == ""
