"""Variant Family Scanner: Amazon product family reconciliation and export."""

__version__ = "1.0.0"
