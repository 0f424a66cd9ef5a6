"""Utility modules for Variant Family Scanner."""

from .export import Exporter, ExportError
from .mock_data import get_mock_product_response, get_mock_store_response

__all__ = [
    "Exporter",
    "ExportError",
    "get_mock_product_response",
    "get_mock_store_response",
]
