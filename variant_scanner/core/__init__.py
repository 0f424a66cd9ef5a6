"""Core business logic for Variant Family Scanner."""

from .asin_list import AsinListImporter, AsinListResult, AsinListValidationError
from .classifier import classify
from .config import Settings, get_settings
from .dimensions import AttributeNames, DimensionCollector, resolve_dimensions
from .models import (
    DimensionsList,
    DimensionsMap,
    FamilyMember,
    FamilyResult,
    FetchStatus,
    ProductRecord,
    Relationship,
    UnavailableMember,
    VariantRef,
)
from .projection import attribute_crosstab, combined_flat_table, flat_table
from .reconciler import FamilyReconciler, FetchFailure
from .titles import normalize_title

__all__ = [
    "AsinListImporter",
    "AsinListResult",
    "AsinListValidationError",
    "classify",
    "Settings",
    "get_settings",
    "AttributeNames",
    "DimensionCollector",
    "resolve_dimensions",
    "DimensionsList",
    "DimensionsMap",
    "FamilyMember",
    "FamilyResult",
    "FetchStatus",
    "ProductRecord",
    "Relationship",
    "UnavailableMember",
    "VariantRef",
    "attribute_crosstab",
    "combined_flat_table",
    "flat_table",
    "FamilyReconciler",
    "FetchFailure",
    "normalize_title",
]
