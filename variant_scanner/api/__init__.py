"""API clients for Variant Family Scanner."""

from .rainforest import (
    RainforestClient,
    RainforestRateLimitError,
    RainforestResponse,
    classify_failure,
    parse_product,
)

__all__ = [
    "RainforestClient",
    "RainforestRateLimitError",
    "RainforestResponse",
    "classify_failure",
    "parse_product",
]
