"""Rainforest API client for Amazon product and store data."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import requests

from variant_scanner.core.config import Settings
from variant_scanner.core.dimensions import dimension_pairs, resolve_dimensions
from variant_scanner.core.models import FetchStatus, ProductRecord, VariantRef
from variant_scanner.core.reconciler import FetchFailure

if TYPE_CHECKING:
    from variant_scanner.db.repository import Repository

logger = logging.getLogger(__name__)

# Rainforest request types
REQUEST_TYPE_PRODUCT = "product"
REQUEST_TYPE_STORE = "store"

# Availability types flagged as out of stock
OUT_OF_STOCK_TYPES = {"out_of_stock", "currently_unavailable"}


@dataclass
class RainforestResponse:
    """Response from the Rainforest API."""

    success: bool = False
    data: dict[str, Any] | None = None
    status_code: int = 0
    error_message: str = ""
    credits_remaining: int | None = None
    raw_json: str = ""


def classify_failure(response: dict[str, Any] | None) -> FetchStatus:
    """Work out why a product response is unusable.

    Best effort: shapes that match none of the known cases are "unknown",
    this never raises.
    """
    if not response:
        return FetchStatus.API_ERROR
    if not isinstance(response, dict):
        return FetchStatus.UNKNOWN

    product = response.get("product")
    if not isinstance(product, dict):
        product = {}

    buybox = product.get("buybox_winner")
    if not buybox:
        return FetchStatus.NO_BUYBOX

    if product.get("is_out_of_stock") is True:
        return FetchStatus.OUT_OF_STOCK
    if isinstance(buybox, dict):
        availability = buybox.get("availability")
        if isinstance(availability, dict) and availability.get("type") in OUT_OF_STOCK_TYPES:
            return FetchStatus.OUT_OF_STOCK

    return FetchStatus.UNKNOWN


def _category_name(product: dict[str, Any]) -> str:
    """Most specific category name of a product."""
    categories = product.get("categories")
    if isinstance(categories, list):
        names = [c.get("name", "") for c in categories if isinstance(c, dict) and c.get("name")]
        if names:
            return names[-1]

    search_alias = product.get("search_alias")
    if isinstance(search_alias, dict):
        return search_alias.get("title", "") or ""
    return ""


def _string(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def parse_product(product: dict[str, Any]) -> ProductRecord:
    """Parse a Rainforest product object into a ProductRecord.

    A missing parent_asin stays empty so the family resolves it.
    """
    asin = _string(product.get("asin"))

    variants = []
    for v in product.get("variants") or []:
        if not isinstance(v, dict) or not _string(v.get("asin")):
            continue
        variants.append(
            VariantRef(
                asin=_string(v.get("asin")),
                dimensions=dimension_pairs(v.get("dimensions")),
                is_current_product=bool(v.get("is_current_product")),
                title=_string(v.get("title")),
            )
        )

    return ProductRecord(
        asin=asin,
        parent_asin=_string(product.get("parent_asin")),
        title=_string(product.get("title")),
        title_excluding_variant=_string(product.get("title_excluding_variant_name")),
        category=_category_name(product),
        variants=tuple(variants),
        dimensions=resolve_dimensions(product.get("dimensions")),
    )


class RainforestClient:
    """Rainforest API client; one request per call, no retries."""

    def __init__(self, settings: Settings, repo: Repository | None = None) -> None:
        """Initialize the Rainforest client."""
        self.settings = settings
        self.api_key = settings.api.rainforest_api_key
        self.amazon_domain = settings.api.amazon_domain
        self.base_url = settings.api.base_url
        self.timeout = settings.api.timeout_seconds
        self.mock_mode = settings.api.mock_mode
        self.repo = repo

        # Session with keep-alive
        self.session = requests.Session()
        self.session.headers.update({
            "Accept-Encoding": "gzip, deflate",
            "Connection": "keep-alive",
        })

        # Raw product responses by requested ASIN
        self.raw_responses: dict[str, dict[str, Any]] = {}
        self.credits_remaining: int | None = None

    def _make_request(self, params: dict[str, Any]) -> tuple[dict, int]:
        """Make a request to the Rainforest API.

        Returns tuple of (response_data, status_code).
        """
        if self.mock_mode:
            return self._mock_response(params), 200

        params = {
            "api_key": self.api_key,
            "amazon_domain": self.amazon_domain,
            **params,
        }

        response = self.session.get(self.base_url, params=params, timeout=self.timeout)

        if response.status_code == 200:
            data = response.json()
            request_info = data.get("request_info") or {}
            if "credits_remaining" in request_info:
                self.credits_remaining = request_info["credits_remaining"]
            return data, response.status_code

        if response.status_code == 429:
            raise RainforestRateLimitError("Rate limited by Rainforest API")

        response.raise_for_status()
        return {}, response.status_code

    def _mock_response(self, params: dict[str, Any]) -> dict:
        """Generate a mock response for testing."""
        from variant_scanner.utils.mock_data import get_mock_product_response, get_mock_store_response

        if params.get("type") == REQUEST_TYPE_STORE:
            return get_mock_store_response(params.get("store_id", ""), params.get("category_id"))
        return get_mock_product_response(params.get("asin", ""))

    def _request(self, params: dict[str, Any], key: str) -> RainforestResponse:
        """Run one request and wrap the outcome, logging the call."""
        start_time = time.time()
        try:
            data, status = self._make_request(params)
            response = RainforestResponse(
                success=True,
                data=data,
                status_code=status,
                credits_remaining=self.credits_remaining,
                raw_json=json.dumps(data),
            )
        except RainforestRateLimitError as e:
            response = RainforestResponse(success=False, status_code=429, error_message=str(e))
        except (requests.RequestException, ValueError) as e:
            status = getattr(getattr(e, "response", None), "status_code", 0) or 0
            response = RainforestResponse(success=False, status_code=status, error_message=str(e))

        duration_ms = int((time.time() - start_time) * 1000)
        if not response.success:
            logger.warning(f"Rainforest {params.get('type')} request for {key} failed: {response.error_message}")

        if self.repo is not None:
            self.repo.log_api_call(
                endpoint=str(params.get("type", "")),
                key=key,
                status_code=response.status_code,
                success=response.success,
                error_message=response.error_message,
                duration_ms=duration_ms,
            )
        return response

    def get_product(self, asin: str) -> RainforestResponse:
        """Fetch the raw product response for an ASIN."""
        response = self._request({"type": REQUEST_TYPE_PRODUCT, "asin": asin}, asin)
        if response.success:
            self.raw_responses[asin] = response.data
        return response

    def fetch_product(self, asin: str) -> ProductRecord:
        """Fetch and parse a product.

        Raises:
            FetchFailure: no response, the API reported failure, or the
                product payload is missing.
        """
        response = self.get_product(asin)
        if not response.success:
            raise FetchFailure(FetchStatus.API_ERROR, response.error_message)

        data = response.data or {}
        request_info = data.get("request_info") or {}
        product = data.get("product")
        if request_info.get("success") is False or not isinstance(product, dict):
            status = classify_failure(data)
            raise FetchFailure(status, f"No usable product for {asin}")

        record = parse_product(product)
        if not record.asin:
            raise FetchFailure(FetchStatus.UNKNOWN, f"Product for {asin} has no ASIN")

        if self.repo is not None:
            self.repo.save_product_snapshot(record, response.raw_json)
        return record

    def fetch_store_catalog(self, store_id: str) -> list[str]:
        """List the ASINs of a store.

        The store front is read, then each of its categories once when
        category expansion is enabled. Categories are never followed further.
        """
        response = self._request({"type": REQUEST_TYPE_STORE, "store_id": store_id}, store_id)
        if not response.success or not response.data:
            return []

        asins = _store_asins(response.data)

        if self.settings.store.expand_categories:
            for category in response.data.get("categories") or []:
                category_id = category.get("category_id") if isinstance(category, dict) else None
                if not category_id:
                    continue
                sub = self._request(
                    {"type": REQUEST_TYPE_STORE, "store_id": store_id, "category_id": category_id},
                    f"{store_id}/{category_id}",
                )
                if sub.success and sub.data:
                    asins.extend(_store_asins(sub.data))

        unique = list(dict.fromkeys(asins))
        limit = self.settings.store.max_products
        if limit and len(unique) > limit:
            logger.info(f"Store {store_id}: capping {len(unique)} ASINs at {limit}")
            unique = unique[:limit]

        logger.info(f"Store {store_id}: {len(unique)} ASINs")
        return unique


def _store_asins(data: dict[str, Any]) -> list[str]:
    """ASINs listed in a store response."""
    return [
        item["asin"].strip()
        for item in data.get("store_results") or []
        if isinstance(item, dict) and isinstance(item.get("asin"), str) and item["asin"].strip()
    ]


class RainforestRateLimitError(Exception):
    """Raised when the Rainforest API rate limit is hit."""

    pass
