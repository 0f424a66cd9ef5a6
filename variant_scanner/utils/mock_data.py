"""Mock Rainforest API responses for running without an API key.

Families are derived from the ASIN itself so repeated runs agree: the first
nine characters identify the family, a trailing "0" marks the parent and
digits 1-5 are its variants. Variants ending in "9" never resolve.
"""

from __future__ import annotations

import random
import zlib

COLORS = ["Black", "White", "Red", "Blue", "Green", "Grey"]
SIZES = ["Small", "Medium", "Large", "X-Large"]
CATEGORIES = ["Home & Kitchen", "Sports & Outdoors", "Tools & Home Improvement"]


def _rng(key: str) -> random.Random:
    """Deterministic random source for a key."""
    return random.Random(zlib.crc32(key.encode("utf-8")))


def _family_key(asin: str) -> str:
    return asin[:9]


def _request_info(success: bool = True) -> dict:
    return {"success": success, "credits_used": 1, "credits_remaining": 1000}


def _mock_family(asin: str) -> dict:
    """Describe the mock family an ASIN belongs to."""
    key = _family_key(asin)
    rng = _rng(key)
    count = rng.randint(2, 5)
    has_size = rng.random() > 0.5
    colors = rng.sample(COLORS, k=min(count, len(COLORS)))

    variants = []
    for i in range(1, count + 1):
        dims = [{"name": "Color", "value": colors[(i - 1) % len(colors)]}]
        if has_size:
            dims.append({"name": "Size", "value": SIZES[(i - 1) % len(SIZES)]})
        variants.append({"asin": f"{key}{i}", "dimensions": dims})

    return {
        "parent_asin": f"{key}0",
        "base_title": f"Mock {rng.choice(['Widget', 'Bottle', 'Jacket', 'Lamp'])} {key[-3:]}",
        "category": rng.choice(CATEGORIES),
        "variants": variants,
    }


def get_mock_product_response(asin: str) -> dict:
    """Generate a mock product response for an ASIN."""
    if not asin or asin.endswith("9"):
        return {"request_info": _request_info()}

    family = _mock_family(asin)
    parent_asin = family["parent_asin"]
    base_title = family["base_title"]

    variants = []
    current = None
    for v in family["variants"]:
        suffix = ", ".join(d["value"] for d in v["dimensions"])
        entry = {
            "asin": v["asin"],
            "title": f"{base_title}, {suffix}",
            "is_current_product": v["asin"] == asin,
            "dimensions": v["dimensions"],
        }
        variants.append(entry)
        if entry["is_current_product"]:
            current = entry

    # The first variant is listed under the parent's own title
    title = base_title
    stripped_title = base_title
    if current is not None and current["asin"] != variants[0]["asin"]:
        title = current["title"]
        stripped_title = f"{base_title} ({current['dimensions'][0]['value']})"

    return {
        "request_info": _request_info(),
        "product": {
            "asin": asin,
            "parent_asin": parent_asin,
            "title": title,
            "title_excluding_variant_name": stripped_title,
            "categories": [{"name": "All Departments"}, {"name": family["category"]}],
            "variants": variants,
            "buybox_winner": {
                "price": {"value": round(_rng(asin).uniform(9.99, 99.99), 2), "currency": "USD"},
                "availability": {"type": "in_stock"},
            },
        },
    }


def get_mock_store_response(store_id: str, category_id: str | None = None) -> dict:
    """Generate a mock store listing, optionally for one store category."""
    rng = _rng(f"{store_id}:{category_id or ''}")
    prefix = f"B{zlib.crc32(store_id.encode('utf-8')) % 10**7:07d}"

    results = []
    for i in range(rng.randint(2, 4)):
        family = chr(ord("A") + rng.randint(0, 5))
        results.append({"asin": f"{prefix}{family}{rng.randint(1, 5)}"})

    response = {"request_info": _request_info(), "store_results": results}
    if category_id is None:
        response["categories"] = [
            {"category_id": f"{store_id}-{n}", "name": name}
            for n, name in enumerate(CATEGORIES[:2], start=1)
        ]
    return response
