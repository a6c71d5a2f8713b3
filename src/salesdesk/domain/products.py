"""Product catalog normalisation.

Each catalog table has its own column set.  Rows are turned into the
``Laptop`` / ``Desktop`` / ``Accessory`` variants with a computed display
name, numeric price and stock status.
"""

from __future__ import annotations

import re
import uuid
from collections.abc import Callable, Iterable, Mapping
from dataclasses import asdict
from typing import Any

from salesdesk.domain.models import (
    Accessory,
    Category,
    Desktop,
    Laptop,
    Product,
    StockStatus,
)

DEFAULT_LOW_STOCK_THRESHOLD = 5

_NUMBER = re.compile(r"\d+(?:\.\d+)?")

_CATEGORY_ALIASES: dict[str, Category] = {
    "laptop": "laptops",
    "laptops": "laptops",
    "desktop": "desktops",
    "desktops": "desktops",
    "accessory": "accessories",
    "accessories": "accessories",
}

_ACTION_PREFIX: dict[Category, str] = {
    "laptops": "laptop",
    "desktops": "desktop",
    "accessories": "accessory",
}


def resolve_category(name: str) -> Category | None:
    """Map a singular/plural category name to its canonical table name."""
    return _CATEGORY_ALIASES.get(name.strip().lower())


def action_prefix(category: str) -> str:
    """Return the database proxy action suffix for *category* (``laptop`` ...).

    Raises ``ValueError`` for a category with no catalog table.
    """
    resolved = resolve_category(category)
    if resolved is None:
        raise ValueError(f"Unknown product category: {category}")
    return _ACTION_PREFIX[resolved]


def parse_price(value: Any) -> float | None:
    """Pull the first number out of a free-form price range such as ``"45,000 - 50,000"``."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        return None
    match = _NUMBER.search(value.replace(",", ""))
    return float(match.group(0)) if match else None


def compute_status(
    stock: int | None, low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD
) -> StockStatus:
    """Derive the stock status; unknown stock counts as active."""
    if stock is None:
        return "active"
    if stock <= 0:
        return "out_of_stock"
    if stock <= low_stock_threshold:
        return "low_stock"
    return "active"


def _row_id(raw: Mapping[str, Any]) -> str:
    row_number = raw.get("row_number")
    return str(row_number) if row_number is not None else uuid.uuid4().hex


def _int_or_none(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _text(raw: Mapping[str, Any], key: str, default: str = "") -> str:
    value = raw.get(key)
    return str(value) if value else default


def _brand_model_name(raw: Mapping[str, Any], fallback: str) -> str:
    name = f"{raw.get('brand') or ''} {raw.get('model') or ''}".strip()
    return name or fallback


def _shared_fields(
    raw: Mapping[str, Any], price_key: str, threshold: int
) -> dict[str, Any]:
    stock = _int_or_none(raw.get("stock_quantity"))
    updated_at = raw.get("updated_at")
    return {
        "price_range": _text(raw, price_key),
        "price": parse_price(raw.get(price_key)),
        "stock_quantity": stock,
        "status": compute_status(stock, threshold),
        "image_url_1": raw.get("image_url_1") or None,
        "image_url_2": raw.get("image_url_2") or None,
        "updated_at": str(updated_at) if updated_at else None,
    }


def normalize_laptop(
    raw: Mapping[str, Any], low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD
) -> Laptop:
    row_id = _row_id(raw)
    return Laptop(
        id=row_id,
        display_name=_brand_model_name(raw, f"Laptop {row_id}"),
        brand=_text(raw, "brand"),
        model=_text(raw, "model"),
        processor=_text(raw, "processor"),
        generation=_text(raw, "generation"),
        ram_gb=_int_or_none(raw.get("ram_gb")),
        storage_type=_text(raw, "storage_type"),
        storage_gb=_int_or_none(raw.get("storage_gb")),
        screen_size=_text(raw, "screen_size"),
        graphics=_text(raw, "graphics"),
        condition=_text(raw, "condition", "Used"),
        special_feature=_text(raw, "special_feature"),
        warranty_in_months=_int_or_none(raw.get("warranty_in_months")),
        **_shared_fields(raw, "price_range", low_stock_threshold),
    )


def normalize_desktop(
    raw: Mapping[str, Any], low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD
) -> Desktop:
    row_id = _row_id(raw)
    return Desktop(
        id=row_id,
        display_name=_brand_model_name(raw, f"Desktop {row_id}"),
        brand=_text(raw, "brand"),
        model=_text(raw, "model"),
        processor=_text(raw, "processor"),
        generation=_text(raw, "generation"),
        ram_gb=_int_or_none(raw.get("ram_gb")),
        ram_type=_text(raw, "ram_type"),
        storage_gb=_int_or_none(raw.get("storage_gb")),
        monitor_size=_text(raw, "monitor_size"),
        graphics=_text(raw, "graphics"),
        condition=_text(raw, "condition", "Used"),
        special_feature=_text(raw, "special_feature"),
        warranty_in_months=_int_or_none(raw.get("warranty_in_months")),
        **_shared_fields(raw, "price_range", low_stock_threshold),
    )


def normalize_accessory(
    raw: Mapping[str, Any], low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD
) -> Accessory:
    row_id = _row_id(raw)
    return Accessory(
        id=row_id,
        display_name=raw.get("accessories_name") or f"Accessory {row_id}",
        name=_text(raw, "accessories_name"),
        **_shared_fields(raw, "price_range_inr", low_stock_threshold),
    )


_NORMALIZERS: dict[Category, Callable[..., Product]] = {
    "laptops": normalize_laptop,
    "desktops": normalize_desktop,
    "accessories": normalize_accessory,
}


def normalize_products(
    category: Category,
    rows: Iterable[Mapping[str, Any]],
    low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
) -> list[Product]:
    normalizer = _NORMALIZERS[category]
    return [normalizer(raw, low_stock_threshold) for raw in rows or []]


def product_to_record(product: Product) -> dict[str, Any]:
    """Flatten a product into the column mapping the database proxy writes.

    Computed fields (display name, numeric price, status) are dropped.
    """
    record = asdict(product)
    for computed in ("display_name", "price", "status", "updated_at"):
        record.pop(computed, None)
    if isinstance(product, Accessory):
        record["accessories_name"] = record.pop("name")
        record["price_range_inr"] = record.pop("price_range")
    record["category"] = product.category
    return record


def validate_product(product: Product) -> list[str]:
    """Return the required-field problems for a product submission."""
    errors: list[str] = []
    if isinstance(product, Accessory):
        if not product.name.strip():
            errors.append("Name is required")
    elif not product.brand.strip():
        errors.append("Brand is required")
    return errors
