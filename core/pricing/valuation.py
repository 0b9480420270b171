"""
Line item valuation.

Turns a raw cart entry plus its catalog record into a LineItem with a
resolved selling price, original price and canonical tax rate. Read-only.
"""

import logging
from decimal import Decimal
from typing import Any, Iterable, Mapping
from uuid import UUID

from core.config import PricingConfig
from core.exceptions import InputError, ReferenceMissing
from core.models import CartEntry, CatalogRecord, LineItem, PriceSource, RefType, SkippedEntry
from core.money import round_money
from core.pricing.tax import normalize_tax_rate

logger = logging.getLogger(__name__)

CatalogKey = tuple[RefType, UUID]


def _positive(value: Any) -> Decimal | None:
    """Price as money if it is a usable positive amount, else None."""
    if value is None:
        return None
    try:
        price = round_money(value)
    except InputError:
        return None
    return price if price > 0 else None


def _require_record(entry: CartEntry, record: CatalogRecord | None) -> CatalogRecord:
    """
    The record an entry can be sold from.

    Raises:
        ReferenceMissing: If the record was deleted or deactivated
    """
    if record is None or not record.is_active:
        raise ReferenceMissing(entry.ref_type.value, entry.ref_id)
    return record


def _resolve_selling_price(
    entry: CartEntry,
    record: CatalogRecord,
    config: PricingConfig,
) -> tuple[Decimal, PriceSource]:
    variant = record.find_variant(entry.variant_id)

    candidates = (
        (variant.price if variant else None, PriceSource.VARIANT),
        (record.base_price, PriceSource.CATALOG),
        (entry.stored_price, PriceSource.CART_SNAPSHOT),
    )
    for raw, source in candidates:
        price = _positive(raw)
        if price is not None:
            return price, source

    logger.warning(
        "No price for %s %s (variant=%s), using fallback unit price %s",
        record.ref_type.value, record.id, entry.variant_id, config.fallback_unit_price,
    )
    return round_money(config.fallback_unit_price), PriceSource.FALLBACK


def _resolve_original_price(entry: CartEntry, record: CatalogRecord, source: PriceSource) -> Decimal | None:
    # Only pair an MRP with the tier the selling price came from
    if source == PriceSource.VARIANT:
        return _positive(record.find_variant(entry.variant_id).mrp)
    if source == PriceSource.CATALOG:
        return _positive(record.mrp)
    return None


def valuate(
    entry: CartEntry,
    record: CatalogRecord | None,
    *,
    config: PricingConfig | None = None,
) -> LineItem | SkippedEntry:
    """
    Value one cart entry against its catalog record.

    Selling price: catalog variant price -> record base price -> cart snapshot
    -> configured fallback (logged). Original price: the matching MRP, or the
    selling price when there is none. Tax rate: variant rate, else record
    rate, else the default, always through normalize_tax_rate.

    Args:
        entry: Raw cart entry
        record: Freshly fetched catalog record, None if it no longer exists
        config: Pricing configuration

    Returns:
        LineItem, or SkippedEntry when the record is missing or inactive.
    """
    config = config or PricingConfig()

    try:
        record = _require_record(entry, record)
    except ReferenceMissing as e:
        logger.warning(f"Skipping cart entry: {e}")
        return SkippedEntry(
            ref_id=entry.ref_id,
            ref_type=entry.ref_type,
            variant_id=entry.variant_id,
            quantity=entry.quantity,
            reason=f"{entry.ref_type.value.capitalize()} is no longer available",
        )

    selling_price, source = _resolve_selling_price(entry, record, config)
    original_price = _resolve_original_price(entry, record, source)

    variant = record.find_variant(entry.variant_id)
    raw_rate = variant.tax_rate if variant and variant.tax_rate is not None else record.tax_rate
    tax_rate = normalize_tax_rate(raw_rate, default=config.default_tax_rate_percent)

    return LineItem(
        ref_id=record.id,
        ref_type=record.ref_type,
        variant_id=variant.id if variant else None,
        name=record.name if variant is None or not variant.name else f"{record.name} ({variant.name})",
        sku=(variant.sku if variant and variant.sku else record.sku),
        category_id=record.category_id,
        brand_id=record.brand_id,
        quantity=entry.quantity,
        selling_price=selling_price,
        original_price=original_price,
        tax_rate_percent=tax_rate,
        price_source=source,
    )


def valuate_cart(
    entries: Iterable[CartEntry],
    records: Mapping[CatalogKey, CatalogRecord],
    *,
    config: PricingConfig | None = None,
) -> tuple[list[LineItem], list[SkippedEntry]]:
    """
    Value every entry of a cart, preserving cart order.

    Args:
        entries: Cart entries
        records: Catalog records keyed by (ref_type, ref_id)

    Returns:
        (line items, skipped entries)
    """
    items: list[LineItem] = []
    skipped: list[SkippedEntry] = []

    for entry in entries:
        result = valuate(entry, records.get((entry.ref_type, entry.ref_id)), config=config)
        if isinstance(result, SkippedEntry):
            skipped.append(result)
        else:
            items.append(result)

    return items, skipped
