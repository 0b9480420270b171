"""Tests for line item valuation."""

import logging
from decimal import Decimal
from uuid import uuid4

from core.config import PricingConfig
from core.models import LineItem, PriceSource, RefType, SkippedEntry
from core.pricing import valuate, valuate_cart
from factories import make_entry, make_record, make_variant


class TestSellingPrice:
    """Fallback chain: variant -> record -> cart snapshot -> fallback."""

    def test_variant_price_wins(self):
        variant = make_variant("650", mrp=Decimal("800"))
        record = make_record("500", mrp=Decimal("600"), variants=[variant])
        entry = make_entry(record, variant_id=variant.id, stored_price=Decimal("1"))

        item = valuate(entry, record)

        assert item.selling_price == Decimal("650.00")
        assert item.original_price == Decimal("800.00")
        assert item.price_source == PriceSource.VARIANT
        assert item.variant_id == variant.id
        assert item.name == "Brass Diya (Large)"

    def test_record_price_when_variant_has_none(self):
        variant = make_variant(None)
        record = make_record("500", mrp=Decimal("600"), variants=[variant])

        item = valuate(make_entry(record, variant_id=variant.id), record)

        assert item.selling_price == Decimal("500.00")
        assert item.original_price == Decimal("600.00")
        assert item.price_source == PriceSource.CATALOG

    def test_unknown_variant_falls_back_to_record(self):
        record = make_record("500", variants=[make_variant("650")])

        item = valuate(make_entry(record, variant_id=uuid4()), record)

        assert item.selling_price == Decimal("500.00")
        assert item.variant_id is None

    def test_inactive_variant_falls_back_to_record(self):
        variant = make_variant("650", is_active=False)
        record = make_record("500", variants=[variant])

        item = valuate(make_entry(record, variant_id=variant.id), record)

        assert item.selling_price == Decimal("500.00")
        assert item.price_source == PriceSource.CATALOG
        assert item.variant_id is None

    def test_cart_snapshot_when_catalog_has_no_price(self):
        record = make_record(None, mrp=Decimal("999"))
        entry = make_entry(record, stored_price=Decimal("420"))

        item = valuate(entry, record)

        assert item.selling_price == Decimal("420.00")
        assert item.price_source == PriceSource.CART_SNAPSHOT
        # MRP belongs to the catalog price, not the snapshot
        assert item.original_price == Decimal("420.00")

    def test_zero_price_falls_through(self):
        record = make_record("0")
        entry = make_entry(record, stored_price=Decimal("250"))

        assert valuate(entry, record).selling_price == Decimal("250.00")

    def test_fallback_is_logged(self, caplog):
        record = make_record(None)

        with caplog.at_level(logging.WARNING, logger="core.pricing.valuation"):
            item = valuate(make_entry(record), record, config=PricingConfig(fallback_unit_price=Decimal("75")))

        assert item.selling_price == Decimal("75.00")
        assert item.price_source == PriceSource.FALLBACK
        assert "fallback unit price" in caplog.text


class TestOriginalPrice:

    def test_missing_mrp_means_no_savings(self):
        record = make_record("500")

        item = valuate(make_entry(record, quantity=3), record)

        assert item.original_price == item.selling_price
        assert item.savings == Decimal("0.00")

    def test_mrp_below_selling_is_raised_to_selling(self):
        record = make_record("500", mrp=Decimal("450"))

        assert valuate(make_entry(record), record).original_price == Decimal("500.00")


class TestTaxRate:

    def test_fractional_record_rate_is_normalized(self):
        record = make_record("100", tax_rate=Decimal("0.12"))

        assert valuate(make_entry(record), record).tax_rate_percent == Decimal("12")

    def test_variant_rate_overrides_record_rate(self):
        variant = make_variant("100", tax_rate="5")
        record = make_record("100", tax_rate=Decimal("18"), variants=[variant])

        item = valuate(make_entry(record, variant_id=variant.id), record)

        assert item.tax_rate_percent == Decimal("5")

    def test_missing_rate_uses_configured_default(self):
        record = make_record("100", tax_rate=None)
        config = PricingConfig(default_tax_rate_percent=Decimal("12"))

        assert valuate(make_entry(record), record, config=config).tax_rate_percent == Decimal("12")


class TestMissingRecord:

    def test_missing_record_is_skipped_not_zero_priced(self, caplog):
        entry = make_entry(quantity=2, ref_type=RefType.BUNDLE)

        with caplog.at_level(logging.WARNING, logger="core.pricing.valuation"):
            result = valuate(entry, None)

        assert isinstance(result, SkippedEntry)
        assert result.ref_id == entry.ref_id
        assert result.quantity == 2
        assert result.reason == "Bundle is no longer available"
        assert f"Bundle {entry.ref_id} not found" in caplog.text

    def test_inactive_record_is_skipped(self):
        record = make_record("500", is_active=False)

        result = valuate(make_entry(record), record)

        assert isinstance(result, SkippedEntry)
        assert result.reason == "Product is no longer available"


class TestValuateCart:

    def test_preserves_order_and_splits_skipped(self):
        first = make_record("100")
        second = make_record("200", ref_type=RefType.BUNDLE)
        gone = make_entry()
        entries = [make_entry(second), gone, make_entry(first, quantity=2)]
        records = {(r.ref_type, r.id): r for r in (first, second)}

        items, skipped = valuate_cart(entries, records)

        assert [i.ref_id for i in items] == [second.id, first.id]
        assert all(isinstance(i, LineItem) for i in items)
        assert items[1].line_total == Decimal("200.00")
        assert [s.ref_id for s in skipped] == [gone.ref_id]

    def test_same_id_different_type_does_not_match(self):
        record = make_record("100")
        entry = make_entry(ref_type=RefType.BUNDLE, ref_id=record.id)

        items, skipped = valuate_cart([entry], {(RefType.PRODUCT, record.id): record})

        assert items == []
        assert len(skipped) == 1
