"""Tests for core domain models - custom validators and derived values only."""

import pytest
from decimal import Decimal
from pydantic import ValidationError
from uuid import uuid4

from factories import make_coupon, make_line_item, make_record, make_variant


class TestLineItem:
    """LineItem validators and computed line total."""

    def test_line_total_is_selling_price_times_quantity(self):
        item = make_line_item("33.33", quantity=3)

        assert item.line_total == Decimal("99.99")

    def test_selling_price_rounded_on_input(self):
        assert make_line_item("10.005").selling_price == Decimal("10.01")

    def test_original_price_defaults_to_selling(self):
        item = make_line_item("250", quantity=2)

        assert item.original_price == Decimal("250.00")
        assert item.savings == Decimal("0.00")

    def test_rejects_zero_quantity(self):
        with pytest.raises(ValidationError):
            make_line_item("100", quantity=0)

    def test_rejects_negative_price(self):
        with pytest.raises(ValidationError):
            make_line_item("-1")

    def test_rejects_non_canonical_rate(self):
        with pytest.raises(ValidationError):
            make_line_item("100", tax_rate_percent="118")

    def test_is_frozen(self):
        item = make_line_item("100")

        with pytest.raises(ValidationError):
            item.quantity = 5

    def test_json_dump_uses_numbers(self):
        data = make_line_item("19.90", quantity=2).model_dump(mode="json")

        assert data["selling_price"] == 19.9
        assert data["line_total"] == 39.8


class TestCoupon:
    """Coupon normalizers and validators."""

    def test_code_upper_cased(self):
        assert make_coupon(" festive10 ").code == "FESTIVE10"

    def test_null_arrays_read_as_empty(self):
        coupon = make_coupon(specific_products=None, allowed_users=None)

        assert coupon.specific_products == []
        assert coupon.allowed_users == []

    def test_percentage_over_hundred_rejected(self):
        with pytest.raises(ValidationError, match="cannot exceed 100%"):
            make_coupon(discount_value="120")

    def test_fixed_over_hundred_allowed(self):
        from core.models import DiscountType

        assert make_coupon("FLAT500", DiscountType.FIXED, "500").discount_value == Decimal("500")

    def test_remaining_uses(self):
        assert make_coupon(usage_limit=10, usage_count=7).remaining_uses == 3
        assert make_coupon(usage_limit=None).remaining_uses is None


class TestCatalogRecord:
    """Variant lookup and stock."""

    def test_stock_for_variant(self):
        variant = make_variant("100", stock=4)
        record = make_record(variants=[variant], stock_quantity=50)

        assert record.stock_for(variant.id) == 4

    def test_stock_for_unknown_variant_is_zero(self):
        record = make_record(variants=[make_variant("100")])

        assert record.stock_for(uuid4()) == 0

    def test_inactive_variant_has_no_stock(self):
        variant = make_variant("100", stock=4, is_active=False)
        record = make_record(variants=[variant], stock_quantity=50)

        assert record.find_variant(variant.id) is None
        assert record.stock_for(variant.id) == 0

    def test_variant_requested_on_product_without_variants(self):
        assert make_record(stock_quantity=50).stock_for(uuid4()) == 0

    def test_untracked_stock(self):
        assert make_record(stock_quantity=None).stock_for(None) is None


class TestCheckoutPreview:

    def test_empty_preview_is_zeroed(self):
        from core.models import CheckoutPreview

        preview = CheckoutPreview()

        assert preview.is_empty is True
        assert preview.breakdown.amount_due == Decimal("0.00")
        assert preview.skipped_count == 0


class TestOrderPricingRecord:

    def test_from_breakdown_carries_every_figure(self):
        from core.models import Breakdown, OrderPricingRecord

        breakdown = Breakdown(
            subtotal=Decimal("100"), discount=Decimal("10"), tax=Decimal("18"),
            shipping=Decimal("100"), total=Decimal("218"), amount_due=Decimal("208"),
        )

        record = OrderPricingRecord.from_breakdown(breakdown, Decimal("25"))

        assert record.amount_due == Decimal("208")
        assert record.total_savings == Decimal("25")
        assert record.currency == "INR"
