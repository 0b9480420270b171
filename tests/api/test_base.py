"""Tests for the unified API response format and pricing error mapping."""

from uuid import UUID, uuid4

import pytest

from api.base import APIResponse, ErrorCodes, error_response, success_response
from api.errors import map_pricing_error
from core.exceptions import (
    CouponInvalid,
    EmptyCart,
    InputError,
    PricingError,
    PricingInconsistency,
    ReferenceMissing,
    StockInsufficient,
)


class TestSuccessResponse:

    def test_wraps_data(self):
        response = success_response({"amount_due": 1180.0})

        assert isinstance(response, APIResponse)
        assert response.success is True
        assert response.data == {"amount_due": 1180.0}
        assert response.error is None

    def test_generates_request_id_when_missing(self):
        UUID(success_response(None).meta.request_id)

    def test_uses_given_request_id(self):
        assert success_response(None, "req-1").meta.request_id == "req-1"


class TestErrorResponse:

    def test_wraps_error(self):
        response = error_response(ErrorCodes.EMPTY_CART, "Cart is empty", "req-2")

        assert response.success is False
        assert response.data is None
        assert response.error.code == "EMPTY_CART"
        assert response.error.message == "Cart is empty"
        assert response.meta.request_id == "req-2"


class TestMapPricingError:

    @pytest.mark.parametrize("exc,code,status", [
        (EmptyCart(), ErrorCodes.EMPTY_CART, 400),
        (CouponInvalid("Coupon has expired"), ErrorCodes.COUPON_INVALID, 400),
        (ReferenceMissing("product", uuid4()), ErrorCodes.ITEM_UNAVAILABLE, 404),
        (InputError("Expected a number"), ErrorCodes.INVALID_REQUEST, 400),
        (StockInsufficient("Brass Diya", 0, 1), ErrorCodes.STOCK_INSUFFICIENT, 409),
        (PricingInconsistency("total mismatch"), ErrorCodes.PRICING_INCONSISTENCY, 500),
    ])
    def test_maps_each_error(self, exc, code, status):
        assert map_pricing_error(exc) == (code, status)

    def test_unknown_pricing_error_is_internal(self):
        assert map_pricing_error(PricingError("?")) == (ErrorCodes.INTERNAL_ERROR, 500)
