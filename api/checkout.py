"""Checkout endpoints: cart preview, price calculation, coupon check, order commit."""

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from api.base import success_response


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


class CalculateRequest(BaseModel):
    coupon_code: str | None = Field(None, max_length=20)


class CouponValidateRequest(BaseModel):
    code: str = Field(..., max_length=20)


class PlaceOrderRequest(BaseModel):
    coupon_code: str | None = Field(None, max_length=20)


def create_checkout_router(services: dict) -> APIRouter:
    router = APIRouter()

    checkout_svc = services["checkout"]
    order_svc = services["order"]

    @router.get("/checkout")
    async def get_checkout(request: Request):
        preview = checkout_svc.preview(request.state.customer_id)
        return success_response(
            preview.model_dump(mode="json"), _request_id(request)
        ).model_dump(mode="json")

    @router.post("/checkout/calculate")
    async def calculate(request: Request, body: CalculateRequest | None = None):
        coupon_code = body.coupon_code if body else None
        preview = checkout_svc.calculate(coupon_code, request.state.customer_id)
        return success_response(
            preview.model_dump(mode="json"), _request_id(request)
        ).model_dump(mode="json")

    @router.post("/coupons/validate")
    async def validate_coupon(request: Request, body: CouponValidateRequest):
        discount = checkout_svc.apply_coupon(body.code, request.state.customer_id)
        return success_response(
            discount.model_dump(mode="json"), _request_id(request)
        ).model_dump(mode="json")

    @router.post("/checkout/orders", status_code=201)
    async def place_order(request: Request, body: PlaceOrderRequest | None = None):
        coupon_code = body.coupon_code if body else None
        order = order_svc.place_order(coupon_code, request.state.customer_id)
        return success_response(
            order.model_dump(mode="json"), _request_id(request)
        ).model_dump(mode="json")

    return router
