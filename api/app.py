"""FastAPI application wiring."""

from fastapi import FastAPI

from api.base import success_response
from api.checkout import create_checkout_router
from api.errors import register_error_handlers
from api.middleware import CustomerContextMiddleware, RequestIDMiddleware
from clients.postgres_client import PostgresClient
from clients.vault_client import get_database_url
from core.audit import AuditLogger
from core.config import PricingConfig, load_pricing_config
from core.event_bus import EventBus
from core.services.cart_service import CartService
from core.services.catalog_service import CatalogService
from core.services.checkout_service import CheckoutService
from core.services.coupon_service import CouponService
from core.services.order_service import OrderService


def create_services(
    postgres: PostgresClient,
    config: PricingConfig | None = None,
    event_bus: EventBus | None = None,
) -> dict:
    """Build the checkout services around one database client."""
    config = config or PricingConfig()
    event_bus = event_bus or EventBus()

    catalog = CatalogService(postgres)
    carts = CartService(postgres)
    coupons = CouponService(postgres)
    audit = AuditLogger(postgres)

    return {
        "catalog": catalog,
        "cart": carts,
        "coupon": coupons,
        "checkout": CheckoutService(catalog, carts, coupons, config),
        "order": OrderService(postgres, catalog, carts, coupons, audit, event_bus, config),
        "event_bus": event_bus,
    }


def create_app(services: dict) -> FastAPI:
    """FastAPI app with request IDs, customer context, error handlers and checkout routes."""
    app = FastAPI(title="Storefront Checkout")
    # Last added runs first: request ID must exist before the customer check
    app.add_middleware(CustomerContextMiddleware)
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    @app.get("/health")
    async def health():
        return success_response({"status": "ok"}).model_dump(mode="json")

    app.include_router(create_checkout_router(services), prefix="/api")

    return app


def create_default_app() -> FastAPI:
    """
    Production app: database URL and pricing overrides come from Vault.

    Usable as an ASGI factory (e.g. `uvicorn --factory api.app:create_default_app`).
    """
    postgres = PostgresClient(get_database_url())
    return create_app(create_services(postgres, load_pricing_config()))
