"""API test fixtures: TestClient over the checkout app with mocked services."""

from unittest.mock import Mock

import pytest
from starlette.testclient import TestClient

from api.app import create_app
from core.services.checkout_service import CheckoutService
from core.services.order_service import OrderService


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def checkout_service():
    return Mock(spec=CheckoutService)


@pytest.fixture
def order_service():
    return Mock(spec=OrderService)


@pytest.fixture
def services(checkout_service, order_service):
    return {
        "checkout": checkout_service,
        "order": order_service,
    }


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def app(services):
    """Checkout app with middleware, error handlers and routes."""
    return create_app(services)


@pytest.fixture
def client(app, test_customer_id):
    """Client acting as the primary test customer."""
    c = TestClient(app, raise_server_exceptions=False)
    c.headers["X-Customer-ID"] = str(test_customer_id)
    return c


@pytest.fixture
def anonymous_client(app):
    """Client without a customer identity."""
    return TestClient(app, raise_server_exceptions=False)
