"""Shared test fixtures for the checkout test suite."""

import pytest

from pathlib import Path
from uuid import UUID

from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
# override=True ensures .env takes precedence over shell env vars
load_dotenv(Path(__file__).parent.parent / ".env", override=True)

# Reset vault client singleton to pick up env vars
import clients.vault_client as vault_module
vault_module._vault_client_instance = None
vault_module._secret_cache.clear()

from core.config import PricingConfig
from utils.user_context import customer_context, clear_current_customer_id


# =============================================================================
# TEST CUSTOMER CONSTANTS
# =============================================================================

# Primary test customer - use for single-customer tests
TEST_CUSTOMER_ID = UUID("00000000-0000-0000-0000-000000000001")

# Secondary test customer - use for eligibility and isolation tests
TEST_CUSTOMER_B_ID = UUID("00000000-0000-0000-0000-000000000002")

# =============================================================================
# CUSTOMER CONTEXT FIXTURES
# =============================================================================

@pytest.fixture(autouse=True)
def reset_customer_context():
    """Ensure clean customer context before and after each test."""
    clear_current_customer_id()
    yield
    clear_current_customer_id()

@pytest.fixture
def test_customer_id() -> UUID:
    """The primary test customer's ID."""
    return TEST_CUSTOMER_ID

@pytest.fixture
def test_customer_b_id() -> UUID:
    """The secondary test customer's ID."""
    return TEST_CUSTOMER_B_ID

@pytest.fixture
def as_test_customer(test_customer_id):
    """Run the test as the primary test customer."""
    with customer_context(test_customer_id):
        yield test_customer_id

# =============================================================================
# CONFIG FIXTURES
# =============================================================================

@pytest.fixture
def pricing_config() -> PricingConfig:
    """Store defaults: 18% tax, 100 shipping below 1000."""
    return PricingConfig()

