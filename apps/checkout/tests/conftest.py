"""
Pytest configuration for checkout tests.
"""

from decimal import Decimal

import pytest
from checkout_schemas import Address, CartSnapshot, LoyaltyBalance, StoreSettings

from apps.checkout.clients.mock import MockStoreClient
from apps.checkout.services.context import CheckoutContext
from apps.checkout.tests.factories import (
    AddressFactory,
    CartItemFactory,
    CartSnapshotFactory,
)


@pytest.fixture
def cart() -> CartSnapshot:
    """Cart with a 50.00 subtotal."""
    return CartSnapshotFactory(
        items=[
            CartItemFactory(item_subtotal=Decimal("30.00")),
            CartItemFactory(item_subtotal=Decimal("20.00")),
        ]
    )


@pytest.fixture
def addresses() -> list[Address]:
    """Two saved addresses, the second one the default."""
    return [
        AddressFactory(id=1, number="10"),
        AddressFactory(id=2, number="20", is_default=True),
    ]


@pytest.fixture
def store_settings() -> StoreSettings:
    """Delivery fee of 5.50 and default loyalty rates."""
    return StoreSettings(delivery_fee=Decimal("5.50"))


@pytest.fixture
def mock_client(
    cart: CartSnapshot, addresses: list[Address], store_settings: StoreSettings
) -> MockStoreClient:
    """Mock store client seeded with the test cart and addresses."""
    return MockStoreClient(
        cart=cart,
        addresses=addresses,
        balance=LoyaltyBalance(current_balance=300),
        store_settings=store_settings,
    )


@pytest.fixture
def context(mock_client: MockStoreClient) -> CheckoutContext:
    """Checkout context for user 42 around the mock client."""
    return CheckoutContext(mock_client, user_id=42)
