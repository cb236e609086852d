"""Base store client protocol - interface to the store REST API."""

from decimal import Decimal
from typing import Protocol, runtime_checkable

from checkout_schemas import (
    Address,
    AddressInput,
    CartSnapshot,
    IngredientReference,
    LoyaltyBalance,
    OrderDraft,
    OrderResult,
)


@runtime_checkable
class StoreAPI(Protocol):
    """
    Protocol defining the collaborators the checkout engine consumes.

    Both the HTTP client and the in-memory mock implement this interface.
    Responses are normalized into checkout_schemas models here, at the
    boundary, so nothing downstream inspects raw payloads.
    """

    # =========================================================================
    # Cart
    # =========================================================================

    async def fetch_cart(self) -> CartSnapshot:
        """
        Get the current cart with server-computed item subtotals.

        Raises:
            StoreAPIError: If the API request fails.
            StoreConnectionError: If the store cannot be reached.
        """
        ...

    async def clear_cart(self) -> None:
        """Empty the customer's cart."""
        ...

    # =========================================================================
    # Addresses
    # =========================================================================

    async def fetch_addresses(self) -> list[Address]:
        """Get the customer's saved addresses."""
        ...

    async def create_address(self, data: AddressInput) -> Address:
        """
        Save a new address.

        Args:
            data: Validated address input.

        Returns:
            The stored address, with its id.
        """
        ...

    async def update_address(self, address_id: int, data: AddressInput) -> Address:
        """Replace the fields of a saved address."""
        ...

    async def set_default_address(self, address_id: int) -> None:
        """Mark an address as the customer's default."""
        ...

    # =========================================================================
    # Loyalty and store settings
    # =========================================================================

    async def fetch_loyalty_balance(self, user_id: int) -> LoyaltyBalance:
        """Get the point balance of a customer."""
        ...

    async def fetch_delivery_fee(self) -> Decimal:
        """System delivery fee charged on delivery orders."""
        ...

    async def fetch_redemption_rate(self) -> int:
        """Points that make up one currency unit of discount."""
        ...

    async def fetch_earn_rate(self) -> Decimal:
        """Currency spent per loyalty point earned."""
        ...

    # =========================================================================
    # Ingredients
    # =========================================================================

    async def fetch_ingredient_reference(
        self, ingredient_id: int
    ) -> IngredientReference:
        """Get the reference unit price of an ingredient."""
        ...

    # =========================================================================
    # Orders
    # =========================================================================

    async def submit_order(self, draft: OrderDraft) -> OrderResult:
        """
        Place an order.

        Args:
            draft: Submission-ready order.

        Returns:
            Order id and confirmation code.

        Raises:
            OrderRejectedError: If the store refuses the order with an error code.
            StoreAPIError: If the API request fails otherwise.
            StoreConnectionError: If the store cannot be reached.
        """
        ...

    async def close(self) -> None:
        """Release network resources."""
        ...
