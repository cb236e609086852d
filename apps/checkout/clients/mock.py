"""Mock store client for development and testing."""

import asyncio
import itertools
import uuid
from decimal import Decimal

from checkout_schemas import (
    Address,
    AddressInput,
    CartItem,
    CartSnapshot,
    IngredientReference,
    LoyaltyBalance,
    OrderDraft,
    OrderResult,
    StoreSettings,
)

from apps.checkout.exceptions import (
    OrderRejectedError,
    StoreAPIError,
    StoreConnectionError,
)


def _default_cart() -> CartSnapshot:
    """Generate a default test cart."""
    return CartSnapshot(
        cart_id=1,
        items=[
            CartItem(
                id=1,
                product_id=10,
                name="Royal Burger",
                quantity=2,
                item_subtotal=Decimal("39.80"),
            ),
            CartItem(
                id=2,
                product_id=22,
                name="Fries",
                quantity=1,
                notes="No salt",
                item_subtotal=Decimal("10.20"),
            ),
        ],
    )


def _default_addresses() -> list[Address]:
    """Generate default saved addresses."""
    return [
        Address(
            id=1,
            street="Rua das Flores",
            number="120",
            neighborhood="Centro",
            city="Campinas",
            state="SP",
            zip_code="13010000",
            is_default=True,
        ),
        Address(
            id=2,
            street="Avenida Brasil",
            number="455",
            complement="Apto 12",
            neighborhood="Jardim",
            city="Campinas",
            state="SP",
            zip_code="13020111",
        ),
    ]


class MockStoreClient:
    """
    Mock store client for development and testing.

    Provides configurable behavior for simulating:
    - Cart contents, saved addresses and point balance
    - Store settings (delivery fee, loyalty rates)
    - Order rejections with business error codes
    - Transport failures and slow responses

    Usage:
        client = MockStoreClient(
            balance=LoyaltyBalance(current_balance=300),
            reject_orders_with="STORE_CLOSED",
        )
    """

    def __init__(
        self,
        cart: CartSnapshot | None = None,
        addresses: list[Address] | None = None,
        balance: LoyaltyBalance | None = None,
        store_settings: StoreSettings | None = None,
        ingredients: dict[int, IngredientReference] | None = None,
        reject_orders_with: str | None = None,
        unreachable: set[str] | None = None,
        api_delay_ms: int = 0,
    ) -> None:
        """
        Initialize mock client.

        Args:
            cart: Cart to return. Uses a default two-item cart if None.
            addresses: Saved addresses. Uses two default addresses if None.
            balance: Loyalty balance. Zero points if None.
            store_settings: Delivery fee and rates. R$ 5,50 fee if None.
            ingredients: Ingredient reference data by id.
            reject_orders_with: Business error code every order is refused with.
            unreachable: Operation names that fail with a connection error,
                e.g. {"fetch_addresses", "submit_order"}.
            api_delay_ms: Simulated API delay in milliseconds.
        """
        self._cart = cart if cart is not None else _default_cart()
        self._addresses = addresses if addresses is not None else _default_addresses()
        self._balance = balance or LoyaltyBalance()
        self._settings = store_settings or StoreSettings(delivery_fee=Decimal("5.50"))
        self._ingredients = ingredients or {}
        self._reject_orders_with = reject_orders_with
        self._unreachable = unreachable or set()
        self._api_delay_ms = api_delay_ms
        self._address_ids = itertools.count(
            max((a.id for a in self._addresses), default=0) + 1
        )
        self._order_ids = itertools.count(1000)

        # Track submitted orders and lookups for assertions
        self.submitted: list[OrderDraft] = []
        self.ingredient_requests: list[int] = []
        self.closed = False

    async def _call(self, operation: str) -> None:
        if self._api_delay_ms > 0:
            await asyncio.sleep(self._api_delay_ms / 1000)
        if operation in self._unreachable:
            raise StoreConnectionError(f"Mock store unreachable: {operation}")

    # =========================================================================
    # Configuration methods (for test setup)
    # =========================================================================

    def set_unreachable(self, *operations: str) -> None:
        """Make operations fail with a connection error."""
        self._unreachable.update(operations)

    def set_reachable(self, *operations: str) -> None:
        """Restore operations."""
        self._unreachable.difference_update(operations)

    def reject_orders_with(self, code: str | None) -> None:
        """Refuse every order with a business error code (None to accept)."""
        self._reject_orders_with = code

    # =========================================================================
    # Cart
    # =========================================================================

    async def fetch_cart(self) -> CartSnapshot:
        """Get the current cart."""
        await self._call("fetch_cart")
        return self._cart.model_copy(deep=True)

    async def clear_cart(self) -> None:
        """Empty the cart."""
        await self._call("clear_cart")
        self._cart = CartSnapshot(cart_id=self._cart.cart_id)

    # =========================================================================
    # Addresses
    # =========================================================================

    async def fetch_addresses(self) -> list[Address]:
        """Get saved addresses."""
        await self._call("fetch_addresses")
        return [address.model_copy() for address in self._addresses]

    async def create_address(self, data: AddressInput) -> Address:
        """Save a new address."""
        await self._call("create_address")
        address = Address(id=next(self._address_ids), **data.to_payload())
        self._addresses.append(address)
        return address.model_copy()

    async def update_address(self, address_id: int, data: AddressInput) -> Address:
        """Replace the fields of a saved address."""
        await self._call("update_address")
        for index, existing in enumerate(self._addresses):
            if existing.id == address_id:
                updated = Address(id=address_id, **data.to_payload())
                self._addresses[index] = updated
                return updated.model_copy()

        raise StoreAPIError(
            f"Address not found: {address_id}",
            status_code=404,
        )

    async def set_default_address(self, address_id: int) -> None:
        """Mark an address as the default."""
        await self._call("set_default_address")
        if not any(a.id == address_id for a in self._addresses):
            raise StoreAPIError(f"Address not found: {address_id}", status_code=404)
        self._addresses = [
            a.model_copy(update={"is_default": a.id == address_id})
            for a in self._addresses
        ]

    # =========================================================================
    # Loyalty and store settings
    # =========================================================================

    async def fetch_loyalty_balance(
        self,
        user_id: int,  # noqa: ARG002
    ) -> LoyaltyBalance:
        """Get the point balance."""
        await self._call("fetch_loyalty_balance")
        return self._balance.model_copy()

    async def fetch_delivery_fee(self) -> Decimal:
        """System delivery fee."""
        await self._call("fetch_delivery_fee")
        return self._settings.delivery_fee

    async def fetch_redemption_rate(self) -> int:
        """Points per currency unit of discount."""
        await self._call("fetch_redemption_rate")
        return self._settings.loyalty_rates.redemption_points_per_unit

    async def fetch_earn_rate(self) -> Decimal:
        """Currency spent per point earned."""
        await self._call("fetch_earn_rate")
        return self._settings.loyalty_rates.earn_currency_per_point

    # =========================================================================
    # Ingredients
    # =========================================================================

    async def fetch_ingredient_reference(
        self, ingredient_id: int
    ) -> IngredientReference:
        """Get the reference unit price of an ingredient."""
        self.ingredient_requests.append(ingredient_id)
        await self._call("fetch_ingredient_reference")
        if ingredient_id not in self._ingredients:
            raise StoreAPIError(
                f"Ingredient not found: {ingredient_id}",
                status_code=404,
            )
        return self._ingredients[ingredient_id]

    # =========================================================================
    # Orders
    # =========================================================================

    async def submit_order(self, draft: OrderDraft) -> OrderResult:
        """Place an order in the mock store."""
        await self._call("submit_order")

        if self._reject_orders_with:
            raise OrderRejectedError(
                f"Mock order rejected: {self._reject_orders_with}",
                status_code=400,
                code=self._reject_orders_with,
            )

        if draft.use_cart and self._cart.is_empty:
            raise OrderRejectedError(
                "Cart is empty",
                status_code=400,
                code="EMPTY_CART",
            )

        self.submitted.append(draft)
        return OrderResult(
            order_id=next(self._order_ids),
            confirmation_code=uuid.uuid4().hex[:8].upper(),
        )

    async def close(self) -> None:
        """Nothing to release."""
        self.closed = True
