"""Screen-scoped checkout context."""

import logging
from collections.abc import Callable

from checkout_schemas import Address, LoyaltyBalance

from apps.checkout.clients.base import StoreAPI
from apps.checkout.exceptions import StoreAuthError
from apps.checkout.services.ingredients import IngredientPriceCache

logger = logging.getLogger(__name__)


class CheckoutContext:
    """
    Everything a checkout session shares, created when the screen mounts.

    Holds the store client, the session caches (saved addresses, loyalty
    balance, ingredient prices), the non-fatal notices shown to the
    customer, and the teardown callbacks registered by components.
    Caches are only refreshed on explicit invalidation.
    """

    def __init__(
        self,
        client: StoreAPI,
        user_id: int | None = None,
        owns_client: bool = False,
    ) -> None:
        self.client = client
        self.user_id = user_id
        self.ingredient_prices = IngredientPriceCache(client)
        self.notices: list[str] = []
        self._owns_client = owns_client
        self._addresses: list[Address] | None = None
        self._balance: LoyaltyBalance | None = None
        self._teardowns: list[Callable[[], None]] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    # =========================================================================
    # Session caches
    # =========================================================================

    async def load_addresses(self, refresh: bool = False) -> list[Address]:
        """Saved addresses, fetched once per session unless refresh is set."""
        if self._addresses is None or refresh:
            self._addresses = await self.client.fetch_addresses()
        return list(self._addresses)

    def cache_addresses(self, addresses: list[Address]) -> None:
        """Replace the cached list after a local merge."""
        self._addresses = list(addresses)

    def invalidate_addresses(self) -> None:
        self._addresses = None

    async def load_balance(self, refresh: bool = False) -> LoyaltyBalance:
        """Loyalty balance, fetched once per session unless refresh is set."""
        if self._balance is None or refresh:
            if self.user_id is None:
                raise StoreAuthError("Customer is not authenticated")
            self._balance = await self.client.fetch_loyalty_balance(self.user_id)
        return self._balance

    def invalidate_balance(self) -> None:
        self._balance = None

    # =========================================================================
    # Notices and lifecycle
    # =========================================================================

    def add_notice(self, message: str) -> None:
        """Record a non-fatal message for the customer."""
        self.notices.append(message)

    def pop_notices(self) -> list[str]:
        notices, self.notices = self.notices, []
        return notices

    def on_teardown(self, callback: Callable[[], None]) -> None:
        """Register a callback to run when the session ends."""
        self._teardowns.append(callback)

    async def close(self) -> None:
        """End the session: run teardowns, drop caches, close an owned client."""
        if self._closed:
            return
        self._closed = True

        while self._teardowns:
            self._teardowns.pop()()

        self.ingredient_prices.cancel_pending()
        self._addresses = None
        self._balance = None

        if self._owns_client:
            await self.client.close()
