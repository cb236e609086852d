"""
Ingredient reference prices.

The price cache is populated once per screen and shared by every lookup.
Price-dependent fields degrade to None while a price is unknown so a
pending fetch never shows up as a zero price.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable
from decimal import Decimal

from checkout_schemas import IngredientReference

from apps.checkout.clients.base import StoreAPI
from apps.checkout.exceptions import CheckoutError

logger = logging.getLogger(__name__)


def price_from_quantity(
    quantity: Decimal | None, unit_price: Decimal | None
) -> Decimal | None:
    """Total price of a quantity, or None while the unit price is unknown."""
    if unit_price is None or unit_price <= 0 or quantity is None or quantity < 0:
        return None
    return quantity * unit_price


def quantity_from_price(
    total: Decimal | None, unit_price: Decimal | None
) -> Decimal | None:
    """Quantity bought for a total price, or None while the unit price is unknown."""
    if unit_price is None or unit_price <= 0 or total is None or total < 0:
        return None
    return total / unit_price


class IngredientPriceCache:
    """
    Screen-scoped cache of ingredient reference prices.

    Concurrent requests for the same ingredient share a single fetch.
    Failed fetches are not cached, so a later request tries again.
    """

    def __init__(self, client: StoreAPI) -> None:
        self._client = client
        self._references: dict[int, IngredientReference] = {}
        self._pending: dict[int, asyncio.Task[IngredientReference | None]] = {}

    def get(self, ingredient_id: int) -> IngredientReference | None:
        """Cached reference, without fetching."""
        return self._references.get(ingredient_id)

    def unit_price(self, ingredient_id: int) -> Decimal | None:
        """Cached unit price, or None when unknown or not positive."""
        reference = self._references.get(ingredient_id)
        if reference is None or reference.unit_price <= 0:
            return None
        return reference.unit_price

    def is_pending(self, ingredient_id: int) -> bool:
        return ingredient_id in self._pending

    async def fetch(self, ingredient_id: int) -> IngredientReference | None:
        """Get a reference, fetching it unless cached or already in flight."""
        if ingredient_id in self._references:
            return self._references[ingredient_id]

        task = self._pending.get(ingredient_id)
        if task is None:
            task = asyncio.create_task(self._load(ingredient_id))
            self._pending[ingredient_id] = task

        # A cancelled waiter must not cancel the shared fetch
        return await asyncio.shield(task)

    async def prefetch(self, ingredient_ids: Iterable[int]) -> None:
        """Populate the cache for a batch of ingredients."""
        missing = {i for i in ingredient_ids if i not in self._references}
        if not missing:
            return
        await asyncio.gather(*(self.fetch(i) for i in sorted(missing)))

    async def _load(self, ingredient_id: int) -> IngredientReference | None:
        try:
            reference = await self._client.fetch_ingredient_reference(ingredient_id)
        except CheckoutError as e:
            logger.warning(
                "Failed to fetch ingredient %s reference price: %s",
                ingredient_id,
                e.message,
            )
            return None
        finally:
            self._pending.pop(ingredient_id, None)

        self._references[ingredient_id] = reference
        return reference

    def cancel_pending(self) -> None:
        """Cancel in-flight fetches (screen teardown)."""
        for task in self._pending.values():
            task.cancel()
        self._pending.clear()


class IngredientLookup:
    """
    Per-field ingredient lookup where the last selection wins.

    Every selection bumps a generation token and cancels the previous
    in-flight lookup; a response whose token is stale is discarded.

    Usage:
        lookup = IngredientLookup(cache, on_result=form.show_price)
        lookup.select(12)
        lookup.select(15)  # the answer for 12 is never applied
    """

    def __init__(
        self,
        cache: IngredientPriceCache,
        on_result: Callable[[IngredientReference | None], None] | None = None,
    ) -> None:
        self._cache = cache
        self._on_result = on_result
        self._generation = 0
        self._task: asyncio.Task[IngredientReference | None] | None = None
        self.selected_id: int | None = None
        self.current: IngredientReference | None = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def unit_price(self) -> Decimal | None:
        if self.current is None or self.current.unit_price <= 0:
            return None
        return self.current.unit_price

    def select(self, ingredient_id: int) -> asyncio.Task[IngredientReference | None]:
        """Start looking up an ingredient, superseding any earlier selection."""
        self._generation += 1
        if self._task is not None and not self._task.done():
            self._task.cancel()

        self.selected_id = ingredient_id
        self.current = None
        self._task = asyncio.create_task(self._resolve(ingredient_id, self._generation))
        return self._task

    async def _resolve(
        self, ingredient_id: int, generation: int
    ) -> IngredientReference | None:
        reference = await self._cache.fetch(ingredient_id)
        if generation != self._generation:
            logger.debug(
                "Discarding stale lookup for ingredient %s (generation %s < %s)",
                ingredient_id,
                generation,
                self._generation,
            )
            return None

        self.current = reference
        if self._on_result is not None:
            self._on_result(reference)
        return reference

    def price_from_quantity(self, quantity: Decimal | None) -> Decimal | None:
        return price_from_quantity(quantity, self.unit_price)

    def quantity_from_price(self, total: Decimal | None) -> Decimal | None:
        return quantity_from_price(total, self.unit_price)

    def cancel(self) -> None:
        """Drop the current lookup."""
        self._generation += 1
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
