"""Tests for ingredient reference prices and last-request-wins lookups."""

import asyncio
from decimal import Decimal

import pytest
from checkout_schemas import IngredientReference

from apps.checkout.clients.mock import MockStoreClient
from apps.checkout.services.ingredients import (
    IngredientLookup,
    IngredientPriceCache,
    price_from_quantity,
    quantity_from_price,
)
from apps.checkout.tests.factories import IngredientReferenceFactory


class GatedStoreClient(MockStoreClient):
    """Mock client whose ingredient answers wait for the test to release them."""

    def __init__(self, references: dict[int, IngredientReference]) -> None:
        super().__init__(ingredients=references)
        self.gates: dict[int, asyncio.Event] = {i: asyncio.Event() for i in references}

    async def fetch_ingredient_reference(self, ingredient_id: int) -> IngredientReference:
        await self.gates[ingredient_id].wait()
        return await super().fetch_ingredient_reference(ingredient_id)


@pytest.fixture
def references() -> dict[int, IngredientReference]:
    return {
        1: IngredientReferenceFactory(id=1, unit_price=Decimal("40.00"), unit="kg"),
        2: IngredientReferenceFactory(id=2, unit_price=Decimal("2.50")),
        3: IngredientReferenceFactory(id=3, unit_price=Decimal("0")),
    }


class TestConversions:
    """Tests for quantity/price auto-fill."""

    def test_price_from_quantity(self):
        """Test the total for a quantity."""
        assert price_from_quantity(Decimal("1.5"), Decimal("40.00")) == Decimal("60.00")

    def test_quantity_from_price(self):
        """Test the quantity for a total."""
        assert quantity_from_price(Decimal("10.00"), Decimal("40.00")) == Decimal("0.25")

    @pytest.mark.parametrize("unit_price", [None, Decimal("0"), Decimal("-1")])
    def test_unknown_price_is_unset(self, unit_price):
        """Test an unknown price leaves fields unset instead of zero."""
        assert price_from_quantity(Decimal("2"), unit_price) is None
        assert quantity_from_price(Decimal("2"), unit_price) is None


class TestIngredientPriceCache:
    """Tests for IngredientPriceCache."""

    @pytest.mark.asyncio
    async def test_prefetch_is_idempotent(self, references):
        """Test a prefetched batch is not requested again."""
        client = MockStoreClient(ingredients=references)
        cache = IngredientPriceCache(client)

        await cache.prefetch([1, 2, 2])
        await cache.prefetch([1, 2])

        assert sorted(client.ingredient_requests) == [1, 2]
        assert cache.unit_price(1) == Decimal("40.00")

    @pytest.mark.asyncio
    async def test_concurrent_fetches_share_one_request(self, references):
        """Test simultaneous requests for one id hit the store once."""
        client = MockStoreClient(ingredients=references, api_delay_ms=10)
        cache = IngredientPriceCache(client)

        first, second = await asyncio.gather(cache.fetch(2), cache.fetch(2))

        assert first == second == references[2]
        assert client.ingredient_requests == [2]

    @pytest.mark.asyncio
    async def test_failed_fetch_not_cached(self, references, caplog):
        """Test a failure degrades to None and is retried later."""
        client = MockStoreClient(ingredients=references)
        cache = IngredientPriceCache(client)

        with caplog.at_level("WARNING"):
            assert await cache.fetch(99) is None

        assert "ingredient 99" in caplog.text
        assert cache.get(99) is None
        assert not cache.is_pending(99)

    @pytest.mark.asyncio
    async def test_non_positive_price_is_unknown(self, references):
        """Test a zero reference price counts as unknown."""
        cache = IngredientPriceCache(MockStoreClient(ingredients=references))

        await cache.fetch(3)

        assert cache.get(3) is not None
        assert cache.unit_price(3) is None

    @pytest.mark.asyncio
    async def test_pending_price_is_unset(self, references):
        """Test a price still in flight reads as None."""
        client = GatedStoreClient(references)
        cache = IngredientPriceCache(client)

        task = asyncio.create_task(cache.fetch(1))
        await asyncio.sleep(0)

        assert cache.is_pending(1)
        assert cache.unit_price(1) is None

        client.gates[1].set()
        await task
        assert cache.unit_price(1) == Decimal("40.00")


class TestIngredientLookup:
    """Tests for IngredientLookup."""

    @pytest.mark.asyncio
    async def test_last_request_wins(self, references):
        """Test a slow earlier answer never overwrites a later selection."""
        client = GatedStoreClient(references)
        applied = []
        lookup = IngredientLookup(IngredientPriceCache(client), on_result=applied.append)

        first = lookup.select(1)
        await asyncio.sleep(0)
        second = lookup.select(2)

        client.gates[2].set()
        await second
        client.gates[1].set()
        await asyncio.sleep(0.01)

        assert first.cancelled()
        assert lookup.selected_id == 2
        assert lookup.current == references[2]
        assert applied == [references[2]]

    @pytest.mark.asyncio
    async def test_stale_response_discarded(self, references):
        """Test a response from an older generation is dropped."""
        client = GatedStoreClient(references)
        lookup = IngredientLookup(IngredientPriceCache(client))

        lookup.select(1)
        await asyncio.sleep(0)
        lookup.cancel()
        client.gates[1].set()
        await asyncio.sleep(0.01)

        assert lookup.current is None
        assert lookup.generation == 2

    @pytest.mark.asyncio
    async def test_auto_fill_uses_selected_price(self, references):
        """Test quantity/price helpers use the looked-up price."""
        lookup = IngredientLookup(
            IngredientPriceCache(MockStoreClient(ingredients=references))
        )

        assert lookup.price_from_quantity(Decimal("2")) is None

        await lookup.select(1)

        assert lookup.price_from_quantity(Decimal("2")) == Decimal("80.00")
        assert lookup.quantity_from_price(Decimal("20.00")) == Decimal("0.5")
