"""Tests for the checkout screen controller and its context."""

from decimal import Decimal

import pytest
from checkout_schemas import (
    CartSnapshot,
    DeliverySelection,
    LoyaltyBalance,
    PaymentMethod,
    PickupSelection,
    SubmissionStatus,
)

from apps.checkout.clients.mock import MockStoreClient
from apps.checkout.config import settings
from apps.checkout.exceptions import CheckoutError, StoreAuthError
from apps.checkout.services.context import CheckoutContext
from apps.checkout.services.screen import CheckoutScreen
from apps.checkout.tests.factories import (
    CartExtraFactory,
    CartItemFactory,
    IngredientReferenceFactory,
)


@pytest.fixture
def screen(mock_client) -> CheckoutScreen:
    return CheckoutScreen(mock_client, user_id=42)


class TestMount:
    """Tests for mounting the checkout screen."""

    @pytest.mark.asyncio
    async def test_mount_seeds_state(self, screen):
        """Test the state is seeded from cart, default address and balance."""
        state = await screen.mount()

        assert screen.mounted
        assert state.cart.subtotal == Decimal("50.00")
        assert state.balance.current_balance == 300
        assert isinstance(state.fulfillment, DeliverySelection)
        assert state.fulfillment.address.id == 2
        assert state.get_totals().total == Decimal("55.50")
        assert screen.notices == []

    @pytest.mark.asyncio
    async def test_mount_twice_returns_same_state(self, screen):
        """Test mount is not repeated while mounted."""
        first = await screen.mount()

        assert await screen.mount() is first

    @pytest.mark.asyncio
    async def test_failed_loads_degrade(self, mock_client):
        """Test failed fetches fall back to defaults with notices."""
        mock_client.set_unreachable(
            "fetch_addresses",
            "fetch_loyalty_balance",
            "fetch_delivery_fee",
        )
        screen = CheckoutScreen(mock_client, user_id=42)

        state = await screen.mount()

        assert state.balance.current_balance == 0
        assert state.fulfillment is None
        assert state.delivery_fee == settings.DEFAULT_DELIVERY_FEE
        assert screen.selector.addresses == []
        assert len(screen.notices) == 2

    @pytest.mark.asyncio
    async def test_mount_without_user(self, mock_client):
        """Test an anonymous session degrades to a zero balance."""
        screen = CheckoutScreen(mock_client)

        state = await screen.mount()

        assert state.balance.current_balance == 0
        assert "points balance" in screen.notices[0]

    @pytest.mark.asyncio
    async def test_prefetches_cart_ingredients(self):
        """Test ingredient prices of the cart are loaded on mount."""
        cart = CartSnapshot(
            items=[
                CartItemFactory(
                    extras=[CartExtraFactory(ingredient_id=5)],
                    item_subtotal=Decimal("12.00"),
                )
            ]
        )
        client = MockStoreClient(
            cart=cart,
            ingredients={5: IngredientReferenceFactory(id=5)},
        )
        screen = CheckoutScreen(client, user_id=42)

        await screen.mount()

        assert client.ingredient_requests == [5]
        assert screen.context.ingredient_prices.unit_price(5) == Decimal("1.50")


class TestInteraction:
    """Tests for actions on a mounted screen."""

    @pytest.mark.asyncio
    async def test_selector_drives_state(self, screen):
        """Test switching to pickup reprices the state immediately."""
        state = await screen.mount()

        screen.selector.select_pickup()

        assert isinstance(state.fulfillment, PickupSelection)
        assert state.get_totals().total == Decimal("50.00")

    @pytest.mark.asyncio
    async def test_confirm_places_order(self, screen, mock_client):
        """Test a full checkout through the screen."""
        state = await screen.mount()
        state.set_payment_method(PaymentMethod.CASH)
        state.set_cash_tendered(Decimal("60.00"))

        outcome = await screen.confirm()

        assert outcome.status == SubmissionStatus.SUCCEEDED
        draft = mock_client.submitted[0]
        assert draft.address_id == 2
        assert draft.amount_paid == Decimal("60.00")

    @pytest.mark.asyncio
    async def test_confirm_before_mount(self, screen):
        """Test confirming requires a mounted screen."""
        with pytest.raises(CheckoutError):
            await screen.confirm()


class TestDestroy:
    """Tests for tearing the screen down."""

    @pytest.mark.asyncio
    async def test_destroy_unsubscribes(self, screen):
        """Test the state no longer follows the selector after destroy."""
        state = await screen.mount()
        selector = screen.selector

        await screen.destroy()
        selector.select_pickup()

        assert isinstance(state.fulfillment, DeliverySelection)
        assert not screen.mounted

    @pytest.mark.asyncio
    async def test_injected_client_left_open(self, screen, mock_client):
        """Test an injected client is not closed by the screen."""
        await screen.mount()
        await screen.destroy()

        assert mock_client.closed is False

    @pytest.mark.asyncio
    async def test_confirm_after_destroy(self, screen):
        """Test a destroyed screen cannot place orders."""
        await screen.mount()
        await screen.destroy()

        with pytest.raises(CheckoutError):
            await screen.confirm()


class TestCheckoutContext:
    """Tests for CheckoutContext."""

    @pytest.mark.asyncio
    async def test_balance_cached_until_refresh(self, context, mock_client):
        """Test the balance is fetched once per session."""
        first = await context.load_balance()
        mock_client._balance = LoyaltyBalance(current_balance=10)

        assert (await context.load_balance()) == first
        assert (await context.load_balance(refresh=True)).current_balance == 10

    @pytest.mark.asyncio
    async def test_invalidate_addresses(self, context, mock_client):
        """Test invalidation forces a new fetch."""
        await context.load_addresses()
        mock_client.set_unreachable("fetch_addresses")

        assert len(await context.load_addresses()) == 2

        context.invalidate_addresses()
        with pytest.raises(CheckoutError):
            await context.load_addresses()

    @pytest.mark.asyncio
    async def test_balance_requires_user(self, mock_client):
        """Test an anonymous context cannot load a balance."""
        context = CheckoutContext(mock_client)

        with pytest.raises(StoreAuthError):
            await context.load_balance()

    @pytest.mark.asyncio
    async def test_close_runs_teardowns_once(self, mock_client):
        """Test teardowns run once and an owned client is closed."""
        calls = []
        context = CheckoutContext(mock_client, owns_client=True)
        context.on_teardown(lambda: calls.append("listener"))

        await context.close()
        await context.close()

        assert calls == ["listener"]
        assert mock_client.closed is True

    def test_notices(self, context):
        """Test notices are collected and drained."""
        context.add_notice("Points unavailable")

        assert context.pop_notices() == ["Points unavailable"]
        assert context.notices == []
