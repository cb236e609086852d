"""
Checkout screen controller.

Mounts a checkout session: builds the CheckoutContext, loads everything the
payment screen needs, seeds the state and wires the components together.
"""

import asyncio
import logging
from collections.abc import Awaitable
from decimal import Decimal
from typing import TypeVar

from checkout_schemas import (
    CartSnapshot,
    FulfillmentSelection,
    LoyaltyBalance,
    SubmissionOutcome,
)

from apps.checkout.clients import get_client
from apps.checkout.clients.base import StoreAPI
from apps.checkout.config import settings
from apps.checkout.exceptions import CheckoutError
from apps.checkout.services.addresses import AddressSelector
from apps.checkout.services.context import CheckoutContext
from apps.checkout.services.state import CheckoutState
from apps.checkout.services.submission import OrderSubmitter

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CheckoutScreen:
    """
    Controller of the payment screen.

    The checkout state is owned here: only the screen's components
    mutate it. A failed load never blocks checkout; it degrades to an
    empty or default value and leaves a notice on the context.

    Usage:
        screen = CheckoutScreen(client, user_id=42)
        await screen.mount()
        screen.selector.select_pickup()
        screen.state.set_payment_method("pix")
        outcome = await screen.confirm()
        await screen.destroy()
    """

    def __init__(
        self,
        client: StoreAPI | None = None,
        user_id: int | None = None,
        access_token: str = "",
    ) -> None:
        """
        Initialize the screen.

        Args:
            client: Store client. Built with get_client() when None, in which
                case the screen closes it on destroy.
            user_id: Id of the logged-in customer.
            access_token: Bearer token, used only when building the client.
        """
        self._owns_client = client is None
        if client is None:
            client = get_client(access_token=access_token, user_id=user_id)
        self._client = client
        self._user_id = user_id

        self.context: CheckoutContext | None = None
        self.state: CheckoutState | None = None
        self.selector: AddressSelector | None = None
        self.submitter: OrderSubmitter | None = None

    @property
    def mounted(self) -> bool:
        return self.context is not None and not self.context.closed

    @property
    def notices(self) -> list[str]:
        return list(self.context.notices) if self.context else []

    async def mount(self) -> CheckoutState:
        """Load cart, addresses, balance and settings, then seed the state."""
        if self.mounted and self.state is not None:
            return self.state

        context = CheckoutContext(
            self._client, user_id=self._user_id, owns_client=self._owns_client
        )
        self.context = context
        client = context.client

        (
            cart,
            addresses,
            balance,
            delivery_fee,
            points_per_unit,
            earn_rate,
        ) = await asyncio.gather(
            self._load(
                context,
                "cart",
                client.fetch_cart(),
                CartSnapshot(),
                "We could not load your cart.",
            ),
            self._load(
                context,
                "addresses",
                context.load_addresses(),
                [],
                "We could not load your saved addresses.",
            ),
            self._load(
                context,
                "loyalty balance",
                context.load_balance(),
                LoyaltyBalance(),
                "We could not load your points balance.",
            ),
            self._load(
                context,
                "delivery fee",
                client.fetch_delivery_fee(),
                settings.DEFAULT_DELIVERY_FEE,
            ),
            self._load(
                context,
                "redemption rate",
                client.fetch_redemption_rate(),
                settings.DEFAULT_REDEMPTION_POINTS_PER_UNIT,
            ),
            self._load(
                context,
                "earn rate",
                client.fetch_earn_rate(),
                settings.DEFAULT_EARN_CURRENCY_PER_POINT,
            ),
        )

        state = CheckoutState(
            cart=cart,
            balance=balance,
            delivery_fee=Decimal(delivery_fee),
            points_per_unit=points_per_unit,
            earn_currency_per_point=Decimal(earn_rate),
        )
        selector = AddressSelector(context, addresses)

        def on_fulfillment_change(selection: FulfillmentSelection | None) -> None:
            state.set_fulfillment(selection)

        context.on_teardown(selector.subscribe(on_fulfillment_change))
        selector.seed_default()

        await context.ingredient_prices.prefetch(
            {extra.ingredient_id for item in cart.items for extra in item.extras}
            | {mod.ingredient_id for item in cart.items for mod in item.base_modifications}
        )

        self.state = state
        self.selector = selector
        self.submitter = OrderSubmitter(state, context)

        logger.info(
            "Checkout mounted: %d items, %d addresses, %d points",
            len(cart.items),
            len(addresses),
            balance.current_balance,
        )
        return state

    async def _load(
        self,
        context: CheckoutContext,
        name: str,
        call: Awaitable[T],
        default: T,
        notice: str | None = None,
    ) -> T:
        try:
            return await call
        except CheckoutError as e:
            logger.warning("Failed to load %s, using default: %s", name, e.message)
            if notice:
                context.add_notice(notice)
            return default

    async def confirm(self) -> SubmissionOutcome:
        """Place the order."""
        if self.submitter is None or not self.mounted:
            raise CheckoutError("Checkout screen is not mounted")
        return await self.submitter.submit()

    async def destroy(self) -> None:
        """Tear down listeners and release the client if the screen built it."""
        if self.context is None:
            return
        await self.context.close()
        logger.info("Checkout destroyed")
