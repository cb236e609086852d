"""Address/fulfillment selector."""

import logging
from collections.abc import Callable

from checkout_schemas import (
    Address,
    AddressInput,
    DeliverySelection,
    FulfillmentSelection,
    PickupSelection,
)

from apps.checkout.exceptions import AddressValidationError
from apps.checkout.services.context import CheckoutContext
from apps.checkout.services.validators import ValidationCode, validate_address_input

logger = logging.getLogger(__name__)

FulfillmentListener = Callable[[FulfillmentSelection | None], None]


class AddressSelector:
    """
    Owns the saved addresses and the current fulfillment selection.

    Listeners are called synchronously with the new selection on every
    change, so the checkout state reprices before the action returns.
    Persistence goes through the store client; the local list is merged
    with whatever the store returns.
    """

    def __init__(
        self, context: CheckoutContext, addresses: list[Address] | None = None
    ) -> None:
        self._context = context
        self._addresses: list[Address] = list(addresses or [])
        self._selection: FulfillmentSelection | None = None
        self._listeners: list[FulfillmentListener] = []

    @property
    def addresses(self) -> list[Address]:
        return list(self._addresses)

    @property
    def selection(self) -> FulfillmentSelection | None:
        return self._selection

    def get_address(self, address_id: int) -> Address | None:
        for address in self._addresses:
            if address.id == address_id:
                return address
        return None

    # =========================================================================
    # Listeners
    # =========================================================================

    def subscribe(self, listener: FulfillmentListener) -> Callable[[], None]:
        """Register a listener; returns the matching unsubscribe callback."""
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: FulfillmentListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _set_selection(self, selection: FulfillmentSelection | None) -> None:
        self._selection = selection
        for listener in list(self._listeners):
            listener(selection)

    # =========================================================================
    # Selection
    # =========================================================================

    def seed_default(self) -> FulfillmentSelection | None:
        """Preselect the default address, else the first one, else nothing."""
        address = next((a for a in self._addresses if a.is_default), None)
        if address is None and self._addresses:
            address = self._addresses[0]

        self._set_selection(DeliverySelection(address=address) if address else None)
        return self._selection

    def select_address(self, address_id: int) -> DeliverySelection:
        """Deliver to a saved address."""
        address = self.get_address(address_id)
        if address is None:
            raise AddressValidationError(
                f"Address not found: {address_id}",
                code=ValidationCode.FULFILLMENT_REQUIRED,
                field="address_id",
            )

        selection = DeliverySelection(address=address)
        self._set_selection(selection)
        logger.info("Fulfillment switched to delivery (address %s)", address_id)
        return selection

    def select_pickup(self) -> PickupSelection:
        """Collect the order at the store."""
        selection = PickupSelection()
        self._set_selection(selection)
        logger.info("Fulfillment switched to pickup")
        return selection

    # =========================================================================
    # Persistence
    # =========================================================================

    async def add_address(self, data: AddressInput) -> Address:
        """
        Validate and save a new address, then select it.

        Raises:
            AddressValidationError: If the input is invalid (nothing is sent).
            StoreAPIError: If the store rejects the address.
            StoreConnectionError: If the store cannot be reached.
        """
        cleaned = validate_address_input(data)
        address = await self._context.client.create_address(cleaned)

        self._merge(address)
        self._set_selection(DeliverySelection(address=address))
        logger.info("Address %s added and selected", address.id)
        return address

    async def edit_address(self, address_id: int, data: AddressInput) -> Address:
        """Validate and update a saved address; a selected address is refreshed."""
        cleaned = validate_address_input(data)
        address = await self._context.client.update_address(address_id, cleaned)

        self._merge(address)
        current = self._selection
        if isinstance(current, DeliverySelection) and current.address.id == address.id:
            self._set_selection(DeliverySelection(address=address))
        return address

    async def set_default(self, address_id: int) -> None:
        """Make an address the customer's default."""
        await self._context.client.set_default_address(address_id)
        self._addresses = [
            a.model_copy(update={"is_default": a.id == address_id})
            for a in self._addresses
        ]
        self._context.cache_addresses(self._addresses)

    def _merge(self, address: Address) -> None:
        """Insert or replace an address returned by the store."""
        addresses = [a for a in self._addresses if a.id != address.id]
        if address.is_default:
            addresses = [a.model_copy(update={"is_default": False}) for a in addresses]

        existing = self.get_address(address.id)
        if existing is not None:
            addresses.insert(self._addresses.index(existing), address)
        else:
            addresses.append(address)

        self._addresses = addresses
        self._context.cache_addresses(addresses)
