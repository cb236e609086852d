"""
Order submission orchestrator - confirms the checkout as an order.

Handles:
1. Guarding against duplicate submissions (double clicks)
2. Local validation before anything reaches the network
3. Submitting the order draft to the store
4. Mapping store failures to user-facing categories and messages
5. Post-success refreshes (loyalty balance, cart)

Orders are never retried automatically; a failed submission can be
confirmed again by the customer.
"""

import logging

from checkout_schemas import (
    CartSnapshot,
    DeliverySelection,
    ErrorCategory,
    OrderDraft,
    PaymentMethod,
    SubmissionOutcome,
    SubmissionStatus,
)

from apps.checkout.exceptions import (
    CheckoutError,
    CheckoutValidationError,
    StoreAPIError,
    StoreAuthError,
    StoreConnectionError,
)
from apps.checkout.services.cash import calculate_change
from apps.checkout.services.context import CheckoutContext
from apps.checkout.services.state import CheckoutState
from apps.checkout.services.validators import ValidationCode, is_valid_cpf

logger = logging.getLogger(__name__)


# Messages for the store's structured business error codes
BUSINESS_MESSAGES = {
    "STORE_CLOSED": (
        "The restaurant is closed right now. Please order during opening hours."
    ),
    "EMPTY_CART": "Your cart is empty. Add items before placing the order.",
    "INVALID_ADDRESS": "The delivery address is invalid. Please review it.",
    "INVALID_CPF": "The CPF for the invoice is invalid. Please review it.",
    "INVALID_DISCOUNT": (
        "The points discount could not be applied. Please review your redemption."
    ),
    "VALIDATION_ERROR": "Some order details are invalid. Please review them.",
}

# Codes whose server message is shown as-is (it names the product)
VERBATIM_CODES = frozenset({"INSUFFICIENT_STOCK"})

NETWORK_MESSAGE = "Could not reach the restaurant. Check your connection and try again."
SERVER_MESSAGE = "The restaurant could not process your order. Please try again."
SCHEMA_MIGRATION_MESSAGE = (
    "Ordering is temporarily unavailable while the system is being updated. "
    "Please try again in a few minutes."
)
AUTH_MESSAGE = "Your session has expired. Please sign in again."

# Fragments of a 5xx body that point at a missing database column
MIGRATION_SIGNATURES = (
    "change_for_amount",
    "column",
    "alter table",
    "migração",
    "migration",
)


def _is_schema_migration_error(error: StoreAPIError) -> bool:
    text = f"{error.message} {error.response_body or ''}".lower()
    return any(signature in text for signature in MIGRATION_SIGNATURES)


def map_submission_error(error: CheckoutError) -> tuple[ErrorCategory, str | None, str]:
    """
    Map a submission failure to (category, code, user message).

    Args:
        error: Local validation error or store failure.

    Returns:
        Tuple of category, error code (if any) and message to show.
    """
    if isinstance(error, CheckoutValidationError):
        code = getattr(error.code, "value", error.code)
        return ErrorCategory.VALIDATION, code, error.message

    if isinstance(error, StoreConnectionError):
        return ErrorCategory.NETWORK, None, NETWORK_MESSAGE

    if isinstance(error, StoreAuthError):
        return ErrorCategory.BUSINESS, error.code, AUTH_MESSAGE

    if isinstance(error, StoreAPIError):
        if error.status_code is not None and error.status_code >= 500:
            if _is_schema_migration_error(error):
                return ErrorCategory.SCHEMA_MIGRATION, error.code, SCHEMA_MIGRATION_MESSAGE
            return ErrorCategory.SERVER, error.code, SERVER_MESSAGE

        if error.code in VERBATIM_CODES:
            return ErrorCategory.BUSINESS, error.code, error.message
        message = BUSINESS_MESSAGES.get(error.code or "", error.message)
        return ErrorCategory.BUSINESS, error.code, message

    return ErrorCategory.SERVER, None, SERVER_MESSAGE


class OrderSubmitter:
    """
    Submission state machine: idle -> submitting -> succeeded | failed.

    A confirm while submitting is a no-op, and the status flips to
    submitting before the first await, so a double click yields one order.
    Failed submissions are retryable; a succeeded one is final.
    """

    def __init__(self, state: CheckoutState, context: CheckoutContext) -> None:
        self._state = state
        self._context = context
        self.status = SubmissionStatus.IDLE
        self.last_outcome: SubmissionOutcome | None = None

    @property
    def can_submit(self) -> bool:
        return self.status in (SubmissionStatus.IDLE, SubmissionStatus.FAILED)

    def validate(self) -> OrderDraft:
        """
        Run local checks in order and build the draft.

        Raises:
            CheckoutValidationError: On the first failed check.
        """
        state = self._state

        # 1. Fulfillment
        selection = state.fulfillment
        if selection is None or (
            isinstance(selection, DeliverySelection) and selection.address.id <= 0
        ):
            raise CheckoutValidationError(
                "Select a delivery address or pickup",
                code=ValidationCode.FULFILLMENT_REQUIRED,
                field="address_id",
            )

        # 2. Cart
        if state.cart.is_empty:
            raise CheckoutValidationError(
                "Your cart is empty",
                code=ValidationCode.EMPTY_CART,
            )

        # 3. Invoice CPF
        if state.invoice_cpf and not is_valid_cpf(state.invoice_cpf):
            raise CheckoutValidationError(
                "Invalid CPF",
                code=ValidationCode.INVALID_CPF,
                field="cpf_on_invoice",
            )

        # 4. Payment method
        totals = state.get_totals()
        if state.payment.method is None and not totals.paid_by_points:
            raise CheckoutValidationError(
                "Select a payment method",
                code=ValidationCode.PAYMENT_METHOD_REQUIRED,
                field="payment_method",
            )

        # 5. Cash tender
        if state.payment.method == PaymentMethod.CASH and totals.total > 0:
            if state.payment.tendered is None:
                raise CheckoutValidationError(
                    "Enter the amount you will pay in cash",
                    code=ValidationCode.CASH_TENDER_REQUIRED,
                    field="tendered",
                )
            calculate_change(state.payment.tendered, totals.total)

        return state.get_draft()

    async def submit(self) -> SubmissionOutcome:
        """
        Confirm the order.

        Returns:
            SubmissionOutcome; a duplicate call while submitting returns a
            SUBMITTING outcome without contacting the store.
        """
        if self.status == SubmissionStatus.SUBMITTING:
            logger.info("Order submission already in progress, ignoring")
            return SubmissionOutcome(
                status=SubmissionStatus.SUBMITTING,
                message="Your order is already being placed.",
            )
        if self.status == SubmissionStatus.SUCCEEDED:
            return self.last_outcome

        self.status = SubmissionStatus.SUBMITTING

        try:
            draft = self.validate()
            order = await self._context.client.submit_order(draft)
        except CheckoutError as e:
            return self._fail(e)
        except BaseException:
            # Cancelled or unexpected: leave the button usable again
            self.status = SubmissionStatus.FAILED
            raise

        self.last_outcome = SubmissionOutcome(
            status=SubmissionStatus.SUCCEEDED,
            order=order,
            message=(
                f"Order #{order.order_id} placed. "
                f"Confirmation code: {order.confirmation_code}"
            ),
        )
        self.status = SubmissionStatus.SUCCEEDED
        logger.info(
            "Order %s submitted (confirmation %s)",
            order.order_id,
            order.confirmation_code,
        )

        await self._refresh_after_order()
        return self.last_outcome

    def _fail(self, error: CheckoutError) -> SubmissionOutcome:
        category, code, message = map_submission_error(error)
        self.status = SubmissionStatus.FAILED

        if category != ErrorCategory.VALIDATION:
            logger.warning(
                "Order submission failed: category=%s code=%s error=%s",
                category.value,
                code,
                error.message,
            )

        self.last_outcome = SubmissionOutcome(
            status=SubmissionStatus.FAILED,
            error_category=category,
            error_code=code,
            message=message,
        )
        return self.last_outcome

    async def _refresh_after_order(self) -> None:
        """Reload the balance and clear the cart; failures are only logged."""
        try:
            balance = await self._context.load_balance(refresh=True)
        except CheckoutError as e:
            logger.warning("Failed to reload loyalty balance after order: %s", e.message)
        else:
            self._state.set_balance(balance)

        try:
            await self._context.client.clear_cart()
        except CheckoutError as e:
            logger.warning("Failed to clear cart after order: %s", e.message)
        else:
            self._state.set_cart(CartSnapshot(cart_id=self._state.cart.cart_id))
