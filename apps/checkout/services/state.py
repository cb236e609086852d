"""
Checkout state container.

The single mutable aggregate of the checkout screen. Every setter reprices
synchronously (redemption check, pricing, cash change) before returning,
so get_totals() is never stale. Recomputation never awaits.
"""

import logging
from decimal import Decimal

from checkout_schemas import (
    CartSnapshot,
    DeliverySelection,
    FulfillmentMode,
    FulfillmentSelection,
    LoyaltyBalance,
    OrderDraft,
    PaymentMethod,
    PaymentSelection,
    PickupSelection,
    RedemptionAdjustment,
    RedemptionRequest,
    TotalsBreakdown,
)

from apps.checkout.config import settings
from apps.checkout.exceptions import CashTenderError, CheckoutValidationError
from apps.checkout.services import loyalty
from apps.checkout.services.cash import calculate_change, parse_tender
from apps.checkout.services.pricing import ZERO, calculate_totals, delivery_fee_for
from apps.checkout.services.validators import ValidationCode, normalize_cpf

logger = logging.getLogger(__name__)


class CheckoutState:
    """
    Cart snapshot, fulfillment, payment, redemption and derived totals.

    Redemption requests that exceed the balance or the order value are
    clamped to the largest valid quantity; each clamp is recorded as a
    RedemptionAdjustment for the screen to show.
    """

    def __init__(
        self,
        cart: CartSnapshot | None = None,
        balance: LoyaltyBalance | None = None,
        delivery_fee: Decimal | None = None,
        points_per_unit: int | None = None,
        earn_currency_per_point: Decimal | None = None,
    ) -> None:
        self._cart = cart or CartSnapshot()
        self._balance = balance or LoyaltyBalance()
        self._delivery_fee = (
            settings.DEFAULT_DELIVERY_FEE if delivery_fee is None else delivery_fee
        )
        self._points_per_unit = (
            points_per_unit or settings.DEFAULT_REDEMPTION_POINTS_PER_UNIT
        )
        self._earn_currency_per_point = (
            earn_currency_per_point or settings.DEFAULT_EARN_CURRENCY_PER_POINT
        )

        self._fulfillment: FulfillmentSelection | None = None
        self._payment = PaymentSelection()
        self._redemption = RedemptionRequest()
        self._invoice_cpf: str | None = None
        self._notes = ""

        self._adjustments: list[RedemptionAdjustment] = []
        self._tender_error: CashTenderError | None = None
        self._totals = TotalsBreakdown()
        self.recompute()

    # =========================================================================
    # Read access
    # =========================================================================

    @property
    def cart(self) -> CartSnapshot:
        return self._cart

    @property
    def balance(self) -> LoyaltyBalance:
        return self._balance

    @property
    def fulfillment(self) -> FulfillmentSelection | None:
        return self._fulfillment

    @property
    def payment(self) -> PaymentSelection:
        return self._payment

    @property
    def redemption(self) -> RedemptionRequest:
        return self._redemption

    @property
    def invoice_cpf(self) -> str | None:
        return self._invoice_cpf

    @property
    def notes(self) -> str:
        return self._notes

    @property
    def delivery_fee(self) -> Decimal:
        """System delivery fee (charged only on delivery)."""
        return self._delivery_fee

    @property
    def points_per_unit(self) -> int:
        return self._points_per_unit

    @property
    def tender_error(self) -> CashTenderError | None:
        """Why the stored cash tender no longer covers the total, if it doesn't."""
        return self._tender_error

    @property
    def tender_required(self) -> bool:
        return self._payment.method == PaymentMethod.CASH and self._totals.total > 0

    @property
    def adjustments(self) -> list[RedemptionAdjustment]:
        return list(self._adjustments)

    def pop_adjustments(self) -> list[RedemptionAdjustment]:
        """Drain recorded redemption clamps."""
        adjustments, self._adjustments = self._adjustments, []
        return adjustments

    def get_totals(self) -> TotalsBreakdown:
        """Last computed totals."""
        return self._totals

    def max_redeemable(self) -> tuple[int, Decimal]:
        """Largest redeemable point quantity right now, and its cash value."""
        pre_discount_total = self._cart.subtotal + delivery_fee_for(
            self._fulfillment, self._delivery_fee
        )
        points = loyalty.max_redeemable(
            self._balance.current_balance, pre_discount_total, self._points_per_unit
        )
        return points, loyalty.discount_from_points(points, self._points_per_unit)

    # =========================================================================
    # Setters
    # =========================================================================

    def set_fulfillment(self, selection: FulfillmentSelection | None) -> TotalsBreakdown:
        """Switch between delivery (with an address) and pickup."""
        if isinstance(selection, DeliverySelection) and selection.address.id <= 0:
            raise CheckoutValidationError(
                "Delivery requires a saved address",
                code=ValidationCode.FULFILLMENT_REQUIRED,
                field="address_id",
            )
        self._fulfillment = selection
        return self.recompute()

    def set_payment_method(self, method: PaymentMethod | str | None) -> TotalsBreakdown:
        """Choose pix, card or cash; leaving cash drops the tender."""
        method = PaymentMethod(method) if method is not None else None
        if method == PaymentMethod.CASH and self._payment.method == PaymentMethod.CASH:
            return self._totals
        self._payment = PaymentSelection(method=method)
        return self.recompute()

    def set_redemption(self, enabled: bool, points: int | None = None) -> TotalsBreakdown:
        """
        Turn point redemption on or off.

        Enabling without a quantity asks for the whole balance, which is
        then clamped to what the order allows.
        """
        if not enabled:
            self._redemption = RedemptionRequest()
        else:
            if points is None:
                points = self._balance.current_balance
            # recompute() clamps oversized requests and records the adjustment
            self._redemption = RedemptionRequest(
                enabled=True, points=max(int(points), 0)
            )
        return self.recompute()

    def set_cash_tendered(
        self, amount: Decimal | int | float | str | None
    ) -> TotalsBreakdown:
        """
        Record the cash the customer will hand over.

        Ignored (and cleared) when points cover the whole order.

        Raises:
            CashTenderError: If payment is not cash, or the amount is invalid
                or below the total. The stored tender is left unchanged.
        """
        if self._payment.method != PaymentMethod.CASH:
            raise CashTenderError(
                "Cash amount only applies to cash payments",
                code=ValidationCode.INVALID_CASH_TENDER,
                field="tendered",
            )

        if amount is None or amount == "":
            self._payment = PaymentSelection(method=PaymentMethod.CASH)
            return self.recompute()

        if self._totals.total == 0:
            return self.recompute()

        tendered = parse_tender(amount)
        change = calculate_change(tendered, self._totals.total)
        self._payment = PaymentSelection(
            method=PaymentMethod.CASH, tendered=tendered, change=change
        )
        return self.recompute()

    def set_invoice_cpf(self, cpf: str | None) -> None:
        """CPF printed on the invoice; validated on submission."""
        self._invoice_cpf = normalize_cpf(cpf) or None

    def set_notes(self, notes: str | None) -> None:
        self._notes = (notes or "").strip()

    def set_cart(self, cart: CartSnapshot) -> TotalsBreakdown:
        self._cart = cart
        return self.recompute()

    def set_balance(self, balance: LoyaltyBalance) -> TotalsBreakdown:
        self._balance = balance
        return self.recompute()

    def set_rates(
        self,
        delivery_fee: Decimal | None = None,
        points_per_unit: int | None = None,
        earn_currency_per_point: Decimal | None = None,
    ) -> TotalsBreakdown:
        """Apply store settings loaded after the state was created."""
        if delivery_fee is not None:
            self._delivery_fee = delivery_fee
        if points_per_unit:
            self._points_per_unit = points_per_unit
        if earn_currency_per_point:
            self._earn_currency_per_point = earn_currency_per_point
        return self.recompute()

    # =========================================================================
    # Recomputation
    # =========================================================================

    def recompute(self) -> TotalsBreakdown:
        """Redemption check, then pricing, then cash change."""
        pre_discount_total = self._cart.subtotal + delivery_fee_for(
            self._fulfillment, self._delivery_fee
        )

        discount = ZERO
        points = 0
        if self._redemption.enabled:
            # Each rejection lowers the request, so this settles in a few passes
            while True:
                result = loyalty.validate_redemption(
                    self._balance.current_balance,
                    self._redemption.points,
                    pre_discount_total,
                    self._points_per_unit,
                )
                if result.approved:
                    discount, points = result.discount, result.points
                    break

                suggested = result.suggested_max or 0
                self._adjustments.append(
                    RedemptionAdjustment(
                        requested=self._redemption.points,
                        adjusted_to=suggested,
                        reason=result.rejection,
                    )
                )
                logger.info(
                    "Redemption clamped from %s to %s points (%s)",
                    self._redemption.points,
                    suggested,
                    result.rejection.value,
                )
                self._redemption = RedemptionRequest(enabled=True, points=suggested)

        self._totals = calculate_totals(
            self._cart,
            self._fulfillment,
            self._delivery_fee,
            requested_discount=discount,
            points_redeemed=points,
            earn_currency_per_point=self._earn_currency_per_point,
        )
        self._recompute_change()

        logger.debug("Totals recomputed: %s", self._totals)
        return self._totals

    def _recompute_change(self) -> None:
        self._tender_error = None
        if self._payment.method != PaymentMethod.CASH:
            return

        total = self._totals.total
        tendered = self._payment.tendered
        if total == 0:
            # Paid by points: no tender needed
            self._payment = PaymentSelection(method=PaymentMethod.CASH)
        elif tendered is not None:
            try:
                change = calculate_change(tendered, total)
            except CashTenderError as e:
                self._tender_error = e
                change = None
            self._payment = PaymentSelection(
                method=PaymentMethod.CASH, tendered=tendered, change=change
            )

    # =========================================================================
    # Draft
    # =========================================================================

    def get_draft(self) -> OrderDraft:
        """
        Snapshot the state as a submission-ready order.

        Raises:
            CheckoutValidationError: If no fulfillment is selected.
        """
        selection = self._fulfillment
        if isinstance(selection, DeliverySelection):
            order_type, address_id = FulfillmentMode.DELIVERY, selection.address.id
        elif isinstance(selection, PickupSelection):
            order_type, address_id = FulfillmentMode.PICKUP, None
        else:
            raise CheckoutValidationError(
                "Select a delivery address or pickup",
                code=ValidationCode.FULFILLMENT_REQUIRED,
                field="address_id",
            )

        totals = self._totals
        amount_paid = None
        if self._payment.method == PaymentMethod.CASH and totals.total > 0:
            amount_paid = self._payment.tendered

        return OrderDraft(
            order_type=order_type,
            address_id=address_id,
            payment_method=self._payment.method,
            points_to_redeem=totals.points_redeemed,
            amount_paid=amount_paid,
            cpf_on_invoice=self._invoice_cpf,
            notes=self._notes,
        )
