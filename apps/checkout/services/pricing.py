"""
Pricing calculator - cart, fulfillment and redemption to a totals breakdown.

All currency arithmetic stays in Decimal at full precision; rounding to
cents happens only in format_brl.
"""

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal

from checkout_schemas import (
    CartSnapshot,
    FulfillmentSelection,
    PickupSelection,
    TotalsBreakdown,
)

ZERO = Decimal("0")
CENT = Decimal("0.01")


def delivery_fee_for(
    fulfillment: FulfillmentSelection | None, system_fee: Decimal
) -> Decimal:
    """Fee charged for the selected mode; pickup never pays delivery."""
    if isinstance(fulfillment, PickupSelection):
        return ZERO
    return system_fee


def points_earned(points_base: Decimal, earn_currency_per_point: Decimal) -> int:
    """Whole points accrued on a currency base (R$ 0,10 per point by default)."""
    if points_base <= 0 or earn_currency_per_point <= 0:
        return 0
    return int((points_base / earn_currency_per_point).to_integral_value(ROUND_DOWN))


def calculate_totals(
    cart: CartSnapshot,
    fulfillment: FulfillmentSelection | None,
    system_delivery_fee: Decimal,
    requested_discount: Decimal = ZERO,
    points_redeemed: int = 0,
    earn_currency_per_point: Decimal = Decimal("0.10"),
) -> TotalsBreakdown:
    """
    Compute the totals breakdown of the checkout.

    The discount is capped at the pre-discount total and the total floored at
    zero. Points earned come from the subtotal only: the part of the discount
    that falls on the subtotal is taken proportionally, so the delivery fee
    never produces or removes accrual.

    Args:
        cart: Cart snapshot with server-computed item subtotals.
        fulfillment: Current selection; None is priced like delivery.
        system_delivery_fee: Store delivery fee.
        requested_discount: Cash value of the approved redemption.
        points_redeemed: Points behind requested_discount.
        earn_currency_per_point: Currency spent per earned point.

    Returns:
        TotalsBreakdown at full precision.
    """
    subtotal = cart.subtotal
    delivery_fee = delivery_fee_for(fulfillment, system_delivery_fee)
    pre_discount_total = subtotal + delivery_fee

    discount = min(max(requested_discount, ZERO), pre_discount_total)
    total = max(ZERO, pre_discount_total - discount)

    if pre_discount_total > 0:
        subtotal_discount = discount * subtotal / pre_discount_total
    else:
        subtotal_discount = ZERO
    points_base = max(ZERO, subtotal - subtotal_discount)

    return TotalsBreakdown(
        subtotal=subtotal,
        delivery_fee=delivery_fee,
        discount=discount,
        total=total,
        points_redeemed=points_redeemed if discount > 0 else 0,
        points_to_be_earned=points_earned(points_base, earn_currency_per_point),
    )


def format_brl(value: Decimal | int | float | None) -> str:
    """
    Render a currency value for display, e.g. Decimal("1234.5") -> "R$ 1.234,50".

    The only place where amounts are rounded (half-up, to cents).
    """
    amount = Decimal(str(value or 0)).quantize(CENT, rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    integer, _, cents = f"{abs(amount):.2f}".partition(".")
    grouped = f"{int(integer):,}".replace(",", ".")
    return f"{sign}R$ {grouped},{cents}"
