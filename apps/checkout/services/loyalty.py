"""Loyalty redemption validator and point/currency conversions."""

from decimal import ROUND_CEILING, ROUND_DOWN, Decimal

from checkout_schemas import RedemptionRejection, RedemptionResult

from apps.checkout.config import settings


def clamp_points(points: int | None) -> int:
    """Bound a point quantity to [0, MAX_LOYALTY_POINTS]."""
    if not points or points < 0:
        return 0
    return min(int(points), settings.MAX_LOYALTY_POINTS)


def discount_from_points(points: int, points_per_unit: int) -> Decimal:
    """Cash value of a point quantity (100 pts = R$ 1,00 by default)."""
    if points <= 0 or points_per_unit <= 0:
        return Decimal("0")
    return Decimal(points) / Decimal(points_per_unit)


def points_for_discount(discount: Decimal, points_per_unit: int) -> int:
    """Points needed to cover a discount, rounded up to whole points."""
    if discount <= 0 or points_per_unit <= 0:
        return 0
    return int((discount * points_per_unit).to_integral_value(ROUND_CEILING))


def max_redeemable_by_order(pre_discount_total: Decimal, points_per_unit: int) -> int:
    """Largest point quantity whose value does not exceed the order."""
    if pre_discount_total <= 0 or points_per_unit <= 0:
        return 0
    return int((pre_discount_total * points_per_unit).to_integral_value(ROUND_DOWN))


def max_redeemable(
    balance: int, pre_discount_total: Decimal, points_per_unit: int
) -> int:
    """Largest point quantity that can be redeemed on this order."""
    return min(
        clamp_points(balance),
        max_redeemable_by_order(pre_discount_total, points_per_unit),
    )


def validate_redemption(
    balance: int,
    requested: int,
    pre_discount_total: Decimal,
    points_per_unit: int,
) -> RedemptionResult:
    """
    Check a redemption request against the balance and the order value.

    The balance is checked first: asking for more than the balance is
    rejected as insufficient_balance even when the order cap is lower.

    Args:
        balance: Customer point balance.
        requested: Points the customer asked to redeem.
        pre_discount_total: Subtotal plus delivery fee.
        points_per_unit: Points that make up one currency unit.

    Returns:
        An approved result with the cash discount, or a rejection carrying
        the suggested maximum.
    """
    requested = max(int(requested), 0)
    balance = clamp_points(balance)

    if requested > balance:
        return RedemptionResult(
            approved=False,
            rejection=RedemptionRejection.INSUFFICIENT_BALANCE,
            suggested_max=balance,
        )

    order_cap = max_redeemable_by_order(pre_discount_total, points_per_unit)
    if requested > order_cap:
        return RedemptionResult(
            approved=False,
            rejection=RedemptionRejection.EXCEEDS_ORDER_CAP,
            suggested_max=order_cap,
        )

    return RedemptionResult(
        approved=True,
        points=requested,
        discount=discount_from_points(requested, points_per_unit),
    )
