"""Tests for the loyalty redemption validator."""

from decimal import Decimal

from checkout_schemas import RedemptionRejection

from apps.checkout.config import settings
from apps.checkout.services.loyalty import (
    clamp_points,
    discount_from_points,
    max_redeemable,
    max_redeemable_by_order,
    points_for_discount,
    validate_redemption,
)


class TestConversions:
    """Tests for point/currency conversions."""

    def test_discount_from_points(self):
        """Test 100 points make one currency unit."""
        assert discount_from_points(1550, 100) == Decimal("15.50")

    def test_discount_from_zero_points(self):
        """Test zero points are worth nothing."""
        assert discount_from_points(0, 100) == Decimal("0")

    def test_points_for_discount_rounds_up(self):
        """Test partial points round up."""
        assert points_for_discount(Decimal("0.015"), 100) == 2
        assert points_for_discount(Decimal("15.50"), 100) == 1550

    def test_max_by_order_rounds_down(self):
        """Test the order cap is floored."""
        assert max_redeemable_by_order(Decimal("15.505"), 100) == 1550

    def test_max_by_order_empty_order(self):
        """Test a zero total allows no redemption."""
        assert max_redeemable_by_order(Decimal("0"), 100) == 0

    def test_max_redeemable_takes_lower_bound(self):
        """Test the cap is the lower of balance and order value."""
        assert max_redeemable(300, Decimal("55.50"), 100) == 300
        assert max_redeemable(9000, Decimal("15.50"), 100) == 1550

    def test_clamp_points(self):
        """Test point quantities stay within the system bounds."""
        assert clamp_points(-5) == 0
        assert clamp_points(None) == 0
        assert clamp_points(settings.MAX_LOYALTY_POINTS + 1) == settings.MAX_LOYALTY_POINTS


class TestValidateRedemption:
    """Tests for validate_redemption."""

    def test_approved(self):
        """Test a request within balance and order value."""
        result = validate_redemption(300, 250, Decimal("55.50"), 100)

        assert result.approved is True
        assert result.points == 250
        assert result.discount == Decimal("2.50")
        assert result.rejection is None

    def test_insufficient_balance(self):
        """Test requesting more than the balance."""
        result = validate_redemption(300, 500, Decimal("55.50"), 100)

        assert result.approved is False
        assert result.rejection == RedemptionRejection.INSUFFICIENT_BALANCE
        assert result.suggested_max == 300
        assert result.discount == Decimal("0")

    def test_exceeds_order_cap(self):
        """Test requesting more than the order is worth."""
        result = validate_redemption(9000, 5000, Decimal("15.50"), 100)

        assert result.approved is False
        assert result.rejection == RedemptionRejection.EXCEEDS_ORDER_CAP
        assert result.suggested_max == 1550

    def test_balance_checked_before_order_cap(self):
        """Test insufficient balance wins when both limits are exceeded."""
        result = validate_redemption(300, 5000, Decimal("1.00"), 100)

        assert result.rejection == RedemptionRejection.INSUFFICIENT_BALANCE
        assert result.suggested_max == 300

    def test_exact_order_value(self):
        """Test redeeming the whole order is allowed."""
        result = validate_redemption(9000, 1550, Decimal("15.50"), 100)

        assert result.approved is True
        assert result.discount == Decimal("15.50")

    def test_zero_total_order(self):
        """Test any positive request exceeds a zero-value order."""
        result = validate_redemption(300, 100, Decimal("0"), 100)

        assert result.rejection == RedemptionRejection.EXCEEDS_ORDER_CAP
        assert result.suggested_max == 0

    def test_zero_request(self):
        """Test redeeming nothing is always approved."""
        result = validate_redemption(0, 0, Decimal("0"), 100)

        assert result.approved is True
        assert result.points == 0
