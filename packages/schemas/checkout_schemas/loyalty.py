"""Loyalty schemas - point balance and redemption results."""

from datetime import date
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field


class RedemptionRejection(str, Enum):
    """Why a point redemption request could not be approved as asked."""

    INSUFFICIENT_BALANCE = "insufficient_balance"
    EXCEEDS_ORDER_CAP = "exceeds_order_cap"


class LoyaltyBalance(BaseModel):
    """Current point balance of a customer."""

    current_balance: int = Field(default=0, ge=0)
    expiration_date: date | None = None


class RedemptionRequest(BaseModel):
    """Points the customer wants to redeem on this order."""

    enabled: bool = False
    points: int = Field(default=0, ge=0)

    @property
    def effective_points(self) -> int:
        return self.points if self.enabled else 0


class RedemptionResult(BaseModel):
    """Outcome of checking a redemption request against balance and order."""

    approved: bool
    points: int = Field(default=0, ge=0)
    discount: Decimal = Decimal("0")
    rejection: RedemptionRejection | None = None
    suggested_max: int | None = None


class RedemptionAdjustment(BaseModel):
    """Notice that a redemption request was clamped to a valid quantity."""

    requested: int
    adjusted_to: int
    reason: RedemptionRejection
