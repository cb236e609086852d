"""Store schemas - public settings and ingredient reference data."""

from decimal import Decimal

from pydantic import BaseModel, Field


class LoyaltyRates(BaseModel):
    """Conversion rates of the loyalty program."""

    # Points that make up one currency unit of discount (100 pts = R$ 1,00)
    redemption_points_per_unit: int = Field(default=100, gt=0)
    # Currency spent per point earned (R$ 0,10 = 1 pt)
    earn_currency_per_point: Decimal = Field(default=Decimal("0.10"), gt=0)
    expiration_days: int = 60


class StoreSettings(BaseModel):
    """Public store settings relevant to checkout."""

    delivery_fee: Decimal = Field(default=Decimal("0.00"), ge=0)
    loyalty_rates: LoyaltyRates = Field(default_factory=LoyaltyRates)


class IngredientReference(BaseModel):
    """Reference price of an ingredient, per stock unit."""

    id: int
    name: str = ""
    unit_price: Decimal = Decimal("0")
    unit: str = "un"
