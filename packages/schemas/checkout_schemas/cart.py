"""Cart schemas - read-only snapshot of the customer's cart."""

from decimal import Decimal

from pydantic import BaseModel, Field, model_validator


class CartExtra(BaseModel):
    """An extra ingredient added on top of a product."""

    ingredient_id: int
    name: str = ""
    quantity: int = Field(default=1, ge=1)
    unit_price: Decimal = Field(default=Decimal("0.00"))


class BaseModification(BaseModel):
    """A change to one of the product's base ingredients."""

    ingredient_id: int
    name: str = ""
    delta: int
    # Only positive deltas are charged
    unit_price: Decimal | None = None

    @model_validator(mode="after")
    def _check_delta(self) -> "BaseModification":
        if self.delta == 0:
            raise ValueError("delta must be non-zero")
        if self.delta < 0:
            self.unit_price = None
        return self


class CartItem(BaseModel):
    """Line item in the cart, priced by the server."""

    id: int | None = None
    product_id: int
    name: str = ""
    quantity: int = Field(default=1, ge=1)
    extras: list[CartExtra] = Field(default_factory=list)
    base_modifications: list[BaseModification] = Field(default_factory=list)
    notes: str = ""
    item_subtotal: Decimal = Field(description="Server-computed line total")


class CartSnapshot(BaseModel):
    """The cart as fetched when the checkout screen loads."""

    cart_id: int | None = None
    items: list[CartItem] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def subtotal(self) -> Decimal:
        return sum((item.item_subtotal for item in self.items), Decimal("0"))
