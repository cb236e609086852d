"""Order schemas - fulfillment, payment, totals and the submission payload."""

from decimal import Decimal
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, model_validator

from checkout_schemas.addresses import Address

# =============================================================================
# Enums
# =============================================================================


class FulfillmentMode(str, Enum):
    """How the order reaches the customer."""

    DELIVERY = "delivery"
    PICKUP = "pickup"


class PaymentMethod(str, Enum):
    """Payment methods accepted on delivery/pickup."""

    PIX = "pix"
    CARD = "card"
    CASH = "cash"


class SubmissionStatus(str, Enum):
    """Order submission lifecycle on the checkout screen."""

    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ErrorCategory(str, Enum):
    """User-facing categories of a failed submission."""

    VALIDATION = "validation"
    NETWORK = "network"
    BUSINESS = "business"
    SCHEMA_MIGRATION = "schema_migration"
    SERVER = "server"


# =============================================================================
# Fulfillment
# =============================================================================


class DeliverySelection(BaseModel):
    """Deliver to a saved address."""

    model_config = ConfigDict(frozen=True)

    mode: Literal[FulfillmentMode.DELIVERY] = FulfillmentMode.DELIVERY
    address: Address


class PickupSelection(BaseModel):
    """Customer collects the order at the store."""

    model_config = ConfigDict(frozen=True)

    mode: Literal[FulfillmentMode.PICKUP] = FulfillmentMode.PICKUP


FulfillmentSelection = DeliverySelection | PickupSelection


# =============================================================================
# Payment and totals
# =============================================================================


class PaymentSelection(BaseModel):
    """Chosen payment method; cash carries the tendered amount and change."""

    method: PaymentMethod | None = None
    tendered: Decimal | None = None
    change: Decimal | None = None

    @model_validator(mode="after")
    def _cash_only_fields(self) -> "PaymentSelection":
        if self.method != PaymentMethod.CASH and (
            self.tendered is not None or self.change is not None
        ):
            raise ValueError("tendered/change are only valid for cash payments")
        return self


class TotalsBreakdown(BaseModel):
    """Derived totals of the checkout, kept at full precision."""

    model_config = ConfigDict(frozen=True)

    subtotal: Decimal = Decimal("0")
    delivery_fee: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    points_redeemed: int = 0
    points_to_be_earned: int = 0

    @property
    def pre_discount_total(self) -> Decimal:
        return self.subtotal + self.delivery_fee

    @property
    def paid_by_points(self) -> bool:
        """True when redemption covers the whole order."""
        return self.total == 0 and self.discount > 0


# =============================================================================
# Submission
# =============================================================================


class OrderDraft(BaseModel):
    """Submission-ready snapshot of the checkout state."""

    model_config = ConfigDict(frozen=True)

    order_type: FulfillmentMode
    address_id: int | None = None
    payment_method: PaymentMethod | None = None
    points_to_redeem: int = 0
    amount_paid: Decimal | None = None
    cpf_on_invoice: str | None = None
    notes: str = ""
    # Server reads the items from the live cart instead of an inline list
    use_cart: bool = True

    def to_payload(self) -> dict[str, Any]:
        """Request body for the order endpoint."""
        payload: dict[str, Any] = {
            "order_type": self.order_type.value,
            "points_to_redeem": self.points_to_redeem,
            "notes": self.notes,
            "use_cart": self.use_cart,
        }
        if self.order_type == FulfillmentMode.DELIVERY:
            payload["address_id"] = self.address_id
        if self.payment_method is not None:
            payload["payment_method"] = self.payment_method.value
        if self.amount_paid is not None:
            payload["amount_paid"] = float(self.amount_paid)
        if self.cpf_on_invoice:
            payload["cpf_on_invoice"] = self.cpf_on_invoice
        return payload


class OrderResult(BaseModel):
    """Order accepted by the store."""

    order_id: int
    confirmation_code: str
    status: str = "pending"


class SubmissionOutcome(BaseModel):
    """What the confirm action reports back to the screen."""

    status: SubmissionStatus
    order: OrderResult | None = None
    error_category: ErrorCategory | None = None
    error_code: str | None = None
    message: str = ""

    @property
    def succeeded(self) -> bool:
        return self.status == SubmissionStatus.SUCCEEDED
