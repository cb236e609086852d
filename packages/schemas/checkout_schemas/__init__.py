"""Checkout Schemas - Pydantic models for data contracts."""

from checkout_schemas.addresses import NO_NUMBER, Address, AddressInput
from checkout_schemas.cart import BaseModification, CartExtra, CartItem, CartSnapshot
from checkout_schemas.loyalty import (
    LoyaltyBalance,
    RedemptionAdjustment,
    RedemptionRejection,
    RedemptionRequest,
    RedemptionResult,
)
from checkout_schemas.orders import (
    DeliverySelection,
    ErrorCategory,
    FulfillmentMode,
    FulfillmentSelection,
    OrderDraft,
    OrderResult,
    PaymentMethod,
    PaymentSelection,
    PickupSelection,
    SubmissionOutcome,
    SubmissionStatus,
    TotalsBreakdown,
)
from checkout_schemas.store import IngredientReference, LoyaltyRates, StoreSettings

__all__ = [
    # Addresses
    "NO_NUMBER",
    "Address",
    "AddressInput",
    # Cart
    "BaseModification",
    "CartExtra",
    "CartItem",
    "CartSnapshot",
    # Loyalty
    "LoyaltyBalance",
    "RedemptionAdjustment",
    "RedemptionRejection",
    "RedemptionRequest",
    "RedemptionResult",
    # Orders
    "DeliverySelection",
    "ErrorCategory",
    "FulfillmentMode",
    "FulfillmentSelection",
    "OrderDraft",
    "OrderResult",
    "PaymentMethod",
    "PaymentSelection",
    "PickupSelection",
    "SubmissionOutcome",
    "SubmissionStatus",
    "TotalsBreakdown",
    # Store
    "IngredientReference",
    "LoyaltyRates",
    "StoreSettings",
]
