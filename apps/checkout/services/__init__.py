"""Checkout services - pricing, loyalty, fulfillment, state and order submission."""

from apps.checkout.services.addresses import AddressSelector
from apps.checkout.services.cash import calculate_change, parse_tender
from apps.checkout.services.context import CheckoutContext
from apps.checkout.services.ingredients import (
    IngredientLookup,
    IngredientPriceCache,
    price_from_quantity,
    quantity_from_price,
)
from apps.checkout.services.loyalty import (
    discount_from_points,
    max_redeemable,
    points_for_discount,
    validate_redemption,
)
from apps.checkout.services.pricing import calculate_totals, format_brl, points_earned
from apps.checkout.services.screen import CheckoutScreen
from apps.checkout.services.state import CheckoutState
from apps.checkout.services.submission import (
    BUSINESS_MESSAGES,
    OrderSubmitter,
    map_submission_error,
)
from apps.checkout.services.validators import (
    ValidationCode,
    is_valid_cpf,
    normalize_cpf,
    normalize_zip_code,
    validate_address_input,
)

__all__ = [
    "BUSINESS_MESSAGES",
    "AddressSelector",
    "CheckoutContext",
    "CheckoutScreen",
    "CheckoutState",
    "IngredientLookup",
    "IngredientPriceCache",
    "OrderSubmitter",
    "ValidationCode",
    "calculate_change",
    "calculate_totals",
    "discount_from_points",
    "format_brl",
    "is_valid_cpf",
    "map_submission_error",
    "max_redeemable",
    "normalize_cpf",
    "normalize_zip_code",
    "parse_tender",
    "points_earned",
    "points_for_discount",
    "price_from_quantity",
    "quantity_from_price",
    "validate_address_input",
    "validate_redemption",
]
