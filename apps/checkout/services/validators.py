"""
Checkout input validators.

Handles:
1. CPF check-digit validation (invoice CPF)
2. Brazilian postal code normalization
3. Manual address entry: required fields, UF codes, text sanitization
"""

import re
from enum import Enum

from checkout_schemas import AddressInput

from apps.checkout.exceptions import AddressValidationError


class ValidationCode(str, Enum):
    """Codes of local validation failures."""

    FULFILLMENT_REQUIRED = "fulfillment_required"
    EMPTY_CART = "empty_cart"
    INVALID_CPF = "invalid_cpf"
    PAYMENT_METHOD_REQUIRED = "payment_method_required"
    CASH_TENDER_REQUIRED = "cash_tender_required"
    CASH_TENDER_INSUFFICIENT = "cash_tender_insufficient"
    INVALID_CASH_TENDER = "invalid_cash_tender"
    INVALID_ZIP_CODE = "invalid_zip_code"
    INVALID_STATE = "invalid_state"
    REQUIRED_FIELD = "required_field"
    NUMBER_REQUIRED = "number_required"


BRAZILIAN_STATES = frozenset(
    {
        "AC", "AL", "AP", "AM", "BA", "CE", "DF", "ES", "GO",
        "MA", "MT", "MS", "MG", "PA", "PB", "PR", "PE", "PI",
        "RJ", "RN", "RS", "RO", "RR", "SC", "SP", "SE", "TO",
    }
)  # fmt: skip

# Maximum lengths of address text fields
FIELD_LIMITS = {
    "street": 200,
    "neighborhood": 100,
    "city": 100,
    "number": 20,
    "complement": 100,
}

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_UNSAFE_CHARS = re.compile(r"[<>'\"&]")
_NON_DIGITS = re.compile(r"\D")


# =============================================================================
# CPF
# =============================================================================


def normalize_cpf(value: str | None) -> str:
    """Strip punctuation from a CPF, e.g. "123.456.789-09" -> "12345678909"."""
    return _NON_DIGITS.sub("", value or "")


def _cpf_check_digit(digits: str) -> int:
    weight = len(digits) + 1
    total = sum(int(d) * (weight - i) for i, d in enumerate(digits))
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder


def is_valid_cpf(value: str | None) -> bool:
    """
    Validate a CPF with the mod-11 check-digit algorithm.

    Accepts formatted input. Sequences of a single repeated digit
    (e.g. 111.111.111-11) satisfy the arithmetic but are rejected.
    """
    cpf = normalize_cpf(value)
    if len(cpf) != 11 or len(set(cpf)) == 1:
        return False

    first = _cpf_check_digit(cpf[:9])
    second = _cpf_check_digit(cpf[:9] + str(first))
    return cpf[9:] == f"{first}{second}"


# =============================================================================
# Addresses
# =============================================================================


def normalize_zip_code(value: str | None) -> str:
    """Digits of a postal code, e.g. "13010-000" -> "13010000"."""
    return _NON_DIGITS.sub("", value or "")


def sanitize_text(value: str | None, max_length: int) -> str:
    """Trim, drop control and markup characters, and cut to max_length."""
    if not value:
        return ""
    cleaned = _UNSAFE_CHARS.sub("", _CONTROL_CHARS.sub("", value)).strip()
    return cleaned[:max_length]


def validate_address_input(data: AddressInput) -> AddressInput:
    """
    Validate and clean an address typed on the checkout screen.

    Args:
        data: Raw form input.

    Returns:
        A sanitized copy with the postal code reduced to digits and the
        state upper-cased.

    Raises:
        AddressValidationError: On the first invalid field.
    """
    zip_code = normalize_zip_code(data.zip_code)
    if len(zip_code) != 8:
        raise AddressValidationError(
            "Postal code must have 8 digits",
            code=ValidationCode.INVALID_ZIP_CODE,
            field="zip_code",
        )

    state = (data.state or "").strip().upper()
    if not state:
        raise AddressValidationError(
            "State is required",
            code=ValidationCode.REQUIRED_FIELD,
            field="state",
        )
    if state not in BRAZILIAN_STATES:
        raise AddressValidationError(
            f"Unknown state: {state}",
            code=ValidationCode.INVALID_STATE,
            field="state",
        )

    cleaned = {
        name: sanitize_text(getattr(data, name), limit)
        for name, limit in FIELD_LIMITS.items()
    }

    for name, label in (
        ("city", "City"),
        ("street", "Street"),
        ("neighborhood", "Neighborhood"),
    ):
        if not cleaned[name]:
            raise AddressValidationError(
                f"{label} is required",
                code=ValidationCode.REQUIRED_FIELD,
                field=name,
            )

    if not data.no_number and not cleaned["number"]:
        raise AddressValidationError(
            "House number is required unless 'no number' is checked",
            code=ValidationCode.NUMBER_REQUIRED,
            field="number",
        )

    return AddressInput(
        zip_code=zip_code,
        state=state,
        city=cleaned["city"],
        street=cleaned["street"],
        neighborhood=cleaned["neighborhood"],
        number=None if data.no_number else cleaned["number"],
        complement=cleaned["complement"] or None,
        no_number=data.no_number,
        is_default=data.is_default,
    )
