"""Cash change calculator."""

from decimal import Decimal, InvalidOperation

from apps.checkout.exceptions import CashTenderError
from apps.checkout.services.validators import ValidationCode


def parse_tender(value: Decimal | int | float | str | None) -> Decimal:
    """
    Convert a tendered amount to Decimal.

    Raises:
        CashTenderError: If the value is not a positive finite number.
    """
    if isinstance(value, bool) or value is None or value == "":
        raise CashTenderError(
            "Enter the amount you will pay in cash",
            code=ValidationCode.CASH_TENDER_REQUIRED,
            field="tendered",
        )
    try:
        amount = Decimal(str(value).strip().replace(",", "."))
    except InvalidOperation as e:
        raise CashTenderError(
            f"Invalid cash amount: {value!r}",
            code=ValidationCode.INVALID_CASH_TENDER,
            field="tendered",
        ) from e

    if not amount.is_finite() or amount <= 0:
        raise CashTenderError(
            f"Invalid cash amount: {value!r}",
            code=ValidationCode.INVALID_CASH_TENDER,
            field="tendered",
        )
    return amount


def calculate_change(
    tendered: Decimal | int | float | str | None, total: Decimal
) -> Decimal:
    """
    Change due for a cash payment.

    Args:
        tendered: Amount handed over by the customer.
        total: Order total.

    Returns:
        tendered - total (zero on exact payment).

    Raises:
        CashTenderError: If the tender is invalid or below the total.
    """
    amount = parse_tender(tendered)
    if amount < total:
        raise CashTenderError(
            "Cash amount must be at least the order total",
            code=ValidationCode.CASH_TENDER_INSUFFICIENT,
            field="tendered",
        )
    return amount - total
