"""Checkout exceptions."""


class CheckoutError(Exception):
    """Base exception for checkout errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class StoreAPIError(CheckoutError):
    """Request to the store API reached the server and failed."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body
        self.code = code


class StoreAuthError(StoreAPIError):
    """Session rejected by the store API."""


class OrderRejectedError(StoreAPIError):
    """Order submission refused with a structured business error code."""


class StoreConnectionError(CheckoutError):
    """Store API could not be reached."""


class CheckoutValidationError(CheckoutError):
    """Local validation failed; nothing was sent to the store."""

    def __init__(self, message: str, code: str, field: str | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.field = field


class AddressValidationError(CheckoutValidationError):
    """Manually entered address is incomplete or malformed."""


class CashTenderError(CheckoutValidationError):
    """Cash tendered does not cover the order total."""
