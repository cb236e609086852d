"""HTTP store client - integration with the store REST API."""

import asyncio
import logging
import time
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx
from checkout_schemas import (
    Address,
    AddressInput,
    BaseModification,
    CartExtra,
    CartItem,
    CartSnapshot,
    IngredientReference,
    LoyaltyBalance,
    LoyaltyRates,
    OrderDraft,
    OrderResult,
    StoreSettings,
)
from pydantic import ValidationError

from apps.checkout.config import settings
from apps.checkout.exceptions import (
    OrderRejectedError,
    StoreAPIError,
    StoreAuthError,
    StoreConnectionError,
)

logger = logging.getLogger(__name__)


def _to_decimal(value: Any, default: Decimal | None = None) -> Decimal | None:
    if value is None or value == "" or isinstance(value, bool):
        return default
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default
    return number if number.is_finite() else default


def _to_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _expect_object(body: Any, what: str) -> dict[str, Any]:
    """Reject 2xx bodies that are not a JSON object."""
    if not isinstance(body, dict):
        raise StoreAPIError(
            f"Malformed {what} response: not an object ({type(body).__name__})"
        )
    return body


def _error_message(body: Any, status_code: int) -> str:
    if isinstance(body, dict):
        for key in ("error", "msg", "message"):
            if body.get(key):
                return str(body[key])
    return f"Store API error {status_code}"


class HTTPStoreClient:
    """
    Store client implementing the StoreAPI protocol over httpx.

    Talks to the store's REST API:
    - Cart (/api/cart/me)
    - Customer addresses (/api/customers/{user_id}/addresses)
    - Loyalty balance (/api/loyalty/balance/{user_id})
    - Public settings (/api/settings/public), cached
    - Ingredient reference data (/api/ingredients/{id})
    - Orders (/api/orders/)

    Requests are never retried here; retries are user-initiated.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        base_url: str | None = None,
        access_token: str = "",
        user_id: int | None = None,
        settings_ttl: float | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            http_client: Optional HTTP client for dependency injection (testing).
            base_url: Store API base URL, defaults to settings.API_BASE_URL.
            access_token: Bearer token of the logged-in customer.
            user_id: Id of the logged-in customer.
            settings_ttl: Seconds to cache public settings.
        """
        self._client = http_client or httpx.AsyncClient(timeout=settings.API_TIMEOUT)
        self._owns_client = http_client is None
        self._base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self._access_token = access_token
        self._user_id = user_id
        self._settings_ttl = (
            settings.SETTINGS_CACHE_TTL if settings_ttl is None else settings_ttl
        )
        self._settings_cache: tuple[float, StoreSettings] | None = None
        self._settings_lock = asyncio.Lock()

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client:
            await self._client.aclose()

    # =========================================================================
    # HTTP Helpers
    # =========================================================================

    async def _request(
        self,
        method: str,
        path: str,
        skip_auth: bool = False,
        **kwargs: Any,
    ) -> Any:
        """
        Make a request and return the decoded body.

        Raises:
            StoreConnectionError: On transport failure.
            StoreAuthError: On 401/403.
            StoreAPIError: On any other non-2xx response.
        """
        headers = {"Content-Type": "application/json", **kwargs.pop("headers", {})}
        if self._access_token and not skip_auth:
            headers["Authorization"] = f"Bearer {self._access_token}"

        try:
            response = await self._client.request(
                method, f"{self._base_url}{path}", headers=headers, **kwargs
            )
        except httpx.RequestError as e:
            raise StoreConnectionError(f"Store API unreachable: {e}") from e

        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            try:
                body: Any = response.json()
            except ValueError:
                body = response.text
        else:
            body = response.text

        if response.is_success:
            return body

        message = _error_message(body, response.status_code)
        code = body.get("error_code") if isinstance(body, dict) else None

        if response.status_code in (401, 403):
            raise StoreAuthError(
                message,
                status_code=response.status_code,
                response_body=response.text,
                code=code,
            )

        raise StoreAPIError(
            message,
            status_code=response.status_code,
            response_body=response.text,
            code=code,
        )

    def _customer_path(self, suffix: str = "") -> str:
        if not self._user_id:
            raise StoreAuthError("Customer is not authenticated")
        return f"/api/customers/{self._user_id}/addresses{suffix}"

    # =========================================================================
    # Cart
    # =========================================================================

    async def fetch_cart(self) -> CartSnapshot:
        """Get the logged-in customer's cart."""
        data = await self._request("GET", "/api/cart/me")
        return self._parse_cart(_expect_object(data, "cart"))

    async def clear_cart(self) -> None:
        """Empty the logged-in customer's cart."""
        await self._request("DELETE", "/api/cart/me/clear")

    def _parse_cart(self, data: dict[str, Any]) -> CartSnapshot:
        """Parse a cart response into a snapshot."""
        cart = _expect_object(data.get("cart") or {}, "cart")
        try:
            return CartSnapshot(
                cart_id=cart.get("id"),
                items=[self._parse_cart_item(item) for item in cart.get("items") or []],
            )
        except (ValidationError, KeyError, TypeError, AttributeError) as e:
            raise StoreAPIError(f"Malformed cart response: {e}") from e

    def _parse_cart_item(self, item: dict[str, Any]) -> CartItem:
        """Parse one cart item with its extras and base modifications."""
        product = item.get("product") or {}

        extras = [
            CartExtra(
                ingredient_id=extra["ingredient_id"],
                name=extra.get("name", ""),
                quantity=extra.get("quantity", 1),
                unit_price=_to_decimal(
                    extra.get("ingredient_price", extra.get("unit_price")),
                    Decimal("0.00"),
                ),
            )
            for extra in item.get("extras", [])
        ]

        modifications = [
            BaseModification(
                ingredient_id=mod["ingredient_id"],
                name=mod.get("name", ""),
                delta=mod["delta"],
                unit_price=_to_decimal(mod.get("ingredient_price")),
            )
            for mod in item.get("base_modifications", [])
            if mod.get("delta")
        ]

        return CartItem(
            id=item.get("id"),
            product_id=item["product_id"],
            name=product.get("name", ""),
            quantity=item.get("quantity", 1),
            extras=extras,
            base_modifications=modifications,
            notes=item.get("notes") or "",
            item_subtotal=_to_decimal(item.get("item_subtotal"), Decimal("0")),
        )

    # =========================================================================
    # Addresses
    # =========================================================================

    async def fetch_addresses(self) -> list[Address]:
        """Get the customer's saved addresses."""
        data = await self._request("GET", self._customer_path())
        try:
            return [Address.model_validate(row) for row in data or []]
        except ValidationError as e:
            raise StoreAPIError(f"Malformed address list: {e}") from e

    async def create_address(self, data: AddressInput) -> Address:
        """Save a new address."""
        body = await self._request("POST", self._customer_path(), json=data.to_payload())
        return self._parse_address(body)

    async def update_address(self, address_id: int, data: AddressInput) -> Address:
        """Replace the fields of a saved address."""
        body = await self._request(
            "PUT", self._customer_path(f"/{address_id}"), json=data.to_payload()
        )
        return self._parse_address(body)

    async def set_default_address(self, address_id: int) -> None:
        """Mark an address as the default."""
        await self._request("PUT", self._customer_path(f"/{address_id}/set-default"))

    def _parse_address(self, body: Any) -> Address:
        # Some endpoints wrap the record as {"address": {...}}
        if isinstance(body, dict) and isinstance(body.get("address"), dict):
            body = body["address"]
        try:
            return Address.model_validate(body)
        except ValidationError as e:
            raise StoreAPIError(f"Malformed address response: {e}") from e

    # =========================================================================
    # Loyalty and store settings
    # =========================================================================

    async def fetch_loyalty_balance(self, user_id: int) -> LoyaltyBalance:
        """Get the point balance of a customer."""
        data = _expect_object(
            await self._request("GET", f"/api/loyalty/balance/{user_id}"),
            "loyalty balance",
        )
        expires = data.get("expiration_date")
        if isinstance(expires, str):
            # Date part only; the API sometimes sends a full timestamp
            expires = expires[:10] or None
        try:
            return LoyaltyBalance(
                current_balance=int(data.get("current_balance") or 0),
                expiration_date=expires,
            )
        except (ValidationError, TypeError, ValueError) as e:
            raise StoreAPIError(f"Malformed loyalty balance: {e}") from e

    async def fetch_store_settings(self) -> StoreSettings:
        """
        Get public store settings, cached for the configured TTL.

        Invalid rates fall back to the configured defaults.
        """
        # Concurrent callers wait for one request instead of each fetching
        async with self._settings_lock:
            now = time.monotonic()
            cached = self._settings_cache
            if cached and now - cached[0] < self._settings_ttl:
                return cached[1]

            data = await self._request("GET", "/api/settings/public", skip_auth=True)
            store_settings = self._parse_store_settings(
                _expect_object(data, "store settings")
            )
            self._settings_cache = (now, store_settings)
            return store_settings

    def _parse_store_settings(self, data: dict[str, Any]) -> StoreSettings:
        """Parse public settings, replacing invalid values with defaults."""
        fee = _to_decimal(data.get("delivery_fee"), settings.DEFAULT_DELIVERY_FEE)
        if fee is None or fee < 0:
            fee = settings.DEFAULT_DELIVERY_FEE

        rates = data.get("loyalty_rates")
        if not isinstance(rates, dict):
            rates = {}

        gain_rate = _to_decimal(rates.get("gain_rate"))
        if gain_rate is None or gain_rate <= 0:
            logger.warning(
                "Invalid gain_rate %r from store settings, using %s",
                rates.get("gain_rate"),
                settings.DEFAULT_EARN_CURRENCY_PER_POINT,
            )
            gain_rate = settings.DEFAULT_EARN_CURRENCY_PER_POINT

        points_per_unit = settings.DEFAULT_REDEMPTION_POINTS_PER_UNIT
        redemption_rate = _to_decimal(rates.get("redemption_rate"))
        if redemption_rate is not None and redemption_rate > 0:
            points_per_unit = int((Decimal(1) / redemption_rate).to_integral_value())

        expiration_days = _to_int(rates.get("expiration_days") or 60, 60)

        try:
            return StoreSettings(
                delivery_fee=fee,
                loyalty_rates=LoyaltyRates(
                    redemption_points_per_unit=max(points_per_unit, 1),
                    earn_currency_per_point=gain_rate,
                    expiration_days=expiration_days,
                ),
            )
        except ValidationError as e:
            raise StoreAPIError(f"Malformed store settings: {e}") from e

    async def fetch_delivery_fee(self) -> Decimal:
        """System delivery fee charged on delivery orders."""
        return (await self.fetch_store_settings()).delivery_fee

    async def fetch_redemption_rate(self) -> int:
        """Points that make up one currency unit of discount."""
        return (await self.fetch_store_settings()).loyalty_rates.redemption_points_per_unit

    async def fetch_earn_rate(self) -> Decimal:
        """Currency spent per loyalty point earned."""
        return (await self.fetch_store_settings()).loyalty_rates.earn_currency_per_point

    # =========================================================================
    # Ingredients
    # =========================================================================

    async def fetch_ingredient_reference(
        self, ingredient_id: int
    ) -> IngredientReference:
        """Get the reference unit price of an ingredient."""
        data = _expect_object(
            await self._request("GET", f"/api/ingredients/{ingredient_id}"),
            "ingredient",
        )
        try:
            return IngredientReference(
                id=data.get("id", ingredient_id),
                name=data.get("name") or "",
                unit_price=_to_decimal(data.get("price"), Decimal("0")),
                unit=data.get("stock_unit") or "un",
            )
        except ValidationError as e:
            raise StoreAPIError(f"Malformed ingredient response: {e}") from e

    # =========================================================================
    # Orders
    # =========================================================================

    async def submit_order(self, draft: OrderDraft) -> OrderResult:
        """
        Place an order sourced from the live cart.

        Raises:
            OrderRejectedError: If the store answers 4xx with an error_code.
            StoreAPIError: On any other failed response.
            StoreConnectionError: If the store cannot be reached.
        """
        try:
            data = await self._request("POST", "/api/orders/", json=draft.to_payload())
        except StoreAuthError:
            raise
        except StoreAPIError as e:
            if e.code and e.status_code is not None and e.status_code < 500:
                raise OrderRejectedError(
                    e.message,
                    status_code=e.status_code,
                    response_body=e.response_body,
                    code=e.code,
                ) from e
            raise

        try:
            return OrderResult.model_validate(data)
        except ValidationError as e:
            raise StoreAPIError(f"Malformed order response: {e}") from e
