"""Store clients - collaborators the checkout engine talks to."""

from typing import Any

from apps.checkout.clients.base import StoreAPI
from apps.checkout.clients.http import HTTPStoreClient
from apps.checkout.clients.mock import MockStoreClient
from apps.checkout.config import settings


def get_client(kind: str | None = None, **kwargs: Any) -> StoreAPI:
    """
    Get a store client instance.

    This is the main entry point for obtaining store clients. Use this
    factory function rather than instantiating clients directly.

    Args:
        kind: "http" or "mock". Defaults to settings.CLIENT.
        **kwargs: Additional arguments passed to the client constructor.
            For HTTPStoreClient: access_token, user_id, base_url.

    Returns:
        A client implementing the StoreAPI protocol.

    Raises:
        ValueError: If the kind is not supported.

    Example:
        client = get_client("http", access_token=token, user_id=42)
        cart = await client.fetch_cart()
    """
    kind = kind or settings.CLIENT
    if kind == "mock":
        return MockStoreClient(**kwargs)
    elif kind == "http":
        return HTTPStoreClient(**kwargs)
    else:
        raise ValueError(f"Unsupported store client: {kind}. Supported: http, mock")


__all__ = [
    "HTTPStoreClient",
    "MockStoreClient",
    "StoreAPI",
    "get_client",
]
