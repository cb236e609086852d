"""
Checkout settings.

Values come from the environment; every setting has a default so the engine
imports without configuration.
Run with: CHECKOUT_API_BASE_URL=https://api.example.com pytest
"""

import logging.config
from decimal import Decimal

import environ  # type: ignore[import-untyped]

# Initialize environ
env = environ.Env(
    CHECKOUT_API_BASE_URL=(str, "http://127.0.0.1:5000"),
    CHECKOUT_API_TIMEOUT=(float, 30.0),
    CHECKOUT_SETTINGS_CACHE_TTL=(int, 300),
    CHECKOUT_DEFAULT_DELIVERY_FEE=(str, "0.00"),
    CHECKOUT_REDEMPTION_POINTS_PER_UNIT=(int, 100),
    CHECKOUT_EARN_CURRENCY_PER_POINT=(str, "0.10"),
    CHECKOUT_MAX_LOYALTY_POINTS=(int, 999999),
    CHECKOUT_CLIENT=(str, "http"),
    CHECKOUT_LOG_LEVEL=(str, "INFO"),
)

# Store API
API_BASE_URL = env("CHECKOUT_API_BASE_URL").rstrip("/")
API_TIMEOUT = env("CHECKOUT_API_TIMEOUT")

# Public settings (/api/settings/public) are cached for this many seconds
SETTINGS_CACHE_TTL = env("CHECKOUT_SETTINGS_CACHE_TTL")

# Collaborator implementation: "http" or "mock"
CLIENT = env("CHECKOUT_CLIENT")

# Fallbacks used when the public settings are unavailable or invalid
DEFAULT_DELIVERY_FEE = Decimal(env("CHECKOUT_DEFAULT_DELIVERY_FEE"))
DEFAULT_REDEMPTION_POINTS_PER_UNIT = env("CHECKOUT_REDEMPTION_POINTS_PER_UNIT")
DEFAULT_EARN_CURRENCY_PER_POINT = Decimal(env("CHECKOUT_EARN_CURRENCY_PER_POINT"))

# Upper bound of any point quantity handled by the loyalty program
MAX_LOYALTY_POINTS = env("CHECKOUT_MAX_LOYALTY_POINTS")

# Logging
LOG_LEVEL = env("CHECKOUT_LOG_LEVEL").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "loggers": {
        "apps.checkout": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
        "httpx": {
            "handlers": ["console"],
            "level": "WARNING",
        },
    },
}


def configure_logging() -> None:
    """Apply LOGGING to the process."""
    logging.config.dictConfig(LOGGING)
