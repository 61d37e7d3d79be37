# backend/barpos/config.py
from __future__ import annotations
import os


ATTRIBUTION_MODES = ("order_total", "proportional")


class ConfigurationError(RuntimeError):
    """Required configuration is missing or invalid. Fatal at startup."""


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/barpos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///barpos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Raw strings from the environment; validate_config parses them
    LOW_STOCK_THRESHOLD = os.environ.get("LOW_STOCK_THRESHOLD", "5")
    DASHBOARD_TOP_ITEMS = os.environ.get("DASHBOARD_TOP_ITEMS", "5")

    # How an unpriced line item is credited: the whole order total (legacy
    # behaviour) or a quantity-weighted share of it.
    REVENUE_ATTRIBUTION = os.environ.get("REVENUE_ATTRIBUTION", "order_total")

    # Upstream gateway forwards the authenticated role in this header
    ROLE_HEADER = os.environ.get("ROLE_HEADER", "X-User-Role")

    APP_VERSION = os.environ.get("APP_VERSION", "0.4.0")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


def _int_setting(config, key: str, minimum: int) -> int:
    value = config.get(key)
    if isinstance(value, bool):
        raise ConfigurationError(f"{key} must be an integer (got {value!r})")
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            raise ConfigurationError(f"{key} must be an integer (got {value!r})")
    if not isinstance(value, int) or value < minimum:
        raise ConfigurationError(f"{key} must be an integer of at least {minimum} (got {value!r})")
    return value

def validate_config(config) -> None:
    """
    Fail fast on settings the analytics engine cannot run without.

    Integer settings may arrive as environment strings; they are parsed and
    written back to ``config`` as ints.
    """
    if not config.get("SQLALCHEMY_DATABASE_URI"):
        raise ConfigurationError("DATABASE_URL is not configured")

    mode = config.get("REVENUE_ATTRIBUTION")
    if mode not in ATTRIBUTION_MODES:
        raise ConfigurationError(
            f"REVENUE_ATTRIBUTION must be one of {', '.join(ATTRIBUTION_MODES)} (got {mode!r})"
        )

    config["LOW_STOCK_THRESHOLD"] = _int_setting(config, "LOW_STOCK_THRESHOLD", minimum=0)
    config["DASHBOARD_TOP_ITEMS"] = _int_setting(config, "DASHBOARD_TOP_ITEMS", minimum=1)

    if not config.get("ROLE_HEADER"):
        raise ConfigurationError("ROLE_HEADER is not configured")
