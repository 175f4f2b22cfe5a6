#!/usr/bin/env python3
"""Environment defaults for the index deployment (read from .env when present)."""
import logging
import os

from dotenv import load_dotenv

from .errors import ConfigurationError

load_dotenv()

DEFAULT_API_VERSION = "2019-05-06"
DEFAULT_MAX_CALLS = 20
DEFAULT_PAUSE_SECS = 120


def _str_env(name: str) -> str | None:
    return (os.getenv(name) or "").strip() or None


def _bool_env(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    return raw in ("true", "1", "yes")


def int_env(name: str, default: int | None) -> int | None:
    """Integer from the environment; unset or empty gives default, anything else must parse."""
    raw = _str_env(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer (got {raw!r})") from None


def float_env(name: str, default: float | None) -> float | None:
    raw = _str_env(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number (got {raw!r})") from None


SEARCH_SERVICE_NAME = _str_env("SEARCH_SERVICE_NAME")
SEARCH_API_KEY = _str_env("SEARCH_API_KEY")
SEARCH_RESOURCE_GROUP = _str_env("SEARCH_RESOURCE_GROUP")
AZURE_SUBSCRIPTION_ID = _str_env("AZURE_SUBSCRIPTION_ID")
SEARCH_API_VERSION = _str_env("SEARCH_API_VERSION") or DEFAULT_API_VERSION
SEARCH_DEBUG = _bool_env("SEARCH_DEBUG")


def max_calls() -> int:
    return int_env("SEARCH_MAX_CALLS", DEFAULT_MAX_CALLS)


def pause_seconds() -> int:
    return int_env("SEARCH_PAUSE_SECS", DEFAULT_PAUSE_SECS)


def request_timeout() -> float | None:
    # None keeps the transport default (requests waits indefinitely).
    return float_env("SEARCH_REQUEST_TIMEOUT", None)


def configure_logging(debug: bool = False) -> None:
    """Attach a stderr handler to the package logger; DEBUG when asked, WARNING otherwise."""
    logger = logging.getLogger("index_deploy")
    logger.setLevel(logging.DEBUG if debug or SEARCH_DEBUG else logging.WARNING)
    if not logger.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(h)
