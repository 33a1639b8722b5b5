"""Hex package checkout engine."""

from .config import CheckoutConfig, load_checkout_config
from .errors import (
    CheckoutError,
    ConfigError,
    FetchFailedError,
    FetchTimedOutError,
    LockMissingError,
    UnpackError,
    UnsafeArchiveError,
    UnsupportedSourceError,
)

__all__ = [
    "CheckoutConfig",
    "load_checkout_config",
    "CheckoutError",
    "ConfigError",
    "FetchFailedError",
    "FetchTimedOutError",
    "LockMissingError",
    "UnpackError",
    "UnsafeArchiveError",
    "UnsupportedSourceError",
]
