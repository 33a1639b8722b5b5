"""Registry access for Hex package tarballs."""

from .client import RegistryClient, tarball_filename
from .tokens import TokenStore
from .types import (
    FetchError,
    FetchResponse,
    Fetched,
    NotModified,
    Offline,
    RegistryClientConfig,
)

__all__ = [
    "RegistryClient",
    "RegistryClientConfig",
    "TokenStore",
    "FetchResponse",
    "Fetched",
    "FetchError",
    "NotModified",
    "Offline",
    "tarball_filename",
]
