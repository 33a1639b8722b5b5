"""Checkout engine for Hex packages."""

from .cache import PackageCache
from .checkout import (
    BUILD_TOOLS,
    PackageCheckout,
    accepts_options,
    equal,
    fetchable,
    format_lock,
    format_source,
    guess_build_tools,
    is_checked_out,
    lock_managers,
    resolve_fetch_result,
)
from .coordinator import FetchCoordinator
from .manifest import MANIFEST_FILENAME, decode_manifest, encode_manifest, read_manifest, write_manifest
from .models import (
    HEX_SOURCE,
    CheckoutRequest,
    CheckoutResult,
    FetchResult,
    FetchResultKind,
    LockEntry,
    LockStatus,
    Manifest,
    PackageKey,
)
from .status import lock_status
from .tarball import TarballUnpacker, Unpacker, create_tarball, tarball_checksum

__all__ = [
    "BUILD_TOOLS",
    "HEX_SOURCE",
    "MANIFEST_FILENAME",
    "CheckoutRequest",
    "CheckoutResult",
    "FetchCoordinator",
    "FetchResult",
    "FetchResultKind",
    "LockEntry",
    "LockStatus",
    "Manifest",
    "PackageCache",
    "PackageCheckout",
    "PackageKey",
    "TarballUnpacker",
    "Unpacker",
    "accepts_options",
    "create_tarball",
    "decode_manifest",
    "encode_manifest",
    "equal",
    "fetchable",
    "format_lock",
    "format_source",
    "guess_build_tools",
    "is_checked_out",
    "lock_managers",
    "lock_status",
    "read_manifest",
    "resolve_fetch_result",
    "tarball_checksum",
    "write_manifest",
]
