"""Exceptions raised by the package checkout engine."""

from __future__ import annotations


class CheckoutError(RuntimeError):
    """Base class for checkout failures."""


class ConfigError(CheckoutError):
    """Raised when the workspace configuration cannot be parsed."""


class LockMissingError(CheckoutError):
    def __init__(self, package: str) -> None:
        super().__init__(
            f"The lock is missing for package {package}. This could be because another "
            "package has configured the application name for the dependency incorrectly. "
            "Verify with the maintainer the parent application"
        )
        self.package = package


class UnsupportedSourceError(CheckoutError):
    def __init__(self, package: str, source: str) -> None:
        super().__init__(f"The lock for package {package} is a {source} dependency, not a Hex package")
        self.package = package
        self.source = source


class FetchTimedOutError(CheckoutError):
    def __init__(self, key: object, timeout: float) -> None:
        super().__init__(f"timed out after {timeout:.1f}s waiting for fetch of {key!r}")
        self.key = key
        self.timeout = timeout


class FetchFailedError(CheckoutError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"Package fetch failed and no cached copy available: {reason}")
        self.reason = reason


class UnpackError(CheckoutError):
    """Raised when a cached archive cannot be unpacked."""


class UnsafeArchiveError(UnpackError):
    """Raised when an archive member would escape the destination directory."""


class ManifestDecodeError(ValueError):
    """Raised for manifest text that is neither the one-line nor the two-line shape."""
