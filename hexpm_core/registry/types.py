"""Registry client datatypes and configuration."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RegistryClientConfig:
    repo_url: str
    timeout_seconds: float = 60.0
    offline: bool = False
    auth_token: str | None = None


@dataclass(frozen=True)
class NotModified:
    pass


@dataclass(frozen=True)
class Fetched:
    body: bytes
    token: str | None


@dataclass(frozen=True)
class FetchError:
    reason: str


@dataclass(frozen=True)
class Offline:
    pass


FetchResponse = NotModified | Fetched | FetchError | Offline
