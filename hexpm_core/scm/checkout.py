"""Checkout of Hex packages into dependency directories."""

from __future__ import annotations

import logging
import posixpath
import shutil
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping

from hexpm_core.config import CheckoutConfig
from hexpm_core.errors import FetchFailedError, LockMissingError, UnpackError, UnsupportedSourceError
from hexpm_core.registry import (
    Fetched,
    FetchError,
    FetchResponse,
    NotModified,
    Offline,
    RegistryClient,
    RegistryClientConfig,
    TokenStore,
)
from hexpm_core.registry.security import redact_url

from .cache import PackageCache
from .coordinator import FetchCoordinator
from .manifest import write_manifest
from .models import (
    CheckoutRequest,
    CheckoutResult,
    FetchResult,
    FetchResultKind,
    LockEntry,
    LockStatus,
    PackageKey,
)
from .status import lock_status
from .tarball import TarballUnpacker, Unpacker

logger = logging.getLogger(__name__)

BUILD_TOOLS: tuple[tuple[str, str], ...] = (
    ("mix.exs", "mix"),
    ("rebar.config", "rebar"),
    ("rebar", "rebar"),
    ("Makefile", "make"),
    ("Makefile.win", "make"),
)


class PackageCheckout:
    def __init__(
        self,
        config: CheckoutConfig,
        *,
        client: RegistryClient | None = None,
        cache: PackageCache | None = None,
        tokens: TokenStore | None = None,
        coordinator: FetchCoordinator | None = None,
        unpacker: Unpacker | None = None,
    ) -> None:
        self.config = config
        self.client = client or RegistryClient(
            RegistryClientConfig(
                repo_url=config.repo_url,
                timeout_seconds=config.request_timeout_seconds,
                offline=config.offline,
                auth_token=config.auth_token,
            )
        )
        self.cache = cache or PackageCache(config.cache_root)
        self.tokens = tokens or TokenStore(
            config.token_store_path,
            persist_eagerly=config.persist_tokens_eagerly,
        )
        self.coordinator = coordinator or FetchCoordinator(max_workers=config.max_workers)
        self.unpacker: Unpacker = unpacker or TarballUnpacker()

    def checkout(self, request: CheckoutRequest) -> CheckoutResult:
        lock = LockEntry.from_raw(request.lock)
        if lock is None:
            raise LockMissingError(request.package_name)
        if not lock.is_hex:
            raise UnsupportedSourceError(request.package_name, lock.source)

        name = request.package_name
        version = lock.version
        dest = request.dest
        path = self.cache.path(name, version)
        logger.info("Checking package (%s)", redact_url(self.client.tarball_url(name, version)))

        key = PackageKey(name, version)
        self.coordinator.run(key, self._fetch_work(name, version))
        response = self.coordinator.await_result(key, self.config.fetch_timeout_seconds)
        fetch = resolve_fetch_result(response, cache_exists=self.cache.exists(path))
        self._report(fetch, name, version)

        _remove_destination(dest)
        try:
            metadata = self.unpacker.unpack(path, dest, (name, version))
        except Exception as exc:
            _remove_destination(dest)
            if isinstance(exc, UnpackError):
                raise
            raise UnpackError(f"unable to unpack {name}-{version}: {exc}") from exc

        managers = sorted(set(guess_build_tools(metadata)))
        write_manifest(dest, name, version, lock.checksum, managers)

        updated = LockEntry(
            name=lock.name,
            version=version,
            checksum=lock.checksum,
            managers=tuple(managers),
            deps=tuple(sorted(lock.deps)),
            source=lock.source,
        )
        return CheckoutResult(lock=updated, fetch=fetch, metadata=dict(metadata))

    def update(self, request: CheckoutRequest) -> CheckoutResult:
        return self.checkout(request)

    def prefetch(self, lock_map: Mapping[str, Any], deps_path: Path) -> list[PackageKey]:
        scheduled: list[PackageKey] = []
        for app, raw in lock_map.items():
            try:
                entry = LockEntry.from_raw(raw)
            except ValueError:
                logger.debug("skipping unrecognized lock entry for %s", app)
                continue
            if entry is None or not entry.is_hex:
                continue
            if lock_status(deps_path / str(app), entry) is LockStatus.OK:
                continue
            self.coordinator.run(entry.key, self._fetch_work(entry.name, entry.version))
            scheduled.append(entry.key)
        return scheduled

    def lock_status(self, dest: Path, lock: Any) -> LockStatus:
        return lock_status(dest, lock)

    def close(self) -> None:
        self.coordinator.shutdown(wait=True)
        self.tokens.persist()

    def _fetch_work(self, name: str, version: str) -> Callable[[], FetchResponse]:
        path = self.cache.path(name, version)
        url = self.client.tarball_url(name, version)
        # A token without the cached file behind it would turn a 304 into a missing archive.
        token = self.tokens.get_token(name, version) if self.cache.exists(path) else None

        def work() -> FetchResponse:
            response = self.client.conditional_fetch(url, token)
            if isinstance(response, Fetched):
                self.cache.ensure_root()
                self.cache.write(path, response.body)
            return response

        return work

    def _report(self, fetch: FetchResult, name: str, version: str) -> None:
        if fetch.kind is FetchResultKind.USING_CACHE:
            logger.info("Using locally cached package")
        elif fetch.kind is FetchResultKind.USING_CACHE_OFFLINE:
            logger.info("[OFFLINE] Using locally cached package")
        elif fetch.kind is FetchResultKind.FETCHED:
            self.tokens.put_token(name, version, fetch.token)
            logger.info("Fetched package")
        elif fetch.kind is FetchResultKind.FAILED_BUT_CACHED_FALLBACK:
            logger.error("%s", fetch.reason)
            logger.info("Fetch failed. Using locally cached package")
        else:
            logger.error("%s", fetch.reason)
            raise FetchFailedError(fetch.reason or "unknown error")


def resolve_fetch_result(response: FetchResponse, *, cache_exists: bool) -> FetchResult:
    if isinstance(response, NotModified):
        return FetchResult(FetchResultKind.USING_CACHE)
    if isinstance(response, Fetched):
        return FetchResult(FetchResultKind.FETCHED, token=response.token)
    if isinstance(response, Offline):
        if cache_exists:
            return FetchResult(FetchResultKind.USING_CACHE_OFFLINE)
        return FetchResult(FetchResultKind.FAILED_FATAL, reason="offline mode and package is not cached")
    if isinstance(response, FetchError):
        if cache_exists:
            return FetchResult(FetchResultKind.FAILED_BUT_CACHED_FALLBACK, reason=response.reason)
        return FetchResult(FetchResultKind.FAILED_FATAL, reason=response.reason)
    raise TypeError(f"unexpected fetch response: {response!r}")


def guess_build_tools(metadata: Mapping[str, Any]) -> list[str]:
    if "build_tools" in metadata:
        declared = metadata.get("build_tools") or ()
        if isinstance(declared, str):
            declared = [declared]
        return _unique(str(tool) for tool in declared)

    normalized = (posixpath.normpath(str(item)) for item in metadata.get("files") or ())
    base_files = {item for item in normalized if not posixpath.dirname(item)}
    return _unique(tool for filename, tool in BUILD_TOOLS if filename in base_files)


def format_lock(lock: Any) -> str | None:
    try:
        entry = LockEntry.from_raw(lock)
    except ValueError:
        return None
    if entry is None or not entry.is_hex:
        return None
    if entry.checksum is None:
        return f"{entry.version} ({entry.name})"
    return f"{entry.version} ({entry.name}) {entry.checksum[:8]}"


def lock_managers(lock: Any) -> list[str]:
    try:
        entry = LockEntry.from_raw(lock)
    except ValueError:
        return []
    if entry is None or not entry.is_hex:
        return []
    return list(entry.managers or ())


def is_checked_out(dest: Path) -> bool:
    return dest.is_dir()


def accepts_options(app: str, opts: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(opts)
    merged.setdefault("hex", app)
    return merged


def equal(opts1: Mapping[str, Any], opts2: Mapping[str, Any]) -> bool:
    return opts1.get("hex") == opts2.get("hex")


def format_source() -> str:
    return "Hex package"


def fetchable() -> bool:
    return True


def _unique(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        result.append(item)
    return result


def _remove_destination(dest: Path) -> None:
    if dest.is_symlink() or dest.is_file():
        dest.unlink()
    elif dest.exists():
        shutil.rmtree(dest)
