from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Sequence

HEX_SOURCE = "hex"


@dataclass(frozen=True)
class PackageKey:
    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.name}-{self.version}"


@dataclass(frozen=True)
class LockEntry:
    name: str
    version: str
    checksum: str | None = None
    managers: tuple[str, ...] | None = None
    deps: tuple[str, ...] = ()
    source: str = HEX_SOURCE

    @property
    def key(self) -> PackageKey:
        return PackageKey(self.name, self.version)

    @property
    def is_hex(self) -> bool:
        return self.source == HEX_SOURCE

    def to_tuple(self) -> tuple[Any, ...]:
        managers = list(self.managers) if self.managers is not None else None
        return (self.source, self.name, self.version, self.checksum, managers, list(self.deps))

    @classmethod
    def from_raw(cls, raw: Any) -> "LockEntry | None":
        """Normalize a host lock value into a LockEntry.

        Accepts ``None``, an existing LockEntry, a mapping with ``source``/``name``/
        ``version`` keys, or a ``(source, name, version[, checksum[, managers[, deps]]])``
        sequence as written by older lock files.
        """
        if raw is None or isinstance(raw, LockEntry):
            return raw
        if isinstance(raw, Mapping):
            return cls._from_fields(
                source=raw.get("source", HEX_SOURCE),
                name=raw.get("name"),
                version=raw.get("version"),
                checksum=raw.get("checksum"),
                managers=raw.get("managers"),
                deps=raw.get("deps"),
            )
        if isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
            items = list(raw)
            if len(items) < 3 or len(items) > 6:
                raise ValueError(f"unsupported lock entry arity {len(items)}: {raw!r}")
            padded = items + [None] * (6 - len(items))
            source, name, version, checksum, managers, deps = padded
            return cls._from_fields(
                source=source,
                name=name,
                version=version,
                checksum=checksum,
                managers=managers,
                deps=deps,
            )
        raise ValueError(f"unsupported lock entry: {raw!r}")

    @classmethod
    def _from_fields(
        cls,
        *,
        source: Any,
        name: Any,
        version: Any,
        checksum: Any,
        managers: Any,
        deps: Any,
    ) -> "LockEntry":
        name_text = str(name or "").strip()
        version_text = str(version or "").strip()
        if not name_text or not version_text:
            raise ValueError("lock entry name and version are required")
        if isinstance(checksum, bytes):
            checksum = checksum.decode("ascii")
        checksum_text = str(checksum).strip() if checksum is not None else ""
        return cls(
            name=name_text,
            version=version_text,
            checksum=checksum_text or None,
            managers=tuple(str(item) for item in managers) if managers is not None else None,
            deps=tuple(str(item) for item in deps or ()),
            source=str(source or HEX_SOURCE),
        )


@dataclass(frozen=True)
class Manifest:
    name: str
    version: str
    checksum: str | None = None
    managers: tuple[str, ...] = ()
    # False only for legacy ``name,version`` manifests that predate checksums.
    has_checksum_field: bool = field(default=True, compare=False)


class LockStatus(str, Enum):
    OK = "ok"
    MISMATCH = "mismatch"
    OUTDATED = "outdated"


class FetchResultKind(str, Enum):
    USING_CACHE = "using_cache"
    USING_CACHE_OFFLINE = "using_cache_offline"
    FETCHED = "fetched"
    FAILED_BUT_CACHED_FALLBACK = "failed_but_cached_fallback"
    FAILED_FATAL = "failed_fatal"


@dataclass(frozen=True)
class FetchResult:
    kind: FetchResultKind
    token: str | None = None
    reason: str | None = None

    @property
    def used_cache(self) -> bool:
        return self.kind in {
            FetchResultKind.USING_CACHE,
            FetchResultKind.USING_CACHE_OFFLINE,
            FetchResultKind.FAILED_BUT_CACHED_FALLBACK,
        }


@dataclass(frozen=True)
class CheckoutRequest:
    app: str
    dest: Path
    lock: LockEntry | None
    package: str | None = None

    @property
    def package_name(self) -> str:
        if self.package:
            return self.package
        if self.lock is not None:
            return self.lock.name
        return self.app


@dataclass(frozen=True)
class CheckoutResult:
    lock: LockEntry
    fetch: FetchResult
    metadata: dict[str, Any] = field(default_factory=dict)
