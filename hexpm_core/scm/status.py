from __future__ import annotations

from pathlib import Path
from typing import Any

from .manifest import read_manifest
from .models import LockEntry, LockStatus, Manifest


def lock_status(dest: Path, lock: Any) -> LockStatus:
    """Classify the checkout at ``dest`` against its lock entry.

    A lock without a checksum accepts any recorded checksum, and a legacy
    manifest without a checksum field accepts any lock checksum. An empty
    recorded checksum under a pinned lock checksum is a mismatch.
    """
    try:
        entry = LockEntry.from_raw(lock)
    except ValueError:
        # Lock shapes from other sources are not ours to check out.
        return LockStatus.OUTDATED
    if entry is None:
        return LockStatus.MISMATCH
    if not entry.is_hex:
        return LockStatus.OUTDATED

    manifest = read_manifest(dest)
    if manifest is None:
        return LockStatus.MISMATCH
    if _matches(manifest, entry):
        return LockStatus.OK
    return LockStatus.MISMATCH


def _matches(manifest: Manifest, entry: LockEntry) -> bool:
    if manifest.name != entry.name or manifest.version != entry.version:
        return False
    if entry.checksum is None:
        return True
    if not manifest.has_checksum_field:
        return True
    return manifest.checksum is not None and manifest.checksum == entry.checksum
