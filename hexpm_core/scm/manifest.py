"""Codec for the ``.hex`` manifest written next to checked-out sources."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

from hexpm_core.errors import ManifestDecodeError

from .models import Manifest

MANIFEST_FILENAME = ".hex"


def manifest_path(dest: Path) -> Path:
    return dest / MANIFEST_FILENAME


def encode_manifest(
    name: str,
    version: str,
    checksum: str | None = None,
    managers: Iterable[str] | None = None,
) -> str:
    managers_line = ",".join(managers or ())
    return f"{name},{version},{checksum or ''}\n{managers_line}"


def decode_manifest(text: str) -> Manifest:
    lines = text.strip().split("\n")
    if len(lines) == 1:
        first, managers = lines[0], []
    elif len(lines) == 2:
        first = lines[0]
        managers = [item.strip() for item in lines[1].split(",") if item.strip()]
    else:
        raise ManifestDecodeError(f"expected one or two manifest lines, got {len(lines)}")

    fields = [item.strip() for item in first.split(",")]
    if len(fields) == 2:
        name, version = fields
        checksum, has_checksum_field = None, False
    elif len(fields) == 3:
        name, version, checksum = fields
        has_checksum_field = True
    else:
        raise ManifestDecodeError(f"malformed manifest line: {first!r}")
    if not name or not version:
        raise ManifestDecodeError(f"manifest is missing name or version: {first!r}")

    return Manifest(
        name=name,
        version=version,
        checksum=checksum or None,
        managers=tuple(managers),
        has_checksum_field=has_checksum_field,
    )


def read_manifest(dest: Path) -> Manifest | None:
    try:
        text = manifest_path(dest).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
    try:
        return decode_manifest(text)
    except ManifestDecodeError:
        return None


def write_manifest(
    dest: Path,
    name: str,
    version: str,
    checksum: str | None,
    managers: Iterable[str] | None,
) -> Path:
    path = manifest_path(dest)
    temp_path = path.with_name(path.name + ".tmp")
    temp_path.write_text(encode_manifest(name, version, checksum, managers), encoding="utf-8")
    os.replace(temp_path, path)
    return path
