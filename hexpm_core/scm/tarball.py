"""Hex-style package tarballs.

Outer archive (uncompressed tar)::

    VERSION           format version, currently "3"
    CHECKSUM          sha256 hex of VERSION + metadata.yml + contents.tar.gz
    metadata.yml      package metadata (name, version, build_tools, files, ...)
    contents.tar.gz   the package sources
"""

from __future__ import annotations

import hashlib
import io
import logging
import tarfile
from pathlib import Path
from typing import Any, Mapping, Protocol

import yaml

from hexpm_core.errors import UnpackError, UnsafeArchiveError

logger = logging.getLogger(__name__)

TARBALL_VERSION = b"3"
_VERSION_FILE = "VERSION"
_CHECKSUM_FILE = "CHECKSUM"
_METADATA_FILE = "metadata.yml"
_CONTENTS_FILE = "contents.tar.gz"
_REQUIRED_FILES = (_VERSION_FILE, _CHECKSUM_FILE, _METADATA_FILE, _CONTENTS_FILE)


class Unpacker(Protocol):
    def unpack(self, archive_path: Path, dest: Path, package: tuple[str, str]) -> dict[str, Any]: ...


class TarballUnpacker:
    def unpack(self, archive_path: Path, dest: Path, package: tuple[str, str]) -> dict[str, Any]:
        name, version = package
        members = _read_outer(archive_path)

        expected = members[_CHECKSUM_FILE].decode("ascii", errors="replace").strip().lower()
        actual = tarball_checksum(members[_VERSION_FILE], members[_METADATA_FILE], members[_CONTENTS_FILE])
        if expected != actual:
            raise UnpackError(f"checksum mismatch for {name}-{version}: expected {expected}, got {actual}")

        metadata = _parse_metadata(members[_METADATA_FILE])
        meta_name = str(metadata.get("name") or name)
        meta_version = str(metadata.get("version") or version)
        if (meta_name, meta_version) != (name, version):
            raise UnpackError(
                f"tarball metadata names {meta_name}-{meta_version}, expected {name}-{version}"
            )

        files = _extract_contents(members[_CONTENTS_FILE], dest)
        if not isinstance(metadata.get("files"), list):
            metadata["files"] = files
        logger.debug("unpacked %s-%s files=%s dest=%s", name, version, len(files), dest)
        return metadata


def tarball_checksum(version: bytes, metadata: bytes, contents: bytes) -> str:
    digest = hashlib.sha256()
    digest.update(version)
    digest.update(metadata)
    digest.update(contents)
    return digest.hexdigest()


def create_tarball(metadata: Mapping[str, Any], files: Mapping[str, bytes]) -> bytes:
    contents = _build_contents(files)
    metadata_blob = yaml.safe_dump(dict(metadata), sort_keys=True).encode("utf-8")
    checksum = tarball_checksum(TARBALL_VERSION, metadata_blob, contents).upper().encode("ascii")

    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w") as outer:
        for member_name, blob in (
            (_VERSION_FILE, TARBALL_VERSION),
            (_CHECKSUM_FILE, checksum),
            (_METADATA_FILE, metadata_blob),
            (_CONTENTS_FILE, contents),
        ):
            _add_bytes(outer, member_name, blob)
    return buffer.getvalue()


def _build_contents(files: Mapping[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as inner:
        for rel in sorted(files):
            _add_bytes(inner, rel, files[rel])
    return buffer.getvalue()


def _add_bytes(archive: tarfile.TarFile, name: str, blob: bytes) -> None:
    info = tarfile.TarInfo(name=name)
    info.size = len(blob)
    info.mode = 0o644
    archive.addfile(info, io.BytesIO(blob))


def _read_outer(archive_path: Path) -> dict[str, bytes]:
    try:
        with tarfile.open(archive_path, mode="r:") as outer:
            members: dict[str, bytes] = {}
            for member in outer.getmembers():
                if not member.isfile() or member.name not in _REQUIRED_FILES:
                    continue
                handle = outer.extractfile(member)
                if handle is not None:
                    members[member.name] = handle.read()
    except (OSError, tarfile.TarError) as exc:
        raise UnpackError(f"unable to read package tarball {archive_path}: {exc}") from exc
    missing = [item for item in _REQUIRED_FILES if item not in members]
    if missing:
        raise UnpackError(f"package tarball {archive_path} is missing {', '.join(missing)}")
    return members


def _parse_metadata(blob: bytes) -> dict[str, Any]:
    try:
        payload = yaml.safe_load(blob.decode("utf-8"))
    except (UnicodeDecodeError, yaml.YAMLError) as exc:
        raise UnpackError(f"invalid tarball metadata: {exc}") from exc
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise UnpackError("tarball metadata must be a mapping")
    return {str(key): value for key, value in payload.items()}


def _extract_contents(blob: bytes, dest: Path) -> list[str]:
    dest.mkdir(parents=True, exist_ok=True)
    root = dest.resolve()
    files: list[str] = []
    try:
        with tarfile.open(fileobj=io.BytesIO(blob), mode="r:gz") as inner:
            for member in inner.getmembers():
                target = _member_target(root, member.name)
                if member.isdir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                if not member.isfile():
                    logger.debug("skipping non-regular tarball member %s", member.name)
                    continue
                handle = inner.extractfile(member)
                if handle is None:
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(handle.read())
                files.append(Path(member.name).as_posix())
    except (OSError, tarfile.TarError) as exc:
        raise UnpackError(f"unable to extract package contents: {exc}") from exc
    return files


def _member_target(root: Path, member_name: str) -> Path:
    target = root.joinpath(member_name).resolve()
    if target != root and not target.is_relative_to(root):
        raise UnsafeArchiveError(f"tarball member escapes the destination: {member_name}")
    return target
