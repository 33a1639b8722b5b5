"""Workspace configuration for package checkouts."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from .errors import ConfigError

CONFIG_SECTION = "hex"
DEFAULT_REPO_URL = "https://repo.hex.pm"
DEFAULT_REQUEST_TIMEOUT_SECONDS = 60.0
PACKAGES_DIR = "packages"
TOKEN_STORE_FILENAME = "tarball_etags.json"


@dataclass(frozen=True)
class CheckoutConfig:
    home: Path
    repo_url: str = DEFAULT_REPO_URL
    offline: bool = False
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    max_workers: int = 8
    # Older registry stores keep token updates in memory until persisted explicitly.
    persist_tokens_eagerly: bool = True
    auth_token: str | None = None

    @property
    def cache_root(self) -> Path:
        return self.home / PACKAGES_DIR

    @property
    def token_store_path(self) -> Path:
        return self.home / TOKEN_STORE_FILENAME

    @property
    def fetch_timeout_seconds(self) -> float:
        return self.request_timeout_seconds * 2


def default_home(env: Mapping[str, str] | None = None) -> Path:
    env = os.environ if env is None else env
    explicit = _string_or_none(env.get("HEX_HOME"))
    if explicit:
        return Path(explicit).expanduser()
    return Path.home() / ".hex"


def load_checkout_config(
    workspace_root: Path,
    *,
    env: Mapping[str, str] | None = None,
) -> CheckoutConfig:
    env = os.environ if env is None else env
    section = _load_hex_section(workspace_root)

    home_raw = _string_or_none(env.get("HEX_HOME")) or _string_or_none(section.get("home"))
    home = Path(home_raw).expanduser() if home_raw else default_home(env)
    if not home.is_absolute():
        home = (workspace_root / home).resolve()

    repo_url = (
        _string_or_none(env.get("HEX_REPO_URL"))
        or _string_or_none(section.get("repo_url"))
        or DEFAULT_REPO_URL
    )
    offline = _to_bool(env.get("HEX_OFFLINE"), default=_to_bool(section.get("offline"), default=False))
    auth_token = _string_or_none(env.get("HEX_AUTH_TOKEN")) or _string_or_none(section.get("auth_token"))

    try:
        timeout = float(section.get("request_timeout_seconds", DEFAULT_REQUEST_TIMEOUT_SECONDS))
        max_workers = int(section.get("max_workers", 8))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid [{CONFIG_SECTION}] numeric value: {exc}") from exc

    return CheckoutConfig(
        home=home,
        repo_url=repo_url.rstrip("/"),
        offline=offline,
        request_timeout_seconds=max(timeout, 1.0),
        max_workers=max(max_workers, 1),
        persist_tokens_eagerly=_to_bool(section.get("persist_tokens_eagerly"), default=True),
        auth_token=auth_token,
    )


def _load_hex_section(workspace_root: Path) -> dict[str, Any]:
    config_path = workspace_root / "config" / "config.toml"
    if not config_path.exists():
        return {}
    try:
        payload = tomllib.loads(config_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"invalid configuration file {config_path}: {exc}") from exc
    section = payload.get(CONFIG_SECTION)
    return section if isinstance(section, dict) else {}


def _string_or_none(value: Any) -> str | None:
    if value is None:
        return None
    data = str(value).strip()
    return data if data else None


def _to_bool(value: Any, *, default: bool) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    return bool(value)
