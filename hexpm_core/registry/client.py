"""Conditional tarball fetches against a Hex-compatible repository."""

from __future__ import annotations

import logging

import requests
from requests.exceptions import RequestException, Timeout

from .security import redact_headers_for_log, redact_url
from .types import Fetched, FetchError, FetchResponse, NotModified, Offline, RegistryClientConfig

logger = logging.getLogger(__name__)


class RegistryClient:
    """Single-attempt HTTP client; retry policy belongs to the caller."""

    def __init__(self, config: RegistryClientConfig) -> None:
        self.config = config

    def repo_url(self, path: str) -> str:
        return f"{self.config.repo_url.rstrip('/')}/{path.lstrip('/')}"

    def tarball_url(self, name: str, version: str) -> str:
        return self.repo_url(f"tarballs/{tarball_filename(name, version)}")

    def conditional_fetch(self, url: str, prior_token: str | None = None) -> FetchResponse:
        if self.config.offline:
            return Offline()

        headers: dict[str, str] = {}
        if prior_token:
            headers["if-none-match"] = prior_token
        if self.config.auth_token:
            headers["authorization"] = self.config.auth_token

        logger.debug(
            "registry request url=%s headers=%s",
            redact_url(url),
            redact_headers_for_log(headers),
        )
        try:
            response = requests.get(url, headers=headers, timeout=float(self.config.timeout_seconds))
        except Timeout as exc:
            logger.warning("registry request timed out url=%s", redact_url(url))
            return FetchError(f"request timed out after {self.config.timeout_seconds:.1f}s: {exc}")
        except RequestException as exc:
            logger.warning("registry transport error url=%s: %s", redact_url(url), exc)
            return FetchError(f"request failed: {exc}")

        status = response.status_code
        if status == 304:
            return NotModified()
        if status == 200:
            return Fetched(body=response.content, token=response.headers.get("etag"))
        return FetchError(f"request failed (status={status})")


def tarball_filename(name: str, version: str) -> str:
    return f"{name}-{version}.tar"
