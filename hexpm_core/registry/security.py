"""Credential redaction for registry request logging."""

from __future__ import annotations

from typing import Mapping
from urllib.parse import urlsplit

_SENSITIVE_HEADERS = ("authorization", "cookie", "token")


def redact_url(url: str) -> str:
    if "://" not in url:
        return url
    parsed = urlsplit(url)
    if not parsed.password:
        return url
    safe_netloc = parsed.netloc.replace(parsed.password, "***")
    return url.replace(parsed.netloc, safe_netloc)


def redact_headers_for_log(headers: Mapping[str, str]) -> dict[str, str]:
    """Mask credential headers, keeping a short prefix so keys stay tellable apart."""
    redacted: dict[str, str] = {}
    for key, value in headers.items():
        if not any(marker in key.lower() for marker in _SENSITIVE_HEADERS):
            redacted[key] = value
        elif len(value) > 8:
            redacted[key] = f"{value[:4]}***"
        else:
            redacted[key] = "***"
    return redacted
