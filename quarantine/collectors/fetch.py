"""Secure fetch — retrieves a URL and sanitizes the body before handing it on.

Allowlisted URLs are returned verbatim without scanning. Every other
response body goes through ``ContentGuard.sanitize()``.

Transport errors (``httpx.HTTPError``) propagate to the caller: a failed
fetch has no content to protect, and the tool surface reports it as an error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import httpx

from quarantine.constants import FETCH_TIMEOUT_S
from quarantine.guard import ContentGuard
from quarantine.utils.logger import get_logger

logger = get_logger(__name__)

ALLOWED_METHODS = frozenset({"GET", "POST", "PUT", "DELETE"})


@dataclass(frozen=True)
class FetchResult:
    status: int
    content: str
    content_type: str
    sanitized: bool
    allowlisted: bool = False
    scan_summary: Optional[dict[str, Any]] = None
    quarantine_file: Optional[str] = None


def create_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(FETCH_TIMEOUT_S),
        follow_redirects=True,
    )


async def secure_fetch(
    guard: ContentGuard,
    url: str,
    method: str = "GET",
    headers: Optional[dict[str, str]] = None,
    body: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> FetchResult:
    """Fetch ``url`` and return its sanitized body.

    Args:
        guard:   ContentGuard used to scan and sanitize the body.
        url:     Absolute http(s) URL.
        method:  GET, POST, PUT or DELETE.
        headers: Optional request headers.
        body:    Request body, ignored for GET.
        client:  Optional shared AsyncClient (one is created and closed otherwise).

    Raises:
        ValueError:       Unsupported HTTP method.
        httpx.HTTPError:  Connection, timeout or protocol failure.
    """
    method = method.upper()
    if method not in ALLOWED_METHODS:
        raise ValueError(f"Unsupported HTTP method: {method}")

    own_client = client is None
    http = client or create_http_client()
    try:
        response = await http.request(
            method,
            url,
            headers=headers or {},
            content=body if method != "GET" else None,
        )
        raw = response.text
    finally:
        if own_client:
            await http.aclose()

    content_type = response.headers.get("content-type", "text/plain")

    if guard.is_allowlisted(url):
        return FetchResult(
            status=response.status_code,
            content=raw,
            content_type=content_type,
            sanitized=False,
            allowlisted=True,
        )

    result = guard.sanitize(raw, source=url)
    return FetchResult(
        status=response.status_code,
        content=result.content,
        content_type=content_type,
        sanitized=result.modified,
        scan_summary=guard.scan_summary(result),
        quarantine_file=result.quarantine_file,
    )
