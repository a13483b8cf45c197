"""
HTTP request capability backed by httpx.

Usage:
    requester = HttpxRequester(timeout=30.0)
    factory = ScriptFactory(request=requester)
    ...
    await requester.close()
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from scriptflow.utils import to_json

logger = logging.getLogger(__name__)


class HttpxRequester:
    """
    RequestCapability implementation using a shared httpx.AsyncClient.

    Non-2xx responses are returned like any other response; scripts
    inspect the result themselves. Transport errors propagate.
    """

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
        follow_redirects: bool = True,
    ):
        self._timeout = timeout
        self._follow_redirects = follow_redirects
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=self._follow_redirects,
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this requester created it."""
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __call__(
        self,
        method: str,
        url: str,
        headers: dict[str, Any],
        body: Any,
        cookies: dict[str, str] | None,
    ) -> dict[str, Any]:
        client = await self._get_client()
        request_headers = {name: str(value) for name, value in (headers or {}).items() if value is not None}
        if cookies:
            request_headers["Cookie"] = "; ".join(f"{name}={value}" for name, value in cookies.items())

        content: str | bytes | None = None
        if isinstance(body, (dict, list)):
            content = to_json(body)
            if not any(name.lower() == "content-type" for name in request_headers):
                request_headers["Content-Type"] = "application/json"
        elif body is not None:
            content = body if isinstance(body, (str, bytes)) else str(body)

        logger.debug(f"[http] {method} {url}")
        try:
            response = await client.request(method, url, headers=request_headers, content=content)
        except httpx.HTTPError as e:
            logger.warning(f"[http] {method} {url} failed: {e}")
            raise

        logger.debug(f"[http] {method} {url} -> {response.status_code}")
        return {
            "status": response.status_code,
            "headers": collect_headers(response.headers),
            "body": response.text,
            "cookies": dict(response.cookies),
        }


def collect_headers(headers: httpx.Headers) -> dict[str, list[str]]:
    """Group response headers by lowercased name."""
    collected: dict[str, list[str]] = {}
    for name, value in headers.multi_items():
        collected.setdefault(name.lower(), []).append(value)
    return collected
