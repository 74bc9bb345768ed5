"""Async page fetcher.

Responsible solely for retrieving raw HTML and response headers for a URL.

Uses httpx.AsyncClient which is meant to be long-lived and reused.
A single shared client is managed by the module; see ``get_http_client``
and ``close_http_client`` for lifecycle hooks.

Every HTTP response, whatever its status, comes back as a ``RawPage``;
only timeouts and network-layer failures raise.  No retries happen here.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import httpx

from app.core.config import settings
from app.core.errors import FetchTimeoutError, FetchUnreachableError, InvalidURLError
from app.models.analysis.page import RawPage

logger = logging.getLogger(__name__)

# Module-level shared client
_http_client: Optional[httpx.AsyncClient] = None


def get_http_client() -> httpx.AsyncClient:
    """Return the shared AsyncClient.  Creates one if missing."""
    global _http_client  # noqa: PLW0603
    if _http_client is None or _http_client.is_closed:
        _http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.http_timeout),
            follow_redirects=True,
            verify=settings.http_verify_ssl,
            headers={
                "User-Agent": settings.http_user_agent,
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                "Accept-Language": "en-US,en;q=0.5",
            },
        )
    return _http_client


async def close_http_client() -> None:
    """Close the shared AsyncClient gracefully."""
    global _http_client  # noqa: PLW0603
    if _http_client is not None and not _http_client.is_closed:
        await _http_client.aclose()
        _http_client = None
        logger.info("HTTP client closed.")


async def fetch_page(url: str) -> RawPage:
    """Perform a single HTTP GET for *url* and return the page as received.

    Raises:
        FetchTimeoutError: no complete response within ``settings.http_timeout``.
        FetchUnreachableError: DNS, connection or other transport failure.
        InvalidURLError: httpx refused the URL before sending anything.
    """
    client = get_http_client()
    logger.debug("Fetching %s", url)

    try:
        # httpx timeouts bound each phase; wait_for bounds the whole exchange
        response = await asyncio.wait_for(client.get(url), settings.http_timeout)
    except httpx.InvalidURL as exc:
        raise InvalidURLError(url, str(exc)) from exc
    except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
        logger.warning("Timed out fetching %s", url)
        raise FetchTimeoutError(url, settings.http_timeout) from exc
    except httpx.RequestError as exc:
        logger.warning("Request error fetching %s: %s", url, exc)
        raise FetchUnreachableError(url, str(exc) or type(exc).__name__) from exc

    # Normalise headers to a plain dict[str, str] with lowercase keys
    headers: dict[str, str] = {k.lower(): v for k, v in response.headers.items()}

    return RawPage(
        html=response.text,
        headers=headers,
        final_url=str(response.url),
        status_code=response.status_code,
    )
