"""URL normalisation, the SSRF guard, and URL-derived fallbacks."""

from __future__ import annotations

import hashlib
import ipaddress
from urllib.parse import urlsplit

from pydantic import HttpUrl, TypeAdapter, ValidationError

from app.core.errors import InvalidURLError

PRIVATE_HOST_NAMES = {"localhost"}
PRIVATE_SUFFIXES = (".local", ".internal", ".localhost")

_http_url = TypeAdapter(HttpUrl)


def _ip_or_none(host: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address | None:
    try:
        return ipaddress.ip_address(host.strip("[]"))
    except ValueError:
        return None


def _reject_private_host(raw: str, host: str) -> None:
    if host in PRIVATE_HOST_NAMES or host.endswith(PRIVATE_SUFFIXES):
        raise InvalidURLError(raw, "local host names are not allowed")
    ip = _ip_or_none(host)
    if ip is not None and (
        ip.is_private
        or ip.is_loopback
        or ip.is_link_local
        or ip.is_reserved
        or ip.is_multicast
        or ip.is_unspecified
    ):
        raise InvalidURLError(raw, "private or reserved addresses are not allowed")


def normalize_url(raw: str, *, allow_private: bool = False) -> str:
    """Return *raw* as an absolute http(s) URL, prefixing ``https://`` if needed.

    The prefixed string is validated as a pydantic ``HttpUrl`` but returned
    as written, so ``example.com`` becomes ``https://example.com``.

    Raises:
        InvalidURLError: the string is not a usable web URL, or it targets a
            private/loopback host while *allow_private* is ``False``.
    """
    value = (raw or "").strip()
    if not value:
        raise InvalidURLError(raw, "URL is empty")
    if value.startswith("//"):
        value = f"https:{value}"
    elif "://" not in value:
        value = f"https://{value}"

    try:
        parsed = _http_url.validate_python(value)
    except ValidationError as exc:
        raise InvalidURLError(raw, exc.errors()[0]["msg"]) from exc

    if not allow_private:
        _reject_private_host(raw, (parsed.host or "").lower())
    return value


def placeholder_image_url(url: str, base: str = "https://picsum.photos/seed") -> str:
    """Deterministic placeholder image keyed by the normalised *url*."""
    seed = hashlib.sha256(url.encode("utf-8")).hexdigest()[:16]
    return f"{base.rstrip('/')}/{seed}/600/400"


def host_tag(url: str) -> str:
    """A single lowercase tag derived from the host of *url*."""
    host = (urlsplit(url).hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    return host or "bookmark"
