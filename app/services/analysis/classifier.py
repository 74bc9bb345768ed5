from __future__ import annotations

from typing import Mapping, Optional

from app.models.analysis.page import EmbedPolicy

_BLOCKING_FRAME_OPTIONS = {"deny", "sameorigin"}
_BLOCKING_FRAME_ANCESTORS = {"'none'", "'self'"}


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


def _frame_ancestors(csp: str) -> Optional[str]:
    """Source list of the first ``frame-ancestors`` directive in *csp*.

    Several policies may arrive joined by commas; directives within a
    policy are separated by semicolons.
    """
    for policy in csp.split(","):
        for directive in policy.split(";"):
            name, _, sources = directive.strip().partition(" ")
            if name.lower() == "frame-ancestors":
                return " ".join(sources.split()).lower()
    return None


def classify(headers: Optional[Mapping[str, str]]) -> EmbedPolicy:
    """Decide whether the page that sent *headers* may be shown in a frame.

    Embedding is refused only for ``X-Frame-Options: DENY|SAMEORIGIN`` or a
    CSP ``frame-ancestors`` directive of exactly ``'none'`` or ``'self'``.
    """
    if not headers:
        return EmbedPolicy(allowed=True)

    frame_options = _header(headers, "x-frame-options")
    if frame_options is not None and any(
        value.strip().lower() in _BLOCKING_FRAME_OPTIONS
        for value in frame_options.split(",")  # repeated headers arrive comma-joined
    ):
        return EmbedPolicy(allowed=False)

    csp = _header(headers, "content-security-policy")
    if csp is not None and _frame_ancestors(csp) in _BLOCKING_FRAME_ANCESTORS:
        return EmbedPolicy(allowed=False)

    return EmbedPolicy(allowed=True)
