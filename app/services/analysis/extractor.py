"""Metadata extraction from a fetched page.

Title, description and candidate images are each resolved through an
ordered list of sources, first non-empty wins:

- title: ``og:title`` → ``<title>`` → first ``<h1>`` → ``"Untitled"``
- description: ``og:description`` → ``twitter:description`` → meta
  ``description``; if that is shorter than ``description_min_words`` words,
  paragraph text scraped from ``<article>``, ``<main>`` or ``<body>``
- images: ``og:image`` / ``twitter:image`` first, then every ``<img src>``
  that is not a ``data:`` URI, resolved against the page's base URL
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urljoin, urlsplit

from app.core.config import settings
from app.models.analysis.page import ExtractedMetadata, RawPage
from app.services.analysis.html import HtmlNode, parse_html

logger = logging.getLogger(__name__)

UNTITLED = "Untitled"
EXCERPT_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6", "p", "li")


def extract(page: RawPage) -> ExtractedMetadata:
    """Produce ``ExtractedMetadata`` from *page*.  Never raises on bad HTML."""
    doc = parse_html(page.html)

    title = resolve_title(doc)
    return ExtractedMetadata(
        title=title or UNTITLED,
        has_page_title=bool(title),
        description=resolve_description(doc),
        candidate_images=resolve_images(doc, page.final_url),
        raw_text_excerpt=text_excerpt(doc),
    )


# ---------------------------------------------------------------------------
# Meta tags
# ---------------------------------------------------------------------------


def _meta_content(doc: HtmlNode, key: str) -> str:
    """Content of the first ``<meta>`` whose ``property`` or ``name`` is *key*."""
    key = key.lower()
    for meta in doc.find_all("meta"):
        names = (meta.attr("property") or "", meta.attr("name") or "")
        if key in (n.strip().lower() for n in names):
            content = (meta.attr("content") or "").strip()
            if content:
                return content
    return ""


def _first(*candidates: str) -> str:
    return next((c for c in candidates if c), "")


# ---------------------------------------------------------------------------
# Title
# ---------------------------------------------------------------------------


def resolve_title(doc: HtmlNode) -> str:
    """Page title from social metadata or markup, or ``""`` if there is none."""
    title_tag = doc.find("title")
    h1 = doc.find("h1")
    return _first(
        _meta_content(doc, "og:title"),
        title_tag.text if title_tag else "",
        h1.text if h1 else "",
    )


# ---------------------------------------------------------------------------
# Description
# ---------------------------------------------------------------------------


def resolve_description(
    doc: HtmlNode,
    *,
    min_words: Optional[int] = None,
    max_chars: Optional[int] = None,
) -> str:
    min_words = settings.description_min_words if min_words is None else min_words
    max_chars = settings.description_max_chars if max_chars is None else max_chars

    description = _first(
        _meta_content(doc, "og:description"),
        _meta_content(doc, "twitter:description"),
        _meta_content(doc, "description"),
    )
    if len(description.split()) >= min_words:
        return description

    scraped = scrape_paragraphs(doc, max_chars)
    return scraped or description[:max_chars].rstrip()


def _content_root(doc: HtmlNode) -> HtmlNode:
    return doc.find("article") or doc.find("main") or doc.find("body") or doc


def scrape_paragraphs(doc: HtmlNode, max_chars: int) -> str:
    """Join ``<p>`` texts of the main content region, capped at *max_chars*."""
    collected: list[str] = []
    total = 0
    for paragraph in _content_root(doc).find_all("p"):
        if total >= max_chars:
            break
        text = paragraph.text
        if not text:
            continue
        collected.append(text)
        total += len(text) + 1
    return " ".join(collected)[:max_chars].rstrip()


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------


def _absolute(src: str, base_url: str) -> Optional[str]:
    try:
        resolved = urljoin(base_url, src.strip())
        parts = urlsplit(resolved)
    except ValueError:
        return None
    if parts.scheme not in ("http", "https") or not parts.netloc:
        return None
    return resolved


def resolve_images(
    doc: HtmlNode, page_url: str, *, limit: Optional[int] = None
) -> list[str]:
    """Candidate image URLs in priority order, absolute and de-duplicated."""
    limit = settings.max_candidate_images if limit is None else limit

    base_url = page_url
    base = doc.find("base")
    if base is not None and base.attr("href"):
        base_url = _absolute(base.attr("href") or "", page_url) or page_url

    sources = [
        _meta_content(doc, "og:image"),
        _meta_content(doc, "twitter:image"),
    ]
    sources.extend(img.attr("src") or "" for img in doc.find_all("img"))

    images: list[str] = []
    for src in sources:
        if len(images) >= limit:
            break
        if not src or src.strip().lower().startswith("data:"):
            continue
        resolved = _absolute(src, base_url)
        if resolved is None:
            logger.debug("Dropping unresolvable image src %r", src)
            continue
        if resolved not in images:
            images.append(resolved)
    return images


# ---------------------------------------------------------------------------
# Text excerpt
# ---------------------------------------------------------------------------


def text_excerpt(doc: HtmlNode, max_chars: Optional[int] = None) -> str:
    max_chars = settings.excerpt_max_chars if max_chars is None else max_chars
    parts: list[str] = []
    total = 0
    for element in doc.find_all(*EXCERPT_TAGS):
        if total >= max_chars:
            break
        if element.find_parent(*EXCERPT_TAGS) is not None:
            continue  # counted with its enclosing element
        text = element.text
        if text:
            parts.append(text)
            total += len(text) + 1
    return " ".join(parts)[:max_chars].rstrip()
