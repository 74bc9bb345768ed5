"""Prompt construction and the output schemas the model must follow.

Two variants exist:

- ``build_prompt`` grounds the model in metadata already extracted from
  the page and asks for ``title``, ``description`` and ``tags``.
- ``build_url_prompt`` is used when no page was fetched; the model infers
  the content from the URL alone and also proposes an ``imageUrl``.
"""

from __future__ import annotations

from typing import Any, Optional

from app.core.config import settings
from app.models.analysis.page import ExtractedMetadata, Prompt

# Gemini response schemas use the OpenAPI subset with upper-case type names.
PAGE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "title": {"type": "STRING"},
        "description": {"type": "STRING"},
        "tags": {"type": "ARRAY", "items": {"type": "STRING"}},
    },
    "required": ["title", "description", "tags"],
}

URL_ONLY_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "title": {"type": "STRING"},
        "description": {"type": "STRING"},
        "imageUrl": {"type": "STRING"},
        "tags": {"type": "ARRAY", "items": {"type": "STRING"}},
    },
    "required": ["title", "description", "imageUrl", "tags"],
}


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "…"


def build_prompt(
    metadata: ExtractedMetadata, url: str, *, excerpt_chars: Optional[int] = None
) -> Prompt:
    excerpt_chars = settings.prompt_excerpt_chars if excerpt_chars is None else excerpt_chars
    description = _truncate(metadata.description, settings.description_max_chars)
    excerpt = _truncate(metadata.raw_text_excerpt, excerpt_chars)

    text = f"""You are an expert bookmarking assistant. Summarise the web page described below.

Use ONLY the information supplied here. Do not invent facts, names, numbers
or features that cannot be derived from this text.

URL: {url}
Extracted title: {metadata.title}
Extracted description: {description or "(none)"}

Page text excerpt:
{excerpt or "(no readable text was found on the page)"}

Respond with a JSON object containing:
- "title": the page title, cleaned up (drop trailing site names and separators such
  as " | Site" or " - Site") but otherwise kept close to the extracted title.
- "description": a neutral, one-paragraph summary of what the page is about.
- "tags": 4 to 5 short, lowercase topical tags.
"""
    return Prompt(text=text, response_schema=PAGE_SCHEMA)


def build_url_prompt(url: str) -> Prompt:
    text = f"""You are an expert bookmarking assistant. Based on the URL "{url}", infer the
content of the page and generate a suitable title, a one-paragraph description, and
4 to 5 relevant lowercase tags.

For the image, create a placeholder URL using picsum.photos, like this:
https://picsum.photos/seed/example/600/400 - replace "example" with a relevant
keyword from the URL.
"""
    return Prompt(text=text, response_schema=URL_ONLY_SCHEMA)
