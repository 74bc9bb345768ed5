"""Validation and normalisation of the model's JSON response."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Sequence
from urllib.parse import urlsplit

from app.core.config import settings
from app.core.errors import MalformedModelResponseError, MissingFieldError
from app.models.analysis.schemas import MAX_TAGS, AnalysisResult
from app.services.analysis.urls import host_tag, placeholder_image_url

logger = logging.getLogger(__name__)


def normalize_tags(tags: Iterable[Any], url: str, limit: int = MAX_TAGS) -> list[str]:
    """Lowercase, trim and de-duplicate *tags* (caseless), keeping at most *limit*.

    Non-string entries are ignored.  An empty result is replaced by a
    single tag derived from the host of *url*.
    """
    normalized: list[str] = []
    seen: set[str] = set()
    for tag in tags:
        if not isinstance(tag, str):
            continue
        cleaned = " ".join(tag.split()).lower()
        key = cleaned.casefold()
        if cleaned and key not in seen:
            seen.add(key)
            normalized.append(cleaned)
        if len(normalized) >= limit:
            break
    return normalized or [host_tag(url)]


def _well_formed_image(value: Any) -> bool:
    if not isinstance(value, str) or not value.strip():
        return False
    parts = urlsplit(value.strip())
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def resolve_image_url(
    model_value: Any, candidate_images: Sequence[str], url: str
) -> str:
    if _well_formed_image(model_value):
        return model_value.strip()
    if candidate_images:
        return candidate_images[0]
    return placeholder_image_url(url, settings.placeholder_image_base)


def _required_text(data: dict[str, Any], field: str) -> str:
    value = data.get(field)
    if not isinstance(value, str) or not value.strip():
        raise MissingFieldError(field)
    return value.strip()


def validate_response(
    raw: str,
    *,
    url: str,
    candidate_images: Sequence[str] = (),
    open_in_iframe: bool = True,
) -> AnalysisResult:
    """Turn raw model output into an ``AnalysisResult``.

    ``open_in_iframe`` comes from the embeddability classifier, never from
    the model.  The image falls back from the model value to the first
    candidate image, then to a placeholder keyed by *url*.

    Raises:
        MalformedModelResponseError: *raw* is not a JSON object.
        MissingFieldError: ``title``, ``description`` or ``tags`` is absent
            or empty.
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        logger.warning("Model returned invalid JSON: %.200r", raw)
        raise MalformedModelResponseError(f"Model response is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedModelResponseError("Model response is not a JSON object")

    title = _required_text(data, "title")
    description = _required_text(data, "description")
    if "tags" not in data or data["tags"] is None:
        raise MissingFieldError("tags")
    raw_tags = data["tags"]
    if isinstance(raw_tags, str):
        raw_tags = raw_tags.split(",")
    elif not isinstance(raw_tags, list):
        raise MalformedModelResponseError("'tags' must be an array of strings")

    return AnalysisResult(
        url=url,
        title=title,
        description=description,
        image_url=resolve_image_url(data.get("imageUrl"), candidate_images, url),
        tags=normalize_tags(raw_tags, url),
        open_in_iframe=open_in_iframe,
    )
