from __future__ import annotations

from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MAX_TAGS = 8


class AnalysisRequest(BaseModel):
    """Request body for POST /api/analyze-url.

    ``url`` is kept as a plain string: scheme defaulting and validation
    happen in the pipeline so that a malformed URL surfaces as an
    ``InvalidURLError`` (400) rather than a schema error (422).
    """

    url: str


class AnalysisResult(BaseModel):
    """The pipeline's output contract, also the record stored as a bookmark.

    Serialised with camelCase keys (``imageUrl``, ``openInIframe``); either
    spelling is accepted on input.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    url: str
    title: str
    description: str
    image_url: str
    tags: list[str] = Field(min_length=1, max_length=MAX_TAGS)
    open_in_iframe: bool = True

    @field_validator("title", "description")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("image_url")
    @classmethod
    def _absolute_image_url(cls, value: str) -> str:
        parts = urlsplit(value)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError(f"image URL must be absolute, got {value!r}")
        return value

    @field_validator("tags")
    @classmethod
    def _canonical_tags(cls, value: list[str]) -> list[str]:
        seen: set[str] = set()
        for tag in value:
            if not tag or tag != tag.strip().lower():
                raise ValueError(f"tag {tag!r} must be lowercase and non-empty")
            if tag in seen:
                raise ValueError(f"duplicate tag {tag!r}")
            seen.add(tag)
        return value
