"""Transient records passed between pipeline stages.

None of these survive a single analysis: ``RawPage`` is owned by the
fetcher and dropped after extraction, ``ExtractedMetadata`` only feeds the
prompt builder and validator.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RawPage(BaseModel):
    html: str
    headers: dict[str, str]
    final_url: str
    status_code: int = 200


class ExtractedMetadata(BaseModel):
    title: str
    description: str = ""
    candidate_images: list[str] = Field(default_factory=list)
    raw_text_excerpt: str = ""
    # False when ``title`` is the "Untitled" default rather than page content.
    has_page_title: bool = True

    @property
    def is_empty(self) -> bool:
        return not (self.has_page_title or self.description or self.raw_text_excerpt)


class EmbedPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    allowed: bool = True


class Prompt(BaseModel):
    """Instruction text plus the JSON schema the model must answer with."""

    text: str
    response_schema: dict[str, Any]
