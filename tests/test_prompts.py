from __future__ import annotations

from app.models.analysis.page import ExtractedMetadata
from app.services.analysis.prompts import (
    PAGE_SCHEMA,
    URL_ONLY_SCHEMA,
    build_prompt,
    build_url_prompt,
)


def _metadata(**kwargs) -> ExtractedMetadata:
    defaults = dict(
        title="Widgets Inc",
        description="We make widgets.",
        candidate_images=[],
        raw_text_excerpt="Widgets Inc sells widgets. Contact us for bulk orders.",
    )
    return ExtractedMetadata(**{**defaults, **kwargs})


class TestBuildPrompt:
    def test_contains_ground_truth(self):
        prompt = build_prompt(_metadata(), "https://widgets.example")
        assert "https://widgets.example" in prompt.text
        assert "Widgets Inc" in prompt.text
        assert "We make widgets." in prompt.text
        assert "Contact us for bulk orders." in prompt.text

    def test_forbids_invention_and_asks_for_tags(self):
        text = build_prompt(_metadata(), "https://widgets.example").text
        assert "Do not invent facts" in text
        assert "4 to 5" in text
        assert "lowercase" in text

    def test_schema_requires_title_description_tags(self):
        prompt = build_prompt(_metadata(), "https://widgets.example")
        assert prompt.response_schema is PAGE_SCHEMA
        assert PAGE_SCHEMA["required"] == ["title", "description", "tags"]
        assert PAGE_SCHEMA["properties"]["tags"]["type"] == "ARRAY"
        assert "imageUrl" not in PAGE_SCHEMA["properties"]

    def test_excerpt_is_bounded(self):
        prompt = build_prompt(
            _metadata(raw_text_excerpt="x" * 8000), "https://widgets.example", excerpt_chars=100
        )
        assert "x" * 101 not in prompt.text
        assert "x" * 100 in prompt.text

    def test_empty_description_is_marked(self):
        prompt = build_prompt(_metadata(description="", raw_text_excerpt=""), "https://a.example")
        assert "Extracted description: (none)" in prompt.text
        assert "no readable text" in prompt.text


class TestBuildUrlPrompt:
    def test_infers_from_url_and_asks_for_image(self):
        prompt = build_url_prompt("https://react.dev")
        assert '"https://react.dev"' in prompt.text
        assert "picsum.photos" in prompt.text
        assert prompt.response_schema is URL_ONLY_SCHEMA
        assert "imageUrl" in URL_ONLY_SCHEMA["required"]
