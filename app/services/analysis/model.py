"""Generative model invocation.

``GeminiInvoker`` sends a ``Prompt`` to Gemini in JSON mode with the
prompt's response schema and returns the raw response text, stripped of
any Markdown code fence.  Every failure (missing credential, transport
error, non-success status, timeout, empty body) becomes a
``ModelUnavailableError``; parsing is the validator's job.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Optional, Protocol

from google import genai
from google.genai import types

from app.core.config import Settings, settings
from app.core.errors import ModelUnavailableError
from app.models.analysis.page import Prompt

logger = logging.getLogger(__name__)

_CODE_FENCE_RE = re.compile(r"^\s*```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL)


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ```json ... ``` fence, if present."""
    match = _CODE_FENCE_RE.match(text)
    return (match.group(1) if match else text).strip()


class ModelInvoker(Protocol):
    async def invoke(self, prompt: Prompt) -> str:
        """Return the model's raw JSON text for *prompt*.

        Raises:
            ModelUnavailableError: the model could not produce a response.
        """
        ...


class GeminiInvoker:
    """``ModelInvoker`` backed by the google-genai async client."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gemini-2.5-flash",
        timeout: float = 20.0,
        client: Optional[genai.Client] = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    @classmethod
    def from_settings(cls, config: Settings = settings) -> GeminiInvoker:
        return cls(
            api_key=config.gemini_api_key,
            model=config.gemini_model,
            timeout=config.model_timeout,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key) or self._client is not None

    def _get_client(self) -> genai.Client:
        if self._client is None:
            if not self._api_key:
                raise ModelUnavailableError("GEMINI_API_KEY is not configured")
            self._client = genai.Client(
                api_key=self._api_key,
                http_options=types.HttpOptions(timeout=int(self._timeout * 1000)),
            )
        return self._client

    async def invoke(self, prompt: Prompt) -> str:
        client = self._get_client()
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=prompt.response_schema,
        )
        try:
            response = await asyncio.wait_for(
                client.aio.models.generate_content(
                    model=self._model,
                    contents=prompt.text,
                    config=config,
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.warning("Gemini call timed out after %ss", self._timeout)
            raise ModelUnavailableError(
                f"Model call timed out after {self._timeout}s"
            ) from exc
        except Exception as exc:
            logger.warning("Gemini call failed: %s", exc)
            raise ModelUnavailableError(f"Model call failed: {exc}") from exc

        text = strip_code_fence(response.text or "")
        if not text:
            raise ModelUnavailableError("Model returned an empty response")
        return text

    async def aclose(self) -> None:
        """Close the genai client, if this invoker created it."""
        if self._client is None or not self._owns_client:
            return
        client, self._client = self._client, None
        await client.aio.aclose()
        client.close()


# Module-level shared invoker
_model_invoker: Optional[GeminiInvoker] = None


def get_model_invoker() -> GeminiInvoker:
    """Return the shared GeminiInvoker.  Creates one from settings if missing."""
    global _model_invoker  # noqa: PLW0603
    if _model_invoker is None:
        _model_invoker = GeminiInvoker.from_settings()
    return _model_invoker


async def close_model_invoker() -> None:
    """Release the shared invoker and its HTTP connection pools."""
    global _model_invoker  # noqa: PLW0603
    if _model_invoker is not None:
        await _model_invoker.aclose()
        _model_invoker = None
        logger.info("Gemini client closed.")
