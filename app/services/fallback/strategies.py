"""Analysis strategies tried in order by the fallback chain.

Each strategy exposes ``name`` and ``resolve(url)``; ``resolve`` returns an
``AnalysisResult`` or raises ``AnalysisError``.  The URL handed in is
already normalised.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol, runtime_checkable

import httpx
from pydantic import ValidationError
from tenacity import (
    RetryError,
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.core.errors import RemoteAnalysisError
from app.models.analysis.schemas import AnalysisResult
from app.services.analysis.model import ModelInvoker
from app.services.analysis.prompts import build_url_prompt
from app.services.analysis.urls import placeholder_image_url
from app.services.analysis.validator import validate_response

logger = logging.getLogger(__name__)


@runtime_checkable
class AnalysisStrategy(Protocol):
    @property
    def name(self) -> str:
        ...

    async def resolve(self, url: str) -> AnalysisResult:
        """Analyse *url*.

        Raises:
            AnalysisError: the strategy could not produce a result.
        """
        ...


# ---------------------------------------------------------------------------
# Remote pipeline
# ---------------------------------------------------------------------------


class RemotePipelineStrategy:
    """Calls the analysis endpoint (``POST {"url": ...}``) of a remote service.

    Only ``httpx.ConnectError`` is retried: the request never reached the
    service, so a retry cannot double the model cost.
    """

    name = "remote"

    def __init__(
        self,
        endpoint: str,
        timeout: float = 20.0,
        max_retries: int = 1,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._endpoint = endpoint
        self._timeout = timeout
        self._max_retries = max_retries
        self._transport = transport

    async def resolve(self, url: str) -> AnalysisResult:
        post = retry(
            retry=retry_if_exception_type(httpx.ConnectError),
            stop=stop_after_attempt(self._max_retries + 1),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=False,
        )(self._post)

        try:
            response = await post(url)
        except RetryError as exc:
            raise RemoteAnalysisError(
                f"Analysis service unreachable after {self._max_retries + 1} attempts: "
                f"{exc.last_attempt.exception()}"
            ) from exc
        except httpx.TimeoutException as exc:
            raise RemoteAnalysisError(f"Analysis service timed out after {self._timeout}s") from exc
        except httpx.HTTPError as exc:
            raise RemoteAnalysisError(f"Analysis service request failed: {exc}") from exc

        if response.is_error:
            raise RemoteAnalysisError(
                f"Analysis service responded with HTTP {response.status_code}: "
                f"{self._error_message(response)}",
                status_code=response.status_code,
            )

        try:
            return AnalysisResult.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise RemoteAnalysisError(
                f"Analysis service returned an unusable body: {exc}",
                status_code=response.status_code,
            ) from exc

    async def _post(self, url: str) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            return await client.post(self._endpoint, json={"url": url})

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            return str(response.json().get("error") or response.reason_phrase)
        except (ValueError, AttributeError):
            return response.reason_phrase


# ---------------------------------------------------------------------------
# Direct model call
# ---------------------------------------------------------------------------


class DirectModelStrategy:
    """Asks the model to infer the page from its URL; no page is fetched.

    With no response headers observed, ``open_in_iframe`` is always ``True``.
    """

    name = "direct-model"

    def __init__(self, invoker: ModelInvoker) -> None:
        self._invoker = invoker

    async def resolve(self, url: str) -> AnalysisResult:
        raw = await self._invoker.invoke(build_url_prompt(url))
        return validate_response(raw, url=url, open_in_iframe=True)


# ---------------------------------------------------------------------------
# Deterministic mock
# ---------------------------------------------------------------------------

MOCK_DESCRIPTION = (
    "This is a mock description generated because no analysis service or "
    "Gemini API key is available. The AI would normally generate a detailed "
    "summary here."
)
MOCK_TAGS = ("mock", "sample-data", "placeholder")


class MockStrategy:
    """Never fails: a fixed-shape record derived from the URL alone."""

    name = "mock"

    def __init__(
        self,
        delay: float = 1.5,
        placeholder_base: str = "https://picsum.photos/seed",
    ) -> None:
        self._delay = delay
        self._placeholder_base = placeholder_base

    async def resolve(self, url: str) -> AnalysisResult:
        if self._delay > 0:
            await asyncio.sleep(self._delay)
        return AnalysisResult(
            url=url,
            title=f"Mock Title for {url}",
            description=MOCK_DESCRIPTION,
            image_url=placeholder_image_url(url, self._placeholder_base),
            tags=list(MOCK_TAGS),
            open_in_iframe=True,
        )
