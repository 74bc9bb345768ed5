from __future__ import annotations

import logging

from app.core.config import settings
from app.core.errors import AnalysisError, FetchRejectedError
from app.models.analysis.schemas import AnalysisResult
from app.services.analysis.classifier import classify
from app.services.analysis.extractor import extract
from app.services.analysis.model import ModelInvoker
from app.services.analysis.prompts import build_prompt
from app.services.analysis.urls import normalize_url
from app.services.analysis.validator import validate_response
from app.workers.fetcher import fetch_page

logger = logging.getLogger(__name__)


class AnalysisService:
    """Single-pass URL analysis: fetch, extract, classify, prompt, invoke, validate.

    Holds no per-request state; one instance can serve concurrent requests.
    Nothing is retried and nothing is recovered here.
    """

    def __init__(self, invoker: ModelInvoker) -> None:
        self._invoker = invoker

    async def analyze(self, url: str) -> AnalysisResult:
        """Analyse *url* and return the bookmark record.

        Raises:
            AnalysisError: any stage failure, tagged with its stage.  No
                partial result is ever returned.
        """
        try:
            return await self._analyze(url)
        except AnalysisError as exc:
            logger.warning("Analysis of %s failed at %s: %s", url, exc.stage.value, exc.message)
            raise

    async def _analyze(self, url: str) -> AnalysisResult:
        normalized = normalize_url(url, allow_private=settings.allow_private_hosts)
        logger.info("Analysing %s", normalized)

        page = await fetch_page(normalized)
        metadata = extract(page)
        if page.status_code >= 400 and metadata.is_empty:
            raise FetchRejectedError(normalized, page.status_code)
        policy = classify(page.headers)

        prompt = build_prompt(metadata, normalized)
        raw = await self._invoker.invoke(prompt)
        result = validate_response(
            raw,
            url=normalized,
            candidate_images=metadata.candidate_images,
            open_in_iframe=policy.allowed,
        )

        logger.info(
            "Analysed %s: %d tags, open_in_iframe=%s",
            normalized,
            len(result.tags),
            result.open_in_iframe,
        )
        return result
