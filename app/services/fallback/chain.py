"""Strategy chain with graceful degradation.

Strategies are tried strictly one after another; a later strategy starts
only once the previous one has definitively failed.  The last strategy is
always ``MockStrategy``, so ``resolve`` returns a usable record for any
valid URL even when every live strategy is down.
"""

from __future__ import annotations

import logging
import time
from typing import Optional, Sequence

from app.core.config import Settings
from app.core.errors import AnalysisError
from app.models.analysis.schemas import AnalysisResult
from app.services.analysis.model import GeminiInvoker, ModelInvoker
from app.services.analysis.urls import normalize_url
from app.services.fallback.strategies import (
    AnalysisStrategy,
    DirectModelStrategy,
    MockStrategy,
    RemotePipelineStrategy,
)

logger = logging.getLogger(__name__)


class FallbackChain:
    def __init__(
        self,
        strategies: Sequence[AnalysisStrategy],
        *,
        mock: Optional[MockStrategy] = None,
    ) -> None:
        """
        Args:
            strategies: live strategies in priority order.
            mock: terminal strategy; a default ``MockStrategy`` when omitted.
        """
        self._strategies: list[AnalysisStrategy] = [
            s for s in strategies if not isinstance(s, MockStrategy)
        ]
        self._strategies.append(mock or MockStrategy())

    @classmethod
    def from_settings(
        cls, config: Settings, invoker: Optional[ModelInvoker] = None
    ) -> FallbackChain:
        """Build the chain from explicit configuration.

        The remote strategy exists only when ``remote_analyze_url`` is set,
        the direct-model strategy only when a Gemini key (or an explicit
        *invoker*) is available.
        """
        strategies: list[AnalysisStrategy] = []
        if config.remote_analyze_url:
            strategies.append(
                RemotePipelineStrategy(
                    config.remote_analyze_url,
                    timeout=config.remote_timeout,
                    max_retries=config.remote_max_retries,
                )
            )
        if invoker is None and config.gemini_api_key:
            invoker = GeminiInvoker.from_settings(config)
        if invoker is not None:
            strategies.append(DirectModelStrategy(invoker))
        if not strategies:
            logger.warning(
                "No analysis service or Gemini API key configured; "
                "bookmarks will be analysed by the mock strategy."
            )
        return cls(
            strategies,
            mock=MockStrategy(
                delay=config.mock_delay,
                placeholder_base=config.placeholder_image_base,
            ),
        )

    @property
    def strategies(self) -> list[AnalysisStrategy]:
        return list(self._strategies)

    async def resolve(self, url: str) -> AnalysisResult:
        """Return the first successful analysis of *url*.

        Raises:
            InvalidURLError: *url* cannot be parsed as an http(s) URL.  This
                is the only failure; every strategy error is recovered.
        """
        # Syntax only.  Private hosts are refused where pages are fetched.
        normalized = normalize_url(url, allow_private=True)
        start_time = time.monotonic()

        for strategy in self._strategies:
            try:
                logger.info("Resolving %s with strategy %s", normalized, strategy.name)
                result = await strategy.resolve(normalized)
            except AnalysisError as exc:
                logger.warning("Strategy %s failed for %s: %s", strategy.name, normalized, exc)
                continue
            except Exception:
                logger.exception("Unexpected error in strategy %s for %s", strategy.name, normalized)
                continue

            logger.info(
                "Resolved %s with strategy %s in %.0f ms",
                normalized,
                strategy.name,
                (time.monotonic() - start_time) * 1000,
            )
            return result.model_copy(update={"url": normalized})

        # Unreachable while the terminal mock strategy never fails.
        raise RuntimeError(f"All analysis strategies failed for {normalized}")
