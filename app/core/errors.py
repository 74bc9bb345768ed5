"""Typed failures raised by the URL analysis pipeline.

Every pipeline stage raises a subclass of :class:`AnalysisError` tagged
with the :class:`AnalysisStage` it originated from.  The orchestrator
never recovers from them; the fallback chain is the only place that
catches them and moves on to the next strategy.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class AnalysisStage(str, Enum):
    VALIDATING_URL = "validating_url"
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    CLASSIFYING = "classifying"
    PROMPTING = "prompting"
    INVOKING_MODEL = "invoking_model"
    VALIDATING_RESPONSE = "validating_response"
    REMOTE = "remote"


class AnalysisError(Exception):
    """Base class for every pipeline failure."""

    stage: AnalysisStage = AnalysisStage.VALIDATING_URL

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return f"[{self.stage.value}] {self.message}"


# ─── URL ──────────────────────────────────────────────────────────────


class InvalidURLError(AnalysisError):
    stage = AnalysisStage.VALIDATING_URL

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        super().__init__(f"Invalid URL '{url}': {reason}")


# ─── Fetching ─────────────────────────────────────────────────────────


class FetchError(AnalysisError):
    """Base class for page fetch failures."""

    stage = AnalysisStage.FETCHING

    def __init__(self, url: str, message: str) -> None:
        self.url = url
        super().__init__(message)


class FetchTimeoutError(FetchError):
    def __init__(self, url: str, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(url, f"Fetching {url} timed out after {timeout_seconds}s")


class FetchUnreachableError(FetchError):
    """DNS or connection failure: the host could not be reached at all."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(url, f"Could not reach {url}: {reason}")


class FetchRejectedError(FetchError):
    """The host answered, but with an error status and no usable page."""

    def __init__(self, url: str, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(url, f"{url} responded with HTTP {status_code}")


# ─── Model ────────────────────────────────────────────────────────────


class ModelUnavailableError(AnalysisError):
    stage = AnalysisStage.INVOKING_MODEL


class MalformedModelResponseError(AnalysisError):
    stage = AnalysisStage.VALIDATING_RESPONSE


class MissingFieldError(AnalysisError):
    stage = AnalysisStage.VALIDATING_RESPONSE

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Model response is missing required field '{field}'")


# ─── Remote service ───────────────────────────────────────────────────


class RemoteAnalysisError(AnalysisError):
    """The remote analysis endpoint failed or returned an unusable body."""

    stage = AnalysisStage.REMOTE

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)
