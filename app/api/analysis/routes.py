from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.core.errors import (
    AnalysisError,
    FetchRejectedError,
    FetchTimeoutError,
    FetchUnreachableError,
    InvalidURLError,
)
from app.models.analysis.schemas import AnalysisRequest, AnalysisResult
from app.models.common import ErrorResponse
from app.services.analysis.model import get_model_invoker
from app.services.analysis.service import AnalysisService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["analysis"])

GENERIC_FAILURE = "Analysis failed, please try again."


# ---------------------------------------------------------------------------
# Dependency
# ---------------------------------------------------------------------------


def get_analysis_service() -> AnalysisService:
    """FastAPI dependency: an ``AnalysisService`` over the shared model invoker."""
    return AnalysisService(get_model_invoker())


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


def error_response(exc: AnalysisError) -> JSONResponse:
    """Collapse the internal error taxonomy into a status and a user message."""
    if isinstance(exc, InvalidURLError):
        status, message = 400, f"The URL '{exc.url}' is malformed or not allowed."
    elif isinstance(exc, FetchUnreachableError):
        status, message = 400, f"The domain for {exc.url} could not be reached."
    elif isinstance(exc, FetchRejectedError):
        status, message = 400, f"The page at {exc.url} responded with HTTP {exc.status_code}."
    elif isinstance(exc, FetchTimeoutError):
        status, message = 504, f"The page at {exc.url} took too long to respond."
    else:
        status, message = 500, GENERIC_FAILURE

    if status >= 500:
        logger.error("POST /api/analyze-url failed: %s", exc)
    else:
        logger.warning("POST /api/analyze-url rejected: %s", exc)
    return JSONResponse(status_code=status, content=ErrorResponse(error=message).model_dump())


# ---------------------------------------------------------------------------
# POST /api/analyze-url
# ---------------------------------------------------------------------------


@router.post(
    "/analyze-url",
    response_model=AnalysisResult,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
    summary="Analyse a URL into a bookmark record",
)
async def analyze_url(
    request: AnalysisRequest,
    service: AnalysisService = Depends(get_analysis_service),
) -> AnalysisResult | JSONResponse:
    """Fetch the page, extract its metadata and summarise it with Gemini.

    - **200** — analysis record
    - **400** — URL malformed, domain unreachable, or page refused access
    - **422** — request body is not ``{"url": "<string>"}``
    - **500** — the model failed or returned an unusable response
    - **504** — the page did not respond in time
    """
    try:
        return await service.analyze(request.url)
    except AnalysisError as exc:
        return error_response(exc)
