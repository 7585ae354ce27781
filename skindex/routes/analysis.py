from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Request

from skindex.errors import RelayError, UpstreamInvocationError
from skindex.services.analysis import AnalysisRequester

router = APIRouter()

logger = logging.getLogger("skindex-relay.routes.analysis")


@router.post("/analyze")
async def analyze(request: Request, body: Any = Body(default=None)):
    requester: AnalysisRequester = request.app.state.requester
    products = body.get("products") if isinstance(body, dict) else None

    try:
        return await requester.request_analysis(products)
    except RelayError as exc:
        if exc.status_code >= 500:
            logger.error("Analysis failed. kind=%s detail=%s", type(exc).__name__, exc.detail)
        raise
    except Exception as exc:
        logger.exception("Analysis failed unexpectedly. err=%r", exc)
        raise UpstreamInvocationError(detail=repr(exc)) from exc
