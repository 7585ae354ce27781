from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from skindex.errors import RelayError
from skindex.routes.analysis import router as analysis_router
from skindex.routes.email import EMAIL_REQUIRED, router as email_router
from skindex.routes.health import router as health_router
from skindex.services.analysis import PRODUCTS_REQUIRED, AnalysisRequester, GeminiModelFactory
from skindex.services.mailer import Mailer, build_mailer
from skindex.services.normalizer import DEFAULT_CONFLICT_RULES
from skindex.settings import Settings

logger = logging.getLogger("skindex-relay")

# Unparseable bodies get the same 400 as a missing field.
_BODY_ERRORS = {
    "/analyze": PRODUCTS_REQUIRED,
    "/send-email": EMAIL_REQUIRED,
}


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def _relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def _body_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = _BODY_ERRORS.get(request.url.path)
    if message is None:
        return await request_validation_exception_handler(request, exc)
    logger.info("Rejected request body. path=%s errors=%s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": message})


def create_app(
    settings: Optional[Settings] = None,
    *,
    requester: Optional[AnalysisRequester] = None,
    mailer: Optional[Mailer] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    _setup_logging(settings.log_level)
    app = FastAPI(title="Skindex Relay", version="0.1.0")

    conflict_rules = DEFAULT_CONFLICT_RULES.extended(
        list_fields=settings.conflict_product_fields,
        reason_fields=settings.conflict_reason_fields,
    )

    app.state.settings = settings
    app.state.conflict_rules = conflict_rules
    app.state.requester = requester or AnalysisRequester(
        model_ids=settings.gemini_models,
        model_factory=GeminiModelFactory(settings.gemini_api_key),
        rules=conflict_rules,
    )
    app.state.mailer = mailer or build_mailer(settings)

    allow_all = settings.allow_all_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else list(settings.cors_origins),
        allow_credentials=not allow_all,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RelayError, _relay_error_handler)
    app.add_exception_handler(RequestValidationError, _body_error_handler)

    app.include_router(health_router)
    app.include_router(analysis_router)
    app.include_router(email_router)

    logger.info(
        "Skindex relay configured. models=%s email_transport=%s origins=%s",
        ",".join(settings.gemini_models),
        settings.email_transport,
        ",".join(settings.cors_origins),
    )
    return app


app = create_app()
