from __future__ import annotations

import os

from fastapi import APIRouter, Request

router = APIRouter()


def _get_commit_sha() -> str | None:
    for key in (
        "RAILWAY_GIT_COMMIT_SHA",
        "RENDER_GIT_COMMIT",
        "GITHUB_SHA",
        "COMMIT_SHA",
        "GIT_SHA",
    ):
        value = os.getenv(key)
        if value:
            return value
    return None


@router.get("/healthz")
def healthz(request: Request):
    settings = request.app.state.settings
    return {
        "ok": True,
        "service": "skindex-relay",
        "commit_sha": _get_commit_sha(),
        "environment": os.getenv("ENVIRONMENT"),
        "models": list(settings.gemini_models),
        "email_transport": settings.email_transport,
    }
