from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Request

from skindex.errors import EmailDeliveryError, InputValidationError
from skindex.services.email_summary import format_analysis_text
from skindex.services.mailer import Mailer
from skindex.settings import Settings

router = APIRouter()

logger = logging.getLogger("skindex-relay.routes.email")

EMAIL_REQUIRED = "Email and analysisResult are required."


@router.post("/send-email")
async def send_email(request: Request, body: Any = Body(default=None)):
    settings: Settings = request.app.state.settings
    mailer: Mailer = request.app.state.mailer
    body = body if isinstance(body, dict) else {}

    email = body.get("email")
    analysis_result = body.get("analysisResult")
    if not isinstance(email, str) or not email.strip() or not isinstance(analysis_result, dict):
        raise InputValidationError(EMAIL_REQUIRED)

    text = format_analysis_text(analysis_result, rules=request.app.state.conflict_rules)
    try:
        await mailer.send(to=email.strip(), subject=settings.email_subject, text=text)
    except Exception as exc:
        logger.error("Email sending failed. to=%s err=%r", email, exc)
        raise EmailDeliveryError(detail=repr(exc)) from exc

    return {"message": "Email sent successfully!"}
