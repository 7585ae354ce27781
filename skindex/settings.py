from __future__ import annotations

import os
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_MODELS = (
    "gemini-2.5-flash-preview-05-20",
    # More broadly available; used when the preview model is rejected.
    "gemini-2.0-flash",
)
DEFAULT_CORS_ORIGINS = ("https://skindexanalyzer.com",)
DEFAULT_EMAIL_SUBJECT = "Your Skincare Products Analysis ✨"


def _parse_csv(raw: Optional[str]) -> tuple[str, ...]:
    if not raw:
        return ()
    parts = [p.strip() for p in raw.split(",")]
    seen: list[str] = []
    for part in parts:
        if part and part not in seen:
            seen.append(part)
    return tuple(seen)


def _env(environ: Mapping[str, str], key: str, default: str = "") -> str:
    return (environ.get(key) or default).strip()


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    gemini_api_key: str = ""
    gemini_models: tuple[str, ...] = Field(default=DEFAULT_MODELS, min_length=1)

    cors_origins: tuple[str, ...] = DEFAULT_CORS_ORIGINS

    email_transport: Literal["smtp", "api"] = "smtp"
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    email_user: str = ""
    email_pass: str = ""
    email_api_url: str = ""
    email_api_key: str = ""
    email_from: str = ""
    email_subject: str = DEFAULT_EMAIL_SUBJECT
    email_timeout_s: float = 10.0

    conflict_product_fields: tuple[str, ...] = ()
    conflict_reason_fields: tuple[str, ...] = ()

    port: int = 4000
    log_level: str = "INFO"

    @property
    def sender(self) -> str:
        return self.email_from or self.email_user

    @property
    def allow_all_origins(self) -> bool:
        return "*" in self.cors_origins

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        transport = _env(env, "EMAIL_TRANSPORT", "smtp").lower()
        return cls(
            gemini_api_key=_env(env, "GEMINI_API_KEY"),
            gemini_models=_parse_csv(env.get("GEMINI_MODELS")) or DEFAULT_MODELS,
            cors_origins=_parse_csv(env.get("CORS_ORIGINS")) or DEFAULT_CORS_ORIGINS,
            email_transport=transport,
            smtp_host=_env(env, "SMTP_HOST", "smtp.gmail.com"),
            smtp_port=int(_env(env, "SMTP_PORT", "465")),
            email_user=_env(env, "EMAIL_USER"),
            email_pass=_env(env, "EMAIL_PASS"),
            email_api_url=_env(env, "EMAIL_API_URL"),
            email_api_key=_env(env, "EMAIL_API_KEY"),
            email_from=_env(env, "EMAIL_FROM"),
            email_subject=_env(env, "EMAIL_SUBJECT") or DEFAULT_EMAIL_SUBJECT,
            email_timeout_s=float(_env(env, "EMAIL_TIMEOUT_S", "10")),
            conflict_product_fields=_parse_csv(env.get("CONFLICT_PRODUCT_FIELDS")),
            conflict_reason_fields=_parse_csv(env.get("CONFLICT_REASON_FIELDS")),
            port=int(_env(env, "PORT", "4000")),
            log_level=_env(env, "LOG_LEVEL", "INFO").upper(),
        )
