from __future__ import annotations

import asyncio
from email.message import EmailMessage
import logging
import smtplib
import ssl
from typing import Any, Protocol

import httpx

from skindex.settings import Settings

logger = logging.getLogger("skindex-relay.mailer")


class Mailer(Protocol):
    async def send(self, *, to: str, subject: str, text: str) -> None: ...


class SmtpMailer:
    def __init__(self, *, host: str, port: int, username: str, password: str, sender: str) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender

    def build_message(self, *, to: str, subject: str, text: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = to
        msg.set_content(text)
        return msg

    def _send_sync(self, msg: EmailMessage) -> None:
        context = ssl.create_default_context()
        with smtplib.SMTP_SSL(self.host, self.port, context=context) as server:
            if self.username:
                server.login(self.username, self.password)
            server.send_message(msg)

    async def send(self, *, to: str, subject: str, text: str) -> None:
        msg = self.build_message(to=to, subject=subject, text=text)
        await asyncio.to_thread(self._send_sync, msg)
        logger.info("Email sent via SMTP. host=%s to=%s", self.host, to)


class ApiMailer:
    def __init__(self, *, url: str, api_key: str, sender: str, timeout_s: float) -> None:
        self.url = url
        self.api_key = api_key
        self.sender = sender
        self.timeout_s = timeout_s

    async def send(self, *, to: str, subject: str, text: str) -> None:
        if not self.url:
            raise RuntimeError("EMAIL_API_URL not set.")

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        payload: dict[str, Any] = {"from": self.sender, "to": to, "subject": subject, "text": text}

        async with httpx.AsyncClient(timeout=self.timeout_s) as client:
            res = await client.post(self.url, headers=headers, json=payload)

        if res.status_code >= 400:
            raise httpx.HTTPStatusError("Email API returned error", request=res.request, response=res)
        logger.info("Email sent via API. status=%s to=%s", res.status_code, to)


def build_mailer(settings: Settings) -> Mailer:
    if settings.email_transport == "api":
        return ApiMailer(
            url=settings.email_api_url,
            api_key=settings.email_api_key,
            sender=settings.sender,
            timeout_s=settings.email_timeout_s,
        )
    return SmtpMailer(
        host=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.email_user,
        password=settings.email_pass,
        sender=settings.sender,
    )
