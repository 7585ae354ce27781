from __future__ import annotations

import json
from pathlib import Path
import sys
import unittest
from unittest.mock import MagicMock, patch

import httpx

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from skindex.services.mailer import ApiMailer, SmtpMailer, build_mailer
from skindex.settings import Settings


class TestBuildMailer(unittest.TestCase):
    def test_defaults_to_smtp_with_user_as_sender(self) -> None:
        mailer = build_mailer(Settings(email_user="me@gmail.com", email_pass="pw"))
        self.assertIsInstance(mailer, SmtpMailer)
        assert isinstance(mailer, SmtpMailer)
        self.assertEqual(mailer.sender, "me@gmail.com")
        self.assertEqual((mailer.host, mailer.port), ("smtp.gmail.com", 465))

    def test_api_transport(self) -> None:
        mailer = build_mailer(
            Settings(email_transport="api", email_api_url="https://mail.example/send", email_from="noreply@example.com")
        )
        self.assertIsInstance(mailer, ApiMailer)


class TestSmtpMailer(unittest.IsolatedAsyncioTestCase):
    async def test_send_logs_in_and_sends_message(self) -> None:
        mailer = SmtpMailer(host="smtp.test", port=465, username="me", password="pw", sender="me@test")

        with patch("skindex.services.mailer.smtplib.SMTP_SSL") as smtp_cls:
            server = smtp_cls.return_value.__enter__.return_value
            await mailer.send(to="you@test", subject="Hi", text="Body")

        server.login.assert_called_once_with("me", "pw")
        msg = server.send_message.call_args.args[0]
        self.assertEqual(msg["To"], "you@test")
        self.assertEqual(msg["From"], "me@test")
        self.assertEqual(msg.get_content().strip(), "Body")


class TestApiMailer(unittest.IsolatedAsyncioTestCase):
    async def _send_with(self, handler) -> None:
        transport = httpx.MockTransport(handler)
        real_client = httpx.AsyncClient

        def _client(**kwargs):
            return real_client(transport=transport, **kwargs)

        mailer = ApiMailer(url="https://mail.example/send", api_key="key", sender="noreply@example.com", timeout_s=5)
        with patch("skindex.services.mailer.httpx.AsyncClient", side_effect=_client):
            await mailer.send(to="you@example.com", subject="Hi", text="Body")

    async def test_posts_payload_with_bearer_token(self) -> None:
        seen = MagicMock()

        def handler(request: httpx.Request) -> httpx.Response:
            seen(request.headers.get("Authorization"), json.loads(request.content))
            return httpx.Response(200, json={"id": "msg_1"})

        await self._send_with(handler)

        seen.assert_called_once_with(
            "Bearer key",
            {"from": "noreply@example.com", "to": "you@example.com", "subject": "Hi", "text": "Body"},
        )

    async def test_error_status_raises(self) -> None:
        with self.assertRaises(httpx.HTTPStatusError):
            await self._send_with(lambda request: httpx.Response(422, json={"error": "bad sender"}))


if __name__ == "__main__":
    unittest.main()
