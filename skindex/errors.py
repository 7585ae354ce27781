from __future__ import annotations


class RelayError(Exception):
    """Base error whose ``message`` is safe to return to clients."""

    status_code = 500
    message = "Failed to process the request."

    def __init__(self, message: str | None = None, *, detail: str | None = None):
        super().__init__(detail or message or self.message)
        if message:
            self.message = message
        self.detail = detail


class InputValidationError(RelayError):
    status_code = 400
    message = "Invalid request."


class UpstreamInvocationError(RelayError):
    """Raised when every candidate model failed to produce text."""

    message = "Failed to process the request."


class UpstreamFormatError(RelayError):
    """Raised when the model replied but its text is not parseable JSON."""

    message = "Gemini returned invalid JSON."


class EmailDeliveryError(RelayError):
    message = "Failed to send email."
