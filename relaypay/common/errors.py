"""Error taxonomy for calls made against the payment processor."""


class ProcessorError(Exception):
    """Base class for failures talking to the payment processor."""


class MissingCredentialsError(ProcessorError):
    """Client id or client secret is not configured."""

    def __init__(self, message: str = "MISSING_API_CREDENTIALS") -> None:
        super().__init__(message)


class UpstreamAuthError(ProcessorError):
    """The token endpoint failed or answered without an access token."""


class UpstreamParseError(ProcessorError):
    """A processor response body was not JSON; the message is the raw body text."""

    def __init__(self, body_text: str) -> None:
        self.body_text = body_text
        super().__init__(body_text)
