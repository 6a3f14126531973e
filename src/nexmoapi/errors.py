class NexmoError(Exception):
    pass


class ConfigurationError(NexmoError, ValueError):
    pass


class MessageValidationError(NexmoError, ValueError):
    pass


class SendConnectionError(NexmoError):
    """The request never produced a usable HTTP response.

    ``debug`` holds the trace lines collected while the request was in
    flight. They are meant for operators reading logs.
    """

    def __init__(
        self,
        message: str,
        err: Exception | None = None,
        body: bytes = b"",
        debug: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.err = err
        self.body = body
        self.debug = debug or []


class InvalidResponseError(NexmoError):
    def __init__(
        self, message: str, err: Exception | None = None, body: bytes = b""
    ) -> None:
        super().__init__(message)
        self.message = message
        self.err = err
        self.body = body


class WebhookDecodeError(NexmoError):
    pass


class TimestampFormatError(WebhookDecodeError):
    def __init__(self, value: str) -> None:
        super().__init__(f"Unrecognized timestamp format: {value!r}")
        self.value = value


class UnsupportedContentTypeError(WebhookDecodeError):
    def __init__(self, content_type: str) -> None:
        super().__init__(f"Content-Type {content_type} not supported.")
        self.content_type = content_type


class UnrecognizedMessageTypeError(WebhookDecodeError):
    def __init__(self, value: str) -> None:
        super().__init__(f"Unrecognized message type: {value!r}")
        self.value = value


class InvalidFieldError(WebhookDecodeError):
    def __init__(self, field: str, value: str, reason: str = "invalid value") -> None:
        super().__init__(f"{field}: {reason} ({value!r})")
        self.field = field
        self.value = value


class MissingContentTypeError(UnsupportedContentTypeError):
    def __init__(self) -> None:
        WebhookDecodeError.__init__(self, "Content-Type not set")
        self.content_type = ""
