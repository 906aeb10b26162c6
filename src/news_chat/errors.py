GENERIC_ERROR_MESSAGE = "Terjadi kesalahan pada server."


class ChatError(Exception):
    """Base error for the chat request path.

    Every subclass carries the HTTP status the API layer answers with and a
    message that is safe to show to the caller.
    """

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message or GENERIC_ERROR_MESSAGE

    def as_payload(self) -> dict[str, str]:
        return {"error": self.message}


class InvalidRequestError(ChatError):
    status_code = 400


class ConfigurationError(ChatError):
    """A required secret is missing. The message names the setting, never its value."""

    status_code = 500


class UpstreamError(ChatError):
    status_code = 500
