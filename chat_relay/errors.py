"""Domain-level exceptions for the chat relay."""


class BadRequestError(ValueError):
    """Raised for client-side invalid requests at the domain layer."""

    error_type = "bad_request"

    def __init__(self, message: str, code: str) -> None:
        super().__init__(message)
        self.code = code


class ValidationError(BadRequestError):
    """Malformed chat request; rejected before any side effect."""

    error_type = "validation_error"


class SessionError(BadRequestError):
    """Missing or malformed session identifier."""

    error_type = "session_error"


class StoreError(RuntimeError):
    """Session history could not be written or read."""


class ProviderError(RuntimeError):
    """A text-generation provider failed to start or continue a stream."""

    error_type = "provider_error"

    def __init__(self, message: str, provider_name: str | None = None) -> None:
        super().__init__(message)
        self.provider_name = provider_name


class NoProviderAvailableError(ProviderError):
    """The provider pool yielded no adapter."""

    error_type = "no_provider_available"
