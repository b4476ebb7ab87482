"""
Error taxonomy shared by every request kind.

ConfigurationError is raised synchronously by request constructors.
Every other LocationError is delivered through a request's `on_error` callbacks.
"""


class LocationError(Exception):
    """Base class for every error produced by the location request core."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(LocationError):
    """Authorization not granted or hardware capability missing."""


class MissingCredentials(LocationError):
    """No API key is configured for the selected provider."""

    def __init__(self, provider: str):
        super().__init__(f"Missing API key for provider '{provider}'")
        self.provider = provider


class TransportError(LocationError):
    """The network call failed, timed out or returned an HTTP error status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class DataParserError(LocationError):
    """The provider payload is malformed or does not have the expected shape."""


class ProviderStatusError(LocationError):
    """The provider answered but reported a non-success status."""

    def __init__(self, provider: str, status: str, detail: str | None = None):
        message = f"{provider} returned status {status}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.provider = provider
        self.status = status
        self.detail = detail
