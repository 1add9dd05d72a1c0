class CompletionError(Exception):
    """Raised when the completion service call fails."""


class TransportError(CompletionError):
    """Raised when the completion service cannot be reached."""


class RateLimitError(CompletionError):
    """Raised when the completion service rejects a request for rate or quota."""


class EmptyResponseError(CompletionError):
    """Raised when no access path of the response yields text."""


class CompletionConfigurationError(CompletionError):
    """Raised when the service rejects the configured credentials or model."""
