"""Maps exchange errors to failure kinds and user-facing messages."""

from docchat.assistant.models import ExchangeFailure, FailureKind
from docchat.completion.exceptions import (
    CompletionConfigurationError,
    EmptyResponseError,
    RateLimitError,
    TransportError,
)
from docchat.context.exceptions import ContextTooLargeError

USER_MESSAGES: dict[FailureKind, str] = {
    FailureKind.NETWORK: (
        "Network connection error. Please check your internet connection and try again."
    ),
    FailureKind.RATE_LIMIT: (
        "API rate limit exceeded. Please wait a moment before trying again."
    ),
    FailureKind.EMPTY_RESPONSE: (
        "The AI service returned an empty response. Please try rephrasing your question."
    ),
    FailureKind.CONFIGURATION: (
        "There's an issue with the API configuration. Please check your setup."
    ),
    FailureKind.CONTEXT_TOO_LARGE: ContextTooLargeError.user_message,
    FailureKind.UNKNOWN: (
        "An unexpected error occurred. Please try again or rephrase your question."
    ),
}

_TYPED_KINDS: tuple[tuple[type[BaseException], FailureKind], ...] = (
    (ContextTooLargeError, FailureKind.CONTEXT_TOO_LARGE),
    (TransportError, FailureKind.NETWORK),
    (ConnectionError, FailureKind.NETWORK),
    (TimeoutError, FailureKind.NETWORK),
    (RateLimitError, FailureKind.RATE_LIMIT),
    (EmptyResponseError, FailureKind.EMPTY_RESPONSE),
    (CompletionConfigurationError, FailureKind.CONFIGURATION),
)

# Fallback for errors raised by clients that do not use the typed hierarchy.
_MESSAGE_KINDS: tuple[tuple[tuple[str, ...], FailureKind], ...] = (
    (("api key",), FailureKind.CONFIGURATION),
    (("network", "fetch", "connection"), FailureKind.NETWORK),
    (("rate limit", "quota"), FailureKind.RATE_LIMIT),
    (("empty response",), FailureKind.EMPTY_RESPONSE),
)


def classify_error(exc: BaseException) -> FailureKind:
    for exc_type, kind in _TYPED_KINDS:
        if isinstance(exc, exc_type):
            return kind
    message = str(exc).lower()
    for needles, kind in _MESSAGE_KINDS:
        if any(needle in message for needle in needles):
            return kind
    return FailureKind.UNKNOWN


def failure_from_error(exc: BaseException, elapsed_seconds: float = 0.0) -> ExchangeFailure:
    kind = classify_error(exc)
    return ExchangeFailure(
        kind=kind,
        user_message=USER_MESSAGES[kind],
        detail=f"{type(exc).__name__}: {exc}",
        elapsed_seconds=elapsed_seconds,
    )
