from dataclasses import dataclass
from enum import Enum

from docchat.reply.models import DecodeStrategy


class ExchangeState(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FailureKind(str, Enum):
    NETWORK = "network"
    RATE_LIMIT = "rate_limit"
    EMPTY_RESPONSE = "empty_response"
    CONFIGURATION = "configuration"
    CONTEXT_TOO_LARGE = "context_too_large"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class AssistantReply:
    """A completed exchange: the displayable text and how it was recovered."""

    text: str
    raw_text: str
    strategy: DecodeStrategy
    elapsed_seconds: float = 0.0


@dataclass(frozen=True)
class ExchangeFailure:
    """A classified failure. ``detail`` holds the raw error for diagnostics."""

    kind: FailureKind
    user_message: str
    detail: str = ""
    elapsed_seconds: float = 0.0

    def display_text(self, show_details: bool = False) -> str:
        """Message for the transcript; raw detail only when ``show_details``."""
        if not show_details or not self.detail:
            return self.user_message
        return (
            f"{self.user_message}\n\nTechnical details:\n"
            f"- Kind: {self.kind.value}\n"
            f"- Message: {self.detail}\n"
            f"- Time: {self.elapsed_seconds:.2f}s"
        )


ExchangeOutcome = AssistantReply | ExchangeFailure
