from dataclasses import dataclass
from enum import Enum


class DecodeStrategy(str, Enum):
    """Decoder cascade steps, in the order they are attempted."""

    FENCED_BLOCK = "fenced_block"
    SANITIZED_BLOCK = "sanitized_block"
    FENCED_FIELD_PATTERN = "fenced_field_pattern"
    RAW_JSON = "raw_json"
    LOOSE_FIELD_PATTERN = "loose_field_pattern"
    SALVAGE = "salvage"
    APOLOGY = "apology"

    @property
    def degraded(self) -> bool:
        """True once the reply was recovered without a clean JSON parse."""
        return self not in (DecodeStrategy.FENCED_BLOCK, DecodeStrategy.RAW_JSON)


@dataclass(frozen=True)
class DecodedReply:
    """Structured answer recovered from raw completion text."""

    response: str
    strategy: DecodeStrategy
