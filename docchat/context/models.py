from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from docchat.config.settings import Settings


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ConversationTurn:
    """One message of the transcript."""

    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class ConversationMetrics:
    user_turns: int
    assistant_turns: int
    total_chars: int
    average_chars: int


class ConversationHistory:
    """Append-only transcript of a session, cleared only by ``clear``."""

    def __init__(self) -> None:
        self._turns: list[ConversationTurn] = []

    def append(self, turn: ConversationTurn) -> None:
        self._turns.append(turn)

    def add_user(self, content: str) -> ConversationTurn:
        turn = ConversationTurn(role=Role.USER, content=content)
        self.append(turn)
        return turn

    def add_assistant(self, content: str) -> ConversationTurn:
        turn = ConversationTurn(role=Role.ASSISTANT, content=content)
        self.append(turn)
        return turn

    def clear(self) -> None:
        self._turns.clear()

    @property
    def turns(self) -> tuple[ConversationTurn, ...]:
        return tuple(self._turns)

    def metrics(self) -> ConversationMetrics:
        total_chars = sum(len(turn.content) for turn in self._turns)
        return ConversationMetrics(
            user_turns=sum(1 for turn in self._turns if turn.role is Role.USER),
            assistant_turns=sum(
                1 for turn in self._turns if turn.role is Role.ASSISTANT
            ),
            total_chars=total_chars,
            average_chars=round(total_chars / len(self._turns)) if self._turns else 0,
        )

    def __iter__(self) -> Iterator[ConversationTurn]:
        return iter(tuple(self._turns))

    def __len__(self) -> int:
        return len(self._turns)


@dataclass(frozen=True)
class ContextLimits:
    """Size ceilings for one assembled context.

    The defaults are empirically tuned guards against request-size
    failures, not hard protocol limits.
    """

    max_document_chars: int = 100_000
    document_truncate_target: int = 95_000
    paragraph_boundary_floor: int = 80_000
    max_history_turns: int = 30
    history_head_turns: int = 3
    history_tail_turns: int = 25
    max_turn_chars: int = 2_000
    max_excerpt_chars: int = 10_000
    max_prompt_chars: int = 200_000
    min_document_chars: int = 100

    def __post_init__(self) -> None:
        if self.document_truncate_target > self.max_document_chars:
            raise ValueError("document_truncate_target must not exceed max_document_chars")
        if self.paragraph_boundary_floor > self.document_truncate_target:
            raise ValueError(
                "paragraph_boundary_floor must not exceed document_truncate_target"
            )
        if self.history_head_turns + self.history_tail_turns >= self.max_history_turns:
            raise ValueError(
                "history_head_turns + history_tail_turns must be below max_history_turns"
            )

    @classmethod
    def from_settings(cls, settings: Settings) -> "ContextLimits":
        return cls(
            max_document_chars=settings.context_max_document_chars,
            document_truncate_target=settings.context_document_truncate_target,
            paragraph_boundary_floor=settings.context_paragraph_boundary_floor,
            max_history_turns=settings.context_max_history_turns,
            history_head_turns=settings.context_history_head_turns,
            history_tail_turns=settings.context_history_tail_turns,
            max_turn_chars=settings.context_max_turn_chars,
            max_excerpt_chars=settings.context_max_excerpt_chars,
            max_prompt_chars=settings.context_max_prompt_chars,
            min_document_chars=settings.context_min_document_chars,
        )


@dataclass(frozen=True)
class AssembledContext:
    """Bounded context for a single completion request. Never persisted."""

    document_text: str
    history: tuple[ConversationTurn, ...]
    excerpt: str | None = None
    warnings: tuple[str, ...] = ()
    transcript_length: int = 0
    prompt_chars: int = 0
    document_truncated: bool = False
    history_condensed: bool = False
    dropped_turns: int = 0
