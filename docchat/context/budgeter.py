"""Context budgeter.

Builds the bounded context sent with one completion request from the
document text, an optional selected excerpt and the conversation
history. Truncation is deterministic. The transcript shown to the user
is never modified; only the copy sent with the request is condensed.
"""

import re
from collections.abc import Mapping, Sequence
from dataclasses import replace
from typing import Any

from docchat.context.exceptions import ContextTooLargeError
from docchat.context.models import (
    AssembledContext,
    ContextLimits,
    ConversationTurn,
    Role,
)
from docchat.context.prompt_builder import PromptBuilder
from docchat.logging.logger import Log

TRUNCATION_MARKER = "\n\n[Content truncated due to length...]"
PARAGRAPH_BOUNDARY = "\n\n"
CONDENSED_HISTORY_NOTE = (
    "[Earlier conversation history condensed for this request only - "
    "the full conversation is still visible to the user.]"
)
EMPTY_DOCUMENT_PLACEHOLDER = (
    "[Document content is minimal or unavailable. Text extraction may have failed.]"
)
INVALID_CONTENT_PLACEHOLDER = "[Invalid message content]"

_SUSPICIOUS_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F\uFFFD]")
_ENCODING_ISSUE_THRESHOLD = 50

HistoryItem = ConversationTurn | Mapping[str, Any]


def truncate_document(text: str, limits: ContextLimits) -> str:
    """Cut ``text`` to the document ceiling, preferring a paragraph boundary.

    Text within the ceiling is returned unchanged. Otherwise the text is
    cut to the truncation target and, if a paragraph boundary lies past
    the boundary floor, cut back to it. The marker is always appended.
    """
    if len(text) <= limits.max_document_chars:
        return text
    head = text[:limits.document_truncate_target]
    boundary = head.rfind(PARAGRAPH_BOUNDARY)
    if boundary > limits.paragraph_boundary_floor:
        head = head[:boundary]
    return head + TRUNCATION_MARKER


def condense_history(
    history: Sequence[HistoryItem],
    limits: ContextLimits,
) -> list[HistoryItem]:
    """Keep the opening and most recent turns when history is too long."""
    if len(history) <= limits.max_history_turns:
        return list(history)
    note = ConversationTurn(role=Role.ASSISTANT, content=CONDENSED_HISTORY_NOTE)
    return [
        *history[:limits.history_head_turns],
        note,
        *history[-limits.history_tail_turns:],
    ]


class ContextBudgeter:
    """Assembles an AssembledContext under the configured ceilings."""

    def __init__(
        self,
        limits: ContextLimits | None = None,
        prompt_builder: PromptBuilder | None = None,
    ) -> None:
        self._limits = limits if limits is not None else ContextLimits()
        self._prompt_builder = prompt_builder if prompt_builder is not None else PromptBuilder()

    @property
    def limits(self) -> ContextLimits:
        return self._limits

    def build(
        self,
        document_text: str,
        history: Sequence[HistoryItem],
        excerpt: str | None = None,
        *,
        question: str = "",
    ) -> AssembledContext:
        """Build the bounded context for one request.

        Args:
            document_text: Full extracted document text.
            history: Transcript so far, oldest first. Mappings with
                ``role`` and ``content`` keys are accepted alongside
                ConversationTurn values.
            excerpt: Text the user selected in the document, if any.
            question: Question the request will carry, counted against
                the whole-prompt ceiling.

        Raises:
            ContextTooLargeError: if the rendered prompt would exceed the
                whole-prompt ceiling.
        """
        limits = self._limits
        warnings: list[str] = []

        processed_text = self._prepare_document(document_text, warnings)

        document_truncated = len(processed_text) > limits.max_document_chars
        if document_truncated:
            processed_text = truncate_document(processed_text, limits)
            warnings.append(
                f"Large document truncated to {round(len(processed_text) / 1000)}k chars"
            )
            Log.warning(
                f"Document text truncated from {len(document_text)} to "
                f"{len(processed_text)} characters"
            )

        encoding_issues = len(_SUSPICIOUS_CHARS.findall(processed_text))
        if encoding_issues > _ENCODING_ISSUE_THRESHOLD:
            warnings.append("Document may have text encoding issues")
            Log.warning(f"Detected {encoding_issues} potential encoding issues in document text")

        processed_excerpt = self._prepare_excerpt(excerpt, warnings)

        condensed = condense_history(history, limits)
        history_condensed = len(condensed) != len(history)
        if history_condensed:
            warnings.append("Long conversation history condensed for this request")
            Log.warning(
                f"History condensed for request from {len(history)} to "
                f"{len(condensed)} turns (transcript unchanged)"
            )

        turns = [turn for turn in map(self._coerce_turn, condensed) if turn is not None]
        dropped = len(condensed) - len(turns)
        if dropped:
            warnings.append("Some conversation turns were malformed and removed")
            Log.warning(f"Dropped {dropped} malformed conversation turns")

        context = AssembledContext(
            document_text=processed_text,
            history=tuple(turns),
            excerpt=processed_excerpt,
            warnings=tuple(warnings),
            transcript_length=len(history),
            document_truncated=document_truncated,
            history_condensed=history_condensed,
            dropped_turns=dropped,
        )

        prompt_chars = len(self._prompt_builder.render(context, question))
        if prompt_chars > limits.max_prompt_chars:
            Log.error(
                f"Prompt too long: {prompt_chars} characters "
                f"(max {limits.max_prompt_chars})"
            )
            raise ContextTooLargeError(prompt_chars, limits.max_prompt_chars)

        if warnings:
            Log.info(f"Context limitations: {', '.join(warnings)}")
        Log.debug(f"Assembled context: {prompt_chars} prompt chars, {len(turns)} turns")
        return replace(context, prompt_chars=prompt_chars)

    def _prepare_document(self, document_text: str, warnings: list[str]) -> str:
        stripped_length = len(document_text.strip())
        if stripped_length == 0:
            warnings.append("Limited document content available")
            Log.warning("Document text is empty")
            return EMPTY_DOCUMENT_PLACEHOLDER
        if stripped_length < self._limits.min_document_chars:
            warnings.append("Limited document content available")
            Log.warning(f"Document text is minimal ({stripped_length} chars)")
        return document_text

    def _prepare_excerpt(self, excerpt: str | None, warnings: list[str]) -> str | None:
        if excerpt is None or not excerpt.strip():
            return None
        excerpt = excerpt.strip()
        if len(excerpt) > self._limits.max_excerpt_chars:
            warnings.append("Selected excerpt truncated")
            return excerpt[:self._limits.max_excerpt_chars] + TRUNCATION_MARKER
        return excerpt

    def _coerce_turn(self, item: HistoryItem) -> ConversationTurn | None:
        if isinstance(item, ConversationTurn):
            role: Any = item.role
            content: Any = item.content
        elif isinstance(item, Mapping):
            role = item.get("role")
            content = item.get("content")
        else:
            return None

        if not role or not content:
            return None
        try:
            role = Role(role)
        except ValueError:
            return None
        if not isinstance(content, str):
            content = INVALID_CONTENT_PLACEHOLDER
        return ConversationTurn(role=role, content=content[:self._limits.max_turn_chars])
