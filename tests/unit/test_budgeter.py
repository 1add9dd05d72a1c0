"""Tests for the context budgeter."""

from unittest.mock import MagicMock

import pytest

from docchat.context.budgeter import (
    CONDENSED_HISTORY_NOTE,
    EMPTY_DOCUMENT_PLACEHOLDER,
    INVALID_CONTENT_PLACEHOLDER,
    TRUNCATION_MARKER,
    ContextBudgeter,
    condense_history,
    truncate_document,
)
from docchat.context.exceptions import ContextTooLargeError
from docchat.context.models import ContextLimits, ConversationTurn, Role

DOCUMENT = "The study measures enzyme activity across temperatures. " * 5


def _turns(count: int) -> list[ConversationTurn]:
    return [
        ConversationTurn(
            role=Role.USER if i % 2 == 0 else Role.ASSISTANT,
            content=f"turn {i}",
        )
        for i in range(count)
    ]


class TestDocumentTruncation:
    def test_short_text_unchanged(self) -> None:
        assert truncate_document("abc", ContextLimits()) == "abc"

    def test_long_text_cut_to_target_plus_marker(self) -> None:
        text = "x" * 150_000
        result = truncate_document(text, ContextLimits())
        assert result == "x" * 95_000 + TRUNCATION_MARKER

    def test_cuts_at_paragraph_boundary_past_floor(self) -> None:
        text = "a" * 90_000 + "\n\n" + "b" * 60_000
        result = truncate_document(text, ContextLimits())
        assert result == "a" * 90_000 + TRUNCATION_MARKER

    def test_ignores_paragraph_boundary_before_floor(self) -> None:
        text = "a" * 50_000 + "\n\n" + "b" * 100_000
        result = truncate_document(text, ContextLimits())
        assert len(result) == 95_000 + len(TRUNCATION_MARKER)
        assert result.endswith("b" + TRUNCATION_MARKER)

    def test_is_deterministic(self) -> None:
        text = ("paragraph " * 1000 + "\n\n") * 20
        assert truncate_document(text, ContextLimits()) == truncate_document(text, ContextLimits())


class TestHistoryCondensation:
    def test_short_history_kept(self) -> None:
        history = _turns(30)
        assert condense_history(history, ContextLimits()) == history

    def test_keeps_head_note_and_tail(self) -> None:
        history = _turns(35)
        condensed = condense_history(history, ContextLimits())
        assert len(condensed) == 29
        assert condensed[:3] == history[:3]
        assert condensed[3].content == CONDENSED_HISTORY_NOTE
        assert condensed[4:] == history[-25:]

    def test_source_history_not_modified(self) -> None:
        history = _turns(35)
        snapshot = list(history)
        ContextBudgeter().build(DOCUMENT, history)
        assert history == snapshot


class TestBuild:
    def test_includes_document_and_history(self) -> None:
        context = ContextBudgeter().build(DOCUMENT, _turns(2))
        assert context.document_text == DOCUMENT
        assert [turn.content for turn in context.history] == ["turn 0", "turn 1"]
        assert context.warnings == ()
        assert context.transcript_length == 2

    def test_truncates_large_document_with_warning(self) -> None:
        context = ContextBudgeter().build("y" * 150_000, _turns(1))
        assert len(context.document_text) <= 95_000 + len(TRUNCATION_MARKER)
        assert context.document_truncated is True
        assert any("truncated" in warning for warning in context.warnings)

    def test_condenses_35_turns_to_29(self) -> None:
        context = ContextBudgeter().build(DOCUMENT, _turns(35))
        assert len(context.history) == 29
        assert context.history_condensed is True
        assert context.transcript_length == 35
        assert any("condensed" in warning for warning in context.warnings)

    def test_caps_turn_content(self) -> None:
        history = [ConversationTurn(role=Role.USER, content="q" * 5000)]
        context = ContextBudgeter().build(DOCUMENT, history)
        assert context.history[0].content == "q" * 2000

    def test_drops_malformed_turns(self) -> None:
        history = [
            {"role": "user", "content": "kept"},
            {"role": "user"},
            {"content": "no role"},
            {"role": "system", "content": "unknown role"},
            {"role": "assistant", "content": ""},
        ]
        context = ContextBudgeter().build(DOCUMENT, history)
        assert [turn.content for turn in context.history] == ["kept"]
        assert context.dropped_turns == 4
        assert any("malformed" in warning for warning in context.warnings)

    def test_non_string_content_replaced(self) -> None:
        context = ContextBudgeter().build(DOCUMENT, [{"role": "user", "content": 42}])
        assert context.history[0].content == INVALID_CONTENT_PLACEHOLDER

    def test_empty_document_uses_placeholder(self) -> None:
        context = ContextBudgeter().build("   ", [])
        assert context.document_text == EMPTY_DOCUMENT_PLACEHOLDER
        assert "Limited document content available" in context.warnings

    def test_short_document_kept_with_warning(self) -> None:
        context = ContextBudgeter().build("Tiny abstract.", [])
        assert context.document_text == "Tiny abstract."
        assert "Limited document content available" in context.warnings

    def test_flags_encoding_issues(self) -> None:
        context = ContextBudgeter().build(DOCUMENT + "\ufffd" * 60, [])
        assert "Document may have text encoding issues" in context.warnings

    def test_excerpt_included_and_capped(self) -> None:
        limits = ContextLimits(max_excerpt_chars=10)
        context = ContextBudgeter(limits).build(DOCUMENT, [], "  selected passage text  ")
        assert context.excerpt == "selected p" + TRUNCATION_MARKER
        assert "Selected excerpt truncated" in context.warnings

    def test_blank_excerpt_ignored(self) -> None:
        context = ContextBudgeter().build(DOCUMENT, [], "   ")
        assert context.excerpt is None

    def test_records_prompt_size(self) -> None:
        context = ContextBudgeter().build(DOCUMENT, _turns(2), question="why?")
        assert context.prompt_chars > len(DOCUMENT)


class TestPromptCeiling:
    def test_raises_when_prompt_exceeds_ceiling(self) -> None:
        limits = ContextLimits(max_prompt_chars=1_000)
        with pytest.raises(ContextTooLargeError) as exc_info:
            ContextBudgeter(limits).build(DOCUMENT * 10, _turns(3))
        assert exc_info.value.max_prompt_chars == 1_000
        assert exc_info.value.prompt_chars > 1_000

    def test_question_counts_against_ceiling(self) -> None:
        builder = MagicMock()
        builder.render.side_effect = lambda context, question: "p" * (100 + len(question))
        budgeter = ContextBudgeter(ContextLimits(max_prompt_chars=150), builder)
        budgeter.build(DOCUMENT, [], question="q" * 50)
        with pytest.raises(ContextTooLargeError):
            budgeter.build(DOCUMENT, [], question="q" * 51)

    def test_default_ceiling_never_exceeded(self) -> None:
        history = [ConversationTurn(role=Role.USER, content="h" * 5000)] * 40
        context = ContextBudgeter().build("d" * 300_000, history, "e" * 50_000)
        assert context.prompt_chars <= 200_000


class TestContextLimits:
    def test_rejects_target_above_ceiling(self) -> None:
        with pytest.raises(ValueError):
            ContextLimits(max_document_chars=10, document_truncate_target=20, paragraph_boundary_floor=5)

    def test_rejects_overlapping_history_window(self) -> None:
        with pytest.raises(ValueError):
            ContextLimits(max_history_turns=10, history_head_turns=3, history_tail_turns=7)
