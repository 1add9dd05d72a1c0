"""End-to-end: real PDF decoding, context assembly and reply recovery.

Only the completion service is mocked.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from docchat.assistant.controller import AssistantController
from docchat.assistant.models import AssistantReply
from docchat.completion.client_base import BaseCompletionClient
from docchat.config.settings import Settings
from docchat.context.budgeter import ContextBudgeter
from docchat.context.models import Role
from docchat.pdf.base import BasePdfReader, LoadedPdf
from docchat.pdf.exceptions import PageDecodeError
from docchat.pdf.extractor import PageTextExtractor
from docchat.pdf.pdfplumber_adapter import PdfPlumberAdapter
from docchat.reply.models import DecodeStrategy
from docchat.session.session import ChatSession, build_session


class _FailingPages(LoadedPdf):
    def __init__(self, inner: LoadedPdf, failing: set[int]) -> None:
        self._inner = inner
        self._failing = failing

    @property
    def page_count(self) -> int:
        return self._inner.page_count

    def page_text(self, index: int) -> str:
        if index in self._failing:
            raise PageDecodeError("simulated corruption")
        return self._inner.page_text(index)

    def close(self) -> None:
        self._inner.close()


class _FailingPageReader(BasePdfReader):
    """Real pdfplumber decoding with selected pages forced to fail."""

    def __init__(self, failing: set[int]) -> None:
        self._inner = PdfPlumberAdapter()
        self._failing = failing

    def open(self, pdf_bytes: bytes) -> LoadedPdf:
        return _FailingPages(self._inner.open(pdf_bytes), self._failing)


def _client(reply: str) -> MagicMock:
    client = MagicMock(spec=BaseCompletionClient)
    client.complete = AsyncMock(return_value=reply)
    client.aclose = AsyncMock()
    return client


@pytest.mark.integration
class TestSessionPipeline:
    def test_corrupt_page_and_malformed_reply(self, three_page_pdf_bytes: bytes) -> None:
        client = _client(
            'Here you go: {"response": "Photosynthesis stores **light** energy'
        )
        session = ChatSession(
            extractor=PageTextExtractor(_FailingPageReader({1}), concurrency=2),
            budgeter=ContextBudgeter(),
            controller=AssistantController(client=client, model="m"),
        )

        document = asyncio.run(
            session.load_document(three_page_pdf_bytes, filename="paper.pdf")
        )
        assert document.page_count == 3
        assert document.stats.failed_pages == 1
        first, second, third = document.full_text.split("\n\n")
        assert "Photosynthesis converts light energy into chemical energy" in first
        assert second == "[Error reading page 2: simulated corruption]"
        assert "Page three concludes with carbon fixation" in third

        outcome = asyncio.run(session.send("What does page one say?"))

        prompt = client.complete.await_args.kwargs["prompt"]
        assert "Photosynthesis converts light energy into chemical energy" in prompt
        assert "[Error reading page 2: simulated corruption]" in prompt
        assert isinstance(outcome, AssistantReply)
        assert outcome.strategy is DecodeStrategy.LOOSE_FIELD_PATTERN
        assert outcome.text == "Photosynthesis stores light energy"
        turns = session.history.turns
        assert [turn.role for turn in turns] == [Role.USER, Role.ASSISTANT]
        assert turns[1].content == "Photosynthesis stores light energy"

    @pytest.mark.parametrize("engine", ["pdfplumber", "pymupdf"])
    def test_built_session_answers_about_document(
        self, engine: str, multi_page_pdf_bytes: bytes
    ) -> None:
        client = _client('```json\n{"response": "Two pages of content."}\n```')
        session = build_session(Settings(pdf_engine=engine), client=client)

        document = asyncio.run(session.load_document(multi_page_pdf_bytes))
        outcome = asyncio.run(session.send("How long is it?"))

        assert document.stats.failed_pages == 0
        assert "Page one content" in document.full_text
        assert "Page two content" in document.full_text
        assert isinstance(outcome, AssistantReply)
        assert outcome.text == "Two pages of content."
        assert "Page two content" in client.complete.await_args.kwargs["prompt"]
