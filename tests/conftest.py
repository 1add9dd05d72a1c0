import io

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from docchat.pdf.base import BasePdfReader, LoadedPdf
from docchat.pdf.exceptions import PageDecodeError


def _pdf_with_pages(*page_lines: str) -> bytes:
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    for line in page_lines:
        if line:
            c.drawString(72, 720, line)
        c.showPage()
    c.save()
    return buf.getvalue()


class FakeLoadedPdf(LoadedPdf):
    """In-memory document whose listed pages fail to decode."""

    def __init__(self, texts: list[str], failing: set[int]) -> None:
        self.texts = texts
        self.failing = failing
        self.decoded: list[int] = []
        self.closed = False

    @property
    def page_count(self) -> int:
        return len(self.texts)

    def page_text(self, index: int) -> str:
        self.decoded.append(index)
        if index in self.failing:
            raise PageDecodeError(f"corrupt content stream on page {index + 1}")
        return self.texts[index]

    def close(self) -> None:
        self.closed = True


class FakePdfReader(BasePdfReader):
    def __init__(self, texts: list[str], failing: set[int] | None = None) -> None:
        self.document = FakeLoadedPdf(texts, failing or set())

    def open(self, pdf_bytes: bytes) -> LoadedPdf:
        return self.document


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    return _pdf_with_pages("Hello PDF World")


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Generate a two-page PDF with known text on each page."""
    return _pdf_with_pages("Page one content", "Page two content")


@pytest.fixture()
def three_page_pdf_bytes() -> bytes:
    return _pdf_with_pages(
        "Photosynthesis converts light energy into chemical energy",
        "Page two discusses chlorophyll absorption",
        "Page three concludes with carbon fixation",
    )


@pytest.fixture()
def empty_pdf_bytes() -> bytes:
    """Generate a valid PDF with no text content (blank page)."""
    return _pdf_with_pages("")


@pytest.fixture()
def fake_reader() -> type[FakePdfReader]:
    """Factory for readers built from page texts and failing page indexes."""
    return FakePdfReader
