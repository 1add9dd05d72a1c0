import io

import pdfplumber

from docchat.pdf.base import BasePdfReader, LoadedPdf
from docchat.pdf.exceptions import FormatError, PageDecodeError


class _PdfPlumberDocument(LoadedPdf):
    def __init__(self, pdf: pdfplumber.PDF) -> None:
        self._pdf = pdf

    @property
    def page_count(self) -> int:
        return len(self._pdf.pages)

    def page_text(self, index: int) -> str:
        try:
            return (self._pdf.pages[index].extract_text() or "").strip()
        except Exception as exc:
            raise PageDecodeError(str(exc) or type(exc).__name__) from exc

    def close(self) -> None:
        self._pdf.close()


class PdfPlumberAdapter(BasePdfReader):
    """Decodes PDF pages using pdfplumber."""

    def open(self, pdf_bytes: bytes) -> LoadedPdf:
        try:
            pdf = pdfplumber.open(io.BytesIO(pdf_bytes))
        except Exception as exc:
            raise FormatError(f"pdfplumber could not open document: {exc}") from exc
        try:
            # pdfplumber parses the page tree lazily; force it so a broken
            # document fails here rather than on the first page.
            _ = pdf.pages
        except Exception as exc:
            pdf.close()
            raise FormatError(f"pdfplumber could not read page tree: {exc}") from exc
        return _PdfPlumberDocument(pdf)
