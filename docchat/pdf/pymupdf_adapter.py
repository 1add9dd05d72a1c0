import pymupdf

from docchat.pdf.base import BasePdfReader, LoadedPdf
from docchat.pdf.exceptions import FormatError, PageDecodeError


class _PyMuPdfDocument(LoadedPdf):
    def __init__(self, doc: pymupdf.Document) -> None:
        self._doc = doc

    @property
    def page_count(self) -> int:
        return int(self._doc.page_count)

    def page_text(self, index: int) -> str:
        try:
            return str(self._doc.load_page(index).get_text()).strip()
        except Exception as exc:
            raise PageDecodeError(str(exc) or type(exc).__name__) from exc

    def close(self) -> None:
        self._doc.close()


class PyMuPdfAdapter(BasePdfReader):
    """Decodes PDF pages using PyMuPDF."""

    def open(self, pdf_bytes: bytes) -> LoadedPdf:
        try:
            doc = pymupdf.open(stream=pdf_bytes, filetype="pdf")  # type: ignore[no-untyped-call]
        except Exception as exc:
            raise FormatError(f"pymupdf could not open document: {exc}") from exc
        return _PyMuPdfDocument(doc)
