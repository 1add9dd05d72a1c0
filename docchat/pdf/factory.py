from typing import ClassVar

from docchat.config.settings import Settings
from docchat.logging.logger import Log
from docchat.pdf.base import BasePdfReader
from docchat.pdf.extractor import PageTextExtractor
from docchat.pdf.pdfplumber_adapter import PdfPlumberAdapter
from docchat.pdf.pymupdf_adapter import PyMuPdfAdapter


class PdfReaderFactory:
    """Builds the page reader and extractor for the configured PDF engine."""

    ENGINES: ClassVar[dict[str, type[BasePdfReader]]] = {
        "pdfplumber": PdfPlumberAdapter,
        "pymupdf": PyMuPdfAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> BasePdfReader:
        engine = settings.pdf_engine.strip().lower()
        reader_cls = cls.ENGINES.get(engine)
        if reader_cls is None:
            raise ValueError(
                f"Unsupported pdf_engine '{settings.pdf_engine}'. "
                f"Supported engines: {', '.join(sorted(cls.ENGINES))}"
            )
        Log.debug(f"Using {engine} page reader")
        return reader_cls()

    @classmethod
    def create_extractor(cls, settings: Settings) -> PageTextExtractor:
        """Page extractor over the configured engine and concurrency limit."""
        return PageTextExtractor(
            cls.create(settings),
            concurrency=settings.extraction_concurrency,
        )
