"""Page text extractor.

Decodes a document into ordered per-page text. A page that fails to
decode contributes a placeholder and never stops the pages after it.
"""

import asyncio
import time
from collections.abc import Callable

from docchat.logging.logger import Log
from docchat.pdf.base import BasePdfReader, LoadedPdf
from docchat.pdf.exceptions import PageDecodeError
from docchat.pdf.models import ExtractionResult, ExtractionStats, PageResult
from docchat.pdf.upload import sniff_pdf

PAGE_SEPARATOR = "\n\n"

ProgressCallback = Callable[[int, int], None]


def page_error_placeholder(page_number: int, reason: str) -> str:
    return f"[Error reading page {page_number}: {reason}]"


class PageTextExtractor:
    """Extracts text page by page with a bounded number of pages in flight."""

    def __init__(self, reader: BasePdfReader, concurrency: int = 1) -> None:
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")
        self._reader = reader
        self._concurrency = concurrency

    async def extract(
        self,
        pdf_bytes: bytes,
        on_progress: ProgressCallback | None = None,
    ) -> ExtractionResult:
        """Decode every page of ``pdf_bytes`` in index order.

        Args:
            pdf_bytes: Raw PDF content. Upload validation has already run.
            on_progress: Optional callback receiving (pages_completed, total).

        Returns:
            ExtractionResult whose pages match the document page count.

        Raises:
            FormatError: if the buffer is empty or cannot be opened.
        """
        sniff_pdf(pdf_bytes)
        started = time.perf_counter()

        with self._reader.open(pdf_bytes) as pdf:
            total = pdf.page_count
            Log.info(f"Document loaded: {total} pages")
            pages: list[PageResult] = []
            for start in range(0, total, self._concurrency):
                batch = range(start, min(start + self._concurrency, total))
                # gather keeps results in argument order, so page order holds
                # regardless of the concurrency limit.
                decoded = await asyncio.gather(
                    *(self._decode_page(pdf, index) for index in batch)
                )
                for page in decoded:
                    pages.append(page)
                    self._report_progress(on_progress, len(pages), total)

        failed = sum(1 for page in pages if not page.ok)
        full_text = PAGE_SEPARATOR.join(page.text for page in pages)
        stats = ExtractionStats(
            page_count=total,
            failed_pages=failed,
            char_count=sum(len(page.text) for page in pages if page.ok),
            elapsed_seconds=time.perf_counter() - started,
        )
        Log.info(
            f"Extraction complete: {stats.char_count} chars from {total} pages "
            f"({failed} failed) in {stats.elapsed_seconds:.2f}s"
        )
        return ExtractionResult(pages=tuple(pages), full_text=full_text, stats=stats)

    @staticmethod
    async def _decode_page(pdf: LoadedPdf, index: int) -> PageResult:
        try:
            text = pdf.page_text(index)
        except PageDecodeError as exc:
            reason = str(exc)
            Log.warning(f"Failed to read page {index + 1}: {reason}")
            result = PageResult(
                index=index,
                text=page_error_placeholder(index + 1, reason),
                ok=False,
                error_note=reason,
            )
        else:
            Log.debug(f"Extracted text from page {index + 1}/{pdf.page_count}")
            result = PageResult(index=index, text=text)
        await asyncio.sleep(0)
        return result

    @staticmethod
    def _report_progress(
        on_progress: ProgressCallback | None,
        completed: int,
        total: int,
    ) -> None:
        if on_progress is None:
            return
        try:
            on_progress(completed, total)
        except Exception as exc:
            Log.warning(f"Progress callback failed: {exc}")
