from abc import ABC, abstractmethod
from types import TracebackType


class LoadedPdf(ABC):
    """An opened document whose pages are decoded one at a time."""

    @property
    @abstractmethod
    def page_count(self) -> int:
        """Number of pages in the document."""

    @abstractmethod
    def page_text(self, index: int) -> str:
        """Decode the text of one page.

        Args:
            index: Zero-based page index.

        Returns:
            The page text, stripped. Pages without text yield "".

        Raises:
            PageDecodeError: if this page cannot be decoded.
        """

    @abstractmethod
    def close(self) -> None:
        """Release decoder state held for the document."""

    def __enter__(self) -> "LoadedPdf":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class BasePdfReader(ABC):
    """Contract for all PDF decoding adapters."""

    @abstractmethod
    def open(self, pdf_bytes: bytes) -> LoadedPdf:
        """Open raw PDF bytes for page-by-page decoding.

        Args:
            pdf_bytes: Raw PDF file content.

        Returns:
            A LoadedPdf usable as a context manager.

        Raises:
            FormatError: if the bytes cannot be opened as a PDF.
        """
