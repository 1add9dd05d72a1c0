from dataclasses import dataclass


@dataclass(frozen=True)
class PageResult:
    """Text decoded from one page, or the placeholder left by a failed page."""

    index: int
    text: str
    ok: bool = True
    error_note: str = ""


@dataclass(frozen=True)
class ExtractionStats:
    page_count: int
    failed_pages: int
    char_count: int
    elapsed_seconds: float = 0.0


@dataclass(frozen=True)
class ExtractionResult:
    """Output of the page text extractor."""

    pages: tuple[PageResult, ...]
    full_text: str
    stats: ExtractionStats


@dataclass(frozen=True)
class Document:
    """An uploaded document and its extracted per-page text."""

    raw_bytes: bytes
    pages: tuple[PageResult, ...]
    full_text: str
    stats: ExtractionStats
    filename: str = ""

    @classmethod
    def from_extraction(
        cls,
        raw_bytes: bytes,
        result: ExtractionResult,
        filename: str = "",
    ) -> "Document":
        return cls(
            raw_bytes=raw_bytes,
            pages=result.pages,
            full_text=result.full_text,
            stats=result.stats,
            filename=filename,
        )

    @property
    def page_count(self) -> int:
        return self.stats.page_count

    @property
    def char_count(self) -> int:
        return self.stats.char_count
