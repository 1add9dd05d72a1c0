class PdfError(Exception):
    """Base exception for all document decoding errors."""


class FormatError(PdfError):
    """Raised when a buffer is empty or not a recognized document format."""


class UploadRejectedError(FormatError):
    """Raised when an upload fails the MIME type or size pre-conditions."""


class PageDecodeError(PdfError):
    """Raised when a single page cannot be decoded."""
