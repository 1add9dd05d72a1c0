"""Upload-time checks applied before a buffer reaches the extractor."""

from docchat.pdf.exceptions import FormatError, UploadRejectedError

PDF_MIME_TYPE = "application/pdf"
PDF_MAGIC_BYTES = b"%PDF"
DEFAULT_MAX_UPLOAD_BYTES = 50 * 1024 * 1024


def validate_upload(
    data: bytes,
    mime_type: str,
    max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
) -> None:
    """Check the MIME type and size of an uploaded file.

    Raises:
        UploadRejectedError: with a user-readable message if the upload
            is not a PDF or is larger than ``max_bytes``.
    """
    if mime_type != PDF_MIME_TYPE:
        if not mime_type:
            raise UploadRejectedError(
                "Unable to determine file type. Please ensure this is a valid PDF file."
            )
        raise UploadRejectedError(
            f"Invalid file type: {mime_type}. Please upload a PDF file."
        )
    if len(data) > max_bytes:
        size_mb = len(data) / (1024 * 1024)
        limit_mb = max_bytes / (1024 * 1024)
        raise UploadRejectedError(
            f"File too large ({size_mb:.1f}MB). "
            f"Please use a file smaller than {limit_mb:.0f}MB."
        )


def sniff_pdf(data: bytes) -> None:
    """Reject buffers that are empty or lack the PDF header.

    Raises:
        FormatError: if the buffer cannot be a PDF.
    """
    if not data:
        raise FormatError("Empty file provided")
    if not data[:1024].lstrip().startswith(PDF_MAGIC_BYTES):
        raise FormatError("Invalid PDF: file does not start with PDF header")
