"""
Streaming errors.

Raised by the dispatcher before any bytes have been sent; the API layer maps
them onto HTTP status codes.
"""

from pathlib import Path
from typing import Optional, Union


class StreamError(Exception):
    """Base class for errors serving a stream."""

    status_code = 500


class RangeNotSatisfiable(StreamError):
    """The requested byte range lies outside the file or is malformed."""

    status_code = 416

    def __init__(self, file_size: int, range_header: Optional[str] = None):
        self.file_size = file_size
        self.range_header = range_header
        super().__init__(f"Range {range_header!r} not satisfiable for {file_size} bytes")

    @property
    def content_range(self) -> str:
        return f"bytes */{self.file_size}"


class MediaFileError(StreamError):
    """The episode file is missing or unreadable."""

    def __init__(self, path: Union[str, Path], reason: str = ""):
        self.path = str(path)
        message = f"Cannot read media file {self.path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class TranscoderError(StreamError):
    """FFmpeg could not be started or produced no output."""
