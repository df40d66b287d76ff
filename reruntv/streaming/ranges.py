"""
HTTP byte-range parsing for passthrough serving.

Only single ranges are supported; for a multi-range request the first range
is served.
"""

import re
from dataclasses import dataclass
from typing import Optional

from reruntv.streaming.errors import RangeNotSatisfiable

RANGE_PATTERN = re.compile(r"^\s*(\d*)\s*-\s*(\d*)\s*$")


@dataclass(frozen=True)
class ByteRange:
    """Inclusive byte range within a file of known size."""

    start: int
    end: int
    file_size: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @property
    def content_range(self) -> str:
        return f"bytes {self.start}-{self.end}/{self.file_size}"


def parse_range_header(
    header: Optional[str],
    file_size: int,
    open_ended_limit: int = 1024 * 1024,
) -> Optional[ByteRange]:
    """
    Parse a Range header against a file size.

    ``bytes=a-b`` must lie inside the file, ``bytes=a-`` is clamped to at most
    open_ended_limit bytes, and ``bytes=-n`` selects the last n bytes.

    Args:
        header: Raw Range header value, or None.
        file_size: Size of the file in bytes.
        open_ended_limit: Maximum length served for an open-ended range.

    Returns:
        The byte range, or None when no Range header was sent.

    Raises:
        RangeNotSatisfiable: The header is malformed or out of bounds.
    """
    if header is None or not header.strip():
        return None

    unit, sep, spec = header.strip().partition("=")
    if not sep or unit.strip().lower() != "bytes":
        raise RangeNotSatisfiable(file_size, header)

    first = spec.split(",")[0]
    match = RANGE_PATTERN.match(first)
    if not match or file_size <= 0:
        raise RangeNotSatisfiable(file_size, header)

    start_text, end_text = match.groups()

    if not start_text:
        # Suffix range: last n bytes
        if not end_text or int(end_text) == 0:
            raise RangeNotSatisfiable(file_size, header)
        suffix = int(end_text)
        return ByteRange(max(0, file_size - suffix), file_size - 1, file_size)

    start = int(start_text)
    if start >= file_size:
        raise RangeNotSatisfiable(file_size, header)

    if not end_text:
        end = min(start + max(1, open_ended_limit) - 1, file_size - 1)
    else:
        end = int(end_text)
        if end < start or end >= file_size:
            raise RangeNotSatisfiable(file_size, header)

    return ByteRange(start, end, file_size)
