"""
Single-range ``Range`` header handling.

The header is first parsed into one of three shapes (bounded, prefix,
suffix), the shape is turned into an inclusive window, and only then is
the window checked against the file size. Multi-range lists are not
supported and are rejected like any other malformed value.
"""
import re
from typing import NamedTuple, Optional, Union

from web.server.exceptions import RangeNotSatisfiable

RANGE_RE = re.compile(r"bytes=([0-9]*)-([0-9]*)")


class Bounded(NamedTuple):
    start: int
    end: int


class Prefix(NamedTuple):
    start: int


class Suffix(NamedTuple):
    length: int


RangeSpec = Union[Bounded, Prefix, Suffix]


class ByteRange(NamedTuple):
    """Inclusive ``[start, end]`` window inside a file of ``file_size`` bytes."""

    start: int
    end: int
    file_size: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @property
    def content_range(self) -> str:
        return f"bytes {self.start}-{self.end}/{self.file_size}"


def parse_range_header(range_header: str) -> Optional[RangeSpec]:
    """Return the requested shape, or None when the value is malformed."""
    match = RANGE_RE.fullmatch(range_header.strip())
    if not match:
        return None

    from_bytes, until_bytes = match.groups()
    if from_bytes and until_bytes:
        return Bounded(int(from_bytes), int(until_bytes))
    if from_bytes:
        return Prefix(int(from_bytes))
    if until_bytes:
        return Suffix(int(until_bytes))
    return None


def resolve_range(range_header: Optional[str], file_size: int) -> Optional[ByteRange]:
    """
    Resolve a ``Range`` header against ``file_size``.

    Returns None when no header was sent (serve the whole file) and a
    ByteRange for a satisfiable request. Everything else raises
    RangeNotSatisfiable: malformed values, ``bytes=-0``, windows ending
    at or past EOF, and windows whose start is past their end. A zero
    byte file never satisfies a range.
    """
    if range_header is None:
        return None

    spec = parse_range_header(range_header)
    if spec is None:
        raise RangeNotSatisfiable(file_size)

    if isinstance(spec, Bounded):
        start, end = spec.start, spec.end
    elif isinstance(spec, Prefix):
        start, end = spec.start, file_size - 1
    else:
        if spec.length == 0:
            raise RangeNotSatisfiable(file_size)
        start, end = max(file_size - spec.length, 0), file_size - 1

    if start < 0 or end >= file_size or start > end:
        raise RangeNotSatisfiable(file_size)

    return ByteRange(start, end, file_size)
