"""``Range`` request header parsing.

Only the single prefix form ``bytes=<start>-[<end>]`` is understood.
Suffix ranges (``bytes=-500``) and multi-range requests are reported as
unsatisfiable, as are ranges reaching past the end of the file: they are
never clamped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

_RANGE_RE = re.compile(r"^bytes=([0-9]+)-([0-9]*)$", re.IGNORECASE)


@dataclass(frozen=True)
class NoRange:
    """No ``Range`` header: serve the whole file."""


@dataclass(frozen=True)
class Satisfiable:
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def content_range(self, file_size: int) -> str:
        return f"bytes {self.start}-{self.end}/{file_size}"


@dataclass(frozen=True)
class Unsatisfiable:
    reason: str


RangeResult = Union[NoRange, Satisfiable, Unsatisfiable]


def parse_range(header_value: str | None, file_size: int) -> RangeResult:
    """Parse *header_value* against a file of *file_size* bytes."""
    if header_value is None:
        return NoRange()

    value = header_value.strip()
    if "," in value:
        return Unsatisfiable("multiple ranges are not supported")
    m = _RANGE_RE.match(value)
    if m is None:
        if value.lower().startswith("bytes=-"):
            return Unsatisfiable("suffix ranges are not supported")
        return Unsatisfiable(f"malformed range {header_value!r}")

    start = int(m.group(1))
    end = int(m.group(2)) if m.group(2) else file_size - 1

    if start >= file_size:
        return Unsatisfiable(f"start {start} is beyond file size {file_size}")
    if start > end:
        return Unsatisfiable(f"start {start} is after end {end}")
    if end >= file_size:
        return Unsatisfiable(f"end {end} is beyond file size {file_size}")
    return Satisfiable(start, end)
