"""Range-set codec for Mesos range resources such as ports.

Mesos reports range resources as text like ``"[31000-32000, 33000-33999]"``.
Intervals are closed on both ends. Ordering and overlap between intervals are
not validated: the size of a set is the literal sum of its interval sizes, so
overlapping input is overcounted and a reversed interval (``"5-3"``) contributes
a negative size.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from mesos_exporter.errors import FormatError

_WRAPPING = '[]"'
_BOUND = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class RangeSet:
    """Ordered sequence of closed integer intervals."""

    intervals: tuple[tuple[int, int], ...] = ()

    def size(self) -> int:
        """Number of values covered, counting each interval as hi - lo + 1."""
        return sum(hi - lo + 1 for lo, hi in self.intervals)

    def format(self) -> str:
        """Encode back to Mesos range text."""
        return "[" + ",".join(f"{lo}-{hi}" for lo, hi in self.intervals) + "]"

    def __iter__(self):
        return iter(self.intervals)

    def __len__(self) -> int:
        return len(self.intervals)

    def __str__(self) -> str:
        return self.format()


@dataclass(frozen=True)
class RangeParseResult:
    """Outcome of parsing range text: either ranges or the error."""

    ranges: RangeSet | None = None
    error: FormatError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def decode_ranges(text: str | None) -> RangeSet:
    """Decode Mesos range text.

    Args:
        text: Comma-separated ``lo-hi`` pairs, optionally wrapped in brackets
            or quotes. None or empty text means no ranges.

    Returns:
        The decoded RangeSet.

    Raises:
        FormatError: If any segment is malformed. No partial result is kept.
    """
    if text is None:
        return RangeSet()
    if not isinstance(text, str):
        raise FormatError(f"bad range value: {text!r}")

    body = text.strip(_WRAPPING)
    if not body:
        return RangeSet()

    intervals = []
    for segment in body.split(","):
        parts = segment.split("-", 1)
        if len(parts) != 2:
            raise FormatError(f"bad range: {segment.strip()!r}")
        lo, hi = (_parse_bound(part, segment) for part in parts)
        intervals.append((lo, hi))

    return RangeSet(tuple(intervals))


def parse_ranges(text: str | None) -> RangeParseResult:
    """Decode range text without raising.

    Returns:
        RangeParseResult holding the ranges on success or the FormatError.
    """
    try:
        return RangeParseResult(ranges=decode_ranges(text))
    except FormatError as e:
        return RangeParseResult(error=e)


def _parse_bound(part: str, segment: str) -> int:
    value = part.strip()
    if not _BOUND.fullmatch(value):
        raise FormatError(f"bad range bound {value!r} in {segment.strip()!r}")
    return int(value)
