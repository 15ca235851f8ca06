"""
Offset ranges and page utilities.

OffsetRange is a half-open [start, end_exclusive) interval used both for
character offsets inside a document and for 0-based line indices. Pages are
fixed-size blocks of lines and the unit of budget-based expansion.

Token counting over lines always charges one extra token per line for the
implicit line separator; every budget comparison in the engine depends on it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Sequence

from .errors import InvariantViolationError

TokenCounter = Callable[[str], int]


@dataclass(frozen=True)
class OffsetRange:
    """A half-open range of offsets (characters or line indices)."""
    start: int
    end_exclusive: int

    def __post_init__(self) -> None:
        if self.start > self.end_exclusive:
            raise InvariantViolationError(
                f"Invalid range: start {self.start} > end {self.end_exclusive}"
            )

    @classmethod
    def of_start_and_length(cls, start: int, length: int) -> "OffsetRange":
        return cls(start, start + length)

    @classmethod
    def empty_at(cls, offset: int) -> "OffsetRange":
        return cls(offset, offset)

    @property
    def length(self) -> int:
        return self.end_exclusive - self.start

    @property
    def is_empty(self) -> bool:
        return self.start == self.end_exclusive

    def delta_start(self, offset: int) -> "OffsetRange":
        return OffsetRange(self.start + offset, self.end_exclusive)

    def delta_end(self, offset: int) -> "OffsetRange":
        return OffsetRange(self.start, self.end_exclusive + offset)

    def contains(self, offset: int) -> bool:
        return self.start <= offset < self.end_exclusive

    def contains_range(self, other: "OffsetRange") -> bool:
        return self.start <= other.start and other.end_exclusive <= self.end_exclusive

    def intersect(self, other: "OffsetRange") -> Optional["OffsetRange"]:
        """Return the overlap, or None when the ranges are disjoint.

        Ranges that only touch intersect in an empty range.
        """
        start = max(self.start, other.start)
        end = min(self.end_exclusive, other.end_exclusive)
        if start <= end:
            return OffsetRange(start, end)
        return None

    def join(self, other: "OffsetRange") -> "OffsetRange":
        return OffsetRange(
            min(self.start, other.start),
            max(self.end_exclusive, other.end_exclusive),
        )

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.start, self.end_exclusive))


def page_of(offset: int, page_size: int) -> int:
    """[0, page_size) -> 0, [page_size, 2*page_size) -> 1, ..."""
    return offset // page_size


def page_count(n_lines: int, page_size: int) -> int:
    return -(-n_lines // page_size)


def page_line_range(page_idx: int, page_size: int, n_lines: int) -> OffsetRange:
    """Line range covered by a page, clipped to the document."""
    start = page_idx * page_size
    return OffsetRange(min(start, n_lines), min(start + page_size, n_lines))


def batch_lines(lines: Sequence[str], page_size: int) -> Iterator[List[str]]:
    """Yield consecutive pages of lines; the last page may be short."""
    if page_size <= 0:
        raise InvariantViolationError(f"Page size must be positive, got {page_size}")
    for start in range(0, len(lines), page_size):
        yield list(lines[start:start + page_size])


def count_tokens_for_lines(lines: Sequence[str], counter: TokenCounter) -> int:
    """Sum of counter(line) + 1 per line (the +1 is the line separator)."""
    return sum(counter(line) + 1 for line in lines)
