"""
Focal range selection for recent documents.

Focal ranges (edit locations or visible ranges) arrive most-recent-first.
Edits scattered across a file would make the seed span cover the whole
document, so the selection keeps the newest ranges and stops as soon as the
combined line span would exceed a cap.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence

from .current_file import add_line_numbers
from .options import IncludeLineNumbersOption
from .ranges import OffsetRange, TokenCounter, count_tokens_for_lines, page_line_range
from .text import DocumentText

# Cap on the combined focal span, in pages.
MAX_FOCAL_SPAN_PAGES = 3


def max_focal_span_lines(page_size: int) -> int:
    return page_size * MAX_FOCAL_SPAN_PAGES


def _line_span(r: OffsetRange, line_number_at: Callable[[int], int]):
    return line_number_at(r.start), line_number_at(max(r.start, r.end_exclusive - 1))


def select_focal_ranges_within_span_cap(
    focal_ranges: Sequence[OffsetRange],
    line_number_at: Callable[[int], int],
    max_span_lines: int,
) -> List[OffsetRange]:
    """
    Greedy prefix of `focal_ranges` whose combined line span stays within cap.

    The first (newest) range is always kept. Older ranges are absorbed until
    one would widen the span beyond `max_span_lines`; it and everything after
    it are dropped.
    """
    if len(focal_ranges) <= 1:
        return list(focal_ranges)

    selected = [focal_ranges[0]]
    start_line, end_line = _line_span(focal_ranges[0], line_number_at)

    for r in focal_ranges[1:]:
        r_start, r_end = _line_span(r, line_number_at)
        cand_start = min(start_line, r_start)
        cand_end = max(end_line, r_end)
        if cand_end - cand_start > max_span_lines:
            break
        selected.append(r)
        start_line, end_line = cand_start, cand_end

    return selected


def focal_line_range(content: DocumentText, focal_ranges: Sequence[OffsetRange]) -> OffsetRange:
    """0-based, half-open line range covering all `focal_ranges`."""
    start_offset = min(r.start for r in focal_ranges)
    end_offset = max(r.end_exclusive - 1 for r in focal_ranges)
    # Empty ranges at offset 0 would yield -1
    end_offset = max(end_offset, start_offset)
    start_line = content.line_number_at(start_offset)
    end_line = content.line_number_at(end_offset)
    return OffsetRange(start_line - 1, end_line)


def compute_focal_page_cost(
    content: DocumentText,
    focal_ranges: Sequence[OffsetRange],
    page_size: int,
    counter: TokenCounter,
    include_line_numbers: IncludeLineNumbersOption = IncludeLineNumbersOption.NONE,
) -> Optional[int]:
    """
    Minimum tokens needed to show just the pages holding the capped focal span,
    priced with the line-number prefixes the snippet will carry.

    Returns None when there are no focal ranges to cover.
    """
    capped = select_focal_ranges_within_span_cap(
        focal_ranges,
        content.line_number_at,
        max_focal_span_lines(page_size),
    )
    if not capped:
        return None

    span = focal_line_range(content, capped)
    lines = add_line_numbers(content.lines, include_line_numbers)
    first_page = span.start // page_size
    last_page = (span.end_exclusive - 1) // page_size

    cost = 0
    for p in range(first_page, last_page + 1):
        r = page_line_range(p, page_size, len(lines))
        cost += count_tokens_for_lines(lines[r.start:r.end_exclusive], counter)
    return cost
