"""
Page Budget Expander

Grows a seed line range outward, one whole page at a time, until the token
budget runs out. Used both for the active document (around the edit window)
and for recent documents (around their focal ranges).

Budget signals carried by the returned PageRange:
- budget_left < 0: the seed pages alone did not fit; nothing was expanded
- budget_left == budget handed in: no page was consumed
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence, Tuple

from loguru import logger

from .errors import InvariantViolationError
from .ranges import OffsetRange, TokenCounter, count_tokens_for_lines, page_count, page_line_range, page_of


@dataclass(frozen=True)
class PageRange:
    first_page_idx: int
    last_page_idx_incl: int
    budget_left: int

    def line_range(self, page_size: int) -> OffsetRange:
        """Line range covered by the pages (may run past the last line)."""
        return OffsetRange(self.first_page_idx * page_size, (self.last_page_idx_incl + 1) * page_size)

    @property
    def overflowed(self) -> bool:
        return self.budget_left < 0


def expand_range_to_page_range(
    lines: Sequence[str],
    seed: OffsetRange,
    page_size: int,
    max_tokens: int,
    counter: TokenCounter,
    prioritize_above_cursor: bool = False,
) -> PageRange:
    """
    Expand `seed` (0-based line range) to the pages around it under `max_tokens`.

    Symmetric mode splits what is left after the seed pages in half: the upper
    half is spent walking upward, the lower half walking downward. With
    `prioritize_above_cursor` the upward walk gets everything and the
    downward walk gets the rest. A page that does not fit stops its direction.
    """
    if page_size <= 0:
        raise InvariantViolationError(f"Page size must be positive, got {page_size}")

    n_lines = len(lines)
    total_pages = page_count(n_lines, page_size)

    def page_cost(page_idx: int) -> int:
        r = page_line_range(page_idx, page_size, n_lines)
        return count_tokens_for_lines(lines[r.start:r.end_exclusive], counter)

    first = page_of(seed.start, page_size)
    last = page_of(max(seed.end_exclusive - 1, seed.start), page_size)

    available = max_tokens - sum(page_cost(p) for p in range(first, last + 1))
    if available < 0:
        logger.debug(
            f"Seed pages {first}-{last} exceed budget {max_tokens} by {-available} tokens"
        )
        return PageRange(first, last, available)

    if prioritize_above_cursor:
        budget = available
        first, budget = _walk_up(first, budget, page_cost)
        last, budget = _walk_down(last, budget, total_pages, page_cost)
    else:
        half = available // 2
        first, _ = _walk_up(first, half, page_cost)
        last, budget = _walk_down(last, half, total_pages, page_cost)

    return PageRange(first, last, budget)


def _walk_up(first: int, budget: int, page_cost: Callable[[int], int]) -> Tuple[int, int]:
    i = first - 1
    while i >= 0 and budget > 0:
        remaining = budget - page_cost(i)
        if remaining < 0:
            break
        first = i
        budget = remaining
        i -= 1
    return first, budget


def _walk_down(
    last: int, budget: int, total_pages: int, page_cost: Callable[[int], int]
) -> Tuple[int, int]:
    i = last + 1
    while i < total_pages and budget > 0:
        remaining = budget - page_cost(i)
        if remaining < 0:
            break
        last = i
        budget = remaining
        i += 1
    return last, budget
