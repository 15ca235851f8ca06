"""
Tests for focal range span capping and focal page cost.
"""

import os
import sys

# Add parent to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from modules.focal_ranges import (
    compute_focal_page_cost,
    max_focal_span_lines,
    select_focal_ranges_within_span_cap,
)
from modules.options import IncludeLineNumbersOption
from modules.ranges import OffsetRange
from modules.text import DocumentText


def line_is_offset(offset):
    """Treat every character offset as its own line (1-based)."""
    return offset + 1


class TestSelectFocalRangesWithinSpanCap:
    """Tests for greedy focal range selection."""

    def test_returns_all_ranges_when_span_fits(self):
        ranges = [OffsetRange(10, 11), OffsetRange(12, 13), OffsetRange(8, 9)]
        assert select_focal_ranges_within_span_cap(ranges, line_is_offset, 10) == ranges

    def test_second_range_exceeding_cap_is_dropped(self):
        ranges = [OffsetRange(0, 1), OffsetRange(50, 51)]
        assert select_focal_ranges_within_span_cap(ranges, line_is_offset, 10) == [OffsetRange(0, 1)]

    def test_stops_at_first_range_over_cap(self):
        ranges = [OffsetRange(0, 1), OffsetRange(5, 6), OffsetRange(40, 41), OffsetRange(2, 3)]
        # the range at offset 2 would fit but comes after the one that breaks the cap
        selected = select_focal_ranges_within_span_cap(ranges, line_is_offset, 10)
        assert selected == [OffsetRange(0, 1), OffsetRange(5, 6)]

    def test_single_range_always_returned(self):
        wide = [OffsetRange(0, 1000)]
        assert select_focal_ranges_within_span_cap(wide, line_is_offset, 1) == wide

    def test_empty_input(self):
        assert select_focal_ranges_within_span_cap([], line_is_offset, 10) == []

    def test_span_equal_to_cap_is_allowed(self):
        ranges = [OffsetRange(0, 1), OffsetRange(10, 11)]
        assert len(select_focal_ranges_within_span_cap(ranges, line_is_offset, 10)) == 2

    def test_result_is_prefix_including_newest(self):
        ranges = [OffsetRange(i * 7, i * 7 + 1) for i in range(20)]
        selected = select_focal_ranges_within_span_cap(ranges, line_is_offset, 30)
        assert selected[0] == ranges[0]
        assert selected == ranges[:len(selected)]

    def test_cap_is_three_pages(self):
        assert max_focal_span_lines(10) == 30


class TestComputeFocalPageCost:
    """Tests for the minimum cost of showing a file's focal pages."""

    def test_single_page(self, zero_counter):
        content = DocumentText("\n".join(f"l{i}" for i in range(20)))
        # "l0\n" is 3 chars; offset 0 is line 1 -> page 0 (5 lines, separator only)
        assert compute_focal_page_cost(content, [OffsetRange(0, 3)], 5, zero_counter) == 5

    def test_range_crossing_pages(self, zero_counter):
        content = DocumentText("\n".join(f"l{i}" for i in range(20)))
        # 0-based lines 4 and 5 fall on pages 0 and 1
        start = content.offset_at(5, 1)
        end = content.offset_at(7, 1)
        assert compute_focal_page_cost(content, [OffsetRange(start, end)], 5, zero_counter) == 10

    def test_last_page_is_short(self, zero_counter):
        content = DocumentText("\n".join(f"l{i}" for i in range(12)))
        start = content.offset_at(12, 1)
        assert compute_focal_page_cost(content, [OffsetRange(start, start + 1)], 5, zero_counter) == 2

    def test_no_ranges_is_none(self, zero_counter):
        assert compute_focal_page_cost(DocumentText("abc"), [], 5, zero_counter) is None

    def test_uses_capped_span(self, zero_counter):
        content = DocumentText("\n".join(f"l{i}" for i in range(100)))
        near = OffsetRange(content.offset_at(1, 1), content.offset_at(1, 2))
        far = OffsetRange(content.offset_at(90, 1), content.offset_at(90, 2))
        # span cap is 3 pages (15 lines); the far range is dropped
        assert compute_focal_page_cost(content, [near, far], 5, zero_counter) == 5

    def test_line_number_prefixes_are_priced(self):
        content = DocumentText("\n".join(["x"] * 10))
        # "x" costs 2 with the separator, "0| x" costs 5
        assert compute_focal_page_cost(content, [OffsetRange(0, 1)], 5, len) == 10
        assert compute_focal_page_cost(
            content, [OffsetRange(0, 1)], 5, len, IncludeLineNumbersOption.WITH_SPACE_AFTER
        ) == 25
