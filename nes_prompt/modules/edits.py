"""
String edits and offset-range projection.

A StringEdit is an ordered list of non-overlapping replacements against one
base text. Besides applying itself, an edit can map offsets from its base
text into its post-edit text, which is what lets focal ranges recorded by an
older edit be carried forward into the newest content of a document.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from .errors import InvariantViolationError
from .ranges import OffsetRange
from .text import DocumentText


@dataclass(frozen=True)
class StringReplacement:
    replace_range: OffsetRange
    new_text: str

    @classmethod
    def insert(cls, offset: int, text: str) -> "StringReplacement":
        return cls(OffsetRange.empty_at(offset), text)

    @property
    def length_delta(self) -> int:
        return len(self.new_text) - self.replace_range.length


@dataclass(frozen=True)
class StringEdit:
    replacements: Tuple[StringReplacement, ...] = ()

    def __post_init__(self) -> None:
        prev_end = None
        for r in self.replacements:
            if prev_end is not None and r.replace_range.start < prev_end:
                raise InvariantViolationError(
                    "Replacements must be sorted and must not overlap"
                )
            prev_end = r.replace_range.end_exclusive

    @classmethod
    def of(cls, replacements: Iterable[StringReplacement]) -> "StringEdit":
        return cls(tuple(replacements))

    @classmethod
    def single(cls, replacement: StringReplacement) -> "StringEdit":
        return cls((replacement,))

    @classmethod
    def insert(cls, offset: int, text: str) -> "StringEdit":
        return cls.single(StringReplacement.insert(offset, text))

    @classmethod
    def replace(cls, replace_range: OffsetRange, text: str) -> "StringEdit":
        return cls.single(StringReplacement(replace_range, text))

    @classmethod
    def delete(cls, delete_range: OffsetRange) -> "StringEdit":
        return cls.single(StringReplacement(delete_range, ""))

    @property
    def is_empty(self) -> bool:
        return not self.replacements

    def apply(self, text: str) -> str:
        parts: List[str] = []
        pos = 0
        for r in self.replacements:
            if r.replace_range.end_exclusive > len(text):
                raise InvariantViolationError(
                    f"Replacement {r.replace_range} outside text of length {len(text)}"
                )
            parts.append(text[pos:r.replace_range.start])
            parts.append(r.new_text)
            pos = r.replace_range.end_exclusive
        parts.append(text[pos:])
        return "".join(parts)

    def apply_on_text(self, text: DocumentText) -> DocumentText:
        return DocumentText(self.apply(text.value))

    def new_ranges(self) -> List[OffsetRange]:
        """Ranges occupied by each replacement's text in the post-edit text."""
        ranges: List[OffsetRange] = []
        delta = 0
        for r in self.replacements:
            ranges.append(OffsetRange.of_start_and_length(r.replace_range.start + delta, len(r.new_text)))
            delta += r.length_delta
        return ranges

    def apply_to_offset(self, offset: int) -> int:
        """Map a base-text offset into the post-edit text.

        Offsets strictly inside a replaced range collapse to its start.
        """
        delta = 0
        for r in self.replacements:
            if r.replace_range.start > offset:
                break
            if offset < r.replace_range.end_exclusive:
                return r.replace_range.start + delta
            delta += r.length_delta
        return offset + delta

    def apply_to_offset_range(self, offset_range: OffsetRange) -> OffsetRange:
        return OffsetRange(
            self.apply_to_offset(offset_range.start),
            self.apply_to_offset(offset_range.end_exclusive),
        )


def project_ranges_forward(
    ranges: Sequence[OffsetRange],
    later_edits: Sequence[StringEdit],
) -> List[OffsetRange]:
    """
    Carry ranges through a chain of later edits.

    `later_edits` is ordered newest-first, the same order history entries are
    consumed in, so it is applied right to left: the edit closest in time to
    the ranges goes first and the newest edit goes last.
    """
    projected = list(ranges)
    for edit in reversed(later_edits):
        projected = [edit.apply_to_offset_range(r) for r in projected]
    return projected
