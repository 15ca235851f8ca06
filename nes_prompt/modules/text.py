"""
Immutable document text with line and position lookups.

Lines are split on \\r\\n, \\r and \\n. An empty document has one empty line.
Line numbers and columns returned here are 1-based; offsets are 0-based.
"""

from __future__ import annotations

import re
from bisect import bisect_right
from dataclasses import dataclass, field
from typing import List, Tuple

from .errors import InvariantViolationError

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True)
class DocumentText:
    value: str
    _line_starts: Tuple[int, ...] = field(init=False, repr=False, compare=False)
    _lines: Tuple[str, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        starts = [0]
        lines: List[str] = []
        prev = 0
        for match in _LINE_BREAK.finditer(self.value):
            lines.append(self.value[prev:match.start()])
            prev = match.end()
            starts.append(prev)
        lines.append(self.value[prev:])
        object.__setattr__(self, "_line_starts", tuple(starts))
        object.__setattr__(self, "_lines", tuple(lines))

    @classmethod
    def from_lines(cls, lines: List[str]) -> "DocumentText":
        return cls("\n".join(lines))

    @property
    def lines(self) -> List[str]:
        return list(self._lines)

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def line_number_at(self, offset: int) -> int:
        """1-based line number containing the offset."""
        return self.position_at(offset)[0]

    def position_at(self, offset: int) -> Tuple[int, int]:
        """(line, column), both 1-based, for a character offset."""
        if offset < 0 or offset > len(self.value):
            raise InvariantViolationError(
                f"Offset {offset} outside document of length {len(self.value)}"
            )
        idx = bisect_right(self._line_starts, offset) - 1
        return idx + 1, offset - self._line_starts[idx] + 1

    def offset_at(self, line_number: int, column: int) -> int:
        """Character offset for a 1-based (line, column) position."""
        if line_number < 1 or line_number > len(self._lines):
            raise InvariantViolationError(
                f"Line {line_number} outside document with {len(self._lines)} lines"
            )
        line_start = self._line_starts[line_number - 1]
        return line_start + min(column - 1, len(self._lines[line_number - 1]))
