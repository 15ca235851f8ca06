"""
Lint Ranker

Selects the diagnostics closest to the cursor and renders them as a tagged
block. Order of the pipeline matters:

1. distance filter  (line distance <= max_line_distance)
2. sort             (line distance, then column distance)
3. severity filter  (errors only / errors and warnings / warnings only if no errors)
4. cap              (max_lints, so the farthest survivors are dropped)
5. format           ("<line>:<col> - <severity> <SOURCE><CODE>: <message>", 0-based)

format_lint_errors returns the block together with the diagnostics it shows,
so "is line N covered by the lint block" is answered from the return value.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

from loguru import logger

from .errors import InvariantViolationError, assert_never
from .options import LintOptions, LintOptionShowCode, LintOptionWarning
from .ranges import OffsetRange
from .tags import PromptTags

# Diagnostics included in the telemetry payload.
TELEMETRY_MAX_DIAGNOSTICS = 20


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    HINT = "hint"


_SEVERITY_ORDER = {Severity.ERROR: 0, Severity.WARNING: 1, Severity.INFO: 2, Severity.HINT: 3}


@dataclass(frozen=True)
class DiagnosticRange:
    """0-based line/column span of a diagnostic."""
    start_line: int
    start_column: int
    end_line: int
    end_column: int


@dataclass(frozen=True)
class Diagnostic:
    message: str
    severity: Severity
    range: DiagnosticRange
    code: Optional[Union[str, int]] = None
    source: Optional[str] = None


@dataclass(frozen=True)
class CursorDistance:
    line_distance: int
    column_distance: int

    @classmethod
    def from_positions(cls, line: int, column: int, cursor_line: int, cursor_column: int) -> "CursorDistance":
        return cls(abs(line - cursor_line), abs(column - cursor_column))


@dataclass(frozen=True)
class DiagnosticWithDistance:
    diagnostic: Diagnostic
    distance: CursorDistance

    @property
    def severity(self) -> Severity:
        return self.diagnostic.severity

    def sort_key(self) -> Tuple:
        d = self.diagnostic
        # Distance first; the rest only makes equal-distance order independent of input order
        return (
            self.distance.line_distance,
            self.distance.column_distance,
            d.range.start_line,
            d.range.start_column,
            _SEVERITY_ORDER[d.severity],
            d.message,
            str(d.code) if d.code is not None else "",
            d.source or "",
        )


# =============================================================================
# RANKING
# =============================================================================


def with_distances(
    diagnostics: Sequence[Diagnostic],
    cursor_line: int,
    cursor_column: int,
) -> List[DiagnosticWithDistance]:
    """Attach cursor distances; the cursor position is 0-based."""
    return [
        DiagnosticWithDistance(
            d,
            CursorDistance.from_positions(d.range.start_line, d.range.start_column, cursor_line, cursor_column),
        )
        for d in diagnostics
    ]


def filter_by_distance(diagnostics: Sequence[DiagnosticWithDistance], max_line_distance: int) -> List[DiagnosticWithDistance]:
    return [d for d in diagnostics if d.distance.line_distance <= max_line_distance]


def sort_by_distance(diagnostics: Sequence[DiagnosticWithDistance]) -> List[DiagnosticWithDistance]:
    return sorted(diagnostics, key=DiagnosticWithDistance.sort_key)


def filter_by_severity(diagnostics: Sequence[DiagnosticWithDistance], warnings: LintOptionWarning) -> List[DiagnosticWithDistance]:
    errors = [d for d in diagnostics if d.severity == Severity.ERROR]
    if warnings == LintOptionWarning.ERRORS_ONLY:
        return errors
    elif warnings == LintOptionWarning.ALL:
        return [d for d in diagnostics if d.severity in (Severity.ERROR, Severity.WARNING)]
    elif warnings == LintOptionWarning.WARNINGS_IF_NO_ERRORS:
        if errors:
            return errors
        return [d for d in diagnostics if d.severity in (Severity.ERROR, Severity.WARNING)]
    assert_never(warnings)


def rank_diagnostics(
    diagnostics: Sequence[Diagnostic],
    cursor_line: int,
    cursor_column: int,
    options: LintOptions,
) -> List[DiagnosticWithDistance]:
    ranked = with_distances(diagnostics, cursor_line, cursor_column)
    ranked = filter_by_distance(ranked, options.max_line_distance)
    ranked = sort_by_distance(ranked)
    ranked = filter_by_severity(ranked, options.warnings)
    return ranked[:options.max_lints]


# =============================================================================
# FORMATTING
# =============================================================================


def code_line_range(diagnostic_range: DiagnosticRange, show_code: LintOptionShowCode) -> OffsetRange:
    """0-based lines rendered under a diagnostic (before clipping to the document)."""
    lines = OffsetRange(diagnostic_range.start_line, diagnostic_range.end_line + 1)
    if show_code == LintOptionShowCode.YES_WITH_SURROUNDING:
        lines = lines.delta_start(-1).delta_end(1)
    return lines


def format_diagnostic_header(diagnostic: Diagnostic) -> str:
    code = ""
    if diagnostic.code:
        source = diagnostic.source.upper() if diagnostic.source else ""
        code = f" {source}{diagnostic.code}"
    r = diagnostic.range
    return f"{r.start_line}:{r.start_column} - {diagnostic.severity.value}{code}: {diagnostic.message}"


def format_code_lines(diagnostic_range: DiagnosticRange, show_code: LintOptionShowCode, document_lines: Sequence[str]) -> List[str]:
    shown = code_line_range(diagnostic_range, show_code).intersect(OffsetRange(0, len(document_lines)))
    if shown is None:
        # Stale diagnostic: its lines no longer exist
        return []
    return [f"{i}|{document_lines[i]}" for i in shown]


def format_single_diagnostic(diagnostic: Diagnostic, document_lines: Sequence[str], show_code: LintOptionShowCode) -> str:
    header = format_diagnostic_header(diagnostic)
    if show_code == LintOptionShowCode.NO:
        return header
    return header + "\n" + "\n".join(format_code_lines(diagnostic.range, show_code, document_lines))


@dataclass(frozen=True)
class FormattedLints:
    """A rendered lint block and the diagnostics it contains."""
    text: str
    diagnostics: Tuple[DiagnosticWithDistance, ...]
    show_code: LintOptionShowCode

    @property
    def covered_line_ranges(self) -> List[OffsetRange]:
        """Per diagnostic: its code lines, or just its start line when code is hidden."""
        ranges = []
        for d in self.diagnostics:
            start = d.diagnostic.range.start_line
            if self.show_code == LintOptionShowCode.NO:
                ranges.append(OffsetRange(start, start + 1))
            else:
                ranges.append(code_line_range(d.diagnostic.range, self.show_code))
        return ranges

    def covers_line(self, line_number: int) -> bool:
        """True if the 0-based document line appears in the block."""
        for d in self.diagnostics:
            if d.diagnostic.range.start_line == line_number:
                return True
            if self.show_code == LintOptionShowCode.NO:
                continue
            if code_line_range(d.diagnostic.range, self.show_code).contains(line_number):
                return True
        return False


def format_lint_errors(
    diagnostics: Sequence[Diagnostic],
    document_lines: Sequence[str],
    cursor_line: int,
    cursor_column: int,
    options: LintOptions,
) -> FormattedLints:
    ranked = rank_diagnostics(diagnostics, cursor_line, cursor_column, options)
    logger.debug(f"Lint block: {len(ranked)} of {len(diagnostics)} diagnostics")

    body = "\n".join(format_single_diagnostic(d.diagnostic, document_lines, options.show_code) for d in ranked)
    tag = PromptTags.lint_tag(options.tag_name)
    return FormattedLints(
        text=f"{tag.start}\n{body}\n{tag.end}",
        diagnostics=tuple(ranked),
        show_code=options.show_code,
    )


class LintErrors:
    """
    Two-call facade over format_lint_errors for callers that format once and
    query coverage later. Querying before formatting is a programming error.
    """

    def __init__(self, diagnostics: Sequence[Diagnostic], document_lines: Sequence[str], cursor_line: int, cursor_column: int):
        self._diagnostics = list(diagnostics)
        self._document_lines = list(document_lines)
        self._cursor_line = cursor_line
        self._cursor_column = cursor_column
        self._previous: Optional[FormattedLints] = None

    def get_formatted_lint_errors(self, options: LintOptions) -> str:
        self._previous = format_lint_errors(
            self._diagnostics, self._document_lines, self._cursor_line, self._cursor_column, options
        )
        return self._previous.text

    def line_number_in_previous_formatted_prompt(self, line_number: int) -> bool:
        if self._previous is None:
            raise InvariantViolationError("No previous formatted diagnostics available to check line number against.")
        return self._previous.covers_line(line_number)

    def get_data(self) -> str:
        return diagnostics_telemetry_json(
            self._diagnostics, self._document_lines, self._cursor_line, self._cursor_column
        )


def diagnostics_telemetry_json(
    diagnostics: Sequence[Diagnostic],
    document_lines: Sequence[str],
    cursor_line: int,
    cursor_column: int,
) -> str:
    """JSON list of the closest errors and warnings, with every rendering variant."""
    ranked = with_distances(diagnostics, cursor_line, cursor_column)
    ranked = filter_by_severity(ranked, LintOptionWarning.ALL)
    ranked = sort_by_distance(ranked)[:TELEMETRY_MAX_DIAGNOSTICS]

    payload = []
    for d in ranked:
        diag = d.diagnostic
        payload.append({
            "line": diag.range.start_line,
            "column": diag.range.start_column,
            "endLine": diag.range.end_line,
            "endColumn": diag.range.end_column,
            "severity": diag.severity.value,
            "message": diag.message,
            "code": diag.code,
            "source": diag.source,
            "lineDistance": d.distance.line_distance,
            "formatted": format_single_diagnostic(diag, document_lines, LintOptionShowCode.NO),
            "formattedCode": format_single_diagnostic(diag, document_lines, LintOptionShowCode.YES),
            "formattedCodeWithSurrounding": format_single_diagnostic(
                diag, document_lines, LintOptionShowCode.YES_WITH_SURROUNDING
            ),
        })
    return json.dumps(payload)
