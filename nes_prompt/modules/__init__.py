"""
Next-edit prompt budgeting engine.

Selects and clips the content of a next-edit-suggestion prompt so every
block stays within its token budget.

Components:
- expand_range_to_page_range: grows a seed range by whole pages under a budget
- select_focal_ranges_within_span_cap: caps how far apart focal ranges may be
- construct_tagged_file: clips the active document around its edit window
- get_recent_code_snippets: greedy or proportional allocation across recent files
- format_lint_errors: distance-ranked, capped diagnostics block
- build_prompt_context: all of the above for one request
"""

from .errors import (
    ConfigurationError,
    InvariantViolationError,
    OutOfBudget,
    PromptBudgetError,
    is_out_of_budget,
)

from .ranges import (
    OffsetRange,
    TokenCounter,
    batch_lines,
    count_tokens_for_lines,
    page_of,
)

from .text import DocumentText

from .edits import (
    StringEdit,
    StringReplacement,
    project_ranges_forward,
)

from .history import (
    CandidateSnippet,
    DocumentId,
    EditEntry,
    HistoryEntry,
    ViewedRangesEntry,
    collect_recent_documents,
    collect_recent_documents_grouped,
    history_entries_to_snippet,
    history_entry_to_snippet,
)

from .options import (
    DEFAULT_OPTIONS,
    CurrentFileOptions,
    IncludeLineNumbersOption,
    LintOptions,
    LintOptionShowCode,
    LintOptionWarning,
    PromptOptions,
    RecentFileClippingStrategy,
    load_prompt_options,
    parse_lint_option_string,
)

from .page_budget import PageRange, expand_range_to_page_range

from .focal_ranges import (
    compute_focal_page_cost,
    select_focal_ranges_within_span_cap,
)

from .current_file import (
    ClippedDocument,
    CurrentDocument,
    TaggedFile,
    clip_preserving_range,
    construct_tagged_file,
    create_tagged_current_file_content,
)

from .recent_files import (
    ContextKind,
    LanguageContextItem,
    build_code_snippets_using_paged_clipping,
    get_recent_code_snippets,
)

from .lint import (
    Diagnostic,
    DiagnosticRange,
    DiagnosticWithDistance,
    FormattedLints,
    LintErrors,
    Severity,
    diagnostics_telemetry_json,
    format_lint_errors,
    rank_diagnostics,
)

from .pipeline import PromptContext, build_prompt_context

from .tags import PromptTags
from .tokens import estimate_tokens

__all__ = [
    # Errors
    "ConfigurationError",
    "InvariantViolationError",
    "OutOfBudget",
    "PromptBudgetError",
    "is_out_of_budget",
    # Ranges and text
    "OffsetRange",
    "TokenCounter",
    "batch_lines",
    "count_tokens_for_lines",
    "page_of",
    "DocumentText",
    "StringEdit",
    "StringReplacement",
    "project_ranges_forward",
    # History
    "CandidateSnippet",
    "DocumentId",
    "EditEntry",
    "HistoryEntry",
    "ViewedRangesEntry",
    "collect_recent_documents",
    "collect_recent_documents_grouped",
    "history_entries_to_snippet",
    "history_entry_to_snippet",
    # Options
    "DEFAULT_OPTIONS",
    "CurrentFileOptions",
    "IncludeLineNumbersOption",
    "LintOptions",
    "LintOptionShowCode",
    "LintOptionWarning",
    "PromptOptions",
    "RecentFileClippingStrategy",
    "load_prompt_options",
    "parse_lint_option_string",
    # Budgeting
    "PageRange",
    "expand_range_to_page_range",
    "compute_focal_page_cost",
    "select_focal_ranges_within_span_cap",
    # Current file
    "ClippedDocument",
    "CurrentDocument",
    "TaggedFile",
    "clip_preserving_range",
    "construct_tagged_file",
    "create_tagged_current_file_content",
    # Recent files
    "ContextKind",
    "LanguageContextItem",
    "build_code_snippets_using_paged_clipping",
    "get_recent_code_snippets",
    # Lint
    "Diagnostic",
    "DiagnosticRange",
    "DiagnosticWithDistance",
    "FormattedLints",
    "LintErrors",
    "Severity",
    "diagnostics_telemetry_json",
    "format_lint_errors",
    "rank_diagnostics",
    # Pipeline
    "PromptContext",
    "build_prompt_context",
    "PromptTags",
    "estimate_tokens",
]
