"""
Recent File Budget Allocator

Fits recently viewed/edited documents into `recently_viewed_documents.max_tokens`.

Strategies:
- TOP_TO_BOTTOM: greedy, newest-first, whole pages from the top of each file
  against one shared budget.
- AROUND_EDIT_RANGE: greedy, newest-first, pages around each file's focal
  ranges. The first file that fits nothing ends the loop; older files are
  not tried.
- PROPORTIONAL: every file is first guaranteed the pages holding its focal
  span (oldest files dropped while those do not fit), then the leftover is
  split by edit-activity weight. Unspent budget flows to the next file.

Selection runs newest-first; the returned snippets are oldest-first.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence, Set, Tuple

from loguru import logger

from .current_file import add_line_numbers
from .errors import assert_never
from .focal_ranges import (
    compute_focal_page_cost,
    focal_line_range,
    max_focal_span_lines,
    select_focal_ranges_within_span_cap,
)
from .history import (
    CandidateSnippet,
    DocumentId,
    HistoryEntry,
    collect_recent_documents,
    collect_recent_documents_grouped,
    history_entries_to_snippet,
    history_entry_to_snippet,
)
from .options import IncludeLineNumbersOption, PromptOptions, RecentFileClippingStrategy
from .page_budget import expand_range_to_page_range
from .ranges import TokenCounter, batch_lines, count_tokens_for_lines
from .tags import PromptTags

CancellationCheck = Callable[[], bool]


@dataclass
class SnippetSelection:
    """Formatted snippets plus the ids of the documents they came from."""
    snippets: List[str] = field(default_factory=list)
    docs_in_prompt: Set[DocumentId] = field(default_factory=set)


class ContextKind(str, Enum):
    SNIPPET = "snippet"
    TRAIT = "trait"


@dataclass(frozen=True)
class LanguageContextItem:
    """One item of a language-server context response."""
    kind: ContextKind
    value: str
    uri: str = ""
    on_timeout: bool = False  # produced after the provider timed out


# =============================================================================
# FORMATTING
# =============================================================================


def format_code_snippet(doc_id: DocumentId, lines: Sequence[str], truncated: bool) -> str:
    """Wrap already rendered (possibly numbered) lines in a snippet block."""
    path = doc_id.to_unique_path()
    header = f"code_snippet_file_path: {path} (truncated)" if truncated else f"code_snippet_file_path: {path}"
    body = "\n".join(lines)
    return "\n".join([PromptTags.RECENT_FILE.start, header, body, PromptTags.RECENT_FILE.end])


# =============================================================================
# PER-FILE CLIPPING
# =============================================================================


def clip_full_document(
    candidate: CandidateSnippet,
    page_size: int,
    budget: int,
    counter: TokenCounter,
    include_line_numbers: IncludeLineNumbersOption,
    result: SnippetSelection,
) -> int:
    """Take pages from the top while they fit. Returns the remaining budget."""
    # Numbered before pricing so the prefixes are charged
    lines = add_line_numbers(candidate.content.lines, include_line_numbers)
    kept: List[str] = []
    for page in batch_lines(lines, page_size):
        remaining = budget - count_tokens_for_lines(page, counter)
        if remaining < 0:
            break
        kept.extend(page)
        budget = remaining

    if kept:
        result.docs_in_prompt.add(candidate.id)
        result.snippets.append(
            format_code_snippet(candidate.id, kept, len(kept) != len(lines))
        )
    return budget


def clip_around_focal_ranges(
    candidate: CandidateSnippet,
    page_size: int,
    budget: int,
    counter: TokenCounter,
    include_line_numbers: IncludeLineNumbersOption,
    result: SnippetSelection,
) -> Optional[int]:
    """
    Expand pages around the (span-capped) focal ranges of `candidate`.

    Returns the remaining budget, or None when nothing fit (including the
    case where the focal pages alone overflow the budget).
    """
    if budget <= 0:
        return None

    content = candidate.content
    focal = select_focal_ranges_within_span_cap(
        candidate.focal_ranges or (),
        content.line_number_at,
        max_focal_span_lines(page_size),
    )
    if not focal:
        return budget

    lines = add_line_numbers(content.lines, include_line_numbers)
    pages = expand_range_to_page_range(
        lines,
        focal_line_range(content, focal),
        page_size,
        budget,
        counter,
        prioritize_above_cursor=False,
    )
    if pages.budget_left == budget or pages.overflowed:
        return None

    start = pages.first_page_idx * page_size
    kept = lines[start:(pages.last_page_idx_incl + 1) * page_size]
    result.docs_in_prompt.add(candidate.id)
    result.snippets.append(
        format_code_snippet(candidate.id, kept, len(kept) < len(lines))
    )
    return pages.budget_left


# =============================================================================
# STRATEGIES
# =============================================================================


def _cancelled(is_cancelled: Optional[CancellationCheck]) -> bool:
    if is_cancelled is not None and is_cancelled():
        logger.debug("Recent file selection cancelled")
        return True
    return False


def build_snippets_greedy(
    candidates: Sequence[CandidateSnippet],
    counter: TokenCounter,
    options: PromptOptions,
    is_cancelled: Optional[CancellationCheck] = None,
) -> SnippetSelection:
    recent_opts = options.recently_viewed_documents
    page_size = options.paged_clipping.page_size
    strategy = recent_opts.clipping_strategy
    budget = recent_opts.max_tokens
    result = SnippetSelection()

    for candidate in candidates:
        if _cancelled(is_cancelled):
            break

        use_focal = strategy != RecentFileClippingStrategy.TOP_TO_BOTTOM and candidate.focal_ranges is not None
        if use_focal:
            left = clip_around_focal_ranges(
                candidate, page_size, budget, counter, recent_opts.include_line_numbers, result
            )
            if left is None:
                # Older candidates are not tried once one fits nothing
                logger.debug(f"Recent file budget exhausted at {candidate.id.uri}")
                break
            budget = left
        else:
            budget = clip_full_document(
                candidate, page_size, budget, counter, recent_opts.include_line_numbers, result
            )

    result.snippets.reverse()
    return result


def admitted_candidate_count(focal_costs: Sequence[int], total_budget: int) -> Tuple[int, int]:
    """(number admitted, their summed focal cost); drops from the end (oldest)."""
    count = len(focal_costs)
    total = sum(focal_costs)
    while count > 0 and total > total_budget:
        count -= 1
        total -= focal_costs[count]
    return count, total


def build_snippets_proportional(
    candidates: Sequence[CandidateSnippet],
    counter: TokenCounter,
    options: PromptOptions,
    is_cancelled: Optional[CancellationCheck] = None,
) -> SnippetSelection:
    recent_opts = options.recently_viewed_documents
    page_size = options.paged_clipping.page_size
    total_budget = recent_opts.max_tokens
    result = SnippetSelection()

    if not candidates:
        return result

    # Pass 1: minimum focal cost per file
    focal_costs = [
        (compute_focal_page_cost(
            c.content, c.focal_ranges, page_size, counter, recent_opts.include_line_numbers
        ) or 0)
        if c.focal_ranges
        else 0
        for c in candidates
    ]
    included, focal_sum = admitted_candidate_count(focal_costs, total_budget)
    if included < len(candidates):
        logger.debug(
            f"Dropped {len(candidates) - included} oldest recent files: "
            f"focal pages need {sum(focal_costs)} tokens, budget is {total_budget}"
        )
    if included == 0:
        return result

    # Pass 2: split the leftover by weight
    expansion = total_budget - focal_sum
    weights = [c.weight for c in candidates[:included]]
    total_weight = sum(weights)
    shares = [expansion * w // total_weight for w in weights]

    unspent = 0
    for i, candidate in enumerate(candidates[:included]):
        if _cancelled(is_cancelled):
            break

        effective = focal_costs[i] + shares[i] + unspent
        if candidate.focal_ranges:
            left = clip_around_focal_ranges(
                candidate, page_size, effective, counter, recent_opts.include_line_numbers, result
            )
            unspent = effective if left is None else left
        else:
            unspent = clip_full_document(
                candidate, page_size, effective, counter, recent_opts.include_line_numbers, result
            )

    result.snippets.reverse()
    return result


def build_code_snippets_using_paged_clipping(
    candidates: Sequence[CandidateSnippet],
    counter: TokenCounter,
    options: PromptOptions,
    is_cancelled: Optional[CancellationCheck] = None,
) -> SnippetSelection:
    """Dispatch `candidates` (newest-first) to the configured strategy."""
    strategy = options.recently_viewed_documents.clipping_strategy
    if strategy == RecentFileClippingStrategy.PROPORTIONAL:
        return build_snippets_proportional(candidates, counter, options, is_cancelled)
    elif strategy in (RecentFileClippingStrategy.TOP_TO_BOTTOM, RecentFileClippingStrategy.AROUND_EDIT_RANGE):
        return build_snippets_greedy(candidates, counter, options, is_cancelled)
    assert_never(strategy)


# =============================================================================
# ENTRY POINT
# =============================================================================


def append_language_context_snippets(
    items: Sequence[LanguageContextItem],
    snippets: List[str],
    budget: int,
    counter: TokenCounter,
    include_line_numbers: IncludeLineNumbersOption,
) -> None:
    """Append snippet items while they fit `budget`; the first misfit stops."""
    for item in items:
        if item.on_timeout:
            continue
        if item.kind != ContextKind.SNIPPET:
            continue
        lines = add_line_numbers(item.value.replace("\r\n", "\n").split("\n"), include_line_numbers)
        remaining = budget - counter("\n".join(lines))
        if remaining < 0:
            break
        snippets.append(format_code_snippet(DocumentId.create(item.uri), lines, truncated=False))
        budget = remaining


def candidates_from_history(
    history: Sequence[HistoryEntry],
    active_doc_id: DocumentId,
    options: PromptOptions,
) -> List[CandidateSnippet]:
    """Newest-first candidates for the configured clipping strategy."""
    recent_opts = options.recently_viewed_documents
    strategy = recent_opts.clipping_strategy

    if strategy == RecentFileClippingStrategy.PROPORTIONAL:
        groups = collect_recent_documents_grouped(
            history, active_doc_id, recent_opts.include_viewed_files, recent_opts.n_documents
        )
        return [history_entries_to_snippet(g.entries) for g in groups]

    entries = collect_recent_documents(
        history, active_doc_id, recent_opts.include_viewed_files, recent_opts.n_documents
    )
    use_edit_focal = strategy != RecentFileClippingStrategy.TOP_TO_BOTTOM
    return [history_entry_to_snippet(e, use_edit_focal) for e in entries]


def get_recent_code_snippets(
    active_doc_id: DocumentId,
    history: Sequence[HistoryEntry],
    counter: TokenCounter,
    options: PromptOptions,
    language_context: Optional[Sequence[LanguageContextItem]] = None,
    is_cancelled: Optional[CancellationCheck] = None,
) -> Tuple[str, Set[DocumentId]]:
    """Joined recent-file snippets and the ids of the documents included."""
    candidates = candidates_from_history(history, active_doc_id, options)
    logger.debug(
        f"{len(candidates)} recent file candidates, "
        f"strategy={options.recently_viewed_documents.clipping_strategy.value}"
    )
    selection = build_code_snippets_using_paged_clipping(candidates, counter, options, is_cancelled)

    if language_context:
        append_language_context_snippets(
            language_context,
            selection.snippets,
            options.language_context.max_tokens,
            counter,
            options.recently_viewed_documents.include_line_numbers,
        )

    return "\n\n".join(selection.snippets), selection.docs_in_prompt
