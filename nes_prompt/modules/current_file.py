"""
Document Clipper

Clips the active document around its edit window so the current-file block
fits `current_file.max_tokens`. The lines of the window are reserved first and
are never dropped: if they alone do not fit, the result is OutOfBudget.
Everything else is added in whole pages by the page budget expander.

construct_tagged_file also renders the `<|area_around_code_to_edit|>` block
with the `<|code_to_edit|>` window and the `<|cursor|>` marker.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from loguru import logger

from .edits import StringEdit
from .errors import InvariantViolationError, OutOfBudget, assert_never
from .history import DocumentId
from .options import CurrentFileOptions, IncludeLineNumbersOption, PromptOptions
from .page_budget import expand_range_to_page_range
from .ranges import OffsetRange, TokenCounter, count_tokens_for_lines
from .tags import PromptTags
from .text import DocumentText


@dataclass(frozen=True)
class CurrentDocument:
    """Snapshot of the active document at request time."""
    content: DocumentText
    cursor_offset: int
    id: Optional[DocumentId] = None

    @property
    def lines(self) -> List[str]:
        return self.content.lines


@dataclass(frozen=True)
class ClippedDocument:
    lines: List[str]  # kept lines, with the tagged area spliced in
    kept_range: OffsetRange  # start in the unclipped document, length of `lines`


@dataclass(frozen=True)
class TaggedFile:
    clipped_document: ClippedDocument
    area_around_code_to_edit: str


def add_line_numbers(lines: Sequence[str], option: IncludeLineNumbersOption, start: int = 0) -> List[str]:
    if option == IncludeLineNumbersOption.WITH_SPACE_AFTER:
        return [f"{start + i}| {line}" for i, line in enumerate(lines)]
    elif option == IncludeLineNumbersOption.WITHOUT_SPACE:
        return [f"{start + i}|{line}" for i, line in enumerate(lines)]
    elif option == IncludeLineNumbersOption.NONE:
        return list(lines)
    assert_never(option)


def clip_preserving_range(
    lines: Sequence[str],
    range_to_preserve: OffsetRange,
    counter: TokenCounter,
    page_size: int,
    opts: CurrentFileOptions,
    preserved_lines: Optional[Sequence[str]] = None,
) -> Union[OffsetRange, OutOfBudget]:
    """
    Line range to keep around `range_to_preserve`, or OutOfBudget.

    The preserved lines are charged first: `preserved_lines` when given (the
    lines that will replace the range in the output, tags included), else the
    range's own lines. If the pages holding the range do not fit what is left,
    only the preserved range itself is kept.
    """
    if preserved_lines is None:
        preserved_lines = lines[range_to_preserve.start:range_to_preserve.end_exclusive]
    preserved_cost = count_tokens_for_lines(preserved_lines, counter)
    available = opts.max_tokens - preserved_cost
    if available < 0:
        logger.debug(
            f"Edit window needs {preserved_cost} tokens, budget is {opts.max_tokens}"
        )
        return OutOfBudget(required_tokens=preserved_cost, max_tokens=opts.max_tokens)

    pages = expand_range_to_page_range(
        lines,
        range_to_preserve,
        page_size,
        available,
        counter,
        opts.prioritize_above_cursor,
    )
    if pages.overflowed:
        return range_to_preserve

    kept = pages.line_range(page_size)
    return OffsetRange(kept.start, min(kept.end_exclusive, len(lines)))


def create_tagged_current_file_content(
    lines: Sequence[str],
    area_around_code_to_edit: Sequence[str],
    area_range: OffsetRange,
    counter: TokenCounter,
    page_size: int,
    opts: CurrentFileOptions,
) -> Union[ClippedDocument, OutOfBudget]:
    """Splice the (tagged) area lines into the clipped document."""
    keep = clip_preserving_range(lines, area_range, counter, page_size, opts, area_around_code_to_edit)
    if isinstance(keep, OutOfBudget):
        return keep

    content = [
        *lines[keep.start:area_range.start],
        *area_around_code_to_edit,
        *lines[area_range.end_exclusive:keep.end_exclusive],
    ]
    return ClippedDocument(
        lines=content,
        kept_range=OffsetRange(keep.start, keep.start + len(content)),
    )


def _check_window(name: str, window: OffsetRange, n_lines: int) -> None:
    if window.end_exclusive > n_lines:
        raise InvariantViolationError(
            f"{name} {window} outside document with {n_lines} lines"
        )


def construct_tagged_file(
    document: CurrentDocument,
    edit_window: OffsetRange,
    area_window: OffsetRange,
    options: PromptOptions,
    counter: TokenCounter,
    area_line_numbers: Optional[IncludeLineNumbersOption] = None,
    current_file_line_numbers: Optional[IncludeLineNumbersOption] = None,
) -> Union[TaggedFile, OutOfBudget]:
    """
    Build the tagged area block and the clipped current-file content.

    `edit_window` and `area_window` are 0-based line ranges; the edit window
    must sit inside the area window. Line numbering for each block defaults to
    `options.current_file.include_line_numbers`.
    """
    n_lines = document.content.line_count
    _check_window("Area window", area_window, n_lines)
    if not area_window.contains_range(edit_window):
        raise InvariantViolationError(
            f"Edit window {edit_window} not inside area window {area_window}"
        )

    current_opts = options.current_file
    if area_line_numbers is None:
        area_line_numbers = current_opts.include_line_numbers
    if current_file_line_numbers is None:
        current_file_line_numbers = current_opts.include_line_numbers

    with_cursor = StringEdit.insert(document.cursor_offset, PromptTags.CURSOR).apply_on_text(document.content).lines
    numbered_with_cursor = add_line_numbers(with_cursor, area_line_numbers)

    area_block = [
        PromptTags.AREA_AROUND.start,
        *numbered_with_cursor[area_window.start:edit_window.start],
        PromptTags.EDIT_WINDOW.start,
        *numbered_with_cursor[edit_window.start:edit_window.end_exclusive],
        PromptTags.EDIT_WINDOW.end,
        *numbered_with_cursor[edit_window.end_exclusive:area_window.end_exclusive],
        PromptTags.AREA_AROUND.end,
    ]

    source_lines = with_cursor if current_opts.include_cursor_tag else document.lines
    current_with_cursor = add_line_numbers(source_lines, current_file_line_numbers)
    current_lines = add_line_numbers(document.lines, current_file_line_numbers)

    if current_opts.include_tags and current_file_line_numbers == area_line_numbers:
        area_for_current_file = area_block
    else:
        area_for_current_file = current_with_cursor[area_window.start:area_window.end_exclusive]

    clipped = create_tagged_current_file_content(
        current_lines,
        area_for_current_file,
        area_window,
        counter,
        options.paged_clipping.page_size,
        current_opts,
    )
    if isinstance(clipped, OutOfBudget):
        return clipped

    return TaggedFile(
        clipped_document=clipped,
        area_around_code_to_edit="\n".join(area_block),
    )
