"""
Prompt context pipeline.

Runs the three budgeted stages for one request: the clipped active document,
the recent-file snippets and (when lint options are set) the lint block. The
stages are independent; each works from the caller's snapshot only.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional, Sequence, Union

from loguru import logger

from .current_file import ClippedDocument, CurrentDocument, construct_tagged_file
from .errors import InvariantViolationError, OutOfBudget, is_out_of_budget
from .history import DocumentId, HistoryEntry
from .lint import Diagnostic, FormattedLints, format_lint_errors
from .options import PromptOptions
from .ranges import OffsetRange, TokenCounter
from .recent_files import CancellationCheck, LanguageContextItem, get_recent_code_snippets


@dataclass(frozen=True)
class PromptContext:
    current_file: Union[ClippedDocument, OutOfBudget]
    area_around_code_to_edit: Optional[str]  # None when the current file is out of budget
    recent_snippets: str
    documents_in_prompt: FrozenSet[DocumentId]  # includes the active document
    lints: Optional[FormattedLints] = None

    @property
    def lint_block(self) -> str:
        return self.lints.text if self.lints is not None else ""

    @property
    def current_file_text(self) -> str:
        if is_out_of_budget(self.current_file):
            return ""
        return "\n".join(self.current_file.lines)


def build_prompt_context(
    document: CurrentDocument,
    edit_window: OffsetRange,
    area_window: OffsetRange,
    history: Sequence[HistoryEntry],
    diagnostics: Sequence[Diagnostic],
    counter: TokenCounter,
    options: PromptOptions,
    language_context: Optional[Sequence[LanguageContextItem]] = None,
    is_cancelled: Optional[CancellationCheck] = None,
) -> PromptContext:
    if document.id is None:
        raise InvariantViolationError("Active document needs an id to exclude it from recent files")

    tagged = construct_tagged_file(document, edit_window, area_window, options, counter)
    if isinstance(tagged, OutOfBudget):
        logger.debug(f"Current file out of budget: {tagged.required_tokens} > {tagged.max_tokens}")
        current_file: Union[ClippedDocument, OutOfBudget] = tagged
        area_text = None
    else:
        current_file = tagged.clipped_document
        area_text = tagged.area_around_code_to_edit

    lang_ctx = language_context if options.language_context.enabled else None
    snippets, docs = get_recent_code_snippets(
        document.id, history, counter, options, lang_ctx, is_cancelled
    )

    lints = None
    if options.lint_options is not None:
        # Diagnostic positions are 0-based
        cursor_line, cursor_column = document.content.position_at(document.cursor_offset)
        lints = format_lint_errors(
            diagnostics,
            document.lines,
            cursor_line - 1,
            cursor_column - 1,
            options.lint_options,
        )

    return PromptContext(
        current_file=current_file,
        area_around_code_to_edit=area_text,
        recent_snippets=snippets,
        documents_in_prompt=frozenset(docs | {document.id}),
        lints=lints,
    )
