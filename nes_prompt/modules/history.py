"""
Recent-document history and candidate snippets.

The history log is stored oldest-first and consumed newest-first. Each entry
is either an edit (base text + StringEdit) or a snapshot of the ranges a user
had on screen. Candidates are built from the newest entry per document, or,
for the proportional strategy, from every entry of a document with older edit
locations projected into the newest content.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple, Union
from urllib.parse import unquote, urlparse

from .edits import StringEdit, project_ranges_forward
from .ranges import OffsetRange
from .text import DocumentText


@dataclass(frozen=True)
class DocumentId:
    """Stable identity of a document, independent of its content."""
    uri: str

    @classmethod
    def create(cls, uri: str) -> "DocumentId":
        return cls(uri)

    def to_unique_path(self) -> str:
        # file:///src/a.py -> /src/a.py; other schemes are kept verbatim
        if self.uri.startswith("file://"):
            return unquote(urlparse(self.uri).path)
        return self.uri


class HistoryEntryKind(str, Enum):
    EDIT = "edit"
    VISIBLE_RANGES = "visibleRanges"


@dataclass(frozen=True)
class EditEntry:
    doc_id: DocumentId
    base: DocumentText
    edit: StringEdit
    kind: HistoryEntryKind = field(default=HistoryEntryKind.EDIT, init=False)

    @property
    def post_edit(self) -> DocumentText:
        return self.edit.apply_on_text(self.base)


@dataclass(frozen=True)
class ViewedRangesEntry:
    doc_id: DocumentId
    document_content: DocumentText
    visible_ranges: Tuple[OffsetRange, ...] = ()
    kind: HistoryEntryKind = field(default=HistoryEntryKind.VISIBLE_RANGES, init=False)


HistoryEntry = Union[EditEntry, ViewedRangesEntry]


@dataclass(frozen=True)
class CandidateSnippet:
    """A recent document offered to the allocator."""
    id: DocumentId
    content: DocumentText
    focal_ranges: Optional[Tuple[OffsetRange, ...]] = None  # most-recent-first, in content offsets
    weight: int = 1  # number of edit entries that produced this candidate


@dataclass
class GroupedDocumentEntries:
    doc_id: DocumentId
    entries: List[HistoryEntry] = field(default_factory=list)  # newest-first


def collect_recent_documents(
    history: Sequence[HistoryEntry],
    active_doc_id: DocumentId,
    include_viewed_files: bool,
    n_documents: int,
) -> List[HistoryEntry]:
    """Newest entry of the last `n_documents` distinct documents, newest-first."""
    result: List[HistoryEntry] = []
    if n_documents <= 0:
        return result

    seen = set()
    for entry in reversed(history):
        if not include_viewed_files and entry.kind == HistoryEntryKind.VISIBLE_RANGES:
            continue
        if entry.doc_id == active_doc_id or entry.doc_id in seen:
            continue
        result.append(entry)
        seen.add(entry.doc_id)
        if len(result) >= n_documents:
            break
    return result


def collect_recent_documents_grouped(
    history: Sequence[HistoryEntry],
    active_doc_id: DocumentId,
    include_viewed_files: bool,
    n_documents: int,
) -> List[GroupedDocumentEntries]:
    """
    All entries of the last `n_documents` distinct documents.

    Groups are ordered from most to least recently active document; entries
    inside a group are newest-first. Once `n_documents` groups exist, entries
    for further documents are ignored but entries of known documents are
    still collected.
    """
    groups: Dict[DocumentId, GroupedDocumentEntries] = {}
    for entry in reversed(history):
        if not include_viewed_files and entry.kind == HistoryEntryKind.VISIBLE_RANGES:
            continue
        if entry.doc_id == active_doc_id:
            continue
        group = groups.get(entry.doc_id)
        if group is None:
            if len(groups) >= n_documents:
                continue
            group = GroupedDocumentEntries(doc_id=entry.doc_id)
            groups[entry.doc_id] = group
        group.entries.append(entry)
    return list(groups.values())


def history_entry_to_snippet(entry: HistoryEntry, use_edit_focal_ranges: bool = True) -> CandidateSnippet:
    """Candidate built from a single (newest) history entry of a document."""
    if isinstance(entry, EditEntry):
        return CandidateSnippet(
            id=entry.doc_id,
            content=entry.post_edit,
            focal_ranges=tuple(entry.edit.new_ranges()) if use_edit_focal_ranges else None,
            weight=1,
        )
    return CandidateSnippet(
        id=entry.doc_id,
        content=entry.document_content,
        focal_ranges=tuple(entry.visible_ranges),
    )


def history_entries_to_snippet(entries: Sequence[HistoryEntry]) -> CandidateSnippet:
    """
    Merge all entries of one document (newest-first) into a single candidate.

    Content comes from the newest entry. Focal ranges come from edit entries
    only; viewed-range offsets belong to older snapshots and cannot be mapped
    reliably. Each older edit's ranges are projected through the newer edits
    so they are valid in the newest content.
    """
    most_recent = entries[0]
    if isinstance(most_recent, EditEntry):
        content = most_recent.post_edit
    else:
        content = most_recent.document_content

    edit_entries = [e for e in entries if isinstance(e, EditEntry)]
    focal: List[OffsetRange] = []
    for j, entry in enumerate(edit_entries):
        later_edits = [e.edit for e in edit_entries[:j]]
        focal.extend(project_ranges_forward(entry.edit.new_ranges(), later_edits))

    return CandidateSnippet(
        id=most_recent.doc_id,
        content=content,
        focal_ranges=tuple(focal) if focal else None,
        weight=max(len(edit_entries), 1),
    )
