"""Prompt tag constants shared by the clipping and formatting stages."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Tag:
    start: str
    end: str


def make_tag(name: str) -> Tag:
    return Tag(start=f"<|{name}|>", end=f"<|/{name}|>")


class PromptTags:
    CURSOR = "<|cursor|>"

    EDIT_WINDOW = make_tag("code_to_edit")
    AREA_AROUND = make_tag("area_around_code_to_edit")
    RECENT_FILE = make_tag("recently_viewed_code_snippet")

    @staticmethod
    def lint_tag(tag_name: str) -> Tag:
        """e.g. "linter diagnostics" -> <|linter diagnostics|>...<|/linter diagnostics|>"""
        return make_tag(tag_name)
