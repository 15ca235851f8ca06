"""
Prompt Options

Pydantic models for every budgeting knob, the default option set, and the two
ways options reach the engine: a YAML config file and a JSON lint option
string (as shipped in model configurations).

Keys are accepted in snake_case or in the camelCase used by model
configuration payloads (e.g. `maxTokens`, `pageSize`, `maxLineDistance`).
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .errors import ConfigurationError


# =============================================================================
# ENUMS
# =============================================================================


class IncludeLineNumbersOption(str, Enum):
    WITH_SPACE_AFTER = "withSpaceAfter"
    WITHOUT_SPACE = "withoutSpaceAfter"
    NONE = "none"


class RecentFileClippingStrategy(str, Enum):
    TOP_TO_BOTTOM = "topToBottom"
    AROUND_EDIT_RANGE = "aroundEditRange"
    PROPORTIONAL = "proportional"


class LintOptionWarning(str, Enum):
    """Which severities survive lint ranking."""
    ERRORS_ONLY = "no"
    ALL = "yes"
    WARNINGS_IF_NO_ERRORS = "yesIfNoErrors"


class LintOptionShowCode(str, Enum):
    NO = "no"
    YES = "yes"
    YES_WITH_SURROUNDING = "yesWithSurroundingLines"


# =============================================================================
# MODELS
# =============================================================================


class _OptionsModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )


class CurrentFileOptions(_OptionsModel):
    max_tokens: int = Field(default=2000, ge=0)
    include_tags: bool = True
    include_line_numbers: IncludeLineNumbersOption = IncludeLineNumbersOption.NONE
    include_cursor_tag: bool = False
    prioritize_above_cursor: bool = False


class PagedClippingOptions(_OptionsModel):
    page_size: int = Field(default=10, ge=1)


class RecentlyViewedDocumentsOptions(_OptionsModel):
    n_documents: int = Field(default=5, ge=0)
    max_tokens: int = Field(default=2000, ge=0)
    include_viewed_files: bool = False
    include_line_numbers: IncludeLineNumbersOption = IncludeLineNumbersOption.NONE
    clipping_strategy: RecentFileClippingStrategy = RecentFileClippingStrategy.TOP_TO_BOTTOM


class LanguageContextOptions(_OptionsModel):
    enabled: bool = False
    max_tokens: int = Field(default=2000, ge=0)


class LintOptions(_OptionsModel):
    # e.g. "linter diagnostics" -> <|linter diagnostics|>...<|/linter diagnostics|>
    tag_name: str
    warnings: LintOptionWarning
    show_code: LintOptionShowCode
    max_lints: int = Field(..., ge=0)
    max_line_distance: int = Field(..., ge=0)

    @field_validator("tag_name")
    @classmethod
    def tag_name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Lint tag name cannot be empty or whitespace")
        return v


class PromptOptions(_OptionsModel):
    current_file: CurrentFileOptions = Field(default_factory=CurrentFileOptions)
    paged_clipping: PagedClippingOptions = Field(default_factory=PagedClippingOptions)
    recently_viewed_documents: RecentlyViewedDocumentsOptions = Field(
        default_factory=RecentlyViewedDocumentsOptions
    )
    language_context: LanguageContextOptions = Field(default_factory=LanguageContextOptions)
    lint_options: Optional[LintOptions] = None


DEFAULT_OPTIONS = PromptOptions()


# =============================================================================
# LOADING
# =============================================================================


def _validate(data: Dict[str, Any], source: str) -> PromptOptions:
    try:
        return PromptOptions.model_validate(data)
    except ValidationError as e:
        logger.error(f"Invalid prompt options in {source}: {e}")
        raise ConfigurationError(f"Invalid prompt options: {e}", source=source) from e


def prompt_options_from_dict(data: Optional[Dict[str, Any]]) -> PromptOptions:
    """Validate a (possibly partial) options mapping; missing keys take defaults."""
    return _validate(data or {}, source="<dict>")


def load_prompt_options(config_path: Union[str, Path] = "config.yaml") -> PromptOptions:
    """
    Load PromptOptions from a YAML file.

    The options may sit at the top level or under a `prompt_options` key. A
    missing file yields DEFAULT_OPTIONS; an unreadable or invalid one raises
    ConfigurationError.
    """
    config_file = Path(config_path)
    if not config_file.exists():
        logger.warning(f"Config file not found: {config_path}. Using defaults.")
        return DEFAULT_OPTIONS

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        logger.error(f"Error loading config: {e}")
        raise ConfigurationError(f"Malformed YAML: {e}", source=str(config_path)) from e

    if not isinstance(data, dict):
        raise ConfigurationError("Config root must be a mapping", source=str(config_path))

    if "prompt_options" in data:
        data = data["prompt_options"] or {}

    return _validate(data, source=str(config_path))


def parse_lint_option_string(option_string: str) -> LintOptions:
    """Parse a JSON lint option string such as those in model configurations."""
    try:
        return LintOptions.model_validate(json.loads(option_string))
    except (json.JSONDecodeError, ValidationError) as e:
        raise ConfigurationError(f"Failed to parse lint options string: {e}", source=option_string) from e
