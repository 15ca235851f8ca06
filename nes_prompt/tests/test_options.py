"""
Tests for prompt options: defaults, aliases, YAML loading and lint option strings.
"""

import os
import sys

import pytest
from pydantic import ValidationError

# Add parent to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from modules.errors import ConfigurationError
from modules.options import (
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
    prompt_options_from_dict,
)

SHIPPED_CONFIG = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "config.yaml")


class TestDefaults:
    """Tests for the default option set."""

    def test_default_values(self):
        assert DEFAULT_OPTIONS.current_file.max_tokens == 2000
        assert DEFAULT_OPTIONS.current_file.include_tags is True
        assert DEFAULT_OPTIONS.paged_clipping.page_size == 10
        assert DEFAULT_OPTIONS.recently_viewed_documents.n_documents == 5
        assert DEFAULT_OPTIONS.recently_viewed_documents.clipping_strategy == RecentFileClippingStrategy.TOP_TO_BOTTOM
        assert DEFAULT_OPTIONS.language_context.enabled is False
        assert DEFAULT_OPTIONS.lint_options is None

    def test_options_are_frozen(self):
        with pytest.raises(ValidationError):
            DEFAULT_OPTIONS.current_file.max_tokens = 1

    def test_empty_dict_gives_defaults(self):
        assert prompt_options_from_dict({}) == DEFAULT_OPTIONS
        assert prompt_options_from_dict(None) == DEFAULT_OPTIONS


class TestFromDict:
    """Tests for validating option mappings."""

    def test_partial_override(self):
        options = prompt_options_from_dict({"current_file": {"max_tokens": 500}})
        assert options.current_file.max_tokens == 500
        assert options.current_file.include_tags is True
        assert options.recently_viewed_documents == DEFAULT_OPTIONS.recently_viewed_documents

    def test_camel_case_keys(self):
        options = prompt_options_from_dict({
            "currentFile": {"maxTokens": 300, "includeLineNumbers": "withSpaceAfter"},
            "pagedClipping": {"pageSize": 4},
            "recentlyViewedDocuments": {"clippingStrategy": "proportional", "nDocuments": 2},
        })
        assert options.current_file.max_tokens == 300
        assert options.current_file.include_line_numbers == IncludeLineNumbersOption.WITH_SPACE_AFTER
        assert options.paged_clipping.page_size == 4
        assert options.recently_viewed_documents.clipping_strategy == RecentFileClippingStrategy.PROPORTIONAL
        assert options.recently_viewed_documents.n_documents == 2

    def test_zero_page_size_rejected(self):
        with pytest.raises(ConfigurationError):
            prompt_options_from_dict({"paged_clipping": {"page_size": 0}})

    def test_negative_budget_rejected(self):
        with pytest.raises(ConfigurationError):
            prompt_options_from_dict({"current_file": {"max_tokens": -1}})

    def test_unknown_key_rejected(self):
        with pytest.raises(ConfigurationError):
            prompt_options_from_dict({"current_file": {"max_token": 10}})

    def test_unknown_strategy_rejected(self):
        with pytest.raises(ConfigurationError):
            prompt_options_from_dict({"recently_viewed_documents": {"clipping_strategy": "bottomUp"}})

    def test_zero_budget_allowed(self):
        assert CurrentFileOptions(max_tokens=0).max_tokens == 0


class TestLoadPromptOptions:
    """Tests for YAML config loading."""

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_prompt_options(tmp_path / "missing.yaml") == DEFAULT_OPTIONS

    def test_top_level_options(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("paged_clipping:\n  page_size: 3\n")
        assert load_prompt_options(path).paged_clipping.page_size == 3

    def test_nested_under_prompt_options(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("prompt_options:\n  currentFile:\n    maxTokens: 42\n")
        assert load_prompt_options(path).current_file.max_tokens == 42

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_prompt_options(path) == DEFAULT_OPTIONS

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("current_file: [unclosed\n")
        with pytest.raises(ConfigurationError) as exc_info:
            load_prompt_options(path)
        assert exc_info.value.source == str(path)

    def test_non_mapping_root(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError):
            load_prompt_options(path)

    def test_invalid_value(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("paged_clipping:\n  page_size: 0\n")
        with pytest.raises(ConfigurationError):
            load_prompt_options(path)

    def test_shipped_config_loads(self):
        options = load_prompt_options(SHIPPED_CONFIG)
        assert isinstance(options, PromptOptions)
        assert options.lint_options is not None
        assert options.lint_options.tag_name == "linter diagnostics"
        assert options.lint_options.warnings == LintOptionWarning.WARNINGS_IF_NO_ERRORS
        assert options.lint_options.show_code == LintOptionShowCode.YES_WITH_SURROUNDING


class TestLintOptions:
    """Tests for lint options and the JSON option string."""

    def test_parse_camel_case_string(self):
        options = parse_lint_option_string(
            '{"tagName": "lint", "warnings": "yes", "showCode": "no", "maxLints": 2, "maxLineDistance": 5}'
        )
        assert options == LintOptions(
            tag_name="lint",
            warnings=LintOptionWarning.ALL,
            show_code=LintOptionShowCode.NO,
            max_lints=2,
            max_line_distance=5,
        )

    def test_invalid_json(self):
        with pytest.raises(ConfigurationError, match="Failed to parse lint options string"):
            parse_lint_option_string("{not json")

    def test_missing_field(self):
        with pytest.raises(ConfigurationError):
            parse_lint_option_string('{"tagName": "lint", "warnings": "yes", "showCode": "no"}')

    def test_unknown_warning_value(self):
        with pytest.raises(ConfigurationError):
            parse_lint_option_string(
                '{"tagName": "lint", "warnings": "maybe", "showCode": "no", "maxLints": 2, "maxLineDistance": 5}'
            )

    def test_blank_tag_name(self):
        with pytest.raises(ValidationError):
            LintOptions(
                tag_name="  ",
                warnings=LintOptionWarning.ALL,
                show_code=LintOptionShowCode.NO,
                max_lints=1,
                max_line_distance=1,
            )
