# Pytest configuration for the nes_prompt test suite
#
# Timeout strategy:
# - FAST tests: 5-10s (pure unit tests, no I/O)
# - MEDIUM tests: 15s (YAML files on tmp_path, whole-pipeline runs)

from __future__ import annotations

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from modules.tokens import estimate_tokens

# ---------------------------------------------------------------------------
# Timeout configuration by test file
# ---------------------------------------------------------------------------
# Maps test file patterns to timeout values (seconds)
# More specific patterns should come first

TIMEOUT_MAP = {
    # MEDIUM tests (15s) - File I/O, full pipeline
    "test_options": 15,
    "test_pipeline": 15,

    # FAST tests - Pure unit tests
    "test_ranges": 5,
    "test_edits": 5,
    "test_history": 5,
    "test_page_budget": 5,
    "test_focal_ranges": 5,
    "test_current_file": 10,
    "test_recent_files": 10,
    "test_lint": 5,
    "test_tokens": 5,
}


def pytest_collection_modifyitems(config, items):
    """Apply timeout markers based on test file names."""
    for item in items:
        test_file = item.fspath.basename if hasattr(item.fspath, 'basename') else str(item.fspath).split('/')[-1]
        test_name = test_file.replace('.py', '')

        timeout = 30  # default
        for pattern, t in TIMEOUT_MAP.items():
            if pattern in test_name:
                timeout = t
                break

        existing_timeout = item.get_closest_marker('timeout')
        if existing_timeout is None:
            item.add_marker(pytest.mark.timeout(timeout))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def counter():
    """Token counter used throughout the suite: ceil(len / 4)."""
    return estimate_tokens


@pytest.fixture
def zero_counter():
    """Counts only the per-line separator token."""
    return lambda s: 0
