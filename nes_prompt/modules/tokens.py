"""
Default token counter for callers that have no tokenizer at hand.

The engine itself never estimates tokens; every budgeting function takes the
counter as an argument. This heuristic mirrors the ~4 chars/token estimate
used across the code base and is what the test-suite injects.
"""

from __future__ import annotations


def estimate_tokens(text: str) -> int:
    # Deterministic heuristic (rough): ~4 chars/token average, rounded up.
    return (len(text) + 3) // 4
