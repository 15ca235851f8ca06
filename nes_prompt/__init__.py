"""nes_prompt: token-budgeted prompt context for next-edit suggestions."""

__version__ = "1.0.0"
