"""Presentation helpers for CLI and TUI output.

Components:
- StrataColors: shared palette for click and prompt_toolkit
- style_for: prompt_toolkit style class of a rendered line
- click_line: click-styled text of a rendered line
"""

from strata.core.presentation.colors import StrataColors, click_line, style_for

__all__ = [
    "StrataColors",
    "click_line",
    "style_for",
]
