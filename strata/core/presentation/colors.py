"""Centralized color definitions for all strata output.

Provides one color scheme for the plain CLI dump and the interactive TUI.
Colors are chosen from a rendered line's LineType and decorations; the
renderer itself never emits escape codes.
"""

from typing import Literal

from strata.domain.entities import Decoration, LineInfo, LineType

# Type aliases for color values
ClickColor = Literal["black", "red", "green", "yellow", "blue", "magenta", "cyan", "white"]


class StrataColors:
    """Centralized color palette for consistent output across strata.

    Defines colors for all UI elements using both click-compatible named colors
    and ANSI style names for prompt_toolkit.
    """

    # === Document Colors ===
    SECTION_FG = "yellow"
    HUNK_HEADER_FG = "cyan"
    ADD_FG = "green"
    DEL_FG = "red"
    STOP_FG = "magenta"
    CURRENT_FG = "green"
    LOCKED_FG = "red"

    # === Status Message Colors ===
    SUCCESS_FG = "green"
    WARNING_FG = "yellow"

    @staticmethod
    def get_prompt_toolkit_style() -> dict[str, str]:
        """Get style dictionary for prompt_toolkit Style.from_dict().

        Uses ANSI color names instead of hex codes so colors adapt to the
        user's terminal theme.

        Returns:
            Dictionary mapping style class names to style definitions.
        """
        return {
            "header": "bold",
            "section": "fg:ansiyellow bold",
            "hunk-header": "fg:ansicyan",
            "add": "fg:ansigreen",
            "del": "fg:ansired",
            "stop": "fg:ansimagenta bold",
            "current": "fg:ansigreen bold",
            "locked": "fg:ansired",
            "cursor": "reverse",
            "status-bar": "fg:ansibrightblack",
            "error": "fg:ansired",
        }

    @staticmethod
    def click_warning(text: str) -> str:
        """Style warning text for click output."""
        import click

        return click.style(text, fg=StrataColors.WARNING_FG)

    @staticmethod
    def click_success(text: str) -> str:
        """Style success text for click output."""
        import click

        return click.style(text, fg=StrataColors.SUCCESS_FG)


# Decoration wins over line type when both suggest a style
_DECORATION_STYLES: dict[Decoration, str] = {
    Decoration.ADD: "add",
    Decoration.DEL: "del",
    Decoration.STOP: "stop",
    Decoration.CURRENT: "current",
    Decoration.LOCKED: "locked",
}

_LINE_TYPE_STYLES: dict[LineType, str] = {
    LineType.HEADER: "header",
    LineType.SECTION: "section",
    LineType.HUNK_HEADER: "hunk-header",
}

_CLICK_STYLES: dict[str, dict[str, object]] = {
    "header": {"bold": True},
    "section": {"fg": StrataColors.SECTION_FG, "bold": True},
    "hunk-header": {"fg": StrataColors.HUNK_HEADER_FG},
    "add": {"fg": StrataColors.ADD_FG},
    "del": {"fg": StrataColors.DEL_FG},
    "stop": {"fg": StrataColors.STOP_FG, "bold": True},
    "current": {"fg": StrataColors.CURRENT_FG, "bold": True},
    "locked": {"fg": StrataColors.LOCKED_FG},
}


def style_for(info: LineInfo, decorations: tuple[Decoration, ...] = ()) -> str | None:
    """Style class name for one rendered line.

    Args:
        info: The line's LineMap entry.
        decorations: The line's decorations.

    Returns:
        A key of get_prompt_toolkit_style(), or None for unstyled lines.
    """
    for decoration in decorations:
        style = _DECORATION_STYLES.get(decoration)
        if style:
            return style
    return _LINE_TYPE_STYLES.get(info.type)


def click_line(text: str, info: LineInfo, decorations: tuple[Decoration, ...] = ()) -> str:
    """Style one rendered line for click output."""
    import click

    style = style_for(info, decorations)
    if style is None or not text:
        return text
    return click.style(text, **_CLICK_STYLES[style])
