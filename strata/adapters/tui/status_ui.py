"""Interactive status UI.

Full-screen prompt_toolkit view over a StatusDocument: one line per rendered
document line, a cursor, and magit-style keys for folding and refreshing.
"""

import asyncio
import logging
from typing import Any

from prompt_toolkit import Application
from prompt_toolkit.data_structures import Point
from prompt_toolkit.key_binding import KeyBindings, KeyPressEvent
from prompt_toolkit.layout import Dimension, HSplit, Window
from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.layout.layout import Layout
from prompt_toolkit.styles import Style

from strata.core.document.session import Command, StatusDocument
from strata.core.presentation.colors import StrataColors, style_for
from strata.core.use_case_errors import format_error_message
from strata.domain.exceptions import StrataError

logger = logging.getLogger(__name__)

KEY_HINTS = "tab:fold  1-4:level  M-1..4:all  g:refresh  q:quit"


class StatusUI:
    """Interactive status document UI using prompt_toolkit.

    Args:
        document: Session to display. It is refreshed once before the
            screen opens.
    """

    def __init__(self, document: StatusDocument) -> None:
        self.document = document
        self.cursor = 0
        self.message: str | None = None
        self._build_ui()

    def _build_ui(self) -> None:
        """Build the prompt_toolkit UI layout."""
        self.document_control = FormattedTextControl(
            self._get_document_text,
            focusable=True,
            show_cursor=False,
            get_cursor_position=lambda: Point(x=0, y=self.cursor),
        )
        status_window = Window(
            content=FormattedTextControl(self._get_status_text, focusable=False),
            height=Dimension.exact(1),
        )

        main_container = HSplit([
            Window(content=self.document_control, wrap_lines=False),
            Window(height=Dimension.exact(1), char="─", style="class:status-bar"),
            status_window,
        ])

        style = Style.from_dict(StrataColors.get_prompt_toolkit_style())

        self.app: Application[Any] = Application(
            layout=Layout(main_container, focused_element=self.document_control),
            key_bindings=self._create_key_bindings(),
            style=style,
            full_screen=True,
            mouse_support=False,
        )

    def _create_key_bindings(self) -> KeyBindings:
        """Create key bindings for the UI.

        Returns:
            KeyBindings object.
        """
        kb = KeyBindings()

        @kb.add("down")
        @kb.add("j")
        @kb.add("c-n")
        def next_line(event: KeyPressEvent) -> None:
            self.move_cursor(1)

        @kb.add("up")
        @kb.add("k")
        @kb.add("c-p")
        def previous_line(event: KeyPressEvent) -> None:
            self.move_cursor(-1)

        @kb.add("tab")
        def toggle(event: KeyPressEvent) -> None:
            self._schedule(Command.TOGGLE_ENTRY, self.cursor)

        @kb.add("s-tab")
        def toggle_all(event: KeyPressEvent) -> None:
            self._schedule(Command.TOGGLE_ALL, self.cursor)

        @kb.add("g")
        def refresh(event: KeyPressEvent) -> None:
            self._schedule(Command.REFRESH, self.cursor)

        for digit in "1234":
            level = int(digit)

            @kb.add(digit)
            def scoped_level(event: KeyPressEvent, level: int = level) -> None:
                self._schedule(Command.SET_LEVEL, self.cursor, level)

            @kb.add("escape", digit)
            def global_level(event: KeyPressEvent, level: int = level) -> None:
                self._schedule(Command.SET_LEVEL, None, level)

        @kb.add("q")
        @kb.add("c-c")
        def exit_app(event: KeyPressEvent) -> None:
            event.app.exit()

        return kb

    def move_cursor(self, delta: int) -> None:
        """Move the cursor, clamped to the document."""
        last = max(len(self.document.document.lines) - 1, 0)
        self.cursor = min(max(self.cursor + delta, 0), last)
        self.document.cursor_target = None
        self.app.invalidate()

    def _schedule(self, command: Command, line: int | None, level: int | None = None) -> None:
        self.app.create_background_task(self.run_command(command, line, level))

    async def run_command(
        self, command: Command, line: int | None, level: int | None = None
    ) -> None:
        """Apply a command and move the cursor to its target."""
        self.message = None
        try:
            await self.document.handle_async(command, line, level)
        except (StrataError, ValueError, KeyError) as e:
            self.message = format_error_message(e, command.value)
        self.cursor = self.document.cursor_line(default=self.cursor)
        self.move_cursor(0)

    def _get_document_text(self) -> list[tuple[str, str]]:
        """Get formatted document text.

        Returns:
            List of (style, text) tuples for formatted text.
        """
        rendered = self.document.document
        fragments: list[tuple[str, str]] = []
        for index, (text, info) in enumerate(zip(rendered.lines, rendered.line_map, strict=True)):
            style = style_for(info, rendered.decorations.get(index, ()))
            classes = [f"class:{style}"] if style else []
            if index == self.cursor:
                classes.append("class:cursor")
            fragments.append((" ".join(classes), (text or " ") + "\n"))
        return fragments

    def _get_status_text(self) -> list[tuple[str, str]]:
        """Get formatted status bar text.

        Returns:
            List of (style, text) tuples for formatted text.
        """
        if self.message:
            return [("class:error", f" {self.message}")]
        failures = self.document.model.snapshot.failures if self.document.model.snapshot else ()
        parts = [("class:status-bar", f" level {self.document.model.visibility.global_level}")]
        if failures:
            parts.append(("class:error", f" │ {len(failures)} command(s) failed"))
        parts.append(("class:status-bar", f" │ {KEY_HINTS}"))
        return parts

    async def run_async(self) -> None:
        """Refresh once, then run the application until the user quits."""
        await self.document.refresh()
        await self.document.load_missing_hunks()
        await self.app.run_async()

    def run(self) -> None:
        """Run the interactive status UI.

        Suppresses all logging output during TUI execution to prevent display
        corruption, then restores original logging state after exit.
        """
        # Full-screen mode: any stderr output would corrupt the display
        logging.disable(logging.CRITICAL)
        try:
            asyncio.run(self.run_async())
        finally:
            logging.disable(logging.NOTSET)
