"""Per-repository status document session.

StatusDocument ties the snapshot builder, the model, the visibility
controller and the renderer together. Hosts (the CLI and the TUI) talk only
to this class: they ask it to refresh, send it commands tagged with the
cursor's line index, and paint whatever it renders.
"""

import asyncio
import logging
from enum import Enum

from strata.core.document.model import StatusModel
from strata.core.document.renderer import render
from strata.core.document.visibility import VisibilityController
from strata.core.snapshot.builder import SnapshotBuilder
from strata.domain.config import StrataConfig
from strata.domain.entities import (
    CursorTarget,
    LineInfo,
    LineType,
    RenderedDocument,
    Snapshot,
)
from strata.domain.exceptions import RefreshError

logger = logging.getLogger(__name__)


class Command(str, Enum):
    """User commands understood by StatusDocument."""

    EXPAND = "expand"
    COLLAPSE = "collapse"
    SET_LEVEL = "set_level"
    TOGGLE_SECTION = "toggle_section"
    TOGGLE_ENTRY = "toggle_entry"
    TOGGLE_ALL = "toggle_all"
    REFRESH = "refresh"


class StatusDocument:
    """Interactive status document for one repository.

    Args:
        builder: Snapshot builder bound to the repository.
        config: strata configuration.
        model: Optional pre-built model (tests inject one).
    """

    def __init__(
        self,
        builder: SnapshotBuilder,
        config: StrataConfig,
        model: StatusModel | None = None,
    ) -> None:
        self.builder = builder
        self.config = config
        self.model = model or StatusModel(config.status)
        self.controller = VisibilityController(self.model)
        self.cursor_target: CursorTarget | None = None
        self.last_error: RefreshError | None = None
        self._document: RenderedDocument | None = None
        self._generation = 0
        self._task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    async def refresh(self) -> None:
        """Rebuild the snapshot and merge it, coalescing concurrent requests.

        Only one refresh runs at a time. A request arriving while one is in
        flight makes the in-flight result stale; the running loop discards
        it and builds again, so any number of overlapping requests costs one
        trailing run. Every caller resumes after that final merge.

        Raises:
            RefreshError: If the latest build failed. The previous document
                is kept.
        """
        self._generation += 1
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._refresh_loop())
        else:
            logger.debug("Refresh already running; scheduling a trailing run")
        await asyncio.shield(self._task)

    async def _refresh_loop(self) -> None:
        while True:
            generation = self._generation
            try:
                snapshot = await self.builder.build(self.model.wants_hunks)
            except RefreshError as e:
                if generation != self._generation:
                    logger.debug("Ignoring failure of superseded refresh: %s", e)
                    continue
                self.last_error = e
                logger.warning("Refresh failed, keeping previous document: %s", e)
                raise
            if generation != self._generation:
                logger.debug(
                    "Discarding stale snapshot (generation %d, now %d)",
                    generation,
                    self._generation,
                )
                continue
            self._merge(snapshot)
            return

    def _merge(self, snapshot: Snapshot) -> None:
        self.model.merge(snapshot)
        self.last_error = None
        self.render()

    async def load_missing_hunks(self) -> int:
        """Fetch diffs for expanded entries that have none loaded yet.

        Hunks are attached only if the entry is still the one in the model,
        so a merge that happened meanwhile is never mixed with older diffs.

        Returns:
            Number of entries that received hunks.
        """
        missing = self.model.entries_missing_hunks()
        if not missing:
            return 0
        loaded = await self.builder.load_hunks(missing)
        attached = 0
        for entry in missing:
            hunks = loaded.get(entry.key)
            if hunks is not None and self.model.entry(entry.key) is entry:
                entry.hunks = hunks
                attached += 1
        if attached:
            self.render()
        return attached

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self) -> RenderedDocument:
        """Render the current model and remember the result."""
        self._document = render(self.model, self.config.display)
        return self._document

    @property
    def document(self) -> RenderedDocument:
        """Last rendered document, rendering on first access."""
        if self._document is None:
            return self.render()
        return self._document

    def cursor_line(self, default: int = 0) -> int:
        """Line index for the current cursor target.

        Falls back to the target's section header when the target itself is
        no longer rendered, then to ``default``.
        """
        target = self.cursor_target
        if target is None:
            return default
        document = self.document
        index = document.find_line(target)
        if index is None and target.hunk_index is not None:
            index = document.find_line(CursorTarget(target.key))
        if index is None:
            section_key = target.key.split(":", 1)[0]
            index = document.find_line(CursorTarget(section_key))
        return default if index is None else index

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def handle(
        self, command: Command | str, line: int | None = None, level: int | None = None
    ) -> CursorTarget | None:
        """Apply a synchronous command at a cursor line and re-render.

        The line's LineMap entry decides the scope: a section line targets
        the section, a hunk header targets the hunk, an entry or hunk content
        line targets the entry, and anything else is global.

        Args:
            command: Command to run (not ``refresh``).
            line: Cursor line index in the last rendered document.
            level: Visibility level for ``set_level``.

        Returns:
            The new cursor target, or None if the cursor should stay put.

        Raises:
            ValueError: For an unknown command, ``refresh``, or a missing or
                out-of-range level.
        """
        command = Command(command)
        if command == Command.REFRESH:
            raise ValueError("refresh is asynchronous; use handle_async")

        info = self._line_info(line)
        target = self._dispatch(command, info, level)
        if target is not None:
            self.cursor_target = target
        self.render()
        return target

    async def handle_async(
        self, command: Command | str, line: int | None = None, level: int | None = None
    ) -> CursorTarget | None:
        """Apply any command, including ``refresh``.

        Visibility commands also load hunks for entries they expanded.
        """
        command = Command(command)
        if command == Command.REFRESH:
            info = self._line_info(line)
            if info.key is not None and self.cursor_target is None:
                self.cursor_target = CursorTarget(info.key, _hunk_of(info))
            await self.refresh()
            return self.cursor_target
        target = self.handle(command, line, level)
        await self.load_missing_hunks()
        return target

    def _line_info(self, line: int | None) -> LineInfo:
        line_map = self.document.line_map
        if line is None or not 0 <= line < len(line_map):
            return LineInfo(LineType.BLANK)
        return line_map[line]

    def _dispatch(
        self, command: Command, info: LineInfo, level: int | None
    ) -> CursorTarget | None:
        controller = self.controller
        key = info.key
        hunk_index = _hunk_of(info)

        if command == Command.TOGGLE_ALL:
            controller.toggle_all_sections()
            return CursorTarget(info.section.value) if info.section else None

        if command == Command.SET_LEVEL:
            if level is None:
                raise ValueError("set_level needs a level")
            if key is None:
                controller.set_global_level(level)
                return None
            return controller.set_scoped(key, level, hunk_index)

        if key is None:
            return None

        if command == Command.TOGGLE_SECTION:
            return controller.toggle_section(info.section)

        if info.type == LineType.SECTION:
            if command == Command.EXPAND:
                return controller.expand(key)
            if command == Command.COLLAPSE:
                return controller.collapse(key)
            return controller.toggle_section(info.section)

        if hunk_index is not None:
            if command == Command.EXPAND:
                return controller.set_scoped(key, 4, hunk_index)
            if command == Command.COLLAPSE:
                return controller.set_scoped(key, 3, hunk_index)
            return controller.toggle_hunk(key, hunk_index)

        if command == Command.EXPAND:
            return controller.expand(key)
        if command == Command.COLLAPSE:
            return controller.collapse(key)
        return controller.toggle_entry(key)


def _hunk_of(info: LineInfo) -> int | None:
    # Only hunk headers scope a command to a single hunk
    return info.hunk_index if info.type == LineType.HUNK_HEADER else None
