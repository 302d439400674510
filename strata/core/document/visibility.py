"""Visibility state machine for the status document.

Two layers decide what is shown:

- a global level (1-4) giving defaults for every section and entry;
- per-entity overrides set by scoped changes and toggles.

A global level change wipes all overrides. Scoped changes only write the
overrides of the entities they touch, and the last write to a key wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from strata.domain.entities import (
    CursorTarget,
    Entry,
    EntryKey,
    ExpansionMode,
    Section,
    SectionKind,
)

if TYPE_CHECKING:
    from strata.core.document.model import StatusModel

logger = logging.getLogger(__name__)

MIN_LEVEL = 1
MAX_LEVEL = 4
DEFAULT_LEVEL = 2


def _check_level(level: int) -> None:
    if not MIN_LEVEL <= level <= MAX_LEVEL:
        raise ValueError(f"Visibility level must be between 1 and 4, got {level}")


@dataclass
class VisibilityState:
    """Collapse and expansion state that outlives individual refreshes.

    Attributes:
        global_level: Global disclosure depth (1-4).
        collapsed: Section collapse overrides, keyed by kind.
        expanded: Entry expansion overrides, keyed by entry key.
        open_hunks: Individually opened hunks of entries in headers-only
            mode, keyed by entry key.
    """

    global_level: int = DEFAULT_LEVEL
    collapsed: dict[SectionKind, bool] = field(default_factory=dict)
    expanded: dict[EntryKey, ExpansionMode] = field(default_factory=dict)
    open_hunks: dict[EntryKey, frozenset[int]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _check_level(self.global_level)

    def section_collapsed(self, kind: SectionKind) -> bool:
        """Effective collapse state of a section."""
        return self.collapsed.get(kind, self.global_level == 1)

    def entry_mode(self, key: EntryKey) -> ExpansionMode:
        """Effective expansion mode of an entry."""
        return self.expanded.get(key, ExpansionMode.for_level(self.global_level))

    def hunk_open(self, key: EntryKey, index: int) -> bool:
        """Whether the content lines of one hunk are shown."""
        mode = self.entry_mode(key)
        if mode == ExpansionMode.FULL:
            return True
        if mode == ExpansionMode.HEADERS_ONLY:
            return index in self.open_hunks.get(key, frozenset())
        return False

    def override_count(self) -> int:
        """Number of per-entity overrides currently held."""
        return len(self.collapsed) + len(self.expanded) + len(self.open_hunks)

    def reset(self, level: int) -> None:
        """Set the global level and drop every override."""
        _check_level(level)
        self.global_level = level
        self.collapsed.clear()
        self.expanded.clear()
        self.open_hunks.clear()

    def set_entry(self, key: EntryKey, mode: ExpansionMode) -> None:
        self.expanded[key] = mode
        self.open_hunks.pop(key, None)

    def collect_garbage(self, live_keys: set[EntryKey]) -> int:
        """Forget entry overrides whose key no longer exists.

        Section overrides are kept: sections are identified by kind and come
        back as soon as they have entries again.

        Args:
            live_keys: Entry keys present in the current document.

        Returns:
            Number of overrides removed.
        """
        stale = [key for key in self.expanded if key not in live_keys]
        stale_hunks = [key for key in self.open_hunks if key not in live_keys]
        for key in stale:
            del self.expanded[key]
        for key in stale_hunks:
            del self.open_hunks[key]
        removed = len(stale) + len(stale_hunks)
        if removed:
            logger.debug("Dropped %d visibility override(s) for vanished entries", removed)
        return removed


class VisibilityController:
    """Applies visibility commands to a StatusModel.

    Every method returns the CursorTarget the host should move to after the
    next render, so the cursor never points at a line that disappeared.

    Args:
        model: Document whose visibility state is mutated.
    """

    def __init__(self, model: StatusModel) -> None:
        self._model = model

    @property
    def state(self) -> VisibilityState:
        return self._model.visibility

    def set_global_level(self, level: int) -> None:
        """Apply a level to the whole document, resetting all overrides.

        1 collapses every section; 2 expands sections with entries collapsed;
        3 shows hunk headers; 4 shows full hunk content.

        Raises:
            ValueError: If level is outside 1-4.
        """
        self.state.reset(level)
        logger.debug("Global visibility level set to %d", level)

    def set_scoped(
        self, key: str, level: int, hunk_index: int | None = None
    ) -> CursorTarget:
        """Apply a level to one section, entry or hunk.

        Args:
            key: Section key or entry key.
            level: Visibility level (1-4).
            hunk_index: Hunk under the cursor when the change targets a hunk
                header.

        Returns:
            Where the cursor should land.

        Raises:
            ValueError: If level is outside 1-4.
            KeyError: If key names nothing in the document.
        """
        _check_level(level)
        section = self._model.section_by_key(key)
        if section is not None:
            return self._scope_section(section, level)

        entry = self._require_entry(key)
        if hunk_index is not None and level >= 3:
            return self._scope_hunk(entry, hunk_index, level)
        return self._scope_entry(entry, level)

    def _scope_section(self, section: Section, level: int) -> CursorTarget:
        state = self.state
        state.collapsed[section.kind] = level == 1
        mode = ExpansionMode.COLLAPSED if level == 1 else ExpansionMode.for_level(level)
        for entry in section.entries:
            state.set_entry(entry.key, mode)
        return CursorTarget(section.key)

    def _scope_entry(self, entry: Entry, level: int) -> CursorTarget:
        state = self.state
        if level == 1:
            # Level 1 shows section headers only, so the entry's section goes too.
            state.set_entry(entry.key, ExpansionMode.COLLAPSED)
            state.collapsed[entry.section] = True
            return CursorTarget(entry.section.value)
        state.set_entry(entry.key, ExpansionMode.for_level(level))
        return CursorTarget(entry.key)

    def _scope_hunk(self, entry: Entry, index: int, level: int) -> CursorTarget:
        if level == 4:
            self._open_hunk(entry, index)
        else:
            self._close_hunk(entry, index)
        return CursorTarget(entry.key, index)

    def toggle_section(self, kind: SectionKind) -> CursorTarget:
        """Flip a section between collapsed and expanded."""
        self.state.collapsed[kind] = not self.state.section_collapsed(kind)
        return CursorTarget(kind.value)

    def toggle_entry(self, key: EntryKey) -> CursorTarget:
        """Cycle an entry through collapsed, headers only and full."""
        entry = self._require_entry(key)
        if entry.diffable:
            self.state.set_entry(key, self.state.entry_mode(key).next())
        return CursorTarget(key)

    def toggle_hunk(self, key: EntryKey, index: int) -> CursorTarget:
        """Show or hide the content of one hunk."""
        entry = self._require_entry(key)
        if self.state.hunk_open(key, index):
            self._close_hunk(entry, index)
        else:
            self._open_hunk(entry, index)
        return CursorTarget(key, index)

    def toggle_all_sections(self) -> None:
        """Collapse every shown section, or expand them all if all are collapsed."""
        kinds = [section.kind for section in self._model.sections if section.entries]
        if not kinds:
            return
        collapse = not all(self.state.section_collapsed(kind) for kind in kinds)
        for kind in kinds:
            self.state.collapsed[kind] = collapse

    def expand(self, key: str) -> CursorTarget:
        """Fully open a section or entry."""
        section = self._model.section_by_key(key)
        if section is not None:
            self.state.collapsed[section.kind] = False
            return CursorTarget(section.key)
        entry = self._require_entry(key)
        if entry.diffable:
            self.state.set_entry(key, ExpansionMode.FULL)
        return CursorTarget(key)

    def collapse(self, key: str) -> CursorTarget:
        """Close a section or entry."""
        section = self._model.section_by_key(key)
        if section is not None:
            self.state.collapsed[section.kind] = True
            return CursorTarget(section.key)
        self._require_entry(key)
        self.state.set_entry(key, ExpansionMode.COLLAPSED)
        return CursorTarget(key)

    def _open_hunk(self, entry: Entry, index: int) -> None:
        state = self.state
        mode = state.entry_mode(entry.key)
        if mode == ExpansionMode.FULL:
            return
        opened: frozenset[int] = frozenset()
        if mode == ExpansionMode.HEADERS_ONLY:
            opened = state.open_hunks.get(entry.key, frozenset())
        state.expanded[entry.key] = ExpansionMode.HEADERS_ONLY
        state.open_hunks[entry.key] = opened | {index}

    def _close_hunk(self, entry: Entry, index: int) -> None:
        state = self.state
        mode = state.entry_mode(entry.key)
        if mode == ExpansionMode.FULL:
            # Leave every other hunk open.
            count = len(entry.hunks or ())
            state.expanded[entry.key] = ExpansionMode.HEADERS_ONLY
            state.open_hunks[entry.key] = frozenset(range(count)) - {index}
        elif mode == ExpansionMode.HEADERS_ONLY:
            remaining = state.open_hunks.get(entry.key, frozenset()) - {index}
            if remaining:
                state.open_hunks[entry.key] = remaining
            else:
                state.open_hunks.pop(entry.key, None)

    def _require_entry(self, key: EntryKey) -> Entry:
        entry = self._model.entry(key)
        if entry is None:
            raise KeyError(f"Unknown document key: {key}")
        return entry
