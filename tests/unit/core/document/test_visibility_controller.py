"""Tests for VisibilityState and VisibilityController."""

import pytest

from strata.core.document.model import StatusModel
from strata.core.document.visibility import VisibilityController, VisibilityState
from strata.domain.entities import (
    CursorTarget,
    ExpansionMode,
    FileChange,
    SectionKind,
    WorktreeInfo,
)
from tests.helpers.fakes import make_hunk, make_model, make_snapshot

A = "unstaged:a.py"
B = "unstaged:b.py"
C = "staged:c.py"


@pytest.fixture
def model() -> StatusModel:
    """Model with two unstaged files, one staged file and two worktrees."""
    snapshot = make_snapshot(
        unstaged=(FileChange("a.py", worktree_status="M"), FileChange("b.py", worktree_status="M")),
        staged=(FileChange("c.py", index_status="A"),),
        worktrees=(WorktreeInfo("/repo", branch="main"), WorktreeInfo("/other", branch="topic")),
        diffs={A: (make_hunk("@@ -1 +1 @@", "-x", "+y"), make_hunk("@@ -9 +9 @@", "-p", "+q"))},
    )
    return make_model(snapshot)


@pytest.fixture
def controller(model: StatusModel) -> VisibilityController:
    return VisibilityController(model)


class TestVisibilityState:
    """Tests for effective state lookups."""

    @pytest.mark.parametrize(
        ("level", "collapsed", "mode"),
        [
            (1, True, ExpansionMode.COLLAPSED),
            (2, False, ExpansionMode.COLLAPSED),
            (3, False, ExpansionMode.HEADERS_ONLY),
            (4, False, ExpansionMode.FULL),
        ],
    )
    def test_level_defaults(self, level: int, collapsed: bool, mode: ExpansionMode) -> None:
        """Without overrides every section and entry follows the global level."""
        state = VisibilityState(global_level=level)
        assert state.section_collapsed(SectionKind.UNSTAGED) is collapsed
        assert state.entry_mode(A) == mode

    def test_invalid_level_rejected(self) -> None:
        """Levels outside 1-4 are rejected."""
        with pytest.raises(ValueError, match="between 1 and 4"):
            VisibilityState(global_level=0)

    def test_collect_garbage(self) -> None:
        """Overrides for vanished keys are removed, live ones kept."""
        state = VisibilityState()
        state.expanded[A] = ExpansionMode.FULL
        state.expanded[B] = ExpansionMode.FULL
        state.open_hunks[B] = frozenset({0})
        state.collapsed[SectionKind.STAGED] = True

        removed = state.collect_garbage({A})

        assert removed == 2
        assert set(state.expanded) == {A}
        assert state.open_hunks == {}
        assert state.collapsed == {SectionKind.STAGED: True}


class TestGlobalLevel:
    """Tests for global level changes."""

    def test_level_one_then_two_clears_everything(self, controller: VisibilityController) -> None:
        """Going to level 1 and back to 2 leaves no collapsed section and no override."""
        controller.set_scoped(A, 4)
        controller.set_global_level(1)
        controller.set_global_level(2)

        state = controller.state
        assert state.override_count() == 0
        assert not any(state.section_collapsed(kind) for kind in SectionKind)

    def test_global_level_resets_overrides(self, controller: VisibilityController) -> None:
        """A global level change wipes scoped overrides."""
        controller.set_scoped("staged", 1)
        controller.toggle_entry(A)
        controller.set_global_level(3)

        assert controller.state.override_count() == 0
        assert controller.state.entry_mode(A) == ExpansionMode.HEADERS_ONLY

    def test_global_level_out_of_range(self, controller: VisibilityController) -> None:
        """set_global_level rejects 5."""
        with pytest.raises(ValueError):
            controller.set_global_level(5)


class TestScopedLevel:
    """Tests for set_scoped on sections, entries and hunks."""

    def test_entry_level_one_collapses_section(self, controller: VisibilityController) -> None:
        """Level 1 on an entry hides its section and moves the cursor to the header."""
        target = controller.set_scoped(A, 1)

        assert target == CursorTarget("unstaged")
        assert controller.state.section_collapsed(SectionKind.UNSTAGED)
        assert controller.state.entry_mode(A) == ExpansionMode.COLLAPSED

    def test_entry_levels(self, controller: VisibilityController) -> None:
        """Levels 2-4 on an entry set its mode and keep the cursor on it."""
        assert controller.set_scoped(A, 3) == CursorTarget(A)
        assert controller.state.entry_mode(A) == ExpansionMode.HEADERS_ONLY
        controller.set_scoped(A, 4)
        assert controller.state.entry_mode(A) == ExpansionMode.FULL
        controller.set_scoped(A, 2)
        assert controller.state.entry_mode(A) == ExpansionMode.COLLAPSED

    def test_section_level_four(self, controller: VisibilityController) -> None:
        """Level 4 on a section opens all of its entries and nothing else."""
        target = controller.set_scoped("unstaged", 4)

        state = controller.state
        assert target == CursorTarget("unstaged")
        assert state.entry_mode(A) == ExpansionMode.FULL
        assert state.entry_mode(B) == ExpansionMode.FULL
        assert state.entry_mode(C) == ExpansionMode.COLLAPSED
        assert SectionKind.STAGED not in state.collapsed

    def test_section_level_one(self, controller: VisibilityController) -> None:
        """Level 1 on a section collapses it."""
        controller.set_scoped("staged", 1)
        assert controller.state.section_collapsed(SectionKind.STAGED)
        assert not controller.state.section_collapsed(SectionKind.UNSTAGED)

    def test_last_write_wins(self, controller: VisibilityController) -> None:
        """A section change overwrites earlier entry overrides and vice versa."""
        controller.set_scoped("unstaged", 4)
        controller.set_scoped(A, 2)
        assert controller.state.entry_mode(A) == ExpansionMode.COLLAPSED
        assert controller.state.entry_mode(B) == ExpansionMode.FULL

        controller.set_scoped("unstaged", 3)
        assert controller.state.entry_mode(A) == ExpansionMode.HEADERS_ONLY

    def test_unknown_key(self, controller: VisibilityController) -> None:
        """Keys that name nothing raise KeyError."""
        with pytest.raises(KeyError):
            controller.set_scoped("unstaged:missing.py", 3)

    def test_invalid_level(self, controller: VisibilityController) -> None:
        """Scoped levels outside 1-4 raise ValueError."""
        with pytest.raises(ValueError):
            controller.set_scoped(A, 0)


class TestHunks:
    """Tests for hunk-scoped changes."""

    def test_open_single_hunk(self, controller: VisibilityController) -> None:
        """Level 4 on a hunk header opens only that hunk."""
        target = controller.set_scoped(A, 4, hunk_index=1)

        state = controller.state
        assert target == CursorTarget(A, 1)
        assert state.entry_mode(A) == ExpansionMode.HEADERS_ONLY
        assert state.hunk_open(A, 1)
        assert not state.hunk_open(A, 0)

    def test_close_single_hunk(self, controller: VisibilityController) -> None:
        """Level 3 on an open hunk closes it again."""
        controller.set_scoped(A, 4, hunk_index=0)
        controller.set_scoped(A, 3, hunk_index=0)

        assert not controller.state.hunk_open(A, 0)
        assert A not in controller.state.open_hunks

    def test_close_hunk_of_full_entry(self, controller: VisibilityController) -> None:
        """Closing one hunk of a fully open entry keeps the others open."""
        controller.set_scoped(A, 4)
        controller.toggle_hunk(A, 0)

        state = controller.state
        assert state.entry_mode(A) == ExpansionMode.HEADERS_ONLY
        assert not state.hunk_open(A, 0)
        assert state.hunk_open(A, 1)

    def test_low_level_on_hunk_applies_to_entry(self, controller: VisibilityController) -> None:
        """Levels 1 and 2 on a hunk header act on the whole entry."""
        controller.set_scoped(A, 4)
        assert controller.set_scoped(A, 2, hunk_index=1) == CursorTarget(A)
        assert controller.state.entry_mode(A) == ExpansionMode.COLLAPSED

    def test_toggle_hunk(self, controller: VisibilityController) -> None:
        """toggle_hunk flips one hunk."""
        controller.toggle_hunk(A, 1)
        assert controller.state.hunk_open(A, 1)
        controller.toggle_hunk(A, 1)
        assert not controller.state.hunk_open(A, 1)


class TestToggles:
    """Tests for toggle, expand and collapse commands."""

    def test_toggle_entry_cycles(self, controller: VisibilityController) -> None:
        """An entry cycles collapsed, headers only, full, collapsed."""
        modes = []
        for _ in range(3):
            controller.toggle_entry(A)
            modes.append(controller.state.entry_mode(A))
        assert modes == [ExpansionMode.HEADERS_ONLY, ExpansionMode.FULL, ExpansionMode.COLLAPSED]

    def test_toggle_entry_ignores_worktrees(self, controller: VisibilityController) -> None:
        """Entries without a diff do not change mode."""
        controller.toggle_entry("worktrees:/other")
        assert controller.state.override_count() == 0

    def test_toggle_section(self, controller: VisibilityController) -> None:
        """toggle_section flips the section and targets its header."""
        assert controller.toggle_section(SectionKind.STAGED) == CursorTarget("staged")
        assert controller.state.section_collapsed(SectionKind.STAGED)
        controller.toggle_section(SectionKind.STAGED)
        assert not controller.state.section_collapsed(SectionKind.STAGED)

    def test_toggle_all_sections(self, controller: VisibilityController, model: StatusModel) -> None:
        """toggle_all collapses every non-empty section, then expands them again."""
        shown = [s.kind for s in model.sections if s.entries]

        controller.toggle_all_sections()
        assert all(controller.state.section_collapsed(kind) for kind in shown)

        controller.toggle_all_sections()
        assert not any(controller.state.section_collapsed(kind) for kind in shown)

    def test_expand_and_collapse(self, controller: VisibilityController) -> None:
        """expand opens fully, collapse closes, for sections and entries."""
        controller.expand(A)
        assert controller.state.entry_mode(A) == ExpansionMode.FULL
        controller.collapse(A)
        assert controller.state.entry_mode(A) == ExpansionMode.COLLAPSED

        controller.collapse("unstaged")
        assert controller.state.section_collapsed(SectionKind.UNSTAGED)
        controller.expand("unstaged")
        assert not controller.state.section_collapsed(SectionKind.UNSTAGED)
