"""Domain entities and value objects.

Core domain models representing the repository facts strata displays and the
status document built from them. These are pure Python dataclasses with no
dependencies on infrastructure.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from strata.domain.exceptions import CommandFailure

EntryKey = str
HunkLineKind = Literal["context", "add", "del", "meta"]

_SHA_PATTERN = re.compile(r"^[0-9a-f]{4,64}$")


class SectionKind(str, Enum):
    """Kinds of top-level sections in the status document.

    The value doubles as the section's stable key and as its name in the
    ``[status] sections`` configuration list.
    """

    UNTRACKED = "untracked"
    UNSTAGED = "unstaged"
    STAGED = "staged"
    CONFLICTED = "conflicted"
    STASHES = "stashes"
    SUBMODULES = "submodules"
    WORKTREES = "worktrees"
    REBASE = "rebase"
    UNPUSHED_PUSH = "unpushed_push"
    UNPUSHED = "unpushed"
    UNPULLED_PUSH = "unpulled_push"
    UNPULLED = "unpulled"
    RECENT = "recent"

    @property
    def is_file_section(self) -> bool:
        """True for sections that list working tree or index changes."""
        return self in FILE_SECTIONS


FILE_SECTIONS = frozenset(
    {
        SectionKind.UNTRACKED,
        SectionKind.UNSTAGED,
        SectionKind.STAGED,
        SectionKind.CONFLICTED,
    }
)


class EntryKind(str, Enum):
    """What an entry line stands for."""

    FILE = "file"
    STASH = "stash"
    SUBMODULE = "submodule"
    WORKTREE = "worktree"
    COMMIT = "commit"
    REBASE_STEP = "rebase_step"
    ONTO = "onto"

    @property
    def is_diffable(self) -> bool:
        """True if the entry can be expanded to show diff hunks."""
        return self in (EntryKind.FILE, EntryKind.STASH, EntryKind.COMMIT)


class ExpansionMode(str, Enum):
    """Disclosure depth of a single entry."""

    COLLAPSED = "collapsed"
    HEADERS_ONLY = "headers_only"
    FULL = "full"

    @staticmethod
    def for_level(level: int) -> ExpansionMode:
        """Map a global visibility level to the entry mode it implies.

        Args:
            level: Visibility level (1-4).

        Returns:
            COLLAPSED for levels 1 and 2, HEADERS_ONLY for 3, FULL for 4.
        """
        if level >= 4:
            return ExpansionMode.FULL
        if level == 3:
            return ExpansionMode.HEADERS_ONLY
        return ExpansionMode.COLLAPSED

    def next(self) -> ExpansionMode:
        """Next mode in the toggle cycle collapsed -> headers -> full -> collapsed."""
        order = (ExpansionMode.COLLAPSED, ExpansionMode.HEADERS_ONLY, ExpansionMode.FULL)
        return order[(order.index(self) + 1) % len(order)]


class LineType(str, Enum):
    """Semantic type of a rendered line."""

    HEADER = "header"
    SECTION = "section"
    ENTRY = "entry"
    HUNK_HEADER = "hunk_header"
    HUNK_LINE = "hunk_line"
    BLANK = "blank"


class Decoration(str, Enum):
    """Per-line rendering hints handed to the host surface."""

    EXPANDED = "expanded"
    COLLAPSED = "collapsed"
    CURRENT = "current"
    LOCKED = "locked"
    STOP = "stop"
    ADD = "add"
    DEL = "del"


class SequencerOperation(str, Enum):
    """In-progress multi-step git operation, if any."""

    CHERRY_PICK = "cherry_pick"
    REVERT = "revert"
    REBASE = "rebase"
    MERGE = "merge"
    AM = "am"


def entry_key(section: SectionKind, identifier: str) -> EntryKey:
    """Build the stable key for an entry.

    Args:
        section: Section owning the entry.
        identifier: Path, stash ref, worktree path or commit id.

    Returns:
        Key of the form ``"<section>:<identifier>"``.
    """
    return f"{section.value}:{identifier}"


def abbreviate(sha: str, length: int = 7) -> str:
    """Shorten a commit id for display."""
    return sha[:length]


def same_commit(a: str, b: str) -> bool:
    """Compare two commit ids where either may be abbreviated.

    Args:
        a: Full or abbreviated commit id.
        b: Full or abbreviated commit id.

    Returns:
        True if the shorter id is a prefix of the longer one.
    """
    if not a or not b:
        return False
    a, b = a.lower(), b.lower()
    if not (_SHA_PATTERN.match(a) and _SHA_PATTERN.match(b)):
        return a == b
    return a.startswith(b) if len(a) >= len(b) else b.startswith(a)


# ============================================================================
# Repository facts
# ============================================================================


@dataclass(frozen=True)
class BranchInfo:
    """Branch and upstream tracking information.

    Attributes:
        head: Branch name, or "(detached)" when HEAD is detached.
        oid: Commit id of HEAD, or None in a repository with no commits.
        upstream: Upstream ref (e.g., "origin/main") or None.
        ahead: Commits on HEAD not on upstream.
        behind: Commits on upstream not on HEAD.
        head_subject: Subject line of the HEAD commit.
        upstream_subject: Subject line of the upstream tip.
        push: Push destination ref (``@{push}``), set only when it exists
            and differs from the upstream.
        push_subject: Subject line of the push destination tip.
        push_ahead: Commits on HEAD not on the push destination.
        push_behind: Commits on the push destination not on HEAD.
    """

    head: str = "(detached)"
    oid: str | None = None
    upstream: str | None = None
    ahead: int = 0
    behind: int = 0
    head_subject: str | None = None
    upstream_subject: str | None = None
    push: str | None = None
    push_subject: str | None = None
    push_ahead: int = 0
    push_behind: int = 0

    @property
    def detached(self) -> bool:
        return self.head == "(detached)"


@dataclass(frozen=True)
class FileChange:
    """A path with index and worktree status codes.

    Attributes:
        path: Path relative to the repository root.
        index_status: Index status letter, "." when unchanged.
        worktree_status: Worktree status letter, "." when unchanged.
        orig_path: Source path for renames and copies.
        submodule: True if the path is a submodule.
    """

    path: str
    index_status: str = "."
    worktree_status: str = "."
    orig_path: str | None = None
    submodule: bool = False


@dataclass(frozen=True)
class StashInfo:
    """An entry from ``git stash list``."""

    index: int
    ref: str
    message: str


@dataclass(frozen=True)
class SubmoduleInfo:
    """An entry from ``git submodule status``.

    Attributes:
        path: Submodule path relative to the repository root.
        sha: Commit checked out in the submodule (or recorded in the index
            when uninitialized).
        state: "current", "modified" (checkout differs from the index),
            "uninitialized" or "conflict".
        describe: ``git describe`` output git printed for the commit, if any.
    """

    path: str
    sha: str
    state: Literal["current", "modified", "uninitialized", "conflict"] = "current"
    describe: str | None = None

    @property
    def marker(self) -> str:
        """Status character shown before the path ("" when current)."""
        return {"modified": "+", "uninitialized": "-", "conflict": "U"}.get(self.state, "")


@dataclass(frozen=True)
class WorktreeInfo:
    """An entry from ``git worktree list --porcelain``.

    Attributes:
        path: Absolute worktree path.
        head: Checked out commit id, if known.
        branch: Short branch name, or None when detached or bare.
        bare: True for the bare repository entry.
        locked: True if the worktree is locked.
        prunable: True if git reports the worktree as prunable.
    """

    path: str
    head: str | None = None
    branch: str | None = None
    bare: bool = False
    locked: bool = False
    prunable: bool = False


@dataclass(frozen=True)
class CommitInfo:
    """A commit line from ``git log``."""

    sha: str
    abbrev: str
    subject: str


@dataclass(frozen=True)
class PullRequestInfo:
    """Pull request metadata for the current branch.

    Supplied by an optional PullRequestSource; strata never talks to a forge
    itself.
    """

    number: int
    title: str
    state: str = "open"
    url: str | None = None


@dataclass(frozen=True)
class SequencerState:
    """On-disk sequencer state of the repository.

    Attributes:
        operation: The operation in progress, or None.
        head_oid: Commit being applied (cherry-pick, revert, merge).
        head_subject: Subject of ``head_oid`` when resolved.
        rebase_todo: Raw lines of rebase-merge/git-rebase-todo.
        rebase_done: Raw lines of rebase-merge/done.
        rebase_stopped_sha: Contents of rebase-merge/stopped-sha.
        rebase_onto: Contents of rebase-merge/onto.
        rebase_head_name: Branch being rebased.
        am_current: Current patch number for ``git am``.
        am_last: Total patch count for ``git am``.
    """

    operation: SequencerOperation | None = None
    head_oid: str | None = None
    head_subject: str | None = None
    rebase_todo: tuple[str, ...] = ()
    rebase_done: tuple[str, ...] = ()
    rebase_stopped_sha: str | None = None
    rebase_onto: str | None = None
    rebase_head_name: str | None = None
    am_current: int | None = None
    am_last: int | None = None

    @property
    def active(self) -> bool:
        return self.operation is not None


# ============================================================================
# Rebase sequence
# ============================================================================


@dataclass(frozen=True)
class RebaseStep:
    """One commit of an in-progress rebase.

    Attributes:
        state: "todo" (not yet applied), "stop" (where the rebase halted)
            or "done" (already applied).
        sha: Commit id as recorded by git (may be abbreviated).
        abbrev: Short commit id for display.
        subject: Commit subject line.
        action: Original todo verb (pick, edit, squash, ...).
    """

    state: Literal["todo", "stop", "done"]
    sha: str
    abbrev: str
    subject: str = ""
    action: str = "pick"

    @property
    def verb(self) -> str:
        """Word shown at the start of the rendered line."""
        return self.action if self.state == "todo" else self.state


@dataclass(frozen=True)
class RebaseOnto:
    """The commit a rebase replays onto. Always rendered after the steps."""

    sha: str
    abbrev: str
    name: str | None = None
    subject: str | None = None


@dataclass(frozen=True)
class ReconstructionAmbiguity:
    """Diagnostic for sequencer files that do not agree with each other.

    Never raised. Returned alongside the rebase sequence so the caller can log
    or surface it.
    """

    message: str
    sha: str | None = None


@dataclass(frozen=True)
class RebaseSequence:
    """Ordered rebase steps (todo, stop, done) plus the onto marker."""

    steps: tuple[RebaseStep, ...] = ()
    onto: RebaseOnto | None = None
    diagnostics: tuple[ReconstructionAmbiguity, ...] = ()

    @property
    def stop(self) -> RebaseStep | None:
        return next((s for s in self.steps if s.state == "stop"), None)


# ============================================================================
# Diffs
# ============================================================================


@dataclass(frozen=True)
class HunkLine:
    """One content line of a hunk, tagged by its diff prefix."""

    kind: HunkLineKind
    text: str


@dataclass(frozen=True)
class Hunk:
    """A unified-diff region.

    Attributes:
        header: The ``@@ -a,b +c,d @@`` line as emitted by git.
        old_start: First line in the old file.
        old_count: Line count in the old file.
        new_start: First line in the new file.
        new_count: Line count in the new file.
        lines: Content lines in diff order.
        path: File the hunk belongs to, when known (multi-file diffs).
    """

    header: str
    old_start: int = 0
    old_count: int = 0
    new_start: int = 0
    new_count: int = 0
    lines: tuple[HunkLine, ...] = ()
    path: str | None = None


# ============================================================================
# Snapshot
# ============================================================================


@dataclass(frozen=True)
class Snapshot:
    """Everything one refresh learned about the repository.

    Attributes:
        repo_root: Working tree root.
        branch: Branch and upstream information.
        untracked: Untracked files.
        unstaged: Files with worktree changes.
        staged: Files with index changes.
        conflicted: Unmerged paths.
        stashes: Stash list, newest first.
        submodules: Submodules in ``git submodule status`` order.
        worktrees: Worktree list, main worktree first.
        recent: Recent commits on HEAD.
        unpushed: Commits on HEAD not on upstream.
        unpulled: Commits on upstream not on HEAD.
        unpushed_push: Commits on HEAD not on the push destination.
        unpulled_push: Commits on the push destination not on HEAD.
        sequencer: On-disk sequencer state.
        rebase: Reconstructed rebase sequence when a rebase is active.
        pull_request: Pull request for the current branch, if known.
        diffs: Parsed hunks keyed by entry key, for entries that were
            expanded when the refresh started.
        failures: Isolated sub-fetch failures.
    """

    repo_root: Path
    branch: BranchInfo = field(default_factory=BranchInfo)
    untracked: tuple[FileChange, ...] = ()
    unstaged: tuple[FileChange, ...] = ()
    staged: tuple[FileChange, ...] = ()
    conflicted: tuple[FileChange, ...] = ()
    stashes: tuple[StashInfo, ...] = ()
    submodules: tuple[SubmoduleInfo, ...] = ()
    worktrees: tuple[WorktreeInfo, ...] = ()
    recent: tuple[CommitInfo, ...] = ()
    unpushed: tuple[CommitInfo, ...] = ()
    unpulled: tuple[CommitInfo, ...] = ()
    unpushed_push: tuple[CommitInfo, ...] = ()
    unpulled_push: tuple[CommitInfo, ...] = ()
    sequencer: SequencerState = field(default_factory=SequencerState)
    rebase: RebaseSequence | None = None
    pull_request: PullRequestInfo | None = None
    diffs: dict[EntryKey, tuple[Hunk, ...]] = field(default_factory=dict)
    failures: tuple[CommandFailure, ...] = ()

    def has_file_changes(self) -> bool:
        return bool(self.untracked or self.unstaged or self.staged or self.conflicted)


# ============================================================================
# Document tree
# ============================================================================


@dataclass
class Entry:
    """One line-level item inside a section.

    Attributes:
        key: Stable key, ``"<section>:<identifier>"``.
        kind: What the entry stands for.
        section: Owning section.
        label: Display text after the status column.
        status: Display status code (file status letter, worktree mark, ...).
        payload: The repository fact the entry was built from.
        hunks: Parsed hunks, or None when not loaded.
    """

    key: EntryKey
    kind: EntryKind
    section: SectionKind
    label: str
    status: str = ""
    payload: Any = None
    hunks: tuple[Hunk, ...] | None = None

    @property
    def diffable(self) -> bool:
        """True if the entry can be expanded to show diff hunks.

        Untracked directories (``d/``) have no diff of their own.
        """
        if self.kind == EntryKind.FILE and getattr(self.payload, "path", "").endswith("/"):
            return False
        return self.kind.is_diffable


@dataclass
class Section:
    """A titled group of entries, rebuilt on every merge."""

    kind: SectionKind
    title: str
    entries: list[Entry] = field(default_factory=list)

    @property
    def key(self) -> str:
        return self.kind.value


@dataclass(frozen=True)
class LineInfo:
    """Semantic meaning of one rendered line.

    Attributes:
        type: Line type.
        key: Section key for section lines, entry key for entry and hunk
            lines, None for header and blank lines.
        section: Owning section for section, entry and hunk lines.
        hunk_index: Zero-based hunk index for hunk header and content lines.
    """

    type: LineType
    key: str | None = None
    section: SectionKind | None = None
    hunk_index: int | None = None


@dataclass(frozen=True)
class CursorTarget:
    """Where the host should place the cursor after a re-render."""

    key: str
    hunk_index: int | None = None


@dataclass(frozen=True)
class RenderedDocument:
    """Output of a render pass.

    Attributes:
        lines: Text lines in display order.
        line_map: Parallel tuple describing each line.
        decorations: Hints per line index.
    """

    lines: tuple[str, ...]
    line_map: tuple[LineInfo, ...]
    decorations: dict[int, tuple[Decoration, ...]] = field(default_factory=dict)

    def find_line(self, target: CursorTarget) -> int | None:
        """Map a cursor target back to a line index.

        Args:
            target: Key (and optional hunk index) to look for.

        Returns:
            First matching line index, or None if the target is not rendered.
        """
        for index, info in enumerate(self.line_map):
            if info.key != target.key:
                continue
            if target.hunk_index is None and info.type in (LineType.SECTION, LineType.ENTRY):
                return index
            if target.hunk_index is not None and info.type == LineType.HUNK_HEADER:
                if info.hunk_index == target.hunk_index:
                    return index
        return None
