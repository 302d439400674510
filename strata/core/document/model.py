"""Status document model.

Holds the tree of sections, entries and hunks built from the latest
snapshot, together with the VisibilityState that survives refreshes.
"""

import logging
from pathlib import Path

from strata.core.document.visibility import VisibilityState
from strata.domain.config import StatusConfig
from strata.domain.entities import (
    CommitInfo,
    Entry,
    EntryKey,
    EntryKind,
    ExpansionMode,
    FileChange,
    RebaseSequence,
    Section,
    SectionKind,
    Snapshot,
    abbreviate,
    entry_key,
)

logger = logging.getLogger(__name__)

_FILE_TITLES = {
    SectionKind.UNTRACKED: "Untracked",
    SectionKind.UNSTAGED: "Unstaged",
    SectionKind.STAGED: "Staged",
    SectionKind.CONFLICTED: "Conflicted",
}


class StatusModel:
    """Sections built from a snapshot, plus persistent visibility state.

    Args:
        config: Section layout configuration.
        visibility: Initial visibility state; defaults to the configured
            visibility level with no overrides.
    """

    def __init__(self, config: StatusConfig, visibility: VisibilityState | None = None) -> None:
        self.config = config
        self.visibility = visibility or VisibilityState(global_level=config.visibility_level)
        self.snapshot: Snapshot | None = None
        self.sections: list[Section] = []
        self._entries: dict[EntryKey, Entry] = {}

    def merge(self, snapshot: Snapshot) -> None:
        """Rebuild the tree from a new snapshot, keeping visibility by key.

        Hunks are taken only from the new snapshot; hunks of the previous
        tree are never carried over. Entry overrides whose key vanished are
        garbage-collected.

        Args:
            snapshot: Freshly built snapshot.
        """
        self.snapshot = snapshot
        self.sections = build_sections(snapshot, self.config)
        self._entries = {
            entry.key: entry for section in self.sections for entry in section.entries
        }
        for key, hunks in snapshot.diffs.items():
            entry = self._entries.get(key)
            if entry is not None and entry.diffable:
                entry.hunks = hunks
        self.visibility.collect_garbage(set(self._entries))
        logger.debug(
            "Merged snapshot: %d section(s), %d entr(ies)",
            len(self.sections),
            len(self._entries),
        )

    def section(self, kind: SectionKind) -> Section | None:
        return next((s for s in self.sections if s.kind == kind), None)

    def section_by_key(self, key: str) -> Section | None:
        """Find a section by its key (the section kind's value)."""
        return next((s for s in self.sections if s.key == key), None)

    def entry(self, key: EntryKey) -> Entry | None:
        return self._entries.get(key)

    def entry_keys(self) -> set[EntryKey]:
        return set(self._entries)

    def wants_hunks(self, entry: Entry) -> bool:
        """Whether an entry's hunks would be visible under current state.

        Works for entries of a snapshot that has not been merged yet, which
        is how the builder decides what to diff before the merge.
        """
        if not entry.diffable or self.visibility.section_collapsed(entry.section):
            return False
        return self.visibility.entry_mode(entry.key) != ExpansionMode.COLLAPSED

    def entries_missing_hunks(self) -> list[Entry]:
        """Visible expanded entries whose hunks have not been loaded."""
        return [
            entry
            for entry in self._entries.values()
            if entry.hunks is None and self.wants_hunks(entry)
        ]


def build_sections(snapshot: Snapshot, config: StatusConfig) -> list[Section]:
    """Turn a snapshot into sections, in configured order.

    Every configured section is returned, including empty ones; whether an
    empty section is drawn is the renderer's decision.

    Args:
        snapshot: Repository facts.
        config: Section layout configuration.

    Returns:
        Sections in configured order.
    """
    sections = []
    for spec in config.sections:
        kind = spec.kind
        if kind in _FILE_TITLES:
            changes = getattr(snapshot, kind.value)
            section = Section(kind, _FILE_TITLES[kind], [_file_entry(kind, c) for c in changes])
        elif kind == SectionKind.STASHES:
            section = Section(
                kind,
                "Stashes",
                [
                    Entry(
                        key=entry_key(kind, stash.ref),
                        kind=EntryKind.STASH,
                        section=kind,
                        label=f"{stash.ref} {stash.message}",
                        payload=stash,
                    )
                    for stash in snapshot.stashes
                ],
            )
        elif kind == SectionKind.SUBMODULES:
            section = Section(kind, "Submodules", _submodule_entries(snapshot))
        elif kind == SectionKind.WORKTREES:
            section = Section(kind, "Worktrees", _worktree_entries(snapshot))
        elif kind == SectionKind.REBASE:
            section = _rebase_section(snapshot)
        else:
            title, commits = _commit_section(kind, snapshot)
            if spec.count:
                commits = commits[: spec.count]
            section = Section(kind, title, _commit_entries(kind, commits))
        sections.append(section)
    return sections


def _commit_section(
    kind: SectionKind, snapshot: Snapshot
) -> tuple[str, tuple[CommitInfo, ...]]:
    upstream = snapshot.branch.upstream or "upstream"
    push = snapshot.branch.push or "push remote"
    if kind == SectionKind.UNPUSHED_PUSH:
        return f"Unpushed to {push}", snapshot.unpushed_push
    if kind == SectionKind.UNPUSHED:
        return f"Unmerged into {upstream}", snapshot.unpushed
    if kind == SectionKind.UNPULLED_PUSH:
        return f"Unpulled from {push}", snapshot.unpulled_push
    if kind == SectionKind.UNPULLED:
        return f"Unpulled from {upstream}", snapshot.unpulled
    return "Recent commits", snapshot.recent


def _file_entry(kind: SectionKind, change: FileChange) -> Entry:
    if kind == SectionKind.UNSTAGED:
        status, label = change.worktree_status, change.path
    elif kind == SectionKind.STAGED:
        status = change.index_status
        label = f"{change.orig_path} -> {change.path}" if change.orig_path else change.path
    else:
        status, label = "", change.path
    return Entry(
        key=entry_key(kind, change.path),
        kind=EntryKind.FILE,
        section=kind,
        label=label,
        status=status,
        payload=change,
    )


def _commit_entries(kind: SectionKind, commits: tuple[CommitInfo, ...]) -> list[Entry]:
    return [
        Entry(
            key=entry_key(kind, commit.sha),
            kind=EntryKind.COMMIT,
            section=kind,
            label=f"{commit.abbrev} {commit.subject}",
            payload=commit,
        )
        for commit in commits
    ]


def _submodule_entries(snapshot: Snapshot) -> list[Entry]:
    kind = SectionKind.SUBMODULES
    return [
        Entry(
            key=entry_key(kind, submodule.path),
            kind=EntryKind.SUBMODULE,
            section=kind,
            label=f"{submodule.path} ({submodule.describe or abbreviate(submodule.sha)})",
            status=submodule.marker,
            payload=submodule,
        )
        for submodule in snapshot.submodules
    ]


def _worktree_entries(snapshot: Snapshot) -> list[Entry]:
    kind = SectionKind.WORKTREES
    width = max((len(w.branch or "(detached)") for w in snapshot.worktrees), default=0)
    current_root = _normalize(snapshot.repo_root)
    entries = []
    for worktree in snapshot.worktrees:
        branch = worktree.branch or ("(bare)" if worktree.bare else "(detached)")
        path = worktree.path.rstrip("/") + "/"
        if _normalize(Path(worktree.path)) == current_root:
            status = "*"
        elif worktree.locked:
            status = "L"
        else:
            status = ""
        entries.append(
            Entry(
                key=entry_key(kind, worktree.path),
                kind=EntryKind.WORKTREE,
                section=kind,
                label=f"{branch:<{width}}  {path}",
                status=status,
                payload=worktree,
            )
        )
    return entries


def _rebase_section(snapshot: Snapshot) -> Section:
    kind = SectionKind.REBASE
    sequence = snapshot.rebase or RebaseSequence()
    entries = [
        Entry(
            key=entry_key(kind, step.sha),
            kind=EntryKind.REBASE_STEP,
            section=kind,
            label=" ".join(part for part in (step.verb, step.abbrev, step.subject) if part),
            status=step.state,
            payload=step,
        )
        for step in sequence.steps
    ]
    onto = sequence.onto
    if onto is not None:
        entries.append(
            Entry(
                key=entry_key(kind, "onto"),
                kind=EntryKind.ONTO,
                section=kind,
                label=" ".join(
                    part for part in ("onto", onto.abbrev, onto.name or onto.subject) if part
                ),
                payload=onto,
            )
        )

    branch = snapshot.sequencer.rebase_head_name or snapshot.branch.head
    title = f"Rebasing {branch}"
    if onto is not None:
        title += f" onto {onto.name or onto.abbrev}"
    return Section(kind, title, entries)


def _normalize(path: Path) -> str:
    try:
        return str(path.resolve()).rstrip("/")
    except OSError:
        return str(path).rstrip("/")
