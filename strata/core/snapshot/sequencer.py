"""Detection of in-progress sequencer operations.

git keeps its bookkeeping for cherry-pick, revert, rebase, merge and am as
plain files under the git directory. This module reads them through the
FileSystem port; it never runs git.
"""

import logging
from pathlib import Path

from strata.domain.entities import SequencerOperation, SequencerState
from strata.ports.fs import FileSystem

logger = logging.getLogger(__name__)


class SequencerReader:
    """Reads sequencer state from a git directory.

    Args:
        fs: File system used to read sequencer artifacts.
    """

    def __init__(self, fs: FileSystem) -> None:
        self._fs = fs

    def read(self, git_dir: Path) -> SequencerState:
        """Detect which operation, if any, is in progress.

        Checked in the order cherry-pick, revert, rebase, merge, am. Only the
        first match is reported.

        Args:
            git_dir: Absolute path of the repository's git directory.

        Returns:
            SequencerState; ``operation`` is None when the repository is idle.
        """
        cherry_pick = self._first_line(git_dir / "CHERRY_PICK_HEAD")
        if cherry_pick:
            return SequencerState(operation=SequencerOperation.CHERRY_PICK, head_oid=cherry_pick)

        revert = self._first_line(git_dir / "REVERT_HEAD")
        if revert:
            return SequencerState(operation=SequencerOperation.REVERT, head_oid=revert)

        rebase_merge = git_dir / "rebase-merge"
        if self._fs.exists(rebase_merge):
            return self._read_rebase_merge(rebase_merge)

        rebase_apply = git_dir / "rebase-apply"
        applying = self._fs.exists(rebase_apply / "applying")
        if self._fs.exists(rebase_apply) and not applying:
            return SequencerState(
                operation=SequencerOperation.REBASE,
                rebase_onto=self._first_line(rebase_apply / "onto"),
                rebase_head_name=_short_ref(self._first_line(rebase_apply / "head-name")),
            )

        merge = self._first_line(git_dir / "MERGE_HEAD")
        if merge:
            return SequencerState(operation=SequencerOperation.MERGE, head_oid=merge)

        if applying:
            return SequencerState(
                operation=SequencerOperation.AM,
                am_current=_to_int(self._first_line(rebase_apply / "next")),
                am_last=_to_int(self._first_line(rebase_apply / "last")),
            )

        return SequencerState()

    def _read_rebase_merge(self, state_dir: Path) -> SequencerState:
        todo = self._fs.read_text_lines(state_dir / "git-rebase-todo") or []
        done = self._fs.read_text_lines(state_dir / "done") or []
        stopped = self._first_line(state_dir / "stopped-sha")
        onto = self._first_line(state_dir / "onto")
        head_name = _short_ref(self._first_line(state_dir / "head-name"))
        logger.debug(
            "Rebase in progress: %d todo line(s), %d done line(s), stopped=%s",
            len(todo),
            len(done),
            stopped,
        )
        return SequencerState(
            operation=SequencerOperation.REBASE,
            rebase_todo=tuple(todo),
            rebase_done=tuple(done),
            rebase_stopped_sha=stopped,
            rebase_onto=onto,
            rebase_head_name=head_name,
        )

    def _first_line(self, path: Path) -> str | None:
        lines = self._fs.read_text_lines(path)
        if not lines:
            return None
        first = lines[0].strip()
        return first or None


def _short_ref(ref: str | None) -> str | None:
    if ref is None or ref == "detached HEAD":
        return None
    return ref.removeprefix("refs/heads/")


def _to_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None
