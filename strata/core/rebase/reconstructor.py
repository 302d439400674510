"""Rebase sequence reconstruction.

Turns the raw sequencer artifacts of an interactive rebase into the ordered
list the status document shows, top to bottom:

    pick D  (todo, furthest in the future)
    pick C  (todo, next to apply)
    stop B  (where the rebase halted)
    done A  (already applied, in recorded order)
    onto X

git's todo file lists the next step first, so it is reversed for display.
The stopped commit is usually also the last line of the done file, since git
records the attempt before halting; that duplicate is dropped so the commit
is shown once, as the stop.
"""

import logging
from collections.abc import Iterable, Sequence

from strata.core.rebase.todo import TodoItem, parse_todo
from strata.domain.entities import (
    CommitInfo,
    RebaseOnto,
    RebaseSequence,
    RebaseStep,
    ReconstructionAmbiguity,
    abbreviate,
    same_commit,
)

logger = logging.getLogger(__name__)


class RebaseSequenceReconstructor:
    """Builds a RebaseSequence from sequencer file contents.

    Stateless; ``reconstruct`` is a pure function of its arguments, so running
    it twice over unchanged files yields an identical sequence.

    Args:
        known_commits: Commits whose abbreviations and subjects may be used
            to fill in steps whose todo line lacks them.
    """

    def __init__(self, known_commits: Iterable[CommitInfo] = ()) -> None:
        self._known = tuple(known_commits)

    def reconstruct(
        self,
        todo_lines: Sequence[str],
        done_lines: Sequence[str],
        stopped_sha: str | None,
        onto: RebaseOnto | None,
    ) -> RebaseSequence:
        """Reconstruct the display order of an in-progress rebase.

        Args:
            todo_lines: Lines of git-rebase-todo (next step first).
            done_lines: Lines of the done file (earliest first).
            stopped_sha: Commit the rebase stopped on, if any.
            onto: Base the branch is replayed onto.

        Returns:
            RebaseSequence with todo steps (reversed), the stop step (0 or 1)
            and done steps, plus any diagnostics. Never raises on
            inconsistent input.
        """
        todo_items = parse_todo(todo_lines)
        done_items = parse_todo(done_lines)
        diagnostics: list[ReconstructionAmbiguity] = []

        stop_step: RebaseStep | None = None
        stopped = (stopped_sha or "").strip() or None
        if stopped is not None:
            stop_step, diagnostic = self._stop_step(stopped, todo_items, done_items)
            if diagnostic is not None:
                logger.warning("Rebase sequence: %s", diagnostic.message)
                diagnostics.append(diagnostic)
                stopped = None

        todo_steps = [
            self._step("todo", item)
            for item in reversed(todo_items)
            if stopped is None or not same_commit(item.sha, stopped)
        ]

        done_steps = [
            self._step("done", item)
            for item in _drop_stop_from_done(done_items, stopped)
        ]

        ordered = todo_steps + ([stop_step] if stop_step else []) + done_steps
        return RebaseSequence(
            steps=tuple(_unique(ordered)),
            onto=onto,
            diagnostics=tuple(diagnostics),
        )

    def _stop_step(
        self,
        stopped: str,
        todo_items: list[TodoItem],
        done_items: list[TodoItem],
    ) -> tuple[RebaseStep | None, ReconstructionAmbiguity | None]:
        """Build the stop step, or explain why it cannot be placed."""
        # Prefer the done record: it carries the verb git was executing.
        for item in reversed(done_items):
            if same_commit(item.sha, stopped):
                return self._step("stop", item, sha=stopped), None
        for item in todo_items:
            if same_commit(item.sha, stopped):
                return self._step("stop", item, sha=stopped), None

        if not done_items:
            # git has not recorded the attempt yet; stopped-sha alone is enough
            return self._step("stop", TodoItem(action="pick", sha=stopped), sha=stopped), None

        return None, ReconstructionAmbiguity(
            message=(
                f"stopped commit {abbreviate(stopped)} is in neither the todo "
                "nor the done list; omitting the stop marker"
            ),
            sha=stopped,
        )

    def _step(self, state: str, item: TodoItem, sha: str | None = None) -> RebaseStep:
        sha = sha or item.sha
        known = self._lookup(sha)
        subject = item.subject or (known.subject if known else "")
        abbrev = known.abbrev if known else abbreviate(sha)
        return RebaseStep(
            state=state,  # type: ignore[arg-type]
            sha=sha,
            abbrev=abbrev,
            subject=subject,
            action=item.action,
        )

    def _lookup(self, sha: str) -> CommitInfo | None:
        return next((c for c in self._known if same_commit(c.sha, sha)), None)


def _drop_stop_from_done(done_items: list[TodoItem], stopped: str | None) -> list[TodoItem]:
    """Remove the stopped commit from the done list.

    git leaves it at the tail; an occurrence anywhere else is removed too,
    since a stopped commit is never also shown as done.
    """
    if stopped is None:
        return list(done_items)
    return [item for item in done_items if not same_commit(item.sha, stopped)]


def _unique(steps: list[RebaseStep]) -> list[RebaseStep]:
    """Drop later steps whose commit already appeared."""
    seen: list[str] = []
    unique = []
    for step in steps:
        if any(same_commit(step.sha, s) for s in seen):
            logger.debug("Dropping duplicate rebase step %s (%s)", step.abbrev, step.state)
            continue
        seen.append(step.sha)
        unique.append(step)
    return unique


def reconstruct_sequence(
    todo_lines: Sequence[str],
    done_lines: Sequence[str],
    stopped_sha: str | None,
    onto: RebaseOnto | None,
    known_commits: Iterable[CommitInfo] = (),
) -> RebaseSequence:
    """Convenience wrapper around RebaseSequenceReconstructor.reconstruct."""
    return RebaseSequenceReconstructor(known_commits).reconstruct(
        todo_lines, done_lines, stopped_sha, onto
    )
