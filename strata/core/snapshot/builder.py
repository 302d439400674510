"""Repository snapshot builder.

Runs the fixed set of git commands that describe a repository's state and
parses their output into a Snapshot. The primary status command decides
whether a refresh succeeds at all; every other sub-fetch is isolated, so a
failing worktree or stash listing only empties its own section.
"""

import asyncio
import dataclasses
import logging
from collections.abc import Awaitable, Callable, Iterable
from pathlib import Path
from typing import TypeVar

from strata.core.document.model import build_sections
from strata.core.rebase.reconstructor import reconstruct_sequence
from strata.core.snapshot.parsers import (
    LOG_FORMAT,
    RECORD_SEPARATOR,
    STASH_FORMAT,
    parse_log_records,
    parse_stash_list,
    parse_status_v2,
    parse_submodule_status,
    parse_unified_diff,
    parse_worktree_list,
)
from strata.core.snapshot.sequencer import SequencerReader
from strata.domain.config import StrataConfig
from strata.domain.entities import (
    BranchInfo,
    CommitInfo,
    Entry,
    EntryKey,
    EntryKind,
    Hunk,
    PullRequestInfo,
    RebaseOnto,
    RebaseSequence,
    SectionKind,
    SequencerOperation,
    SequencerState,
    Snapshot,
    StashInfo,
    SubmoduleInfo,
    WorktreeInfo,
    abbreviate,
)
from strata.domain.exceptions import CommandFailure, RefreshError
from strata.ports.forge import PullRequestSource
from strata.ports.fs import FileSystem
from strata.ports.runner import CommandResult, CommandRunner

logger = logging.getLogger(__name__)

T = TypeVar("T")

STATUS_ARGS = ["status", "--porcelain=v2", "--branch", "--untracked-files=normal"]


@dataclasses.dataclass(frozen=True)
class _PushTarget:
    """Push destination of the current branch and the commits between."""

    ref: str | None = None
    subject: str | None = None
    unpushed: tuple[CommitInfo, ...] = ()
    unpulled: tuple[CommitInfo, ...] = ()


_NO_PUSH = _PushTarget()


class SnapshotBuilder:
    """Builds Snapshots for one repository.

    Args:
        runner: Runs git commands.
        fs: Reads sequencer files.
        repo_root: Working tree root.
        config: strata configuration.
        pr_source: Optional pull request lookup.
    """

    def __init__(
        self,
        runner: CommandRunner,
        fs: FileSystem,
        repo_root: Path,
        config: StrataConfig,
        pr_source: PullRequestSource | None = None,
    ) -> None:
        self.runner = runner
        self.repo_root = repo_root
        self.config = config
        self.pr_source = pr_source
        self._sequencer = SequencerReader(fs)
        self._git_dir: Path | None = None

    async def git_dir(self) -> Path:
        """Absolute git directory, resolved once and cached.

        Raises:
            RefreshError: If git cannot report the git directory.
        """
        if self._git_dir is None:
            result = await self._run_primary(["rev-parse", "--absolute-git-dir"])
            if not result.stdout or not result.stdout[0].strip():
                raise RefreshError("git rev-parse returned no git directory")
            self._git_dir = Path(result.stdout[0].strip())
        return self._git_dir

    async def build(self, wants_hunks: Callable[[Entry], bool] | None = None) -> Snapshot:
        """Gather a complete snapshot.

        Args:
            wants_hunks: Predicate selecting entries whose diffs should be
                fetched in this refresh (usually the expanded ones).

        Returns:
            Snapshot with all facts and any isolated failures.

        Raises:
            RefreshError: If the primary status command fails.
        """
        status_result, git_dir = await asyncio.gather(
            self._run_primary(STATUS_ARGS), self.git_dir()
        )
        status = parse_status_v2(status_result.stdout)
        branch = status.branch
        failures: list[CommandFailure] = []

        wants_submodules = self.config.status.spec_for(SectionKind.SUBMODULES) is not None
        (
            head_subject,
            upstream_subject,
            recent,
            unpushed,
            unpulled,
            push,
            stashes,
            submodules,
            worktrees,
            (sequencer, rebase),
            pull_request,
        ) = await asyncio.gather(
            self._isolated(failures, self._subject("HEAD") if branch.oid else None, None),
            self._isolated(
                failures, self._subject("@{upstream}") if branch.upstream else None, None
            ),
            self._isolated(failures, self._recent() if branch.oid else None, ()),
            self._isolated(
                failures,
                self._log_range("@{upstream}..HEAD") if branch.upstream and branch.oid else None,
                (),
            ),
            self._isolated(
                failures,
                self._log_range("HEAD..@{upstream}") if branch.upstream else None,
                (),
            ),
            self._isolated(failures, self._push_target(failures, branch), _NO_PUSH),
            self._isolated(failures, self._stashes(), ()),
            self._isolated(failures, self._submodules() if wants_submodules else None, ()),
            self._isolated(failures, self._worktrees(), ()),
            self._isolated(
                failures, self._sequencer_state(failures, git_dir), (SequencerState(), None)
            ),
            self._pull_request(failures, branch),
        )

        snapshot = Snapshot(
            repo_root=self.repo_root,
            branch=dataclasses.replace(
                branch,
                head_subject=head_subject,
                upstream_subject=upstream_subject,
                push=push.ref,
                push_subject=push.subject,
                push_ahead=len(push.unpushed),
                push_behind=len(push.unpulled),
            ),
            untracked=tuple(status.untracked),
            unstaged=tuple(status.unstaged),
            staged=tuple(status.staged),
            conflicted=tuple(status.conflicted),
            stashes=stashes,
            submodules=submodules,
            worktrees=worktrees,
            recent=recent,
            unpushed=unpushed,
            unpulled=unpulled,
            unpushed_push=push.unpushed,
            unpulled_push=push.unpulled,
            sequencer=sequencer,
            rebase=rebase,
            pull_request=pull_request,
        )

        diffs: dict[EntryKey, tuple[Hunk, ...]] = {}
        if wants_hunks is not None:
            wanted = [
                entry
                for section in build_sections(snapshot, self.config.status)
                for entry in section.entries
                if wants_hunks(entry)
            ]
            diffs = await self.load_hunks(wanted, failures)

        for failure in failures:
            logger.warning("Sub-fetch failed: %s", failure.message)
        return dataclasses.replace(snapshot, diffs=diffs, failures=tuple(failures))

    async def load_hunks(
        self,
        entries: Iterable[Entry],
        failures: list[CommandFailure] | None = None,
    ) -> dict[EntryKey, tuple[Hunk, ...]]:
        """Fetch and parse diffs for the given entries concurrently.

        Entries whose diff command fails are left out of the result.

        Args:
            entries: Diffable entries.
            failures: List collecting isolated failures, if the caller
                wants them.

        Returns:
            Parsed hunks keyed by entry key.
        """
        sink = failures if failures is not None else []
        targets = [entry for entry in entries if entry.diffable]
        results = await asyncio.gather(
            *(self._isolated(sink, self._diff(entry), None) for entry in targets)
        )
        if failures is None:
            for failure in sink:
                logger.warning("Diff fetch failed: %s", failure.message)
        return {
            entry.key: hunks
            for entry, hunks in zip(targets, results, strict=True)
            if hunks is not None
        }

    # ------------------------------------------------------------------
    # Command plumbing
    # ------------------------------------------------------------------

    async def _run(self, args: list[str], accept: tuple[int, ...] = (0,)) -> CommandResult:
        """Run git, raising CommandFailure for unexpected exit codes."""
        try:
            result = await self.runner.run(args, self.repo_root)
        except (OSError, TimeoutError) as e:
            raise CommandFailure(args, None, message=f"git {' '.join(args)}: {e}") from e
        logger.debug(
            "git %s finished in %.1fms (exit %d)", " ".join(args), result.duration_ms, result.code
        )
        if result.code not in accept:
            raise CommandFailure(args, result.code, result.stderr)
        return result

    async def _run_primary(self, args: list[str]) -> CommandResult:
        try:
            return await self._run(args)
        except CommandFailure as e:
            raise RefreshError(
                f"Could not read repository status: {e.message}",
                hint="Check that the directory is a git working tree and git is on PATH",
            ) from e

    async def _isolated(
        self,
        failures: list[CommandFailure],
        work: Awaitable[T] | None,
        default: T,
    ) -> T:
        """Await a sub-fetch, recording a CommandFailure instead of raising."""
        if work is None:
            return default
        try:
            return await work
        except CommandFailure as e:
            failures.append(e)
            return default

    # ------------------------------------------------------------------
    # Sub-fetches
    # ------------------------------------------------------------------

    async def _subject(self, rev: str) -> str | None:
        result = await self._run(["log", "-1", "--format=%s", rev, "--"])
        return result.stdout[0] if result.stdout else None

    async def _recent(self) -> tuple[CommitInfo, ...]:
        count = self.config.status.recent_count
        result = await self._run(["log", f"-{count}", f"--format={LOG_FORMAT}", "HEAD", "--"])
        return tuple(parse_log_records(result.stdout))

    async def _log_range(self, revision_range: str) -> tuple[CommitInfo, ...]:
        result = await self._run(["log", f"--format={LOG_FORMAT}", revision_range, "--"])
        return tuple(parse_log_records(result.stdout))

    async def _push_target(
        self, failures: list[CommandFailure], branch: BranchInfo
    ) -> _PushTarget:
        """Resolve ``@{push}`` and list commits between it and HEAD.

        Returns _NO_PUSH when the branch has no push destination, when the
        remote branch does not exist yet, or when it is the upstream (the
        Merge line and upstream sections already cover it).
        """
        if branch.detached or not branch.oid:
            return _NO_PUSH
        # Exit 128 means no push destination is configured or it does not exist
        result = await self._run(["rev-parse", "--abbrev-ref", "@{push}"], accept=(0, 128))
        ref = result.stdout[0].strip() if result.code == 0 and result.stdout else ""
        if not ref or ref == branch.upstream:
            return _NO_PUSH

        subject, unpushed, unpulled = await asyncio.gather(
            self._isolated(failures, self._subject("@{push}"), None),
            self._isolated(failures, self._log_range("@{push}..HEAD"), ()),
            self._isolated(failures, self._log_range("HEAD..@{push}"), ()),
        )
        return _PushTarget(ref=ref, subject=subject, unpushed=unpushed, unpulled=unpulled)

    async def _stashes(self) -> tuple[StashInfo, ...]:
        limit = self.config.refresh.max_stashes
        result = await self._run(
            ["stash", "list", f"--max-count={limit}", f"--format={STASH_FORMAT}"]
        )
        return tuple(parse_stash_list(result.stdout))

    async def _submodules(self) -> tuple[SubmoduleInfo, ...]:
        result = await self._run(["submodule", "status"])
        return tuple(parse_submodule_status(result.stdout))

    async def _worktrees(self) -> tuple[WorktreeInfo, ...]:
        result = await self._run(["worktree", "list", "--porcelain"])
        return tuple(parse_worktree_list(result.stdout))

    async def _sequencer_state(
        self, failures: list[CommandFailure], git_dir: Path
    ) -> tuple[SequencerState, RebaseSequence | None]:
        state = self._sequencer.read(git_dir)
        if state.operation is None:
            return state, None

        if state.head_oid:
            # A missing subject only shortens the header line
            subject = await self._isolated(failures, self._subject(state.head_oid), None)
            state = dataclasses.replace(state, head_subject=subject)

        rebase = None
        if state.operation == SequencerOperation.REBASE:
            rebase = await self._rebase_sequence(state)
        return state, rebase

    async def _rebase_sequence(self, state: SequencerState) -> RebaseSequence:
        onto_sha = state.rebase_onto
        stopped = state.rebase_stopped_sha

        async def onto_info() -> RebaseOnto | None:
            if not onto_sha:
                return None
            log_result, name_result = await asyncio.gather(
                self._run(["log", "-1", f"--format=%h{RECORD_SEPARATOR}%s", onto_sha, "--"]),
                self._run(["name-rev", "--name-only", "--no-undefined", onto_sha], accept=(0, 128)),
            )
            abbrev, _, subject = (log_result.stdout or [""])[0].partition(RECORD_SEPARATOR)
            name = None
            if name_result.code == 0 and name_result.stdout:
                name = name_result.stdout[0].strip().removeprefix("remotes/") or None
            return RebaseOnto(
                sha=onto_sha,
                abbrev=abbrev or abbreviate(onto_sha),
                name=name,
                subject=subject or None,
            )

        async def stopped_info() -> tuple[CommitInfo, ...]:
            if not stopped:
                return ()
            result = await self._run(["log", "-1", f"--format={LOG_FORMAT}", stopped, "--"])
            return tuple(parse_log_records(result.stdout))

        failures: list[CommandFailure] = []
        onto, known = await asyncio.gather(
            self._isolated(failures, onto_info(), None),
            self._isolated(failures, stopped_info(), ()),
        )
        if onto is None and onto_sha:
            onto = RebaseOnto(sha=onto_sha, abbrev=abbreviate(onto_sha))
        for failure in failures:
            logger.warning("Rebase detail lookup failed: %s", failure.message)

        return reconstruct_sequence(
            state.rebase_todo, state.rebase_done, stopped, onto, known_commits=known
        )

    async def _pull_request(
        self, failures: list[CommandFailure], branch: BranchInfo
    ) -> PullRequestInfo | None:
        if self.pr_source is None or not self.config.forge.show_pr_in_status:
            return None
        if branch.detached:
            return None
        try:
            return await self.pr_source.lookup(self.repo_root, branch)
        except (KeyboardInterrupt, SystemExit):
            raise
        except Exception as e:
            failures.append(
                CommandFailure(["<pull-request>"], None, message=f"Pull request lookup failed: {e}")
            )
            return None

    def _diff(self, entry: Entry) -> Awaitable[tuple[Hunk, ...]]:
        args, accept = diff_command(entry)

        async def fetch() -> tuple[Hunk, ...]:
            result = await self._run(args, accept=accept)
            return parse_unified_diff(result.stdout)

        return fetch()


def diff_command(entry: Entry) -> tuple[list[str], tuple[int, ...]]:
    """Git arguments that produce the diff for an entry.

    Args:
        entry: Diffable entry.

    Returns:
        Tuple of (arguments, accepted exit codes).

    Raises:
        ValueError: If the entry has no diff.
    """
    if not entry.diffable:
        raise ValueError(f"Entry {entry.key} has no diff")
    common = ["--no-color", "--no-ext-diff"]
    if entry.kind == EntryKind.FILE:
        path = entry.payload.path
        if entry.section == SectionKind.STAGED:
            return ["diff", "--cached", *common, "--", path], (0,)
        if entry.section == SectionKind.UNTRACKED:
            # --no-index exits 1 when the files differ, which they always do
            return ["diff", "--no-index", *common, "--", "/dev/null", path], (0, 1)
        return ["diff", *common, "--", path], (0,)
    if entry.kind == EntryKind.STASH:
        return ["stash", "show", "-p", *common, entry.payload.ref], (0,)
    return ["show", "--format=", *common, entry.payload.sha], (0,)
