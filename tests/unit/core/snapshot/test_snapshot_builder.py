"""Tests for SnapshotBuilder."""

import asyncio
from dataclasses import replace

import pytest

from strata.core.snapshot.builder import SnapshotBuilder, diff_command
from strata.core.snapshot.parsers import LOG_FORMAT, RECORD_SEPARATOR
from strata.domain.config import ForgeConfig, SectionSpec, StatusConfig, StrataConfig
from strata.domain.entities import (
    BranchInfo,
    CommitInfo,
    Entry,
    EntryKind,
    FileChange,
    PullRequestInfo,
    RebaseStep,
    SectionKind,
    SequencerOperation,
    Snapshot,
    StashInfo,
)
from strata.domain.exceptions import RefreshError
from strata.ports.runner import CommandResult
from tests.helpers.fakes import (
    GIT_DIR,
    REPO_ROOT,
    InMemoryFileSystem,
    ScriptedRunner,
    failed,
    ok,
    status_runner,
)

OID = "1" * 40
STOPPED = "b" * 40
ONTO = "0123456789" * 4

BRANCH_LINES = (
    f"# branch.oid {OID}",
    "# branch.head main",
    "# branch.upstream origin/main",
    "# branch.ab +1 -0",
)

DIFF_LINES = [
    "diff --git a/a.py b/a.py",
    "--- a/a.py",
    "+++ b/a.py",
    "@@ -1 +1 @@",
    "-old",
    "+new",
]


def modified(path: str) -> str:
    return f"1 .M N... 100644 100644 100644 {OID} {OID} {path}"


def make_builder(
    runner: ScriptedRunner,
    fs: InMemoryFileSystem | None = None,
    config: StrataConfig | None = None,
    pr_source=None,
) -> SnapshotBuilder:
    return SnapshotBuilder(
        runner,
        fs or InMemoryFileSystem(),
        REPO_ROOT,
        config or StrataConfig.default(),
        pr_source=pr_source,
    )


def build(builder: SnapshotBuilder, wants_hunks=None) -> Snapshot:
    return asyncio.run(builder.build(wants_hunks))


class FakePullRequests:
    """PullRequestSource returning a fixed answer."""

    def __init__(self, answer: PullRequestInfo | Exception | None) -> None:
        self.answer = answer
        self.lookups: list[BranchInfo] = []

    async def lookup(self, repo_root, branch):
        self.lookups.append(branch)
        if isinstance(self.answer, Exception):
            raise self.answer
        return self.answer


class TestBuild:
    """Tests for gathering a full snapshot."""

    def test_files_and_branch(self) -> None:
        """Status output is split into file sections and branch info."""
        runner = status_runner(*BRANCH_LINES, modified("a.py"), "? new.txt")
        runner.respond(("log", "-1", "--format=%s", "HEAD"), ok("Head subject"))
        runner.respond(("log", "-1", "--format=%s", "@{upstream}"), ok("Upstream subject"))

        snapshot = build(make_builder(runner))

        assert snapshot.branch.head == "main"
        assert snapshot.branch.ahead == 1
        assert snapshot.branch.head_subject == "Head subject"
        assert snapshot.branch.upstream_subject == "Upstream subject"
        assert [c.path for c in snapshot.unstaged] == ["a.py"]
        assert [c.path for c in snapshot.untracked] == ["new.txt"]
        assert snapshot.failures == ()
        assert snapshot.diffs == {}

    def test_commit_lists(self) -> None:
        """Recent, unpushed and unpulled commits come from separate log calls."""
        runner = status_runner(*BRANCH_LINES)
        runner.respond(
            ("log", "-10", f"--format={LOG_FORMAT}"),
            ok(f"{OID}{RECORD_SEPARATOR}1111111{RECORD_SEPARATOR}Recent"),
        )
        runner.respond(
            ("log", f"--format={LOG_FORMAT}", "@{upstream}..HEAD"),
            ok(f"{'2' * 40}{RECORD_SEPARATOR}2222222{RECORD_SEPARATOR}Local"),
        )
        runner.respond(
            ("log", f"--format={LOG_FORMAT}", "HEAD..@{upstream}"),
            ok(f"{'3' * 40}{RECORD_SEPARATOR}3333333{RECORD_SEPARATOR}Remote"),
        )

        snapshot = build(make_builder(runner))

        assert [c.subject for c in snapshot.recent] == ["Recent"]
        assert [c.subject for c in snapshot.unpushed] == ["Local"]
        assert [c.subject for c in snapshot.unpulled] == ["Remote"]

    def test_no_upstream_skips_range_logs(self) -> None:
        """Without an upstream no range log is run."""
        runner = status_runner(f"# branch.oid {OID}", "# branch.head main")
        build(make_builder(runner))
        assert not any("@{upstream}..HEAD" in call for call in runner.calls)
        assert not any("HEAD..@{upstream}" in call for call in runner.calls)

    def test_unborn_branch_skips_head_logs(self) -> None:
        """A repository without commits runs no log against HEAD."""
        runner = status_runner("# branch.oid (initial)", "# branch.head main")
        snapshot = build(make_builder(runner))
        assert not runner.called("log")
        assert snapshot.branch.oid is None
        assert snapshot.recent == ()

    def test_stashes_and_worktrees(self) -> None:
        """Stash and worktree listings are parsed."""
        runner = status_runner(*BRANCH_LINES)
        runner.respond(("stash", "list"), ok(f"stash@{{0}}{RECORD_SEPARATOR}WIP on main: abc"))
        runner.respond(
            ("worktree", "list"),
            ok("worktree /repo", f"HEAD {OID}", "branch refs/heads/main", ""),
        )

        snapshot = build(make_builder(runner))

        assert snapshot.stashes == (StashInfo(index=0, ref="stash@{0}", message="WIP on main: abc"),)
        assert [w.branch for w in snapshot.worktrees] == ["main"]

    def test_stash_limit_from_config(self) -> None:
        """The stash listing is capped by refresh.max_stashes."""
        config = StrataConfig.default()
        config = replace(config, refresh=replace(config.refresh, max_stashes=3))
        runner = status_runner(*BRANCH_LINES)
        build(make_builder(runner, config=config))
        assert runner.called("stash", "list", "--max-count=3")


class TestFailureIsolation:
    """Tests for failing sub-fetches and the primary status command."""

    def test_worktree_failure_empties_only_its_section(self) -> None:
        """A failing worktree listing is recorded, not raised."""
        runner = status_runner(*BRANCH_LINES, modified("a.py"))
        runner.respond(("worktree",), failed(128, "fatal: worktree broken"))

        snapshot = build(make_builder(runner))

        assert snapshot.worktrees == ()
        assert [c.path for c in snapshot.unstaged] == ["a.py"]
        assert len(snapshot.failures) == 1
        failure = snapshot.failures[0]
        assert failure.args_list[:2] == ["worktree", "list"]
        assert failure.code == 128
        assert "worktree broken" in failure.message

    def test_runner_exception_is_isolated(self) -> None:
        """An OSError from the runner is recorded like a non-zero exit."""
        runner = status_runner(*BRANCH_LINES)
        runner.respond(("stash",), OSError("cannot spawn"))

        snapshot = build(make_builder(runner))

        assert snapshot.stashes == ()
        assert len(snapshot.failures) == 1
        assert snapshot.failures[0].code is None

    def test_timeout_is_isolated(self) -> None:
        """A timed out sub-fetch is recorded."""
        runner = status_runner(*BRANCH_LINES)
        runner.respond(("worktree",), TimeoutError())
        snapshot = build(make_builder(runner))
        assert len(snapshot.failures) == 1

    def test_status_failure_raises_refresh_error(self) -> None:
        """The primary status command failing fails the whole refresh."""
        runner = status_runner()
        runner.respond(("status",), failed(128, "fatal: not a git repository"))

        with pytest.raises(RefreshError) as exc_info:
            build(make_builder(runner))

        assert "not a git repository" in exc_info.value.message
        assert exc_info.value.hint

    def test_empty_git_dir_raises_refresh_error(self) -> None:
        """rev-parse printing nothing fails the refresh."""
        runner = status_runner()
        runner.respond(("rev-parse", "--absolute-git-dir"), ok())
        with pytest.raises(RefreshError):
            build(make_builder(runner))

    def test_git_dir_cached(self) -> None:
        """The git directory is resolved once per builder."""
        runner = status_runner()
        builder = make_builder(runner)

        build(builder)
        build(builder)

        assert sum(call[:1] == ["rev-parse"] for call in runner.calls) == 1
        assert asyncio.run(builder.git_dir()) == GIT_DIR


class TestDiffs:
    """Tests for diff fetching."""

    def test_only_wanted_entries_are_diffed(self) -> None:
        """wants_hunks selects which entries get a diff in the refresh."""
        runner = status_runner(*BRANCH_LINES, modified("a.py"), modified("b.py"))
        runner.respond(("diff",), ok(*DIFF_LINES))

        snapshot = build(make_builder(runner), lambda entry: entry.key == "unstaged:a.py")

        diff_calls = [call for call in runner.calls if call[0] == "diff"]
        assert len(diff_calls) == 1
        assert diff_calls[0][-1] == "a.py"
        assert set(snapshot.diffs) == {"unstaged:a.py"}
        assert snapshot.diffs["unstaged:a.py"][0].header == "@@ -1 +1 @@"

    def test_untracked_diff_accepts_exit_code_one(self) -> None:
        """git diff --no-index exits 1 for differing files; that is success."""
        runner = status_runner(*BRANCH_LINES, "? new.txt")
        runner.respond(
            ("diff", "--no-index"),
            CommandResult(
                code=1,
                stdout=[
                    "diff --git a/new.txt b/new.txt",
                    "--- /dev/null",
                    "+++ b/new.txt",
                    "@@ -0,0 +1 @@",
                    "+hello",
                ],
            ),
        )

        snapshot = build(make_builder(runner), lambda entry: True)

        assert snapshot.failures == ()
        hunks = snapshot.diffs["untracked:new.txt"]
        assert len(hunks) == 1
        assert hunks[0].lines[0].kind == "add"

    def test_failed_diff_is_left_out(self) -> None:
        """A failing diff is recorded and the entry gets no hunks."""
        runner = status_runner(*BRANCH_LINES, modified("a.py"))
        runner.respond(("diff",), failed(2, "error: bad path"))

        snapshot = build(make_builder(runner), lambda entry: True)

        assert "unstaged:a.py" not in snapshot.diffs
        assert len(snapshot.failures) == 1

    def test_untracked_directory_is_not_diffed(self) -> None:
        """An untracked directory entry never runs git diff --no-index."""
        runner = status_runner(*BRANCH_LINES, "? build/", "? new.txt")
        runner.respond(("diff", "--no-index"), CommandResult(code=1, stdout=DIFF_LINES))

        snapshot = build(make_builder(runner), lambda entry: True)

        diff_calls = [call for call in runner.calls if call[0] == "diff"]
        assert [call[-1] for call in diff_calls] == ["new.txt"]
        assert set(snapshot.diffs) == {"untracked:new.txt"}
        assert snapshot.failures == ()

    def test_load_hunks_skips_undiffable_entries(self) -> None:
        """Entries without a diff are never sent to git."""
        runner = ScriptedRunner({("diff",): ok(*DIFF_LINES)})
        builder = make_builder(runner)
        entries = [
            Entry(
                key="unstaged:a.py",
                kind=EntryKind.FILE,
                section=SectionKind.UNSTAGED,
                label="a.py",
                payload=FileChange("a.py", worktree_status="M"),
            ),
            Entry(
                key="worktrees:/repo",
                kind=EntryKind.WORKTREE,
                section=SectionKind.WORKTREES,
                label="main /repo/",
            ),
        ]

        loaded = asyncio.run(builder.load_hunks(entries))

        assert set(loaded) == {"unstaged:a.py"}
        assert len(runner.calls) == 1


class TestRebase:
    """Tests for in-progress rebase handling."""

    def rebase_fs(self) -> InMemoryFileSystem:
        state_dir = GIT_DIR / "rebase-merge"
        fs = InMemoryFileSystem()
        fs.add(state_dir / "git-rebase-todo", "pick ccccccc C", "pick ddddddd D")
        fs.add(state_dir / "done", "pick bbbbbbb B")
        fs.add(state_dir / "stopped-sha", STOPPED)
        fs.add(state_dir / "onto", ONTO)
        fs.add(state_dir / "head-name", "refs/heads/topic")
        return fs

    def test_sequence_with_onto_and_stop(self) -> None:
        """The rebase sequence is reconstructed and onto is described."""
        runner = status_runner(*BRANCH_LINES)
        runner.respond(
            ("log", "-1", f"--format=%h{RECORD_SEPARATOR}%s", ONTO),
            ok(f"0123456{RECORD_SEPARATOR}Base subject"),
        )
        runner.respond(("name-rev",), ok("remotes/origin/main"))
        runner.respond(
            ("log", "-1", f"--format={LOG_FORMAT}", STOPPED),
            ok(f"{STOPPED}{RECORD_SEPARATOR}bbbbbbb{RECORD_SEPARATOR}Stopped subject"),
        )

        snapshot = build(make_builder(runner, fs=self.rebase_fs()))

        assert snapshot.sequencer.operation == SequencerOperation.REBASE
        rebase = snapshot.rebase
        assert rebase is not None
        assert [(s.state, s.abbrev) for s in rebase.steps] == [
            ("todo", "ddddddd"),
            ("todo", "ccccccc"),
            ("stop", "bbbbbbb"),
        ]
        assert rebase.stop == RebaseStep(
            state="stop", sha=STOPPED, abbrev="bbbbbbb", subject="B", action="pick"
        )
        assert rebase.onto.abbrev == "0123456"
        assert rebase.onto.name == "origin/main"
        assert rebase.onto.subject == "Base subject"

    def test_onto_without_name(self) -> None:
        """name-rev finding no name leaves the onto name empty."""
        runner = status_runner(*BRANCH_LINES)
        runner.respond(("name-rev",), failed(128, "fatal: cannot describe"))

        snapshot = build(make_builder(runner, fs=self.rebase_fs()))

        assert snapshot.rebase.onto.name is None
        assert snapshot.rebase.onto.abbrev == ONTO[:7]
        assert snapshot.failures == ()

    def test_onto_lookup_failure_keeps_sequence(self) -> None:
        """A failing onto log still yields the sequence with a bare onto."""
        runner = status_runner(*BRANCH_LINES)
        runner.respond(("log", "-1", f"--format=%h{RECORD_SEPARATOR}%s"), failed(128))

        snapshot = build(make_builder(runner, fs=self.rebase_fs()))

        assert snapshot.rebase.onto.sha == ONTO
        assert snapshot.rebase.stop is not None

    def test_cherry_pick_subject(self) -> None:
        """A cherry-pick in progress gets its commit subject resolved."""
        fs = InMemoryFileSystem()
        fs.add(GIT_DIR / "CHERRY_PICK_HEAD", "abcdef1")
        runner = status_runner(*BRANCH_LINES)
        runner.respond(("log", "-1", "--format=%s", "abcdef1"), ok("Picked subject"))

        snapshot = build(make_builder(runner, fs=fs))

        assert snapshot.sequencer.operation == SequencerOperation.CHERRY_PICK
        assert snapshot.sequencer.head_subject == "Picked subject"
        assert snapshot.rebase is None

    def test_cherry_pick_subject_failure_keeps_operation(self) -> None:
        """A failing subject lookup still reports the cherry-pick."""
        fs = InMemoryFileSystem()
        fs.add(GIT_DIR / "CHERRY_PICK_HEAD", "abcdef1")
        runner = status_runner(*BRANCH_LINES)
        runner.respond(("log", "-1", "--format=%s", "abcdef1"), failed(128, "fatal: bad object"))

        snapshot = build(make_builder(runner, fs=fs))

        assert snapshot.sequencer.operation == SequencerOperation.CHERRY_PICK
        assert snapshot.sequencer.head_oid == "abcdef1"
        assert snapshot.sequencer.head_subject is None
        assert len(snapshot.failures) == 1
        assert "bad object" in snapshot.failures[0].message


class TestPullRequest:
    """Tests for the optional pull request lookup."""

    def test_lookup_result_in_snapshot(self) -> None:
        """A pull request source answer lands on the snapshot."""
        pr = PullRequestInfo(number=42, title="Add things")
        source = FakePullRequests(pr)

        snapshot = build(make_builder(status_runner(*BRANCH_LINES), pr_source=source))

        assert snapshot.pull_request == pr
        assert source.lookups[0].head == "main"

    def test_detached_head_skips_lookup(self) -> None:
        """No lookup happens without a branch."""
        source = FakePullRequests(PullRequestInfo(number=1, title="x"))
        snapshot = build(make_builder(status_runner(f"# branch.oid {OID}"), pr_source=source))
        assert snapshot.pull_request is None
        assert source.lookups == []

    def test_disabled_in_config(self) -> None:
        """forge.show_pr_in_status = false disables the lookup."""
        config = replace(StrataConfig.default(), forge=ForgeConfig(show_pr_in_status=False))
        source = FakePullRequests(PullRequestInfo(number=1, title="x"))
        build(make_builder(status_runner(*BRANCH_LINES), config=config, pr_source=source))
        assert source.lookups == []

    def test_lookup_error_is_isolated(self) -> None:
        """A raising source is recorded as a failure."""
        source = FakePullRequests(RuntimeError("rate limited"))

        snapshot = build(make_builder(status_runner(*BRANCH_LINES), pr_source=source))

        assert snapshot.pull_request is None
        assert len(snapshot.failures) == 1
        assert "rate limited" in snapshot.failures[0].message


class TestDiffCommand:
    """Tests for the git arguments used per entry kind."""

    def file_entry(self, section: SectionKind) -> Entry:
        return Entry(
            key=f"{section.value}:src/a.py",
            kind=EntryKind.FILE,
            section=section,
            label="src/a.py",
            payload=FileChange("src/a.py"),
        )

    def test_staged(self) -> None:
        """Staged files diff the index against HEAD."""
        args, accept = diff_command(self.file_entry(SectionKind.STAGED))
        assert args == ["diff", "--cached", "--no-color", "--no-ext-diff", "--", "src/a.py"]
        assert accept == (0,)

    def test_unstaged(self) -> None:
        """Unstaged files diff the worktree against the index."""
        args, _ = diff_command(self.file_entry(SectionKind.UNSTAGED))
        assert args == ["diff", "--no-color", "--no-ext-diff", "--", "src/a.py"]

    def test_untracked(self) -> None:
        """Untracked files diff against /dev/null and accept exit code 1."""
        args, accept = diff_command(self.file_entry(SectionKind.UNTRACKED))
        assert args[:2] == ["diff", "--no-index"]
        assert args[-2:] == ["/dev/null", "src/a.py"]
        assert accept == (0, 1)

    def test_stash(self) -> None:
        """Stashes use git stash show -p."""
        entry = Entry(
            key="stashes:stash@{0}",
            kind=EntryKind.STASH,
            section=SectionKind.STASHES,
            label="stash@{0} WIP",
            payload=StashInfo(0, "stash@{0}", "WIP"),
        )
        args, _ = diff_command(entry)
        assert args[:3] == ["stash", "show", "-p"]
        assert args[-1] == "stash@{0}"

    def test_commit(self) -> None:
        """Commits use git show without the message."""
        entry = Entry(
            key=f"recent:{OID}",
            kind=EntryKind.COMMIT,
            section=SectionKind.RECENT,
            label="1111111 Subject",
            payload=CommitInfo(OID, "1111111", "Subject"),
        )
        args, _ = diff_command(entry)
        assert args[:2] == ["show", "--format="]
        assert args[-1] == OID

    def test_undiffable_entry_rejected(self) -> None:
        """Worktree entries have no diff."""
        entry = Entry(
            key="worktrees:/repo",
            kind=EntryKind.WORKTREE,
            section=SectionKind.WORKTREES,
            label="main /repo/",
        )
        with pytest.raises(ValueError, match="has no diff"):
            diff_command(entry)

    def test_untracked_directory_rejected(self) -> None:
        """Untracked directories have no diff of their own."""
        entry = Entry(
            key="untracked:build/",
            kind=EntryKind.FILE,
            section=SectionKind.UNTRACKED,
            label="build/",
            payload=FileChange("build/", index_status="?", worktree_status="?"),
        )
        with pytest.raises(ValueError, match="has no diff"):
            diff_command(entry)


class TestPushTarget:
    """Tests for the push destination and its commit lists."""

    def test_push_differs_from_upstream(self) -> None:
        """A separate push remote gets its subject and both commit lists."""
        runner = status_runner(*BRANCH_LINES)
        runner.respond(("rev-parse", "--abbrev-ref", "@{push}"), ok("fork/main"))
        runner.respond(("log", "-1", "--format=%s", "@{push}"), ok("Fork subject"))
        runner.respond(
            ("log", f"--format={LOG_FORMAT}", "@{push}..HEAD"),
            ok(
                f"{'4' * 40}{RECORD_SEPARATOR}4444444{RECORD_SEPARATOR}Not pushed",
                f"{'5' * 40}{RECORD_SEPARATOR}5555555{RECORD_SEPARATOR}Also not pushed",
            ),
        )
        runner.respond(
            ("log", f"--format={LOG_FORMAT}", "HEAD..@{push}"),
            ok(f"{'6' * 40}{RECORD_SEPARATOR}6666666{RECORD_SEPARATOR}Only on fork"),
        )

        snapshot = build(make_builder(runner))

        assert snapshot.branch.push == "fork/main"
        assert snapshot.branch.push_subject == "Fork subject"
        assert snapshot.branch.push_ahead == 2
        assert snapshot.branch.push_behind == 1
        assert [c.subject for c in snapshot.unpushed_push] == ["Not pushed", "Also not pushed"]
        assert [c.subject for c in snapshot.unpulled_push] == ["Only on fork"]
        assert snapshot.failures == ()

    def test_push_equal_to_upstream_is_hidden(self) -> None:
        """Pushing to the upstream adds nothing beyond the Merge line."""
        runner = status_runner(*BRANCH_LINES)
        runner.respond(("rev-parse", "--abbrev-ref", "@{push}"), ok("origin/main"))

        snapshot = build(make_builder(runner))

        assert snapshot.branch.push is None
        assert snapshot.unpushed_push == ()
        assert not runner.called("log", f"--format={LOG_FORMAT}", "@{push}..HEAD")

    def test_missing_push_destination_is_not_a_failure(self) -> None:
        """rev-parse exiting 128 means there is no push destination."""
        runner = status_runner(*BRANCH_LINES)
        runner.respond(
            ("rev-parse", "--abbrev-ref", "@{push}"),
            failed(128, "fatal: no upstream configured for branch 'main'"),
        )

        snapshot = build(make_builder(runner))

        assert snapshot.branch.push is None
        assert snapshot.failures == ()

    def test_detached_head_skips_push_lookup(self) -> None:
        """A detached HEAD has no push destination to resolve."""
        runner = status_runner(f"# branch.oid {OID}", "# branch.head (detached)")
        build(make_builder(runner))
        assert not runner.called("rev-parse", "--abbrev-ref")

    def test_push_log_failure_is_isolated(self) -> None:
        """A failing push range log keeps the push line and records a failure."""
        runner = status_runner(*BRANCH_LINES)
        runner.respond(("rev-parse", "--abbrev-ref", "@{push}"), ok("fork/main"))
        runner.respond(("log", f"--format={LOG_FORMAT}", "@{push}..HEAD"), failed(128))

        snapshot = build(make_builder(runner))

        assert snapshot.branch.push == "fork/main"
        assert snapshot.unpushed_push == ()
        assert len(snapshot.failures) == 1


class TestSubmodules:
    """Tests for the submodule listing."""

    def test_submodules_listed(self) -> None:
        """git submodule status output lands on the snapshot."""
        runner = status_runner(*BRANCH_LINES)
        runner.respond(
            ("submodule", "status"),
            ok(f"+{'7' * 40} libs/core (v1.2-3-g7777777)", f"-{'8' * 40} vendor/tool"),
        )

        snapshot = build(make_builder(runner))

        assert [(s.path, s.state) for s in snapshot.submodules] == [
            ("libs/core", "modified"),
            ("vendor/tool", "uninitialized"),
        ]

    def test_skipped_when_section_not_configured(self) -> None:
        """Without a submodules section git submodule is never run."""
        config = replace(
            StrataConfig.default(),
            status=StatusConfig(sections=(SectionSpec(SectionKind.UNSTAGED),)),
        )
        runner = status_runner(*BRANCH_LINES)

        snapshot = build(make_builder(runner, config=config))

        assert not runner.called("submodule")
        assert snapshot.submodules == ()

    def test_failure_is_isolated(self) -> None:
        """A failing submodule listing only empties its section."""
        runner = status_runner(*BRANCH_LINES, modified("a.py"))
        runner.respond(("submodule",), failed(128, "fatal: no submodule mapping found"))

        snapshot = build(make_builder(runner))

        assert snapshot.submodules == ()
        assert [c.path for c in snapshot.unstaged] == ["a.py"]
        assert len(snapshot.failures) == 1
