"""Parsers for git command output.

Pure functions turning the text git prints into domain facts. None of them
raise on unexpected input: malformed lines are skipped and logged at DEBUG,
so one odd line never costs the whole refresh.
"""

import logging
import re
from dataclasses import dataclass, field

from strata.domain.entities import (
    BranchInfo,
    CommitInfo,
    FileChange,
    Hunk,
    HunkLine,
    StashInfo,
    SubmoduleInfo,
    WorktreeInfo,
)

logger = logging.getLogger(__name__)

# Field separator used in --format strings (%x1e)
RECORD_SEPARATOR = "\x1e"

LOG_FORMAT = "%H%x1e%h%x1e%s"
STASH_FORMAT = "%gd%x1e%gs"

_HUNK_HEADER = re.compile(r"^@@+ -(\d+)(?:,(\d+))? .*?\+(\d+)(?:,(\d+))? @@+")
_STASH_REF = re.compile(r"^stash@\{(\d+)\}$")
_AHEAD_BEHIND = re.compile(r"^\+(\d+) -(\d+)$")
_SUBMODULE_LINE = re.compile(r"^([ +\-U])([0-9a-f]{40,64}) (.+?)(?: \((.+)\))?$")

_SUBMODULE_STATES = {
    " ": "current",
    "+": "modified",
    "-": "uninitialized",
    "U": "conflict",
}

# Line prefix -> HunkLine kind
_LINE_KINDS = {
    " ": "context",
    "+": "add",
    "-": "del",
    "\\": "meta",
}

_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    '"': '"',
}


@dataclass
class StatusParseResult:
    """Parsed ``git status --porcelain=v2 --branch`` output."""

    branch: BranchInfo = field(default_factory=BranchInfo)
    untracked: list[FileChange] = field(default_factory=list)
    unstaged: list[FileChange] = field(default_factory=list)
    staged: list[FileChange] = field(default_factory=list)
    conflicted: list[FileChange] = field(default_factory=list)


def unquote_path(path: str) -> str:
    """Undo git's C-style quoting of unusual path names.

    Args:
        path: Path as printed by git, possibly wrapped in double quotes.

    Returns:
        The decoded path.
    """
    if len(path) < 2 or not (path.startswith('"') and path.endswith('"')):
        return path

    body = path[1:-1]
    out = bytearray()
    i = 0
    while i < len(body):
        ch = body[i]
        if ch != "\\" or i + 1 >= len(body):
            out.extend(ch.encode("utf-8"))
            i += 1
            continue
        nxt = body[i + 1]
        if nxt in "01234567" and re.match(r"[0-7]{3}", body[i + 1 : i + 4]):
            out.append(int(body[i + 1 : i + 4], 8))
            i += 4
        else:
            out.extend(_ESCAPES.get(nxt, nxt).encode("utf-8"))
            i += 2
    return out.decode("utf-8", errors="replace")


def parse_status_v2(lines: list[str]) -> StatusParseResult:
    """Parse ``git status --porcelain=v2 --branch`` output.

    An ordinary or renamed entry goes to ``staged`` when its index status is
    not ``.`` and to ``unstaged`` when its worktree status is not ``.``; a
    path with both lands in both lists.

    Args:
        lines: Output lines.

    Returns:
        StatusParseResult with branch info and file lists.
    """
    result = StatusParseResult()
    branch: dict[str, object] = {}

    for line in lines:
        if not line:
            continue
        if line.startswith("# "):
            _parse_branch_header(line[2:], branch)
            continue

        kind = line[0]
        if kind == "1":
            parts = line.split(" ", 8)
            if len(parts) < 9:
                logger.debug("Skipping malformed status line: %r", line)
                continue
            _add_change(result, parts[1], parts[2], unquote_path(parts[8]), None)
        elif kind == "2":
            parts = line.split(" ", 9)
            if len(parts) < 10:
                logger.debug("Skipping malformed status line: %r", line)
                continue
            path, _, orig = parts[9].partition("\t")
            _add_change(
                result, parts[1], parts[2], unquote_path(path), unquote_path(orig) or None
            )
        elif kind == "u":
            parts = line.split(" ", 10)
            if len(parts) < 11:
                logger.debug("Skipping malformed status line: %r", line)
                continue
            xy = parts[1]
            result.conflicted.append(
                FileChange(
                    path=unquote_path(parts[10]),
                    index_status=xy[0],
                    worktree_status=xy[1],
                    submodule=parts[2].startswith("S"),
                )
            )
        elif kind == "?":
            result.untracked.append(
                FileChange(path=unquote_path(line[2:]), index_status="?", worktree_status="?")
            )
        elif kind == "!":
            continue
        else:
            logger.debug("Skipping unknown status line: %r", line)

    result.branch = BranchInfo(
        head=str(branch.get("head", "(detached)")),
        oid=branch.get("oid"),  # type: ignore[arg-type]
        upstream=branch.get("upstream"),  # type: ignore[arg-type]
        ahead=int(branch.get("ahead", 0)),  # type: ignore[call-overload]
        behind=int(branch.get("behind", 0)),  # type: ignore[call-overload]
    )
    return result


def _parse_branch_header(header: str, branch: dict[str, object]) -> None:
    key, _, value = header.partition(" ")
    if key == "branch.oid":
        branch["oid"] = None if value == "(initial)" else value
    elif key == "branch.head":
        branch["head"] = value
    elif key == "branch.upstream":
        branch["upstream"] = value
    elif key == "branch.ab":
        match = _AHEAD_BEHIND.match(value)
        if match:
            branch["ahead"] = int(match.group(1))
            branch["behind"] = int(match.group(2))


def _add_change(
    result: StatusParseResult, xy: str, sub: str, path: str, orig_path: str | None
) -> None:
    change = FileChange(
        path=path,
        index_status=xy[0],
        worktree_status=xy[1],
        orig_path=orig_path,
        submodule=sub.startswith("S"),
    )
    if change.index_status != ".":
        result.staged.append(change)
    if change.worktree_status != ".":
        result.unstaged.append(change)


def parse_stash_list(lines: list[str]) -> list[StashInfo]:
    """Parse ``git stash list --format=%gd%x1e%gs`` output.

    Args:
        lines: Output lines.

    Returns:
        Stashes in listed order (newest first).
    """
    stashes: list[StashInfo] = []
    for line in lines:
        ref, sep, message = line.partition(RECORD_SEPARATOR)
        match = _STASH_REF.match(ref.strip())
        if not sep or not match:
            logger.debug("Skipping malformed stash line: %r", line)
            continue
        stashes.append(StashInfo(index=int(match.group(1)), ref=ref.strip(), message=message))
    return stashes


def parse_submodule_status(lines: list[str]) -> list[SubmoduleInfo]:
    """Parse ``git submodule status`` output.

    Each line is a state character, the commit id, the path and, for
    initialized submodules, a ``(describe)`` suffix.

    Args:
        lines: Output lines.

    Returns:
        Submodules in listed order.
    """
    submodules: list[SubmoduleInfo] = []
    for line in lines:
        match = _SUBMODULE_LINE.match(line)
        if not match:
            logger.debug("Skipping malformed submodule line: %r", line)
            continue
        marker, sha, path, describe = match.groups()
        submodules.append(
            SubmoduleInfo(
                path=unquote_path(path),
                sha=sha,
                state=_SUBMODULE_STATES[marker],  # type: ignore[arg-type]
                describe=describe,
            )
        )
    return submodules


def parse_worktree_list(lines: list[str]) -> list[WorktreeInfo]:
    """Parse ``git worktree list --porcelain`` output.

    Records are separated by blank lines; each starts with a ``worktree``
    line followed by attribute lines.

    Args:
        lines: Output lines.

    Returns:
        Worktrees in listed order (main worktree first).
    """
    worktrees: list[WorktreeInfo] = []
    current: dict[str, object] | None = None

    def flush() -> None:
        if current is not None:
            worktrees.append(WorktreeInfo(**current))  # type: ignore[arg-type]

    for line in lines:
        if not line.strip():
            flush()
            current = None
            continue
        key, _, value = line.partition(" ")
        if key == "worktree":
            flush()
            current = {"path": value}
        elif current is None:
            logger.debug("Skipping worktree attribute outside a record: %r", line)
        elif key == "HEAD":
            current["head"] = value
        elif key == "branch":
            current["branch"] = value.removeprefix("refs/heads/")
        elif key == "bare":
            current["bare"] = True
        elif key == "locked":
            current["locked"] = True
        elif key == "prunable":
            current["prunable"] = True
    flush()
    return worktrees


def parse_log_records(lines: list[str]) -> list[CommitInfo]:
    """Parse ``git log --format=%H%x1e%h%x1e%s`` output.

    Args:
        lines: Output lines.

    Returns:
        Commits in output order.
    """
    commits: list[CommitInfo] = []
    for line in lines:
        parts = line.split(RECORD_SEPARATOR, 2)
        if len(parts) != 3:
            logger.debug("Skipping malformed log line: %r", line)
            continue
        commits.append(CommitInfo(sha=parts[0], abbrev=parts[1], subject=parts[2]))
    return commits


def parse_unified_diff(lines: list[str]) -> tuple[Hunk, ...]:
    """Parse unified diff output into hunks.

    Lines before the first ``@@`` of a file are file headers and are not
    part of any hunk. A ``diff --git`` line ends the current hunk, so
    multi-file output (``git show``, ``git stash show -p``) yields hunks
    tagged with the file they belong to.

    Args:
        lines: Diff output lines.

    Returns:
        Hunks in diff order.
    """
    hunks: list[Hunk] = []
    path: str | None = None
    header: str | None = None
    ranges: tuple[int, int, int, int] = (0, 0, 0, 0)
    body: list[HunkLine] = []

    def close() -> None:
        if header is not None:
            hunks.append(
                Hunk(
                    header=header,
                    old_start=ranges[0],
                    old_count=ranges[1],
                    new_start=ranges[2],
                    new_count=ranges[3],
                    lines=tuple(body),
                    path=path,
                )
            )

    for line in lines:
        if line.startswith("diff "):
            close()
            header, body = None, []
            path = _path_from_diff_line(line)
        elif header is None and line.startswith("+++ "):
            target = line[4:]
            if target != "/dev/null":
                path = unquote_path(target).removeprefix("b/")
        elif line.startswith("@@"):
            close()
            header, body = line, []
            ranges = _parse_hunk_ranges(line)
        elif header is not None:
            kind = _LINE_KINDS.get(line[:1], "context")
            body.append(HunkLine(kind=kind, text=line))  # type: ignore[arg-type]
    close()
    return tuple(hunks)


def _path_from_diff_line(line: str) -> str | None:
    # "diff --git a/x b/x" or "diff --cc x"
    if line.startswith("diff --git "):
        _, _, rest = line.partition(" b/")
        return unquote_path(rest) if rest else None
    if line.startswith(("diff --cc ", "diff --combined ")):
        return unquote_path(line.split(" ", 2)[2])
    return None


def _parse_hunk_ranges(header: str) -> tuple[int, int, int, int]:
    match = _HUNK_HEADER.match(header)
    if not match:
        return (0, 0, 0, 0)
    old_start, old_count, new_start, new_count = match.groups()
    return (
        int(old_start),
        int(old_count) if old_count is not None else 1,
        int(new_start),
        int(new_count) if new_count is not None else 1,
    )
