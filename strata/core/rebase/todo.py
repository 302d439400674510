"""Parsing of git-rebase-todo and done files."""

from dataclasses import dataclass

# Short forms git accepts in the todo file
_ACTION_ALIASES = {
    "p": "pick",
    "r": "reword",
    "e": "edit",
    "s": "squash",
    "f": "fixup",
    "d": "drop",
    "m": "merge",
}

_COMMIT_ACTIONS = frozenset({"pick", "reword", "edit", "squash", "fixup", "drop"})


@dataclass(frozen=True)
class TodoItem:
    """A commit-carrying line of a todo or done file.

    Attributes:
        action: Full action verb (pick, edit, squash, ...).
        sha: Commit id as written (usually abbreviated).
        subject: Rest of the line, usually the commit subject.
    """

    action: str
    sha: str
    subject: str = ""


def parse_todo_line(line: str) -> TodoItem | None:
    """Parse one line of a rebase todo or done file.

    Comments, blank lines and commands that do not name a commit to replay
    (exec, break, label, reset, update-ref, noop, and merge without -C/-c)
    yield None.

    Args:
        line: Raw line.

    Returns:
        TodoItem, or None if the line carries no commit.
    """
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return None

    words = stripped.split()
    action = _ACTION_ALIASES.get(words[0], words[0])
    rest = words[1:]

    if action == "merge":
        if len(rest) < 2 or rest[0] not in ("-C", "-c"):
            return None
        return TodoItem(action="merge", sha=rest[1], subject=" ".join(rest[2:]))

    if action not in _COMMIT_ACTIONS or not rest:
        return None

    # fixup -C <sha> / fixup -c <sha>
    if action == "fixup" and rest[0] in ("-C", "-c"):
        rest = rest[1:]
        if not rest:
            return None

    subject = " ".join(rest[1:])
    if subject.startswith("# "):
        subject = subject[2:]
    return TodoItem(action=action, sha=rest[0], subject=subject)


def parse_todo(lines: list[str] | tuple[str, ...]) -> list[TodoItem]:
    """Parse every commit-carrying line, preserving file order."""
    items = []
    for line in lines:
        item = parse_todo_line(line)
        if item is not None:
            items.append(item)
    return items
