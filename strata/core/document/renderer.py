"""Document renderer.

Flattens a StatusModel into text lines, a parallel LineMap and per-line
decorations. ``render`` reads the model and never mutates it, so a pure
visibility change can be redrawn without fetching anything.
"""

from strata.core.document.model import StatusModel
from strata.domain.config import DisplayConfig, SectionSpec
from strata.domain.entities import (
    Decoration,
    Entry,
    EntryKind,
    ExpansionMode,
    LineInfo,
    LineType,
    RenderedDocument,
    Section,
    SectionKind,
    SequencerOperation,
    Snapshot,
    abbreviate,
)

CLEAN_MESSAGE = "Nothing to commit, working tree clean"

# Header labels are padded to a common width
_LABEL_WIDTH = 10


class _Builder:
    """Accumulates lines, line infos and decorations in lockstep."""

    def __init__(self) -> None:
        self.lines: list[str] = []
        self.infos: list[LineInfo] = []
        self.decorations: dict[int, tuple[Decoration, ...]] = {}

    def add(self, text: str, info: LineInfo, *decorations: Decoration) -> None:
        if decorations:
            self.decorations[len(self.lines)] = decorations
        self.lines.append(text)
        self.infos.append(info)

    def blank(self) -> None:
        self.add("", LineInfo(LineType.BLANK))

    def build(self) -> RenderedDocument:
        return RenderedDocument(
            lines=tuple(self.lines),
            line_map=tuple(self.infos),
            decorations=dict(self.decorations),
        )


def render(model: StatusModel, display: DisplayConfig | None = None) -> RenderedDocument:
    """Render the document.

    Order: header lines, a blank line, then every visible section in
    configured order, each followed by a blank line. Entries keep snapshot
    order; hunks and their lines keep diff order.

    Args:
        model: Document to render.
        display: Display settings (signs); defaults apply when omitted.

    Returns:
        RenderedDocument with lines, line map and decorations.
    """
    display = display or DisplayConfig()
    out = _Builder()
    snapshot = model.snapshot
    if snapshot is None:
        return out.build()

    for text in header_lines(snapshot):
        out.add(text, LineInfo(LineType.HEADER))
    out.blank()

    rendered_files = False
    for section in model.sections:
        spec = model.config.spec_for(section.kind) or SectionSpec(section.kind)
        if not _section_visible(section, spec):
            continue
        _render_section(out, model, section, display)
        if section.kind.is_file_section and section.entries:
            rendered_files = True

    if not rendered_files and not snapshot.has_file_changes():
        out.add(CLEAN_MESSAGE, LineInfo(LineType.HEADER))
        out.blank()

    return out.build()


def header_lines(snapshot: Snapshot) -> list[str]:
    """Build the Head/Merge/PR/sequencer lines at the top of the document."""
    branch = snapshot.branch
    lines = []

    head = _label("Head:") + branch.head
    if branch.head_subject:
        head += f"  {branch.head_subject}"
    elif branch.oid is None:
        head += "  (no commits yet)"
    lines.append(head)

    if branch.upstream:
        merge = _label("Merge:") + branch.upstream
        if branch.upstream_subject:
            merge += f"  {branch.upstream_subject}"
        if branch.ahead or branch.behind:
            merge += f" [+{branch.ahead}/-{branch.behind}]"
        lines.append(merge)

    if branch.push:
        push = _label("Push:") + branch.push
        if branch.push_subject:
            push += f"  {branch.push_subject}"
        if branch.push_ahead or branch.push_behind:
            push += f" [+{branch.push_ahead}/-{branch.push_behind}]"
        lines.append(push)

    pr = snapshot.pull_request
    if pr is not None:
        lines.append(_label("PR:") + f"#{pr.number} {pr.title} ({pr.state})")

    sequencer_line = _sequencer_line(snapshot)
    if sequencer_line:
        lines.append(sequencer_line)
    return lines


def _label(text: str) -> str:
    return text.ljust(_LABEL_WIDTH)


def _sequencer_line(snapshot: Snapshot) -> str | None:
    seq = snapshot.sequencer
    op = seq.operation
    if op is None:
        return None

    if op in (SequencerOperation.CHERRY_PICK, SequencerOperation.REVERT, SequencerOperation.MERGE):
        verb = {
            SequencerOperation.CHERRY_PICK: "Cherry-picking",
            SequencerOperation.REVERT: "Reverting",
            SequencerOperation.MERGE: "Merging",
        }[op]
        short = abbreviate(seq.head_oid) if seq.head_oid else "unknown"
        line = f"{verb}: {short}"
        if seq.head_subject:
            line += f" {seq.head_subject}"
        return line

    if op == SequencerOperation.REBASE:
        line = f"Rebasing: {seq.rebase_head_name or snapshot.branch.head}"
        stop = snapshot.rebase.stop if snapshot.rebase else None
        if stop is not None:
            line += f", stopped at {stop.abbrev}"
            if stop.subject:
                line += f" {stop.subject}"
        return line

    line = "Applying patches"
    if seq.am_current is not None and seq.am_last is not None:
        line += f": {seq.am_current}/{seq.am_last}"
    return line


def _section_visible(section: Section, spec: SectionSpec) -> bool:
    if spec.always_show:
        return True
    count = len(section.entries)
    return count > 0 and count >= spec.min_count


def _entry_count(section: Section) -> int:
    # The onto line is context, not a step
    if section.kind == SectionKind.REBASE:
        return sum(1 for entry in section.entries if entry.kind == EntryKind.REBASE_STEP)
    return len(section.entries)


def _render_section(
    out: _Builder, model: StatusModel, section: Section, display: DisplayConfig
) -> None:
    collapsed = model.visibility.section_collapsed(section.kind)
    out.add(
        f"{section.title} ({_entry_count(section)})",
        LineInfo(LineType.SECTION, key=section.key, section=section.kind),
        Decoration.COLLAPSED if collapsed else Decoration.EXPANDED,
    )
    if not collapsed:
        for entry in section.entries:
            _render_entry(out, model, entry, display)
    out.blank()


def _render_entry(
    out: _Builder, model: StatusModel, entry: Entry, display: DisplayConfig
) -> None:
    info = LineInfo(LineType.ENTRY, key=entry.key, section=entry.section)
    mode = model.visibility.entry_mode(entry.key)

    decorations: list[Decoration] = []
    if entry.diffable:
        decorations.append(
            Decoration.COLLAPSED if mode == ExpansionMode.COLLAPSED else Decoration.EXPANDED
        )
    if entry.kind == EntryKind.WORKTREE:
        if entry.status == "*":
            decorations.append(Decoration.CURRENT)
        elif entry.status == "L":
            decorations.append(Decoration.LOCKED)
    elif entry.kind == EntryKind.REBASE_STEP and entry.status == "stop":
        decorations.append(Decoration.STOP)

    out.add(_entry_text(entry, display), info, *decorations)

    if not entry.diffable or mode == ExpansionMode.COLLAPSED or entry.hunks is None:
        return

    for index, hunk in enumerate(entry.hunks):
        is_open = model.visibility.hunk_open(entry.key, index)
        header = hunk.header
        if entry.kind != EntryKind.FILE and hunk.path:
            header = f"{hunk.path}: {header}"
        out.add(
            header,
            LineInfo(LineType.HUNK_HEADER, key=entry.key, section=entry.section, hunk_index=index),
            Decoration.EXPANDED if is_open else Decoration.COLLAPSED,
        )
        if not is_open:
            continue
        for line in hunk.lines:
            line_decorations = ()
            if line.kind == "add":
                line_decorations = (Decoration.ADD,)
            elif line.kind == "del":
                line_decorations = (Decoration.DEL,)
            out.add(
                line.text,
                LineInfo(
                    LineType.HUNK_LINE, key=entry.key, section=entry.section, hunk_index=index
                ),
                *line_decorations,
            )


def _entry_text(entry: Entry, display: DisplayConfig) -> str:
    if entry.kind == EntryKind.SUBMODULE:
        return f"{entry.status} {entry.label}" if entry.status else f"  {entry.label}"
    if entry.kind != EntryKind.FILE:
        return entry.label
    signs = display.signs
    sign = {
        SectionKind.UNTRACKED: signs.untracked,
        SectionKind.UNSTAGED: signs.unstaged,
        SectionKind.STAGED: signs.staged,
        SectionKind.CONFLICTED: signs.conflict,
    }[entry.section]
    if entry.status:
        return f"{sign} {entry.status} {entry.label}"
    return f"{sign}   {entry.label}"
