"""Config domain models for strata.

Configuration is stored in TOML (a global file and an optional repository
file, ``.strata.toml``) and represents user preferences for section layout,
display and refresh behavior. This module defines the domain models that
represent validated configuration state.
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any, Literal

from strata.domain.entities import SectionKind


@dataclass(frozen=True)
class SectionSpec:
    """One configured section and its per-kind options.

    Attributes:
        kind: Which section this is.
        count: Maximum number of entries to show (recent, unpushed and
            unpulled commit sections), or None for no limit.
        min_count: Minimum number of entries before the section is shown
            at all (worktrees default to 2, like magit).
        always_show: Render a ``Title (0)`` header even when empty.

    Raises:
        ValueError: If count is not positive or min_count is negative.
    """

    kind: SectionKind
    count: int | None = None
    min_count: int = 0
    always_show: bool = False

    def __post_init__(self) -> None:
        """Validate section options after initialization."""
        if self.count is not None and self.count <= 0:
            raise ValueError(f"count must be positive, got {self.count}")
        if self.min_count < 0:
            raise ValueError(f"min_count cannot be negative, got {self.min_count}")

    @staticmethod
    def parse(raw: Any) -> "SectionSpec":
        """Build a SectionSpec from a config list item.

        Accepts either a bare section name (``"recent"``) or a table with a
        ``name`` key plus options (``{ name = "recent", count = 5 }``).

        Args:
            raw: String or dict from the ``sections`` list.

        Returns:
            Parsed SectionSpec.

        Raises:
            ValueError: If the name is unknown or an option is invalid.
        """
        if isinstance(raw, str):
            name, options = raw, {}
        elif isinstance(raw, dict):
            options = dict(raw)
            name = options.pop("name", None)
            if not isinstance(name, str):
                raise ValueError(f"Section table needs a 'name' key, got {raw!r}")
        else:
            raise ValueError(f"Section must be a name or a table, got {raw!r}")

        try:
            kind = SectionKind(name)
        except ValueError:
            known = ", ".join(k.value for k in SectionKind)
            raise ValueError(f"Unknown section '{name}' (known: {known})") from None

        allowed = {"count", "min_count", "always_show"}
        unknown = set(options) - allowed
        if unknown:
            raise ValueError(
                f"Unknown option(s) for section '{name}': {', '.join(sorted(unknown))}"
            )
        return SectionSpec(kind=kind, **options)

    def to_data(self) -> str | dict[str, Any]:
        """Serialize back to the config list form."""
        data: dict[str, Any] = {"name": self.kind.value}
        if self.count is not None:
            data["count"] = self.count
        if self.min_count:
            data["min_count"] = self.min_count
        if self.always_show:
            data["always_show"] = True
        return data if len(data) > 1 else self.kind.value


def _default_sections() -> tuple[SectionSpec, ...]:
    return (
        SectionSpec(SectionKind.REBASE),
        SectionSpec(SectionKind.UNTRACKED),
        SectionSpec(SectionKind.UNSTAGED),
        SectionSpec(SectionKind.STAGED),
        SectionSpec(SectionKind.CONFLICTED),
        SectionSpec(SectionKind.STASHES),
        SectionSpec(SectionKind.SUBMODULES),
        SectionSpec(SectionKind.WORKTREES, min_count=2),
        SectionSpec(SectionKind.UNPUSHED_PUSH),
        SectionSpec(SectionKind.UNPUSHED),
        SectionSpec(SectionKind.UNPULLED_PUSH),
        SectionSpec(SectionKind.UNPULLED),
        SectionSpec(SectionKind.RECENT, count=10),
    )


@dataclass(frozen=True)
class StatusConfig:
    """Configuration for the status document layout.

    Attributes:
        sections: Sections to show, in display order. Kinds not listed are
            omitted.
        visibility_level: Initial global visibility level (1-4).

    Raises:
        ValueError: If a section kind is listed twice or the level is out of
            range.
    """

    sections: tuple[SectionSpec, ...] = field(default_factory=_default_sections)
    visibility_level: int = 2

    def __post_init__(self) -> None:
        """Validate status config after initialization."""
        kinds = [spec.kind for spec in self.sections]
        duplicates = sorted({k.value for k in kinds if kinds.count(k) > 1})
        if duplicates:
            raise ValueError(f"Section(s) listed more than once: {', '.join(duplicates)}")
        if not 1 <= self.visibility_level <= 4:
            raise ValueError(
                f"visibility_level must be between 1 and 4, got {self.visibility_level}"
            )

    def spec_for(self, kind: SectionKind) -> SectionSpec | None:
        """Return the configured spec for a section kind, if it is shown."""
        return next((spec for spec in self.sections if spec.kind == kind), None)

    @property
    def recent_count(self) -> int:
        spec = self.spec_for(SectionKind.RECENT)
        return spec.count if spec and spec.count else 10


@dataclass(frozen=True)
class SignsConfig:
    """Status column signs for file entries."""

    staged: str = "●"
    unstaged: str = "○"
    untracked: str = "?"
    conflict: str = "!"


@dataclass(frozen=True)
class DisplayConfig:
    """Configuration for output display and formatting.

    Attributes:
        signs: Status column signs for file entries.
        color_scheme: Color output mode - "auto" (default), "always", or "never"
    """

    signs: SignsConfig = field(default_factory=SignsConfig)
    color_scheme: Literal["auto", "always", "never"] = "auto"

    def __post_init__(self) -> None:
        """Validate display config after initialization."""
        if self.color_scheme not in ("auto", "always", "never"):
            raise ValueError(
                f"color_scheme must be auto, always or never, got {self.color_scheme!r}"
            )


@dataclass(frozen=True)
class RefreshConfig:
    """Configuration for how repository state is gathered.

    Attributes:
        git_executable: Name or path of the git binary.
        command_timeout: Seconds before a single git command is abandoned.
        max_stashes: Maximum number of stashes listed.

    Raises:
        ValueError: If command_timeout or max_stashes is not positive.
    """

    git_executable: str = "git"
    command_timeout: float = 30.0
    max_stashes: int = 10

    def __post_init__(self) -> None:
        """Validate refresh config after initialization."""
        if self.command_timeout <= 0:
            raise ValueError(
                f"command_timeout must be positive, got {self.command_timeout}"
            )
        if self.max_stashes <= 0:
            raise ValueError(f"max_stashes must be positive, got {self.max_stashes}")


@dataclass(frozen=True)
class ForgeConfig:
    """Configuration for pull request metadata in the header."""

    show_pr_in_status: bool = True


@dataclass(frozen=True)
class StrataConfig:
    """Complete strata configuration.

    Attributes:
        status: Section layout configuration
        display: Display and formatting configuration
        refresh: Repository state gathering configuration
        forge: Pull request display configuration
    """

    status: StatusConfig = field(default_factory=StatusConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    refresh: RefreshConfig = field(default_factory=RefreshConfig)
    forge: ForgeConfig = field(default_factory=ForgeConfig)

    @staticmethod
    def default() -> "StrataConfig":
        """Create a config with all default values."""
        return StrataConfig(
            status=StatusConfig(),
            display=DisplayConfig(),
            refresh=RefreshConfig(),
            forge=ForgeConfig(),
        )

    @staticmethod
    def from_partial(base: "StrataConfig", data: dict[str, Any]) -> "StrataConfig":
        """Overlay raw TOML data on an existing config.

        Each table in ``data`` replaces only the keys it names; everything
        else keeps the value from ``base``. Validation runs for every
        rebuilt section.

        Args:
            base: Config to start from.
            data: Parsed TOML document.

        Returns:
            New StrataConfig with the overrides applied.

        Raises:
            ValueError: If a table is malformed or a value fails validation.
        """
        known = {"status", "display", "refresh", "forge"}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config section(s): {', '.join(sorted(unknown))}")

        status = base.status
        if "status" in data:
            status_data = _table(data, "status")
            if "sections" in status_data:
                raw_sections = status_data["sections"]
                if not isinstance(raw_sections, list):
                    raise ValueError("[status] sections must be a list")
                status_data["sections"] = tuple(
                    SectionSpec.parse(item) for item in raw_sections
                )
            status = _overlay(status, status_data, "status")

        display = base.display
        if "display" in data:
            display_data = _table(data, "display")
            if "signs" in display_data:
                signs_data = display_data["signs"]
                if not isinstance(signs_data, dict):
                    raise ValueError("[display] signs must be a table")
                display_data["signs"] = _overlay(display.signs, signs_data, "display.signs")
            display = _overlay(display, display_data, "display")

        refresh = base.refresh
        if "refresh" in data:
            refresh = _overlay(refresh, _table(data, "refresh"), "refresh")

        forge = base.forge
        if "forge" in data:
            forge = _overlay(forge, _table(data, "forge"), "forge")

        return StrataConfig(status=status, display=display, refresh=refresh, forge=forge)


def _table(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data[name]
    if not isinstance(value, dict):
        raise ValueError(f"[{name}] must be a table")
    return dict(value)


def _overlay(instance: Any, overrides: dict[str, Any], name: str) -> Any:
    """Return a copy of a config dataclass with some fields replaced."""
    allowed = {f.name for f in fields(instance)}
    unknown = set(overrides) - allowed
    if unknown:
        raise ValueError(f"Unknown key(s) in [{name}]: {', '.join(sorted(unknown))}")
    try:
        return replace(instance, **overrides)
    except TypeError as e:
        raise ValueError(f"Invalid value in [{name}]: {e}") from e
