"""Configuration I/O utilities for reading and writing TOML config files.

This module handles serialization/deserialization of StrataConfig to/from TOML format.
"""

import os
import platform
import tomllib  # Built-in Python 3.11+
from pathlib import Path
from typing import Any

import tomli_w

from strata.domain.config import StrataConfig

LOCAL_CONFIG_NAME = ".strata.toml"


def get_global_config_path() -> Path:
    """Get the path to the global config file.

    The location is platform-dependent:
    - Linux/macOS: $XDG_CONFIG_HOME/strata/config.toml or ~/.config/strata/config.toml
    - Windows: %APPDATA%/strata/config.toml

    Returns:
        Path to the global config file (may not exist)
    """
    if platform.system() == "Windows":
        appdata = os.environ.get("APPDATA", "")
        if appdata:
            return Path(appdata) / "strata" / "config.toml"
        return Path.home() / ".config" / "strata" / "config.toml"
    xdg_config = os.environ.get("XDG_CONFIG_HOME", "")
    if xdg_config:
        return Path(xdg_config) / "strata" / "config.toml"
    return Path.home() / ".config" / "strata" / "config.toml"


def get_local_config_path(repo_root: Path) -> Path:
    """Path of the repo-local config file for a working tree."""
    return repo_root / LOCAL_CONFIG_NAME


def load_config_data(path: Path) -> dict[str, Any]:
    """Load raw TOML data from a config file.

    Args:
        path: Path to config.toml file

    Returns:
        Dictionary with parsed TOML data

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is malformed
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in config file: {e}") from e


def config_to_data(config: StrataConfig) -> dict[str, Any]:
    """Convert a StrataConfig into a TOML-serializable dictionary.

    Args:
        config: Config to convert.

    Returns:
        Dictionary with one table per config section.
    """
    signs = config.display.signs
    return {
        "status": {
            "sections": [spec.to_data() for spec in config.status.sections],
            "visibility_level": config.status.visibility_level,
        },
        "display": {
            "color_scheme": config.display.color_scheme,
            "signs": {
                "staged": signs.staged,
                "unstaged": signs.unstaged,
                "untracked": signs.untracked,
                "conflict": signs.conflict,
            },
        },
        "refresh": {
            "git_executable": config.refresh.git_executable,
            "command_timeout": config.refresh.command_timeout,
            "max_stashes": config.refresh.max_stashes,
        },
        "forge": {
            "show_pr_in_status": config.forge.show_pr_in_status,
        },
    }


def dumps_config(config: StrataConfig) -> str:
    """Serialize a config to a TOML string."""
    return tomli_w.dumps(config_to_data(config))


def create_default_config_file(path: Path) -> None:
    """Create a default config file with sensible defaults and comments.

    Args:
        path: Destination path for the config file
    """
    # Template string keeps the comments, which tomli_w cannot write
    template = """\
# strata configuration
# Created by: strata config init

[status]
# Sections in display order. Omit a name to hide that section.
# Inline tables take options: count, min_count, always_show.
sections = [
    "rebase",
    "untracked",
    "unstaged",
    "staged",
    "conflicted",
    "stashes",
    "submodules",
    { name = "worktrees", min_count = 2 },
    "unpushed_push",
    "unpushed",
    "unpulled_push",
    "unpulled",
    { name = "recent", count = 10 },
]

# Initial disclosure depth:
# 1 = section headers, 2 = entries, 3 = hunk headers, 4 = full diffs
visibility_level = 2

[display]
# Color output: "auto", "always" or "never"
color_scheme = "auto"

[display.signs]
staged = "●"
unstaged = "○"
untracked = "?"
conflict = "!"

[refresh]
# git binary used for every command
git_executable = "git"

# Seconds before a single git command is abandoned
command_timeout = 30.0

# Maximum number of stashes listed
max_stashes = 10

[forge]
# Show the current branch's pull request in the header (needs a PR source)
show_pr_in_status = true
"""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        f.write(template)
