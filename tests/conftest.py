"""Pytest configuration and shared fixtures."""

import shutil
import subprocess
from pathlib import Path

import pytest

from strata.domain.config import StrataConfig

# ============================================================================
# Git availability
# ============================================================================

HAS_GIT = shutil.which("git") is not None


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip tests marked requires_git when git is not installed."""
    if HAS_GIT:
        return
    skip_git = pytest.mark.skip(reason="git executable not found on PATH")
    for item in items:
        if "requires_git" in item.keywords:
            item.add_marker(skip_git)


# ============================================================================
# Git Repository Helpers
# ============================================================================
# These helpers consolidate git setup code to avoid duplication across tests.


def run_git(path: Path, *args: str, check: bool = True) -> subprocess.CompletedProcess[str]:
    """Run a git command in a test repository.

    Args:
        path: Repository directory.
        *args: Git arguments.
        check: Raise CalledProcessError on non-zero exit.

    Returns:
        CompletedProcess with text output.
    """
    return subprocess.run(
        ["git", *args],
        cwd=path,
        check=check,
        capture_output=True,
        text=True,
        timeout=10,
    )


def init_git_repo(
    path: Path,
    user_name: str = "Test User",
    user_email: str = "test@example.com",
) -> None:
    """Initialize a git repository with user configuration.

    Args:
        path: Directory to initialize as a git repository.
        user_name: Git user.name configuration value.
        user_email: Git user.email configuration value.

    Raises:
        subprocess.CalledProcessError: If git commands fail.
    """
    run_git(path, "init", "-b", "main")
    run_git(path, "config", "user.name", user_name)
    run_git(path, "config", "user.email", user_email)
    run_git(path, "config", "commit.gpgsign", "false")


def git_add_and_commit(
    path: Path,
    message: str = "Initial commit",
    add_all: bool = True,
) -> None:
    """Stage files and create a git commit.

    Args:
        path: Git repository root directory.
        message: Commit message.
        add_all: If True, stages all files with 'git add .'.

    Raises:
        subprocess.CalledProcessError: If git commands fail.
    """
    if add_all:
        run_git(path, "add", ".")
    run_git(path, "commit", "-m", message)


def create_test_files(path: Path, files: dict[str, str]) -> None:
    """Create multiple files in a directory.

    Args:
        path: Base directory for file creation.
        files: Mapping of relative file paths to file contents.
               Parent directories are created automatically.
    """
    for file_path, content in files.items():
        full_path = path / file_path
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_text(content)


def create_git_repo(
    path: Path,
    files: dict[str, str] | None = None,
    commit_message: str = "Initial commit",
) -> Path:
    """Create a complete git repository with optional files.

    Combines init_git_repo(), create_test_files(), and git_add_and_commit().

    Args:
        path: Directory for the repository (created if doesn't exist).
        files: Optional mapping of file paths to contents.
        commit_message: Message for the initial commit.

    Returns:
        Path to the repository root.
    """
    path.mkdir(parents=True, exist_ok=True)
    init_git_repo(path)

    if files:
        create_test_files(path, files)
        git_add_and_commit(path, message=commit_message)

    return path


def head_sha(path: Path, rev: str = "HEAD") -> str:
    """Full commit id of a revision in a test repository."""
    return run_git(path, "rev-parse", rev).stdout.strip()


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def no_global_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the global config location at an empty directory.

    Tests that assert default values must use this fixture to avoid reading
    the user's ~/.config/strata/config.toml.

    Returns:
        Path where the global config would live (does not exist).
    """
    config_home = tmp_path / "xdg_config"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    return config_home / "strata" / "config.toml"


@pytest.fixture
def default_config() -> StrataConfig:
    """Built-in default configuration."""
    return StrataConfig.default()


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Create a git repository with two committed files.

    Returns:
        Path to the git repository root.
    """
    return create_git_repo(
        tmp_path / "test_repo",
        files={
            "math.py": "def add(a, b):\n    return a + b\n",
            "utils.py": "def greet(name):\n    return f'Hello, {name}!'\n",
        },
    )
