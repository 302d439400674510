"""Factory classes for session and adapter instantiation.

This module centralizes the creation of the status document and its
dependencies, keeping the CLI layer free from direct adapter imports.

The factories use lazy imports so that `strata config ...` never loads
prompt_toolkit or the subprocess runner.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from strata.adapters.config.toml_config_provider import TomlConfigProvider
    from strata.core.document.session import StatusDocument
    from strata.domain.config import StrataConfig
    from strata.ports.forge import PullRequestSource


class ConfigFactory:
    """Factory for creating configuration-related instances."""

    def create_config_provider(self) -> TomlConfigProvider:
        """Create a TomlConfigProvider instance.

        Returns:
            TomlConfigProvider instance.
        """
        from strata.adapters.config.toml_config_provider import TomlConfigProvider

        return TomlConfigProvider()


class RepositoryFactory:
    """Factory for repository discovery."""

    def find_repo_root(self, start_path: Path, git_executable: str = "git") -> Path | None:
        """Find the working tree containing start_path.

        Args:
            start_path: Directory to start from.
            git_executable: Name or path of the git binary.

        Returns:
            Working tree root, or None if start_path is not in one.
        """
        from strata.adapters.git_cmd.runner import find_git_root

        return find_git_root(start_path, git_executable)


class DocumentFactory:
    """Factory for creating StatusDocument instances with all dependencies.

    Args:
        config: strata configuration.
    """

    def __init__(self, config: StrataConfig) -> None:
        self._config = config

    def create_document(
        self,
        repo_root: Path,
        pr_source: PullRequestSource | None = None,
    ) -> StatusDocument:
        """Create a StatusDocument bound to a repository.

        Args:
            repo_root: Working tree root.
            pr_source: Optional pull request lookup for the header.

        Returns:
            StatusDocument ready for its first refresh.
        """
        # Lazy imports
        from strata.adapters.fs.local import LocalFileSystem
        from strata.adapters.git_cmd.runner import AsyncGitRunner
        from strata.core.document.session import StatusDocument
        from strata.core.snapshot.builder import SnapshotBuilder

        runner = AsyncGitRunner(
            git_executable=self._config.refresh.git_executable,
            timeout=self._config.refresh.command_timeout,
        )
        builder = SnapshotBuilder(
            runner=runner,
            fs=LocalFileSystem(),
            repo_root=repo_root,
            config=self._config,
            pr_source=pr_source,
        )
        return StatusDocument(builder, self._config)
