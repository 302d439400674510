"""Configuration provider port.

Defines the interface for loading and accessing application configuration.
"""

from pathlib import Path
from typing import Protocol

from strata.domain.config import StrataConfig


class ConfigProvider(Protocol):
    """Protocol for loading and providing configuration."""

    def load(self, repo_root: Path | None) -> StrataConfig:
        """Load configuration for a repository.

        Args:
            repo_root: Working tree root whose .strata.toml should be
                applied, or None to load global settings only.

        Returns:
            StrataConfig instance with loaded or default values

        Note:
            Implementations should gracefully fall back to defaults
            if config file is missing or invalid.
        """
        ...
