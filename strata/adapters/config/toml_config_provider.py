"""TOML-based configuration provider.

Loads configuration from <repo>/.strata.toml with global config fallback.

Config loading priority (highest to lowest):
1. Local: <repo>/.strata.toml (repo-specific)
2. Global: ~/.config/strata/config.toml (user defaults)
3. Built-in defaults
"""

import logging
from pathlib import Path

from strata.domain.config import StrataConfig
from strata.shared.config_io import (
    get_global_config_path,
    get_local_config_path,
    load_config_data,
)

logger = logging.getLogger(__name__)


class TomlConfigProvider:
    """Configuration provider that loads from TOML files.

    Implements config cascade:
    1. Load global config (~/.config/strata/config.toml) if present
    2. Load local config (<repo>/.strata.toml) if present
    3. Local values override global values (key-level merge per table)
    4. Missing values fall back to built-in defaults

    Gracefully handles missing or invalid configs with warnings.
    """

    def load(self, repo_root: Path | None) -> StrataConfig:
        """Load configuration with global fallback.

        Uses domain-level merging via StrataConfig.from_partial so validation
        happens at each merge step. An invalid layer is skipped as a whole.

        Args:
            repo_root: Working tree root, or None for global settings only.

        Returns:
            StrataConfig instance with merged global/local values or defaults
        """
        config = StrataConfig.default()

        global_path = get_global_config_path()
        if global_path.exists():
            try:
                config = StrataConfig.from_partial(config, load_config_data(global_path))
                logger.debug("Loaded global config from %s", global_path)
            except (FileNotFoundError, ValueError) as e:
                logger.warning(
                    "Failed to parse global config at %s: %s. Ignoring global config.",
                    global_path,
                    e,
                )

        if repo_root is not None:
            local_path = get_local_config_path(repo_root)
            if local_path.exists():
                try:
                    config = StrataConfig.from_partial(config, load_config_data(local_path))
                    logger.debug("Loaded local config from %s", local_path)
                except (FileNotFoundError, ValueError) as e:
                    logger.warning(
                        "Failed to parse %s: %s. Using global/default configuration.",
                        local_path,
                        e,
                    )

        return config
