"""Configuration file location.

The configuration lives next to the project it cleans. The file name is
fixed; the location can be overridden through the environment.
"""

import os
from pathlib import Path

# Default configuration file name, looked up in the working directory
CONFIG_FILENAME = "buildclean.toml"

# Environment variable overriding the configuration file path
CONFIG_ENV_VAR = "BUILDCLEAN_CONFIG"


def get_config_path(base_dir: Path | None = None) -> Path:
    """Get the configuration file path.

    Args:
        base_dir: Directory to look in. Defaults to the working directory.

    Returns:
        Path from BUILDCLEAN_CONFIG if set, otherwise base_dir/buildclean.toml.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override)
    return (base_dir or Path.cwd()) / CONFIG_FILENAME
