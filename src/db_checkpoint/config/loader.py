"""Load db.toml into ``DatabaseConfig``."""

import tomllib
from pathlib import Path

from db_checkpoint.config.models import CheckpointConfig, DatabaseConfig, DatabaseProfile

DEFAULT_CONFIG_FILE = "db.toml"


def load_db_config(config_path: Path | None = None) -> DatabaseConfig:
    """Load database configuration from TOML file.

    Args:
        config_path: Path to db.toml (default: db.toml in the current
            working directory)

    Returns:
        DatabaseConfig with all profiles and the checkpoint section

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config format is invalid
    """
    if config_path is None:
        config_path = Path.cwd() / DEFAULT_CONFIG_FILE

    if not config_path.exists():
        raise FileNotFoundError(
            f"Database config not found: {config_path}\n"
            f"Create a db.toml with at least one [profiles.<name>] table."
        )

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    # Parse profiles
    profiles = {}
    for name, profile_data in data.get("profiles", {}).items():
        profiles[name] = DatabaseProfile(**profile_data)

    return DatabaseConfig(
        profiles=profiles,
        checkpoint=CheckpointConfig(**data.get("checkpoint", {})),
    )
