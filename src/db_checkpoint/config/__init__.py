"""Configuration management: profiles, filters, TOML loading.

Usage:
    >>> from db_checkpoint.config import load_db_config, FilterConfig, CheckpointConfig
"""

from db_checkpoint.config.loader import load_db_config
from db_checkpoint.config.models import (
    CheckpointConfig,
    DatabaseConfig,
    DatabaseProfile,
    FilterConfig,
)

__all__ = [
    "load_db_config",
    "CheckpointConfig",
    "DatabaseConfig",
    "DatabaseProfile",
    "FilterConfig",
]
