"""Checkpoint and engine factory for db.toml profiles.

Resolves which profile to use, substitutes password placeholders, and
builds the ``Checkpoint`` and ``AsyncEngine`` a test suite needs.

Profile selection priority:
1. Explicit ``profile_name`` argument
2. ``{env_prefix}DB_PROFILE`` environment variable
3. Raise ``ProfileNotFoundError``

Usage:
    from db_checkpoint.factory import create_checkpoint, get_engine

    checkpoint, profile = create_checkpoint("local")
    engine = get_engine(profile)
    await checkpoint.reset_engine(engine)
    await engine.dispose()
"""

import logging
import os
from pathlib import Path
from typing import Any
from urllib.parse import quote

from sqlalchemy.ext.asyncio import AsyncEngine

from db_checkpoint.checkpoint import Checkpoint
from db_checkpoint.config.loader import load_db_config
from db_checkpoint.config.models import DatabaseConfig, DatabaseProfile
from db_checkpoint.connection import create_async_engine_pooled

logger = logging.getLogger(__name__)


class ProfileNotFoundError(Exception):
    """Raised when no database profile is configured or the name is unknown."""

    pass


# ============================================================================
# Profile resolution
# ============================================================================


def get_active_profile_name(env_prefix: str = "") -> str:
    """Get active profile name from the environment.

    Args:
        env_prefix: Prefix for the environment variable
            (e.g., ``"APP_"`` reads ``APP_DB_PROFILE``).

    Returns:
        Profile name

    Raises:
        ProfileNotFoundError: If the variable is unset or empty
    """
    env_var = f"{env_prefix}DB_PROFILE"
    env_profile = os.environ.get(env_var)
    if env_profile:
        return env_profile

    raise ProfileNotFoundError(
        "No database profile configured.\n"
        f"Set {env_var}=<name> or pass --profile <name>."
    )


def get_profile(
    config: DatabaseConfig,
    profile_name: str | None = None,
    env_prefix: str = "",
) -> tuple[str, DatabaseProfile]:
    """Pick a profile from the loaded configuration.

    Returns:
        Tuple of (profile_name, DatabaseProfile)

    Raises:
        ProfileNotFoundError: If no profile is selected or it is not in
            the configuration
    """
    if profile_name is None:
        profile_name = get_active_profile_name(env_prefix)

    if profile_name not in config.profiles:
        available = ", ".join(config.profiles) or "(none)"
        raise ProfileNotFoundError(
            f"Profile '{profile_name}' not found in db.toml.\n"
            f"Available profiles: {available}"
        )

    return profile_name, config.profiles[profile_name]


def resolve_url(profile: DatabaseProfile) -> str:
    """Resolve profile URL with password substitution.

    Args:
        profile: Database profile from config

    Returns:
        Connection URL with ``[YOUR-PASSWORD]`` replaced by the URL-encoded
        ``db_password``
    """
    url = profile.url
    if profile.db_password and "[YOUR-PASSWORD]" in url:
        url = url.replace("[YOUR-PASSWORD]", quote(profile.db_password, safe=""))
    return url


# ============================================================================
# Factories
# ============================================================================


def create_checkpoint(
    profile_name: str | None = None,
    env_prefix: str = "",
    config_path: Path | None = None,
) -> tuple[Checkpoint, DatabaseProfile]:
    """Build a ``Checkpoint`` from db.toml.

    The dialect comes from ``[checkpoint].dialect``, falling back to the
    profile's ``provider``.

    Args:
        profile_name: Profile to use; defaults to ``{env_prefix}DB_PROFILE``.
        env_prefix: Prefix for environment variable lookup.
        config_path: Path to db.toml (default: ./db.toml).

    Returns:
        Tuple of (Checkpoint, DatabaseProfile)

    Raises:
        FileNotFoundError: If db.toml doesn't exist
        ProfileNotFoundError: If no usable profile is found
        UnknownDialectError: If the dialect name is not supported
    """
    config = load_db_config(config_path)
    name, profile = get_profile(config, profile_name, env_prefix)
    checkpoint = Checkpoint.from_config(config.checkpoint, default_dialect=profile.provider)
    logger.debug("Created checkpoint for profile %s (%s)", name, checkpoint.adapter.name)
    return checkpoint, profile


def get_engine(profile: DatabaseProfile, **engine_kwargs: Any) -> AsyncEngine:
    """Create a pooled async engine for a profile.

    The caller owns the engine and must ``await engine.dispose()``.
    """
    return create_async_engine_pooled(resolve_url(profile), **engine_kwargs)
