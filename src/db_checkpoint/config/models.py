"""Pydantic models for checkpoint configuration."""

from pydantic import BaseModel, Field, field_validator


# ============================================================================
# Filter Configuration
# ============================================================================


class FilterConfig(BaseModel):
    """Table and schema filters applied to both metadata queries.

    ``schemas_to_include`` narrows introspection to the listed schemas;
    ``schemas_to_exclude`` removes the listed schemas.  Both are passed to
    the catalog queries as bind parameters.

    Example:
        >>> f = FilterConfig(tables_to_ignore=["Foo"], schemas_to_exclude=["A"])
        >>> f.parameters()
        {'ignore_0': 'Foo', 'exclude_0': 'A'}
    """

    tables_to_ignore: list[str] = Field(default_factory=list)
    schemas_to_include: list[str] = Field(default_factory=list)
    schemas_to_exclude: list[str] = Field(default_factory=list)

    def parameters(self) -> dict[str, str]:
        """Bind parameters for the metadata queries, in list order."""
        params: dict[str, str] = {}
        for prefix, values in (
            ("ignore", self.tables_to_ignore),
            ("exclude", self.schemas_to_exclude),
            ("include", self.schemas_to_include),
        ):
            for i, value in enumerate(values):
                params[f"{prefix}_{i}"] = value
        return params


# ============================================================================
# File Configuration Models
# ============================================================================


class DatabaseProfile(BaseModel):
    """Database connection profile from db.toml."""

    url: str
    description: str = ""
    db_password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution
    provider: str = "postgres"  # Defaults to postgres


class CheckpointConfig(FilterConfig):
    """The ``[checkpoint]`` section of db.toml."""

    dialect: str | None = None  # Falls back to the profile provider
    command_timeout: float | None = None

    @field_validator("command_timeout")
    @classmethod
    def _positive_timeout(cls, value: float | None) -> float | None:
        if value is not None and value <= 0:
            raise ValueError("command_timeout must be positive")
        return value


class DatabaseConfig(BaseModel):
    """Complete configuration from db.toml."""

    profiles: dict[str, DatabaseProfile] = Field(default_factory=dict)
    checkpoint: CheckpointConfig = Field(default_factory=CheckpointConfig)
