"""db-checkpoint: reset test databases to empty tables between test runs.

Introspects foreign keys, orders deletes so children go before parents,
suspends constraints only where a cycle leaves no safe order, and runs
the whole reset in one transaction.  The plan is computed once per
``Checkpoint`` and reused on every reset.

Usage:
    from db_checkpoint import Checkpoint, SqlAlchemyConnection
    from db_checkpoint import get_dialect, resolve, TableRef, Relationship
    from db_checkpoint import load_db_config, create_checkpoint
"""

__version__ = "0.1.0"

# Adapters
from db_checkpoint.adapters import (
    DialectAdapter,
    MySqlDialect,
    PostgresDialect,
    SqlServerDialect,
    get_dialect,
)

# Checkpoint
from db_checkpoint.checkpoint import Built, Checkpoint, Unbuilt

# Config
from db_checkpoint.config.loader import load_db_config
from db_checkpoint.config.models import (
    CheckpointConfig,
    DatabaseConfig,
    DatabaseProfile,
    FilterConfig,
)

# Connection
from db_checkpoint.connection import (
    DatabaseConnection,
    SqlAlchemyConnection,
    connect,
    create_async_engine_pooled,
)

# Errors
from db_checkpoint.errors import (
    CheckpointError,
    CommandTimeoutError,
    ConnectivityError,
    UnknownDialectError,
)

# Factory
from db_checkpoint.factory import (
    ProfileNotFoundError,
    create_checkpoint,
    get_engine,
    resolve_url,
)

# Schema
from db_checkpoint.schema import (
    CompiledSql,
    DeletionPlan,
    Relationship,
    SchemaIntrospector,
    TableRef,
    resolve,
)

__all__ = [
    # Adapters
    "DialectAdapter",
    "SqlServerDialect",
    "MySqlDialect",
    "PostgresDialect",
    "get_dialect",
    # Checkpoint
    "Checkpoint",
    "Unbuilt",
    "Built",
    # Config
    "load_db_config",
    "CheckpointConfig",
    "DatabaseConfig",
    "DatabaseProfile",
    "FilterConfig",
    # Connection
    "DatabaseConnection",
    "SqlAlchemyConnection",
    "connect",
    "create_async_engine_pooled",
    # Errors
    "CheckpointError",
    "ConnectivityError",
    "CommandTimeoutError",
    "UnknownDialectError",
    # Factory
    "ProfileNotFoundError",
    "create_checkpoint",
    "get_engine",
    "resolve_url",
    # Schema
    "TableRef",
    "Relationship",
    "DeletionPlan",
    "CompiledSql",
    "SchemaIntrospector",
    "resolve",
]
