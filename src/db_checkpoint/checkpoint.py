"""Checkpoint orchestrator: plan once, delete on every reset.

A ``Checkpoint`` introspects the database on its first ``reset()``,
resolves the deletion order, renders the dialect SQL and caches all of
it.  Every ``reset()`` then runs the cached statements in one
transaction: disable constraints, delete, re-enable, commit.

The cache lives as long as the instance.  Build a new ``Checkpoint``
after changing the schema.

Usage:
    from db_checkpoint import Checkpoint

    checkpoint = Checkpoint("postgres", tables_to_ignore=["schema_migrations"])

    async with engine.connect() as conn:
        await checkpoint.reset(SqlAlchemyConnection(conn))

    # or let the checkpoint open the connection
    await checkpoint.reset_engine(engine)
"""

import asyncio
import logging
from collections.abc import Awaitable, Iterable
from dataclasses import dataclass
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncEngine

from db_checkpoint.adapters import get_dialect
from db_checkpoint.adapters.base import DialectAdapter
from db_checkpoint.config.models import CheckpointConfig, FilterConfig
from db_checkpoint.connection import DatabaseConnection, connect
from db_checkpoint.errors import CommandTimeoutError
from db_checkpoint.schema.introspector import SchemaIntrospector
from db_checkpoint.schema.models import CompiledSql, DeletionPlan, Relationship
from db_checkpoint.schema.resolver import resolve

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_DIALECT = "sqlserver"


# ------------------------------------------------------------------
# State
# ------------------------------------------------------------------


@dataclass(frozen=True)
class Unbuilt:
    """No plan cached yet; the next reset introspects the database."""


@dataclass(frozen=True)
class Built:
    """Plan and rendered SQL, reused by every reset."""

    plan: DeletionPlan
    relationships: tuple[Relationship, ...]
    sql: CompiledSql


CheckpointState = Unbuilt | Built


# ------------------------------------------------------------------
# Checkpoint
# ------------------------------------------------------------------


class Checkpoint:
    """Resets a database to empty tables, keeping the schema.

    Args:
        dialect: A ``DialectAdapter`` or a dialect name understood by
            ``get_dialect()`` (default: ``"sqlserver"``).
        tables_to_ignore: Table names whose rows are never deleted.
        schemas_to_include: If given, only these schemas are reset.
        schemas_to_exclude: Schemas that are never reset.
        command_timeout: Seconds each statement may run; ``None`` leaves
            the connection's own timeout in charge.

    The build-or-reuse decision is taken under an ``asyncio.Lock``, so
    concurrent ``reset()`` calls on one instance build the plan once.
    Each call still needs its own connection.

    Example:
        checkpoint = Checkpoint(
            "mysql",
            tables_to_ignore=["flyway_schema_history"],
            command_timeout=30,
        )
        await checkpoint.reset(connection)
    """

    def __init__(
        self,
        dialect: DialectAdapter | str = DEFAULT_DIALECT,
        *,
        tables_to_ignore: Iterable[str] | None = None,
        schemas_to_include: Iterable[str] | None = None,
        schemas_to_exclude: Iterable[str] | None = None,
        command_timeout: float | None = None,
    ) -> None:
        if command_timeout is not None and command_timeout <= 0:
            raise ValueError("command_timeout must be positive")

        self._adapter: DialectAdapter = (
            get_dialect(dialect) if isinstance(dialect, str) else dialect
        )
        self._filters = FilterConfig(
            tables_to_ignore=list(tables_to_ignore or []),
            schemas_to_include=list(schemas_to_include or []),
            schemas_to_exclude=list(schemas_to_exclude or []),
        )
        self._command_timeout = command_timeout
        self._state: CheckpointState = Unbuilt()
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(
        cls,
        config: CheckpointConfig,
        default_dialect: str = DEFAULT_DIALECT,
    ) -> "Checkpoint":
        """Create a checkpoint from the ``[checkpoint]`` section of db.toml.

        Args:
            config: Parsed checkpoint section.
            default_dialect: Used when the section names no dialect
                (the factory passes the profile's provider).
        """
        return cls(
            config.dialect or default_dialect,
            tables_to_ignore=config.tables_to_ignore,
            schemas_to_include=config.schemas_to_include,
            schemas_to_exclude=config.schemas_to_exclude,
            command_timeout=config.command_timeout,
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def adapter(self) -> DialectAdapter:
        return self._adapter

    @property
    def filters(self) -> FilterConfig:
        return self._filters

    @property
    def command_timeout(self) -> float | None:
        return self._command_timeout

    @property
    def is_built(self) -> bool:
        return isinstance(self._state, Built)

    @property
    def plan(self) -> DeletionPlan | None:
        """The cached plan, or ``None`` before the first build."""
        return self._state.plan if isinstance(self._state, Built) else None

    @property
    def compiled_sql(self) -> CompiledSql | None:
        """The cached SQL, or ``None`` before the first build."""
        return self._state.sql if isinstance(self._state, Built) else None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def build(self, connection: DatabaseConnection) -> DeletionPlan:
        """Build (or return) the cached plan without deleting anything."""
        state = await self._ensure_built(connection)
        return state.plan

    async def reset(self, connection: DatabaseConnection) -> None:
        """Delete all rows from every tracked table in one transaction.

        Builds the plan on first use.  On any failure the transaction is
        rolled back and the error re-raised; the cached plan is kept.
        Dialects whose constraint toggle is session state (MySQL) get
        their enable statements re-run after the rollback.  A failing
        rollback is logged, never raised over the original error.

        Args:
            connection: Open connection, used exclusively for this call.

        Raises:
            ConnectivityError: If a metadata query or statement fails.
            CommandTimeoutError: If a statement exceeds ``command_timeout``.
        """
        state = await self._ensure_built(connection)
        await self._execute(connection, state.sql)
        logger.debug("Reset %d tables", len(state.plan.tables_to_delete))

    async def reset_engine(self, engine: AsyncEngine) -> None:
        """Reset through a fresh connection checked out of ``engine``."""
        async with connect(engine) as connection:
            await self.reset(connection)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _ensure_built(self, connection: DatabaseConnection) -> Built:
        state = self._state
        if isinstance(state, Built):
            return state
        async with self._lock:
            # Double-check after acquiring lock
            state = self._state
            if isinstance(state, Built):
                return state
            state = await self._build(connection)
            self._state = state
            return state

    async def _build(self, connection: DatabaseConnection) -> Built:
        introspector = SchemaIntrospector(connection, self._adapter, self._filters)
        tables = await self._run(introspector.get_tables())
        relationships = tuple(await self._run(introspector.get_relationships()))

        plan = resolve(tables, relationships)
        sql = CompiledSql(
            disable_statements=tuple(
                self._adapter.build_disable_fk_command(plan.constraints_to_disable, relationships)
            ),
            delete_statements=tuple(self._adapter.build_delete_command(plan.tables_to_delete)),
            enable_statements=tuple(
                self._adapter.build_enable_fk_command(plan.constraints_to_disable, relationships)
            ),
        )
        logger.debug(
            "Built deletion plan: %d tables, %d foreign keys, %d to delete, %d with constraints disabled",
            len(tables),
            len(relationships),
            len(plan.tables_to_delete),
            len(plan.constraints_to_disable),
        )
        return Built(plan=plan, relationships=relationships, sql=sql)

    async def _execute(self, connection: DatabaseConnection, sql: CompiledSql) -> None:
        await connection.begin()
        try:
            for statement in sql.statements:
                await self._run(connection.execute_non_query(statement))
            await connection.commit()
        except BaseException:
            await self._abort(connection, sql)
            raise

    async def _abort(self, connection: DatabaseConnection, sql: CompiledSql) -> None:
        """Roll back a failed reset without masking the error being raised."""
        try:
            await connection.rollback()
        except Exception:
            logger.warning("Rollback after failed reset also failed", exc_info=True)

        if not self._adapter.session_scoped_disable:
            return
        # Rollback leaves session toggles as they were; switch checks back on
        for statement in sql.enable_statements:
            try:
                await self._run(connection.execute_non_query(statement))
            except Exception:
                logger.warning("Could not restore constraints: %s", statement, exc_info=True)

    async def _run(self, awaitable: Awaitable[T]) -> T:
        """Await one database call, bounded by ``command_timeout``."""
        if self._command_timeout is None:
            return await awaitable
        try:
            return await asyncio.wait_for(awaitable, self._command_timeout)
        except asyncio.TimeoutError as e:
            raise CommandTimeoutError(
                f"Statement exceeded command timeout of {self._command_timeout}s"
            ) from e
