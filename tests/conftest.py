"""Shared fixtures: an in-memory database that enforces foreign keys.

``FakeDatabase`` holds row counts per table and the foreign keys between
them.  ``FakeConnection`` implements the ``DatabaseConnection`` Protocol
over it: metadata queries are answered from the fake catalog (applying
the bind-parameter filters the way the real catalog queries do), and the
statements a checkpoint generates are interpreted, so a DELETE on a
parent table with child rows fails just like on a real server.
"""

import asyncio
import re

import pytest

from db_checkpoint.adapters import MYSQL, POSTGRES, SQL_SERVER
from db_checkpoint.adapters.base import SqlDialect
from db_checkpoint.errors import ConnectivityError
from db_checkpoint.schema.models import Relationship, TableRef

RELATIONSHIP_MARKERS = ("sys.foreign_keys", "REFERENTIAL_CONSTRAINTS", "pg_constraint")


class FakeDatabase:
    """Row counts plus enforced foreign keys for one dialect."""

    def __init__(self, dialect: SqlDialect) -> None:
        self.dialect = dialect
        self.rows: dict[TableRef, int] = {}
        self.relationships: list[Relationship] = []
        self.fk_checks = True
        self.disabled_constraints: set[str] = set()
        self.disabled_triggers: set[TableRef] = set()

    def add_table(self, name: str, schema: str | None = None, rows: int = 100) -> TableRef:
        table = TableRef(schema, name)
        self.rows[table] = rows
        return table

    def add_fk(self, name: str, parent: TableRef, child: TableRef) -> Relationship:
        rel = Relationship(name=name, primary_key_table=parent, foreign_key_table=child)
        self.relationships.append(rel)
        return rel

    def count(self, table: TableRef) -> int:
        return self.rows[table]

    def populate(self, rows: int = 100) -> None:
        for table in self.rows:
            self.rows[table] = rows

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def catalog_rows(self, sql: str, params: dict) -> list[tuple]:
        ignore = {v for k, v in params.items() if k.startswith("ignore_")}
        exclude = {v for k, v in params.items() if k.startswith("exclude_")}
        include = {v for k, v in params.items() if k.startswith("include_")}

        def visible(table: TableRef) -> bool:
            if table.name in ignore or table.schema in exclude:
                return False
            return not include or table.schema in include

        if any(marker in sql for marker in RELATIONSHIP_MARKERS):
            return [
                (
                    rel.name,
                    rel.primary_key_table.schema,
                    rel.primary_key_table.name,
                    rel.foreign_key_table.schema,
                    rel.foreign_key_table.name,
                )
                for rel in self.relationships
                if visible(rel.primary_key_table) and visible(rel.foreign_key_table)
            ]

        tables = sorted(self.rows, key=lambda t: (t.schema or "", t.name))
        return [(t.schema, t.name) for t in tables if visible(t)]

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def execute(self, sql: str) -> int:
        tables = {self.dialect.quote(t): t for t in self.rows}
        constraints = {self.dialect.quote_identifier(r.name): r.name for r in self.relationships}

        if m := re.fullmatch(r"DELETE FROM (.+)", sql):
            table = tables[m.group(1)]
            for rel in self.relationships:
                if (
                    rel.primary_key_table == table
                    and not rel.is_self_referencing
                    and self.rows[rel.foreign_key_table]
                    and self._enforced(rel)
                ):
                    raise ConnectivityError(
                        f"DELETE on {table} conflicts with foreign key {rel.name}"
                    )
            deleted, self.rows[table] = self.rows[table], 0
            return deleted

        if m := re.fullmatch(r"SET FOREIGN_KEY_CHECKS = ([01])", sql):
            self.fk_checks = m.group(1) == "1"
            return 0

        if m := re.fullmatch(r"ALTER TABLE (.+) WITH CHECK CHECK CONSTRAINT (.+)", sql):
            self.disabled_constraints.discard(constraints[m.group(2)])
            return 0

        if m := re.fullmatch(r"ALTER TABLE (.+) NOCHECK CONSTRAINT (.+)", sql):
            self.disabled_constraints.add(constraints[m.group(2)])
            return 0

        if m := re.fullmatch(r"ALTER TABLE (.+) (DISABLE|ENABLE) TRIGGER ALL", sql):
            table = tables[m.group(1)]
            if m.group(2) == "DISABLE":
                self.disabled_triggers.add(table)
            else:
                self.disabled_triggers.discard(table)
            return 0

        raise AssertionError(f"Unexpected statement: {sql}")

    def _enforced(self, rel: Relationship) -> bool:
        return (
            self.fk_checks
            and rel.name not in self.disabled_constraints
            and rel.primary_key_table not in self.disabled_triggers
        )

    @property
    def constraints_suspended(self) -> bool:
        return bool(not self.fk_checks or self.disabled_constraints or self.disabled_triggers)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def snapshot(self) -> tuple:
        # FOREIGN_KEY_CHECKS is session state: rollback does not restore it
        return (
            dict(self.rows),
            set(self.disabled_constraints),
            set(self.disabled_triggers),
        )

    def restore(self, snapshot: tuple) -> None:
        rows, constraints, triggers = snapshot
        self.rows = dict(rows)
        self.disabled_constraints = set(constraints)
        self.disabled_triggers = set(triggers)


class FakeConnection:
    """``DatabaseConnection`` over a ``FakeDatabase``.

    Args:
        db: The database to operate on.
        fail_on: Substring; a statement containing it raises ``ConnectivityError``.
        fail_queries: If True, metadata queries raise ``ConnectivityError``.
        delay: Seconds each statement sleeps before executing.
        fail_rollback: If True, ``rollback()`` raises ``ConnectivityError``
            after recording the event, as on a dropped connection.
    """

    def __init__(
        self,
        db: FakeDatabase,
        fail_on: str | None = None,
        fail_queries: bool = False,
        delay: float = 0,
        fail_rollback: bool = False,
    ) -> None:
        self.db = db
        self.fail_on = fail_on
        self.fail_queries = fail_queries
        self.delay = delay
        self.fail_rollback = fail_rollback
        self.queries: list[str] = []
        self.statements: list[str] = []
        self.events: list[str] = []
        self._snapshot: tuple | None = None

    async def execute_query(self, sql: str, params: dict | None = None) -> list[tuple]:
        self.queries.append(sql)
        await asyncio.sleep(0)
        if self.fail_queries:
            raise ConnectivityError("permission denied for catalog")
        return self.db.catalog_rows(sql, params or {})

    async def execute_non_query(self, sql: str) -> int:
        if not sql.startswith("SET "):
            assert self._snapshot is not None, "statement executed outside a transaction"
        self.statements.append(sql)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_on and self.fail_on in sql:
            raise ConnectivityError(f"Statement failed: {sql}")
        return self.db.execute(sql)

    async def begin(self) -> None:
        self.events.append("begin")
        self._snapshot = self.db.snapshot()

    async def commit(self) -> None:
        self.events.append("commit")
        self._snapshot = None

    async def rollback(self) -> None:
        self.events.append("rollback")
        if self.fail_rollback:
            raise ConnectivityError("connection is closed")
        if self._snapshot is not None:
            self.db.restore(self._snapshot)
        self._snapshot = None


@pytest.fixture(params=[SQL_SERVER, MYSQL, POSTGRES], ids=lambda d: d.name)
def dialect(request: pytest.FixtureRequest) -> SqlDialect:
    """Every supported dialect."""
    return request.param


@pytest.fixture
def db(dialect: SqlDialect) -> FakeDatabase:
    return FakeDatabase(dialect)
