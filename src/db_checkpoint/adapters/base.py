"""Dialect adapter protocol and shared rendering helpers.

Defines the ``DialectAdapter`` Protocol that every supported database
dialect implements, plus ``SqlDialect``, a base class holding the
rendering logic the dialects have in common (identifier quoting,
``DELETE`` statements, filter clauses).

Adapters are pure: they only render SQL text and never touch a
connection.  Metadata queries reference the filter values through bind
parameters named by ``FilterConfig.parameters()``.

Usage:
    from db_checkpoint.adapters.base import DialectAdapter

    def render(adapter: DialectAdapter, plan: DeletionPlan) -> list[str]:
        return adapter.build_delete_command(plan.tables_to_delete)
"""

from collections.abc import Sequence
from typing import Protocol

from db_checkpoint.config.models import FilterConfig
from db_checkpoint.schema.models import Relationship, TableRef


class DialectAdapter(Protocol):
    """SQL rendering interface that all dialects must implement.

    Every ``build_*`` method returns a list of single statements without
    trailing semicolons, so drivers that prepare statements can execute
    them one at a time.
    """

    name: str
    quote_char: str
    # True when the disable statements change session state that a
    # rollback does not undo
    session_scoped_disable: bool

    def quote(self, table: TableRef) -> str:
        """Render a table as a quoted identifier.

        Tables without a schema render as a bare quoted name.

        Example:
            adapter.quote(TableRef("dbo", "Foo"))   # '"dbo"."Foo"'
            adapter.quote(TableRef(None, "Foo"))    # '"Foo"'
        """
        ...

    def build_table_query(self, filters: FilterConfig) -> str:
        """Catalog query selecting ``(schema, table)`` rows.

        Args:
            filters: Table and schema filters, referenced through bind
                parameters (``:ignore_0``, ``:exclude_0``, ``:include_0``...).

        Returns:
            SQL text ordered by schema then table.
        """
        ...

    def build_relationship_query(self, filters: FilterConfig) -> str:
        """Catalog query selecting foreign-key rows.

        Each row is ``(constraint name, pk schema, pk table, fk schema,
        fk table)``; the same filters apply as for ``build_table_query``.
        """
        ...

    def build_delete_command(self, ordered_tables: Sequence[TableRef]) -> list[str]:
        """One ``DELETE`` statement per table, in the given order."""
        ...

    def build_disable_fk_command(
        self,
        tables_to_disable: Sequence[TableRef],
        relationships: Sequence[Relationship],
    ) -> list[str]:
        """Statements suspending foreign-key enforcement for the given tables.

        Returns an empty list when ``tables_to_disable`` is empty.
        """
        ...

    def build_enable_fk_command(
        self,
        tables_to_disable: Sequence[TableRef],
        relationships: Sequence[Relationship],
    ) -> list[str]:
        """Statements restoring what ``build_disable_fk_command`` suspended."""
        ...


class SqlDialect:
    """Rendering logic shared by the concrete dialects.

    Subclasses set ``name``, ``quote_char`` and ``aliases`` and implement
    the catalog queries and the disable/enable statements.
    """

    name: str = ""
    quote_char: str = '"'
    aliases: tuple[str, ...] = ()
    session_scoped_disable: bool = False

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    # ------------------------------------------------------------------
    # Quoting
    # ------------------------------------------------------------------

    def quote_identifier(self, identifier: str) -> str:
        """Quote one identifier, doubling embedded quote characters."""
        q = self.quote_char
        return f"{q}{identifier.replace(q, q + q)}{q}"

    def quote(self, table: TableRef) -> str:
        if table.schema:
            return f"{self.quote_identifier(table.schema)}.{self.quote_identifier(table.name)}"
        return self.quote_identifier(table.name)

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def build_delete_command(self, ordered_tables: Sequence[TableRef]) -> list[str]:
        return [f"DELETE FROM {self.quote(table)}" for table in ordered_tables]

    # ------------------------------------------------------------------
    # Filter helpers
    # ------------------------------------------------------------------

    def filter_clauses(
        self,
        filters: FilterConfig,
        table_column: str,
        schema_column: str,
    ) -> list[str]:
        """``WHERE`` conditions applying ``filters`` to one table reference.

        Returns an empty list when no filter is configured.
        """
        clauses: list[str] = []
        if filters.tables_to_ignore:
            clauses.append(
                f"{table_column} NOT IN ({placeholders('ignore', filters.tables_to_ignore)})"
            )
        if filters.schemas_to_exclude:
            clauses.append(
                f"{schema_column} NOT IN ({placeholders('exclude', filters.schemas_to_exclude)})"
            )
        if filters.schemas_to_include:
            clauses.append(
                f"{schema_column} IN ({placeholders('include', filters.schemas_to_include)})"
            )
        return clauses


def placeholders(prefix: str, values: Sequence[str]) -> str:
    """Comma-separated named bind parameters for ``values``.

    Example:
        >>> placeholders("ignore", ["Foo", "Bar"])
        ':ignore_0, :ignore_1'
    """
    return ", ".join(f":{prefix}_{i}" for i in range(len(values)))


def where(clauses: Sequence[str]) -> str:
    """Join conditions into an ``AND`` chain, one per line."""
    return "\n  AND ".join(clauses)


def fk_relationships_for(
    tables: Sequence[TableRef],
    relationships: Sequence[Relationship],
) -> list[Relationship]:
    """Relationships whose referencing table is one of ``tables``.

    Self references are included: a table in a cycle may also point at
    itself.
    """
    targets = set(tables)
    return [rel for rel in relationships if rel.foreign_key_table in targets]
