"""Value types for schema introspection and deletion planning.

This module contains schema-domain models:
- Introspection models: TableRef, Relationship
- Planning models: DeletionPlan, CompiledSql

All models are frozen dataclasses: they are hashable, compared by value
and never mutated after construction.

Configuration models (FilterConfig, CheckpointConfig) live in
db_checkpoint.config.models.
"""

from dataclasses import dataclass


# ============================================================================
# Schema Introspection Models
# ============================================================================


@dataclass(frozen=True)
class TableRef:
    """One table, identified by schema and name.

    ``schema`` is ``None`` for rows that carry no schema component; such
    tables render as a bare quoted name.

    Example:
        >>> TableRef("dbo", "Foo") == TableRef("dbo", "Foo")
        True
        >>> str(TableRef(None, "Foo"))
        'Foo'
    """

    schema: str | None
    name: str

    def __str__(self) -> str:
        if self.schema:
            return f"{self.schema}.{self.name}"
        return self.name


@dataclass(frozen=True)
class Relationship:
    """A foreign-key constraint between two tables.

    ``primary_key_table`` is the referenced (parent) table and
    ``foreign_key_table`` the referencing (child) table.
    """

    name: str
    primary_key_table: TableRef
    foreign_key_table: TableRef

    @property
    def is_self_referencing(self) -> bool:
        """True if the constraint points back at its own table."""
        return self.primary_key_table == self.foreign_key_table


# ============================================================================
# Planning Models
# ============================================================================


@dataclass(frozen=True)
class DeletionPlan:
    """Result of dependency resolution.

    Attributes:
        delete_order: Tables to delete, children before parents.
        constraints_to_disable: Tables left in a foreign-key cycle.  Their
            constraints are suspended before deleting, and their rows are
            deleted after ``delete_order``.
    """

    delete_order: tuple[TableRef, ...] = ()
    constraints_to_disable: tuple[TableRef, ...] = ()

    @property
    def tables_to_delete(self) -> tuple[TableRef, ...]:
        """Every table whose rows a reset removes, in execution order."""
        return self.delete_order + self.constraints_to_disable

    @property
    def is_empty(self) -> bool:
        """True for the no-op plan (no tables matched the filters)."""
        return not self.delete_order and not self.constraints_to_disable


@dataclass(frozen=True)
class CompiledSql:
    """Dialect-rendered statements for a ``DeletionPlan``.

    Each tuple holds single statements, executed in order: disable,
    delete, enable.

    Example:
        >>> sql = CompiledSql(delete_statements=('DELETE FROM "Foo"',))
        >>> sql.delete_sql
        'DELETE FROM "Foo";'
    """

    disable_statements: tuple[str, ...] = ()
    delete_statements: tuple[str, ...] = ()
    enable_statements: tuple[str, ...] = ()

    @property
    def disable_sql(self) -> str:
        return _join(self.disable_statements)

    @property
    def delete_sql(self) -> str:
        return _join(self.delete_statements)

    @property
    def enable_sql(self) -> str:
        return _join(self.enable_statements)

    @property
    def statements(self) -> tuple[str, ...]:
        """All statements in execution order."""
        return self.disable_statements + self.delete_statements + self.enable_statements


def _join(statements: tuple[str, ...]) -> str:
    return "\n".join(f"{statement};" for statement in statements)
