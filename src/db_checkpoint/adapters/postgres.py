"""PostgreSQL dialect.

Tables come from ``information_schema.tables`` and foreign keys from
``pg_constraint``.  Cycles are broken with ``DISABLE TRIGGER ALL``,
which switches off the internal triggers that enforce foreign keys and
requires superuser rights.
"""

from collections.abc import Sequence

from db_checkpoint.adapters.base import SqlDialect, where
from db_checkpoint.config.models import FilterConfig
from db_checkpoint.schema.models import Relationship, TableRef

SYSTEM_SCHEMAS = ("pg_catalog", "information_schema")

_SYSTEM_SCHEMA_LIST = ", ".join(f"'{name}'" for name in SYSTEM_SCHEMAS)


class PostgresDialect(SqlDialect):
    """PostgreSQL rendering with double-quoted identifiers."""

    name = "postgres"
    quote_char = '"'
    aliases = ("postgresql", "pg")

    def build_table_query(self, filters: FilterConfig) -> str:
        clauses = [
            "table_type = 'BASE TABLE'",
            f"table_schema NOT IN ({_SYSTEM_SCHEMA_LIST})",
        ]
        clauses += self.filter_clauses(filters, "table_name", "table_schema")
        return f"""
SELECT table_schema, table_name
FROM information_schema.tables
WHERE {where(clauses)}
ORDER BY table_schema, table_name
"""

    def build_relationship_query(self, filters: FilterConfig) -> str:
        clauses = ["con.contype = 'f'"]
        clauses += self.filter_clauses(filters, "pk_cls.relname", "pk_ns.nspname")
        clauses += self.filter_clauses(filters, "fk_cls.relname", "fk_ns.nspname")
        return f"""
SELECT con.conname, pk_ns.nspname, pk_cls.relname, fk_ns.nspname, fk_cls.relname
FROM pg_constraint con
JOIN pg_class fk_cls ON fk_cls.oid = con.conrelid
JOIN pg_namespace fk_ns ON fk_ns.oid = fk_cls.relnamespace
JOIN pg_class pk_cls ON pk_cls.oid = con.confrelid
JOIN pg_namespace pk_ns ON pk_ns.oid = pk_cls.relnamespace
WHERE {where(clauses)}
ORDER BY fk_ns.nspname, fk_cls.relname, con.conname
"""

    def build_disable_fk_command(
        self,
        tables_to_disable: Sequence[TableRef],
        relationships: Sequence[Relationship],
    ) -> list[str]:
        return [f"ALTER TABLE {self.quote(table)} DISABLE TRIGGER ALL" for table in tables_to_disable]

    def build_enable_fk_command(
        self,
        tables_to_disable: Sequence[TableRef],
        relationships: Sequence[Relationship],
    ) -> list[str]:
        return [f"ALTER TABLE {self.quote(table)} ENABLE TRIGGER ALL" for table in tables_to_disable]
