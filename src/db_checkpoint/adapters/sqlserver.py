"""SQL Server dialect.

Reads ``sys.tables``/``sys.schemas``/``sys.foreign_keys`` and suspends
cyclic constraints one at a time with ``NOCHECK CONSTRAINT``.
"""

from collections.abc import Sequence

from db_checkpoint.adapters.base import SqlDialect, fk_relationships_for, where
from db_checkpoint.config.models import FilterConfig
from db_checkpoint.schema.models import Relationship, TableRef


class SqlServerDialect(SqlDialect):
    """SQL Server rendering.

    Identifiers use double quotes, which requires ``QUOTED_IDENTIFIER ON``
    (the default for ODBC connections).
    """

    name = "sqlserver"
    quote_char = '"'
    aliases = ("mssql",)

    def build_table_query(self, filters: FilterConfig) -> str:
        clauses = ["t.is_ms_shipped = 0"]
        clauses += self.filter_clauses(filters, "t.name", "s.name")
        return f"""
SELECT s.name, t.name
FROM sys.tables t
INNER JOIN sys.schemas s ON t.schema_id = s.schema_id
WHERE {where(clauses)}
ORDER BY s.name, t.name
"""

    def build_relationship_query(self, filters: FilterConfig) -> str:
        clauses = ["fk_table.is_ms_shipped = 0"]
        clauses += self.filter_clauses(filters, "pk_table.name", "pk_schema.name")
        clauses += self.filter_clauses(filters, "fk_table.name", "fk_schema.name")
        return f"""
SELECT fk.name, pk_schema.name, pk_table.name, fk_schema.name, fk_table.name
FROM sys.foreign_keys fk
INNER JOIN sys.tables pk_table ON fk.referenced_object_id = pk_table.object_id
INNER JOIN sys.schemas pk_schema ON pk_table.schema_id = pk_schema.schema_id
INNER JOIN sys.tables fk_table ON fk.parent_object_id = fk_table.object_id
INNER JOIN sys.schemas fk_schema ON fk_table.schema_id = fk_schema.schema_id
WHERE {where(clauses)}
ORDER BY fk_schema.name, fk_table.name, fk.name
"""

    def build_disable_fk_command(
        self,
        tables_to_disable: Sequence[TableRef],
        relationships: Sequence[Relationship],
    ) -> list[str]:
        return [
            f"ALTER TABLE {self.quote(rel.foreign_key_table)} "
            f"NOCHECK CONSTRAINT {self.quote_identifier(rel.name)}"
            for rel in fk_relationships_for(tables_to_disable, relationships)
        ]

    def build_enable_fk_command(
        self,
        tables_to_disable: Sequence[TableRef],
        relationships: Sequence[Relationship],
    ) -> list[str]:
        return [
            f"ALTER TABLE {self.quote(rel.foreign_key_table)} "
            f"WITH CHECK CHECK CONSTRAINT {self.quote_identifier(rel.name)}"
            for rel in fk_relationships_for(tables_to_disable, relationships)
        ]
