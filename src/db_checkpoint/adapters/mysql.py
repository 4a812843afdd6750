"""MySQL / MariaDB dialect.

MySQL's schemas are databases: ``TABLE_SCHEMA`` is reported as the
schema and the schema filters select databases.  System databases are
always skipped.  Foreign-key checks are a session toggle, so cycles are
broken by switching ``FOREIGN_KEY_CHECKS`` off around the deletes.
The toggle is session state, not transactional: a rollback leaves it
off, so a failed reset has to switch it back on explicitly.
"""

from collections.abc import Sequence

from db_checkpoint.adapters.base import SqlDialect, where
from db_checkpoint.config.models import FilterConfig
from db_checkpoint.schema.models import Relationship, TableRef

SYSTEM_SCHEMAS = ("mysql", "information_schema", "performance_schema", "sys")

_SYSTEM_SCHEMA_LIST = ", ".join(f"'{name}'" for name in SYSTEM_SCHEMAS)


class MySqlDialect(SqlDialect):
    """MySQL rendering with backtick-quoted identifiers."""

    name = "mysql"
    quote_char = "`"
    aliases = ("mariadb",)
    session_scoped_disable = True

    def build_table_query(self, filters: FilterConfig) -> str:
        clauses = [
            "t.TABLE_TYPE = 'BASE TABLE'",
            f"t.TABLE_SCHEMA NOT IN ({_SYSTEM_SCHEMA_LIST})",
        ]
        clauses += self.filter_clauses(filters, "t.TABLE_NAME", "t.TABLE_SCHEMA")
        return f"""
SELECT t.TABLE_SCHEMA, t.TABLE_NAME
FROM information_schema.TABLES t
WHERE {where(clauses)}
ORDER BY t.TABLE_SCHEMA, t.TABLE_NAME
"""

    def build_relationship_query(self, filters: FilterConfig) -> str:
        clauses = [f"rc.CONSTRAINT_SCHEMA NOT IN ({_SYSTEM_SCHEMA_LIST})"]
        clauses += self.filter_clauses(
            filters, "rc.REFERENCED_TABLE_NAME", "rc.UNIQUE_CONSTRAINT_SCHEMA"
        )
        clauses += self.filter_clauses(filters, "rc.TABLE_NAME", "rc.CONSTRAINT_SCHEMA")
        return f"""
SELECT rc.CONSTRAINT_NAME, rc.UNIQUE_CONSTRAINT_SCHEMA, rc.REFERENCED_TABLE_NAME,
       rc.CONSTRAINT_SCHEMA, rc.TABLE_NAME
FROM information_schema.REFERENTIAL_CONSTRAINTS rc
WHERE {where(clauses)}
ORDER BY rc.CONSTRAINT_SCHEMA, rc.TABLE_NAME, rc.CONSTRAINT_NAME
"""

    def build_disable_fk_command(
        self,
        tables_to_disable: Sequence[TableRef],
        relationships: Sequence[Relationship],
    ) -> list[str]:
        if not tables_to_disable:
            return []
        return ["SET FOREIGN_KEY_CHECKS = 0"]

    def build_enable_fk_command(
        self,
        tables_to_disable: Sequence[TableRef],
        relationships: Sequence[Relationship],
    ) -> list[str]:
        if not tables_to_disable:
            return []
        return ["SET FOREIGN_KEY_CHECKS = 1"]
