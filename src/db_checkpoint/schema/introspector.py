"""Schema introspection via dialect catalog queries.

This module runs the adapter's metadata queries over a caller-provided
connection and turns the rows into typed values:
- Tables, as ``TableRef``
- Foreign keys, as ``Relationship``

The connection's errors (``ConnectivityError``) propagate unchanged;
there is no retry here.
"""

import logging
from typing import TYPE_CHECKING

from db_checkpoint.config.models import FilterConfig
from db_checkpoint.schema.models import Relationship, TableRef

if TYPE_CHECKING:
    from db_checkpoint.adapters.base import DialectAdapter
    from db_checkpoint.connection import DatabaseConnection

logger = logging.getLogger(__name__)


class SchemaIntrospector:
    """Reads the filtered table set and its foreign keys.

    Usage:
        introspector = SchemaIntrospector(connection, get_dialect("mysql"), filters)
        tables = await introspector.get_tables()
        relationships = await introspector.get_relationships()
    """

    def __init__(
        self,
        connection: "DatabaseConnection",
        adapter: "DialectAdapter",
        filters: FilterConfig | None = None,
    ) -> None:
        """Initialize with an open connection.

        Args:
            connection: Open connection; not closed by the introspector.
            adapter: Dialect rendering the catalog queries.
            filters: Table and schema filters (default: none).
        """
        self._conn = connection
        self._adapter = adapter
        self._filters = filters or FilterConfig()

    async def get_tables(self) -> list[TableRef]:
        """Get all tables that pass the filters, in catalog order."""
        query = self._adapter.build_table_query(self._filters)
        rows = await self._conn.execute_query(query, self._filters.parameters())
        tables = [_table_ref(schema, name) for schema, name in rows]
        logger.debug("Found %d tables", len(tables))
        return tables

    async def get_relationships(self) -> list[Relationship]:
        """Get all foreign keys between tables that pass the filters."""
        query = self._adapter.build_relationship_query(self._filters)
        rows = await self._conn.execute_query(query, self._filters.parameters())
        relationships = [
            Relationship(
                name=name,
                primary_key_table=_table_ref(pk_schema, pk_table),
                foreign_key_table=_table_ref(fk_schema, fk_table),
            )
            for name, pk_schema, pk_table, fk_schema, fk_table in rows
        ]
        logger.debug("Found %d foreign keys", len(relationships))
        return relationships


def _table_ref(schema: str | None, name: str) -> TableRef:
    # Dialects without schemas report NULL or an empty string
    return TableRef(schema=schema or None, name=name)
