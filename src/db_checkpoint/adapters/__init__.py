"""Dialect adapters package.

Provides the ``DialectAdapter`` Protocol, the concrete SQL Server,
MySQL and PostgreSQL dialects, and ``get_dialect()`` to look one up by
name or alias.

Usage:
    from db_checkpoint.adapters import get_dialect

    adapter = get_dialect("mssql")   # SqlServerDialect()
"""

from db_checkpoint.adapters.base import DialectAdapter, SqlDialect
from db_checkpoint.adapters.mysql import MySqlDialect
from db_checkpoint.adapters.postgres import PostgresDialect
from db_checkpoint.adapters.sqlserver import SqlServerDialect
from db_checkpoint.errors import UnknownDialectError

SQL_SERVER = SqlServerDialect()
MYSQL = MySqlDialect()
POSTGRES = PostgresDialect()

DIALECTS: dict[str, SqlDialect] = {
    dialect.name: dialect for dialect in (SQL_SERVER, MYSQL, POSTGRES)
}

_BY_ALIAS: dict[str, SqlDialect] = {
    alias: dialect for dialect in DIALECTS.values() for alias in dialect.aliases
}


def get_dialect(name: str) -> SqlDialect:
    """Look up a dialect by name or alias (case-insensitive).

    Args:
        name: Dialect name such as ``"sqlserver"``, ``"mysql"``,
            ``"postgres"``, or an alias (``"mssql"``, ``"mariadb"``,
            ``"postgresql"``, ``"pg"``).

    Returns:
        The shared dialect instance.

    Raises:
        UnknownDialectError: If no dialect matches.
    """
    key = name.strip().lower()
    dialect = DIALECTS.get(key) or _BY_ALIAS.get(key)
    if dialect is None:
        available = ", ".join(sorted(DIALECTS))
        raise UnknownDialectError(f"Unknown dialect '{name}'. Available: {available}")
    return dialect


__all__ = [
    "DialectAdapter",
    "SqlDialect",
    "SqlServerDialect",
    "MySqlDialect",
    "PostgresDialect",
    "SQL_SERVER",
    "MYSQL",
    "POSTGRES",
    "DIALECTS",
    "get_dialect",
]
