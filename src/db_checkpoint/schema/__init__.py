"""Schema introspection and deletion planning.

Provides the value types (``TableRef``, ``Relationship``,
``DeletionPlan``, ``CompiledSql``), live catalog introspection
(``SchemaIntrospector``) and dependency resolution (``resolve``).

Usage:
    from db_checkpoint.schema import SchemaIntrospector, resolve
"""

from db_checkpoint.schema.models import (
    CompiledSql,
    DeletionPlan,
    Relationship,
    TableRef,
)
from db_checkpoint.schema.introspector import SchemaIntrospector
from db_checkpoint.schema.resolver import resolve

__all__ = [
    "TableRef",
    "Relationship",
    "DeletionPlan",
    "CompiledSql",
    "SchemaIntrospector",
    "resolve",
]
