"""Deletion ordering from foreign-key relationships.

``resolve()`` is pure: it orders tables so that every child table is
deleted before the tables it references, by repeatedly stripping leaf
tables (tables no remaining table depends on) from the graph.

When no leaf is left but tables remain, those tables form or hang off a
cycle.  They are returned in ``constraints_to_disable`` instead of
failing: their constraints are suspended and their rows deleted last.

Usage:
    from db_checkpoint.schema.resolver import resolve

    plan = resolve(tables, relationships)
    plan.delete_order            # children first
    plan.constraints_to_disable  # cycle members, empty for acyclic graphs
"""

import logging
from collections.abc import Iterable

from db_checkpoint.schema.models import DeletionPlan, Relationship, TableRef

logger = logging.getLogger(__name__)


def resolve(
    all_tables: Iterable[TableRef],
    all_relationships: Iterable[Relationship],
) -> DeletionPlan:
    """Compute a deletion plan for the given tables.

    Tables are handled by integer handle in first-seen order, so the same
    input always yields the same plan.  Within one batch of leaves, tables
    keep their input order.

    Relationships are ignored when they are self-referencing (a table can
    always delete its own rows in one statement) or when either side is
    not in ``all_tables`` (filtered out by the caller).

    Args:
        all_tables: Tables to delete from; duplicates are dropped.
        all_relationships: Foreign keys between those tables.

    Returns:
        DeletionPlan with ``delete_order`` (children before parents) and
        ``constraints_to_disable`` (tables left in a cycle).

    Example:
        >>> bob, foo, bar = TableRef(None, "Bob"), TableRef(None, "Foo"), TableRef(None, "Bar")
        >>> plan = resolve(
        ...     [bob, foo, bar],
        ...     [Relationship("FK_FOO_BOB", bob, foo), Relationship("FK_BAR_FOO", foo, bar)],
        ... )
        >>> [t.name for t in plan.delete_order]
        ['Bar', 'Foo', 'Bob']
    """
    arena: list[TableRef] = list(dict.fromkeys(all_tables))
    handles = {table: handle for handle, table in enumerate(arena)}

    # referrers[pk]: undeleted tables holding a foreign key to pk
    # parents[fk]: tables fk holds a foreign key to
    referrers: list[set[int]] = [set() for _ in arena]
    parents: list[set[int]] = [set() for _ in arena]
    for rel in all_relationships:
        if rel.is_self_referencing:
            continue
        pk = handles.get(rel.primary_key_table)
        fk = handles.get(rel.foreign_key_table)
        if pk is None or fk is None:
            continue
        referrers[pk].add(fk)
        parents[fk].add(pk)

    delete_order: list[int] = []
    remaining: list[int] = list(range(len(arena)))

    while remaining:
        leaves = [handle for handle in remaining if not referrers[handle]]

        if not leaves:
            # Every remaining table is still referenced: a cycle.
            logger.info(
                "Foreign-key cycle among %d tables; constraints will be disabled: %s",
                len(remaining),
                ", ".join(str(arena[handle]) for handle in remaining),
            )
            return _plan(arena, delete_order, remaining)

        delete_order.extend(leaves)
        stripped = set(leaves)
        remaining = [handle for handle in remaining if handle not in stripped]
        for leaf in leaves:
            for pk in parents[leaf]:
                referrers[pk].discard(leaf)

    return _plan(arena, delete_order, [])


def _plan(arena: list[TableRef], delete_order: list[int], disable: list[int]) -> DeletionPlan:
    return DeletionPlan(
        delete_order=tuple(arena[handle] for handle in delete_order),
        constraints_to_disable=tuple(arena[handle] for handle in disable),
    )
