"""Exceptions raised by db-checkpoint.

Every error surfaced by ``Checkpoint.reset()`` is a ``CheckpointError``
subclass, so callers can catch the whole family with one clause.

Usage:
    from db_checkpoint.errors import CheckpointError, ConnectivityError

    try:
        await checkpoint.reset(connection)
    except ConnectivityError as e:
        print(f"Database unreachable: {e}")
"""


class CheckpointError(Exception):
    """Base class for all db-checkpoint errors."""

    pass


class ConnectivityError(CheckpointError):
    """Raised when a statement cannot be executed.

    Covers network failures, authentication failures, missing metadata
    permissions and SQL rejected by the server.  The driver exception is
    chained as ``__cause__``.
    """

    pass


class CommandTimeoutError(CheckpointError, TimeoutError):
    """Raised when a single statement exceeds the configured command timeout."""

    pass


class UnknownDialectError(CheckpointError, ValueError):
    """Raised when a dialect name has no registered adapter."""

    pass
