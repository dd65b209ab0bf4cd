"""
Savepoint statements used to emulate nested transactions.

Savepoints are never tracked in a registry. The name of each one is a
pure function of the nesting level it was created for, so it can be
rebuilt at any time from an integer.
"""

DEFAULT_PREFIX = "level"

SAVEPOINT = "SAVEPOINT {name}"
ROLLBACK_TO_SAVEPOINT = "ROLLBACK TO SAVEPOINT {name}"


def savepoint_name(level: int, prefix: str = DEFAULT_PREFIX) -> str:
    """Name of the savepoint created on entering `level` (level >= 2)"""
    return f"{prefix}{level}"
