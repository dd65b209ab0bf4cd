from __future__ import annotations

from typing import Optional

from .savepoint import DEFAULT_PREFIX, savepoint_name


class TransactionState:
    """
    Nesting depth of the transactions open on one connection.

    Depth 0 means no transaction, depth 1 is the native transaction, and
    every level above it is a savepoint inside that transaction. The
    object is owned by exactly one connection and is not thread safe.
    """

    def __init__(self, savepoint_prefix: str = DEFAULT_PREFIX) -> None:
        self._depth = 0
        self._prefix = savepoint_prefix

    def __str__(self) -> str:
        return f"<TransactionState depth={self._depth}>"

    @property
    def depth(self) -> int:
        return self._depth

    def savepoint_name(self, level: int) -> str:
        return savepoint_name(level, self._prefix)

    def rollback_target(self, to_level: Optional[int] = None) -> Optional[int]:
        """Resolve the level a rollback lands on

        Returns `None` when the target is outside `0 <= level < depth`.
        """
        target = self._depth - 1 if to_level is None else to_level
        if target < 0 or target >= self._depth:
            return None
        return target

    def enter(self) -> None:
        self._depth += 1

    def leave(self) -> None:
        self._depth = max(0, self._depth - 1)

    def rewind(self, level: int) -> None:
        self._depth = level

    def reset(self) -> None:
        self._depth = 0
