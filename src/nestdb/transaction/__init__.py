from .interfaces import TransactionError
from .savepoint import ROLLBACK_TO_SAVEPOINT, SAVEPOINT, savepoint_name
from .state import TransactionState

__all__ = [
    "TransactionError",
    "TransactionState",
    "SAVEPOINT",
    "ROLLBACK_TO_SAVEPOINT",
    "savepoint_name",
]
