from nestdb.exception import NestDBError


class TransactionError(NestDBError):
    """Raised on mismatched transaction calls when running strict"""

    pass
