from __future__ import annotations

import sqlite3
from typing import Any, Optional, Tuple

from nestdb.base.gateway import BaseGateway
from nestdb.base.statement import BaseStatement, Result


class SQLiteStatement(BaseStatement):
    POSITIONAL_SUB = "?"

    def _run(self, query: str, values: Optional[Tuple[Any, ...]]) -> Result:
        cursor = self._gateway.raw_connection.execute(query, values or ())
        try:
            if cursor.description:
                columns = tuple(column[0] for column in cursor.description)
                rows = cursor.fetchall()
                row_count = len(rows)
            else:
                columns, rows, row_count = (), [], cursor.rowcount
            return Result(columns, rows, row_count, cursor.lastrowid)
        finally:
            cursor.close()


class SQLiteGateway(BaseGateway):
    """Gateway for a SQLite database file, or `:memory:`

    The connection runs in autocommit mode so that transactions are only
    ever opened by an explicit `BEGIN`.
    """

    scheme = "sqlite"

    def _setup_connection(self):
        self._connection = sqlite3.connect(
            self._dsn_body, isolation_level=None, **self.driver_options
        )

    def _close_connection(self):
        self._connection.close()

    def prepare(self, query: str) -> BaseStatement:
        return SQLiteStatement(self, query)

    def begin_transaction(self) -> None:
        self._connection.execute("BEGIN")

    def commit(self) -> None:
        self._connection.execute("COMMIT")

    def rollback(self) -> None:
        self._connection.execute("ROLLBACK")

    def exec(self, statement: str) -> int:
        cursor = self._connection.execute(statement)
        try:
            return cursor.rowcount
        finally:
            cursor.close()

    def in_transaction(self) -> bool:
        return self._connection.in_transaction
