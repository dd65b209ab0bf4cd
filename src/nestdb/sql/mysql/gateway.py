from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import mysql.connector

from nestdb.base.gateway import BaseGateway
from nestdb.base.statement import BaseStatement, Result
from nestdb.exception import ConfigurationError

DSN_KEYS = {
    "host": "host",
    "port": "port",
    "unix_socket": "unix_socket",
    "dbname": "database",
    "charset": "charset",
}


class MysqlStatement(BaseStatement):
    """Statement interpolated client side by the driver"""

    POSITIONAL_SUB = "%s"
    CURSOR_KWARGS: Dict[str, Any] = {"buffered": True}

    def _run(self, query: str, values: Optional[Tuple[Any, ...]]) -> Result:
        cursor = self._gateway.raw_connection.cursor(**self.CURSOR_KWARGS)
        try:
            if values is None:
                cursor.execute(query)
            else:
                cursor.execute(query, values)
            if cursor.description:
                columns = tuple(column[0] for column in cursor.description)
                rows = cursor.fetchall()
            else:
                columns, rows = (), []
            return Result(columns, rows, cursor.rowcount, cursor.lastrowid)
        finally:
            cursor.close()


class MysqlPreparedStatement(MysqlStatement):
    """Statement prepared on the server, so bound types are kept"""

    POSITIONAL_SUB = "?"
    CURSOR_KWARGS = {"prepared": True}


class MysqlGateway(BaseGateway):
    """Gateway for a MySQL session through mysql-connector-python"""

    scheme = "mysql"

    def _setup_connection(self):
        kwargs: Dict[str, Any] = {"autocommit": True}
        kwargs.update(self._parse_dsn())
        if self.username is not None:
            kwargs["user"] = self.username
        if self.password is not None:
            kwargs["password"] = self.password
        kwargs.update(self.driver_options)
        self._connection = mysql.connector.connect(**kwargs)

    def _parse_dsn(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        for part in filter(None, self._dsn_body.split(";")):
            key, sep, value = part.partition("=")
            if not sep or key not in DSN_KEYS:
                raise ConfigurationError(
                    f"Unrecognized MySQL DSN segment: {part}"
                )
            params[DSN_KEYS[key]] = int(value) if key == "port" else value
        return params

    def _close_connection(self):
        self._connection.close()

    def prepare(self, query: str) -> BaseStatement:
        if self.options["emulate_prepares"]:
            return MysqlStatement(self, query)
        return MysqlPreparedStatement(self, query)

    def begin_transaction(self) -> None:
        self._connection.start_transaction()

    def commit(self) -> None:
        self._connection.commit()

    def rollback(self) -> None:
        self._connection.rollback()

    def exec(self, statement: str) -> int:
        cursor = self._connection.cursor()
        try:
            cursor.execute(statement)
            return cursor.rowcount
        finally:
            cursor.close()

    def in_transaction(self) -> bool:
        return bool(self._connection.in_transaction)
