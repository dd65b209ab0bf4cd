from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from nestdb import Connection
from nestdb.base.gateway import DEFAULT_OPTIONS, BaseGateway
from nestdb.base.statement import BaseStatement, Result


class RecordingStatement(BaseStatement):
    POSITIONAL_SUB = "%s"

    def __init__(self, gateway, query, result=None):
        super().__init__(gateway, query)
        self.result = result or Result((), [], 0, None)
        self.calls = []

    def _run(self, query, values):
        self.calls.append((query, values))
        return self.result


@pytest.fixture
def fake_gateway():
    return SimpleNamespace(options=dict(DEFAULT_OPTIONS), _last_insert_id=None)


@pytest.fixture
def make_statement(fake_gateway):
    def make(query, columns=(), rows=(), row_count=0, last_row_id=None):
        result = Result(tuple(columns), list(rows), row_count, last_row_id)
        return RecordingStatement(fake_gateway, query, result)

    return make


@pytest.fixture
def statement():
    statement = MagicMock(spec=BaseStatement)
    statement.fetch_all.return_value = []
    return statement


@pytest.fixture
def gateway(statement):
    gateway = MagicMock(spec=BaseGateway)
    gateway.prepare.return_value = statement
    gateway.in_transaction.return_value = True
    gateway.options = dict(DEFAULT_OPTIONS)
    return gateway


@pytest.fixture
def connection(gateway):
    return Connection(gateway)


@pytest.fixture
def sqlite_connection():
    connection = Connection.from_config(
        {"driver": "sqlite", "database": ":memory:"}
    )
    connection.execute(
        "CREATE TABLE customers ("
        "id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT, "
        "active BOOLEAN, joined TEXT, avatar BLOB)"
    )
    yield connection
    connection.close()
