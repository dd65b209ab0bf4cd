import io
from datetime import date, datetime
from types import SimpleNamespace
from unittest.mock import call

import pytest

from nestdb import Connection, FetchMode, NestDBError, ParamType
from nestdb.base.statement import coerce_value, infer_param_type


@pytest.mark.parametrize(
    "value,expected",
    [
        (42, ParamType.INT),
        (True, ParamType.BOOL),
        (False, ParamType.BOOL),
        (b"\x00\x01", ParamType.LOB),
        (bytearray(b"raw"), ParamType.LOB),
        (io.BytesIO(b"stream"), ParamType.LOB),
        ("Ada", ParamType.STR),
        (1.5, ParamType.STR),
        (None, ParamType.STR),
    ],
)
def test_infer_param_type(value, expected):
    assert infer_param_type(value) is expected


def test_coerce_value():
    assert coerce_value("7", ParamType.INT) == 7
    assert coerce_value(1, ParamType.BOOL) is True
    assert coerce_value(io.BytesIO(b"blob"), ParamType.LOB) == b"blob"
    assert coerce_value(1.5, ParamType.STR) == "1.5"
    assert coerce_value(None, ParamType.INT) is None


def test_execute_binds_with_inferred_types(connection, gateway, statement):
    result = connection.execute(
        "SELECT * FROM customers", {1: 42, 2: True, "name": "Ada"}
    )

    assert result is statement
    gateway.prepare.assert_called_once_with("SELECT * FROM customers")
    assert statement.bind.call_args_list == [
        call(1, 42, ParamType.INT),
        call(2, True, ParamType.BOOL),
        call("name", "Ada", ParamType.STR),
    ]
    statement.set_fetch_mode.assert_called_once_with(FetchMode.OBJECT)
    statement.execute.assert_called_once_with()


def test_sequence_params_are_one_based(connection, statement):
    connection.execute("INSERT INTO t VALUES (?, ?)", ["a", b"b"])

    assert statement.bind.call_args_list == [
        call(1, "a", ParamType.STR),
        call(2, b"b", ParamType.LOB),
    ]


def test_dates_bind_as_formatted_text(connection, statement):
    connection.execute(
        "INSERT INTO t VALUES (?, ?)",
        [datetime(2024, 1, 2, 3, 4, 5), date(2024, 2, 29)],
    )

    assert statement.bind.call_args_list == [
        call(1, "2024-01-02 03:04:05", ParamType.STR),
        call(2, "2024-02-29 00:00:00", ParamType.STR),
    ]


def test_custom_date_format(gateway, statement):
    connection = Connection(gateway, date_format="%d/%m/%Y")

    connection.execute("SELECT ?", [datetime(2024, 1, 2)])

    statement.bind.assert_called_once_with(1, "02/01/2024", ParamType.STR)


def test_fetch_mode_override(gateway, statement):
    connection = Connection(gateway, fetch_mode=FetchMode.DICT)

    connection.execute("SELECT 1")
    connection.execute("SELECT 1", fetch_mode=FetchMode.TUPLE)

    assert statement.set_fetch_mode.call_args_list == [
        call(FetchMode.DICT),
        call(FetchMode.TUPLE),
    ]


def test_prepare_statement_does_not_execute(connection, statement):
    connection.prepare_statement("SELECT ?", [1])

    statement.bind.assert_called_once_with(1, 1, ParamType.INT)
    statement.execute.assert_not_called()


@pytest.mark.parametrize(
    "columns,query",
    [
        ("*", "SELECT * FROM customers"),
        (["name"], "SELECT name FROM customers"),
        (("id", "name"), "SELECT id, name FROM customers"),
        ("COUNT(*)", "SELECT COUNT(*) FROM customers"),
    ],
)
def test_select(connection, gateway, statement, columns, query):
    statement.fetch_all.return_value = [SimpleNamespace(name="Ada")]

    rows = connection.select("customers", columns)

    gateway.prepare.assert_called_once_with(query)
    statement.bind.assert_not_called()
    assert rows == [SimpleNamespace(name="Ada")]


def test_driver_errors_propagate(connection, statement):
    statement.execute.side_effect = RuntimeError("syntax error")

    with pytest.raises(RuntimeError, match="syntax error"):
        connection.execute("SELEC 1")


def test_statement_rewrites_placeholders(make_statement):
    statement = make_statement("SELECT * FROM t WHERE a = ? AND b = ?")
    statement.bind(1, 10, ParamType.INT)
    statement.bind(2, "x")

    statement.execute()

    assert statement.calls == [
        ("SELECT * FROM t WHERE a = %s AND b = %s", (10, "x"))
    ]


def test_statement_named_placeholders(make_statement):
    statement = make_statement("SELECT :name, :id, :name")
    statement.bind(":name", "Ada")
    statement.bind("id", "3", ParamType.INT)

    statement.execute()

    assert statement.calls == [("SELECT %s, %s, %s", ("Ada", 3, "Ada"))]


def test_statement_without_bindings_sends_raw_query(make_statement):
    statement = make_statement("SELECT '?' AS mark")

    statement.execute()

    assert statement.calls == [("SELECT '?' AS mark", None)]


def test_statement_unbound_placeholder(make_statement):
    statement = make_statement("SELECT ?, ?")
    statement.bind(1, 1, ParamType.INT)

    with pytest.raises(NestDBError, match="No value bound"):
        statement.execute()
    assert statement.calls == []


def test_statement_unused_binding(make_statement):
    statement = make_statement("SELECT ?")
    statement.bind(1, 1, ParamType.INT)
    statement.bind("extra", 2, ParamType.INT)

    with pytest.raises(NestDBError, match="not found in query"):
        statement.execute()


def test_statement_rejects_zero_position(make_statement):
    with pytest.raises(NestDBError):
        make_statement("SELECT ?").bind(0, 1)


@pytest.mark.parametrize(
    "mode,expected",
    [
        (FetchMode.OBJECT, SimpleNamespace(id=1, name="Ada")),
        (FetchMode.DICT, {"id": 1, "name": "Ada"}),
        (FetchMode.TUPLE, (1, "Ada")),
        ("dict", {"id": 1, "name": "Ada"}),
    ],
)
def test_fetch_modes(make_statement, mode, expected):
    statement = make_statement(
        "SELECT id, name FROM t", ("id", "name"), [(1, "Ada")], 1
    )
    statement.set_fetch_mode(mode)
    statement.execute()

    assert statement.fetch_all() == [expected]


def test_fetch_walks_rows(make_statement):
    statement = make_statement("SELECT id FROM t", ("id",), [(1,), (2,)], 2)
    statement.set_fetch_mode(FetchMode.TUPLE)
    statement.execute()

    assert statement.fetch() == (1,)
    assert statement.fetch_all() == [(2,)]
    assert statement.fetch() is None
    assert statement.row_count == 2


def test_fetch_before_execute(make_statement):
    with pytest.raises(NestDBError, match="not been executed"):
        make_statement("SELECT 1").fetch_all()


def test_fetch_options(make_statement, fake_gateway):
    fake_gateway.options.update(
        case="lower", nulls="to_string", stringify_fetches=True
    )
    statement = make_statement(
        "SELECT ID, Name, Note FROM t",
        ("ID", "Name", "Note"),
        [(1, "Ada", None)],
    )
    statement.set_fetch_mode(FetchMode.DICT)
    statement.execute()

    assert statement.fetch_all() == [{"id": "1", "name": "Ada", "note": ""}]


def test_empty_strings_fetch_as_null(make_statement, fake_gateway):
    fake_gateway.options.update(case="upper", nulls="empty_string")
    statement = make_statement("SELECT note FROM t", ("note",), [("",)])
    statement.set_fetch_mode(FetchMode.DICT)
    statement.execute()

    assert statement.fetch_all() == [{"NOTE": None}]


def test_execute_records_last_insert_id(make_statement, fake_gateway):
    make_statement("INSERT INTO t DEFAULT VALUES", last_row_id=9).execute()

    assert fake_gateway._last_insert_id == 9
