from __future__ import annotations

from abc import ABC, abstractmethod
from collections import namedtuple
from enum import Enum
from types import SimpleNamespace
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    List,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from nestdb.convert import ParamKey, convert_placeholders
from nestdb.exception import NestDBError

if TYPE_CHECKING:
    from nestdb.base.gateway import BaseGateway

Result = namedtuple(
    "Result", ("columns", "rows", "row_count", "last_row_id")
)
Row = Union[SimpleNamespace, Dict[str, Any], Tuple[Any, ...]]


class ParamType(Enum):
    """Storage type hint passed along with a bound value"""

    INT = "int"
    BOOL = "bool"
    LOB = "lob"
    STR = "str"


class FetchMode(Enum):
    """How fetched rows are materialized"""

    OBJECT = "object"
    DICT = "dict"
    TUPLE = "tuple"


def infer_param_type(value: Any) -> ParamType:
    # bool must be checked first, it is a subclass of int
    if isinstance(value, bool):
        return ParamType.BOOL
    if isinstance(value, int):
        return ParamType.INT
    if isinstance(value, (bytes, bytearray, memoryview)) or hasattr(
        value, "read"
    ):
        return ParamType.LOB
    return ParamType.STR


def coerce_value(value: Any, param_type: ParamType) -> Any:
    if value is None:
        return None
    if param_type is ParamType.INT:
        return int(value)
    if param_type is ParamType.BOOL:
        return bool(value)
    if param_type is ParamType.LOB:
        if hasattr(value, "read"):
            value = value.read()
        if isinstance(value, str):
            value = value.encode()
        return bytes(value)
    return str(value)


class BaseStatement(ABC):
    """
    A prepared statement bound to a single gateway. Values are bound with
    a type hint, the statement is executed once, and its rows are then
    fetched according to the fetch mode set on it.

    Queries use `?` for positional and `:name` for named placeholders.
    They are rewritten into the driver's own marker at execution time.
    """

    POSITIONAL_SUB = "?"

    def __init__(self, gateway: BaseGateway, query: str) -> None:
        self._gateway = gateway
        self._query = query
        self._bindings: Dict[ParamKey, Any] = {}
        self._fetch_mode = FetchMode.OBJECT
        self._result: Optional[Result] = None
        self._position = 0

    @abstractmethod
    def _run(
        self, query: str, values: Optional[Tuple[Any, ...]]
    ) -> Result: ...

    @property
    def query(self) -> str:
        return self._query

    @property
    def fetch_mode(self) -> FetchMode:
        return self._fetch_mode

    @property
    def bindings(self) -> Dict[ParamKey, Any]:
        return dict(self._bindings)

    @property
    def row_count(self) -> int:
        """Rows affected by, or returned from, the last execution"""
        if self._result is None:
            return 0
        return self._result.row_count

    def bind(
        self,
        param: ParamKey,
        value: Any,
        param_type: ParamType = ParamType.STR,
    ) -> None:
        """Bind a value to a placeholder

        Args:
            param (Union[int, str]): 1-based position, or a placeholder
                name with or without its leading colon
            value (Any): The value to bind. `None` is always bound as NULL.
            param_type (ParamType, optional): Storage type the value is
                coerced to. Defaults to `ParamType.STR`.

        Raises:
            NestDBError: If a position is lower than 1
        """
        if isinstance(param, str):
            param = param.lstrip(":")
        elif param < 1:
            raise NestDBError(
                f"Positional parameters are 1-based, got {param}"
            )
        self._bindings[param] = coerce_value(value, param_type)

    def set_fetch_mode(self, mode: Union[FetchMode, str]) -> None:
        self._fetch_mode = FetchMode(mode)

    def execute(self) -> None:
        query: str = self._query
        values: Optional[Tuple[Any, ...]] = None

        if self._bindings:
            query, order = convert_placeholders(
                self._query, self.POSITIONAL_SUB
            )
            missing = [key for key in order if key not in self._bindings]
            if missing:
                raise NestDBError(
                    "No value bound for parameter(s): "
                    f"{', '.join(map(str, missing))}"
                )
            unused = [key for key in self._bindings if key not in order]
            if unused:
                raise NestDBError(
                    "Bound parameter(s) not found in query: "
                    f"{', '.join(map(str, unused))}"
                )
            values = tuple(self._bindings[key] for key in order)

        self._result = self._run(query, values)
        self._position = 0
        if self._result.last_row_id:
            self._gateway._last_insert_id = self._result.last_row_id

    def fetch(self) -> Optional[Row]:
        rows = self._buffered_rows()
        if self._position >= len(rows):
            return None
        row = rows[self._position]
        self._position += 1
        return self._materialize(row)

    def fetch_all(self) -> List[Row]:
        rows = self._buffered_rows()[self._position :]
        self._position += len(rows)
        return [self._materialize(row) for row in rows]

    def _buffered_rows(self) -> Sequence[Tuple[Any, ...]]:
        if self._result is None:
            raise NestDBError("Statement has not been executed")
        return self._result.rows

    def _columns(self) -> Tuple[str, ...]:
        case = self._gateway.options["case"]
        columns = self._result.columns if self._result else ()
        if case == "lower":
            return tuple(column.lower() for column in columns)
        if case == "upper":
            return tuple(column.upper() for column in columns)
        return tuple(columns)

    def _fetched_value(self, value: Any) -> Any:
        options = self._gateway.options
        if options["stringify_fetches"] and value is not None:
            if not isinstance(value, (bytes, bytearray)):
                value = str(value)
        if options["nulls"] == "empty_string" and value == "":
            return None
        if options["nulls"] == "to_string" and value is None:
            return ""
        return value

    def _materialize(self, row: Sequence[Any]) -> Row:
        values = tuple(self._fetched_value(value) for value in row)
        if self._fetch_mode is FetchMode.TUPLE:
            return values
        record = dict(zip(self._columns(), values))
        if self._fetch_mode is FetchMode.DICT:
            return record
        return SimpleNamespace(**record)
