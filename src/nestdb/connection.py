from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, datetime
from typing import (
    Any,
    Callable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Union,
)

from nestdb.base.gateway import BaseGateway
from nestdb.base.statement import (
    BaseStatement,
    FetchMode,
    Row,
    infer_param_type,
)
from nestdb.connector import Connector
from nestdb.exception import ConnectionClosedError, NestDBError
from nestdb.transaction import (
    ROLLBACK_TO_SAVEPOINT,
    SAVEPOINT,
    TransactionError,
    TransactionState,
)
from nestdb.transaction.savepoint import DEFAULT_PREFIX

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

GatewayProvider = Callable[[], BaseGateway]
Params = Union[Sequence[Any], Mapping[Union[int, str], Any]]


class Connection:
    """
    A connection with nested transactions on top of a driver gateway that
    only knows flat begin/commit/rollback.

    The outermost `begin_transaction` opens the native transaction. Every
    level above it is emulated with a savepoint named after the level it
    was created for. A connection is meant for one caller at a time.
    """

    def __init__(
        self,
        gateway: Union[BaseGateway, GatewayProvider],
        *,
        date_format: str = DATE_FORMAT,
        fetch_mode: FetchMode = FetchMode.OBJECT,
        savepoint_prefix: str = DEFAULT_PREFIX,
        strict: bool = False,
    ) -> None:
        """Connection initialization.

        Args:
            gateway (Union[BaseGateway, Callable[[], BaseGateway]]): An open
                gateway, or a provider called on first use to open one
            date_format (str, optional): `strftime` format used to bind
                date and datetime values. Defaults to `%Y-%m-%d %H:%M:%S`
            fetch_mode (FetchMode, optional): Row materialization applied
                to every statement. Defaults to `FetchMode.OBJECT`
            savepoint_prefix (str, optional): Prefix of savepoint names.
                Defaults to `level`
            strict (bool, optional): Raise `TransactionError` instead of
                ignoring commits and rollbacks that match no open level.
                Defaults to `False`

        Raises:
            NestDBError: If `gateway` is neither a gateway nor callable
        """
        if gateway is None:
            raise NestDBError("A gateway or gateway provider is required")

        self._gateway: Optional[BaseGateway] = None
        self._provider: Optional[GatewayProvider] = None
        if isinstance(gateway, BaseGateway):
            self._gateway = gateway
        elif callable(gateway):
            self._provider = gateway
        else:
            raise NestDBError(
                "Expected a BaseGateway or a callable returning one, "
                f"got {type(gateway).__name__}"
            )

        self.date_format = date_format
        self.fetch_mode = FetchMode(fetch_mode)
        self.strict = strict
        self._state = TransactionState(savepoint_prefix)
        self._closed = False

    @classmethod
    def from_config(
        cls,
        config: Mapping[str, Any],
        connector: Optional[Connector] = None,
        **kwargs: Any,
    ) -> Connection:
        """Create a connection that connects on first use

        The configuration is validated immediately, so a missing field
        fails here and not on the first query.
        """
        connector = connector or Connector()
        return cls(connector.provider(config), **kwargs)

    def __str__(self) -> str:
        if self._closed:
            status = "closed"
        elif self._gateway is None:
            status = "not connected"
        else:
            status = str(self._gateway)
        return f"<{self.__class__.__name__} {status} depth={self.depth}>"

    def __enter__(self) -> Connection:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False

    def _check_open(self) -> None:
        if self._closed:
            raise ConnectionClosedError("Connection has been closed")

    def _ensure_connected(self) -> BaseGateway:
        self._check_open()
        if self._gateway is None:
            self._gateway = self._provider()  # type: ignore
            self._provider = None
        return self._gateway

    @property
    def gateway(self) -> BaseGateway:
        return self._ensure_connected()

    @property
    def depth(self) -> int:
        return self._state.depth

    transaction_level = depth

    @property
    def in_transaction(self) -> bool:
        return self._state.depth > 0

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the driver session. Calling it again does nothing."""
        if self._closed:
            return
        self._closed = True
        self._provider = None
        gateway, self._gateway = self._gateway, None

        if self._state.depth:
            logger.warning(
                "Closing connection with %d open transaction level(s)",
                self._state.depth,
            )
            self._state.reset()

        if gateway is not None:
            gateway.close()

    def execute(
        self,
        query: str,
        params: Optional[Params] = None,
        fetch_mode: Optional[FetchMode] = None,
    ) -> BaseStatement:
        statement = self.prepare_statement(query, params, fetch_mode)
        statement.execute()
        return statement

    def prepare_statement(
        self,
        query: str,
        params: Optional[Params] = None,
        fetch_mode: Optional[FetchMode] = None,
    ) -> BaseStatement:
        statement = self._ensure_connected().prepare(query)
        self._bind_values(statement, params)
        statement.set_fetch_mode(fetch_mode or self.fetch_mode)
        return statement

    def _bind_values(
        self, statement: BaseStatement, params: Optional[Params]
    ) -> None:
        if not params:
            return

        items = (
            params.items()
            if isinstance(params, Mapping)
            else enumerate(params, start=1)
        )
        for key, value in items:
            if isinstance(value, (datetime, date)):
                value = value.strftime(self.date_format)
            statement.bind(key, value, infer_param_type(value))

    def select(
        self, table: str, columns: Union[str, Sequence[str]] = "*"
    ) -> List[Row]:
        select = columns if isinstance(columns, str) else ", ".join(columns)
        return self.execute(f"SELECT {select} FROM {table}").fetch_all()

    def last_insert_id(self) -> Optional[int]:
        return self._ensure_connected().last_insert_id()

    def begin_transaction(self) -> None:
        gateway = self._ensure_connected()
        depth = self._state.depth

        if depth == 0:
            logger.debug("Beginning native transaction")
            gateway.begin_transaction()
        else:
            name = self._state.savepoint_name(depth + 1)
            logger.debug("Creating savepoint %s", name)
            gateway.exec(SAVEPOINT.format(name=name))

        self._state.enter()

    def commit(self) -> None:
        self._check_open()
        depth = self._state.depth

        if depth == 0:
            if self.strict:
                raise TransactionError("No active transaction to commit")
            logger.debug("Ignoring commit outside of a transaction")
            return

        if depth == 1:
            logger.debug("Committing native transaction")
            self._ensure_connected().commit()
        else:
            logger.debug("Leaving transaction level %d", depth)

        self._state.leave()

    def rollback(self, to_level: Optional[int] = None) -> None:
        """Roll back to the given transaction level

        If the level is not specified the innermost level is rolled back.
        Level 0 rolls back the native transaction and with it every
        savepoint. A level outside `0 <= to_level < depth` is ignored.

        Args:
            to_level (int, optional): The level to roll back to.
                Defaults to `None`.

        Raises:
            TransactionError: If running strict and the level is invalid
        """
        self._check_open()
        target = self._state.rollback_target(to_level)

        if target is None:
            if self.strict:
                raise TransactionError(
                    f"Cannot roll back to level {to_level} "
                    f"at depth {self._state.depth}"
                )
            logger.debug(
                "Ignoring rollback to level %s at depth %d",
                to_level,
                self._state.depth,
            )
            return

        gateway = self._ensure_connected()
        if target == 0:
            if gateway.in_transaction():
                logger.debug("Rolling back native transaction")
                gateway.rollback()
        else:
            # The savepoint made on entering target + 1 holds the state
            # as it was at level target.
            name = self._state.savepoint_name(target + 1)
            logger.debug("Rolling back to savepoint %s", name)
            gateway.exec(ROLLBACK_TO_SAVEPOINT.format(name=name))

        self._state.rewind(target)

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Run a block inside one more transaction level

        The level is committed when the block exits normally and rolled
        back when it raises. A level the block already unwound itself is
        left alone.
        """
        level = self._state.depth
        self.begin_transaction()
        try:
            yield self
        except BaseException:
            if self._state.depth > level:
                self.rollback(level)
            raise
        else:
            if self._state.depth > level:
                self.commit()
