from importlib.metadata import version

from .base.gateway import DEFAULT_OPTIONS, BaseGateway
from .base.statement import BaseStatement, FetchMode, ParamType
from .connection import Connection
from .connector import Connector, config_from_url
from .exception import ConfigurationError, ConnectionClosedError, NestDBError
from .sql.mysql.gateway import MysqlGateway
from .sql.sqlite.gateway import SQLiteGateway
from .transaction import TransactionError

__version__ = version("nestdb")

__all__ = (
    "DEFAULT_OPTIONS",
    "BaseGateway",
    "BaseStatement",
    "ConfigurationError",
    "Connection",
    "ConnectionClosedError",
    "Connector",
    "FetchMode",
    "MysqlGateway",
    "NestDBError",
    "ParamType",
    "SQLiteGateway",
    "TransactionError",
    "config_from_url",
)
