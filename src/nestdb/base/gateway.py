from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple, Type

from nestdb.base.statement import BaseStatement
from nestdb.exception import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_OPTIONS: Dict[str, Any] = {
    "case": "natural",
    "errmode": "exception",
    "nulls": "natural",
    "stringify_fetches": False,
    "emulate_prepares": False,
}

OPTION_CHOICES: Dict[str, Tuple[str, ...]] = {
    "case": ("natural", "lower", "upper"),
    "errmode": ("exception",),
    "nulls": ("natural", "empty_string", "to_string"),
}


class BaseGateway(ABC):
    """
    A single physical session with a database driver. Subclasses wrap one
    native client and register themselves under their DSN scheme.
    """

    scheme = ""
    registered_gateways: Dict[str, Type[BaseGateway]] = {}

    def __init_subclass__(cls) -> None:
        if cls.scheme:
            BaseGateway.registered_gateways[cls.scheme] = cls

    @abstractmethod
    def _setup_connection(self): ...

    @abstractmethod
    def _close_connection(self): ...

    @abstractmethod
    def prepare(self, query: str) -> BaseStatement: ...

    @abstractmethod
    def begin_transaction(self) -> None: ...

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...

    @abstractmethod
    def exec(self, statement: str) -> int: ...

    @abstractmethod
    def in_transaction(self) -> bool: ...

    def __init__(
        self,
        dsn: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Open a driver session.

        Args:
            dsn (str): Data source name, `<scheme>:<driver specific part>`
            username (str, optional): DB user. Defaults to `None`
            password (str, optional): DB password. Defaults to `None`
            options (Dict[str, Any], optional): Driver options merged over
                `DEFAULT_OPTIONS`. Unknown keys are handed to the driver.

        Raises:
            ConfigurationError: If the DSN scheme or an option is invalid
        """
        scheme, _, body = dsn.partition(":")
        if scheme != self.scheme:
            raise ConfigurationError(
                f"{self.__class__.__name__} cannot open a '{scheme}' DSN"
            )

        merged = {**DEFAULT_OPTIONS, **(options or {})}
        for key, choices in OPTION_CHOICES.items():
            if merged[key] not in choices:
                raise ConfigurationError(
                    f"{key}: must be one of {', '.join(choices)}"
                )

        self._dsn = dsn
        self._dsn_body = body
        self._username = username
        self._password = password
        self._options = merged
        self._connection: Any = None
        self._last_insert_id: Optional[int] = None
        self._closed = False

        self._setup_connection()
        logger.info("Opened %s", self)

    def __str__(self) -> str:
        name = self.__class__.__name__
        if self._username:
            return f"<{name} {self._dsn} as {self._username}>"
        return f"<{name} {self._dsn}>"

    def close(self) -> None:
        """Release the driver session. Calling it again does nothing."""
        if self._closed:
            return
        self._closed = True
        self._close_connection()
        logger.info("Closed %s", self)

    def last_insert_id(self) -> Optional[int]:
        return self._last_insert_id

    @property
    def dsn(self) -> str:
        return self._dsn

    @property
    def username(self) -> Optional[str]:
        return self._username

    @property
    def password(self) -> Optional[str]:
        return self._password

    @property
    def options(self) -> Dict[str, Any]:
        return self._options

    @property
    def driver_options(self) -> Dict[str, Any]:
        return {
            key: value
            for key, value in self._options.items()
            if key not in DEFAULT_OPTIONS
        }

    @property
    def raw_connection(self) -> Any:
        return self._connection

    @property
    def closed(self) -> bool:
        return self._closed
