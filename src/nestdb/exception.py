class NestDBError(Exception):
    ...


class ConfigurationError(NestDBError):
    """Raised when connection parameters cannot be resolved"""

    ...


class ConnectionClosedError(NestDBError):
    """Raised when a closed connection is used"""

    ...
