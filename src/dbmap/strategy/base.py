"""
Base strategy interface for driver bindings.

Each supported driver (PostgreSQL via psycopg, SQLite via sqlite3) has a
strategy that encapsulates the driver-specific parts of connecting, binding
parameters, reporting affected rows and interrupting a running statement.
The executor works with any driver through this interface.
"""
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from dbmap.exceptions import ArgumentError

if TYPE_CHECKING:
    from dbmap.options import DatabaseOptions
    from dbmap.parameters import Parameter, ParameterCollection

# Registry of dialect name -> strategy class
# Defined here to avoid circular imports (concrete strategies import from base)
_STRATEGY_REGISTRY: dict[str, type['DatabaseStrategy']] = {}

UNKNOWN_ROWCOUNT = -1


def register_strategy(dialect: str):
    """Decorator to register a strategy class for a dialect.

    Usage:
        @register_strategy('postgresql')
        class PostgresStrategy(DatabaseStrategy):
            ...
    """
    def decorator(cls: type['DatabaseStrategy']) -> type['DatabaseStrategy']:
        _STRATEGY_REGISTRY[dialect] = cls
        return cls
    return decorator


class DatabaseStrategy(ABC):
    """Base class for driver-specific operations.
    """

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the dialect identifier."""

    @abstractmethod
    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy URL used to create the engine."""

    @abstractmethod
    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return create_engine kwargs specific to the driver."""

    @classmethod
    @abstractmethod
    def get_required_options(cls) -> list[str]:
        """Return the option names that must be set for this driver."""

    @classmethod
    def validate_options(cls, options: 'DatabaseOptions') -> None:
        """Raise ArgumentError if required options are missing.
        """
        missing = [name for name in cls.get_required_options()
                   if not getattr(options, name, None)]
        if missing:
            raise ArgumentError(
                f'Missing required options for {options.drivername}: {", ".join(missing)}',
                missing[0])

    @abstractmethod
    def configure_connection(self, raw_conn: Any, options: 'DatabaseOptions | None' = None) -> None:
        """Apply driver settings to a freshly opened DB-API connection."""

    @abstractmethod
    def enable_autocommit(self, raw_conn: Any) -> None:
        """Put the connection in autocommit mode."""

    @abstractmethod
    def disable_autocommit(self, raw_conn: Any) -> None:
        """Make statements run inside an explicit transaction."""

    @abstractmethod
    def is_autocommit(self, raw_conn: Any) -> bool:
        """Return True if every statement commits on its own."""

    @abstractmethod
    def is_closed(self, raw_conn: Any) -> bool:
        """Return True if the DB-API connection can no longer be used."""

    @abstractmethod
    def interrupt(self, raw_conn: Any) -> None:
        """Abort the statement currently running on the connection.

        Called from the thread that fires a cancellation token.
        """

    def create_cursor(self, raw_conn: Any) -> Any:
        """Allocate a new DB-API cursor from the connection."""
        return raw_conn.cursor()

    def adapt_type(self, value: Any, db_type: str) -> Any:
        """Apply a `db_type` hint to a value. Unknown hints are ignored."""
        return value

    def adapt_parameter(self, parameter: 'Parameter') -> Any:
        """Return the driver value for one parameter.

        `size` truncates str and bytes values; `db_type` is dialect-specific.
        """
        value = parameter.value
        if value is None:
            return None
        if parameter.size is not None and isinstance(value, (str, bytes)):
            value = value[:parameter.size]
        if parameter.db_type:
            value = self.adapt_type(value, parameter.db_type.lower())
        return value

    def convert_parameters(self, parameters: 'ParameterCollection') -> tuple | dict | None:
        """Convert a parameter collection to the driver's execute() argument.

        All positional parameters become a tuple, all named a dict. The drivers
        accept one style per statement, so mixing the two is an error.
        """
        if not parameters:
            return None
        if parameters.is_positional:
            return tuple(self.adapt_parameter(p) for p in parameters)
        if parameters.is_named:
            return {p.name: self.adapt_parameter(p) for p in parameters}
        raise ArgumentError('Cannot mix named and positional parameters in one command', 'parameters')

    def affected_rows(self, dbapi_cursor: Any) -> int:
        """Rows affected by the last statement, or UNKNOWN_ROWCOUNT.
        """
        rowcount = getattr(dbapi_cursor, 'rowcount', UNKNOWN_ROWCOUNT)
        if rowcount is None or rowcount < 0:
            return UNKNOWN_ROWCOUNT
        return rowcount

    def next_result(self, dbapi_cursor: Any) -> bool:
        """Advance to the next result set if the driver supports several.
        """
        nextset = getattr(dbapi_cursor, 'nextset', None)
        if nextset is None:
            return False
        try:
            return bool(nextset())
        except NotImplementedError:
            return False
