"""
Database connection handling.

This module provides:
1. The `connect()` function creating a lazily opened connection from options
2. The `Connection` class wrapping a DB-API connection with executor methods
3. Engine creation through a thread-safe registry (SQLAlchemy, NullPool)

A Connection either wraps a raw driver connection supplied by the caller
(`Connection.wrap`) or opens one from its engine the first time an executor
call needs it. The executor never closes a connection; its lifetime belongs
to the caller.
"""
import atexit
import logging
import threading
from collections.abc import Callable
from dataclasses import fields
from typing import TYPE_CHECKING, Any, Self

import sqlalchemy as sa
from dbmap.cancellation import CancellationToken, raise_if_cancelled
from dbmap.exceptions import ArgumentError, ConnectionFailure
from dbmap.options import DatabaseOptions
from dbmap.strategy import get_strategy
from dbmap.utils import get_dialect_name
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool

from libb import load_options

if TYPE_CHECKING:
    import pandas as pd
    from dbmap.cursor import ResultCursor
    from dbmap.strategy import DatabaseStrategy

__all__ = [
    'Connection',
    'as_connection',
    'connect',
    'get_engine_for_options',
    'dispose_all_engines',
]

logger = logging.getLogger(__name__)

_engine_registry: dict[str, Engine] = {}
_engine_registry_lock = threading.RLock()


def get_engine_for_options(options: DatabaseOptions,
                           engine_factory: Callable[..., Engine] = sa.create_engine,
                           **kwargs: Any) -> Engine:
    """Get or create a SQLAlchemy engine for the given options.

    Engines never pool: every Connection gets its own driver connection.
    """
    key = repr(options)

    with _engine_registry_lock:
        if key in _engine_registry:
            logger.debug(f'Using existing engine for {options.drivername}')
            return _engine_registry[key]

        strategy = get_strategy(options.drivername)
        url = strategy.build_connection_url(options)

        engine_kwargs: dict[str, Any] = {'echo': False, 'poolclass': NullPool}
        engine_kwargs.update(strategy.get_engine_kwargs(options))
        engine_kwargs.update(kwargs)

        engine = engine_factory(url, **engine_kwargs)

        _engine_registry[key] = engine
        logger.debug(f'Created new engine for {options.drivername}')

        return engine


def dispose_all_engines() -> None:
    """Dispose all engines in the registry.
    """
    with _engine_registry_lock:
        for engine in _engine_registry.values():
            engine.dispose()
        _engine_registry.clear()
        logger.debug('All database engines disposed')


atexit.register(dispose_all_engines)


class Connection:
    """Wraps a DB-API connection and tracks calls and execution time.

    The executor operations are available as methods, so
    `cn.query(Widget, sql)` is the same as `dbmap.query(cn, Widget, sql)`.
    """

    def __init__(self, dbapi_connection: Any = None,
                 options: DatabaseOptions | None = None,
                 engine: Engine | None = None) -> None:
        """Initialize a connection wrapper.

        Args:
            dbapi_connection: An already open driver connection, if any
            options: Options the connection was created from
            engine: Engine used to open (or reopen) the driver connection
        """
        if dbapi_connection is None and options is None:
            raise ArgumentError('A driver connection or options are required', 'connection')
        self.dbapi_connection = dbapi_connection
        self.options = options
        self.engine = engine
        self.sa_connection: sa.engine.Connection | None = None
        self._dialect = options.drivername if options else get_dialect_name(dbapi_connection)
        self.calls = 0
        self.time = 0.0
        self.in_transaction = False

    @classmethod
    def wrap(cls, raw: Any) -> 'Connection':
        """Wrap a raw sqlite3 or psycopg connection. Connections pass through.
        """
        if isinstance(raw, Connection):
            return raw
        try:
            get_dialect_name(raw)
        except AttributeError as err:
            raise ArgumentError(f'Unsupported connection object: {type(raw).__name__}', 'connection') from err
        return cls(raw)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        self.close()

    def __repr__(self) -> str:
        state = 'closed' if self.closed else 'open'
        return f'Connection({self._dialect}, {state})'

    @property
    def dialect(self) -> str:
        """Return the dialect name ('postgresql' or 'sqlite')."""
        return self._dialect

    @property
    def strategy(self) -> 'DatabaseStrategy':
        return get_strategy(self._dialect)

    @property
    def closed(self) -> bool:
        if self.dbapi_connection is None:
            return True
        return self.strategy.is_closed(self.dbapi_connection)

    def addcall(self, elapsed: float) -> None:
        """Track execution statistics
        """
        self.time += elapsed
        self.calls += 1

    def open(self, cancel: CancellationToken | None = None) -> Self:
        """Open the driver connection if it is not open already.
        """
        raise_if_cancelled(cancel)
        if not self.closed:
            return self
        if self.engine is None:
            raise ConnectionFailure('Connection is closed and has no engine to reopen it')
        self.sa_connection = self.engine.connect()
        self.dbapi_connection = self.sa_connection.connection.driver_connection
        try:
            self.strategy.configure_connection(self.dbapi_connection, self.options)
        except Exception:
            self.sa_connection.close()
            self.sa_connection = None
            raise
        logger.debug(f'Opened {self._dialect} connection')
        raise_if_cancelled(cancel)
        return self

    def commit(self) -> None:
        self.dbapi_connection.commit()

    def rollback(self) -> None:
        self.dbapi_connection.rollback()

    def close(self) -> None:
        """Close the driver connection.
        """
        if self.closed:
            return
        if self.sa_connection is not None:
            self.sa_connection.close()
            self.sa_connection = None
        else:
            self.dbapi_connection.close()
        logger.debug(f'Connection closed: {self.calls} queries in {self.time:.2f}s (avg: {self.time/max(1, self.calls):.3f}s per query)')

    def execute(self, sql: str, *parameters: Any, **kwargs: Any) -> int:
        """Execute a statement and return the affected row count (-1 if unknown).
        """
        from dbmap.executor import execute
        return execute(self, sql, *parameters, **kwargs)

    def execute_scalar(self, sql: str, *parameters: Any, **kwargs: Any) -> Any:
        """Return the first column of the first row, or None.
        """
        from dbmap.executor import execute_scalar
        return execute_scalar(self, sql, *parameters, **kwargs)

    def query_single(self, mapper: Any, sql: str, *parameters: Any, **kwargs: Any) -> Any:
        """Map the first row with `mapper`, or return None.
        """
        from dbmap.executor import query_single
        return query_single(self, mapper, sql, *parameters, **kwargs)

    def query(self, mapper: Any, sql: str, *parameters: Any, **kwargs: Any) -> Any:
        """Lazily map every row with `mapper`.
        """
        from dbmap.executor import query
        return query(self, mapper, sql, *parameters, **kwargs)

    def query_raw(self, sql: str, *parameters: Any, **kwargs: Any) -> 'ResultCursor':
        """Execute and return the raw result cursor.
        """
        from dbmap.executor import query_raw
        return query_raw(self, sql, *parameters, **kwargs)

    def query_frame(self, sql: str, *parameters: Any, **kwargs: Any) -> 'pd.DataFrame':
        """Execute and load the whole result into a DataFrame.
        """
        from dbmap.frame import query_frame
        return query_frame(self, sql, *parameters, **kwargs)


def as_connection(cn: Any) -> Connection:
    """Return `cn` as a Connection, wrapping raw driver connections."""
    return Connection.wrap(cn)


@load_options(cls=DatabaseOptions)
def connect(options: DatabaseOptions | dict[str, Any] | str,
            config: Any | None = None, **kw: Any) -> Connection:
    """Create a Connection from options. The driver connection opens on first use.

    Args:
        options: Can be:
                - DatabaseOptions object
                - String naming a setting on `config`
                - Dictionary of options
                - Options specified as keyword arguments
        config: Configuration object (for loading from config files)
        **kw: Additional keyword arguments to override options

    Returns
        Connection object for the database
    """
    if isinstance(options, DatabaseOptions):
        for field in fields(options):
            kw.pop(field.name, None)
    else:
        options_func = load_options(cls=DatabaseOptions)(lambda o, c: o)
        options = options_func(options, config, **kw)

    engine = get_engine_for_options(options)
    return Connection(options=options, engine=engine)
