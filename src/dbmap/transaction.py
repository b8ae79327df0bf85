"""
Transaction handling for groups of executor calls.
"""
import logging
import threading
from typing import Any

from dbmap.connection import Connection, as_connection
from dbmap.cursor import ResultCursor
from dbmap.exceptions import QueryError
from dbmap.validation import require

__all__ = ['Transaction', 'transaction']

logger = logging.getLogger(__name__)

_local = threading.local()


def _active_transactions() -> set[int]:
    if not hasattr(_local, 'active_transactions'):
        _local.active_transactions = set()
    return _local.active_transactions


class Transaction:
    """Context manager running several executor calls as one unit of work.

    Autocommit is switched off for the duration of the block; the block
    commits on success and rolls back if it raises. Nested transactions on
    the same connection in the same thread are not supported.

    Examples
        with Transaction(cn) as tx:
            tx.execute('delete from widgets where id = ?', 1)
            tx.execute('insert into widgets (id, name) values (?, ?)', 1, 'a')
    """

    def __init__(self, cn: Any) -> None:
        self.connection: Connection = as_connection(require(cn, 'connection'))
        self._restore_autocommit = False
        self._key: int | None = None

    def __enter__(self) -> 'Transaction':
        self.connection.open()
        key = self._key = id(self.connection.dbapi_connection)
        active = _active_transactions()
        if key in active:
            raise QueryError('Nested transactions are not supported')

        strategy = self.connection.strategy
        raw_conn = self.connection.dbapi_connection
        self._restore_autocommit = strategy.is_autocommit(raw_conn)
        strategy.disable_autocommit(raw_conn)

        active.add(key)
        self.connection.in_transaction = True
        logger.debug(f'Started transaction for connection {key}')
        return self

    def __exit__(self, exc_type: type | None, value: Exception | None, traceback: Any | None) -> None:
        key = self._key
        try:
            if exc_type is not None:
                self.connection.rollback()
                logger.debug(f'Rolled back transaction for connection {key}')
            else:
                self.connection.commit()
                logger.debug(f'Committed transaction for connection {key}')
        finally:
            _active_transactions().discard(key)
            self.connection.in_transaction = False
            if self._restore_autocommit and not self.connection.closed:
                self.connection.strategy.enable_autocommit(self.connection.dbapi_connection)

    def execute(self, sql: str, *parameters: Any, **kwargs: Any) -> int:
        """Execute a statement inside the transaction."""
        return self.connection.execute(sql, *parameters, **kwargs)

    def execute_scalar(self, sql: str, *parameters: Any, **kwargs: Any) -> Any:
        return self.connection.execute_scalar(sql, *parameters, **kwargs)

    def query_single(self, mapper: Any, sql: str, *parameters: Any, **kwargs: Any) -> Any:
        return self.connection.query_single(mapper, sql, *parameters, **kwargs)

    def query(self, mapper: Any, sql: str, *parameters: Any, **kwargs: Any) -> Any:
        return self.connection.query(mapper, sql, *parameters, **kwargs)

    def query_raw(self, sql: str, *parameters: Any, **kwargs: Any) -> ResultCursor:
        return self.connection.query_raw(sql, *parameters, **kwargs)


transaction = Transaction
