"""
Commands: statement text plus bound parameters, executed once on one connection.
"""
import logging
import time
from collections.abc import Callable, Iterable
from functools import wraps
from typing import TYPE_CHECKING, Any

from dbmap.cancellation import CancellationToken, cancellable
from dbmap.cursor import ResultCursor, ResultOptions
from dbmap.exceptions import QueryError
from dbmap.parameters import ParameterCollection, bind_parameters

if TYPE_CHECKING:
    from dbmap.connection import Connection
    from dbmap.strategy import DatabaseStrategy

__all__ = ['Command', 'create_command']

logger = logging.getLogger(__name__)


def dumpsql(func):
    """Decorator for logging SQL text, parameter count and timing."""
    @wraps(func)
    def wrapper(self, *args: Any, **kwargs: Any):
        start = time.time()
        logger.debug(f'SQL:\n{self.text}\nparameters: {len(self.parameters)}')
        try:
            return func(self, *args, **kwargs)
        finally:
            elapsed = time.time() - start
            self.connection.addcall(elapsed)
            logger.debug(f'Query time: {elapsed:.4f}s')
    return wrapper


class Command:
    """A statement bound to one connection.

    The DB-API cursor is allocated when the command executes and is closed
    by close_cursor(), either directly or through the ResultCursor reading
    it. A command executes at most once.
    """

    def __init__(self, connection: 'Connection', text: str) -> None:
        self.connection = connection
        self.text = text
        self.parameters = ParameterCollection()
        self.dbapi_cursor: Any = None
        self._executed = False
        self._cursor_closed = False
        self._closed = False

    def __enter__(self) -> 'Command':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f'Command({self.text!r}, parameters={len(self.parameters)})'

    @property
    def strategy(self) -> 'DatabaseStrategy':
        return self.connection.strategy

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def executed(self) -> bool:
        return self._executed

    def interrupt(self) -> None:
        """Abort the statement running on this command's connection."""
        self.strategy.interrupt(self.connection.dbapi_connection)

    @dumpsql
    def _execute(self, cancel: CancellationToken | None) -> Any:
        if self._closed:
            raise QueryError('Command is closed')
        if self._executed:
            raise QueryError('Command has already been executed')
        self._executed = True

        args = self.strategy.convert_parameters(self.parameters)
        self.dbapi_cursor = self.strategy.create_cursor(self.connection.dbapi_connection)
        with cancellable(cancel, self.interrupt):
            if args is None:
                self.dbapi_cursor.execute(self.text)
            else:
                self.dbapi_cursor.execute(self.text, args)
        return self.dbapi_cursor

    def execute_non_query(self, cancel: CancellationToken | None = None) -> int:
        """Execute without reading rows.

        Returns the affected row count, or -1 if the driver does not report one.
        """
        cursor = self._execute(cancel)
        rowcount = self.strategy.affected_rows(cursor)
        logger.debug(f'Statement affected {rowcount} row(s)')
        return rowcount

    def execute_reader(self, options: ResultOptions = ResultOptions.DEFAULT,
                       cancel: CancellationToken | None = None,
                       owns_command: bool = False) -> ResultCursor:
        """Execute and return a forward-only cursor over the results.
        """
        cursor = self._execute(cancel)
        return ResultCursor(cursor, self, options, cancel, owns_command)

    def execute_scalar(self, cancel: CancellationToken | None = None) -> Any:
        """Execute and return column 0 of row 0 of the first result, or None.
        """
        options = ResultOptions.SINGLE_RESULT | ResultOptions.SINGLE_ROW
        with self.execute_reader(options, cancel) as cursor:
            if not cursor.read():
                return None
            return cursor.get_value(0)

    def close_cursor(self) -> None:
        """Close the DB-API cursor once."""
        if self._cursor_closed or self.dbapi_cursor is None:
            return
        self._cursor_closed = True
        self.dbapi_cursor.close()

    def close(self) -> None:
        """Release the cursor (if still open) and the command.
        """
        if self._closed:
            return
        self._closed = True
        try:
            self.close_cursor()
        finally:
            self.parameters.clear()
            logger.debug('Command released')


def create_command(connection: 'Connection', text: str,
                   parameters: Iterable[Any] = (),
                   configure: Callable[[ParameterCollection], Any] | None = None) -> Command:
    """Create a command on `connection` with text and bound parameters.

    Nothing is executed. A failure while binding releases the command.
    """
    command = Command(connection, text)
    try:
        bind_parameters(command.parameters, parameters, configure)
    except BaseException:
        command.close()
        raise
    return command
