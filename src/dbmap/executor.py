"""
Query execution in four result shapes plus a raw cursor escape hatch.

Every operation follows the same steps: validate arguments, build the
command and bind its parameters, open the connection if needed, execute,
shape the result, release the cursor and command. Parameters are given
either as extra positional arguments (bare values or Parameter objects) or
by a `configure` callback that fills the command's ParameterCollection:

    execute(cn, 'update widgets set name = ? where id = ?', 'b', 2)
    execute(cn, 'update widgets set name = :name where id = :id',
            as_parameter('b', 'name'), as_parameter(2, 'id'))
    execute(cn, 'update widgets set name = :name where id = :id',
            configure=lambda p: (p.add('name', 'b'), p.add('id', 2)))

All operations accept an optional CancellationToken as `cancel`.
"""
import logging
from collections.abc import Callable, Iterator
from typing import Any, TypeVar

from dbmap.cancellation import CancellationToken
from dbmap.command import create_command
from dbmap.connection import Connection, as_connection
from dbmap.cursor import ResultCursor, ResultOptions
from dbmap.exceptions import ArgumentError
from dbmap.mapping import MapFunc, map_rows, map_single, resolve_mapper
from dbmap.parameters import ParameterCollection
from dbmap.validation import require, require_text

__all__ = [
    'execute',
    'execute_scalar',
    'query_single',
    'query',
    'query_raw',
]

logger = logging.getLogger(__name__)

T = TypeVar('T')

Configure = Callable[[ParameterCollection], Any]


def _prepare(cn: Any, sql: str, parameters: tuple,
             configure: Configure | None) -> Connection:
    """Validate the common arguments before anything touches the driver.
    """
    require(cn, 'connection')
    require_text(sql, 'sql')
    if parameters and configure is not None:
        raise ArgumentError('Pass either parameters or a configure callback, not both', 'configure')
    return as_connection(cn)


def execute(cn: Any, sql: str, *parameters: Any,
            configure: Configure | None = None,
            cancel: CancellationToken | None = None) -> int:
    """Execute a statement that returns no rows.

    Returns the affected row count, or -1 when the driver cannot report one
    (DDL, SELECT on SQLite). -1 never means zero rows.
    """
    connection = _prepare(cn, sql, parameters, configure)
    with create_command(connection, sql, parameters, configure) as command:
        connection.open(cancel)
        return command.execute_non_query(cancel)


def execute_scalar(cn: Any, sql: str, *parameters: Any,
                   configure: Configure | None = None,
                   cancel: CancellationToken | None = None) -> Any | None:
    """Return column 0 of row 0 of the first result set.

    Returns None if the statement produced no rows.
    """
    connection = _prepare(cn, sql, parameters, configure)
    with create_command(connection, sql, parameters, configure) as command:
        connection.open(cancel)
        return command.execute_scalar(cancel)


def query_single(cn: Any, mapper: type[T] | MapFunc, sql: str, *parameters: Any,
                 configure: Configure | None = None,
                 cancel: CancellationToken | None = None) -> T | None:
    """Map the first row of the result, or return None for an empty result.

    Rows after the first are not read.
    """
    connection = _prepare(cn, sql, parameters, configure)
    map_row = resolve_mapper(mapper)
    options = ResultOptions.SINGLE_RESULT | ResultOptions.SINGLE_ROW
    with create_command(connection, sql, parameters, configure) as command:
        connection.open(cancel)
        with command.execute_reader(options, cancel) as cursor:
            return map_single(cursor, map_row)


def query(cn: Any, mapper: type[T] | MapFunc, sql: str, *parameters: Any,
          configure: Configure | None = None,
          cancel: CancellationToken | None = None) -> Iterator[T]:
    """Lazily map every row of the result.

    Arguments are checked immediately; the statement runs when iteration
    starts. The iterator is single-pass. Its cursor and command are released
    when it is exhausted, closed, garbage collected, fails, or is cancelled.
    Do not start another call on the same connection while it is open.
    """
    connection = _prepare(cn, sql, parameters, configure)
    map_row = resolve_mapper(mapper)
    return _stream(connection, map_row, sql, parameters, configure, cancel)


def _stream(connection: Connection, map_row: MapFunc, sql: str, parameters: tuple,
            configure: Configure | None,
            cancel: CancellationToken | None) -> Iterator[Any]:
    with create_command(connection, sql, parameters, configure) as command:
        connection.open(cancel)
        with command.execute_reader(ResultOptions.SINGLE_RESULT, cancel) as cursor:
            yield from map_rows(cursor, map_row)


def query_raw(cn: Any, sql: str, *parameters: Any,
              options: ResultOptions = ResultOptions.DEFAULT,
              configure: Configure | None = None,
              cancel: CancellationToken | None = None) -> ResultCursor:
    """Execute and hand the result cursor to the caller.

    The cursor owns its command: closing the cursor (or leaving its `with`
    block) releases both. With ResultOptions.CLOSE_CONNECTION the connection
    is closed too.
    """
    connection = _prepare(cn, sql, parameters, configure)
    command = create_command(connection, sql, parameters, configure)
    try:
        connection.open(cancel)
        return command.execute_reader(options, cancel, owns_command=True)
    except BaseException:
        command.close()
        raise
