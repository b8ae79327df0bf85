"""
Forward-only result cursor with typed, null-aware column access.

Wraps a DB-API cursor after its statement ran. `read()` advances to the
next row; column values of the current row are then available by ordinal
or by name. SQL NULL is reported as None by `get_value()` and raises
MappingError from the typed getters unless a default is supplied.
"""
import datetime
import decimal
import enum
import logging
import uuid
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any

import dateutil.parser
from dbmap.cancellation import CancellationToken, cancellable
from dbmap.exceptions import MappingError, OperationCancelled, QueryError

if TYPE_CHECKING:
    from dbmap.command import Command

__all__ = ['ResultCursor', 'ResultOptions']

logger = logging.getLogger(__name__)

_MISSING = object()

_TRUE_STRINGS = {'1', 't', 'true', 'y', 'yes', 'on'}
_FALSE_STRINGS = {'0', 'f', 'false', 'n', 'no', 'off'}


class ResultOptions(enum.Flag):
    """How a result cursor exposes the results of its statement.

    SINGLE_RESULT: only the first result set is readable
    SINGLE_ROW: read() stops after the first row
    SCHEMA_ONLY: column metadata only, read() never returns a row. The
        statement still runs, so DML side effects still happen
    CLOSE_CONNECTION: closing the cursor also closes the connection
    """
    DEFAULT = 0
    SINGLE_RESULT = enum.auto()
    SINGLE_ROW = enum.auto()
    SCHEMA_ONLY = enum.auto()
    CLOSE_CONNECTION = enum.auto()


def _to_int(value: Any) -> int:
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f'{value!r} is not integral')
        return int(value)
    if isinstance(value, decimal.Decimal):
        if value != value.to_integral_value():
            raise ValueError(f'{value!r} is not integral')
        return int(value)
    if isinstance(value, str):
        return int(value)
    raise TypeError(type(value).__name__)


def _to_float(value: Any) -> float:
    if isinstance(value, (int, float, decimal.Decimal, str)):
        return float(value)
    raise TypeError(type(value).__name__)


def _to_str(value: Any) -> str:
    if isinstance(value, str):
        return value
    raise TypeError(type(value).__name__)


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in {0, 1}:
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ValueError(f'{value!r} is not a boolean')


def _to_decimal(value: Any) -> decimal.Decimal:
    if isinstance(value, decimal.Decimal):
        return value
    if isinstance(value, float):
        return decimal.Decimal(str(value))
    if isinstance(value, (int, str)):
        return decimal.Decimal(value)
    raise TypeError(type(value).__name__)


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise TypeError(type(value).__name__)


def _to_date(value: Any) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        return dateutil.parser.isoparse(value).date()
    raise TypeError(type(value).__name__)


def _to_datetime(value: Any) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time())
    if isinstance(value, str):
        return dateutil.parser.isoparse(value)
    raise TypeError(type(value).__name__)


def _to_uuid(value: Any) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    if isinstance(value, str):
        return uuid.UUID(value)
    if isinstance(value, (bytes, bytearray)) and len(value) == 16:
        return uuid.UUID(bytes=bytes(value))
    raise TypeError(type(value).__name__)


class ResultCursor:
    """Forward-only cursor over the result of one executed command.

    Args:
        dbapi_cursor: The DB-API cursor the command executed on
        command: The command that produced the results
        options: ResultOptions flags
        cancel: Optional token checked before every fetch
        owns_command: Close the command when this cursor is closed
    """

    def __init__(self, dbapi_cursor: Any, command: 'Command',
                 options: ResultOptions = ResultOptions.DEFAULT,
                 cancel: CancellationToken | None = None,
                 owns_command: bool = False) -> None:
        self.dbapi_cursor = dbapi_cursor
        self.command = command
        self.options = options
        self.cancel = cancel
        self.owns_command = owns_command
        self._row: tuple | None = None
        self._row_number = -1
        self._exhausted = False
        self._closed = False
        self._load_columns()

    def __enter__(self) -> 'ResultCursor':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[tuple]:
        """Yield the remaining rows as tuples."""
        while self.read():
            yield self.values()

    def __getitem__(self, key: int | str) -> Any:
        return self.get_value(key)

    def __repr__(self) -> str:
        state = 'closed' if self._closed else f'row={self._row_number}'
        return f'ResultCursor(columns={list(self.columns)}, {state})'

    def _load_columns(self) -> None:
        description = self.dbapi_cursor.description
        self._columns = tuple(col[0] for col in description) if description else ()
        self._lookup = {name: i for i, name in reversed(list(enumerate(self._columns)))}
        self._folded = {name.casefold(): i for i, name in reversed(list(enumerate(self._columns)))}

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def columns(self) -> tuple[str, ...]:
        """Column names of the current result set."""
        return self._columns

    @property
    def field_count(self) -> int:
        return len(self._columns)

    @property
    def has_rows(self) -> bool:
        """True if the current result set has a column description."""
        return bool(self._columns)

    @property
    def row_number(self) -> int:
        """Zero-based position of the current row, -1 before the first read."""
        return self._row_number

    @property
    def rowcount(self) -> int:
        """Rows affected as reported by the driver, -1 if unknown."""
        return self.command.strategy.affected_rows(self.dbapi_cursor)

    def _check_open(self) -> None:
        if self._closed:
            raise QueryError('Result cursor is closed')

    def read(self) -> bool:
        """Advance to the next row. Returns False once the result is exhausted.

        Checks the cancellation token first; a cancelled read closes the
        cursor before raising OperationCancelled.
        """
        self._check_open()
        if self._exhausted or not self._columns:
            return False
        if ResultOptions.SCHEMA_ONLY in self.options:
            self._exhausted = True
            return False
        if ResultOptions.SINGLE_ROW in self.options and self._row_number >= 0:
            self._finish()
            return False

        try:
            with cancellable(self.cancel, self.command.interrupt):
                row = self.dbapi_cursor.fetchone()
        except OperationCancelled:
            logger.debug(f'Cancelled after {self._row_number + 1} row(s)')
            self.close()
            raise

        if row is None:
            self._finish()
            return False
        self._row = tuple(row)
        self._row_number += 1
        return True

    def _finish(self) -> None:
        self._row = None
        self._exhausted = True

    def next_result(self) -> bool:
        """Move to the next result set. Returns False if there is none.
        """
        self._check_open()
        if ResultOptions.SINGLE_RESULT in self.options:
            return False
        if not self.command.strategy.next_result(self.dbapi_cursor):
            return False
        self._row = None
        self._row_number = -1
        self._exhausted = False
        self._load_columns()
        return True

    def close(self) -> None:
        """Release the cursor, then the owning command, then the connection
        if CLOSE_CONNECTION was requested. Safe to call more than once.
        """
        if self._closed:
            return
        self._closed = True
        self._row = None
        try:
            self.command.close_cursor()
        finally:
            try:
                if self.owns_command:
                    self.command.close()
            finally:
                if ResultOptions.CLOSE_CONNECTION in self.options:
                    self.command.connection.close()
        logger.debug(f'Result cursor closed after {self._row_number + 1} row(s)')

    def get_name(self, ordinal: int) -> str:
        """Name of the column at `ordinal`."""
        return self._columns[self._ordinal(ordinal)]

    def get_ordinal(self, name: str) -> int:
        """Position of column `name`; exact match first, then case-insensitive.
        """
        if name in self._lookup:
            return self._lookup[name]
        folded = name.casefold()
        if folded in self._folded:
            return self._folded[folded]
        raise MappingError(f'Column {name!r} not found in result columns {list(self._columns)}')

    def _ordinal(self, key: int | str) -> int:
        if isinstance(key, str):
            return self.get_ordinal(key)
        if isinstance(key, bool) or not isinstance(key, int):
            raise MappingError(f'Column key must be an ordinal or a name, got {key!r}')
        if not 0 <= key < len(self._columns):
            raise MappingError(f'Column ordinal {key} out of range for {len(self._columns)} column(s)')
        return key

    def _current(self) -> tuple:
        self._check_open()
        if self._row is None:
            raise QueryError('No current row, call read() first')
        return self._row

    def values(self) -> tuple:
        """All column values of the current row."""
        return self._current()

    def get_value(self, key: int | str) -> Any:
        """Raw value of a column in the current row; None for SQL NULL."""
        return self._current()[self._ordinal(key)]

    def is_null(self, key: int | str) -> bool:
        return self.get_value(key) is None

    def _get_typed(self, key: int | str, kind: str,
                   convert: Callable[[Any], Any], default: Any) -> Any:
        value = self.get_value(key)
        if value is None:
            if default is _MISSING:
                raise MappingError(f'Column {key!r} is NULL, expected {kind}')
            return default
        try:
            return convert(value)
        except (TypeError, ValueError, ArithmeticError) as err:
            raise MappingError(
                f'Column {key!r}: cannot convert {type(value).__name__} value {value!r} to {kind}'
            ) from err

    def get_int(self, key: int | str, default: Any = _MISSING) -> int:
        return self._get_typed(key, 'int', _to_int, default)

    def get_float(self, key: int | str, default: Any = _MISSING) -> float:
        return self._get_typed(key, 'float', _to_float, default)

    def get_str(self, key: int | str, default: Any = _MISSING) -> str:
        return self._get_typed(key, 'str', _to_str, default)

    def get_bool(self, key: int | str, default: Any = _MISSING) -> bool:
        return self._get_typed(key, 'bool', _to_bool, default)

    def get_decimal(self, key: int | str, default: Any = _MISSING) -> decimal.Decimal:
        return self._get_typed(key, 'Decimal', _to_decimal, default)

    def get_bytes(self, key: int | str, default: Any = _MISSING) -> bytes:
        return self._get_typed(key, 'bytes', _to_bytes, default)

    def get_date(self, key: int | str, default: Any = _MISSING) -> datetime.date:
        return self._get_typed(key, 'date', _to_date, default)

    def get_datetime(self, key: int | str, default: Any = _MISSING) -> datetime.datetime:
        return self._get_typed(key, 'datetime', _to_datetime, default)

    def get_uuid(self, key: int | str, default: Any = _MISSING) -> uuid.UUID:
        return self._get_typed(key, 'UUID', _to_uuid, default)
