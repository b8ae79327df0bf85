"""
Row mapping contract.

A mappable type declares how to build itself from the current row of a
ResultCursor by implementing the `map_row` classmethod:

    @dataclass
    class Widget:
        id: int
        name: str

        @classmethod
        def map_row(cls, cursor: ResultCursor) -> 'Widget':
            return cls(cursor.get_int('id'), cursor.get_str('name'))

The executor calls `Widget.map_row` directly; there is no registry and no
inspection of fields. A plain function taking the cursor works too.
Mappers read the current row only, advancing the cursor is the executor's job.
"""
import logging
from collections.abc import Callable, Iterator
from typing import Any, Protocol, Self, TypeVar, runtime_checkable

from dbmap.cursor import ResultCursor
from dbmap.exceptions import ArgumentError, DatabaseError, MappingError

__all__ = ['RowMapper', 'resolve_mapper', 'map_single', 'map_rows']

logger = logging.getLogger(__name__)

T = TypeVar('T')

MapFunc = Callable[[ResultCursor], T]


@runtime_checkable
class RowMapper(Protocol):
    """Types that can construct an instance from one cursor row."""

    @classmethod
    def map_row(cls, cursor: ResultCursor) -> Self:
        ...


def resolve_mapper(target: type[T] | MapFunc) -> MapFunc:
    """Return the function mapping one row for `target`.

    `target` is either a class implementing `map_row` or a callable taking
    the cursor. Any other class is rejected rather than constructed.
    """
    if target is None:
        raise ArgumentError('Missing required argument: mapper', 'mapper')
    if isinstance(target, type):
        map_row = getattr(target, 'map_row', None)
        if map_row is None or not callable(map_row):
            raise ArgumentError(
                f'{target.__name__} does not implement map_row(cursor)', 'mapper')
        return map_row
    if callable(target):
        return target
    raise ArgumentError(f'{target!r} is not a row mapper', 'mapper')


def apply_mapper(map_row: MapFunc, cursor: ResultCursor) -> Any:
    """Map the current row, reporting mapper failures as MappingError.
    """
    position = cursor.row_number
    try:
        instance = map_row(cursor)
    except DatabaseError:
        raise
    except (LookupError, TypeError, ValueError) as err:
        raise MappingError(f'Failed to map row {position}: {err}') from err
    if cursor.row_number != position:
        raise MappingError(f'Mapper advanced the cursor past row {position}')
    return instance


def map_single(cursor: ResultCursor, map_row: MapFunc) -> Any | None:
    """Map the first row of the cursor, or return None if there is none.
    """
    if not cursor.read():
        return None
    return apply_mapper(map_row, cursor)


def map_rows(cursor: ResultCursor, map_row: MapFunc) -> Iterator[Any]:
    """Yield one mapped instance per remaining row, in cursor order.
    """
    count = 0
    try:
        while cursor.read():
            yield apply_mapper(map_row, cursor)
            count += 1
    except GeneratorExit:
        logger.debug(f'Row stream abandoned after {count} row(s)')
        raise
    logger.debug(f'Row stream exhausted after {count} row(s)')
