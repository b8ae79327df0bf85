"""
SQLite-specific strategy implementation.

Binds the embedded/file driver from the standard library. SQLite notes:
- No server: connection URL is just the database path (`:memory:` allowed)
- Named parameters use `:name`, positional use `?`
- `rowcount` is -1 for statements that do not modify rows
- Dates are stored as ISO text and parsed back through registered converters
"""
import datetime
import decimal
import json
import logging
import sqlite3
import uuid
from typing import TYPE_CHECKING, Any

import dateutil.parser
import sqlalchemy as sa
from dbmap.strategy.base import DatabaseStrategy, register_strategy

if TYPE_CHECKING:
    from dbmap.options import DatabaseOptions

logger = logging.getLogger(__name__)


def adapt_date_iso(val: datetime.date) -> str:
    """Adapt datetime.date to ISO 8601 date."""
    return val.isoformat()


def adapt_datetime_iso(val: datetime.datetime) -> str:
    """Adapt datetime.datetime to ISO 8601 date and time."""
    return val.isoformat(sep=' ')


def convert_date(val: bytes) -> datetime.date:
    """Convert ISO 8601 date to datetime.date object."""
    return dateutil.parser.isoparse(val.decode()).date()


def convert_datetime(val: bytes) -> datetime.datetime:
    """Convert ISO 8601 datetime to datetime.datetime object."""
    return dateutil.parser.isoparse(val.decode())


def register_type_adapters() -> None:
    """Register module-wide sqlite3 adapters and converters.

    Adapters (Python -> SQLite) cover types sqlite3 cannot bind natively;
    converters (SQLite -> Python) apply to declared column types when the
    connection was opened with `detect_types`.
    """
    sqlite3.register_adapter(datetime.date, adapt_date_iso)
    sqlite3.register_adapter(datetime.datetime, adapt_datetime_iso)
    sqlite3.register_adapter(decimal.Decimal, str)
    sqlite3.register_adapter(uuid.UUID, str)
    sqlite3.register_converter('date', convert_date)
    sqlite3.register_converter('datetime', convert_datetime)
    sqlite3.register_converter('timestamp', convert_datetime)


@register_strategy('sqlite')
class SQLiteStrategy(DatabaseStrategy):
    """SQLite-specific operations.
    """

    @property
    def dialect_name(self) -> str:
        """Return the dialect identifier for SQLite."""
        return 'sqlite'

    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for SQLite."""
        return sa.URL.create(drivername='sqlite', database=options.database)

    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for SQLite."""
        connect_args: dict[str, Any] = {
            'detect_types': sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
            'check_same_thread': False,
        }
        if options.timeout:
            connect_args['timeout'] = options.timeout
        return {'connect_args': connect_args}

    @classmethod
    def get_required_options(cls) -> list[str]:
        """SQLite only needs a database path."""
        return ['database']

    def configure_connection(self, raw_conn: Any, options: 'DatabaseOptions | None' = None) -> None:
        """Register adapters and apply the autocommit setting.
        """
        register_type_adapters()
        if options is None or options.autocommit:
            self.enable_autocommit(raw_conn)
        raw_conn.execute('PRAGMA foreign_keys = ON')

    def enable_autocommit(self, raw_conn: Any) -> None:
        """Enable autocommit mode for SQLite."""
        raw_conn.isolation_level = None

    def disable_autocommit(self, raw_conn: Any) -> None:
        """Disable autocommit mode for SQLite."""
        raw_conn.isolation_level = 'DEFERRED'

    def is_autocommit(self, raw_conn: Any) -> bool:
        return raw_conn.isolation_level is None

    def is_closed(self, raw_conn: Any) -> bool:
        """sqlite3 has no `closed` flag; a closed connection rejects every call."""
        try:
            raw_conn.total_changes
        except sqlite3.ProgrammingError:
            return True
        return False

    def interrupt(self, raw_conn: Any) -> None:
        logger.debug('Interrupting running SQLite statement')
        raw_conn.interrupt()

    def adapt_type(self, value: Any, db_type: str) -> Any:
        """`json` serializes containers; `text` forces a string."""
        if db_type == 'json' and not isinstance(value, str):
            return json.dumps(value)
        if db_type == 'text':
            return str(value)
        return value
