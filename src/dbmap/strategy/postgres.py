"""
PostgreSQL-specific strategy implementation.

Binds the client/server driver psycopg (v3). PostgreSQL notes:
- Named parameters use `%(name)s`, positional use `%s`
- `rowcount` is -1 when the server does not report a count (DDL)
- A running statement is cancelled by a cancel request on a side channel
"""
import logging
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from dbmap.strategy.base import DatabaseStrategy, register_strategy
from psycopg.types.json import Json, Jsonb

if TYPE_CHECKING:
    from dbmap.options import DatabaseOptions

logger = logging.getLogger(__name__)


@register_strategy('postgresql')
class PostgresStrategy(DatabaseStrategy):
    """PostgreSQL-specific operations.
    """

    @property
    def dialect_name(self) -> str:
        """Return the dialect identifier for PostgreSQL."""
        return 'postgresql'

    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for psycopg."""
        query = {}
        if options.timeout:
            query['connect_timeout'] = str(options.timeout)
        return sa.URL.create(
            drivername='postgresql+psycopg',
            username=options.username,
            password=options.password,
            host=options.hostname,
            port=options.port or None,
            database=options.database,
            query=query
        )

    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for PostgreSQL."""
        return {'connect_args': {'application_name': options.appname}}

    @classmethod
    def get_required_options(cls) -> list[str]:
        """PostgreSQL needs a host, user and database."""
        return ['hostname', 'username', 'database']

    def configure_connection(self, raw_conn: Any, options: 'DatabaseOptions | None' = None) -> None:
        """Apply the autocommit setting."""
        if options is None or options.autocommit:
            self.enable_autocommit(raw_conn)

    def enable_autocommit(self, raw_conn: Any) -> None:
        """Enable autocommit mode for PostgreSQL."""
        raw_conn.autocommit = True

    def disable_autocommit(self, raw_conn: Any) -> None:
        """Disable autocommit mode for PostgreSQL."""
        raw_conn.autocommit = False

    def is_autocommit(self, raw_conn: Any) -> bool:
        return bool(raw_conn.autocommit)

    def is_closed(self, raw_conn: Any) -> bool:
        return bool(raw_conn.closed)

    def interrupt(self, raw_conn: Any) -> None:
        logger.debug('Sending cancel request for running PostgreSQL statement')
        if hasattr(raw_conn, 'cancel_safe'):
            raw_conn.cancel_safe()
        else:
            raw_conn.cancel()

    def adapt_type(self, value: Any, db_type: str) -> Any:
        """Wrap values hinted as `json`/`jsonb` for the psycopg dumpers."""
        if db_type == 'jsonb':
            return Jsonb(value)
        if db_type == 'json':
            return Json(value)
        return value
