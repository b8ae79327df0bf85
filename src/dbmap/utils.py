"""Low-level connection utilities with no internal dependencies.

These work with any connection object dbmap accepts (a dbmap Connection
or a raw DB-API connection) and import nothing else from the package, so
they are safe to use from the strategy modules.
"""
import logging
from typing import Any

logger = logging.getLogger(__name__)


def get_dialect_name(obj: Any) -> str:
    """Get dialect name for a database connection.

    Raises AttributeError if the object is not a recognised connection.
    """
    dialect = getattr(obj, 'dialect', None)
    if isinstance(dialect, str):
        return dialect.lower()
    if dialect is not None and hasattr(dialect, 'name'):
        return str(dialect.name).lower()

    type_name = f'{type(obj).__module__}.{type(obj).__name__}'
    if 'psycopg' in type_name:
        return 'postgresql'
    if 'sqlite3' in type_name:
        return 'sqlite'

    raise AttributeError(f'Cannot determine dialect for {type(obj)}')
