"""
Micro-ORM for DB-API drivers, with PostgreSQL (psycopg) and SQLite bindings.

All operations can be called either as:
- Module functions: dbmap.query(cn, Widget, sql, *params)
- Connection methods: cn.query(Widget, sql, *params)

`cn` is a dbmap Connection (see `connect`) or a raw sqlite3/psycopg
connection.
"""
__version__ = '0.1.0'

from dbmap.cancellation import CancellationToken
from dbmap.command import Command, create_command
from dbmap.connection import Connection, connect, dispose_all_engines
from dbmap.cursor import ResultCursor, ResultOptions
from dbmap.exceptions import ArgumentError, ConnectionFailure, DatabaseError
from dbmap.exceptions import DbConnectionError, IntegrityError, MappingError
from dbmap.exceptions import OperationalError, OperationCancelled
from dbmap.exceptions import ProgrammingError, QueryError, UniqueViolation
from dbmap.executor import execute, execute_scalar, query, query_raw
from dbmap.executor import query_single
from dbmap.frame import query_frame
from dbmap.mapping import RowMapper
from dbmap.options import DatabaseOptions
from dbmap.parameters import Parameter, ParameterCollection, as_parameter
from dbmap.strategy import UNKNOWN_ROWCOUNT
from dbmap.transaction import Transaction as transaction

__all__ = [
    'connect',
    'Connection',
    'DatabaseOptions',
    'dispose_all_engines',
    'transaction',
    'execute',
    'execute_scalar',
    'query_single',
    'query',
    'query_raw',
    'query_frame',
    'Command',
    'create_command',
    'ResultCursor',
    'ResultOptions',
    'RowMapper',
    'Parameter',
    'ParameterCollection',
    'as_parameter',
    'CancellationToken',
    'UNKNOWN_ROWCOUNT',
    'DatabaseError',
    'ArgumentError',
    'MappingError',
    'QueryError',
    'ConnectionFailure',
    'OperationCancelled',
    'DbConnectionError',
    'IntegrityError',
    'ProgrammingError',
    'OperationalError',
    'UniqueViolation',
]
