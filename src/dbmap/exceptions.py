"""
Exception classes raised by dbmap.

Driver errors are never wrapped. The tuples at the bottom of this module
group the psycopg and sqlite3 exception classes so callers can catch a
category of driver failure without importing either driver.
"""
import sqlite3

import psycopg


class DatabaseError(Exception):
    """Base class for all dbmap errors.
    """


class ArgumentError(DatabaseError, ValueError):
    """A required argument is missing, empty or unusable.

    Always raised before any connection is opened or command allocated.
    """

    def __init__(self, message: str, name: str | None = None) -> None:
        super().__init__(message)
        self.name = name


class MappingError(DatabaseError):
    """A row could not be turned into the requested value or object.
    """


class QueryError(DatabaseError):
    """A command or result cursor was used in a state that does not allow it.
    """


class ConnectionFailure(DatabaseError):
    """Error establishing or reusing a database connection.
    """


class OperationCancelled(Exception):
    """The cancellation token fired before the operation completed.

    Not a DatabaseError: cancellation is an outcome the caller asked for.
    """


DbConnectionError = (
    psycopg.OperationalError,
    psycopg.InterfaceError,
    sqlite3.OperationalError,
    sqlite3.InterfaceError,
    ConnectionFailure,
    )

IntegrityError = (
    psycopg.IntegrityError,
    sqlite3.IntegrityError,
    )

ProgrammingError = (
    psycopg.ProgrammingError,
    psycopg.DatabaseError,
    sqlite3.ProgrammingError,
    sqlite3.DatabaseError,
    )

OperationalError = (
    psycopg.OperationalError,
    sqlite3.OperationalError,
    )

UniqueViolation = (
    psycopg.errors.UniqueViolation,
    sqlite3.IntegrityError,
    )
