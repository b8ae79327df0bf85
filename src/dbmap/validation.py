"""Argument guards applied by every public entry point before any I/O."""
from typing import Any

from dbmap.exceptions import ArgumentError

__all__ = ['require', 'require_text']


def require(value: Any, name: str) -> Any:
    """Raise ArgumentError if `value` is None, otherwise return it.
    """
    if value is None:
        raise ArgumentError(f'Missing required argument: {name}', name)
    return value


def require_text(value: str | None, name: str) -> str:
    """Raise ArgumentError if `value` is None or an empty string.
    """
    if value is None:
        raise ArgumentError(f'Missing required argument: {name}', name)
    if not isinstance(value, str):
        raise ArgumentError(f'Argument {name} must be a string, got {type(value).__name__}', name)
    if value == '':
        raise ArgumentError(f'Argument {name} must not be empty', name)
    return value
