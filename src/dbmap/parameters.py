"""
Parameter binding for commands.

A command's parameters are collected in a ParameterCollection, either from a
list of values/Parameter objects given to an executor call, or by a
configuration callback that receives the empty collection and fills it.
The dialect strategy turns the collection into the argument the driver's
`cursor.execute()` expects (a tuple for positional, a dict for named).
"""
import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import Any

from dbmap.exceptions import ArgumentError

__all__ = [
    'Parameter',
    'ParameterCollection',
    'as_parameter',
    'bind_parameters',
    'normalize_name',
]

logger = logging.getLogger(__name__)

PARAMETER_SIGILS = '@:$'


def normalize_name(name: str | None) -> str | None:
    """Strip a leading `@`, `:` or `$` from a parameter name.

    Empty names are treated as positional.
    """
    if name is None:
        return None
    name = name.lstrip(PARAMETER_SIGILS)
    return name or None


@dataclass
class Parameter:
    """One value bound to a command.

    `db_type` and `size` are hints applied by the dialect strategy when the
    parameter is converted for the driver.
    """
    name: str | None
    value: Any = None
    db_type: str | None = None
    size: int | None = None

    def __post_init__(self):
        self.name = normalize_name(self.name)

    @property
    def is_named(self) -> bool:
        return self.name is not None


def as_parameter(value: Any, name: str | None = None) -> Parameter:
    """Create a Parameter from a bare value.

    A Parameter passes through unchanged unless a name is given, in which
    case a renamed copy is returned. None binds as SQL NULL.
    """
    if isinstance(value, Parameter):
        if name is None:
            return value
        return Parameter(name, value.value, value.db_type, value.size)
    return Parameter(name, value)


class ParameterCollection:
    """Ordered, mutable set of parameters attached to one command.
    """

    def __init__(self, parameters: Iterable[Parameter] = ()) -> None:
        self._items: list[Parameter] = []
        for parameter in parameters:
            self.add_parameter(parameter)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Parameter]:
        return iter(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __contains__(self, name: str) -> bool:
        return self.find(name) is not None

    def __getitem__(self, key: int | str) -> Parameter:
        if isinstance(key, str):
            parameter = self.find(key)
            if parameter is None:
                raise KeyError(key)
            return parameter
        return self._items[key]

    def __repr__(self) -> str:
        return f'ParameterCollection({self._items!r})'

    def find(self, name: str) -> Parameter | None:
        """Return the parameter named `name`, if any."""
        name = normalize_name(name)
        for parameter in self._items:
            if parameter.name == name:
                return parameter
        return None

    def add_parameter(self, parameter: Parameter) -> Parameter:
        """Attach a prebuilt parameter."""
        if not isinstance(parameter, Parameter):
            raise ArgumentError(f'Expected Parameter, got {type(parameter).__name__}', 'parameter')
        self._items.append(parameter)
        return parameter

    def add(self, name: str, value: Any, db_type: str | None = None,
            size: int | None = None) -> Parameter:
        """Add a named parameter and return it for further configuration.
        """
        if not normalize_name(name):
            raise ArgumentError('Named parameters require a non-empty name', 'name')
        return self.add_parameter(Parameter(name, value, db_type, size))

    def add_value(self, value: Any, db_type: str | None = None,
                  size: int | None = None) -> Parameter:
        """Add a positional parameter at the next position.
        """
        return self.add_parameter(Parameter(None, value, db_type, size))

    def extend(self, values: Iterable[Any]) -> None:
        """Add each value (or Parameter) in order."""
        for value in values:
            self.add_parameter(as_parameter(value))

    def clear(self) -> None:
        self._items.clear()

    @property
    def is_named(self) -> bool:
        """True if every parameter has a name."""
        return bool(self._items) and all(p.is_named for p in self._items)

    @property
    def is_positional(self) -> bool:
        """True if no parameter has a name."""
        return all(not p.is_named for p in self._items)


def bind_parameters(collection: ParameterCollection,
                    parameters: Iterable[Any] = (),
                    configure: Callable[[ParameterCollection], Any] | None = None) -> ParameterCollection:
    """Apply one binding strategy to an empty collection.

    Args:
        collection: The command's parameter collection
        parameters: Values or Parameter objects, attached in order
        configure: Callback receiving the collection to fill it in place

    A list and a callback are mutually exclusive.
    """
    parameters = tuple(parameters)
    if parameters and configure is not None:
        raise ArgumentError('Pass either parameters or a configure callback, not both', 'configure')
    if configure is not None:
        if not callable(configure):
            raise ArgumentError('configure must be callable', 'configure')
        configure(collection)
    elif parameters:
        collection.extend(parameters)
    logger.debug(f'Bound {len(collection)} parameter(s)')
    return collection
