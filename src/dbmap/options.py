from dataclasses import dataclass

from dbmap.exceptions import ArgumentError
from dbmap.strategy import get_available_dialects, get_strategy_class
from dbmap.strategy import is_supported_dialect

from libb import ConfigOptions, scriptname

__all__ = ['DatabaseOptions']


@dataclass
class DatabaseOptions(ConfigOptions):
    """Options

    supported driver names: `postgresql`, `sqlite`

    - timeout: connect timeout in seconds (busy timeout for SQLite)
    - autocommit: open connections in autocommit mode (default: True)
    """
    drivername: str = 'postgresql'
    hostname: str = None
    username: str = None
    password: str = None
    database: str = None
    port: int = 0
    timeout: int = 0
    appname: str = None
    autocommit: bool = True

    def __post_init__(self):
        if not is_supported_dialect(self.drivername):
            available = get_available_dialects()
            raise ArgumentError(f'drivername must be one of: {available}', 'drivername')
        self.port = int(self.port or 0)
        self.timeout = int(self.timeout or 0)
        self.appname = self.appname or scriptname() or 'python_console'
        strategy_cls = get_strategy_class(self.drivername)
        strategy_cls.validate_options(self)

    def __str__(self) -> str:
        return (f'{self.drivername}://{self.username or ""}@{self.hostname or ""}'
                f':{self.port}/{self.database or ""}')
