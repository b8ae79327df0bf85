import importlib


def test_circular_dependencies():
    """Test if modules can be imported without circular dependencies"""
    # List of all modules to test in dependency order
    modules = [
        # Independent modules (no internal deps)
        'dbmap.exceptions',
        'dbmap.utils',
        'dbmap.validation',
        'dbmap.cancellation',
        'dbmap.parameters',

        # Strategy and options
        'dbmap.strategy',
        'dbmap.strategy.base',
        'dbmap.strategy.postgres',
        'dbmap.strategy.sqlite',
        'dbmap.options',

        # Cursor, command and connection
        'dbmap.cursor',
        'dbmap.command',
        'dbmap.mapping',
        'dbmap.connection',

        # Execution
        'dbmap.executor',
        'dbmap.transaction',
        'dbmap.frame',

        # Main package
        'dbmap',
    ]

    failures = {}
    for module in modules:
        try:
            importlib.import_module(module)
        except Exception as e:
            failures[module] = e

    assert not failures, f'{len(failures)} modules failed circular dependency check: {failures}'


if __name__ == '__main__':
    __import__('pytest').main([__file__])
