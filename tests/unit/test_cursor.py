import datetime
import decimal
import uuid

import dbmap
import pytest
from dbmap import MappingError, QueryError, ResultOptions

SQL = 'select * from things'

COLUMNS = ['Id', 'name', 'price', 'created', 'flag', 'blob', 'key', 'missing']
ROW = (
    7,
    'seven',
    '7.25',
    '2024-01-02',
    'yes',
    b'\x00\x01',
    '12345678-1234-5678-1234-567812345678',
    None,
)


@pytest.fixture
def cursor(stub_conn):
    stub_conn.script(SQL, columns=COLUMNS, rows=[ROW, ROW])
    with dbmap.query_raw(stub_conn, SQL) as cursor:
        assert cursor.read()
        yield cursor


def test_columns_and_ordinals(cursor):
    assert cursor.field_count == len(COLUMNS)
    assert cursor.has_rows
    assert cursor.get_name(1) == 'name'
    assert cursor.get_ordinal('name') == 1


def test_ordinal_lookup_falls_back_to_casefold(cursor):
    assert cursor.get_ordinal('Id') == 0
    assert cursor.get_ordinal('ID') == 0
    assert cursor.get_ordinal('NAME') == 1


def test_unknown_column_is_mapping_error(cursor):
    with pytest.raises(MappingError):
        cursor.get_value('nope')
    with pytest.raises(MappingError):
        cursor.get_value(len(COLUMNS))
    with pytest.raises(MappingError):
        cursor.get_name(-1)


def test_values_by_ordinal_and_name(cursor):
    assert cursor.values() == ROW
    assert cursor[0] == 7
    assert cursor['name'] == 'seven'
    assert cursor.is_null('missing')
    assert not cursor.is_null('name')


def test_typed_getters(cursor):
    assert cursor.get_int('id') == 7
    assert cursor.get_str('name') == 'seven'
    assert cursor.get_float('price') == 7.25
    assert cursor.get_decimal('price') == decimal.Decimal('7.25')
    assert cursor.get_date('created') == datetime.date(2024, 1, 2)
    assert cursor.get_datetime('created') == datetime.datetime(2024, 1, 2)
    assert cursor.get_bool('flag') is True
    assert cursor.get_bytes('blob') == b'\x00\x01'
    assert cursor.get_uuid('key') == uuid.UUID('12345678-1234-5678-1234-567812345678')


def test_null_requires_default(cursor):
    with pytest.raises(MappingError):
        cursor.get_int('missing')
    assert cursor.get_int('missing', None) is None
    assert cursor.get_str('missing', 'n/a') == 'n/a'


def test_conversion_failure_is_chained(cursor):
    with pytest.raises(MappingError) as exc_info:
        cursor.get_int('name')
    assert isinstance(exc_info.value.__cause__, ValueError)

    with pytest.raises(MappingError):
        cursor.get_str('id')


def test_read_advances_row_number(stub_conn):
    stub_conn.script(SQL, columns=['x'], rows=[(1,), (2,)])
    with dbmap.query_raw(stub_conn, SQL) as cursor:
        assert cursor.row_number == -1
        assert cursor.read()
        assert cursor.row_number == 0
        assert cursor.read()
        assert cursor.get_int(0) == 2
        assert not cursor.read()
        assert not cursor.read()
        assert cursor.row_number == 1


def test_value_before_read_is_query_error(stub_conn):
    stub_conn.script(SQL, columns=['x'], rows=[(1,)])
    with dbmap.query_raw(stub_conn, SQL) as cursor:
        with pytest.raises(QueryError):
            cursor.get_value(0)


def test_single_row_option(stub_conn):
    stub_conn.script(SQL, columns=['x'], rows=[(1,), (2,)])
    with dbmap.query_raw(stub_conn, SQL, options=ResultOptions.SINGLE_ROW) as cursor:
        assert list(cursor) == [(1,)]
    assert stub_conn.count('fetch') == 1


def test_schema_only_option(stub_conn):
    stub_conn.script(SQL, columns=['x', 'y'], rows=[(1, 2)])
    with dbmap.query_raw(stub_conn, SQL, options=ResultOptions.SCHEMA_ONLY) as cursor:
        assert cursor.columns == ('x', 'y')
        assert not cursor.read()
    assert stub_conn.count('execute') == 1
    assert stub_conn.count('fetch') == 0


def test_single_result_has_no_next_result(stub_conn):
    stub_conn.script(SQL, columns=['x'], rows=[(1,)])
    with dbmap.query_raw(stub_conn, SQL, options=ResultOptions.SINGLE_RESULT) as cursor:
        assert not cursor.next_result()


def test_next_result_without_driver_support(stub_conn):
    stub_conn.script(SQL, columns=['x'], rows=[(1,)])
    with dbmap.query_raw(stub_conn, SQL) as cursor:
        assert not cursor.next_result()


def test_closed_cursor_rejects_reads(stub_conn):
    stub_conn.script(SQL, columns=['x'], rows=[(1,)])
    cursor = dbmap.query_raw(stub_conn, SQL)
    cursor.close()
    with pytest.raises(QueryError):
        cursor.read()
    assert stub_conn.count('close_cursor') == 1


def test_rowcount_reports_unknown(stub_conn):
    stub_conn.script(SQL, columns=['x'], rows=[(1,)], rowcount=-1)
    with dbmap.query_raw(stub_conn, SQL) as cursor:
        assert cursor.rowcount == dbmap.UNKNOWN_ROWCOUNT


@pytest.mark.parametrize(('getter', 'value', 'expected'), [
    ('get_int', 3.0, 3),
    ('get_int', decimal.Decimal('4'), 4),
    ('get_int', '12', 12),
    ('get_bool', 0, False),
    ('get_bool', 'off', False),
    ('get_decimal', 1.1, decimal.Decimal('1.1')),
    ('get_datetime', datetime.date(2024, 5, 6), datetime.datetime(2024, 5, 6)),
    ('get_date', datetime.datetime(2024, 5, 6, 7, 8), datetime.date(2024, 5, 6)),
    ('get_bytes', bytearray(b'ab'), b'ab'),
])
def test_typed_conversions(stub_conn, getter, value, expected):
    stub_conn.script(SQL, columns=['v'], rows=[(value,)])
    with dbmap.query_raw(stub_conn, SQL) as cursor:
        cursor.read()
        assert getattr(cursor, getter)('v') == expected


@pytest.mark.parametrize(('getter', 'value'), [
    ('get_int', 1.5),
    ('get_int', decimal.Decimal('2.5')),
    ('get_bool', 2),
    ('get_bool', 'maybe'),
    ('get_uuid', 'not-a-uuid'),
    ('get_date', 12),
])
def test_invalid_conversions(stub_conn, getter, value):
    stub_conn.script(SQL, columns=['v'], rows=[(value,)])
    with dbmap.query_raw(stub_conn, SQL) as cursor:
        cursor.read()
        with pytest.raises(MappingError):
            getattr(cursor, getter)('v')


if __name__ == '__main__':
    __import__('pytest').main([__file__])
