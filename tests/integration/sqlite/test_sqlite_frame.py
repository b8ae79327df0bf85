import dbmap


def test_query_frame(sl_conn):
    df = dbmap.query_frame(sl_conn, 'select id, name from widgets order by id')
    assert list(df.columns) == ['id', 'name']
    assert df['name'].tolist() == ['a', 'b']


def test_query_frame_empty_keeps_columns(sl_conn):
    df = dbmap.query_frame(sl_conn, 'select id, name from widgets where id = ?', 99)
    assert len(df) == 0
    assert list(df.columns) == ['id', 'name']


def test_query_frame_releases_cursor(sl_conn):
    dbmap.query_frame(sl_conn, 'select * from widgets')
    assert not sl_conn.closed
    assert sl_conn.query_frame('select count(*) as n from widgets')['n'][0] == 2


if __name__ == '__main__':
    __import__('pytest').main([__file__])
