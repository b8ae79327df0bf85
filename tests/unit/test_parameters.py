import pytest
from dbmap import ArgumentError, Parameter, ParameterCollection, as_parameter
from dbmap.parameters import bind_parameters, normalize_name


@pytest.mark.parametrize(('name', 'expected'), [
    ('id', 'id'),
    ('@id', 'id'),
    (':id', 'id'),
    ('$id', 'id'),
    ('', None),
    ('@', None),
    (None, None),
])
def test_normalize_name(name, expected):
    assert normalize_name(name) == expected


def test_as_parameter_wraps_values():
    param = as_parameter(5)
    assert param == Parameter(None, 5)
    assert not param.is_named

    named = as_parameter(5, '@count')
    assert named.name == 'count'
    assert named.is_named


def test_as_parameter_passes_parameters_through():
    param = Parameter('id', 1, db_type='int')
    assert as_parameter(param) is param
    renamed = as_parameter(param, 'other')
    assert renamed is not param
    assert (renamed.name, renamed.value, renamed.db_type) == ('other', 1, 'int')


def test_collection_lookup():
    params = ParameterCollection()
    params.add('@name', 'a')
    params.add(':id', 1, db_type='int')
    assert len(params) == 2
    assert 'name' in params
    assert '@id' in params
    assert params['id'].value == 1
    assert params[0].name == 'name'
    assert params.find('missing') is None
    with pytest.raises(KeyError):
        params['missing']


def test_collection_style():
    params = ParameterCollection()
    assert params.is_positional
    assert not params.is_named
    params.add_value(1)
    assert params.is_positional
    params.add('x', 2)
    assert not params.is_positional
    assert not params.is_named


def test_add_requires_name():
    params = ParameterCollection()
    with pytest.raises(ArgumentError):
        params.add('', 1)
    with pytest.raises(ArgumentError):
        params.add_parameter(1)


def test_bind_values_in_order():
    params = bind_parameters(ParameterCollection(), ['a', None, as_parameter(3)])
    assert [p.value for p in params] == ['a', None, 3]


def test_bind_with_configure():
    def configure(params):
        params.add('id', 1)

    params = bind_parameters(ParameterCollection(), configure=configure)
    assert params['id'].value == 1


def test_bind_rejects_both_styles():
    with pytest.raises(ArgumentError):
        bind_parameters(ParameterCollection(), [1], configure=lambda p: None)


def test_bind_rejects_non_callable_configure():
    with pytest.raises(ArgumentError):
        bind_parameters(ParameterCollection(), configure='not callable')


def test_bind_nothing():
    assert len(bind_parameters(ParameterCollection())) == 0


if __name__ == '__main__':
    __import__('pytest').main([__file__])
