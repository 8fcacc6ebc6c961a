import numpy as np
import pytest
from numpy.testing import assert_array_almost_equal, assert_array_equal

from ncarray.array import TypedArray
from ncarray.config import config
from ncarray.dataset import MESSAGE_ADD_RECORD_STRUCTURE, Dataset
from ncarray.errors import StructureConflictError, UnknownFieldError, VariableNotFoundError
from ncarray.storage import BufferSource
from ncarray.structure import ArrayStructure, StructureData
from ncarray.tests.util import make_record_layout, make_record_source, rh_values
from ncarray.variable import Dimension, Variable, VariableKind


def test_read_record_variables(record_dataset):
    ds = record_dataset

    lat = ds['lat']
    assert 1 == lat.rank
    nlats = lat.shape[0]
    values = lat.read()
    lats = [values.get(i) for i in range(nlats)]
    assert [41.0, 40.0, 39.0] == lats

    values = ds['lon'].read()
    assert isinstance(values, TypedArray)
    assert np.dtype('f4') == values.dtype
    assert_array_almost_equal([-109.0, -107.0, -105.0, -103.0], values.to_flat())

    # unlimited dimension
    time = ds.find_variable('time')
    assert time is not None
    ta = time.read()
    assert np.dtype('i4') == ta.dtype
    assert 6 == ta.get(0)
    assert 18 == ta.get(1)

    rha = ds['rh'].read()
    assert 3 == rha.ndim
    for i in range(rha.shape[0]):
        for j in range(rha.shape[1]):
            for k in range(rha.shape[2]):
                assert 20 * i + 4 * j + k + 1 == rha.get((i, j, k))

    t = ds['T']
    ta = t.read()
    assert np.dtype('f8') == ta.dtype
    assert 1.0 == ta.get((0, 0, 0))
    assert 10.0 == ta.get((1, 1, 1))

    # subset
    ta = t.read_origin((0, 0, 0), (2, 2, 2))
    assert (2, 2, 2) == ta.shape
    assert 1.0 == ta.get((0, 0, 0))
    assert 10.0 == ta.get((1, 1, 1))

    assert_array_equal(ta.to_numpy(), t[:2, :2, :2].to_numpy())
    assert_array_equal(ta.to_numpy(), ds.read('T', '0:1,0:1,0:1').to_numpy())


def test_record_structure_not_added_by_default(record_dataset):
    assert 'record' not in record_dataset
    assert record_dataset.find_variable('record') is None
    with pytest.raises(VariableNotFoundError):
        record_dataset['record']


def _check_record_structure(ds):
    record = ds.find_variable('record')
    assert record is not None
    assert VariableKind.STRUCTURE == record.kind
    assert 1 == record.rank
    assert 2 == record.shape[0]

    values = record.read()
    assert isinstance(values, ArrayStructure)
    assert 1 == values.ndim
    assert 2 == values.shape[0]

    # strided read of a single record
    values = record.read("1:1:2")
    assert isinstance(values, ArrayStructure)
    assert 1 == values.ndim
    assert 1 == values.shape[0]

    sdata = values[0]
    assert isinstance(sdata, StructureData)
    gdata = sdata.get_array('time')
    assert () == gdata.shape
    assert np.dtype('i4') == gdata.dtype
    assert 18 == gdata.get()
    assert 18 == sdata.get_scalar('time')

    rha = record[0].get_field('rh')
    assert (3, 4) == rha.shape
    for j in range(3):
        for k in range(4):
            assert 4 * j + k + 1 == rha.get((j, k))


def test_record_structure_on_request(record_dataset):
    assert record_dataset.add_record_structure()
    _check_record_structure(record_dataset)

    # idempotent
    assert record_dataset.add_record_structure()
    assert 1 == list(record_dataset).count('record')


def test_record_structure_by_message(record_dataset):
    assert record_dataset.send_message(MESSAGE_ADD_RECORD_STRUCTURE)
    _check_record_structure(record_dataset)

    with pytest.raises(ValueError):
        record_dataset.send_message('Nonsense')


def test_record_structure_at_construction():
    dimensions, variables = make_record_layout()
    ds = Dataset(make_record_source(), dimensions, variables, record_structure=True)
    _check_record_structure(ds)


def test_record_structure_from_config():
    dimensions, variables = make_record_layout()
    with config.set({'record_structure': True}):
        ds = Dataset(make_record_source(), dimensions, variables)
    _check_record_structure(ds)

    dimensions, variables = make_record_layout()
    with config.set({'record_structure': True, 'record.name': 'rows'}):
        ds = Dataset(make_record_source(), dimensions, variables)
    assert 'rows' in ds
    assert 'record' not in ds


def test_no_record_variables():
    lat = Dimension('lat', 2)
    ds = Dataset(BufferSource(bytes(8)), [lat], [Variable('lat', 'float', [lat])])
    assert not ds.add_record_structure()
    assert 'record' not in ds
    assert ds.unlimited_dimension is None


def test_dataset_contents(record_dataset):
    ds = record_dataset
    assert ['lat', 'lon', 'time', 'rh', 'T'] == list(ds)
    assert 5 == len(ds)
    assert 'time' == ds.unlimited_dimension.name
    assert 2 == ds.numrecs
    assert ['time', 'rh', 'T'] == [v.name for v in ds.record_variables]

    with pytest.raises(ValueError):
        Dataset(ds.source, [], [Variable('a', 'int'), Variable('a', 'int')])


def test_shape_follows_source(record_dataset):
    record_dataset.add_record_structure()
    assert (2, 3, 4) == record_dataset['rh'].shape
    record_dataset.source.numrecs = 1
    assert (1, 3, 4) == record_dataset['rh'].shape
    assert (1,) == record_dataset['record'].shape


def test_detached_variable():
    v = Variable('x', 'int', [Dimension('x', 2)])
    assert (2,) == v.shape
    with pytest.raises(RuntimeError):
        v.read()
    with pytest.raises(RuntimeError):
        v[0]


def test_tree(record_dataset):
    record_dataset.add_record_structure()
    text = str(record_dataset.tree())
    assert text.startswith('/')
    for name in ('lat (lat) float32', 'time (time) int32', 'T (time, lat, lon) float64',
                 'record (time) structure', 'rh (3, 4) int32'):
        assert name in text

    text = bytes(record_dataset.tree()).decode()
    assert '+--' in text

    text = repr(record_dataset.tree(level=1))
    assert 'record (time) structure' in text
    assert 'rh (3, 4) int32' not in text


def test_info(record_dataset):
    record_dataset.add_record_structure()
    items = dict(record_dataset.info_items())
    assert 'ncarray.dataset.Dataset' == items['Type']
    assert 2 == items['Records']
    assert 148 == items['Record size']
    assert 'Variables' in repr(record_dataset.info)


def _packed_dataset(variables, records, **kwargs):
    rec = Dimension('rec', 0, unlimited=True)
    n = Dimension('n', 2)
    buf = np.array(records, dtype='>i4').tobytes()
    return Dataset(BufferSource(buf, numrecs=2), [rec, n], variables(rec, n), **kwargs)


def test_undeclared_record_layout():
    ds = _packed_dataset(
        lambda rec, n: [Variable('time', 'int', [rec]), Variable('rh', 'int', [rec, n])],
        [6, 100, 101, 18, 200, 201],
        record_structure=True,
    )
    assert (0, 12) == (ds['time'].begin, ds['time'].record_stride)
    assert (4, 12) == (ds['rh'].begin, ds['rh'].record_stride)
    assert [6, 18] == ds['time'].read().to_flat().tolist()
    assert [[100, 101], [200, 201]] == ds['rh'].read().to_numpy().tolist()

    # flat reads and the record structure see the same bytes
    rows = ds['record'].read()
    for name in ('time', 'rh'):
        assert ds[name].read() == rows.get_member(name)


def test_padded_record_layout():
    # record size declared, positions left to the packing order
    ds = _packed_dataset(
        lambda rec, n: [Variable('time', 'int', [rec], record_stride=16),
                        Variable('rh', 'int', [rec, n], record_stride=16)],
        [6, 100, 101, -1, 18, 200, 201, -1],
    )
    assert (4, 16) == (ds['rh'].begin, ds['rh'].record_stride)
    assert [[100, 101], [200, 201]] == ds['rh'].read().to_numpy().tolist()
    assert [18] == ds['time'].read('1:1').to_flat().tolist()


def test_conflicting_record_layout():
    rec = Dimension('rec', 0, unlimited=True)
    variables = [Variable('time', 'double', [rec], begin=100),
                 Variable('rh', 'int', [rec], begin=104)]
    with pytest.raises(StructureConflictError):
        Dataset(BufferSource(bytes(200)), [rec], variables)


def test_read_record_members(record_dataset):
    record_dataset.add_record_structure()
    record = record_dataset['record']

    time = record.read_member('time')
    assert (2,) == time.shape
    assert [6, 18] == time.to_flat().tolist()
    for name in ('time', 'rh', 'T'):
        assert record_dataset[name].read() == record.read_member(name)

    rh = record.read_member('rh', '1:1')
    assert (1, 3, 4) == rh.shape
    assert_array_equal(rh_values()[1:2], rh.to_numpy())

    with pytest.raises(UnknownFieldError):
        record.read_member('humidity')
    with pytest.raises(TypeError):
        record_dataset['rh'].read_member('rh')
