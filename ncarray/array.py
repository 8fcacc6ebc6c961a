import numpy as np
from numcodecs.compat import ensure_ndarray

from ncarray.dtypes import disk_dtype, normalize_dtype
from ncarray.errors import ShapeMismatchError
from ncarray.indexing import coordinate, ensure_tuple, linear_offset
from ncarray.util import normalize_shape, product


__all__ = ["TypedArray"]


def _check_cast(src, dtype):
    """Refuse conversions of `src` to `dtype` that would change values."""
    if src.size == 0 or np.can_cast(src.dtype, dtype, casting='equiv'):
        return

    if dtype.kind in 'iu' and src.dtype.kind in 'biu':
        info = np.iinfo(dtype)
        lo, hi = int(src.min()), int(src.max())
        if lo < info.min or hi > info.max:
            raise ValueError('values in [{}, {}] do not fit element type {}'
                             .format(lo, hi, dtype))
        return

    if not np.can_cast(src.dtype, dtype, casting='same_kind'):
        raise TypeError('cannot convert values of type {} to element type {} '
                        'without loss'.format(src.dtype, dtype))

    if dtype.kind == 'f' and src.dtype.kind == 'f':
        finite = src[np.isfinite(src)]
        if finite.size and np.abs(finite).max() > np.finfo(dtype).max:
            raise ValueError('values out of range for element type {}'.format(dtype))


class TypedArray(object):
    """An immutable n-dimensional array of decoded values with a fixed element
    type.

    Parameters
    ----------
    dtype : str or dtype
        Element type, either a name such as ``'int'`` or ``'double'`` or
        anything accepted by :class:`numpy.dtype`.
    shape : int or tuple of ints
        Array shape; ``()`` for a scalar.
    values : sequence or ndarray
        Exactly ``product(shape)`` values in row-major order. They are copied,
        so the new array never shares storage with `values`.

    Raises
    ------
    ShapeMismatchError
        If the number of values does not match `shape`.
    TypeError
        If the values are of a kind the element type cannot hold, such as
        floats for an integer type.
    ValueError
        If a value is out of range for the element type.

    Examples
    --------
    >>> a = TypedArray('int', (2, 3), range(6))
    >>> a.get((1, 2))
    np.int32(5)
    >>> a.get_linear(4)
    np.int32(4)

    Notes
    -----
    Values keep the element type given at construction; a 4-byte integer
    array always yields ``numpy.int32`` scalars.

    """

    def __init__(self, dtype, shape, values):
        dtype = normalize_dtype(dtype)
        shape = normalize_shape(shape)

        src = np.asarray(values)
        _check_cast(src, dtype)
        data = src.astype(dtype).reshape(-1)
        if data.size != product(shape):
            raise ShapeMismatchError(product(shape), shape, data.size)

        data.flags.writeable = False
        self._data = data
        self._dtype = dtype
        self._shape = shape

    @classmethod
    def from_bytes(cls, dtype, shape, buf, byteorder=None):
        """Decode stored bytes holding ``product(shape)`` elements of `dtype`."""
        dtype = normalize_dtype(dtype)
        raw = ensure_ndarray(buf).reshape(-1).view('u1')
        stored = disk_dtype(dtype, byteorder)
        nbytes = product(normalize_shape(shape)) * stored.itemsize
        if raw.nbytes != nbytes:
            raise ShapeMismatchError(nbytes, shape, raw.nbytes)
        return cls(dtype, shape, raw.view(stored))

    @property
    def dtype(self):
        """The element type."""
        return self._dtype

    @property
    def shape(self):
        return self._shape

    @property
    def ndim(self):
        return len(self._shape)

    @property
    def size(self):
        return self._data.size

    @property
    def nbytes(self):
        return self._data.nbytes

    def get(self, coord=()):
        """Value at the given coordinate, as the exact numpy scalar type of
        the element type."""
        return self._data[linear_offset(self._shape, ensure_tuple(coord))]

    def get_linear(self, index):
        """Value at the given row-major element offset."""
        coordinate((self.size,), index)
        return self._data[index]

    def to_flat(self):
        """All values in row-major order, as a new one-dimensional array."""
        return self._data.copy()

    def to_numpy(self):
        return self._data.reshape(self._shape).copy()

    def __array__(self, dtype=None, copy=None):
        a = self.to_numpy()
        if dtype is not None:
            a = a.astype(dtype)
        return a

    def __getitem__(self, selection):
        out = self._data.reshape(self._shape)[selection]
        if isinstance(out, np.ndarray):
            return out.copy()
        return out

    def __len__(self):
        if not self._shape:
            raise TypeError('len() of unsized object')
        return self._shape[0]

    def __iter__(self):
        for i in range(len(self)):
            yield self[i]

    def __eq__(self, other):
        return (
            isinstance(other, TypedArray) and
            self._dtype == other._dtype and
            self._shape == other._shape and
            np.array_equal(self._data, other._data)
        )

    __hash__ = None

    def __repr__(self):
        t = type(self)
        return '<{}.{} {} {}>'.format(t.__module__, t.__name__, self._shape, self._dtype)
