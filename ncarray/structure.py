import collections
import logging
from collections.abc import Sequence

import numpy as np
from numcodecs.compat import ensure_bytes

from ncarray.array import TypedArray
from ncarray.dtypes import disk_dtype, normalize_dtype
from ncarray.errors import (NotScalarError, RangeError, StructureConflictError,
                            UnknownFieldError)
from ncarray.util import normalize_shape, product


logger = logging.getLogger(__name__)


class Field(collections.namedtuple('Field', ('name', 'offset', 'dtype', 'shape'))):
    """Layout of one named member within a record.

    Parameters
    ----------
    name : str
        Field name, unique within its template.
    offset : int
        Byte offset of the field from the start of the record.
    dtype : str or dtype
        Element type.
    shape : tuple of int
        Field shape; ``()`` for a scalar field.

    """

    __slots__ = ()

    def __new__(cls, name, offset, dtype, shape=()):
        offset = int(offset)
        if offset < 0:
            raise StructureConflictError('field {!r} has negative offset {}'
                                         .format(name, offset))
        return super().__new__(cls, str(name), offset, normalize_dtype(dtype),
                               normalize_shape(shape))

    @property
    def size(self):
        return product(self.shape)

    @property
    def nbytes(self):
        return self.size * self.dtype.itemsize

    @property
    def end(self):
        return self.offset + self.nbytes


class RecordTemplate(object):
    """Ordered byte layout shared by every record of a structure.

    Parameters
    ----------
    fields : iterable of Field
        Fields in declaration order.
    record_size : int, optional
        Size of one record in bytes. Defaults to the end of the last byte
        used by any field. May be larger than that to account for padding.

    Examples
    --------
    >>> template = RecordTemplate([Field('time', 0, 'int'),
    ...                            Field('rh', 4, 'int', (3, 4))])
    >>> template.record_size
    52
    >>> template['rh'].offset
    4

    """

    def __init__(self, fields, record_size=None):
        fields = tuple(f if isinstance(f, Field) else Field(*f) for f in fields)

        by_name = collections.OrderedDict()
        for f in fields:
            if f.name in by_name:
                raise StructureConflictError('duplicate field name {!r}'.format(f.name))
            by_name[f.name] = f

        # no two fields may share a byte
        spans = sorted((f for f in fields if f.nbytes), key=lambda f: f.offset)
        for prev, cur in zip(spans, spans[1:]):
            if cur.offset < prev.end:
                raise StructureConflictError(
                    'field {!r} at bytes [{}, {}) overlaps field {!r} at bytes [{}, {})'
                    .format(cur.name, cur.offset, cur.end, prev.name, prev.offset, prev.end)
                )

        extent = max((f.end for f in fields), default=0)
        if record_size is None:
            record_size = extent
        elif record_size < extent:
            raise StructureConflictError('record size {} is smaller than the {} bytes '
                                         'spanned by its fields'.format(record_size, extent))

        self._fields = by_name
        self._record_size = int(record_size)

    @property
    def record_size(self):
        return self._record_size

    @property
    def names(self):
        return tuple(self._fields)

    def field(self, name):
        try:
            return self._fields[name]
        except KeyError:
            raise UnknownFieldError(name)

    __getitem__ = field

    def __contains__(self, name):
        return name in self._fields

    def __iter__(self):
        return iter(self._fields.values())

    def __len__(self):
        return len(self._fields)

    def __eq__(self, other):
        return (
            isinstance(other, RecordTemplate) and
            tuple(self) == tuple(other) and
            self._record_size == other._record_size
        )

    __hash__ = None

    def to_numpy_dtype(self, byteorder=None):
        """Structured numpy dtype describing one stored record."""
        return np.dtype({
            'names': list(self.names),
            'formats': [(disk_dtype(f.dtype, byteorder), f.shape) if f.shape
                        else disk_dtype(f.dtype, byteorder) for f in self],
            'offsets': [f.offset for f in self],
            'itemsize': self._record_size,
        })

    def __repr__(self):
        return '<RecordTemplate [{}] {} bytes>'.format(', '.join(self.names),
                                                       self._record_size)


class StructureData(object):
    """The decoded view of a single record.

    Parameters
    ----------
    template : RecordTemplate
        Layout of the record.
    buf : bytes-like
        Exactly ``template.record_size`` bytes.

    """

    def __init__(self, template, buf):
        buf = ensure_bytes(buf)
        if len(buf) != template.record_size:
            raise RangeError('expected a record of {} bytes, got {}'
                             .format(template.record_size, len(buf)))
        self._template = template
        self._buf = buf

    @property
    def template(self):
        return self._template

    @property
    def names(self):
        return self._template.names

    def get_field(self, name):
        """Decode the named field into a new :class:`TypedArray`."""
        f = self._template.field(name)
        return TypedArray.from_bytes(f.dtype, f.shape, self._buf[f.offset:f.end])

    get_array = get_field

    def get_scalar(self, name, dtype=None):
        """Value of a single-element field, optionally coerced to `dtype`."""
        f = self._template.field(name)
        if f.size != 1:
            raise NotScalarError(name, f.shape)
        value = self.get_field(name).get_linear(0)
        if dtype is not None:
            value = np.dtype(dtype).type(value)
        return value

    def __getitem__(self, name):
        return self.get_field(name)

    def __contains__(self, name):
        return name in self._template

    def as_dict(self):
        return collections.OrderedDict((name, self.get_field(name)) for name in self.names)

    def __eq__(self, other):
        return (
            isinstance(other, StructureData) and
            self._template == other._template and
            self._buf == other._buf
        )

    __hash__ = None

    def __repr__(self):
        return '<StructureData [{}]>'.format(', '.join(self.names))


class ArrayStructure(Sequence):
    """Immutable one-dimensional sequence of :class:`StructureData` rows sharing
    one template."""

    def __init__(self, template, rows):
        self._template = template
        self._rows = tuple(rows)

    @property
    def template(self):
        return self._template

    @property
    def shape(self):
        return (len(self._rows),)

    @property
    def ndim(self):
        return 1

    def __getitem__(self, index):
        if isinstance(index, slice):
            return ArrayStructure(self._template, self._rows[index])
        return self._rows[index]

    def __len__(self):
        return len(self._rows)

    def get_member(self, name):
        """Values of the named field across all rows, as a new
        :class:`TypedArray` of shape ``(len(self),) + field.shape``."""
        f = self._template.field(name)
        raw = b''.join(row._buf[f.offset:f.end] for row in self._rows)
        return TypedArray.from_bytes(f.dtype, (len(self._rows),) + f.shape, raw)

    def to_numpy(self):
        """Rows as a structured numpy array, one element per record."""
        dtype = self._template.to_numpy_dtype()
        raw = b''.join(row._buf for row in self._rows)
        return np.frombuffer(raw, dtype=dtype, count=len(self._rows)).copy()

    def __repr__(self):
        return '<ArrayStructure ({},) [{}]>'.format(len(self._rows),
                                                   ', '.join(self._template.names))


class StructureDecoder(object):
    """Overlays a :class:`RecordTemplate` on records supplied by a byte
    source."""

    @staticmethod
    def decode_range(template, source, first, count, stride=1, base_offset=0,
                     numrecs=None):
        """Decode `count` records starting at record `first`, every `stride`-th.

        Parameters
        ----------
        template : RecordTemplate
        source : ByteSource
        first : int
            Index of the first record.
        count : int
            Number of records to decode.
        stride : int
            Step between consecutive decoded records.
        base_offset : int
            Byte offset of record 0 in `source`.
        numrecs : int, optional
            Number of records available; queried from `source` if not given.

        Returns
        -------
        rows : ArrayStructure

        """
        if numrecs is None:
            numrecs = source.current_unlimited_length()
        if stride < 1:
            raise RangeError('stride must be >= 1, got {}'.format(stride))
        if first < 0 or count < 0:
            raise RangeError('invalid record range: first={}, count={}'.format(first, count))
        if count and first + (count - 1) * stride >= numrecs:
            raise RangeError('record {} out of bounds for {} record(s)'
                             .format(first + (count - 1) * stride, numrecs))

        size = template.record_size
        rows = []
        for i in range(count):
            record_start = base_offset + (first + i * stride) * size
            rows.append(StructureData(template, source.read_bytes(record_start, size)))

        logger.debug("decoded %d record(s) from record %d with stride %d",
                     count, first, stride)
        return ArrayStructure(template, rows)


decode_range = StructureDecoder.decode_range
