import collections

from ncarray.dtypes import normalize_dtype
from ncarray.errors import UnknownFieldError
from ncarray.util import product


__all__ = ["Dimension", "Variable", "VariableKind"]


class Dimension(collections.namedtuple('Dimension', ('name', 'length', 'unlimited'))):
    """A named dimension. The length of an unlimited dimension is the number of
    records when it was declared; readers ask the byte source for the current
    value instead."""

    __slots__ = ()

    def __new__(cls, name, length=0, unlimited=False):
        return super().__new__(cls, name, int(length), bool(unlimited))


class VariableKind:
    PLAIN = 'plain'
    STRUCTURE = 'structure'


class Variable(object):
    """Layout of a variable within its byte source.

    Parameters
    ----------
    name : str
        Variable name.
    dtype : str or dtype
        Element type. Ignored for structures, which take their layout from
        `template`.
    dimensions : sequence of Dimension
        Only the first dimension may be unlimited.
    begin : int, optional
        Byte offset of the variable's data (of its first record, for record
        variables). ``None`` when the surrounding format does not declare one;
        data is then read from offset 0, or from its place in the record once
        the variable belongs to a :class:`ncarray.dataset.Dataset`.
    record_stride : int, optional
        Bytes between the starts of consecutive records. Defaults to the size
        of one record's worth of this variable's data.
    template : RecordTemplate, optional
        Makes this a structure variable with one element per record.

    """

    def __init__(self, name, dtype=None, dimensions=(), begin=None, record_stride=None,
                 template=None):
        dimensions = tuple(d if isinstance(d, Dimension) else Dimension(*d)
                           for d in dimensions)
        if any(d.unlimited for d in dimensions[1:]):
            raise ValueError('only the first dimension of {!r} may be unlimited'
                             .format(name))

        if template is not None:
            if len(dimensions) != 1:
                raise ValueError('structure {!r} must have exactly one dimension'
                                 .format(name))
            kind = VariableKind.STRUCTURE
            dtype = template.to_numpy_dtype()
            record_stride = template.record_size
        else:
            kind = VariableKind.PLAIN
            dtype = normalize_dtype(dtype)

        self.name = name
        self.dimensions = dimensions
        self.kind = kind
        self.template = template
        self._dtype = dtype
        self._begin = begin
        self.declares_begin = begin is not None
        self._reader = None

        self.declares_record_stride = record_stride is not None
        if record_stride is None:
            record_stride = product(self.inner_shape) * dtype.itemsize
        self.record_stride = int(record_stride)

    def _resolve_layout(self, begin, record_stride):
        # fill in what the caller left undeclared; declared values are kept
        if not self.declares_begin:
            self._begin = int(begin)
        if not self.declares_record_stride:
            self.record_stride = int(record_stride)

    @property
    def dtype(self):
        return self._dtype

    @property
    def begin(self):
        return self._begin or 0

    @property
    def rank(self):
        return len(self.dimensions)

    @property
    def ndim(self):
        return self.rank

    @property
    def is_record(self):
        return bool(self.dimensions) and self.dimensions[0].unlimited

    @property
    def itemsize(self):
        return self._dtype.itemsize

    @property
    def inner_shape(self):
        """Shape of the data held in one record."""
        return tuple(d.length for d in self.dimensions[1:])

    def resolve_shape(self, numrecs=None):
        """Shape given the current number of records along the unlimited
        dimension."""
        if self.is_record:
            if numrecs is None:
                numrecs = self.dimensions[0].length
            return (int(numrecs),) + self.inner_shape
        return tuple(d.length for d in self.dimensions)

    @property
    def shape(self):
        if self.is_record and self._reader is not None:
            return self.resolve_shape(self._reader.source.current_unlimited_length())
        return self.resolve_shape()

    def _require_reader(self):
        if self._reader is None:
            raise RuntimeError('variable {!r} is not attached to a dataset'.format(self.name))
        return self._reader

    def read(self, section=None):
        """Read the whole variable, or the given section of it."""
        reader = self._require_reader()
        if section is None:
            return reader.read_all(self)
        return reader.read_section(self, section)

    def read_origin(self, origin, shape):
        return self._require_reader().read_origin(self, origin, shape)

    def read_member(self, name, section=None):
        """Read one field of a structure variable across the selected records,
        as an array with the record axis first."""
        if self.kind != VariableKind.STRUCTURE:
            raise TypeError('{!r} is not a structure variable'.format(self.name))
        if name not in self.template:
            raise UnknownFieldError(name)
        return self.read(section).get_member(name)

    def __getitem__(self, selection):
        return self._require_reader().read(self, selection)

    def __repr__(self):
        t = type(self)
        r = '<{}.{} {!r}'.format(t.__module__, t.__name__, self.name)
        r += ' ({})'.format(', '.join(d.name for d in self.dimensions))
        if self.kind == VariableKind.STRUCTURE:
            r += ' structure'
        else:
            r += ' {}'.format(self._dtype)
        r += '>'
        return r
