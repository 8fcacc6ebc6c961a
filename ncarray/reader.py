import logging

from numcodecs.compat import ensure_bytes

from ncarray.array import TypedArray
from ncarray.config import config
from ncarray.dtypes import disk_dtype
from ncarray.errors import RangeError, UnsupportedSectionError
from ncarray.indexing import (Range, Section, ensure_tuple, origin_section, parse_section,
                              selection_to_section)
from ncarray.structure import StructureDecoder
from ncarray.util import product
from ncarray.variable import VariableKind


logger = logging.getLogger(__name__)


__all__ = ["VariableReader"]


class VariableReader(object):
    """Reads variables, or sections of them, from a byte source.

    Parameters
    ----------
    source : ByteSource
        Supplies the bytes of every variable and the current number of
        records along the unlimited dimension.

    Notes
    -----
    Nothing is cached between calls. The number of records is queried from
    `source` once at the start of each read and that single value is used both
    to validate the request and to locate its bytes.

    Plain variables are returned as :class:`ncarray.array.TypedArray`,
    structure variables as :class:`ncarray.structure.ArrayStructure`.

    """

    def __init__(self, source):
        self.source = source

    def _current_shape(self, variable):
        if variable.is_record:
            numrecs = self.source.current_unlimited_length()
            logger.debug("%s: %d record(s)", variable.name, numrecs)
        else:
            numrecs = None
        return variable.resolve_shape(numrecs)

    def read_all(self, variable):
        """Read the full current extent of `variable`."""
        shape = self._current_shape(variable)
        section = Section([Range.full(n) for n in shape], shape)
        return self._read(variable, section)

    def read_origin(self, variable, origin, shape):
        """Read the block of the given `shape` starting at `origin`.

        Examples
        --------
        Read the first two elements along each of three dimensions::

            >>> reader.read_origin(t, (0, 0, 0), (2, 2, 2))  # doctest: +SKIP

        """
        self._check_structure_rank(variable, ensure_tuple(origin))
        var_shape = self._current_shape(variable)
        section = origin_section(origin, shape, var_shape)
        return self._read(variable, section)

    def read_section(self, variable, section):
        """Read a section of `variable`.

        Parameters
        ----------
        variable : Variable
        section : str or Section
            Either section text such as ``"1:1:2"`` (see
            :func:`ncarray.indexing.parse_section`) or a previously built
            :class:`ncarray.indexing.Section`, which is checked again against
            the current shape.

        """
        if isinstance(section, str):
            self._check_structure_rank(variable, section.split(','))
            shape = self._current_shape(variable)
            section = parse_section(section, shape)
        else:
            self._check_structure_rank(variable, section.ranges)
            shape = self._current_shape(variable)
            section = self._recheck(section, shape)
        return self._read(variable, section)

    def read(self, variable, selection=Ellipsis):
        """Read a basic selection (integers and slices) of `variable`. Axes
        selected with an integer are dropped from the result."""
        shape = self._current_shape(variable)
        section, drop_axes = selection_to_section(selection, shape)
        out_shape = tuple(n for i, n in enumerate(section.shape) if i not in drop_axes)
        result = self._read(variable, section, out_shape)
        if variable.kind == VariableKind.STRUCTURE and drop_axes:
            return result[0]
        return result

    @staticmethod
    def _check_structure_rank(variable, components):
        if variable.kind == VariableKind.STRUCTURE and len(components) > variable.rank:
            raise UnsupportedSectionError(variable.name, variable.rank, len(components))

    @staticmethod
    def _recheck(section, shape):
        if len(section.ranges) != len(shape):
            raise RangeError('section {!r} does not match rank of shape {!r}'
                             .format(str(section), shape))
        return Section(section.ranges, shape)

    def _read(self, variable, section, out_shape=None):
        if variable.kind == VariableKind.STRUCTURE:
            return self._read_structure(variable, section)
        return self._read_plain(variable, section, out_shape)

    def _read_structure(self, variable, section):
        r = section.ranges[0]
        return StructureDecoder.decode_range(
            variable.template, self.source,
            first=r.start if r.count else 0,
            count=r.count,
            stride=r.stride,
            base_offset=variable.begin,
            numrecs=section.source_shape[0],
        )

    def _read_plain(self, variable, section, out_shape=None):
        if out_shape is None:
            out_shape = section.shape
        itemsize = disk_dtype(variable.dtype).itemsize
        offsets = self._byte_offsets(variable, section, itemsize)
        buf = self._gather(offsets, itemsize)
        logger.debug("%s: read section %s, %d bytes", variable.name, section, len(buf))
        return TypedArray.from_bytes(variable.dtype, out_shape, buf)

    @staticmethod
    def _byte_offsets(variable, section, itemsize):
        begin = variable.begin
        if not variable.is_record:
            for offset in section.materialize():
                yield begin + offset * itemsize
            return

        # record variables interleave one slab per record
        record_stride = variable.record_stride
        nitems = product(section.source_shape[1:])
        for offset in section.materialize():
            record, item = divmod(offset, nitems)
            yield begin + record * record_stride + item * itemsize

    def _gather(self, offsets, itemsize):
        coalesce = config.get('read.coalesce')
        chunks = []
        run_start = None
        run_len = 0
        for offset in offsets:
            if coalesce and run_start is not None and offset == run_start + run_len:
                run_len += itemsize
                continue
            if run_start is not None:
                chunks.append(self._read_run(run_start, run_len))
            run_start = offset
            run_len = itemsize
        if run_start is not None:
            chunks.append(self._read_run(run_start, run_len))
        return b''.join(chunks)

    def _read_run(self, offset, length):
        data = ensure_bytes(self.source.read_bytes(offset, length))
        if len(data) != length:
            raise RangeError('short read at byte {}: expected {} bytes, got {}'
                             .format(offset, length, len(data)))
        return data
