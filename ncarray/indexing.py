import collections
import logging
import numbers


from ncarray.errors import (BoundsCheckError, RangeError, SectionSyntaxError,
                            err_boundscheck, err_negative_step, err_too_many_indices)
from ncarray.util import normalize_shape, product


logger = logging.getLogger(__name__)


def is_integer(x):
    return isinstance(x, numbers.Integral) and not isinstance(x, bool)


def ensure_tuple(v):
    if not isinstance(v, tuple):
        v = (v,)
    return v


def ceildiv(a, b):
    return -(-a // b)


def c_strides(shape):
    """Element strides of a row-major array with the given shape."""
    strides = []
    stride = 1
    for dim_len in reversed(shape):
        strides.append(stride)
        stride *= dim_len
    return tuple(reversed(strides))


def linear_offset(shape, coordinate):
    """Map a coordinate to its row-major element offset within `shape`.

    Parameters
    ----------
    shape : tuple of int
        Array shape.
    coordinate : tuple of int
        One index per dimension of `shape`.

    Returns
    -------
    offset : int

    Examples
    --------
    >>> linear_offset((2, 3, 4), (1, 2, 3))
    23

    """
    coordinate = ensure_tuple(coordinate)
    if len(coordinate) != len(shape):
        raise RangeError('coordinate {!r} does not match rank of shape {!r}'
                         .format(coordinate, tuple(shape)))
    offset = 0
    for dim_ix, dim_len in zip(coordinate, shape):
        if not is_integer(dim_ix):
            raise TypeError('coordinate components must be integers, got {!r}'
                            .format(type(dim_ix)))
        if dim_ix < 0 or dim_ix >= dim_len:
            err_boundscheck(dim_ix, dim_len)
        offset = offset * dim_len + int(dim_ix)
    return offset


def coordinate(shape, offset):
    """Inverse of :func:`linear_offset`.

    Examples
    --------
    >>> coordinate((2, 3, 4), 23)
    (1, 2, 3)

    """
    size = product(shape)
    if not is_integer(offset):
        raise TypeError('offset must be an integer, got {!r}'.format(type(offset)))
    if offset < 0 or offset >= size:
        raise BoundsCheckError(offset, size)
    offset = int(offset)
    coords = []
    for dim_len in reversed(shape):
        offset, dim_ix = divmod(offset, dim_len)
        coords.append(dim_ix)
    return tuple(reversed(coords))


class Range(collections.namedtuple('Range', ('start', 'stop', 'stride'))):
    """Selection over a single dimension. `stop` is inclusive."""

    __slots__ = ()

    @classmethod
    def full(cls, dim_len):
        """Select every element of a dimension; empty for a zero-length one."""
        return cls(0, dim_len - 1, 1)

    @property
    def count(self):
        if self.stop < self.start:
            return 0
        return (self.stop - self.start) // self.stride + 1

    def check(self, dim_len):
        if self.stride < 1:
            raise RangeError('stride must be >= 1, got {}'.format(self.stride))
        if self.start < 0:
            raise RangeError('range start must be >= 0, got {}'.format(self.start))
        if self.start > self.stop:
            raise RangeError('range start {} is greater than stop {}'
                             .format(self.start, self.stop))
        if self.stop >= dim_len:
            raise RangeError('range stop {} out of bounds for dimension with length {}'
                             .format(self.stop, dim_len))
        return self

    def indices(self):
        return range(self.start, self.stop + 1, self.stride)

    def __str__(self):
        if self.stride == 1:
            return '{}:{}'.format(self.start, self.stop)
        return '{}:{}:{}'.format(self.start, self.stop, self.stride)


class Section(object):
    """A per-dimension selection over an array of shape `source_shape`.

    Parameters
    ----------
    ranges : sequence of Range
        One range per dimension of `source_shape`.
    source_shape : tuple of int
        Shape of the array being selected from.

    Raises
    ------
    RangeError
        If a non-empty range does not fit within its dimension.

    """

    def __init__(self, ranges, source_shape):
        source_shape = normalize_shape(source_shape)
        ranges = tuple(Range(*r) for r in ranges)
        if len(ranges) != len(source_shape):
            raise SectionSyntaxError(
                ','.join(str(r) for r in ranges),
                'expected {} ranges, got {}'.format(len(source_shape), len(ranges))
            )
        for r, dim_len in zip(ranges, source_shape):
            if r.stop >= r.start:
                r.check(dim_len)
        self.ranges = ranges
        self.source_shape = source_shape

    @property
    def shape(self):
        return tuple(r.count for r in self.ranges)

    @property
    def rank(self):
        return len(self.ranges)

    @property
    def size(self):
        return product(self.shape)

    def materialize(self):
        """Iterate over the linear offsets into `source_shape` of every selected
        element, in row-major order. Each call returns an independent
        iterator."""
        return _odometer(self.ranges, c_strides(self.source_shape))

    def __iter__(self):
        return self.materialize()

    def __eq__(self, other):
        return (
            isinstance(other, Section) and
            self.ranges == other.ranges and
            self.source_shape == other.source_shape
        )

    def __hash__(self):
        return hash((self.ranges, self.source_shape))

    def __str__(self):
        return ','.join(str(r) for r in self.ranges)

    def __repr__(self):
        return '<Section {!r} of {!r}>'.format(str(self), self.source_shape)


def _odometer(ranges, strides):
    if any(r.count == 0 for r in ranges):
        return

    offset = sum(r.start * s for r, s in zip(ranges, strides))
    counters = [0] * len(ranges)
    while True:
        yield offset

        # advance the innermost counter, carrying into outer dimensions
        dim = len(ranges) - 1
        while dim >= 0:
            r = ranges[dim]
            counters[dim] += 1
            if counters[dim] < r.count:
                offset += r.stride * strides[dim]
                break
            offset -= (r.count - 1) * r.stride * strides[dim]
            counters[dim] = 0
            dim -= 1
        else:
            return


def _parse_range(text, component, dim_len):
    token = component.strip()

    # full dimension
    if token in ('', ':'):
        return Range.full(dim_len)

    parts = token.split(':')
    if len(parts) > 3:
        raise SectionSyntaxError(text, 'too many ":" in {!r}'.format(component))
    try:
        values = [int(p) for p in parts]
    except ValueError:
        raise SectionSyntaxError(text, 'expected integers in {!r}'.format(component))

    if len(values) == 1:
        r = Range(values[0], values[0], 1)
    elif len(values) == 2:
        r = Range(values[0], values[1], 1)
    else:
        r = Range(*values)
    return r.check(dim_len)


def parse_section(text, shape):
    """Parse section text such as ``"1:1:1,0:2:1,0:3"`` against an array of the
    given shape.

    Each comma-separated component is ``start:stop:stride``, ``start:stop``,
    a single index, or empty (or ``:``) for the whole dimension. Stops are
    inclusive. There must be exactly one component per dimension.

    Examples
    --------
    >>> parse_section("1:1:1,0:2:1,0:3:1", (2, 3, 4)).shape
    (1, 3, 4)

    """
    shape = normalize_shape(shape)
    if not isinstance(text, str):
        raise SectionSyntaxError(text, 'expected a string')

    if not shape:
        if text.strip():
            raise SectionSyntaxError(text, 'expected an empty section for a scalar')
        return Section((), shape)

    components = text.split(',')
    if len(components) != len(shape):
        raise SectionSyntaxError(
            text, 'expected {} components, got {}'.format(len(shape), len(components))
        )

    ranges = [_parse_range(text, c, dim_len) for c, dim_len in zip(components, shape)]
    section = Section(ranges, shape)
    logger.debug("parsed section %r against shape %r", text, shape)
    return section


def origin_section(origin, shape, source_shape):
    """Section selecting the block of the given `shape` whose first element is
    at `origin`."""
    source_shape = normalize_shape(source_shape)
    origin = tuple(int(o) for o in ensure_tuple(origin))
    shape = tuple(int(s) for s in ensure_tuple(shape))
    if len(origin) != len(source_shape) or len(shape) != len(source_shape):
        raise RangeError('origin {!r} and shape {!r} must both have rank {}'
                         .format(origin, shape, len(source_shape)))
    ranges = []
    for start, nitems, dim_len in zip(origin, shape, source_shape):
        r = Range(start, start + nitems - 1, 1)
        if nitems == 0:
            if start > dim_len:
                err_boundscheck(start, dim_len)
        else:
            r.check(dim_len)
        ranges.append(r)
    return Section(ranges, source_shape)


def normalize_integer_selection(dim_sel, dim_len):

    # normalize type to int
    dim_sel = int(dim_sel)

    # handle wraparound
    if dim_sel < 0:
        dim_sel = dim_len + dim_sel

    # handle out of bounds
    if dim_sel >= dim_len or dim_sel < 0:
        err_boundscheck(dim_sel, dim_len)

    return dim_sel


def check_selection_length(selection, shape):
    if len(selection) > len(shape):
        err_too_many_indices(selection, shape)


def replace_ellipsis(selection, shape):

    selection = ensure_tuple(selection)

    # count number of ellipsis present
    n_ellipsis = sum(1 for i in selection if i is Ellipsis)

    if n_ellipsis > 1:
        # more than 1 is an error
        raise IndexError("an index can only have a single ellipsis ('...')")

    elif n_ellipsis == 1:
        # locate the ellipsis, count how many items to left and right
        n_items_l = selection.index(Ellipsis)  # items to left of ellipsis
        n_items_r = len(selection) - (n_items_l + 1)  # items to right of ellipsis
        n_items = len(selection) - 1  # all non-ellipsis items

        if n_items >= len(shape):
            # ellipsis does nothing, just remove it
            selection = tuple(i for i in selection if i is not Ellipsis)

        else:
            # replace ellipsis with as many slices are needed for number of dims
            new_item = selection[:n_items_l] + ((slice(None),) * (len(shape) - n_items))
            if n_items_r:
                new_item += selection[-n_items_r:]
            selection = new_item

    # fill out selection if not completely specified
    if len(selection) < len(shape):
        selection += (slice(None),) * (len(shape) - len(selection))

    # check selection not too long
    check_selection_length(selection, shape)

    return selection


def selection_to_section(selection, shape):
    """Convert a basic selection (integers and slices with positive step) into
    a :class:`Section`.

    Returns
    -------
    section : Section
    drop_axes : tuple of int
        Axes selected with an integer, which are removed from the result.

    """
    shape = normalize_shape(shape)
    selection = replace_ellipsis(selection, shape)

    ranges = []
    drop_axes = []
    for axis, (dim_sel, dim_len) in enumerate(zip(selection, shape)):

        if is_integer(dim_sel):
            dim_sel = normalize_integer_selection(dim_sel, dim_len)
            ranges.append(Range(dim_sel, dim_sel, 1))
            drop_axes.append(axis)

        elif isinstance(dim_sel, slice):
            start, stop, step = dim_sel.indices(dim_len)
            if step < 1:
                err_negative_step()
            nitems = max(0, ceildiv(stop - start, step))
            ranges.append(Range(start, start + (nitems - 1) * step, step))

        else:
            raise IndexError('unsupported selection item for basic indexing; '
                             'expected integer or slice, got {!r}'
                             .format(type(dim_sel)))

    return Section(ranges, shape), tuple(drop_axes)
