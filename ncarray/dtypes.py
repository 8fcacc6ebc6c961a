"""Element types of array variables.

Each element type has a short name (as used in classic netCDF headers) and a
numpy dtype. Values are always held in native byte order once decoded; the
byte order of the stored representation is taken from
``config["byteorder"]``.
"""
import numpy as np

from ncarray.config import config, parse_byteorder


element_types = {
    'byte': np.dtype('i1'),
    'char': np.dtype('S1'),
    'short': np.dtype('i2'),
    'int': np.dtype('i4'),
    'float': np.dtype('f4'),
    'double': np.dtype('f8'),
    'ubyte': np.dtype('u1'),
    'ushort': np.dtype('u2'),
    'uint': np.dtype('u4'),
    'int64': np.dtype('i8'),
    'uint64': np.dtype('u8'),
}

_names_by_dtype = {v: k for k, v in element_types.items()}


def normalize_dtype(dtype) -> np.dtype:
    """Convenience function to normalize the `dtype` argument to a
    native-order numpy dtype."""

    if isinstance(dtype, str) and dtype in element_types:
        return element_types[dtype]

    try:
        dtype = np.dtype(dtype)
    except TypeError:
        raise ValueError('unknown element type: %r' % (dtype,))

    if dtype.names is None and dtype.kind not in 'iufSb':
        raise ValueError('unsupported element type: %r' % (dtype,))

    if dtype.names is None:
        dtype = dtype.newbyteorder('=')
    return dtype


def element_type_name(dtype) -> str:
    dtype = normalize_dtype(dtype)
    return _names_by_dtype.get(dtype, dtype.str)


def disk_dtype(dtype, byteorder=None) -> np.dtype:
    """The dtype of the stored representation of `dtype`."""
    if byteorder is None:
        byteorder = config.get('byteorder')
    byteorder = parse_byteorder(byteorder)
    dtype = normalize_dtype(dtype)
    if dtype.itemsize == 1 or dtype.kind == 'S':
        return dtype
    return dtype.newbyteorder(byteorder)
