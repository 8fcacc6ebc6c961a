import collections

import numpy as np

from ncarray.storage import BufferSource, ByteSource
from ncarray.variable import Dimension, Variable


class CountingSource(ByteSource):

    def __init__(self, source):
        self.wrapped = source
        self.counter = collections.Counter()

    def read_bytes(self, offset, length):
        self.counter['read_bytes'] += 1
        self.counter['read_bytes', offset, length] += 1
        return self.wrapped.read_bytes(offset, length)

    def current_unlimited_length(self):
        self.counter['current_unlimited_length'] += 1
        return self.wrapped.current_unlimited_length()


# layout of the record file used throughout the tests: a 64 byte header,
# then the fixed variables lat and lon, then records of time, rh and T
HEADER_SIZE = 64
LAT_BEGIN = 64
LON_BEGIN = 76
RECORDS_BEGIN = 92
RECORD_SIZE = 4 + 3 * 4 * 4 + 3 * 4 * 8

lat_values = np.array([41, 40, 39], dtype='f4')
lon_values = np.array([-109, -107, -105, -103], dtype='f4')


def time_values(nrecs=2):
    return np.array([6, 18, 30, 42][:nrecs], dtype='i4')


def rh_values(nrecs=2):
    i, j, k = np.indices((nrecs, 3, 4))
    return (20 * i + 4 * j + k + 1).astype('i4')


def t_values(nrecs=2):
    i, j, k = np.indices((nrecs, 3, 4))
    return (4 * i + 4 * j + k + 1).astype('f8')


def record_bytes(index):
    return (
        time_values(index + 1)[index:].astype('>i4').tobytes() +
        rh_values(index + 1)[index].astype('>i4').tobytes() +
        t_values(index + 1)[index].astype('>f8').tobytes()
    )


def make_record_source(nrecs=2):
    buf = (
        bytes(HEADER_SIZE) +
        lat_values.astype('>f4').tobytes() +
        lon_values.astype('>f4').tobytes()
    )
    buf += b''.join(record_bytes(i) for i in range(nrecs))
    return BufferSource(buf, numrecs=nrecs)


def make_record_layout(nrecs=2):
    """Dimensions and variables of the record file."""
    time = Dimension('time', nrecs, unlimited=True)
    lat = Dimension('lat', 3)
    lon = Dimension('lon', 4)
    variables = [
        Variable('lat', 'float', [lat], begin=LAT_BEGIN),
        Variable('lon', 'float', [lon], begin=LON_BEGIN),
        Variable('time', 'int', [time], begin=RECORDS_BEGIN, record_stride=RECORD_SIZE),
        Variable('rh', 'int', [time, lat, lon], begin=RECORDS_BEGIN + 4,
                 record_stride=RECORD_SIZE),
        Variable('T', 'double', [time, lat, lon], begin=RECORDS_BEGIN + 52,
                 record_stride=RECORD_SIZE),
    ]
    return [time, lat, lon], variables
