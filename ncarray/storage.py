"""Byte sources supply the raw bytes behind a dataset's variables.

A byte source is any object providing

``read_bytes(offset, length)``
    Return exactly `length` bytes starting at byte `offset`.

``current_unlimited_length()``
    Return the current number of records along the unlimited dimension.

Readers never cache the unlimited length: it is queried once per read call.
"""
import inspect
import logging
import sys
import time
from collections import defaultdict
from contextlib import contextmanager

from numcodecs.compat import ensure_bytes

from ncarray.errors import RangeError


logger = logging.getLogger(__name__)


class ByteSource(object):
    """Abstract base class for byte sources."""

    def read_bytes(self, offset, length):  # pragma: no cover
        raise NotImplementedError

    def current_unlimited_length(self):  # pragma: no cover
        raise NotImplementedError

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()


class BufferSource(ByteSource):
    """Byte source over an in-memory buffer.

    Parameters
    ----------
    buffer : bytes-like, optional
        Initial contents.
    numrecs : int, optional
        Number of records currently present along the unlimited dimension.

    Examples
    --------
    >>> import numpy as np
    >>> source = BufferSource(np.arange(4, dtype='>i4').tobytes())
    >>> bytes(source.read_bytes(4, 4))
    b'\\x00\\x00\\x00\\x01'

    """

    def __init__(self, buffer=b'', numrecs=0):
        self._buffer = bytearray(ensure_bytes(buffer))
        self.numrecs = int(numrecs)

    def __len__(self):
        return len(self._buffer)

    def read_bytes(self, offset, length):
        if offset < 0 or length < 0 or offset + length > len(self._buffer):
            raise RangeError('byte range [{}, {}) out of bounds for buffer of {} bytes'
                             .format(offset, offset + length, len(self._buffer)))
        return bytes(self._buffer[offset:offset + length])

    def current_unlimited_length(self):
        return self.numrecs

    def append(self, data, nrecs=1):
        """Append the bytes of `nrecs` more records."""
        self._buffer += ensure_bytes(data)
        self.numrecs += nrecs
        logger.debug("appended %d record(s), now %d", nrecs, self.numrecs)

    def __repr__(self):
        return '<{} {} bytes, {} records>'.format(type(self).__name__,
                                                    len(self._buffer), self.numrecs)


class LoggingSource(ByteSource):
    """
    Byte source wrapper that logs all calls to the wrapped source.

    Parameters
    ----------
    source : ByteSource
        Source to wrap
    log_level : str
        Log level
    log_handler : logging.Handler
        Log handler

    Attributes
    ----------
    counter : dict
        Counter of number of times each method has been called
    """

    def __init__(self, source, log_level="DEBUG", log_handler=None):
        self._source = source
        self.counter = defaultdict(int)
        self.log_level = log_level
        self.log_handler = log_handler
        self._configure_logger(log_level, log_handler)

    def _configure_logger(self, log_level="DEBUG", log_handler=None):
        self.log_level = log_level
        self.logger = logging.getLogger("LoggingSource({!r})".format(self._source))
        self.logger.setLevel(log_level)

        if not self.logger.hasHandlers():
            if not log_handler:
                log_handler = self._default_handler()
            # Add handler to logger
            self.logger.addHandler(log_handler)

    def _default_handler(self):
        """Define a default log handler"""
        handler = logging.StreamHandler(stream=sys.stdout)
        handler.setLevel(self.log_level)
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        return handler

    @contextmanager
    def log(self, hint=""):
        """Context manager to log method calls

        Each call to the wrapped source is logged to the configured logger and
        added to the counter dict.
        """
        method = inspect.stack()[2].function
        op = "{}.{}".format(type(self._source).__name__, method)
        if hint:
            op = "{}({})".format(op, hint)
        self.logger.info(" Calling %s", op)
        start_time = time.time()
        try:
            self.counter[method] += 1
            yield
        finally:
            end_time = time.time()
            self.logger.info("Finished %s [%.2f s]", op, end_time - start_time)

    def read_bytes(self, offset, length):
        with self.log("{}, {}".format(offset, length)):
            return self._source.read_bytes(offset, length)

    def current_unlimited_length(self):
        with self.log():
            return self._source.current_unlimited_length()

    def close(self):
        with self.log():
            return self._source.close()

    def __repr__(self):
        return "LoggingSource({!r})".format(self._source)
