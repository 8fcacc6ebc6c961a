import logging

import numpy as np
import pytest

from ncarray.errors import RangeError
from ncarray.storage import BufferSource, LoggingSource


def test_buffer_source():
    source = BufferSource(np.arange(4, dtype='>i4').tobytes(), numrecs=1)
    assert 16 == len(source)
    assert b'\x00\x00\x00\x01' == source.read_bytes(4, 4)
    assert b'' == source.read_bytes(16, 0)
    assert 1 == source.current_unlimited_length()

    with pytest.raises(RangeError):
        source.read_bytes(12, 8)
    with pytest.raises(RangeError):
        source.read_bytes(-1, 4)

    source.append(np.arange(2, dtype='>i4').tobytes(), nrecs=2)
    assert 24 == len(source)
    assert 3 == source.current_unlimited_length()
    assert b'\x00\x00\x00\x01' == source.read_bytes(20, 4)

    # bytes handed out are independent of later growth
    data = source.read_bytes(0, 4)
    source.append(b'\xff' * 4)
    assert b'\x00\x00\x00\x00' == data

    assert '<BufferSource 28 bytes, 4 records>' == repr(source)


def test_buffer_source_context_manager():
    with BufferSource(b'abcd') as source:
        assert b'bc' == source.read_bytes(1, 2)


def test_logging_source(caplog):
    source = LoggingSource(BufferSource(b'abcdefgh', numrecs=2), log_level='INFO')
    with caplog.at_level(logging.INFO):
        assert b'cd' == source.read_bytes(2, 2)
        assert 2 == source.current_unlimited_length()

    assert 1 == source.counter['read_bytes']
    assert 1 == source.counter['current_unlimited_length']
    assert 'Calling BufferSource.read_bytes(2, 2)' in caplog.text
    assert 'Finished BufferSource.current_unlimited_length' in caplog.text
    assert 'LoggingSource(<BufferSource 8 bytes, 2 records>)' == repr(source)


def test_logging_source_default_handler(capsys):
    # Store and then remove existing handlers to enter default handler code path
    handlers = logging.getLogger().handlers[:]
    for h in handlers:
        logging.getLogger().removeHandler(h)
    try:
        source = LoggingSource(BufferSource(b'wxyz'))
        source.read_bytes(0, 4)
        captured = capsys.readouterr()
        assert "Calling BufferSource.read_bytes" in captured.out
        assert "Finished BufferSource.read_bytes" in captured.out
    finally:
        # Restore handlers
        for h in handlers:
            logging.getLogger().addHandler(h)
