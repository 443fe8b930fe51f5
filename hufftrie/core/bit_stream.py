"""bit-level sinks and sources

The compressors write their output one bit (or a few bits) at a time to a BitSink, and read them back
from a BitSource. Both come in two flavours:
- BitArraySink/BitArraySource keep the bits in memory (useful for testing and for compress/decompress
  on bytes objects)
- BinaryFileBitSink/BinaryFileBitSource write to/read from a binary file

All bits are MSB-first. On close, the sink pads the bits with 0-7 zero bits to reach a byte boundary.
The sinks and sources can be used as context managers, which guarantees the sink is flushed and closed
on every exit path.
"""

import abc
import os
import tempfile
import unittest
from typing import Union
from hufftrie.core.errors import FormatError
from hufftrie.utils.bitarray_utils import (
    BitArray,
    bitarray_to_int,
    bitarray_to_uint,
    int_to_bitarray,
    uint_to_bitarray,
)

# number of bits used by write_int/read_int
INT_BIT_WIDTH = 32


class BitSink(abc.ABC):
    """abstract class to represent an ordered bit-level output

    subclasses need to implement write_bits and close; the other write functions are built on top of write_bits
    """

    @abc.abstractmethod
    def write_bits(self, bits: BitArray):
        """append the given bits to the sink"""
        pass

    @abc.abstractmethod
    def close(self):
        """pad the written bits to a byte boundary with zeros, flush and release the resources"""
        pass

    def write_bit(self, bit: bool):
        self.write_bits(BitArray([bool(bit)]))

    def write_byte(self, value: int, width: int = 8):
        """write value as a `width` bit unsigned int"""
        assert 0 <= value < (1 << width), f"{value} does not fit in {width} bits"
        self.write_bits(uint_to_bitarray(value, bit_width=width))

    def write_int(self, value: int):
        """write value as a 32 bit signed int (two's complement)"""
        assert -(1 << (INT_BIT_WIDTH - 1)) <= value < (1 << (INT_BIT_WIDTH - 1))
        self.write_bits(int_to_bitarray(value, bit_width=INT_BIT_WIDTH))

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, exc_traceback):
        self.close()


class BitSource(abc.ABC):
    """abstract class to represent an ordered bit-level input

    subclasses need to implement read_bits and at_end. Reading past the end raises a FormatError
    """

    @abc.abstractmethod
    def read_bits(self, num_bits: int) -> BitArray:
        """returns the next num_bits bits, raises FormatError if fewer are left"""
        pass

    @abc.abstractmethod
    def at_end(self) -> bool:
        """True if there are no bits left to read (padding bits count as readable bits)"""
        pass

    def get_num_bits_left(self):
        """number of bits left to read, None if the source cannot tell"""
        return None

    def read_bit(self) -> bool:
        return bool(self.read_bits(1)[0])

    def read_byte(self, width: int = 8) -> int:
        return bitarray_to_uint(self.read_bits(width))

    def read_int(self) -> int:
        return bitarray_to_int(self.read_bits(INT_BIT_WIDTH))

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, exc_traceback):
        self.close()


class BitArraySink(BitSink):
    """in-memory sink

    Usage:
        with BitArraySink() as sink:
            sink.write_bit(1)
            sink.write_int(11)
        data = sink.getvalue()
    """

    def __init__(self):
        self._bits = BitArray()
        self.closed = False

    def write_bits(self, bits: BitArray):
        assert not self.closed, "cannot write to a closed sink"
        self._bits.extend(bits)

    def close(self):
        self.closed = True

    @property
    def bitarray(self) -> BitArray:
        """copy of the bits written so far (without the byte padding)"""
        return BitArray(self._bits)

    @property
    def num_bits(self) -> int:
        return len(self._bits)

    def getvalue(self) -> bytes:
        """bytes written to the sink, zero padded to a byte boundary"""
        return self._bits.tobytes()


class BitArraySource(BitSource):
    """in-memory source, reads from a BitArray or from bytes"""

    def __init__(self, data: Union[BitArray, bytes]):
        if isinstance(data, (bytes, bytearray)):
            self._bits = BitArray()
            self._bits.frombytes(bytes(data))
        else:
            assert isinstance(data, BitArray)
            self._bits = BitArray(data)
        self.pos = 0

    def read_bits(self, num_bits: int) -> BitArray:
        assert num_bits >= 0
        if self.pos + num_bits > len(self._bits):
            raise FormatError(
                f"unexpected end of bit stream: requested {num_bits} bits at position {self.pos}, "
                f"but the stream has {len(self._bits)} bits"
            )
        bits = self._bits[self.pos : self.pos + num_bits]
        self.pos += num_bits
        return bits

    def at_end(self) -> bool:
        return self.pos >= len(self._bits)

    def get_num_bits_left(self) -> int:
        return len(self._bits) - self.pos


class BinaryFileBitSink(BitSink):
    """writes bits to a binary file

    Complete bytes are written to the file once FLUSH_NUM_BYTES of them are buffered; close() writes out
    the remaining bits (zero padded) and closes the file.
    """

    FLUSH_NUM_BYTES = 4096

    def __init__(self, file_path: str):
        self.file_path = file_path
        self.file_writer = None
        self._buffer = BitArray()

    def __enter__(self):
        self.file_writer = open(self.file_path, "wb")  # open binary file
        return self

    def write_bits(self, bits: BitArray):
        assert self.file_writer is not None, "sink needs to be opened using the with statement"
        self._buffer.extend(bits)
        if len(self._buffer) >= self.FLUSH_NUM_BYTES * 8:
            num_full_bits = (len(self._buffer) // 8) * 8
            self.file_writer.write(self._buffer[:num_full_bits].tobytes())
            del self._buffer[:num_full_bits]

    def close(self):
        if self.file_writer is None:
            return
        try:
            # tobytes pads the trailing partial byte with zeros
            self.file_writer.write(self._buffer.tobytes())
            self._buffer = BitArray()
        finally:
            self.file_writer.close()
            self.file_writer = None


class BinaryFileBitSource(BitArraySource):
    """reads bits from a binary file

    NOTE: the whole file is read in when entering the context, the compressors need the complete
    input anyways.
    """

    def __init__(self, file_path: str):
        self.file_path = file_path
        super().__init__(BitArray())

    def __enter__(self):
        with open(self.file_path, "rb") as f:
            self._bits = BitArray()
            self._bits.frombytes(f.read())
        self.pos = 0
        return self


###################################


def test_bit_array_sink_source():
    """write bits, bytes and ints to a sink and read them back"""
    with BitArraySink() as sink:
        sink.write_bit(True)
        sink.write_byte(ord("a"))
        sink.write_int(11)
        sink.write_int(-5)
        sink.write_byte(5, width=3)
        sink.write_bit(0)

    assert sink.num_bits == 1 + 8 + 32 + 32 + 3 + 1
    assert sink.bitarray[:9] == BitArray("101100001")

    data = sink.getvalue()
    assert len(data) == 10  # 77 bits -> 3 bits of padding

    source = BitArraySource(data)
    assert source.get_num_bits_left() == 80
    assert source.read_bit() is True
    assert source.get_num_bits_left() == 79
    assert source.read_byte() == ord("a")
    assert source.read_int() == 11
    assert source.read_int() == -5
    assert source.read_byte(width=3) == 5
    assert source.read_bit() is False

    # only the padding is left
    assert source.read_bits(3) == BitArray("000")
    assert source.at_end()


def test_sink_padding():
    """padding should be 0-7 zero bits"""
    for num_bits in range(17):
        with BitArraySink() as sink:
            sink.write_bits(BitArray("1" * num_bits))
        data = sink.getvalue()
        assert len(data) == (num_bits + 7) // 8
        source = BitArraySource(data)
        assert source.read_bits(num_bits).all()
        while not source.at_end():
            assert source.read_bit() is False


def test_binary_file_sink_source():
    """write a few bits to a file, making sure the buffered bits get flushed"""
    with tempfile.TemporaryDirectory() as tmpdirname:
        file_path = os.path.join(tmpdirname, "bits.bin")

        num_ints = 3000  # 96000 bits -> a few flushes
        with BinaryFileBitSink(file_path) as sink:
            sink.write_bit(1)
            for i in range(num_ints):
                sink.write_int(i - 1000)

        assert os.path.getsize(file_path) == (1 + 32 * num_ints + 7) // 8

        with BinaryFileBitSource(file_path) as source:
            assert source.read_bit()
            for i in range(num_ints):
                assert source.read_int() == i - 1000
            assert source.read_bits(7) == BitArray("0000000")
            assert source.at_end()


def test_binary_file_sink_closes_on_error():
    """the partially written bits should still be flushed if an exception is raised"""
    with tempfile.TemporaryDirectory() as tmpdirname:
        file_path = os.path.join(tmpdirname, "bits.bin")
        try:
            with BinaryFileBitSink(file_path) as sink:
                sink.write_bits(BitArray("1011"))
                raise RuntimeError("failure while writing")
        except RuntimeError:
            pass

        with open(file_path, "rb") as f:
            assert f.read() == bytes([0b10110000])


class BitSourceExhaustedTest(unittest.TestCase):
    def test_read_past_end(self):
        source = BitArraySource(BitArray("1010"))
        source.read_bits(3)
        with self.assertRaises(FormatError):
            source.read_byte()

    def test_read_int_from_short_stream(self):
        source = BitArraySource(bytes([1, 2, 3]))
        with self.assertRaises(FormatError):
            source.read_int()

    def test_empty_source(self):
        source = BitArraySource(b"")
        assert source.at_end()
        assert source.get_num_bits_left() == 0
        with self.assertRaises(FormatError):
            source.read_bit()
