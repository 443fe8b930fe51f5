import bitarray
from bitarray.util import ba2int, int2ba
import numpy as np


def get_bit_width(x) -> int:
    """minimum number of bits needed to write the unsigned int x (at least 1)"""
    assert x >= 0
    if x == 0:
        return 1
    return int(np.ceil(np.log2(x + 1)))


# all the bitarrays used in the library are big-endian (MSB-first)
BitArray = bitarray.bitarray


def uint_to_bitarray(x: int, bit_width=None) -> BitArray:
    """unsigned int -> MSB-first bits, zero padded on the left to bit_width bits if given"""
    assert isinstance(x, (int, np.integer))
    return int2ba(int(x), length=bit_width)  # int2ba requires input to be dtype int


def bitarray_to_uint(bit_array: BitArray) -> int:
    return ba2int(bit_array)


def int_to_bitarray(x: int, bit_width: int) -> BitArray:
    """converts a signed int to its two's complement representation of the given bit_width"""
    assert isinstance(x, (int, np.integer))
    return int2ba(int(x), length=bit_width, signed=True)


def bitarray_to_int(bit_array: BitArray) -> int:
    """inverse of int_to_bitarray"""
    return ba2int(bit_array, signed=True)


def get_random_bitarray(size) -> BitArray:
    return bitarray.util.urandom(size)


def bitarray_to_str(bit_array: BitArray) -> str:
    """returns the bits as a string of 0s and 1s, e.g. BitArray("0110") -> "0110" """
    return bit_array.to01()


############################## TESTS ####################################


def test_basic_bitarray_operations():
    # iterating through a bitarray yields ints, usable in if/else conditions
    code = BitArray("01011")
    for bit in code:
        if bit:
            assert bit == 1
        else:
            assert bit == 0


def test_get_bit_width():
    assert get_bit_width(0) == 1
    assert get_bit_width(1) == 1
    assert get_bit_width(255) == 8
    assert get_bit_width(256) == 9


def test_uint_bitarray_conversions():
    b = uint_to_bitarray(4)
    assert len(b) == 3
    assert bitarray_to_uint(b) == 4

    # MSB-first
    b = uint_to_bitarray(ord("a"), bit_width=8)
    assert bitarray_to_str(b) == "01100001"
    assert bitarray_to_uint(b) == ord("a")


def test_int_bitarray_conversions():
    """signed ints should use two's complement of the given width"""
    for x in [0, 1, 11, -1, -(1 << 31), (1 << 31) - 1]:
        b = int_to_bitarray(x, bit_width=32)
        assert len(b) == 32
        assert bitarray_to_int(b) == x

    assert bitarray_to_str(int_to_bitarray(-1, bit_width=8)) == "11111111"
    assert bitarray_to_str(int_to_bitarray(11, bit_width=8)) == "00001011"
