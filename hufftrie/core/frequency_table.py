"""frequency table over a fixed alphabet

The FrequencyTable counts the occurrences of each symbol of the alphabet in a DataBlock. Unlike
DataBlock.get_counts, the table covers the whole alphabet (absent symbols have a count of 0), so the
alphabet is always known up front.
"""

import unittest
from typing import Iterable
from hufftrie.core.data_block import DataBlock
from hufftrie.core.prob_dist import ProbabilityDist
from hufftrie.utils.bitarray_utils import get_bit_width

# lowercase letters and a few punctuation marks
DEFAULT_ALPHABET = "abcdefghijklmnopqrstuvwxyz-!.+"


def validate_alphabet(alphabet: Iterable, symbol_bit_width: int = None) -> list:
    """returns the alphabet as a list of unique symbols (keeping the order of first appearance)

    Raises:
        ValueError: if a symbol is not a single character, or (if symbol_bit_width is given) doesn't
        fit in symbol_bit_width bits
    """
    symbols = []
    for s in alphabet:
        if not isinstance(s, str) or len(s) != 1:
            raise ValueError(f"alphabet symbols need to be single characters, got {s!r}")
        if symbol_bit_width is not None and get_bit_width(ord(s)) > symbol_bit_width:
            raise ValueError(f"symbol {s!r} does not fit in {symbol_bit_width} bits")
        if s not in symbols:
            symbols.append(s)
    return symbols


class FrequencyTable:
    """
    Wrapper around a frequency dict {symbol: count} covering exactly the alphabet

    NOTE: the dict follows the alphabet order (dicts are ordered since python 3.6), which is
    also the order in which the huffman tree builder sees the symbols.
    """

    def __init__(self, freq_dict: dict):
        self._validate_freq_dict(freq_dict)
        self._freq_dict = dict(freq_dict)

    @classmethod
    def from_data_block(cls, data_block: DataBlock, alphabet: Iterable = DEFAULT_ALPHABET):
        """count the symbols of data_block, symbols outside the alphabet are ignored"""
        freq_dict = {a: 0 for a in validate_alphabet(alphabet)}
        for s in data_block.data_list:
            if s in freq_dict:
                freq_dict[s] += 1
        return cls(freq_dict)

    def __repr__(self):
        return f"FrequencyTable({self._freq_dict.__repr__()})"

    def __eq__(self, other):
        return isinstance(other, FrequencyTable) and self._freq_dict == other._freq_dict

    @property
    def freq_dict(self) -> dict:
        # return a copy, the table is not modified after construction
        return dict(self._freq_dict)

    @property
    def size(self):
        return len(self._freq_dict)

    @property
    def alphabet(self):
        return list(self._freq_dict)

    @property
    def nonzero_alphabet(self):
        """symbols which occur at least once, in alphabet order"""
        return [s for s, f in self._freq_dict.items() if f > 0]

    @property
    def total_freq(self) -> int:
        """returns the sum of all the frequencies"""
        return sum(self._freq_dict.values())

    def frequency(self, symbol):
        return self._freq_dict[symbol]

    def get_prob_dist(self) -> ProbabilityDist:
        """empirical distribution of the symbols present

        Raises:
            ValueError: if all the frequencies are 0
        """
        if self.total_freq == 0:
            raise ValueError("cannot compute a distribution from an all-zero frequency table")
        return ProbabilityDist.from_counts(self._freq_dict)

    @staticmethod
    def _validate_freq_dict(freq_dict):
        for _, freq in freq_dict.items():
            assert isinstance(freq, int)
            assert freq >= 0, "frequency cannot be negative"


def test_frequency_table_basic_ops():
    data_block = DataBlock.from_str("abracadabra")
    freq_table = FrequencyTable.from_data_block(data_block, alphabet="abrcd")

    assert freq_table.freq_dict == {"a": 5, "b": 2, "r": 2, "c": 1, "d": 1}
    assert freq_table.total_freq == data_block.size
    assert freq_table.alphabet == ["a", "b", "r", "c", "d"]
    assert freq_table.frequency("c") == 1


def test_frequency_table_covers_alphabet():
    """absent symbols get 0 counts, symbols outside the alphabet are ignored"""
    freq_table = FrequencyTable.from_data_block(DataBlock.from_str("hello, world!\n"))

    assert freq_table.alphabet == list(DEFAULT_ALPHABET)
    assert freq_table.frequency("l") == 3
    assert freq_table.frequency("z") == 0
    assert freq_table.frequency("!") == 1
    assert freq_table.nonzero_alphabet == ["d", "e", "h", "l", "o", "r", "w", "!"]
    # ",", " " and "\n" are not in the alphabet
    assert freq_table.total_freq == len("helloworld!")


def test_frequency_table_empty_input():
    freq_table = FrequencyTable.from_data_block(DataBlock([]))
    assert freq_table.size == len(DEFAULT_ALPHABET)
    assert freq_table.total_freq == 0
    assert freq_table.nonzero_alphabet == []


def test_frequency_table_is_not_modified():
    freq_table = FrequencyTable.from_data_block(DataBlock.from_str("aab"), alphabet="ab")
    freq_dict = freq_table.freq_dict
    freq_dict["a"] = 100
    assert freq_table.frequency("a") == 2


class FrequencyTableValidationTest(unittest.TestCase):
    def test_invalid_alphabet(self):
        with self.assertRaises(ValueError):
            FrequencyTable.from_data_block(DataBlock([]), alphabet=["ab"])
        with self.assertRaises(ValueError):
            validate_alphabet("aĀ", symbol_bit_width=8)
        assert validate_alphabet("aĀa") == ["a", "Ā"]

    def test_prob_dist_of_empty_table(self):
        freq_table = FrequencyTable.from_data_block(DataBlock([]), alphabet="ab")
        with self.assertRaises(ValueError):
            freq_table.get_prob_dist()

    def test_prob_dist(self):
        freq_table = FrequencyTable.from_data_block(DataBlock.from_str("aaab"), alphabet="abc")
        prob_dist = freq_table.get_prob_dist()
        assert prob_dist.prob_dict == {"a": 0.75, "b": 0.25}
