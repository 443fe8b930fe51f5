from typing import List, Set
from hufftrie.core.prob_dist import ProbabilityDist


class DataBlock:
    """
    wrapper around a list of symbols.

    The data_block is used to represent the input to the encoders (and the output of the decoders).
    For the huffman trie compressor the symbols are single characters.
    """

    def __init__(self, data_list: List):
        self.data_list = data_list

    @classmethod
    def from_str(cls, text: str) -> "DataBlock":
        """one symbol per character of text"""
        return cls(list(text))

    def to_str(self) -> str:
        return "".join(self.data_list)

    @property
    def size(self):
        return len(self.data_list)

    def get_alphabet(self) -> Set:
        """returns the set of unique symbols in the data_list"""
        return set(self.data_list)

    def get_counts(self) -> dict:
        """returns a dictionary of counts for symbols in self.data_list, e.g. [A,B,A] -> {A: 2, B: 1}

        NOTE: only the symbols present are counted, see FrequencyTable for counts over a fixed alphabet
        """
        count_dict = {}
        for d in self.data_list:
            count_dict[d] = count_dict.get(d, 0) + 1
        return count_dict

    def get_empirical_distribution(self) -> ProbabilityDist:
        """get the (order 0) empirical distribution of self.data_list
        for e.g if data_list = [A,B,A,A] -> returns {A:0.75, B:0.25}.
        """
        return ProbabilityDist.from_counts(self.get_counts())

    def get_entropy(self):
        """Returns the entropy of the empirical_distribution of data_list

        https://en.wikipedia.org/wiki/Entropy_(information_theory)
        """
        return self.get_empirical_distribution().entropy


def test_data_block_basic_ops():
    """checks basic operations for a DataBlock"""
    data_block = DataBlock.from_str("abaabb")

    assert data_block.size == 6
    assert data_block.get_alphabet() == {"a", "b"}
    assert data_block.get_counts()["a"] == 3
    assert data_block.get_empirical_distribution().prob_dict["a"] == 0.5
    assert data_block.get_entropy() == 1.0
    assert data_block.to_str() == "abaabb"
