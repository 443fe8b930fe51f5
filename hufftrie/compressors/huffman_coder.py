"""Huffman coding over a FrequencyTable

HuffmanTree builds the huffman tree from the symbol counts, HuffmanEncoder/HuffmanDecoder use the
tree to encode/decode symbols one at a time (see prefix_free_compressors.py).

Tree construction:
1. push a leaf for every symbol with a nonzero count to a min-heap
2. pop the two nodes with the smallest counts, join them under a new node (first popped -> left child,
   second popped -> right child), and push the new node back
3. continue until a single node is left, which is the root

Ties in the counts are broken by the order in which the nodes were pushed (leaves are pushed in
alphabet order), so a given FrequencyTable always results in the same tree.

NOTE: if a single symbol is present, the root node is the leaf itself, and the symbol gets an empty
code word: encoding it takes 0 bits, and decoding it consumes no bits.
"""

from dataclasses import dataclass
import heapq
from typing import Optional
import itertools
import unittest
from functools import total_ordering
import numpy as np
from hufftrie.compressors.prefix_free_compressors import (
    PrefixFreeDecoder,
    PrefixFreeEncoder,
    PrefixFreeTree,
    is_prefix_free,
)
from hufftrie.core.bit_stream import BitArraySink, BitArraySource, BitSource
from hufftrie.core.data_block import DataBlock
from hufftrie.core.errors import EncodingError, FormatError
from hufftrie.core.frequency_table import FrequencyTable
from hufftrie.utils.bitarray_utils import BitArray
from hufftrie.utils.test_utils import get_random_data_block
from hufftrie.utils.tree_utils import BinaryNode


@dataclass
@total_ordering  # decorator which adds other compare ops given one
class HuffmanNode(BinaryNode):
    """represents a node of the huffman tree

    NOTE: BinaryNode class already has left_child, right_child, id fields
    here by subclassing we add the fields: freq, seq
    - freq: the count of the symbol (leaf), or the sum of the counts of the children
    - seq: insertion sequence number, used to break ties between equal counts
    """

    freq: int = 0
    seq: int = 0

    def __lt__(self, other):
        return (self.freq, self.seq) < (other.freq, other.seq)


class HuffmanTree(PrefixFreeTree):
    def __init__(self, freq_table: FrequencyTable):
        self.freq_table = freq_table

        # construct the tree and set the root_node of PrefixFreeTree base class
        super().__init__(root_node=self.build_huffman_tree())

    def build_huffman_tree(self) -> Optional[HuffmanNode]:
        """Build the huffman coding tree

        Returns:
            HuffmanNode: the root node, None if all the counts are zero
        """
        seq_counter = itertools.count()

        node_heap = []
        for a in self.freq_table.nonzero_alphabet:
            node = HuffmanNode(id=a, freq=self.freq_table.frequency(a), seq=next(seq_counter))
            node_heap.append(node)

        # nothing to encode
        if not node_heap:
            return None

        # NOTE: We use a min-heap, as we are concerned about finding the two smallest
        # elements. Heaps are efficient at such operations O(log(n)) -> push/pop, O(1) -> min val
        heapq.heapify(node_heap)

        while len(node_heap) > 1:
            # get the two smallest nodes
            first = heapq.heappop(node_heap)
            second = heapq.heappop(node_heap)

            combined_node = HuffmanNode(
                left_child=first,
                right_child=second,
                freq=first.freq + second.freq,
                seq=next(seq_counter),
            )
            heapq.heappush(node_heap, combined_node)

        # only one element should remain
        assert len(node_heap) == 1
        return node_heap[0]


class HuffmanEncoder(PrefixFreeEncoder):
    """
    PrefixFreeEncoder already has a encode_block function to encode the symbols once we define a encode_symbol function.
    PrefixFreeTree provides get_encoding_table given the tree
    """

    def __init__(self, tree: HuffmanTree):
        self.encoding_table = tree.get_encoding_table()

    def encode_symbol(self, s) -> BitArray:
        if s not in self.encoding_table:
            raise EncodingError(f"symbol {s!r} has no code word in the encoding table")
        return self.encoding_table[s]


class HuffmanDecoder(PrefixFreeDecoder):
    """
    PrefixFreeDecoder already has a decode_block function to decode the symbols once we define a decode_symbol function.
    PrefixFreeTree provides decode_symbol given the tree
    """

    def __init__(self, tree: PrefixFreeTree):
        self.tree = tree

    def decode_symbol(self, bit_source: BitSource):
        return self.tree.decode_symbol(bit_source)


def get_encoded_bit_length(freq_table: FrequencyTable, encoding_table) -> int:
    """number of bits needed to encode the data summarized by freq_table"""
    return sum(freq_table.frequency(s) * len(code) for s, code in encoding_table.items())


#################################


def _encode_decode(tree: HuffmanTree, data_block: DataBlock):
    """returns (decoded_block, num_bits_used)"""
    with BitArraySink() as bit_sink:
        HuffmanEncoder(tree).encode_block(data_block, bit_sink)
    decoded_block = HuffmanDecoder(tree).decode_block(
        BitArraySource(bit_sink.getvalue()), data_block.size
    )
    return decoded_block, bit_sink.num_bits


def test_huffman_tree_abracadabra():
    """the most frequent symbol should get the shortest code

    the tree itself is deterministic: c,d are joined first (ties broken by alphabet order), then b,r
    """
    data_block = DataBlock.from_str("abracadabra")
    freq_table = FrequencyTable.from_data_block(data_block, alphabet="abrcd")
    assert freq_table.freq_dict == {"a": 5, "b": 2, "r": 2, "c": 1, "d": 1}

    tree = HuffmanTree(freq_table)
    assert tree.root_node.freq == 11
    encoding_table = tree.get_encoding_table()
    assert encoding_table == {
        "a": BitArray("0"),
        "c": BitArray("100"),
        "d": BitArray("101"),
        "b": BitArray("110"),
        "r": BitArray("111"),
    }
    assert min(encoding_table.values(), key=len) == encoding_table["a"]
    assert is_prefix_free(encoding_table)

    decoded_block, num_bits = _encode_decode(tree, data_block)
    assert decoded_block.to_str() == "abracadabra"
    assert num_bits == 23 == get_encoded_bit_length(freq_table, encoding_table)


def test_huffman_coding_dyadic():
    """test huffman coding on data with dyadic empirical distributions

    On dyadic distributions Huffman coding should be perfectly equal to entropy
    """
    rng = np.random.default_rng(0)
    dyadic_counts = [
        {"a": 8, "b": 8},
        {"a": 8, "b": 4, "c": 4},
        {"a": 8, "b": 4, "c": 2, "d": 2},
        {"a": 32, "b": 16, "c": 8, "d": 4, "e": 2, "f": 1, "g": 1},
    ]
    for counts in dyadic_counts:
        data_list = [s for s, c in counts.items() for _ in range(c)]
        data_block = DataBlock(rng.permutation(data_list).tolist())
        freq_table = FrequencyTable.from_data_block(data_block)

        decoded_block, num_bits = _encode_decode(HuffmanTree(freq_table), data_block)
        assert decoded_block.data_list == data_block.data_list

        np.testing.assert_almost_equal(
            num_bits / data_block.size,
            data_block.get_entropy(),
            err_msg="Huffman coding is not equal to optimal codelens",
        )


def test_huffman_coding_random_data():
    """for any distribution, huffman coding should be within 1 bit/symbol of the entropy"""
    freq_tables = [
        FrequencyTable({"a": 10, "b": 1}),
        FrequencyTable({"a": 3, "b": 3, "c": 3, "-": 1, "!": 7}),
        FrequencyTable({s: i + 1 for i, s in enumerate("abcdefghijklmnopqrstuvwxyz-!.+")}),
    ]
    for seed, freq_table in enumerate(freq_tables):
        data_block = get_random_data_block(freq_table.get_prob_dist(), 2000, seed=seed)
        tree = HuffmanTree(FrequencyTable.from_data_block(data_block, alphabet=freq_table.alphabet))
        assert is_prefix_free(tree.get_encoding_table())

        decoded_block, num_bits = _encode_decode(tree, data_block)
        assert decoded_block.data_list == data_block.data_list

        avg_bits = num_bits / data_block.size
        entropy = data_block.get_entropy()
        assert entropy - 1e-9 <= avg_bits < entropy + 1


def test_huffman_tree_is_deterministic():
    """equal counts everywhere, the tree should still be the same across runs"""
    freq_table = FrequencyTable({s: 1 for s in "abcdefgh"})
    tables = [HuffmanTree(freq_table).get_encoding_table() for _ in range(3)]
    assert tables[0] == tables[1] == tables[2]
    assert all(len(code) == 3 for code in tables[0].values())


def test_huffman_single_symbol():
    """a single symbol is the root, gets an empty code, and costs no bits"""
    num_samples = 1000
    data_block = DataBlock(["a"] * num_samples)
    tree = HuffmanTree(FrequencyTable.from_data_block(data_block))

    assert tree.root_node.is_leaf_node
    assert tree.get_encoding_table() == {"a": BitArray("")}

    decoded_block, num_bits = _encode_decode(tree, data_block)
    assert num_bits == 0
    assert decoded_block.data_list == data_block.data_list


class HuffmanCoderFailureTest(unittest.TestCase):
    def test_empty_table(self):
        tree = HuffmanTree(FrequencyTable.from_data_block(DataBlock([]), alphabet="ab"))
        assert tree.build_huffman_tree() is None
        assert tree.is_empty
        assert tree.get_encoding_table() == {}

    def test_symbol_without_code(self):
        tree = HuffmanTree(FrequencyTable.from_data_block(DataBlock.from_str("abab"), alphabet="abc"))
        encoder = HuffmanEncoder(tree)
        with self.assertRaises(EncodingError):
            with BitArraySink() as bit_sink:
                encoder.encode_block(DataBlock.from_str("abc"), bit_sink)

    def test_truncated_message(self):
        data_block = DataBlock.from_str("abracadabra")
        tree = HuffmanTree(FrequencyTable.from_data_block(data_block))
        with BitArraySink() as bit_sink:
            HuffmanEncoder(tree).encode_block(data_block, bit_sink)

        truncated = bit_sink.bitarray[:-3]
        with self.assertRaises(FormatError):
            HuffmanDecoder(tree).decode_block(BitArraySource(truncated), data_block.size)
