"""File implementing utility abstract classes for prefix free compressors

NOTE: prefix free codes are codes which allow convenient per-symbol encoding/decoding.

We implement PrefixFreeEncoder, PrefixFreeDecoder and PrefixFreeTree which are utility abstract classes
useful for implementing any prefix free code
"""

import abc
import unittest
from typing import Any, Mapping
from hufftrie.core.bit_stream import BitArraySink, BitArraySource, BitSink, BitSource
from hufftrie.core.data_block import DataBlock
from hufftrie.core.data_encoder_decoder import DataDecoder, DataEncoder
from hufftrie.core.errors import FormatError
from hufftrie.utils.bitarray_utils import BitArray
from hufftrie.utils.tree_utils import BinaryNode


class PrefixFreeEncoder(DataEncoder):
    @abc.abstractmethod
    def encode_symbol(self, s) -> BitArray:
        """
        encode one symbol. method needs to be defined in inherited class.

        Args:
            s (Any): symbol to encode

        Returns:
            BitArray: the code word for the symbol
        """
        pass

    def encode_block(self, data_block: DataBlock, bit_sink: BitSink):
        """
        encode the block of data one symbol at a time, writing the code words to bit_sink in order
        """
        for s in data_block.data_list:
            bit_sink.write_bits(self.encode_symbol(s))


class PrefixFreeDecoder(DataDecoder):
    @abc.abstractmethod
    def decode_symbol(self, bit_source: BitSource) -> Any:
        """
        decode the next symbol, reading as many bits as needed from bit_source.
        method needs to be defined in inherited class.
        """
        pass

    def decode_block(self, bit_source: BitSource, num_symbols: int) -> DataBlock:
        """
        decode num_symbols symbols one at a time using decode_symbol

        NOTE: prefix free codes are not self-terminating when concatenated (and the bit source might
        contain padding), so the number of symbols needs to be known.

        Raises:
            FormatError: if the bit source runs out before num_symbols symbols are decoded
        """
        data_list = []
        for _ in range(num_symbols):
            data_list.append(self.decode_symbol(bit_source))
        return DataBlock(data_list)


class PrefixFreeTree:
    """
    Class representing a Prefix Free Tree

    Root node is the pointer to root of the tree with appropriate pointers to the children.
    Any subclassing class needs to set the root_node appropriately. The root_node is None for
    an empty tree (no symbols).

    The class utilizes the fact that the given tree is PrefixFree to encode and decode:
        get_encoding_table: returns the mapping from symbol to code word, which can be used by a PrefixFreeEncoder
        decode_symbol: walks the tree one bit at a time, which can be used by a PrefixFreeDecoder
    """

    def __init__(self, root_node: BinaryNode):
        self.root_node = root_node

    @property
    def is_empty(self) -> bool:
        return self.root_node is None

    def print_tree(self):
        if self.is_empty:
            print("<empty tree>")
        else:
            self.root_node.print_node()

    def get_encoding_table(self) -> Mapping[Any, BitArray]:
        """
        Does a DFS over the tree to return the encoding table over the whole symbol dictionary
        starting from root_node. Going left appends a 0, going right appends a 1.

        NOTE: if the root is itself a leaf (single symbol), its code word is empty.

        Returns:
            Mapping[Any,BitArray]: the encoding_table dict
        """
        encoding_table = {}
        if self.is_empty:
            return encoding_table

        def _parse_node(node: BinaryNode, code: BitArray):
            """parse the node in DFS fashion, and get the code corresponding to
            all the leaf nodes

            Args:
                node (BinaryNode): the current node being parsed
                code (BitArray): the code corresponding to the current node
            """
            if node.is_leaf_node:
                encoding_table[node.id] = code
                return

            # the tree needs to be full, else some codes are wasted (and decoding can get stuck)
            assert node.left_child is not None and node.right_child is not None, "malformed tree"
            _parse_node(node.left_child, code + BitArray("0"))
            _parse_node(node.right_child, code + BitArray("1"))

        _parse_node(self.root_node, BitArray(""))
        return encoding_table

    def decode_symbol(self, bit_source: BitSource) -> Any:
        """
        Decode the next symbol, by parsing through the prefix free tree, till we reach a leaf node.

        - start from the root node
        - if the next bit is 0, go left, else right
        - once you reach a leaf node, output the symbol corresponding the node

        NOTE: for a single-leaf tree no bits are consumed

        Raises:
            FormatError: if the bit_source is exhausted mid-walk
        """
        if self.is_empty:
            raise FormatError("cannot decode symbols using an empty tree")

        curr_node = self.root_node
        while not curr_node.is_leaf_node:
            bit = bit_source.read_bit()
            curr_node = curr_node.right_child if bit else curr_node.left_child
            assert curr_node is not None, "malformed tree"

        # as we reach the leaf node, the decoded symbol is the id of the node
        return curr_node.id


def is_prefix_free(encoding_table: Mapping[Any, BitArray]) -> bool:
    """returns True if no code word is a prefix of another code word"""
    # after sorting, if a code word is a prefix of some other code word, it is also a prefix of the next one
    codes = sorted(code.to01() for code in encoding_table.values())
    for code, next_code in zip(codes, codes[1:]):
        if next_code.startswith(code):
            return False
    return True


#######################################


def _get_sample_tree() -> PrefixFreeTree:
    """tree for the code {A: 0, B: 10, C: 11}"""
    return PrefixFreeTree(
        BinaryNode(
            left_child=BinaryNode(id="A"),
            right_child=BinaryNode(left_child=BinaryNode(id="B"), right_child=BinaryNode(id="C")),
        )
    )


def test_get_encoding_table():
    encoding_table = _get_sample_tree().get_encoding_table()
    assert encoding_table == {"A": BitArray("0"), "B": BitArray("10"), "C": BitArray("11")}
    assert is_prefix_free(encoding_table)


def test_single_leaf_encoding_table():
    tree = PrefixFreeTree(BinaryNode(id="A"))
    assert tree.get_encoding_table() == {"A": BitArray("")}

    # no bits are consumed while decoding
    bit_source = BitArraySource(BitArray(""))
    assert tree.decode_symbol(bit_source) == "A"
    assert tree.decode_symbol(bit_source) == "A"


def test_is_prefix_free():
    assert is_prefix_free({"A": BitArray("0"), "B": BitArray("10"), "C": BitArray("11")})
    assert is_prefix_free({"A": BitArray("")})
    assert not is_prefix_free({"A": BitArray("1"), "B": BitArray("10")})
    assert not is_prefix_free({"A": BitArray("01"), "B": BitArray("00"), "C": BitArray("011")})


def test_decode_symbol():
    tree = _get_sample_tree()
    bit_source = BitArraySource(BitArray("110100"))
    decoded = [tree.decode_symbol(bit_source) for _ in range(4)]
    assert decoded == ["C", "A", "B", "A"]
    assert bit_source.at_end()


class _TableEncoder(PrefixFreeEncoder):
    def __init__(self, encoding_table):
        self.encoding_table = encoding_table

    def encode_symbol(self, s):
        return self.encoding_table[s]


class _TreeDecoder(PrefixFreeDecoder):
    def __init__(self, tree):
        self.tree = tree

    def decode_symbol(self, bit_source):
        return self.tree.decode_symbol(bit_source)


def test_prefix_free_encode_decode_block():
    tree = _get_sample_tree()
    data_block = DataBlock(list("ABCCBAAB"))

    with BitArraySink() as bit_sink:
        _TableEncoder(tree.get_encoding_table()).encode_block(data_block, bit_sink)
    assert bit_sink.bitarray == BitArray("0" + "10" + "11" + "11" + "10" + "0" + "0" + "10")

    decoded_block = _TreeDecoder(tree).decode_block(BitArraySource(bit_sink.getvalue()), data_block.size)
    assert decoded_block.data_list == data_block.data_list


class PrefixFreeTreeFailureTest(unittest.TestCase):
    def test_decode_truncated(self):
        tree = _get_sample_tree()
        with self.assertRaises(FormatError):
            _TreeDecoder(tree).decode_block(BitArraySource(BitArray("0101")), num_symbols=4)

    def test_empty_tree(self):
        tree = PrefixFreeTree(None)
        assert tree.is_empty
        assert tree.get_encoding_table() == {}
        with self.assertRaises(FormatError):
            tree.decode_symbol(BitArraySource(BitArray("0")))

    def test_malformed_tree(self):
        tree = PrefixFreeTree(BinaryNode(left_child=BinaryNode(id="A")))
        with self.assertRaises(AssertionError):
            tree.get_encoding_table()
