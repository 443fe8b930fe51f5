"""serialization of the huffman tree (trie)

The tree is written in pre-order:
- leaf node -> bit 1, followed by the symbol as a fixed width (default 8 bit) unsigned int
- internal node -> bit 0, followed by the left subtree, followed by the right subtree

For example, the tree for the code {a: 0, b: 10, c: 11} is written as:
    0 1<a> 0 1<b> 1<c>

The format is self-delimiting: the reader consumes exactly the bits written, so no node count is needed.
The frequencies are not written, the read tree has all frequencies set to 0.
"""

import unittest
from hufftrie.compressors.huffman_coder import HuffmanNode, HuffmanTree
from hufftrie.compressors.prefix_free_compressors import PrefixFreeTree
from hufftrie.core.bit_stream import BitArraySink, BitArraySource, BitSink, BitSource
from hufftrie.core.data_block import DataBlock
from hufftrie.core.errors import EncodingError, FormatError
from hufftrie.core.frequency_table import FrequencyTable
from hufftrie.utils.bitarray_utils import BitArray

SYMBOL_BIT_WIDTH = 8

# huffman trees for counts below 2^31 are at most ~45 levels deep (fibonacci counts)
MAX_TRIE_DEPTH = 255


def write_trie(node: HuffmanNode, bit_sink: BitSink, symbol_bit_width: int = SYMBOL_BIT_WIDTH):
    """write the tree rooted at node to the bit_sink

    Raises:
        EncodingError: if a symbol does not fit in symbol_bit_width bits
    """
    assert node is not None, "cannot write an empty tree"
    if node.is_leaf_node:
        symbol_value = ord(node.id)
        if symbol_value >= (1 << symbol_bit_width):
            raise EncodingError(f"symbol {node.id!r} does not fit in {symbol_bit_width} bits")
        bit_sink.write_bit(True)
        bit_sink.write_byte(symbol_value, width=symbol_bit_width)
        return

    assert node.left_child is not None and node.right_child is not None, "malformed tree"
    bit_sink.write_bit(False)
    write_trie(node.left_child, bit_sink, symbol_bit_width)
    write_trie(node.right_child, bit_sink, symbol_bit_width)


def read_trie(bit_source: BitSource, symbol_bit_width: int = SYMBOL_BIT_WIDTH) -> HuffmanNode:
    """read back a tree written by write_trie

    Raises:
        FormatError: if the bit_source is exhausted before the tree is complete, or if the bits
        do not describe a valid tree (too deep, repeated symbols)
    """
    # a tree over 2^w distinct symbols is at most 2^w - 1 levels deep, and the recursion is capped
    max_depth = min((1 << symbol_bit_width) - 1, MAX_TRIE_DEPTH)
    seen_symbols = set()

    def _read_node(depth: int) -> HuffmanNode:
        if depth > max_depth:
            raise FormatError(f"tree is deeper than {max_depth} levels")

        is_leaf = bit_source.read_bit()
        if is_leaf:
            symbol = chr(bit_source.read_byte(width=symbol_bit_width))
            if symbol in seen_symbols:
                raise FormatError(f"symbol {symbol!r} appears more than once in the tree")
            seen_symbols.add(symbol)
            return HuffmanNode(id=symbol)

        left_child = _read_node(depth + 1)
        right_child = _read_node(depth + 1)
        return HuffmanNode(left_child=left_child, right_child=right_child)

    return _read_node(0)


def get_trie_bit_length(node: HuffmanNode, symbol_bit_width: int = SYMBOL_BIT_WIDTH) -> int:
    """number of bits write_trie uses for the tree: one bit per node, plus the leaf symbols"""
    if node.is_leaf_node:
        return 1 + symbol_bit_width
    return (
        1
        + get_trie_bit_length(node.left_child, symbol_bit_width)
        + get_trie_bit_length(node.right_child, symbol_bit_width)
    )


#################################


def _get_sample_tree() -> HuffmanNode:
    """tree for the code {a: 0, b: 10, c: 11}"""
    return HuffmanNode(
        left_child=HuffmanNode(id="a"),
        right_child=HuffmanNode(left_child=HuffmanNode(id="b"), right_child=HuffmanNode(id="c")),
    )


def _to_bits(node: HuffmanNode, symbol_bit_width: int = SYMBOL_BIT_WIDTH) -> BitArray:
    with BitArraySink() as bit_sink:
        write_trie(node, bit_sink, symbol_bit_width)
    return bit_sink.bitarray


def test_write_trie_layout():
    """check the exact bits written"""
    expected = BitArray("0" + "1" + "01100001" + "0" + "1" + "01100010" + "1" + "01100011")
    bits = _to_bits(_get_sample_tree())
    assert bits == expected
    assert len(bits) == get_trie_bit_length(_get_sample_tree())


def test_write_read_trie():
    """the tree read back should produce the same code"""
    data_block = DataBlock.from_str("she sells sea shells by the sea shore.")
    tree = HuffmanTree(FrequencyTable.from_data_block(data_block))
    bits = _to_bits(tree.root_node)
    assert len(bits) == get_trie_bit_length(tree.root_node)

    # add some trailing bits, the reader should stop where the tree ends
    bit_source = BitArraySource(bits + BitArray("1011"))
    read_root = read_trie(bit_source)
    assert bit_source.pos == len(bits)
    assert PrefixFreeTree(read_root).get_encoding_table() == tree.get_encoding_table()


def test_single_leaf_trie():
    bits = _to_bits(HuffmanNode(id="+"))
    assert bits == BitArray("1" + "00101011")

    node = read_trie(BitArraySource(bits))
    assert node.is_leaf_node
    assert node.id == "+"


def test_symbol_bit_width():
    """symbols can be written with other widths, as long as they fit"""
    bits = _to_bits(_get_sample_tree(), symbol_bit_width=7)
    assert len(bits) == 2 + 3 * (1 + 7)
    node = read_trie(BitArraySource(bits), symbol_bit_width=7)
    assert [leaf.id for leaf in node.get_leaves()] == ["a", "b", "c"]


class TrieCodecFailureTest(unittest.TestCase):
    def test_truncated_trie(self):
        bits = _to_bits(_get_sample_tree())
        for num_bits in [0, 1, 5, len(bits) - 1]:
            with self.assertRaises(FormatError):
                read_trie(BitArraySource(bits[:num_bits]))

    def test_symbol_too_wide(self):
        with self.assertRaises(EncodingError):
            _to_bits(HuffmanNode(id="Ā"))
        with self.assertRaises(EncodingError):
            _to_bits(_get_sample_tree(), symbol_bit_width=6)

    def test_corrupt_trie(self):
        # a long run of internal node tags
        with self.assertRaises(FormatError):
            read_trie(BitArraySource(BitArray("0" * 300)))

        # repeated symbol
        bits = BitArray("0" + "1" + "01100001" + "1" + "01100001")
        with self.assertRaises(FormatError):
            read_trie(BitArraySource(bits))

    def test_deep_trie_with_wide_symbols(self):
        """wide symbols allow huge trees, the depth should still be capped"""
        with self.assertRaises(FormatError):
            read_trie(BitArraySource(BitArray("0" * 5000)), symbol_bit_width=16)
