"""Huffman compressor which stores its own code

The HuffmanTrieEncoder counts the symbols of the input, builds the huffman tree for the counts, and
writes an artifact which the HuffmanTrieDecoder can decode without knowing the counts:

    [ trie: pre-order, (1 <symbol: 8 bits>) | (0 <left> <right>) ]   -> see trie_codec.py
    [ number of symbols: 32 bit signed int ]
    [ message: concatenated code words of the symbols ]
    [ padding: 0-7 zero bits to reach a byte boundary ]

Notes:
- if the input contains a single distinct symbol, the tree is a single leaf and the message takes 0 bits
  (the number of symbols is all the decoder needs).
- an empty input is written as a single-leaf trie with the NUL symbol, followed by a 0 length.
- the input is scanned twice (counting, then encoding), so it is read completely into memory.

Sample usage (see the bottom of the file for the CLI):
    artifact = compress("abracadabra", alphabet="abrcd")
    assert decompress(artifact) == "abracadabra"
"""

import argparse
import os
import tempfile
import time
import unittest
from typing import Iterable, Sequence, Tuple, Union
from hufftrie.compressors.huffman_coder import (
    HuffmanDecoder,
    HuffmanEncoder,
    HuffmanNode,
    HuffmanTree,
    get_encoded_bit_length,
)
from hufftrie.compressors.prefix_free_compressors import PrefixFreeTree, is_prefix_free
from hufftrie.compressors.trie_codec import (
    SYMBOL_BIT_WIDTH,
    get_trie_bit_length,
    read_trie,
    write_trie,
)
from hufftrie.core.bit_stream import (
    INT_BIT_WIDTH,
    BinaryFileBitSource,
    BitArraySink,
    BitArraySource,
    BitSink,
    BitSource,
)
from hufftrie.core.data_block import DataBlock
from hufftrie.core.data_encoder_decoder import DataDecoder, DataEncoder
from hufftrie.core.data_stream import AlphabetTextFileDataStream
from hufftrie.core.errors import EncodingError, FormatError, HuffTrieError, InputError
from hufftrie.core.frequency_table import DEFAULT_ALPHABET, FrequencyTable, validate_alphabet
from hufftrie.core.prob_dist import ProbabilityDist
from hufftrie.utils.bitarray_utils import BitArray, bitarray_to_str
from hufftrie.utils.test_utils import (
    create_random_text_file,
    get_random_data_block,
    try_file_lossless_compression,
    try_lossless_compression,
)

# symbol of the placeholder trie written for an empty input
EMPTY_TRIE_SYMBOL = "\x00"
MAX_NUM_SYMBOLS = (1 << (INT_BIT_WIDTH - 1)) - 1


class HuffmanTrieEncoder(DataEncoder):
    """
    Args:
        alphabet (Iterable): the allowed symbols (single characters)
        symbol_bit_width (int): number of bits used to write a symbol in the trie
        allow_empty (bool): if False, encoding an empty input raises InputError
    """

    def __init__(
        self,
        alphabet: Iterable = DEFAULT_ALPHABET,
        symbol_bit_width: int = SYMBOL_BIT_WIDTH,
        allow_empty: bool = True,
    ):
        self.alphabet = validate_alphabet(alphabet, symbol_bit_width)
        self.symbol_bit_width = symbol_bit_width
        self.allow_empty = allow_empty

    def validate_input(self, data_block: DataBlock):
        """
        Raises:
            InputError: if data_block is empty (and empty inputs are not allowed), too long for the
            length field, or contains symbols outside the alphabet
        """
        if data_block.size == 0 and not self.allow_empty:
            raise InputError("input is empty")
        if data_block.size > MAX_NUM_SYMBOLS:
            raise InputError(f"input has {data_block.size} symbols, at most {MAX_NUM_SYMBOLS} are supported")

        invalid_symbols = data_block.get_alphabet() - set(self.alphabet)
        if invalid_symbols:
            raise InputError(f"input contains symbols outside the alphabet: {sorted(map(repr, invalid_symbols))}")

    def build_tree(self, data_block: DataBlock) -> Tuple[FrequencyTable, HuffmanTree]:
        """count the symbols of data_block and build the huffman tree for the counts"""
        freq_table = FrequencyTable.from_data_block(data_block, alphabet=self.alphabet)
        return freq_table, HuffmanTree(freq_table)

    def encode_block(self, data_block: DataBlock, bit_sink: BitSink):
        self.validate_input(data_block)
        _, tree = self.build_tree(data_block)

        root_node = tree.root_node
        if tree.is_empty:
            root_node = HuffmanNode(id=EMPTY_TRIE_SYMBOL)

        write_trie(root_node, bit_sink, symbol_bit_width=self.symbol_bit_width)
        bit_sink.write_int(data_block.size)
        HuffmanEncoder(tree).encode_block(data_block, bit_sink)

    def get_input_stream(self, input_file_path: str):
        # keep only the (lower-cased) alphabet characters of the text file
        return AlphabetTextFileDataStream(input_file_path, alphabet=self.alphabet)


class HuffmanTrieDecoder(DataDecoder):
    def __init__(self, symbol_bit_width: int = SYMBOL_BIT_WIDTH):
        self.symbol_bit_width = symbol_bit_width

    def decode_block(self, bit_source: BitSource) -> DataBlock:
        """
        NOTE: for a single-leaf tree the message takes no bits, so the decoded block has as many symbols
        as the length field says (up to 2^31 - 1) whatever the size of the artifact.

        Raises:
            FormatError: if the artifact is truncated or malformed
        """
        root_node = read_trie(bit_source, symbol_bit_width=self.symbol_bit_width)

        num_symbols = bit_source.read_int()
        if num_symbols < 0:
            raise FormatError(f"invalid number of symbols: {num_symbols}")

        # every symbol takes at least one bit, unless the tree is a single leaf
        num_bits_left = bit_source.get_num_bits_left()
        if not root_node.is_leaf_node and num_bits_left is not None and num_symbols > num_bits_left:
            raise FormatError(f"{num_symbols} symbols cannot be encoded in the remaining {num_bits_left} bits")

        return HuffmanDecoder(PrefixFreeTree(root_node)).decode_block(bit_source, num_symbols)


def compress(symbols: Union[str, Sequence], alphabet: Iterable = DEFAULT_ALPHABET) -> bytes:
    """compress the symbols (e.g. a string) over the given alphabet, returns the (byte padded) artifact"""
    encoder = HuffmanTrieEncoder(alphabet=alphabet)
    with BitArraySink() as bit_sink:
        encoder.encode_block(DataBlock(list(symbols)), bit_sink)
    return bit_sink.getvalue()


def decompress(artifact: bytes) -> str:
    """inverse of compress"""
    with BitArraySource(artifact) as bit_source:
        data_block = HuffmanTrieDecoder().decode_block(bit_source)
    return data_block.to_str()


def print_compression_report(freq_table: FrequencyTable, tree: HuffmanTree, data_block: DataBlock):
    """print the counts, the code, the tree, the encoded message and a short summary"""
    print("frequencies:", freq_table.freq_dict)

    encoding_table = tree.get_encoding_table()
    print("code table:")
    for s in freq_table.nonzero_alphabet:
        print(f"  {s!r}: {bitarray_to_str(encoding_table[s])}")

    tree.print_tree()

    message = "".join(bitarray_to_str(encoding_table[s]) for s in data_block.data_list)
    print("encoded message:", message)

    num_message_bits = get_encoded_bit_length(freq_table, encoding_table)
    num_trie_bits = get_trie_bit_length(tree.root_node) if not tree.is_empty else 1 + SYMBOL_BIT_WIDTH
    num_bits = num_trie_bits + INT_BIT_WIDTH + num_message_bits
    print(
        f"symbols: {data_block.size}, trie bits: {num_trie_bits}, message bits: {num_message_bits}, "
        f"total bytes: {(num_bits + 7) // 8}"
    )
    if data_block.size > 0:
        print(
            f"avg codelen: {num_message_bits / data_block.size:.3f}, max codelen: {tree.root_node.get_depth()}, "
            f"entropy: {freq_table.get_prob_dist().entropy:.3f}"
        )


def get_default_output_path() -> str:
    return f"encodedfile{int(time.time() * 1000)}.bin"


def main(argv=None):
    parser = argparse.ArgumentParser(description="huffman compressor for text over a small alphabet")
    parser.add_argument("-d", "--decompress", help="decompress", action="store_true")
    parser.add_argument("-i", "--input", help="input file", required=True, type=str)
    parser.add_argument(
        "-o",
        "--output",
        help="output file (compression default: encodedfile<timestamp>.bin, decompression default: stdout)",
        type=str,
    )
    parser.add_argument("-a", "--alphabet", help="allowed symbols", default=DEFAULT_ALPHABET, type=str)
    parser.add_argument("-v", "--verbose", help="print the frequencies and the code", action="store_true")
    args = parser.parse_args(argv)

    try:
        if args.decompress:
            decoder = HuffmanTrieDecoder()
            if args.output is None:
                with BinaryFileBitSource(args.input) as bit_source:
                    print(decoder.decode_block(bit_source).to_str())
            else:
                decoder.decode_file(args.input, args.output)
        else:
            encoder = HuffmanTrieEncoder(alphabet=args.alphabet)
            output_path = args.output if args.output is not None else get_default_output_path()
            data_block = encoder.encode_file(args.input, output_path)
            if args.verbose:
                freq_table, tree = encoder.build_tree(data_block)
                print_compression_report(freq_table, tree, data_block)
            print(f"wrote {output_path}")
    except (HuffTrieError, ValueError, OSError) as e:
        parser.exit(1, f"error: {e}\n")


#################################


def test_abracadabra():
    """the code depends on the counts, and the length field should be the number of symbols"""
    artifact = compress("abracadabra", alphabet="abrcd")
    assert decompress(artifact) == "abracadabra"

    bit_source = BitArraySource(artifact)
    root_node = read_trie(bit_source)
    assert bit_source.read_int() == 11

    encoding_table = PrefixFreeTree(root_node).get_encoding_table()
    assert is_prefix_free(encoding_table)
    assert len(encoding_table["a"]) == min(len(code) for code in encoding_table.values())

    # 5 leaves, 4 internal nodes + length + 23 bits of message -> exactly 13 bytes
    assert len(artifact) == (5 * 9 + 4 + 32 + 23) // 8


def test_round_trip_strings():
    for text in ["", "a", "ab", "aaaaaaa", "hello-world!", "the.quick+brown-fox!jumps", "abracadabra" * 20]:
        artifact = compress(text)
        assert decompress(artifact) == text


def test_empty_input():
    """an empty input still results in a well formed artifact: NUL leaf (9 bits) + length (32 bits)"""
    artifact = compress("")
    assert len(artifact) == 6
    assert decompress(artifact) == ""

    bit_source = BitArraySource(artifact)
    assert read_trie(bit_source).id == EMPTY_TRIE_SYMBOL
    assert bit_source.read_int() == 0


def test_single_symbol_input():
    """one distinct symbol repeated K times, the message takes no bits"""
    for num_repeats in [1, 2, 100, 5000]:
        artifact = compress("!" * num_repeats)
        assert len(artifact) == 6  # 9 bits trie + 32 bits length
        assert decompress(artifact) == "!" * num_repeats


def test_random_lossless_compression():
    """encode/decode random data, the decoder should stop exactly at the end of the encoding"""
    prob_dists = [
        ProbabilityDist({"a": 0.5, "b": 0.5}),
        ProbabilityDist({"a": 0.6, "-": 0.2, "!": 0.1, ".": 0.05, "+": 0.05}),
        ProbabilityDist({s: 1 / len(DEFAULT_ALPHABET) for s in DEFAULT_ALPHABET}),
    ]
    encoder = HuffmanTrieEncoder()
    decoder = HuffmanTrieDecoder()
    for seed, prob_dist in enumerate(prob_dists):
        data_block = get_random_data_block(prob_dist, 3000, seed=seed)
        is_lossless, _, _ = try_lossless_compression(
            data_block, encoder, decoder, add_extra_bits_to_encoder_output=True
        )
        assert is_lossless


def test_custom_alphabet():
    """symbols outside the default alphabet work if they are in the encoder alphabet"""
    text = "Hello, World! 123"
    alphabet = sorted(set(text))
    assert decompress(compress(text, alphabet=alphabet)) == text


def test_huffman_trie_file_compression():
    with tempfile.TemporaryDirectory() as tmpdirname:
        input_file_path = os.path.join(tmpdirname, "inp_file.txt")
        create_random_text_file(
            input_file_path,
            file_size=5000,
            prob_dist=ProbabilityDist({"a": 0.5, "b": 0.25, "c": 0.2, "+": 0.05}),
            seed=0,
        )
        assert try_file_lossless_compression(input_file_path, HuffmanTrieEncoder(), HuffmanTrieDecoder())


def test_file_compression_filters_input():
    """the text is lower-cased, and the characters outside the alphabet are dropped"""
    with tempfile.TemporaryDirectory() as tmpdirname:
        input_file_path = os.path.join(tmpdirname, "input.txt")
        encoded_file_path = os.path.join(tmpdirname, "encoded.bin")
        output_file_path = os.path.join(tmpdirname, "output.txt")
        with open(input_file_path, "w") as f:
            f.write("Grace is an awesome person,\nand she creates cool things!\n")

        encoded_block = HuffmanTrieEncoder().encode_file(input_file_path, encoded_file_path)
        decoded_block = HuffmanTrieDecoder().decode_file(encoded_file_path, output_file_path)

        expected = "graceisanawesomepersonandshecreatescoolthings!"
        assert encoded_block.to_str() == expected
        assert decoded_block.to_str() == expected
        with open(output_file_path) as f:
            assert f.read() == expected


def test_cli():
    with tempfile.TemporaryDirectory() as tmpdirname:
        input_file_path = os.path.join(tmpdirname, "input.txt")
        encoded_file_path = os.path.join(tmpdirname, "encoded.bin")
        output_file_path = os.path.join(tmpdirname, "output.txt")
        with open(input_file_path, "w") as f:
            f.write("Abracadabra!\n")

        main(["-i", input_file_path, "-o", encoded_file_path, "-v"])
        main(["-d", "-i", encoded_file_path, "-o", output_file_path])
        with open(output_file_path) as f:
            assert f.read() == "abracadabra!"


def test_cli_default_output_path():
    with tempfile.TemporaryDirectory() as tmpdirname:
        input_file_path = os.path.join(tmpdirname, "input.txt")
        with open(input_file_path, "w") as f:
            f.write("aab")

        cwd = os.getcwd()
        os.chdir(tmpdirname)
        try:
            main(["-i", input_file_path])
        finally:
            os.chdir(cwd)

        encoded_files = [f for f in os.listdir(tmpdirname) if f.startswith("encodedfile")]
        assert len(encoded_files) == 1
        assert encoded_files[0].endswith(".bin")
        with open(os.path.join(tmpdirname, encoded_files[0]), "rb") as f:
            assert decompress(f.read()) == "aab"


def _get_two_leaf_tree() -> HuffmanNode:
    return HuffmanNode(left_child=HuffmanNode(id="a"), right_child=HuffmanNode(id="b"))


class HuffmanTrieCompressorFailureTest(unittest.TestCase):
    def test_truncated_artifact(self):
        """cutting the message short should raise a FormatError, not return fewer symbols"""
        artifact = compress("abracadabra", alphabet="abrcd")
        # trie (49 bits) + length (32 bits) + 7 bits of the 23 bit message
        with self.assertRaises(FormatError):
            decompress(artifact[:11])

    def test_truncated_trie_and_length(self):
        artifact = compress("abracadabra", alphabet="abrcd")
        for num_bytes in [0, 3, 6, 9]:
            with self.assertRaises(FormatError):
                decompress(artifact[:num_bytes])

    def test_negative_length(self):
        with BitArraySink() as bit_sink:
            write_trie(HuffmanNode(id="a"), bit_sink)
            bit_sink.write_int(-1)
        with self.assertRaises(FormatError):
            decompress(bit_sink.getvalue())

    def test_empty_input_not_allowed(self):
        encoder = HuffmanTrieEncoder(allow_empty=False)
        with BitArraySink() as bit_sink:
            with self.assertRaises(InputError):
                encoder.encode_block(DataBlock([]), bit_sink)
        # nothing should have been written
        assert bit_sink.num_bits == 0

    def test_failed_file_encode_leaves_no_file(self):
        """an input rejected by the encoder should not leave an (empty) encoded file behind"""
        with tempfile.TemporaryDirectory() as tmpdirname:
            input_file_path = os.path.join(tmpdirname, "input.txt")
            encoded_file_path = os.path.join(tmpdirname, "encoded.bin")
            with open(input_file_path, "w") as f:
                f.write("123")  # nothing left after filtering

            with self.assertRaises(InputError):
                HuffmanTrieEncoder(allow_empty=False).encode_file(input_file_path, encoded_file_path)
            assert not os.path.exists(encoded_file_path)

    def test_encode_failure_removes_partial_file(self):
        """an error raised after the encoding started should also remove the file"""

        class _FailingEncoder(HuffmanTrieEncoder):
            def encode_block(self, data_block, bit_sink):
                bit_sink.write_int(data_block.size)
                raise EncodingError("no code word")

        with tempfile.TemporaryDirectory() as tmpdirname:
            input_file_path = os.path.join(tmpdirname, "input.txt")
            encoded_file_path = os.path.join(tmpdirname, "encoded.bin")
            with open(input_file_path, "w") as f:
                f.write("abc")

            with self.assertRaises(EncodingError):
                _FailingEncoder().encode_file(input_file_path, encoded_file_path)
            assert not os.path.exists(encoded_file_path)

    def test_length_larger_than_message(self):
        """a length which the remaining bits cannot hold should fail before decoding"""
        with BitArraySink() as bit_sink:
            write_trie(_get_two_leaf_tree(), bit_sink)
            bit_sink.write_int(MAX_NUM_SYMBOLS)
            bit_sink.write_bits(BitArray("0101"))
        with self.assertRaises(FormatError):
            decompress(bit_sink.getvalue())

    def test_symbols_outside_alphabet(self):
        with self.assertRaises(InputError):
            compress("abracadabra", alphabet="abc")
        with self.assertRaises(InputError):
            compress(["ab", "c"])

    def test_invalid_alphabet(self):
        with self.assertRaises(ValueError):
            HuffmanTrieEncoder(alphabet="abcĀ")

    def test_cli_error(self):
        with tempfile.TemporaryDirectory() as tmpdirname:
            encoded_file_path = os.path.join(tmpdirname, "encoded.bin")
            with open(encoded_file_path, "wb") as f:
                f.write(b"\x00")
            with self.assertRaises(SystemExit) as cm:
                main(["-d", "-i", encoded_file_path])
            assert cm.exception.code == 1


if __name__ == "__main__":
    main()
