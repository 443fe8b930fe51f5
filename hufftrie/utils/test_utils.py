"""
helpers shared by the tests of the encoders/decoders
"""

import filecmp
import os
import tempfile
from typing import Tuple
import numpy as np
from hufftrie.core.bit_stream import BitArraySink, BitArraySource
from hufftrie.core.data_block import DataBlock
from hufftrie.core.data_encoder_decoder import DataDecoder, DataEncoder
from hufftrie.core.data_stream import TextFileDataStream
from hufftrie.core.prob_dist import ProbabilityDist
from hufftrie.utils.bitarray_utils import get_random_bitarray


def get_random_data_block(prob_dist: ProbabilityDist, size: int, seed: int = None) -> DataBlock:
    """size i.i.d symbols drawn from prob_dist (reproducible if seed is given)"""
    rng = np.random.default_rng(seed)
    samples = rng.choice(prob_dist.alphabet, size=size, p=prob_dist.prob_list)
    return DataBlock(samples.tolist())


def create_random_text_file(file_path: str, file_size: int, prob_dist: ProbabilityDist, seed: int = None):
    """write file_size random characters drawn from prob_dist to a text file"""
    with TextFileDataStream(file_path, "w") as fds:
        fds.write_block(get_random_data_block(prob_dist, file_size, seed=seed))


def are_blocks_equal(data_block_1: DataBlock, data_block_2: DataBlock) -> bool:
    return data_block_1.data_list == data_block_2.data_list


def try_lossless_compression(
    data_block: DataBlock,
    encoder: DataEncoder,
    decoder: DataDecoder,
    add_extra_bits_to_encoder_output: bool = False,
) -> Tuple[bool, int, bytes]:
    """encode data_block in memory, decode it back and compare

    If add_extra_bits_to_encoder_output is set, random bits are appended to the encoded bits before
    decoding, to check that the decoder reads exactly the bits the encoder wrote.

    Returns:
        Tuple[bool, int, bytes]: (is the decoded block equal to the input, number of encoded bits, encoded bytes)
    """
    with BitArraySink() as bit_sink:
        encoder.encode_block(data_block, bit_sink)

    encoded_bitarray = bit_sink.bitarray
    if add_extra_bits_to_encoder_output:
        encoded_bitarray += get_random_bitarray(int(np.random.randint(100)))

    bit_source = BitArraySource(encoded_bitarray)
    decoded_block = decoder.decode_block(bit_source)
    assert bit_source.pos == bit_sink.num_bits, "Decoder did not consume exactly the encoded bits"

    return are_blocks_equal(data_block, decoded_block), bit_sink.num_bits, bit_sink.getvalue()


def try_file_lossless_compression(input_file_path: str, encoder: DataEncoder, decoder: DataDecoder) -> bool:
    """encode the file, decode the result to another file, and check both files have the same content

    NOTE: the input file should only contain characters which the encoder keeps
    """
    with tempfile.TemporaryDirectory() as tmpdirname:
        encoded_file_path = os.path.join(tmpdirname, "encoded_file.bin")
        reconst_file_path = os.path.join(tmpdirname, "reconst_file.txt")

        encoder.encode_file(input_file_path, encoded_file_path)
        decoder.decode_file(encoded_file_path, reconst_file_path)
        return filecmp.cmp(input_file_path, reconst_file_path, shallow=False)
