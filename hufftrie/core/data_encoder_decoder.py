"""defines DataEncoder and DataDecoder classes

DataEncoder and DataDecoder are the base classes for the encoders, decoders.
- an encoder writes the encoding of a DataBlock to a BitSink (encode_block)
- a decoder reads a DataBlock back from a BitSource (decode_block)
The file based wrappers (encode_file, decode_file) are implemented on top of these and need not be
re-implemented by subclasses.
"""

import abc
import os
from hufftrie.core.bit_stream import BinaryFileBitSink, BinaryFileBitSource, BitSink, BitSource
from hufftrie.core.data_block import DataBlock
from hufftrie.core.data_stream import TextFileDataStream


class DataEncoder(abc.ABC):
    """base abstract class for implementing any data encoder

    - any subclassing encoder needs to only implement encode_block function, which encodes the given
    block of data to a bit sink
    """

    def validate_input(self, data_block: DataBlock):
        """raise an error if data_block cannot be encoded, called before any output is created"""
        pass

    @abc.abstractmethod
    def encode_block(self, data_block: DataBlock, bit_sink: BitSink):
        """encode a given block of data

        Args:
            data_block (DataBlock): input data_block
            bit_sink (BitSink): sink to which the encoded bits are written
        """
        pass

    def get_input_stream(self, input_file_path: str):
        """returns the DataStream used by encode_file to read the input file"""
        return TextFileDataStream(input_file_path, "r")

    def encode_file(self, input_file_path: str, encoded_file_path: str):
        """utility wrapper around the encode_block function

        the whole input file is read in as a single block, and encoded to the binary file

        Args:
            input_file_path (str): path of the input file
            encoded_file_path (str): path of the encoded binary file
        """
        with self.get_input_stream(input_file_path) as fds:
            data_block = fds.read_all()

        self.validate_input(data_block)
        with BinaryFileBitSink(encoded_file_path) as bit_sink:
            try:
                self.encode_block(data_block, bit_sink)
            except Exception:
                # no partially written file should be left behind
                bit_sink.close()
                os.remove(encoded_file_path)
                raise
        return data_block


class DataDecoder(abc.ABC):
    """abstract class used to define a decoder

    - any subclassing decoder needs to mainly implement the decode_block method
    """

    @abc.abstractmethod
    def decode_block(self, bit_source: BitSource) -> DataBlock:
        """decode one block of data from the bit source

        Args:
            bit_source (BitSource): source positioned at the start of the encoded block

        Returns:
            decoded_block (DataBlock)
        """
        pass

    def decode_file(self, encoded_file_path: str, output_file_path: str):
        """utility wrapper around the decode_block function

        Args:
            encoded_file_path (str): input binary file
            output_file_path (str): output (text) file to which decoded data is written
        """
        with BinaryFileBitSource(encoded_file_path) as bit_source:
            data_block = self.decode_block(bit_source)

        with TextFileDataStream(output_file_path, "w") as fds:
            fds.write_block(data_block)
        return data_block
