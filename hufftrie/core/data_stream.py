import abc
import os
import tempfile
from hufftrie.core.data_block import DataBlock
from hufftrie.core.frequency_table import DEFAULT_ALPHABET


class DataStream(abc.ABC):
    """symbol-level stream of data, which can be read from or written to

    Subclasses provide get_symbol/write_symbol; the block-level functions (get_block, read_all,
    write_block) are loops over them.
    """

    @abc.abstractmethod
    def get_symbol(self):
        """returns a symbol from the data stream, returns None if the stream is finished"""
        pass

    @abc.abstractmethod
    def write_symbol(self, s):
        """writes the given symbol to the stream"""
        pass

    def _iter_symbols(self, max_num_symbols=None):
        num_symbols = 0
        while max_num_symbols is None or num_symbols < max_num_symbols:
            s = self.get_symbol()
            if s is None:
                return
            yield s
            num_symbols += 1

    def get_block(self, block_size: int) -> DataBlock:
        """returns the next (at most) block_size symbols, or None once the stream is over"""
        data_list = list(self._iter_symbols(block_size))
        return DataBlock(data_list) if data_list else None

    def read_all(self) -> DataBlock:
        """returns all the remaining symbols as a single (possibly empty) DataBlock"""
        return DataBlock(list(self._iter_symbols()))

    def write_block(self, data_block: DataBlock):
        for s in data_block.data_list:
            self.write_symbol(s)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, exc_traceback):
        pass


class FileDataStream(DataStream):
    """DataStream backed by a file, opened when entering the with statement and closed on exit

    Example:
        with TextFileDataStream(path, "w") as fds:
            fds.write_block(block)
    """

    def __init__(self, file_path: str, mode="r"):
        self.file_path = file_path
        self.mode = mode

    def __enter__(self):
        self.file_obj = open(self.file_path, self.mode)
        return self

    def __exit__(self, exc_type, exc_value, exc_traceback):
        self.file_obj.close()


class TextFileDataStream(FileDataStream):
    """FileDataStream to read/write text data, one character per symbol"""

    def get_symbol(self):
        s = self.file_obj.read(1)
        if not s:
            return None
        return s

    def write_symbol(self, s):
        self.file_obj.write(s)


class AlphabetTextFileDataStream(TextFileDataStream):
    """reads a text file, keeping only the characters of the alphabet

    a character which is not in the alphabet is replaced by its lower-cased version if that one is,
    otherwise (e.g. whitespace and line breaks) it is skipped.
    """

    def __init__(self, file_path: str, alphabet=DEFAULT_ALPHABET):
        super().__init__(file_path, "r")
        self.alphabet = set(alphabet)

    def get_symbol(self):
        while True:
            s = super().get_symbol()
            if s is None:
                return None
            if s in self.alphabet:
                return s
            if s.lower() in self.alphabet:
                return s.lower()


#################################


def test_text_file_data_stream():
    with tempfile.TemporaryDirectory() as tmpdirname:
        temp_file_path = os.path.join(tmpdirname, "tmp_file.txt")

        data_gt = DataBlock.from_str("This-is_a_test_file")
        with TextFileDataStream(temp_file_path, "w") as fds:
            fds.write_block(data_gt)

        with TextFileDataStream(temp_file_path, "r") as fds:
            block = fds.get_block(block_size=4)
            assert block.to_str() == "This"
            block = fds.read_all()
            assert block.to_str() == "-is_a_test_file"
            assert fds.get_block(block_size=4) is None


def test_alphabet_text_file_data_stream():
    """only the lower-cased alphabet characters should be kept"""
    with tempfile.TemporaryDirectory() as tmpdirname:
        temp_file_path = os.path.join(tmpdirname, "tmp_file.txt")
        with open(temp_file_path, "w") as f:
            f.write("Grace is an AWESOME person,\nand she creates cool things!\n")
            f.write("1 + 1 = 2.\n")

        with AlphabetTextFileDataStream(temp_file_path) as fds:
            block = fds.read_all()
        assert block.to_str() == "graceisanawesomepersonandshecreatescoolthings!+."

        with AlphabetTextFileDataStream(temp_file_path, alphabet="aeiou") as fds:
            block = fds.get_block(block_size=5)
        assert block.to_str() == "aeiaa"


def test_alphabet_text_file_data_stream_upper_case():
    """upper-case characters of the alphabet are kept as is, others are still lower-cased"""
    with tempfile.TemporaryDirectory() as tmpdirname:
        temp_file_path = os.path.join(tmpdirname, "tmp_file.txt")
        with open(temp_file_path, "w") as f:
            f.write("Hello World\n")

        with AlphabetTextFileDataStream(temp_file_path, alphabet="HWdelor") as fds:
            assert fds.read_all().to_str() == "HelloWorld"

        with AlphabetTextFileDataStream(temp_file_path, alphabet="hwdelor") as fds:
            assert fds.read_all().to_str() == "helloworld"
