"""exceptions raised by the hufftrie compressors

- InputError: the symbols handed to the encoder cannot be compressed (empty when not allowed, symbols
  outside the alphabet, too long for the length field)
- FormatError: the encoded artifact is truncated or malformed
- EncodingError: a symbol has no code word, i.e. the encoder and the code table disagree on the alphabet
"""


class HuffTrieError(Exception):
    """base class for all the errors raised by the library"""


class InputError(HuffTrieError, ValueError):
    pass


class FormatError(HuffTrieError, ValueError):
    pass


class EncodingError(HuffTrieError, KeyError):
    def __str__(self):
        # KeyError quotes its argument, we want the plain message
        return str(self.args[0]) if self.args else ""
