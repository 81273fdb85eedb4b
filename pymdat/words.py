import struct
from typing import BinaryIO

from pymdat.errors import TruncatedError

# Words are stored byte-swapped relative to the acquisition host
WORD_FORMAT = '>H'
WORD_SIZE = 2
ENTRY_WORDS = 3
ENTRY_SIZE = ENTRY_WORDS * WORD_SIZE


class WordReader:
    """
    Sequential reader for mdat primitives.

    Wraps a binary stream and keeps track of the absolute byte offset of
    the cursor, so that every error can report where it happened.
    """

    def __init__(self, stream: BinaryIO, offset: int = 0):
        """
        Args:
            stream: Binary file-like object positioned at ``offset``
            offset: Byte offset of the stream's current position
        """
        self.stream = stream
        self.offset = offset

    def read_bytes(self, size: int) -> bytes:
        """
        Read exactly ``size`` bytes.

        Raises:
            TruncatedError: If the stream ends before ``size`` bytes are read
        """
        data = self.stream.read(size)
        if len(data) < size:
            raise TruncatedError(self.offset, size, len(data))
        self.offset += size
        return data

    def skip(self, size: int):
        """Read and discard ``size`` bytes."""
        self.read_bytes(size)

    def read_byte(self) -> int:
        """Read a single unsigned byte (no swapping)."""
        return self.read_bytes(1)[0]

    def read_word(self) -> int:
        """Read a 16-bit word, converting it to host order."""
        return struct.unpack(WORD_FORMAT, self.read_bytes(WORD_SIZE))[0]

    def read_entry(self) -> int:
        """
        Read a 48-bit entry made of three words.

        The words come low, mid, high; each word is swapped on its own.
        """
        start = self.offset
        try:
            low = self.read_word()
            mid = self.read_word()
            high = self.read_word()
        except TruncatedError as e:
            # Report the entry, not the word that ran out
            available = e.offset - start + e.available
            raise TruncatedError(start, ENTRY_SIZE, available) from e
        return low | mid << 16 | high << 32
