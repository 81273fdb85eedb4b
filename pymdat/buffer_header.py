import logging
from collections import namedtuple

from pymdat.errors import FormatError
from pymdat.words import ENTRY_SIZE, ENTRY_WORDS, WORD_SIZE, WordReader

logger = logging.getLogger(__name__)

# Buffer type of an event buffer; any other value ends the stream
BUFFER_TYPE_EVENT = 0x0001

# Header overhead in words
HEADER_WORDS = 21
HEADER_SIZE = HEADER_WORDS * WORD_SIZE

# Fixed end-of-buffer padding
TRAILER_WORDS = 4
TRAILER_SIZE = TRAILER_WORDS * WORD_SIZE


Terminate = namedtuple("Terminate", [
    "buffer_length",
    "buffer_type",   # the value that failed the event-buffer check
    "offset",        # byte offset of the terminating header
])
Terminate.__doc__ = """Normal end of the buffer sequence: a header with a non-event type."""


def entry_count(buffer_length: int) -> int:
    """
    Number of 48-bit event entries in a buffer of ``buffer_length`` words.

    Raises:
        FormatError: If the length is shorter than the header itself
    """
    if buffer_length < HEADER_WORDS:
        raise FormatError(f"Buffer length {buffer_length} is shorter than the "
                          f"{HEADER_WORDS}-word header")
    return (buffer_length - HEADER_WORDS) // ENTRY_WORDS


class BufferHeader:
    """
    Parses and represents one mdat buffer header.

    Layout (16-bit words unless noted):
    - buffer_length, buffer_type, header_length, buffer_number, run_id
    - mcpd_id (8 bit), status (8 bit)
    - base_timestamp, param0, param1, param2, param3 (48 bit each)
    """

    def __init__(self):
        """Initialize an empty BufferHeader object"""
        self.buffer_length = None
        self.buffer_type = None
        self.header_length = None
        self.buffer_number = None
        self.run_id = None
        self.mcpd_id = None
        self.status = None
        self.base_timestamp = None
        self.param0 = None
        self.param1 = None
        self.param2 = None
        self.param3 = None

        # Byte offset of the header in the file
        self.offset = None

    @classmethod
    def from_reader(cls, reader: WordReader):
        """
        Parse the next buffer header.

        Args:
            reader: WordReader positioned at the start of a buffer

        Returns:
            BufferHeader, or Terminate if the buffer type is not an event buffer

        Raises:
            TruncatedError: If the header is cut short
        """
        offset = reader.offset
        buffer_length = reader.read_word()
        buffer_type = reader.read_word()

        if buffer_type != BUFFER_TYPE_EVENT:
            logger.debug(f"Buffer type 0x{buffer_type:04x} at offset 0x{offset:X}, end of buffers")
            return Terminate(buffer_length, buffer_type, offset)

        header = cls()
        header.offset = offset
        header.buffer_length = buffer_length
        header.buffer_type = buffer_type
        header.header_length = reader.read_word()
        header.buffer_number = reader.read_word()
        header.run_id = reader.read_word()
        header.mcpd_id = reader.read_byte()
        header.status = reader.read_byte()
        header.base_timestamp = reader.read_entry()
        header.param0 = reader.read_entry()
        header.param1 = reader.read_entry()
        header.param2 = reader.read_entry()
        header.param3 = reader.read_entry()

        logger.debug(f"Buffer {header.buffer_number} at offset 0x{offset:X}: "
                     f"length={buffer_length} words, mcpd={header.mcpd_id}")
        return header

    @property
    def entry_count(self) -> int:
        """Number of event entries declared by this buffer."""
        return entry_count(self.buffer_length)

    @property
    def size(self) -> int:
        """Total buffer size in bytes, header and trailer included."""
        return HEADER_SIZE + self.entry_count * ENTRY_SIZE + TRAILER_SIZE

    def __repr__(self) -> str:
        offset = "None" if self.offset is None else f"0x{self.offset:X}"
        return (f"BufferHeader(number={self.buffer_number}, offset={offset}, "
                f"length={self.buffer_length})")

    def __str__(self) -> str:
        """Return string representation of the header"""
        return f"""mdat Buffer Header:
  Buffer Number:        {self.buffer_number}
  Buffer Length:        {self.buffer_length} words
  Expected Entries:     {self.entry_count}
  Header Length:        {self.header_length}
  Run ID:               {self.run_id}
  MCPD ID:              {self.mcpd_id}
  Status:               {self.status}
  Header Timestamp:     {self.base_timestamp}
  Parameter 0:          {self.param0}
  Parameter 1:          {self.param1}
  Parameter 2:          {self.param2}
  Parameter 3:          {self.param3}"""
