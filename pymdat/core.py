import logging
import os
from collections import namedtuple
from enum import Enum
from typing import BinaryIO, List

from pymdat.buffer_header import BufferHeader, Terminate, TRAILER_SIZE
from pymdat.errors import MdatError
from pymdat.event import decode_event
from pymdat.sink import ColumnSink, RecordSink
from pymdat.words import ENTRY_SIZE, WordReader

logger = logging.getLogger(__name__)

# Opaque file-level prologue in front of the first buffer
PREAMBLE_SIZE = 58

# Log a progress line every this many events
PROGRESS_INTERVAL = 10000


class FramingState(Enum):
    PREAMBLE = "preamble"
    AWAITING_BUFFER = "awaiting_buffer"
    IN_BUFFER = "in_buffer"
    DONE = "done"


DecodeSummary = namedtuple("DecodeSummary", [
    "buffers",   # number of event buffers decoded
    "events",    # number of events decoded
    "offset",    # byte offset right after the terminating header check
])


class MdatReader:
    """
    Walks the buffers of an mdat stream.

    Iterating yields, in file order, each BufferHeader followed by the events
    of that buffer. Every pull consumes exactly one header or one event from
    the stream (plus the trailer of a finished buffer), so a caller that stops
    early leaves the stream right after the last decoded record.

    Iteration ends when a buffer header with a non-event type is read; the
    value that ended it is kept in ``terminator``.
    """

    def __init__(self, stream: BinaryIO, offset: int = 0):
        """
        Args:
            stream: Binary stream positioned at the start of the file
            offset: Byte offset of the stream position, for error reports
        """
        self.reader = WordReader(stream, offset)
        self.state = FramingState.PREAMBLE
        self.header = None
        self.remaining = 0
        self.buffer_count = 0
        self.event_count = 0
        self.terminator = None

    def __iter__(self):
        return self

    def __next__(self):
        try:
            return self._step()
        except MdatError as e:
            if e.buffer_number is None and self.header is not None:
                e.buffer_number = self.header.buffer_number
            self.state = FramingState.DONE
            logger.debug(f"Decoding aborted: {e}")
            raise

    def _step(self):
        while True:
            if self.state is FramingState.PREAMBLE:
                self.reader.skip(PREAMBLE_SIZE)
                self.state = FramingState.AWAITING_BUFFER

            elif self.state is FramingState.AWAITING_BUFFER:
                result = BufferHeader.from_reader(self.reader)
                if isinstance(result, Terminate):
                    self.terminator = result
                    self.state = FramingState.DONE
                    logger.debug(f"A total of {self.event_count} events were read "
                                 f"from {self.buffer_count} buffers")
                    raise StopIteration

                try:
                    self.remaining = result.entry_count
                except MdatError as e:
                    e.offset = result.offset
                    e.buffer_number = result.buffer_number
                    raise

                self.header = result
                self.buffer_count += 1
                self.state = FramingState.IN_BUFFER
                return result

            elif self.state is FramingState.IN_BUFFER:
                if self.remaining == 0:
                    self.reader.skip(TRAILER_SIZE)
                    self.header = None
                    self.state = FramingState.AWAITING_BUFFER
                    continue

                event = decode_event(self.reader, self.header)
                self.remaining -= 1
                self.event_count += 1
                if self.event_count % PROGRESS_INTERVAL == 0:
                    logger.debug(f"Processing entry number: {self.event_count}")
                return event

            else:
                raise StopIteration

    def skip_events(self):
        """
        Skip the events left in the current buffer without decoding them.

        They still count towards ``event_count``.
        """
        if self.state is not FramingState.IN_BUFFER:
            return
        try:
            self.reader.skip(self.remaining * ENTRY_SIZE)
        except MdatError as e:
            e.buffer_number = self.header.buffer_number
            self.state = FramingState.DONE
            raise
        self.event_count += self.remaining
        self.remaining = 0

    @property
    def offset(self) -> int:
        """Byte offset of the stream cursor."""
        return self.reader.offset

    @property
    def summary(self) -> DecodeSummary:
        return DecodeSummary(self.buffer_count, self.event_count, self.reader.offset)


def decode(stream: BinaryIO, sink: RecordSink = None) -> DecodeSummary:
    """
    Decode a whole mdat stream into a sink.

    Args:
        stream: Binary stream positioned at the start of the file
        sink: Receiver of headers and events (default: discard them)

    Returns:
        DecodeSummary with the buffer and event counts

    Raises:
        TruncatedError: If the stream ends inside the preamble or a buffer
        FormatError: If a buffer declares an impossible length
    """
    if sink is None:
        sink = RecordSink()

    mdat = MdatReader(stream)
    for record in mdat:
        try:
            if isinstance(record, BufferHeader):
                sink.on_buffer_start(record)
            else:
                sink.on_event(record)
        except MdatError as e:
            if e.buffer_number is None:
                e.buffer_number = mdat.header.buffer_number
            if e.offset is None and isinstance(record, BufferHeader):
                e.offset = record.offset
            elif e.offset is None:
                e.offset = mdat.offset - ENTRY_SIZE
            raise

    summary = mdat.summary
    sink.on_finish(summary)
    return summary


class MdatFile:
    """
    An mdat file on disk. Opens the file and hands out readers over it.
    """

    def __init__(self, filename: str):
        """
        Args:
            filename: Path to the mdat file
        """
        self.filename = filename
        self.file = open(filename, 'rb')
        self.file_size = os.path.getsize(filename)

    def close(self):
        if not self.file.closed:
            self.file.close()

    def __enter__(self):
        """Support for context manager protocol"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Cleanup when exiting context"""
        self.close()

    def iter_records(self) -> MdatReader:
        """Return a reader over the file, starting from its first byte."""
        self.file.seek(0)
        return MdatReader(self.file)

    def scan_buffers(self) -> List[BufferHeader]:
        """
        Walk the whole file and collect every buffer header; events are skipped
        without being decoded.

        Returns:
            List of BufferHeader objects in file order
        """
        headers = []
        mdat = self.iter_records()
        for header in mdat:
            headers.append(header)
            mdat.skip_events()
        return headers

    def decode(self, sink: RecordSink = None) -> DecodeSummary:
        """Decode the whole file into ``sink``."""
        self.file.seek(0)
        logger.debug(f"Decoding {self.filename} ({self.file_size} bytes)")
        return decode(self.file, sink)

    def to_numpy(self):
        """
        Decode the whole file into a structured array, one row per event.

        Returns:
            NumPy array with dtype pymdat.sink.EVENT_DTYPE
        """
        sink = ColumnSink()
        self.decode(sink)
        return sink.to_numpy()
