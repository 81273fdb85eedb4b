"""
pymdat: decoder for mdat neutron-detector event streams.
"""

__version__ = "0.1.0"

from pymdat.errors import MdatError, TruncatedError, FormatError, TubeIdError
from pymdat.words import WordReader
from pymdat.buffer_header import BufferHeader, Terminate, BUFFER_TYPE_EVENT, entry_count
from pymdat.event import DetectorEvent, TriggerEvent, decode_event
from pymdat.sink import RecordSink, ColumnSink, EVENT_DTYPE
from pymdat.core import MdatFile, MdatReader, FramingState, DecodeSummary, decode
