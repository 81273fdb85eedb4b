import io
import logging

import numpy as np
import pytest

from pymdat.buffer_header import BufferHeader
from pymdat.core import FramingState, MdatFile, MdatReader, decode
from pymdat.errors import FormatError, TruncatedError
from pymdat.event import DetectorEvent, TriggerEvent
from pymdat.sink import RecordSink

from builders import (PREAMBLE, buffer_bytes, detector_raw, header_bytes, mdat_bytes,
                      terminator, trigger_raw)


class RecordingSink(RecordSink):
    def __init__(self):
        self.calls = []

    def on_buffer_start(self, header):
        self.calls.append(("buffer", header))

    def on_event(self, event):
        self.calls.append(("event", event))

    def on_finish(self, summary):
        self.calls.append(("finish", summary))


@pytest.fixture
def single_event_file(tmp_path):
    """
    One buffer with one detector event, followed by a terminating header.
    """
    data = mdat_bytes(
        buffer_bytes([detector_raw(module_id=2, slot_id=5, amplitude=37, fine_timestamp=42)],
                     buffer_length=24, mcpd_id=1, base_timestamp=1000),
        end=terminator(buffer_type=0x0000),
    )
    path = tmp_path / "single.mdat"
    with open(path, "wb") as f:
        f.write(data)
    return str(path)


def test_end_to_end(single_event_file):
    sink = RecordingSink()
    with open(single_event_file, "rb") as f:
        summary = decode(f, sink)

    assert summary.buffers == 1
    assert summary.events == 1

    kinds = [kind for kind, _ in sink.calls]
    assert kinds == ["buffer", "event", "finish"]

    event = sink.calls[1][1]
    assert isinstance(event, DetectorEvent)
    assert event.tube_id == 37
    assert event.absolute_time == 1042
    assert event.amplitude == 37


def test_buffers_and_events_in_file_order():
    data = mdat_bytes(
        buffer_bytes([detector_raw(0, 1, 0, 1), trigger_raw(2, 3, 4, 2)], buffer_number=0,
                     base_timestamp=100),
        buffer_bytes([], buffer_number=1),
        buffer_bytes([detector_raw(1, 2, 3, 4)], buffer_number=2, mcpd_id=3, base_timestamp=500),
    )
    records = list(MdatReader(io.BytesIO(data)))

    assert [type(r) for r in records] == [
        BufferHeader, DetectorEvent, TriggerEvent,
        BufferHeader,
        BufferHeader, DetectorEvent,
    ]
    assert [r.buffer_number for r in records if isinstance(r, BufferHeader)] == [0, 1, 2]
    assert records[1].absolute_time == 101
    assert records[2].absolute_time == 102
    assert records[5].absolute_time == 504
    assert records[5].tube_id == 2 << 6 | 1 << 4 | 2


def test_empty_buffer_goes_straight_to_trailer():
    data = mdat_bytes(buffer_bytes([], buffer_length=21))
    mdat = MdatReader(io.BytesIO(data))
    records = list(mdat)

    assert len(records) == 1
    assert mdat.buffer_count == 1
    assert mdat.event_count == 0
    assert mdat.state is FramingState.DONE


def test_no_buffers():
    mdat = MdatReader(io.BytesIO(mdat_bytes()))
    assert list(mdat) == []
    assert mdat.summary.buffers == 0
    assert mdat.terminator.buffer_type == 0


def test_terminate_keeps_emitted_events():
    data = mdat_bytes(
        buffer_bytes([detector_raw(1, 1, 1, 1)]),
        end=terminator(buffer_type=0x0002) + buffer_bytes([detector_raw(2, 2, 2, 2)]),
    )
    sink = RecordingSink()
    summary = decode(io.BytesIO(data), sink)

    assert summary.buffers == 1
    assert summary.events == 1
    assert [kind for kind, _ in sink.calls] == ["buffer", "event", "finish"]


def test_reader_states():
    data = mdat_bytes(buffer_bytes([detector_raw(1, 1, 1, 1)]))
    mdat = MdatReader(io.BytesIO(data))
    assert mdat.state is FramingState.PREAMBLE

    next(mdat)
    assert mdat.state is FramingState.IN_BUFFER
    next(mdat)
    assert mdat.state is FramingState.IN_BUFFER

    with pytest.raises(StopIteration):
        next(mdat)
    assert mdat.state is FramingState.DONE

    # Done is terminal
    with pytest.raises(StopIteration):
        next(mdat)


def test_partial_consumption_offset():
    events = [detector_raw(1, 1, 1, i) for i in range(3)]
    data = mdat_bytes(buffer_bytes(events))
    stream = io.BytesIO(data)
    mdat = MdatReader(stream)

    next(mdat)  # header
    next(mdat)  # first event
    assert mdat.offset == len(PREAMBLE) + 42 + 6
    assert stream.tell() == mdat.offset


def test_truncated_inside_events():
    data = mdat_bytes(
        buffer_bytes([detector_raw(1, 1, 1, 1)], buffer_number=0),
        buffer_bytes([detector_raw(1, 1, 1, 1)] * 3, buffer_number=9),
        end=b'',
    )
    # Cut in the middle of the second buffer's last event
    data = data[:-(8 + 3)]
    sink = RecordingSink()

    with pytest.raises(TruncatedError) as excinfo:
        decode(io.BytesIO(data), sink)

    assert excinfo.value.buffer_number == 9
    assert excinfo.value.offset == len(PREAMBLE) + 42 + 6 + 8 + 42 + 12
    # Everything before the failure reached the sink, no summary was reported
    assert [kind for kind, _ in sink.calls] == ["buffer", "event", "buffer", "event", "event"]


def test_truncated_inside_trailer():
    data = mdat_bytes(buffer_bytes([detector_raw(1, 1, 1, 1)], buffer_number=4), end=b'')[:-3]
    with pytest.raises(TruncatedError) as excinfo:
        decode(io.BytesIO(data))
    assert excinfo.value.buffer_number == 4


def test_truncated_header():
    data = PREAMBLE + header_bytes(24)[:10]
    with pytest.raises(TruncatedError) as excinfo:
        decode(io.BytesIO(data))
    assert excinfo.value.offset == len(PREAMBLE) + 10


def test_end_of_file_is_not_a_terminator():
    data = mdat_bytes(buffer_bytes([detector_raw(1, 1, 1, 1)]), end=b'')
    with pytest.raises(TruncatedError):
        decode(io.BytesIO(data))


def test_truncated_preamble():
    with pytest.raises(TruncatedError) as excinfo:
        decode(io.BytesIO(PREAMBLE[:20]))
    assert excinfo.value.offset == 0
    assert excinfo.value.needed == 58


def test_short_buffer_length_is_format_error():
    data = mdat_bytes(buffer_bytes([], buffer_length=20, buffer_number=3))
    with pytest.raises(FormatError) as excinfo:
        decode(io.BytesIO(data))
    assert excinfo.value.buffer_number == 3
    assert excinfo.value.offset == len(PREAMBLE)


def test_mdat_file(single_event_file):
    with MdatFile(single_event_file) as mdat_file:
        headers = mdat_file.scan_buffers()
        assert len(headers) == 1
        assert headers[0].base_timestamp == 1000

        # Files can be decoded more than once
        summary = mdat_file.decode()
        assert (summary.buffers, summary.events) == (1, 1)

        data = mdat_file.to_numpy()

    assert mdat_file.file.closed
    assert len(data) == 1
    assert data["tube_id"][0] == 37
    assert data["time"][0] == 1042
    assert data.dtype["time"] == np.uint64


def test_totals_are_not_logged_at_info(caplog):
    data = mdat_bytes(buffer_bytes([detector_raw(1, 1, 1, 1)]))
    with caplog.at_level(logging.INFO, logger="pymdat"):
        decode(io.BytesIO(data))
    assert not [r for r in caplog.records if r.levelno >= logging.INFO]


def test_skip_events():
    data = mdat_bytes(
        buffer_bytes([detector_raw(1, 1, 1, i) for i in range(4)], buffer_number=0),
        buffer_bytes([trigger_raw(1, 1, 1, 1)], buffer_number=1),
    )
    mdat = MdatReader(io.BytesIO(data))
    next(mdat)
    next(mdat)  # decode one event, skip the other three
    mdat.skip_events()
    assert mdat.event_count == 4
    assert mdat.offset == len(PREAMBLE) + 42 + 4 * 6

    header = next(mdat)
    assert isinstance(header, BufferHeader)
    assert header.buffer_number == 1
    assert isinstance(next(mdat), TriggerEvent)


def test_scan_buffers_skips_events(tmp_path):
    path = tmp_path / "scan.mdat"
    path.write_bytes(mdat_bytes(
        buffer_bytes([detector_raw(1, 1, 1, i) for i in range(5)], buffer_number=0),
        buffer_bytes([], buffer_number=1),
        buffer_bytes([trigger_raw(1, 1, 1, 1)] * 2, buffer_number=2),
    ))
    with MdatFile(str(path)) as mdat_file:
        headers = mdat_file.scan_buffers()
    assert [h.buffer_number for h in headers] == [0, 1, 2]
    assert [h.entry_count for h in headers] == [5, 0, 2]


def test_scan_buffers_truncated_events(tmp_path):
    path = tmp_path / "short.mdat"
    path.write_bytes(mdat_bytes(buffer_bytes([detector_raw(1, 1, 1, 1)] * 3, buffer_number=5),
                                end=b'')[:-12])
    with MdatFile(str(path)) as mdat_file:
        with pytest.raises(TruncatedError) as excinfo:
            mdat_file.scan_buffers()
    assert excinfo.value.buffer_number == 5
