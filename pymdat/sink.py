"""
pymdat.sink
===========

Consumers of the decoded record stream.

``RecordSink`` is the interface the framing layer talks to. ``ColumnSink``
collects one row per event into NumPy columns, with the header fields of the
enclosing buffer repeated on every row.
"""

import logging

import numpy as np

from pymdat.event import DetectorEvent, EVENT_ID_DETECTOR

logger = logging.getLogger(__name__)

EVENT_DTYPE = np.dtype(
    [
        ("event_id", np.uint8),
        ("x_position", np.uint16),
        ("tube_id", np.uint16),
        ("module_id", np.uint16),
        ("slot_id", np.uint16),
        ("amplitude", np.uint16),
        ("time", np.uint64),
        ("fine_timestamp", np.uint32),
        ("trigger_source", np.uint16),
        ("data_source", np.uint16),
        ("trigger_data", np.uint32),
        ("mcpd_id", np.uint8),
        ("status", np.uint8),
        ("param0", np.uint64),
        ("param1", np.uint64),
        ("param2", np.uint64),
        ("param3", np.uint64),
        ("base_timestamp", np.uint64),
        ("buffer_number", np.uint16),
    ]
)
"""
Structured dtype of one decoded event row.

Fields of the event kind not selected by ``event_id`` are 0. ``time`` is the
absolute event time in 100 ns units.
"""


class RecordSink:
    """
    Receiver of decoded buffers and events, called in file order.

    All hooks are no-ops; subclasses override what they need.
    """

    def on_buffer_start(self, header):
        """Called once per buffer, before any of its events."""

    def on_event(self, event):
        """Called once per event."""

    def on_finish(self, summary):
        """Called after the terminating buffer header was read."""


class ColumnSink(RecordSink):
    """Accumulates events as columns and converts them to a structured array."""

    def __init__(self):
        self.header = None
        self._columns = {name: [] for name in EVENT_DTYPE.names}

    def __len__(self):
        return len(self._columns["event_id"])

    def on_buffer_start(self, header):
        self.header = header

    def on_event(self, event):
        header = self.header
        row = dict.fromkeys(EVENT_DTYPE.names, 0)
        row["event_id"] = event.event_id
        row["time"] = event.absolute_time
        row["fine_timestamp"] = event.fine_timestamp

        if isinstance(event, DetectorEvent):
            row["x_position"] = event.x_position
            row["tube_id"] = event.tube_id
            row["module_id"] = event.module_id
            row["slot_id"] = event.slot_id
            row["amplitude"] = event.amplitude
        else:
            row["trigger_source"] = event.trigger_source
            row["data_source"] = event.data_source
            row["trigger_data"] = event.trigger_data

        row["mcpd_id"] = header.mcpd_id
        row["status"] = header.status
        row["param0"] = header.param0
        row["param1"] = header.param1
        row["param2"] = header.param2
        row["param3"] = header.param3
        row["base_timestamp"] = header.base_timestamp
        row["buffer_number"] = header.buffer_number

        for name, value in row.items():
            self._columns[name].append(value)

    def on_finish(self, summary):
        logger.debug(f"ColumnSink holds {len(self)} rows from {summary.buffers} buffers")

    def to_numpy(self) -> np.ndarray:
        """
        Convert the collected rows to a structured array.

        Returns:
            NumPy array with dtype EVENT_DTYPE, one element per event
        """
        data = np.empty(len(self), dtype=EVENT_DTYPE)
        for name in EVENT_DTYPE.names:
            data[name] = np.asarray(self._columns[name], dtype=EVENT_DTYPE[name])
        return data

    def detector_events(self) -> np.ndarray:
        """Rows of detector events only."""
        data = self.to_numpy()
        return data[data["event_id"] == EVENT_ID_DETECTOR]

    def save(self, path):
        """Write the rows to ``path`` as a ``.npy`` file."""
        data = self.to_numpy()
        np.save(path, data)
        logger.info(f"Saved {len(data)} events to {path}")
        return data
