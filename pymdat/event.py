"""
Decoding of 48-bit mdat event entries.

Bit 47 tells the two event kinds apart:

- 0: detector (tube) event
- 1: trigger event (timers, TTL inputs, compare register, ADCs)

Both kinds keep a 19-bit fine timestamp in bits 0-18, counted in 100 ns
units from the base timestamp of the buffer they belong to.
"""
from collections import namedtuple

from pymdat.errors import TubeIdError
from pymdat.words import WordReader

# Shared
MASK_EVENT_ID = 0x800000000000
SHIFT_EVENT_ID = 47
MASK_TIME = 0x7FFFF

# Detector events
MASK_MOD_ID = 0x700000000000
SHIFT_MOD_ID = 44
MASK_SLOT_ID = 0x078000000000
SHIFT_SLOT_ID = 39
MASK_AMP = 0x003FE0000000
SHIFT_AMP = 29
MASK_XPOS = 0x00001FF80000
SHIFT_XPOS = 19

# Trigger events
MASK_TRIG_ID = 0x700000000000
SHIFT_TRIG_ID = 44
MASK_DATA_ID = 0x0F0000000000
SHIFT_DATA_ID = 40
MASK_TDATA = 0x00FFFFF80000
SHIFT_TDATA = 19

EVENT_ID_DETECTOR = 0
EVENT_ID_TRIGGER = 1


class DetectorEvent(namedtuple("DetectorEvent", [
    "module_id",       # MPSD module inside the MCPD, 0-7
    "slot_id",         # tube channel inside the MPSD, 0-15
    "amplitude",
    "x_position",      # not filled by the current hardware
    "mcpd_id",
    "fine_timestamp",
    "absolute_time",
])):
    """A neutron (tube) event."""
    __slots__ = ()

    event_id = EVENT_ID_DETECTOR

    @property
    def tube_id(self) -> int:
        """
        Tube location: ``(mcpd_id - 1) << 6 | module_id << 4 | slot_id``.

        Raises:
            TubeIdError: If the MCPD ID is 0, for which no tube numbering exists
        """
        if self.mcpd_id < 1:
            raise TubeIdError(f"Cannot derive tube ID for MCPD ID {self.mcpd_id}")
        return (self.mcpd_id - 1) << 6 | self.module_id << 4 | self.slot_id


class TriggerEvent(namedtuple("TriggerEvent", [
    "trigger_source",  # 1-4 timers, 5-6 rear TTL inputs, 7 compare register
    "data_source",     # 0-3 front inputs, 4-5 rear inputs, 6-7 ADC1/2
    "trigger_data",    # counter, timer or ADC value; not all bits valid for every source
    "fine_timestamp",
    "absolute_time",
])):
    """A self-trigger event (monitor, chopper, ...)."""
    __slots__ = ()

    event_id = EVENT_ID_TRIGGER


def split_entry(raw: int, mcpd_id: int, base_timestamp: int):
    """
    Split a raw 48-bit entry into a DetectorEvent or TriggerEvent.

    Args:
        raw: 48-bit entry value
        mcpd_id: MCPD ID of the enclosing buffer
        base_timestamp: Base timestamp of the enclosing buffer

    Returns:
        DetectorEvent or TriggerEvent
    """
    fine_timestamp = raw & MASK_TIME
    absolute_time = base_timestamp + fine_timestamp

    if (raw & MASK_EVENT_ID) >> SHIFT_EVENT_ID == EVENT_ID_DETECTOR:
        return DetectorEvent(
            module_id=(raw & MASK_MOD_ID) >> SHIFT_MOD_ID,
            slot_id=(raw & MASK_SLOT_ID) >> SHIFT_SLOT_ID,
            amplitude=(raw & MASK_AMP) >> SHIFT_AMP,
            x_position=(raw & MASK_XPOS) >> SHIFT_XPOS,
            mcpd_id=mcpd_id,
            fine_timestamp=fine_timestamp,
            absolute_time=absolute_time,
        )

    return TriggerEvent(
        trigger_source=(raw & MASK_TRIG_ID) >> SHIFT_TRIG_ID,
        data_source=(raw & MASK_DATA_ID) >> SHIFT_DATA_ID,
        trigger_data=(raw & MASK_TDATA) >> SHIFT_TDATA,
        fine_timestamp=fine_timestamp,
        absolute_time=absolute_time,
    )


def decode_event(reader: WordReader, header):
    """
    Read and decode the next event entry of a buffer.

    Args:
        reader: WordReader positioned at an event entry
        header: BufferHeader of the buffer being decoded

    Returns:
        DetectorEvent or TriggerEvent

    Raises:
        TruncatedError: If fewer than 6 bytes remain
    """
    raw = reader.read_entry()
    return split_entry(raw, header.mcpd_id, header.base_timestamp)
