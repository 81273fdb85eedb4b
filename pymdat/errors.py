class MdatError(Exception):
    """
    Base class for all mdat decoding errors.

    Carries the byte offset where decoding failed and, once the framing
    layer knows it, the number of the buffer being decoded.
    """

    def __init__(self, message: str, offset: int = None, buffer_number: int = None):
        super().__init__(message)
        self.message = message
        self.offset = offset
        self.buffer_number = buffer_number

    def __str__(self) -> str:
        parts = [self.message]
        if self.offset is not None:
            parts.append(f"offset 0x{self.offset:X}")
        if self.buffer_number is not None:
            parts.append(f"buffer {self.buffer_number}")
        return " | ".join(parts)


class TruncatedError(MdatError):
    """Fewer bytes were available than a field or record requires."""

    def __init__(self, offset: int, needed: int, available: int, buffer_number: int = None):
        super().__init__(f"Truncated stream: needed {needed} bytes, got {available}",
                         offset, buffer_number)
        self.needed = needed
        self.available = available


class FormatError(MdatError):
    """A structurally impossible value was decoded."""


class TubeIdError(FormatError):
    """Tube ID requested for an event whose MCPD ID is 0."""
