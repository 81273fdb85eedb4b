import struct

import click
from rich.console import Console

from pymdat.buffer_header import BufferHeader, TRAILER_SIZE
from pymdat.core import MdatFile
from pymdat.errors import MdatError, TubeIdError
from pymdat.event import DetectorEvent
from pymdat.words import WORD_FORMAT


def format_event(event) -> str:
    """Multi-line description of a decoded event."""
    if isinstance(event, DetectorEvent):
        try:
            tube_id = str(event.tube_id)
        except TubeIdError:
            tube_id = "n/a (MCPD ID 0)"
        lines = [
            "Detector event",
            f"  tubeID:          {tube_id}",
            f"  modID:           {event.module_id}",
            f"  slotID:          {event.slot_id}",
            f"  amp:             {event.amplitude}",
            f"  xpos:            {event.x_position}",
        ]
    else:
        lines = [
            "Trigger event",
            f"  trigID:          {event.trigger_source}",
            f"  dataID:          {event.data_source}",
            f"  tData:           {event.trigger_data}",
        ]
    lines.append(f"  time stamp:      {event.fine_timestamp}")
    lines.append(f"  absolute time:   {event.absolute_time}")
    return '\n'.join(lines)


def read_trailer(file, header: BufferHeader):
    """Read the trailer words of a buffer without disturbing the decoder."""
    position = file.tell()
    file.seek(header.offset + header.size - TRAILER_SIZE)
    data = file.read(TRAILER_SIZE)
    file.seek(position)
    return [struct.unpack(WORD_FORMAT, data[i:i+2])[0] for i in range(0, len(data) - 1, 2)]


@click.command(name="dump")
@click.argument("filename", type=click.Path(exists=True))
@click.option("--buffers/--no-buffers", default=True, help="Print every buffer header")
@click.option("--events/--no-events", default=False, help="Print every event")
@click.option("--trailer/--no-trailer", default=False, help="Print the end-of-buffer padding words")
@click.option("--limit", type=int, default=None, help="Stop after this many buffers")
@click.option('--verbose', '-v', is_flag=True, help="Enable verbose output")
@click.pass_context
def dump_command(ctx, filename, buffers, events, trailer, limit, verbose):
    """Print decoded buffers and events in human-readable form."""
    verbose = verbose or ctx.obj.get('VERBOSE', False)
    console = Console()
    separator = "-" * 52

    def show_trailer(mdat_file, header):
        console.print("[dim]--- Buffer padding ---[/dim]")
        for word in read_trailer(mdat_file.file, header):
            console.print(f"{word:x}")

    with MdatFile(filename) as mdat_file:
        mdat = mdat_file.iter_records()
        current = None
        buffer_total = 0
        event_total = 0
        try:
            for record in mdat:
                if isinstance(record, BufferHeader):
                    if trailer and current is not None:
                        show_trailer(mdat_file, current)
                    if limit is not None and mdat.buffer_count > limit:
                        current = None
                        break
                    current = record
                    buffer_total += 1
                    if buffers:
                        console.print(separator)
                        console.print(str(record), markup=False)
                else:
                    event_total += 1
                    if not events:
                        continue
                    console.print(separator)
                    console.print(format_event(record), markup=False)

            if trailer and current is not None:
                show_trailer(mdat_file, current)
        except MdatError as e:
            console.print(f"[red]Error: {e}[/red]")
            if verbose:
                console.print_exception()
            ctx.exit(1)

        console.print(separator)
        console.print(f"A total of {event_total} events were read from {buffer_total} buffers")
