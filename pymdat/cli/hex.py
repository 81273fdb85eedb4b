import click
from rich.console import Console

from pymdat.utils import make_hex_dump


@click.command(name="hex")
@click.argument("filename", type=click.Path(exists=True))
@click.argument("offset", type=int, default=0)
@click.option("--size", "-s", type=int, default=30, help="Number of 16-bit words to display (default: 30)")
@click.option("--bytes", "-b", "as_bytes", is_flag=True, help="Interpret offset as bytes instead of words")
@click.pass_context
def hex_command(ctx, filename, offset, size, as_bytes):
    """
    Display hexadecimal dump of the file at the specified offset.

    OFFSET is specified in number of 16-bit words by default, or in bytes if --bytes is used.

    Examples:

    \b
    # Show 30 words starting at word offset 29 (first buffer header)
    pymdat hex run.mdat 29

    \b
    # Show 20 words starting at byte offset 58
    pymdat hex run.mdat 58 --size 20 --bytes
    """
    console = Console()

    # Convert word offset to byte offset if needed
    byte_offset = offset if as_bytes else offset * 2

    with open(filename, 'rb') as file:
        file.seek(byte_offset)
        data = file.read(size * 2)

    title = f"Memory dump at offset: {f'0x{byte_offset:X}' if as_bytes else f'word {offset}'}"
    console.print(make_hex_dump(data, title=title, start_offset=byte_offset), markup=False, highlight=False)
