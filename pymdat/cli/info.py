import click
from rich.console import Console
from rich.table import Table
from rich import box

from pymdat.core import MdatFile
from pymdat.errors import MdatError


@click.command(name="info")
@click.argument("filename", type=click.Path(exists=True))
@click.option("--limit", type=int, default=20, help="Number of buffers listed in the table")
@click.option('--verbose', '-v', is_flag=True, help="Enable verbose output")
@click.pass_context
def info_command(ctx, filename, limit, verbose):
    """Show the buffer structure of an mdat file."""
    # Use either the command-specific verbose flag or the global one
    verbose = verbose or ctx.obj.get('VERBOSE', False)
    console = Console()

    with MdatFile(filename) as mdat_file:
        try:
            headers = mdat_file.scan_buffers()
        except MdatError as e:
            console.print(f"[red]Error: {e}[/red]")
            if verbose:
                console.print_exception()
            ctx.exit(1)

    table = Table(title=f"mdat File: {filename}", box=box.SIMPLE)
    table.add_column("Buffer #", style="cyan")
    table.add_column("Offset[hex]", style="green")
    table.add_column("Length (words)", style="yellow")
    table.add_column("Entries", style="magenta")
    table.add_column("Run", style="blue")
    table.add_column("MCPD", style="blue")
    table.add_column("Header Timestamp", style="green")

    count = len(headers)
    for i, header in enumerate(headers):
        if i < limit // 2 or i >= count - limit // 2 or count <= limit:
            table.add_row(
                str(header.buffer_number),
                f"0x{header.offset:X}",
                str(header.buffer_length),
                str(header.entry_count),
                str(header.run_id),
                str(header.mcpd_id),
                str(header.base_timestamp),
            )
        elif i == limit // 2:
            table.add_row("...", "...", "...", "...", "...", "...", "...")

    console.print(table)

    # Print summary statistics
    console.print("\n[bold]Summary Statistics:[/bold]")
    console.print(f"Total Buffers: {count}")
    console.print(f"Total Events: {sum(h.entry_count for h in headers)}")
    console.print(f"File Size: {mdat_file.file_size / (1024*1024):.2f} MB")
