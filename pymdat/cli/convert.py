import click
from rich.console import Console

from pymdat.core import MdatFile
from pymdat.errors import MdatError
from pymdat.sink import ColumnSink


def default_output_name(filename: str) -> str:
    """Output name for a converted file: ``run.mdat`` -> ``run.npy``."""
    if filename.endswith(".mdat"):
        return filename[:-len(".mdat")] + ".npy"
    return filename + ".npy"


@click.command(name="convert")
@click.argument("filename", type=click.Path(exists=True))
@click.option("--output", "-o", type=click.Path(), default=None,
              help="Output .npy file (default: input name with .mdat replaced by .npy)")
@click.option('--verbose', '-v', is_flag=True, help="Enable verbose output")
@click.pass_context
def convert_command(ctx, filename, output, verbose):
    """Convert an mdat file into a NumPy structured array, one row per event."""
    verbose = verbose or ctx.obj.get('VERBOSE', False)
    console = Console()
    output = output or default_output_name(filename)
    # numpy.save adds the suffix itself when it is missing
    if not output.endswith(".npy"):
        output += ".npy"

    sink = ColumnSink()
    with MdatFile(filename) as mdat_file:
        try:
            summary = mdat_file.decode(sink)
            sink.save(output)
        except (MdatError, OSError) as e:
            console.print(f"[red]Error: {e}[/red]")
            if verbose:
                console.print_exception()
            ctx.exit(1)

    console.print("-" * 57)
    console.print(f"A total of {summary.events} events were read from {summary.buffers} buffers")
    console.print(f"Output written to [green]{output}[/green]")
    console.print("-" * 57)
