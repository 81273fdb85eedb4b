import logging
import click

from pymdat import __version__

# Import and register commands
from pymdat.cli.info import info_command
from pymdat.cli.dump import dump_command
from pymdat.cli.convert import convert_command
from pymdat.cli.hex import hex_command


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx, verbose):
    """mdat event file inspection and conversion toolkit."""
    # Configure logging
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=log_level,
                        format='%(levelname)s: %(message)s')

    # Create a context object to pass data between commands
    ctx.ensure_object(dict)
    ctx.obj['VERBOSE'] = verbose


# Register commands with the CLI
cli.add_command(info_command)
cli.add_command(dump_command)
cli.add_command(convert_command)
cli.add_command(hex_command)


# Entry point for the CLI
def main():
    """Entry point for the CLI when installed via pip."""
    cli(prog_name="pymdat")


if __name__ == "__main__":
    main()
