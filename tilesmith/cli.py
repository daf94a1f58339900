"""
TileSmith CLI - Command-line interface for converting scene archives
"""

import click
import logging
import sys
from tilesmith import __version__
from tilesmith.config import DEFAULT_SRS, ConversionOptions
from tilesmith.exceptions import DecodeError, OutputError, PackingError, ProjectionError, TileSmithError
from tilesmith.pipeline.exporter import convert_archive


def _configure_logging(verbose: int) -> None:
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


@click.command()
@click.version_option(version=__version__)
@click.argument('input_path', metavar='INPUT')
@click.argument('output_path', metavar='OUTPUT')
@click.option('--overwrite', is_flag=True, help='Generate output even if output directory exists.')
@click.option('--srs', default=DEFAULT_SRS, show_default=True, help='Destination SRS of converted meshes (EPSG code, WKT or PROJ string).')
@click.option('--workers', type=click.IntRange(min=1), default=None, help='Number of worker threads (default: CPU count).')
@click.option('--verbose', '-v', count=True, help='Show progress (repeat for debug output).')
def cli(input_path, output_path, overwrite, srs, workers, verbose):
    """
    TileSmith - Convert an SLPK archive into textured meshes in OBJ format.

    INPUT is an .slpk archive (or extracted directory), OUTPUT the
    destination directory.

    Examples:
        tilesmith city.slpk city-obj
        tilesmith city.slpk city-obj --srs EPSG:32633 --overwrite
    """
    _configure_logging(verbose)

    try:
        options = ConversionOptions(srs=srs, overwrite=overwrite)
        if workers:
            options.workers = workers

        if verbose:
            click.echo(f"Converting: {input_path} → {output_path}")

        # Blocking conversion on the worker pool
        count = convert_archive(input_path, output_path, options)

        click.secho(f"✓ Success! Wrote {count} meshes to {output_path}", fg='green')

    except DecodeError as e:
        click.secho(f"Decode Error: {e}", fg='red', err=True)
        sys.exit(1)
    except PackingError as e:
        click.secho(f"Packing Error: {e}", fg='red', err=True)
        sys.exit(1)
    except ProjectionError as e:
        click.secho(f"Projection Error: {e}", fg='red', err=True)
        sys.exit(1)
    except OutputError as e:
        click.secho(f"Output Error: {e}", fg='red', err=True)
        sys.exit(1)
    except TileSmithError as e:
        click.secho(f"Error: {e}", fg='red', err=True)
        sys.exit(1)
    except ValueError as e:
        click.secho(f"Error: {e}", fg='red', err=True)
        sys.exit(1)
    except Exception as e:
        click.secho(f"Unexpected error: {e}", fg='red', err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


def main():
    """Entry point for the CLI"""
    cli()


if __name__ == '__main__':
    main()
