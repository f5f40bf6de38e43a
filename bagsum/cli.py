"""Command line interface for bagsum."""
import logging
import sys
from pathlib import Path
from typing import Optional
import click

from bagsum.bag import Bag
from bagsum.cache import JSONFileCache
from bagsum.errors import BagError
from bagsum.hasher import supported_algorithms

EXIT_INVALID = 1
EXIT_ERROR = 255

algorithm_argument = click.argument('algorithm', type=click.Choice(supported_algorithms()))
bag_directory_argument = click.argument(
    'bag_directory',
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
workers_option = click.option(
    '-w',
    '--workers',
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help='Number of files to hash in parallel',
)


def fail(message: str):
    click.echo(f'Error: {message}', err=True)
    sys.exit(EXIT_ERROR)


@click.group(context_settings={'auto_envvar_prefix': 'BAGSUM'})
@click.option('-v', '--verbose/--no-verbose', default=False, help='Print more information about the process')
def cli(verbose: bool):
    """Write and validate BagIt archives.

    Every option can also be set with a BAGSUM_ environment variable, e.g.
    BAGSUM_VERBOSE=1 or BAGSUM_WRITE_WORKERS=4.
    """
    logging.basicConfig(format='%(levelname)s: %(message)s', level=logging.INFO if verbose else logging.WARNING)


@cli.command()
@algorithm_argument
@bag_directory_argument
@workers_option
@click.option('-f', '--force/--no-force', default=False, help='Delete existing manifests and bagit.txt first')
@click.option(
    '-c',
    '--cache',
    'cache_path',
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help='JSON file of previously computed payload checksums, updated after writing',
)
def write(algorithm: str, bag_directory: Path, workers: int, force: bool, cache_path: Optional[Path]):
    """Write manifests for the payload in BAG_DIRECTORY/data."""
    try:
        cache = JSONFileCache(cache_path, algorithm) if cache_path else None
        bag = Bag(bag_directory, algorithm, cache=cache, workers=workers)
        if force:
            bag.clear_tag_files()
        bag.write()
        if cache:
            cache.save()
    except (BagError, OSError, ValueError) as err:
        fail(f"Cannot write tag files for '{bag_directory}': {err}")
    click.echo(f"Wrote {len(bag.actual_checksums)} checksums to '{bag.manifest_path}'")


@cli.command()
@algorithm_argument
@bag_directory_argument
@workers_option
def validate(algorithm: str, bag_directory: Path, workers: int):
    """Validate BAG_DIRECTORY against its manifests."""
    click.echo(f"Validating bag at '{bag_directory}'")
    try:
        discrepancies = Bag(bag_directory, algorithm, workers=workers).validate()
    except BagError as err:
        fail(f"Cannot validate '{bag_directory}': {err}")

    if discrepancies:
        click.echo('Bag is invalid:', err=True)
        for discrepancy in discrepancies:
            click.echo(f'  - {discrepancy}', err=True)
        sys.exit(EXIT_INVALID)
    click.echo('Valid')


if __name__ == "__main__":
    cli()
