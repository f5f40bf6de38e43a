"""Generate checksums for the payload and tag files of a bag."""
import fnmatch
import logging
import os

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, Iterator, Optional, Union

from bagsum.cache import Cacher, NoopCache
from bagsum.errors import BagIOError, NotABagError
from bagsum.hasher import Hasher
from bagsum.manifest import FileChecksum, sort_checksums
from bagsum.utils import is_dir, walk

logger = logging.getLogger(__name__)

TAG_MANIFEST_PATTERN = "tagmanifest-*.txt"


def _checksum(root: Path, path: Path, hasher: Hasher, cache: Cacher) -> FileChecksum:
    rel_path = path.relative_to(root).as_posix()
    checksum, found = cache.get_sum(rel_path)
    if found:
        logger.debug(f"Using cached checksum for '{rel_path}'")
    else:
        try:
            checksum = hasher.file_sum(path)
        except OSError as err:
            raise BagIOError(f"Cannot compute {hasher.name} checksum of '{path}': {err}") from err
    cache.set_sum(rel_path, checksum)
    return FileChecksum(rel_path, checksum)


def _checksum_files(
    root: Path,
    paths: Iterable[Path],
    hasher: Hasher,
    cache: Cacher,
    workers: int,
) -> list[FileChecksum]:
    """Checksum every path, stopping at the first failure.

    With one worker the paths are consumed lazily, so a walk error or an
    unreadable file stops the pass before any later file is touched.
    """
    if workers <= 1:
        return sort_checksums(_checksum(root, path, hasher, cache) for path in paths)

    paths = list(paths)
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(_checksum, root, path, hasher, cache) for path in paths]
        try:
            results = [future.result() for future in futures]
        except BaseException:
            for future in futures:
                future.cancel()
            raise
    return sort_checksums(results)


def _payload_files(data_dir: Path) -> Iterator[Path]:
    try:
        for path, regular in walk(data_dir):
            if regular:
                yield path
            elif not is_dir(path):
                logger.debug(f"Skipping '{path}', not a regular file")
    except OSError as err:
        raise BagIOError(f"Cannot walk '{data_dir}': {err}") from err


def _tag_files(root: Path) -> Iterator[Path]:
    try:
        with os.scandir(root) as entries:
            names = sorted(entry.name for entry in entries if entry.is_file(follow_symlinks=False))
    except OSError as err:
        raise BagIOError(f"Cannot list tag files in '{root}': {err}") from err
    for name in names:
        if fnmatch.fnmatchcase(name, TAG_MANIFEST_PATTERN):
            continue
        yield root / name


def generate_payload_checksums(
    bag_root: Union[str, Path],
    hasher: Hasher,
    cache: Optional[Cacher] = None,
    workers: int = 1,
) -> list[FileChecksum]:
    """Checksum every regular file under `<bag_root>/data`, sorted by path.

    Paths are relative to the resolved bag root and start with `data/`.
    """
    root = Path(bag_root).resolve()
    data_dir = root / "data"
    if not is_dir(data_dir):
        raise NotABagError(f"'{root}' is not a bag: '{data_dir}' is not a directory")
    logger.info(f"Generating {hasher.name} checksums for payload in '{data_dir}'")
    return _checksum_files(root, _payload_files(data_dir), hasher, NoopCache() if cache is None else cache, workers)


def generate_tag_checksums(
    bag_root: Union[str, Path],
    hasher: Hasher,
    cache: Optional[Cacher] = None,
    workers: int = 1,
) -> list[FileChecksum]:
    """Checksum the regular files directly in the bag root, except tag manifests."""
    root = Path(bag_root).resolve()
    logger.info(f"Generating {hasher.name} checksums for tag files in '{root}'")
    return _checksum_files(root, _tag_files(root), hasher, NoopCache() if cache is None else cache, workers)
