"""Read and write BagIt manifest files.

A manifest has one `<hex digest>  <path>` line per file, paths relative to
the bag root.
"""
import logging

from pathlib import Path
from typing import Iterable, NamedTuple, Optional, Union

from bagsum.errors import ManifestExistsError, ManifestFormatError
from bagsum.utils import SafeFile, must_not_exist

logger = logging.getLogger(__name__)


class FileChecksum(NamedTuple):
    path: str
    checksum: str


def sort_checksums(checksums: Iterable[FileChecksum]) -> list[FileChecksum]:
    return sorted(checksums, key=lambda ck: ck.path)


def encode(checksums: Iterable[FileChecksum]) -> str:
    """Serialize checksums, in the order given, to manifest text."""
    return "".join(f"{ck.checksum}  {ck.path}\n" for ck in checksums)


def decode(text: str, source: Optional[str] = None) -> list[FileChecksum]:
    """Parse manifest text into checksums sorted by path.

    Blank lines are skipped. Any other line must hold exactly two
    whitespace-separated fields, so paths containing spaces are rejected.
    """
    checksums = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        fields = line.split()
        if len(fields) != 2:
            where = f"{source}:{lineno}" if source else f"line {lineno}"
            raise ManifestFormatError(f"{where}: invalid manifest line {line!r}")
        checksums.append(FileChecksum(path=fields[1], checksum=fields[0]))
    return sort_checksums(checksums)


def read_manifest(path: Union[str, Path]) -> list[FileChecksum]:
    """Load a manifest file. FileNotFoundError is left for the caller to judge."""
    with open(path, "r", encoding="utf-8") as fp:
        try:
            text = fp.read()
        except UnicodeDecodeError as err:
            raise ManifestFormatError(f"{path}: manifest is not valid UTF-8: {err}") from err
    return decode(text, source=str(path))


def check_path(path: str, source: Optional[str] = None):
    """Raise if `path` could not be read back from a manifest line."""
    where = f"{source}: " if source else ""
    if not path or len(path.split()) != 1 or path.strip() != path:
        raise ManifestFormatError(f"{where}path {path!r} contains whitespace and cannot be listed in a manifest")
    try:
        path.encode("utf-8")
    except UnicodeEncodeError as err:
        raise ManifestFormatError(f"{where}path {path!r} is not valid UTF-8: {err}") from err


def write_manifest(path: Union[str, Path], checksums: Iterable[FileChecksum]):
    """Atomically write a new manifest, refusing to replace an existing one.

    Every path is checked before anything is written, so a manifest that
    `decode` would reject is never created.
    """
    if not must_not_exist(path):
        raise ManifestExistsError(f"Manifest file '{path}' must not exist")
    checksums = list(checksums)
    for ck in checksums:
        check_path(ck.path, source=str(path))
    try:
        with SafeFile(path) as fp:
            fp.write(encode(checksums))
    except FileExistsError as err:
        raise ManifestExistsError(f"Manifest file '{path}' must not exist") from err
    logger.info(f"Wrote manifest '{path}'")
