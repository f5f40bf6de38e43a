"""Named checksum algorithms and helpers to hash streams and files."""
import hashlib

from pathlib import Path
from typing import BinaryIO, Callable, Union

from bagsum.errors import UnsupportedAlgorithmError

CHUNK_SIZE = 1024 * 1024

ALGORITHMS: dict[str, Callable] = {
    "md5": hashlib.md5,
    "sha1": hashlib.sha1,
    "sha256": hashlib.sha256,
    "sha512": hashlib.sha512,
}


def register_algorithm(name: str, factory: Callable):
    """Make another hashlib-style constructor available under `name`."""
    ALGORITHMS[name] = factory


def supported_algorithms() -> list[str]:
    return sorted(ALGORITHMS)


class Hasher:
    """Hash streams and files with one named algorithm.

    Every call starts from a new digest object, so a single Hasher can be
    reused for any number of files, including from several threads.
    """

    def __init__(self, name: str, factory: Callable):
        self.name = name
        self.factory = factory

    def __repr__(self):
        return f"Hasher({self.name!r})"

    def sum(self, stream: BinaryIO) -> str:
        digest = self.factory()
        for chunk in iter(lambda: stream.read(CHUNK_SIZE), b""):
            digest.update(chunk)
        return digest.hexdigest()

    def file_sum(self, path: Union[str, Path]) -> str:
        with open(path, "rb") as fp:
            return self.sum(fp)


def new_hasher(name: str) -> Hasher:
    """Look up `name` in the registry, raising if it is unknown."""
    try:
        factory = ALGORITHMS[name]
    except KeyError:
        raise UnsupportedAlgorithmError(
            f"Unsupported checksum algorithm '{name}', must be one of: {', '.join(supported_algorithms())}"
        ) from None
    return Hasher(name, factory)
