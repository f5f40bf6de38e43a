"""Module for writing and validating BagIt archives."""
import logging
import os

from pathlib import Path
from typing import Optional, Union

from bagsum.cache import Cacher, NoopCache
from bagsum.checksums import generate_payload_checksums, generate_tag_checksums
from bagsum.compare import compare
from bagsum.errors import BagIOError, EmptyManifestError, ManifestExistsError, MissingManifestError
from bagsum.hasher import new_hasher
from bagsum.manifest import FileChecksum, read_manifest, write_manifest
from bagsum.utils import SafeFile, must_not_exist

logger = logging.getLogger(__name__)

BAGIT_TXT = "bagit.txt"
BAGIT_TXT_CONTENTS = "BagIt-Version: 0.97\nTag-File-Character-Encoding: UTF-8\n"


def is_bag(bag_directory: Path) -> bool:
    """Check if directory is a BagIt archive."""
    return (Path(bag_directory) / BAGIT_TXT).is_file()


class Bag:
    """A bag rooted at one directory, checksummed with one algorithm.

    The checksum lists are filled in by the operations that compute or read
    them and are not meant to outlive a single write or validate call:

    * `actual_checksums` / `actual_tag_sums`: freshly computed from disk
    * `manifest_checksums` / `manifest_tag_sums`: read from the manifests;
      `manifest_tag_sums` stays None when the bag has no tag manifest

    The optional cache is only consulted for payload files while writing.
    Validation always hashes every file.
    """

    def __init__(
        self,
        root: Union[str, Path],
        algorithm: str,
        cache: Optional[Cacher] = None,
        workers: int = 1,
    ):
        self.root = Path(root).resolve()
        self.hasher = new_hasher(algorithm)
        self.cache = NoopCache() if cache is None else cache
        self.workers = workers

        self.actual_checksums: list[FileChecksum] = []
        self.actual_tag_sums: list[FileChecksum] = []
        self.manifest_checksums: list[FileChecksum] = []
        self.manifest_tag_sums: Optional[list[FileChecksum]] = None

    def __repr__(self):
        return f"Bag({str(self.root)!r}, {self.algorithm!r})"

    @property
    def algorithm(self) -> str:
        return self.hasher.name

    @property
    def manifest_path(self) -> Path:
        return self.root / f"manifest-{self.algorithm}.txt"

    @property
    def tag_manifest_path(self) -> Path:
        return self.root / f"tagmanifest-{self.algorithm}.txt"

    @property
    def bagit_path(self) -> Path:
        return self.root / BAGIT_TXT

    def generate_checksums(self, cache: Optional[Cacher] = None):
        self.actual_checksums = generate_payload_checksums(self.root, self.hasher, cache, self.workers)

    def generate_tag_sums(self):
        self.actual_tag_sums = generate_tag_checksums(self.root, self.hasher, workers=self.workers)

    def write(self):
        """Checksum the payload and write the manifest, bagit.txt and tag manifest.

        Each step must succeed before the next runs. Nothing is rolled back
        on failure, and no existing tag file is ever replaced.
        """
        logger.info(f"Using bag directory '{self.root}'")
        self.generate_checksums(self.cache)
        self._write_manifest(self.manifest_path, self.actual_checksums)
        self._write_bagit_txt()
        # bagit.txt and the manifest must exist before this so they are covered
        self.generate_tag_sums()
        self._write_manifest(self.tag_manifest_path, self.actual_tag_sums)

    def _write_manifest(self, path: Path, checksums: list[FileChecksum]):
        try:
            write_manifest(path, checksums)
        except OSError as err:
            raise BagIOError(f"Cannot write manifest '{path}': {err}") from err

    def _write_bagit_txt(self):
        if not must_not_exist(self.bagit_path):
            raise ManifestExistsError(f"Bag declaration '{self.bagit_path}' must not exist")
        try:
            with SafeFile(self.bagit_path) as fp:
                fp.write(BAGIT_TXT_CONTENTS)
        except FileExistsError as err:
            raise ManifestExistsError(f"Bag declaration '{self.bagit_path}' must not exist") from err
        except OSError as err:
            raise BagIOError(f"Cannot write '{self.bagit_path}': {err}") from err
        logger.info(f"Wrote '{self.bagit_path}'")

    def read_manifests(self):
        """Load the payload manifest (required) and the tag manifest (optional)."""
        try:
            self.manifest_checksums = read_manifest(self.manifest_path)
        except FileNotFoundError as err:
            raise MissingManifestError(f"Manifest '{self.manifest_path}' does not exist") from err
        except OSError as err:
            raise BagIOError(f"Cannot read manifest '{self.manifest_path}': {err}") from err

        try:
            self.manifest_tag_sums = read_manifest(self.tag_manifest_path)
        except FileNotFoundError:
            logger.info(f"No tag manifest at '{self.tag_manifest_path}', skipping tag file validation")
            self.manifest_tag_sums = None
        except OSError as err:
            raise BagIOError(f"Cannot read tag manifest '{self.tag_manifest_path}': {err}") from err

    def validate(self) -> list[str]:
        """Check the bag against its manifests, returning any discrepancies.

        Tag files are checked first. If they do not match, the payload
        manifest cannot be trusted and those discrepancies are returned
        without checking the payload.
        """
        logger.info(f"Validating bag '{self.root}' with {self.algorithm}")
        self.read_manifests()
        if not self.manifest_checksums:
            raise EmptyManifestError(f"Manifest '{self.manifest_path}' lists no files")

        if self.manifest_tag_sums is not None:
            self.generate_tag_sums()
            discrepancies = compare(self.tag_manifest_path.name, self.manifest_tag_sums, self.actual_tag_sums)
            if discrepancies:
                return discrepancies

        self.generate_checksums()
        return compare(self.manifest_path.name, self.manifest_checksums, self.actual_checksums)

    def clear_tag_files(self):
        """Delete this algorithm's manifests and bagit.txt so the bag can be written again."""
        for path in (self.tag_manifest_path, self.manifest_path, self.bagit_path):
            if must_not_exist(path):
                continue
            try:
                os.remove(path)
            except OSError as err:
                raise BagIOError(f"Cannot remove '{path}': {err}") from err
            logger.info(f"Removed '{path}'")
