"""Pluggable stores of previously computed checksums.

A cache lets a caller skip hashing files it knows have not changed. Keys are
always paths relative to the bag root (`data/some/file.nc`), never absolute
paths, so a cache stays valid if the bag directory is moved.
"""
import json
import logging
import threading

from pathlib import Path
from typing import Optional, Protocol, Union

from bagsum.utils import SafeFile

logger = logging.getLogger(__name__)


class Cacher(Protocol):
    def get_sum(self, path: str) -> tuple[Optional[str], bool]:
        ...

    def set_sum(self, path: str, value: str):
        ...


class NoopCache:
    """Cache that never remembers anything."""

    def get_sum(self, path: str) -> tuple[Optional[str], bool]:
        return None, False

    def set_sum(self, path: str, value: str):
        pass


class MemoryCache:
    """Thread safe in-memory cache, usable by parallel hashing workers."""

    def __init__(self, sums: Optional[dict] = None):
        self._sums = dict(sums or {})
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return len(self._sums)

    def get_sum(self, path: str) -> tuple[Optional[str], bool]:
        with self._lock:
            if path in self._sums:
                return self._sums[path], True
        return None, False

    def set_sum(self, path: str, value: str):
        with self._lock:
            self._sums[path] = value

    def sums(self) -> dict:
        with self._lock:
            return dict(self._sums)


class JSONFileCache(MemoryCache):
    """MemoryCache persisted to a JSON file between runs.

    The file records the algorithm its sums were computed with; a file for a
    different algorithm is ignored rather than trusted.
    """

    def __init__(self, path: Union[str, Path], algorithm: str):
        self.path = Path(path)
        self.algorithm = algorithm
        super().__init__(self._load())

    def _load(self) -> dict:
        if not self.path.is_file():
            return {}
        with open(self.path, "r", encoding="utf-8") as fp:
            stored = json.load(fp)
        if stored.get("algorithm") != self.algorithm:
            logger.warning(
                f"Ignoring checksum cache '{self.path}': it holds {stored.get('algorithm')} sums, not {self.algorithm}"
            )
            return {}
        sums = stored.get("sums", {})
        logger.info(f"Loaded {len(sums)} cached checksums from '{self.path}'")
        return sums

    def save(self):
        """Replace the cache file with the current contents."""
        payload = json.dumps({"algorithm": self.algorithm, "sums": self.sums()}, indent=2, sort_keys=True)
        with SafeFile(self.path, replace=True) as fp:
            fp.write(payload + "\n")
        logger.info(f"Saved {len(self)} cached checksums to '{self.path}'")
