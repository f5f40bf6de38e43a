"""Filesystem helpers too generic to be in other modules."""
import hashlib
import logging
import os
import stat
import tempfile

from pathlib import Path
from typing import Iterator, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def is_dir(path: PathLike) -> bool:
    return os.path.isdir(path)


def must_not_exist(path: PathLike) -> bool:
    """Check that nothing, not even a dangling symlink, exists at `path`."""
    return not os.path.lexists(path)


def _raise(err: OSError):
    raise err


def walk(top: PathLike) -> Iterator[tuple[Path, bool]]:
    """Yield `(path, is_regular_file)` for every descendant of `top`.

    Symlinks are never followed and are reported as not regular. Errors
    reading a directory are raised rather than skipped.
    """
    for dirpath, dirnames, filenames in os.walk(top, onerror=_raise):
        dirnames.sort()
        for name in dirnames + sorted(filenames):
            path = Path(dirpath) / name
            yield path, stat.S_ISREG(os.lstat(path).st_mode)


class SafeFile:
    """Write text to a temporary file and only move it into place once complete.

    The temporary file lives next to the destination so the final move is
    atomic. An existing destination is an error unless `replace` is set.
    Use as a context manager; any exception inside the block cancels the
    write and leaves nothing behind:

        with SafeFile(path) as fp:
            fp.write(text)
    """

    def __init__(self, path: PathLike, replace: bool = False):
        self.final_path = Path(path)
        self.replace = replace
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.final_path.name}-", dir=self.final_path.parent)
        self.temp_path = Path(tmp_name)
        self._fp = os.fdopen(fd, "w", encoding="utf-8", newline="")
        self._digest = hashlib.sha256()
        self._placed = False
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None:
            self.cancel()
            return False
        self.close()
        return False

    def write(self, text: str) -> int:
        self._digest.update(text.encode("utf-8"))
        return self._fp.write(text)

    def close(self):
        """Flush the temp file, verify it and move it to the final path."""
        if self.closed:
            return
        try:
            self._fp.flush()
            os.fsync(self._fp.fileno())
            self._fp.close()
            written = hashlib.sha256()
            with open(self.temp_path, "rb") as fp:
                for chunk in iter(lambda: fp.read(1024 * 1024), b""):
                    written.update(chunk)
            if written.hexdigest() != self._digest.hexdigest():
                raise OSError(f"Temporary file '{self.temp_path}' does not match the data written to it")
            if self.replace:
                os.replace(self.temp_path, self.final_path)
            else:
                # link fails with FileExistsError instead of clobbering the destination
                os.link(self.temp_path, self.final_path)
                self._placed = True
                os.remove(self.temp_path)
            # temp files are only accessible by the creating user, so make readable
            os.chmod(self.final_path, 0o644)
        except BaseException:
            self.cancel()
            raise
        self.closed = True
        logger.debug(f"Wrote '{self.final_path}'")

    def cancel(self):
        """Remove the temp file, and the final file if this writer created it."""
        self._fp.close()
        if self.temp_path.exists():
            os.remove(self.temp_path)
        if self._placed:
            os.remove(self.final_path)
            self._placed = False
        self.closed = True
