"""Exceptions raised while packing or validating a bag.

A validation that finds problems is not an error: `Bag.validate` returns the
discrepancies. These exceptions mean the operation itself could not complete.
"""


class BagError(Exception):
    """Base class for every failure raised by bagsum."""


class UnsupportedAlgorithmError(BagError, ValueError):
    """The requested checksum algorithm is not in the registry."""


class NotABagError(BagError):
    """The bag root has no `data` payload directory."""


class MissingManifestError(BagError):
    """The mandatory payload manifest does not exist."""


class EmptyManifestError(BagError):
    """The payload manifest lists no files."""


class ManifestFormatError(BagError, ValueError):
    """A manifest contains a line that is not `<digest>  <path>`."""


class ManifestExistsError(BagError):
    """A tag file would be overwritten."""


class BagIOError(BagError):
    """Reading, walking or writing part of the bag failed."""
