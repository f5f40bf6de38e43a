"""Classify the differences between a manifest and a bag's actual contents."""
from typing import Iterable

from bagsum.manifest import FileChecksum


def compare(label: str, claimed: Iterable[FileChecksum], actual: Iterable[FileChecksum]) -> list[str]:
    """Describe every missing, corrupt or extra file.

    `label` names the manifest being checked and prefixes every message.
    Files present in both lists with the same checksum produce nothing. The
    order of the result is not significant.
    """
    claimed_sums = {ck.path: ck.checksum for ck in claimed}
    actual_sums = {ck.path: ck.checksum for ck in actual}

    discrepancies = []
    for path, expected in claimed_sums.items():
        if path not in actual_sums:
            discrepancies.append(f"{label}: missing file '{path}'")
        elif actual_sums[path] != expected:
            discrepancies.append(
                f"{label}: corrupt file '{path}' (manifest checksum {expected}, actual checksum {actual_sums[path]})"
            )

    for path in actual_sums:
        if path not in claimed_sums:
            discrepancies.append(f"{label}: extra file '{path}'")

    return discrepancies
