# crash_diagnostics/core/listing.py

import os
from dataclasses import dataclass
from typing import List

from crash_diagnostics.config import LISTING_SEPARATOR


@dataclass(frozen=True)
class DirectoryListing:
    """
    Full paths of a directory's direct children, in the order the OS enumerates
    them. No sorting, no recursion and no hashing: this is a plain path dump.
    """
    root: str
    entries: List[str]

    def render(self, separator: str = LISTING_SEPARATOR) -> str:
        return separator.join(self.entries)

    def to_bytes(self, separator: str = LISTING_SEPARATOR) -> bytes:
        return self.render(separator).encode("utf-8")


def dump_listing(path) -> DirectoryListing:
    """List `path` one level deep. Raises OSError if it cannot be enumerated."""
    root = os.fspath(path)
    with os.scandir(root) as it:
        entries = [e.path for e in it]
    return DirectoryListing(root=root, entries=entries)
