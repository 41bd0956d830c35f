"""Storage layer for snapvcs.

This module provides content fingerprints, the storage capability the
repository performs its I/O through, and the snapshot history index.
"""

from snapvcs.storage.backend import LocalStorage, MemoryStorage, Storage
from snapvcs.storage.fingerprint import fingerprint, is_fingerprint
from snapvcs.storage.history_db import HistoryDB

__all__ = [
    "fingerprint",
    "is_fingerprint",
    "Storage",
    "LocalStorage",
    "MemoryStorage",
    "HistoryDB",
]
