"""snapvcs - a minimal local version-control engine.

snapvcs tracks a working set of files, detects content changes by SHA-256
fingerprint, and stores copies of changed files under sequentially numbered
commit directories.
"""

__version__ = "0.1.0"
__author__ = "snapvcs Contributors"

__all__ = ["__version__", "__author__"]
