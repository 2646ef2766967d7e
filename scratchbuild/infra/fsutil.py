# -----------------------------------------------------------------------------
# FILESYSTEM PREDICATES
# -----------------------------------------------------------------------------
# Small read-only checks used to validate layer sources before any archive
# work starts. They never raise for missing paths; they answer False.
# -----------------------------------------------------------------------------

import os
import tarfile


def exists(path: str) -> bool:
    """Check if a path exists (symlinks are followed)."""
    return os.path.exists(path)


def is_regular_file(path: str) -> bool:
    """Check if a path is a regular file."""
    return os.path.isfile(path)


def is_dir(path: str) -> bool:
    """Check if a path is a directory."""
    return os.path.isdir(path)


def is_tar_file(path: str) -> bool:
    """
    Check if a file is a plain or gzip-compressed tar archive.

    Only the first member header is read; members are not extracted.
    Other compressions (bzip2, xz) are rejected.
    """
    for mode in ("r:", "r:gz"):
        try:
            with tarfile.open(path, mode):
                return True
        except (tarfile.TarError, OSError, EOFError):
            continue
    return False
