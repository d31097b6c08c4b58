"""Archive layout for Lambda custom runtimes."""

from .builder import archive_entries, build_archive, write_archive
from .models import BOOTSTRAP_NAME, Archive, ArchiveEntry, AuxiliaryFile, ExecutableOrigin, ExecutablePayload

__all__ = [
    "Archive",
    "ArchiveEntry",
    "AuxiliaryFile",
    "BOOTSTRAP_NAME",
    "ExecutableOrigin",
    "ExecutablePayload",
    "archive_entries",
    "build_archive",
    "write_archive",
]
