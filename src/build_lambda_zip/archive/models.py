"""Models for archives in the custom runtime layout."""

from __future__ import annotations

import base64
import hashlib
import io
import stat
import zipfile
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


BOOTSTRAP_NAME = "bootstrap"

# Value of ZipInfo.create_system marking entries as written on Unix
UNIX_CREATE_SYSTEM = 3

EXECUTABLE_MODE = 0o777
SYMLINK_MODE = stat.S_IFLNK | 0o755
# Regular file readable by the function's runtime user
DEFAULT_FILE_MODE = stat.S_IFREG | 0o644


class ExecutableOrigin(str, Enum):
    PREBUILT = "prebuilt"
    COMPILED = "compiled"


class ExecutablePayload(BaseModel):
    """An executable read into memory, named as it will appear in the archive."""

    model_config = ConfigDict(frozen=True)

    name: str
    data: bytes
    origin: ExecutableOrigin = ExecutableOrigin.PREBUILT


class AuxiliaryFile(BaseModel):
    """A supplemental file stored under the relative path it was given."""

    model_config = ConfigDict(frozen=True)

    path: str
    data: bytes


class ArchiveEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    data: bytes
    mode: int = DEFAULT_FILE_MODE
    create_system: Optional[int] = None
    compress_type: int = zipfile.ZIP_DEFLATED

    @property
    def is_symlink(self) -> bool:
        return stat.S_ISLNK(self.mode)

    @property
    def link_target(self) -> Optional[str]:
        if not self.is_symlink:
            return None
        return self.data.decode("utf-8")

    @property
    def permissions(self) -> int:
        return stat.S_IMODE(self.mode)

    def to_zipinfo(self) -> zipfile.ZipInfo:
        info = zipfile.ZipInfo(self.name)
        info.compress_type = self.compress_type
        info.external_attr = (self.mode & 0xFFFF) << 16
        if self.create_system is not None:
            info.create_system = self.create_system
        return info


class Archive(BaseModel):
    """Ordered, immutable set of archive entries."""

    model_config = ConfigDict(frozen=True)

    entries: Tuple[ArchiveEntry, ...] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def check_layout(self) -> "Archive":
        names = [entry.name for entry in self.entries]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate archive entries: {', '.join(duplicates)}")
        if self.entries and BOOTSTRAP_NAME not in names:
            raise ValueError(f"Archive has no '{BOOTSTRAP_NAME}' entry")
        return self

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(entry.name for entry in self.entries)

    def get(self, name: str) -> Optional[ArchiveEntry]:
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None

    @property
    def bootstrap(self) -> ArchiveEntry:
        entry = self.get(BOOTSTRAP_NAME)
        assert entry is not None
        return entry

    @property
    def executable(self) -> ArchiveEntry:
        """The entry the bootstrap name resolves to."""
        entry = self.bootstrap
        if entry.is_symlink:
            target = self.get(entry.link_target or "")
            assert target is not None
            return target
        return entry

    def write_to(self, stream) -> None:
        """Write the archive as a zip file to a binary stream."""
        with zipfile.ZipFile(stream, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for entry in self.entries:
                zf.writestr(entry.to_zipinfo(), entry.data)

    def to_bytes(self) -> bytes:
        buffer = io.BytesIO()
        self.write_to(buffer)
        return buffer.getvalue()

    def sha256_b64(self) -> str:
        return code_sha256(self.to_bytes())


def code_sha256(zip_bytes: bytes) -> str:
    """Digest of archive bytes, encoded the way Lambda reports CodeSha256."""
    return base64.b64encode(hashlib.sha256(zip_bytes).digest()).decode("ascii")
