"""Build zip archives that Lambda can load as a custom runtime."""

from __future__ import annotations

import io
import os
import zipfile
from pathlib import Path
from typing import Iterable, List, Tuple, Union

import structlog

from build_lambda_zip.archive.models import (
    BOOTSTRAP_NAME,
    EXECUTABLE_MODE,
    SYMLINK_MODE,
    UNIX_CREATE_SYSTEM,
    Archive,
    ArchiveEntry,
    AuxiliaryFile,
    ExecutableOrigin,
    ExecutablePayload,
)
from build_lambda_zip.core.exceptions import PackagingError


logger = structlog.get_logger()

PathLike = Union[str, os.PathLike]


def read_executable(
    path: PathLike, origin: ExecutableOrigin = ExecutableOrigin.PREBUILT
) -> ExecutablePayload:
    path = Path(path)
    return ExecutablePayload(name=path.name, data=path.read_bytes(), origin=origin)


def read_auxiliary_files(paths: Iterable[PathLike]) -> List[AuxiliaryFile]:
    """Read every auxiliary file up front; the first unreadable one aborts the build."""
    return [AuxiliaryFile(path=os.fspath(p), data=Path(p).read_bytes()) for p in paths]


def executable_entries(payload: ExecutablePayload) -> List[ArchiveEntry]:
    """Entries that make ``bootstrap`` resolve to the executable.

    When the executable already carries the bootstrap name it is written
    once under that name. Otherwise a ``bootstrap`` symlink pointing at the
    executable's name precedes the executable itself.
    """
    entries = []
    if payload.name != BOOTSTRAP_NAME:
        entries.append(
            ArchiveEntry(
                name=BOOTSTRAP_NAME,
                data=payload.name.encode("utf-8"),
                mode=SYMLINK_MODE,
                create_system=UNIX_CREATE_SYSTEM,
            )
        )
    entries.append(
        ArchiveEntry(
            name=payload.name,
            data=payload.data,
            mode=EXECUTABLE_MODE,
            create_system=UNIX_CREATE_SYSTEM,
        )
    )
    return entries


def assemble_archive(payload: ExecutablePayload, auxiliary_files: Iterable[AuxiliaryFile] = ()) -> Archive:
    entries = executable_entries(payload)
    entries.extend(ArchiveEntry(name=aux.path, data=aux.data) for aux in auxiliary_files)
    try:
        return Archive(entries=tuple(entries))
    except ValueError as e:
        raise PackagingError(str(e), code="invalid_layout") from e


def build_archive(
    executable_path: PathLike,
    auxiliary_paths: Iterable[PathLike] = (),
    *,
    origin: ExecutableOrigin = ExecutableOrigin.PREBUILT,
) -> Archive:
    """Read the executable and auxiliary files and lay them out as an archive.

    Read errors propagate unchanged. Nothing is written anywhere, so a
    failure leaves no partial archive behind.
    """
    payload = read_executable(executable_path, origin)
    auxiliary_files = read_auxiliary_files(auxiliary_paths)
    archive = assemble_archive(payload, auxiliary_files)
    logger.debug(
        "Built archive",
        executable=payload.name,
        origin=payload.origin.value,
        entries=list(archive.names),
    )
    return archive


def write_archive(archive: Archive, output_path: PathLike) -> Path:
    """Write the archive to disk, replacing the destination only once complete."""
    dest_path = Path(output_path)
    tmp_file = dest_path.with_name(f"{dest_path.name}.{os.getpid()}.writing")
    try:
        with open(tmp_file, "wb") as f:
            archive.write_to(f)
        os.replace(tmp_file, dest_path)
    except BaseException:
        try:
            os.remove(tmp_file)
        except FileNotFoundError:
            pass
        raise
    logger.debug("Wrote archive file", path=str(dest_path), bytes=dest_path.stat().st_size)
    return dest_path


def archive_entries(zip_bytes: bytes) -> Tuple[ArchiveEntry, ...]:
    """Read a rendered archive back into entries."""
    entries = []
    with zipfile.ZipFile(io.BytesIO(zip_bytes)) as zf:
        for info in zf.infolist():
            entries.append(
                ArchiveEntry(
                    name=info.filename,
                    data=zf.read(info),
                    mode=info.external_attr >> 16,
                    create_system=info.create_system,
                    compress_type=info.compress_type,
                )
            )
    return tuple(entries)
