"""Compile Go sources into a Linux executable for packaging."""

from __future__ import annotations

import os
import subprocess
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Dict, Iterator, Mapping, Optional, Tuple, Union

import structlog

from build_lambda_zip.archive.models import ExecutableOrigin
from build_lambda_zip.core.exceptions import CompileError


logger = structlog.get_logger()

SOURCE_SUFFIX = ".go"
OUTPUT_SUFFIX = ".exe"
TARGET_OS = "linux"
TARGET_ARCH = "amd64"
TARGET_ENV = {"GOOS": TARGET_OS, "GOARCH": TARGET_ARCH}

PathLike = Union[str, os.PathLike]


def is_go_source(path: PathLike) -> bool:
    return Path(path).suffix == SOURCE_SUFFIX


def build_environment(base: Mapping[str, str], overrides: Mapping[str, str]) -> Dict[str, str]:
    """Return a copy of ``base`` with ``overrides`` applied on top."""
    env = dict(base)
    env.update(overrides)
    return env


def compiled_output_path(source_path: PathLike) -> Path:
    return Path.cwd() / f"{Path(source_path).name}{OUTPUT_SUFFIX}"


def compile_go(
    source_path: PathLike,
    *,
    environ: Optional[Mapping[str, str]] = None,
    runner: Optional[Callable[..., subprocess.CompletedProcess]] = None,
) -> Path:
    """Run ``go build`` for the fixed target and return the built executable's path."""
    out = compiled_output_path(source_path)
    cmd = ["go", "build", "-o", str(out), os.fspath(source_path)]
    env = build_environment(os.environ if environ is None else environ, TARGET_ENV)
    runner = runner or subprocess.run

    logger.info("Compiling source", source=os.fspath(source_path), output=str(out), goos=TARGET_OS, goarch=TARGET_ARCH)

    try:
        result = runner(cmd, env=env, capture_output=True, text=True, errors="replace")
    except OSError as e:
        raise CompileError(f"failed to start go build for {source_path}: {e}", diagnostics=str(e)) from e

    if result.returncode != 0:
        diagnostics = (result.stderr or "").strip()
        raise CompileError(
            f"go build exited with status {result.returncode} for {source_path}: {diagnostics}",
            diagnostics=diagnostics,
            returncode=result.returncode,
        )
    return out


def remove_intermediate(path: PathLike) -> None:
    """Delete a compiled intermediate; failures are logged only."""
    logger.info("Removing intermediate file", path=os.fspath(path))
    try:
        os.remove(path)
    except OSError as e:
        logger.warning("Cleanup of intermediate file failed", path=os.fspath(path), error=str(e))


@contextmanager
def prepared_executable(
    input_path: PathLike,
    *,
    environ: Optional[Mapping[str, str]] = None,
    runner: Optional[Callable[..., subprocess.CompletedProcess]] = None,
) -> Iterator[Tuple[Path, ExecutableOrigin]]:
    """Yield the executable to package, compiling Go sources first.

    A compiled intermediate is removed when the block exits, whether or not
    packaging succeeded.
    """
    if not is_go_source(input_path):
        yield Path(input_path), ExecutableOrigin.PREBUILT
        return

    built = compile_go(input_path, environ=environ, runner=runner)
    logger.info("Compiled source", source=os.fspath(input_path), output=str(built))
    try:
        yield built, ExecutableOrigin.COMPILED
    finally:
        remove_intermediate(built)
