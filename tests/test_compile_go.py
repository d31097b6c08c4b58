"""
Tests for compiling Go sources ahead of packaging.
"""

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from build_lambda_zip.archive.models import ExecutableOrigin
from build_lambda_zip.compile.go import (
    TARGET_ENV,
    build_environment,
    compile_go,
    compiled_output_path,
    is_go_source,
    prepared_executable,
    remove_intermediate,
)
from build_lambda_zip.core.exceptions import CompileError


class FakeGo:
    """Stands in for subprocess.run, writing the -o output when it succeeds."""

    def __init__(self, returncode=0, stderr="", create_output=True):
        self.returncode = returncode
        self.stderr = stderr
        self.create_output = create_output
        self.calls = []

    def __call__(self, cmd, **kwargs):
        self.calls.append((cmd, kwargs))
        if self.returncode == 0 and self.create_output:
            Path(cmd[3]).write_bytes(b"\x7fELF compiled")
        return subprocess.CompletedProcess(cmd, self.returncode, "", self.stderr)


def test_is_go_source():
    assert is_go_source("main.go")
    assert is_go_source(Path("cmd/handler/main.go"))
    assert not is_go_source("handler")
    assert not is_go_source("main.go.exe")
    assert not is_go_source("main.gox")


def test_build_environment_overrides_and_inherits():
    base = {"PATH": "/usr/bin", "GOOS": "darwin", "HTTPS_PROXY": "http://proxy:3128"}

    env = build_environment(base, TARGET_ENV)

    assert env["GOOS"] == "linux"
    assert env["GOARCH"] == "amd64"
    assert env["PATH"] == "/usr/bin"
    assert env["HTTPS_PROXY"] == "http://proxy:3128"
    # base is left untouched
    assert base["GOOS"] == "darwin"
    assert "GOARCH" not in base


def test_build_environment_empty_overrides():
    base = {"A": "1"}
    env = build_environment(base, {})
    assert env == base
    assert env is not base


def test_compiled_output_path_in_cwd(isolated_workdir):
    assert compiled_output_path("src/main.go") == isolated_workdir / "main.go.exe"


def test_compile_go_runs_go_build(isolated_workdir):
    fake = FakeGo()

    out = compile_go("src/main.go", environ={"HOME": "/home/dev", "GOOS": "windows"}, runner=fake)

    assert out == isolated_workdir / "main.go.exe"
    cmd, kwargs = fake.calls[0]
    assert cmd == ["go", "build", "-o", str(out), "src/main.go"]
    assert kwargs["env"] == {"HOME": "/home/dev", "GOOS": "linux", "GOARCH": "amd64"}


def test_compile_go_inherits_process_environment(monkeypatch):
    monkeypatch.setenv("GOPROXY", "https://proxy.golang.org")
    fake = FakeGo()

    compile_go("main.go", runner=fake)

    env = fake.calls[0][1]["env"]
    assert env["GOPROXY"] == "https://proxy.golang.org"
    assert env["GOOS"] == "linux"


def test_compile_go_nonzero_exit():
    fake = FakeGo(returncode=1, stderr="main.go:3:1: syntax error\n")

    with pytest.raises(CompileError) as exc_info:
        compile_go("main.go", runner=fake)

    assert exc_info.value.returncode == 1
    assert exc_info.value.diagnostics == "main.go:3:1: syntax error"
    assert "syntax error" in str(exc_info.value)


def test_compile_go_cannot_start():
    def missing_go(cmd, **kwargs):
        raise FileNotFoundError(2, "No such file or directory", "go")

    with pytest.raises(CompileError) as exc_info:
        compile_go("main.go", runner=missing_go)

    assert isinstance(exc_info.value.__cause__, FileNotFoundError)
    assert exc_info.value.returncode is None


def test_compile_go_defaults_to_subprocess_run():
    with patch("subprocess.run", side_effect=FakeGo()) as mock_run:
        compile_go("main.go")

    mock_run.assert_called_once()


def test_prepared_executable_passes_binaries_through(isolated_workdir):
    fake = FakeGo()
    exe = isolated_workdir / "handler"
    exe.write_bytes(b"bin")

    with prepared_executable(exe, runner=fake) as (path, origin):
        assert path == exe
        assert origin is ExecutableOrigin.PREBUILT

    assert fake.calls == []
    assert exe.exists()


def test_prepared_executable_compiles_and_cleans_up(isolated_workdir):
    fake = FakeGo()

    with prepared_executable("main.go", runner=fake) as (path, origin):
        assert path == isolated_workdir / "main.go.exe"
        assert origin is ExecutableOrigin.COMPILED
        assert path.exists()

    assert not path.exists()


def test_prepared_executable_cleans_up_on_error(isolated_workdir):
    fake = FakeGo()

    with pytest.raises(RuntimeError):
        with prepared_executable("main.go", runner=fake) as (path, _):
            raise RuntimeError("packaging failed")

    assert not (isolated_workdir / "main.go.exe").exists()


def test_prepared_executable_cleanup_failure_is_not_raised(isolated_workdir):
    fake = FakeGo(create_output=False)

    with prepared_executable("main.go", runner=fake) as (path, _):
        assert not path.exists()
    # Leaving the block did not raise even though there was nothing to remove


def test_prepared_executable_compile_failure_skips_body():
    fake = FakeGo(returncode=2, stderr="build failed")
    entered = []

    with pytest.raises(CompileError):
        with prepared_executable("main.go", runner=fake):
            entered.append(True)

    assert entered == []


def test_remove_intermediate_logs_failure(isolated_workdir):
    with patch("build_lambda_zip.compile.go.logger") as mock_logger:
        remove_intermediate(isolated_workdir / "gone.exe")

    mock_logger.warning.assert_called_once()


def test_compile_go_decodes_output_leniently():
    fake = FakeGo()

    compile_go("main.go", runner=fake)

    kwargs = fake.calls[0][1]
    assert kwargs["text"] is True
    assert kwargs["errors"] == "replace"


def test_compile_go_undecodable_stderr_is_a_compile_error():
    """Non-UTF-8 compiler output still surfaces as CompileError."""
    def latin1_go(cmd, **kwargs):
        raw = b"main.go:1:1: caf\xe9 undefined\n"
        stderr = raw.decode("utf-8", errors=kwargs.get("errors", "strict"))
        return subprocess.CompletedProcess(cmd, 1, "", stderr)

    with pytest.raises(CompileError) as exc_info:
        compile_go("main.go", runner=latin1_go)

    assert "caf\ufffd undefined" in exc_info.value.diagnostics
