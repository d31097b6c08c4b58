"""
Pytest configuration and fixtures for build-lambda-zip tests.
"""

import os

import boto3
import pytest


@pytest.fixture(autouse=True)
def isolated_workdir(tmp_path, monkeypatch):
    """
    Run every test from an empty working directory with no tool settings in the environment.

    Compiled intermediates and default output paths land in the working directory,
    and Settings reads BUILD_LAMBDA_ZIP_* variables and a .env file from it.
    """
    for key in list(os.environ):
        if key.startswith("BUILD_LAMBDA_ZIP_"):
            monkeypatch.delenv(key)
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    return workdir


@pytest.fixture
def handler_exe(isolated_workdir):
    """A fake executable named 'handler'."""
    path = isolated_workdir / "handler"
    path.write_bytes(b"\x7fELF\x02\x01\x01handler-binary")
    return path


@pytest.fixture
def bootstrap_exe(isolated_workdir):
    """A fake executable already named 'bootstrap'."""
    path = isolated_workdir / "bootstrap"
    path.write_bytes(b"\x7fELF\x02\x01\x01bootstrap-binary")
    return path


@pytest.fixture
def lambda_client():
    """Lambda client that never needs real credentials; wrap it in a Stubber."""
    return boto3.client(
        "lambda",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )
