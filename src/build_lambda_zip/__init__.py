"""build-lambda-zip - package executables for Lambda custom runtimes."""

__version__ = "0.1.0"

from build_lambda_zip.archive.builder import build_archive, write_archive
from build_lambda_zip.archive.models import BOOTSTRAP_NAME, Archive
from build_lambda_zip.core.config import BuildOptions, Settings
from build_lambda_zip.deploy.client import FunctionDeployer

__all__ = [
    "Archive",
    "BOOTSTRAP_NAME",
    "BuildOptions",
    "FunctionDeployer",
    "Settings",
    "build_archive",
    "write_archive",
    "__version__",
]
