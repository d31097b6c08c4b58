"""Command line entry point for build-lambda-zip."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import structlog
from pydantic import ValidationError

from build_lambda_zip import __version__
from build_lambda_zip.archive.builder import build_archive, write_archive
from build_lambda_zip.compile.go import prepared_executable
from build_lambda_zip.core.config import BuildOptions, OutputMode, Settings
from build_lambda_zip.core.exceptions import (
    BuildLambdaZipError,
    CompileError,
    DeployError,
    InputError,
    PackagingError,
)
from build_lambda_zip.deploy.client import FunctionDeployer
from build_lambda_zip.utils.logging import bind_invocation_context, setup_logging

logger = structlog.get_logger()

DESCRIPTION = "Puts an executable and supplemental files into a zip file that works with AWS Lambda."

EPILOG = """\
notes:
  This tool will run "GOOS=linux go build" if the handler argument ends with the file extension ".go"

  If set to upload to a function, the default credentials provider from boto3 will be used
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="build-lambda-zip",
        usage="%(prog)s [options] handler-exe[.go] [paths...]",
        description=DESCRIPTION,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("handler", nargs="?", help="executable, or .go source to compile")
    parser.add_argument("paths", nargs="*", help="supplemental files to include")
    parser.add_argument(
        "-o", "--output",
        metavar="<output-path>",
        help="sets the output file path for the zip. (default: ${handler-exe}.zip)",
    )
    parser.add_argument(
        "-u", "--update-function",
        metavar="<function-name>",
        help="pushes the built zip as a code update to the named function",
    )
    parser.add_argument("--log-level", help="log level (default: INFO)")
    parser.add_argument("--log-format", choices=["console", "json"], help="log renderer (default: console)")
    parser.add_argument(
        "--fail-on-update-failure",
        action="store_true",
        default=None,
        help="exit non-zero when the function update ends in a failure state",
    )
    parser.add_argument("--max-poll-attempts", type=int, help="give up after this many status checks")
    parser.add_argument("--poll-timeout", type=float, help="give up after polling this many seconds")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def settings_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Settings fields explicitly set on the command line."""
    flags = {
        "log_level": args.log_level,
        "log_format": args.log_format,
        "fail_on_update_failure": args.fail_on_update_failure,
        "max_poll_attempts": args.max_poll_attempts,
        "poll_timeout_seconds": args.poll_timeout,
    }
    return {key: value for key, value in flags.items() if value is not None}


def options_from_args(args: argparse.Namespace) -> BuildOptions:
    if not args.handler:
        raise InputError("no input provided", code="missing_input")
    return BuildOptions(
        input_path=Path(args.handler),
        auxiliary_paths=tuple(args.paths),
        output_path=Path(args.output) if args.output else None,
        function_name=args.update_function,
    )


def package_to_file(options: BuildOptions) -> Path:
    """Compile if needed, then write the archive to the output path."""
    with prepared_executable(options.input_path) as (exe_path, origin):
        archive = build_archive(exe_path, options.auxiliary_paths, origin=origin)
        output = options.resolved_output_path
        try:
            write_archive(archive, output)
        except OSError as e:
            raise PackagingError(f"failed to write {output}: {e}", code="write_failed") from e
    logger.info("Wrote archive", path=str(output), entries=len(archive.entries))
    return output


def package_and_deploy(options: BuildOptions, deployer: FunctionDeployer):
    """Compile if needed, then push the archive to the function and wait for it to settle."""
    assert options.function_name
    with prepared_executable(options.input_path) as (exe_path, origin):
        status = deployer.deploy(options.function_name, exe_path, options.auxiliary_paths, origin=origin)
    logger.info("Updated function code", function_name=options.function_name, state=status.state)
    return status


def execute(options: BuildOptions, settings: Settings, deployer: Optional[FunctionDeployer] = None) -> int:
    """Run one invocation and map failures to an exit status."""
    bind_invocation_context(function_name=options.function_name, input_path=str(options.input_path))
    try:
        if options.mode is OutputMode.UPDATE_FUNCTION:
            if deployer is None:
                deployer = FunctionDeployer.from_settings(settings, function_name=options.function_name)
            package_and_deploy(options, deployer)
        else:
            package_to_file(options)
    except CompileError as e:
        logger.error("Failed to compile .go file", input=str(options.input_path), error=str(e))
        return 1
    except DeployError as e:
        logger.error("Failed to update function code", function_name=options.function_name, error=str(e))
        return 1
    except (PackagingError, OSError) as e:
        logger.error("Failed to compress file", error=str(e))
        return 1
    except BuildLambdaZipError as e:
        logger.error("Build failed", error=str(e), code=e.code)
        return 1
    return 0


def main(argv: Optional[Sequence[str]] = None, deployer: Optional[FunctionDeployer] = None) -> int:
    parser = build_parser()
    args = parser.parse_intermixed_args(argv)

    try:
        settings = Settings(**settings_overrides(args))
    except ValidationError as e:
        setup_logging()
        logger.error("Invalid configuration", error=str(e))
        return 1
    setup_logging(settings.log_level, settings.log_format)

    try:
        options = options_from_args(args)
    except InputError as e:
        logger.error(str(e))
        return 1

    return execute(options, settings, deployer=deployer)


def run(argv: Optional[List[str]] = None) -> None:
    sys.exit(main(argv))


if __name__ == "__main__":
    run()
