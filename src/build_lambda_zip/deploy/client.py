"""Push archives to Lambda functions and wait for the update to settle."""

from __future__ import annotations

import time
from typing import Any, Callable, Iterable, Optional

import structlog
from botocore.exceptions import BotoCoreError, ClientError

from build_lambda_zip.archive.builder import PathLike, build_archive
from build_lambda_zip.archive.models import ExecutableOrigin, code_sha256
from build_lambda_zip.core.config import Settings
from build_lambda_zip.core.exceptions import TransportError, UpdateFailedError, UpdateTimeoutError
from build_lambda_zip.deploy.models import NIL_PLACEHOLDER, DeploymentTarget, UpdateStatus


logger = structlog.get_logger()

DEFAULT_POLL_INTERVAL = 0.25

StatusReporter = Callable[[UpdateStatus], None]


def log_status(status: UpdateStatus) -> None:
    """Default reporter: one log line per observed status."""
    logger.info(
        "Function update status",
        state=status.state,
        reason=status.reason if status.reason is not None else NIL_PLACEHOLDER,
    )


def create_lambda_client(region_name: Optional[str] = None, function_name: str = ""):
    """Lambda client using the default credential chain."""
    import boto3
    try:
        return boto3.client("lambda", region_name=region_name)
    except BotoCoreError as e:
        raise TransportError(
            f"could not create Lambda client: {e}",
            operation="CreateClient",
            function_name=function_name,
        ) from e


class FunctionDeployer:
    """Sends code updates to a function and polls until Lambda finishes applying them."""

    def __init__(
        self,
        client: Any,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_attempts: Optional[int] = None,
        timeout: Optional[float] = None,
        fail_on_failure: bool = False,
        reporter: Optional[StatusReporter] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            client: boto3 Lambda client
            poll_interval: Seconds to wait between status fetches
            max_attempts: Maximum status fetches; None polls until a terminal state
            timeout: Maximum seconds spent polling; None polls until a terminal state
            fail_on_failure: Raise UpdateFailedError when the update ends in failure
            reporter: Called with every observed status (defaults to a log line)
        """
        self.client = client
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.timeout = timeout
        self.fail_on_failure = fail_on_failure
        self.reporter = reporter or log_status
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        client: Any = None,
        reporter: Optional[StatusReporter] = None,
        function_name: str = "",
    ) -> "FunctionDeployer":
        if client is None:
            client = create_lambda_client(settings.aws_region, function_name)
        return cls(
            client,
            poll_interval=settings.poll_interval_seconds,
            max_attempts=settings.max_poll_attempts,
            timeout=settings.poll_timeout_seconds,
            fail_on_failure=settings.fail_on_update_failure,
            reporter=reporter,
        )

    def start_update(self, function_name: str, zip_bytes: bytes) -> UpdateStatus:
        target = DeploymentTarget(function_name=function_name, zip_file=zip_bytes)
        logger.info("Updating function code", function_name=function_name, bytes=len(zip_bytes))
        try:
            response = self.client.update_function_code(
                FunctionName=target.function_name,
                ZipFile=target.zip_file,
            )
        except (ClientError, BotoCoreError) as e:
            raise TransportError(
                f"UpdateFunctionCode failed for {function_name}: {e}",
                operation="UpdateFunctionCode",
                function_name=function_name,
            ) from e
        return UpdateStatus.from_update_response(response)

    def fetch_status(self, function_name: str) -> UpdateStatus:
        try:
            response = self.client.get_function(FunctionName=function_name)
        except (ClientError, BotoCoreError) as e:
            raise TransportError(
                f"GetFunction failed for {function_name}: {e}",
                operation="GetFunction",
                function_name=function_name,
            ) from e
        return UpdateStatus.from_function_response(response)

    def wait_for_update(self, function_name: str, status: UpdateStatus) -> UpdateStatus:
        """Report each observed status until the update leaves InProgress.

        There is no bound unless ``max_attempts`` or ``timeout`` is set.
        """
        start = self._clock()
        attempts = 0
        while True:
            self.reporter(status)
            if status.is_terminal:
                break
            if self.max_attempts is not None and attempts >= self.max_attempts:
                raise UpdateTimeoutError(
                    f"update of {function_name} still in progress after {attempts} status checks",
                    status=status,
                    attempts=attempts,
                )
            if self.timeout is not None and (self._clock() - start) >= self.timeout:
                raise UpdateTimeoutError(
                    f"update of {function_name} still in progress after {self.timeout}s",
                    status=status,
                    attempts=attempts,
                )
            self._sleep(self.poll_interval)
            attempts += 1
            status = self.fetch_status(function_name)

        if status.is_failure:
            logger.warning("Function update did not succeed", function_name=function_name, state=status.state, reason=status.reason)
            if self.fail_on_failure:
                raise UpdateFailedError(
                    f"update of {function_name} ended in {status.describe()}",
                    status=status,
                )
        return status

    def deploy(
        self,
        function_name: str,
        executable_path: PathLike,
        auxiliary_paths: Iterable[PathLike] = (),
        *,
        origin: ExecutableOrigin = ExecutableOrigin.PREBUILT,
    ) -> UpdateStatus:
        """Build the archive in memory, push it, and wait for a terminal state."""
        archive = build_archive(executable_path, auxiliary_paths, origin=origin)
        zip_bytes = archive.to_bytes()

        status = self.wait_for_update(function_name, self.start_update(function_name, zip_bytes))

        if status.is_successful and status.code_sha256:
            local_sha = code_sha256(zip_bytes)
            if status.code_sha256 != local_sha:
                logger.warning(
                    "Deployed code hash differs from local archive",
                    function_name=function_name,
                    remote_sha256=status.code_sha256,
                    local_sha256=local_sha,
                )
        return status
