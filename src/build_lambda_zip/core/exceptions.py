"""Custom exceptions for build-lambda-zip."""

from typing import Optional


class BuildLambdaZipError(Exception):
    """Base exception for all packaging and deployment errors."""
    
    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class InputError(BuildLambdaZipError):
    """Missing or unreadable input."""
    pass


class CompileError(BuildLambdaZipError):
    """External compiler invocation failed."""

    def __init__(
        self,
        message: str,
        diagnostics: str = "",
        returncode: Optional[int] = None,
        code: Optional[str] = "compile_failed",
    ):
        super().__init__(message, code)
        self.diagnostics = diagnostics
        self.returncode = returncode


class PackagingError(BuildLambdaZipError):
    """Archive could not be assembled or written."""
    pass


class DeployError(BuildLambdaZipError):
    """Function code update errors."""
    pass


class TransportError(DeployError):
    """Call to the function management API failed."""

    def __init__(self, message: str, operation: str, function_name: str):
        super().__init__(message, code="transport_error")
        self.operation = operation
        self.function_name = function_name


class UpdateFailedError(DeployError):
    """Update settled in a failure state."""

    def __init__(self, message: str, status):
        super().__init__(message, code="update_failed")
        self.status = status


class UpdateTimeoutError(DeployError):
    """Update still in progress after the polling budget ran out."""

    def __init__(self, message: str, status, attempts: int):
        super().__init__(message, code="update_timeout")
        self.status = status
        self.attempts = attempts
