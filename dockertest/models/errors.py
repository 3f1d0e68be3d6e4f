"""Error models and exception classes for dockertest."""

from enum import Enum
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field


class ErrorType(str, Enum):
    """Error type enumeration."""

    ENVIRONMENT_MISSING = "environment_missing"
    ENGINE_COMMAND = "engine_command"
    TIMEOUT = "timeout"
    IMAGE_PULL = "image_pull"
    LAUNCH_FAILED = "launch_failed"
    INSPECT_FAILED = "inspect_failed"
    UNREACHABLE = "unreachable"
    RETRY_EXHAUSTED = "retry_exhausted"


class ErrorDetail(BaseModel):
    """Detailed error information."""

    field: Optional[str] = Field(None, description="Name of the offending value")
    message: str = Field(..., description="Human-readable error message")
    code: Optional[str] = Field(None, description="Machine-readable error code")


# Custom Exception Classes


class DockerTestException(Exception):
    """Base exception for dockertest."""

    def __init__(
        self,
        message: str,
        error_type: ErrorType = ErrorType.ENGINE_COMMAND,
        details: Optional[List[ErrorDetail]] = None,
    ):
        self.message = message
        self.error_type = error_type
        self.details = details or []
        super().__init__(message)


class EngineNotFoundError(DockerTestException):
    """Neither the container engine nor a remote execution environment is installed."""

    def __init__(self, binaries: Sequence[str], message: str = None, **kwargs):
        self.binaries = list(binaries)
        error_message = message or (
            "container engine not found on PATH (looked for: %s)"
            % ", ".join(self.binaries)
        )
        super().__init__(
            message=error_message, error_type=ErrorType.ENVIRONMENT_MISSING, **kwargs
        )


class EngineCommandError(DockerTestException):
    """An engine invocation exited unsuccessfully."""

    def __init__(
        self,
        argv: Sequence[str],
        returncode: Optional[int],
        output: str = "",
        message: str = None,
        error_type: ErrorType = ErrorType.ENGINE_COMMAND,
        **kwargs,
    ):
        self.argv = list(argv)
        self.returncode = returncode
        self.output = output
        error_message = message or (
            f"`{' '.join(self.argv)}` exited with status {returncode}: {output.strip()}"
        )
        super().__init__(message=error_message, error_type=error_type, **kwargs)


class EngineCommandTimeout(EngineCommandError):
    """An engine invocation did not finish within the configured timeout."""

    def __init__(self, argv: Sequence[str], timeout: float, **kwargs):
        self.timeout = timeout
        super().__init__(
            argv,
            returncode=None,
            message=f"`{' '.join(argv)}` timed out after {timeout}s",
            error_type=ErrorType.TIMEOUT,
            **kwargs,
        )


class ImagePullError(DockerTestException):
    """The image was absent locally and could not be pulled."""

    def __init__(self, image: str, output: str = "", message: str = None, **kwargs):
        self.image = image
        self.output = output
        error_message = message or f"error pulling {image}: {output.strip()}"
        super().__init__(message=error_message, error_type=ErrorType.IMAGE_PULL, **kwargs)


class ContainerLaunchError(DockerTestException):
    """`docker run` failed or produced something other than a container ID."""

    def __init__(self, message: str, output: str = "", **kwargs):
        self.output = output
        super().__init__(message=message, error_type=ErrorType.LAUNCH_FAILED, **kwargs)


class InspectError(DockerTestException):
    """The container address could not be determined."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message=message, error_type=ErrorType.INSPECT_FAILED, **kwargs)


class InspectSchemaError(InspectError):
    """`docker inspect` output did not match the expected shape."""


class UnreachableError(DockerTestException):
    """Nothing accepted a TCP connection at the address before the deadline."""

    def __init__(self, address: str, max_wait: float, **kwargs):
        self.address = address
        self.max_wait = max_wait
        super().__init__(
            message=f"{address} unreachable for {max_wait}s",
            error_type=ErrorType.UNREACHABLE,
            **kwargs,
        )


class StatementRetryExhausted(DockerTestException):
    """A statement kept failing until the retry budget ran out."""

    def __init__(
        self, attempts: int, last_error: Optional[BaseException] = None, **kwargs
    ):
        self.attempts = attempts
        self.last_error = last_error
        if attempts == 0:
            message = "did not try at all"
        else:
            message = f"failed {attempts} times: {last_error}"
        super().__init__(
            message=message, error_type=ErrorType.RETRY_EXHAUSTED, **kwargs
        )
