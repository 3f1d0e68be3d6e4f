"""Data models for dockertest."""

from .container import (
    ContainerHandle,
    ServiceSpec,
    RetryBudget,
    ProvisionResult,
    NetworkSettings,
    InspectedContainer,
)
from .errors import (
    ErrorType,
    ErrorDetail,
    DockerTestException,
    EngineNotFoundError,
    EngineCommandError,
    EngineCommandTimeout,
    ImagePullError,
    ContainerLaunchError,
    InspectError,
    InspectSchemaError,
    UnreachableError,
    StatementRetryExhausted,
)

__all__ = [
    # Container models
    "ContainerHandle",
    "ServiceSpec",
    "RetryBudget",
    "ProvisionResult",
    "NetworkSettings",
    "InspectedContainer",
    # Error models
    "ErrorType",
    "ErrorDetail",
    "DockerTestException",
    "EngineNotFoundError",
    "EngineCommandError",
    "EngineCommandTimeout",
    "ImagePullError",
    "ContainerLaunchError",
    "InspectError",
    "InspectSchemaError",
    "UnreachableError",
    "StatementRetryExhausted",
]
