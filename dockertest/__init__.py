"""Disposable service containers for tests.

    from dockertest import LifecycleController, setup_redis_container

    result = await setup_redis_container()
    try:
        ...  # talk to result.host:result.port
    finally:
        await result.kill_and_remove()
"""

from .config import Settings
from .models import (
    ContainerHandle,
    ProvisionResult,
    RetryBudget,
    ServiceSpec,
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
from .services import (
    DockerEngine,
    LifecycleController,
    PRESETS,
    setup_mongo_container,
    setup_mysql_container,
    setup_postgres_container,
    setup_redis_container,
    setup_nats_container,
    setup_fluentd_container,
    setup_elasticsearch_container,
    setup_preset,
)
from .utils import await_reachable, retry_exec

__version__ = "0.1.0"

__all__ = [
    "Settings",
    "ContainerHandle",
    "ProvisionResult",
    "RetryBudget",
    "ServiceSpec",
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
    "DockerEngine",
    "LifecycleController",
    "PRESETS",
    "setup_mongo_container",
    "setup_mysql_container",
    "setup_postgres_container",
    "setup_redis_container",
    "setup_nats_container",
    "setup_fluentd_container",
    "setup_elasticsearch_container",
    "setup_preset",
    "await_reachable",
    "retry_exec",
]
