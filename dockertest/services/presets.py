"""Ready-made service containers.

Each preset fixes the image, the port the service listens on and any
environment the image needs, then hands off to the lifecycle controller.
Extra positional arguments are appended after the image name, e.g. a
command override:

    result = await setup_redis_container("redis-server", "--appendonly", "yes")
    try:
        client = redis.Redis(host=result.host, port=result.port)
        ...
    finally:
        await result.kill_and_remove()
"""

from typing import Callable, Dict, Optional

import structlog

from ..config import Settings
from ..models.container import ProvisionResult, RetryBudget, ServiceSpec
from ..utils.retry import retry_exec
from .lifecycle import LifecycleController
from .sql import create_database_statement, postgres_executor

logger = structlog.get_logger(__name__)

MONGO_IMAGE = "mongo"
MYSQL_IMAGE = "mysql"
POSTGRES_IMAGE = "postgres"
REDIS_IMAGE = "redis"
NATS_IMAGE = "nats"
FLUENTD_IMAGE = "fluent/fluentd:v1.16-1"
ELASTICSEARCH_IMAGE = "elasticsearch:7.17.10"

DEFAULT_DATABASE = "dockertest"
POSTGRES_CREATE_DB_BUDGET = RetryBudget()


def mongo_spec(settings: Settings) -> ServiceSpec:
    return ServiceSpec(image=MONGO_IMAGE, container_port=27017, name="mongo")


def mysql_spec(settings: Settings, dbname: str = DEFAULT_DATABASE) -> ServiceSpec:
    return ServiceSpec(
        image=MYSQL_IMAGE,
        container_port=3306,
        env={
            "MYSQL_ROOT_PASSWORD": settings.credentials.mysql_password,
            "MYSQL_DATABASE": dbname,
        },
        name="mysql",
    )


def postgres_spec(settings: Settings) -> ServiceSpec:
    return ServiceSpec(
        image=POSTGRES_IMAGE,
        container_port=5432,
        env={"POSTGRES_PASSWORD": settings.credentials.postgres_password},
        name="postgres",
    )


def redis_spec(settings: Settings) -> ServiceSpec:
    return ServiceSpec(image=REDIS_IMAGE, container_port=6379, name="redis")


def nats_spec(settings: Settings) -> ServiceSpec:
    return ServiceSpec(image=NATS_IMAGE, container_port=4222, name="nats")


def fluentd_spec(settings: Settings) -> ServiceSpec:
    return ServiceSpec(image=FLUENTD_IMAGE, container_port=24224, name="fluentd")


def elasticsearch_spec(settings: Settings) -> ServiceSpec:
    # Elasticsearch is slow to open its HTTP port
    return ServiceSpec(
        image=ELASTICSEARCH_IMAGE,
        container_port=9200,
        env={"discovery.type": "single-node"},
        probe_timeout=120.0,
        name="elasticsearch",
    )


PRESETS: Dict[str, Callable[[Settings], ServiceSpec]] = {
    "mongo": mongo_spec,
    "mysql": mysql_spec,
    "postgres": postgres_spec,
    "redis": redis_spec,
    "nats": nats_spec,
    "fluentd": fluentd_spec,
    "elasticsearch": elasticsearch_spec,
}


def _controller(controller: Optional[LifecycleController]) -> LifecycleController:
    return controller or LifecycleController()


async def setup_mongo_container(
    *extra_args: str, controller: Optional[LifecycleController] = None
) -> ProvisionResult:
    """Start a MongoDB server."""
    controller = _controller(controller)
    spec = mongo_spec(controller.settings).with_extra_args(*extra_args)
    return await controller.provision_spec(spec)


async def setup_mysql_container(
    dbname: str = DEFAULT_DATABASE,
    *extra_args: str,
    controller: Optional[LifecycleController] = None,
) -> ProvisionResult:
    """Start a MySQL server with an empty database called ``dbname``.

    Connect as ``settings.mysql_username`` / ``settings.mysql_password``.
    """
    controller = _controller(controller)
    spec = mysql_spec(controller.settings, dbname).with_extra_args(*extra_args)
    return await controller.provision_spec(spec)


async def setup_postgres_container(
    dbname: str = DEFAULT_DATABASE,
    *extra_args: str,
    controller: Optional[LifecycleController] = None,
    budget: RetryBudget = POSTGRES_CREATE_DB_BUDGET,
) -> ProvisionResult:
    """Start a PostgreSQL server and create database ``dbname`` in it.

    The server accepts connections before it can run statements, so the
    CREATE DATABASE is retried with backoff. If it never succeeds the
    container is torn down and StatementRetryExhausted is raised.
    """
    controller = _controller(controller)
    settings = controller.settings
    statement = create_database_statement(dbname)
    spec = postgres_spec(settings).with_extra_args(*extra_args)

    async def create_database(result: ProvisionResult) -> None:
        execute = postgres_executor(
            host=result.host,
            port=result.port,
            user=settings.credentials.postgres_username,
            password=settings.credentials.postgres_password,
        )
        await retry_exec(execute, statement, budget=budget)
        logger.info(
            "Created database",
            database=dbname,
            container_id=result.handle.short_id,
        )

    return await controller.provision_spec(spec, setup=create_database)


async def setup_redis_container(
    *extra_args: str, controller: Optional[LifecycleController] = None
) -> ProvisionResult:
    """Start a Redis server."""
    controller = _controller(controller)
    spec = redis_spec(controller.settings).with_extra_args(*extra_args)
    return await controller.provision_spec(spec)


async def setup_nats_container(
    *extra_args: str, controller: Optional[LifecycleController] = None
) -> ProvisionResult:
    """Start a NATS server."""
    controller = _controller(controller)
    spec = nats_spec(controller.settings).with_extra_args(*extra_args)
    return await controller.provision_spec(spec)


async def setup_fluentd_container(
    *extra_args: str, controller: Optional[LifecycleController] = None
) -> ProvisionResult:
    """Start a Fluentd collector listening on the forward protocol port."""
    controller = _controller(controller)
    spec = fluentd_spec(controller.settings).with_extra_args(*extra_args)
    return await controller.provision_spec(spec)


async def setup_elasticsearch_container(
    *extra_args: str, controller: Optional[LifecycleController] = None
) -> ProvisionResult:
    """Start a single-node Elasticsearch cluster."""
    controller = _controller(controller)
    spec = elasticsearch_spec(controller.settings).with_extra_args(*extra_args)
    return await controller.provision_spec(spec)


async def setup_preset(
    name: str,
    *extra_args: str,
    controller: Optional[LifecycleController] = None,
) -> ProvisionResult:
    """Start a preset by name; postgres and mysql get the default database."""
    if name not in PRESETS:
        raise KeyError(f"unknown preset {name!r}, choose from {', '.join(PRESETS)}")
    if name == "postgres":
        return await setup_postgres_container(
            DEFAULT_DATABASE, *extra_args, controller=controller
        )
    controller = _controller(controller)
    spec = PRESETS[name](controller.settings).with_extra_args(*extra_args)
    return await controller.provision_spec(spec)
