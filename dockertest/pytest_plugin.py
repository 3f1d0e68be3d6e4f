"""pytest fixtures for service containers.

Enable in a conftest.py:

    pytest_plugins = ["dockertest.pytest_plugin"]

Tests that use these fixtures are skipped, not failed, when docker is not
installed, when an image cannot be pulled, or when pytest runs with
``--no-docker``.
"""

from typing import AsyncGenerator, Awaitable, Callable, List

import pytest
import pytest_asyncio
import structlog

from .config import Settings
from .models.container import ProvisionResult
from .models.errors import EngineNotFoundError, ImagePullError
from .services.lifecycle import LifecycleController
from .services.presets import setup_preset

logger = structlog.get_logger(__name__)


def pytest_addoption(parser):
    group = parser.getgroup("dockertest")
    group.addoption(
        "--no-docker",
        action="store_true",
        default=False,
        help="Skip tests that need a docker service container",
    )


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "docker: test starts real containers through the docker CLI"
    )


@pytest.fixture(scope="session")
def dockertest_settings() -> Settings:
    """Settings read from DOCKERTEST_* environment variables."""
    return Settings()


@pytest.fixture
def docker_controller(request, dockertest_settings) -> LifecycleController:
    """A lifecycle controller, or a skip if docker cannot be used."""
    if request.config.getoption("--no-docker"):
        pytest.skip("docker tests disabled with --no-docker")
    controller = LifecycleController(settings=dockertest_settings)
    if not controller.is_available():
        pytest.skip(f"'{dockertest_settings.docker_binary}' command not found")
    return controller


@pytest_asyncio.fixture
async def docker_service(
    docker_controller,
) -> AsyncGenerator[Callable[..., Awaitable[ProvisionResult]], None]:
    """Factory that starts presets by name and removes them after the test.

    Usage:
        async def test_cache(docker_service):
            redis = await docker_service("redis")
    """
    started: List[ProvisionResult] = []

    async def start(name: str, *extra_args: str) -> ProvisionResult:
        try:
            result = await setup_preset(
                name, *extra_args, controller=docker_controller
            )
        except (EngineNotFoundError, ImagePullError) as e:
            pytest.skip(f"cannot start {name} container: {e}")
        started.append(result)
        return result

    yield start

    for result in reversed(started):
        try:
            await result.kill_and_remove()
        except Exception as e:
            logger.error(
                "Failed to tear down container",
                container_id=result.handle.short_id,
                error=str(e),
            )


@pytest_asyncio.fixture
async def redis_container(docker_service) -> ProvisionResult:
    """A running Redis container."""
    return await docker_service("redis")


@pytest_asyncio.fixture
async def postgres_container(docker_service) -> ProvisionResult:
    """A running PostgreSQL container with the ``dockertest`` database."""
    return await docker_service("postgres")
