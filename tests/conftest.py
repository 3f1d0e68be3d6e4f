"""Pytest configuration and shared fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from dockertest.config import Settings
from dockertest.services.engine import CommandResult, CommandRunner, DockerEngine


def make_result(stdout: str = "", stderr: str = "", returncode: int = 0, argv=None):
    """Build a CommandResult as the runner would return it."""
    return CommandResult(
        argv=list(argv or ["docker"]),
        returncode=returncode,
        stdout=stdout,
        stderr=stderr,
    )


@pytest.fixture
def settings():
    """Settings with every flag at its default, independent of the environment."""
    return Settings(
        _env_file=None,
        docker_binary="docker",
        machine_binary="docker-machine",
        machine_name=None,
        debug=False,
        bind_localhost=False,
        command_timeout=5.0,
        probe_timeout=1.0,
    )


@pytest.fixture
def mock_runner(settings):
    """CommandRunner whose docker/machine calls are AsyncMocks."""
    runner = MagicMock(spec=CommandRunner)
    runner.remote = False
    runner.docker = AsyncMock(return_value=make_result())
    runner.machine = AsyncMock(return_value=make_result())
    return runner


@pytest.fixture
def engine(settings, mock_runner):
    """DockerEngine backed by the mocked runner."""
    return DockerEngine(settings, runner=mock_runner)


@pytest.fixture
def mock_engine():
    """Fully mocked DockerEngine for lifecycle tests."""
    engine = MagicMock(spec=DockerEngine)
    engine.runner = MagicMock()
    engine.runner.remote = False
    engine.engine_present.return_value = True
    engine.remote_present.return_value = False
    engine.image_present = AsyncMock(return_value=True)
    engine.pull_image = AsyncMock()
    engine.run_container = AsyncMock(return_value="abc123def456")
    engine.inspect_ip_address = AsyncMock(return_value="172.17.0.2")
    engine.kill_container = AsyncMock()
    engine.remove_container = AsyncMock()
    engine.force_remove_container = AsyncMock(return_value=True)
    engine.container_exists = AsyncMock(return_value=False)
    engine.machine_running = AsyncMock(return_value=True)
    engine.start_machine = AsyncMock(return_value=True)
    engine.machine_ip = AsyncMock(return_value="192.168.99.100")
    return engine
