"""Docker CLI adapter.

Translates lifecycle intents into `docker` subcommands and parses what
they print: the container ID from `run`, the IP address from `inspect`,
the raw image listing from `images`.
"""

import json
import re
import shutil
from typing import Optional, Sequence

import structlog
from pydantic import ValidationError

from ...config import Settings
from ...models.container import InspectedContainer
from ...models.errors import (
    ContainerLaunchError,
    EngineCommandError,
    ErrorDetail,
    ImagePullError,
    InspectError,
    InspectSchemaError,
)
from .command import CommandRunner

logger = structlog.get_logger(__name__)

CONTAINER_ID_PATTERN = re.compile(r"^[A-Za-z0-9]+$")


class DockerEngine:
    """Wraps the docker CLI for a single lifecycle controller."""

    def __init__(self, settings: Settings, runner: Optional[CommandRunner] = None):
        """Initialize the adapter.

        Args:
            settings: Engine configuration (binaries, debug flag, timeouts)
            runner: Command runner; one is built from ``settings`` if omitted
        """
        self._settings = settings
        self._runner = runner or CommandRunner(settings)

    @property
    def runner(self) -> CommandRunner:
        """Get the command runner."""
        return self._runner

    def engine_present(self) -> bool:
        """Check if the docker binary is on PATH."""
        return shutil.which(self._settings.docker_binary) is not None

    def remote_present(self) -> bool:
        """Check if the docker-machine binary is on PATH."""
        return shutil.which(self._settings.machine_binary) is not None

    async def image_present(self, name: str) -> bool:
        """Check whether ``name`` appears anywhere in `docker images --no-trunc`.

        This is a plain substring match, so ``redis`` is also satisfied by
        ``redis-stack`` or by a different tag of the same repository. A
        ``repo:tag`` name also matches a row listing that repository and tag
        in their own columns.
        """
        result = await self._runner.docker("images", "--no-trunc", check=True)
        if name in result.stdout:
            return True
        repository, sep, tag = name.rpartition(":")
        if not sep or "/" in tag:
            return False
        for line in result.stdout.splitlines():
            columns = line.split()
            if len(columns) >= 2 and columns[0] == repository and columns[1] == tag:
                return True
        return False

    async def pull_image(self, name: str) -> None:
        """Pull ``name`` from its registry."""
        logger.info("Pulling image", image=name)
        result = await self._runner.docker("pull", name)
        if not result.ok:
            raise ImagePullError(
                name, output=result.output or f"exit status {result.returncode}"
            )
        logger.info("Pulled image", image=name)

    async def run_container(self, args: Sequence[str]) -> str:
        """Start a container with `docker run <args>` and return its ID.

        Raises:
            ContainerLaunchError: on a non-zero exit or when stdout is not a
                bare container ID (engine errors sometimes land on stdout)
        """
        result = await self._runner.docker("run", *args)
        if not result.ok:
            raise ContainerLaunchError(
                f"docker run failed with status {result.returncode}: "
                f"{result.output.strip()}",
                output=result.output,
            )

        container_id = result.stdout.strip()
        if not container_id:
            raise ContainerLaunchError(
                "unexpected empty output from `docker run`", output=result.output
            )
        if not CONTAINER_ID_PATTERN.match(container_id):
            raise ContainerLaunchError(
                f"unexpected output from `docker run`: {container_id}",
                output=result.output,
            )

        logger.info("Started container", container_id=container_id[:12])
        return container_id

    async def kill_container(self, container_id: str) -> None:
        """Run `docker kill`; an empty ID is a no-op."""
        if not container_id:
            return
        await self._runner.docker("kill", container_id, check=True)

    async def remove_container(self, container_id: str) -> None:
        """Run `docker rm -v`; skipped for an empty ID or in debug mode."""
        if not container_id:
            return
        if self._settings.debug:
            logger.info(
                "Debug mode, leaving container in place",
                container_id=container_id[:12],
            )
            return
        await self._runner.docker("rm", "-v", container_id, check=True)

    async def force_remove_container(self, name: str) -> bool:
        """Run `docker rm -f -v` on a container name or ID.

        Used when `docker run` failed after the engine may already have
        created the container, so the ID was never printed.

        Returns:
            True if a container was removed, False if the engine knows no
            container by that name (or debug mode kept it)
        """
        if not name:
            return False
        if self._settings.debug:
            logger.info("Debug mode, leaving container in place", name=name)
            return False
        result = await self._runner.docker("rm", "-f", "-v", name)
        if result.ok:
            logger.info("Removed container", name=name)
            return True
        if "no such container" in result.output.lower():
            return False
        raise EngineCommandError(result.argv, result.returncode, result.output)

    async def inspect_ip_address(self, container_id: str) -> str:
        """Read the container's IP address from `docker inspect`.

        Raises:
            InspectError: if inspect printed an empty array or the container
                has no IP address (usually because it is not running)
            InspectSchemaError: if the output is not the expected JSON shape
        """
        result = await self._runner.docker("inspect", container_id, check=True)

        try:
            payload = json.loads(result.stdout)
        except ValueError as e:
            raise InspectSchemaError(f"docker inspect returned invalid JSON: {e}") from e
        if not isinstance(payload, list):
            raise InspectSchemaError(
                "docker inspect returned %s, expected an array" % type(payload).__name__
            )
        if not payload:
            raise InspectError("no output from docker inspect")

        try:
            container = InspectedContainer.model_validate(payload[0])
        except ValidationError as e:
            raise InspectSchemaError(
                "docker inspect output is missing NetworkSettings.IPAddress",
                details=[
                    ErrorDetail(
                        field=".".join(str(part) for part in err["loc"]),
                        message=err["msg"],
                        code=err["type"],
                    )
                    for err in e.errors()
                ],
            ) from e

        ip = container.network_settings.ip_address
        if not ip:
            raise InspectError("could not find an IP. Not running?")
        return ip

    async def container_exists(self, container_id: str) -> bool:
        """Check whether the engine still knows about ``container_id``."""
        if not container_id:
            return False
        result = await self._runner.docker("ps", "-a", "-q", "--no-trunc", check=True)
        return any(
            line.strip().startswith(container_id)
            for line in result.stdout.splitlines()
            if line.strip()
        )

    # docker-machine

    async def machine_running(self) -> bool:
        """Check whether the configured docker-machine VM reports Running."""
        try:
            result = await self._runner.machine("status", self._settings.machine_name)
        except EngineCommandError:
            return False
        return result.ok and result.stdout.strip().lower() == "running"

    async def start_machine(self) -> bool:
        """Start the configured docker-machine VM; returns whether it worked."""
        try:
            result = await self._runner.machine("start", self._settings.machine_name)
        except EngineCommandError as e:
            logger.warning("docker-machine start failed", error=str(e))
            return False
        if not result.ok:
            logger.warning(
                "docker-machine start failed",
                machine=self._settings.machine_name,
                output=result.output.strip(),
            )
        return result.ok

    async def machine_ip(self) -> str:
        """IP address of the docker-machine VM."""
        result = await self._runner.machine(
            "ip", self._settings.machine_name, check=True
        )
        ip = result.stdout.strip()
        if not ip:
            raise InspectError(
                f"no output from docker-machine ip {self._settings.machine_name}"
            )
        return ip
