"""Container lifecycle management.

Provisioning is a straight line with two rollback paths:

    preflight -> ensure image -> docker run -> resolve address -> probe -> setup
                                      |           |                        |
                         rm -f <name> on failure  +-- kill + rm on failure -+

`docker run` can create the container and then fail to start it (a taken
port, for instance) without printing an ID, so that path removes it by the
generated name.

Once ``provision`` returns, the caller owns the container and is
responsible for ``kill_and_remove``.
"""

import asyncio
from typing import Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

import structlog

from ..config import Settings, settings as default_settings
from ..models.container import ContainerHandle, ProvisionResult, ServiceSpec
from ..models.errors import (
    ContainerLaunchError,
    EngineCommandError,
    EngineNotFoundError,
    ImagePullError,
)
from ..utils.naming import generate_container_name, pick_random_port
from ..utils.network import await_reachable
from .engine import DockerEngine

logger = structlog.get_logger(__name__)

LOOPBACK_ADDRESS = "127.0.0.1"

SetupHook = Callable[[ProvisionResult], Awaitable[None]]
Prober = Callable[[str, float], Awaitable[None]]


class LifecycleController:
    """Starts service containers, confirms they answer, and cleans up on failure.

    Configuration is passed in rather than read from module globals, and the
    random parts (container name, external port) are injectable so tests
    can pin them.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        engine: Optional[DockerEngine] = None,
        name_generator: Callable[[], str] = generate_container_name,
        port_picker: Callable[[], int] = pick_random_port,
        prober: Prober = await_reachable,
    ):
        """Initialize the controller.

        Args:
            settings: Engine and provisioning configuration
            engine: Docker adapter; built from ``settings`` if omitted
            name_generator: Produces the `--name` for each container
            port_picker: Produces the external port for each container
            prober: Reachability check, called as ``prober(address, max_wait)``
        """
        self._settings = settings or default_settings
        self._engine = engine or DockerEngine(self._settings)
        self._name_generator = name_generator
        self._port_picker = port_picker
        self._prober = prober
        self._preflight_done = False

    @property
    def engine(self) -> DockerEngine:
        """Get the docker adapter."""
        return self._engine

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def remote(self) -> bool:
        """Whether the engine is reached through docker-machine."""
        return self._engine.runner.remote

    def is_available(self) -> bool:
        """Check if any way of reaching the engine is installed."""
        if self._settings.machine_name and self._engine.remote_present():
            return True
        return self._engine.engine_present()

    async def preflight(self) -> None:
        """Make sure the engine can be invoked.

        Prefers a configured docker-machine VM, starting it if it is not
        running; a failed start is only logged, since the next docker
        command will fail loudly anyway.

        Raises:
            EngineNotFoundError: if neither docker-machine (when configured)
                nor docker is on PATH
        """
        if self._preflight_done:
            return

        if self._settings.machine_name and self._engine.remote_present():
            self._engine.runner.use_remote(True)
            if not await self._engine.machine_running():
                logger.info(
                    "Starting docker-machine", machine=self._settings.machine_name
                )
                if not await self._engine.start_machine():
                    logger.warning(
                        "Could not start docker-machine, continuing anyway",
                        machine=self._settings.machine_name,
                    )
        elif not self._engine.engine_present():
            binaries = [self._settings.docker_binary]
            if self._settings.machine_name:
                binaries.append(self._settings.machine_binary)
            raise EngineNotFoundError(binaries)

        self._preflight_done = True

    async def ensure_image(self, image: str) -> None:
        """Pull ``image`` unless it already shows up in the local listing.

        Raises:
            ImagePullError: for any failure listing or pulling, timeouts
                included
        """
        try:
            present = await self._engine.image_present(image)
        except EngineCommandError as e:
            raise ImagePullError(
                image,
                output=e.output,
                message=f"error running docker to check for {image}: {e.message}",
            ) from e
        if present:
            return
        try:
            await self._engine.pull_image(image)
        except EngineCommandError as e:
            raise ImagePullError(
                image,
                output=e.output,
                message=f"error pulling {image}: {e.message}",
            ) from e

    def build_run_args(self, spec: ServiceSpec, external_port: int, name: str) -> List[str]:
        """Arguments for `docker run`, image and trailing args included."""
        if self._settings.bind_localhost:
            port_mapping = f"{LOOPBACK_ADDRESS}:{external_port}:{spec.container_port}"
        else:
            port_mapping = f"{external_port}:{spec.container_port}"

        args = ["--name", name, "-d", "-P", "-p", port_mapping]
        args.extend(spec.env_args())
        args.append(spec.image)
        args.extend(spec.extra_args)
        return args

    async def resolve_host(self, handle: ContainerHandle) -> str:
        """Host to probe and hand to the caller.

        The docker-machine VM or 127.0.0.1 serve the published port; the
        container's bridge IP serves the internal one.
        """
        if self.remote:
            return await self._engine.machine_ip()
        if self._settings.bind_localhost:
            return LOOPBACK_ADDRESS
        return await handle.ip()

    async def provision(
        self,
        image: str,
        container_port: int,
        env: Optional[Mapping[str, str]] = None,
        extra_args: Sequence[str] = (),
        probe_timeout: Optional[float] = None,
    ) -> ProvisionResult:
        """Start ``image`` and wait until ``container_port`` answers.

        Args:
            image: Image to run, pulled if missing
            container_port: Port the service listens on inside the container
            env: Environment variables passed with ``-e``
            extra_args: Arguments appended after the image name
            probe_timeout: Reachability deadline in seconds

        Returns:
            ProvisionResult holding the handle and the reachable address
        """
        spec = ServiceSpec(
            image=image,
            container_port=container_port,
            env=dict(env or {}),
            extra_args=tuple(extra_args),
            probe_timeout=probe_timeout,
            name=image,
        )
        return await self.provision_spec(spec)

    async def provision_spec(
        self, spec: ServiceSpec, setup: Optional[SetupHook] = None
    ) -> ProvisionResult:
        """Provision the container described by ``spec``.

        ``setup`` runs after the probe succeeds; if it raises, the container
        is torn down just like a failed probe.
        """
        await self.preflight()
        await self.ensure_image(spec.image)

        external_port = self._port_picker()
        name = self._name_generator()
        args = self.build_run_args(spec, external_port, name)

        try:
            container_id = await self._engine.run_container(args)
        except (ContainerLaunchError, EngineCommandError, asyncio.CancelledError) as e:
            logger.warning(
                "Launch failed, removing container by name", name=name, error=str(e)
            )
            await self._remove_by_name(name)
            raise
        handle = ContainerHandle(container_id=container_id, engine=self._engine)
        log = logger.bind(
            container_id=handle.short_id,
            service=spec.name or spec.image,
        )

        max_wait = spec.probe_timeout
        if max_wait is None:
            max_wait = self._settings.probe_timeout
        try:
            host = await self.resolve_host(handle)
            if self.remote or self._settings.bind_localhost:
                port = external_port
            else:
                port = spec.container_port
            result = ProvisionResult(
                handle=handle, host=host, port=port, external_port=external_port
            )
            await self._prober(result.address, max_wait)
            if setup is not None:
                await setup(result)
        except (Exception, asyncio.CancelledError) as e:
            log.warning("Provisioning failed, rolling back", error=str(e))
            await self._rollback(handle)
            raise

        log.info("Container ready", address=result.address)
        return result

    async def _remove_by_name(self, name: str) -> None:
        """Remove whatever a failed `docker run` left behind; errors are logged only."""
        try:
            await self._engine.force_remove_container(name)
        except Exception as e:
            logger.error("Launch cleanup failed", name=name, error=str(e))

    async def _rollback(self, handle: ContainerHandle) -> None:
        """Kill, then remove if the kill worked; errors are logged only."""
        try:
            await handle.kill()
        except Exception as e:
            logger.error(
                "Rollback kill failed", container_id=handle.short_id, error=str(e)
            )
            return
        try:
            await handle.remove()
        except Exception as e:
            logger.error(
                "Rollback remove failed", container_id=handle.short_id, error=str(e)
            )
            return
        handle.container_id = ""

    def describe(self) -> Dict[str, object]:
        """Summary of how containers will be reached, for diagnostics."""
        return {
            "docker_binary": self._settings.docker_binary,
            "docker_found": self._engine.engine_present(),
            "machine_name": self._settings.machine_name,
            "machine_found": self._engine.remote_present(),
            "remote": self.remote,
            "bind_localhost": self._settings.bind_localhost,
            "debug": self._settings.debug,
        }
