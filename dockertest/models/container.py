"""Container data models.

ContainerHandle is what the caller owns once a container is started;
ServiceSpec and RetryBudget are immutable inputs; ProvisionResult bundles
the handle with the address that passed the reachability probe.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Mapping, Optional, Tuple

import structlog
from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from ..services.engine.docker import DockerEngine

logger = structlog.get_logger(__name__)


@dataclass
class ContainerHandle:
    """A container created by the engine.

    A non-empty ``container_id`` means the container was created; it says
    nothing about readiness. Teardown on an empty handle is a no-op, so
    calling ``kill_and_remove`` twice is safe once the handle is cleared.
    """

    container_id: str
    engine: "DockerEngine" = field(repr=False)

    def __bool__(self) -> bool:
        return bool(self.container_id)

    def __str__(self) -> str:
        return self.container_id

    @property
    def short_id(self) -> str:
        return self.container_id[:12]

    async def ip(self) -> str:
        """Container IP address as reported by `docker inspect`."""
        return await self.engine.inspect_ip_address(self.container_id)

    async def kill(self) -> None:
        await self.engine.kill_container(self.container_id)

    async def remove(self) -> None:
        await self.engine.remove_container(self.container_id)

    async def kill_and_remove(self) -> None:
        """Kill the container, then remove it if the kill succeeded."""
        if not self.container_id:
            return
        await self.kill()
        await self.remove()
        logger.debug("Container torn down", container_id=self.short_id)
        self.container_id = ""


@dataclass(frozen=True)
class ServiceSpec:
    """What to run: image, the port it serves on, and how to start it."""

    image: str
    container_port: int
    env: Mapping[str, str] = field(default_factory=dict)
    extra_args: Tuple[str, ...] = ()
    probe_timeout: Optional[float] = None
    name: str = ""

    def with_extra_args(self, *args: str) -> "ServiceSpec":
        """Return a copy with ``args`` appended after the image."""
        return ServiceSpec(
            image=self.image,
            container_port=self.container_port,
            env=dict(self.env),
            extra_args=tuple(self.extra_args) + tuple(args),
            probe_timeout=self.probe_timeout,
            name=self.name,
        )

    def env_args(self) -> List[str]:
        args: List[str] = []
        for key, value in self.env.items():
            args.extend(["-e", f"{key}={value}"])
        return args


@dataclass(frozen=True)
class RetryBudget:
    """Attempts and backoff for a retried statement."""

    max_attempts: int = 10
    base_interval: float = 0.1
    multiplier: float = 2.0


@dataclass
class ProvisionResult:
    """A started, reachable container and where to reach it.

    ``host:port`` is the address that passed the reachability probe.
    ``external_port`` is the port published on the engine host.

    With a docker-machine VM or ``bind_localhost`` the host is the VM IP or
    127.0.0.1 and ``port == external_port``. Otherwise the host is the
    container's bridge IP from `docker inspect`, and ``port`` is the
    container port: the published port is only mapped on the engine host's
    interfaces, not on the bridge address. Use ``external_port`` to connect
    through the engine host instead.
    """

    handle: ContainerHandle
    host: str
    port: int
    external_port: Optional[int] = None

    def __post_init__(self):
        if self.external_port is None:
            self.external_port = self.port

    @property
    def address(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"

    @property
    def container_id(self) -> str:
        return self.handle.container_id

    async def kill_and_remove(self) -> None:
        await self.handle.kill_and_remove()

    async def __aenter__(self) -> "ProvisionResult":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.kill_and_remove()


# `docker inspect` output, restricted to the fields that are read.


class NetworkSettings(BaseModel):
    """NetworkSettings section of an inspected container."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    ip_address: str = Field(..., alias="IPAddress")


class InspectedContainer(BaseModel):
    """One element of the `docker inspect` JSON array."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    network_settings: NetworkSettings = Field(..., alias="NetworkSettings")
