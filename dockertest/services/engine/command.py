"""Engine command invocation.

Every call to the container engine goes through CommandRunner. When a
docker-machine VM is in use the command is rewritten to run over
`docker-machine ssh`, so nothing above this layer needs to know where the
engine lives.
"""

import asyncio
from dataclasses import dataclass
from typing import List, Optional, Sequence

import structlog

from ...config import Settings
from ...models.errors import EngineCommandError, EngineCommandTimeout

logger = structlog.get_logger(__name__)

# Upper bound on reaping a killed process. A grandchild that inherited the
# pipes (an ssh session, say) can keep them open after the kill.
KILL_WAIT_TIMEOUT = 1.0


@dataclass
class CommandResult:
    """Outcome of one engine invocation."""

    argv: List[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """stderr followed by stdout, for error messages."""
        return "".join(part for part in (self.stderr, self.stdout) if part)


class CommandRunner:
    """Runs engine subcommands locally or inside a docker-machine VM."""

    def __init__(self, settings: Settings):
        """Initialize the runner.

        Args:
            settings: Engine binaries and the per-command timeout
        """
        self._settings = settings
        self._remote = False

    @property
    def remote(self) -> bool:
        """Whether commands are routed through docker-machine ssh."""
        return self._remote

    def use_remote(self, enabled: bool = True) -> None:
        self._remote = enabled

    def build_argv(self, command: str, args: Sequence[str]) -> List[str]:
        """Build the argv for ``command`` (an engine binary) and ``args``."""
        argv = [command, *args]
        if self._remote:
            return [
                self._settings.machine_binary,
                "ssh",
                self._settings.machine_name,
                *argv,
            ]
        return argv

    def docker_argv(self, *args: str) -> List[str]:
        return self.build_argv(self._settings.docker_binary, args)

    async def docker(self, *args: str, check: bool = False) -> CommandResult:
        """Run ``docker <args>`` through the configured channel."""
        return await self.run(self.docker_argv(*args), check=check)

    async def machine(self, *args: str, check: bool = False) -> CommandResult:
        """Run ``docker-machine <args>`` on the host, never over ssh."""
        return await self.run([self._settings.machine_binary, *args], check=check)

    async def run(
        self,
        argv: Sequence[str],
        check: bool = False,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        """Execute ``argv`` and capture its output.

        Args:
            argv: Full command line
            check: Raise EngineCommandError on a non-zero exit status
            timeout: Seconds before the process is killed; defaults to
                ``settings.command_timeout``

        Returns:
            CommandResult with decoded stdout and stderr

        Raises:
            EngineCommandTimeout: if the process outlived ``timeout``
            EngineCommandError: if the binary could not be started, or on a
                non-zero exit status when ``check`` is set
        """
        argv = list(argv)
        if timeout is None:
            timeout = self._settings.command_timeout

        logger.debug("Running engine command", argv=argv)
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise EngineCommandError(argv, returncode=None, output=str(e)) from e

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                proc.communicate(), timeout=timeout
            )
        except asyncio.TimeoutError:
            await self._kill(proc)
            logger.warning("Engine command timed out", argv=argv, timeout=timeout)
            raise EngineCommandTimeout(argv, timeout)
        except asyncio.CancelledError:
            await self._kill(proc)
            raise

        result = CommandResult(
            argv=argv,
            returncode=proc.returncode,
            stdout=self._decode(stdout_bytes),
            stderr=self._decode(stderr_bytes),
        )
        if check and not result.ok:
            raise EngineCommandError(argv, result.returncode, result.output)
        return result

    @staticmethod
    async def _kill(proc: asyncio.subprocess.Process) -> None:
        try:
            proc.kill()
        except ProcessLookupError:
            return
        try:
            await asyncio.wait_for(proc.wait(), timeout=KILL_WAIT_TIMEOUT)
        except asyncio.TimeoutError:
            logger.warning("Killed process did not exit in time", pid=proc.pid)

    @staticmethod
    def _decode(output: bytes) -> str:
        if not output:
            return ""
        return output.decode("utf-8", errors="replace")
