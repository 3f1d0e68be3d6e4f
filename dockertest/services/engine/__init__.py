"""Container engine adapter.

This package wraps the docker CLI:
- command.py: CommandRunner, the single point every invocation goes through
- docker.py: DockerEngine, subcommands and output parsing
"""

from .command import CommandRunner, CommandResult
from .docker import DockerEngine

__all__ = [
    "CommandRunner",
    "CommandResult",
    "DockerEngine",
]
