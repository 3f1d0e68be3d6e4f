"""Utility modules for dockertest."""

from .logging import setup_logging
from .naming import generate_container_name, pick_random_port
from .network import await_reachable, is_reachable, split_address
from .retry import retry_exec

__all__ = [
    "setup_logging",
    "generate_container_name",
    "pick_random_port",
    "await_reachable",
    "is_reachable",
    "split_address",
    "retry_exec",
]
