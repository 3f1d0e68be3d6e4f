"""Generators for container names and external ports.

Both are passed into the lifecycle controller so tests can substitute
deterministic values.
"""

import random
import uuid
from typing import Optional

PORT_RANGE_START = 1024
PORT_RANGE_END = 49150  # exclusive


def generate_container_name() -> str:
    """Unique container name for `docker run --name`."""
    return f"dockertest-{uuid.uuid4().hex}"


def pick_random_port(rng: Optional[random.Random] = None) -> int:
    """Random external port in [1024, 49150)."""
    rng = rng or random
    return rng.randrange(PORT_RANGE_START, PORT_RANGE_END)
