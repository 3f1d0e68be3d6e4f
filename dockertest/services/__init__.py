"""Container provisioning services.

- engine/: docker CLI adapter
- lifecycle.py: provision / rollback state machine
- presets.py: one entry point per supported service
- sql.py: statement executors used by the SQL presets
"""

from .engine import CommandRunner, CommandResult, DockerEngine
from .lifecycle import LifecycleController
from .presets import (
    PRESETS,
    setup_mongo_container,
    setup_mysql_container,
    setup_postgres_container,
    setup_redis_container,
    setup_nats_container,
    setup_fluentd_container,
    setup_elasticsearch_container,
    setup_preset,
)

__all__ = [
    "CommandRunner",
    "CommandResult",
    "DockerEngine",
    "LifecycleController",
    "PRESETS",
    "setup_mongo_container",
    "setup_mysql_container",
    "setup_postgres_container",
    "setup_redis_container",
    "setup_nats_container",
    "setup_fluentd_container",
    "setup_elasticsearch_container",
    "setup_preset",
]
