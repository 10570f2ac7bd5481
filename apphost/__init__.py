"""
apphost - declarative resource provisioning for containerized services.

Declare resources on a builder, get deterministic launch commands for the
container runtime, and have connection strings and health checks become
available once the runtime reports the resources reachable.

Quick Start:
    >>> from apphost import DistributedApplicationBuilder
    >>> from apphost.redis import add_redis_v8
    >>>
    >>> builder = DistributedApplicationBuilder()
    >>> redis = add_redis_v8(builder, "db", port=6379).with_persistence()
    >>> app = builder.build()
    >>> redis.resource.launch_command().args
    ('-c', 'redis-server --requirepass $REDIS_PASSWORD --save 60 1')
"""

__version__ = "0.1.0"

from apphost.errors import (
    AppHostError,
    ConfigurationError,
    ConnectionStringUnavailableError,
    ResolutionError,
)
from apphost.hosting import DistributedApplication, DistributedApplicationBuilder
from apphost.readiness import ReadinessCoordinator, ReadinessState

__all__ = [
    "__version__",
    # Hosting
    "DistributedApplication",
    "DistributedApplicationBuilder",
    # Readiness
    "ReadinessCoordinator",
    "ReadinessState",
    # Errors
    "AppHostError",
    "ConfigurationError",
    "ConnectionStringUnavailableError",
    "ResolutionError",
]
